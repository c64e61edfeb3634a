"""
Client for the action-tagged HTTP API.

Every call is a POST of {action, ...params}; the server answers
{ok, data?, error?, code?}. Rejections that carry a known `code` are raised
as the same exception the local store raises; anything else becomes a
TransportError. Connection failures, timeouts and 502/503/504 answers are
retried with exponential backoff; domain rejections never are.
"""
import logging
import os
import time

import requests

from core.errors import ERRORS_BY_CODE, TransportError
from core.models import Event, Registration
from storage.base import EventStore

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 15
DEFAULT_RETRIES = 2
RETRY_STATUSES = {502, 503, 504}


class RemoteEventStore(EventStore):
    def __init__(self, url: str, api_key: str = None, timeout: float = DEFAULT_TIMEOUT,
                 retries: int = DEFAULT_RETRIES, backoff: float = 0.5, session=None):
        if not url:
            raise TransportError('Missing SHEETS_API_URL')
        self.url = url
        self.api_key = api_key
        self.timeout = timeout
        self.retries = retries
        self.backoff = backoff
        self.session = session or requests.Session()

    @classmethod
    def from_env(cls, session=None) -> 'RemoteEventStore':
        return cls(
            os.environ.get('SHEETS_API_URL'),
            api_key=os.environ.get('ADMIN_API_KEY'),
            timeout=float(os.environ.get('SHEETS_API_TIMEOUT', DEFAULT_TIMEOUT)),
            retries=int(os.environ.get('SHEETS_API_RETRIES', DEFAULT_RETRIES)),
            session=session,
        )

    def _post(self, body: dict):
        headers = {'Content-Type': 'application/json'}
        if self.api_key:
            headers['Authorization'] = f'Bearer {self.api_key}'
        attempt = 0
        while True:
            try:
                response = self.session.post(self.url, json=body, headers=headers, timeout=self.timeout)
            except (requests.ConnectionError, requests.Timeout) as e:
                if attempt >= self.retries:
                    logger.error(f"{body['action']} failed after {attempt + 1} attempts: {e}")
                    raise TransportError(str(e))
            else:
                if response.status_code not in RETRY_STATUSES or attempt >= self.retries:
                    return response
            delay = self.backoff * (2 ** attempt)
            attempt += 1
            logger.warning(f"Retrying {body['action']} in {delay:.1f}s (attempt {attempt + 1})")
            time.sleep(delay)

    def call(self, action: str, **params):
        """Send one action and return its `data`, raising on any failure."""
        response = self._post({**params, 'action': action})
        try:
            payload = response.json()
        except ValueError:
            payload = None
        if not isinstance(payload, dict):
            payload = {}

        message = payload.get('error')
        error_cls = ERRORS_BY_CODE.get(payload.get('code'))
        if error_cls is not None and not payload.get('ok'):
            error = error_cls(message) if message else error_cls()
            if payload.get('field') and hasattr(error, 'field'):
                error.field = payload['field']
            raise error
        if not response.ok:
            raise TransportError(message or f'HTTP {response.status_code}')
        if not payload.get('ok'):
            raise TransportError(message or 'Unknown API error')
        return payload.get('data')

    def list_events(self) -> list:
        data = self.call('list_events')
        return [Event.from_dict(e) for e in data] if isinstance(data, list) else []

    def subscriber_count(self) -> int:
        return int(self.call('sub_count') or 0)

    def list_registrations(self, event_id: str) -> list:
        data = self.call('list_registrations', eventId=event_id)
        return [Registration.from_dict(r) for r in data] if isinstance(data, list) else []

    def create_event(self, event: Event) -> Event:
        data = self.call('create_event', event=event.to_dict())
        return Event.from_dict(data) if isinstance(data, dict) else event

    def update_event(self, event_id: str, patch: dict) -> Event:
        data = self.call('update_event', eventId=event_id, patch=patch)
        return Event.from_dict(data) if isinstance(data, dict) else None

    def delete_event(self, event_id: str):
        self.call('delete_event', eventId=event_id)

    def register(self, event_id: str, first_name: str, last_name: str, neuron_id: str) -> Registration:
        data = self.call('register', eventId=event_id, registration={
            'firstName': first_name,
            'lastName': last_name,
            'neuronId': neuron_id,
        })
        return Registration.from_dict(data or {})

    def unregister(self, event_id: str, neuron_id: str) -> bool:
        return bool(self.call('unregister', eventId=event_id, neuronId=neuron_id))

    def subscribe(self, email: str) -> str:
        return 'exists' if self.call('subscribe', email=email) == 'exists' else 'ok'

    def list_subscribers(self) -> list:
        data = self.call('list_subscribers') or []
        # The spreadsheet backend answers rows, the file backend plain strings
        return [row.get('email') if isinstance(row, dict) else row for row in data]

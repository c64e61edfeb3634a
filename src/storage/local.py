"""
File-backed key-value store. Each namespaced key is one YAML file in the
data directory; all writes go through a FileLock on `<data_dir>/.lock` so
several processes can share the directory.
"""
import logging
import os

import yaml
from filelock import FileLock

from core import registration as ledger
from core.errors import NotFound, NotRegistered, TransportError, ValidationError
from core.migration import SCHEMA_VERSION, migrate_events_document
from core.models import Event
from core.text import now_iso
from core.validation import validate_event, validate_patch
from storage.base import EventStore

logger = logging.getLogger(__name__)

EVENTS_KEY = 'tm_events_v1'
SUBSCRIBERS_KEY = 'tm_subscribers_v1'


class LocalEventStore(EventStore):
    def __init__(self, data_dir: str, lock_timeout: float = 10):
        self.data_dir = data_dir
        os.makedirs(data_dir, exist_ok=True)
        # FileLock is reentrant, so helpers may take it again while held
        self.lock = FileLock(os.path.join(data_dir, '.lock'), timeout=lock_timeout)

    def _path(self, key: str) -> str:
        return os.path.join(self.data_dir, f'{key}.yaml')

    def _read(self, key: str, strict: bool = False):
        """Load one key. An unreadable file reads as None unless `strict`,
        which raises instead so a write never replaces data it could not parse."""
        path = self._path(key)
        if not os.path.exists(path):
            return None
        try:
            with open(path, 'r', encoding='utf-8') as f:
                data = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as e:
            error = e
        else:
            if data is None or isinstance(data, (dict, list)):
                return data
            error = f'unexpected top-level {type(data).__name__}'
        logger.warning(f'Failed to parse {path}: {error}')
        if strict:
            raise TransportError(f'Stored data in {key} is unreadable.')
        return None

    def _write(self, key: str, data):
        path = self._path(key)
        tmp_path = path + '.tmp'
        with open(tmp_path, 'w', encoding='utf-8') as f:
            yaml.dump(data, f, default_flow_style=False, allow_unicode=True)
        os.replace(tmp_path, path)

    def _load_events(self, strict: bool = False) -> list:
        with self.lock:
            document, changed = migrate_events_document(self._read(EVENTS_KEY, strict))
            if changed:
                logger.info(f'Migrated {self._path(EVENTS_KEY)} to schema version {SCHEMA_VERSION}')
                self._write(EVENTS_KEY, document)
        return [Event.from_dict(e) for e in document.get('events') or []]

    def _save_events(self, events: list):
        self._write(EVENTS_KEY, {
            'schema_version': SCHEMA_VERSION,
            'events': [e.to_dict(include_registrations=True) for e in events],
        })

    def _find(self, events: list, event_id: str) -> Event:
        for event in events:
            if event.id == event_id:
                return event
        raise NotFound()

    def _load_subscribers(self, strict: bool = False) -> list:
        data = self._read(SUBSCRIBERS_KEY, strict) or {}
        if isinstance(data, list):
            return list(data)
        return list(data.get('subscribers') or [])

    def list_events(self) -> list:
        return self._load_events()

    def get_event(self, event_id: str) -> Event:
        return self._find(self._load_events(), event_id)

    def subscriber_count(self) -> int:
        return len(self._load_subscribers())

    def list_registrations(self, event_id: str) -> list:
        return list(self.get_event(event_id).registrations)

    def create_event(self, event: Event) -> Event:
        validate_event(event.to_dict())
        with self.lock:
            events = self._load_events(strict=True)
            if any(e.id == event.id for e in events):
                raise ValidationError(f'Event id {event.id} already exists.', field='id')
            events.append(event)
            self._save_events(events)
        logger.info(f'Created event {event.id} ({event.title})')
        return event

    def update_event(self, event_id: str, patch: dict) -> Event:
        with self.lock:
            events = self._load_events(strict=True)
            event = self._find(events, event_id)
            payload = validate_patch(event.to_dict(), patch)
            updated = Event.from_dict({**event.to_dict(include_registrations=True), **payload})
            updated.updated_at = now_iso()
            events[events.index(event)] = updated
            self._save_events(events)
        logger.info(f'Updated event {event_id}')
        return updated

    def delete_event(self, event_id: str):
        with self.lock:
            events = self._load_events(strict=True)
            event = self._find(events, event_id)
            events.remove(event)
            self._save_events(events)
        logger.info(f'Deleted event {event_id}')

    def register(self, event_id: str, first_name: str, last_name: str, neuron_id: str):
        with self.lock:
            events = self._load_events(strict=True)
            event = self._find(events, event_id)
            created = ledger.register(event.registrations, event.player_cap,
                                      first_name, last_name, neuron_id)
            self._save_events(events)
        logger.info(f'Registered {created.neuron_id} for event {event_id}')
        return created

    def unregister(self, event_id: str, neuron_id: str) -> bool:
        with self.lock:
            events = self._load_events(strict=True)
            event = self._find(events, event_id)
            try:
                removed = ledger.unregister(event.registrations, neuron_id)
            except NotRegistered:
                return False
            self._save_events(events)
        logger.info(f'Unregistered {removed[0].neuron_id} from event {event_id}')
        return True

    def subscribe(self, email: str) -> str:
        email = email.strip().lower()
        with self.lock:
            subscribers = self._load_subscribers(strict=True)
            if email in subscribers:
                return 'exists'
            subscribers.append(email)
            self._write(SUBSCRIBERS_KEY, {'subscribers': subscribers})
        return 'ok'

    def list_subscribers(self) -> list:
        return self._load_subscribers()

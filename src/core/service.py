"""
Operations offered to the web surface. Works unchanged against any
EventStore; admission checks themselves run inside the store.
"""
from core import exports
from core.errors import NotRegistered, ValidationError
from core.models import Event, capacity_text, is_full
from core.text import new_id, normalize_identifier, sanitize_text
from core.validation import validate_email, validate_event


class EventDetail:
    """An event together with its registrations and derived capacity fields."""

    def __init__(self, event, registrations):
        self.event = event
        self.registrations = registrations
        self.capacity_text = capacity_text(len(registrations), event.player_cap)
        self.capacity_reached = is_full(len(registrations), event.player_cap)

    def to_dict(self, include_registrations: bool = False) -> dict:
        data = {
            'event': self.event.to_dict(),
            'registrationCount': len(self.registrations),
            'capacityText': self.capacity_text,
            'capacityReached': self.capacity_reached,
        }
        if include_registrations:
            data['registrations'] = [r.to_dict() for r in self.registrations]
        return data


class RegistrationService:
    def __init__(self, store, session):
        self.store = store
        self.session = session

    # -- browsing -----------------------------------------------------------

    def list_events(self) -> list:
        return self.store.list_events()

    def subscriber_count(self) -> int:
        return self.store.subscriber_count()

    def event_detail(self, event_id: str) -> EventDetail:
        event = self.store.get_event(event_id)
        return EventDetail(event, self.store.list_registrations(event_id))

    def list_registrations(self, event_id: str) -> list:
        return self.store.list_registrations(event_id)

    # -- event lifecycle (admin) --------------------------------------------

    def create_event(self, draft: dict, event_id: str = None) -> Event:
        self.session.require_admin()
        payload = validate_event(draft)
        event = Event.create(payload, event_id or new_id('evt'))
        return self.store.create_event(event)

    def update_event(self, event_id: str, patch: dict) -> Event:
        self.session.require_admin()
        return self.store.update_event(event_id, patch)

    def delete_event(self, event_id: str):
        self.session.require_admin()
        self.store.delete_event(event_id)

    # -- self-service registration ------------------------------------------

    def register(self, event_id: str, first_name, last_name, neuron_id):
        first = sanitize_text(first_name)
        last = sanitize_text(last_name)
        nid = normalize_identifier(neuron_id)
        return self.store.register(event_id, first, last, nid)

    def unregister(self, event_id: str, neuron_id) -> bool:
        nid = normalize_identifier(neuron_id)
        if not nid:
            raise ValidationError('Neuron ID is required to unregister.', field='neuronId')
        if not self.store.unregister(event_id, nid):
            raise NotRegistered()
        return True

    # -- newsletter ---------------------------------------------------------

    def subscribe(self, email) -> str:
        return self.store.subscribe(validate_email(email))

    def list_subscribers(self) -> list:
        self.session.require_admin()
        return self.store.list_subscribers()

    # -- exports (admin) ----------------------------------------------------

    def export_registrations(self, event_id: str) -> tuple:
        """Return (filename, text) for the participant list of an event."""
        self.session.require_admin()
        event = self.store.get_event(event_id)
        registrations = self.store.list_registrations(event_id)
        return exports.registrations_filename(event), exports.registrations_text(event, registrations)

    def export_subscribers(self) -> tuple:
        return exports.SUBSCRIBERS_FILENAME, exports.subscribers_text(self.list_subscribers())

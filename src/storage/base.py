"""
Storage contract shared by the local file store and the remote API client.

register(), unregister() and subscribe() must check and write in one step
on the store's side; callers never rely on a snapshot they read earlier.
"""
from core.errors import NotFound


class EventStore:
    def list_events(self) -> list:
        raise NotImplementedError

    def get_event(self, event_id: str):
        for event in self.list_events():
            if event.id == event_id:
                return event
        raise NotFound()

    def subscriber_count(self) -> int:
        raise NotImplementedError

    def list_registrations(self, event_id: str) -> list:
        raise NotImplementedError

    def create_event(self, event):
        raise NotImplementedError

    def update_event(self, event_id: str, patch: dict):
        raise NotImplementedError

    def delete_event(self, event_id: str):
        raise NotImplementedError

    def register(self, event_id: str, first_name: str, last_name: str, neuron_id: str):
        raise NotImplementedError

    def unregister(self, event_id: str, neuron_id: str) -> bool:
        """Return True when a registration was removed, False when none matched."""
        raise NotImplementedError

    def subscribe(self, email: str) -> str:
        """Return 'exists' when already subscribed, 'ok' otherwise."""
        raise NotImplementedError

    def list_subscribers(self) -> list:
        raise NotImplementedError

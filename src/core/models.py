import math

from core.text import as_integer, now_iso

# Attribute name -> key used in stored files and on the wire
EVENT_FIELDS = {
    'id': 'id',
    'title': 'title',
    'date': 'date',
    'location': 'location',
    'description': 'description',
    'notes': 'notes',
    'prereg_fee': 'preregFee',
    'non_reg_fee': 'nonRegFee',
    'player_cap': 'playerCap',
    'swiss_rounds': 'swissRounds',
    'top_cut': 'topCut',
    'reg_start_time': 'regStartTime',
    'tournament_start_time': 'tournamentStartTime',
    'prereg_start_date': 'preregStartDate',
    'prereg_end_date': 'preregEndDate',
    'image_data_url': 'imageDataUrl',
    'created_at': 'createdAt',
    'updated_at': 'updatedAt',
}

REGISTRATION_FIELDS = {
    'id': 'id',
    'first_name': 'firstName',
    'last_name': 'lastName',
    'neuron_id': 'neuronId',
    'created_at': 'createdAt',
}


def effective_cap(player_cap):
    """Return the cap as a positive int, or None when registration is unlimited."""
    cap = as_integer(player_cap)
    if isinstance(cap, float) and math.isnan(cap):
        return None
    if cap <= 0:
        return None
    return cap


def is_full(count: int, player_cap) -> bool:
    cap = effective_cap(player_cap)
    return cap is not None and count >= cap


def capacity_text(count: int, player_cap) -> str:
    cap = effective_cap(player_cap)
    return f'{count}/{cap}' if cap is not None else f'{count}/∞'


class Registration:
    def __init__(self, id, first_name, last_name, neuron_id, created_at=None):
        self.id = id
        self.first_name = first_name
        self.last_name = last_name
        self.neuron_id = neuron_id
        self.created_at = created_at or now_iso()

    def to_dict(self) -> dict:
        return {key: getattr(self, attr) for attr, key in REGISTRATION_FIELDS.items()}

    @classmethod
    def from_dict(cls, data: dict) -> 'Registration':
        values = {attr: data.get(key) for attr, key in REGISTRATION_FIELDS.items()}
        return cls(**values)

    def __eq__(self, other):
        return isinstance(other, Registration) and self.to_dict() == other.to_dict()

    def __repr__(self):
        return f"Registration(neuron_id={self.neuron_id}, first_name={self.first_name}, last_name={self.last_name})"


class Event:
    """A tournament listing.

    Instances built by validation hold normalized values only. Instances
    loaded from storage hold whatever was saved, so derived fields go through
    effective_cap() rather than trusting player_cap.
    """

    def __init__(self, id, title, date, location, prereg_fee, non_reg_fee, player_cap,
                 swiss_rounds, top_cut, reg_start_time, tournament_start_time,
                 prereg_start_date, prereg_end_date, image_data_url,
                 description='', notes='', created_at=None, updated_at=None,
                 registrations=None):
        self.id = id
        self.title = title
        self.date = date
        self.location = location
        self.description = description or ''
        self.notes = notes or ''
        self.prereg_fee = prereg_fee
        self.non_reg_fee = non_reg_fee
        self.player_cap = player_cap
        self.swiss_rounds = swiss_rounds
        self.top_cut = top_cut
        self.reg_start_time = reg_start_time
        self.tournament_start_time = tournament_start_time
        self.prereg_start_date = prereg_start_date
        self.prereg_end_date = prereg_end_date
        self.image_data_url = image_data_url
        self.created_at = created_at or now_iso()
        self.updated_at = updated_at or self.created_at
        self.registrations = registrations if registrations is not None else []

    @classmethod
    def create(cls, payload: dict, event_id: str) -> 'Event':
        """Build a fresh event from a validated payload (wire keys)."""
        values = {attr: payload.get(key) for attr, key in EVENT_FIELDS.items()
                  if attr not in ('id', 'created_at', 'updated_at')}
        timestamp = now_iso()
        return cls(id=event_id, created_at=timestamp, updated_at=timestamp, **values)

    @classmethod
    def from_dict(cls, data: dict) -> 'Event':
        values = {attr: data.get(key) for attr, key in EVENT_FIELDS.items()}
        registrations = [Registration.from_dict(r) for r in data.get('registrations') or []]
        return cls(registrations=registrations, **values)

    def to_dict(self, include_registrations: bool = False) -> dict:
        data = {key: getattr(self, attr) for attr, key in EVENT_FIELDS.items()}
        if include_registrations:
            data['registrations'] = [r.to_dict() for r in self.registrations]
        return data

    def capacity_text(self, count: int = None) -> str:
        return capacity_text(len(self.registrations) if count is None else count, self.player_cap)

    def capacity_reached(self, count: int = None) -> bool:
        return is_full(len(self.registrations) if count is None else count, self.player_cap)

    def __repr__(self):
        return f"Event(id={self.id}, title={self.title}, date={self.date}, player_cap={self.player_cap})"

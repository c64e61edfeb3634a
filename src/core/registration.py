"""
Registration admission control.

An event is FULL when its cap is a positive integer and the number of
registrations has reached it, otherwise OPEN. Both functions work on the
list they are given; stores call them while holding their write lock so
that the check and the write happen as one step.
"""
from core.errors import CapacityReached, DuplicateRegistrant, NotRegistered, ValidationError
from core.models import Registration, is_full
from core.text import new_id, normalize_identifier, now_iso, sanitize_text

OPEN = 'open'
FULL = 'full'


def admission_state(registrations: list, player_cap) -> str:
    return FULL if is_full(len(registrations), player_cap) else OPEN


def register(registrations: list, player_cap, first_name, last_name, neuron_id) -> Registration:
    """Append a registration to `registrations` and return it.

    Raises:
        CapacityReached: the event is full.
        ValidationError: a name or the Neuron ID is empty.
        DuplicateRegistrant: the normalized Neuron ID is already registered.
    """
    if admission_state(registrations, player_cap) == FULL:
        raise CapacityReached()

    first = sanitize_text(first_name)
    last = sanitize_text(last_name)
    nid = normalize_identifier(neuron_id)
    if not first or not last or not nid:
        raise ValidationError('First name, last name and Neuron ID are required.', field='neuronId')

    if any(normalize_identifier(r.neuron_id) == nid for r in registrations):
        raise DuplicateRegistrant()

    registration = Registration(id=new_id('reg'), first_name=first, last_name=last,
                                neuron_id=nid, created_at=now_iso())
    registrations.append(registration)
    return registration


def unregister(registrations: list, neuron_id) -> list:
    """Remove every registration matching the normalized Neuron ID.

    Returns the removed registrations.
    """
    nid = normalize_identifier(neuron_id)
    if not nid:
        raise ValidationError('Neuron ID is required to unregister.', field='neuronId')

    removed = [r for r in registrations if normalize_identifier(r.neuron_id) == nid]
    if not removed:
        raise NotRegistered()
    registrations[:] = [r for r in registrations if normalize_identifier(r.neuron_id) != nid]
    return removed

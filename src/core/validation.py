"""
Validation of event form submissions and newsletter addresses.

validate_event() checks fields in a fixed order and stops at the first
problem, so the caller shows one error at a time next to the form. The
payload it returns is the only thing that is ever persisted.
"""
import math
import re

from core.errors import ValidationError
from core.images import validate_image_data_url
from core.models import EVENT_FIELDS
from core.text import (
    as_integer, as_number, compact_number, is_positive_integer, is_valid_time,
    normalize_date_input, sanitize_text,
)

_EMAIL_PATTERN = re.compile(r'^[^\s@]+@[^\s@]+\.[^\s@]+$')

# Keys a partial update may not touch
PROTECTED_FIELDS = {'id', 'createdAt', 'updatedAt'}


def _missing(value) -> bool:
    if value is None:
        return True
    return isinstance(value, str) and not value.strip()


def _fail(field: str, message: str):
    raise ValidationError(message, field=field)


def _amount(draft: dict, field: str, label: str):
    number = as_number(draft.get(field))
    if not math.isfinite(number) or number < 0:
        _fail(field, f'{label} must be a number (0 or more).')
    return compact_number(number)


def _count(draft: dict, field: str, label: str) -> int:
    value = as_integer(draft.get(field))
    if not is_positive_integer(value):
        _fail(field, f'{label} must be a whole number (1 or more).')
    return value


def validate_event(draft: dict) -> dict:
    """Validate and normalize an event draft.

    Args:
        draft: Raw form values keyed by wire name (title, date, preregFee, ...).

    Returns:
        Normalized payload keyed by wire name: text trimmed, dates in
        DD/MM/YY, fees as numbers, cap and rounds as ints.

    Raises:
        ValidationError (or an image subclass) for the first failing field.
    """
    image = draft.get('imageDataUrl')
    if _missing(image):
        _fail('imageDataUrl', 'Image is required.')
    validate_image_data_url(image)

    title = sanitize_text(draft.get('title'))
    if not title:
        _fail('title', 'Event title is required.')

    date = normalize_date_input(draft.get('date'))
    if not date:
        _fail('date', 'Date is not valid. Examples: 01/03/26, 01.03.2026., 1/3/26')

    location = sanitize_text(draft.get('location'))
    if not location:
        _fail('location', 'Location is required.')

    for field, label in (('preregFee', 'Pre-registration fee'),
                         ('nonRegFee', 'Non-registered players fee'),
                         ('playerCap', 'Player cap'),
                         ('swissRounds', 'Swiss rounds'),
                         ('topCut', 'Top cut')):
        if _missing(draft.get(field)):
            _fail(field, f'{label} is required.')

    reg_start_time = sanitize_text(draft.get('regStartTime'))
    if not reg_start_time:
        _fail('regStartTime', 'Registration start time is required.')
    if not is_valid_time(reg_start_time):
        _fail('regStartTime', 'Registration start time must be HH:MM (e.g. 09:30).')

    tournament_start_time = sanitize_text(draft.get('tournamentStartTime'))
    if not tournament_start_time:
        _fail('tournamentStartTime', 'Tournament start time is required.')
    if not is_valid_time(tournament_start_time):
        _fail('tournamentStartTime', 'Tournament start time must be HH:MM (e.g. 10:00).')

    prereg_start_date = normalize_date_input(draft.get('preregStartDate'))
    if not prereg_start_date:
        _fail('preregStartDate', 'Pre-registration start date is not valid (e.g. 01/03/26).')

    prereg_end_date = normalize_date_input(draft.get('preregEndDate'))
    if not prereg_end_date:
        _fail('preregEndDate', 'Pre-registration end date is not valid (e.g. 09/03/26).')

    prereg_fee = _amount(draft, 'preregFee', 'Pre-registration fee')
    non_reg_fee = _amount(draft, 'nonRegFee', 'Non-registered players fee')
    player_cap = _count(draft, 'playerCap', 'Player cap')
    swiss_rounds = _count(draft, 'swissRounds', 'Swiss rounds')

    top_cut = sanitize_text(draft.get('topCut'))
    if not top_cut:
        _fail('topCut', 'Top cut is required.')

    return {
        'title': title,
        'date': date,
        'location': location,
        'preregFee': prereg_fee,
        'nonRegFee': non_reg_fee,
        'playerCap': player_cap,
        'swissRounds': swiss_rounds,
        'topCut': top_cut,
        'regStartTime': reg_start_time,
        'tournamentStartTime': tournament_start_time,
        'preregStartDate': prereg_start_date,
        'preregEndDate': prereg_end_date,
        'description': sanitize_text(draft.get('description')),
        'notes': sanitize_text(draft.get('notes')),
        'imageDataUrl': image,
    }


def validate_patch(current: dict, patch: dict) -> dict:
    """Merge a partial update over the stored event and re-validate the whole."""
    known = set(EVENT_FIELDS.values()) - PROTECTED_FIELDS
    merged = {key: value for key, value in current.items() if key in known}
    merged.update({key: value for key, value in (patch or {}).items() if key in known})
    return validate_event(merged)


def validate_email(value) -> str:
    email = sanitize_text(value).lower()
    if not _EMAIL_PATTERN.match(email):
        raise ValidationError('Enter a valid e-mail address.', field='email')
    return email

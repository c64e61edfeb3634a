"""
Text, date, time and number normalizers shared by every layer.

All functions are pure. Free text goes through sanitize_text() before it is
stored or exported; dates are kept in the canonical DD/MM/YY form.
"""
import math
import re
import secrets
import string
import time
from datetime import date, datetime

_LINE_BREAKS = re.compile(r'[\r\n]+')
_DATE_JUNK = re.compile(r'[^0-9/.\-\s]')
_DATE_TRAILING = re.compile(r'[./\-\s]+$')
_DATE_SPLIT = re.compile(r'[/.\-\s]+')
_TIME_PATTERN = re.compile(r'^[0-9]{2}:[0-9]{2}$')
_NUMBER_PATTERN = re.compile(r'^[+-]?([0-9]+\.?[0-9]*|\.[0-9]+)([eE][+-]?[0-9]+)?$')
_BASE36 = string.digits + string.ascii_lowercase

EMPTY_LABEL = '—'


def sanitize_text(value) -> str:
    """Collapse line breaks to a single space and trim. None becomes ''."""
    if value is None:
        return ''
    return _LINE_BREAKS.sub(' ', str(value)).strip()


def normalize_identifier(value) -> str:
    """Normalize a player identifier: uppercase, no whitespace at all."""
    return re.sub(r'\s+', '', sanitize_text(value).upper())


def parse_date(value) -> tuple:
    """Parse a loosely written day/month/year date.

    Accepts any of '/', '.', '-' or spaces as separators, a trailing
    separator, and one, two or four digit years.

    Returns:
        (True, 'DD/MM/YY') on success, (False, None) otherwise.
    """
    raw = sanitize_text(value)
    if not raw:
        return False, None

    cleaned = _DATE_JUNK.sub('', raw)
    cleaned = re.sub(r'\s+', ' ', cleaned).strip()
    cleaned = _DATE_TRAILING.sub('', cleaned)
    parts = [p for p in _DATE_SPLIT.split(cleaned) if p]
    if len(parts) != 3:
        return False, None

    day_text, month_text, year_text = parts
    try:
        dd = int(day_text)
        mm = int(month_text)
        yy = int(year_text)
    except ValueError:
        return False, None

    if mm < 1 or mm > 12 or dd < 1 or dd > 31:
        return False, None

    if len(year_text) == 4:
        yy = yy % 100
    elif len(year_text) not in (1, 2):
        return False, None

    # date() rejects impossible days such as 31/02 or 29/02 outside leap years
    try:
        parsed = date(2000 + yy, mm, dd)
    except ValueError:
        return False, None
    if (parsed.year, parsed.month, parsed.day) != (2000 + yy, mm, dd):
        return False, None

    return True, f'{dd:02d}/{mm:02d}/{yy:02d}'


def normalize_date_input(value) -> str:
    """Canonical DD/MM/YY form of a date, or '' when it does not parse."""
    ok, normalized = parse_date(value)
    return normalized if ok else ''


def is_valid_time(value) -> bool:
    """True for a 24-hour HH:MM time between 00:00 and 23:59."""
    text = sanitize_text(value)
    if not _TIME_PATTERN.match(text):
        return False
    hours, minutes = (int(part) for part in text.split(':'))
    return 0 <= hours <= 23 and 0 <= minutes <= 59


def as_number(value) -> float:
    """Convert to a float, NaN when the value is missing or not numeric."""
    if value is None or isinstance(value, bool):
        return math.nan
    if isinstance(value, (int, float)):
        return float(value)
    text = str(value).strip()
    if not text or not _NUMBER_PATTERN.match(text):
        return math.nan
    return float(text)


def as_integer(value):
    """Truncate a numeric value toward zero.

    Returns an int, or NaN when the input is empty, not a number or not finite.
    """
    number = as_number(value)
    if not math.isfinite(number):
        return math.nan
    return math.trunc(number)


def is_positive_integer(value) -> bool:
    return isinstance(value, int) and value > 0


def compact_number(number: float):
    """Return an int for integral floats so stored amounts read naturally."""
    if math.isfinite(number) and number == int(number):
        return int(number)
    return number


def format_money_eur(value) -> str:
    """Format an amount the way hr-HR renders EUR, e.g. '1.234,50 €'."""
    number = as_number(value)
    if math.isnan(number):
        return '' if value is None else str(value)
    grouped = f'{abs(number):,.2f}'
    whole, cents = grouped.split('.')
    sign = '-' if number < 0 else ''
    return f"{sign}{whole.replace(',', '.')},{cents} €"


def format_date_label(value) -> str:
    return value if value else EMPTY_LABEL


def format_time_label(value) -> str:
    return value if value else EMPTY_LABEL


def format_timestamp(value) -> str:
    """Render an ISO timestamp as 'D. M. YYYY. HH:MM:SS'."""
    if not value:
        return EMPTY_LABEL
    try:
        ts = datetime.fromisoformat(str(value))
    except ValueError:
        return EMPTY_LABEL
    return f'{ts.day}. {ts.month}. {ts.year}. {ts:%H:%M:%S}'


def _to_base36(number: int) -> str:
    if number == 0:
        return '0'
    digits = []
    while number:
        number, remainder = divmod(number, 36)
        digits.append(_BASE36[remainder])
    return ''.join(reversed(digits))


def new_id(prefix: str = 'id') -> str:
    """Generate an opaque id such as 'evt_k3j9x0qa_lx2m4c1z'."""
    random_part = ''.join(secrets.choice(_BASE36) for _ in range(8))
    return f'{prefix}_{random_part}_{_to_base36(int(time.time() * 1000))}'


def now_iso() -> str:
    return datetime.now().isoformat()

"""
Plain-text exports of participant and newsletter lists.
"""
import re

from core.text import format_date_label, sanitize_text

SUBSCRIBERS_FILENAME = 'newsletter_subscribers.txt'


def _lines_to_text(lines: list) -> str:
    return '\n'.join(lines) + ('\n' if lines else '')


def registrations_text(event, registrations: list) -> str:
    """Header 'title | date | location' then one 'first-last-NEURONID' per line."""
    header = f'{sanitize_text(event.title)} | {format_date_label(event.date)} | {sanitize_text(event.location)}\n'
    lines = [
        f'{sanitize_text(r.first_name)}-{sanitize_text(r.last_name)}-{sanitize_text(r.neuron_id)}'
        for r in registrations
    ]
    return header + _lines_to_text(lines)


def registrations_filename(event) -> str:
    base = re.sub(r'[^a-z0-9\- _]+', '_', sanitize_text(event.title), flags=re.IGNORECASE)
    return f'{base or "turnir"}_prijave.txt'


def subscribers_text(emails: list) -> str:
    return _lines_to_text([e for e in emails if e])

"""
One-time migration of stored event data to the current schema.

Version 1 files are a bare list of events that may use older field names.
Version 2 wraps the list as {'schema_version': 2, 'events': [...]} with
canonical names only. Business code never sees the old names.
"""
SCHEMA_VERSION = 2

# Canonical name -> older names, in order of preference
LEGACY_EVENT_FIELDS = {
    'preregFee': ('preRegistrationFee', 'fee', 'price'),
    'playerCap': ('cap',),
    'swissRounds': ('swiss',),
    'topCut': ('topcut',),
    'notes': ('otherNotes',),
    'regStartTime': ('registrationStartTime',),
    'tournamentStartTime': ('startTime',),
    'preregStartDate': ('preRegStartDate',),
    'preregEndDate': ('preRegEndDate', 'preregCancelEndDate'),
}


def migrate_event(record: dict) -> dict:
    """Map legacy keys onto canonical ones. A canonical key already present wins."""
    migrated = dict(record)
    for canonical, legacy_names in LEGACY_EVENT_FIELDS.items():
        for legacy in legacy_names:
            if legacy not in migrated:
                continue
            value = migrated.pop(legacy)
            if canonical not in migrated:
                migrated[canonical] = value
    return migrated


def schema_version(document) -> int:
    """Stored version number. Anything missing or not an integer counts as 1."""
    if not isinstance(document, dict):
        return 1
    try:
        return int(document.get('schema_version') or 1)
    except (TypeError, ValueError):
        return 1


def migrate_events_document(document) -> tuple:
    """Bring a stored events document up to SCHEMA_VERSION.

    Returns:
        (document, changed) where changed tells the caller to write it back.
    """
    if document is None:
        return {'schema_version': SCHEMA_VERSION, 'events': []}, False

    version = schema_version(document)
    if version >= SCHEMA_VERSION:
        return document, False

    if isinstance(document, dict):
        events = document.get('events') or []
    else:
        events = document
    events = [migrate_event(e) for e in events if isinstance(e, dict)]
    return {'schema_version': SCHEMA_VERSION, 'events': events}, True

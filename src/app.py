"""
Flask web application for tournament registration.

Serves the action-tagged JSON API (POST /api) on top of the file store, plus
admin login, exports and image upload for the browser client.
"""
import os
import hmac
import logging
from datetime import timedelta
from flask import Flask, request, jsonify, session, Response
from core.errors import RegistrationError, NotRegistered, ValidationError
from core.images import MAX_IMAGE_SIZE, file_to_data_url
from core.service import RegistrationService
from core.session import AdminSession
from core.text import format_money_eur, format_timestamp, sanitize_text
from storage.local import LocalEventStore

app = Flask(__name__)


def _get_or_create_secret_key() -> bytes:
    """Get SECRET_KEY from env, or generate and persist to file."""
    env_key = os.environ.get('SECRET_KEY')
    if env_key:
        return env_key.encode() if isinstance(env_key, str) else env_key
    key_file = os.path.join(DATA_DIR, '.secret_key')
    if os.path.exists(key_file):
        with open(key_file, 'rb') as f:
            return f.read()
    key = os.urandom(24)
    os.makedirs(os.path.dirname(key_file), exist_ok=True)
    with open(key_file, 'wb') as f:
        f.write(key)
    return key


BASE_DIR = os.path.dirname(os.path.dirname(__file__))
DATA_DIR = os.environ.get('REGISTRATION_DATA_DIR', os.path.join(BASE_DIR, 'data'))

ADMIN_USERNAME = os.environ.get('ADMIN_USERNAME', 'admin')
ADMIN_PASSWORD = os.environ.get('ADMIN_PASSWORD', 'turnir123')

app.secret_key = _get_or_create_secret_key()
app.config['PERMANENT_SESSION_LIFETIME'] = timedelta(days=30)
# Base64 inflates the 3 MB image limit by a third; leave room for the other fields
app.config['MAX_CONTENT_LENGTH'] = MAX_IMAGE_SIZE * 2

if not app.debug:
    app.logger.setLevel(logging.INFO)


def _bearer_is_admin() -> bool:
    """True when the request carries the configured ADMIN_API_KEY."""
    expected_key = os.environ.get('ADMIN_API_KEY')
    if not expected_key:
        return False
    auth_header = request.headers.get('Authorization', '')
    if not auth_header.startswith('Bearer '):
        return False
    provided_key = auth_header[7:]  # Strip "Bearer "
    return hmac.compare_digest(expected_key, provided_key)


def _admin_session() -> AdminSession:
    state = {'is_admin': True} if _bearer_is_admin() else session
    return AdminSession(state, ADMIN_USERNAME, ADMIN_PASSWORD)


def _get_service() -> RegistrationService:
    return RegistrationService(LocalEventStore(DATA_DIR), _admin_session())


def _ok(data=None):
    return jsonify({'ok': True, 'data': data})


@app.errorhandler(RegistrationError)
def handle_registration_error(error):
    app.logger.warning(f'{request.method} {request.path} rejected: {error.code}: {error.message}')
    body = {'ok': False, 'error': error.message, 'code': error.code}
    if isinstance(error, ValidationError) and error.field:
        body['field'] = error.field
    return jsonify(body), error.status


@app.errorhandler(413)
def handle_too_large(error):
    return jsonify({'ok': False, 'error': 'Request is too large.', 'code': 'image_too_large'}), 413


# ---------------------------------------------------------------------------
# Action API
# ---------------------------------------------------------------------------

def _event_row(event, count: int) -> dict:
    row = event.to_dict()
    row['registrationCount'] = count
    row['capacityText'] = event.capacity_text(count)
    row['capacityReached'] = event.capacity_reached(count)
    row['preregFeeLabel'] = format_money_eur(event.prereg_fee)
    row['nonRegFeeLabel'] = format_money_eur(event.non_reg_fee)
    return row


def _action_list_events(service, params):
    return [_event_row(e, len(e.registrations)) for e in service.list_events()]


def _action_sub_count(service, params):
    return service.subscriber_count()


def _action_list_registrations(service, params):
    rows = [r.to_dict() for r in service.list_registrations(params.get('eventId'))]
    if service.session.is_admin:
        return rows
    # Visitors see how many signed up, not who
    return [{'id': row['id'], 'createdAt': row['createdAt']} for row in rows]


def _action_create_event(service, params):
    draft = params.get('event') or {}
    event_id = sanitize_text(draft.get('id')) or None
    return service.create_event(draft, event_id=event_id).to_dict()


def _action_update_event(service, params):
    return service.update_event(params.get('eventId'), params.get('patch') or {}).to_dict()


def _action_delete_event(service, params):
    service.delete_event(params.get('eventId'))
    return True


def _action_register(service, params):
    registration = params.get('registration') or {}
    created = service.register(params.get('eventId'),
                               registration.get('firstName'),
                               registration.get('lastName'),
                               registration.get('neuronId'))
    return created.to_dict()


def _action_unregister(service, params):
    try:
        return service.unregister(params.get('eventId'), params.get('neuronId'))
    except NotRegistered:
        return False


def _action_subscribe(service, params):
    return service.subscribe(params.get('email'))


def _action_list_subscribers(service, params):
    return [{'email': email} for email in service.list_subscribers()]


ACTIONS = {
    'list_events': _action_list_events,
    'sub_count': _action_sub_count,
    'list_registrations': _action_list_registrations,
    'create_event': _action_create_event,
    'update_event': _action_update_event,
    'delete_event': _action_delete_event,
    'register': _action_register,
    'unregister': _action_unregister,
    'subscribe': _action_subscribe,
    'list_subscribers': _action_list_subscribers,
}


@app.route('/api', methods=['POST'])
def api_action():
    """Dispatch an action-tagged request body: {action, ...params}."""
    # Browser clients post JSON as text/plain to avoid a CORS preflight
    params = request.get_json(force=True, silent=True)
    if not isinstance(params, dict):
        return jsonify({'ok': False, 'error': 'Request body must be a JSON object.'}), 400

    action = params.get('action')
    handler = ACTIONS.get(action)
    if handler is None:
        return jsonify({'ok': False, 'error': f'Unknown action: {action}'}), 400

    data = handler(_get_service(), params)
    if action not in ('list_events', 'sub_count', 'list_registrations', 'list_subscribers'):
        app.logger.info(f'Action {action} completed')
    return _ok(data)


# ---------------------------------------------------------------------------
# Pages data
# ---------------------------------------------------------------------------

@app.route('/')
def index():
    """Home page data: active events and the newsletter count."""
    service = _get_service()
    return _ok({
        'events': _action_list_events(service, {}),
        'subscriberCount': service.subscriber_count(),
        'isAdmin': service.session.is_admin,
    })


@app.route('/events/<event_id>')
def event_page(event_id):
    """Event details. Registrant list is included for admins only."""
    service = _get_service()
    detail = service.event_detail(event_id)
    data = detail.to_dict(include_registrations=service.session.is_admin)
    if 'registrations' in data:
        for row in data['registrations']:
            row['createdAtLabel'] = format_timestamp(row.get('createdAt'))
    return _ok(data)


# ---------------------------------------------------------------------------
# Admin
# ---------------------------------------------------------------------------

@app.route('/login', methods=['POST'])
def login():
    data = request.get_json(silent=True) or request.form
    admin = _admin_session()
    if admin.login(data.get('username', ''), data.get('password', '')):
        session.permanent = True
        app.logger.info('Admin logged in')
        return _ok({'isAdmin': True})
    app.logger.warning(f'Failed admin login from {request.remote_addr}')
    return jsonify({'ok': False, 'error': 'Wrong username or password.', 'code': 'admin_required'}), 401


@app.route('/logout', methods=['POST'])
def logout():
    _admin_session().logout()
    return _ok({'isAdmin': False})


@app.route('/api/upload-image', methods=['POST'])
def api_upload_image():
    """Turn an uploaded image into the data URL stored on an event."""
    file = request.files.get('image')
    if not file or not file.filename:
        return jsonify({'ok': False, 'error': 'No file provided', 'code': 'validation_error'}), 400
    return _ok(file_to_data_url(file.read(), file.mimetype))


def _text_download(filename: str, content: str) -> Response:
    return Response(
        content,
        mimetype='text/plain; charset=utf-8',
        headers={'Content-Disposition': f'attachment; filename="{filename}"'},
    )


@app.route('/api/events/<event_id>/export')
def api_export_registrations(event_id):
    """Download the participant list of an event as text."""
    filename, content = _get_service().export_registrations(event_id)
    return _text_download(filename, content)


@app.route('/api/subscribers/export')
def api_export_subscribers():
    """Download newsletter subscribers, one address per line."""
    filename, content = _get_service().export_subscribers()
    return _text_download(filename, content)


if __name__ == '__main__':
    app.run(debug=True, port=5000)

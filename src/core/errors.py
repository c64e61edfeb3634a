"""
Error kinds raised by the registration core and the storage layers.

Every error is recoverable: callers report the message and return to the
state they were in before the operation.
"""


class RegistrationError(Exception):
    """Base class. `code` is the machine-readable kind used on the wire."""
    code = 'error'
    status = 400
    default_message = 'Operation failed.'

    def __init__(self, message: str = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(RegistrationError):
    """A required field is missing or malformed."""
    code = 'validation_error'
    default_message = 'Invalid input.'

    def __init__(self, message: str = None, field: str = None):
        super().__init__(message)
        self.field = field


class ImageTooLarge(ValidationError):
    code = 'image_too_large'
    default_message = 'Image is too large (max 3MB).'

    def __init__(self, message: str = None):
        super().__init__(message, field='imageDataUrl')


class UnsupportedImageType(ValidationError):
    code = 'unsupported_image_type'
    default_message = 'Choose an image file (image/*).'

    def __init__(self, message: str = None):
        super().__init__(message, field='imageDataUrl')


class CapacityReached(RegistrationError):
    code = 'capacity_reached'
    status = 409
    default_message = 'Registrations are closed (player cap reached).'


class DuplicateRegistrant(RegistrationError):
    code = 'duplicate_registrant'
    status = 409
    default_message = 'You are already registered with that Neuron ID.'


class NotRegistered(RegistrationError):
    code = 'not_registered'
    status = 404
    default_message = 'Check that your Neuron ID is correct, you are not registered.'


class NotFound(RegistrationError):
    code = 'not_found'
    status = 404
    default_message = 'Event not found.'


class AdminRequired(RegistrationError):
    code = 'admin_required'
    status = 403
    default_message = 'Admin login required.'


class TransportError(RegistrationError):
    """A storage or network call failed or returned a non-ok answer."""
    code = 'transport_error'
    status = 502
    default_message = 'Storage request failed.'


ERRORS_BY_CODE = {
    cls.code: cls for cls in (
        ValidationError, ImageTooLarge, UnsupportedImageType, CapacityReached,
        DuplicateRegistrant, NotRegistered, NotFound, AdminRequired,
    )
}

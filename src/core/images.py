"""
Event image handling. Images are stored inline as base64 data URLs.
"""
import base64
import binascii
import re

from core.errors import ImageTooLarge, UnsupportedImageType, ValidationError

MAX_IMAGE_SIZE = 3 * 1024 * 1024  # 3 MB source file

_DATA_URL = re.compile(r'^data:(?P<mime>[^;,]+)(?P<params>(;[^;,]+)*);base64,(?P<payload>.*)$', re.DOTALL)


def check_image(mimetype: str, size: int):
    """Raise if an uploaded file is not an image or is over the size limit."""
    if not mimetype or not mimetype.lower().startswith('image/'):
        raise UnsupportedImageType()
    if size > MAX_IMAGE_SIZE:
        raise ImageTooLarge()


def file_to_data_url(content: bytes, mimetype: str) -> str:
    check_image(mimetype, len(content))
    encoded = base64.b64encode(content).decode('ascii')
    return f'data:{mimetype.lower()};base64,{encoded}'


def validate_image_data_url(data_url: str) -> str:
    """Check a stored data URL holds an image within the size limit."""
    match = _DATA_URL.match(data_url or '')
    if not match:
        raise ValidationError('Image must be an embedded base64 data URL.', field='imageDataUrl')
    try:
        content = base64.b64decode(match.group('payload'), validate=True)
    except (binascii.Error, ValueError):
        raise ValidationError('Image data is not valid base64.', field='imageDataUrl')
    check_image(match.group('mime'), len(content))
    return data_url

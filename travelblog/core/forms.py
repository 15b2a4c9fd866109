"""
Request Normalization
=====================

Bodies arrive as JSON or multipart forms, with booleans as real booleans or
"true"/"false" strings and lists as arrays or comma-joined strings. These
helpers flatten that into plain Python values at the HTTP boundary.
"""

from flask import request

from .errors import ValidationError

_TRUE_VALUES = {'true', '1', 'yes', 'on'}
_FALSE_VALUES = {'false', '0', 'no', 'off', ''}


def parse_bool(value, default=False):
    """Interpret a boolean-like input; unknown values fall back to default."""
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return bool(value)
    text = str(value).strip().lower()
    if text in _TRUE_VALUES:
        return True
    if text in _FALSE_VALUES:
        return False
    return default


def parse_list(value):
    """Accept a list or a comma-joined string; return stripped non-empty strings."""
    if value is None:
        return []
    if isinstance(value, str):
        items = value.split(',')
    elif isinstance(value, (list, tuple)):
        items = []
        for item in value:
            # multipart forms may repeat a key or send "a,b" in one field
            items.extend(str(item).split(',') if isinstance(item, str) else [str(item)])
    else:
        items = [str(value)]
    return [item.strip() for item in items if item and item.strip()]


def clean_str(value, field=None, strip=True):
    """Text field from a request body; anything but a string is a 400."""
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValidationError('Validation failed', errors={field or 'body': 'Must be a string'})
    return value.strip() if strip else value


def normalize_email(value, field='email'):
    return (clean_str(value, field) or '').lower()


def request_data():
    """Merge the request body into a dict, whatever its encoding."""
    payload = request.get_json(silent=True)
    if isinstance(payload, dict):
        return dict(payload)

    data = {}
    for key in request.form.keys():
        values = request.form.getlist(key)
        if key.endswith('[]'):
            data[key[:-2]] = values
        else:
            data[key] = values if len(values) > 1 else values[0]
    return data

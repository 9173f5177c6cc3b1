"""
Scrub request data before it is written to the helpdesk logs.

Credentials (login and user-admin passwords, CSRF tokens, SMTP secrets) are
replaced outright. Long free text from tickets, disposals and inspections is
clipped so a pasted stack trace or e-mail thread does not flood helpdesk.log.
"""

from typing import Dict, Any
from werkzeug.datastructures import MultiDict


REDACTED = '[REDACTED]'

# Exact field names posted by the login, user and settings forms
SENSITIVE_FIELDS = {
    'password',
    'password_confirm',
    'current_password',
    'new_password',
    'admin_password',
    'smtp_password',
    'secret_key',
    'csrf_token',
    'token',
    'api_key',
}

# Any key ending like this is treated as a credential too (e.g. SMTP_PASSWORD)
SENSITIVE_SUFFIXES = ('_password', '_secret', '_token', '_key')

# Free-text fields that are clipped, never redacted
FREE_TEXT_FIELDS = {
    'description',
    'reason',
    'resolution',
    'notes',
    'comment',
    'body',
    'message',
    'review_notes',
}

MAX_TEXT_LENGTH = 120


def is_sensitive(key: str) -> bool:
    key = str(key).lower()
    return key in SENSITIVE_FIELDS or key.endswith(SENSITIVE_SUFFIXES)


def clip_text(value: Any, limit: int = MAX_TEXT_LENGTH) -> Any:
    if not isinstance(value, str) or len(value) <= limit:
        return value
    return f"{value[:limit]}... ({len(value)} chars)"


def sanitize_dict(data: Dict[str, Any], redact_text: str = REDACTED) -> Dict[str, Any]:
    """
    Return a copy of ``data`` that is safe to log.

    Nested dictionaries (and dictionaries inside lists) are handled the same
    way, so notification payloads and recipient lists can be logged as-is.

    Example:
        >>> sanitize_dict({'username': 'agent1', 'password': 'secret123'})
        {'username': 'agent1', 'password': '[REDACTED]'}
    """
    if not data:
        return data

    sanitized = {}
    for key, value in data.items():
        if is_sensitive(key):
            sanitized[key] = redact_text
        elif isinstance(value, dict):
            sanitized[key] = sanitize_dict(value, redact_text)
        elif isinstance(value, list):
            sanitized[key] = [
                sanitize_dict(v, redact_text) if isinstance(v, dict) else v
                for v in value
            ]
        elif str(key).lower() in FREE_TEXT_FIELDS:
            sanitized[key] = clip_text(value)
        else:
            sanitized[key] = value

    return sanitized


def sanitize_form_data(form_data: MultiDict, redact_text: str = REDACTED) -> Dict[str, Any]:
    """
    Sanitize ``request.form``.

    Multi-select fields such as ``location_ids`` keep every value; single
    values are unwrapped so the log line reads like the submitted form.
    """
    flat = {
        key: values[0] if len(values) == 1 else values
        for key, values in form_data.to_dict(flat=False).items()
    }
    return sanitize_dict(flat, redact_text)


def sanitize_exception_message(exception: Exception) -> str:
    """SMTP and DB errors can echo credentials back; hide those messages."""
    message = str(exception)
    lowered = message.lower()

    if any(field in lowered for field in SENSITIVE_FIELDS) or 'auth' in lowered:
        return f"{type(exception).__name__}: [Message contains sensitive data]"

    return message

"""
Log scrubbing for helpdesk forms.
Credentials never reach the log files and long free text is clipped.
"""

import smtplib

import pytest
from werkzeug.datastructures import ImmutableMultiDict

from helpdesk.utils.logging_sanitizer import (
    MAX_TEXT_LENGTH, REDACTED, SENSITIVE_FIELDS, clip_text, is_sensitive, sanitize_dict,
    sanitize_exception_message, sanitize_form_data,
)
from helpdesk.buisness.notifications import mailer


def test_login_form_password_redacted():
    result = sanitize_dict({'username': 'agent1', 'password': 'secret123', 'email': 'agent1@helpdesk.local'})
    assert result == {'username': 'agent1', 'password': REDACTED, 'email': 'agent1@helpdesk.local'}


def test_credential_suffixes_redacted():
    result = sanitize_dict({
        'SMTP_HOST': 'smtp.example.com',
        'SMTP_PASSWORD': 'hunter2',
        'session_token': 'abc',
        'ticket_number': 42,
    })
    assert result == {
        'SMTP_HOST': 'smtp.example.com',
        'SMTP_PASSWORD': REDACTED,
        'session_token': REDACTED,
        'ticket_number': 42,
    }


@pytest.mark.parametrize('field', sorted(SENSITIVE_FIELDS))
def test_every_listed_field_is_sensitive(field):
    assert is_sensitive(field)
    assert is_sensitive(field.upper())


def test_long_description_is_clipped():
    trace = 'Traceback (most recent call last): ' * 20
    result = sanitize_dict({'title': 'Printer offline', 'description': trace})
    assert result['title'] == 'Printer offline'
    assert result['description'].startswith(trace[:MAX_TEXT_LENGTH])
    assert result['description'].endswith(f'... ({len(trace)} chars)')


def test_short_reason_kept_and_non_text_untouched():
    assert clip_text('Screen cracked beyond repair') == 'Screen cracked beyond repair'
    assert clip_text(None) is None
    assert clip_text(7) == 7


def test_nested_payloads():
    result = sanitize_dict({
        'actor': {'username': 'admin', 'password': 'x'},
        'recipients': [{'email': 'a@helpdesk.local', 'token': 'xyz'}, 'plain'],
    })
    assert result['actor'] == {'username': 'admin', 'password': REDACTED}
    assert result['recipients'] == [{'email': 'a@helpdesk.local', 'token': REDACTED}, 'plain']


def test_empty_input():
    assert sanitize_dict({}) == {}
    assert sanitize_dict(None) is None


def test_user_form_keeps_all_locations():
    form = ImmutableMultiDict([
        ('username', 'agent9'),
        ('password', 'secret123'),
        ('location_ids', '1'),
        ('location_ids', '3'),
        ('role', 'agent_l1'),
    ])
    assert sanitize_form_data(form) == {
        'username': 'agent9',
        'password': REDACTED,
        'location_ids': ['1', '3'],
        'role': 'agent_l1',
    }


def test_exception_messages():
    assert sanitize_exception_message(ValueError("bad ticket number")) == "bad ticket number"
    assert sanitize_exception_message(
        smtplib.SMTPAuthenticationError(535, b'5.7.8 Username and Password not accepted')
    ) == "SMTPAuthenticationError: [Message contains sensitive data]"


def test_smtp_auth_failure_not_echoed(app, db, monkeypatch):
    class RejectingSMTP:
        def __init__(self, host, port, timeout=None):
            pass

        def __enter__(self):
            return self

        def __exit__(self, *exc_info):
            return False

        def login(self, user, password):
            raise smtplib.SMTPAuthenticationError(535, b'Password for relay-user rejected')

    monkeypatch.setitem(app.config, 'SMTP_HOST', 'smtp.helpdesk.test')
    monkeypatch.setitem(app.config, 'SMTP_USER', 'relay-user')
    monkeypatch.setitem(app.config, 'SMTP_PASSWORD', 'relay-pass')
    monkeypatch.setitem(app.config, 'SMTP_ENCRYPTION', 'none')
    monkeypatch.setattr(mailer.smtplib, 'SMTP', RejectingSMTP)

    with pytest.raises(mailer.MailDeliveryError) as excinfo:
        mailer.send_mail('a@helpdesk.test', 'Hi', '<p>Hi</p>')
    assert 'relay-user' not in str(excinfo.value)

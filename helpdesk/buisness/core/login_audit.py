"""
Login audit trail.

Every sign-in attempt is written to ``login_audits``. Repeats of the same
attempt (IP, identifier and outcome) within DUPLICATE_WINDOW are skipped so
a brute-force run does not flood the table. A failed attempt can also alert
LOGIN_ALERT_EMAIL, at most once per identifier and IP every ALERT_WINDOW.
"""

import re
from datetime import timedelta
from typing import Mapping, Optional

from flask import current_app

from helpdesk import db
from helpdesk.data.core.user_info.login_audit import LoginAudit
from helpdesk.data.core.user_info.user import User
from helpdesk.buisness.core.errors import PermissionDeniedError
from helpdesk.buisness.core import permissions
from helpdesk.buisness.notifications.notifier import send_templated_email
from helpdesk.logger import get_logger
from helpdesk.utils.timezones import utcnow

logger = get_logger("helpdesk.buisness.core.login_audit")

DUPLICATE_WINDOW = timedelta(seconds=30)
ALERT_WINDOW = timedelta(minutes=10)

IDENTIFIER_LENGTH = 320
TEXT_LENGTH = 500

_CONTROL_CHARS = re.compile(r'[\x00-\x1f\x7f]')

# Proxy headers first, the socket address last
IP_HEADERS = ('X-Forwarded-For', 'CF-Connecting-IP', 'X-Real-IP', 'X-Client-IP')


def clean_text(value, max_length: int) -> Optional[str]:
    if not isinstance(value, str):
        return None
    cleaned = _CONTROL_CHARS.sub('', value.strip())[:max_length]
    return cleaned or None


def request_ip(headers: Mapping, remote_addr: Optional[str] = None) -> Optional[str]:
    for header in IP_HEADERS:
        value = headers.get(header)
        if value:
            # X-Forwarded-For: client, proxy1, proxy2
            return value.split(',')[0].strip() or None
    return remote_addr


def _recent(ip: str, identifier: str, success: bool, since) -> bool:
    return db.session.query(
        LoginAudit.query.filter(
            LoginAudit.ip == ip,
            LoginAudit.identifier == identifier,
            LoginAudit.success.is_(success),
            LoginAudit.created_at >= since,
        ).exists()
    ).scalar()


def record_login_attempt(identifier: str, success: bool, user: Optional[User] = None,
                         error: str = None, ip: str = None, user_agent: str = None,
                         now=None) -> Optional[LoginAudit]:
    """
    Write one audit row and commit.

    Returns the row, or None when the attempt repeats one from the last
    DUPLICATE_WINDOW.
    """
    now = now or utcnow()
    identifier = clean_text(identifier, IDENTIFIER_LENGTH)
    user_agent = clean_text(user_agent, TEXT_LENGTH)
    error = None if success else clean_text(error, TEXT_LENGTH)

    send_alert = not success and identifier is not None
    if ip and identifier:
        if _recent(ip, identifier, success, now - DUPLICATE_WINDOW):
            logger.debug(f"Repeated login attempt for {identifier} from {ip} not recorded")
            return None
        if send_alert and _recent(ip, identifier, False, now - ALERT_WINDOW):
            send_alert = False

    audit = LoginAudit(
        user_id=user.id if user is not None else None,
        identifier=identifier,
        ip=ip,
        user_agent=user_agent,
        event=LoginAudit.LOGIN,
        success=success,
        error=error,
        created_at=now,
    )
    db.session.add(audit)
    db.session.commit()

    if send_alert:
        _alert_failed_login(audit)
    return audit


def _alert_failed_login(audit: LoginAudit) -> bool:
    recipient = current_app.config.get('LOGIN_ALERT_EMAIL')
    if not recipient:
        return False
    return send_templated_email(
        recipient, f"⚠️ Failed sign-in attempt ({audit.identifier})", 'email/login_failed.html',
        audit=audit,
    )


def clear_login_history(actor: User) -> int:
    """Delete every audit row; returns how many were removed."""
    if not permissions.has_permission(actor, 'clear_login_audits'):
        raise PermissionDeniedError("Only administrators can clear the login history")

    deleted = LoginAudit.query.delete(synchronize_session=False)
    db.session.commit()
    logger.warning(f"Login history cleared by {actor.username} ({deleted} row(s))")
    return deleted

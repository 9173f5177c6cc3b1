"""
In-app notifications and the email fan-out shared by every workflow.

Notification delivery never fails the business operation: each recipient is
attempted independently and failures are logged.
"""

from typing import Iterable, List, Optional

from flask import current_app, render_template

from helpdesk import db
from helpdesk.data.notifications.notification import Notification
from helpdesk.buisness.notifications.mailer import get_smtp_config, send_mail, MailDeliveryError
from helpdesk.logger import get_logger
from helpdesk.utils.timezones import utcnow

logger = get_logger("helpdesk.notifications")


def app_url(path: str = '') -> str:
    base = (current_app.config.get('APP_URL') or '').rstrip('/')
    if base and not base.startswith(('http://', 'https://')):
        base = f"https://{base}"
    return f"{base}{path}"


def create_notification(user_id: int, type: str, title: str, message: str = None,
                        link: str = None, actor_id: int = None) -> Notification:
    """Add an in-app notification to the session (caller commits)"""
    notification = Notification(
        user_id=user_id,
        type=type if type in Notification.TYPES else Notification.GENERIC,
        title=title[:255],
        message=message,
        link=link,
        actor_id=actor_id,
    )
    db.session.add(notification)
    return notification


def notify_users(user_ids: Iterable[int], type: str, title: str, message: str = None,
                 link: str = None, actor_id: int = None, commit: bool = True) -> int:
    """Create one notification per distinct user; returns how many were created."""
    created = 0
    for user_id in dict.fromkeys(uid for uid in user_ids if uid):
        create_notification(user_id, type, title, message, link, actor_id)
        created += 1
    if commit and created:
        db.session.commit()
    return created


def send_templated_email(to: str, subject: str, template: str, **context) -> bool:
    """
    Render an email template and send it.

    Returns False (and logs) instead of raising, so callers can fan out.
    """
    if get_smtp_config() is None:
        logger.debug(f"SMTP not configured, skipping email '{subject}' to {to}")
        return False
    try:
        html = render_template(template, app_url=app_url(), **context)
        send_mail(to, subject, html)
        return True
    except MailDeliveryError as e:
        logger.warning(f"Email '{subject}' to {to} not delivered: {e}")
        return False


def email_many(addresses: Iterable[str], subject: str, template: str, **context) -> List[str]:
    """Send the same template to each address separately; returns delivered addresses."""
    delivered = []
    for address in dict.fromkeys(a for a in addresses if a):
        if send_templated_email(address, subject, template, **context):
            delivered.append(address)
    return delivered


def unread_count(user_id: int) -> int:
    return Notification.query.filter_by(user_id=user_id, is_read=False).count()


def list_for_user(user_id: int, limit: int = 50, unread_only: bool = False) -> List[Notification]:
    query = Notification.query.filter_by(user_id=user_id)
    if unread_only:
        query = query.filter_by(is_read=False)
    return query.order_by(Notification.created_at.desc(), Notification.id.desc()).limit(limit).all()


def mark_read(user_id: int, notification_id: int) -> Optional[Notification]:
    notification = Notification.query.filter_by(id=notification_id, user_id=user_id).first()
    if notification is None:
        return None
    if not notification.is_read:
        notification.is_read = True
        notification.read_at = utcnow()
        db.session.commit()
    return notification


def mark_all_read(user_id: int) -> int:
    now = utcnow()
    updated = Notification.query.filter_by(user_id=user_id, is_read=False).update(
        {'is_read': True, 'read_at': now}, synchronize_session=False
    )
    db.session.commit()
    return updated

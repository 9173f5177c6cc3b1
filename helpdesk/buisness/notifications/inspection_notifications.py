"""
Critical inspection alerts.

Emails go to every active admin; when there are none the inspector who
completed the inspection receives the email instead. In-app notifications go
to admins only.
"""

from dataclasses import dataclass
from typing import List

from helpdesk.data.core.user_info.user import User
from helpdesk.data.notifications.notification import Notification
from helpdesk.buisness.core.permissions import ADMIN
from helpdesk.buisness.notifications.notifier import app_url, email_many, notify_users
from helpdesk.logger import get_logger

logger = get_logger("helpdesk.notifications.inspections")


@dataclass
class CriticalAlertResult:
    admins_notified: int = 0
    emails_sent: int = 0


def notify_critical_inspection(inspection, critical_items: List[dict], actor, threshold: int) -> CriticalAlertResult:
    admins = User.query.filter_by(role=ADMIN, is_active=True).order_by(User.id).all()

    email_recipients = [a.email for a in admins if a.email]
    if not email_recipients and actor.email:
        logger.warning(f"No admins found; critical alert for inspection {inspection.id} goes to {actor.username}")
        email_recipients = [actor.email]

    link = f"/inspections/{inspection.id}"
    property_code = inspection.property_code or (inspection.location.code if inspection.location else '')

    delivered = email_many(
        email_recipients,
        f"🚨 Critical inspection at {property_code}: {len(critical_items)} item(s) below {threshold}/10",
        'email/inspection_critical.html',
        inspection=inspection,
        critical_items=critical_items,
        threshold=threshold,
        inspection_url=app_url(link),
    )

    notified = notify_users(
        [a.id for a in admins],
        Notification.INSPECTION_CRITICAL,
        f"🚨 Critical inspection at {property_code}",
        f"{len(critical_items)} item(s) scored below {threshold}/10 in the "
        f"{inspection.department} inspection. Property: {inspection.property_name or property_code}",
        link=link,
        actor_id=actor.id,
    )

    logger.info(f"Inspection {inspection.id}: {len(delivered)} email(s), {notified} in-app alert(s)")
    return CriticalAlertResult(admins_notified=notified, emails_sent=len(delivered))

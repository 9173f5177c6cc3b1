"""
Disposal workflow notifications.

Requested: every recipient gets an email (admins the authorisation variant,
others the informational one); admins also get an in-app notification.
Approved: every recipient gets an email. Rejected: the requester does.
"""

from typing import List

from helpdesk.data.notifications.notification import Notification
from helpdesk.buisness.disposals.recipients import Recipient
from helpdesk.buisness.notifications.notifier import (
    app_url, notify_users, send_templated_email,
)
from helpdesk.logger import get_logger

logger = get_logger("helpdesk.notifications.disposals")

DISPOSALS_PATH = '/disposals'

FIELD_LABELS = {
    'location_id': 'Location',
    'status': 'Status',
    'assigned_to_id': 'Assigned to',
    'notes': 'Notes',
    None: 'Created',
}


def notify_disposal_requested(disposal, recipients: List[Recipient], actor,
                              tickets, history) -> int:
    """Returns how many emails were delivered."""
    asset = disposal.asset
    tag = asset.asset_tag

    notify_users(
        [r.user_id for r in recipients if r.is_admin],
        Notification.DISPOSAL_REQUESTED,
        f"⚠️ Disposal request: {tag}",
        f'{actor.display_name} requests disposal of asset {tag}. Reason: "{disposal.reason[:100]}"',
        link=DISPOSALS_PATH,
        actor_id=actor.id,
    )

    delivered = 0
    for recipient in recipients:
        if recipient.is_admin:
            subject = f"🚨 Authorisation required: disposal of {tag}"
        else:
            subject = f"ℹ️ Notice: disposal requested for {tag}"
        if send_templated_email(
            recipient.email, subject, 'email/disposal_requested.html',
            disposal=disposal,
            asset=asset,
            recipient=recipient,
            requester=actor,
            tickets=tickets,
            history=history,
            field_labels=FIELD_LABELS,
            review_url=app_url(DISPOSALS_PATH),
        ):
            delivered += 1

    logger.info(f"Disposal request {disposal.id}: {delivered}/{len(recipients)} email(s) delivered")
    return delivered


def notify_disposal_approved(disposal, recipients: List[Recipient], actor) -> int:
    tag = disposal.asset.asset_tag
    delivered = 0
    for recipient in recipients:
        if send_templated_email(
            recipient.email, f"✅ Disposal approved: {tag}", 'email/disposal_approved.html',
            disposal=disposal,
            asset=disposal.asset,
            recipient=recipient,
            reviewer=actor,
            asset_url=app_url(f"/assets/{disposal.asset_id}"),
        ):
            delivered += 1
    return delivered


def notify_disposal_rejected(disposal, actor) -> bool:
    requester = disposal.requested_by
    if requester is None or not requester.email:
        return False
    return send_templated_email(
        requester.email, f"❌ Disposal rejected: {disposal.asset.asset_tag}", 'email/disposal_rejected.html',
        disposal=disposal,
        asset=disposal.asset,
        recipient=requester,
        reviewer=actor,
        asset_url=app_url(f"/assets/{disposal.asset_id}"),
    )

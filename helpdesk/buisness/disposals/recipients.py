"""
Who hears about a disposal request.

All admins, supervisors linked to the asset's location, and the asset's
assigned user when that user is not the requester. De-duplicated by email,
first role wins (admin before supervisor before assigned user).
"""

from dataclasses import dataclass
from typing import List

from helpdesk.data.core.user_info.user import User, user_locations
from helpdesk.buisness.core.permissions import ADMIN, SUPERVISOR

RESPONSIBLE = 'responsable'


@dataclass(frozen=True)
class Recipient:
    user_id: int
    email: str
    name: str
    role: str

    @property
    def is_admin(self) -> bool:
        return self.role == ADMIN


def get_notification_recipients(asset, requester_id: int) -> List[Recipient]:
    recipients: List[Recipient] = []
    seen = set()

    def add(user: User, role: str):
        if user is None or not user.is_active or not user.email:
            return
        key = user.email.strip().lower()
        if key in seen:
            return
        seen.add(key)
        recipients.append(Recipient(user.id, user.email, user.display_name, role))

    for admin in User.query.filter_by(role=ADMIN).order_by(User.id).all():
        add(admin, ADMIN)

    if asset.location_id:
        supervisors = (
            User.query
            .join(user_locations, user_locations.c.user_id == User.id)
            .filter(User.role == SUPERVISOR, user_locations.c.location_id == asset.location_id)
            .order_by(User.id)
            .all()
        )
        for supervisor in supervisors:
            add(supervisor, SUPERVISOR)

    if asset.assigned_to_id and asset.assigned_to_id != requester_id:
        add(asset.assigned_to, RESPONSIBLE)

    return recipients

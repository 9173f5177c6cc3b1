"""
User Service
Presentation service for user, location and login audit administration lists.
"""

from typing import Dict, Optional

from flask_sqlalchemy.pagination import Pagination

from helpdesk import db
from helpdesk.data.core.location import Location
from helpdesk.data.core.user_info.login_audit import LoginAudit
from helpdesk.data.core.user_info.user import User, user_locations
from helpdesk.buisness.core import permissions


class UserService:
    """
    Service for user presentation data.

    Provides methods for:
    - Building filtered user queries
    - Paginating user lists
    """

    @staticmethod
    def build_filtered_query(role: Optional[str] = None, active: Optional[bool] = None,
                             location_id: Optional[int] = None):
        query = User.query.filter(User.is_system.is_(False))

        if role in permissions.ROLES:
            query = query.filter(User.role == role)
        if active is not None:
            query = query.filter(User.is_active == active)
        if location_id:
            query = query.join(user_locations).filter(user_locations.c.location_id == location_id)

        return query.order_by(User.username)

    @staticmethod
    def get_list_data(args, page: int = 1, per_page: int = 20) -> Pagination:
        active_param = args.get('active')
        active = None if not active_param else (active_param.lower() == 'true')
        location = (args.get('location') or '').strip()

        query = UserService.build_filtered_query(
            role=args.get('role'),
            active=active,
            location_id=int(location) if location.isdigit() else None,
        )
        return query.paginate(page=page, per_page=per_page, error_out=False)


class LocationService:
    """
    Service for location presentation data.
    """

    @staticmethod
    def build_filtered_query(active: Optional[bool] = None):
        query = Location.query
        if active is not None:
            query = query.filter(Location.is_active == active)
        return query.order_by(Location.name)

    @staticmethod
    def user_counts() -> Dict[int, int]:
        rows = (
            db.session.query(user_locations.c.location_id, db.func.count(user_locations.c.user_id))
            .group_by(user_locations.c.location_id)
            .all()
        )
        return dict(rows)


class LoginAuditService:
    """
    Service for the login audit trail page.
    """

    PER_PAGE = 25

    @staticmethod
    def get_list_data(page: int = 1, per_page: int = PER_PAGE) -> Pagination:
        query = LoginAudit.query.order_by(LoginAudit.created_at.desc(), LoginAudit.id.desc())
        return query.paginate(page=page, per_page=per_page, error_out=False)

"""
Location scoping for queries.

Admins see every location. Other users see only the locations linked to
them through user_locations; a user with no linked locations sees nothing.
"""

from typing import List, Optional
from sqlalchemy import false
from helpdesk.buisness.core.permissions import is_admin


def get_location_filter(user) -> Optional[List[int]]:
    """None means unrestricted; a list (possibly empty) restricts to those ids."""
    if user is None:
        return []
    if is_admin(user):
        return None
    return user.location_ids


def apply_location_filter(query, column, location_filter):
    if location_filter is None:
        return query
    if not location_filter:
        return query.filter(false())
    return query.filter(column.in_(location_filter))


def can_access_location(user, location_id) -> bool:
    location_filter = get_location_filter(user)
    if location_filter is None:
        return True
    return location_id in location_filter

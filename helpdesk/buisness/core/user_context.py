"""
User Context (Core)
Account administration: creating and editing users, linking them to
locations, enabling or disabling them and resetting passwords.
"""

import secrets
from dataclasses import dataclass
from typing import Iterable, List, Optional, Union

from helpdesk import db
from helpdesk.data.core.location import Location
from helpdesk.data.core.user_info.user import User
from helpdesk.buisness.core.errors import (
    ConflictError, NotFoundError, PermissionDeniedError, ValidationError,
)
from helpdesk.buisness.core import permissions
from helpdesk.buisness.notifications.notifier import app_url, send_templated_email
from helpdesk.logger import get_logger

logger = get_logger("helpdesk.buisness.core.user_context")

MIN_PASSWORD_LENGTH = 8
RESET_PASSWORD_BYTES = 9  # 12 url-safe characters


@dataclass(frozen=True)
class PasswordReset:
    password: Optional[str]
    emailed: bool


def _require_user_admin(actor: User) -> None:
    if not permissions.can_manage_users(actor):
        raise PermissionDeniedError("Only administrators can manage users")


def _active_admin_count() -> int:
    return User.query.filter_by(role=permissions.ADMIN, is_active=True, is_system=False).count()


def _load_locations(location_ids: Iterable) -> List[Location]:
    ids = {int(i) for i in location_ids if str(i).strip()}
    if not ids:
        return []
    locations = Location.query.filter(Location.id.in_(ids)).all()
    if len(locations) != len(ids):
        raise ValidationError("One or more selected locations do not exist")
    return locations


class UserContext:
    """
    Context manager for user administration.
    """

    def __init__(self, user: Union[User, int]):
        if isinstance(user, int):
            found = db.session.get(User, user)
            if found is None:
                raise NotFoundError(f"User {user} not found")
            user = found
        self._user = user

    @property
    def user(self) -> User:
        return self._user

    @property
    def user_id(self) -> int:
        return self._user.id

    @classmethod
    def create(cls, actor: User, username: str, email: str, password: str,
               role: str = permissions.REQUESTER, full_name: Optional[str] = None,
               department: Optional[str] = None, asset_category: str = 'IT',
               location_ids: Iterable = (), is_active: bool = True) -> 'UserContext':
        """
        Create a user account.

        Raises:
            PermissionDeniedError: actor cannot manage users
            ValidationError: missing fields, weak password or unknown role
            ConflictError: username or email already taken
        """
        _require_user_admin(actor)

        username = (username or '').strip()
        email = (email or '').strip().lower()
        if not username or not email:
            raise ValidationError("Username and email are required")
        if not password or len(password) < MIN_PASSWORD_LENGTH:
            raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters long")
        if role not in permissions.ROLES:
            raise ValidationError(f"Unknown role: {role}")
        if asset_category not in ('IT', 'MAINTENANCE'):
            raise ValidationError(f"Unknown asset category: {asset_category}")

        if User.query.filter_by(username=username).first():
            raise ConflictError("Username already exists")
        if User.query.filter(db.func.lower(User.email) == email).first():
            raise ConflictError("Email already exists")

        user = User(
            username=username,
            email=email,
            full_name=(full_name or '').strip() or None,
            role=role,
            department=(department or '').strip() or None,
            asset_category=asset_category,
            is_active=is_active,
        )
        user.set_password(password)
        user.locations = _load_locations(location_ids)
        db.session.add(user)
        db.session.commit()

        logger.info(f"User {username} ({role}) created by {actor.username}")
        return cls(user)

    def set_active(self, actor: User, is_active: bool) -> User:
        _require_user_admin(actor)
        if self._user.id == actor.id and not is_active:
            raise ValidationError("You cannot deactivate your own account")
        if self._user.is_system:
            raise ValidationError("System users cannot be modified")
        self._check_last_admin(self._user.role, is_active)

        self._user.is_active = is_active
        db.session.commit()
        logger.info(f"User {self._user.username} {'activated' if is_active else 'deactivated'} by {actor.username}")
        return self._user

    def toggle_active(self, actor: User) -> User:
        return self.set_active(actor, not self._user.is_active)

    def _check_last_admin(self, role: str, is_active: bool) -> None:
        user = self._user
        if user.role != permissions.ADMIN or not user.is_active:
            return
        if role == permissions.ADMIN and is_active:
            return
        if _active_admin_count() <= 1:
            raise ValidationError("The last active administrator must keep the admin role")

    def update(self, actor: User, email: str = None, full_name: str = None, role: str = None,
               department: str = None, asset_category: str = None,
               location_ids: Iterable = None, is_active: bool = None) -> User:
        """
        Edit an account. Arguments left as None are not changed.

        Raises:
            PermissionDeniedError: actor cannot manage users
            ValidationError: system account, unknown role or category,
                             or the last active admin losing the role
            ConflictError: email already taken
        """
        _require_user_admin(actor)
        user = self._user
        if user.is_system:
            raise ValidationError("System users cannot be modified")

        if role is not None and role not in permissions.ROLES:
            raise ValidationError(f"Unknown role: {role}")
        if asset_category is not None and asset_category not in ('IT', 'MAINTENANCE'):
            raise ValidationError(f"Unknown asset category: {asset_category}")
        if is_active is False and user.id == actor.id:
            raise ValidationError("You cannot deactivate your own account")
        self._check_last_admin(role if role is not None else user.role,
                               is_active if is_active is not None else user.is_active)

        if email is not None:
            email = email.strip().lower()
            if not email:
                raise ValidationError("Email is required")
            taken = User.query.filter(db.func.lower(User.email) == email, User.id != user.id).first()
            if taken:
                raise ConflictError("Email already exists")
            user.email = email
        if full_name is not None:
            user.full_name = full_name.strip() or None
        if role is not None:
            user.role = role
        if department is not None:
            user.department = department.strip() or None
        if asset_category is not None:
            user.asset_category = asset_category
        if location_ids is not None:
            user.locations = _load_locations(location_ids)
        if is_active is not None:
            user.is_active = is_active

        db.session.commit()
        logger.info(f"User {user.username} updated by {actor.username}", extra={"user_id": user.id})
        return user

    def reset_password(self, actor: User, password: str = None) -> PasswordReset:
        """
        Replace the password; a random one is generated when none is given.

        The new password is e-mailed to the user when SMTP is configured.
        ``PasswordReset.password`` is only filled when it was not e-mailed,
        so the admin can hand it over.
        """
        _require_user_admin(actor)
        user = self._user
        if user.is_system:
            raise ValidationError("System users cannot be modified")

        password = password or secrets.token_urlsafe(RESET_PASSWORD_BYTES)
        if len(password) < MIN_PASSWORD_LENGTH:
            raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters long")

        user.set_password(password)
        db.session.commit()
        logger.info(f"Password of {user.username} reset by {actor.username}", extra={"user_id": user.id})

        emailed = False
        if user.email:
            emailed = send_templated_email(
                user.email, "Your helpdesk password was reset", 'email/password_reset.html',
                user=user, actor=actor, password=password, login_url=app_url('/login'),
            )
        return PasswordReset(password=None if emailed else password, emailed=emailed)


def create_location(actor: User, name: str, code: str, address: str = None, city: str = None):
    if not permissions.has_permission(actor, 'manage_locations'):
        raise PermissionDeniedError("Only administrators can manage locations")

    name = (name or '').strip()
    code = (code or '').strip().upper()
    if not name or not code:
        raise ValidationError("Name and code are required")
    if Location.query.filter_by(code=code).first():
        raise ConflictError(f"Location code {code} already exists")

    location = Location(
        name=name,
        code=code,
        address=(address or '').strip() or None,
        city=(city or '').strip() or None,
        is_active=True,
        created_by_id=actor.id,
        updated_by_id=actor.id,
    )
    db.session.add(location)
    db.session.commit()
    logger.info(f"Location {code} created by {actor.username}")
    return location

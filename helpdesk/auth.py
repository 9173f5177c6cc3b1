"""
Login and logout.

Staff sign in with their username or e-mail address. After login, a local
``next`` target wins; otherwise requesters go to their own tickets and
everyone who works tickets goes to the dashboard.
"""

from typing import Optional
from urllib.parse import urlparse

from flask import Blueprint, render_template, redirect, url_for, flash, request
from flask_login import login_user, logout_user, login_required, current_user

from helpdesk import db, limiter
from helpdesk.data.core.user_info.user import User
from helpdesk.buisness.core import permissions
from helpdesk.buisness.core.login_audit import record_login_attempt, request_ip
from helpdesk.utils.timezones import utcnow
from helpdesk.logger import get_logger

logger = get_logger("helpdesk.auth")
auth = Blueprint('auth', __name__)


def find_account(identifier: str) -> Optional[User]:
    """Username match is exact; e-mail match ignores case."""
    return User.query.filter(
        db.or_(User.username == identifier, db.func.lower(User.email) == identifier.lower())
    ).first()


def safe_next(target: Optional[str]) -> Optional[str]:
    """Only same-site paths are followed ("/tickets/3", not "//host" or "https://host")."""
    if not target:
        return None
    parsed = urlparse(target)
    if parsed.scheme or parsed.netloc or not target.startswith('/') or target.startswith('//'):
        return None
    if parsed.path.rstrip('/') in ('/login', '/logout'):
        return None
    return target


def audit_attempt(identifier: str, success: bool, user: Optional[User] = None, error: str = None) -> None:
    """A failing audit write never blocks the sign-in itself."""
    try:
        record_login_attempt(identifier, success, user=user, error=error,
                             ip=request_ip(request.headers, request.remote_addr),
                             user_agent=request.headers.get('User-Agent'))
    except Exception as e:
        db.session.rollback()
        logger.error(f"Could not record login attempt for {identifier}: {e}")


def landing_page(user) -> str:
    if permissions.can_manage_tickets(user) or permissions.can_view_all_tickets(user):
        return url_for('main.dashboard')
    return url_for('tickets.list', view='mine')


@auth.route('/login', methods=['GET', 'POST'])
@limiter.limit("10 per minute", methods=['POST'])
def login():
    if current_user.is_authenticated:
        return redirect(landing_page(current_user))

    if request.method == 'POST':
        identifier = (request.form.get('username') or '').strip()
        password = request.form.get('password')

        if not identifier or not password:
            flash('Please enter both username and password', 'error')
            return render_template('auth/login.html'), 400

        user = find_account(identifier)
        if user is None or user.is_system or not user.check_password(password):
            logger.warning(f"Failed login attempt for {identifier} from {request.remote_addr}")
            audit_attempt(identifier, False, error='Invalid username or password')
            flash('Invalid username or password', 'error')
            return render_template('auth/login.html'), 401

        if not user.is_active:
            logger.warning(f"Login attempt for disabled account: {user.username}")
            audit_attempt(identifier, False, user=user, error='Account disabled')
            flash('Account is disabled, contact an administrator', 'error')
            return render_template('auth/login.html'), 403

        login_user(user, remember=request.form.get('remember') == 'on')
        user.last_login_at = utcnow()
        db.session.commit()
        logger.info(f"{user.username} ({user.role}) signed in", extra={"user_id": user.id})
        audit_attempt(identifier, True, user=user)

        flash(f'Welcome, {user.display_name}!', 'success')
        return redirect(safe_next(request.args.get('next')) or landing_page(user))

    return render_template('auth/login.html')


@auth.route('/logout')
@login_required
def logout():
    username = current_user.username
    logout_user()
    logger.info(f"{username} signed out")
    flash('You have been logged out', 'info')
    return redirect(url_for('auth.login'))

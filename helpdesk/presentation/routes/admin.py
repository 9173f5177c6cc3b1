"""
Admin routes
User, location and asset type management, and the login audit trail
"""

from functools import wraps

from flask import Blueprint, render_template, redirect, url_for, flash, request, abort
from flask_login import login_required, current_user

from helpdesk import db
from helpdesk.data.assets.asset import Asset
from helpdesk.data.core.location import Location
from helpdesk.buisness.core import permissions
from helpdesk.buisness.core.errors import HelpdeskDomainError, NotFoundError
from helpdesk.buisness.assets.asset_types import list_asset_types, create_asset_type
from helpdesk.buisness.core.login_audit import clear_login_history
from helpdesk.buisness.core.user_context import UserContext, create_location
from helpdesk.services.user_service import UserService, LocationService, LoginAuditService
from helpdesk.utils.logging_sanitizer import sanitize_form_data
from helpdesk.logger import get_logger

bp = Blueprint('admin', __name__)
logger = get_logger("helpdesk.routes.admin")


def admin_required(view):
    @wraps(view)
    def wrapped(*args, **kwargs):
        if not permissions.can_manage_users(current_user):
            logger.warning(f"{current_user.username} denied access to {request.path}")
            abort(403)
        return view(*args, **kwargs)
    return wrapped


@bp.route('/users')
@login_required
@admin_required
def users():
    page = request.args.get('page', 1, type=int)
    return render_template('admin/users.html',
                           users=UserService.get_list_data(request.args, page=page),
                           roles=permissions.ROLES,
                           role_labels=permissions.ROLE_LABELS,
                           filters=request.args)


@bp.route('/users/create', methods=['GET', 'POST'])
@login_required
@admin_required
def create_user():
    locations = LocationService.build_filtered_query(active=True).all()
    if request.method == 'POST':
        logger.debug(f"User create form: {sanitize_form_data(request.form)}")
        try:
            context = UserContext.create(
                current_user,
                username=request.form.get('username'),
                email=request.form.get('email'),
                password=request.form.get('password'),
                role=request.form.get('role', permissions.REQUESTER),
                full_name=request.form.get('full_name'),
                department=request.form.get('department'),
                asset_category=request.form.get('asset_category', 'IT'),
                location_ids=request.form.getlist('location_ids'),
            )
        except HelpdeskDomainError as e:
            db.session.rollback()
            flash(str(e), 'error')
            return render_template('admin/user_form.html', locations=locations, form=request.form,
                                   roles=permissions.ROLES, role_labels=permissions.ROLE_LABELS), e.http_status

        flash(f'User {context.user.username} created', 'success')
        return redirect(url_for('admin.users'))

    return render_template('admin/user_form.html', locations=locations, form={},
                           roles=permissions.ROLES, role_labels=permissions.ROLE_LABELS)


@bp.route('/users/<int:user_id>/toggle-active', methods=['POST'])
@login_required
@admin_required
def toggle_user(user_id):
    try:
        user = UserContext(user_id).toggle_active(current_user)
        flash(f'User {user.username} {"activated" if user.is_active else "deactivated"}', 'success')
    except NotFoundError:
        abort(404)
    except HelpdeskDomainError as e:
        db.session.rollback()
        flash(str(e), 'error')
    return redirect(url_for('admin.users'))


@bp.route('/users/<int:user_id>/edit', methods=['GET', 'POST'])
@login_required
@admin_required
def edit_user(user_id):
    try:
        context = UserContext(user_id)
    except NotFoundError:
        abort(404)

    locations = LocationService.build_filtered_query(active=True).all()
    if request.method == 'POST':
        logger.debug(f"User edit form: {sanitize_form_data(request.form)}")
        try:
            context.update(
                current_user,
                email=request.form.get('email', ''),
                full_name=request.form.get('full_name', ''),
                role=request.form.get('role'),
                department=request.form.get('department', ''),
                asset_category=request.form.get('asset_category'),
                location_ids=request.form.getlist('location_ids'),
                is_active='is_active' in request.form,
            )
        except HelpdeskDomainError as e:
            db.session.rollback()
            flash(str(e), 'error')
            return render_template('admin/user_edit.html', user=context.user, locations=locations,
                                   form=request.form, roles=permissions.ROLES,
                                   role_labels=permissions.ROLE_LABELS), e.http_status

        flash(f'User {context.user.username} updated', 'success')
        return redirect(url_for('admin.users'))

    return render_template('admin/user_edit.html', user=context.user, locations=locations, form=None,
                           roles=permissions.ROLES, role_labels=permissions.ROLE_LABELS)


@bp.route('/users/<int:user_id>/reset-password', methods=['POST'])
@login_required
@admin_required
def reset_password(user_id):
    try:
        context = UserContext(user_id)
        reset = context.reset_password(current_user)
    except NotFoundError:
        abort(404)
    except HelpdeskDomainError as e:
        db.session.rollback()
        flash(str(e), 'error')
        return redirect(url_for('admin.users'))

    if reset.emailed:
        flash(f'A new password was e-mailed to {context.user.email}', 'success')
    else:
        flash(f'Temporary password for {context.user.username}: {reset.password} '
              f'(shown once, hand it over securely)', 'warning')
    return redirect(url_for('admin.users'))


@bp.route('/locations', methods=['GET', 'POST'])
@login_required
@admin_required
def locations():
    if request.method == 'POST':
        try:
            location = create_location(
                current_user,
                request.form.get('name'),
                request.form.get('code'),
                address=request.form.get('address'),
                city=request.form.get('city'),
            )
            flash(f'Location {location.code} created', 'success')
        except HelpdeskDomainError as e:
            db.session.rollback()
            flash(str(e), 'error')
        return redirect(url_for('admin.locations'))

    return render_template('admin/locations.html',
                           locations=LocationService.build_filtered_query().all(),
                           user_counts=LocationService.user_counts(),
                           Location=Location)


@bp.route('/asset-types', methods=['GET', 'POST'])
@login_required
def asset_types():
    if not permissions.has_permission(current_user, 'manage_asset_types'):
        abort(403)

    if request.method == 'POST':
        try:
            asset_type = create_asset_type(current_user, request.form)
            flash(f'Asset type {asset_type.value} created', 'success')
        except HelpdeskDomainError as e:
            db.session.rollback()
            flash(str(e), 'error')
        return redirect(url_for('admin.asset_types'))

    return render_template('admin/asset_types.html',
                           asset_types=list_asset_types(include_inactive=True),
                           categories=Asset.CATEGORIES)


@bp.route('/login-audits')
@login_required
def login_audits():
    if not permissions.has_permission(current_user, 'view_login_audits'):
        abort(403)
    page = request.args.get('page', 1, type=int)
    return render_template('admin/login_audits.html',
                           audits=LoginAuditService.get_list_data(page=page),
                           can_clear=permissions.has_permission(current_user, 'clear_login_audits'))


@bp.route('/login-audits/clear', methods=['POST'])
@login_required
def clear_login_audits():
    try:
        deleted = clear_login_history(current_user)
    except HelpdeskDomainError as e:
        db.session.rollback()
        abort(e.http_status)
    flash(f'Login history cleared ({deleted} entries)', 'success')
    return redirect(url_for('admin.login_audits'))

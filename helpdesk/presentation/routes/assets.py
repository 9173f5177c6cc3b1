"""
Asset routes
Inventory list, detail, create and edit
"""

from flask import Blueprint, render_template, redirect, url_for, flash, request, abort
from flask_login import login_required, current_user

from helpdesk import db
from helpdesk.data.assets.asset import Asset
from helpdesk.data.core.user_info.user import User
from helpdesk.buisness.core import permissions
from helpdesk.buisness.core.errors import HelpdeskDomainError, NotFoundError
from helpdesk.buisness.core.location_scope import can_access_location
from helpdesk.buisness.assets.context import AssetContext
from helpdesk.buisness.assets.asset_types import list_asset_types
from helpdesk.buisness.disposals.context import MIN_REASON_LENGTH
from helpdesk.services.asset_service import AssetService
from helpdesk.utils.logging_sanitizer import sanitize_form_data
from helpdesk.logger import get_logger

bp = Blueprint('assets', __name__)
logger = get_logger("helpdesk.routes.assets")

HISTORY_LIMIT = 20


def _load(asset_id) -> AssetContext:
    try:
        context = AssetContext(asset_id)
    except NotFoundError:
        abort(404)
    if context.asset.location_id and not can_access_location(current_user, context.asset.location_id):
        abort(403)
    return context


def _form_options():
    return {
        'locations': AssetService.accessible_locations(current_user),
        'users': User.query.filter_by(is_active=True).order_by(User.username).all(),
        'asset_types': list_asset_types(),
        'Asset': Asset,
    }


@bp.route('/')
@login_required
def list():
    page = request.args.get('page', 1, type=int)
    assets = AssetService.get_list_data(current_user, request.args, page=page)
    return render_template('assets/list.html',
                           assets=assets,
                           stats=AssetService.get_stats(current_user),
                           asset_types=AssetService.asset_types(current_user),
                           locations=AssetService.accessible_locations(current_user),
                           pending_ids=AssetService.pending_disposal_ids([a.id for a in assets.items]),
                           can_manage=permissions.can_manage_assets(current_user),
                           filters=request.args,
                           Asset=Asset)


@bp.route('/create', methods=['GET', 'POST'])
@login_required
def create():
    if not permissions.can_manage_assets(current_user):
        abort(403)

    if request.method == 'POST':
        logger.debug(f"Asset create form: {sanitize_form_data(request.form)}")
        try:
            context = AssetContext.create(current_user, request.form.to_dict())
        except HelpdeskDomainError as e:
            db.session.rollback()
            flash(str(e), 'error')
            return render_template('assets/form.html', asset=None, form=request.form,
                                   **_form_options()), e.http_status

        flash(f'Asset {context.asset.asset_tag} created', 'success')
        return redirect(url_for('assets.detail', asset_id=context.asset_id))

    return render_template('assets/form.html', asset=None, form={}, **_form_options())


@bp.route('/<int:asset_id>')
@login_required
def detail(asset_id):
    context = _load(asset_id)
    return render_template('assets/detail.html',
                           asset=context.asset,
                           tickets=context.related_tickets(limit=HISTORY_LIMIT),
                           history=context.change_history(limit=HISTORY_LIMIT),
                           pending_disposal=context.pending_disposal(),
                           can_manage=permissions.can_manage_assets(current_user),
                           can_request_disposal=permissions.has_permission(current_user, 'request_disposal'),
                           min_reason_length=MIN_REASON_LENGTH)


@bp.route('/<int:asset_id>/edit', methods=['GET', 'POST'])
@login_required
def edit(asset_id):
    if not permissions.can_manage_assets(current_user):
        abort(403)
    context = _load(asset_id)
    if context.asset.is_disposed:
        flash('Disposed assets cannot be edited', 'error')
        return redirect(url_for('assets.detail', asset_id=asset_id))

    if request.method == 'POST':
        logger.debug(f"Asset edit form: {sanitize_form_data(request.form)}")
        data = request.form.to_dict()
        reason = data.pop('reason', None)
        try:
            changes = context.edit(current_user, data, reason=reason)
        except HelpdeskDomainError as e:
            db.session.rollback()
            flash(str(e), 'error')
            return render_template('assets/form.html', asset=context.asset, form=request.form,
                                   **_form_options()), e.http_status

        flash(f'Asset updated ({len(changes)} tracked change(s))', 'success')
        return redirect(url_for('assets.detail', asset_id=asset_id))

    return render_template('assets/form.html', asset=context.asset, form={}, **_form_options())

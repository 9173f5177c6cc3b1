"""
Disposal routes
Request, review and list asset disposals
"""

from flask import Blueprint, render_template, redirect, url_for, flash, request, abort
from flask_login import login_required, current_user

from helpdesk import db
from helpdesk.data.assets.disposal_request import DisposalRequest
from helpdesk.buisness.core import permissions
from helpdesk.buisness.core.errors import HelpdeskDomainError
from helpdesk.buisness.disposals.context import (
    create_disposal_request, approve_disposal_request, reject_disposal_request,
)
from helpdesk.services.report_service import ReportService
from helpdesk.logger import get_logger

bp = Blueprint('disposals', __name__)
logger = get_logger("helpdesk.routes.disposals")


@bp.route('/')
@login_required
def list():
    if not (permissions.has_permission(current_user, 'request_disposal')
            or permissions.can_review_disposals(current_user)):
        abort(403)

    status = request.args.get('status')
    return render_template('disposals/list.html',
                           requests=ReportService.disposal_requests(current_user, status),
                           counts=ReportService.disposal_counts(current_user),
                           status=status,
                           can_review=permissions.can_review_disposals(current_user),
                           DisposalRequest=DisposalRequest)


@bp.route('/new', methods=['POST'])
@login_required
def create():
    asset_id = request.form.get('asset_id', type=int)
    try:
        disposal = create_disposal_request(current_user, asset_id, request.form.get('reason'))
    except HelpdeskDomainError as e:
        db.session.rollback()
        flash(str(e), 'error')
        if asset_id:
            return redirect(url_for('assets.detail', asset_id=asset_id))
        return redirect(url_for('disposals.list'))

    flash(f'Disposal requested for {disposal.asset.asset_tag}; administrators have been notified', 'success')
    return redirect(url_for('assets.detail', asset_id=disposal.asset_id))


@bp.route('/<int:request_id>/approve', methods=['POST'])
@login_required
def approve(request_id):
    try:
        disposal = approve_disposal_request(current_user, request_id, request.form.get('notes'))
        flash(f'Disposal of {disposal.asset.asset_tag} approved', 'success')
    except HelpdeskDomainError as e:
        db.session.rollback()
        flash(str(e), 'error')
    return redirect(url_for('disposals.list'))


@bp.route('/<int:request_id>/reject', methods=['POST'])
@login_required
def reject(request_id):
    try:
        disposal = reject_disposal_request(current_user, request_id, request.form.get('notes'))
        flash(f'Disposal of {disposal.asset.asset_tag} rejected', 'success')
    except HelpdeskDomainError as e:
        db.session.rollback()
        flash(str(e), 'error')
    return redirect(url_for('disposals.list'))

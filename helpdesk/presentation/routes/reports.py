"""
Report routes
Ticket export, disposal history, asset change history and asset inventory
"""

from flask import Blueprint, render_template, abort, request
from flask_login import login_required, current_user

from helpdesk.data.assets.asset import Asset
from helpdesk.data.assets.asset_change import AssetChange
from helpdesk.data.assets.disposal_request import DisposalRequest
from helpdesk.buisness.core import permissions
from helpdesk.services.asset_service import AssetService
from helpdesk.services.report_service import ReportService

bp = Blueprint('reports', __name__)


@bp.before_request
@login_required
def require_report_access():
    if not permissions.can_view_reports(current_user):
        abort(403)


@bp.route('/')
def index():
    return render_template('reports/index.html')


@bp.route('/disposals')
def disposals():
    status = request.args.get('status')
    return render_template('reports/disposals.html',
                           requests=ReportService.disposal_requests(current_user, status),
                           counts=ReportService.disposal_counts(current_user),
                           status=status,
                           DisposalRequest=DisposalRequest)


@bp.route('/asset-changes')
def asset_changes():
    return render_template('reports/asset_changes.html',
                           changes=ReportService.asset_changes(current_user, request.args),
                           filters=request.args,
                           AssetChange=AssetChange)


@bp.route('/asset-inventory')
def asset_inventory():
    return render_template('reports/asset_inventory.html',
                           inventory=ReportService.asset_inventory(current_user, request.args),
                           locations=AssetService.accessible_locations(current_user),
                           filters=request.args,
                           Asset=Asset)

"""
Main routes for the Helpdesk
Home redirect and the KPI dashboard
"""

from flask import render_template, redirect, request, url_for
from flask_login import login_required, current_user

from helpdesk import db
from helpdesk.presentation.routes import main
from helpdesk.buisness.core import permissions
from helpdesk.services.dashboard_service import DashboardService
from helpdesk.logger import get_logger

logger = get_logger("helpdesk.routes.main")


@main.route('/')
@login_required
def index():
    """Agents and supervisors land on the dashboard; requesters on their tickets"""
    if permissions.can_manage_tickets(current_user) or permissions.can_view_all_tickets(current_user):
        return redirect(url_for('main.dashboard'))
    return redirect(url_for('tickets.list', view='mine'))


@main.route('/dashboard')
@login_required
def dashboard():
    if not (permissions.can_manage_tickets(current_user) or permissions.can_view_all_tickets(current_user)):
        return redirect(url_for('tickets.list', view='mine'))

    data = DashboardService.get_dashboard_data(current_user)
    logger.debug(f"Dashboard for {current_user.username}: {data['kpis']}")
    return render_template('dashboard.html', **data)


@main.app_errorhandler(403)
def forbidden(e):
    return render_template('errors/403.html'), 403


@main.app_errorhandler(404)
def not_found(e):
    return render_template('errors/404.html'), 404


@main.app_errorhandler(500)
def server_error(e):
    db.session.rollback()
    logger.error(f"Unhandled error on {request.path}: {getattr(e, 'original_exception', e)}")
    return render_template('errors/500.html'), 500

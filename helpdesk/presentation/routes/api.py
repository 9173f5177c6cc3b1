"""
JSON API routes
Helpdesk KPIs, inspection completion, the academy course catalogue and asset types.

Errors are returned as {"ok": false, "error": message} with the status code
carried by the domain exception.
"""

from functools import wraps

from flask import Blueprint, jsonify, request
from flask_login import current_user
from werkzeug.exceptions import HTTPException

from helpdesk import db
from helpdesk.buisness.academy.catalog import create_course, list_courses
from helpdesk.buisness.assets.asset_types import create_asset_type, list_asset_types
from helpdesk.buisness.core.errors import HelpdeskDomainError, NotFoundError, ValidationError
from helpdesk.buisness.inspections.context import InspectionContext
from helpdesk.buisness.tickets.codes import ticket_display_code
from helpdesk.services.dashboard_service import DashboardService
from helpdesk.logger import get_logger

bp = Blueprint('api', __name__)
logger = get_logger("helpdesk.routes.api")


def api_login_required(view):
    @wraps(view)
    def wrapped(*args, **kwargs):
        if not current_user.is_authenticated:
            return jsonify({'ok': False, 'error': 'Unauthorized'}), 401
        return view(*args, **kwargs)
    return wrapped


@bp.errorhandler(HelpdeskDomainError)
def handle_domain_error(e):
    db.session.rollback()
    return jsonify({'ok': False, 'error': str(e)}), e.http_status


@bp.errorhandler(Exception)
def handle_unexpected_error(e):
    if isinstance(e, HTTPException):
        return jsonify({'ok': False, 'error': e.description}), e.code
    db.session.rollback()
    logger.error(f"Unhandled API error on {request.path}: {e}", exc_info=True)
    return jsonify({'ok': False, 'error': 'Internal server error'}), 500


# ------------------------------------------------------------------ helpdesk

@bp.get('/helpdesk/kpis')
@api_login_required
def helpdesk_kpis():
    return jsonify({'ok': True, **DashboardService.backlog_kpis(current_user)})


@bp.get('/helpdesk/status-distribution')
@api_login_required
def helpdesk_status_distribution():
    return jsonify({'ok': True, 'counts': DashboardService.status_counts(current_user)})


@bp.get('/helpdesk/sla-breaches')
@api_login_required
def helpdesk_sla_breaches():
    tickets = DashboardService.sla_breaches(current_user)
    return jsonify({
        'ok': True,
        'items': [
            {
                'id': t.id,
                'code': ticket_display_code(t),
                'title': t.title,
                'created_at': t.created_at.isoformat(),
                'location_id': t.location_id,
                'assigned_agent_id': t.assigned_agent_id,
            }
            for t in tickets
        ],
    })


# --------------------------------------------------------------- inspections

@bp.post('/inspections/complete-and-notify')
@api_login_required
def complete_and_notify():
    payload = request.get_json(silent=True) or {}
    inspection_id = payload.get('inspectionId')
    if not inspection_id:
        raise ValidationError("inspectionId is required")

    try:
        context = InspectionContext(int(inspection_id))
    except (TypeError, ValueError):
        raise ValidationError("inspectionId must be a number")
    if not context.can_view(current_user):
        raise NotFoundError(f"Inspection {inspection_id} not found")

    result = context.complete(current_user)
    if result.critical_items_count:
        message = f"Inspection completed; {result.critical_items_count} critical item(s) reported"
    else:
        message = "Inspection completed with no critical items"

    return jsonify({
        'success': True,
        'message': message,
        'criticalItemsCount': result.critical_items_count,
        'adminsNotified': result.admins_notified,
        'emailsSentToAdmins': result.emails_sent,
    })


# ------------------------------------------------------------------- academy

@bp.get('/academy/courses')
@api_login_required
def academy_courses():
    courses = list_courses(current_user, request.args)
    return jsonify({'courses': [course.to_dict() for course in courses]})


@bp.post('/academy/courses')
@api_login_required
def academy_create_course():
    payload = request.get_json(silent=True) or {}
    course = create_course(current_user, payload)
    return jsonify({'course': course.to_dict()}), 201


# --------------------------------------------------------------- asset types

@bp.get('/asset-types')
@api_login_required
def asset_types():
    category = (request.args.get('category') or '').strip().upper() or None
    return jsonify({'assetTypes': [t.to_dict() for t in list_asset_types(category)]})


@bp.post('/asset-types')
@api_login_required
def create_asset_type_api():
    payload = request.get_json(silent=True) or {}
    asset_type = create_asset_type(current_user, payload)
    return jsonify({'assetType': asset_type.to_dict()}), 201

"""
Inspection routes
Department checklists: list, create, fill in, complete and review
"""

import re

from flask import Blueprint, render_template, redirect, url_for, flash, request, abort
from flask_login import login_required, current_user

from helpdesk import db
from helpdesk.data.inspections.inspection import Inspection, InspectionItem
from helpdesk.buisness.core import permissions
from helpdesk.buisness.core.errors import HelpdeskDomainError, NotFoundError
from helpdesk.buisness.core.location_scope import can_access_location
from helpdesk.buisness.inspections.context import InspectionContext
from helpdesk.buisness.inspections.scoring import CRITICAL_THRESHOLD
from helpdesk.services.asset_service import AssetService
from helpdesk.services.inspection_service import InspectionService
from helpdesk.utils.timezones import local_today
from helpdesk.logger import get_logger

bp = Blueprint('inspections', __name__)
logger = get_logger("helpdesk.routes.inspections")

_ITEM_FIELD = re.compile(r'^item-(\d+)-(cumplimiento_valor|calif_valor|comentarios_valor)$')


def parse_item_form(form) -> dict:
    """Collect item-<id>-<field> inputs into {item_id: {field: value}}"""
    items = {}
    for key, value in form.items():
        match = _ITEM_FIELD.match(key)
        if match:
            items.setdefault(int(match.group(1)), {})[match.group(2)] = value
    return items


def _load(inspection_id) -> InspectionContext:
    try:
        context = InspectionContext(inspection_id)
    except NotFoundError:
        abort(404)
    if not context.can_view(current_user):
        abort(403)
    return context


@bp.route('/')
@login_required
def list():
    department = request.args.get('department')
    location = request.args.get('location', type=int)

    stats = trend = None
    if location:
        if not can_access_location(current_user, location):
            abort(403)
        dept = department if department in Inspection.DEPARTMENTS else None
        stats = InspectionService.location_stats(location, dept)
        trend = InspectionService.score_trend(location, dept)

    return render_template('inspections/list.html',
                           inspections=InspectionService.list_inspections(current_user, request.args),
                           locations=AssetService.accessible_locations(current_user),
                           stats=stats,
                           trend=trend,
                           filters=request.args,
                           Inspection=Inspection)


@bp.route('/new', methods=['GET', 'POST'])
@login_required
def create():
    locations = AssetService.accessible_locations(current_user)
    if request.method == 'POST':
        try:
            context = InspectionContext.create(
                current_user,
                request.form.get('department'),
                request.form.get('location_id', type=int),
                inspection_date=request.form.get('inspection_date'),
            )
        except HelpdeskDomainError as e:
            db.session.rollback()
            flash(str(e), 'error')
            return render_template('inspections/create.html', locations=locations, form=request.form,
                                   Inspection=Inspection, today=local_today()), e.http_status

        flash(f'{context.inspection.department_label} inspection started', 'success')
        return redirect(url_for('inspections.detail', inspection_id=context.inspection.id))

    return render_template('inspections/create.html', locations=locations, form={},
                           Inspection=Inspection, today=local_today())


@bp.route('/<int:inspection_id>')
@login_required
def detail(inspection_id):
    context = _load(inspection_id)
    return render_template('inspections/detail.html',
                           inspection=context.inspection,
                           can_edit=context.can_edit(current_user),
                           can_review=permissions.has_permission(current_user, 'review_inspections'),
                           threshold=CRITICAL_THRESHOLD,
                           InspectionItem=InspectionItem,
                           Inspection=Inspection)


@bp.route('/<int:inspection_id>/save', methods=['POST'])
@login_required
def save(inspection_id):
    context = _load(inspection_id)
    try:
        context.save_items(current_user, parse_item_form(request.form), request.form.get('general_comments'))
        flash('Inspection saved', 'success')
    except HelpdeskDomainError as e:
        db.session.rollback()
        flash(str(e), 'error')
    return redirect(url_for('inspections.detail', inspection_id=inspection_id))


@bp.route('/<int:inspection_id>/complete', methods=['POST'])
@login_required
def complete(inspection_id):
    context = _load(inspection_id)
    try:
        if context.inspection.is_draft and context.can_edit(current_user):
            context.save_items(current_user, parse_item_form(request.form),
                               request.form.get('general_comments'))
        result = context.complete(current_user)
    except HelpdeskDomainError as e:
        db.session.rollback()
        flash(str(e), 'error')
        return redirect(url_for('inspections.detail', inspection_id=inspection_id))

    if result.critical_items_count:
        flash(f'Inspection completed with {result.critical_items_count} critical item(s); '
              f'{result.admins_notified} administrator(s) notified', 'warning')
    else:
        flash('Inspection completed', 'success')
    return redirect(url_for('inspections.detail', inspection_id=inspection_id))


@bp.route('/<int:inspection_id>/review', methods=['POST'])
@login_required
def review(inspection_id):
    context = _load(inspection_id)
    approve = request.form.get('decision') == 'approve'
    try:
        context.review(current_user, approve, request.form.get('notes'))
        flash(f'Inspection {"approved" if approve else "rejected"}', 'success')
    except HelpdeskDomainError as e:
        db.session.rollback()
        flash(str(e), 'error')
    return redirect(url_for('inspections.detail', inspection_id=inspection_id))

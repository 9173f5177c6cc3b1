"""
Ticket routes
Queues, creation, detail and workflow actions
"""

from flask import Blueprint, render_template, redirect, url_for, flash, request, abort, Response
from flask_login import login_required, current_user

from helpdesk import db
from helpdesk.data.assets.asset import Asset
from helpdesk.data.tickets.ticket import Ticket, TicketComment
from helpdesk.buisness.core import permissions
from helpdesk.buisness.core.errors import HelpdeskDomainError, NotFoundError
from helpdesk.buisness.tickets.context import TicketContext
from helpdesk.services.asset_service import AssetService
from helpdesk.services.ticket_service import TicketService, can_see_queue
from helpdesk.utils.logging_sanitizer import sanitize_form_data
from helpdesk.utils.timezones import local_today
from helpdesk.logger import get_logger

bp = Blueprint('tickets', __name__)
logger = get_logger("helpdesk.routes.tickets")


def _load(ticket_id) -> TicketContext:
    try:
        context = TicketContext(ticket_id)
    except NotFoundError:
        abort(404)
    if not context.can_view(current_user):
        abort(403)
    return context


@bp.route('/')
@login_required
def list():
    """Ticket queue ("mine" or "queue")"""
    page = request.args.get('page', 1, type=int)
    view = request.args.get('view') or TicketService.default_view(current_user)

    tickets = TicketService.get_list_data(current_user, request.args, page=page)
    return render_template('tickets/list.html',
                           tickets=tickets,
                           view=view,
                           can_see_queue=can_see_queue(current_user),
                           counts=TicketService.summary_counts(current_user),
                           filters=request.args,
                           Ticket=Ticket)


@bp.route('/export.csv')
@login_required
def export_csv():
    tickets = TicketService.get_export_rows(current_user, request.args)
    filename = f"tickets-{local_today().isoformat()}.csv"
    logger.info(f"{current_user.username} exported {len(tickets)} ticket(s)")
    return Response(
        TicketService.to_csv(tickets),
        mimetype='text/csv; charset=utf-8',
        headers={'Content-Disposition': f'attachment; filename="{filename}"'},
    )


@bp.route('/new', methods=['GET', 'POST'])
@login_required
def create():
    """Open a new ticket"""
    assets = AssetService.scoped_assets(current_user).order_by(Asset.asset_tag).all()
    requesters = []
    if permissions.can_manage_tickets(current_user):
        from helpdesk.data.core.user_info.user import User
        requesters = User.query.filter_by(is_active=True).order_by(User.username).all()

    if request.method == 'POST':
        logger.debug(f"Ticket create form: {sanitize_form_data(request.form)}")
        try:
            context = TicketContext.create(
                current_user,
                title=request.form.get('title'),
                description=request.form.get('description'),
                category=(request.form.get('category') or '').strip() or None,
                priority=request.form.get('priority', 3),
                impact=request.form.get('impact', 3, type=int),
                urgency=request.form.get('urgency', 3, type=int),
                requester_id=request.form.get('requester_id', type=int),
                asset_id=request.form.get('asset_id', type=int),
                location_id=request.form.get('location_id', type=int),
            )
        except HelpdeskDomainError as e:
            flash(str(e), 'error')
            return render_template('tickets/create.html', assets=assets, requesters=requesters,
                                   form=request.form, Ticket=Ticket), e.http_status

        flash(f'Ticket {context.ticket.code} created', 'success')
        return redirect(url_for('tickets.detail', ticket_id=context.ticket_id))

    return render_template('tickets/create.html', assets=assets, requesters=requesters,
                           form={}, Ticket=Ticket)


@bp.route('/<int:ticket_id>')
@login_required
def detail(ticket_id):
    context = _load(ticket_id)
    ticket = context.ticket
    return render_template('tickets/detail.html',
                           ticket=ticket,
                           comments=context.visible_comments(current_user),
                           history=context.recent_history(),
                           allowed_transitions=context.allowed_transitions(),
                           agents=TicketService.assignable_agents(ticket.location_id),
                           escalation_targets=TicketService.escalation_targets(),
                           can_manage=permissions.can_manage_tickets(current_user),
                           can_delete=permissions.can_delete_tickets(current_user),
                           TicketComment=TicketComment,
                           Ticket=Ticket)


@bp.route('/<int:ticket_id>/status', methods=['POST'])
@login_required
def change_status(ticket_id):
    context = _load(ticket_id)
    try:
        context.change_status(
            current_user,
            request.form.get('status'),
            assigned_agent_id=request.form.get('assigned_agent_id', type=int),
            resolution=request.form.get('resolution'),
            note=request.form.get('note'),
        )
        flash(f'Ticket moved to {context.ticket.status_label}', 'success')
    except HelpdeskDomainError as e:
        db.session.rollback()
        flash(str(e), 'error')
    return redirect(url_for('tickets.detail', ticket_id=ticket_id))


@bp.route('/<int:ticket_id>/escalate', methods=['POST'])
@login_required
def escalate(ticket_id):
    context = _load(ticket_id)
    try:
        context.escalate(current_user, request.form.get('target_agent_id', type=int))
        flash('Ticket escalated to level 2', 'success')
    except HelpdeskDomainError as e:
        db.session.rollback()
        flash(str(e), 'error')
    return redirect(url_for('tickets.detail', ticket_id=ticket_id))


@bp.route('/<int:ticket_id>/comments', methods=['POST'])
@login_required
def add_comment(ticket_id):
    context = _load(ticket_id)
    try:
        context.add_comment(current_user, request.form.get('body'),
                            request.form.get('visibility', TicketComment.PUBLIC))
        flash('Comment added', 'success')
    except HelpdeskDomainError as e:
        db.session.rollback()
        flash(str(e), 'error')
    return redirect(url_for('tickets.detail', ticket_id=ticket_id))


@bp.route('/<int:ticket_id>/delete', methods=['POST'])
@login_required
def delete(ticket_id):
    context = _load(ticket_id)
    try:
        context.soft_delete(current_user, request.form.get('reason'))
    except HelpdeskDomainError as e:
        db.session.rollback()
        flash(str(e), 'error')
        return redirect(url_for('tickets.detail', ticket_id=ticket_id))

    flash(f'Ticket {context.ticket.code} deleted', 'success')
    return redirect(url_for('tickets.list'))

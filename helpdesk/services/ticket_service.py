"""
Ticket Service
Presentation service for ticket lists and exports.

Handles:
- "mine" and "queue" views
- Filter parsing from request args
- CSV export of the visible tickets
"""

import csv
import io
from datetime import datetime, timedelta
from typing import Dict, List, Mapping, Optional

from flask_sqlalchemy.pagination import Pagination

from helpdesk import db
from helpdesk.data.tickets.ticket import Ticket
from helpdesk.data.core.user_info.user import User
from helpdesk.buisness.core import permissions
from helpdesk.buisness.core.location_scope import apply_location_filter, get_location_filter
from helpdesk.buisness.tickets.codes import ticket_display_code

VIEW_MINE = 'mine'
VIEW_QUEUE = 'queue'

EXPORT_LIMIT = 5000

CSV_HEADERS = [
    'ticket_code', 'ticket_number', 'title', 'status', 'priority', 'support_level',
    'category', 'service_area', 'location', 'requester_name', 'requester_email',
    'assigned_agent_name', 'assigned_agent_email', 'created_at', 'updated_at',
]


def can_see_queue(user) -> bool:
    return permissions.can_manage_tickets(user) or permissions.can_view_all_tickets(user)


def _parse_day(value: str) -> Optional[datetime]:
    try:
        return datetime.strptime(value, '%Y-%m-%d')
    except (TypeError, ValueError):
        return None


class TicketService:
    """
    Service for ticket presentation data.
    """

    @staticmethod
    def default_view(user) -> str:
        return VIEW_QUEUE if can_see_queue(user) else VIEW_MINE

    @staticmethod
    def base_query(user, view: str):
        """
        mine:  tickets the user requested, plus (for agents) those assigned to them
        queue: every ticket in the user's locations; falls back to mine for
               users without queue access
        """
        query = Ticket.active()
        if view == VIEW_QUEUE and can_see_queue(user):
            return apply_location_filter(query, Ticket.location_id, get_location_filter(user))

        if permissions.can_manage_tickets(user):
            return query.filter(db.or_(Ticket.requester_id == user.id, Ticket.assigned_agent_id == user.id))
        return query.filter(Ticket.requester_id == user.id)

    @staticmethod
    def apply_filters(query, args: Mapping):
        """
        Supported args: search (text, or #number), status, priority, level,
        location, service_area, assigned (assigned|unassigned), from, to.
        """
        search = (args.get('search') or '').strip()
        if search:
            if search.startswith('#') and search[1:].isdigit():
                query = query.filter(Ticket.ticket_number == int(search[1:]))
            else:
                like = f'%{search}%'
                query = query.filter(db.or_(Ticket.title.ilike(like), Ticket.description.ilike(like)))

        status = (args.get('status') or '').strip()
        if status in Ticket.STATUSES:
            query = query.filter(Ticket.status == status)

        for arg, column in (('priority', Ticket.priority), ('level', Ticket.support_level),
                            ('location', Ticket.location_id)):
            value = (args.get(arg) or '').strip()
            if value.isdigit():
                query = query.filter(column == int(value))

        service_area = (args.get('service_area') or '').strip()
        if service_area in Ticket.SERVICE_AREAS:
            query = query.filter(Ticket.service_area == service_area)

        assigned = args.get('assigned')
        if assigned == 'assigned':
            query = query.filter(Ticket.assigned_agent_id.isnot(None))
        elif assigned == 'unassigned':
            query = query.filter(Ticket.assigned_agent_id.is_(None))

        start = _parse_day(args.get('from'))
        if start:
            query = query.filter(Ticket.created_at >= start)
        end = _parse_day(args.get('to'))
        if end:
            query = query.filter(Ticket.created_at < end + timedelta(days=1))

        return query

    @staticmethod
    def get_list_data(user, args: Mapping, page: int = 1, per_page: int = 25) -> Pagination:
        view = args.get('view') or TicketService.default_view(user)
        query = TicketService.apply_filters(TicketService.base_query(user, view), args)
        query = query.order_by(Ticket.created_at.desc(), Ticket.id.desc())
        return query.paginate(page=page, per_page=per_page, error_out=False)

    @staticmethod
    def get_export_rows(user, args: Mapping) -> List[Ticket]:
        """Up to EXPORT_LIMIT tickets, newest first with closed tickets last."""
        view = args.get('view') or TicketService.default_view(user)
        query = TicketService.apply_filters(TicketService.base_query(user, view), args)
        tickets = query.order_by(Ticket.created_at.desc(), Ticket.id.desc()).limit(EXPORT_LIMIT).all()
        return sorted(tickets, key=lambda t: t.status == Ticket.CLOSED)

    @staticmethod
    def to_csv(tickets: List[Ticket]) -> str:
        """CSV text with a UTF-8 BOM so spreadsheet apps pick the right encoding."""
        buffer = io.StringIO()
        writer = csv.writer(buffer)
        writer.writerow(CSV_HEADERS)
        for t in tickets:
            requester = t.requester
            agent = t.assigned_agent
            writer.writerow([
                ticket_display_code(t),
                t.ticket_number,
                t.title,
                t.status,
                t.priority,
                t.support_level,
                t.category or '',
                t.service_area,
                t.location.code if t.location else '',
                requester.display_name if requester else '',
                requester.email if requester else '',
                agent.display_name if agent else '',
                agent.email if agent else '',
                t.created_at.isoformat() if t.created_at else '',
                t.updated_at.isoformat() if t.updated_at else '',
            ])
        return '\ufeff' + buffer.getvalue()

    @staticmethod
    def assignable_agents(location_id: Optional[int] = None) -> List[User]:
        """Active users who can work tickets, optionally limited to one location."""
        query = User.query.filter(
            User.is_active.is_(True),
            User.role.in_(sorted(permissions.PERMISSIONS['manage_tickets'])),
        )
        agents = query.order_by(User.full_name, User.username).all()
        if location_id:
            agents = [a for a in agents if permissions.is_admin(a) or location_id in a.location_ids]
        return agents

    @staticmethod
    def escalation_targets() -> List[User]:
        return (
            User.query
            .filter(User.is_active.is_(True), User.role.in_(sorted(permissions.ESCALATION_TARGET_ROLES)))
            .order_by(User.full_name, User.username)
            .all()
        )

    @staticmethod
    def summary_counts(user) -> Dict[str, int]:
        mine = TicketService.base_query(user, VIEW_MINE)
        counts = {'mine': mine.count()}
        if can_see_queue(user):
            counts['queue'] = TicketService.base_query(user, VIEW_QUEUE).count()
        return counts

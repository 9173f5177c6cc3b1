"""
Dashboard Service
Presentation service for the ticket dashboard and the helpdesk KPI endpoints.

Handles:
- KPI counts scoped by location and service area
- Status, priority and 7-day trend distributions
- Aging of open tickets per status
- SLA breaches (critical open tickets older than 48 hours)
"""

from datetime import timedelta
from typing import Dict, List, Optional

from helpdesk import db
from helpdesk.data.assets.asset import Asset
from helpdesk.data.core.location import Location
from helpdesk.data.tickets.ticket import Ticket
from helpdesk.buisness.core import permissions
from helpdesk.buisness.core.location_scope import apply_location_filter, get_location_filter
from helpdesk.utils.timezones import local_date, local_today, utcnow

TREND_DAYS = 7
RECENT_LIMIT = 5
SLA_BREACH_HOURS = 48
SLA_BREACH_LIMIT = 10

_MAINTENANCE_DEPARTMENT_HINTS = ('mantenim', 'hvac', 'infraestructura', 'maintenance')

# Roles whose dashboard shows only their own service area
OPERATIONAL_ROLES = (permissions.SUPERVISOR, permissions.AGENT_L1, permissions.AGENT_L2)


def user_service_area(user) -> str:
    """asset_category wins; otherwise the department name decides, defaulting to IT."""
    if user.asset_category == 'IT':
        return 'it'
    if user.asset_category == 'MAINTENANCE':
        return 'maintenance'
    department = (user.department or '').lower()
    if any(hint in department for hint in _MAINTENANCE_DEPARTMENT_HINTS):
        return 'maintenance'
    return 'it'


class DashboardService:
    """
    Service for dashboard aggregation.

    Every query starts from `scoped_tickets`, so the numbers on one page
    always agree with each other.
    """

    @staticmethod
    def scoped_tickets(user, service_area: Optional[str] = None):
        """
        Active tickets visible on the user's dashboard.

        Admins see every ticket. Everybody else is limited to their locations
        and, when given, to one service area.
        """
        query = Ticket.active()
        if permissions.is_admin(user):
            return query
        query = apply_location_filter(query, Ticket.location_id, get_location_filter(user))
        if service_area:
            query = query.filter(Ticket.service_area == service_area)
        return query

    @staticmethod
    def get_kpis(user, service_area: Optional[str] = None) -> Dict[str, int]:
        base = lambda: DashboardService.scoped_tickets(user, service_area)
        return {
            'active': base().filter(Ticket.status.in_(Ticket.OPEN_STATUSES)).count(),
            'closed': base().filter(Ticket.status == Ticket.CLOSED).count(),
            'escalated': base().filter(Ticket.support_level == 2).count(),
            'assigned': base().filter(Ticket.assigned_agent_id.isnot(None)).count(),
            'total': base().count(),
        }

    @staticmethod
    def status_distribution(user, service_area: Optional[str] = None) -> List[Dict]:
        """Statuses with at least one ticket, in workflow order."""
        rows = dict(
            DashboardService.scoped_tickets(user, service_area)
            .with_entities(Ticket.status, db.func.count(Ticket.id))
            .group_by(Ticket.status)
            .all()
        )
        return [
            {'status': status, 'label': Ticket.STATUS_LABELS[status], 'count': rows[status]}
            for status in Ticket.STATUSES
            if rows.get(status)
        ]

    @staticmethod
    def priority_distribution(user, service_area: Optional[str] = None) -> List[Dict]:
        """Every priority 1..4, zero-filled."""
        rows = dict(
            DashboardService.scoped_tickets(user, service_area)
            .with_entities(Ticket.priority, db.func.count(Ticket.id))
            .group_by(Ticket.priority)
            .all()
        )
        return [
            {'priority': priority, 'label': label, 'count': rows.get(priority, 0)}
            for priority, label in Ticket.PRIORITY_LABELS.items()
        ]

    @staticmethod
    def created_trend(user, service_area: Optional[str] = None, days: int = TREND_DAYS, now=None) -> List[Dict]:
        """Tickets created per local calendar day, oldest day first, today included."""
        now = now or utcnow()
        today = local_today(now)
        window = [today - timedelta(days=offset) for offset in range(days - 1, -1, -1)]
        counts = {day: 0 for day in window}

        # One extra day of margin covers the UTC offset
        since = now - timedelta(days=days + 1)
        created = (
            DashboardService.scoped_tickets(user, service_area)
            .filter(Ticket.created_at >= since)
            .with_entities(Ticket.created_at)
            .all()
        )
        for (created_at,) in created:
            day = local_date(created_at)
            if day in counts:
                counts[day] += 1

        return [{'date': day.isoformat(), 'count': counts[day]} for day in window]

    @staticmethod
    def recent_tickets(user, service_area: Optional[str] = None, limit: int = RECENT_LIMIT) -> List[Ticket]:
        """The newest tickets, open ones first and closed ones last."""
        tickets = (
            DashboardService.scoped_tickets(user, service_area)
            .order_by(Ticket.created_at.desc(), Ticket.id.desc())
            .limit(limit)
            .all()
        )
        # sort is stable, so creation order survives inside each group
        return sorted(tickets, key=lambda t: t.status == Ticket.CLOSED)

    @staticmethod
    def aging(user, service_area: Optional[str] = None, now=None) -> List[Dict]:
        now = now or utcnow()
        open_tickets = (
            DashboardService.scoped_tickets(user, service_area)
            .filter(Ticket.status.in_(Ticket.OPEN_STATUSES))
            .all()
        )

        by_status: Dict[str, List[Ticket]] = {}
        for ticket in open_tickets:
            by_status.setdefault(ticket.status, []).append(ticket)

        metrics = []
        for status, tickets in by_status.items():
            ages = [((now - t.created_at).total_seconds() // 86400, t) for t in tickets]
            oldest_days, oldest = max(ages, key=lambda pair: pair[0])
            metrics.append({
                'status': status,
                'label': Ticket.STATUS_LABELS.get(status, status),
                'avg_days': sum(days for days, _ in ages) / len(ages),
                'oldest_days': int(oldest_days),
                'count': len(tickets),
                'oldest_ticket_number': oldest.ticket_number,
            })
        return sorted(metrics, key=lambda m: m['avg_days'], reverse=True)

    @staticmethod
    def location_stats(user, service_area: Optional[str] = None) -> List[Dict]:
        """Per-location ticket counts for supervisors and admins, busiest first."""
        if not permissions.has_supervisor_permissions(user):
            return []
        locations = Location.query.filter_by(is_active=True).order_by(Location.code)
        locations = apply_location_filter(locations, Location.id, get_location_filter(user)).all()

        rows = []
        for location in locations:
            base = lambda: DashboardService.scoped_tickets(user, service_area).filter(
                Ticket.location_id == location.id)
            rows.append({
                'location': location,
                'total': base().count(),
                'open': base().filter(Ticket.status.in_(Ticket.OPEN_STATUSES)).count(),
                'closed': base().filter(Ticket.status == Ticket.CLOSED).count(),
            })
        return sorted(rows, key=lambda r: r['total'], reverse=True)

    @staticmethod
    def assigned_assets(user, limit: int = RECENT_LIMIT) -> List[Asset]:
        return (
            Asset.query
            .filter(Asset.assigned_to_id == user.id, Asset.deleted_at.is_(None))
            .order_by(Asset.updated_at.desc())
            .limit(limit)
            .all()
        )

    @staticmethod
    def get_dashboard_data(user) -> Dict:
        service_area = user_service_area(user) if user.role in OPERATIONAL_ROLES else None
        return {
            'service_area': service_area,
            'kpis': DashboardService.get_kpis(user, service_area),
            'status_chart': DashboardService.status_distribution(user, service_area),
            'priority_chart': DashboardService.priority_distribution(user, service_area),
            'trend': DashboardService.created_trend(user, service_area),
            'recent_tickets': DashboardService.recent_tickets(user, service_area),
            'aging': DashboardService.aging(user, service_area),
            'location_stats': DashboardService.location_stats(user, service_area),
            'assigned_assets': DashboardService.assigned_assets(user),
        }

    # ------------------------------------------------------------ helpdesk API

    @staticmethod
    def backlog_kpis(user) -> Dict:
        """Open (not closed) tickets counted by priority and by status."""
        query = DashboardService.scoped_tickets(user).filter(Ticket.closed_at.is_(None))
        by_priority = dict(
            query.with_entities(Ticket.priority, db.func.count(Ticket.id)).group_by(Ticket.priority).all()
        )
        by_status = dict(
            query.with_entities(Ticket.status, db.func.count(Ticket.id)).group_by(Ticket.status).all()
        )
        return {
            'backlogTotal': sum(by_status.values()),
            'byPriority': {str(k): v for k, v in by_priority.items()},
            'byStatus': by_status,
        }

    @staticmethod
    def status_counts(user) -> Dict[str, int]:
        return dict(
            DashboardService.scoped_tickets(user)
            .with_entities(Ticket.status, db.func.count(Ticket.id))
            .group_by(Ticket.status)
            .all()
        )

    @staticmethod
    def sla_breaches(user, now=None) -> List[Ticket]:
        now = now or utcnow()
        cutoff = now - timedelta(hours=SLA_BREACH_HOURS)
        return (
            DashboardService.scoped_tickets(user)
            .filter(
                Ticket.closed_at.is_(None),
                Ticket.priority == Ticket.PRIORITY_CRITICAL,
                Ticket.created_at <= cutoff,
            )
            .order_by(Ticket.created_at.asc())
            .limit(SLA_BREACH_LIMIT)
            .all()
        )

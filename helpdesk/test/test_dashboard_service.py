"""
Dashboard aggregation and the helpdesk KPI numbers
"""
from datetime import timedelta

import pytest

from helpdesk.buisness.tickets.context import TicketContext
from helpdesk.data.tickets.ticket import Ticket
from helpdesk.services.dashboard_service import DashboardService, user_service_area
from helpdesk.utils.timezones import local_today, utcnow

RESOLUTION = 'Reinstalled the driver and printed a test page'


@pytest.fixture
def tickets(requester, agent, location, other_location, admin):
    made = [
        TicketContext.create(requester, 'Laptop slow', 'Takes minutes to boot', priority=2),
        TicketContext.create(requester, 'VPN down', 'Cannot connect from home', priority=4),
        TicketContext.create(requester, 'Leaking pipe', 'Bathroom on floor 2',
                             category='Mantenimiento / Plomería', priority=3),
        TicketContext.create(admin, 'Projector broken', 'Meeting room B', priority=4,
                             location_id=other_location.id),
    ]
    made[0].change_status(agent, Ticket.CLOSED, resolution=RESOLUTION)
    return [context.ticket for context in made]


def test_user_service_area(make_user):
    assert user_service_area(make_user('it1', 'agent_l1', asset_category='IT')) == 'it'
    assert user_service_area(make_user('mt1', 'agent_l1', asset_category='MAINTENANCE')) == 'maintenance'
    assert user_service_area(make_user('mt2', 'agent_l1', asset_category='',
                                       department='Mantenimiento General')) == 'maintenance'
    assert user_service_area(make_user('x1', 'agent_l1', asset_category='')) == 'it'


def test_admin_sees_every_ticket(admin, tickets):
    assert DashboardService.scoped_tickets(admin).count() == 4
    # service area is ignored for admins
    assert DashboardService.scoped_tickets(admin, 'it').count() == 4


def test_agent_scoped_to_location_and_area(agent, tickets):
    assert DashboardService.scoped_tickets(agent).count() == 3
    assert DashboardService.scoped_tickets(agent, 'it').count() == 2
    assert DashboardService.scoped_tickets(agent, 'maintenance').count() == 1


def test_kpis(agent, tickets):
    kpis = DashboardService.get_kpis(agent, 'it')
    assert kpis == {'active': 1, 'closed': 1, 'escalated': 0, 'assigned': 0, 'total': 2}


def test_deleted_tickets_are_excluded(admin, supervisor, tickets):
    TicketContext(tickets[1]).soft_delete(supervisor, 'Reported twice')
    assert DashboardService.scoped_tickets(admin).count() == 3


def test_distributions(admin, tickets):
    statuses = DashboardService.status_distribution(admin)
    assert [(s['status'], s['count']) for s in statuses] == [(Ticket.NEW, 3), (Ticket.CLOSED, 1)]

    priorities = DashboardService.priority_distribution(admin)
    assert [(p['priority'], p['count']) for p in priorities] == [(1, 0), (2, 1), (3, 1), (4, 2)]


def test_created_trend(admin, tickets):
    trend = DashboardService.created_trend(admin)
    assert len(trend) == 7
    assert trend[-1] == {'date': local_today().isoformat(), 'count': 4}
    assert sum(day['count'] for day in trend) == 4


def test_recent_tickets_put_closed_last(admin, tickets):
    recent = DashboardService.recent_tickets(admin)
    assert recent[-1].status == Ticket.CLOSED
    assert len(recent) == 4


def test_aging(admin, tickets):
    aging = DashboardService.aging(admin)
    assert [(row['status'], row['count']) for row in aging] == [(Ticket.NEW, 3)]


def test_backlog_kpis(admin, tickets):
    kpis = DashboardService.backlog_kpis(admin)
    assert kpis['backlogTotal'] == 3
    assert kpis['byPriority'] == {'3': 1, '4': 2}
    assert kpis['byStatus'] == {Ticket.NEW: 3}


def test_status_counts(admin, tickets):
    assert DashboardService.status_counts(admin) == {Ticket.NEW: 3, Ticket.CLOSED: 1}


def test_sla_breaches(admin, agent, tickets, db):
    vpn, projector = tickets[1], tickets[3]
    vpn.created_at = utcnow() - timedelta(hours=49)
    projector.created_at = utcnow() - timedelta(hours=72)
    db.session.commit()

    assert DashboardService.sla_breaches(admin) == [projector, vpn]
    assert DashboardService.sla_breaches(agent) == [vpn]


def test_location_stats_for_supervisors(supervisor, agent, tickets, location):
    assert DashboardService.location_stats(agent) == []
    rows = DashboardService.location_stats(supervisor)
    assert [(r['location'].id, r['total'], r['open'], r['closed']) for r in rows] == [(location.id, 3, 2, 1)]


def test_dashboard_data(agent, tickets):
    data = DashboardService.get_dashboard_data(agent)
    assert data['service_area'] == 'it'
    assert data['kpis']['total'] == 2
    assert len(data['trend']) == 7


def test_only_supervisors_and_agents_are_narrowed_to_an_area(make_user, location, tickets):
    auditor = make_user('auditor1', 'auditor', locations=[location])
    corporate = make_user('corp1', 'corporate_admin', locations=[location])
    supervisor = make_user('sup-it', 'supervisor', locations=[location], asset_category='IT')

    for user in (auditor, corporate):
        data = DashboardService.get_dashboard_data(user)
        assert data['service_area'] is None
        assert data['kpis']['total'] == 3

    data = DashboardService.get_dashboard_data(supervisor)
    assert data['service_area'] == 'it'
    assert data['kpis']['total'] == 2

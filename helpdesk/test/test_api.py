"""
JSON API: helpdesk KPIs and inspection completion
"""
from datetime import timedelta

import pytest

from helpdesk.buisness.inspections.context import InspectionContext
from helpdesk.buisness.tickets.context import TicketContext
from helpdesk.data.inspections.inspection import Inspection, InspectionItem
from helpdesk.test.conftest import login_user
from helpdesk.utils.timezones import utcnow


def test_requires_login(client):
    response = client.get('/api/helpdesk/kpis')
    assert response.status_code == 401
    assert response.get_json() == {'ok': False, 'error': 'Unauthorized'}


def test_kpis(client, admin, requester):
    TicketContext.create(requester, 'VPN down', 'Cannot connect', priority=4)
    TicketContext.create(requester, 'Mouse', 'Broken wheel', priority=1)
    login_user(client, admin.username)

    data = client.get('/api/helpdesk/kpis').get_json()
    assert data == {
        'ok': True,
        'backlogTotal': 2,
        'byPriority': {'1': 1, '4': 1},
        'byStatus': {'NEW': 2},
    }


def test_status_distribution(client, admin, requester):
    TicketContext.create(requester, 'VPN down', 'Cannot connect')
    login_user(client, admin.username)

    data = client.get('/api/helpdesk/status-distribution').get_json()
    assert data == {'ok': True, 'counts': {'NEW': 1}}


def test_sla_breaches(client, admin, requester, db):
    ticket = TicketContext.create(requester, 'VPN down', 'Cannot connect', priority=4).ticket
    ticket.created_at = utcnow() - timedelta(days=3)
    db.session.commit()
    login_user(client, admin.username)

    data = client.get('/api/helpdesk/sla-breaches').get_json()
    assert data['ok'] is True
    assert [item['id'] for item in data['items']] == [ticket.id]
    assert data['items'][0]['code'] == ticket.code


@pytest.fixture
def inspection(supervisor, location):
    context = InspectionContext.create(supervisor, Inspection.GSH, location.id)
    item = context.inspection.areas[0].items[0]
    context.save_items(supervisor, {item.id: {'cumplimiento_valor': InspectionItem.NO_CUMPLE,
                                              'calif_valor': 3}})
    return context.inspection


def test_complete_and_notify(client, supervisor, admin, inspection, outbox):
    login_user(client, supervisor.username)

    response = client.post('/api/inspections/complete-and-notify', json={'inspectionId': inspection.id})
    assert response.status_code == 200
    data = response.get_json()
    assert data['success'] is True
    assert data['criticalItemsCount'] == 1
    assert data['adminsNotified'] == 1
    assert data['emailsSentToAdmins'] == 1
    assert inspection.status == Inspection.COMPLETED


def test_complete_and_notify_requires_id(client, supervisor):
    login_user(client, supervisor.username)

    response = client.post('/api/inspections/complete-and-notify', json={})
    assert response.status_code == 400
    assert response.get_json()['ok'] is False


def test_complete_and_notify_unknown_inspection(client, supervisor):
    login_user(client, supervisor.username)

    response = client.post('/api/inspections/complete-and-notify', json={'inspectionId': 424242})
    assert response.status_code == 404


def test_complete_twice_conflicts(client, supervisor, inspection):
    login_user(client, supervisor.username)
    client.post('/api/inspections/complete-and-notify', json={'inspectionId': inspection.id})

    response = client.post('/api/inspections/complete-and-notify', json={'inspectionId': inspection.id})
    assert response.status_code == 409
    assert response.get_json()['ok'] is False

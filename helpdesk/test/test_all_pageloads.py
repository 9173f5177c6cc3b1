"""
Page load tests
Every page renders for an administrator once there is data to show
"""
import pytest

from helpdesk.buisness.assets.context import AssetContext
from helpdesk.buisness.disposals.context import create_disposal_request
from helpdesk.buisness.inspections.context import InspectionContext
from helpdesk.buisness.tickets.context import TicketContext
from helpdesk.data.inspections.inspection import Inspection
from helpdesk.data.tickets.ticket import Ticket, TicketComment
from helpdesk.test.conftest import login_user


@pytest.fixture
def seeded(admin, supervisor, agent, requester, location):
    """One of everything, so list and detail pages have rows to render"""
    asset = AssetContext.create(supervisor, {
        'asset_tag': 'IT-0001', 'asset_type': 'Laptop', 'location_id': location.id,
        'assigned_to_id': requester.id,
    }).asset
    ticket_context = TicketContext.create(requester, 'Laptop slow', 'Takes minutes to boot', asset_id=asset.id)
    ticket_context.change_status(agent, Ticket.ASSIGNED, assigned_agent_id=agent.id)
    ticket_context.add_comment(agent, 'Checking the disk', TicketComment.INTERNAL)
    create_disposal_request(supervisor, asset.id, 'Screen cracked beyond economic repair')
    inspection = InspectionContext.create(supervisor, Inspection.MARKETING, location.id).inspection
    return {
        'asset': asset,
        'ticket': ticket_context.ticket,
        'inspection': inspection,
        'location': location,
        'requester': requester,
    }


def page_urls(seeded):
    asset_id = seeded['asset'].id
    return [
        '/dashboard',
        '/tickets/',
        '/tickets/?view=mine',
        '/tickets/?view=queue&status=ASSIGNED&search=laptop',
        '/tickets/new',
        f"/tickets/{seeded['ticket'].id}",
        '/tickets/export.csv',
        '/assets/',
        '/assets/?status=OPERATIONAL',
        '/assets/create',
        f'/assets/{asset_id}',
        f'/assets/{asset_id}/edit',
        '/disposals/',
        '/inspections/',
        f"/inspections/?location={seeded['location'].id}",
        '/inspections/new',
        f"/inspections/{seeded['inspection'].id}",
        '/notifications/',
        '/admin/users',
        '/admin/users/create',
        f"/admin/users/{seeded['requester'].id}/edit",
        '/admin/asset-types',
        '/admin/login-audits',
        '/admin/locations',
        '/reports/',
        '/reports/disposals',
        '/reports/asset-changes',
        '/reports/asset-inventory',
        f"/reports/asset-inventory?location={seeded['location'].id}&category=IT&status=OPERATIONAL",
    ]


def check_all_routes(client, urls):
    """GET each url; returns the failures as {url: status_code}"""
    failed = {}
    for url in urls:
        response = client.get(url)
        if response.status_code != 200:
            failed[url] = response.status_code
    return failed


def test_all_pages_load_for_admin(client, admin, seeded):
    login_user(client, admin.username)
    assert check_all_routes(client, page_urls(seeded)) == {}


def test_supervisor_pages_load(client, supervisor, seeded):
    login_user(client, supervisor.username)
    urls = [url for url in page_urls(seeded) if not url.startswith('/admin')]
    assert check_all_routes(client, urls) == {}


def test_requester_pages_load(client, requester, seeded):
    login_user(client, requester.username)
    urls = ['/tickets/', '/tickets/new', f"/tickets/{seeded['ticket'].id}", '/notifications/']
    assert check_all_routes(client, urls) == {}


def test_home_redirects_to_dashboard(client, admin):
    login_user(client, admin.username)
    response = client.get('/')
    assert response.status_code == 302
    assert response.headers['Location'].endswith('/dashboard')


def test_missing_pages(client, admin):
    login_user(client, admin.username)
    assert client.get('/tickets/999999').status_code == 404
    assert client.get('/assets/999999').status_code == 404
    assert client.get('/no-such-page').status_code == 404

"""
Asset disposal workflow: request, approve, reject and who gets notified
"""
import pytest

from helpdesk.buisness.assets.context import AssetContext
from helpdesk.buisness.core.errors import (
    ConflictError, PermissionDeniedError, TransitionError, ValidationError,
)
from helpdesk.buisness.disposals.context import (
    approve_disposal_request, create_disposal_request, reject_disposal_request,
)
from helpdesk.buisness.disposals.recipients import RESPONSIBLE, get_notification_recipients
from helpdesk.data.assets.asset import Asset
from helpdesk.data.assets.asset_change import AssetChange
from helpdesk.data.assets.disposal_request import DisposalRequest
from helpdesk.data.notifications.notification import Notification

REASON = 'Motherboard failure, repair costs exceed value'


@pytest.fixture
def asset(admin, location, requester):
    return AssetContext.create(admin, {
        'asset_tag': 'IT-0100',
        'asset_type': 'Desktop',
        'location_id': location.id,
        'assigned_to_id': requester.id,
    }).asset


def test_request_disposal(supervisor, asset):
    disposal = create_disposal_request(supervisor, asset.id, REASON)

    assert disposal.status == DisposalRequest.PENDING
    assert disposal.requested_by_id == supervisor.id
    assert disposal.asset_snapshot['asset_tag'] == 'IT-0100'
    assert disposal.notification_sent_at is None


def test_reason_must_be_long_enough(supervisor, asset):
    with pytest.raises(ValidationError):
        create_disposal_request(supervisor, asset.id, 'Broken')


def test_agents_cannot_request(agent, asset):
    with pytest.raises(PermissionDeniedError):
        create_disposal_request(agent, asset.id, REASON)


def test_only_one_pending_request(supervisor, asset):
    create_disposal_request(supervisor, asset.id, REASON)
    with pytest.raises(ConflictError):
        create_disposal_request(supervisor, asset.id, REASON)


def test_request_notifies_admins_in_app(supervisor, admin, asset):
    create_disposal_request(supervisor, asset.id, REASON)
    notifications = Notification.query.filter_by(type=Notification.DISPOSAL_REQUESTED).all()
    assert [n.user_id for n in notifications] == [admin.id]
    assert 'IT-0100' in notifications[0].title


def test_recipients_order_and_roles(supervisor, admin, requester, asset, make_user, other_location):
    make_user('supervisor2', 'supervisor', locations=[other_location])
    recipients = get_notification_recipients(asset, supervisor.id)

    assert [(r.email, r.role) for r in recipients] == [
        (admin.email, 'admin'),
        (supervisor.email, 'supervisor'),
        (requester.email, RESPONSIBLE),
    ]


def test_recipients_skip_assigned_requester(supervisor, admin, asset, db):
    asset.assigned_to_id = supervisor.id
    db.session.commit()
    recipients = get_notification_recipients(asset, supervisor.id)
    assert [r.role for r in recipients] == ['admin', 'supervisor']


def test_recipients_deduplicate_by_email(supervisor, admin, asset, make_user, location):
    make_user('admin-alias', 'supervisor', locations=[location], email=admin.email.upper())
    recipients = get_notification_recipients(asset, supervisor.id)
    assert [r.email.lower() for r in recipients].count(admin.email) == 1


def test_request_emails_every_recipient(supervisor, admin, requester, asset, outbox):
    disposal = create_disposal_request(supervisor, asset.id, REASON)

    assert sorted(m['To'] for m in outbox) == sorted([admin.email, supervisor.email, requester.email])
    admin_mail = next(m for m in outbox if m['To'] == admin.email)
    assert 'Authorisation required' in admin_mail['Subject']
    assert disposal.notification_sent_at is not None


def test_request_outside_own_locations_is_denied(admin, make_user, location, other_location):
    remote = AssetContext.create(admin, {'asset_tag': 'GDL-1', 'asset_type': 'Laptop',
                                         'location_id': other_location.id}).asset
    hq_supervisor = make_user('hqsup', 'supervisor', locations=[location])

    with pytest.raises(PermissionDeniedError):
        create_disposal_request(hq_supervisor, remote.id, REASON)
    assert DisposalRequest.query.count() == 0


def test_approve_disposes_asset(supervisor, admin, asset):
    disposal = create_disposal_request(supervisor, asset.id, REASON)
    approve_disposal_request(admin, disposal.id, 'Approved by IT')

    assert disposal.status == DisposalRequest.APPROVED
    assert disposal.reviewed_by_id == admin.id
    assert asset.status == Asset.DISPOSED

    change = AssetChange.query.filter_by(asset_id=asset.id, change_type=AssetChange.DISPOSED).one()
    assert change.old_value == Asset.OPERATIONAL
    assert change.reason == REASON

    with pytest.raises(ConflictError):
        create_disposal_request(supervisor, asset.id, REASON)


def test_supervisor_cannot_review(supervisor, asset):
    disposal = create_disposal_request(supervisor, asset.id, REASON)
    with pytest.raises(PermissionDeniedError):
        approve_disposal_request(supervisor, disposal.id)


def test_reject_requires_notes(supervisor, admin, asset):
    disposal = create_disposal_request(supervisor, asset.id, REASON)
    with pytest.raises(ValidationError):
        reject_disposal_request(admin, disposal.id, ' ')

    reject_disposal_request(admin, disposal.id, 'Send it to repair first')
    assert disposal.status == DisposalRequest.REJECTED
    assert asset.status == Asset.OPERATIONAL


def test_reviewed_requests_are_final(supervisor, admin, asset):
    disposal = create_disposal_request(supervisor, asset.id, REASON)
    reject_disposal_request(admin, disposal.id, 'Send it to repair first')
    with pytest.raises(TransitionError):
        approve_disposal_request(admin, disposal.id)


def test_rejection_emails_requester(supervisor, admin, asset, outbox):
    disposal = create_disposal_request(supervisor, asset.id, REASON)
    outbox.clear()

    reject_disposal_request(admin, disposal.id, 'Send it to repair first')
    assert [m['To'] for m in outbox] == [supervisor.email]


def test_approval_emails_every_recipient(supervisor, admin, requester, asset, outbox):
    disposal = create_disposal_request(supervisor, asset.id, REASON)
    outbox.clear()

    approve_disposal_request(admin, disposal.id, 'Approved by IT')

    expected = [r.email for r in get_notification_recipients(asset, admin.id)]
    assert sorted(expected) == sorted([admin.email, supervisor.email, requester.email])
    assert sorted(m['To'] for m in outbox) == sorted(expected)
    assert all('Disposal approved: IT-0100' in m['Subject'] for m in outbox)

"""
Asset creation, editing and the field-level change history
"""
import pytest

from helpdesk.buisness.assets.context import AssetContext
from helpdesk.buisness.core.errors import (
    ConflictError, PermissionDeniedError, ValidationError,
)
from helpdesk.data.assets.asset import Asset
from helpdesk.data.assets.asset_change import AssetChange


def new_asset(actor, **data):
    data.setdefault('asset_tag', 'it-0001')
    data.setdefault('asset_type', 'Laptop')
    return AssetContext.create(actor, data)


def test_create_asset(supervisor, location):
    context = new_asset(supervisor, brand=' Dell ', location_id=str(location.id), purchase_date='2024-02-01')
    asset = context.asset

    assert asset.asset_tag == 'IT-0001'
    assert asset.brand == 'Dell'
    assert asset.status == Asset.OPERATIONAL
    assert asset.location_id == location.id
    assert asset.purchase_date.isoformat() == '2024-02-01'

    history = context.change_history()
    assert len(history) == 1
    assert history[0].change_type == AssetChange.CREATED
    assert history[0].new_value == 'IT-0001'


def test_duplicate_tag_conflicts(supervisor):
    new_asset(supervisor)
    with pytest.raises(ConflictError):
        new_asset(supervisor, asset_tag='IT-0001')


def test_agents_cannot_create_assets(agent):
    with pytest.raises(PermissionDeniedError):
        new_asset(agent)


@pytest.mark.parametrize('data', [
    {'asset_tag': ''},
    {'asset_type': ''},
    {'status': Asset.DISPOSED},
    {'category': 'FURNITURE'},
    {'purchase_date': '01/02/2024'},
])
def test_create_validation(supervisor, data):
    with pytest.raises(ValidationError):
        new_asset(supervisor, **data)


def test_edit_writes_history_for_tracked_fields(supervisor, requester):
    context = new_asset(supervisor)
    changes = context.edit(supervisor, {
        'status': Asset.MAINTENANCE,
        'assigned_to_id': requester.id,
        'brand': 'Lenovo',
    })

    assert sorted(c.field_name for c in changes) == ['assigned_to_id', 'status']
    by_field = {c.field_name: c for c in changes}
    assert by_field['status'].old_value == Asset.OPERATIONAL
    assert by_field['status'].new_value == Asset.MAINTENANCE
    assert by_field['assigned_to_id'].new_value == requester.display_name
    assert context.asset.brand == 'Lenovo'


def test_unchanged_values_write_nothing(supervisor):
    context = new_asset(supervisor, notes='Spare unit')
    assert context.edit(supervisor, {'notes': 'Spare unit'}) == []


def test_moving_location_requires_reason(supervisor, location, other_location):
    supervisor.locations.append(other_location)
    context = new_asset(supervisor, location_id=location.id)

    with pytest.raises(ValidationError):
        context.edit(supervisor, {'location_id': other_location.id})

    changes = context.edit(supervisor, {'location_id': other_location.id}, reason='Sent to the new office')
    assert len(changes) == 1
    assert changes[0].old_value == location.name
    assert changes[0].new_value == other_location.name
    assert changes[0].reason == 'Sent to the new office'


def test_disposed_assets_cannot_be_edited(supervisor, db):
    context = new_asset(supervisor)
    context.asset.status = Asset.DISPOSED
    db.session.commit()

    with pytest.raises(ConflictError):
        context.edit(supervisor, {'notes': 'Back in use'})


def test_snapshot(supervisor, location):
    asset = new_asset(supervisor, location_id=location.id, model='T14').asset
    snapshot = asset.snapshot()
    assert snapshot['asset_tag'] == 'IT-0001'
    assert snapshot['model'] == 'T14'
    assert snapshot['location'] == location.name


def test_assets_stay_within_own_locations(supervisor, location, other_location):
    with pytest.raises(PermissionDeniedError):
        new_asset(supervisor, location_id=other_location.id)

    context = new_asset(supervisor, location_id=location.id)
    with pytest.raises(PermissionDeniedError):
        context.edit(supervisor, {'location_id': other_location.id}, reason='Sent to the new office')
    assert context.asset.location_id == location.id
    assert len(context.change_history()) == 1

"""
Asset type catalogue and its JSON endpoints
"""
import pytest

from helpdesk.buisness.assets.asset_types import create_asset_type, list_asset_types, normalize_value
from helpdesk.buisness.core.errors import ConflictError, PermissionDeniedError, ValidationError
from helpdesk.data.assets.asset_type import AssetType
from helpdesk.test.conftest import login_user


@pytest.fixture
def catalogue(db, admin):
    create_asset_type(admin, {'label': 'Monitor', 'category': 'IT', 'sort_order': 20})
    create_asset_type(admin, {'label': 'Laptop', 'category': 'IT', 'sort_order': 10})
    create_asset_type(admin, {'label': 'Aire acondicionado', 'category': 'MAINTENANCE'})
    retired = create_asset_type(admin, {'label': 'Fax', 'category': 'IT', 'sort_order': 5})
    retired.is_active = False
    db.session.commit()


def test_normalize_value():
    assert normalize_value(' Aire  acondicionado ') == 'AIRE_ACONDICIONADO'
    assert normalize_value('laptop') == 'LAPTOP'
    assert normalize_value(None) == ''


def test_create_asset_type(admin):
    asset_type = create_asset_type(admin, {'label': ' Water pump ', 'category': 'maintenance'})

    assert asset_type.value == 'WATER_PUMP'
    assert asset_type.label == 'Water pump'
    assert asset_type.category == 'MAINTENANCE'
    assert asset_type.sort_order == 100
    assert asset_type.is_active
    assert asset_type.created_by_id == admin.id


def test_explicit_value_wins_over_label(admin):
    asset_type = create_asset_type(admin, {'value': 'ups', 'label': 'Uninterruptible power supply',
                                           'category': 'IT', 'sort_order': '7'})
    assert asset_type.value == 'UPS'
    assert asset_type.sort_order == 7


def test_only_admins_manage_types(supervisor):
    with pytest.raises(PermissionDeniedError):
        create_asset_type(supervisor, {'label': 'Laptop', 'category': 'IT'})


@pytest.mark.parametrize('data', [
    {'category': 'IT'},
    {'label': 'Laptop'},
    {'label': 'Laptop', 'category': 'FACILITIES'},
    {'label': 'Laptop', 'category': 'IT', 'sort_order': 'first'},
])
def test_invalid_types_are_rejected(admin, data):
    with pytest.raises(ValidationError):
        create_asset_type(admin, data)


def test_duplicate_value_conflicts(admin):
    create_asset_type(admin, {'label': 'Laptop', 'category': 'IT'})
    with pytest.raises(ConflictError):
        create_asset_type(admin, {'value': 'laptop', 'label': 'Notebook', 'category': 'IT'})


def test_list_orders_and_filters(catalogue):
    assert [t.value for t in list_asset_types()] == ['LAPTOP', 'MONITOR', 'AIRE_ACONDICIONADO']
    assert [t.value for t in list_asset_types('MAINTENANCE')] == ['AIRE_ACONDICIONADO']
    assert 'FAX' in [t.value for t in list_asset_types(include_inactive=True)]


def test_api_lists_active_types(client, requester, catalogue):
    login_user(client, requester.username)

    data = client.get('/api/asset-types').get_json()
    assert [t['value'] for t in data['assetTypes']] == ['LAPTOP', 'MONITOR', 'AIRE_ACONDICIONADO']

    data = client.get('/api/asset-types?category=it').get_json()
    assert [t['value'] for t in data['assetTypes']] == ['LAPTOP', 'MONITOR']


def test_api_create(client, admin):
    login_user(client, admin.username)

    response = client.post('/api/asset-types', json={'label': 'Router', 'category': 'IT'})
    assert response.status_code == 201
    assert response.get_json()['assetType']['value'] == 'ROUTER'

    response = client.post('/api/asset-types', json={'label': 'router', 'category': 'IT'})
    assert response.status_code == 409
    assert response.get_json()['ok'] is False


def test_api_create_requires_admin(client, supervisor):
    login_user(client, supervisor.username)
    response = client.post('/api/asset-types', json={'label': 'Router', 'category': 'IT'})
    assert response.status_code == 403
    assert AssetType.query.count() == 0


def test_admin_page_creates_type(client, admin, supervisor):
    login_user(client, admin.username)
    response = client.post('/admin/asset-types', data={'label': 'Projector', 'category': 'IT'})
    assert response.status_code == 302
    assert AssetType.query.filter_by(value='PROJECTOR').count() == 1
    assert b'PROJECTOR' in client.get('/admin/asset-types').data

    client.get('/logout')
    login_user(client, supervisor.username)
    assert client.get('/admin/asset-types').status_code == 403


def test_asset_form_suggests_types(client, supervisor, catalogue):
    login_user(client, supervisor.username)
    response = client.get('/assets/create')
    assert b'<datalist id="asset-type-options">' in response.data
    assert b'value="AIRE_ACONDICIONADO"' in response.data
    assert b'value="FAX"' not in response.data

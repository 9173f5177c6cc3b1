"""
Asset type catalogue.

Types are suggestions for the free-text ``Asset.asset_type`` column; values
are stored upper-case with spaces replaced by underscores ("Aire
acondicionado" -> AIRE_ACONDICIONADO).
"""

import re
from typing import List, Mapping, Optional

from helpdesk import db
from helpdesk.data.assets.asset import Asset
from helpdesk.data.assets.asset_type import AssetType
from helpdesk.data.core.user_info.user import User
from helpdesk.buisness.core.errors import ConflictError, PermissionDeniedError, ValidationError
from helpdesk.buisness.core import permissions
from helpdesk.logger import get_logger

logger = get_logger("helpdesk.assets.types")

DEFAULT_SORT_ORDER = 100


def normalize_value(value: str) -> str:
    return re.sub(r'\s+', '_', (value or '').strip()).upper()


def list_asset_types(category: Optional[str] = None, include_inactive: bool = False) -> List[AssetType]:
    query = AssetType.query
    if not include_inactive:
        query = query.filter(AssetType.is_active.is_(True))
    if category:
        query = query.filter(AssetType.category == category)
    return query.order_by(AssetType.sort_order, AssetType.label).all()


def create_asset_type(actor: User, data: Mapping) -> AssetType:
    if not permissions.has_permission(actor, 'manage_asset_types'):
        raise PermissionDeniedError("Only administrators can manage asset types")

    value = normalize_value(data.get('value') or data.get('label'))
    label = (data.get('label') or '').strip()
    category = (data.get('category') or '').strip().upper()
    if not value or not label or not category:
        raise ValidationError("Value, label and category are required")
    if category not in Asset.CATEGORIES:
        raise ValidationError(f"Unknown category: {category}")

    sort_order = data.get('sort_order')
    try:
        sort_order = DEFAULT_SORT_ORDER if sort_order in (None, '') else int(sort_order)
    except (TypeError, ValueError):
        raise ValidationError("Sort order must be a whole number")

    if AssetType.query.filter_by(value=value).first():
        raise ConflictError(f"Asset type {value} already exists")

    asset_type = AssetType(
        value=value,
        label=label,
        category=category,
        sort_order=sort_order,
        is_active=True,
        created_by_id=actor.id,
        updated_by_id=actor.id,
    )
    db.session.add(asset_type)
    db.session.commit()
    logger.info(f"Asset type {value} ({category}) created by {actor.username}")
    return asset_type

"""
Asset Context
Creation and editing of inventory assets with a field-level change history.

Tracked fields (location, status, assigned user, notes) write one
AssetChange row per changed field. Moving an asset between locations
requires a reason.
"""

from datetime import date, datetime
from typing import Any, Dict, List, Union

from helpdesk import db
from helpdesk.data.assets.asset import Asset
from helpdesk.data.assets.asset_change import AssetChange
from helpdesk.data.assets.disposal_request import DisposalRequest
from helpdesk.data.core.location import Location
from helpdesk.data.core.user_info.user import User
from helpdesk.data.tickets.ticket import Ticket
from helpdesk.buisness.core.errors import (
    ConflictError, NotFoundError, PermissionDeniedError, ValidationError,
)
from helpdesk.buisness.core import permissions
from helpdesk.buisness.core.location_scope import can_access_location
from helpdesk.logger import get_logger

logger = get_logger("helpdesk.assets")

TRACKED_FIELDS = ('location_id', 'status', 'assigned_to_id', 'notes')

EDITABLE_FIELDS = (
    'asset_type', 'brand', 'model', 'serial_number', 'status', 'category', 'department',
    'location_id', 'assigned_to_id', 'purchase_date', 'warranty_expires', 'notes',
)


def _parse_date(value) -> Union[date, None]:
    if value in (None, ''):
        return None
    if isinstance(value, date):
        return value
    try:
        return datetime.strptime(str(value), '%Y-%m-%d').date()
    except ValueError:
        raise ValidationError(f"Invalid date: {value} (expected YYYY-MM-DD)")


def _parse_id(value):
    if value in (None, ''):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"Invalid id: {value}")


def _check_location(actor: User, location_id) -> None:
    if location_id and not can_access_location(actor, location_id):
        raise PermissionDeniedError("You do not have access to that location")


def _display(field: str, value) -> Union[str, None]:
    """Human readable value for the change history"""
    if value is None:
        return None
    if field == 'location_id':
        location = db.session.get(Location, value)
        return location.name if location else str(value)
    if field == 'assigned_to_id':
        user = db.session.get(User, value)
        return user.display_name if user else str(value)
    return str(value)


class AssetContext:

    def __init__(self, asset: Union[Asset, int]):
        if isinstance(asset, int):
            found = db.session.get(Asset, asset)
            if found is None or found.deleted_at is not None:
                raise NotFoundError(f"Asset {asset} not found")
            asset = found
        self._asset = asset

    @property
    def asset(self) -> Asset:
        return self._asset

    @property
    def asset_id(self) -> int:
        return self._asset.id

    @staticmethod
    def _clean(data: Dict[str, Any]) -> Dict[str, Any]:
        cleaned = {}
        for key in EDITABLE_FIELDS:
            if key not in data:
                continue
            value = data[key]
            if key in ('location_id', 'assigned_to_id'):
                value = _parse_id(value)
            elif key in ('purchase_date', 'warranty_expires'):
                value = _parse_date(value)
            elif isinstance(value, str):
                value = value.strip() or None
            cleaned[key] = value

        # Blank values for required columns mean "leave unchanged"
        for key in ('asset_type', 'status', 'category'):
            if key in cleaned and cleaned[key] is None:
                del cleaned[key]

        status = cleaned.get('status')
        if status is not None and status not in Asset.EDITABLE_STATUSES:
            raise ValidationError(f"Status '{status}' cannot be set directly")
        category = cleaned.get('category')
        if category is not None and category not in Asset.CATEGORIES:
            raise ValidationError(f"Unknown category: {category}")
        if cleaned.get('location_id') and db.session.get(Location, cleaned['location_id']) is None:
            raise ValidationError("Selected location does not exist")
        if cleaned.get('assigned_to_id') and db.session.get(User, cleaned['assigned_to_id']) is None:
            raise ValidationError("Selected user does not exist")
        return cleaned

    @classmethod
    def create(cls, actor: User, data: Dict[str, Any]) -> 'AssetContext':
        if not permissions.can_manage_assets(actor):
            raise PermissionDeniedError("You do not have permission to create assets")

        asset_tag = (data.get('asset_tag') or '').strip().upper()
        if not asset_tag:
            raise ValidationError("Asset tag is required")
        if not (data.get('asset_type') or '').strip():
            raise ValidationError("Asset type is required")
        if Asset.query.filter_by(asset_tag=asset_tag).first():
            raise ConflictError(f"Asset tag {asset_tag} already exists")

        fields = cls._clean(data)
        _check_location(actor, fields.get('location_id'))
        fields.setdefault('status', Asset.OPERATIONAL)
        fields.setdefault('category', actor.asset_category or 'IT')

        asset = Asset(asset_tag=asset_tag, created_by_id=actor.id, updated_by_id=actor.id, **fields)
        db.session.add(asset)
        db.session.flush()

        AssetChange.record(asset, None, None, asset_tag, actor.id, change_type=AssetChange.CREATED)
        db.session.commit()
        logger.info(f"Asset {asset_tag} created by {actor.username}", extra={"asset_id": asset.id})
        return cls(asset)

    def edit(self, actor: User, data: Dict[str, Any], reason: str = None) -> List[AssetChange]:
        """
        Apply edits and write history rows for tracked fields.

        Returns the change rows written (empty when nothing tracked changed).
        """
        if not permissions.can_manage_assets(actor):
            raise PermissionDeniedError("You do not have permission to edit assets")

        asset = self._asset
        if asset.is_disposed:
            raise ConflictError("Disposed assets cannot be edited")

        fields = self._clean(data)
        _check_location(actor, fields.get('location_id'))
        reason = (reason or '').strip() or None

        if 'location_id' in fields and fields['location_id'] != asset.location_id and not reason:
            raise ValidationError("A reason is required to move an asset to another location")

        changes = []
        for key, new_value in fields.items():
            old_value = getattr(asset, key)
            if old_value == new_value:
                continue
            if key in TRACKED_FIELDS:
                changes.append(AssetChange.record(
                    asset, key, _display(key, old_value), _display(key, new_value), actor.id,
                    reason=reason,
                ))
            setattr(asset, key, new_value)

        asset.stamp(actor)
        db.session.commit()
        logger.info(f"Asset {asset.asset_tag} edited by {actor.username}: {len(changes)} tracked change(s)", extra={"asset_id": asset.id})
        return changes

    def related_tickets(self, limit: int = None) -> List[Ticket]:
        query = Ticket.active().filter(Ticket.asset_id == self._asset.id).order_by(Ticket.created_at.desc())
        if limit:
            query = query.limit(limit)
        return query.all()

    def change_history(self, limit: int = None) -> List[AssetChange]:
        query = AssetChange.query.filter_by(asset_id=self._asset.id).order_by(
            AssetChange.changed_at.desc(), AssetChange.id.desc()
        )
        if limit:
            query = query.limit(limit)
        return query.all()

    def pending_disposal(self) -> Union[DisposalRequest, None]:
        return DisposalRequest.query.filter_by(
            asset_id=self._asset.id, status=DisposalRequest.PENDING
        ).first()

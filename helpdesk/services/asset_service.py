"""
Asset Service
Presentation service for asset lists and statistics.
"""

from typing import Dict, List, Mapping

from flask_sqlalchemy.pagination import Pagination

from helpdesk import db
from helpdesk.data.assets.asset import Asset
from helpdesk.data.assets.disposal_request import DisposalRequest
from helpdesk.data.core.location import Location
from helpdesk.buisness.core.location_scope import apply_location_filter, get_location_filter


class AssetService:
    """
    Service for asset presentation data.

    Non-admin users only see assets in their locations.
    """

    @staticmethod
    def scoped_assets(user):
        query = Asset.query.filter(Asset.deleted_at.is_(None))
        return apply_location_filter(query, Asset.location_id, get_location_filter(user))

    @staticmethod
    def build_filtered_query(user, args: Mapping):
        """
        Supported args: status, type, category, location, search (tag,
        serial, brand, model).
        """
        query = AssetService.scoped_assets(user)

        status = (args.get('status') or '').strip()
        if status in Asset.STATUSES:
            query = query.filter(Asset.status == status)

        asset_type = (args.get('type') or '').strip()
        if asset_type:
            query = query.filter(Asset.asset_type == asset_type)

        category = (args.get('category') or '').strip()
        if category in Asset.CATEGORIES:
            query = query.filter(Asset.category == category)

        location = (args.get('location') or '').strip()
        if location.isdigit():
            query = query.filter(Asset.location_id == int(location))

        search = (args.get('search') or '').strip()
        if search:
            like = f'%{search}%'
            query = query.filter(db.or_(
                Asset.asset_tag.ilike(like),
                Asset.serial_number.ilike(like),
                Asset.brand.ilike(like),
                Asset.model.ilike(like),
            ))

        return query.order_by(Asset.asset_tag)

    @staticmethod
    def get_list_data(user, args: Mapping, page: int = 1, per_page: int = 25) -> Pagination:
        query = AssetService.build_filtered_query(user, args)
        return query.paginate(page=page, per_page=per_page, error_out=False)

    @staticmethod
    def get_stats(user) -> Dict[str, int]:
        """Asset count per status (every status present, zero-filled) plus total."""
        rows = dict(
            AssetService.scoped_assets(user)
            .with_entities(Asset.status, db.func.count(Asset.id))
            .group_by(Asset.status)
            .all()
        )
        stats = {status: rows.get(status, 0) for status in Asset.STATUSES}
        stats['total'] = sum(rows.values())
        return stats

    @staticmethod
    def asset_types(user) -> List[str]:
        rows = (
            AssetService.scoped_assets(user)
            .with_entities(Asset.asset_type)
            .distinct()
            .order_by(Asset.asset_type)
            .all()
        )
        return [row[0] for row in rows]

    @staticmethod
    def accessible_locations(user) -> List[Location]:
        query = Location.query.filter_by(is_active=True)
        query = apply_location_filter(query, Location.id, get_location_filter(user))
        return query.order_by(Location.name).all()

    @staticmethod
    def pending_disposal_ids(asset_ids: List[int]) -> set:
        if not asset_ids:
            return set()
        rows = (
            DisposalRequest.query
            .filter(DisposalRequest.asset_id.in_(asset_ids), DisposalRequest.status == DisposalRequest.PENDING)
            .with_entities(DisposalRequest.asset_id)
            .all()
        )
        return {row[0] for row in rows}

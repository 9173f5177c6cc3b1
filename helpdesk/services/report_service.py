"""
Report Service
Disposal history, asset change history and the asset inventory, all scoped
by location.
"""

from collections import Counter
from typing import Dict, List, Mapping, Optional

from helpdesk import db
from helpdesk.data.assets.asset import Asset
from helpdesk.data.assets.asset_change import AssetChange
from helpdesk.data.assets.disposal_request import DisposalRequest
from helpdesk.buisness.core.location_scope import apply_location_filter, get_location_filter

HISTORY_LIMIT = 500
NO_LOCATION = 'No location'


class ReportService:

    @staticmethod
    def disposal_requests(user, status: Optional[str] = None) -> List[DisposalRequest]:
        query = DisposalRequest.query.join(Asset, DisposalRequest.asset_id == Asset.id)
        query = apply_location_filter(query, Asset.location_id, get_location_filter(user))
        if status in DisposalRequest.STATUSES:
            query = query.filter(DisposalRequest.status == status)
        return query.order_by(DisposalRequest.requested_at.desc(), DisposalRequest.id.desc()).all()

    @staticmethod
    def disposal_counts(user) -> Dict[str, int]:
        query = DisposalRequest.query.join(Asset, DisposalRequest.asset_id == Asset.id)
        query = apply_location_filter(query, Asset.location_id, get_location_filter(user))
        rows = dict(
            query.with_entities(DisposalRequest.status, db.func.count(DisposalRequest.id))
            .group_by(DisposalRequest.status)
            .all()
        )
        return {status: rows.get(status, 0) for status in DisposalRequest.STATUSES}

    @staticmethod
    def asset_changes(user, args: Mapping) -> List[AssetChange]:
        """Newest first; filterable by asset tag, change type and field."""
        query = AssetChange.query.join(Asset, AssetChange.asset_id == Asset.id)
        query = apply_location_filter(query, Asset.location_id, get_location_filter(user))

        tag = (args.get('asset_tag') or '').strip()
        if tag:
            query = query.filter(AssetChange.asset_tag.ilike(f'%{tag}%'))
        change_type = args.get('change_type')
        if change_type in (AssetChange.CREATED, AssetChange.UPDATED, AssetChange.DISPOSED):
            query = query.filter(AssetChange.change_type == change_type)
        field = (args.get('field') or '').strip()
        if field:
            query = query.filter(AssetChange.field_name == field)

        return (
            query.order_by(AssetChange.changed_at.desc(), AssetChange.id.desc())
            .limit(HISTORY_LIMIT)
            .all()
        )

    @staticmethod
    def asset_inventory(user, args: Mapping) -> Dict:
        """
        assets:      non-deleted assets in the user's locations, by tag
        by_location: [(location name, count)], "No location" for unplaced assets
        by_category: {category: count}
        by_status:   {status: count}
        """
        query = Asset.query.filter(Asset.deleted_at.is_(None))
        query = apply_location_filter(query, Asset.location_id, get_location_filter(user))

        location = (args.get('location') or '').strip()
        if location.isdigit():
            query = query.filter(Asset.location_id == int(location))
        category = args.get('category')
        if category in Asset.CATEGORIES:
            query = query.filter(Asset.category == category)
        status = args.get('status')
        if status in Asset.STATUSES:
            query = query.filter(Asset.status == status)

        assets = query.order_by(Asset.asset_tag).all()

        by_location = Counter(a.location.name if a.location else NO_LOCATION for a in assets)
        return {
            'assets': assets,
            'total': len(assets),
            'by_location': sorted(by_location.items(), key=lambda item: (-item[1], item[0])),
            'by_category': dict(Counter(a.category for a in assets)),
            'by_status': dict(Counter(a.status for a in assets)),
        }

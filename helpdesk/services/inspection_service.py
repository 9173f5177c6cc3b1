"""
Inspection Service
Presentation service for inspection lists, per-location statistics and
score trends.
"""

from typing import Dict, List, Mapping, Optional

from helpdesk.data.inspections.inspection import Inspection
from helpdesk.buisness.core.location_scope import apply_location_filter, get_location_filter
from helpdesk.buisness.inspections.scoring import round_half_up

RECENT_LIMIT = 5
TREND_LIMIT = 6


def _score_100(average: Optional[float]) -> int:
    """Area scores are 0-10; pages show them as 0-100."""
    return int(round_half_up((average or 0) * 10))


class InspectionService:

    @staticmethod
    def scoped_inspections(user, department: Optional[str] = None):
        query = apply_location_filter(Inspection.query, Inspection.location_id, get_location_filter(user))
        if department:
            query = query.filter(Inspection.department == department)
        return query

    @staticmethod
    def list_inspections(user, args: Mapping) -> List[Inspection]:
        department = args.get('department') if args.get('department') in Inspection.DEPARTMENTS else None
        query = InspectionService.scoped_inspections(user, department)

        status = args.get('status')
        if status in Inspection.STATUSES:
            query = query.filter(Inspection.status == status)
        location = (args.get('location') or '').strip()
        if location.isdigit():
            query = query.filter(Inspection.location_id == int(location))

        return query.order_by(Inspection.inspection_date.desc(), Inspection.id.desc()).all()

    @staticmethod
    def location_stats(location_id: int, department: Optional[str] = None) -> Dict:
        """
        total:            every inspection at the location
        pending_approval: completed, waiting for review
        average_score:    mean of completed + approved averages, as 0-100
        recent:           the five latest by inspection date
        """
        query = Inspection.query.filter(Inspection.location_id == location_id)
        if department:
            query = query.filter(Inspection.department == department)

        inspections = query.order_by(Inspection.inspection_date.desc(), Inspection.id.desc()).all()
        scored = [i.average_score or 0 for i in inspections
                  if i.status in (Inspection.COMPLETED, Inspection.APPROVED)]

        return {
            'total': len(inspections),
            'pending_approval': sum(1 for i in inspections if i.status == Inspection.COMPLETED),
            'average_score': _score_100(sum(scored) / len(scored)) if scored else 0,
            'recent': inspections[:RECENT_LIMIT],
        }

    @staticmethod
    def score_trend(location_id: int, department: Optional[str] = None, limit: int = TREND_LIMIT) -> List[Dict]:
        """The last `limit` completed inspections, oldest first, scores as 0-100."""
        query = Inspection.query.filter(
            Inspection.location_id == location_id,
            Inspection.status == Inspection.COMPLETED,
        )
        if department:
            query = query.filter(Inspection.department == department)

        latest = query.order_by(Inspection.inspection_date.desc(), Inspection.id.desc()).limit(limit).all()
        return [
            {'date': i.inspection_date.isoformat(), 'score': _score_100(i.average_score)}
            for i in reversed(latest)
        ]

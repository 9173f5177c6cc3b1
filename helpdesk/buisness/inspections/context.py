"""
Inspection Context
Lifecycle of a department inspection: draft → completed → approved | rejected.

Items can only be edited while the inspection is a draft. Every save
recomputes the inspection and area metrics.
"""

from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Dict, Optional, Union

from helpdesk import db
from helpdesk.data.core.location import Location
from helpdesk.data.core.user_info.user import User
from helpdesk.data.inspections.inspection import Inspection, InspectionArea, InspectionItem
from helpdesk.buisness.core.errors import (
    NotFoundError, PermissionDeniedError, ValidationError,
)
from helpdesk.buisness.core import permissions
from helpdesk.buisness.core.location_scope import can_access_location
from helpdesk.buisness.core.state_machine import StateMachine
from helpdesk.buisness.inspections.scoring import (
    CRITICAL_THRESHOLD, area_score, compute_metrics, find_critical_items, round_half_up,
)
from helpdesk.buisness.inspections.templates import get_template
from helpdesk.buisness.notifications.inspection_notifications import notify_critical_inspection
from helpdesk.logger import get_logger
from helpdesk.utils.timezones import local_today, utcnow

logger = get_logger("helpdesk.inspections")


class InspectionStateMachine(StateMachine):
    LABEL = 'inspection status'

    TERMINAL_STATES = {Inspection.APPROVED, Inspection.REJECTED}

    TRANSITIONS = {
        Inspection.DRAFT: {Inspection.COMPLETED},
        Inspection.COMPLETED: {Inspection.APPROVED, Inspection.REJECTED},
    }


@dataclass
class CompletionResult:
    inspection_id: int
    critical_items_count: int = 0
    admins_notified: int = 0
    emails_sent: int = 0

    def as_dict(self):
        return {
            'inspectionId': self.inspection_id,
            'criticalItemsCount': self.critical_items_count,
            'adminsNotified': self.admins_notified,
            'emailsSent': self.emails_sent,
        }


def _parse_score(value) -> int:
    if value in (None, ''):
        return 0
    try:
        score = int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"Invalid score: {value}")
    if not 0 <= score <= 10:
        raise ValidationError("Scores must be between 0 and 10")
    return score


class InspectionContext:

    def __init__(self, inspection: Union[Inspection, int]):
        if isinstance(inspection, int):
            found = db.session.get(Inspection, inspection)
            if found is None:
                raise NotFoundError(f"Inspection {inspection} not found")
            inspection = found
        self._inspection = inspection

    @property
    def inspection(self) -> Inspection:
        return self._inspection

    def can_view(self, user) -> bool:
        return can_access_location(user, self._inspection.location_id)

    def can_edit(self, user) -> bool:
        if not self._inspection.is_draft:
            return False
        return user.id == self._inspection.inspector_id or permissions.has_supervisor_permissions(user)

    @classmethod
    def create(cls, actor: User, department: str, location_id: int,
               inspection_date: Optional[Union[date, str]] = None) -> 'InspectionContext':
        """Create a draft inspection populated from the department template."""
        if department not in Inspection.DEPARTMENTS:
            raise ValidationError(f"Unknown department: {department}")

        location = db.session.get(Location, int(location_id)) if location_id else None
        if location is None:
            raise ValidationError("A valid location is required")
        if not can_access_location(actor, location.id):
            raise PermissionDeniedError("You do not have access to this location")

        if isinstance(inspection_date, str) and inspection_date:
            try:
                inspection_date = datetime.strptime(inspection_date, '%Y-%m-%d').date()
            except ValueError:
                raise ValidationError(f"Invalid date: {inspection_date}")
        inspection_date = inspection_date or local_today()

        inspection = Inspection(
            department=department,
            location_id=location.id,
            inspector_id=actor.id,
            inspector_name=actor.display_name,
            inspection_date=inspection_date,
            property_code=location.code,
            property_name=location.name,
            status=Inspection.DRAFT,
            general_comments='',
            created_by_id=actor.id,
            updated_by_id=actor.id,
        )
        db.session.add(inspection)

        for area_data in get_template(department, location.code):
            area = InspectionArea(area_name=area_data['area_name'], area_order=area_data['area_order'])
            inspection.areas.append(area)
            for item_data in area_data['items']:
                item = InspectionItem(
                    item_order=item_data['item_order'],
                    descripcion=item_data['descripcion'],
                    tipo_dato='Fijo',
                    cumplimiento_valor=InspectionItem.PENDING,
                    calif_valor=0,
                    comentarios_valor='',
                )
                area.items.append(item)
                inspection.items.append(item)

        context = cls(inspection)
        context._apply_metrics()
        db.session.commit()
        logger.info(f"{department} inspection {inspection.id} created for {location.code} by {actor.username}")
        return context

    def _apply_metrics(self) -> None:
        inspection = self._inspection
        metrics = compute_metrics(inspection.areas)
        for key, value in metrics.as_dict().items():
            setattr(inspection, key, value)
        for area in inspection.areas:
            area.calculated_score = round_half_up(area_score(area.items), 2)

    def save_items(self, actor: User, items: Dict[int, Dict[str, Any]], general_comments: str = None) -> Inspection:
        """
        Update item answers and recompute metrics.

        `items` maps item id to a dict with any of cumplimiento_valor,
        calif_valor and comentarios_valor. Unknown ids are rejected.
        """
        inspection = self._inspection
        if not inspection.is_draft:
            raise ValidationError("Only draft inspections can be edited")
        if not self.can_edit(actor):
            raise PermissionDeniedError("You cannot edit this inspection")

        by_id = {item.id: item for item in inspection.items}
        for item_id, values in items.items():
            item = by_id.get(int(item_id))
            if item is None:
                raise ValidationError(f"Item {item_id} does not belong to this inspection")

            if 'cumplimiento_valor' in values:
                compliance = values['cumplimiento_valor'] or InspectionItem.PENDING
                if compliance not in InspectionItem.COMPLIANCE_VALUES:
                    raise ValidationError(f"Invalid compliance value: {compliance}")
                item.cumplimiento_valor = compliance
            if 'calif_valor' in values:
                item.calif_valor = _parse_score(values['calif_valor'])
            if 'comentarios_valor' in values:
                item.comentarios_valor = (values['comentarios_valor'] or '').strip()

        if general_comments is not None:
            inspection.general_comments = general_comments.strip()

        self._apply_metrics()
        inspection.stamp(actor)
        db.session.commit()
        logger.info(f"Inspection {inspection.id} saved by {actor.username}: "
                    f"coverage {inspection.coverage_percentage}%, average {inspection.average_score}")
        return inspection

    def complete(self, actor: User, threshold: int = CRITICAL_THRESHOLD) -> CompletionResult:
        """
        Mark the inspection completed and alert admins about critical items
        (scored above 0 and below the threshold).
        """
        inspection = self._inspection
        if not self.can_edit(actor):
            if not inspection.is_draft:
                InspectionStateMachine.validate_transition(inspection.status, Inspection.COMPLETED)
            raise PermissionDeniedError("You cannot complete this inspection")

        InspectionStateMachine.validate_transition(inspection.status, Inspection.COMPLETED)
        self._apply_metrics()
        inspection.status = Inspection.COMPLETED
        inspection.completed_at = utcnow()
        inspection.stamp(actor)
        db.session.commit()
        logger.info(f"Inspection {inspection.id} completed by {actor.username}", extra={"inspection_id": inspection.id})

        result = CompletionResult(inspection_id=inspection.id)
        critical = find_critical_items(inspection.areas, threshold)
        result.critical_items_count = len(critical)
        if not critical:
            return result

        try:
            alert = notify_critical_inspection(inspection, critical, actor, threshold)
            result.admins_notified = alert.admins_notified
            result.emails_sent = alert.emails_sent
        except Exception as e:
            db.session.rollback()
            logger.error(f"Critical alert for inspection {inspection.id} failed: {e}")
        return result

    def review(self, actor: User, approve: bool, notes: str = None) -> Inspection:
        inspection = self._inspection
        if not permissions.has_permission(actor, 'review_inspections'):
            raise PermissionDeniedError("Only supervisors can review inspections")
        if not self.can_view(actor):
            raise PermissionDeniedError("You do not have access to this location")

        new_status = Inspection.APPROVED if approve else Inspection.REJECTED
        InspectionStateMachine.validate_transition(inspection.status, new_status)

        notes = (notes or '').strip() or None
        if not approve and not notes:
            raise ValidationError("A reason is required to reject an inspection")

        inspection.status = new_status
        inspection.reviewed_by_id = actor.id
        inspection.reviewed_at = utcnow()
        inspection.review_notes = notes
        inspection.stamp(actor)
        db.session.commit()
        logger.info(f"Inspection {inspection.id} {new_status} by {actor.username}", extra={"inspection_id": inspection.id})
        return inspection

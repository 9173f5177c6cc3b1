"""
Inspection lifecycle: draft, save, complete with critical alerts, review
"""
import pytest

from helpdesk.buisness.core.errors import (
    PermissionDeniedError, TransitionError, ValidationError,
)
from helpdesk.buisness.inspections.context import InspectionContext
from helpdesk.buisness.inspections.templates import get_template
from helpdesk.data.inspections.inspection import Inspection, InspectionItem
from helpdesk.data.notifications.notification import Notification


@pytest.fixture
def draft(supervisor, location):
    return InspectionContext.create(supervisor, Inspection.RRHH, location.id, '2025-03-10')


def first_items(context, count=2):
    return context.inspection.areas[0].items[:count]


def test_create_from_template(draft, location, supervisor):
    inspection = draft.inspection
    template = get_template(Inspection.RRHH)

    assert inspection.status == Inspection.DRAFT
    assert inspection.property_code == location.code
    assert inspection.inspector_name == supervisor.display_name
    assert inspection.inspection_date.isoformat() == '2025-03-10'
    assert [a.area_name for a in inspection.areas] == [a['area_name'] for a in template]
    assert inspection.total_items == sum(len(a['items']) for a in template)
    assert inspection.items_pending == inspection.total_items
    assert inspection.coverage_percentage == 0


def test_create_validation(supervisor, location, agent, other_location):
    with pytest.raises(ValidationError):
        InspectionContext.create(supervisor, 'FINANZAS', location.id)
    with pytest.raises(ValidationError):
        InspectionContext.create(supervisor, Inspection.GSH, None)
    with pytest.raises(PermissionDeniedError):
        InspectionContext.create(agent, Inspection.GSH, other_location.id)


def test_save_items_recomputes_metrics(draft, supervisor):
    first, second = first_items(draft)
    inspection = draft.save_items(supervisor, {
        first.id: {'cumplimiento_valor': InspectionItem.CUMPLE, 'calif_valor': '9'},
        second.id: {'cumplimiento_valor': InspectionItem.NO_CUMPLE, 'calif_valor': 5,
                    'comentarios_valor': ' Vacante sin publicar '},
    }, general_comments='Primera visita')

    assert inspection.items_cumple == 1
    assert inspection.items_no_cumple == 1
    assert inspection.compliance_percentage == 50
    assert inspection.areas[0].calculated_score == 9
    assert second.comentarios_valor == 'Vacante sin publicar'
    assert inspection.general_comments == 'Primera visita'


@pytest.mark.parametrize('values', [
    {'cumplimiento_valor': 'Maybe'},
    {'calif_valor': 11},
    {'calif_valor': 'ten'},
])
def test_save_items_validation(draft, supervisor, values):
    first, _ = first_items(draft)
    with pytest.raises(ValidationError):
        draft.save_items(supervisor, {first.id: values})


def test_save_rejects_foreign_items(draft, supervisor):
    with pytest.raises(ValidationError):
        draft.save_items(supervisor, {999999: {'calif_valor': 5}})


def test_other_agents_cannot_edit(draft, agent):
    first, _ = first_items(draft)
    assert not draft.can_edit(agent)
    with pytest.raises(PermissionDeniedError):
        draft.save_items(agent, {first.id: {'calif_valor': 5}})


def test_complete_without_critical_items(draft, supervisor):
    first, _ = first_items(draft)
    draft.save_items(supervisor, {first.id: {'cumplimiento_valor': InspectionItem.CUMPLE, 'calif_valor': 9}})

    result = draft.complete(supervisor)
    assert result.critical_items_count == 0
    assert draft.inspection.status == Inspection.COMPLETED
    assert draft.inspection.completed_at is not None
    assert Notification.query.count() == 0


def test_complete_alerts_admins(draft, supervisor, admin, outbox):
    first, second = first_items(draft)
    draft.save_items(supervisor, {
        first.id: {'cumplimiento_valor': InspectionItem.CUMPLE, 'calif_valor': 9},
        second.id: {'cumplimiento_valor': InspectionItem.NO_CUMPLE, 'calif_valor': 4},
    })

    result = draft.complete(supervisor)
    assert result.as_dict() == {
        'inspectionId': draft.inspection.id,
        'criticalItemsCount': 1,
        'adminsNotified': 1,
        'emailsSent': 1,
    }
    assert [m['To'] for m in outbox] == [admin.email]
    notification = Notification.query.filter_by(user_id=admin.id).one()
    assert notification.type == Notification.INSPECTION_CRITICAL
    assert notification.link == f'/inspections/{draft.inspection.id}'


def test_critical_email_falls_back_to_inspector(draft, supervisor, outbox):
    first, _ = first_items(draft)
    draft.save_items(supervisor, {first.id: {'cumplimiento_valor': InspectionItem.NO_CUMPLE, 'calif_valor': 2}})

    result = draft.complete(supervisor)
    assert result.critical_items_count == 1
    assert result.admins_notified == 0
    assert result.emails_sent == 1
    assert [m['To'] for m in outbox] == [supervisor.email]


def test_completed_inspection_is_locked(draft, supervisor):
    draft.complete(supervisor)
    first, _ = first_items(draft)

    with pytest.raises(ValidationError):
        draft.save_items(supervisor, {first.id: {'calif_valor': 5}})
    with pytest.raises(TransitionError):
        draft.complete(supervisor)


def test_review(draft, supervisor, agent):
    with pytest.raises(TransitionError):
        draft.review(supervisor, approve=True)

    draft.complete(supervisor)
    with pytest.raises(PermissionDeniedError):
        draft.review(agent, approve=True)
    with pytest.raises(ValidationError):
        draft.review(supervisor, approve=False)

    inspection = draft.review(supervisor, approve=False, notes='Faltan evidencias')
    assert inspection.status == Inspection.REJECTED
    assert inspection.review_notes == 'Faltan evidencias'
    assert inspection.reviewed_by_id == supervisor.id

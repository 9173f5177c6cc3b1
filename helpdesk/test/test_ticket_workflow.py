"""
Ticket lifecycle: creation, assignment, closing, escalation, deletion and comments
"""
import pytest

from helpdesk.buisness.core.errors import (
    NotFoundError, PermissionDeniedError, TransitionError, ValidationError,
)
from helpdesk.buisness.tickets.context import TicketContext
from helpdesk.data.notifications.notification import Notification
from helpdesk.data.tickets.ticket import Ticket, TicketComment

RESOLUTION = 'Replaced the faulty network cable in the office'


def open_ticket(requester, **fields):
    fields.setdefault('title', 'Printer offline')
    fields.setdefault('description', 'The second floor printer does not respond')
    return TicketContext.create(requester, **fields)


def test_create_ticket(requester, location):
    context = open_ticket(requester, category='Hardware / Impresoras', priority=2)
    ticket = context.ticket

    assert ticket.status == Ticket.NEW
    assert ticket.ticket_number == 1
    assert ticket.support_level == 1
    assert ticket.service_area == 'it'
    assert ticket.requester_id == requester.id
    assert ticket.location_id == location.id
    assert [(h.from_status, h.to_status) for h in ticket.status_history] == [(None, Ticket.NEW)]


def test_ticket_numbers_increase(requester):
    first = open_ticket(requester).ticket
    second = open_ticket(requester).ticket
    assert second.ticket_number == first.ticket_number + 1


def test_maintenance_category_sets_service_area(requester):
    ticket = open_ticket(requester, category='Mantenimiento / Plomería').ticket
    assert ticket.service_area == 'maintenance'
    assert ticket.code.startswith('MANT-')


@pytest.mark.parametrize('fields', [
    {'title': '   '},
    {'description': ''},
    {'priority': 9},
    {'priority': 'high'},
])
def test_create_validation(requester, fields):
    with pytest.raises(ValidationError):
        open_ticket(requester, **fields)


def test_requester_cannot_file_for_someone_else(requester, agent):
    with pytest.raises(PermissionDeniedError):
        open_ticket(requester, requester_id=agent.id)


def test_agent_files_on_behalf_of_requester(agent, requester):
    ticket = open_ticket(agent, requester_id=requester.id).ticket
    assert ticket.requester_id == requester.id
    assert ticket.created_by_id == agent.id

    notification = Notification.query.filter_by(user_id=requester.id).one()
    assert notification.type == Notification.TICKET_CREATED


def test_agent_takes_ticket(agent, requester):
    context = open_ticket(requester)
    context.change_status(agent, Ticket.ASSIGNED, assigned_agent_id=agent.id)

    assert context.ticket.status == Ticket.ASSIGNED
    assert context.ticket.assigned_agent_id == agent.id
    assert Notification.query.filter_by(
        user_id=requester.id, type=Notification.TICKET_ASSIGNED).count() == 1


def test_level_one_agent_cannot_assign_to_others(agent, agent_l2, requester):
    context = open_ticket(requester)
    with pytest.raises(PermissionDeniedError):
        context.change_status(agent, Ticket.ASSIGNED, assigned_agent_id=agent_l2.id)
    assert context.ticket.status == Ticket.NEW


def test_assignment_requires_an_agent(supervisor, requester):
    context = open_ticket(requester)
    with pytest.raises(ValidationError):
        context.change_status(supervisor, Ticket.ASSIGNED)
    with pytest.raises(ValidationError):
        context.change_status(supervisor, Ticket.ASSIGNED, assigned_agent_id=requester.id)


def test_reassignment_keeps_assigned_status(supervisor, agent, agent_l2, requester):
    context = open_ticket(requester)
    context.change_status(supervisor, Ticket.ASSIGNED, assigned_agent_id=agent.id)
    context.change_status(supervisor, Ticket.ASSIGNED, assigned_agent_id=agent_l2.id)

    assert context.ticket.assigned_agent_id == agent_l2.id
    assert [h.to_status for h in sorted(context.ticket.status_history, key=lambda h: h.id)] == [
        Ticket.NEW, Ticket.ASSIGNED, Ticket.ASSIGNED,
    ]


def test_requester_cannot_change_status(requester):
    context = open_ticket(requester)
    with pytest.raises(PermissionDeniedError):
        context.change_status(requester, Ticket.IN_PROGRESS)


def test_invalid_transition(agent, requester):
    context = open_ticket(requester)
    with pytest.raises(TransitionError):
        context.change_status(agent, Ticket.RESOLVED)


def test_close_requires_resolution(agent, requester):
    context = open_ticket(requester)
    with pytest.raises(ValidationError):
        context.change_status(agent, Ticket.CLOSED, resolution='Fixed it')
    assert context.ticket.status == Ticket.NEW


def test_close_adds_public_resolution_comment(agent, requester):
    context = open_ticket(requester)
    context.change_status(agent, Ticket.IN_PROGRESS)
    context.change_status(agent, Ticket.CLOSED, resolution=RESOLUTION)

    ticket = context.ticket
    assert ticket.status == Ticket.CLOSED
    assert ticket.closed_at is not None
    assert ticket.closed_by_id == agent.id
    assert ticket.resolution == RESOLUTION

    comment = ticket.comments[-1]
    assert comment.visibility == TicketComment.PUBLIC
    assert RESOLUTION in comment.body


def test_closed_is_terminal(agent, requester):
    context = open_ticket(requester)
    context.change_status(agent, Ticket.CLOSED, resolution=RESOLUTION)

    assert context.allowed_transitions() == []
    with pytest.raises(TransitionError):
        context.change_status(agent, Ticket.IN_PROGRESS)


def test_resolved_can_be_reopened(agent, requester):
    context = open_ticket(requester)
    context.change_status(agent, Ticket.IN_PROGRESS)
    context.change_status(agent, Ticket.RESOLVED, resolution=RESOLUTION)
    context.change_status(agent, Ticket.IN_PROGRESS)
    assert context.ticket.status == Ticket.IN_PROGRESS


def test_escalate_to_level_two(agent, agent_l2, requester):
    context = open_ticket(requester)
    context.escalate(agent, agent_l2.id)

    ticket = context.ticket
    assert ticket.support_level == 2
    assert ticket.status == Ticket.ASSIGNED
    assert ticket.assigned_agent_id == agent_l2.id
    assert Notification.query.filter_by(type=Notification.TICKET_ESCALATED).count() == 2

    with pytest.raises(TransitionError):
        context.escalate(agent, agent_l2.id)


def test_escalation_target_must_be_level_two(agent, make_user, location, requester):
    other_l1 = make_user('agent3', 'agent_l1', locations=[location])
    context = open_ticket(requester)
    with pytest.raises(ValidationError):
        context.escalate(agent, other_l1.id)


def test_closed_tickets_cannot_be_escalated(agent, agent_l2, requester):
    context = open_ticket(requester)
    context.change_status(agent, Ticket.CLOSED, resolution=RESOLUTION)
    with pytest.raises(TransitionError):
        context.escalate(agent, agent_l2.id)


def test_soft_delete(supervisor, agent, requester):
    context = open_ticket(requester)
    ticket_id = context.ticket_id

    with pytest.raises(PermissionDeniedError):
        context.soft_delete(agent, 'Duplicate')
    with pytest.raises(ValidationError):
        context.soft_delete(supervisor, '  ')

    context.soft_delete(supervisor, 'Duplicate of another ticket')
    assert context.ticket.deleted_reason == 'Duplicate of another ticket'
    with pytest.raises(NotFoundError):
        TicketContext(ticket_id)


def test_internal_comments_hidden_from_requester(agent, requester):
    context = open_ticket(requester)
    context.add_comment(requester, 'Any update?')
    context.add_comment(agent, 'Waiting on the vendor quote', TicketComment.INTERNAL)

    assert len(context.visible_comments(agent)) == 2
    assert [c.body for c in context.visible_comments(requester)] == ['Any update?']


def test_comment_rules(requester):
    context = open_ticket(requester)
    with pytest.raises(ValidationError):
        context.add_comment(requester, '   ')
    with pytest.raises(PermissionDeniedError):
        context.add_comment(requester, 'Secret', TicketComment.INTERNAL)


def test_agents_outside_location_cannot_view(make_user, other_location, requester):
    outsider = make_user('agent9', 'agent_l1', locations=[other_location])
    context = open_ticket(requester)
    assert context.can_view(requester)
    assert not context.can_view(outsider)


def test_created_ticket_emails_requester(requester, outbox):
    ticket = open_ticket(requester).ticket
    assert len(outbox) == 1
    assert outbox[0]['To'] == requester.email
    assert ticket.code in outbox[0]['Subject']

"""
Ticket lifecycle notifications (email + in-app).
"""

from helpdesk.data.notifications.notification import Notification
from helpdesk.buisness.notifications.notifier import (
    app_url, email_many, notify_users, send_templated_email,
)
from helpdesk.logger import get_logger

logger = get_logger("helpdesk.notifications.tickets")


def _ticket_link(ticket):
    return f"/tickets/{ticket.id}"


def _subject(ticket, text):
    return f"[Ticket #{ticket.code}] {text}"


def notify_ticket_created(ticket, actor):
    link = _ticket_link(ticket)
    requester = ticket.requester

    if requester and requester.email:
        send_templated_email(
            requester.email,
            _subject(ticket, ticket.title),
            'email/ticket_created.html',
            ticket=ticket,
            recipient=requester,
            ticket_url=app_url(link),
        )

    if requester and requester.id != actor.id:
        notify_users(
            [requester.id], Notification.TICKET_CREATED,
            f"Ticket #{ticket.code} created on your behalf",
            ticket.title, link=link, actor_id=actor.id,
        )
    logger.info(f"Ticket created notifications sent for #{ticket.ticket_number}")


def notify_ticket_assigned(ticket, actor):
    link = _ticket_link(ticket)
    agent = ticket.assigned_agent
    requester = ticket.requester

    if agent and agent.email:
        send_templated_email(
            agent.email,
            _subject(ticket, "Ticket assigned to you"),
            'email/ticket_assigned.html',
            ticket=ticket,
            recipient=agent,
            for_agent=True,
            ticket_url=app_url(link),
        )
    if requester and requester.email and (agent is None or requester.id != agent.id):
        send_templated_email(
            requester.email,
            _subject(ticket, "Your ticket has been assigned"),
            'email/ticket_assigned.html',
            ticket=ticket,
            recipient=requester,
            for_agent=False,
            ticket_url=app_url(link),
        )

    recipients = [u.id for u in (agent, requester) if u is not None and u.id != actor.id]
    notify_users(
        recipients, Notification.TICKET_ASSIGNED,
        f"Ticket #{ticket.code} assigned to {agent.display_name if agent else 'an agent'}",
        ticket.title, link=link, actor_id=actor.id,
    )


def notify_ticket_status_changed(ticket, actor, old_status):
    link = _ticket_link(ticket)
    requester = ticket.requester
    if requester is None:
        return

    if requester.email:
        send_templated_email(
            requester.email,
            _subject(ticket, f"Status changed to {ticket.status_label}"),
            'email/ticket_status_changed.html',
            ticket=ticket,
            recipient=requester,
            old_status_label=ticket.STATUS_LABELS.get(old_status, old_status),
            ticket_url=app_url(link),
        )
    if requester.id != actor.id:
        notify_users(
            [requester.id], Notification.TICKET_STATUS_CHANGED,
            f"Ticket #{ticket.code}: {ticket.status_label}",
            ticket.title, link=link, actor_id=actor.id,
        )


def notify_ticket_closed(ticket, actor):
    link = _ticket_link(ticket)
    requester = ticket.requester
    if requester is None:
        return

    if requester.email:
        send_templated_email(
            requester.email,
            _subject(ticket, "Ticket closed"),
            'email/ticket_closed.html',
            ticket=ticket,
            recipient=requester,
            ticket_url=app_url(link),
        )
    if requester.id != actor.id:
        notify_users(
            [requester.id], Notification.TICKET_STATUS_CHANGED,
            f"Ticket #{ticket.code} closed",
            ticket.resolution, link=link, actor_id=actor.id,
        )


def notify_ticket_escalated(ticket, actor):
    link = _ticket_link(ticket)
    agent = ticket.assigned_agent
    recipients = [u for u in (agent, ticket.requester) if u is not None]

    email_many(
        [u.email for u in recipients],
        _subject(ticket, "Escalated to level 2"),
        'email/ticket_escalated.html',
        ticket=ticket,
        actor=actor,
        ticket_url=app_url(link),
    )
    notify_users(
        [u.id for u in recipients if u.id != actor.id], Notification.TICKET_ESCALATED,
        f"Ticket #{ticket.code} escalated to level 2",
        ticket.title, link=link, actor_id=actor.id,
    )

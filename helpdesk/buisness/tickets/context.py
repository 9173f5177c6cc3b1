"""
Ticket Context
Business operations on a single ticket: creation, status changes,
escalation, soft delete and comments.

Each operation commits its own transaction, then fires notifications.
Notification failures are logged and never undo the committed change.
"""

from typing import List, Optional, Union

from helpdesk import db
from helpdesk.data.core.user_info.user import User
from helpdesk.data.assets.asset import Asset
from helpdesk.data.tickets.ticket import Ticket, TicketStatusHistory, TicketComment
from helpdesk.buisness.core.errors import (
    NotFoundError, PermissionDeniedError, TransitionError, ValidationError,
)
from helpdesk.buisness.core import permissions
from helpdesk.buisness.core.location_scope import can_access_location
from helpdesk.buisness.tickets.codes import infer_service_area
from helpdesk.buisness.tickets.state_machine import TicketStateMachine
from helpdesk.buisness.notifications import ticket_notifications
from helpdesk.logger import get_logger
from helpdesk.utils.timezones import utcnow

logger = get_logger("helpdesk.tickets")

MIN_RESOLUTION_LENGTH = 20


def _notify(func, *args):
    try:
        func(*args)
    except Exception as e:
        logger.error(f"{func.__name__} failed: {e}")


class TicketContext:
    """
    Wraps a Ticket and exposes the operations allowed on it.
    """

    def __init__(self, ticket: Union[Ticket, int]):
        if isinstance(ticket, int):
            found = db.session.get(Ticket, ticket)
            if found is None or found.is_deleted:
                raise NotFoundError(f"Ticket {ticket} not found")
            ticket = found
        self._ticket = ticket

    @property
    def ticket(self) -> Ticket:
        return self._ticket

    @property
    def ticket_id(self) -> int:
        return self._ticket.id

    # ------------------------------------------------------------------ access

    def can_view(self, user) -> bool:
        ticket = self._ticket
        if ticket.requester_id == user.id or ticket.assigned_agent_id == user.id:
            return True
        if permissions.can_manage_tickets(user) or permissions.can_view_all_tickets(user):
            return ticket.location_id is None or can_access_location(user, ticket.location_id)
        return False

    def visible_comments(self, user) -> List[TicketComment]:
        comments = self._ticket.comments
        if permissions.can_manage_tickets(user) or permissions.can_view_all_tickets(user):
            return list(comments)
        return [c for c in comments if not c.is_internal]

    def allowed_transitions(self) -> List[str]:
        allowed = TicketStateMachine.get_allowed_transitions(self._ticket.status)
        return [s for s in Ticket.STATUSES if s in allowed]

    # ---------------------------------------------------------------- creation

    @classmethod
    def create(cls, actor: User, title: str, description: str, category: str = None,
               priority: int = 3, impact: int = 3, urgency: int = 3,
               requester_id: int = None, asset_id: int = None, location_id: int = None) -> 'TicketContext':
        """
        Open a new ticket in status NEW.

        The actor is the requester unless an agent files it on behalf of someone else.
        """
        title = (title or '').strip()
        description = (description or '').strip()
        if not title:
            raise ValidationError("Title is required")
        if not description:
            raise ValidationError("Description is required")

        try:
            priority = int(priority)
        except (TypeError, ValueError):
            raise ValidationError("Priority must be a number between 1 and 4")
        if priority not in Ticket.PRIORITY_LABELS:
            raise ValidationError("Priority must be a number between 1 and 4")

        if requester_id and requester_id != actor.id:
            if not permissions.can_manage_tickets(actor):
                raise PermissionDeniedError("Only agents can open tickets on behalf of another user")
            requester = db.session.get(User, requester_id)
            if requester is None or not requester.is_active:
                raise ValidationError("Requester not found or inactive")
        else:
            requester_id = actor.id

        asset = None
        if asset_id:
            asset = db.session.get(Asset, asset_id)
            if asset is None or asset.deleted_at is not None:
                raise ValidationError("Selected asset does not exist")

        if not location_id:
            if asset is not None and asset.location_id:
                location_id = asset.location_id
            elif actor.locations:
                location_id = actor.locations[0].id

        ticket = Ticket(
            ticket_number=Ticket.next_ticket_number(),
            title=title,
            description=description,
            category=category,
            service_area=infer_service_area(category),
            priority=priority,
            impact=impact,
            urgency=urgency,
            status=Ticket.NEW,
            support_level=1,
            requester_id=requester_id,
            asset_id=asset.id if asset else None,
            location_id=location_id,
            created_by_id=actor.id,
            updated_by_id=actor.id,
        )
        db.session.add(ticket)
        db.session.flush()

        db.session.add(TicketStatusHistory(
            ticket_id=ticket.id, from_status=None, to_status=Ticket.NEW, actor_id=actor.id,
        ))
        db.session.commit()
        logger.info(f"Ticket #{ticket.ticket_number} created by {actor.username} ({ticket.service_area})", extra={"ticket_id": ticket.id})

        _notify(ticket_notifications.notify_ticket_created, ticket, actor)
        return cls(ticket)

    # ---------------------------------------------------------------- workflow

    def change_status(self, actor: User, new_status: str, assigned_agent_id: int = None,
                      resolution: str = None, note: str = None) -> Ticket:
        """
        Move the ticket to `new_status`.

        ASSIGNED requires an agent; CLOSED requires a resolution of at least
        20 characters and adds a public resolution comment.
        """
        ticket = self._ticket

        if not permissions.can_manage_tickets(actor):
            raise PermissionDeniedError("You do not have permission to change ticket status")
        if new_status not in Ticket.STATUSES:
            raise ValidationError(f"Unknown status: {new_status}")

        TicketStateMachine.validate_transition(ticket.status, new_status)

        old_status = ticket.status
        old_agent_id = ticket.assigned_agent_id
        now = utcnow()

        if new_status == Ticket.ASSIGNED:
            agent_id = assigned_agent_id or ticket.assigned_agent_id
            if not agent_id:
                raise ValidationError("An agent is required to assign the ticket")
            agent = db.session.get(User, int(agent_id))
            if agent is None or not agent.is_active or not permissions.can_manage_tickets(agent):
                raise ValidationError("The selected agent cannot take tickets")
            if agent.id != ticket.assigned_agent_id and actor.id != agent.id \
                    and not permissions.can_assign_tickets(actor):
                raise PermissionDeniedError("You do not have permission to assign tickets to other agents")
            ticket.assigned_agent_id = agent.id

        if new_status == Ticket.CLOSED:
            resolution = (resolution or '').strip()
            if len(resolution) < MIN_RESOLUTION_LENGTH:
                raise ValidationError(
                    f"A resolution of at least {MIN_RESOLUTION_LENGTH} characters is required to close a ticket"
                )
            ticket.resolution = resolution
            ticket.closed_at = now
            ticket.closed_by_id = actor.id
            db.session.add(TicketComment(
                ticket_id=ticket.id,
                author_id=actor.id,
                body=f"🔒 Ticket closed\n\nResolution:\n{resolution}",
                visibility=TicketComment.PUBLIC,
                created_by_id=actor.id,
            ))
        elif new_status == Ticket.RESOLVED and resolution:
            ticket.resolution = resolution.strip()

        ticket.status = new_status
        ticket.stamp(actor)
        db.session.add(TicketStatusHistory(
            ticket_id=ticket.id,
            from_status=old_status,
            to_status=new_status,
            actor_id=actor.id,
            note=note,
        ))
        db.session.commit()
        logger.info(f"Ticket #{ticket.ticket_number} {old_status} -> {new_status} by {actor.username}", extra={"ticket_id": ticket.id})

        if new_status == Ticket.ASSIGNED:
            if ticket.assigned_agent_id != old_agent_id or old_status != Ticket.ASSIGNED:
                _notify(ticket_notifications.notify_ticket_assigned, ticket, actor)
        elif new_status == Ticket.CLOSED:
            _notify(ticket_notifications.notify_ticket_closed, ticket, actor)
        else:
            _notify(ticket_notifications.notify_ticket_status_changed, ticket, actor, old_status)

        return ticket

    def escalate(self, actor: User, target_agent_id: int) -> Ticket:
        """Hand the ticket to level 2: assign to the target and set status ASSIGNED."""
        ticket = self._ticket

        if not permissions.has_permission(actor, 'escalate_tickets'):
            raise PermissionDeniedError("You do not have permission to escalate tickets")
        if ticket.support_level >= 2:
            raise TransitionError("Ticket is already at support level 2")
        if ticket.status == Ticket.CLOSED:
            raise TransitionError("Closed tickets cannot be escalated")

        target = db.session.get(User, int(target_agent_id)) if target_agent_id else None
        if target is None or not target.is_active:
            raise ValidationError("Escalation target not found")
        if not permissions.can_escalate_to(target):
            raise ValidationError("Tickets can only be escalated to level 2 agents, supervisors or admins")

        old_status = ticket.status
        ticket.support_level = 2
        ticket.assigned_agent_id = target.id
        ticket.status = Ticket.ASSIGNED
        ticket.stamp(actor)
        db.session.add(TicketStatusHistory(
            ticket_id=ticket.id,
            from_status=old_status,
            to_status=Ticket.ASSIGNED,
            actor_id=actor.id,
            note=f"Escalated to level 2 ({target.display_name})",
        ))
        db.session.commit()
        logger.info(f"Ticket #{ticket.ticket_number} escalated to {target.username} by {actor.username}", extra={"ticket_id": ticket.id})

        _notify(ticket_notifications.notify_ticket_escalated, ticket, actor)
        return ticket

    def soft_delete(self, actor: User, reason: str) -> Ticket:
        ticket = self._ticket
        if not permissions.can_delete_tickets(actor):
            raise PermissionDeniedError("You do not have permission to delete tickets")
        reason = (reason or '').strip()
        if not reason:
            raise ValidationError("A reason is required to delete a ticket")

        ticket.deleted_at = utcnow()
        ticket.deleted_by_id = actor.id
        ticket.deleted_reason = reason
        ticket.stamp(actor)
        db.session.commit()
        logger.info(f"Ticket #{ticket.ticket_number} soft-deleted by {actor.username}", extra={"ticket_id": ticket.id})
        return ticket

    def add_comment(self, actor: User, body: str, visibility: str = TicketComment.PUBLIC) -> TicketComment:
        body = (body or '').strip()
        if not body:
            raise ValidationError("Comment cannot be empty")
        if visibility not in TicketComment.VISIBILITIES:
            raise ValidationError(f"Unknown visibility: {visibility}")
        if visibility == TicketComment.INTERNAL and not permissions.can_manage_tickets(actor):
            raise PermissionDeniedError("Only agents can add internal comments")
        if not self.can_view(actor):
            raise PermissionDeniedError("You cannot comment on this ticket")

        comment = TicketComment(
            ticket_id=self._ticket.id,
            author_id=actor.id,
            body=body,
            visibility=visibility,
            created_by_id=actor.id,
        )
        db.session.add(comment)
        db.session.commit()
        logger.debug(f"Comment {comment.id} ({visibility}) added to ticket #{self._ticket.ticket_number}")
        return comment

    def recent_history(self, limit: Optional[int] = None) -> List[TicketStatusHistory]:
        history = sorted(self._ticket.status_history, key=lambda h: (h.created_at, h.id), reverse=True)
        return history[:limit] if limit else history

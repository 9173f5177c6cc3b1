"""
Ticket status lifecycle

NEW tickets are triaged into ASSIGNED or worked directly. Work can pause on
the requester (NEEDS_INFO) or a vendor (WAITING_THIRD_PARTY). RESOLVED can be
reopened; CLOSED is terminal.
"""

from typing import Dict, Set
from helpdesk.buisness.core.state_machine import StateMachine
from helpdesk.data.tickets.ticket import Ticket


class TicketStateMachine(StateMachine):
    LABEL = 'ticket status'

    TERMINAL_STATES = {Ticket.CLOSED}

    TRANSITIONS: Dict[str, Set[str]] = {
        Ticket.NEW: {Ticket.ASSIGNED, Ticket.IN_PROGRESS, Ticket.NEEDS_INFO, Ticket.CLOSED},
        Ticket.ASSIGNED: {Ticket.ASSIGNED, Ticket.IN_PROGRESS, Ticket.NEEDS_INFO,
                          Ticket.WAITING_THIRD_PARTY, Ticket.RESOLVED, Ticket.CLOSED},
        Ticket.IN_PROGRESS: {Ticket.ASSIGNED, Ticket.NEEDS_INFO, Ticket.WAITING_THIRD_PARTY,
                             Ticket.RESOLVED, Ticket.CLOSED},
        Ticket.NEEDS_INFO: {Ticket.ASSIGNED, Ticket.IN_PROGRESS, Ticket.RESOLVED, Ticket.CLOSED},
        Ticket.WAITING_THIRD_PARTY: {Ticket.ASSIGNED, Ticket.IN_PROGRESS, Ticket.RESOLVED, Ticket.CLOSED},
        Ticket.RESOLVED: {Ticket.IN_PROGRESS, Ticket.CLOSED},
    }

    @classmethod
    def can_transition(cls, from_status: str, to_status: str) -> bool:
        # Re-assignment keeps the ticket in ASSIGNED with a different agent
        if from_status == to_status == Ticket.ASSIGNED:
            return True
        return super().can_transition(from_status, to_status)

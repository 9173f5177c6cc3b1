"""
Transition tables for status lifecycles

Keeps "what is allowed" separate from "how persistence occurs".
Subclasses declare TRANSITIONS and TERMINAL_STATES.
"""

from typing import Dict, Set
from helpdesk.buisness.core.errors import TransitionError


class StateMachine:
    LABEL = 'status'

    TERMINAL_STATES: Set[str] = set()
    TRANSITIONS: Dict[str, Set[str]] = {}

    @classmethod
    def can_transition(cls, from_status: str, to_status: str) -> bool:
        """Same-state is not a transition; terminal states allow nothing."""
        if from_status == to_status:
            return False

        if from_status in cls.TERMINAL_STATES:
            return False

        return to_status in cls.TRANSITIONS.get(from_status, set())

    @classmethod
    def validate_transition(cls, from_status: str, to_status: str) -> None:
        """
        Raises:
            TransitionError: If transition is not allowed
        """
        if not cls.can_transition(from_status, to_status):
            raise TransitionError(
                f"Invalid {cls.LABEL} transition: {from_status} → {to_status}"
            )

    @classmethod
    def get_allowed_transitions(cls, from_status: str) -> Set[str]:
        if from_status in cls.TERMINAL_STATES:
            return set()
        return set(cls.TRANSITIONS.get(from_status, set()))

from typing import Dict, Set
from helpdesk.buisness.core.state_machine import StateMachine
from helpdesk.data.assets.disposal_request import DisposalRequest


class DisposalStateMachine(StateMachine):
    """
    Disposal requests are reviewed exactly once: pending → approved | rejected.
    """
    LABEL = 'disposal request'

    TERMINAL_STATES = {DisposalRequest.APPROVED, DisposalRequest.REJECTED}

    TRANSITIONS: Dict[str, Set[str]] = {
        DisposalRequest.PENDING: {DisposalRequest.APPROVED, DisposalRequest.REJECTED},
    }

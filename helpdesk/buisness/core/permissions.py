"""
Role-based permission checks.

Pure functions over a role string (or anything with a `role` attribute) so
they can be used in routes, templates and business contexts alike.
"""

REQUESTER = 'requester'
AGENT_L1 = 'agent_l1'
AGENT_L2 = 'agent_l2'
SUPERVISOR = 'supervisor'
AUDITOR = 'auditor'
CORPORATE_ADMIN = 'corporate_admin'
ADMIN = 'admin'

ROLES = (REQUESTER, AGENT_L1, AGENT_L2, SUPERVISOR, AUDITOR, CORPORATE_ADMIN, ADMIN)

ROLE_LABELS = {
    REQUESTER: 'Requester',
    AGENT_L1: 'Agent (level 1)',
    AGENT_L2: 'Agent (level 2)',
    SUPERVISOR: 'Supervisor',
    AUDITOR: 'Auditor',
    CORPORATE_ADMIN: 'Corporate administrator',
    ADMIN: 'Administrator',
}

# Roles that an escalated ticket may be handed to
ESCALATION_TARGET_ROLES = frozenset({AGENT_L2, SUPERVISOR, ADMIN})

_ADMIN_LIKE = frozenset({ADMIN, CORPORATE_ADMIN})
_SUPERVISOR_LIKE = frozenset({ADMIN, SUPERVISOR, CORPORATE_ADMIN})
_TICKET_MANAGERS = frozenset({AGENT_L1, AGENT_L2, SUPERVISOR, ADMIN, CORPORATE_ADMIN})
_TICKET_ASSIGNERS = frozenset({AGENT_L2, SUPERVISOR, ADMIN, CORPORATE_ADMIN})
_REPORT_VIEWERS = frozenset({SUPERVISOR, AUDITOR, ADMIN, CORPORATE_ADMIN})

PERMISSIONS = {
    'view_all_tickets': _REPORT_VIEWERS,
    'manage_tickets': _TICKET_MANAGERS,
    'assign_tickets': _TICKET_ASSIGNERS,
    'close_tickets': _TICKET_MANAGERS,
    'escalate_tickets': _TICKET_MANAGERS,
    'view_reports': _REPORT_VIEWERS,
    'view_audit': _REPORT_VIEWERS,
    'manage_users': frozenset({ADMIN}),
    'manage_locations': frozenset({ADMIN}),
    'delete_tickets': _SUPERVISOR_LIKE,
    'manage_assets': _SUPERVISOR_LIKE,
    'supervisor_access': _SUPERVISOR_LIKE,
    'request_disposal': _SUPERVISOR_LIKE,
    'review_disposals': _ADMIN_LIKE,
    'review_inspections': _SUPERVISOR_LIKE,
    'manage_courses': _ADMIN_LIKE,
    'manage_asset_types': frozenset({ADMIN}),
    'view_login_audits': frozenset({ADMIN, SUPERVISOR}),
    'clear_login_audits': frozenset({ADMIN}),
}


def _role_of(user_or_role):
    if user_or_role is None:
        return None
    if isinstance(user_or_role, str):
        return user_or_role
    return getattr(user_or_role, 'role', None)


def has_permission(role, permission: str) -> bool:
    """True when `role` grants `permission`; unknown permissions are denied."""
    allowed = PERMISSIONS.get(permission)
    if allowed is None:
        return False
    return _role_of(role) in allowed


def is_admin(role) -> bool:
    return _role_of(role) == ADMIN


def is_admin_like(role) -> bool:
    return _role_of(role) in _ADMIN_LIKE


def has_supervisor_permissions(role) -> bool:
    return _role_of(role) in _SUPERVISOR_LIKE


def can_manage_tickets(role) -> bool:
    return has_permission(role, 'manage_tickets')


def can_assign_tickets(role) -> bool:
    return has_permission(role, 'assign_tickets')


def can_view_all_tickets(role) -> bool:
    return has_permission(role, 'view_all_tickets')


def can_view_reports(role) -> bool:
    return has_permission(role, 'view_reports')


def can_manage_users(role) -> bool:
    return has_permission(role, 'manage_users')


def can_delete_tickets(role) -> bool:
    return has_permission(role, 'delete_tickets')


def can_manage_assets(role) -> bool:
    return has_permission(role, 'manage_assets')


def can_review_disposals(role) -> bool:
    return has_permission(role, 'review_disposals')


def can_escalate_to(role) -> bool:
    return _role_of(role) in ESCALATION_TARGET_ROLES

"""
Domain exceptions for helpdesk business logic

Raised by the business layer when a rule is violated. Routes flash the
message; JSON endpoints map `http_status` to the response code.
"""


class HelpdeskDomainError(Exception):
    """Base exception for all helpdesk domain errors"""
    http_status = 400


class ValidationError(HelpdeskDomainError):
    """Raised when input fails a business validation rule"""
    http_status = 400


class PermissionDeniedError(HelpdeskDomainError):
    """Raised when the actor's role does not allow the operation"""
    http_status = 403


class NotFoundError(HelpdeskDomainError):
    """Raised when a referenced record does not exist"""
    http_status = 404


class TransitionError(HelpdeskDomainError):
    """Raised when a status transition is invalid or not allowed"""
    http_status = 409


class ConflictError(HelpdeskDomainError):
    """Raised when the record is in a state that conflicts with the request (e.g. a second pending disposal)"""
    http_status = 409

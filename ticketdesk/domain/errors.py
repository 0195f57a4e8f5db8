"""
Ticket Desk errors.

Services and repositories raise these; the API layer maps ``http_status`` and
``error_code`` onto the error envelope without catching them per route.
Anything that would reveal another tenant's data is reported as a 404.
"""
from typing import Any, Dict, Optional


class DomainError(Exception):
    error_code: str = "DOMAIN_ERROR"
    http_status: int = 400

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        error_code: Optional[str] = None
    ):
        super().__init__(message)
        self.message = message
        self.details = details or {}
        if error_code:
            self.error_code = error_code

    def to_dict(self) -> Dict[str, Any]:
        """Error envelope returned by the API"""
        return {"error": {"code": self.error_code, "message": self.message, "details": self.details}}


# 401 / 403

class AuthenticationError(DomainError):
    """Bearer token missing, malformed or expired, or its claims are incomplete"""
    error_code = "AUTHENTICATION_ERROR"
    http_status = 401


class AuthorizationError(DomainError):
    error_code = "AUTHORIZATION_ERROR"
    http_status = 403


class PermissionDeniedError(AuthorizationError):
    """The actor's role or membership does not allow the action on this ticket"""
    error_code = "PERMISSION_DENIED"


# 400

class ValidationError(DomainError):
    error_code = "VALIDATION_ERROR"
    http_status = 400


class InvalidRelationshipError(ValidationError):
    """Section outside its department, or an assignee outside the ticket's department"""
    error_code = "INVALID_RELATIONSHIP"


# 404, also used for records that belong to another tenant

class NotFoundError(DomainError):
    error_code = "NOT_FOUND"
    http_status = 404


class TenantNotFoundError(NotFoundError):
    error_code = "TENANT_NOT_FOUND"


class TicketNotFoundError(NotFoundError):
    error_code = "TICKET_NOT_FOUND"


class CommentNotFoundError(NotFoundError):
    """Missing, deleted, or internal and requested by a USER"""
    error_code = "COMMENT_NOT_FOUND"


class UserNotFoundError(NotFoundError):
    error_code = "USER_NOT_FOUND"


class DepartmentNotFoundError(NotFoundError):
    error_code = "DEPARTMENT_NOT_FOUND"


class SectionNotFoundError(NotFoundError):
    error_code = "SECTION_NOT_FOUND"


# 500

class ConsistencyViolationError(DomainError):
    """A stored ticket references a department or section of another tenant"""
    error_code = "CONSISTENCY_VIOLATION"
    http_status = 500

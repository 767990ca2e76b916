"""
Typed service errors.

Services raise these instead of bare HTTPException so that callers (and tests)
can tell *why* a request was rejected, not only the status code. They remain
HTTPException subclasses, so FastAPI handles them without extra wiring; the
handlers in main.py render them into the standard failure envelope.
"""

from typing import Any, Optional

from fastapi import HTTPException, status


class ServiceError(HTTPException):
    status_code_default = status.HTTP_400_BAD_REQUEST
    code_default = "BAD_REQUEST"

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        errors: Optional[Any] = None,
        status_code: Optional[int] = None,
    ):
        super().__init__(status_code=status_code or self.status_code_default, detail=message)
        self.message = message
        self.code = code or self.code_default
        self.errors = errors


class RuleViolation(ServiceError):
    """A business rule rejected the request (eligibility, windows, stock)."""

    code_default = "RULE_VIOLATION"


class NotFoundError(ServiceError):
    status_code_default = status.HTTP_404_NOT_FOUND
    code_default = "NOT_FOUND"


class ConflictError(ServiceError):
    status_code_default = status.HTTP_409_CONFLICT
    code_default = "CONFLICT"


class ForbiddenError(ServiceError):
    status_code_default = status.HTTP_403_FORBIDDEN
    code_default = "FORBIDDEN"


class UnauthorizedError(ServiceError):
    status_code_default = status.HTTP_401_UNAUTHORIZED
    code_default = "UNAUTHORIZED"

    def __init__(self, message: str, code: Optional[str] = None):
        super().__init__(message, code=code)
        self.headers = {"WWW-Authenticate": "Bearer"}

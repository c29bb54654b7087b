"""
Typed domain errors.

Services raise these; the exception handlers in main.py turn every one of
them into the same JSON envelope:

    {"error": {"kind": "InvalidTransition", "message": "..."}}

HTTP status codes live here too so routers never pick them by hand.
"""

import enum
from typing import Optional

from .config import LOGIN_PATH


class ErrorKind(str, enum.Enum):
    UNAUTHENTICATED = "Unauthenticated"
    UNAUTHORIZED = "Unauthorized"
    INVALID_TRANSITION = "InvalidTransition"
    VALIDATION_FAILED = "ValidationFailed"
    NOT_FOUND = "NotFound"
    CONFLICT = "Conflict"
    TRANSIENT = "Transient"


STATUS_CODES = {
    ErrorKind.UNAUTHENTICATED: 401,
    ErrorKind.UNAUTHORIZED: 403,
    ErrorKind.INVALID_TRANSITION: 409,
    ErrorKind.VALIDATION_FAILED: 422,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.CONFLICT: 409,
    ErrorKind.TRANSIENT: 503,
}

PERMISSION_DENIED_MESSAGE = "You don't have permission to perform this action."


class DomainError(Exception):
    kind: ErrorKind = ErrorKind.VALIDATION_FAILED
    default_message = "Something went wrong. Please try again."

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    @property
    def status_code(self) -> int:
        return STATUS_CODES[self.kind]

    def to_dict(self) -> dict:
        return {"kind": self.kind.value, "message": self.message}


class Unauthenticated(DomainError):
    kind = ErrorKind.UNAUTHENTICATED
    default_message = "Please sign in to continue."

    def to_dict(self) -> dict:
        body = super().to_dict()
        body["redirect"] = LOGIN_PATH
        return body


class Unauthorized(DomainError):
    """Never says which rule failed"""

    kind = ErrorKind.UNAUTHORIZED
    default_message = PERMISSION_DENIED_MESSAGE

    def __init__(self, message: Optional[str] = None):
        # The message passed in is for logs only; callers always see the generic one
        self.reason = message
        super().__init__(PERMISSION_DENIED_MESSAGE)


class InvalidTransition(DomainError):
    kind = ErrorKind.INVALID_TRANSITION

    def __init__(self, current_status: str, requested_status: Optional[str] = None):
        self.current_status = current_status
        self.requested_status = requested_status
        if requested_status:
            message = f"Cannot change a {current_status} booking to {requested_status}."
        else:
            message = f"This booking is {current_status}."
        super().__init__(message)

    def to_dict(self) -> dict:
        body = super().to_dict()
        body["current_status"] = self.current_status
        return body


class ValidationFailed(DomainError):
    kind = ErrorKind.VALIDATION_FAILED
    default_message = "Invalid data. Please check your input values."

    def __init__(self, fields: dict[str, str], message: Optional[str] = None):
        self.fields = fields
        super().__init__(message or next(iter(fields.values()), None))

    def to_dict(self) -> dict:
        body = super().to_dict()
        body["fields"] = self.fields
        return body


class NotFound(DomainError):
    kind = ErrorKind.NOT_FOUND

    def __init__(self, entity: str = "Record"):
        self.entity = entity
        super().__init__(f"{entity} not found")


class Conflict(DomainError):
    kind = ErrorKind.CONFLICT
    default_message = "This record already exists."


class Transient(DomainError):
    kind = ErrorKind.TRANSIENT
    default_message = "Network error. Please check your connection and try again."

    def to_dict(self) -> dict:
        body = super().to_dict()
        body["retryable"] = True
        return body

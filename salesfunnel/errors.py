"""Error kinds and domain exceptions."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class ErrorKind(str, Enum):
    MISSING_FIELD = "MissingField"
    INVALID_FORMAT = "InvalidFormat"
    OUT_OF_RANGE = "OutOfRange"
    CONFLICT = "Conflict"
    UNAUTHORIZED = "Unauthorized"
    INTERNAL = "Internal"


@dataclass(frozen=True)
class FieldError:
    """A single user-correctable problem with one field."""

    field: str
    kind: ErrorKind
    message: str

    def to_dict(self) -> dict[str, str]:
        return {"field": self.field, "kind": self.kind.value, "message": self.message}


class FunnelError(Exception):
    """Base class for errors raised outside the pure core."""

    kind: ErrorKind = ErrorKind.INTERNAL
    status_code: int = 500

    def __init__(self, message: str = "Internal server error"):
        super().__init__(message)
        self.message = message


class ValidationFailed(FunnelError):
    """Raised by services when a payload has one or more field errors."""

    kind = ErrorKind.INVALID_FORMAT
    status_code = 400

    def __init__(self, errors: list[FieldError]):
        super().__init__("Validation failed")
        self.errors = list(errors)

    def by_field(self) -> dict[str, str]:
        """First message per field, for form rendering."""
        messages: dict[str, str] = {}
        for err in self.errors:
            messages.setdefault(err.field, err.message)
        return messages


class ConflictError(FunnelError):
    kind = ErrorKind.CONFLICT
    status_code = 409


class UnauthorizedError(FunnelError):
    kind = ErrorKind.UNAUTHORIZED
    status_code = 401

    def __init__(self, message: str = "Unauthorized"):
        super().__init__(message)


class NotFoundError(FunnelError):
    """Missing entry, or one owned by another account."""

    kind = ErrorKind.UNAUTHORIZED
    status_code = 404

    def __init__(self, message: str = "Funnel entry not found"):
        super().__init__(message)

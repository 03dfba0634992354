# salon_booking/errors.py
"""
Error taxonomy and result values for the booking engine.

Expected outcomes (bad input, unknown references, slot conflicts, duplicate
waitlist entries) are returned as Result values, not raised. Only unexpected
storage failures are caught at the service boundary and converted into an
INTERNAL_ERROR result after being logged.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Generic, Optional, TypeVar

T = TypeVar("T")


class ErrorCode(str, Enum):
    VALIDATION_ERROR = "VALIDATION_ERROR"
    NOT_FOUND = "NOT_FOUND"
    SLOT_CONFLICT = "SLOT_CONFLICT"
    DUPLICATE_ENTRY = "DUPLICATE_ENTRY"
    EMAIL_EXISTS = "EMAIL_EXISTS"
    INTERNAL_ERROR = "INTERNAL_ERROR"


HTTP_STATUS = {
    ErrorCode.VALIDATION_ERROR: 400,
    ErrorCode.NOT_FOUND: 404,
    ErrorCode.SLOT_CONFLICT: 409,
    ErrorCode.DUPLICATE_ENTRY: 409,
    ErrorCode.EMAIL_EXISTS: 409,
    ErrorCode.INTERNAL_ERROR: 500,
}


@dataclass(frozen=True)
class ServiceError:
    """
    A failed outcome.

    Attributes:
        code: Taxonomy code
        message: Human-readable message, safe to show to the caller
        details: Field-level details (validation errors only)
        extra: Additional response payload, e.g. {"existing_entry": {...}}
    """
    code: ErrorCode
    message: str
    details: Optional[list[dict]] = None
    extra: dict[str, Any] = field(default_factory=dict)

    @property
    def status_code(self) -> int:
        return HTTP_STATUS[self.code]

    def to_response(self) -> dict:
        body: dict[str, Any] = {"error": self.message, "code": self.code.value}
        if self.details is not None:
            body["details"] = self.details
        body.update(self.extra)
        return body


@dataclass(frozen=True)
class Result(Generic[T]):
    value: Optional[T] = None
    error: Optional[ServiceError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def success(value: T) -> Result[T]:
    return Result(value=value)


def failure(
    code: ErrorCode,
    message: str,
    details: Optional[list[dict]] = None,
    **extra: Any,
) -> Result:
    return Result(error=ServiceError(code=code, message=message, details=details, extra=extra))


def validation_failure(message: str, field_name: Optional[str] = None) -> Result:
    """Single-field validation failure."""
    details = [{"path": field_name or "", "message": message}]
    return failure(ErrorCode.VALIDATION_ERROR, "Validation error", details=details)


def pydantic_details(exc) -> list[dict]:
    """Flatten pydantic ValidationError / RequestValidationError issues."""
    details = []
    for issue in exc.errors():
        loc = [str(part) for part in issue.get("loc", ()) if part != "body"]
        details.append({
            "path": ".".join(loc),
            "message": issue.get("msg", "Invalid value"),
        })
    return details


INTERNAL_MESSAGE = "Something went wrong, please try again"


def internal_failure() -> Result:
    return failure(ErrorCode.INTERNAL_ERROR, INTERNAL_MESSAGE)

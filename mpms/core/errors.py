# mpms/core/errors.py
from typing import Any, Dict, Iterable, Optional


class CoreError(Exception):
    """Base for every error the core raises; rendered by the app-level handler."""

    status_code = 400
    code = "error"

    def __init__(self, message: str, *, code: Optional[str] = None, extra: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        if code:
            self.code = code
        self.extra = extra or {}

    def to_dict(self) -> Dict[str, Any]:
        return {"detail": self.message, "code": self.code, **self.extra}


class ValidationError(CoreError):
    status_code = 400
    code = "validation_error"


class NotFoundError(CoreError):
    status_code = 404
    code = "not_found"

    def __init__(self, entity: str, entity_id: Any = None):
        super().__init__(f"{entity} not found", extra={"entity": entity, "id": entity_id})
        self.entity = entity
        self.entity_id = entity_id


class ForbiddenError(CoreError):
    status_code = 403
    code = "forbidden"


class ForbiddenFieldError(ForbiddenError):
    code = "forbidden_fields"

    def __init__(self, fields: Iterable[str], allowed: Iterable[str]):
        self.fields = sorted(fields)
        self.allowed = sorted(allowed)
        super().__init__(
            f"Members can only update: {', '.join(self.allowed)} (rejected: {', '.join(self.fields)})",
            extra={"fields": self.fields},
        )


class ForbiddenTransitionError(ForbiddenError):
    code = "forbidden_transition"

    def __init__(self, from_status: str, to_status: str):
        self.from_status = from_status
        self.to_status = to_status
        super().__init__(
            f"Only managers or admins can move a task to {to_status}",
            extra={"from": from_status, "to": to_status},
        )


class InvalidTransitionError(CoreError):
    status_code = 400
    code = "invalid_transition"

    def __init__(self, from_status: str, to_status: str, message: Optional[str] = None):
        self.from_status = from_status
        self.to_status = to_status
        super().__init__(
            message or f"Invalid status transition from {from_status} to {to_status}",
            extra={"from": from_status, "to": to_status},
        )


class StaleStatusError(InvalidTransitionError):
    """The stored status moved on between our read and our conditional write."""

    status_code = 409
    code = "stale_status"

    def __init__(self, expected_status: str, to_status: str):
        super().__init__(
            expected_status,
            to_status,
            message=f"Task status changed since it was read (expected {expected_status}); reload and retry",
        )


class InvariantViolation(CoreError):
    status_code = 409
    code = "invariant_violation"

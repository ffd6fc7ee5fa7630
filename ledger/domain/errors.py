"""
Domain errors. Every failure carries a stable code, a category and optional
structured details; the API layer renders them into the error envelope.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    CORE_INVARIANT = "CORE_INVARIANT"
    POLICY = "POLICY"
    VALIDATION = "VALIDATION"
    AUTH = "AUTH"
    NOT_FOUND = "NOT_FOUND"
    CONFLICT = "CONFLICT"


CATEGORY_HTTP_STATUS: dict[ErrorCategory, int] = {
    ErrorCategory.CORE_INVARIANT: 422,
    ErrorCategory.POLICY: 422,
    ErrorCategory.VALIDATION: 400,
    ErrorCategory.AUTH: 403,
    ErrorCategory.NOT_FOUND: 404,
    ErrorCategory.CONFLICT: 409,
}


@dataclass(frozen=True, slots=True)
class Violation:
    code: str
    message: str
    field_hints: tuple[str, ...] = ()
    policy_id: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"code": self.code, "message": self.message}
        if self.field_hints:
            data["fieldHints"] = list(self.field_hints)
        if self.policy_id:
            data["policyId"] = self.policy_id
        return data


class AppError(Exception):
    category: ErrorCategory = ErrorCategory.VALIDATION

    def __init__(
        self,
        code: str,
        message: str,
        category: ErrorCategory | None = None,
        details: dict[str, Any] | None = None,
        http_status: int | None = None,
    ):
        super().__init__(message)
        self.code = code
        self.message = message
        if category is not None:
            self.category = category
        self.details = dict(details or {})
        self.details.setdefault("violations", [Violation(code, message).to_dict()])
        self._http_status = http_status
        self.correlation_id: str | None = None

    @property
    def http_status(self) -> int:
        if self._http_status is not None:
            return self._http_status
        return CATEGORY_HTTP_STATUS[self.category]

    def to_dict(self) -> dict[str, Any]:
        return {
            "code": self.code,
            "message": self.message,
            "category": self.category.value,
            "details": self.details,
            "correlationId": self.correlation_id,
        }

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.code!r}, {self.message!r})"


class PostingError(AppError):
    """Raised by core invariants and posting policies."""

    category = ErrorCategory.CORE_INVARIANT

    def __init__(
        self,
        code: str,
        message: str,
        category: ErrorCategory = ErrorCategory.CORE_INVARIANT,
        violations: list[Violation] | None = None,
    ):
        self.violations = list(violations or [Violation(code, message)])
        super().__init__(
            code,
            message,
            category,
            details={"violations": [v.to_dict() for v in self.violations]},
        )


class ValidationError(AppError):
    category = ErrorCategory.VALIDATION

    def __init__(self, code: str, message: str, details: dict[str, Any] | None = None):
        super().__init__(code, message, ErrorCategory.VALIDATION, details)


class BusinessError(AppError):
    """Workflow rule broken, e.g. an illegal status transition."""

    category = ErrorCategory.VALIDATION


class NotFoundError(AppError):
    category = ErrorCategory.NOT_FOUND

    def __init__(self, code: str, message: str, details: dict[str, Any] | None = None):
        super().__init__(code, message, ErrorCategory.NOT_FOUND, details)


class PermissionDeniedError(AppError):
    category = ErrorCategory.AUTH

    def __init__(self, code: str, message: str, details: dict[str, Any] | None = None):
        super().__init__(code, message, ErrorCategory.AUTH, details)


class ConflictError(AppError):
    category = ErrorCategory.CONFLICT

    def __init__(self, code: str, message: str, details: dict[str, Any] | None = None):
        super().__init__(code, message, ErrorCategory.CONFLICT, details)


class VoucherLockedError(AppError):
    """Edit or delete attempted on a locked voucher. Rendered as HTTP 423."""

    category = ErrorCategory.POLICY

    def __init__(self, code: str, message: str, remedy: str | None = None):
        details = {"remedy": remedy} if remedy else {}
        super().__init__(code, message, ErrorCategory.POLICY, details, http_status=423)
        self.remedy = remedy


@dataclass
class ErrorDetails:
    """Helper for collecting violations before raising a single error."""
    violations: list[Violation] = field(default_factory=list)

    def add(self, code: str, message: str, *field_hints: str, policy_id: str | None = None) -> None:
        self.violations.append(Violation(code, message, tuple(field_hints), policy_id))

    def __bool__(self) -> bool:
        return bool(self.violations)

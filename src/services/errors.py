from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Generic, TypeVar


T = TypeVar("T")


class ResultKind(str, Enum):
    OK = "ok"
    VALIDATION_FAILED = "validation_failed"
    SECURITY_REJECTED = "security_rejected"
    BUSINESS_RULE_VIOLATION = "business_rule_violation"
    CONCURRENCY_CONFLICT = "concurrency_conflict"
    NOT_FOUND = "not_found"


@dataclass(frozen=True)
class Outcome(Generic[T]):
    """Tagged result of a pipeline call.

    Expected failures (bad input, stale token, missing record) come back as an
    Outcome; only unexpected failures raise (``SystemFailure``).
    """

    kind: ResultKind
    value: T | None = None
    message: str | None = None

    @property
    def ok(self) -> bool:
        return self.kind is ResultKind.OK

    @classmethod
    def success(cls, value: T) -> "Outcome[T]":
        return cls(kind=ResultKind.OK, value=value)

    @classmethod
    def not_found(cls, message: str | None = None) -> "Outcome[T]":
        return cls(kind=ResultKind.NOT_FOUND, message=message)

    @classmethod
    def from_rejection(cls, exc: "ApplicantRejected") -> "Outcome[T]":
        return cls(kind=exc.kind, message=exc.message)


class ApplicantRejected(Exception):
    """Base for expected, client-correctable failures.

    Raised inside a pipeline to abort (and roll back) the transaction; the entry
    point converts it into an ``Outcome``.
    """

    kind: ResultKind = ResultKind.VALIDATION_FAILED

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationFailed(ApplicantRejected):
    kind = ResultKind.VALIDATION_FAILED


class SecurityRejected(ApplicantRejected):
    kind = ResultKind.SECURITY_REJECTED


class BusinessRuleViolation(ApplicantRejected):
    kind = ResultKind.BUSINESS_RULE_VIOLATION


class ConcurrencyConflict(ApplicantRejected):
    kind = ResultKind.CONCURRENCY_CONFLICT


class SystemFailure(Exception):
    """Unexpected failure (store unavailable, bug). Wraps the original cause."""

    def __init__(self, operation: str, cause: BaseException) -> None:
        super().__init__(f"Failed to {operation.lower()} applicant: {cause}")
        self.operation = operation
        self.cause = cause

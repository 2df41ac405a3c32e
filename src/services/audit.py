"""Audit events for applicant mutations.

Two sinks, both synchronous:

* an ``AuditLog`` row added to the caller's session, so it commits or rolls back
  together with the mutation it describes;
* structured events dispatched to the ``applicants.audit`` logger and to any
  subscribed callables (tests subscribe a list's ``append``).
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import asdict, dataclass
import logging
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from src.models.applicant import Applicant
from src.models.audit_log import AuditLog


logger = logging.getLogger("applicants.audit")


@dataclass(frozen=True)
class RecordCreated:
    id: int
    actor: str


@dataclass(frozen=True)
class RecordUpdated:
    id: int
    actor: str


@dataclass(frozen=True)
class RecordDeleted:
    id: int
    hard: bool
    reason: str | None
    actor: str


@dataclass(frozen=True)
class ValidationRejected:
    operation: str
    id: int | None
    reason: str


@dataclass(frozen=True)
class SecurityRejected:
    operation: str
    id: int | None
    reason: str


@dataclass(frozen=True)
class SystemError:
    operation: str
    id: int | None
    cause: str


AuditEvent = RecordCreated | RecordUpdated | RecordDeleted | ValidationRejected | SecurityRejected | SystemError

_LEVELS: dict[type, int] = {
    RecordCreated: logging.INFO,
    RecordUpdated: logging.INFO,
    RecordDeleted: logging.INFO,
    ValidationRejected: logging.WARNING,
    SecurityRejected: logging.WARNING,
    SystemError: logging.ERROR,
}

_SNAPSHOT_FIELDS = (
    "name",
    "family_name",
    "address",
    "email_address",
    "phone",
    "age",
    "country_of_origin",
    "applied_date",
    "hired",
    "is_deleted",
    "deleted_date",
    "deleted_reason",
)


def applicant_snapshot(applicant: Applicant) -> dict[str, Any]:
    data: dict[str, Any] = {}
    for field in _SNAPSHOT_FIELDS:
        value = getattr(applicant, field)
        if hasattr(value, "isoformat"):
            value = value.isoformat()
        data[field] = value
    return data


class AuditTrail:
    def __init__(self, subscribers: list[Callable[[AuditEvent], None]] | None = None) -> None:
        self._subscribers: list[Callable[[AuditEvent], None]] = list(subscribers or [])

    def subscribe(self, callback: Callable[[AuditEvent], None]) -> None:
        self._subscribers.append(callback)

    def emit(self, event: AuditEvent) -> None:
        fields = " ".join(f"{k}={v}" for k, v in asdict(event).items())
        extra = {"audit_event": type(event).__name__}
        if isinstance(event, SecurityRejected):
            extra["severity"] = "security"
        logger.log(_LEVELS[type(event)], "%s %s", type(event).__name__, fields, extra=extra)

        for callback in self._subscribers:
            callback(event)

    def record(
        self,
        session: AsyncSession,
        *,
        entity_id: int,
        action: str,
        actor: str,
        old_value: dict[str, Any] | None = None,
        new_value: dict[str, Any] | None = None,
        change_summary: str | None = None,
        request_id: str | None = None,
    ) -> AuditLog:
        """Stage an audit row in the caller's transaction."""

        entry = AuditLog(
            entity_type="applicant",
            entity_id=entity_id,
            action=action,
            actor=actor,
            old_value=old_value,
            new_value=new_value,
            change_summary=change_summary,
            request_id=request_id,
        )
        session.add(entry)
        return entry

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import datetime, timezone
import logging
from typing import Any

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.exc import StaleDataError

from src.config import settings
from src.crud.applicant import applicants
from src.models.applicant import Applicant
from src.schemas.applicant import CreateApplicantCommand, DeleteApplicantCommand, UpdateApplicantCommand
from src.services import audit
from src.services.concurrency import row_versions_equal
from src.services.errors import (
    ApplicantRejected,
    BusinessRuleViolation,
    ConcurrencyConflict,
    Outcome,
    ResultKind,
    SecurityRejected,
    SystemFailure,
    ValidationFailed,
)
from src.validators.fields import (
    ADDRESS_ALLOWED_CHARS,
    ADDRESS_LENGTH,
    BUSINESS_AGE_RANGE,
    DELETE_REASON_MAX_LENGTH,
    EMAIL_ALLOWED_CHARS,
    FIELD_ALLOWED_CHARS,
    NAME_ALLOWED_CHARS,
    PHONE_DIGITS_RANGE,
    UPDATE_NAME_LENGTH,
    has_valid_phone_digit_count,
    is_suspicious,
    is_valid_address,
    is_valid_age,
    is_valid_applied_date,
    is_valid_country,
    is_valid_email,
    is_valid_name,
    is_valid_phone,
    normalize_email,
)
from src.validators.security import is_sql_injection_attempt, is_xss_attempt, sanitize_input


logger = logging.getLogger("applicants.service")

# Returns True/False when the country is known to be valid/invalid, None when
# the lookup could not decide.
CountryLookup = Callable[[str], Awaitable[bool | None]]

_SCANNED_FIELDS = (
    ("name", "Name"),
    ("family_name", "Family name"),
    ("email_address", "Email address"),
    ("address", "Address"),
    ("phone", "Phone"),
    ("country_of_origin", "Country of origin"),
)


@dataclass(frozen=True)
class MutationPolicy:
    """Business-rule knobs for the mutation pipeline."""

    age_bounds: tuple[int, int] = BUSINESS_AGE_RANGE
    system_actor: str = "System"
    default_delete_reason: str = "User requested deletion"
    allow_unknown_country: bool = True

    @classmethod
    def from_settings(cls) -> "MutationPolicy":
        return cls(
            age_bounds=(settings.applicant_age_min, settings.applicant_age_max),
            system_actor=settings.system_actor,
            default_delete_reason=settings.default_delete_reason,
            allow_unknown_country=settings.country_validation_allow_unknown,
        )


def _utcnow() -> datetime:
    return datetime.now(tz=timezone.utc)


def _check(label: str, value: str | None, valid: bool, *, allowed_chars: str) -> None:
    """Classify a failed format check: heuristic match vs plain bad format."""

    if valid:
        return
    if is_suspicious(value, allowed_chars=allowed_chars):
        raise SecurityRejected(f"{label} contains potentially malicious content")
    if value is None or not value.strip():
        raise ValidationFailed(f"{label} is required")
    raise ValidationFailed(f"Invalid {label.lower()} format")


def _validate_security(command: CreateApplicantCommand | UpdateApplicantCommand, *, check_phone: bool) -> None:
    _check("Email address", command.email_address, is_valid_email(command.email_address), allowed_chars=EMAIL_ALLOWED_CHARS)
    _check("Name", command.name, is_valid_name(command.name, length=UPDATE_NAME_LENGTH), allowed_chars=NAME_ALLOWED_CHARS)
    _check(
        "Family name",
        command.family_name,
        is_valid_name(command.family_name, length=UPDATE_NAME_LENGTH),
        allowed_chars=NAME_ALLOWED_CHARS,
    )
    _check(
        "Address",
        command.address,
        is_valid_address(command.address, length=ADDRESS_LENGTH),
        allowed_chars=ADDRESS_ALLOWED_CHARS,
    )
    _check(
        "Country of origin",
        command.country_of_origin,
        is_valid_country(command.country_of_origin),
        allowed_chars=NAME_ALLOWED_CHARS,
    )
    if check_phone and not is_valid_phone(command.phone):
        if is_sql_injection_attempt(command.phone) or is_xss_attempt(command.phone):
            raise SecurityRejected("Phone contains potentially malicious content")
        raise ValidationFailed("Invalid phone number format. Must contain 7-15 digits")

    for attr, label in _SCANNED_FIELDS:
        if is_sql_injection_attempt(getattr(command, attr), allowed_chars=FIELD_ALLOWED_CHARS[attr]):
            raise SecurityRejected(f"Potential SQL injection detected in {label.lower()}")
    for attr, label in _SCANNED_FIELDS:
        if is_xss_attempt(getattr(command, attr)):
            raise SecurityRejected(f"Potential XSS attack detected in {label.lower()}")


def _sanitized_values(command: CreateApplicantCommand | UpdateApplicantCommand) -> dict[str, Any]:
    return {
        "name": sanitize_input(command.name),
        "family_name": sanitize_input(command.family_name),
        "address": sanitize_input(command.address),
        "email_address": sanitize_input(normalize_email(command.email_address)),
        "phone": sanitize_input(command.phone),
        "age": command.age,
        "country_of_origin": sanitize_input(command.country_of_origin),
        "applied_date": command.applied_date,
        "hired": command.hired,
    }


def _check_stored_lengths(values: dict[str, Any]) -> None:
    """Sanitizing can grow a value (' becomes &#x27;). Reject what no longer fits its column."""

    for attr, label in _SCANNED_FIELDS:
        limit = Applicant.__table__.c[attr].type.length
        if limit is not None and len(values[attr]) > limit:
            raise ValidationFailed(f"{label} is too long once encoded (max {limit} characters)")


def _is_email_conflict(e: IntegrityError) -> bool:
    return "email" in str(e.orig).lower()


class ApplicantService:
    """Validated create/update/delete of applicants.

    Every entry point owns exactly one transaction on the given session:
    ``async with session.begin()`` commits on success and rolls back when a
    rejection (or anything else) is raised inside it.
    """

    def __init__(
        self,
        *,
        policy: MutationPolicy | None = None,
        audit_trail: audit.AuditTrail | None = None,
        country_lookup: CountryLookup | None = None,
    ) -> None:
        self._policy = policy or MutationPolicy()
        self._audit = audit_trail or audit.AuditTrail()
        self._country_lookup = country_lookup

    # ---- entry points -------------------------------------------------

    async def create(
        self,
        session: AsyncSession,
        command: CreateApplicantCommand | None,
        *,
        request_id: str | None = None,
    ) -> Outcome[int]:
        try:
            async with session.begin():
                applicant_id = await self._create(session, command, request_id=request_id)
        except ApplicantRejected as e:
            return self._rejected("Create", None, e)
        except Exception as e:
            raise self._failed("Create", None, e) from e

        self._audit.emit(audit.RecordCreated(id=applicant_id, actor=self._policy.system_actor))
        return Outcome.success(applicant_id)

    async def update(
        self,
        session: AsyncSession,
        command: UpdateApplicantCommand | None,
        *,
        request_id: str | None = None,
    ) -> Outcome[Applicant]:
        applicant_id = command.id if command is not None else None
        try:
            async with session.begin():
                record = await self._update(session, command, request_id=request_id)
        except ApplicantRejected as e:
            return self._rejected("Update", applicant_id, e)
        except Exception as e:
            raise self._failed("Update", applicant_id, e) from e

        if record is None:
            return Outcome.not_found(f"Applicant with ID {applicant_id} not found")

        self._audit.emit(audit.RecordUpdated(id=record.id, actor=self._policy.system_actor))
        return Outcome.success(record)

    async def delete(
        self,
        session: AsyncSession,
        command: DeleteApplicantCommand | None,
        *,
        request_id: str | None = None,
    ) -> Outcome[bool]:
        applicant_id = command.id if command is not None else None
        try:
            async with session.begin():
                event = await self._delete(session, command, request_id=request_id)
        except ApplicantRejected as e:
            return self._rejected("Delete", applicant_id, e)
        except Exception as e:
            raise self._failed("Delete", applicant_id, e) from e

        if event is None:
            return Outcome.not_found(f"Applicant with ID {applicant_id} not found")

        self._audit.emit(event)
        return Outcome.success(True)

    # ---- flows (run inside the transaction) ---------------------------

    async def _create(self, session: AsyncSession, command: CreateApplicantCommand | None, *, request_id: str | None) -> int:
        if command is None:
            raise ValidationFailed("Create command is required")

        _validate_security(command, check_phone=False)
        await self._check_country(command.country_of_origin)

        email = normalize_email(command.email_address)
        if await applicants.email_exists(session, email=email):
            raise BusinessRuleViolation("An applicant with this email address already exists")

        self._check_age_and_date(command.age, command.applied_date)
        if command.phone and not has_valid_phone_digit_count(command.phone):
            lo, hi = PHONE_DIGITS_RANGE
            raise BusinessRuleViolation(f"Phone number must contain between {lo} and {hi} digits")

        values = _sanitized_values(command)
        _check_stored_lengths(values)

        now = _utcnow()
        actor = self._policy.system_actor
        entity = Applicant(
            **values,
            created_date=now,
            last_modified_date=now,
            created_by=actor,
            last_modified_by=actor,
            is_deleted=False,
            deleted_date=None,
            deleted_reason=None,
        )

        try:
            await applicants.insert(session, db_obj=entity)
        except IntegrityError as e:
            if _is_email_conflict(e):
                raise BusinessRuleViolation("An applicant with this email address already exists") from e
            raise

        self._audit.record(
            session,
            entity_id=entity.id,
            action="create",
            actor=actor,
            new_value=audit.applicant_snapshot(entity),
            change_summary=f"Created applicant {entity.id}",
            request_id=request_id,
        )
        logger.info("applicant_created id=%s request_id=%s", entity.id, request_id)
        return entity.id

    async def _update(
        self, session: AsyncSession, command: UpdateApplicantCommand | None, *, request_id: str | None
    ) -> Applicant | None:
        if command is None:
            raise ValidationFailed("Update command is required")
        if command.id is None or command.id <= 0:
            raise ValidationFailed("Invalid applicant ID")

        _validate_security(command, check_phone=True)
        await self._check_country(command.country_of_origin)

        record = await applicants.get(session, applicant_id=command.id)
        if record is None:
            return None

        if command.row_version is not None and not row_versions_equal(command.row_version, record.row_version):
            raise ConcurrencyConflict(
                "The record was modified by another user. Please refresh and try again."
            )

        email = normalize_email(command.email_address)
        if await applicants.email_exists(session, email=email, exclude_id=record.id):
            raise BusinessRuleViolation("An applicant with this email address already exists")

        self._check_age_and_date(command.age, command.applied_date)

        before = audit.applicant_snapshot(record)
        actor = self._policy.system_actor
        values = _sanitized_values(command)
        _check_stored_lengths(values)
        values["last_modified_date"] = _utcnow()
        values["last_modified_by"] = actor

        await self._write(session, record, values)

        self._audit.record(
            session,
            entity_id=record.id,
            action="update",
            actor=actor,
            old_value=before,
            new_value=audit.applicant_snapshot(record),
            change_summary=f"Updated applicant {record.id}",
            request_id=request_id,
        )
        logger.info("applicant_updated id=%s request_id=%s", record.id, request_id)
        return record

    async def _delete(
        self, session: AsyncSession, command: DeleteApplicantCommand | None, *, request_id: str | None
    ) -> audit.RecordDeleted | None:
        if command is None:
            raise ValidationFailed("Delete command is required")
        if command.id <= 0:
            raise ValidationFailed("Invalid applicant ID")
        if command.row_version is not None and len(command.row_version) == 0:
            raise ValidationFailed("Row version cannot be empty")
        if command.reason is not None:
            if len(command.reason) > DELETE_REASON_MAX_LENGTH:
                raise ValidationFailed(f"Delete reason cannot exceed {DELETE_REASON_MAX_LENGTH} characters")
            if is_suspicious(command.reason):
                raise SecurityRejected("Delete reason contains potentially malicious content")

        record = await applicants.get(session, applicant_id=command.id)
        if record is None:
            return None

        if command.row_version is not None and not row_versions_equal(command.row_version, record.row_version):
            raise ConcurrencyConflict(
                "The record was modified by another user. Please refresh and try again."
            )

        actor = self._policy.system_actor
        before = audit.applicant_snapshot(record)

        if command.hard_delete:
            reason = sanitize_input(command.reason) if command.reason else None
            try:
                await applicants.delete(session, db_obj=record)
            except StaleDataError as e:
                raise ConcurrencyConflict(
                    "The record was modified by another user. Please refresh and try again."
                ) from e
            self._audit.record(
                session,
                entity_id=command.id,
                action="hard_delete",
                actor=actor,
                old_value=before,
                change_summary=f"Permanently deleted applicant {command.id}",
                request_id=request_id,
            )
        else:
            reason = sanitize_input(command.reason) if command.reason else self._policy.default_delete_reason
            if len(reason) > DELETE_REASON_MAX_LENGTH:
                raise ValidationFailed("Delete reason is too long once encoded")
            now = _utcnow()
            await self._write(
                session,
                record,
                {
                    "is_deleted": True,
                    "deleted_date": now,
                    "deleted_reason": reason,
                    "last_modified_date": now,
                    "last_modified_by": actor,
                },
            )
            self._audit.record(
                session,
                entity_id=record.id,
                action="soft_delete",
                actor=actor,
                old_value=before,
                new_value=audit.applicant_snapshot(record),
                change_summary=f"Soft-deleted applicant {record.id}: {reason}",
                request_id=request_id,
            )

        logger.info(
            "applicant_deleted id=%s hard=%s request_id=%s", command.id, command.hard_delete, request_id
        )
        return audit.RecordDeleted(id=command.id, hard=command.hard_delete, reason=reason, actor=actor)

    # ---- helpers ------------------------------------------------------

    async def _write(self, session: AsyncSession, record: Applicant, values: dict[str, Any]) -> None:
        try:
            await applicants.update(session, db_obj=record, values=values)
        except StaleDataError as e:
            raise ConcurrencyConflict(
                "The record was modified by another user. Please refresh and try again."
            ) from e
        except IntegrityError as e:
            if _is_email_conflict(e):
                raise BusinessRuleViolation("An applicant with this email address already exists") from e
            raise

    def _check_age_and_date(self, age: int, applied_date: datetime) -> None:
        lo, hi = self._policy.age_bounds
        if not is_valid_age(age, bounds=(lo, hi)):
            raise BusinessRuleViolation(f"Age must be between {lo} and {hi}")
        if not is_valid_applied_date(applied_date):
            raise BusinessRuleViolation("Applied date cannot be in the future")

    async def _check_country(self, country: str) -> None:
        if self._country_lookup is None:
            return

        known = await self._country_lookup(country)
        if known is False:
            raise ValidationFailed(f"Country '{sanitize_input(country)}' is not a recognized country")
        if known is None and not self._policy.allow_unknown_country:
            raise ValidationFailed("Country could not be verified, please try again later")

    def _rejected(self, operation: str, applicant_id: int | None, e: ApplicantRejected) -> Outcome[Any]:
        if e.kind is ResultKind.SECURITY_REJECTED:
            self._audit.emit(audit.SecurityRejected(operation=operation, id=applicant_id, reason=e.message))
        elif e.kind in (ResultKind.VALIDATION_FAILED, ResultKind.BUSINESS_RULE_VIOLATION):
            self._audit.emit(audit.ValidationRejected(operation=operation, id=applicant_id, reason=e.message))
        else:
            logger.info("%s_conflict id=%s", operation.lower(), applicant_id)
        return Outcome.from_rejection(e)

    def _failed(self, operation: str, applicant_id: int | None, e: Exception) -> SystemFailure:
        logger.exception("%s_failed id=%s", operation.lower(), applicant_id)
        self._audit.emit(audit.SystemError(operation=operation, id=applicant_id, cause=f"{type(e).__name__}: {e}"))
        return SystemFailure(operation, e)

"""Per-field format rules for applicant data.

Some rules differ by call site:

* names are 5-100 characters on create, 2-100 on update;
* the create schema wants an Egyptian ``+20`` phone, the update path takes any
  7-15 digit phone, and the create pipeline only counts digits;
* the entity/create-schema age bound is [20, 60] while the business rule in the
  pipeline is [18, 65] (configurable, see ``Settings.applicant_age_min``).
"""

from __future__ import annotations

from datetime import datetime, timezone
import re

from src.validators.security import is_sql_injection_attempt, is_xss_attempt


NAME_RE = re.compile(r"^[a-zA-Z\s\-']+$")
EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$", re.IGNORECASE)
STRICT_EMAIL_RE = re.compile(r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$")
PHONE_RE = re.compile(r"^\d{7,15}$")
CREATE_PHONE_RE = re.compile(r"^\+20\d{10}$")
ADDRESS_RE = re.compile(r"^[a-zA-Z0-9\s,.\-#]+$")
COUNTRY_RE = NAME_RE

CREATE_NAME_LENGTH = (5, 100)
UPDATE_NAME_LENGTH = (2, 100)
ADDRESS_LENGTH = (10, 255)
COUNTRY_LENGTH = (2, 100)
EMAIL_MAX_LENGTH = 100
PHONE_MAX_LENGTH = 20
DELETE_REASON_MAX_LENGTH = 500

ENTITY_AGE_RANGE = (20, 60)
BUSINESS_AGE_RANGE = (18, 65)

PHONE_DIGITS_RANGE = (7, 15)

# SQL metacharacters each field's own grammar admits.
NAME_ALLOWED_CHARS = "-'"
ADDRESS_ALLOWED_CHARS = "-"
EMAIL_ALLOWED_CHARS = "-"

FIELD_ALLOWED_CHARS: dict[str, str] = {
    "name": NAME_ALLOWED_CHARS,
    "family_name": NAME_ALLOWED_CHARS,
    "email_address": EMAIL_ALLOWED_CHARS,
    "address": ADDRESS_ALLOWED_CHARS,
    "phone": "",
    "country_of_origin": NAME_ALLOWED_CHARS,
}


def _blank(value: str | None) -> bool:
    return value is None or not value.strip()


def _length_ok(value: str, bounds: tuple[int, int] | None) -> bool:
    if bounds is None:
        return True
    lo, hi = bounds
    return lo <= len(value) <= hi


def is_suspicious(value: str | None, *, allowed_chars: str = "") -> bool:
    return is_sql_injection_attempt(value, allowed_chars=allowed_chars) or is_xss_attempt(value)


def is_valid_name(name: str | None, *, length: tuple[int, int] | None = None) -> bool:
    if _blank(name):
        return False
    return (
        NAME_RE.match(name) is not None
        and _length_ok(name, length)
        and not is_suspicious(name, allowed_chars=NAME_ALLOWED_CHARS)
    )


def is_valid_email(email: str | None) -> bool:
    if _blank(email):
        return False
    return EMAIL_RE.match(email) is not None and not is_suspicious(email, allowed_chars=EMAIL_ALLOWED_CHARS)


def is_valid_phone(phone: str | None) -> bool:
    """Generic rule: 7-15 digits, nothing else."""

    if _blank(phone):
        return False
    return PHONE_RE.match(phone) is not None and not is_sql_injection_attempt(phone)


def is_valid_create_phone(phone: str | None) -> bool:
    """Create-command rule: literal ``+20`` followed by exactly 10 digits."""

    if _blank(phone):
        return False
    return CREATE_PHONE_RE.match(phone) is not None


def phone_digits(phone: str | None) -> str:
    if not phone:
        return ""
    return re.sub(r"\D", "", phone)


def has_valid_phone_digit_count(phone: str | None) -> bool:
    lo, hi = PHONE_DIGITS_RANGE
    return lo <= len(phone_digits(phone)) <= hi


def is_valid_address(address: str | None, *, length: tuple[int, int] | None = None) -> bool:
    if _blank(address):
        return False
    return (
        ADDRESS_RE.match(address) is not None
        and _length_ok(address, length)
        and not is_suspicious(address, allowed_chars=ADDRESS_ALLOWED_CHARS)
    )


def is_valid_country(country: str | None) -> bool:
    if _blank(country):
        return False
    return COUNTRY_RE.match(country) is not None and not is_suspicious(country, allowed_chars=NAME_ALLOWED_CHARS)


def is_valid_age(age: int | None, *, bounds: tuple[int, int] = BUSINESS_AGE_RANGE) -> bool:
    if age is None:
        return False
    lo, hi = bounds
    return lo <= age <= hi


def as_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC."""

    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def is_valid_applied_date(applied: datetime | None, *, now: datetime | None = None) -> bool:
    if applied is None:
        return False
    now = now or datetime.now(timezone.utc)
    return as_utc(applied) <= as_utc(now)


def normalize_email(email: str) -> str:
    return email.strip().lower()

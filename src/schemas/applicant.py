from __future__ import annotations

from datetime import datetime
import re
from typing import Any

from pydantic import BaseModel, Field, field_validator

from src.services.concurrency import decode_row_version, encode_row_version
from src.validators.fields import (
    ADDRESS_LENGTH,
    COUNTRY_LENGTH,
    CREATE_NAME_LENGTH,
    EMAIL_MAX_LENGTH,
    ENTITY_AGE_RANGE,
    NAME_RE,
    PHONE_MAX_LENGTH,
    STRICT_EMAIL_RE,
    UPDATE_NAME_LENGTH,
    as_utc,
    is_valid_create_phone,
)


UPDATE_PHONE_RE = re.compile(r"^[\+]?[0-9\s\-\(\)]{7,20}$")


def _row_version_from_wire(value: Any) -> Any:
    if isinstance(value, str):
        return decode_row_version(value)
    return value


class CreateApplicantCommand(BaseModel):
    """Create-path schema. Stricter than the pipeline's business rules in places
    (age [20, 60], ``+20`` phone, 5-character names)."""

    name: str = Field(min_length=CREATE_NAME_LENGTH[0], max_length=CREATE_NAME_LENGTH[1])
    family_name: str = Field(min_length=CREATE_NAME_LENGTH[0], max_length=CREATE_NAME_LENGTH[1])
    address: str = Field(min_length=ADDRESS_LENGTH[0], max_length=ADDRESS_LENGTH[1])
    email_address: str = Field(max_length=EMAIL_MAX_LENGTH)
    phone: str
    age: int = Field(ge=ENTITY_AGE_RANGE[0], le=ENTITY_AGE_RANGE[1])
    country_of_origin: str = Field(min_length=1)
    applied_date: datetime
    hired: bool = False

    @field_validator("email_address")
    @classmethod
    def _email_format(cls, v: str) -> str:
        if not STRICT_EMAIL_RE.match(v):
            raise ValueError("Invalid email format")
        return v

    @field_validator("phone")
    @classmethod
    def _phone_format(cls, v: str) -> str:
        if not is_valid_create_phone(v):
            raise ValueError("Phone number must be exactly 10 digits after +20 prefix")
        return v

    @field_validator("country_of_origin")
    @classmethod
    def _country_present(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Country of Origin is required")
        return v

    @field_validator("applied_date")
    @classmethod
    def _applied_date_utc(cls, v: datetime) -> datetime:
        return as_utc(v)


class UpdateApplicantCommand(BaseModel):
    """Update-path schema. ``id`` is normally taken from the URL."""

    id: int | None = None

    name: str = Field(min_length=UPDATE_NAME_LENGTH[0], max_length=UPDATE_NAME_LENGTH[1])
    family_name: str = Field(min_length=UPDATE_NAME_LENGTH[0], max_length=UPDATE_NAME_LENGTH[1])
    address: str = Field(min_length=ADDRESS_LENGTH[0], max_length=ADDRESS_LENGTH[1])
    email_address: str = Field(max_length=EMAIL_MAX_LENGTH)
    phone: str = Field(max_length=PHONE_MAX_LENGTH)
    # Bounded by the pipeline's configurable business rule, not here.
    age: int
    country_of_origin: str = Field(min_length=COUNTRY_LENGTH[0], max_length=COUNTRY_LENGTH[1])
    applied_date: datetime
    hired: bool = False

    # Base64 on the wire, raw bytes once validated.
    row_version: bytes | None = None

    @field_validator("name", "family_name")
    @classmethod
    def _name_chars(cls, v: str) -> str:
        if not NAME_RE.match(v):
            raise ValueError("Name can only contain letters, spaces, hyphens, and apostrophes")
        return v

    @field_validator("email_address")
    @classmethod
    def _email_format(cls, v: str) -> str:
        if not STRICT_EMAIL_RE.match(v):
            raise ValueError("Invalid email address format")
        return v

    @field_validator("phone")
    @classmethod
    def _phone_format(cls, v: str) -> str:
        if not UPDATE_PHONE_RE.match(v):
            raise ValueError("Invalid phone number format")
        return v

    @field_validator("applied_date")
    @classmethod
    def _applied_date_utc(cls, v: datetime) -> datetime:
        return as_utc(v)

    @field_validator("row_version", mode="before")
    @classmethod
    def _decode_row_version(cls, v: Any) -> Any:
        return _row_version_from_wire(v)


class DeleteApplicantCommand(BaseModel):
    """Checked by the delete pipeline, not here."""

    id: int
    row_version: bytes | None = None
    hard_delete: bool = False
    reason: str | None = None

    @field_validator("row_version", mode="before")
    @classmethod
    def _decode_row_version(cls, v: Any) -> Any:
        return _row_version_from_wire(v)


class ApplicantFilter(BaseModel):
    """Every option the list query understands, with its default."""

    search_term: str | None = None
    min_age: int | None = None
    max_age: int | None = None
    country: str | None = None
    hired: bool | None = None
    applied_from: datetime | None = None
    applied_to: datetime | None = None
    sort_by: str = "name"
    sort_descending: bool = False
    page: int = 1
    page_size: int = 50
    include_deleted: bool = False

    @field_validator("applied_from", "applied_to")
    @classmethod
    def _dates_utc(cls, v: datetime | None) -> datetime | None:
        return as_utc(v) if v is not None else None


class ApplicantCreated(BaseModel):
    id: int


class ApplicantRead(BaseModel):
    id: int

    name: str
    family_name: str
    address: str
    email_address: str
    phone: str
    age: int
    country_of_origin: str
    applied_date: datetime
    hired: bool

    created_date: datetime
    last_modified_date: datetime | None = None
    created_by: str | None = None
    last_modified_by: str | None = None

    is_deleted: bool
    deleted_date: datetime | None = None
    deleted_reason: str | None = None

    row_version: str

    @field_validator("row_version", mode="before")
    @classmethod
    def _encode_row_version(cls, v: Any) -> Any:
        if isinstance(v, (bytes, bytearray)):
            return encode_row_version(bytes(v))
        return v

    class Config:
        from_attributes = True


class ApplicantListResponse(BaseModel):
    items: list[ApplicantRead]
    total_count: int
    page: int
    page_size: int
    total_pages: int
    has_next_page: bool
    has_previous_page: bool

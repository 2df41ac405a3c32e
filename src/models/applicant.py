from __future__ import annotations

from datetime import datetime

from sqlalchemy import Boolean, DateTime, Index, Integer, LargeBinary, String, false, func, text
from sqlalchemy.orm import Mapped, mapped_column

from src.services.concurrency import ROW_VERSION_SIZE, new_row_version

from .base import Base


class Applicant(Base):
    __tablename__ = "applicants"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    name: Mapped[str] = mapped_column(String(100), nullable=False)
    family_name: Mapped[str] = mapped_column(String(100), nullable=False)
    address: Mapped[str] = mapped_column(String(255), nullable=False)
    email_address: Mapped[str] = mapped_column(String(100), nullable=False)
    phone: Mapped[str] = mapped_column(String(20), nullable=False)
    age: Mapped[int] = mapped_column(Integer, nullable=False)
    country_of_origin: Mapped[str] = mapped_column(String(100), nullable=False)
    applied_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    hired: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default=false())

    created_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now())
    last_modified_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_by: Mapped[str | None] = mapped_column(String(100), nullable=True)
    last_modified_by: Mapped[str | None] = mapped_column(String(100), nullable=True)

    is_deleted: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default=false())
    deleted_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    deleted_reason: Mapped[str | None] = mapped_column(String(500), nullable=True)

    # Regenerated by the ORM on every INSERT/UPDATE and added to the WHERE
    # clause of UPDATE/DELETE statements (StaleDataError on mismatch).
    row_version: Mapped[bytes] = mapped_column(LargeBinary(ROW_VERSION_SIZE), nullable=False)

    __mapper_args__ = {
        "version_id_col": row_version,
        "version_id_generator": new_row_version,
    }

    __table_args__ = (
        Index(
            "uq_applicants_email_active",
            "email_address",
            unique=True,
            postgresql_where=text("is_deleted = false"),
            sqlite_where=text("is_deleted = 0"),
        ),
        Index("ix_applicants_applied_date", "applied_date"),
        Index("ix_applicants_hired", "hired"),
        Index("ix_applicants_is_deleted_created_date", "is_deleted", "created_date"),
    )

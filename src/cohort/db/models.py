"""SQLAlchemy ORM models for all persistent tables."""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import Boolean, DateTime, ForeignKey, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from cohort.db.base import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------


class UserRow(Base):
    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    role: Mapped[str] = mapped_column(String(32))
    first_name: Mapped[str] = mapped_column(Text)
    surname: Mapped[str] = mapped_column(Text)
    middle_name: Mapped[str | None] = mapped_column(Text, nullable=True)
    email: Mapped[str] = mapped_column(String(320), unique=True)
    phone: Mapped[str] = mapped_column(String(32), unique=True)
    is_verified: Mapped[bool] = mapped_column(Boolean, default=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)


# ---------------------------------------------------------------------------
# Sponsors
# ---------------------------------------------------------------------------


class SponsorRow(Base):
    __tablename__ = "sponsors"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    name: Mapped[str] = mapped_column(String(255), unique=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)


# ---------------------------------------------------------------------------
# Trainees, staff and resource persons
# ---------------------------------------------------------------------------


class TraineeRow(Base):
    __tablename__ = "trainees"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    user_id: Mapped[str] = mapped_column(String(64), ForeignKey("users.id"))
    tag_number: Mapped[str] = mapped_column(String(16), unique=True)
    date_of_birth: Mapped[str] = mapped_column(String(10))
    gender: Mapped[str] = mapped_column(String(8))
    state: Mapped[str] = mapped_column(String(64))
    lga: Mapped[str] = mapped_column(String(128))
    sponsor_id: Mapped[str | None] = mapped_column(
        String(64), ForeignKey("sponsors.id"), nullable=True
    )
    room_number: Mapped[str | None] = mapped_column(String(16), nullable=True)
    room_block: Mapped[str | None] = mapped_column(String(32), nullable=True)
    verification_method: Mapped[str] = mapped_column(String(8))

    user: Mapped[UserRow] = relationship(lazy="joined")
    sponsor: Mapped[SponsorRow | None] = relationship(lazy="joined")

    __table_args__ = (
        Index("ix_trainees_gender_room", "gender", "room_block", "room_number"),
    )


class StaffRow(Base):
    __tablename__ = "staff"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    user_id: Mapped[str] = mapped_column(String(64), ForeignKey("users.id"))
    department: Mapped[str | None] = mapped_column(Text, nullable=True)
    position: Mapped[str | None] = mapped_column(Text, nullable=True)

    user: Mapped[UserRow] = relationship(lazy="joined")


class ResourcePersonRow(Base):
    __tablename__ = "resource_persons"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    user_id: Mapped[str] = mapped_column(String(64), ForeignKey("users.id"))
    specialization: Mapped[str | None] = mapped_column(Text, nullable=True)
    experience: Mapped[str | None] = mapped_column(Text, nullable=True)

    user: Mapped[UserRow] = relationship(lazy="joined")


# ---------------------------------------------------------------------------
# Verification codes
# ---------------------------------------------------------------------------


class VerificationCodeRow(Base):
    __tablename__ = "verification_codes"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    identifier: Mapped[str] = mapped_column(String(320))
    code: Mapped[str] = mapped_column(String(16))
    is_used: Mapped[bool] = mapped_column(Boolean, default=False)
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True))
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)

    __table_args__ = (
        Index("ix_verification_codes_identifier", "identifier"),
    )

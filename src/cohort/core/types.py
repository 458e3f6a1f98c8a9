"""Core type definitions shared across all Cohort modules."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, Field


class Gender(StrEnum):
    """Gender recorded at registration; also selects the hostel blocks."""

    MALE = "male"
    FEMALE = "female"


class VerificationMethod(StrEnum):
    """Channel used to deliver a one-time verification code."""

    EMAIL = "email"
    PHONE = "phone"


class UserRole(StrEnum):
    """Roles a user account can hold in the training program."""

    STAFF = "staff"
    RESOURCE_PERSON = "resource_person"
    TRAINEE = "trainee"


class AuditEvent(BaseModel):
    """Immutable audit log entry."""

    event_id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    actor: str
    action: str
    resource: str
    details: dict[str, Any] = Field(default_factory=dict)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_id() -> str:
    return str(uuid.uuid4())

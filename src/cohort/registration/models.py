"""Records and wire shapes for trainees, users, sponsors and codes.

Every model speaks camelCase on the wire and snake_case in Python.
Nullable read-model fields are always serialized, as ``null`` when unset,
so consumers can tell "unassigned" from "not requested".
"""

from __future__ import annotations

import re
from datetime import date, datetime
from typing import Any

from pydantic import BaseModel, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from cohort.core.types import Gender, UserRole, VerificationMethod, new_id, utcnow
from cohort.wizard.validators import EMAIL_PATTERN

_WIRE = {"alias_generator": to_camel, "populate_by_name": True}


def _blank_to_none(value: Any) -> Any:
    if isinstance(value, str) and not value.strip():
        return None
    return value


class TraineeRegistrationData(BaseModel):
    """One registration submission, collected across the wizard steps."""

    model_config = {**_WIRE, "str_strip_whitespace": True}

    first_name: str = Field(min_length=1)
    surname: str = Field(min_length=1)
    middle_name: str | None = None
    date_of_birth: str
    gender: Gender
    state: str = Field(min_length=1)
    lga: str = Field(min_length=1)
    email: str
    phone: str = Field(min_length=1)
    verification_method: VerificationMethod
    verification_code: str = Field(min_length=6, max_length=6)
    sponsor_id: str | None = None

    @field_validator("middle_name", "sponsor_id", mode="before")
    @classmethod
    def _optional_text(cls, value: Any) -> Any:
        return _blank_to_none(value)

    @field_validator("date_of_birth")
    @classmethod
    def _iso_date(cls, value: str) -> str:
        try:
            date.fromisoformat(value)
        except ValueError as exc:
            raise ValueError("dateOfBirth must be an ISO date (YYYY-MM-DD)") from exc
        return value

    @field_validator("email")
    @classmethod
    def _email(cls, value: str) -> str:
        if not re.fullmatch(EMAIL_PATTERN, value):
            raise ValueError("email must be a valid email address")
        return value

    @property
    def verification_identifier(self) -> str:
        """The email or phone the verification code was sent to."""
        if self.verification_method == VerificationMethod.EMAIL:
            return self.email
        return self.phone


class User(BaseModel):
    model_config = _WIRE

    id: str = Field(default_factory=new_id)
    role: UserRole
    first_name: str
    surname: str
    middle_name: str | None = None
    email: str
    phone: str
    is_verified: bool = False
    created_at: datetime = Field(default_factory=utcnow)


class UserSummary(BaseModel):
    """The user identity embedded in read models."""

    model_config = _WIRE

    id: str
    first_name: str
    surname: str
    middle_name: str | None = None
    email: str
    phone: str

    @classmethod
    def of(cls, user: User) -> UserSummary:
        return cls(
            id=user.id,
            first_name=user.first_name,
            surname=user.surname,
            middle_name=user.middle_name,
            email=user.email,
            phone=user.phone,
        )


class Sponsor(BaseModel):
    model_config = _WIRE

    id: str = Field(default_factory=new_id)
    name: str = Field(min_length=1)
    description: str | None = None
    is_active: bool = True
    created_at: datetime = Field(default_factory=utcnow)


class SponsorCreate(BaseModel):
    model_config = {**_WIRE, "str_strip_whitespace": True}

    name: str = Field(min_length=1)
    description: str | None = None
    is_active: bool = True


class SponsorUpdate(BaseModel):
    model_config = {**_WIRE, "str_strip_whitespace": True}

    name: str | None = Field(default=None, min_length=1)
    description: str | None = None
    is_active: bool | None = None


class Trainee(BaseModel):
    """A stored trainee row, without the joined user."""

    model_config = _WIRE

    id: str = Field(default_factory=new_id)
    user_id: str
    tag_number: str
    date_of_birth: str
    gender: Gender
    state: str
    lga: str
    sponsor_id: str | None = None
    room_number: str | None = None
    room_block: str | None = None
    verification_method: VerificationMethod


class TraineeUpdate(BaseModel):
    """Partial update; only fields present in the request are applied.

    Sponsor and room may be cleared with an explicit null. The other fields
    may be left out but never set to null.
    """

    model_config = {**_WIRE, "str_strip_whitespace": True}

    date_of_birth: str | None = None
    gender: Gender | None = None
    state: str | None = Field(default=None, min_length=1)
    lga: str | None = Field(default=None, min_length=1)
    sponsor_id: str | None = None
    room_number: str | None = None
    room_block: str | None = None

    @field_validator("date_of_birth")
    @classmethod
    def _iso_date(cls, value: str | None) -> str | None:
        if value is not None:
            try:
                date.fromisoformat(value)
            except ValueError as exc:
                raise ValueError("dateOfBirth must be an ISO date (YYYY-MM-DD)") from exc
        return value

    @model_validator(mode="after")
    def _required_not_cleared(self) -> TraineeUpdate:
        cleared = [
            to_camel(name)
            for name in ("date_of_birth", "gender", "state", "lga")
            if name in self.model_fields_set and getattr(self, name) is None
        ]
        if cleared:
            raise ValueError(f"{', '.join(cleared)} cannot be null")
        return self

    def changes(self) -> dict[str, Any]:
        return self.model_dump(exclude_unset=True)


class TraineeWithUser(BaseModel):
    """Read model joining a trainee with its user and sponsor."""

    model_config = _WIRE

    id: str
    user_id: str
    tag_number: str
    date_of_birth: str
    gender: Gender
    state: str
    lga: str
    sponsor_id: str | None = None
    room_number: str | None = None
    room_block: str | None = None
    verification_method: VerificationMethod
    user: UserSummary
    sponsor: Sponsor | None = None

    @property
    def room_assigned(self) -> bool:
        return self.room_number is not None and self.room_block is not None

    @classmethod
    def join(cls, trainee: Trainee, user: User, sponsor: Sponsor | None = None) -> TraineeWithUser:
        return cls(
            **trainee.model_dump(),
            user=UserSummary.of(user),
            sponsor=sponsor,
        )


class StaffMember(BaseModel):
    model_config = _WIRE

    id: str = Field(default_factory=new_id)
    user_id: str
    department: str | None = None
    position: str | None = None


class StaffWithUser(StaffMember):
    user: UserSummary


class ResourcePerson(BaseModel):
    model_config = _WIRE

    id: str = Field(default_factory=new_id)
    user_id: str
    specialization: str | None = None
    experience: str | None = None


class ResourcePersonWithUser(ResourcePerson):
    user: UserSummary


class VerificationCode(BaseModel):
    model_config = _WIRE

    id: str = Field(default_factory=new_id)
    identifier: str
    code: str
    is_used: bool = False
    expires_at: datetime
    created_at: datetime = Field(default_factory=utcnow)

    def expired(self, now: datetime | None = None) -> bool:
        return (now or utcnow()) > self.expires_at

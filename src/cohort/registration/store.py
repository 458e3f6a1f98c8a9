"""In-memory registry store."""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime
from typing import Any

from cohort.registration.models import (
    ResourcePerson,
    ResourcePersonWithUser,
    Sponsor,
    StaffMember,
    StaffWithUser,
    Trainee,
    TraineeWithUser,
    User,
    UserSummary,
    VerificationCode,
)


class RegistryStore:
    """In-memory dict store implementing ``RegistryRepository``.

    Methods are coroutines so it is interchangeable with the SQL repository.
    Suitable for development, tests and single-instance deployment.
    """

    def __init__(self) -> None:
        self._users: dict[str, User] = {}
        self._trainees: dict[str, Trainee] = {}
        self._staff: dict[str, StaffMember] = {}
        self._resource_persons: dict[str, ResourcePerson] = {}
        self._sponsors: dict[str, Sponsor] = {}
        self._codes: dict[str, VerificationCode] = {}

    # -- Users --

    async def get_user(self, user_id: str) -> User | None:
        return self._users.get(user_id)

    async def get_user_by_email_or_phone(self, identifier: str) -> User | None:
        for user in self._users.values():
            if identifier in (user.email, user.phone):
                return user
        return None

    async def create_user(self, user: User) -> User:
        for existing in self._users.values():
            if existing.email == user.email or existing.phone == user.phone:
                raise ValueError("User with this email or phone number already exists")
        self._users[user.id] = user
        return user

    async def delete_user(self, user_id: str) -> bool:
        return self._users.pop(user_id, None) is not None

    # -- Trainees --

    async def create_trainee(self, trainee: Trainee) -> Trainee:
        if any(t.tag_number == trainee.tag_number for t in self._trainees.values()):
            raise ValueError(f"Tag number {trainee.tag_number!r} is already assigned")
        self._trainees[trainee.id] = trainee
        return trainee

    async def get_trainee(self, trainee_id: str) -> TraineeWithUser | None:
        trainee = self._trainees.get(trainee_id)
        if trainee is None:
            return None
        return self._join(trainee)

    async def list_trainees(self) -> list[TraineeWithUser]:
        ordered = sorted(self._trainees.values(), key=lambda t: t.tag_number)
        return [self._join(t) for t in ordered]

    async def update_trainee(self, trainee_id: str, changes: dict[str, Any]) -> Trainee | None:
        trainee = self._trainees.get(trainee_id)
        if trainee is None:
            return None
        updated = Trainee.model_validate({**trainee.model_dump(), **changes})
        self._trainees[trainee_id] = updated
        return updated

    async def delete_trainee(self, trainee_id: str) -> bool:
        return self._trainees.pop(trainee_id, None) is not None

    async def list_tag_numbers(self) -> list[str]:
        return [t.tag_number for t in self._trainees.values()]

    async def room_occupancy(self, blocks: Iterable[str]) -> dict[tuple[str, str], int]:
        wanted = set(blocks)
        occupancy: dict[tuple[str, str], int] = {}
        for trainee in self._trainees.values():
            if trainee.room_block not in wanted or not trainee.room_number:
                continue
            key = (trainee.room_block, trainee.room_number)
            occupancy[key] = occupancy.get(key, 0) + 1
        return occupancy

    def _join(self, trainee: Trainee) -> TraineeWithUser:
        sponsor = self._sponsors.get(trainee.sponsor_id) if trainee.sponsor_id else None
        return TraineeWithUser.join(trainee, self._users[trainee.user_id], sponsor)

    # -- Staff and resource persons --

    async def create_staff(self, staff: StaffMember) -> StaffMember:
        self._staff[staff.id] = staff
        return staff

    async def list_staff(self) -> list[StaffWithUser]:
        return [
            StaffWithUser(**s.model_dump(), user=UserSummary.of(self._users[s.user_id]))
            for s in self._staff.values()
        ]

    async def create_resource_person(self, person: ResourcePerson) -> ResourcePerson:
        self._resource_persons[person.id] = person
        return person

    async def list_resource_persons(self) -> list[ResourcePersonWithUser]:
        return [
            ResourcePersonWithUser(**p.model_dump(), user=UserSummary.of(self._users[p.user_id]))
            for p in self._resource_persons.values()
        ]

    # -- Sponsors --

    async def create_sponsor(self, sponsor: Sponsor) -> Sponsor:
        self._sponsors[sponsor.id] = sponsor
        return sponsor

    async def get_sponsor(self, sponsor_id: str) -> Sponsor | None:
        return self._sponsors.get(sponsor_id)

    async def get_sponsor_by_name(self, name: str) -> Sponsor | None:
        for sponsor in self._sponsors.values():
            if sponsor.name == name:
                return sponsor
        return None

    async def list_active_sponsors(self) -> list[Sponsor]:
        active = [s for s in self._sponsors.values() if s.is_active]
        return sorted(active, key=lambda s: s.name)

    async def update_sponsor(self, sponsor_id: str, changes: dict[str, Any]) -> Sponsor | None:
        sponsor = self._sponsors.get(sponsor_id)
        if sponsor is None:
            return None
        updated = sponsor.model_copy(update=changes)
        self._sponsors[sponsor_id] = updated
        return updated

    # -- Verification codes --

    async def create_verification_code(self, code: VerificationCode) -> VerificationCode:
        self._codes[code.id] = code
        return code

    async def find_unused_code(self, identifier: str, code: str) -> VerificationCode | None:
        matches = [
            c for c in self._codes.values()
            if c.identifier == identifier and c.code == code and not c.is_used
        ]
        if not matches:
            return None
        return max(matches, key=lambda c: c.created_at)

    async def mark_code_used(self, code_id: str) -> None:
        code = self._codes.get(code_id)
        if code is not None:
            code.is_used = True

    async def delete_codes_expired_before(self, cutoff: datetime) -> int:
        expired = [cid for cid, c in self._codes.items() if c.expires_at < cutoff]
        for cid in expired:
            del self._codes[cid]
        return len(expired)

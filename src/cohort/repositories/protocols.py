"""Protocol definitions for the registry repository.

The in-memory store and the SQLAlchemy repository both implement this
coroutine interface, so services never know which one they were given.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime
from typing import Any, Protocol, runtime_checkable

from cohort.registration.models import (
    ResourcePerson,
    ResourcePersonWithUser,
    Sponsor,
    StaffMember,
    StaffWithUser,
    Trainee,
    TraineeWithUser,
    User,
    VerificationCode,
)


@runtime_checkable
class RegistryRepository(Protocol):
    """Protocol for users, trainees, staff, sponsors and verification codes."""

    # -- Users --

    async def get_user(self, user_id: str) -> User | None: ...

    async def get_user_by_email_or_phone(self, identifier: str) -> User | None: ...

    async def create_user(self, user: User) -> User: ...

    async def delete_user(self, user_id: str) -> bool: ...

    # -- Trainees --

    async def create_trainee(self, trainee: Trainee) -> Trainee: ...

    async def get_trainee(self, trainee_id: str) -> TraineeWithUser | None: ...

    async def list_trainees(self) -> list[TraineeWithUser]: ...

    async def update_trainee(self, trainee_id: str, changes: dict[str, Any]) -> Trainee | None: ...

    async def delete_trainee(self, trainee_id: str) -> bool: ...

    async def list_tag_numbers(self) -> list[str]: ...

    async def room_occupancy(self, blocks: Iterable[str]) -> dict[tuple[str, str], int]:
        """Occupants per (block label, room) over the given block labels."""
        ...

    # -- Staff and resource persons --

    async def create_staff(self, staff: StaffMember) -> StaffMember: ...

    async def list_staff(self) -> list[StaffWithUser]: ...

    async def create_resource_person(self, person: ResourcePerson) -> ResourcePerson: ...

    async def list_resource_persons(self) -> list[ResourcePersonWithUser]: ...

    # -- Sponsors --

    async def create_sponsor(self, sponsor: Sponsor) -> Sponsor: ...

    async def get_sponsor(self, sponsor_id: str) -> Sponsor | None: ...

    async def get_sponsor_by_name(self, name: str) -> Sponsor | None: ...

    async def list_active_sponsors(self) -> list[Sponsor]: ...

    async def update_sponsor(self, sponsor_id: str, changes: dict[str, Any]) -> Sponsor | None: ...

    # -- Verification codes --

    async def create_verification_code(self, code: VerificationCode) -> VerificationCode: ...

    async def find_unused_code(self, identifier: str, code: str) -> VerificationCode | None: ...

    async def mark_code_used(self, code_id: str) -> None: ...

    async def delete_codes_expired_before(self, cutoff: datetime) -> int: ...

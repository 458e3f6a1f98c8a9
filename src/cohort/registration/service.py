"""Trainee registration and registry management."""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from cohort.core.config import Settings
from cohort.core.envelopes import VerificationResponse
from cohort.core.types import AuditEvent, UserRole
from cohort.governance.audit import AuditLogger
from cohort.registration.models import (
    ResourcePerson,
    ResourcePersonWithUser,
    Sponsor,
    SponsorCreate,
    SponsorUpdate,
    StaffMember,
    StaffWithUser,
    Trainee,
    TraineeRegistrationData,
    TraineeUpdate,
    TraineeWithUser,
    User,
)
from cohort.registration.rooms import RoomAllocator, next_tag_number
from cohort.repositories.protocols import RegistryRepository
from cohort.verification.service import VerificationService

logger = logging.getLogger(__name__)


class RegistrationError(Exception):
    """A registration was refused.

    ``verification`` is set when the refusal came from the code check, so
    callers can tell an expired code from a wrong one.
    """

    def __init__(self, message: str, verification: VerificationResponse | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.verification = verification

    @property
    def is_expired(self) -> bool | None:
        return self.verification.is_expired if self.verification else None


class RegistrationService:
    """Registers trainees and manages the trainee, sponsor and staff registry."""

    def __init__(
        self,
        repository: RegistryRepository,
        verification: VerificationService,
        settings: Settings | None = None,
        audit_logger: AuditLogger | None = None,
        allocator: RoomAllocator | None = None,
    ) -> None:
        settings = settings or Settings()
        self._repo = repository
        self._verification = verification
        self._audit = audit_logger
        self._allocator = allocator or RoomAllocator(capacity=settings.housing.room_capacity)
        self._tag_width = settings.housing.tag_number_width
        # Tag numbering and room counts are read-then-write.
        self._allocation_lock = asyncio.Lock()

    # -- Registration --

    async def register(self, data: TraineeRegistrationData) -> TraineeWithUser:
        """Verify, allocate a tag and a room, then create the user and trainee.

        Raises:
            RegistrationError: If the code check fails, the user already
                exists, the sponsor is unusable or no room is free.
        """
        verification = await self._verification.verify_code(
            data.verification_identifier, data.verification_code
        )
        if not verification.success:
            raise RegistrationError(verification.message, verification=verification.without_code())

        if (
            await self._repo.get_user_by_email_or_phone(data.email) is not None
            or await self._repo.get_user_by_email_or_phone(data.phone) is not None
        ):
            raise RegistrationError("User with this email or phone number already exists")

        sponsor: Sponsor | None = None
        if data.sponsor_id:
            sponsor = await self._repo.get_sponsor(data.sponsor_id)
            if sponsor is None or not sponsor.is_active:
                raise RegistrationError("Selected sponsor is not available")

        async with self._allocation_lock:
            tag_number = next_tag_number(await self._repo.list_tag_numbers(), self._tag_width)
            occupancy = await self._repo.room_occupancy(self._allocator.block_labels(data.gender))
            assignment = self._allocator.allocate(data.gender, occupancy)
            if assignment is None:
                raise RegistrationError("No available rooms for your gender category")

            try:
                user = await self._repo.create_user(
                    User(
                        role=UserRole.TRAINEE,
                        first_name=data.first_name,
                        surname=data.surname,
                        middle_name=data.middle_name,
                        email=data.email,
                        phone=data.phone,
                        is_verified=True,
                    )
                )
            except ValueError as exc:
                raise RegistrationError(str(exc)) from exc

            try:
                trainee = await self._repo.create_trainee(
                    Trainee(
                        user_id=user.id,
                        tag_number=tag_number,
                        date_of_birth=data.date_of_birth,
                        gender=data.gender,
                        state=data.state,
                        lga=data.lga,
                        sponsor_id=sponsor.id if sponsor else None,
                        room_block=assignment.block,
                        room_number=assignment.room,
                        verification_method=data.verification_method,
                    )
                )
            except ValueError as exc:
                # The user row must not outlive a failed trainee insert.
                await self._repo.delete_user(user.id)
                logger.warning("Trainee insert failed for user %s: %s", user.id, exc)
                raise RegistrationError(
                    "Registration could not be completed, please try again"
                ) from exc

        logger.info(
            "Registered trainee %s in %s", trainee.tag_number, assignment.describe()
        )
        self._log_audit(
            "trainee_registered",
            f"trainee:{trainee.id}",
            {"tag_number": trainee.tag_number, "room": assignment.describe()},
        )
        return TraineeWithUser.join(trainee, user, sponsor)

    # -- Trainees --

    async def list_trainees(self) -> list[TraineeWithUser]:
        return await self._repo.list_trainees()

    async def get_trainee(self, trainee_id: str) -> TraineeWithUser:
        """Raises:
            KeyError: If the trainee does not exist.
        """
        trainee = await self._repo.get_trainee(trainee_id)
        if trainee is None:
            raise KeyError(f"Trainee {trainee_id!r} not found")
        return trainee

    async def update_trainee(self, trainee_id: str, update: TraineeUpdate) -> TraineeWithUser:
        """Apply a partial update.

        Raises:
            KeyError: If the trainee does not exist.
            ValueError: If the new sponsor is unknown or inactive.
        """
        changes = update.changes()
        sponsor_id = changes.get("sponsor_id")
        if sponsor_id:
            sponsor = await self._repo.get_sponsor(sponsor_id)
            if sponsor is None or not sponsor.is_active:
                raise ValueError("Selected sponsor is not available")

        updated = await self._repo.update_trainee(trainee_id, changes)
        if updated is None:
            raise KeyError(f"Trainee {trainee_id!r} not found")

        self._log_audit("trainee_updated", f"trainee:{trainee_id}", {"fields": sorted(changes)})
        return await self.get_trainee(trainee_id)

    async def delete_trainee(self, trainee_id: str) -> None:
        """Raises:
            KeyError: If the trainee does not exist.
        """
        if not await self._repo.delete_trainee(trainee_id):
            raise KeyError(f"Trainee {trainee_id!r} not found")
        self._log_audit("trainee_deleted", f"trainee:{trainee_id}", {})

    # -- Sponsors --

    async def list_sponsors(self) -> list[Sponsor]:
        return await self._repo.list_active_sponsors()

    async def create_sponsor(self, body: SponsorCreate) -> Sponsor:
        """Raises:
            ValueError: If a sponsor with the same name exists.
        """
        if await self._repo.get_sponsor_by_name(body.name) is not None:
            raise ValueError(f"Sponsor {body.name!r} already exists")
        sponsor = await self._repo.create_sponsor(
            Sponsor(name=body.name, description=body.description, is_active=body.is_active)
        )
        self._log_audit("sponsor_created", f"sponsor:{sponsor.id}", {"name": sponsor.name})
        return sponsor

    async def update_sponsor(self, sponsor_id: str, body: SponsorUpdate) -> Sponsor:
        """Raises:
            KeyError: If the sponsor does not exist.
            ValueError: If renaming would collide with another sponsor.
        """
        changes: dict[str, Any] = body.model_dump(exclude_unset=True)
        new_name = changes.get("name")
        if new_name:
            clash = await self._repo.get_sponsor_by_name(new_name)
            if clash is not None and clash.id != sponsor_id:
                raise ValueError(f"Sponsor {new_name!r} already exists")

        sponsor = await self._repo.update_sponsor(sponsor_id, changes)
        if sponsor is None:
            raise KeyError(f"Sponsor {sponsor_id!r} not found")
        return sponsor

    async def deactivate_sponsor(self, sponsor_id: str) -> Sponsor:
        """Deleting a sponsor keeps the row and marks it inactive.

        Raises:
            KeyError: If the sponsor does not exist.
        """
        sponsor = await self._repo.update_sponsor(sponsor_id, {"is_active": False})
        if sponsor is None:
            raise KeyError(f"Sponsor {sponsor_id!r} not found")
        self._log_audit("sponsor_deactivated", f"sponsor:{sponsor_id}", {"name": sponsor.name})
        return sponsor

    # -- Staff and resource persons --

    async def add_staff(
        self, user: User, department: str | None = None, position: str | None = None
    ) -> StaffMember:
        created = await self._repo.create_user(user.model_copy(update={"role": UserRole.STAFF}))
        return await self._repo.create_staff(
            StaffMember(user_id=created.id, department=department, position=position)
        )

    async def add_resource_person(
        self, user: User, specialization: str | None = None, experience: str | None = None
    ) -> ResourcePerson:
        created = await self._repo.create_user(
            user.model_copy(update={"role": UserRole.RESOURCE_PERSON})
        )
        return await self._repo.create_resource_person(
            ResourcePerson(user_id=created.id, specialization=specialization, experience=experience)
        )

    async def list_staff(self) -> list[StaffWithUser]:
        return await self._repo.list_staff()

    async def list_resource_persons(self) -> list[ResourcePersonWithUser]:
        return await self._repo.list_resource_persons()

    def _log_audit(self, action: str, resource: str, details: dict[str, Any]) -> None:
        if self._audit is None:
            return
        self._audit.log(
            AuditEvent(actor="registration-service", action=action, resource=resource, details=details)
        )

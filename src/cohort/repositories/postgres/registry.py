"""SQL registry repository for users, trainees, sponsors and codes."""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from sqlalchemy import delete, or_, select
from sqlalchemy.exc import IntegrityError

from cohort.core.types import Gender, UserRole, VerificationMethod
from cohort.db.engine import DatabaseManager
from cohort.db.models import (
    ResourcePersonRow,
    SponsorRow,
    StaffRow,
    TraineeRow,
    UserRow,
    VerificationCodeRow,
)
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


def _aware(value: datetime) -> datetime:
    """SQLite drops tzinfo; stored values are always UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class PostgresRegistryRepository:
    """SQLAlchemy-backed registry storage (Postgres in production, SQLite in tests)."""

    def __init__(self, db: DatabaseManager) -> None:
        self._db = db

    # -- Users --

    async def get_user(self, user_id: str) -> User | None:
        async with self._db.session() as db:
            row = await db.get(UserRow, user_id)
            return self._row_to_user(row) if row else None

    async def get_user_by_email_or_phone(self, identifier: str) -> User | None:
        async with self._db.session() as db:
            result = await db.execute(
                select(UserRow).where(or_(UserRow.email == identifier, UserRow.phone == identifier))
            )
            row = result.scalars().first()
            return self._row_to_user(row) if row else None

    async def create_user(self, user: User) -> User:
        async with self._db.session() as db:
            db.add(
                UserRow(
                    id=user.id,
                    role=user.role.value,
                    first_name=user.first_name,
                    surname=user.surname,
                    middle_name=user.middle_name,
                    email=user.email,
                    phone=user.phone,
                    is_verified=user.is_verified,
                    created_at=user.created_at,
                )
            )
            try:
                await db.commit()
            except IntegrityError as exc:
                await db.rollback()
                raise ValueError("User with this email or phone number already exists") from exc
        return user

    async def delete_user(self, user_id: str) -> bool:
        async with self._db.session() as db:
            result = await db.execute(delete(UserRow).where(UserRow.id == user_id))
            await db.commit()
            return (result.rowcount or 0) > 0

    # -- Trainees --

    async def create_trainee(self, trainee: Trainee) -> Trainee:
        async with self._db.session() as db:
            db.add(
                TraineeRow(
                    id=trainee.id,
                    user_id=trainee.user_id,
                    tag_number=trainee.tag_number,
                    date_of_birth=trainee.date_of_birth,
                    gender=trainee.gender.value,
                    state=trainee.state,
                    lga=trainee.lga,
                    sponsor_id=trainee.sponsor_id,
                    room_number=trainee.room_number,
                    room_block=trainee.room_block,
                    verification_method=trainee.verification_method.value,
                )
            )
            try:
                await db.commit()
            except IntegrityError as exc:
                await db.rollback()
                raise ValueError(f"Tag number {trainee.tag_number!r} is already assigned") from exc
        return trainee

    async def get_trainee(self, trainee_id: str) -> TraineeWithUser | None:
        async with self._db.session() as db:
            row = await db.get(TraineeRow, trainee_id)
            return self._row_to_trainee_with_user(row) if row else None

    async def list_trainees(self) -> list[TraineeWithUser]:
        async with self._db.session() as db:
            result = await db.execute(select(TraineeRow).order_by(TraineeRow.tag_number))
            return [self._row_to_trainee_with_user(r) for r in result.scalars().all()]

    async def update_trainee(self, trainee_id: str, changes: dict[str, Any]) -> Trainee | None:
        async with self._db.session() as db:
            row = await db.get(TraineeRow, trainee_id)
            if row is None:
                return None
            updated = Trainee.model_validate({**self._row_to_trainee(row).model_dump(), **changes})
            for key in changes:
                value = getattr(updated, key)
                setattr(row, key, value.value if isinstance(value, Enum) else value)
            await db.commit()
            return updated

    async def delete_trainee(self, trainee_id: str) -> bool:
        async with self._db.session() as db:
            result = await db.execute(delete(TraineeRow).where(TraineeRow.id == trainee_id))
            await db.commit()
            return (result.rowcount or 0) > 0

    async def list_tag_numbers(self) -> list[str]:
        async with self._db.session() as db:
            result = await db.execute(select(TraineeRow.tag_number))
            return list(result.scalars().all())

    async def room_occupancy(self, blocks: Iterable[str]) -> dict[tuple[str, str], int]:
        async with self._db.session() as db:
            result = await db.execute(
                select(TraineeRow.room_block, TraineeRow.room_number).where(
                    TraineeRow.room_block.in_(list(blocks)),
                    TraineeRow.room_number.is_not(None),
                )
            )
            occupancy: dict[tuple[str, str], int] = {}
            for block, number in result.all():
                occupancy[(block, number)] = occupancy.get((block, number), 0) + 1
            return occupancy

    # -- Staff and resource persons --

    async def create_staff(self, staff: StaffMember) -> StaffMember:
        async with self._db.session() as db:
            db.add(
                StaffRow(
                    id=staff.id,
                    user_id=staff.user_id,
                    department=staff.department,
                    position=staff.position,
                )
            )
            await db.commit()
        return staff

    async def list_staff(self) -> list[StaffWithUser]:
        async with self._db.session() as db:
            result = await db.execute(select(StaffRow))
            return [
                StaffWithUser(
                    id=r.id,
                    user_id=r.user_id,
                    department=r.department,
                    position=r.position,
                    user=UserSummary.of(self._row_to_user(r.user)),
                )
                for r in result.scalars().all()
            ]

    async def create_resource_person(self, person: ResourcePerson) -> ResourcePerson:
        async with self._db.session() as db:
            db.add(
                ResourcePersonRow(
                    id=person.id,
                    user_id=person.user_id,
                    specialization=person.specialization,
                    experience=person.experience,
                )
            )
            await db.commit()
        return person

    async def list_resource_persons(self) -> list[ResourcePersonWithUser]:
        async with self._db.session() as db:
            result = await db.execute(select(ResourcePersonRow))
            return [
                ResourcePersonWithUser(
                    id=r.id,
                    user_id=r.user_id,
                    specialization=r.specialization,
                    experience=r.experience,
                    user=UserSummary.of(self._row_to_user(r.user)),
                )
                for r in result.scalars().all()
            ]

    # -- Sponsors --

    async def create_sponsor(self, sponsor: Sponsor) -> Sponsor:
        async with self._db.session() as db:
            db.add(
                SponsorRow(
                    id=sponsor.id,
                    name=sponsor.name,
                    description=sponsor.description,
                    is_active=sponsor.is_active,
                    created_at=sponsor.created_at,
                )
            )
            try:
                await db.commit()
            except IntegrityError as exc:
                await db.rollback()
                raise ValueError(f"Sponsor {sponsor.name!r} already exists") from exc
        return sponsor

    async def get_sponsor(self, sponsor_id: str) -> Sponsor | None:
        async with self._db.session() as db:
            row = await db.get(SponsorRow, sponsor_id)
            return self._row_to_sponsor(row) if row else None

    async def get_sponsor_by_name(self, name: str) -> Sponsor | None:
        async with self._db.session() as db:
            result = await db.execute(select(SponsorRow).where(SponsorRow.name == name))
            row = result.scalars().first()
            return self._row_to_sponsor(row) if row else None

    async def list_active_sponsors(self) -> list[Sponsor]:
        async with self._db.session() as db:
            result = await db.execute(
                select(SponsorRow).where(SponsorRow.is_active.is_(True)).order_by(SponsorRow.name)
            )
            return [self._row_to_sponsor(r) for r in result.scalars().all()]

    async def update_sponsor(self, sponsor_id: str, changes: dict[str, Any]) -> Sponsor | None:
        async with self._db.session() as db:
            row = await db.get(SponsorRow, sponsor_id)
            if row is None:
                return None
            for key, value in changes.items():
                setattr(row, key, value)
            await db.commit()
            return self._row_to_sponsor(row)

    # -- Verification codes --

    async def create_verification_code(self, code: VerificationCode) -> VerificationCode:
        async with self._db.session() as db:
            db.add(
                VerificationCodeRow(
                    id=code.id,
                    identifier=code.identifier,
                    code=code.code,
                    is_used=code.is_used,
                    expires_at=code.expires_at,
                    created_at=code.created_at,
                )
            )
            await db.commit()
        return code

    async def find_unused_code(self, identifier: str, code: str) -> VerificationCode | None:
        async with self._db.session() as db:
            result = await db.execute(
                select(VerificationCodeRow)
                .where(
                    VerificationCodeRow.identifier == identifier,
                    VerificationCodeRow.code == code,
                    VerificationCodeRow.is_used.is_(False),
                )
                .order_by(VerificationCodeRow.created_at.desc())
            )
            row = result.scalars().first()
            return self._row_to_code(row) if row else None

    async def mark_code_used(self, code_id: str) -> None:
        async with self._db.session() as db:
            row = await db.get(VerificationCodeRow, code_id)
            if row is not None:
                row.is_used = True
                await db.commit()

    async def delete_codes_expired_before(self, cutoff: datetime) -> int:
        async with self._db.session() as db:
            result = await db.execute(
                delete(VerificationCodeRow).where(VerificationCodeRow.expires_at < cutoff)
            )
            await db.commit()
            return result.rowcount or 0

    # -- Row conversion --

    @staticmethod
    def _row_to_user(row: UserRow) -> User:
        return User(
            id=row.id,
            role=UserRole(row.role),
            first_name=row.first_name,
            surname=row.surname,
            middle_name=row.middle_name,
            email=row.email,
            phone=row.phone,
            is_verified=bool(row.is_verified),
            created_at=_aware(row.created_at),
        )

    @staticmethod
    def _row_to_sponsor(row: SponsorRow) -> Sponsor:
        return Sponsor(
            id=row.id,
            name=row.name,
            description=row.description,
            is_active=bool(row.is_active),
            created_at=_aware(row.created_at),
        )

    @staticmethod
    def _row_to_trainee(row: TraineeRow) -> Trainee:
        return Trainee(
            id=row.id,
            user_id=row.user_id,
            tag_number=row.tag_number,
            date_of_birth=row.date_of_birth,
            gender=Gender(row.gender),
            state=row.state,
            lga=row.lga,
            sponsor_id=row.sponsor_id,
            room_number=row.room_number,
            room_block=row.room_block,
            verification_method=VerificationMethod(row.verification_method),
        )

    def _row_to_trainee_with_user(self, row: TraineeRow) -> TraineeWithUser:
        sponsor = self._row_to_sponsor(row.sponsor) if row.sponsor else None
        return TraineeWithUser.join(self._row_to_trainee(row), self._row_to_user(row.user), sponsor)

    @staticmethod
    def _row_to_code(row: VerificationCodeRow) -> VerificationCode:
        return VerificationCode(
            id=row.id,
            identifier=row.identifier,
            code=row.code,
            is_used=bool(row.is_used),
            expires_at=_aware(row.expires_at),
            created_at=_aware(row.created_at),
        )

"""Tests for PostgresRegistryRepository with SQLite async."""

from __future__ import annotations

from datetime import timedelta

import pytest

from cohort.core.types import Gender, UserRole, VerificationMethod, utcnow
from cohort.db.base import Base
from cohort.db.engine import DatabaseManager
from cohort.registration.models import (
    ResourcePerson,
    Sponsor,
    StaffMember,
    Trainee,
    User,
    VerificationCode,
)
from cohort.repositories.postgres.registry import PostgresRegistryRepository

import cohort.db.models  # noqa: F401


@pytest.fixture
async def repo():
    db = DatabaseManager("sqlite+aiosqlite:///:memory:")
    async with db.engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield PostgresRegistryRepository(db)
    await db.close()


def _user(email="ada@example.com", phone="08031234567", role=UserRole.TRAINEE) -> User:
    return User(role=role, first_name="Ada", surname="Obi", email=email, phone=phone)


def _trainee(user_id: str, tag: str, **overrides) -> Trainee:
    fields = dict(
        user_id=user_id,
        tag_number=tag,
        date_of_birth="2000-01-31",
        gender=Gender.FEMALE,
        state="lagos",
        lga="Ikeja",
        room_block="Block C",
        room_number="300",
        verification_method=VerificationMethod.EMAIL,
    )
    fields.update(overrides)
    return Trainee(**fields)


async def test_create_and_find_user(repo):
    user = await repo.create_user(_user())
    assert (await repo.get_user(user.id)).email == "ada@example.com"
    assert (await repo.get_user_by_email_or_phone("08031234567")).id == user.id
    assert await repo.get_user_by_email_or_phone("nobody@example.com") is None


async def test_duplicate_user_rejected(repo):
    await repo.create_user(_user())
    with pytest.raises(ValueError, match="already exists"):
        await repo.create_user(_user(email="other@example.com"))


async def test_user_timestamps_are_aware(repo):
    user = await repo.create_user(_user())
    found = await repo.get_user(user.id)
    assert found.created_at.tzinfo is not None


async def test_trainee_joined_with_user_and_sponsor(repo):
    user = await repo.create_user(_user())
    sponsor = await repo.create_sponsor(Sponsor(name="Acme"))
    trainee = await repo.create_trainee(_trainee(user.id, "001", sponsor_id=sponsor.id))

    found = await repo.get_trainee(trainee.id)
    assert found.user.first_name == "Ada"
    assert found.sponsor.name == "Acme"
    assert found.gender is Gender.FEMALE
    assert await repo.get_trainee("missing") is None


async def test_duplicate_tag_rejected(repo):
    first = await repo.create_user(_user())
    second = await repo.create_user(_user(email="b@example.com", phone="08030000000"))
    await repo.create_trainee(_trainee(first.id, "001"))
    with pytest.raises(ValueError, match="already assigned"):
        await repo.create_trainee(_trainee(second.id, "001"))


async def test_list_ordered_by_tag(repo):
    for i, tag in enumerate(["003", "001", "002"]):
        user = await repo.create_user(_user(email=f"u{i}@example.com", phone=f"0803000000{i}"))
        await repo.create_trainee(_trainee(user.id, tag))
    assert [t.tag_number for t in await repo.list_trainees()] == ["001", "002", "003"]
    assert sorted(await repo.list_tag_numbers()) == ["001", "002", "003"]


async def test_update_and_delete_trainee(repo):
    user = await repo.create_user(_user())
    trainee = await repo.create_trainee(_trainee(user.id, "001"))

    updated = await repo.update_trainee(trainee.id, {"gender": Gender.MALE, "room_block": "Block A"})
    assert updated.gender is Gender.MALE
    assert updated.room_block == "Block A"
    assert await repo.update_trainee("missing", {"lga": "Ikeja"}) is None

    assert await repo.delete_trainee(trainee.id) is True
    assert await repo.delete_trainee(trainee.id) is False


async def test_room_occupancy_by_block(repo):
    specs = [
        ("001", Gender.FEMALE, "Block C", "300"),
        ("002", Gender.FEMALE, "Block C", "300"),
        ("003", Gender.FEMALE, "Block C", "302"),
        ("004", Gender.MALE, "Block A", "100"),
        ("005", Gender.FEMALE, None, None),
    ]
    for i, (tag, gender, block, room) in enumerate(specs):
        user = await repo.create_user(_user(email=f"u{i}@example.com", phone=f"0803000000{i}"))
        await repo.create_trainee(
            _trainee(user.id, tag, gender=gender, room_block=block, room_number=room)
        )

    assert await repo.room_occupancy(["Block C", "Block D"]) == {
        ("Block C", "300"): 2,
        ("Block C", "302"): 1,
    }
    assert await repo.room_occupancy(["Block A", "Block B"]) == {("Block A", "100"): 1}
    assert await repo.room_occupancy([]) == {}


async def test_staff_and_resource_persons(repo):
    staff_user = await repo.create_user(_user(role=UserRole.STAFF))
    person_user = await repo.create_user(
        _user(email="rp@example.com", phone="08039999999", role=UserRole.RESOURCE_PERSON)
    )
    await repo.create_staff(StaffMember(user_id=staff_user.id, department="Admin"))
    await repo.create_resource_person(ResourcePerson(user_id=person_user.id, specialization="ICT"))

    staff = await repo.list_staff()
    people = await repo.list_resource_persons()
    assert staff[0].department == "Admin"
    assert staff[0].user.email == "ada@example.com"
    assert people[0].specialization == "ICT"


async def test_sponsors(repo):
    await repo.create_sponsor(Sponsor(name="Zenith"))
    acme = await repo.create_sponsor(Sponsor(name="Acme"))
    inactive = await repo.create_sponsor(Sponsor(name="Gone", is_active=False))

    assert [s.name for s in await repo.list_active_sponsors()] == ["Acme", "Zenith"]
    assert (await repo.get_sponsor_by_name("Acme")).id == acme.id
    assert (await repo.get_sponsor(inactive.id)).is_active is False

    renamed = await repo.update_sponsor(acme.id, {"name": "Acme Ltd"})
    assert renamed.name == "Acme Ltd"
    assert await repo.update_sponsor("missing", {"name": "X"}) is None

    with pytest.raises(ValueError):
        await repo.create_sponsor(Sponsor(name="Zenith"))


async def test_verification_codes(repo):
    now = utcnow()
    older = await repo.create_verification_code(
        VerificationCode(
            identifier="ada@example.com",
            code="ABC123",
            expires_at=now + timedelta(minutes=10),
            created_at=now - timedelta(minutes=1),
        )
    )
    newer = await repo.create_verification_code(
        VerificationCode(identifier="ada@example.com", code="ABC123", expires_at=now + timedelta(minutes=10))
    )

    found = await repo.find_unused_code("ada@example.com", "ABC123")
    assert found.id == newer.id
    assert found.expires_at.tzinfo is not None
    assert not found.expired()

    await repo.mark_code_used(newer.id)
    assert (await repo.find_unused_code("ada@example.com", "ABC123")).id == older.id
    assert await repo.find_unused_code("ada@example.com", "ZZZ999") is None


async def test_delete_expired_codes(repo):
    now = utcnow()
    await repo.create_verification_code(
        VerificationCode(identifier="a", code="AAA111", expires_at=now - timedelta(minutes=5))
    )
    await repo.create_verification_code(
        VerificationCode(identifier="b", code="BBB222", expires_at=now + timedelta(minutes=5))
    )
    assert await repo.delete_codes_expired_before(now) == 1
    assert await repo.find_unused_code("a", "AAA111") is None
    assert await repo.find_unused_code("b", "BBB222") is not None


async def test_occupancy_follows_block_after_gender_change(repo):
    user = await repo.create_user(_user())
    trainee = await repo.create_trainee(_trainee(user.id, "001"))
    await repo.update_trainee(trainee.id, {"gender": Gender.MALE})
    assert await repo.room_occupancy(["Block C", "Block D"]) == {("Block C", "300"): 1}


async def test_update_rejects_null_required_field(repo):
    user = await repo.create_user(_user())
    trainee = await repo.create_trainee(_trainee(user.id, "001"))
    with pytest.raises(ValueError):
        await repo.update_trainee(trainee.id, {"gender": None})
    assert (await repo.get_trainee(trainee.id)).gender is Gender.FEMALE


async def test_delete_user(repo):
    user = await repo.create_user(_user())
    assert await repo.delete_user(user.id) is True
    assert await repo.get_user(user.id) is None
    assert await repo.delete_user(user.id) is False

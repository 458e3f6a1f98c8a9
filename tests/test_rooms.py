"""Tests for room allocation and tag numbering."""

from __future__ import annotations

import pytest

from cohort.core.types import Gender
from cohort.registration.rooms import BlockRange, RoomAllocator, next_tag_number


class TestRoomAllocator:
    def test_first_male_room(self):
        assignment = RoomAllocator().allocate(Gender.MALE, {})
        assert (assignment.block, assignment.room) == ("Block A", "100")
        assert assignment.describe() == "Block A Room 100"

    def test_first_female_room(self):
        assignment = RoomAllocator().allocate(Gender.FEMALE, {})
        assert (assignment.block, assignment.room) == ("Block C", "300")

    def test_room_fills_before_next(self):
        allocator = RoomAllocator()
        assert allocator.allocate(Gender.MALE, {("Block A", "100"): 1}).room == "100"
        assert allocator.allocate(Gender.MALE, {("Block A", "100"): 2}).room == "102"

    def test_even_rooms_only(self):
        rooms = BlockRange(block="A", start=100, end=199).rooms()
        assert rooms[:3] == ["100", "102", "104"]
        assert rooms[-1] == "198"
        assert len(rooms) == 50
        assert BlockRange(block="X", start=101, end=105).rooms() == ["102", "104"]

    def test_moves_to_second_block(self):
        full_a = {("Block A", str(n)): 2 for n in range(100, 200, 2)}
        assignment = RoomAllocator().allocate(Gender.MALE, full_a)
        assert (assignment.block, assignment.room) == ("Block B", "200")

    def test_full_hostel(self):
        full = {("Block C", str(n)): 2 for n in range(300, 400, 2)}
        full.update({("Block D", str(n)): 2 for n in range(400, 500, 2)})
        assert RoomAllocator().allocate(Gender.FEMALE, full) is None

    def test_other_gender_blocks_ignored(self):
        full_a = {("Block A", str(n)): 2 for n in range(100, 200, 2)}
        assert RoomAllocator().allocate(Gender.FEMALE, full_a).block == "Block C"

    def test_block_labels(self):
        assert RoomAllocator().block_labels(Gender.MALE) == ["Block A", "Block B"]
        assert RoomAllocator().block_labels(Gender.FEMALE) == ["Block C", "Block D"]

    def test_capacity(self):
        allocator = RoomAllocator(capacity=3)
        assert allocator.allocate(Gender.MALE, {("Block A", "100"): 2}).room == "100"
        with pytest.raises(ValueError):
            RoomAllocator(capacity=0)


class TestTagNumbers:
    def test_first_tag(self):
        assert next_tag_number([]) == "001"

    def test_one_past_highest(self):
        assert next_tag_number(["001", "007", "003"]) == "008"

    def test_non_numeric_ignored(self):
        assert next_tag_number(["TRN20240001", "002"]) == "003"

    def test_grows_past_width(self):
        assert next_tag_number(["999"]) == "1000"

    def test_width(self):
        assert next_tag_number(["1"], width=5) == "00002"

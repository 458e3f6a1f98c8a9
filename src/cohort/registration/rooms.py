"""Hostel room allocation and trainee tag numbering."""

from __future__ import annotations

import logging
from collections.abc import Iterable

from pydantic import BaseModel

from cohort.core.types import Gender

logger = logging.getLogger(__name__)


class BlockRange(BaseModel):
    """A hostel block and the room numbers it holds (inclusive)."""

    block: str
    start: int
    end: int

    @property
    def label(self) -> str:
        return f"Block {self.block}"

    def rooms(self) -> list[str]:
        """Even room numbers only; odd numbers are not bedrooms."""
        first = self.start if self.start % 2 == 0 else self.start + 1
        return [str(n) for n in range(first, self.end + 1, 2)]


class RoomAssignment(BaseModel):
    block: str
    room: str

    def describe(self) -> str:
        return f"{self.block} Room {self.room}"


BLOCKS_BY_GENDER: dict[Gender, list[BlockRange]] = {
    Gender.MALE: [
        BlockRange(block="A", start=100, end=199),
        BlockRange(block="B", start=200, end=299),
    ],
    Gender.FEMALE: [
        BlockRange(block="C", start=300, end=399),
        BlockRange(block="D", start=400, end=499),
    ],
}


class RoomAllocator:
    """Picks the first room with a free bed for a gender's blocks.

    Blocks and rooms are scanned in order, so rooms fill up before the
    next one is opened.
    """

    def __init__(
        self,
        capacity: int = 2,
        blocks: dict[Gender, list[BlockRange]] | None = None,
    ) -> None:
        if capacity < 1:
            raise ValueError("Room capacity must be at least 1")
        self._capacity = capacity
        self._blocks = BLOCKS_BY_GENDER if blocks is None else blocks

    def block_labels(self, gender: Gender) -> list[str]:
        """Labels of the blocks that house ``gender``."""
        return [block.label for block in self._blocks.get(gender, [])]

    def allocate(
        self, gender: Gender, occupancy: dict[tuple[str, str], int]
    ) -> RoomAssignment | None:
        """Return the first room below capacity, or None when all are full.

        ``occupancy`` maps ``(block label, room number)`` to the number of
        trainees already placed there.
        """
        for block in self._blocks.get(gender, []):
            for room in block.rooms():
                if occupancy.get((block.label, room), 0) < self._capacity:
                    return RoomAssignment(block=block.label, room=room)
        logger.warning("No free rooms left for %s trainees", gender.value)
        return None


def next_tag_number(existing: Iterable[str], width: int = 3) -> str:
    """Next sequential tag: one past the highest numeric tag, zero padded.

    Non-numeric tags are ignored. The first tag is ``"001"``.
    """
    highest = 0
    for tag in existing:
        if tag.isdigit():
            highest = max(highest, int(tag))
    return str(highest + 1).zfill(width)

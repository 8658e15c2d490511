"""Tests for slot parsing and overlap rules."""

from datetime import date

import pytest

from clinic_scheduler.core.exceptions import InvalidInputException
from clinic_scheduler.core.locks import SlotLockRegistry, advisory_lock_id
from clinic_scheduler.core.slots import (
    Slot,
    format_clock_time,
    intervals_overlap,
    parse_clock_time,
)

DAY = date(2024, 6, 1)


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        ("00:00", 0),
        ("09:30", 570),
        ("9:05", 545),
        ("23:59", 1439),
        (" 10:15 ", 615),
    ],
)
def test_parse_clock_time(value: str, expected: int) -> None:
    """Valid clock times become minutes since midnight."""
    assert parse_clock_time(value) == expected


@pytest.mark.parametrize(
    "value", ["24:00", "24:01", "10:60", "1000", "10:5", "ab:cd", "", "-1:00"]
)
def test_parse_clock_time_rejects_malformed(value: str) -> None:
    """Malformed clock times are invalid input."""
    with pytest.raises(InvalidInputException):
        parse_clock_time(value)


def test_format_clock_time_pads() -> None:
    assert format_clock_time(545) == "09:05"
    assert format_clock_time(1440) == "24:00"


def test_end_of_day_only_valid_as_end() -> None:
    """24:00 closes the day; it can end a slot but never start one."""
    assert parse_clock_time("24:00", end_of_day=True) == 1440
    with pytest.raises(InvalidInputException):
        parse_clock_time("24:30", end_of_day=True)

    slot = Slot.from_clock(DAY, "23:30", "24:00")
    assert slot.end_minute == 1440
    assert slot.end_time == "24:00"
    assert slot.overlaps(Slot.from_clock(DAY, "23:45", "24:00"))

    with pytest.raises(InvalidInputException):
        Slot.from_clock(DAY, "24:00", "24:00")


def test_intervals_overlap_half_open() -> None:
    """Touching intervals do not overlap; any shared minute does."""
    assert intervals_overlap(600, 630, 615, 645)
    assert intervals_overlap(615, 645, 600, 630)
    assert intervals_overlap(600, 660, 610, 620)
    assert intervals_overlap(600, 630, 600, 630)
    assert not intervals_overlap(600, 630, 630, 660)
    assert not intervals_overlap(630, 660, 600, 630)
    assert not intervals_overlap(540, 570, 600, 630)


def test_slot_from_clock() -> None:
    slot = Slot.from_clock(DAY, "10:00", "10:30")
    assert slot.start_minute == 600
    assert slot.end_minute == 630
    assert slot.start_time == "10:00"
    assert slot.end_time == "10:30"


@pytest.mark.parametrize(("start", "end"), [("10:30", "10:00"), ("10:00", "10:00")])
def test_slot_requires_start_before_end(start: str, end: str) -> None:
    with pytest.raises(InvalidInputException):
        Slot.from_clock(DAY, start, end)


def test_slot_rejects_minutes_outside_day() -> None:
    with pytest.raises(InvalidInputException):
        Slot(DAY, -10, 30)
    with pytest.raises(InvalidInputException):
        Slot(DAY, 1400, 1500)


def test_slot_overlap_is_per_day() -> None:
    """Identical times on different days never conflict."""
    first = Slot.from_clock(DAY, "10:00", "10:30")
    same_day = Slot.from_clock(DAY, "10:15", "10:45")
    next_day = Slot.from_clock(date(2024, 6, 2), "10:00", "10:30")

    assert first.overlaps(same_day)
    assert same_day.overlaps(first)
    assert not first.overlaps(next_day)


def test_advisory_lock_id_is_stable_and_signed_64_bit() -> None:
    from uuid import UUID

    doctor_id = UUID("6f1c7c1e-8a51-4d2f-9d7c-2b8f0f5a9e10")
    lock_id = advisory_lock_id(doctor_id, DAY)

    assert lock_id == advisory_lock_id(doctor_id, DAY)
    assert lock_id != advisory_lock_id(doctor_id, date(2024, 6, 2))
    assert -(2**63) <= lock_id < 2**63


@pytest.mark.asyncio
async def test_slot_lock_registry_releases_entries() -> None:
    """Lock entries disappear once nobody holds them."""
    from uuid import uuid4

    registry = SlotLockRegistry()
    doctor_id = uuid4()

    async with registry.hold(doctor_id, DAY):
        assert len(registry) == 1
        async with registry.hold(doctor_id, date(2024, 6, 2)):
            assert len(registry) == 2

    assert len(registry) == 0

from dataclasses import replace
from datetime import date

import pytest

from schedease.services.conflict_service import (
    ConflictService,
    InstructorInfo,
    RoomInfo,
    SlotRecord,
    occurs_same_day,
    ranges_overlap,
)


def slot(
    slot_id,
    *,
    room="r1",
    instructor="f1",
    day="Monday",
    start=600,
    end=690,
    year_level=1,
    section="A",
    schedule_date=None,
    capacity=30,
    equipment=frozenset(),
    code=None,
):
    return SlotRecord(
        id=slot_id,
        course_id=f"c-{slot_id}",
        course_code=code or f"C-{slot_id}",
        instructor_id=instructor,
        room_id=room,
        year_level=year_level,
        section=section,
        day_of_week=day,
        start=start,
        end=end,
        term="First Term",
        year=2024,
        schedule_date=schedule_date,
        required_capacity=capacity,
        required_equipment=frozenset(equipment),
    )


@pytest.fixture
def rooms():
    return {
        "r1": RoomInfo(id="r1", name="Room 101", capacity=40, equipment=frozenset({"projector"})),
        "r2": RoomInfo(id="r2", name="Room 102", capacity=20),
    }


@pytest.fixture
def instructors():
    return {
        "f1": InstructorInfo(id="f1", name="Prof X", max_hours_per_week=20),
        "f2": InstructorInfo(id="f2", name="Prof Y", max_hours_per_week=20),
    }


def test_ranges_overlap_is_half_open():
    assert ranges_overlap(600, 690, 630, 660)
    assert ranges_overlap(600, 690, 540, 601)
    assert not ranges_overlap(600, 690, 690, 780)
    assert not ranges_overlap(690, 780, 600, 690)


def test_occurs_same_day_rules():
    monday = date(2025, 3, 10)
    assert occurs_same_day("Monday", None, "Monday", None)
    assert not occurs_same_day("Monday", None, "Tuesday", None)
    assert occurs_same_day("Monday", monday, "Monday", monday)
    assert not occurs_same_day("Monday", monday, "Monday", date(2025, 3, 17))
    # A recurring Monday slot meets on every Monday date.
    assert occurs_same_day("Monday", monday, "Monday", None)
    assert occurs_same_day("Monday", None, "Monday", monday)
    assert not occurs_same_day("Tuesday", None, "Monday", monday)


def test_room_conflict_reported(rooms, instructors):
    service = ConflictService([slot("s1")], rooms, instructors)
    conflicts = service.detect(slot(None, instructor="f2", section="B", start=630, end=660))
    assert conflicts == ["Room Room 101 is already booked during this time: C-s1 (Monday 10:00-11:30)"]


def test_instructor_double_booked_in_other_room(rooms, instructors):
    service = ConflictService([slot("s1")], rooms, instructors)
    conflicts = service.detect(slot(None, room="r2", section="B", start=630, end=660, capacity=10))
    assert len(conflicts) == 1
    assert "Prof X is double-booked" in conflicts[0]


def test_section_conflict_reported(rooms, instructors):
    service = ConflictService([slot("s1")], rooms, instructors)
    conflicts = service.detect(slot(None, room="r2", instructor="f2", start=600, end=690, capacity=10))
    assert conflicts == [
        "Section 1A already has a class during this time: C-s1 (Monday 10:00-11:30)"
    ]


def test_adjacent_slots_do_not_conflict(rooms, instructors):
    service = ConflictService([slot("s1")], rooms, instructors)
    assert service.detect(slot(None, start=690, end=780)) == []


def test_all_violations_are_reported_not_short_circuited(rooms, instructors):
    instructors["f1"] = InstructorInfo(
        id="f1",
        name="Prof X",
        max_hours_per_week=2,
        availability={"Tuesday": ((480, 720),)},
    )
    service = ConflictService([slot("s1")], rooms, instructors)
    conflicts = service.detect(slot(None, start=630, end=700, capacity=50, equipment={"projector", "smartboard"}))
    assert [message.split(" ")[0] for message in conflicts] == [
        "Room",
        "Instructor",
        "Section",
        "Instructor",
        "Instructor",
        "Room",
        "Room",
    ]
    assert any("not available on Monday" in message for message in conflicts)
    assert any("would exceed 2 hours per week" in message for message in conflicts)
    assert any("capacity 40 is below required 50" in message for message in conflicts)
    assert any("missing required equipment: smartboard" in message for message in conflicts)


def test_exclude_id_skips_own_row(rooms, instructors):
    service = ConflictService([slot("s1")], rooms, instructors)
    assert service.detect(slot("s1", start=630, end=720), exclude_id="s1") == []
    assert service.detect(slot(None, start=630, end=720), exclude_id="s1") == []


def test_dated_slots_compare_by_date(rooms, instructors):
    first = slot("s1", schedule_date=date(2025, 3, 10))
    service = ConflictService([first], rooms, instructors)
    other_monday = slot(None, instructor="f2", section="B", schedule_date=date(2025, 3, 17))
    same_monday = slot(None, instructor="f2", section="B", schedule_date=date(2025, 3, 10))
    assert service.detect(other_monday) == []
    assert len(service.detect(same_monday)) == 1


def test_recurring_slot_blocks_dated_candidate_on_same_weekday(rooms, instructors):
    service = ConflictService([slot("s1")], rooms, instructors)
    candidate = slot(None, instructor="f2", section="B", schedule_date=date(2025, 3, 10))
    assert service.room_conflicts(candidate)


def test_empty_availability_means_unrestricted(rooms, instructors):
    service = ConflictService([], rooms, instructors)
    assert service.availability_conflicts(slot(None, day="Saturday", start=1020, end=1080)) == []


def test_availability_requires_full_containment(rooms):
    instructors = {
        "f1": InstructorInfo(
            id="f1",
            name="Prof X",
            max_hours_per_week=20,
            availability={"Monday": ((480, 660),)},
        )
    }
    service = ConflictService([], rooms, instructors)
    assert service.availability_conflicts(slot(None, start=480, end=660)) == []
    assert service.availability_conflicts(slot(None, start=600, end=690)) == [
        "Instructor Prof X is not available on Monday 10:00-11:30"
    ]
    assert service.availability_conflicts(slot(None, day="Tuesday", start=480, end=540))


def test_load_counts_recurring_and_same_week_one_offs(rooms, instructors):
    instructors["f1"] = InstructorInfo(id="f1", name="Prof X", max_hours_per_week=4)
    snapshot = [
        slot("s1", start=480, end=600, section="A"),
        slot("s2", day="Tuesday", start=480, end=540, section="B"),
        slot("s3", day="Wednesday", start=480, end=540, section="C", schedule_date=date(2025, 3, 12)),
    ]
    service = ConflictService(snapshot, rooms, instructors)
    assert service.weekly_minutes("f1") == 180
    assert service.weekly_minutes("f1", week_of=date(2025, 3, 14)) == 240
    assert service.weekly_minutes("f1", week_of=date(2025, 3, 21)) == 180

    assert service.load_conflicts(slot(None, day="Friday", start=480, end=540, section="D")) == []
    assert service.load_conflicts(
        slot(None, day="Friday", start=480, end=540, section="D", schedule_date=date(2025, 3, 21))
    ) == []
    assert service.load_conflicts(
        slot(None, day="Friday", start=480, end=540, section="D", schedule_date=date(2025, 3, 14))
    ) == ["Instructor Prof X would exceed 4 hours per week (5h assigned)"]
    over = service.load_conflicts(slot(None, day="Friday", start=480, end=600, section="D"))
    assert over == ["Instructor Prof X would exceed 4 hours per week (5h assigned)"]


def test_unavailable_room_is_a_conflict(rooms, instructors):
    rooms["r2"] = RoomInfo(id="r2", name="Room 102", capacity=20, is_available=False)
    service = ConflictService([], rooms, instructors)
    assert service.detect(slot(None, room="r2", capacity=10)) == ["Room Room 102 is not available for booking"]


def test_borrowed_out_date_frees_the_original_instructor(rooms, instructors):
    borrowed_on = date(2025, 3, 10)
    source = replace(slot("s1"), borrowed_dates=frozenset({borrowed_on}))
    service = ConflictService([source], rooms, instructors)

    on_borrowed_date = slot(None, room="r2", section="B", capacity=10, schedule_date=borrowed_on)
    assert service.instructor_conflicts(on_borrowed_date) == []
    next_week = slot(None, room="r2", section="B", capacity=10, schedule_date=date(2025, 3, 17))
    assert service.instructor_conflicts(next_week)
    assert service.instructor_conflicts(slot(None, room="r2", section="B", capacity=10))


def test_add_makes_placements_visible(rooms, instructors):
    service = ConflictService([], rooms, instructors)
    placed = slot("new")
    assert service.detect(placed) == []
    service.add(placed)
    assert service.section_conflicts(slot(None, room="r2", instructor="f2", capacity=10))


def test_audit_reports_pairs_and_overload(rooms, instructors):
    instructors["f1"] = InstructorInfo(id="f1", name="Prof X", max_hours_per_week=1)
    snapshot = [
        slot("s1"),
        slot("s2", section="B", start=630, end=720),
        slot("s3", room="r2", instructor="f2", section="C", day="Tuesday", capacity=10),
    ]
    report = ConflictService(snapshot, rooms, instructors).audit(term="First Term", year=2024)

    assert report.checked_slots == 3
    types = sorted(item.conflict_type for item in report.conflicts)
    assert types == ["instructor_conflict", "room_conflict", "workload_overflow"]
    room_conflict = next(item for item in report.conflicts if item.conflict_type == "room_conflict")
    assert "Room overlap in Room 101" in room_conflict.description
    assert set(room_conflict.affected_slots) == {"s1", "s2"}
    overload = next(item for item in report.conflicts if item.conflict_type == "workload_overflow")
    assert overload.severity == "soft"

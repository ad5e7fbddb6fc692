from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date
from typing import Iterable

from schedease.schemas.conflict import ConflictDetail, ConflictReport
from schedease.schemas.settings import minutes_to_hhmm


def ranges_overlap(start_a: int, end_a: int, start_b: int, end_b: int) -> bool:
    # Half-open intervals: touching endpoints do not overlap.
    return start_a < end_b and start_b < end_a


def weekday_name(value: date) -> str:
    return value.strftime("%A")


def occurs_same_day(day_a: str, date_a: date | None, day_b: str, date_b: date | None) -> bool:
    if date_a is not None and date_b is not None:
        return date_a == date_b
    if date_a is not None:
        return weekday_name(date_a) == day_b
    if date_b is not None:
        return weekday_name(date_b) == day_a
    return day_a == day_b


@dataclass(frozen=True)
class RoomInfo:
    id: str
    name: str
    capacity: int
    equipment: frozenset[str] = frozenset()
    kind: str | None = None
    is_available: bool = True


@dataclass(frozen=True)
class InstructorInfo:
    id: str
    name: str
    max_hours_per_week: int
    # day -> ((start, end), ...) in minutes; empty mapping means no declared restriction
    availability: dict[str, tuple[tuple[int, int], ...]] = field(default_factory=dict)

    def is_available(self, day: str, start: int, end: int) -> bool:
        if not self.availability:
            return True
        return any(window_start <= start and end <= window_end for window_start, window_end in self.availability.get(day, ()))


@dataclass(frozen=True)
class SlotRecord:
    """A placed or candidate assignment, reduced to what conflict evaluation needs."""

    id: str | None
    course_id: str
    course_code: str
    instructor_id: str
    room_id: str
    year_level: int
    section: str
    day_of_week: str
    start: int
    end: int
    term: str
    year: int
    schedule_date: date | None = None
    required_capacity: int = 0
    required_equipment: frozenset[str] = frozenset()
    # Dates on which a replacement instructor teaches this recurring slot
    borrowed_dates: frozenset[date] = frozenset()

    @property
    def section_key(self) -> tuple[int, str]:
        return (self.year_level, self.section)

    @property
    def duration(self) -> int:
        return self.end - self.start

    def describe(self) -> str:
        when = self.schedule_date.isoformat() if self.schedule_date else self.day_of_week
        return f"{self.course_code} ({when} {minutes_to_hhmm(self.start)}-{minutes_to_hhmm(self.end)})"


class ConflictService:
    """Evaluates room, instructor, section, availability, load and capacity invariants.

    Holds a read-only snapshot of the active (non-canceled) schedules of one term
    and year. ``detect`` has no side effects; ``add`` is only used by callers that
    own their private instance, such as the generator placing slots one by one.
    """

    def __init__(
        self,
        snapshot: Iterable[SlotRecord],
        rooms: dict[str, RoomInfo],
        instructors: dict[str, InstructorInfo],
    ) -> None:
        self.rooms = rooms
        self.instructors = instructors
        self.slots: list[SlotRecord] = []
        self._by_day: dict[str, list[SlotRecord]] = defaultdict(list)
        self._by_instructor: dict[str, list[SlotRecord]] = defaultdict(list)
        for slot in snapshot:
            self.add(slot)

    def add(self, slot: SlotRecord) -> None:
        self.slots.append(slot)
        self._by_day[slot.day_of_week].append(slot)
        self._by_instructor[slot.instructor_id].append(slot)

    def _overlapping(self, candidate: SlotRecord, exclude_id: str | None) -> list[SlotRecord]:
        overlapping = []
        for other in self._by_day.get(candidate.day_of_week, []):
            if exclude_id is not None and other.id == exclude_id:
                continue
            if candidate.id is not None and other.id == candidate.id:
                continue
            if not occurs_same_day(candidate.day_of_week, candidate.schedule_date, other.day_of_week, other.schedule_date):
                continue
            if ranges_overlap(candidate.start, candidate.end, other.start, other.end):
                overlapping.append(other)
        return overlapping

    def _room_name(self, room_id: str) -> str:
        room = self.rooms.get(room_id)
        return room.name if room else room_id

    def _instructor_name(self, instructor_id: str) -> str:
        instructor = self.instructors.get(instructor_id)
        return instructor.name if instructor else instructor_id

    def room_conflicts(self, candidate: SlotRecord, exclude_id: str | None = None) -> list[str]:
        clashes = [other for other in self._overlapping(candidate, exclude_id) if other.room_id == candidate.room_id]
        if not clashes:
            return []
        details = ", ".join(other.describe() for other in clashes)
        return [f"Room {self._room_name(candidate.room_id)} is already booked during this time: {details}"]

    def instructor_conflicts(self, candidate: SlotRecord, exclude_id: str | None = None) -> list[str]:
        clashes = [
            other
            for other in self._overlapping(candidate, exclude_id)
            if other.instructor_id == candidate.instructor_id and candidate.schedule_date not in other.borrowed_dates
        ]
        if not clashes:
            return []
        details = ", ".join(other.describe() for other in clashes)
        return [f"Instructor {self._instructor_name(candidate.instructor_id)} is double-booked: {details}"]

    def section_conflicts(self, candidate: SlotRecord, exclude_id: str | None = None) -> list[str]:
        clashes = [
            other for other in self._overlapping(candidate, exclude_id) if other.section_key == candidate.section_key
        ]
        if not clashes:
            return []
        details = ", ".join(other.describe() for other in clashes)
        return [
            f"Section {candidate.year_level}{candidate.section} already has a class during this time: {details}"
        ]

    def availability_conflicts(self, candidate: SlotRecord) -> list[str]:
        instructor = self.instructors.get(candidate.instructor_id)
        if instructor is None:
            return []
        day = weekday_name(candidate.schedule_date) if candidate.schedule_date else candidate.day_of_week
        if instructor.is_available(day, candidate.start, candidate.end):
            return []
        return [
            f"Instructor {instructor.name} is not available on {day} "
            f"{minutes_to_hhmm(candidate.start)}-{minutes_to_hhmm(candidate.end)}"
        ]

    def weekly_minutes(self, instructor_id: str, *, week_of: date | None = None, exclude_id: str | None = None) -> int:
        """Recurring minutes plus, when ``week_of`` is given, one-off minutes in that ISO week."""
        total = 0
        target_week = week_of.isocalendar()[:2] if week_of is not None else None
        for slot in self._by_instructor.get(instructor_id, []):
            if exclude_id is not None and slot.id == exclude_id:
                continue
            if slot.schedule_date is None:
                total += slot.duration
            elif target_week is not None and slot.schedule_date.isocalendar()[:2] == target_week:
                total += slot.duration
        return total

    def load_conflicts(self, candidate: SlotRecord, exclude_id: str | None = None) -> list[str]:
        instructor = self.instructors.get(candidate.instructor_id)
        if instructor is None:
            return []
        assigned = self.weekly_minutes(
            candidate.instructor_id,
            week_of=candidate.schedule_date,
            exclude_id=exclude_id if exclude_id is not None else candidate.id,
        )
        projected = assigned + candidate.duration
        if projected <= instructor.max_hours_per_week * 60:
            return []
        return [
            f"Instructor {instructor.name} would exceed {instructor.max_hours_per_week} hours per week "
            f"({projected / 60:g}h assigned)"
        ]

    def capacity_conflicts(self, candidate: SlotRecord) -> list[str]:
        room = self.rooms.get(candidate.room_id)
        if room is None:
            return []
        conflicts = []
        if not room.is_available:
            conflicts.append(f"Room {room.name} is not available for booking")
        if room.capacity < candidate.required_capacity:
            conflicts.append(
                f"Room {room.name} capacity {room.capacity} is below required {candidate.required_capacity}"
            )
        missing = sorted(candidate.required_equipment - room.equipment)
        if missing:
            conflicts.append(f"Room {room.name} is missing required equipment: {', '.join(missing)}")
        return conflicts

    def detect(self, candidate: SlotRecord, exclude_id: str | None = None) -> list[str]:
        """Every violated invariant for ``candidate``, one description each, in a stable order."""
        conflicts: list[str] = []
        conflicts.extend(self.room_conflicts(candidate, exclude_id))
        conflicts.extend(self.instructor_conflicts(candidate, exclude_id))
        conflicts.extend(self.section_conflicts(candidate, exclude_id))
        conflicts.extend(self.availability_conflicts(candidate))
        conflicts.extend(self.load_conflicts(candidate, exclude_id))
        conflicts.extend(self.capacity_conflicts(candidate))
        return conflicts

    def audit(self, *, term: str, year: int) -> ConflictReport:
        conflicts: list[ConflictDetail] = []

        for day_slots in self._by_day.values():
            n = len(day_slots)
            for i in range(n):
                s1 = day_slots[i]
                for message in self.availability_conflicts(s1):
                    conflicts.append(self._detail(f"avail-{s1.id}", "instructor_availability", message, [s1]))
                room = self.rooms.get(s1.room_id)
                if room is not None and room.capacity < s1.required_capacity:
                    conflicts.append(
                        self._detail(
                            f"cap-{s1.id}",
                            "room_capacity",
                            f"Room {room.name} capacity ({room.capacity}) < required ({s1.required_capacity})",
                            [s1],
                        )
                    )
                if room is not None and not s1.required_equipment <= room.equipment:
                    conflicts.append(
                        self._detail(
                            f"equip-{s1.id}",
                            "room_equipment",
                            f"Room {room.name} lacks equipment for {s1.course_code}",
                            [s1],
                        )
                    )

                for j in range(i + 1, n):
                    s2 = day_slots[j]
                    if not occurs_same_day(s1.day_of_week, s1.schedule_date, s2.day_of_week, s2.schedule_date):
                        continue
                    if not ranges_overlap(s1.start, s1.end, s2.start, s2.end):
                        continue
                    pair = f"{s1.id}-{s2.id}"
                    if s1.room_id == s2.room_id:
                        conflicts.append(
                            self._detail(
                                f"room-{pair}",
                                "room_conflict",
                                f"Room overlap in {self._room_name(s1.room_id)}: {s1.describe()} and {s2.describe()}",
                                [s1, s2],
                            )
                        )
                    if s1.instructor_id == s2.instructor_id:
                        conflicts.append(
                            self._detail(
                                f"ins-{pair}",
                                "instructor_conflict",
                                f"Instructor overlap for {self._instructor_name(s1.instructor_id)}: "
                                f"{s1.describe()} and {s2.describe()}",
                                [s1, s2],
                            )
                        )
                    if s1.section_key == s2.section_key:
                        conflicts.append(
                            self._detail(
                                f"sec-{pair}",
                                "section_conflict",
                                f"Section {s1.year_level}{s1.section} overlap: {s1.describe()} and {s2.describe()}",
                                [s1, s2],
                            )
                        )

        for instructor_id, instructor in self.instructors.items():
            minutes = self.weekly_minutes(instructor_id)
            if minutes > instructor.max_hours_per_week * 60:
                involved = [slot for slot in self._by_instructor.get(instructor_id, []) if slot.schedule_date is None]
                conflicts.append(
                    self._detail(
                        f"load-{instructor_id}",
                        "workload_overflow",
                        f"Instructor {instructor.name} is assigned {minutes / 60:g}h "
                        f"(max {instructor.max_hours_per_week}h per week)",
                        involved,
                        severity="soft",
                    )
                )

        return ConflictReport(term=term, year=year, checked_slots=len(self.slots), conflicts=conflicts)

    @staticmethod
    def _detail(
        conflict_id: str,
        conflict_type: str,
        description: str,
        slots: list[SlotRecord],
        *,
        severity: str = "hard",
    ) -> ConflictDetail:
        return ConflictDetail(
            id=conflict_id,
            conflict_type=conflict_type,
            description=description,
            severity=severity,
            affected_slots=[slot.id for slot in slots if slot.id is not None],
        )

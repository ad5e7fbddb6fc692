from __future__ import annotations

from collections import Counter
from collections.abc import Callable
from dataclasses import dataclass, replace
from datetime import date, timedelta
import logging
from time import perf_counter
import uuid

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from schedease.core.config import Settings, get_settings
from schedease.core.exceptions import GenerationBusyError, GenerationCancelledError
from schedease.db.transactions import commit_or_raise
from schedease.models.course import Course, CourseKind
from schedease.models.instructor import Instructor
from schedease.models.room import Room, RoomKind
from schedease.models.schedule import WEEKLY_OCCURRENCE, Schedule, ScheduleStatus
from schedease.schemas.generator import (
    GeneratedPlacement,
    GenerateScheduleRequest,
    GenerationStats,
    SkippedCourse,
)
from schedease.schemas.settings import DAY_ORDER, academic_year_label, minutes_to_hhmm, parse_time_to_minutes
from schedease.services.audit import log_activity
from schedease.services.conflict_service import ConflictService, SlotRecord, ranges_overlap
from schedease.services.locks import generation_locks
from schedease.services.snapshot import active_schedules, instructor_info, room_info, slot_from_schedule
from schedease.services.schedule_writer import apply_display_fields

logger = logging.getLogger(__name__)

LAB_ROOM_KINDS = (RoomKind.computer_lab, RoomKind.laboratory)
KIND_ORDER = {CourseKind.lecture: 0, CourseKind.seminar: 1, CourseKind.lab: 2}


def first_occurrence(start: date, day: str) -> date:
    offset = (DAY_ORDER.index(day) - start.weekday()) % 7
    return start + timedelta(days=offset)


@dataclass
class Placement:
    slot: SlotRecord
    course: Course
    instructor: Instructor
    room: Room
    first_meeting_date: date | None = None


class AutoScheduleGenerator:
    """Greedy constructive placement of a term's unscheduled courses.

    Courses are placed one at a time against an in-memory ``ConflictService``
    that already holds every active schedule of the term and year, so each new
    placement is checked against both stored rows and earlier placements of
    the same run. Nothing is written until the whole batch has been placed.
    """

    def __init__(
        self,
        db: Session,
        settings: Settings | None = None,
        *,
        should_cancel: Callable[[], bool] | None = None,
    ) -> None:
        self.db = db
        self.settings = settings or get_settings()
        self.should_cancel = should_cancel
        self._started = 0.0

    def run(self, request: GenerateScheduleRequest) -> GenerationStats:
        with generation_locks.acquire(
            (request.term, request.year),
            timeout=self.settings.generator_lock_timeout_seconds,
        ) as acquired:
            if not acquired:
                logger.warning("Generation for %s %s rejected: another run holds the lock", request.term, request.year)
                raise GenerationBusyError(request.term, request.year)
            return self._run_locked(request)

    def _check_cancelled(self) -> None:
        if self.should_cancel is not None and self.should_cancel():
            raise GenerationCancelledError("cancelled by caller")
        if perf_counter() - self._started > self.settings.generator_deadline_seconds:
            raise GenerationCancelledError(
                f"deadline of {self.settings.generator_deadline_seconds:g}s exceeded"
            )

    def _run_locked(self, request: GenerateScheduleRequest) -> GenerationStats:
        self._started = perf_counter()
        settings = self.settings

        courses = list(
            self.db.execute(select(Course).where(Course.term == request.term)).scalars()
        )
        courses.sort(
            key=lambda item: (
                item.year_level,
                item.section,
                KIND_ORDER.get(item.kind, 99),
                -item.duration_minutes,
                item.code,
            )
        )
        rooms = sorted(self.db.execute(select(Room)).scalars(), key=lambda item: (item.capacity, item.name))
        instructors = sorted(self.db.execute(select(Instructor)).scalars(), key=lambda item: (item.name, item.id))
        course_map = {item.id: item for item in courses}

        existing = [] if request.regenerate else active_schedules(self.db, term=request.term, year=request.year)
        existing_courses = dict(course_map)
        missing_ids = {item.course_id for item in existing} - existing_courses.keys()
        if missing_ids:
            for item in self.db.execute(select(Course).where(Course.id.in_(missing_ids))).scalars():
                existing_courses[item.id] = item
        service = ConflictService(
            [slot_from_schedule(item, existing_courses.get(item.course_id)) for item in existing],
            {item.id: room_info(item) for item in rooms},
            {item.id: instructor_info(item) for item in instructors},
        )

        academic_year = request.academic_year or academic_year_label(request.year)
        stats = GenerationStats(
            term=request.term,
            year=request.year,
            academic_year=academic_year,
            total_courses=len(courses),
            regenerated=request.regenerate,
        )
        if request.semester_start_date is not None:
            stats.semester_start_date = request.semester_start_date
            stats.semester_end_date = request.semester_start_date + timedelta(days=settings.semester_weeks * 7)
            stats.semester_weeks = settings.semester_weeks

        section_day_counts: Counter[tuple[int, str, str]] = Counter(
            (slot.year_level, slot.section, slot.day_of_week) for slot in service.slots if slot.schedule_date is None
        )
        scheduled_ids = {item.course_id for item in existing}
        placements: list[Placement] = []

        for course in courses:
            self._check_cancelled()
            if course.id in scheduled_ids:
                stats.already_scheduled += 1
                self._count(stats, course)
                continue

            placement, reason = self._place(course, request, service, rooms, instructors, section_day_counts)
            if placement is None:
                logger.warning("Skipped %s (%s%s): %s", course.code, course.year_level, course.section, reason)
                stats.skipped.append(
                    SkippedCourse(
                        course_id=course.id,
                        course_code=course.code,
                        year_level=course.year_level,
                        section=course.section,
                        reason=reason,
                    )
                )
                continue

            service.add(placement.slot)
            section_day_counts[(course.year_level, course.section, placement.slot.day_of_week)] += 1
            scheduled_ids.add(course.id)
            placements.append(placement)
            stats.placed_courses += 1
            self._count(stats, course)
            stats.schedules.append(self._preview(placement))

        self._check_cancelled()
        if request.save_to_database:
            self._persist(request, academic_year, placements, stats)
            stats.saved = True

        logger.info(
            "Generation %s %s: %d/%d scheduled (%d new, %d already, %d skipped, saved=%s) in %.2fs",
            request.term,
            request.year,
            stats.scheduled_courses,
            stats.total_courses,
            stats.placed_courses,
            stats.already_scheduled,
            len(stats.skipped),
            stats.saved,
            perf_counter() - self._started,
        )
        return stats

    @staticmethod
    def _count(stats: GenerationStats, course: Course) -> None:
        stats.scheduled_courses += 1
        level = str(course.year_level)
        stats.by_year_level[level] = stats.by_year_level.get(level, 0) + 1
        stats.by_section[course.section_key] = stats.by_section.get(course.section_key, 0) + 1

    def _instructor_candidates(
        self,
        course: Course,
        instructors: list[Instructor],
        service: ConflictService,
    ) -> list[Instructor]:
        tags = {course.department.lower(), course.kind.value, course.code.lower(), course.name.lower()}
        declared: list[Instructor] = []
        specialists: list[Instructor] = []
        others: list[Instructor] = []
        for instructor in instructors:
            if instructor.id == course.instructor_id:
                declared.append(instructor)
            elif tags & {item.lower() for item in instructor.specializations or []}:
                specialists.append(instructor)
            else:
                others.append(instructor)

        def by_load(items: list[Instructor]) -> list[Instructor]:
            return sorted(items, key=lambda item: (service.weekly_minutes(item.id), item.name, item.id))

        candidates = declared + by_load(specialists) + by_load(others)
        # Anyone who cannot fit one more meeting this week is not worth searching.
        return [
            item
            for item in candidates
            if service.weekly_minutes(item.id) + course.duration_minutes <= item.max_hours_per_week * 60
        ]

    @staticmethod
    def _room_candidates(course: Course, rooms: list[Room]) -> list[Room]:
        required_equipment = set(course.required_equipment or [])
        usable = [
            room
            for room in rooms
            if room.is_available
            and room.kind != RoomKind.auditorium
            and room.capacity >= course.required_capacity
            and required_equipment <= set(room.equipment or [])
        ]
        if course.kind == CourseKind.lab:
            labs = [room for room in usable if room.kind in LAB_ROOM_KINDS]
            return sorted(labs, key=lambda room: (room.capacity, LAB_ROOM_KINDS.index(room.kind), room.name))
        return sorted(
            usable,
            key=lambda room: (0 if room.kind == RoomKind.classroom else 1, room.capacity, room.name),
        )

    def _day_candidates(self, request: GenerateScheduleRequest) -> list[tuple[str, date | None]]:
        days = []
        window_end = None
        if request.semester_start_date is not None:
            window_end = request.semester_start_date + timedelta(days=self.settings.semester_weeks * 7)
        for day in request.working_hours.days:
            first_meeting = None
            if request.semester_start_date is not None:
                first_meeting = first_occurrence(request.semester_start_date, day)
                if first_meeting > window_end:
                    continue
            days.append((day, first_meeting))
        return days

    def _lunch_window(self, day: str) -> tuple[int, int]:
        lunch_end = self.settings.wednesday_lunch_end if day == "Wednesday" else self.settings.lunch_end
        return parse_time_to_minutes(self.settings.lunch_start), parse_time_to_minutes(lunch_end)

    def _place(
        self,
        course: Course,
        request: GenerateScheduleRequest,
        service: ConflictService,
        rooms: list[Room],
        instructors: list[Instructor],
        section_day_counts: Counter[tuple[int, str, str]],
    ) -> tuple[Placement | None, str]:
        candidates = self._instructor_candidates(course, instructors, service)
        if not candidates:
            return None, "No instructor with remaining weekly capacity"
        room_options = self._room_candidates(course, rooms)
        if not room_options:
            return None, "No suitable room available"

        duration = course.duration_minutes
        day_start = parse_time_to_minutes(request.working_hours.start_time)
        day_end = parse_time_to_minutes(request.working_hours.end_time)
        step = self.settings.generator_slot_increment_minutes
        max_per_day = request.max_classes_per_day
        days = [
            (day, first_meeting)
            for day, first_meeting in self._day_candidates(request)
            if max_per_day is None or section_day_counts[(course.year_level, course.section, day)] < max_per_day
        ]
        if not days:
            return None, f"Section {course.section_key} has reached {max_per_day} classes on every working day"

        attempts = 0
        for instructor in candidates:
            for day, first_meeting in days:
                lunch_start, lunch_end = self._lunch_window(day)
                for start in range(day_start, day_end - duration + 1, step):
                    end = start + duration
                    if ranges_overlap(start, end, lunch_start, lunch_end):
                        continue
                    attempts += 1
                    if attempts > self.settings.generator_max_slot_attempts:
                        return None, f"No free slot within {self.settings.generator_max_slot_attempts} attempts"
                    probe = SlotRecord(
                        id=None,
                        course_id=course.id,
                        course_code=course.code,
                        instructor_id=instructor.id,
                        room_id="",
                        year_level=course.year_level,
                        section=course.section,
                        day_of_week=day,
                        start=start,
                        end=end,
                        term=request.term,
                        year=request.year,
                        required_capacity=course.required_capacity,
                        required_equipment=frozenset(course.required_equipment or []),
                    )
                    if (
                        service.section_conflicts(probe)
                        or service.instructor_conflicts(probe)
                        or service.availability_conflicts(probe)
                        or service.load_conflicts(probe)
                    ):
                        continue
                    for room in room_options:
                        candidate = replace(probe, room_id=room.id)
                        if not service.detect(candidate):
                            return Placement(candidate, course, instructor, room, first_meeting), ""
        return None, "No conflict-free slot in working hours"

    @staticmethod
    def _preview(placement: Placement) -> GeneratedPlacement:
        slot, course, room = placement.slot, placement.course, placement.room
        return GeneratedPlacement(
            course_id=course.id,
            course_code=course.code,
            course_name=course.name,
            instructor_id=placement.instructor.id,
            instructor_name=placement.instructor.name,
            room_id=room.id,
            room_name=room.name,
            building=room.building,
            day_of_week=slot.day_of_week,
            start_time=minutes_to_hhmm(slot.start),
            end_time=minutes_to_hhmm(slot.end),
            duration_minutes=slot.duration,
            year_level=course.year_level,
            section=course.section,
            first_meeting_date=placement.first_meeting_date,
        )

    def _persist(
        self,
        request: GenerateScheduleRequest,
        academic_year: str,
        placements: list[Placement],
        stats: GenerationStats,
    ) -> None:
        if request.regenerate:
            result = self.db.execute(
                delete(Schedule).where(Schedule.term == request.term, Schedule.year == request.year)
            )
            logger.info("Regenerate removed %d schedule(s) for %s %s", result.rowcount, request.term, request.year)

        for placement in placements:
            slot = placement.slot
            schedule = Schedule(
                id=str(uuid.uuid4()),
                course_id=slot.course_id,
                instructor_id=slot.instructor_id,
                room_id=slot.room_id,
                day_of_week=slot.day_of_week,
                start_time=minutes_to_hhmm(slot.start),
                end_time=minutes_to_hhmm(slot.end),
                term=request.term,
                year=request.year,
                academic_year=academic_year,
                status=ScheduleStatus.published,
                conflicts=[],
                occurrence_key=WEEKLY_OCCURRENCE,
                first_meeting_date=placement.first_meeting_date,
            )
            apply_display_fields(schedule, placement.course, placement.instructor, placement.room)
            self.db.add(schedule)

        log_activity(
            self.db,
            actor=None,
            action="schedule.auto_generate",
            entity_type="schedule",
            entity_id=None,
            details={
                "term": request.term,
                "year": request.year,
                "regenerate": request.regenerate,
                "placed": stats.placed_courses,
                "skipped": len(stats.skipped),
            },
        )
        commit_or_raise(self.db, context="schedule generation")

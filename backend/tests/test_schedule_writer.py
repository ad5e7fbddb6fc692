from sqlalchemy import func, select

from schedease.models import ActivityLog, Schedule, ScheduleStatus


def schedule_payload(course, instructor, room, **overrides):
    payload = {
        "course_id": course.id,
        "instructor_id": instructor.id,
        "room_id": room.id,
        "day_of_week": "Monday",
        "start_time": "10:00",
        "end_time": "11:30",
        "term": "First Term",
        "year": 2024,
    }
    payload.update(overrides)
    return payload


def schedule_count(db_session) -> int:
    return db_session.execute(select(func.count()).select_from(Schedule)).scalar_one()


def test_create_schedule_publishes_clean_slot(client, make):
    course = make.course()
    instructor = make.instructor()
    room = make.room()

    response = client.post("/api/schedules", json=schedule_payload(course, instructor, room))
    assert response.status_code == 201
    body = response.json()
    assert body["status"] == "published"
    assert body["conflicts"] == []
    assert body["academic_year"] == "2024-2025"
    assert body["course_code"] == "CS101"
    assert body["instructor_name"] == "Prof X"
    assert body["room_name"] == "Room 101"
    assert body["section"] == "A"


def test_duplicate_slot_without_force_persists_nothing(client, make, db_session):
    course = make.course()
    other_course = make.course("CS102", section="B")
    instructor = make.instructor()
    other_instructor = make.instructor("Prof Y")
    room = make.room()
    make.schedule(course, instructor, room)
    before = schedule_count(db_session)

    response = client.post("/api/schedules", json=schedule_payload(other_course, other_instructor, room))
    assert response.status_code == 409
    body = response.json()
    assert body["message"] == "Schedule conflicts detected"
    assert len(body["conflicts"]) == 1
    assert body["conflicts"][0].startswith("Room Room 101 is already booked")
    assert schedule_count(db_session) == before


def test_instructor_double_booking_example(client, make, db_session):
    instructor = make.instructor()
    room_101 = make.room("Room 101")
    room_102 = make.room("Room 102")
    make.schedule(make.course("CS101"), instructor, room_101, start="10:00", end="11:30")
    before = schedule_count(db_session)

    response = client.post(
        "/api/schedules",
        json=schedule_payload(
            make.course("CS201", year_level=2),
            instructor,
            room_102,
            start_time="10:30",
            end_time="11:00",
        ),
    )
    assert response.status_code == 409
    conflicts = response.json()["conflicts"]
    assert len(conflicts) == 1
    assert "double-booked" in conflicts[0]
    assert schedule_count(db_session) == before


def test_force_saves_conflict_status_and_audits(client, make, db_session):
    course = make.course()
    instructor = make.instructor()
    room = make.room()
    make.schedule(course, make.instructor("Prof Y"), room)

    response = client.post(
        "/api/schedules?force=true",
        json=schedule_payload(make.course("CS102", section="B"), instructor, room),
        headers={"X-Actor": "registrar"},
    )
    assert response.status_code == 201
    body = response.json()
    assert body["status"] == "conflict"
    assert len(body["conflicts"]) == 1

    entry = db_session.execute(
        select(ActivityLog).where(ActivityLog.action == "schedule.force_create")
    ).scalar_one()
    assert entry.entity_id == body["id"]
    assert entry.actor == "registrar"


def test_update_excludes_own_row(client, make):
    course = make.course()
    instructor = make.instructor()
    room = make.room()
    created = client.post("/api/schedules", json=schedule_payload(course, instructor, room)).json()

    response = client.put(f"/api/schedules/{created['id']}", json={"start_time": "10:30", "end_time": "12:00"})
    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "published"
    assert body["start_time"] == "10:30"


def test_update_into_conflict_is_rejected(client, make, db_session):
    instructor = make.instructor()
    room = make.room()
    make.schedule(make.course("CS101"), instructor, room, day="Tuesday")
    created = client.post(
        "/api/schedules",
        json=schedule_payload(make.course("CS102", section="B"), make.instructor("Prof Y"), room),
    ).json()

    response = client.put(f"/api/schedules/{created['id']}", json={"day_of_week": "Tuesday"})
    assert response.status_code == 409
    db_session.expire_all()
    assert db_session.get(Schedule, created["id"]).day_of_week == "Monday"


def test_update_merged_payload_is_revalidated(client, make):
    created = client.post(
        "/api/schedules",
        json=schedule_payload(make.course(), make.instructor(), make.room()),
    ).json()

    response = client.put(f"/api/schedules/{created['id']}", json={"end_time": "09:00"})
    assert response.status_code == 400
    assert response.json()["message"] == "Updated schedule is invalid"


def test_validation_errors(client, make):
    course = make.course()
    instructor = make.instructor()
    room = make.room()

    reversed_times = client.post(
        "/api/schedules",
        json=schedule_payload(course, instructor, room, start_time="11:00", end_time="10:00"),
    )
    assert reversed_times.status_code == 422

    bad_day = client.post("/api/schedules", json=schedule_payload(course, instructor, room, day_of_week="Funday"))
    assert bad_day.status_code == 422

    missing = schedule_payload(course, instructor, room)
    missing.pop("room_id")
    assert client.post("/api/schedules", json=missing).status_code == 422


def test_missing_reference_is_not_found(client, make):
    response = client.post(
        "/api/schedules",
        json=schedule_payload(make.course(), make.instructor(), make.room(), room_id="missing-room"),
    )
    assert response.status_code == 404
    assert response.json()["message"] == "Room with id missing-room not found"


def test_canceled_rows_do_not_block(client, make):
    course = make.course()
    instructor = make.instructor()
    room = make.room()
    existing = make.schedule(course, instructor, room)

    assert client.delete(f"/api/schedules/{existing.id}").json()["status"] == "canceled"
    response = client.post("/api/schedules", json=schedule_payload(course, instructor, room))
    assert response.status_code == 201
    assert response.json()["status"] == "published"


def test_check_endpoint_never_writes(client, make, db_session):
    course = make.course()
    instructor = make.instructor()
    room = make.room()
    make.schedule(course, instructor, room)
    before = schedule_count(db_session)

    response = client.post(
        "/api/schedules/check",
        json=schedule_payload(make.course("CS102", section="B"), make.instructor("Prof Y"), room),
    )
    assert response.status_code == 200
    assert response.json()["has_conflicts"] is True
    assert schedule_count(db_session) == before


def test_capacity_and_equipment_are_enforced(client, make):
    course = make.course(required_capacity=60, required_equipment=["projector"])
    response = client.post(
        "/api/schedules",
        json=schedule_payload(course, make.instructor(), make.room(capacity=40)),
    )
    assert response.status_code == 409
    assert response.json()["conflicts"] == [
        "Room Room 101 capacity 40 is below required 60",
        "Room Room 101 is missing required equipment: projector",
    ]


def test_unavailable_room_is_rejected_unless_forced(client, make, db_session):
    course = make.course()
    instructor = make.instructor()
    room = make.room("Room 105", is_available=False)

    response = client.post("/api/schedules", json=schedule_payload(course, instructor, room))
    assert response.status_code == 409
    assert response.json()["conflicts"] == ["Room Room 105 is not available for booking"]
    assert schedule_count(db_session) == 0

    forced = client.post("/api/schedules?force=true", json=schedule_payload(course, instructor, room))
    assert forced.status_code == 201
    assert forced.json()["status"] == "conflict"


def test_audit_endpoint_lists_stored_conflicts(client, make):
    room = make.room()
    make.schedule(make.course("CS101"), make.instructor(), room, status=ScheduleStatus.conflict)
    make.schedule(make.course("CS102", section="B"), make.instructor("Prof Y"), room, status=ScheduleStatus.conflict)

    response = client.get("/api/schedules/conflicts", params={"term": "First Term", "year": 2024})
    assert response.status_code == 200
    body = response.json()
    assert body["checked_slots"] == 2
    assert [item["conflict_type"] for item in body["conflicts"]] == ["room_conflict"]


def test_detection_can_be_disabled(client, make, monkeypatch):
    from schedease.core.config import Settings
    from schedease.services import schedule_writer

    monkeypatch.setattr(schedule_writer, "get_settings", lambda: Settings(conflict_detection_enabled=False))
    course = make.course()
    room = make.room()
    make.schedule(course, make.instructor(), room, day="Tuesday")

    response = client.post(
        "/api/schedules",
        json=schedule_payload(make.course("CS102", section="B"), make.instructor("Prof Y"), room, day_of_week="Tuesday"),
    )
    assert response.status_code == 503
    assert response.json()["details"]["retryable"] is True

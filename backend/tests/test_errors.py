from schedease.core.exceptions import (
    AppError,
    GenerationBusyError,
    InputValidationError,
    PersistenceError,
    RequestStateError,
    ResourceNotFoundError,
    ScheduleConflictError,
)


def test_app_error_defaults():
    err = AppError("Generic error")
    assert err.status_code == 500
    assert err.details == {}
    assert err.to_content() == {"message": "Generic error", "details": {}}


def test_error_status_codes():
    assert InputValidationError("bad").status_code == 400
    assert ResourceNotFoundError("Room", "r1").status_code == 404
    assert RequestStateError("no").status_code == 409
    assert GenerationBusyError("First Term", 2024).status_code == 409
    assert isinstance(ResourceNotFoundError("Room", "r1"), AppError)


def test_conflict_error_renders_conflict_list():
    err = ScheduleConflictError(["Room Room 101 is already booked"])
    assert err.status_code == 409
    assert err.to_content() == {
        "message": "Schedule conflicts detected",
        "conflicts": ["Room Room 101 is already booked"],
    }


def test_persistence_error_is_retryable():
    err = PersistenceError("Store unavailable", details={"reason": "unavailable"})
    assert err.status_code == 503
    assert err.details == {"retryable": True, "reason": "unavailable"}


def test_handler_renders_app_errors(client):
    response = client.get("/api/schedule-requests/missing")
    assert response.status_code == 404
    assert response.json() == {"message": "ScheduleRequest with id missing not found", "details": {}}

class AppError(Exception):
    """Base class for all application exceptions."""
    def __init__(self, message: str, status_code: int = 500, details: dict = None):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)

    def to_content(self) -> dict:
        return {"message": self.message, "details": self.details}


class InputValidationError(AppError):
    """Raised when input is missing or malformed. Nothing is ever partially applied."""
    def __init__(self, message: str, details: dict = None):
        super().__init__(message, status_code=400, details=details)


class ScheduleConflictError(AppError):
    """Raised when a write would violate a scheduling invariant and was not forced."""
    def __init__(self, conflicts: list[str], message: str = "Schedule conflicts detected"):
        self.conflicts = list(conflicts)
        super().__init__(message, status_code=409, details={"conflicts": self.conflicts})

    def to_content(self) -> dict:
        return {"message": self.message, "conflicts": self.conflicts}


class ResourceNotFoundError(AppError):
    """Raised when a requested resource is not found."""
    def __init__(self, resource_type: str, resource_id: str):
        self.resource_type = resource_type
        self.resource_id = resource_id
        super().__init__(f"{resource_type} with id {resource_id} not found", status_code=404)


class PersistenceError(AppError):
    """Raised when the store is unavailable or rejects a write. Safe to retry."""
    def __init__(self, message: str, details: dict = None):
        details = {"retryable": True, **(details or {})}
        super().__init__(message, status_code=503, details=details)


class RequestStateError(AppError):
    """Raised on an illegal schedule request status transition."""
    def __init__(self, message: str, details: dict = None):
        super().__init__(message, status_code=409, details=details)


class GenerationBusyError(AppError):
    """Raised when another generation run holds the (term, year) lock."""
    def __init__(self, term: str, year: int):
        super().__init__(
            f"Schedule generation for {term} {year} is already running",
            status_code=409,
            details={"term": term, "year": year, "retryable": True},
        )


class GenerationCancelledError(AppError):
    """Raised when a generation run is aborted. Nothing was persisted."""
    def __init__(self, reason: str):
        super().__init__(f"Schedule generation aborted: {reason}", status_code=409, details={"reason": reason})

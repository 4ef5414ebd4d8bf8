class AppError(Exception):
    """Base class for all application exceptions."""
    def __init__(self, message: str, status_code: int = 500, details: dict = None):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)

class UnschedulableDayError(AppError):
    """Raised when a date falls on the weekly non-teaching day."""
    def __init__(self, value):
        super().__init__(
            f"{value.isoformat()} is a {value.strftime('%A')}, which is not a school day",
            status_code=400,
            details={"date": value.isoformat()},
        )

class InvalidAssignmentError(AppError):
    """Raised when a substitution choice can never be valid as submitted."""
    def __init__(self, message: str, details: dict = None):
        super().__init__(message, status_code=400, details=details)

class AssignmentConflictError(AppError):
    """Raised when a substitution collides with one already committed."""
    def __init__(self, message: str, details: dict = None):
        super().__init__(message, status_code=409, details=details)

class SubstituteUnavailableError(AssignmentConflictError):
    """Raised when the chosen substitute is already busy in that period."""
    def __init__(
        self,
        *,
        substitute_name: str,
        conflicting_class: str | None,
        period_id: str,
        substitute_teacher_id: str,
        index: int | None = None,
        reason: str = "already teaching",
    ):
        where = f" {conflicting_class}" if conflicting_class else ""
        super().__init__(
            f"{substitute_name} is no longer available: {reason}{where} in this period",
            details={
                "conflicting_class": conflicting_class,
                "period_id": period_id,
                "substitute_teacher_id": substitute_teacher_id,
                "index": index,
                "reason": reason,
            },
        )

class ResourceNotFoundError(AppError):
    """Raised when a requested resource is not found."""
    def __init__(self, resource_type: str, resource_id: str):
        super().__init__(
            f"{resource_type} with id {resource_id} not found",
            status_code=404,
            details={"resource_type": resource_type, "resource_id": resource_id},
        )

class ServiceUnavailableError(AppError):
    """Raised when the storage layer cannot be reached."""
    def __init__(self, message: str = "Storage temporarily unavailable. Please try again later."):
        super().__init__(message, status_code=503)

"""
Domain Exceptions

Custom exceptions for the scheduling structure engine, discriminated by
``ErrorType``. The pure compute layer never raises these for data-shape
problems; they are raised by collaborators and by mutation coordination.
"""

from enum import Enum


class ErrorType(str, Enum):
    """Error type enumeration for discriminated unions."""

    VALIDATION = "validation"
    NOT_FOUND = "not_found"
    COLLABORATOR = "collaborator"
    CONCURRENCY = "concurrency"


class DomainError(Exception):
    """Base class for all domain errors with type discrimination."""

    def __init__(
        self,
        message: str,
        error_type: ErrorType,
        details: dict[str, str | int | bool | None] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.error_type = error_type
        self.details = details or {}

    def to_dict(self) -> dict[str, str | dict[str, str | int | bool | None]]:
        """Convert error to dictionary for API responses."""
        return {
            "type": self.error_type.value,
            "message": self.message,
            "details": self.details,
        }


class ValidationError(DomainError):
    """Raised when a mutation request carries invalid values."""

    def __init__(
        self,
        field_name: str,
        value: str | int | float | bool | None,
        message: str,
        error_code: str | None = None,
    ) -> None:
        self.field_name = field_name
        self.value = value
        self.error_code = error_code or "VALIDATION_ERROR"

        details: dict[str, str | int | bool | None] = {
            "field": field_name,
            "value": str(value) if value is not None else None,
            "error_code": self.error_code,
        }
        super().__init__(
            f"Validation failed for field '{field_name}': {message}",
            ErrorType.VALIDATION,
            details,
        )


class NotFoundError(DomainError):
    """Base class for missing studio, job or task lookups."""

    def __init__(
        self, message: str, details: dict[str, str | int | bool | None] | None = None
    ) -> None:
        super().__init__(message, ErrorType.NOT_FOUND, details)


class StudioNotFoundError(NotFoundError):
    """Raised when a studio is not known to the collaborator."""

    def __init__(self, studio_id: str) -> None:
        super().__init__(
            f"Studio not found: {studio_id}",
            {"studio_id": studio_id, "entity_type": "studio"},
        )
        self.studio_id = studio_id


class JobNotFoundError(NotFoundError):
    """Raised when a job is not found."""

    def __init__(self, studio_id: str, job_id: str) -> None:
        super().__init__(
            f"Job not found: {job_id}",
            {"studio_id": studio_id, "job_id": job_id, "entity_type": "job"},
        )
        self.job_id = job_id


class TaskNotFoundError(NotFoundError):
    """Raised when a scheduled or manual task is not found in a job."""

    def __init__(self, job_id: str, task_id: str) -> None:
        super().__init__(
            f"Task {task_id} not found in job {job_id}",
            {"job_id": job_id, "task_id": task_id, "entity_type": "task"},
        )
        self.task_id = task_id


class CollaboratorError(DomainError):
    """Raised when an external collaborator call fails or times out."""

    def __init__(
        self,
        operation: str,
        message: str,
        details: dict[str, str | int | bool | None] | None = None,
    ) -> None:
        collaborator_details = details or {}
        collaborator_details["operation"] = operation
        super().__init__(
            f"{operation} failed: {message}",
            ErrorType.COLLABORATOR,
            collaborator_details,
        )
        self.operation = operation


class SupersededRequestError(DomainError):
    """Raised inside a mutation that a newer request for the same target replaced."""

    def __init__(self, target: str) -> None:
        super().__init__(
            f"Request for {target} was superseded by a newer request",
            ErrorType.CONCURRENCY,
            {"target": target},
        )
        self.target = target

"""Domain exceptions for flagaccess.

Authorization and not-found outcomes are expected, user-facing results and
each has its own stable error_code so calling layers (HTTP, GraphQL) can
map them to distinct responses. Persistence failures are either masked
(DuplicateRecordException) or escalated with their cause attached
(UnhandledPersistenceException).
"""

from typing import Any


class FlagAccessException(Exception):
    """Base exception for all flagaccess errors.

    Attributes:
        message: Human-readable error description.
        error_code: Machine-readable error code.
        details: Additional error context (e.g. resource, record_id).
    """

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize the exception.

        Args:
            message: Human-readable error description.
            error_code: Optional machine-readable code; defaults to class name.
            details: Optional dict of extra context.
        """
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.details = details or {}
        super().__init__(self.message)


class ValidationException(FlagAccessException):
    """Raised when input validation fails (e.g. unknown field or bad value)."""

    def __init__(self, message: str, field: str | None = None) -> None:
        details = {"field": field} if field else {}
        super().__init__(message, "VALIDATION_ERROR", details)


class UserNotAuthorizedException(FlagAccessException):
    """Raised when the permission decision denies the action. No store access happens."""

    def __init__(self, actor_id: str, action: str, resource: str) -> None:
        """Initialize with the denied actor, action and resource.

        Args:
            actor_id: Identity that attempted the action.
            action: Action that was denied (e.g. 'create').
            resource: Resource name (e.g. 'segment').
        """
        super().__init__(
            f"User {actor_id} is not authorized to {action} {resource}",
            "USER_NOT_AUTHORIZED",
            {"actor_id": actor_id, "action": action, "resource": resource},
        )


class RecordNotFoundException(FlagAccessException):
    """Raised when a single-record lookup finds nothing."""

    def __init__(self, resource: str, record_id: str) -> None:
        """Initialize with resource name and the missing id.

        Args:
            resource: Resource name (e.g. 'segment').
            record_id: The id that was not found.
        """
        super().__init__(
            f"{resource} not found: {record_id}",
            "RECORD_NOT_FOUND",
            {"resource": resource, "record_id": record_id},
        )


class RecordsNotFoundException(FlagAccessException):
    """Raised when a collection lookup yields no usable result."""

    def __init__(self, resource: str) -> None:
        super().__init__(
            f"No {resource} records could be retrieved",
            "RECORDS_NOT_FOUND",
            {"resource": resource},
        )


class DuplicateRecordException(FlagAccessException):
    """Raised on a uniqueness violation when creating a record.

    The message is deliberately generic; the storage error is only logged.
    """

    def __init__(self, resource: str) -> None:
        super().__init__(
            f"A {resource} with the same unique values already exists",
            "DUPLICATE_RECORD",
            {"resource": resource},
        )


class UnhandledPersistenceException(FlagAccessException):
    """Raised when a write fails for a reason nobody anticipated.

    Carries the original exception as ``cause`` (and as ``__cause__`` when
    raised with ``from``) so the failure can be investigated offline.
    """

    def __init__(self, resource: str, operation: str, cause: BaseException) -> None:
        """Initialize with the failing operation and its cause.

        Args:
            resource: Resource name (e.g. 'segment').
            operation: Operation that failed (e.g. 'update').
            cause: The underlying exception.
        """
        self.cause = cause
        super().__init__(
            f"Unexpected persistence failure during {operation} of {resource}",
            "UNHANDLED_PERSISTENCE_ERROR",
            {
                "resource": resource,
                "operation": operation,
                "cause_type": type(cause).__name__,
            },
        )


class PolicyConfigurationError(FlagAccessException):
    """Raised when the access policy is malformed or cannot decide for a resource."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message, "POLICY_CONFIGURATION_ERROR", details)


class SqlNotConfiguredException(FlagAccessException):
    """Raised when a session is requested before the database engine is set up."""

    def __init__(self) -> None:
        super().__init__(
            message="This operation requires a SQL database that is not configured.",
            error_code="SERVICE_UNAVAILABLE",
        )

"""Tests for domain exceptions (error_code, message, details)."""

import pytest

from flagaccess.domain.exceptions import (
    DuplicateRecordException,
    FlagAccessException,
    PolicyConfigurationError,
    RecordNotFoundException,
    RecordsNotFoundException,
    SqlNotConfiguredException,
    UnhandledPersistenceException,
    UserNotAuthorizedException,
    ValidationException,
)


def test_flagaccess_exception_default_error_code() -> None:
    """Base FlagAccessException uses class name as error_code when not provided."""
    exc = FlagAccessException("Something failed")
    assert exc.message == "Something failed"
    assert exc.error_code == "FlagAccessException"
    assert exc.details == {}
    assert str(exc) == "Something failed"


def test_flagaccess_exception_custom_error_code_and_details() -> None:
    exc = FlagAccessException("Oops", error_code="CUSTOM", details={"key": "value"})
    assert exc.error_code == "CUSTOM"
    assert exc.details == {"key": "value"}


def test_validation_exception() -> None:
    """ValidationException sets VALIDATION_ERROR and optional field in details."""
    exc = ValidationException("Unknown flag ids: f9", field="flag_ids")
    assert exc.error_code == "VALIDATION_ERROR"
    assert exc.details == {"field": "flag_ids"}
    assert ValidationException("Invalid").details == {}


def test_user_not_authorized_exception() -> None:
    exc = UserNotAuthorizedException("user-1", "create", "segment")
    assert exc.message == "User user-1 is not authorized to create segment"
    assert exc.error_code == "USER_NOT_AUTHORIZED"
    assert exc.details == {"actor_id": "user-1", "action": "create", "resource": "segment"}


def test_record_not_found_exception() -> None:
    exc = RecordNotFoundException("segment", "s9")
    assert exc.message == "segment not found: s9"
    assert exc.error_code == "RECORD_NOT_FOUND"
    assert exc.details == {"resource": "segment", "record_id": "s9"}


def test_records_not_found_exception() -> None:
    exc = RecordsNotFoundException("segment")
    assert exc.error_code == "RECORDS_NOT_FOUND"
    assert exc.details == {"resource": "segment"}


def test_duplicate_record_exception_is_generic() -> None:
    """The message names the resource only; no storage detail leaks through."""
    exc = DuplicateRecordException("segment")
    assert exc.message == "A segment with the same unique values already exists"
    assert exc.error_code == "DUPLICATE_RECORD"
    assert "UNIQUE" not in exc.message


def test_unhandled_persistence_exception_carries_cause() -> None:
    cause = RuntimeError("connection reset")
    exc = UnhandledPersistenceException("segment", "update", cause)
    assert exc.cause is cause
    assert exc.error_code == "UNHANDLED_PERSISTENCE_ERROR"
    assert exc.details == {
        "resource": "segment",
        "operation": "update",
        "cause_type": "RuntimeError",
    }
    assert "connection reset" not in exc.message


def test_policy_configuration_error() -> None:
    exc = PolicyConfigurationError("No access policy declared", {"resource": "segment"})
    assert exc.error_code == "POLICY_CONFIGURATION_ERROR"
    assert exc.details == {"resource": "segment"}


def test_sql_not_configured_exception() -> None:
    exc = SqlNotConfiguredException()
    assert exc.error_code == "SERVICE_UNAVAILABLE"
    assert "SQL database" in exc.message


@pytest.mark.parametrize(
    "exc",
    [
        ValidationException("x"),
        UserNotAuthorizedException("u", "read", "segment"),
        RecordNotFoundException("segment", "s1"),
        RecordsNotFoundException("segment"),
        DuplicateRecordException("segment"),
        UnhandledPersistenceException("segment", "update", ValueError()),
        PolicyConfigurationError("x"),
        SqlNotConfiguredException(),
    ],
)
def test_all_inherit_from_flagaccess_exception(exc: Exception) -> None:
    assert isinstance(exc, FlagAccessException)

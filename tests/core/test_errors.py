"""Error Hierarchy — verifies codes, HTTP mapping and the REST envelope.

Tests:
    - Domain errors are client-fixable (4xx), store errors are not (5xx)
    - RideAlreadyEndedError is a NotFoundError with its own code and message
    - to_response() carries code, category, severity and transaction context
"""

from movr.core.errors import (
    ConstraintViolationError, DatabaseConnectionError, DuplicateError,
    ErrorCategory, ErrorContext, InvalidInputError, MovRError, NotFoundError,
    PromoCodeExpiredError, RideAlreadyEndedError, TransactionCancelledError,
    TransactionFailedError, VehicleUnavailableError,
)


def test_not_found_maps_to_404():
    err = NotFoundError("User", "abc")
    assert err.http_status == 404
    assert err.code == "RESOURCE_NOT_FOUND"
    assert str(err) == "User 'abc' not found"
    assert err.client_fixable


def test_ride_already_ended_is_not_found_with_own_code():
    err = RideAlreadyEndedError("r1")
    assert isinstance(err, NotFoundError)
    assert err.code == "RIDE_ALREADY_ENDED"
    assert "already ended" in str(err)
    assert err.resource_type == "Ride"


def test_duplicate_is_constraint_violation():
    err = DuplicateError("taken")
    assert isinstance(err, ConstraintViolationError)
    assert err.code == "DUPLICATE"
    assert err.http_status == 409


def test_vehicle_unavailable_is_business_rule():
    err = VehicleUnavailableError("v1", "in_use")
    assert isinstance(err, ConstraintViolationError)
    assert err.category == ErrorCategory.BUSINESS_RULE
    assert err.status == "in_use"


def test_promo_expired_is_bad_request():
    assert PromoCodeExpiredError("SPRING").http_status == 400


def test_store_errors_are_not_client_fixable():
    assert not DatabaseConnectionError("refused").client_fixable
    failed = TransactionFailedError(101)
    assert not failed.client_fixable
    assert failed.attempts == 101


def test_cancelled_is_its_own_category():
    err = TransactionCancelledError()
    assert err.category == ErrorCategory.CANCELLED
    assert isinstance(err, MovRError)


def test_to_response_envelope():
    ctx = ErrorContext(city="seattle", operation="start_ride", attempt=2)
    body = NotFoundError("Vehicle", "v9", ctx).to_response()["error"]
    assert body["code"] == "RESOURCE_NOT_FOUND"
    assert body["category"] == "resource_not_found"
    assert body["severity"] == "error"
    assert body["context"]["city"] == "seattle"
    assert body["context"]["operation"] == "start_ride"
    assert body["context"]["attempt"] == 2


def test_user_message_overrides_message_in_response():
    ctx = ErrorContext(user_message="Try again later")
    body = DatabaseConnectionError("asyncpg said no", ctx).to_response()
    assert body["error"]["message"] == "Try again later"


def test_invalid_input_is_validation_error():
    err = InvalidInputError("vehicle_type", "hoverboard")
    assert err.http_status == 400
    assert err.category == ErrorCategory.VALIDATION
    assert err.code == "INVALID_INPUT"
    assert "hoverboard" in str(err)

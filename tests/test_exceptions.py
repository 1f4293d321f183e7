"""Tests for the error hierarchy."""

from trainerroad_bridge.exceptions import (
    DatabaseError,
    ErrorCode,
    ForbiddenError,
    IntegrationError,
    UpstreamUnavailable,
    ValidationError,
)


class TestBridgeErrors:
    """Tests for codes, statuses and response bodies."""

    def test_defaults_per_subclass(self):
        assert ForbiddenError().status_code == 403
        assert ForbiddenError().code == ErrorCode.FORBIDDEN
        assert ValidationError("bad").status_code == 400
        assert DatabaseError("down").code == ErrorCode.DATABASE_ERROR

    def test_to_dict_without_details(self):
        assert ForbiddenError("nope").to_dict() == {"error": "nope", "status": 403, "code": "FORBIDDEN"}

    def test_to_dict_with_details(self):
        body = ValidationError("Program not found", field="program_id").to_dict()

        assert body["details"] == {"field": "program_id"}

    def test_integration_error_carries_retry_after(self):
        error = IntegrationError(429, "slow down", code=ErrorCode.TRAINERROAD_RATE_LIMITED, retry_after=30)

        assert error.retry_after == 30
        assert error.details == {"retry_after": 30}
        assert error.to_dict()["code"] == "TRAINERROAD_RATE_LIMITED"

    def test_integration_error_default_code(self):
        assert IntegrationError(502, "boom").code == ErrorCode.TRAINERROAD_UPSTREAM_ERROR

    def test_caller_details_not_mutated(self):
        details = {"page": "login"}

        error = UpstreamUnavailable("down", upstream_status=503, details=details)

        assert error.details == {"page": "login", "upstream_status": 503}
        assert details == {"page": "login"}

"""Tests for domain error handler to verify structured JSON error responses."""
import json
from datetime import datetime

import pytest
from fastapi.responses import JSONResponse

from fitstudio.core.error_handlers import ERROR_STATUS_MAP, domain_error_handler
from fitstudio.core.exceptions import (
    BusinessRuleError,
    ConflictError,
    DomainError,
    NotFoundError,
    ValidationError,
    WeekExistsError,
)


class MockRequest:
    """Mock FastAPI Request object for testing."""

    def __init__(self, request_id: str = "test-request-123"):
        self.state = type('State', (), {'request_id': request_id})()


class TestDomainErrorExceptions:
    """Test domain exception classes and their error codes."""

    def test_not_found_error(self):
        error = NotFoundError("session", "Session 7 not found", {"id": 7})

        assert error.code == "NF_SESSION_001"
        assert error.message == "Session 7 not found"
        assert error.details == {"id": 7}

    def test_not_found_error_default_message(self):
        error = NotFoundError("template")

        assert error.code == "NF_TEMPLATE_001"
        assert error.message == "template not found"
        assert error.details == {}

    def test_validation_error(self):
        error = ValidationError("client_ids", "unknown ids [99]")

        assert error.code == "VAL_CLIENT_IDS_001"
        assert error.message == "Validation failed for client_ids: unknown ids [99]"
        assert error.details == {"field": "client_ids"}

    def test_business_rule_error_custom_code(self):
        error = BusinessRuleError(
            "Session status cannot move from completed back to live",
            code="BR_SESSION_STATUS",
            details={"current": "completed", "requested": "live"},
        )

        assert error.code == "BR_SESSION_STATUS"
        assert error.details["current"] == "completed"

    def test_conflict_error_default(self):
        error = ConflictError("Resource already exists")

        assert error.code == "CF_001"
        assert error.details == {}

    def test_week_exists_error(self):
        error = WeekExistsError(template_id=3, week_number=2)

        assert isinstance(error, ConflictError)
        assert error.code == "CF_WEEK_EXISTS"
        assert error.details == {"template_id": 3, "week_number": 2}
        assert "Week 2" in error.message


class TestErrorStatusMap:
    """Test ERROR_STATUS_MAP mapping."""

    def test_status_map(self):
        assert ERROR_STATUS_MAP[NotFoundError] == 404
        assert ERROR_STATUS_MAP[ValidationError] == 400
        assert ERROR_STATUS_MAP[BusinessRuleError] == 422
        assert ERROR_STATUS_MAP[ConflictError] == 409
        assert ERROR_STATUS_MAP[WeekExistsError] == 409


class TestDomainErrorHandler:
    """Test domain_error_handler function."""

    @pytest.mark.asyncio
    async def test_not_found_error_response(self):
        error = NotFoundError("session", "Session 999 not found", {"id": 999})
        request = MockRequest(request_id="req-123")

        response = await domain_error_handler(request, error)

        assert isinstance(response, JSONResponse)
        assert response.status_code == 404

        data = json.loads(response.body.decode())
        assert data["data"] is None
        assert len(data["errors"]) == 1
        error_dict = data["errors"][0]
        assert error_dict["code"] == "NF_SESSION_001"
        assert error_dict["message"] == "Session 999 not found"
        assert error_dict["details"] == {"id": 999}

    @pytest.mark.asyncio
    async def test_week_exists_response(self):
        response = await domain_error_handler(MockRequest(), WeekExistsError(1, 1))

        assert response.status_code == 409
        data = json.loads(response.body.decode())
        assert data["errors"][0]["code"] == "CF_WEEK_EXISTS"

    @pytest.mark.asyncio
    async def test_response_includes_metadata(self):
        request = MockRequest(request_id="test-request-id-12345")

        response = await domain_error_handler(request, NotFoundError("client"))

        data = json.loads(response.body.decode())
        assert data["meta"]["request_id"] == "test-request-id-12345"
        datetime.fromisoformat(data["meta"]["timestamp"].replace('Z', '+00:00'))

    @pytest.mark.asyncio
    async def test_unknown_domain_error_returns_500(self):

        class CustomDomainError(DomainError):
            """Custom domain error not in status map."""
            pass

        response = await domain_error_handler(MockRequest(), CustomDomainError("CUSTOM_001", "Custom error message"))

        assert response.status_code == 500
        data = json.loads(response.body.decode())
        assert data["errors"][0]["code"] == "CUSTOM_001"

    @pytest.mark.asyncio
    async def test_error_with_none_request_id(self):
        request = type('Request', (), {
            'state': type('State', (), {})()
        })()

        response = await domain_error_handler(request, ValidationError("field", "Invalid field"))

        data = json.loads(response.body.decode())
        assert data["meta"]["request_id"] is None

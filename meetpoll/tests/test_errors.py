"""Tests for standardized error handling."""

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from pydantic import BaseModel


class TestAPIErrors:
    """Test custom API error classes."""

    def test_not_found_error_defaults(self):
        from meetpoll.errors import NotFoundError

        error = NotFoundError()
        assert error.status_code == 404
        assert error.error == "not_found"
        assert error.detail == "Resource not found"

    def test_not_found_error_with_context(self):
        from meetpoll.errors import NotFoundError

        error = NotFoundError(detail="Event not found", share_id="abc123")
        assert error.detail == "Event not found"
        assert error.context == {"share_id": "abc123"}

    def test_validation_error(self):
        from meetpoll.errors import ValidationError

        error = ValidationError(detail="Time option needs a start time")
        assert error.status_code == 400
        assert error.error == "validation_error"
        assert error.detail == "Time option needs a start time"

    def test_storage_error_hides_context(self):
        from meetpoll.errors import StorageError

        error = StorageError(cause="OperationalError")
        assert error.status_code == 500
        assert error.error == "storage_error"
        assert error.context == {"cause": "OperationalError"}
        assert error.to_response().context is None

    def test_share_id_collision_is_storage_error(self):
        from meetpoll.errors import ShareIdCollisionError, StorageError

        error = ShareIdCollisionError(share_id="abc")
        assert isinstance(error, StorageError)
        assert error.status_code == 500


class TestErrorResponse:
    """Test error response model."""

    def test_error_response_model(self):
        from meetpoll.errors import ErrorResponse

        response = ErrorResponse(
            error="not_found",
            detail="Event not found",
            error_code="EVENT_NOT_FOUND",
            context={"share_id": "abc"},
        )

        data = response.model_dump()
        assert data["error"] == "not_found"
        assert data["detail"] == "Event not found"
        assert data["error_code"] == "EVENT_NOT_FOUND"
        assert data["context"] == {"share_id": "abc"}

    def test_error_response_minimal(self):
        from meetpoll.errors import ErrorResponse

        response = ErrorResponse(error="internal_error")
        assert response.model_dump(exclude_none=True) == {"error": "internal_error"}


class TestExceptionHandlers:
    """Test exception handlers integration."""

    @pytest.fixture
    def app(self):
        from meetpoll.errors import NotFoundError, StorageError, register_exception_handlers

        app = FastAPI()
        register_exception_handlers(app)

        class Payload(BaseModel):
            name: str

        @app.get("/not-found")
        async def not_found():
            raise NotFoundError(detail="Event not found")

        @app.get("/storage")
        async def storage():
            raise StorageError(cause="OperationalError")

        @app.get("/boom")
        async def boom():
            raise RuntimeError("boom")

        @app.post("/payload")
        async def payload(body: Payload):
            return {"name": body.name}

        return app

    def test_api_error_handler(self, app):
        client = TestClient(app, raise_server_exceptions=False)
        response = client.get("/not-found")

        assert response.status_code == 404
        assert response.json() == {"error": "not_found", "detail": "Event not found"}

    def test_storage_error_does_not_leak_cause(self, app):
        client = TestClient(app, raise_server_exceptions=False)
        response = client.get("/storage")

        assert response.status_code == 500
        assert response.json() == {"error": "storage_error", "detail": "Storage operation failed"}

    def test_invalid_payload_is_400(self, app):
        client = TestClient(app, raise_server_exceptions=False)
        response = client.post("/payload", json={"nope": 1})

        assert response.status_code == 400
        assert response.json() == {"error": "validation_error", "detail": "Invalid request data"}

    def test_unknown_route_uses_standard_format(self, app):
        client = TestClient(app, raise_server_exceptions=False)
        response = client.get("/missing")

        assert response.status_code == 404
        assert response.json()["error"] == "not_found"

    def test_unhandled_exception(self, app):
        client = TestClient(app, raise_server_exceptions=False)
        response = client.get("/boom")

        assert response.status_code == 500
        assert response.json()["error"] == "internal_error"


class TestStatusToErrorType:
    """Test status code to error type mapping."""

    def test_common_status_codes(self):
        from meetpoll.errors import _status_to_error_type

        assert _status_to_error_type(400) == "bad_request"
        assert _status_to_error_type(404) == "not_found"
        assert _status_to_error_type(405) == "method_not_allowed"
        assert _status_to_error_type(500) == "internal_error"
        assert _status_to_error_type(503) == "service_unavailable"

    def test_unknown_status_code(self):
        from meetpoll.errors import _status_to_error_type

        assert _status_to_error_type(418) == "error"

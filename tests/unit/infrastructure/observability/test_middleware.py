"""Unit tests for RequestLoggingMiddleware."""

from unittest.mock import patch

import pytest
from fastapi import FastAPI, HTTPException
from fastapi.testclient import TestClient

from cratescope.infrastructure.observability.middleware import RequestLoggingMiddleware


class TestRequestLoggingMiddleware:
    """Test suite for RequestLoggingMiddleware."""

    @pytest.fixture
    def app(self) -> FastAPI:
        """Create a FastAPI app with middleware for testing."""
        app = FastAPI()
        app.add_middleware(RequestLoggingMiddleware)

        @app.get("/test")
        async def test_endpoint():
            return {"message": "test"}

        @app.get("/missing")
        async def missing_endpoint():
            raise HTTPException(status_code=404, detail="nope")

        @app.get("/error")
        async def error_endpoint():
            raise ValueError("Test error")

        return app

    @pytest.fixture
    def client(self, app: FastAPI) -> TestClient:
        """Create a test client."""
        return TestClient(app)

    def test_request_and_completion_logged(self, client: TestClient):
        """One line when the request comes in, one when it finishes."""
        with patch(
            "cratescope.infrastructure.observability.middleware.logger"
        ) as mock_logger:
            response = client.get("/test")

            assert response.status_code == 200
            assert mock_logger.info.call_count == 2

            completion = mock_logger.info.call_args_list[1]
            log_message = completion[0][0]
            assert log_message.startswith("✓ GET /test → 200")
            assert "ms" in log_message
            assert completion[1]["extra"]["status_code"] == 200

    def test_error_status_marked(self, client: TestClient):
        """4xx/5xx responses get the ✗ marker."""
        with patch(
            "cratescope.infrastructure.observability.middleware.logger"
        ) as mock_logger:
            client.get("/missing")

            log_message = mock_logger.info.call_args_list[1][0][0]
            assert log_message.startswith("✗ GET /missing → 404")

    def test_correlation_id_from_header_echoed(self, client: TestClient):
        """A caller-supplied correlation ID comes back unchanged."""
        response = client.get("/test", headers={"X-Correlation-ID": "custom-correlation-id"})

        assert response.headers["X-Correlation-ID"] == "custom-correlation-id"

    def test_request_without_correlation_id_header(self, client: TestClient):
        """Without a header a fresh ID is generated per request."""
        with patch(
            "cratescope.infrastructure.observability.middleware.set_correlation_id"
        ) as mock_set_correlation_id:
            client.get("/test")

            mock_set_correlation_id.assert_called_once_with(None)

        first = client.get("/test").headers["X-Correlation-ID"]
        second = client.get("/test").headers["X-Correlation-ID"]
        assert first and second and first != second

    def test_error_request_logs_exception(self, client: TestClient):
        """Unhandled errors are logged and re-raised."""
        with patch(
            "cratescope.infrastructure.observability.middleware.logger"
        ) as mock_logger:
            with pytest.raises(ValueError):
                client.get("/error")

            assert mock_logger.exception.call_count == 1
            log_message = mock_logger.exception.call_args[0][0]
            assert log_message == "Request failed: GET /error"
            assert mock_logger.exception.call_args[1]["extra"]["error_type"] == "ValueError"

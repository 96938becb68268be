"""
Tests for application wiring: health, root and the shared error body.
"""

from unittest.mock import MagicMock

from fastapi import status
from sqlalchemy.exc import OperationalError

from classicnooks.database import get_db
from classicnooks.main import app


class TestHealth:

    def test_health(self, client):
        response = client.get("/health")

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["status"] == "healthy"
        assert data["cache"] == {"status": "disconnected"}
        assert data["rate_limiting"]["enabled"] is False
        assert data["captcha"] == {"enabled": False}

    def test_root(self, client):
        data = client.get("/").json()

        assert data["docs"] == "/docs"
        assert data["health"] == "/health"


class TestErrorBody:

    def test_unknown_route(self, client):
        response = client.get("/api/v1/nope")

        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert response.json() == {"error": "not_found", "detail": "Not Found"}

    def test_method_not_allowed(self, client):
        response = client.put("/api/v1/books")

        assert response.status_code == status.HTTP_405_METHOD_NOT_ALLOWED
        assert set(response.json()) == {"error", "detail"}

    def test_validation_error_names_field(self, client):
        response = client.post(
            "/api/v1/auth/register",
            json={"user": "ab", "password": "longenough", "captchaToken": "t"},
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["detail"] == (
            "user: Username must be between 3 and 30 characters"
        )

    def test_store_failure_is_generic_500(self, client):
        broken = MagicMock()
        broken.execute.side_effect = OperationalError("SELECT", {}, Exception("gone"))

        def override_get_db():
            yield broken

        app.dependency_overrides[get_db] = override_get_db

        response = client.get("/api/v1/books")

        assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
        assert response.json() == {
            "error": "internal",
            "detail": "An internal error occurred.",
        }
        assert "gone" not in response.text

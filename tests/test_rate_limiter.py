"""
Tests for Rate Limiting

The application limiter is disabled for the suite, so these tests build a
small app with an in-memory moving-window limiter and the same key
function and 429 handler.
"""

from unittest.mock import patch

import pytest
from fastapi import FastAPI, Request
from fastapi.testclient import TestClient
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from starlette.requests import Request as StarletteRequest

from classicnooks.config import Settings
from classicnooks.main import create_app
from classicnooks.services import rate_limiter
from classicnooks.services.rate_limiter import get_client_ip, rate_limit_exceeded_handler


def make_request(headers: dict) -> StarletteRequest:
    scope = {
        "type": "http",
        "method": "GET",
        "path": "/",
        "headers": [(k.lower().encode(), v.encode()) for k, v in headers.items()],
    }
    return StarletteRequest(scope)


class TestGetClientIp:

    def test_first_forwarded_entry(self):
        request = make_request({"X-Forwarded-For": "203.0.113.5, 10.0.0.2, 10.0.0.3"})

        assert get_client_ip(request) == "203.0.113.5"

    def test_single_forwarded_entry(self):
        request = make_request({"X-Forwarded-For": " 198.51.100.1 "})

        assert get_client_ip(request) == "198.51.100.1"

    def test_no_header_is_loopback(self):
        assert get_client_ip(make_request({})) == "127.0.0.1"

    def test_empty_header_is_loopback(self):
        assert get_client_ip(make_request({"X-Forwarded-For": ""})) == "127.0.0.1"


@pytest.fixture
def limited_client():
    """An app with two routes sharing one bucket and one on its own."""
    limiter = Limiter(
        key_func=get_client_ip,
        storage_uri="memory://",
        strategy="moving-window",
    )
    shared = limiter.shared_limit("3/minute", scope="books")

    app = FastAPI()
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)

    @app.get("/books")
    @shared
    def list_books(request: Request):
        return {"ok": True}

    @app.get("/books/1")
    @shared
    def get_book(request: Request):
        return {"ok": True}

    @app.post("/login")
    @limiter.limit("1/minute")
    def login(request: Request):
        return {"ok": True}

    @app.post("/register")
    @limiter.limit("100/minute;1/day")
    def register(request: Request):
        return {"ok": True}

    with TestClient(app) as client:
        yield client


class TestRateLimitExceeded:

    def test_limit_returns_429(self, limited_client):
        assert limited_client.post("/login").status_code == 200

        response = limited_client.post("/login")

        assert response.status_code == 429
        assert response.json() == {"error": "rate_limited", "detail": "Too many requests"}
        assert response.headers["Retry-After"] == "60"
        assert "1 per 1 minute" in response.headers["X-RateLimit-Limit"]

    def test_shared_scope_counts_together(self, limited_client):
        assert limited_client.get("/books").status_code == 200
        assert limited_client.get("/books/1").status_code == 200
        assert limited_client.get("/books").status_code == 200

        assert limited_client.get("/books/1").status_code == 429

    def test_clients_are_counted_separately(self, limited_client):
        first = {"X-Forwarded-For": "203.0.113.1"}
        second = {"X-Forwarded-For": "203.0.113.2"}

        assert limited_client.post("/login", headers=first).status_code == 200
        assert limited_client.post("/login", headers=first).status_code == 429
        assert limited_client.post("/login", headers=second).status_code == 200

    def test_retry_after_follows_exhausted_window(self, limited_client):
        """Hitting the daily window of a stacked limit asks for a day's wait."""
        assert limited_client.post("/register").status_code == 200

        response = limited_client.post("/register")

        assert response.status_code == 429
        assert response.headers["Retry-After"] == "86400"
        assert "1 per 1 day" in response.headers["X-RateLimit-Limit"]


class TestLimiterStorageFailure:
    """A broken limiter backend rejects requests instead of letting them through."""

    def test_unreachable_redis_is_500(self):
        broken_settings = Settings(
            rate_limit_enabled=True,
            redis_url="redis://127.0.0.1:1/0",
        )
        with patch.object(rate_limiter, "settings", broken_settings):
            broken_limiter = rate_limiter.create_limiter()

        app = create_app()
        handled = []

        @app.get("/limited")
        @broken_limiter.limit("10/minute")
        def limited(request: Request):
            handled.append(request.url.path)
            return {"ok": True}

        client = TestClient(app, raise_server_exceptions=False)
        response = client.get("/limited")

        assert response.status_code == 500
        assert response.json() == {
            "error": "internal",
            "detail": "An internal error occurred.",
        }
        assert handled == []

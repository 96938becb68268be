"""
Tests for the Book Text Reader

GET /api/v1/books/{book_id}/text proxies a book's plain-text edition from
an allow-listed host. Outbound HTTP is mocked; no test touches the network.
"""

from unittest.mock import patch

import httpx
import pytest
from fastapi import status

from classicnooks.exceptions import (
    ForbiddenError,
    UnprocessableError,
    UpstreamUnavailableError,
)
from classicnooks.services.reader import fetch_book_text, validate_text_url
from tests.conftest import create_mock_async_client

TEXT = "It is a truth universally acknowledged..."
ASYNC_CLIENT = "classicnooks.services.reader.httpx.AsyncClient"


class TestBookTextEndpoint:
    """Tests for GET /api/v1/books/{book_id}/text."""

    def test_text_success(self, client, sample_book):
        mock_client = create_mock_async_client(
            get_response=httpx.Response(200, text=TEXT)
        )

        with patch(ASYNC_CLIENT, return_value=mock_client):
            response = client.get("/api/v1/books/1342/text")

        assert response.status_code == status.HTTP_200_OK
        assert response.text == TEXT
        assert response.headers["content-type"].startswith("text/plain")

        args, kwargs = mock_client.get.call_args
        assert str(args[0]) == "https://www.gutenberg.org/ebooks/1342.txt.utf-8"
        assert kwargs["headers"] == {"Accept": "text/plain"}

    def test_text_book_not_found(self, client):
        response = client.get("/api/v1/books/999/text")

        assert response.status_code == status.HTTP_404_NOT_FOUND

    def test_text_invalid_id(self, client):
        response = client.get("/api/v1/books/abc/text")

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_text_no_url_stored(self, client, sample_book, db_session):
        sample_book.source_text_url = None
        db_session.commit()

        response = client.get("/api/v1/books/1342/text")

        assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY
        assert response.json()["error"] == "unprocessable"

    def test_text_host_not_allowed(self, client, sample_book, db_session):
        sample_book.source_text_url = "https://evil.example.com/1342.txt"
        db_session.commit()

        with patch(ASYNC_CLIENT) as mock_async_client:
            response = client.get("/api/v1/books/1342/text")

        assert response.status_code == status.HTTP_403_FORBIDDEN
        assert response.json()["detail"] == "Upstream host not allowed."
        mock_async_client.assert_not_called()

    def test_text_upstream_error_status(self, client, sample_book):
        mock_client = create_mock_async_client(get_response=httpx.Response(404))

        with patch(ASYNC_CLIENT, return_value=mock_client):
            response = client.get("/api/v1/books/1342/text")

        assert response.status_code == status.HTTP_502_BAD_GATEWAY
        assert response.json() == {
            "error": "upstream_unavailable",
            "detail": "Upstream fetch error.",
        }

    def test_text_upstream_timeout(self, client, sample_book):
        mock_client = create_mock_async_client(error=httpx.ReadTimeout("timed out"))

        with patch(ASYNC_CLIENT, return_value=mock_client):
            response = client.get("/api/v1/books/1342/text")

        assert response.status_code == status.HTTP_502_BAD_GATEWAY


class TestValidateTextUrl:
    """Tests for the URL and host checks."""

    @pytest.mark.parametrize(
        "url",
        [
            "https://www.gutenberg.org/ebooks/1342.txt.utf-8",
            "http://gutenberg.org/files/1342/1342-0.txt",
            "https://gutendex.com/books/1342",
            "https://WWW.GUTENBERG.ORG/ebooks/84.txt.utf-8",
        ],
    )
    def test_allowed_hosts(self, url):
        assert validate_text_url(url).host.lower() in {
            "www.gutenberg.org",
            "gutenberg.org",
            "gutendex.com",
        }

    @pytest.mark.parametrize(
        "url",
        [
            "https://gutenberg.org.evil.com/x.txt",
            "https://evilgutenberg.org/x.txt",
            "http://127.0.0.1/admin",
        ],
    )
    def test_disallowed_hosts(self, url):
        with pytest.raises(ForbiddenError):
            validate_text_url(url)

    @pytest.mark.parametrize("url", ["not a url", "/relative/path.txt", "ftp://gutenberg.org/x"])
    def test_unusable_urls(self, url):
        with pytest.raises(UnprocessableError):
            validate_text_url(url)


class TestFetchBookText:
    """Async tests of the fetch itself."""

    @pytest.mark.asyncio
    async def test_fetch_returns_body(self):
        mock_client = create_mock_async_client(
            get_response=httpx.Response(200, text=TEXT)
        )

        with patch(ASYNC_CLIENT, return_value=mock_client) as mock_async_client:
            text = await fetch_book_text("https://www.gutenberg.org/ebooks/1342.txt.utf-8")

        assert text == TEXT
        assert mock_async_client.call_args.kwargs["timeout"] == 15.0

    @pytest.mark.asyncio
    async def test_fetch_connect_error(self):
        mock_client = create_mock_async_client(error=httpx.ConnectError("refused"))

        with patch(ASYNC_CLIENT, return_value=mock_client):
            with pytest.raises(UpstreamUnavailableError):
                await fetch_book_text("https://www.gutenberg.org/ebooks/1342.txt.utf-8")

    @pytest.mark.asyncio
    async def test_fetch_server_error(self):
        mock_client = create_mock_async_client(get_response=httpx.Response(503))

        with patch(ASYNC_CLIENT, return_value=mock_client):
            with pytest.raises(UpstreamUnavailableError):
                await fetch_book_text("https://gutendex.com/books/1342")


def redirecting_transport(requested_hosts: list, location: str) -> httpx.MockTransport:
    """Gutenberg answers with a redirect to ``location``; any other host serves TEXT."""

    def handler(request: httpx.Request) -> httpx.Response:
        requested_hosts.append(request.url.host)
        if request.url.host == "www.gutenberg.org":
            return httpx.Response(302, headers={"Location": location})
        return httpx.Response(200, text=TEXT)

    return httpx.MockTransport(handler)


def patch_transport(transport: httpx.MockTransport):
    """Patch AsyncClient so the reader's own settings and hooks stay in place."""
    real_async_client = httpx.AsyncClient

    def build_client(**kwargs):
        return real_async_client(transport=transport, **kwargs)

    return patch(ASYNC_CLIENT, side_effect=build_client)


class TestRedirects:
    """Every redirect hop is checked against the host allow-list."""

    @pytest.mark.asyncio
    async def test_redirect_off_allow_list_is_refused(self):
        hosts = []
        transport = redirecting_transport(hosts, "https://evil.example/steal.txt")

        with patch_transport(transport):
            with pytest.raises(ForbiddenError):
                await fetch_book_text("https://www.gutenberg.org/ebooks/1342.txt.utf-8")

        assert hosts == ["www.gutenberg.org"]

    @pytest.mark.asyncio
    async def test_redirect_within_allow_list_is_followed(self):
        hosts = []
        transport = redirecting_transport(hosts, "https://gutenberg.org/cache/1342.txt")

        with patch_transport(transport):
            text = await fetch_book_text("https://www.gutenberg.org/ebooks/1342.txt.utf-8")

        assert text == TEXT
        assert hosts == ["www.gutenberg.org", "gutenberg.org"]

    def test_endpoint_redirect_off_allow_list(self, client, sample_book):
        hosts = []
        transport = redirecting_transport(hosts, "http://169.254.169.254/latest/meta-data")

        with patch_transport(transport):
            response = client.get("/api/v1/books/1342/text")

        assert response.status_code == status.HTTP_403_FORBIDDEN
        assert response.json() == {
            "error": "forbidden",
            "detail": "Upstream host not allowed.",
        }
        assert hosts == ["www.gutenberg.org"]

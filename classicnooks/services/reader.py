"""
Book Text Reader

Fetches a book's plain-text edition from an upstream mirror so the web
reader can display it without the browser talking to the mirror directly.

Only hosts on the TEXT_ALLOWED_HOSTS allow-list are contacted, so a
tampered catalog row cannot turn the endpoint into an open proxy. Fetches
are bounded by TEXT_FETCH_TIMEOUT_SECONDS.
"""

import logging

import httpx

from classicnooks.config import get_settings
from classicnooks.exceptions import (
    ForbiddenError,
    UnprocessableError,
    UpstreamUnavailableError,
)

logger = logging.getLogger(__name__)


def validate_text_url(url: str) -> httpx.URL:
    """
    Parse a stored text URL and check it against the host allow-list.

    Raises:
        UnprocessableError: Not an absolute http(s) URL
        ForbiddenError: Host is not allow-listed
    """
    try:
        parsed = httpx.URL(url)
    except (httpx.InvalidURL, TypeError) as e:
        raise UnprocessableError("Invalid text URL.") from e

    if parsed.scheme not in ("http", "https") or not parsed.host:
        raise UnprocessableError("Invalid text URL.")

    if parsed.host.lower() not in get_settings().text_allowed_hosts_set:
        logger.warning(f"Refusing text fetch from host {parsed.host}")
        raise ForbiddenError("Upstream host not allowed.")

    return parsed


async def _check_redirect_host(request: httpx.Request) -> None:
    # Redirects are followed, so every hop must stay on an allow-listed host
    if request.url.host.lower() not in get_settings().text_allowed_hosts_set:
        logger.warning(f"Refusing redirect to host {request.url.host}")
        raise ForbiddenError("Upstream host not allowed.")


async def fetch_book_text(url: str) -> str:
    """
    Download a plain-text edition.

    Args:
        url: The book's stored source_text_url

    Returns:
        The body decoded as text

    Raises:
        UnprocessableError: URL cannot be parsed
        ForbiddenError: Host is not allow-listed
        UpstreamUnavailableError: Timeout, transport error or non-2xx status
    """
    parsed = validate_text_url(url)
    settings = get_settings()

    try:
        async with httpx.AsyncClient(
            timeout=settings.text_fetch_timeout_seconds,
            follow_redirects=True,
            event_hooks={"request": [_check_redirect_host]},
        ) as client:
            response = await client.get(parsed, headers={"Accept": "text/plain"})
    except httpx.HTTPError as e:
        logger.error(f"Upstream text fetch failed for {parsed}: {e}", exc_info=True)
        raise UpstreamUnavailableError() from e

    if not response.is_success:
        logger.error(
            f"Upstream text fetch for {parsed} returned status {response.status_code}"
        )
        raise UpstreamUnavailableError(context={"status": response.status_code})

    return response.text

"""
CAPTCHA Verification Service

Server-side check of reCAPTCHA tokens submitted with login and
registration forms. The token is posted with the site secret to the
siteverify endpoint, which answers ``{"success": true|false, ...}``.

Verification can be switched off with CAPTCHA_ENABLED=false for local
development and tests; the request schemas still require a token.
"""

import logging

import httpx

from classicnooks.config import get_settings
from classicnooks.exceptions import InternalError, InvalidArgumentError

logger = logging.getLogger(__name__)


async def verify_captcha(token: str, remote_ip: str | None = None) -> None:
    """
    Verify a reCAPTCHA token.

    Args:
        token: Response token produced by the client widget
        remote_ip: Client address, forwarded to the verifier when known

    Raises:
        InvalidArgumentError: The verifier rejected the token
        InternalError: The verifier could not be reached or answered garbage
    """
    settings = get_settings()
    if not settings.captcha_enabled:
        return

    data = {"secret": settings.recaptcha_secret_key, "response": token}
    if remote_ip:
        data["remoteip"] = remote_ip

    try:
        async with httpx.AsyncClient(timeout=settings.captcha_timeout_seconds) as client:
            response = await client.post(settings.recaptcha_verify_url, data=data)
            result = response.json()
    except (httpx.HTTPError, ValueError) as e:
        logger.error(f"reCAPTCHA verification request failed: {e}", exc_info=True)
        raise InternalError(context={"stage": "captcha"}) from e

    if not result.get("success"):
        logger.warning(f"reCAPTCHA rejected: {result.get('error-codes', [])}")
        raise InvalidArgumentError("reCAPTCHA failed", field="captchaToken")

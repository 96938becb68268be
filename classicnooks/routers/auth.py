"""
Authentication Router

Handles session authentication endpoints:
- Registration (username/password + reCAPTCHA)
- Login (username/password + reCAPTCHA → session cookie + CSRF token)
- Logout (delete the session, clear the cookie)
- Current user (session lookup, never 401)

Security:
=========
- Passwords are hashed with Argon2 before storage
- Plain text passwords, session ids and CSRF tokens are never logged
- The session id lives only in an HTTP-only, SameSite=Lax cookie
- State-changing requests must echo the CSRF token in X-CSRF-Token
- Login, register and logout have a strict per-endpoint rate limit
"""

import logging

from fastapi import APIRouter, Request, Response, status
from fastapi.concurrency import run_in_threadpool

from classicnooks.config import get_settings
from classicnooks.dependencies import CsrfProtectedUser, DbSession, OptionalSessionUser
from classicnooks.schemas import (
    LoginRequest,
    LoginResponse,
    MeResponse,
    MessageResponse,
    RegisterRequest,
    SessionUserResponse,
)
from classicnooks.services import sessions
from classicnooks.services.captcha import verify_captcha
from classicnooks.services.rate_limiter import get_client_ip, limiter

logger = logging.getLogger(__name__)
settings = get_settings()

router = APIRouter(
    prefix="/auth",
    tags=["Authentication"],
    responses={
        400: {"description": "Bad request"},
        401: {"description": "Unauthorized"},
        429: {"description": "Rate limit exceeded"},
    },
)


# -------------------------------------------------------------------------
# Registration Endpoint
# -------------------------------------------------------------------------
@router.post(
    "/register",
    response_model=MessageResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register a new user",
    description="""
    Create a new account.

    **Username Requirements:**
    - 3-30 characters
    - Letters and numbers only (stored lowercase)

    **Password Requirements:**
    - 8-64 characters
    """,
    responses={409: {"description": "Username already taken"}},
)
@limiter.limit(settings.rate_limit_auth)
async def register(
    request: Request,
    credentials: RegisterRequest,
    db: DbSession,
) -> MessageResponse:
    """
    Register a new user.

    1. Validates username and password format (handled by Pydantic)
    2. Verifies the reCAPTCHA token
    3. Checks for a duplicate username and inserts the user
    """
    await verify_captcha(credentials.captcha_token, get_client_ip(request))
    await run_in_threadpool(
        sessions.register, db, credentials.username, credentials.password
    )

    return MessageResponse(message="Registration successful")


# -------------------------------------------------------------------------
# Login Endpoint
# -------------------------------------------------------------------------
@router.post(
    "/login",
    response_model=LoginResponse,
    summary="Log in",
    description="Open a session. The session cookie is HTTP-only; keep the returned csrfToken.",
)
@limiter.limit(settings.rate_limit_auth)
async def login(
    request: Request,
    response: Response,
    credentials: LoginRequest,
    db: DbSession,
) -> LoginResponse:
    """
    Authenticate and open a session.

    Unknown usernames and wrong passwords return the same 401.
    """
    await verify_captcha(credentials.captcha_token, get_client_ip(request))
    new_session = await run_in_threadpool(
        sessions.login, db, credentials.username, credentials.password
    )

    response.set_cookie(
        key=settings.session_cookie_name,
        value=new_session.session_id,
        max_age=settings.session_max_age,
        path="/",
        httponly=True,
        secure=settings.is_production,
        samesite="lax",
    )

    return LoginResponse(message="Login successful", csrf_token=new_session.csrf_token)


# -------------------------------------------------------------------------
# Logout Endpoint
# -------------------------------------------------------------------------
@router.delete(
    "/logout",
    response_model=MessageResponse,
    summary="Log out",
    responses={403: {"description": "Missing or invalid CSRF token"}},
)
@limiter.limit(settings.rate_limit_auth)
def logout(
    request: Request,
    response: Response,
    user: CsrfProtectedUser,
    db: DbSession,
) -> MessageResponse:
    """Delete the current session and clear the cookie."""
    sessions.logout(db, user.session_id)

    response.delete_cookie(
        key=settings.session_cookie_name,
        path="/",
        httponly=True,
        secure=settings.is_production,
        samesite="lax",
    )

    logger.info(f"User {user.id} logged out")
    return MessageResponse(message="Logged out successfully")


# -------------------------------------------------------------------------
# Current User Endpoint
# -------------------------------------------------------------------------
@router.get(
    "/me",
    response_model=MeResponse,
    response_model_exclude_unset=True,
    summary="Get current user",
    description="Returns the logged-in user and CSRF token, or {\"user\": null}.",
)
@limiter.limit(settings.rate_limit_auth_me)
def get_me(
    request: Request,
    user: OptionalSessionUser,
) -> MeResponse:
    """
    Session lookup for the client.

    Always 200: an anonymous caller is not an error here.
    """
    if user is None:
        return MeResponse(user=None)

    return MeResponse(
        user=SessionUserResponse(
            id=user.id,
            username=user.username,
            created=user.created_at,
        ),
        csrf_token=user.csrf_token,
    )

"""
User and Session Pydantic Schemas

Request bodies reject unknown fields (extra="forbid"); a malformed body
never reaches a service. Field names follow the wire format used by the
web client (``user``, ``captchaToken``, ``csrfToken``) through aliases.

Schemas:
- RegisterRequest: username/password with length and charset rules
- LoginRequest: credentials plus CAPTCHA assertion
- LoginResponse: message plus the session's CSRF token
- SessionUserResponse / MeResponse: the /auth/me payload
"""

import re
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

USERNAME_PATTERN = re.compile(r"^[A-Za-z0-9]+$")


class CredentialsBase(BaseModel):
    """Fields shared by the login and registration bodies."""

    username: str = Field(
        ...,
        alias="user",
        min_length=1,
        description="Username",
        examples=["austenfan"],
    )

    password: str = Field(
        ...,
        min_length=1,
        description="Password",
    )

    captcha_token: str = Field(
        ...,
        alias="captchaToken",
        min_length=1,
        description="reCAPTCHA response token from the client widget",
    )

    model_config = ConfigDict(extra="forbid", populate_by_name=True)


class LoginRequest(CredentialsBase):
    """
    Schema for POST /auth/login.

    Example request body:
    {
        "user": "austenfan",
        "password": "pemberley1813",
        "captchaToken": "03AGdBq2..."
    }
    """


class RegisterRequest(CredentialsBase):
    """
    Schema for POST /auth/register.

    Rules:
    - username: 3-30 characters, letters and digits only, stored lowercase
    - password: 8-64 characters
    """

    @field_validator("username")
    @classmethod
    def username_must_be_valid(cls, v: str) -> str:
        """Validate username length and charset, then normalize to lowercase."""
        v = v.strip()
        if len(v) < 3 or len(v) > 30:
            raise ValueError("Username must be between 3 and 30 characters")
        if not USERNAME_PATTERN.match(v):
            raise ValueError("Username may only contain letters and numbers")
        return v.lower()

    @field_validator("password")
    @classmethod
    def password_length(cls, v: str) -> str:
        """Validate password length."""
        if len(v) < 8 or len(v) > 64:
            raise ValueError("Password must be between 8 and 64 characters.")
        return v


class MessageResponse(BaseModel):
    """Plain acknowledgement."""

    message: str = Field(..., examples=["Logged out successfully"])


class LoginResponse(MessageResponse):
    """
    Successful login.

    The session id travels only in the HTTP-only cookie; the CSRF token is
    returned here so client code can echo it on mutating requests.
    """

    csrf_token: str = Field(..., alias="csrfToken")

    model_config = ConfigDict(populate_by_name=True)


class SessionUserResponse(BaseModel):
    """The logged-in user as shown to the client."""

    id: int
    username: str
    created: datetime | None = Field(default=None, description="Registration time")


class MeResponse(BaseModel):
    """
    GET /auth/me payload.

    Anonymous callers get ``{"user": null}`` (csrfToken left unset and
    excluded from the response).
    """

    user: SessionUserResponse | None = None
    csrf_token: str | None = Field(default=None, alias="csrfToken")

    model_config = ConfigDict(populate_by_name=True)

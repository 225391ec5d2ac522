"""Request/response schemas for auth endpoints."""

from typing import Any

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from storefront.core.security import (
    EMAIL_MAX_LEN,
    NAME_MAX_LEN,
    NAME_MIN_LEN,
    PASSWORD_MAX_LEN,
    PASSWORD_MIN_LEN,
)


def _strip(v: Any) -> Any:
    return v.strip() if isinstance(v, str) else v


def _normalize_email(v: str) -> str:
    if len(v) > EMAIL_MAX_LEN:
        raise ValueError(f"Email must be at most {EMAIL_MAX_LEN} characters.")
    # Stored addresses are compared case-insensitively.
    return v.lower()


class SignupRequest(BaseModel):
    """Fields for creating an account."""

    name: str = Field(..., min_length=NAME_MIN_LEN, max_length=NAME_MAX_LEN, description="Display name")
    email: EmailStr = Field(..., description="Unique email address")
    password: str = Field(
        ..., min_length=PASSWORD_MIN_LEN, max_length=PASSWORD_MAX_LEN, description="Password"
    )

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Name must not be blank.")
        return v

    @field_validator("email", mode="before")
    @classmethod
    def strip_email(cls, v: Any) -> Any:
        return _strip(v)

    @field_validator("email", mode="after")
    @classmethod
    def lower_email(cls, v: str) -> str:
        return _normalize_email(v)


class LoginRequest(BaseModel):
    """Credentials for login."""

    email: EmailStr = Field(..., description="Email address")
    password: str = Field(..., min_length=1, max_length=PASSWORD_MAX_LEN, description="Password")

    @field_validator("email", mode="before")
    @classmethod
    def strip_email(cls, v: Any) -> Any:
        return _strip(v)

    @field_validator("email", mode="after")
    @classmethod
    def lower_email(cls, v: str) -> str:
        return _normalize_email(v)


class CurrentUser(BaseModel):
    """Authenticated user for dependency injection (no password hash)."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    email: str

"""
Authentication schema models using Pydantic.
"""

from typing import Any, Dict, Optional

from pydantic import BaseModel, EmailStr, Field, StrictStr, field_validator

from soundnest.schemas.profile import clean_username


class AuthSession(BaseModel):
    """Session issued by the identity provider."""

    access_token: str
    refresh_token: Optional[str] = None
    token_type: str = "bearer"
    expires_in: Optional[int] = None
    user: Dict[str, Any] = Field(default_factory=dict)


class SignUpResult(BaseModel):
    """Outcome of a sign-up; ``session`` is empty when email confirmation is pending."""

    user: Dict[str, Any]
    session: Optional[AuthSession] = None


class RegisterRequest(BaseModel):
    email: EmailStr
    password: StrictStr = Field(min_length=1)
    username: Optional[StrictStr] = None

    @field_validator("username")
    @classmethod
    def check_username(cls, value: Optional[str]) -> Optional[str]:
        return clean_username(value)


class LoginRequest(BaseModel):
    email: EmailStr
    password: StrictStr = Field(min_length=1)


class RefreshRequest(BaseModel):
    refresh_token: StrictStr = Field(min_length=1)


class AuthResponse(BaseModel):
    """Response body for register/login/refresh."""

    user: Dict[str, Any]
    profile: Optional[Dict[str, Any]] = None
    access_token: Optional[str] = None
    refresh_token: Optional[str] = None
    message: Optional[str] = None

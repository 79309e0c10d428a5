import re
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, StrictStr, field_validator, model_validator

USERNAME_PATTERN = re.compile(r"^[a-zA-Z0-9_-]+$")
USERNAME_MAX_LENGTH = 50
DISPLAY_NAME_MAX_LENGTH = 100


def clean_username(value: Optional[str]) -> Optional[str]:
    """Trim a username and check its length and characters."""
    if value is None:
        return value
    value = value.strip()
    if not value:
        raise ValueError("Username must be a non-empty string")
    if len(value) > USERNAME_MAX_LENGTH:
        raise ValueError(f"Username must be {USERNAME_MAX_LENGTH} characters or less")
    if not USERNAME_PATTERN.match(value):
        raise ValueError(
            "Username can only contain letters, numbers, underscores, and hyphens"
        )
    return value


class Profile(BaseModel):
    user_id: str
    username: str
    display_name: Optional[str] = None
    avatar_url: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class ProfileUpdate(BaseModel):
    """Partial profile update; at least one field is required."""

    username: Optional[StrictStr] = None
    display_name: Optional[StrictStr] = None

    @field_validator("username")
    @classmethod
    def check_username(cls, value: Optional[str]) -> Optional[str]:
        return clean_username(value)

    @field_validator("display_name")
    @classmethod
    def check_display_name(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return value
        value = value.strip()
        if not value:
            raise ValueError("Display name must be a non-empty string")
        if len(value) > DISPLAY_NAME_MAX_LENGTH:
            raise ValueError(
                f"Display name must be {DISPLAY_NAME_MAX_LENGTH} characters or less"
            )
        return value

    @model_validator(mode="after")
    def require_one_field(self) -> "ProfileUpdate":
        if self.username is None and self.display_name is None:
            raise ValueError(
                "At least one field (username or display_name) is required"
            )
        return self

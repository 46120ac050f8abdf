"""
Pydantic schemas for user-related request/response validation.
"""

import re
from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field, field_validator

USERNAME_PATTERN = r"^[a-zA-Z0-9_]+$"


def check_password_strength(value: str) -> str:
    if not re.search(r"[A-Z]", value):
        raise ValueError("Password must contain at least one uppercase letter")
    if not re.search(r"[a-z]", value):
        raise ValueError("Password must contain at least one lowercase letter")
    if not re.search(r"[0-9]", value):
        raise ValueError("Password must contain at least one number")
    return value


class UserCreate(BaseModel):
    email: EmailStr
    username: str = Field(..., min_length=3, max_length=30, pattern=USERNAME_PATTERN)
    password: str = Field(..., min_length=8, max_length=128)
    display_name: str = Field(..., min_length=1, max_length=100)

    @field_validator("email", "username")
    @classmethod
    def lowercase(cls, v: str) -> str:
        return v.lower()

    @field_validator("display_name")
    @classmethod
    def strip_display_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Display name is required")
        return v

    @field_validator("password")
    @classmethod
    def password_strength(cls, v: str) -> str:
        return check_password_strength(v)


class UserLogin(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)

    @field_validator("email")
    @classmethod
    def lowercase(cls, v: str) -> str:
        return v.lower()


class UserSummary(BaseModel):
    id: UUID
    username: str
    display_name: str
    avatar_url: Optional[str] = None

    model_config = {"from_attributes": True}


class PublicProfile(UserSummary):
    bio: Optional[str] = None


class UserResponse(BaseModel):
    id: UUID
    email: str
    username: str
    display_name: str
    avatar_url: Optional[str]
    bio: Optional[str]
    latitude: Optional[float]
    longitude: Optional[float]
    onboarding_completed: bool
    email_verified: bool
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class PreferencesResponse(BaseModel):
    favorite_artists: list = []
    favorite_genres: list[str] = []
    sports_teams: list = []
    interests: list[str] = []
    notification_settings: dict[str, bool] = {}
    radius_miles: int

    model_config = {"from_attributes": True}


class UserWithPreferences(UserResponse):
    preferences: Optional[PreferencesResponse] = None


class ProfileUpdate(BaseModel):
    display_name: Optional[str] = Field(None, min_length=1, max_length=100)
    username: Optional[str] = Field(None, min_length=3, max_length=30, pattern=USERNAME_PATTERN)
    bio: Optional[str] = Field(None, max_length=160)
    avatar_url: Optional[str] = Field(None, max_length=500)

    @field_validator("username")
    @classmethod
    def lowercase(cls, v: Optional[str]) -> Optional[str]:
        return v.lower() if v is not None else v


class PreferencesUpdate(BaseModel):
    # Artists and teams are picked from the discovery endpoints and stored as-is
    favorite_artists: Optional[list[dict]] = None
    favorite_genres: Optional[list[str]] = None
    sports_teams: Optional[list[dict]] = None
    interests: Optional[list[str]] = None
    notification_settings: Optional[dict[str, bool]] = None
    radius_miles: Optional[int] = Field(None, ge=5, le=100)


class LocationUpdate(BaseModel):
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)

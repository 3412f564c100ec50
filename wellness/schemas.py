"""
Pydantic schemas for the wellness API.
"""

from __future__ import annotations

import re
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
WEEKDAYS = (
    "monday",
    "tuesday",
    "wednesday",
    "thursday",
    "friday",
    "saturday",
    "sunday",
)
TIME_RE = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")


def normalize_email(email: str | None) -> str:
    return (email or "").strip().lower()


class SignupRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=128)
    surname: str = Field(..., min_length=1, max_length=128)
    email: str = Field(..., max_length=254)
    password: str = Field(..., min_length=8, max_length=256)

    @field_validator("email")
    @classmethod
    def _check_email(cls, value: str) -> str:
        value = normalize_email(value)
        if not EMAIL_RE.match(value):
            raise ValueError("invalid email address")
        return value


class LoginRequest(BaseModel):
    email: str
    password: str

    @field_validator("email")
    @classmethod
    def _normalize(cls, value: str) -> str:
        return normalize_email(value)


class ReminderRequest(BaseModel):
    time: str
    days: list[str] = Field(default_factory=list)

    @field_validator("time")
    @classmethod
    def _check_time(cls, value: str) -> str:
        if not TIME_RE.match(value):
            raise ValueError("time must be HH:MM")
        return value

    @field_validator("days")
    @classmethod
    def _check_days(cls, value: list[str]) -> list[str]:
        days: list[str] = []
        for day in value:
            day = day.strip().lower()
            if day not in WEEKDAYS:
                raise ValueError(f"unknown weekday: {day}")
            if day not in days:
                days.append(day)
        return sorted(days, key=WEEKDAYS.index)


class Reminder(BaseModel):
    time: Optional[str] = None
    days: list[str] = Field(default_factory=list)


class UserResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(..., alias="_id")
    email: str
    name: str
    surname: str
    favVideos: list[str] = Field(default_factory=list)
    favMeditations: list[str] = Field(default_factory=list)
    reminder: Optional[Reminder] = None


class SignupData(BaseModel):
    newUser: UserResponse


class SignupResponse(BaseModel):
    data: SignupData


class LoginData(BaseModel):
    token: str


class LoginResponse(BaseModel):
    data: LoginData
    user: UserResponse


class MessageResponse(BaseModel):
    message: str


class VideoResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(..., alias="_id")
    category: str
    level: str
    description: str = ""
    filename: str
    thumbnail: Optional[str] = None
    filesize: Optional[int] = None


class ImageResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(..., alias="_id")
    category: str
    level: str
    description: str = ""
    filename: str
    filesize: Optional[int] = None


class SpotifyLoginRequest(BaseModel):
    code: str = Field(..., min_length=1)


class SpotifyRefreshRequest(BaseModel):
    refreshToken: str = Field(..., min_length=1)


class SpotifyLoginResponse(BaseModel):
    accessToken: str
    refreshToken: Optional[str] = None
    expiresIn: int


class SpotifyRefreshResponse(BaseModel):
    accessToken: str
    expiresIn: int

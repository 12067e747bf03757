"""Event schemas."""
from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import ConfigDict, Field, field_validator, model_validator

from app.core.sanitization import (
    MAX_EVENT_NAME_LENGTH,
    sanitize_required,
    sanitize_slug,
    sanitize_text,
)
from app.core.utils import to_utc
from app.schemas.common import CamelModel

MAX_DESCRIPTION_LENGTH = 2000


def _check_window(start_time: Optional[datetime], end_time: Optional[datetime]) -> None:
    if start_time and end_time and to_utc(end_time) <= to_utc(start_time):
        raise ValueError("End time must be after start time")


class EventCreate(CamelModel):
    name: str = Field(..., min_length=1, max_length=MAX_EVENT_NAME_LENGTH)
    slug: Optional[str] = None  # generated from the name when omitted
    description: Optional[str] = Field(None, max_length=MAX_DESCRIPTION_LENGTH)
    organizer_id: Optional[int] = None
    is_active: bool = False
    allow_questions: bool = True
    allow_anonymous: bool = True
    auto_approve: bool = True
    show_voting: bool = True
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    branding: Optional[Dict[str, Any]] = None

    @field_validator('name')
    @classmethod
    def sanitize_name_field(cls, v: str) -> str:
        return sanitize_required(v, MAX_EVENT_NAME_LENGTH, "Event name")

    @field_validator('slug')
    @classmethod
    def sanitize_slug_field(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        return sanitize_slug(v)

    @field_validator('description')
    @classmethod
    def sanitize_description_field(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        return sanitize_text(v, max_length=MAX_DESCRIPTION_LENGTH) or None

    @model_validator(mode='after')
    def check_window(self):
        _check_window(self.start_time, self.end_time)
        return self


class EventUpdate(CamelModel):
    """Partial settings update; only fields present in the request are applied."""

    model_config = ConfigDict(extra="forbid")

    name: Optional[str] = Field(None, min_length=1, max_length=MAX_EVENT_NAME_LENGTH)
    description: Optional[str] = Field(None, max_length=MAX_DESCRIPTION_LENGTH)
    is_active: Optional[bool] = None
    allow_questions: Optional[bool] = None
    allow_anonymous: Optional[bool] = None
    auto_approve: Optional[bool] = None
    show_voting: Optional[bool] = None
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    branding: Optional[Dict[str, Any]] = None

    @field_validator('name')
    @classmethod
    def sanitize_name_field(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        return sanitize_required(v, MAX_EVENT_NAME_LENGTH, "Event name")

    @field_validator('description')
    @classmethod
    def sanitize_description_field(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        return sanitize_text(v, max_length=MAX_DESCRIPTION_LENGTH) or None

    @model_validator(mode='after')
    def check_required_values(self):
        for field in ("name", "is_active", "allow_questions", "allow_anonymous",
                      "auto_approve", "show_voting"):
            if field in self.model_fields_set and getattr(self, field) is None:
                raise ValueError(f"{field} cannot be null")
        _check_window(self.start_time, self.end_time)
        return self


class EventOut(CamelModel):
    id: int
    slug: str
    name: str
    description: Optional[str] = None
    organizer_id: Optional[int] = None
    is_active: bool
    allow_questions: bool
    allow_anonymous: bool
    auto_approve: bool
    show_voting: bool
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    branding: Optional[Dict[str, Any]] = None
    created_at: datetime


class EventStats(CamelModel):
    event_id: int
    participants: int
    questions: int
    polls: int
    active_connections: int

"""Participant schemas."""
from datetime import datetime
from typing import Optional

from pydantic import Field, field_validator

from app.core.sanitization import MAX_DISPLAY_NAME_LENGTH, sanitize_display_name
from app.schemas.common import CamelModel


class ParticipantCreate(CamelModel):
    name: Optional[str] = Field(None, max_length=MAX_DISPLAY_NAME_LENGTH)
    is_anonymous: bool = True
    session_id: Optional[str] = Field(None, max_length=100)
    user_id: Optional[int] = None

    @field_validator('name')
    @classmethod
    def sanitize_name_field(cls, v: Optional[str]) -> Optional[str]:
        return sanitize_display_name(v)


class ParticipantOut(CamelModel):
    id: int
    event_id: int
    user_id: Optional[int] = None
    session_id: Optional[str] = None
    name: Optional[str] = None
    is_anonymous: bool
    joined_at: datetime
    last_active_at: datetime

"""Question schemas."""
from datetime import datetime
from typing import Literal, Optional

from pydantic import ConfigDict, Field, field_validator, model_validator

from app.core.sanitization import (
    MAX_DISPLAY_NAME_LENGTH,
    MAX_QUESTION_TEXT_LENGTH,
    sanitize_display_name,
    sanitize_required,
)
from app.schemas.common import CamelModel

MODERATION_FLAGS = (
    "is_approved",
    "is_answered",
    "is_pinned",
    "is_hidden",
    "is_displayed_in_presenter",
)


class QuestionCreate(CamelModel):
    text: str = Field(..., min_length=1, max_length=MAX_QUESTION_TEXT_LENGTH)
    author_name: Optional[str] = Field(None, max_length=MAX_DISPLAY_NAME_LENGTH)
    is_anonymous: bool = False
    participant_id: Optional[int] = None

    @field_validator('text')
    @classmethod
    def sanitize_text_field(cls, v: str) -> str:
        return sanitize_required(v, MAX_QUESTION_TEXT_LENGTH, "Question text")

    @field_validator('author_name')
    @classmethod
    def sanitize_author_field(cls, v: Optional[str]) -> Optional[str]:
        return sanitize_display_name(v)


class QuestionUpdate(CamelModel):
    """Organizer moderation action. Every flag is optional; absent flags are untouched."""

    model_config = ConfigDict(extra="forbid")

    is_approved: Optional[bool] = None
    is_answered: Optional[bool] = None
    is_pinned: Optional[bool] = None
    is_hidden: Optional[bool] = None
    is_displayed_in_presenter: Optional[bool] = None

    @field_validator('is_hidden')
    @classmethod
    def hide_is_one_way(cls, v: Optional[bool]) -> Optional[bool]:
        if v is False:
            raise ValueError("Hidden questions cannot be unhidden")
        return v

    @model_validator(mode='after')
    def check_flags(self):
        changes = self.changes()
        if not changes:
            raise ValueError("At least one moderation flag is required")
        for field, value in changes.items():
            if value is None:
                raise ValueError(f"{field} cannot be null")
        return self

    def changes(self) -> dict:
        """Only the flags the caller actually sent."""
        return {field: getattr(self, field) for field in MODERATION_FLAGS
                if field in self.model_fields_set}


class QuestionVoteCreate(CamelModel):
    participant_id: Optional[int] = None
    vote_type: Literal["upvote", "downvote"]


class QuestionOut(CamelModel):
    id: int
    event_id: int
    participant_id: Optional[int] = None
    author_name: Optional[str] = None
    text: str
    is_anonymous: bool
    is_approved: bool
    is_answered: bool
    is_pinned: bool
    is_hidden: bool
    is_displayed_in_presenter: bool
    upvotes: int
    downvotes: int
    created_at: datetime

"""Poll schemas."""
from datetime import datetime
from typing import Any, Dict, List, Literal, Optional

from pydantic import ConfigDict, Field, field_validator, model_validator

from app.core.constants import MAX_POLL_OPTIONS, MIN_POLL_OPTIONS, MULTIPLE_CHOICE
from app.core.sanitization import (
    MAX_POLL_QUESTION_LENGTH,
    sanitize_poll_options,
    sanitize_required,
)
from app.schemas.common import CamelModel

PollType = Literal["multiple-choice", "open-text", "word-cloud", "rating"]


class PollCreate(CamelModel):
    question: str = Field(..., min_length=1, max_length=MAX_POLL_QUESTION_LENGTH)
    type: PollType
    options: Optional[List[str]] = None
    # Launching a poll makes it live unless the organizer stages it inactive
    is_active: bool = True
    is_anonymous: bool = True
    show_results: bool = True

    @field_validator('question')
    @classmethod
    def sanitize_question_field(cls, v: str) -> str:
        return sanitize_required(v, MAX_POLL_QUESTION_LENGTH, "Poll question")

    @model_validator(mode='after')
    def check_options(self):
        if self.type == MULTIPLE_CHOICE:
            options = sanitize_poll_options(self.options or [])
            if not MIN_POLL_OPTIONS <= len(options) <= MAX_POLL_OPTIONS:
                raise ValueError(
                    f"Multiple-choice polls need between {MIN_POLL_OPTIONS} "
                    f"and {MAX_POLL_OPTIONS} options"
                )
            self.options = options
        else:
            # Options only mean something for multiple-choice polls
            self.options = None
        return self


class PollUpdate(CamelModel):
    model_config = ConfigDict(extra="forbid")

    is_active: Optional[bool] = None
    show_results: Optional[bool] = None
    is_anonymous: Optional[bool] = None

    @model_validator(mode='after')
    def check_fields(self):
        if not self.model_fields_set:
            raise ValueError("At least one field is required")
        for field in self.model_fields_set:
            if getattr(self, field) is None:
                raise ValueError(f"{field} cannot be null")
        return self

    def changes(self) -> dict:
        return {field: getattr(self, field) for field in self.model_fields_set}


class PollResponseCreate(CamelModel):
    participant_id: Optional[int] = None
    response: Dict[str, Any]


class PollOut(CamelModel):
    id: int
    event_id: int
    question: str
    type: str
    options: Optional[List[str]] = None
    is_active: bool
    is_anonymous: bool
    show_results: bool
    created_at: datetime


class PollResponseOut(CamelModel):
    id: int
    poll_id: int
    participant_id: Optional[int] = None
    response: Dict[str, Any]
    created_at: datetime


class PollOptionResult(CamelModel):
    option: str
    count: int
    percentage: int


class PollResults(CamelModel):
    poll_id: int
    question: str
    type: str
    total_responses: int
    results: List[PollOptionResult] = Field(default_factory=list)
    # Raw payloads for poll types without a percentage breakdown
    responses: Optional[List[Dict[str, Any]]] = None

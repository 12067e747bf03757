"""Pydantic schemas for request/response validation and realtime messages."""
from app.schemas.common import CamelModel, ErrorResponse
from app.schemas.event import EventCreate, EventUpdate, EventOut, EventStats
from app.schemas.participant import ParticipantCreate, ParticipantOut
from app.schemas.question import QuestionCreate, QuestionUpdate, QuestionVoteCreate, QuestionOut
from app.schemas.poll import (
    PollCreate,
    PollUpdate,
    PollOut,
    PollResponseCreate,
    PollResponseOut,
    PollOptionResult,
    PollResults,
)

__all__ = [
    "CamelModel",
    "ErrorResponse",
    "EventCreate",
    "EventUpdate",
    "EventOut",
    "EventStats",
    "ParticipantCreate",
    "ParticipantOut",
    "QuestionCreate",
    "QuestionUpdate",
    "QuestionVoteCreate",
    "QuestionOut",
    "PollCreate",
    "PollUpdate",
    "PollOut",
    "PollResponseCreate",
    "PollResponseOut",
    "PollOptionResult",
    "PollResults",
]

"""Realtime channel messages.

Every server -> client message is ``{"type": <tag>, "data": <payload>}``. The
tag vocabulary is closed: ``ServerMessage`` is a discriminated union with one
model per tag, so each tag has exactly one payload shape. The same JSON goes
out over WebSocket and Server-Sent Events.
"""
from typing import Annotated, Literal, Optional, Union

from pydantic import Field, TypeAdapter

from app.schemas.common import CamelModel
from app.schemas.event import EventOut
from app.schemas.poll import PollOut, PollResponseOut, PollResults
from app.schemas.question import QuestionOut


class ParticipantPresence(CamelModel):
    participant_id: Optional[int] = None
    user_id: Optional[int] = None
    name: Optional[str] = None


class ParticipantDeparture(CamelModel):
    participant_id: int


class PollResponseUpdate(CamelModel):
    response: PollResponseOut
    results: PollResults


class ParticipantJoined(CamelModel):
    type: Literal["participant_joined"] = "participant_joined"
    data: ParticipantPresence


class ParticipantLeft(CamelModel):
    type: Literal["participant_left"] = "participant_left"
    data: ParticipantDeparture


class NewQuestion(CamelModel):
    type: Literal["new_question"] = "new_question"
    data: QuestionOut


class QuestionUpdated(CamelModel):
    type: Literal["question_updated"] = "question_updated"
    data: QuestionOut


class QuestionVoted(CamelModel):
    type: Literal["question_vote"] = "question_vote"
    data: QuestionOut


class NewPoll(CamelModel):
    type: Literal["new_poll"] = "new_poll"
    data: PollOut


class PollUpdated(CamelModel):
    type: Literal["poll_updated"] = "poll_updated"
    data: PollOut


class PollResponded(CamelModel):
    type: Literal["poll_response"] = "poll_response"
    data: PollResponseUpdate


class EventUpdated(CamelModel):
    type: Literal["event_updated"] = "event_updated"
    data: EventOut


ServerMessage = Annotated[
    Union[
        ParticipantJoined,
        ParticipantLeft,
        NewQuestion,
        QuestionUpdated,
        QuestionVoted,
        NewPoll,
        PollUpdated,
        PollResponded,
        EventUpdated,
    ],
    Field(discriminator="type"),
]


class JoinEvent(CamelModel):
    type: Literal["join_event"]
    event_id: int
    user_id: Optional[int] = None
    participant_id: Optional[int] = None


class Ping(CamelModel):
    type: Literal["ping"]


ClientMessage = Annotated[Union[JoinEvent, Ping], Field(discriminator="type")]

server_message_adapter: TypeAdapter = TypeAdapter(ServerMessage)
client_message_adapter: TypeAdapter = TypeAdapter(ClientMessage)


def encode_message(message: CamelModel) -> str:
    """Serialize a server message to its wire JSON."""
    return message.model_dump_json(by_alias=True)


def decode_server_message(raw: Union[str, bytes]):
    """Parse wire JSON back into the matching ``ServerMessage`` model."""
    return server_message_adapter.validate_json(raw)


def decode_client_message(raw: Union[str, bytes]):
    """Parse a client frame; raises ``pydantic.ValidationError`` when malformed."""
    return client_message_adapter.validate_json(raw)

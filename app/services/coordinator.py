"""
Session coordinator: the mutate -> persist -> broadcast cycle.

Every inbound mutation (HTTP or realtime) goes through one method here:

1. validate against business rules (``ValidationError``, never broadcast)
2. decide the transition (moderation state machine, tally engine)
3. persist everything in a single transaction (``PersistenceError`` on
   failure, raised before any broadcast)
4. broadcast to the event's subscribers, side effects first
5. return the stored entity

Broadcasts run after the commit and never raise, so a dead connection can
neither roll back nor fail the request that caused it.
"""
from typing import Any, List, Optional, Tuple, Union

import pydantic
from sqlalchemy.orm import Session

from app.core.cache import TTLCache
from app.core.constants import MULTIPLE_CHOICE, PONG
from app.core.exceptions import ValidationError
from app.core.logging_config import get_logger
from app.db.models import Event, Participant, Poll, PollResponse, Question
from app.realtime.broadcaster import EventBroadcaster
from app.realtime.connection import RealtimeConnection
from app.realtime.registry import ConnectionRegistry
from app.schemas.event import EventCreate, EventOut, EventUpdate
from app.schemas.participant import ParticipantCreate
from app.schemas.poll import PollCreate, PollOut, PollResponseCreate, PollResponseOut, PollUpdate
from app.schemas.question import QuestionCreate, QuestionOut, QuestionUpdate, QuestionVoteCreate
from app.schemas.realtime import (
    EventUpdated,
    JoinEvent,
    NewPoll,
    NewQuestion,
    ParticipantDeparture,
    ParticipantJoined,
    ParticipantLeft,
    ParticipantPresence,
    Ping,
    PollResponded,
    PollResponseUpdate,
    PollUpdated,
    QuestionUpdated,
    QuestionVoted,
    decode_client_message,
)
from app.services import events as event_store
from app.services import participants as participant_store
from app.services import polls as poll_store
from app.services import questions as question_store
from app.services import moderation, tally
from app.services.utils import atomic

logger = get_logger(__name__)


class SessionCoordinator:
    """Runs every audience and organizer mutation for all events."""

    def __init__(
        self,
        registry: ConnectionRegistry,
        broadcaster: EventBroadcaster,
        cache: TTLCache,
        listing_ttl: float = 3.0,
    ):
        self.registry = registry
        self.broadcaster = broadcaster
        self.cache = cache
        self.listing_ttl = listing_ttl

    # ------------------------------------------------------------------
    # Realtime channel
    # ------------------------------------------------------------------

    async def join(
        self,
        connection: RealtimeConnection,
        event_id: int,
        participant_id: Optional[int] = None,
        user_id: Optional[int] = None,
        name: Optional[str] = None,
    ) -> None:
        """Subscribe a connection to an event and announce it to the others there."""
        if participant_id is not None:
            connection.participant_id = participant_id
        if user_id is not None:
            connection.user_id = user_id

        previous = self.registry.event_of(connection)
        if previous == event_id:
            # Already announced; a repeated join_event must not count twice
            return
        if previous is not None:
            await self.leave(connection)

        self.registry.subscribe(event_id, connection)
        logger.info(
            "connection_joined_event",
            event_id=event_id,
            connection_id=connection.id,
            transport=connection.transport,
            participant_id=connection.participant_id,
        )

        await self.broadcaster.broadcast(
            event_id,
            ParticipantJoined(data=ParticipantPresence(
                participant_id=connection.participant_id,
                user_id=connection.user_id,
                name=name,
            )),
            exclude=connection,
        )

    async def leave(self, connection: RealtimeConnection) -> Optional[int]:
        """
        Unsubscribe a connection. Safe to call more than once.

        A connection the broadcaster already dropped after a failed send
        still counts as leaving the event it was dropped from.

        Returns the event it left, or None if it was not subscribed.
        """
        event_id = self.registry.unsubscribe(connection)
        if event_id is None:
            event_id = self.broadcaster.pop_dropped(connection)
        else:
            self.broadcaster.pop_dropped(connection)
        if event_id is None:
            return None

        logger.info("connection_left_event", event_id=event_id, connection_id=connection.id)
        if connection.participant_id is not None:
            await self.broadcaster.broadcast(
                event_id,
                ParticipantLeft(data=ParticipantDeparture(participant_id=connection.participant_id)),
            )
        return event_id

    async def handle_client_message(
        self, connection: RealtimeConnection, raw: Union[str, bytes]
    ) -> Optional[str]:
        """
        Dispatch one inbound realtime frame.

        Returns the text to send straight back to this connection, if any.
        Malformed frames are logged and ignored.
        """
        try:
            message = decode_client_message(raw)
        except pydantic.ValidationError as e:
            logger.warning(
                "client_message_rejected",
                connection_id=connection.id,
                errors=e.error_count(),
            )
            return None

        if isinstance(message, Ping):
            return PONG
        if isinstance(message, JoinEvent):
            await self.join(
                connection,
                message.event_id,
                participant_id=message.participant_id,
                user_id=message.user_id,
            )
        return None

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------

    def _invalidate_listings(self, reason: str, event_id: int) -> None:
        event_store.invalidate_event_listings(self.cache)
        logger.info("event_listing_cache_invalidated", reason=reason, event_id=event_id)

    async def create_event(self, db: Session, data: EventCreate) -> Event:
        with atomic(db, "create_event"):
            event = event_store.create_event(db, data.model_dump())
        db.refresh(event)

        self._invalidate_listings("event_created", event.id)
        logger.info("event_created", event_id=event.id, slug=event.slug)
        return event

    async def update_event(self, db: Session, event_id: int, data: EventUpdate) -> Event:
        event = event_store.get_event(db, event_id)
        changes = {field: getattr(data, field) for field in data.model_fields_set}

        with atomic(db, "update_event"):
            event_store.update_event(db, event, changes)
        db.refresh(event)

        self._invalidate_listings("event_updated", event.id)
        await self.broadcaster.broadcast(event.id, EventUpdated(data=EventOut.model_validate(event)))
        return event

    def list_active_events(self, db: Session) -> List[EventOut]:
        return event_store.list_active_events(db, self.cache, self.listing_ttl)

    def list_organizer_events(self, db: Session, organizer_id: int) -> List[EventOut]:
        return event_store.list_organizer_events(db, self.cache, organizer_id, self.listing_ttl)

    def event_stats(self, db: Session, event_id: int):
        return event_store.get_event_stats(
            db, event_id, active_connections=self.registry.count(event_id)
        )

    # ------------------------------------------------------------------
    # Participants
    # ------------------------------------------------------------------

    async def register_participant(
        self, db: Session, event_id: int, data: ParticipantCreate
    ) -> Participant:
        event_store.get_event(db, event_id)

        with atomic(db, "register_participant"):
            participant = participant_store.create_participant(
                db,
                event_id,
                name=None if data.is_anonymous else data.name,
                is_anonymous=data.is_anonymous,
                session_id=data.session_id,
                user_id=data.user_id,
            )
        db.refresh(participant)

        await self.broadcaster.broadcast(
            event_id,
            ParticipantJoined(data=ParticipantPresence(
                participant_id=participant.id,
                user_id=participant.user_id,
                name=participant.name,
            )),
        )
        return participant

    async def touch_participant(self, db: Session, participant_id: int) -> Participant:
        participant = participant_store.get_participant(db, participant_id)
        with atomic(db, "participant_heartbeat"):
            participant_store.touch_participant(db, participant)
        db.refresh(participant)
        return participant

    def _check_participant(self, db: Session, participant_id: Optional[int], event_id: int) -> None:
        if participant_id is None:
            return
        participant = participant_store.get_participant(db, participant_id)
        if participant.event_id != event_id:
            raise ValidationError("Participant does not belong to this event", field="participantId")

    # ------------------------------------------------------------------
    # Questions
    # ------------------------------------------------------------------

    async def submit_question(self, db: Session, event_id: int, data: QuestionCreate) -> Question:
        """
        Submit an audience question.

        Raises:
            NotFoundError: If the event does not exist
            ValidationError: If the event does not take (anonymous) questions
        """
        event = event_store.get_event(db, event_id)
        if not event.allow_questions:
            raise ValidationError("This event is not accepting questions", field="text")
        if data.is_anonymous and not event.allow_anonymous:
            raise ValidationError("Anonymous questions are not allowed for this event",
                                  field="isAnonymous")
        self._check_participant(db, data.participant_id, event_id)

        with atomic(db, "submit_question"):
            question = question_store.create_question(
                db,
                event_id,
                text=data.text,
                is_anonymous=data.is_anonymous,
                is_approved=bool(event.auto_approve),
                participant_id=data.participant_id,
                author_name=data.author_name,
            )
        db.refresh(question)

        logger.info("question_submitted", event_id=event_id, question_id=question.id)
        await self.broadcaster.broadcast(event_id, NewQuestion(data=QuestionOut.model_validate(question)))
        return question

    async def moderate_question(self, db: Session, question_id: int, data: QuestionUpdate) -> Question:
        """
        Apply an organizer's moderation flags to a question.

        Questions taken off the presenter display by this change are
        broadcast before the target question.
        """
        question = question_store.get_question(db, question_id)
        transition = moderation.moderate_question(
            moderation.QuestionState.of(question), data.changes()
        )

        cleared: List[Question] = []
        with atomic(db, "moderate_question"):
            for command in transition.commands:
                if isinstance(command, moderation.ClearPresenterDisplay):
                    cleared.extend(question_store.clear_presenter_display(
                        db, command.event_id, keep_question_id=command.keep_question_id
                    ))
            question_store.apply_changes(db, question, transition.changes)

        for other in cleared:
            db.refresh(other)
        db.refresh(question)

        logger.info(
            "question_moderated",
            event_id=question.event_id,
            question_id=question.id,
            changes=sorted(transition.changes),
            cleared=[other.id for other in cleared],
        )
        for other in cleared:
            await self.broadcaster.broadcast(
                other.event_id, QuestionUpdated(data=QuestionOut.model_validate(other))
            )
        await self.broadcaster.broadcast(
            question.event_id, QuestionUpdated(data=QuestionOut.model_validate(question))
        )
        return question

    async def vote_question(self, db: Session, question_id: int, data: QuestionVoteCreate) -> Question:
        question = question_store.get_question(db, question_id)
        self._check_participant(db, data.participant_id, question.event_id)

        with atomic(db, "vote_question"):
            tally.record_question_vote(db, question, data.participant_id, data.vote_type)
        db.refresh(question)

        await self.broadcaster.broadcast(
            question.event_id, QuestionVoted(data=QuestionOut.model_validate(question))
        )
        return question

    async def retract_question_vote(self, db: Session, question_id: int, participant_id: int) -> Question:
        question = question_store.get_question(db, question_id)

        with atomic(db, "retract_question_vote"):
            tally.retract_question_vote(db, question, participant_id)
        db.refresh(question)

        await self.broadcaster.broadcast(
            question.event_id, QuestionVoted(data=QuestionOut.model_validate(question))
        )
        return question

    # ------------------------------------------------------------------
    # Polls
    # ------------------------------------------------------------------

    async def _announce_deactivated(self, polls: List[Poll]) -> None:
        for poll in polls:
            await self.broadcaster.broadcast(poll.event_id, PollUpdated(data=PollOut.model_validate(poll)))

    async def launch_poll(self, db: Session, event_id: int, data: PollCreate) -> Poll:
        """
        Create a poll. A poll launched active takes over from the event's
        current active poll in the same transaction.
        """
        event_store.get_event(db, event_id)
        transition = moderation.launch_poll(event_id, data.is_active)

        deactivated: List[Poll] = []
        with atomic(db, "launch_poll"):
            for command in transition.commands:
                if isinstance(command, moderation.DeactivateOtherPolls):
                    deactivated.extend(poll_store.deactivate_other_polls(
                        db, command.event_id, keep_poll_id=command.keep_poll_id
                    ))
            poll = poll_store.create_poll(db, event_id, {**data.model_dump(), **transition.changes})

        for other in deactivated:
            db.refresh(other)
        db.refresh(poll)

        logger.info(
            "poll_launched",
            event_id=event_id,
            poll_id=poll.id,
            is_active=poll.is_active,
            deactivated=[other.id for other in deactivated],
        )
        await self._announce_deactivated(deactivated)
        await self.broadcaster.broadcast(event_id, NewPoll(data=PollOut.model_validate(poll)))
        return poll

    async def update_poll(self, db: Session, poll_id: int, data: PollUpdate) -> Poll:
        poll = poll_store.get_poll(db, poll_id)
        transition = moderation.moderate_poll(moderation.PollState.of(poll), data.changes())

        deactivated: List[Poll] = []
        with atomic(db, "update_poll"):
            for command in transition.commands:
                if isinstance(command, moderation.DeactivateOtherPolls):
                    deactivated.extend(poll_store.deactivate_other_polls(
                        db, command.event_id, keep_poll_id=command.keep_poll_id
                    ))
            poll_store.apply_changes(db, poll, transition.changes)

        for other in deactivated:
            db.refresh(other)
        db.refresh(poll)

        logger.info(
            "poll_updated",
            event_id=poll.event_id,
            poll_id=poll.id,
            changes=sorted(transition.changes),
            deactivated=[other.id for other in deactivated],
        )
        await self._announce_deactivated(deactivated)
        await self.broadcaster.broadcast(poll.event_id, PollUpdated(data=PollOut.model_validate(poll)))
        return poll

    async def respond_to_poll(
        self, db: Session, poll_id: int, data: PollResponseCreate
    ) -> Tuple[PollResponse, Any]:
        """
        Store a poll response and broadcast the updated results.

        Returns:
            (stored response, recomputed PollResults)

        Raises:
            NotFoundError: If the poll does not exist
            ValidationError: If the poll is closed or the payload does not
                fit the poll type
        """
        poll = poll_store.get_poll(db, poll_id)
        if not poll.is_active:
            raise ValidationError("This poll is not accepting responses", field="response")
        if poll.type == MULTIPLE_CHOICE:
            option = data.response.get("option")
            if option not in (poll.options or []):
                raise ValidationError("Response must be one of the poll options", field="response")
        self._check_participant(db, data.participant_id, poll.event_id)

        with atomic(db, "respond_to_poll"):
            response = poll_store.create_response(db, poll.id, data.participant_id, data.response)
        db.refresh(response)

        results = tally.compute_poll_results(poll, poll_store.get_responses(db, poll.id))
        await self.broadcaster.broadcast(
            poll.event_id,
            PollResponded(data=PollResponseUpdate(
                response=PollResponseOut.model_validate(response),
                results=results,
            )),
        )
        return response, results

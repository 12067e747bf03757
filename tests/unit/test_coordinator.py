"""Unit tests for the session coordinator.

The coordinator runs against a real (in-memory SQLite) session and a real
registry/broadcaster; connections are recording doubles.
"""
from unittest.mock import patch

import pytest
from sqlalchemy.exc import OperationalError

from app.core.exceptions import NotFoundError, PersistenceError, ValidationError
from app.db.models import Poll, PollResponse, Question
from app.schemas import (
    EventCreate,
    EventUpdate,
    ParticipantCreate,
    PollCreate,
    PollResponseCreate,
    PollUpdate,
    QuestionCreate,
    QuestionUpdate,
    QuestionVoteCreate,
)
from app.schemas.realtime import ParticipantDeparture, ParticipantLeft
from tests.utils import FailingConnection, RecordingConnection


def subscribe(registry, event, *, participant_id=None):
    connection = RecordingConnection(participant_id=participant_id)
    registry.subscribe(event.id, connection)
    return connection


@pytest.mark.unit
class TestRealtimeJoin:
    """join/leave/handle_client_message."""

    @pytest.mark.asyncio
    async def test_join_announces_to_others_only(self, registry, coordinator):
        watcher = RecordingConnection()
        registry.subscribe(7, watcher)
        joiner = RecordingConnection()

        await coordinator.join(joiner, 7, participant_id=3, user_id=44)

        assert registry.event_of(joiner) == 7
        assert watcher.messages == [{
            "type": "participant_joined",
            "data": {"participantId": 3, "userId": 44, "name": None},
        }]
        assert joiner.sent == []

    @pytest.mark.asyncio
    async def test_leave_announces_participant(self, registry, coordinator):
        watcher = RecordingConnection()
        registry.subscribe(7, watcher)
        leaver = RecordingConnection(participant_id=3)
        registry.subscribe(7, leaver)

        assert await coordinator.leave(leaver) == 7
        assert await coordinator.leave(leaver) is None

        assert watcher.messages == [{"type": "participant_left", "data": {"participantId": 3}}]

    @pytest.mark.asyncio
    async def test_leave_without_participant_is_silent(self, registry, coordinator):
        watcher = RecordingConnection()
        registry.subscribe(7, watcher)
        viewer = RecordingConnection()
        registry.subscribe(7, viewer)

        await coordinator.leave(viewer)

        assert watcher.sent == []

    @pytest.mark.asyncio
    async def test_dropped_connection_still_announces_departure(
        self, registry, broadcaster, coordinator
    ):
        watcher = RecordingConnection()
        registry.subscribe(7, watcher)
        dying = FailingConnection(participant_id=42)
        registry.subscribe(7, dying)

        await broadcaster.broadcast(7, ParticipantLeft(data=ParticipantDeparture(participant_id=1)))
        assert registry.event_of(dying) is None

        assert await coordinator.leave(dying) == 7
        assert await coordinator.leave(dying) is None

        assert watcher.types == ["participant_left", "participant_left"]
        assert watcher.messages[-1]["data"] == {"participantId": 42}

    @pytest.mark.asyncio
    async def test_repeated_join_is_announced_once(self, registry, coordinator):
        watcher = RecordingConnection()
        registry.subscribe(7, watcher)
        joiner = RecordingConnection()

        await coordinator.join(joiner, 7, participant_id=3)
        await coordinator.join(joiner, 7, participant_id=3)

        assert registry.event_of(joiner) == 7
        assert watcher.types == ["participant_joined"]

    @pytest.mark.asyncio
    async def test_join_other_event_moves_connection(self, registry, coordinator):
        old_room, new_room = RecordingConnection(), RecordingConnection()
        registry.subscribe(7, old_room)
        registry.subscribe(8, new_room)
        joiner = RecordingConnection()

        await coordinator.join(joiner, 7, participant_id=3)
        await coordinator.join(joiner, 8)

        assert registry.event_of(joiner) == 8
        assert old_room.types == ["participant_joined", "participant_left"]
        assert new_room.types == ["participant_joined"]

    @pytest.mark.asyncio
    async def test_join_message(self, registry, coordinator):
        connection = RecordingConnection()

        reply = await coordinator.handle_client_message(
            connection, '{"type": "join_event", "eventId": 7, "participantId": 3}'
        )

        assert reply is None
        assert registry.event_of(connection) == 7
        assert connection.participant_id == 3

    @pytest.mark.asyncio
    async def test_ping_gets_pong(self, coordinator):
        assert await coordinator.handle_client_message(RecordingConnection(), '{"type": "ping"}') == "pong"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("raw", ["not json", '{"type": "dance"}', '{"type": "join_event"}'])
    async def test_malformed_messages_ignored(self, registry, coordinator, raw):
        connection = RecordingConnection()

        assert await coordinator.handle_client_message(connection, raw) is None
        assert registry.event_of(connection) is None


@pytest.mark.unit
class TestEvents:
    @pytest.mark.asyncio
    async def test_create_event_generates_slug(self, db_session, coordinator):
        event = await coordinator.create_event(db_session, EventCreate(name="Town Hall"))

        assert event.id is not None
        assert event.slug.startswith("town-hall-")
        assert event.is_active is False

    @pytest.mark.asyncio
    async def test_duplicate_slug_rejected(self, db_session, coordinator, make_event):
        make_event(slug="all-hands")

        with pytest.raises(ValidationError):
            await coordinator.create_event(db_session, EventCreate(name="Again", slug="all-hands"))

    @pytest.mark.asyncio
    async def test_update_event_broadcasts_and_invalidates(
        self, db_session, registry, coordinator, cache, make_event
    ):
        event = make_event(is_active=True)
        assert [e.id for e in coordinator.list_active_events(db_session)] == [event.id]
        watcher = subscribe(registry, event)

        await coordinator.update_event(db_session, event.id, EventUpdate(is_active=False))

        assert watcher.types == ["event_updated"]
        assert watcher.messages[0]["data"]["isActive"] is False
        assert coordinator.list_active_events(db_session) == []

    @pytest.mark.asyncio
    async def test_update_missing_event(self, db_session, coordinator):
        with pytest.raises(NotFoundError):
            await coordinator.update_event(db_session, 404, EventUpdate(name="x"))


@pytest.mark.unit
class TestQuestions:
    @pytest.mark.asyncio
    async def test_submit_question_broadcasts_new_question(
        self, db_session, registry, coordinator, make_event
    ):
        event = make_event(auto_approve=True)
        watcher = subscribe(registry, event)

        question = await coordinator.submit_question(
            db_session, event.id, QuestionCreate(text="Why?", author_name="Ada")
        )

        assert question.is_approved is True
        assert watcher.types == ["new_question"]
        data = watcher.messages[0]["data"]
        assert data["id"] == question.id
        assert data["upvotes"] == 0
        assert data["authorName"] == "Ada"

    @pytest.mark.asyncio
    async def test_submit_respects_auto_approve_off(self, db_session, coordinator, make_event):
        event = make_event(auto_approve=False)

        question = await coordinator.submit_question(db_session, event.id, QuestionCreate(text="Why?"))

        assert question.is_approved is False

    @pytest.mark.asyncio
    async def test_anonymous_question_drops_author(self, db_session, coordinator, make_event):
        event = make_event()

        question = await coordinator.submit_question(
            db_session, event.id, QuestionCreate(text="Why?", author_name="Ada", is_anonymous=True)
        )

        assert question.author_name is None

    @pytest.mark.asyncio
    async def test_questions_closed(self, db_session, registry, coordinator, make_event):
        event = make_event(allow_questions=False)
        watcher = subscribe(registry, event)

        with pytest.raises(ValidationError):
            await coordinator.submit_question(db_session, event.id, QuestionCreate(text="Why?"))

        assert watcher.sent == []
        assert db_session.query(Question).count() == 0

    @pytest.mark.asyncio
    async def test_anonymous_not_allowed(self, db_session, coordinator, make_event):
        event = make_event(allow_anonymous=False)

        with pytest.raises(ValidationError):
            await coordinator.submit_question(
                db_session, event.id, QuestionCreate(text="Why?", is_anonymous=True)
            )

    @pytest.mark.asyncio
    async def test_submit_to_missing_event(self, db_session, coordinator):
        with pytest.raises(NotFoundError):
            await coordinator.submit_question(db_session, 404, QuestionCreate(text="Why?"))

    @pytest.mark.asyncio
    async def test_participant_from_other_event_rejected(
        self, db_session, coordinator, make_event, make_participant
    ):
        event, other = make_event(), make_event()
        stranger = make_participant(other)

        with pytest.raises(ValidationError):
            await coordinator.submit_question(
                db_session, event.id, QuestionCreate(text="Why?", participant_id=stranger.id)
            )

    @pytest.mark.asyncio
    async def test_persistence_failure_means_no_broadcast(
        self, db_session, registry, coordinator, make_event
    ):
        event = make_event()
        watcher = subscribe(registry, event)

        with patch.object(db_session, "commit", side_effect=OperationalError("COMMIT", {}, Exception("disk full"))):
            with pytest.raises(PersistenceError):
                await coordinator.submit_question(db_session, event.id, QuestionCreate(text="Why?"))

        assert watcher.sent == []
        assert db_session.query(Question).count() == 0


@pytest.mark.unit
class TestPresenterExclusivity:
    @pytest.mark.asyncio
    async def test_showing_one_question_hides_the_other(
        self, db_session, registry, coordinator, make_event, make_question
    ):
        event = make_event()
        q1 = make_question(event, is_displayed_in_presenter=True)
        q2 = make_question(event)
        watcher = subscribe(registry, event)

        await coordinator.moderate_question(
            db_session, q2.id, QuestionUpdate(is_displayed_in_presenter=True)
        )

        db_session.refresh(q1)
        db_session.refresh(q2)
        assert q1.is_displayed_in_presenter is False
        assert q2.is_displayed_in_presenter is True
        shown = db_session.query(Question).filter(
            Question.event_id == event.id, Question.is_displayed_in_presenter.is_(True)
        ).count()
        assert shown == 1

        # Cleared question goes out first
        assert watcher.types == ["question_updated", "question_updated"]
        assert [m["data"]["id"] for m in watcher.messages] == [q1.id, q2.id]
        assert watcher.messages[0]["data"]["isDisplayedInPresenter"] is False
        assert watcher.messages[1]["data"]["isDisplayedInPresenter"] is True

    @pytest.mark.asyncio
    async def test_other_events_untouched(self, db_session, coordinator, make_event, make_question):
        event, other = make_event(), make_event()
        elsewhere = make_question(other, is_displayed_in_presenter=True)
        target = make_question(event)

        await coordinator.moderate_question(
            db_session, target.id, QuestionUpdate(is_displayed_in_presenter=True)
        )

        db_session.refresh(elsewhere)
        assert elsewhere.is_displayed_in_presenter is True

    @pytest.mark.asyncio
    async def test_stale_flag_on_hidden_question_is_cleared(
        self, db_session, coordinator, make_event, make_question
    ):
        event = make_event()
        hidden = make_question(event, is_hidden=True, is_displayed_in_presenter=True)
        target = make_question(event)

        await coordinator.moderate_question(
            db_session, target.id, QuestionUpdate(is_displayed_in_presenter=True)
        )

        db_session.refresh(hidden)
        assert hidden.is_displayed_in_presenter is False

    @pytest.mark.asyncio
    async def test_hide_takes_question_off_presenter(
        self, db_session, coordinator, make_event, make_question
    ):
        question = make_question(make_event(), is_displayed_in_presenter=True)

        updated = await coordinator.moderate_question(db_session, question.id, QuestionUpdate(is_hidden=True))

        assert updated.is_hidden is True
        assert updated.is_displayed_in_presenter is False

    @pytest.mark.asyncio
    async def test_moderate_missing_question(self, db_session, coordinator):
        with pytest.raises(NotFoundError):
            await coordinator.moderate_question(db_session, 404, QuestionUpdate(is_pinned=True))


@pytest.mark.unit
class TestVoting:
    @pytest.mark.asyncio
    async def test_vote_broadcasts_full_question(
        self, db_session, registry, coordinator, make_event, make_participant, make_question
    ):
        event = make_event()
        voter = make_participant(event)
        question = make_question(event)
        watcher = subscribe(registry, event)

        await coordinator.vote_question(
            db_session, question.id, QuestionVoteCreate(participant_id=voter.id, vote_type="upvote")
        )
        await coordinator.vote_question(
            db_session, question.id, QuestionVoteCreate(participant_id=voter.id, vote_type="downvote")
        )

        assert watcher.types == ["question_vote", "question_vote"]
        last = watcher.messages[-1]["data"]
        assert (last["upvotes"], last["downvotes"]) == (0, 1)
        assert last["text"] == question.text

    @pytest.mark.asyncio
    async def test_retract(self, db_session, coordinator, make_event, make_participant, make_question):
        event = make_event()
        voter = make_participant(event)
        question = make_question(event)
        await coordinator.vote_question(
            db_session, question.id, QuestionVoteCreate(participant_id=voter.id, vote_type="upvote")
        )

        updated = await coordinator.retract_question_vote(db_session, question.id, voter.id)

        assert updated.upvotes == 0


@pytest.mark.unit
class TestPolls:
    @pytest.mark.asyncio
    async def test_launch_deactivates_current_poll(
        self, db_session, registry, coordinator, make_event, make_poll
    ):
        event = make_event()
        old = make_poll(event, is_active=True)
        watcher = subscribe(registry, event)

        new = await coordinator.launch_poll(
            db_session,
            event.id,
            PollCreate(question="Lunch?", type="multiple-choice", options=["Pizza", "Salad"]),
        )

        db_session.refresh(old)
        assert old.is_active is False
        assert new.is_active is True
        assert db_session.query(Poll).filter(Poll.is_active.is_(True)).count() == 1
        assert watcher.types == ["poll_updated", "new_poll"]
        assert watcher.messages[0]["data"]["id"] == old.id
        assert watcher.messages[1]["data"]["id"] == new.id

    @pytest.mark.asyncio
    async def test_launch_staged_poll_leaves_active_one(
        self, db_session, coordinator, make_event, make_poll
    ):
        event = make_event()
        current = make_poll(event, is_active=True)

        staged = await coordinator.launch_poll(
            db_session, event.id, PollCreate(question="Later?", type="open-text", is_active=False)
        )

        db_session.refresh(current)
        assert current.is_active is True
        assert staged.is_active is False
        assert staged.options is None

    @pytest.mark.asyncio
    async def test_activate_poll(self, db_session, registry, coordinator, make_event, make_poll):
        event = make_event()
        first = make_poll(event, is_active=True)
        second = make_poll(event, is_active=False)
        watcher = subscribe(registry, event)

        await coordinator.update_poll(db_session, second.id, PollUpdate(is_active=True))

        db_session.refresh(first)
        assert first.is_active is False
        assert [m["data"]["id"] for m in watcher.messages] == [first.id, second.id]
        assert watcher.types == ["poll_updated", "poll_updated"]

    @pytest.mark.asyncio
    async def test_respond_broadcasts_results(self, db_session, registry, coordinator, make_event, make_poll):
        event = make_event()
        poll = make_poll(event, options=["Pizza", "Salad"])
        watcher = subscribe(registry, event)

        for option in ("Pizza", "Pizza", "Salad"):
            response, results = await coordinator.respond_to_poll(
                db_session, poll.id, PollResponseCreate(response={"option": option})
            )

        assert results.total_responses == 3
        assert [r.percentage for r in results.results] == [67, 33]
        last = watcher.messages[-1]
        assert last["type"] == "poll_response"
        assert last["data"]["response"]["id"] == response.id
        assert last["data"]["results"]["totalResponses"] == 3

    @pytest.mark.asyncio
    async def test_respond_to_closed_poll(self, db_session, coordinator, make_event, make_poll):
        poll = make_poll(make_event(), is_active=False)

        with pytest.raises(ValidationError):
            await coordinator.respond_to_poll(db_session, poll.id, PollResponseCreate(response={"option": "Pizza"}))
        assert db_session.query(PollResponse).count() == 0

    @pytest.mark.asyncio
    async def test_respond_with_unknown_option(self, db_session, coordinator, make_event, make_poll):
        poll = make_poll(make_event(), options=["Pizza", "Salad"])

        with pytest.raises(ValidationError):
            await coordinator.respond_to_poll(db_session, poll.id, PollResponseCreate(response={"option": "Soup"}))


@pytest.mark.unit
class TestParticipants:
    @pytest.mark.asyncio
    async def test_register_broadcasts_join(self, db_session, registry, coordinator, make_event):
        event = make_event()
        watcher = subscribe(registry, event)

        participant = await coordinator.register_participant(
            db_session, event.id, ParticipantCreate(name="Ada", is_anonymous=False)
        )

        assert watcher.messages == [{
            "type": "participant_joined",
            "data": {"participantId": participant.id, "userId": None, "name": "Ada"},
        }]

    @pytest.mark.asyncio
    async def test_anonymous_participant_has_no_name(self, db_session, coordinator, make_event):
        participant = await coordinator.register_participant(
            db_session, make_event().id, ParticipantCreate(name="Ada", is_anonymous=True)
        )

        assert participant.name is None

    @pytest.mark.asyncio
    async def test_heartbeat(self, db_session, coordinator, make_event, make_participant):
        participant = make_participant(make_event())
        before = participant.last_active_at

        touched = await coordinator.touch_participant(db_session, participant.id)

        assert touched.last_active_at >= before


@pytest.mark.unit
class TestBroadcastFailuresDuringMutation:
    @pytest.mark.asyncio
    async def test_dead_connection_does_not_fail_mutation(
        self, db_session, registry, coordinator, make_event
    ):
        event = make_event()
        healthy = subscribe(registry, event)
        broken = FailingConnection()
        registry.subscribe(event.id, broken)

        question = await coordinator.submit_question(db_session, event.id, QuestionCreate(text="Still here?"))

        assert question.id is not None
        assert healthy.types == ["new_question"]
        assert registry.event_of(broken) is None

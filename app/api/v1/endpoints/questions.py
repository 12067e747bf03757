"""Question endpoints."""
import logging
from typing import List

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session

from app.api.deps import get_coordinator, get_db
from app.core.rate_limit import RATE_LIMITS, limiter
from app.schemas import QuestionCreate, QuestionOut, QuestionUpdate, QuestionVoteCreate
from app.services import events as event_store
from app.services import questions as question_store
from app.services.coordinator import SessionCoordinator

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/events/{event_id}/questions", response_model=List[QuestionOut])
async def list_questions_endpoint(
    event_id: int,
    approved_only: bool = Query(False, alias="approvedOnly"),
    include_hidden: bool = Query(False, alias="includeHidden"),
    db: Session = Depends(get_db),
):
    """
    Question feed for an event.

    Ordered pinned first, then by upvotes, then newest first. Hidden
    questions are left out unless ``includeHidden=true`` (moderator view).

    Args:
        event_id: Event to read
        approved_only: Only approved questions (audience view when the event
            does not auto-approve)
        include_hidden: Include hidden questions

    Raises:
        HTTPException: 404 if the event does not exist
    """
    event_store.get_event(db, event_id)
    return question_store.get_questions(
        db, event_id, approved_only=approved_only, include_hidden=include_hidden
    )


@router.get("/events/{event_id}/questions/presenter", response_model=List[QuestionOut])
async def presenter_questions_endpoint(event_id: int, db: Session = Depends(get_db)):
    """The question currently shown on the presenter display (empty list when none)."""
    event_store.get_event(db, event_id)
    return question_store.get_presenter_questions(db, event_id)


@router.post("/events/{event_id}/questions", response_model=QuestionOut, status_code=201)
@limiter.limit(RATE_LIMITS["submit_question"])
async def submit_question_endpoint(
    request: Request,
    event_id: int,
    question: QuestionCreate,
    db: Session = Depends(get_db),
    coordinator: SessionCoordinator = Depends(get_coordinator),
):
    """
    Submit an audience question.

    The question is approved immediately when the event auto-approves.
    Anonymous questions never carry an author name. Everyone subscribed to
    the event receives ``new_question``.

    Args:
        request: FastAPI Request (for rate limiting)
        event_id: Event to submit to
        question: QuestionCreate body

    Raises:
        HTTPException: 400 if the event takes no questions, or no anonymous ones
        HTTPException: 404 if the event does not exist

    Example:
        Request:
            POST /api/v1/events/7/questions
            {"text": "What about remote staff?", "isAnonymous": true}

        Response (201):
            {"id": 41, "eventId": 7, "text": "What about remote staff?",
             "upvotes": 0, "downvotes": 0, ...}
    """
    return await coordinator.submit_question(db, event_id, question)


@router.patch("/questions/{question_id}", response_model=QuestionOut)
async def moderate_question_endpoint(
    question_id: int,
    update: QuestionUpdate,
    db: Session = Depends(get_db),
    coordinator: SessionCoordinator = Depends(get_coordinator),
):
    """
    Moderate a question: approve, answer, pin, hide or show it on the presenter.

    Showing a question on the presenter takes any other question of the event
    off it in the same transaction; those questions are broadcast as
    ``question_updated`` before this one. Hiding cannot be undone.

    Raises:
        HTTPException: 400 if a hidden question is sent to the presenter
        HTTPException: 404 if the question does not exist
        HTTPException: 422 if the body carries no flags or tries to unhide
    """
    return await coordinator.moderate_question(db, question_id, update)


@router.post("/questions/{question_id}/vote", response_model=QuestionOut)
@limiter.limit(RATE_LIMITS["vote"])
async def vote_question_endpoint(
    request: Request,
    question_id: int,
    vote: QuestionVoteCreate,
    db: Session = Depends(get_db),
    coordinator: SessionCoordinator = Depends(get_coordinator),
):
    """
    Up- or downvote a question.

    A participant has at most one vote per question; voting again replaces
    the earlier vote. Counts are recomputed from the stored votes and the
    question is broadcast as ``question_vote``.

    Example:
        Request:
            POST /api/v1/questions/41/vote
            {"participantId": 12, "voteType": "upvote"}

        Response (200):
            {"id": 41, "upvotes": 1, "downvotes": 0, ...}
    """
    return await coordinator.vote_question(db, question_id, vote)


@router.delete("/questions/{question_id}/vote", response_model=QuestionOut)
@limiter.limit(RATE_LIMITS["vote"])
async def retract_vote_endpoint(
    request: Request,
    question_id: int,
    participant_id: int = Query(..., alias="participantId"),
    db: Session = Depends(get_db),
    coordinator: SessionCoordinator = Depends(get_coordinator),
):
    """Withdraw a participant's vote on a question (no-op when there is none)."""
    return await coordinator.retract_question_vote(db, question_id, participant_id)

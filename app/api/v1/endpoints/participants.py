"""Participant endpoints."""
import logging
from typing import List

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from app.api.deps import get_coordinator, get_db
from app.core.rate_limit import RATE_LIMITS, limiter
from app.schemas import ParticipantCreate, ParticipantOut
from app.services import events as event_store
from app.services import participants as participant_store
from app.services.coordinator import SessionCoordinator

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/events/{event_id}/participants", response_model=List[ParticipantOut])
async def list_participants_endpoint(event_id: int, db: Session = Depends(get_db)):
    """Participants of an event, most recent joiners first."""
    event_store.get_event(db, event_id)
    return participant_store.get_participants(db, event_id)


@router.post("/events/{event_id}/participants", response_model=ParticipantOut, status_code=201)
@limiter.limit(RATE_LIMITS["join"])
async def join_event_endpoint(
    request: Request,
    event_id: int,
    participant: ParticipantCreate,
    db: Session = Depends(get_db),
    coordinator: SessionCoordinator = Depends(get_coordinator),
):
    """
    Join an event as a participant.

    The returned id is what the client passes as ``participantId`` on votes,
    questions, poll responses and the realtime ``join_event`` message.
    Subscribers receive ``participant_joined``.

    Example:
        Request:
            POST /api/v1/events/7/participants
            {"name": "Ada", "isAnonymous": false}

        Response (201):
            {"id": 12, "eventId": 7, "name": "Ada", "isAnonymous": false, ...}
    """
    return await coordinator.register_participant(db, event_id, participant)


@router.post("/participants/{participant_id}/heartbeat", response_model=ParticipantOut)
@limiter.limit(RATE_LIMITS["heartbeat"])
async def heartbeat_endpoint(
    request: Request,
    participant_id: int,
    db: Session = Depends(get_db),
    coordinator: SessionCoordinator = Depends(get_coordinator),
):
    """Refresh ``lastActiveAt`` for a participant. Nothing is broadcast."""
    return await coordinator.touch_participant(db, participant_id)

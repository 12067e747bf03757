"""Poll endpoints."""
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from app.api.deps import get_coordinator, get_db
from app.core.rate_limit import RATE_LIMITS, limiter
from app.schemas import PollCreate, PollOut, PollResponseCreate, PollResponseOut, PollResults, PollUpdate
from app.services import events as event_store
from app.services import polls as poll_store
from app.services import tally
from app.services.coordinator import SessionCoordinator

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/events/{event_id}/polls", response_model=List[PollOut])
async def list_polls_endpoint(event_id: int, db: Session = Depends(get_db)):
    """All polls of an event, newest first."""
    event_store.get_event(db, event_id)
    return poll_store.get_polls(db, event_id)


@router.get("/events/{event_id}/polls/active", response_model=Optional[PollOut])
async def active_poll_endpoint(event_id: int, db: Session = Depends(get_db)):
    """The event's active poll, or ``null`` when no poll is running."""
    event_store.get_event(db, event_id)
    return poll_store.get_active_poll(db, event_id)


@router.post("/events/{event_id}/polls", response_model=PollOut, status_code=201)
async def launch_poll_endpoint(
    event_id: int,
    poll: PollCreate,
    db: Session = Depends(get_db),
    coordinator: SessionCoordinator = Depends(get_coordinator),
):
    """
    Create a poll in an event.

    Polls are live on creation unless ``isActive`` is false. Only one poll
    per event is active at a time: launching a live poll deactivates the
    current one in the same transaction. Subscribers receive ``poll_updated``
    for the deactivated poll first, then ``new_poll``.

    Args:
        event_id: Event to add the poll to
        poll: PollCreate body; multiple-choice polls need 2 to 10 distinct options

    Raises:
        HTTPException: 404 if the event does not exist
        HTTPException: 422 if the body fails validation

    Example:
        Request:
            POST /api/v1/events/7/polls
            {"question": "Lunch?", "type": "multiple-choice", "options": ["Pizza", "Salad"]}

        Response (201):
            {"id": 5, "eventId": 7, "isActive": true, "options": ["Pizza", "Salad"], ...}
    """
    return await coordinator.launch_poll(db, event_id, poll)


@router.patch("/polls/{poll_id}", response_model=PollOut)
async def update_poll_endpoint(
    poll_id: int,
    update: PollUpdate,
    db: Session = Depends(get_db),
    coordinator: SessionCoordinator = Depends(get_coordinator),
):
    """
    Open, close or reconfigure a poll.

    Activating a poll deactivates the event's other active poll first.

    Raises:
        HTTPException: 404 if the poll does not exist
    """
    return await coordinator.update_poll(db, poll_id, update)


@router.post("/polls/{poll_id}/responses", response_model=PollResponseOut, status_code=201)
@limiter.limit(RATE_LIMITS["poll_response"])
async def respond_to_poll_endpoint(
    request: Request,
    poll_id: int,
    poll_response: PollResponseCreate,
    db: Session = Depends(get_db),
    coordinator: SessionCoordinator = Depends(get_coordinator),
):
    """
    Respond to the active poll.

    Multiple-choice responses look like ``{"option": "Pizza"}`` and must name
    one of the poll's options. Subscribers receive ``poll_response`` with the
    stored response and the recomputed results.

    Args:
        request: FastAPI Request (for rate limiting)
        poll_id: Poll to respond to
        poll_response: PollResponseCreate body

    Raises:
        HTTPException: 400 if the poll is closed or the option is unknown
        HTTPException: 404 if the poll does not exist

    Rate Limit:
        600 requests per minute per IP
    """
    stored, _ = await coordinator.respond_to_poll(db, poll_id, poll_response)
    return stored


@router.get("/polls/{poll_id}/results", response_model=PollResults)
async def poll_results_endpoint(poll_id: int, db: Session = Depends(get_db)):
    """
    Current results of a poll.

    Example:
        Response (200):
            {"pollId": 5, "totalResponses": 4,
             "results": [{"option": "Pizza", "count": 2, "percentage": 50},
                         {"option": "Salad", "count": 2, "percentage": 50}]}
    """
    return tally.get_poll_results(db, poll_id)

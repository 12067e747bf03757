"""Event endpoints."""
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.api.deps import get_coordinator, get_db
from app.schemas import EventCreate, EventOut, EventStats, EventUpdate
from app.services import events as event_store
from app.services.coordinator import SessionCoordinator

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("", response_model=List[EventOut])
async def list_events_endpoint(
    organizer_id: Optional[int] = Query(None, alias="organizerId"),
    db: Session = Depends(get_db),
    coordinator: SessionCoordinator = Depends(get_coordinator),
):
    """
    List events.

    Without parameters this returns the active events, which is what audience
    pages poll when they have no live connection. The list is cached for a
    few seconds and the cache is dropped whenever an event is created or
    updated, so pollers never lag behind a mutation by more than the TTL.

    Args:
        organizer_id: List every event of this organizer instead (active or not)
        db: Database session (injected)
        coordinator: Session coordinator (injected)

    Returns:
        List of EventOut, newest first

    Example:
        Request:
            GET /api/v1/events?organizerId=7

        Response (200):
            [{"id": 3, "slug": "town-hall-kota", "name": "Town Hall", "isActive": true, ...}]
    """
    if organizer_id is not None:
        return coordinator.list_organizer_events(db, organizer_id)
    return coordinator.list_active_events(db)


@router.post("", response_model=EventOut, status_code=201)
async def create_event_endpoint(
    event: EventCreate,
    db: Session = Depends(get_db),
    coordinator: SessionCoordinator = Depends(get_coordinator),
):
    """
    Create an event.

    A slug is generated from the name when none is given (``"Town Hall"`` ->
    ``"town-hall-kota"``). Events start inactive unless ``isActive`` is set.

    Raises:
        HTTPException: 400 if the slug is already taken
        HTTPException: 422 if the body fails validation

    Example:
        Request:
            POST /api/v1/events
            {"name": "Town Hall", "allowAnonymous": false}

        Response (201):
            {"id": 3, "slug": "town-hall-kota", "name": "Town Hall", ...}

        Response (400):
            {"detail": "An event with this slug already exists", "code": "validation_error", ...}
    """
    return await coordinator.create_event(db, event)


@router.get("/{id_or_slug}", response_model=EventOut)
async def get_event_endpoint(id_or_slug: str, db: Session = Depends(get_db)):
    """Get one event by numeric id or by slug."""
    return event_store.get_event_by_id_or_slug(db, id_or_slug)


@router.patch("/{event_id}", response_model=EventOut)
async def update_event_endpoint(
    event_id: int,
    update: EventUpdate,
    db: Session = Depends(get_db),
    coordinator: SessionCoordinator = Depends(get_coordinator),
):
    """
    Update event settings.

    Only fields present in the body are changed. Subscribers of the event
    receive ``event_updated`` with the full event.

    Raises:
        HTTPException: 404 if the event does not exist
        HTTPException: 422 if the body fails validation
    """
    return await coordinator.update_event(db, event_id, update)


@router.get("/{event_id}/stats", response_model=EventStats)
async def event_stats_endpoint(
    event_id: int,
    db: Session = Depends(get_db),
    coordinator: SessionCoordinator = Depends(get_coordinator),
):
    """Participant, question and poll counts, plus live connections right now."""
    return coordinator.event_stats(db, event_id)

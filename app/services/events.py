"""Event storage."""
from typing import Any, Dict, List, Union

from sqlalchemy import func
from sqlalchemy.orm import Session

from app.core.constants import ACTIVE_EVENTS_CACHE_KEY
from app.core.exceptions import NotFoundError, ValidationError
from app.core.cache import TTLCache
from app.core.utils import generate_slug, to_utc
from app.db.models import Event, Participant, Poll, Question
from app.schemas.event import EventOut, EventStats

ORGANIZER_CACHE_PREFIX = "events:organizer:"

# A generated slug colliding with an existing one is rare; retry a few times
SLUG_ATTEMPTS = 5


def get_event(db: Session, event_id: int) -> Event:
    """
    Fetch an event by id.

    Raises:
        NotFoundError: If no event has this id
    """
    event = db.query(Event).filter(Event.id == event_id).first()
    if not event:
        raise NotFoundError("Event", event_id)
    return event


def get_event_by_slug(db: Session, slug: str) -> Event:
    event = db.query(Event).filter(Event.slug == slug.lower()).first()
    if not event:
        raise NotFoundError("Event", slug)
    return event


def get_event_by_id_or_slug(db: Session, id_or_slug: Union[int, str]) -> Event:
    """Numeric strings are looked up as ids, anything else as a slug."""
    if isinstance(id_or_slug, int) or str(id_or_slug).isdigit():
        return get_event(db, int(id_or_slug))
    return get_event_by_slug(db, str(id_or_slug))


def slug_exists(db: Session, slug: str) -> bool:
    return db.query(Event.id).filter(Event.slug == slug).first() is not None


def _unique_slug(db: Session, name: str) -> str:
    for _ in range(SLUG_ATTEMPTS):
        slug = generate_slug(name)
        if not slug_exists(db, slug):
            return slug
    raise ValidationError("Failed to generate a unique slug", field="slug")


def create_event(db: Session, data: Dict[str, Any]) -> Event:
    """
    Add a new event to the session and flush it.

    Args:
        db: SQLAlchemy session
        data: Validated ``EventCreate`` fields

    Returns:
        The new event, with its id assigned

    Raises:
        ValidationError: If the requested slug is already taken
    """
    data = dict(data)
    slug = data.pop("slug", None)
    if slug:
        if slug_exists(db, slug):
            raise ValidationError("An event with this slug already exists", field="slug")
    else:
        slug = _unique_slug(db, data["name"])

    for key in ("start_time", "end_time"):
        data[key] = to_utc(data.get(key))

    event = Event(slug=slug, **data)
    db.add(event)
    db.flush()
    return event


def update_event(db: Session, event: Event, changes: Dict[str, Any]) -> Event:
    """Apply validated ``EventUpdate`` fields to an event."""
    for key, value in changes.items():
        if key in ("start_time", "end_time"):
            value = to_utc(value)
        setattr(event, key, value)

    start, end = to_utc(event.start_time), to_utc(event.end_time)
    if start and end and end <= start:
        raise ValidationError("End time must be after start time", field="endTime")

    db.flush()
    return event


def get_active_events(db: Session) -> List[Event]:
    return (
        db.query(Event)
        .filter(Event.is_active.is_(True))
        .order_by(Event.created_at.desc(), Event.id.desc())
        .all()
    )


def get_events_by_organizer(db: Session, organizer_id: int) -> List[Event]:
    return (
        db.query(Event)
        .filter(Event.organizer_id == organizer_id)
        .order_by(Event.created_at.desc(), Event.id.desc())
        .all()
    )


def list_active_events(db: Session, cache: TTLCache, ttl_seconds: float) -> List[EventOut]:
    """
    Active events for the polling fallback, served from the cache.

    Serialized models are cached rather than ORM rows, which are bound to
    the request's session.
    """
    return cache.get_or_fetch(
        ACTIVE_EVENTS_CACHE_KEY,
        lambda: [EventOut.model_validate(event) for event in get_active_events(db)],
        ttl_seconds,
    )


def list_organizer_events(db: Session, cache: TTLCache, organizer_id: int,
                          ttl_seconds: float) -> List[EventOut]:
    return cache.get_or_fetch(
        f"{ORGANIZER_CACHE_PREFIX}{organizer_id}",
        lambda: [EventOut.model_validate(event)
                 for event in get_events_by_organizer(db, organizer_id)],
        ttl_seconds,
    )


def invalidate_event_listings(cache: TTLCache) -> None:
    cache.invalidate(ACTIVE_EVENTS_CACHE_KEY)
    cache.invalidate_prefix(ORGANIZER_CACHE_PREFIX)


def get_event_stats(db: Session, event_id: int, active_connections: int = 0) -> EventStats:
    """Participant, question and poll counts for one event."""
    get_event(db, event_id)

    def count(model) -> int:
        return db.query(func.count(model.id)).filter(model.event_id == event_id).scalar() or 0

    return EventStats(
        event_id=event_id,
        participants=count(Participant),
        questions=count(Question),
        polls=count(Poll),
        active_connections=active_connections,
    )

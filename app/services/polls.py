"""Poll and poll response storage."""
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from app.core.exceptions import NotFoundError
from app.db.models import Poll, PollResponse


def get_poll(db: Session, poll_id: int) -> Poll:
    """
    Fetch a poll by id.

    Raises:
        NotFoundError: If no poll has this id
    """
    poll = db.query(Poll).filter(Poll.id == poll_id).first()
    if not poll:
        raise NotFoundError("Poll", poll_id)
    return poll


def get_polls(db: Session, event_id: int) -> List[Poll]:
    """All polls of an event, newest first."""
    return (
        db.query(Poll)
        .filter(Poll.event_id == event_id)
        .order_by(Poll.created_at.desc(), Poll.id.desc())
        .all()
    )


def get_active_poll(db: Session, event_id: int) -> Optional[Poll]:
    return (
        db.query(Poll)
        .filter(Poll.event_id == event_id, Poll.is_active.is_(True))
        .order_by(Poll.id.desc())
        .first()
    )


def create_poll(db: Session, event_id: int, data: Dict[str, Any]) -> Poll:
    poll = Poll(event_id=event_id, **data)
    db.add(poll)
    db.flush()
    return poll


def apply_changes(db: Session, poll: Poll, changes: Dict[str, Any]) -> Poll:
    for key, value in changes.items():
        setattr(poll, key, value)
    db.flush()
    return poll


def deactivate_other_polls(
    db: Session, event_id: int, keep_poll_id: Optional[int] = None
) -> List[Poll]:
    """
    Deactivate every active poll of the event except ``keep_poll_id``.

    Returns:
        The polls that were deactivated, for broadcasting
    """
    query = db.query(Poll).filter(Poll.event_id == event_id, Poll.is_active.is_(True))
    if keep_poll_id is not None:
        query = query.filter(Poll.id != keep_poll_id)

    deactivated = query.order_by(Poll.id).all()
    for poll in deactivated:
        poll.is_active = False
    db.flush()
    return deactivated


def create_response(
    db: Session, poll_id: int, participant_id: Optional[int], response: Dict[str, Any]
) -> PollResponse:
    record = PollResponse(poll_id=poll_id, participant_id=participant_id, response=response)
    db.add(record)
    db.flush()
    return record


def get_responses(db: Session, poll_id: int) -> List[PollResponse]:
    return (
        db.query(PollResponse)
        .filter(PollResponse.poll_id == poll_id)
        .order_by(PollResponse.id)
        .all()
    )

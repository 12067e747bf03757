"""Participant storage."""
from typing import List, Optional

from sqlalchemy.orm import Session

from app.core.exceptions import NotFoundError
from app.core.utils import utcnow
from app.db.models import Participant


def get_participant(db: Session, participant_id: int) -> Participant:
    participant = db.query(Participant).filter(Participant.id == participant_id).first()
    if not participant:
        raise NotFoundError("Participant", participant_id)
    return participant


def get_participants(db: Session, event_id: int) -> List[Participant]:
    """Participants of an event, most recent joiners first."""
    return (
        db.query(Participant)
        .filter(Participant.event_id == event_id)
        .order_by(Participant.joined_at.desc(), Participant.id.desc())
        .all()
    )


def create_participant(
    db: Session,
    event_id: int,
    name: Optional[str] = None,
    is_anonymous: bool = True,
    session_id: Optional[str] = None,
    user_id: Optional[int] = None,
) -> Participant:
    now = utcnow()
    participant = Participant(
        event_id=event_id,
        name=name,
        is_anonymous=is_anonymous,
        session_id=session_id,
        user_id=user_id,
        joined_at=now,
        last_active_at=now,
    )
    db.add(participant)
    db.flush()
    return participant


def touch_participant(db: Session, participant: Participant) -> Participant:
    """Mark the participant as seen just now."""
    participant.last_active_at = utcnow()
    db.flush()
    return participant

"""Question storage."""
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from app.core.exceptions import NotFoundError
from app.db.models import Question


def get_question(db: Session, question_id: int) -> Question:
    """
    Fetch a question by id.

    Raises:
        NotFoundError: If no question has this id
    """
    question = db.query(Question).filter(Question.id == question_id).first()
    if not question:
        raise NotFoundError("Question", question_id)
    return question


def get_questions(
    db: Session,
    event_id: int,
    approved_only: bool = False,
    include_hidden: bool = False,
) -> List[Question]:
    """
    Question feed for an event.

    Pinned questions first, then by upvotes, then newest first. Hidden
    questions are left out unless ``include_hidden`` is set (moderator view).
    """
    query = db.query(Question).filter(Question.event_id == event_id)
    if not include_hidden:
        query = query.filter(Question.is_hidden.is_(False))
    if approved_only:
        query = query.filter(Question.is_approved.is_(True))

    return query.order_by(
        Question.is_pinned.desc(),
        Question.upvotes.desc(),
        Question.created_at.desc(),
        Question.id.desc(),
    ).all()


def get_presenter_questions(db: Session, event_id: int) -> List[Question]:
    """The question(s) currently on the presenter display; normally zero or one."""
    return (
        db.query(Question)
        .filter(
            Question.event_id == event_id,
            Question.is_displayed_in_presenter.is_(True),
            Question.is_hidden.is_(False),
        )
        .order_by(Question.id)
        .all()
    )


def create_question(
    db: Session,
    event_id: int,
    text: str,
    is_anonymous: bool,
    is_approved: bool,
    participant_id: Optional[int] = None,
    author_name: Optional[str] = None,
) -> Question:
    question = Question(
        event_id=event_id,
        participant_id=participant_id,
        # Anonymous questions never carry a name
        author_name=None if is_anonymous else author_name,
        text=text,
        is_anonymous=is_anonymous,
        is_approved=is_approved,
        upvotes=0,
        downvotes=0,
    )
    db.add(question)
    db.flush()
    return question


def apply_changes(db: Session, question: Question, changes: Dict[str, Any]) -> Question:
    for key, value in changes.items():
        setattr(question, key, value)
    db.flush()
    return question


def clear_presenter_display(
    db: Session, event_id: int, keep_question_id: Optional[int] = None
) -> List[Question]:
    """
    Take every question of the event except ``keep_question_id`` off the
    presenter display. Hidden questions are included, so a stale flag left
    on one can never resurface.

    Returns:
        The questions that were changed, for broadcasting
    """
    query = db.query(Question).filter(
        Question.event_id == event_id,
        Question.is_displayed_in_presenter.is_(True),
    )
    if keep_question_id is not None:
        query = query.filter(Question.id != keep_question_id)

    cleared = query.order_by(Question.id).all()
    for question in cleared:
        question.is_displayed_in_presenter = False
    db.flush()
    return cleared

"""Question model."""
from datetime import datetime, timezone as tz
from sqlalchemy import Column, Integer, String, Text, Boolean, DateTime, ForeignKey, Index
from sqlalchemy.orm import relationship

from app.db.base import Base


class Question(Base):
    __tablename__ = "questions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    event_id = Column(Integer, ForeignKey("events.id", ondelete="CASCADE"), nullable=False)
    participant_id = Column(Integer, ForeignKey("participants.id", ondelete="SET NULL"), nullable=True)
    author_name = Column(String(100), nullable=True)
    text = Column(Text, nullable=False)

    is_anonymous = Column(Boolean, nullable=False, default=False)
    is_approved = Column(Boolean, nullable=False, default=False)
    is_answered = Column(Boolean, nullable=False, default=False)
    is_pinned = Column(Boolean, nullable=False, default=False)
    is_hidden = Column(Boolean, nullable=False, default=False)
    is_displayed_in_presenter = Column(Boolean, nullable=False, default=False)

    # Derived from question_votes rows; only ever written by the tally engine
    upvotes = Column(Integer, nullable=False, default=0)
    downvotes = Column(Integer, nullable=False, default=0)

    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(tz.utc))

    # Relationships
    event = relationship("Event", back_populates="questions")
    votes = relationship("QuestionVote", back_populates="question", cascade="all, delete-orphan")

    __table_args__ = (
        Index("idx_questions_event", "event_id"),
        Index("idx_questions_event_presenter", "event_id", "is_displayed_in_presenter"),
    )

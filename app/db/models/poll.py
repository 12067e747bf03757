"""Poll model."""
from datetime import datetime, timezone as tz
from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey, JSON, Index
from sqlalchemy.orm import relationship

from app.db.base import Base


class Poll(Base):
    __tablename__ = "polls"

    id = Column(Integer, primary_key=True, autoincrement=True)
    event_id = Column(Integer, ForeignKey("events.id", ondelete="CASCADE"), nullable=False)
    question = Column(String(500), nullable=False)
    type = Column(String(20), nullable=False)  # multiple-choice, open-text, word-cloud, rating
    options = Column(JSON, nullable=True)  # list of option labels, multiple-choice only
    is_active = Column(Boolean, nullable=False, default=False)
    is_anonymous = Column(Boolean, nullable=False, default=True)
    show_results = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(tz.utc))

    # Relationships
    event = relationship("Event", back_populates="polls")
    responses = relationship("PollResponse", back_populates="poll", cascade="all, delete-orphan")

    __table_args__ = (
        Index("idx_polls_event", "event_id"),
        Index("idx_polls_event_active", "event_id", "is_active"),
    )

"""Participant model."""
from datetime import datetime, timezone as tz
from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey, Index
from sqlalchemy.orm import relationship

from app.db.base import Base


class Participant(Base):
    __tablename__ = "participants"

    id = Column(Integer, primary_key=True, autoincrement=True)
    event_id = Column(Integer, ForeignKey("events.id", ondelete="CASCADE"), nullable=False)
    user_id = Column(Integer, nullable=True)
    session_id = Column(String(100), nullable=True)
    name = Column(String(100), nullable=True)
    is_anonymous = Column(Boolean, nullable=False, default=True)
    joined_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(tz.utc))
    last_active_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(tz.utc))

    # Relationships
    event = relationship("Event", back_populates="participants")

    __table_args__ = (Index("idx_participants_event", "event_id"),)

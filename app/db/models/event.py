"""Event model."""
from datetime import datetime, timezone as tz
from sqlalchemy import Column, Integer, String, Text, Boolean, DateTime, JSON, Index
from sqlalchemy.orm import relationship

from app.db.base import Base


class Event(Base):
    __tablename__ = "events"

    id = Column(Integer, primary_key=True, autoincrement=True)
    slug = Column(String(100), unique=True, nullable=False, index=True)
    name = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    # User id from the external identity provider
    organizer_id = Column(Integer, nullable=True)

    is_active = Column(Boolean, nullable=False, default=False)
    allow_questions = Column(Boolean, nullable=False, default=True)
    allow_anonymous = Column(Boolean, nullable=False, default=True)
    auto_approve = Column(Boolean, nullable=False, default=True)
    show_voting = Column(Boolean, nullable=False, default=True)

    start_time = Column(DateTime(timezone=True), nullable=True)
    end_time = Column(DateTime(timezone=True), nullable=True)
    branding = Column(JSON, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(tz.utc))

    # Relationships
    questions = relationship("Question", back_populates="event", cascade="all, delete-orphan")
    polls = relationship("Poll", back_populates="event", cascade="all, delete-orphan")
    participants = relationship("Participant", back_populates="event", cascade="all, delete-orphan")

    __table_args__ = (
        Index("idx_events_active", "is_active"),
        Index("idx_events_organizer", "organizer_id"),
    )

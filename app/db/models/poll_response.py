"""PollResponse model."""
from datetime import datetime, timezone as tz
from sqlalchemy import Column, Integer, DateTime, ForeignKey, JSON, Index
from sqlalchemy.orm import relationship

from app.db.base import Base


class PollResponse(Base):
    __tablename__ = "poll_responses"

    id = Column(Integer, primary_key=True, autoincrement=True)
    poll_id = Column(Integer, ForeignKey("polls.id", ondelete="CASCADE"), nullable=False)
    participant_id = Column(Integer, ForeignKey("participants.id", ondelete="SET NULL"), nullable=True)
    response = Column(JSON, nullable=False)  # shape depends on the poll type
    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(tz.utc))

    # Relationships
    poll = relationship("Poll", back_populates="responses")

    __table_args__ = (Index("idx_poll_responses_poll", "poll_id"),)

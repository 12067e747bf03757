"""QuestionVote model."""
from datetime import datetime, timezone as tz
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Index, UniqueConstraint
from sqlalchemy.orm import relationship

from app.db.base import Base


class QuestionVote(Base):
    __tablename__ = "question_votes"

    id = Column(Integer, primary_key=True, autoincrement=True)
    question_id = Column(Integer, ForeignKey("questions.id", ondelete="CASCADE"), nullable=False)
    participant_id = Column(Integer, ForeignKey("participants.id", ondelete="CASCADE"), nullable=True)
    vote_type = Column(String(10), nullable=False)  # upvote, downvote
    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(tz.utc))

    # Relationships
    question = relationship("Question", back_populates="votes")

    __table_args__ = (
        Index("idx_question_votes_question", "question_id"),
        # NULL participant ids (anonymous votes) never collide
        UniqueConstraint("question_id", "participant_id", name="uq_question_participant"),
    )

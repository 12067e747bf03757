"""Database models."""
from app.db.models.event import Event
from app.db.models.participant import Participant
from app.db.models.question import Question
from app.db.models.question_vote import QuestionVote
from app.db.models.poll import Poll
from app.db.models.poll_response import PollResponse

__all__ = ["Event", "Participant", "Question", "QuestionVote", "Poll", "PollResponse"]

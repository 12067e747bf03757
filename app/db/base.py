"""Database base class and model imports."""
from sqlalchemy.orm import declarative_base

Base = declarative_base()

# Import all models here for Alembic to detect them
from app.db.models.event import Event  # noqa: F401, E402
from app.db.models.participant import Participant  # noqa: F401, E402
from app.db.models.question import Question  # noqa: F401, E402
from app.db.models.question_vote import QuestionVote  # noqa: F401, E402
from app.db.models.poll import Poll  # noqa: F401, E402
from app.db.models.poll_response import PollResponse  # noqa: F401, E402

"""
Vote tally engine.

Question vote counts are derived data: every change deletes or inserts
``question_votes`` rows and then recounts from those rows, so the stored
``upvotes``/``downvotes`` always equal the row counts. Poll results are
computed from the stored responses on every read.

The functions here flush but never commit; the caller owns the transaction.
"""
import math
from typing import Iterable, List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from app.core.constants import DOWNVOTE, MULTIPLE_CHOICE, UPVOTE, VOTE_TYPES
from app.core.exceptions import NotFoundError, ValidationError
from app.db.models import Poll, PollResponse, Question, QuestionVote
from app.schemas.poll import PollOptionResult, PollResults


def recount_question_votes(db: Session, question: Question) -> Question:
    """Rewrite ``upvotes``/``downvotes`` from the vote rows."""
    db.flush()
    rows = (
        db.query(QuestionVote.vote_type, func.count(QuestionVote.id))
        .filter(QuestionVote.question_id == question.id)
        .group_by(QuestionVote.vote_type)
        .all()
    )
    counts = {vote_type: count for vote_type, count in rows}

    question.upvotes = counts.get(UPVOTE, 0)
    question.downvotes = counts.get(DOWNVOTE, 0)
    db.flush()
    return question


def record_question_vote(
    db: Session,
    question: Question,
    participant_id: Optional[int],
    vote_type: str,
) -> Question:
    """
    Record a participant's vote, replacing any vote they already cast.

    Args:
        db: SQLAlchemy session
        question: Question being voted on
        participant_id: Voter, or None for an anonymous vote
        vote_type: "upvote" or "downvote"

    Returns:
        The question with recounted totals

    Raises:
        ValidationError: If vote_type is not a known vote type
    """
    if vote_type not in VOTE_TYPES:
        raise ValidationError(f"Invalid vote type: {vote_type}", field="voteType")

    if participant_id is not None:
        # Anonymous votes have no identity to de-duplicate on
        (
            db.query(QuestionVote)
            .filter(
                QuestionVote.question_id == question.id,
                QuestionVote.participant_id == participant_id,
            )
            .delete(synchronize_session="fetch")
        )

    db.add(QuestionVote(question_id=question.id, participant_id=participant_id, vote_type=vote_type))
    return recount_question_votes(db, question)


def retract_question_vote(db: Session, question: Question, participant_id: int) -> Question:
    """Remove a participant's vote, if any, and recount."""
    (
        db.query(QuestionVote)
        .filter(
            QuestionVote.question_id == question.id,
            QuestionVote.participant_id == participant_id,
        )
        .delete(synchronize_session="fetch")
    )
    return recount_question_votes(db, question)


def _percentage(count: int, total: int) -> int:
    if total <= 0:
        return 0
    # Half-up rounding, so 12.5 -> 13 rather than banker's rounding to 12
    return int(math.floor(100 * count / total + 0.5))


def compute_poll_results(poll: Poll, responses: Iterable[PollResponse]) -> PollResults:
    """
    Summarize a poll's responses.

    Multiple-choice polls get one entry per configured option, in configured
    order, with a count and a rounded percentage of all responses. The
    percentages are independent and need not add up to 100. Other poll types
    carry the raw response payloads instead.
    """
    payloads = [response.response or {} for response in responses]
    total = len(payloads)

    if poll.type != MULTIPLE_CHOICE:
        return PollResults(
            poll_id=poll.id,
            question=poll.question,
            type=poll.type,
            total_responses=total,
            results=[],
            responses=payloads,
        )

    results: List[PollOptionResult] = []
    for option in poll.options or []:
        count = sum(1 for payload in payloads if payload.get("option") == option)
        results.append(PollOptionResult(option=option, count=count, percentage=_percentage(count, total)))

    return PollResults(
        poll_id=poll.id,
        question=poll.question,
        type=poll.type,
        total_responses=total,
        results=results,
    )


def get_poll_results(db: Session, poll_id: int) -> PollResults:
    """Load a poll and its responses and compute the results."""
    poll = db.query(Poll).filter(Poll.id == poll_id).first()
    if not poll:
        raise NotFoundError("Poll", poll_id)

    responses = (
        db.query(PollResponse)
        .filter(PollResponse.poll_id == poll_id)
        .order_by(PollResponse.id)
        .all()
    )
    return compute_poll_results(poll, responses)

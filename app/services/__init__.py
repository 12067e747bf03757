from .coordinator import SessionCoordinator
from .moderation import (
    ClearPresenterDisplay,
    DeactivateOtherPolls,
    PollState,
    QuestionState,
    Transition,
    launch_poll,
    moderate_poll,
    moderate_question,
)
from .tally import (
    compute_poll_results,
    get_poll_results,
    recount_question_votes,
    record_question_vote,
    retract_question_vote,
)
from .utils import atomic

__all__ = [
    # coordinator
    "SessionCoordinator",
    # moderation
    "ClearPresenterDisplay",
    "DeactivateOtherPolls",
    "PollState",
    "QuestionState",
    "Transition",
    "launch_poll",
    "moderate_poll",
    "moderate_question",
    # tally
    "compute_poll_results",
    "get_poll_results",
    "recount_question_votes",
    "record_question_vote",
    "retract_question_vote",
    # utils
    "atomic",
]

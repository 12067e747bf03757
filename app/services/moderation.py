"""
Moderation state machine for questions and polls.

Pure functions over plain snapshots. They decide which fields change and
which side effects other rows need, and never touch the database: the
coordinator executes the returned commands inside the same transaction as the
target update.

Rules:
- At most one presenter-visible question per event. Showing a question emits
  ``ClearPresenterDisplay`` for the rest of the event.
- Hiding is one-way. A hidden question is never presenter-visible, so hiding
  also clears the question's own presenter flag.
- At most one active poll per event. Activating or launching an active poll
  emits ``DeactivateOtherPolls``.
- Pinned, answered and approved are independent toggles.
"""
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional, Tuple, Union

from app.core.exceptions import ValidationError

QUESTION_FLAGS = (
    "is_approved",
    "is_answered",
    "is_pinned",
    "is_hidden",
    "is_displayed_in_presenter",
)
POLL_FIELDS = ("is_active", "show_results", "is_anonymous")


@dataclass(frozen=True)
class QuestionState:
    id: int
    event_id: int
    is_approved: bool = False
    is_answered: bool = False
    is_pinned: bool = False
    is_hidden: bool = False
    is_displayed_in_presenter: bool = False

    @classmethod
    def of(cls, question) -> "QuestionState":
        return cls(
            id=question.id,
            event_id=question.event_id,
            **{flag: bool(getattr(question, flag)) for flag in QUESTION_FLAGS},
        )


@dataclass(frozen=True)
class PollState:
    id: Optional[int]
    event_id: int
    is_active: bool = False
    show_results: bool = True
    is_anonymous: bool = True

    @classmethod
    def of(cls, poll) -> "PollState":
        return cls(
            id=poll.id,
            event_id=poll.event_id,
            is_active=bool(poll.is_active),
            show_results=bool(poll.show_results),
            is_anonymous=bool(poll.is_anonymous),
        )


@dataclass(frozen=True)
class ClearPresenterDisplay:
    """Unset the presenter flag on every question of the event except one."""

    event_id: int
    keep_question_id: Optional[int]


@dataclass(frozen=True)
class DeactivateOtherPolls:
    """Deactivate every active poll of the event except one (None keeps none)."""

    event_id: int
    keep_poll_id: Optional[int]


Command = Union[ClearPresenterDisplay, DeactivateOtherPolls]


@dataclass(frozen=True)
class Transition:
    changes: Dict[str, Any] = field(default_factory=dict)
    commands: Tuple[Command, ...] = ()

    @property
    def is_noop(self) -> bool:
        return not self.changes and not self.commands


def _requested(requested: Mapping[str, Any], allowed: Tuple[str, ...]) -> Dict[str, Any]:
    unknown = set(requested) - set(allowed)
    if unknown:
        field_name = sorted(unknown)[0]
        raise ValidationError(f"Unknown field: {field_name}", field=field_name)
    for name, value in requested.items():
        if not isinstance(value, bool):
            raise ValidationError(f"{name} must be a boolean", field=name)
    return dict(requested)


def moderate_question(current: QuestionState, requested: Mapping[str, Any]) -> Transition:
    """
    Apply a partial moderation update to a question snapshot.

    Args:
        current: The question as it is now
        requested: Flags the organizer sent; absent flags stay untouched

    Returns:
        Transition with the fields to write and the commands to run
    """
    wanted = _requested(requested, QUESTION_FLAGS)

    # Once hidden, always hidden
    if current.is_hidden and wanted.get("is_hidden") is False:
        del wanted["is_hidden"]

    hiding = wanted.get("is_hidden") is True or current.is_hidden
    if hiding and wanted.get("is_displayed_in_presenter") is True:
        raise ValidationError(
            "Hidden questions cannot be shown on the presenter display",
            field="isDisplayedInPresenter",
        )
    if wanted.get("is_hidden") is True and current.is_displayed_in_presenter:
        wanted["is_displayed_in_presenter"] = False

    changes = {name: value for name, value in wanted.items() if getattr(current, name) != value}

    commands: Tuple[Command, ...] = ()
    if wanted.get("is_displayed_in_presenter") is True:
        # Issued even when this question is already shown, so a stale second
        # presenter question left by concurrent writers is healed
        commands = (ClearPresenterDisplay(current.event_id, keep_question_id=current.id),)

    return Transition(changes=changes, commands=commands)


def moderate_poll(current: PollState, requested: Mapping[str, Any]) -> Transition:
    """Apply a partial update to a poll snapshot."""
    wanted = _requested(requested, POLL_FIELDS)
    changes = {name: value for name, value in wanted.items() if getattr(current, name) != value}

    commands: Tuple[Command, ...] = ()
    if wanted.get("is_active") is True:
        commands = (DeactivateOtherPolls(current.event_id, keep_poll_id=current.id),)

    return Transition(changes=changes, commands=commands)


def launch_poll(event_id: int, is_active: bool) -> Transition:
    """A new poll launched live takes over from whatever poll was active."""
    if not is_active:
        return Transition(changes={"is_active": False})
    return Transition(
        changes={"is_active": True},
        commands=(DeactivateOtherPolls(event_id, keep_poll_id=None),),
    )

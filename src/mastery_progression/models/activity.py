"""Activity event and XP award models."""

from datetime import datetime
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, NaiveDatetime, ValidationError

from mastery_progression.errors import InvalidArgumentError
from mastery_progression.models.question import Difficulty


class ActivityKind(StrEnum):
    """Kinds of learner activity that earn XP."""

    STUDY_SESSION = "study_session"
    PRACTICE_TEST = "practice_test"
    QUESTION_ANSWERED = "question_answered"
    SOCIAL_ACTIVITY = "social_activity"
    MILESTONE = "milestone"
    # Credited by the caller for achievement rewards
    ACHIEVEMENT = "achievement"


class TimeOfDay(StrEnum):
    EARLY = "early"
    NORMAL = "normal"
    LATE = "late"


class BonusType(StrEnum):
    DIFFICULTY = "difficulty"
    PERFORMANCE = "performance"
    STREAK = "streak"
    GROUP_BONUS = "group_bonus"
    TIME_BONUS = "time_bonus"
    UNKNOWN_ACTIVITY = "unknown_activity"


class ActivityEvent(BaseModel):
    """A single occurrence to be scored. Consumed once, never mutated."""

    model_config = ConfigDict(frozen=True)

    kind: ActivityKind
    base_activity_key: str
    difficulty: Difficulty | None = None
    duration_minutes: float | None = Field(default=None, ge=0)
    performance_percent: float | None = Field(default=None, ge=0, le=100)
    streak_days: int | None = Field(default=None, ge=0)
    is_group_activity: bool = False
    time_of_day: TimeOfDay = TimeOfDay.NORMAL
    is_weekend: bool = False
    occurred_at: NaiveDatetime = Field(default_factory=datetime.now)


def parse_activity_event(data: dict[str, Any]) -> ActivityEvent:
    """Build an ActivityEvent from a raw product event.

    Args:
        data: Raw event fields. ``occurred_at`` is naive local time.

    Returns:
        Validated event.

    Raises:
        InvalidArgumentError: If the event is malformed (unknown kind,
            out-of-range numbers, missing activity key, timezone-aware
            timestamp) or claims the ``achievement`` kind, which only
            the engine credits.
    """
    try:
        event = ActivityEvent.model_validate(data)
    except ValidationError as e:
        raise InvalidArgumentError(
            "Malformed activity event",
            details={"errors": e.errors(include_url=False)},
        ) from e
    if event.kind == ActivityKind.ACHIEVEMENT:
        raise InvalidArgumentError(
            "Achievement rewards are credited by the engine, not reported as activity",
            details={"kind": event.kind.value},
        )
    return event


class BonusMultiplier(BaseModel):
    """One applied bonus; time bonuses are flat and carry value 1.0."""

    model_config = ConfigDict(frozen=True)

    type: BonusType
    value: float
    description: str


class XPAward(BaseModel):
    """Result of scoring one ActivityEvent."""

    model_config = ConfigDict(frozen=True)

    kind: ActivityKind
    base_xp: int
    flat_bonus_xp: int = 0
    bonuses: tuple[BonusMultiplier, ...] = ()
    total_multiplier: float = 1.0
    final_xp: int
    breakdown: str = ""
    streak_days: int | None = None
    occurred_at: NaiveDatetime = Field(default_factory=datetime.now)

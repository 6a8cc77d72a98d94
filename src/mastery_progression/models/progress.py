"""User progress models."""

from datetime import datetime
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field, computed_field

from mastery_progression.progression.leveling import DEFAULT_CURVE, LevelCurve, LevelInfo


class UserProgress(BaseModel):
    """Aggregate XP state for one user.

    The level is not stored: it is always the curve position of
    ``total_xp``. Records are frozen, so a total can't drift from its level.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    user_id: str | None = None
    total_xp: int = Field(default=0, ge=0)
    weekly_xp: int = 0
    monthly_xp: int = 0
    streak_multiplier: float = 1.0
    last_activity_at: datetime | None = None
    curve: LevelCurve = Field(default=DEFAULT_CURVE, exclude=True)

    @computed_field
    @property
    def level(self) -> LevelInfo:
        return self.curve.level(self.total_xp)

    @property
    def current_level(self) -> int:
        return self.level.level

    @property
    def current_level_xp(self) -> int:
        return self.level.current_level_xp

    @property
    def xp_to_next_level(self) -> int:
        return self.level.xp_to_next_level


class LevelUp(BaseModel):
    """Outcome of comparing levels before and after an award."""

    leveled_up: bool
    from_level: int
    to_level: int


class LeaderboardTimeframe(StrEnum):
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    ALL_TIME = "all_time"

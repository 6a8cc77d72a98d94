"""Achievement catalog and evaluation models."""

from datetime import datetime
from enum import StrEnum
from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field


class AchievementCategory(StrEnum):
    STUDY = "study"
    SOCIAL = "social"
    PROGRESS = "progress"
    SPECIAL = "special"


class AchievementTier(StrEnum):
    """Descriptive rank; does not affect evaluation."""

    BRONZE = "bronze"
    SILVER = "silver"
    GOLD = "gold"
    PLATINUM = "platinum"


class Timeframe(StrEnum):
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    TOTAL = "total"


class _Requirement(BaseModel):
    model_config = ConfigDict(frozen=True)

    target: float = Field(gt=0)
    timeframe: Timeframe = Timeframe.TOTAL


class StudyHoursRequirement(_Requirement):
    type: Literal["study_hours"] = "study_hours"


class StudyStreakRequirement(_Requirement):
    type: Literal["study_streak"] = "study_streak"


class PracticeTestsRequirement(_Requirement):
    type: Literal["practice_tests"] = "practice_tests"


class ScoreImprovementRequirement(_Requirement):
    type: Literal["score_improvement"] = "score_improvement"


class SocialActivityRequirement(_Requirement):
    type: Literal["social_activity"] = "social_activity"


class MilestoneRequirement(_Requirement):
    """Ad-hoc counter requirement.

    ``counter_key`` names the entry in ``UserStats.special_milestones``;
    when omitted the engine resolves it from the achievement id.
    """

    type: Literal["milestone"] = "milestone"
    counter_key: str | None = None


Requirement = Annotated[
    StudyHoursRequirement
    | StudyStreakRequirement
    | PracticeTestsRequirement
    | ScoreImprovementRequirement
    | SocialActivityRequirement
    | MilestoneRequirement,
    Field(discriminator="type"),
]


class Achievement(BaseModel):
    """Static catalog entry."""

    model_config = ConfigDict(frozen=True)

    id: str
    title: str
    description: str = ""
    icon: str = ""
    category: AchievementCategory
    tier: AchievementTier
    xp_reward: int = Field(ge=0)
    requirement: Requirement


class UserStats(BaseModel):
    """Cumulative statistics the catalog requirements are checked against."""

    study_hours: float = Field(default=0.0, ge=0)
    study_streak_days: int = Field(default=0, ge=0)
    practice_tests_completed: int = Field(default=0, ge=0)
    score_improvement: float = 0.0
    social_activity_count: int = Field(default=0, ge=0)
    special_milestones: dict[str, int] = Field(default_factory=dict)


class UnlockedAchievement(BaseModel):
    """Persisted unlock record, one per (user, achievement)."""

    achievement_id: str
    unlocked_at: datetime


class AchievementUnlock(BaseModel):
    """An achievement whose requirement was met during an evaluation."""

    achievement: Achievement
    unlocked_at: datetime

    @property
    def achievement_id(self) -> str:
        return self.achievement.id

    @property
    def xp_reward(self) -> int:
        return self.achievement.xp_reward

    def to_record(self) -> UnlockedAchievement:
        return UnlockedAchievement(
            achievement_id=self.achievement.id, unlocked_at=self.unlocked_at
        )


class AchievementProgress(BaseModel):
    achievement_id: str
    progress_percent: float = Field(ge=0.0, le=100.0)


class AchievementEvaluation(BaseModel):
    """Newly unlocked achievements plus progress on the remaining ones."""

    newly_unlocked: list[AchievementUnlock] = Field(default_factory=list)
    progress: list[AchievementProgress] = Field(default_factory=list)

    @property
    def pending_xp(self) -> int:
        """XP rewards the caller still has to credit."""
        return sum(u.xp_reward for u in self.newly_unlocked)

    @property
    def newly_unlocked_ids(self) -> list[str]:
        return [u.achievement_id for u in self.newly_unlocked]

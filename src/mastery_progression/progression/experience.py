"""Experience point calculation for single activity events."""

import math

import structlog
from pydantic import BaseModel, ConfigDict, Field

from mastery_progression.models.activity import (
    ActivityEvent,
    ActivityKind,
    BonusMultiplier,
    BonusType,
    TimeOfDay,
    XPAward,
)
from mastery_progression.models.question import Difficulty

logger = structlog.get_logger()


# Base XP values for different activities
ACTIVITY_XP: dict[str, int] = {
    # Study
    "STUDY_SESSION_START": 10,
    "STUDY_SESSION_COMPLETE_15MIN": 25,
    "STUDY_SESSION_COMPLETE_30MIN": 50,
    "STUDY_SESSION_COMPLETE_60MIN": 100,
    "STUDY_SESSION_COMPLETE_90MIN": 150,
    # Practice tests
    "PRACTICE_TEST_START": 20,
    "PRACTICE_TEST_COMPLETE": 200,
    "PRACTICE_TEST_PERFECT_SECTION": 500,
    # Questions
    "QUESTION_CORRECT_EASY": 5,
    "QUESTION_CORRECT_MEDIUM": 10,
    "QUESTION_CORRECT_HARD": 20,
    "QUESTION_STREAK_5": 25,
    "QUESTION_STREAK_10": 75,
    "QUESTION_STREAK_20": 200,
    # Social
    "JOIN_STUDY_GROUP": 50,
    "HELP_PEER": 30,
    "RECEIVE_HELP": 15,
    "GROUP_STUDY_SESSION": 75,
    "CHALLENGE_PARTICIPANT": 100,
    "CHALLENGE_WINNER": 300,
    # Milestones
    "DAILY_GOAL_COMPLETE": 100,
    "WEEKLY_GOAL_COMPLETE": 500,
    "MONTHLY_GOAL_COMPLETE": 2000,
    "SCORE_IMPROVEMENT_25": 250,
    "SCORE_IMPROVEMENT_50": 500,
    "SCORE_IMPROVEMENT_100": 1000,
    "CONSISTENCY_BONUS": 100,
}


class PerformanceTier(BaseModel):
    model_config = ConfigDict(frozen=True)

    min_percent: float
    multiplier: float
    description: str


class XPTable(BaseModel):
    """Static lookup tables for XP scoring.

    Injected into the calculator so alternate tunings can be tested
    without touching module state.
    """

    model_config = ConfigDict(frozen=True)

    activity_xp: dict[str, int] = Field(default_factory=lambda: dict(ACTIVITY_XP))
    # minutes -> XP for completed study sessions
    duration_tiers: dict[int, int] = Field(
        default_factory=lambda: {15: 25, 30: 50, 60: 100, 90: 150}
    )
    difficulty_multipliers: dict[Difficulty, float] = Field(
        default_factory=lambda: {
            Difficulty.EASY: 1.0,
            Difficulty.MEDIUM: 1.2,
            Difficulty.HARD: 1.5,
        }
    )
    # Highest threshold first
    performance_tiers: tuple[PerformanceTier, ...] = (
        PerformanceTier(min_percent=95, multiplier=2.0, description="Near perfect performance!"),
        PerformanceTier(min_percent=85, multiplier=1.5, description="Excellent performance!"),
        PerformanceTier(min_percent=75, multiplier=1.25, description="Great performance!"),
    )
    # streak days -> multiplier
    streak_multipliers: dict[int, float] = Field(
        default_factory=lambda: {3: 1.1, 7: 1.25, 14: 1.5, 30: 2.0, 60: 2.5, 100: 3.0}
    )
    group_multiplier: float = 1.3
    early_bird_bonus: int = 25  # before 8 AM
    night_owl_bonus: int = 25  # after 10 PM
    weekend_bonus: int = 50


class ExperienceCalculator:
    """Computes XP for one activity event.

    Multipliers are applied in a fixed order (difficulty, performance,
    streak, group) and floored once at the end, so results are
    reproducible bit for bit. Flat time bonuses are added to the base
    before multiplication.

    Args:
        table: XP lookup tables; defaults to the standard tuning.
    """

    def __init__(self, table: XPTable | None = None):
        self.table = table or XPTable()

    def compute_xp(self, event: ActivityEvent) -> XPAward:
        """Score a single activity event.

        Args:
            event: The activity to score.

        Returns:
            XPAward with the applied bonuses and breakdown text. Unknown
            activity keys yield a zero award rather than an error.
        """
        table = self.table
        if event.base_activity_key not in table.activity_xp:
            logger.warning(
                "unknown_activity",
                activity_key=event.base_activity_key,
                kind=event.kind.value,
            )
            bonus = BonusMultiplier(
                type=BonusType.UNKNOWN_ACTIVITY,
                value=1.0,
                description=f"Unknown activity: {event.base_activity_key}",
            )
            return XPAward(
                kind=event.kind,
                base_xp=0,
                bonuses=(bonus,),
                final_xp=0,
                breakdown=f"Base: 0 XP + {bonus.description}",
                streak_days=event.streak_days,
                occurred_at=event.occurred_at,
            )

        base_xp = table.activity_xp[event.base_activity_key]
        bonuses: list[BonusMultiplier] = []
        total_multiplier = 1.0

        # Duration-based XP for study sessions
        if event.kind == ActivityKind.STUDY_SESSION and event.duration_minutes:
            tier_xp = self._duration_tier_xp(event.duration_minutes)
            if tier_xp is not None:
                base_xp = tier_xp

        if event.difficulty is not None:
            value = table.difficulty_multipliers.get(event.difficulty, 1.0)
            if value > 1:
                bonuses.append(
                    BonusMultiplier(
                        type=BonusType.DIFFICULTY,
                        value=value,
                        description=f"{event.difficulty.value.capitalize()} difficulty bonus",
                    )
                )
                total_multiplier *= value

        if event.kind == ActivityKind.PRACTICE_TEST and event.performance_percent is not None:
            for tier in table.performance_tiers:
                if event.performance_percent >= tier.min_percent:
                    bonuses.append(
                        BonusMultiplier(
                            type=BonusType.PERFORMANCE,
                            value=tier.multiplier,
                            description=tier.description,
                        )
                    )
                    total_multiplier *= tier.multiplier
                    break

        if event.streak_days:
            value = self.streak_multiplier(event.streak_days)
            if value > 1:
                bonuses.append(
                    BonusMultiplier(
                        type=BonusType.STREAK,
                        value=value,
                        description=f"{event.streak_days} day study streak!",
                    )
                )
                total_multiplier *= value

        if event.is_group_activity:
            bonuses.append(
                BonusMultiplier(
                    type=BonusType.GROUP_BONUS,
                    value=table.group_multiplier,
                    description="Group study bonus",
                )
            )
            total_multiplier *= table.group_multiplier

        # Flat bonuses
        flat_bonus_xp = 0
        if event.time_of_day == TimeOfDay.EARLY:
            flat_bonus_xp += table.early_bird_bonus
            bonuses.append(self._time_bonus("Early bird bonus"))
        elif event.time_of_day == TimeOfDay.LATE:
            flat_bonus_xp += table.night_owl_bonus
            bonuses.append(self._time_bonus("Night owl bonus"))

        if event.is_weekend:
            flat_bonus_xp += table.weekend_bonus
            bonuses.append(self._time_bonus("Weekend warrior bonus"))

        final_xp = math.floor((base_xp + flat_bonus_xp) * total_multiplier)
        breakdown = self._breakdown(base_xp + flat_bonus_xp, bonuses, final_xp)

        logger.debug(
            "xp_computed",
            activity_key=event.base_activity_key,
            base_xp=base_xp,
            flat_bonus_xp=flat_bonus_xp,
            multiplier=total_multiplier,
            final_xp=final_xp,
        )

        return XPAward(
            kind=event.kind,
            base_xp=base_xp,
            flat_bonus_xp=flat_bonus_xp,
            bonuses=tuple(bonuses),
            total_multiplier=total_multiplier,
            final_xp=final_xp,
            breakdown=breakdown,
            streak_days=event.streak_days,
            occurred_at=event.occurred_at,
        )

    def streak_multiplier(self, streak_days: int) -> float:
        """Multiplier for the largest streak threshold not exceeding ``streak_days``."""
        for threshold in sorted(self.table.streak_multipliers, reverse=True):
            if streak_days >= threshold:
                return self.table.streak_multipliers[threshold]
        return 1.0

    def _duration_tier_xp(self, duration_minutes: float) -> int | None:
        for minutes in sorted(self.table.duration_tiers, reverse=True):
            if duration_minutes >= minutes:
                return self.table.duration_tiers[minutes]
        return None

    @staticmethod
    def _time_bonus(description: str) -> BonusMultiplier:
        return BonusMultiplier(type=BonusType.TIME_BONUS, value=1.0, description=description)

    @staticmethod
    def _breakdown(base_xp: int, bonuses: list[BonusMultiplier], final_xp: int) -> str:
        """Human-readable audit string, e.g. ``Base: 200 XP + Great performance! (×1.25) = 250 XP``."""
        text = f"Base: {base_xp} XP"
        if bonuses:
            parts = [
                b.description if b.type == BonusType.TIME_BONUS else f"{b.description} (×{b.value})"
                for b in bonuses
            ]
            text += " + " + ", ".join(parts)
        if final_xp != base_xp:
            text += f" = {final_xp} XP"
        return text

"""Folds XP awards into per-user progress totals."""

from collections.abc import Iterable
from datetime import datetime, timedelta

import structlog

from mastery_progression.models.activity import ActivityEvent, XPAward
from mastery_progression.models.progress import (
    LeaderboardTimeframe,
    LevelUp,
    UserProgress,
)
from mastery_progression.progression.experience import ExperienceCalculator
from mastery_progression.progression.leveling import LevelCurve

logger = structlog.get_logger()


def as_local_naive(moment: datetime) -> datetime:
    """Convert an aware datetime to naive local time; naive ones pass through."""
    if moment.tzinfo is None:
        return moment
    return moment.astimezone().replace(tzinfo=None)


def week_start(now: datetime) -> datetime:
    """Midnight of the Sunday that starts ``now``'s week."""
    days_since_sunday = (now.weekday() + 1) % 7
    day = now - timedelta(days=days_since_sunday)
    return day.replace(hour=0, minute=0, second=0, microsecond=0)


def month_start(now: datetime) -> datetime:
    return now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)


class ProgressAggregator:
    """Combines XP awards into running totals and derives the level.

    The level is never accumulated on its own; it is recomputed from the
    folded total every time.

    Args:
        calculator: Scores raw events before folding.
        curve: Level threshold curve.
    """

    def __init__(
        self,
        calculator: ExperienceCalculator | None = None,
        curve: LevelCurve | None = None,
    ):
        self.calculator = calculator or ExperienceCalculator()
        self.curve = curve or LevelCurve()

    def fold(
        self,
        events: Iterable[ActivityEvent],
        now: datetime | None = None,
        user_id: str | None = None,
    ) -> UserProgress:
        """Score and fold events given in chronological order."""
        awards = [self.calculator.compute_xp(event) for event in events]
        return self.fold_awards(awards, now=now, user_id=user_id)

    def fold_awards(
        self,
        awards: Iterable[XPAward],
        now: datetime | None = None,
        user_id: str | None = None,
    ) -> UserProgress:
        """Left-fold already computed awards into a UserProgress.

        Args:
            awards: Awards in chronological order.
            now: Reference time for the weekly/monthly windows; an aware
                value is converted to local time.
            user_id: Owner of the progress record.

        Returns:
            Progress with totals, level and streak multiplier.
        """
        now = as_local_naive(now or datetime.now())
        weekly_from = week_start(now)
        monthly_from = month_start(now)

        total_xp = 0
        weekly_xp = 0
        monthly_xp = 0
        last_activity_at: datetime | None = None
        latest_streak: int | None = None

        for award in awards:
            total_xp += award.final_xp
            if award.occurred_at >= weekly_from:
                weekly_xp += award.final_xp
            if award.occurred_at >= monthly_from:
                monthly_xp += award.final_xp
            if last_activity_at is None or award.occurred_at >= last_activity_at:
                last_activity_at = award.occurred_at
                if award.streak_days is not None:
                    latest_streak = award.streak_days

        streak_multiplier = (
            self.calculator.streak_multiplier(latest_streak) if latest_streak else 1.0
        )

        return UserProgress(
            user_id=user_id,
            total_xp=total_xp,
            weekly_xp=weekly_xp,
            monthly_xp=monthly_xp,
            streak_multiplier=streak_multiplier,
            last_activity_at=last_activity_at,
            curve=self.curve,
        )

    def check_level_up(self, before_xp: int, after_xp: int) -> LevelUp:
        """Compare levels before and after an award."""
        from_level = self.curve.level(before_xp).level
        to_level = self.curve.level(after_xp).level
        leveled_up = to_level > from_level
        if leveled_up:
            logger.info("level_up", from_level=from_level, to_level=to_level)
        return LevelUp(leveled_up=leveled_up, from_level=from_level, to_level=to_level)

    @staticmethod
    def leaderboard(
        progresses: Iterable[UserProgress],
        timeframe: LeaderboardTimeframe = LeaderboardTimeframe.ALL_TIME,
    ) -> list[UserProgress]:
        """Order users by the XP total matching ``timeframe``, highest first."""
        field = {
            LeaderboardTimeframe.WEEKLY: "weekly_xp",
            LeaderboardTimeframe.MONTHLY: "monthly_xp",
            LeaderboardTimeframe.ALL_TIME: "total_xp",
        }[timeframe]
        return sorted(progresses, key=lambda p: getattr(p, field), reverse=True)

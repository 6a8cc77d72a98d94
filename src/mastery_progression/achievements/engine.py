"""Rule-based achievement unlocking and progress."""

from collections.abc import Iterable
from datetime import datetime
from typing import assert_never

import structlog

from mastery_progression.achievements.catalog import (
    DEFAULT_ACHIEVEMENTS,
    MILESTONE_COUNTERS,
    validate_catalog,
)
from mastery_progression.models.achievement import (
    Achievement,
    AchievementCategory,
    AchievementEvaluation,
    AchievementProgress,
    AchievementUnlock,
    MilestoneRequirement,
    PracticeTestsRequirement,
    ScoreImprovementRequirement,
    SocialActivityRequirement,
    StudyHoursRequirement,
    StudyStreakRequirement,
    UserStats,
)

logger = structlog.get_logger()


class AchievementEngine:
    """Evaluates the achievement catalog against a user's statistics.

    The engine holds no per-user state. Calling ``evaluate`` twice with
    the same stats and the same ``already_unlocked`` set yields the same
    unlocks; persisting them and crediting ``xp_reward`` exactly once is
    the caller's job.

    Args:
        catalog: Achievement definitions; defaults to the built-in catalog.
        milestone_counters: Achievement id to milestone counter key, used
            when a milestone requirement names no counter itself.
    """

    def __init__(
        self,
        catalog: Iterable[Achievement] | None = None,
        milestone_counters: dict[str, str] | None = None,
    ):
        self.catalog = validate_catalog(DEFAULT_ACHIEVEMENTS if catalog is None else catalog)
        self.milestone_counters = dict(
            MILESTONE_COUNTERS if milestone_counters is None else milestone_counters
        )

    def current_value(self, achievement: Achievement, stats: UserStats) -> float:
        """Stat value the achievement's requirement is measured against."""
        requirement = achievement.requirement
        match requirement:
            case StudyHoursRequirement():
                return stats.study_hours
            case StudyStreakRequirement():
                return stats.study_streak_days
            case PracticeTestsRequirement():
                return stats.practice_tests_completed
            case ScoreImprovementRequirement():
                return stats.score_improvement
            case SocialActivityRequirement():
                return stats.social_activity_count
            case MilestoneRequirement():
                key = requirement.counter_key or self.milestone_counters.get(
                    achievement.id, achievement.id
                )
                return stats.special_milestones.get(key, 0)
            case _:
                assert_never(requirement)

    def progress_for(self, achievement: Achievement, stats: UserStats) -> float:
        """Progress toward ``achievement`` as a percentage clamped to [0, 100]."""
        current = self.current_value(achievement, stats)
        percent = 100 * current / achievement.requirement.target
        return max(0.0, min(100.0, percent))

    def evaluate(
        self,
        stats: UserStats,
        already_unlocked: Iterable[str],
        now: datetime | None = None,
    ) -> AchievementEvaluation:
        """Find newly unlocked achievements and progress on the rest.

        Args:
            stats: Current cumulative user statistics.
            already_unlocked: Ids of achievements the user already holds.
            now: Unlock timestamp for anything unlocked by this call.

        Returns:
            Newly unlocked achievements in catalog order, and started
            progress (> 0%) on the remaining ones, highest first.
        """
        now = now or datetime.now()
        unlocked_ids = set(already_unlocked)
        newly_unlocked: list[AchievementUnlock] = []
        progress: list[AchievementProgress] = []

        for achievement in self.catalog:
            if achievement.id in unlocked_ids:
                continue

            current = self.current_value(achievement, stats)
            if current >= achievement.requirement.target:
                newly_unlocked.append(AchievementUnlock(achievement=achievement, unlocked_at=now))
                logger.info(
                    "achievement_unlocked",
                    achievement_id=achievement.id,
                    xp_reward=achievement.xp_reward,
                )
                continue

            percent = self.progress_for(achievement, stats)
            if percent > 0:
                progress.append(
                    AchievementProgress(achievement_id=achievement.id, progress_percent=percent)
                )

        progress.sort(key=lambda p: p.progress_percent, reverse=True)
        return AchievementEvaluation(newly_unlocked=newly_unlocked, progress=progress)

    def get_achievement(self, achievement_id: str) -> Achievement | None:
        for achievement in self.catalog:
            if achievement.id == achievement_id:
                return achievement
        return None

    def by_category(self, category: AchievementCategory) -> list[Achievement]:
        return [a for a in self.catalog if a.category == category]

    def total_possible_xp(self) -> int:
        return sum(a.xp_reward for a in self.catalog)

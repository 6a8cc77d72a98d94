"""Default achievement catalog."""

from collections.abc import Iterable

from mastery_progression.errors import InvalidArgumentError
from mastery_progression.models.achievement import (
    Achievement,
    AchievementCategory,
    AchievementTier,
    MilestoneRequirement,
    PracticeTestsRequirement,
    ScoreImprovementRequirement,
    SocialActivityRequirement,
    StudyHoursRequirement,
    StudyStreakRequirement,
    Timeframe,
)

# Milestone achievement id -> UserStats.special_milestones key
MILESTONE_COUNTERS: dict[str, str] = {
    "early_bird": "early_sessions",
    "night_owl": "night_sessions",
    "weekend_warrior": "weekend_streaks",
}


DEFAULT_ACHIEVEMENTS: tuple[Achievement, ...] = (
    # Study
    Achievement(
        id="first_study_session",
        title="Getting Started",
        description="Complete your first study session",
        icon="🌱",
        category=AchievementCategory.STUDY,
        tier=AchievementTier.BRONZE,
        xp_reward=50,
        requirement=StudyHoursRequirement(target=1),
    ),
    Achievement(
        id="week_warrior",
        title="Week Warrior",
        description="Study for 7 consecutive days",
        icon="🔥",
        category=AchievementCategory.STUDY,
        tier=AchievementTier.SILVER,
        xp_reward=200,
        requirement=StudyStreakRequirement(target=7, timeframe=Timeframe.DAILY),
    ),
    Achievement(
        id="month_master",
        title="Month Master",
        description="Study for 30 consecutive days",
        icon="👑",
        category=AchievementCategory.STUDY,
        tier=AchievementTier.GOLD,
        xp_reward=1000,
        requirement=StudyStreakRequirement(target=30, timeframe=Timeframe.DAILY),
    ),
    Achievement(
        id="century_scholar",
        title="Century Scholar",
        description="Study for 100 total hours",
        icon="📚",
        category=AchievementCategory.STUDY,
        tier=AchievementTier.PLATINUM,
        xp_reward=2000,
        requirement=StudyHoursRequirement(target=100),
    ),
    # Practice tests
    Achievement(
        id="test_taker",
        title="Test Taker",
        description="Complete your first practice test",
        icon="📝",
        category=AchievementCategory.PROGRESS,
        tier=AchievementTier.BRONZE,
        xp_reward=100,
        requirement=PracticeTestsRequirement(target=1),
    ),
    Achievement(
        id="practice_pro",
        title="Practice Pro",
        description="Complete 10 practice tests",
        icon="🎯",
        category=AchievementCategory.PROGRESS,
        tier=AchievementTier.SILVER,
        xp_reward=500,
        requirement=PracticeTestsRequirement(target=10),
    ),
    Achievement(
        id="test_master",
        title="Test Master",
        description="Complete 25 practice tests",
        icon="🏆",
        category=AchievementCategory.PROGRESS,
        tier=AchievementTier.GOLD,
        xp_reward=1500,
        requirement=PracticeTestsRequirement(target=25),
    ),
    # Score improvement
    Achievement(
        id="first_improvement",
        title="Upward Trajectory",
        description="Improve your score by 50 points",
        icon="📈",
        category=AchievementCategory.PROGRESS,
        tier=AchievementTier.BRONZE,
        xp_reward=300,
        requirement=ScoreImprovementRequirement(target=50),
    ),
    Achievement(
        id="significant_improvement",
        title="Breakthrough",
        description="Improve your score by 100 points",
        icon="🚀",
        category=AchievementCategory.PROGRESS,
        tier=AchievementTier.SILVER,
        xp_reward=600,
        requirement=ScoreImprovementRequirement(target=100),
    ),
    Achievement(
        id="major_improvement",
        title="Transformation",
        description="Improve your score by 200 points",
        icon="🌟",
        category=AchievementCategory.PROGRESS,
        tier=AchievementTier.GOLD,
        xp_reward=1200,
        requirement=ScoreImprovementRequirement(target=200),
    ),
    # Social
    Achievement(
        id="team_player",
        title="Team Player",
        description="Join your first study group",
        icon="👥",
        category=AchievementCategory.SOCIAL,
        tier=AchievementTier.BRONZE,
        xp_reward=150,
        requirement=SocialActivityRequirement(target=1),
    ),
    Achievement(
        id="social_butterfly",
        title="Social Butterfly",
        description="Participate in 10 group study sessions",
        icon="🦋",
        category=AchievementCategory.SOCIAL,
        tier=AchievementTier.SILVER,
        xp_reward=400,
        requirement=SocialActivityRequirement(target=10),
    ),
    # Special
    Achievement(
        id="early_bird",
        title="Early Bird",
        description="Complete a study session before 8 AM",
        icon="🌅",
        category=AchievementCategory.SPECIAL,
        tier=AchievementTier.BRONZE,
        xp_reward=100,
        requirement=MilestoneRequirement(target=1),
    ),
    Achievement(
        id="night_owl",
        title="Night Owl",
        description="Complete a study session after 10 PM",
        icon="🦉",
        category=AchievementCategory.SPECIAL,
        tier=AchievementTier.BRONZE,
        xp_reward=100,
        requirement=MilestoneRequirement(target=1),
    ),
    Achievement(
        id="weekend_warrior",
        title="Weekend Warrior",
        description="Study on 4 consecutive weekends",
        icon="⚔️",
        category=AchievementCategory.SPECIAL,
        tier=AchievementTier.SILVER,
        xp_reward=300,
        requirement=MilestoneRequirement(target=4, timeframe=Timeframe.WEEKLY),
    ),
)


def validate_catalog(achievements: Iterable[Achievement]) -> tuple[Achievement, ...]:
    """Return the catalog as a tuple, rejecting duplicate ids."""
    catalog = tuple(achievements)
    seen: set[str] = set()
    for achievement in catalog:
        if achievement.id in seen:
            raise InvalidArgumentError(
                f"Duplicate achievement id: {achievement.id}",
                details={"achievement_id": achievement.id},
            )
        seen.add(achievement.id)
    return catalog

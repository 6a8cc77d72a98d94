"""Tests for the achievement engine."""

from datetime import datetime

import pytest

from mastery_progression.achievements.catalog import DEFAULT_ACHIEVEMENTS, validate_catalog
from mastery_progression.achievements.engine import AchievementEngine
from mastery_progression.errors import InvalidArgumentError
from mastery_progression.models.achievement import (
    Achievement,
    AchievementCategory,
    AchievementTier,
    MilestoneRequirement,
    PracticeTestsRequirement,
    UserStats,
)

NOW = datetime(2026, 10, 14, 12, 0)


@pytest.fixture
def engine():
    return AchievementEngine()


class TestEvaluate:
    def test_first_practice_test(self, engine):
        stats = UserStats(practice_tests_completed=1, study_hours=0.5)
        result = engine.evaluate(stats, set(), now=NOW)

        assert result.newly_unlocked_ids == ["test_taker"]
        assert result.newly_unlocked[0].unlocked_at == NOW
        assert result.pending_xp == 100

        progress = {p.achievement_id: p.progress_percent for p in result.progress}
        assert progress == {
            "first_study_session": pytest.approx(50.0),
            "practice_pro": pytest.approx(10.0),
            "test_master": pytest.approx(4.0),
            "century_scholar": pytest.approx(0.5),
        }
        assert [p.achievement_id for p in result.progress] == [
            "first_study_session",
            "practice_pro",
            "test_master",
            "century_scholar",
        ]

    def test_idempotent(self, engine):
        stats = UserStats(study_hours=3, study_streak_days=8, social_activity_count=2)
        first = engine.evaluate(stats, {"team_player"}, now=NOW)
        second = engine.evaluate(stats, {"team_player"}, now=NOW)
        assert first == second
        assert first.newly_unlocked_ids == ["first_study_session", "week_warrior"]

    def test_already_unlocked_skipped(self, engine):
        stats = UserStats(practice_tests_completed=1)
        result = engine.evaluate(stats, ["test_taker"], now=NOW)
        assert result.newly_unlocked == []
        assert "test_taker" not in {p.achievement_id for p in result.progress}

    def test_no_stats_no_progress(self, engine):
        result = engine.evaluate(UserStats(), set(), now=NOW)
        assert result.newly_unlocked == []
        assert result.progress == []

    def test_negative_improvement_not_surfaced(self, engine):
        result = engine.evaluate(UserStats(score_improvement=-40), set(), now=NOW)
        assert result.progress == []

    def test_unlocked_records(self, engine):
        result = engine.evaluate(UserStats(social_activity_count=1), set(), now=NOW)
        record = result.newly_unlocked[0].to_record()
        assert record.achievement_id == "team_player"
        assert record.unlocked_at == NOW


class TestMilestones:
    def test_mapped_counter(self, engine):
        stats = UserStats(special_milestones={"early_sessions": 1, "weekend_streaks": 2})
        result = engine.evaluate(stats, set(), now=NOW)
        assert result.newly_unlocked_ids == ["early_bird"]
        progress = {p.achievement_id: p.progress_percent for p in result.progress}
        assert progress["weekend_warrior"] == pytest.approx(50.0)

    def test_explicit_counter_key(self):
        achievement = Achievement(
            id="marathon",
            title="Marathon",
            category=AchievementCategory.SPECIAL,
            tier=AchievementTier.GOLD,
            xp_reward=250,
            requirement=MilestoneRequirement(target=3, counter_key="long_sessions"),
        )
        engine = AchievementEngine([achievement])
        result = engine.evaluate(
            UserStats(special_milestones={"long_sessions": 3}), set(), now=NOW
        )
        assert result.newly_unlocked_ids == ["marathon"]

    def test_falls_back_to_achievement_id(self):
        achievement = Achievement(
            id="streak_saver",
            title="Streak Saver",
            category=AchievementCategory.SPECIAL,
            tier=AchievementTier.BRONZE,
            xp_reward=10,
            requirement=MilestoneRequirement(target=2),
        )
        engine = AchievementEngine([achievement], milestone_counters={})
        stats = UserStats(special_milestones={"streak_saver": 1})
        assert engine.current_value(achievement, stats) == 1


class TestProgress:
    def test_clamped_when_exceeded(self, engine):
        achievement = engine.get_achievement("test_taker")
        assert engine.progress_for(achievement, UserStats(practice_tests_completed=30)) == 100.0

    def test_clamped_at_zero(self, engine):
        achievement = engine.get_achievement("first_improvement")
        assert engine.progress_for(achievement, UserStats(score_improvement=-10)) == 0.0


class TestCatalog:
    def test_lookup(self, engine):
        assert engine.get_achievement("night_owl").tier == AchievementTier.BRONZE
        assert engine.get_achievement("missing") is None

    def test_by_category(self, engine):
        social = engine.by_category(AchievementCategory.SOCIAL)
        assert [a.id for a in social] == ["team_player", "social_butterfly"]

    def test_total_possible_xp(self, engine):
        assert engine.total_possible_xp() == 8500

    def test_duplicate_ids_rejected(self):
        with pytest.raises(InvalidArgumentError):
            validate_catalog([DEFAULT_ACHIEVEMENTS[0], DEFAULT_ACHIEVEMENTS[0]])

    def test_requirement_parsed_from_dict(self):
        achievement = Achievement.model_validate(
            {
                "id": "x",
                "title": "X",
                "category": "progress",
                "tier": "silver",
                "xp_reward": 10,
                "requirement": {"type": "practice_tests", "target": 5},
            }
        )
        assert isinstance(achievement.requirement, PracticeTestsRequirement)

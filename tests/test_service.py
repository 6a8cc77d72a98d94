"""Tests for the orchestration service."""

import asyncio
import gc
from datetime import datetime, timezone

import pytest

from mastery_progression.config import Settings
from mastery_progression.errors import InvalidArgumentError
from mastery_progression.models.achievement import UserStats
from mastery_progression.models.activity import ActivityEvent, ActivityKind
from mastery_progression.models.question import Difficulty, Question, SelectionFilters, Subject
from mastery_progression.service import ProgressionService
from mastery_progression.storage.mastery_store import JsonMasteryStore

NOW = datetime(2026, 10, 14, 12, 0)


@pytest.fixture
def service(tmp_path):
    return ProgressionService(
        settings=Settings(data_dir=tmp_path),
        mastery_store=JsonMasteryStore(tmp_path / "mastery"),
    )


def _practice_test() -> ActivityEvent:
    return ActivityEvent(
        kind=ActivityKind.PRACTICE_TEST,
        base_activity_key="PRACTICE_TEST_COMPLETE",
        occurred_at=datetime(2026, 10, 14, 9, 0),
    )


def _answer() -> ActivityEvent:
    return ActivityEvent(
        kind=ActivityKind.QUESTION_ANSWERED,
        base_activity_key="QUESTION_CORRECT_MEDIUM",
        occurred_at=datetime(2026, 10, 14, 9, 0),
    )


async def test_record_activity_credits_achievement(service):
    stats = UserStats(practice_tests_completed=1)
    outcome = await service.record_activity("u1", _practice_test(), stats, now=NOW)

    assert outcome.award.final_xp == 200
    assert outcome.achievements.newly_unlocked_ids == ["test_taker"]
    # 200 for the test plus the 100 XP reward
    assert outcome.progress.total_xp == 300
    assert outcome.progress.current_level == 2
    assert outcome.level_up.leveled_up is True
    assert outcome.level_up.from_level == 1


async def test_reward_not_credited_twice(service):
    stats = UserStats(practice_tests_completed=1)
    await service.record_activity("u1", _practice_test(), stats, now=NOW)
    outcome = await service.record_activity("u1", _answer(), stats, now=NOW)

    assert outcome.achievements.newly_unlocked == []
    assert outcome.progress.total_xp == 310
    assert outcome.level_up.leveled_up is False


async def test_without_stats_skips_achievements(service):
    outcome = await service.record_activity("u1", _answer(), now=NOW)
    assert outcome.achievements is None
    assert outcome.progress.total_xp == 10


async def test_concurrent_awards_not_lost(service):
    await asyncio.gather(*(service.record_activity("u1", _answer(), now=NOW) for _ in range(10)))
    await asyncio.gather(*(service.record_activity("u2", _answer(), now=NOW) for _ in range(3)))

    assert (await service.get_progress("u1", now=NOW)).total_xp == 100
    assert (await service.get_progress("u2", now=NOW)).total_xp == 30


def test_next_questions_reads_mastery(service):
    service.mastery_store.set("u1", Subject.MATH, "algebra", 0.8)
    pool = [
        Question(id="e", subject=Subject.MATH, skill="algebra", difficulty=Difficulty.EASY),
        Question(id="h", subject=Subject.MATH, skill="algebra", difficulty=Difficulty.HARD),
    ]
    selected = service.next_questions("u1", pool, 1)
    assert [q.id for q in selected] == ["h"]


async def test_stats_read_from_store(tmp_path):
    class StatsStore:
        def get(self, user_id):
            return UserStats(social_activity_count=1)

    service = ProgressionService(settings=Settings(data_dir=tmp_path), stats_store=StatsStore())
    outcome = await service.record_activity("u1", _answer(), now=NOW)
    assert outcome.achievements.newly_unlocked_ids == ["team_player"]


def test_next_questions_fetches_pool(tmp_path):
    fetched = []

    class Pool:
        def fetch(self, filters):
            fetched.append(filters)
            return [Question(id="r", subject=Subject.READING, skill="tone", difficulty="medium")]

    service = ProgressionService(settings=Settings(data_dir=tmp_path), question_pool=Pool())
    filters = SelectionFilters(subject=Subject.READING)
    assert [q.id for q in service.next_questions("u1", None, 5, filters)] == ["r"]
    assert fetched == [filters]


def test_next_questions_without_pool(tmp_path):
    service = ProgressionService(settings=Settings(data_dir=tmp_path))
    with pytest.raises(InvalidArgumentError):
        service.next_questions("u1", None, 5)


async def test_idle_user_locks_released(service):
    await asyncio.gather(
        *(service.record_activity(f"user{i}", _answer(), now=NOW) for i in range(20))
    )
    gc.collect()
    assert len(service._user_locks) == 0


async def test_lock_shared_while_held(service):
    lock = service._lock_for("u1")
    async with lock:
        assert service._lock_for("u1") is lock


async def test_aware_now_accepted(service):
    now = datetime(2026, 10, 14, 12, 0, tzinfo=timezone.utc)
    outcome = await service.record_activity("u1", _practice_test(), UserStats(), now=now)
    assert outcome.progress.total_xp == 200
    assert (await service.get_progress("u1", now=now)).total_xp == 200
    assert (await service.get_progress("u1")).total_xp == 200


def test_default_mastery_store_uses_settings_dir(tmp_path):
    settings = Settings(data_dir=tmp_path)
    service = ProgressionService(settings=settings)
    assert isinstance(service.mastery_store, JsonMasteryStore)

    service.mastery_store.set("u1", Subject.MATH, "algebra", 0.8)
    assert (settings.mastery_dir / "u1.json").exists()
    pool = [
        Question(id="e", subject=Subject.MATH, skill="algebra", difficulty=Difficulty.EASY),
        Question(id="h", subject=Subject.MATH, skill="algebra", difficulty=Difficulty.HARD),
    ]
    assert [q.id for q in service.next_questions("u1", pool, 1)] == ["h"]

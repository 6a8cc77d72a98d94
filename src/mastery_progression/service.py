"""Caller-side orchestration: persistence plus per-user serialization."""

import asyncio
import weakref
from collections.abc import Iterable
from datetime import datetime
from pathlib import Path

import structlog
from pydantic import BaseModel

from mastery_progression.achievements.engine import AchievementEngine
from mastery_progression.config import Settings, get_settings
from mastery_progression.errors import InvalidArgumentError
from mastery_progression.models.achievement import AchievementEvaluation, UserStats
from mastery_progression.models.activity import ActivityEvent, ActivityKind, XPAward
from mastery_progression.models.progress import LevelUp, UserProgress
from mastery_progression.models.question import Question, SelectionFilters
from mastery_progression.progression.aggregator import ProgressAggregator, as_local_naive
from mastery_progression.progression.experience import ExperienceCalculator
from mastery_progression.protocols import QuestionPool, SkillMasteryStore, UserStatsStore
from mastery_progression.selection.mastery import MasterySnapshot
from mastery_progression.selection.selector import QuestionSelector
from mastery_progression.storage.mastery_store import JsonMasteryStore
from mastery_progression.storage.progress_ledger import (
    ProgressRecord,
    load_record,
    update_record,
)

logger = structlog.get_logger()


class ActivityOutcome(BaseModel):
    """Everything that changed for a user after one activity."""

    award: XPAward
    progress: UserProgress
    level_up: LevelUp
    achievements: AchievementEvaluation | None = None


class ProgressionService:
    """Records activity for users and serves adaptive question batches.

    Read-modify-write of one user's ledger runs under that user's
    ``asyncio.Lock`` and an exclusive file lock, so concurrent awards for
    the same user never overwrite each other. Different users proceed in
    parallel.

    Args:
        settings: Engine settings; defaults to the cached singleton.
        progress_dir: Ledger directory; defaults to ``settings.progress_dir``.
        calculator: XP calculator.
        engine: Achievement engine.
        mastery_store: Source of mastery probabilities for selection;
            defaults to a JSON store under ``settings.mastery_dir``.
        stats_store: Source of user statistics when none are passed in.
        question_pool: Source of candidate questions when no pool is passed in.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        progress_dir: Path | None = None,
        calculator: ExperienceCalculator | None = None,
        engine: AchievementEngine | None = None,
        mastery_store: SkillMasteryStore | None = None,
        stats_store: UserStatsStore | None = None,
        question_pool: QuestionPool | None = None,
    ):
        self.settings = settings or get_settings()
        self.progress_dir = progress_dir or self.settings.progress_dir
        self.calculator = calculator or ExperienceCalculator()
        self.aggregator = ProgressAggregator(self.calculator, self.settings.level_curve())
        self.engine = engine or AchievementEngine()
        self.selector = QuestionSelector(self.settings.selector_tuning())
        self.mastery_store = mastery_store or JsonMasteryStore(self.settings.mastery_dir)
        self.stats_store = stats_store
        self.question_pool = question_pool
        # Entries vanish once no coroutine holds or awaits the lock
        self._user_locks: weakref.WeakValueDictionary[str, asyncio.Lock] = (
            weakref.WeakValueDictionary()
        )

    def _lock_for(self, user_id: str) -> asyncio.Lock:
        return self._user_locks.setdefault(user_id, asyncio.Lock())

    async def record_activity(
        self,
        user_id: str,
        event: ActivityEvent,
        stats: UserStats | None = None,
        now: datetime | None = None,
    ) -> ActivityOutcome:
        """Score an activity, persist it and check achievements.

        Args:
            user_id: Learner the activity belongs to.
            event: Activity to score.
            stats: Current user statistics; read from the stats store when
                omitted. Achievements are skipped if neither is available.
            now: Reference time for unlocks and XP windows.

        Returns:
            The award, the updated progress, level-up info and any
            achievement evaluation.
        """
        now = as_local_naive(now or datetime.now())
        if stats is None and self.stats_store is not None:
            stats = self.stats_store.get(user_id)
        award = self.calculator.compute_xp(event)
        evaluation: AchievementEvaluation | None = None
        before_xp = 0

        def mutate(record: ProgressRecord) -> None:
            nonlocal evaluation, before_xp
            before_xp = record.total_xp
            record.awards.append(award)
            if stats is None:
                return
            evaluation = self.engine.evaluate(stats, record.unlocked_ids, now=now)
            for unlock in evaluation.newly_unlocked:
                record.unlocked.append(unlock.to_record())
                record.awards.append(
                    XPAward(
                        kind=ActivityKind.ACHIEVEMENT,
                        base_xp=unlock.xp_reward,
                        final_xp=unlock.xp_reward,
                        breakdown=f"Achievement unlocked: {unlock.achievement.title}",
                        occurred_at=now,
                    )
                )

        async with self._lock_for(user_id):
            try:
                record = await asyncio.to_thread(
                    update_record, self.progress_dir, user_id, mutate
                )
            except OSError as e:
                logger.error("progress_update_failed", user_id=user_id, error=str(e))
                raise

        progress = self.aggregator.fold_awards(record.awards, now=now, user_id=user_id)
        level_up = self.aggregator.check_level_up(before_xp, progress.total_xp)

        logger.info(
            "activity_recorded",
            user_id=user_id,
            final_xp=award.final_xp,
            total_xp=progress.total_xp,
            level=progress.current_level,
        )
        return ActivityOutcome(
            award=award, progress=progress, level_up=level_up, achievements=evaluation
        )

    async def get_progress(self, user_id: str, now: datetime | None = None) -> UserProgress:
        record = await asyncio.to_thread(load_record, self.progress_dir, user_id)
        return self.aggregator.fold_awards(record.awards, now=now, user_id=user_id)

    def next_questions(
        self,
        user_id: str,
        pool: Iterable[Question] | None,
        count: int,
        filters: SelectionFilters | None = None,
    ) -> list[Question]:
        """Select an adaptive batch, reading mastery for the pool's skills.

        The pool is fetched from the question pool with ``filters`` when
        not given. If mastery cannot be read the batch is still served,
        ranked as if every skill were at the default mastery.
        """
        if pool is None:
            if self.question_pool is None:
                raise InvalidArgumentError("No question pool given or configured")
            pool = self.question_pool.fetch(filters or SelectionFilters())
        pool = list(pool)
        pairs = {(q.subject, q.skill) for q in pool}
        try:
            snapshot = MasterySnapshot.from_store(self.mastery_store, user_id, pairs)
        except (OSError, ValueError) as e:
            logger.warning("mastery_read_failed", user_id=user_id, error=str(e))
            snapshot = MasterySnapshot()
        return self.selector.select_questions(pool, snapshot, count, filters)

"""Adaptive question selection based on skill mastery."""

from collections.abc import Iterable

import structlog
from pydantic import BaseModel, ConfigDict, Field

from mastery_progression.errors import InvalidArgumentError
from mastery_progression.models.question import (
    Difficulty,
    Question,
    ScoredQuestion,
    SelectionFilters,
)
from mastery_progression.selection.mastery import MasterySnapshot

logger = structlog.get_logger()


class SelectorTuning(BaseModel):
    """Zone of Proximal Development scoring parameters."""

    model_config = ConfigDict(frozen=True)

    # Target challenge sits this far above current mastery
    zpd_offset: float = 0.2
    max_optimal_difficulty: float = 0.9
    difficulty_midpoints: dict[Difficulty, float] = Field(
        default_factory=lambda: {
            Difficulty.EASY: 0.3,
            Difficulty.MEDIUM: 0.6,
            Difficulty.HARD: 0.9,
        }
    )
    # Usage boost reaches 0 at this many uses
    usage_saturation: int = Field(default=100, gt=0)
    remediation_threshold: float = 0.6
    remediation_boost: float = 1.2
    max_batch_size: int = Field(default=50, gt=0)


class QuestionSelector:
    """Scores and ranks a candidate pool for one learner.

    Selection is deterministic: ties on score break by ascending
    ``times_used`` and then by ``id``.

    Args:
        tuning: Scoring parameters.
    """

    def __init__(self, tuning: SelectorTuning | None = None):
        self.tuning = tuning or SelectorTuning()

    def score(self, question: Question, mastery: MasterySnapshot) -> ScoredQuestion:
        """Score one question against the learner's mastery of its skill."""
        t = self.tuning
        level = mastery.get(question.subject, question.skill)
        optimal = min(t.max_optimal_difficulty, level + t.zpd_offset)
        difficulty = t.difficulty_midpoints[question.difficulty]
        difficulty_score = 1 - abs(difficulty - optimal)
        usage_boost = max(0.0, 1 - question.times_used / t.usage_saturation)
        mastery_boost = t.remediation_boost if level < t.remediation_threshold else 1.0

        return ScoredQuestion(
            question=question,
            mastery=level,
            optimal_difficulty=optimal,
            difficulty_score=difficulty_score,
            usage_boost=usage_boost,
            mastery_boost=mastery_boost,
            score=difficulty_score * usage_boost * mastery_boost,
        )

    def rank(
        self,
        pool: Iterable[Question],
        mastery: MasterySnapshot,
        filters: SelectionFilters | None = None,
    ) -> list[ScoredQuestion]:
        """Filter, de-duplicate and score the pool, best first."""
        filters = filters or SelectionFilters()
        seen: set[str] = set()
        candidates: list[Question] = []
        for question in pool:
            if question.id in seen or not filters.matches(question):
                continue
            seen.add(question.id)
            candidates.append(question)

        scored = [self.score(q, mastery) for q in candidates]
        scored.sort(key=lambda s: (-s.score, s.question.times_used, s.question.id))
        return scored

    def select_questions(
        self,
        pool: Iterable[Question],
        mastery: MasterySnapshot,
        requested_count: int,
        filters: SelectionFilters | None = None,
    ) -> list[Question]:
        """Pick the best-fitting batch of questions.

        Args:
            pool: Candidate questions, already fetched by the caller.
            mastery: Learner's mastery snapshot.
            requested_count: Batch size to fill.
            filters: Hard filters applied before scoring.

        Returns:
            At most ``requested_count`` distinct questions; empty when
            nothing survives the filters.

        Raises:
            InvalidArgumentError: If ``requested_count`` is not positive or
                exceeds the configured maximum batch size.
        """
        if requested_count <= 0:
            raise InvalidArgumentError(
                f"Requested count must be positive, got {requested_count}",
                details={"requested_count": requested_count},
            )
        if requested_count > self.tuning.max_batch_size:
            raise InvalidArgumentError(
                f"Maximum {self.tuning.max_batch_size} questions per request",
                details={"requested_count": requested_count},
            )

        ranked = self.rank(pool, mastery, filters)
        selected = [s.question for s in ranked[:requested_count]]

        logger.info(
            "questions_selected",
            candidates=len(ranked),
            requested=requested_count,
            returned=len(selected),
        )
        return selected

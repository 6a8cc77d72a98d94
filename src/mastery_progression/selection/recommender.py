"""Follow-up recommendations after a question is answered."""

from collections.abc import Iterable

import structlog

from mastery_progression.errors import InvalidArgumentError
from mastery_progression.models.question import (
    Question,
    Recommendation,
    RecommendationType,
)

logger = structlog.get_logger()


class FollowUpRecommender:
    """Suggests remediation after a miss and a harder step after a fast hit.

    Args:
        remediation_count: Questions suggested after an incorrect answer.
        challenge_count: Questions suggested after a fast correct answer.
        fast_ratio: Share of the expected duration under which a correct
            answer counts as fast.
    """

    def __init__(
        self,
        remediation_count: int = 3,
        challenge_count: int = 2,
        fast_ratio: float = 0.8,
    ):
        self.remediation_count = remediation_count
        self.challenge_count = challenge_count
        self.fast_ratio = fast_ratio

    def recommend_follow_up(
        self,
        answered: Question,
        was_correct: bool,
        response_time_seconds: float,
        pool: Iterable[Question],
    ) -> list[Recommendation]:
        """Recommend next questions for the skill just practiced.

        Args:
            answered: The question the learner answered.
            was_correct: Whether the answer was correct.
            response_time_seconds: Time taken to answer.
            pool: Candidate questions to recommend from.

        Returns:
            Remediation or challenge recommendations; empty when the answer
            was correct but not fast.
        """
        if response_time_seconds < 0:
            raise InvalidArgumentError(
                f"Response time must be non-negative, got {response_time_seconds}",
                details={"response_time_seconds": response_time_seconds},
            )

        seen: set[str] = {answered.id}
        same_skill: list[Question] = []
        for q in pool:
            if q.id in seen or q.subject != answered.subject or q.skill != answered.skill:
                continue
            seen.add(q.id)
            same_skill.append(q)
        same_skill.sort(key=lambda q: (q.times_used, q.id))

        if not was_correct:
            recs = [
                Recommendation(
                    question=q,
                    type=RecommendationType.REMEDIATION,
                    reason="Practice similar concepts",
                )
                for q in same_skill[: self.remediation_count]
            ]
        elif response_time_seconds < answered.expected_duration_seconds * self.fast_ratio:
            target = answered.difficulty.harder()
            harder = [q for q in same_skill if q.difficulty == target]
            recs = [
                Recommendation(
                    question=q,
                    type=RecommendationType.CHALLENGE,
                    reason="Ready for increased difficulty",
                )
                for q in harder[: self.challenge_count]
            ]
        else:
            recs = []

        logger.debug(
            "follow_up_recommended",
            question_id=answered.id,
            was_correct=was_correct,
            count=len(recs),
        )
        return recs

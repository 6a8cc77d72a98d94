"""Interfaces of the external collaborators the engine reads through."""

from typing import Protocol

from mastery_progression.models.achievement import UserStats
from mastery_progression.models.question import (
    Difficulty,
    Question,
    SelectionFilters,
    Subject,
)


class SkillMasteryStore(Protocol):
    def get(self, user_id: str, subject: Subject, skill: str) -> float:
        """Mastery probability in [0, 1]; 0.5 when nothing is recorded."""
        ...


class QuestionPool(Protocol):
    def fetch(self, filters: SelectionFilters) -> list[Question]: ...


class UserStatsStore(Protocol):
    def get(self, user_id: str) -> UserStats: ...


class QuestionGenerator(Protocol):
    """Produces brand-new questions on demand. Not implemented here."""

    async def generate(
        self, subject: Subject, skill: str, difficulty: Difficulty, count: int
    ) -> list[Question]: ...

"""Read-only view of a learner's skill mastery."""

from collections.abc import Iterable

from mastery_progression.models.question import SkillMastery, Subject
from mastery_progression.protocols import SkillMasteryStore

DEFAULT_MASTERY = 0.5


class MasterySnapshot:
    """Mastery probabilities keyed by (subject, skill).

    Missing pairs resolve to ``default`` ("unknown, assume average").
    """

    def __init__(
        self,
        mastery: dict[tuple[Subject, str], float] | None = None,
        default: float = DEFAULT_MASTERY,
    ):
        self._mastery = dict(mastery or {})
        self.default = default

    @classmethod
    def from_records(cls, records: Iterable[SkillMastery]) -> "MasterySnapshot":
        return cls({(r.subject, r.skill): r.mastery_probability for r in records})

    @classmethod
    def from_store(
        cls,
        store: SkillMasteryStore,
        user_id: str,
        pairs: Iterable[tuple[Subject, str]],
    ) -> "MasterySnapshot":
        """Read the given (subject, skill) pairs for one user."""
        return cls({(subject, skill): store.get(user_id, subject, skill) for subject, skill in pairs})

    def get(self, subject: Subject, skill: str) -> float:
        return self._mastery.get((subject, skill), self.default)

    def __len__(self) -> int:
        return len(self._mastery)

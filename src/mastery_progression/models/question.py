"""Question and skill mastery models."""

from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field


class Subject(StrEnum):
    """Test sections a question belongs to."""

    MATH = "math"
    READING = "reading"
    WRITING = "writing"


class Difficulty(StrEnum):
    """Authored difficulty tiers."""

    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"

    def harder(self) -> "Difficulty":
        """Next tier up; hard stays hard."""
        if self is Difficulty.EASY:
            return Difficulty.MEDIUM
        return Difficulty.HARD


class QuestionType(StrEnum):
    MULTIPLE_CHOICE = "multiple_choice"
    NUMERIC_RESPONSE = "numeric_response"
    TEXT_ANALYSIS = "text_analysis"


class Question(BaseModel):
    """An authored practice question with static metadata."""

    model_config = ConfigDict(frozen=True)

    id: str
    subject: Subject
    skill: str
    difficulty: Difficulty
    expected_duration_seconds: float = Field(default=90.0, gt=0)
    times_used: int = Field(default=0, ge=0)
    type: QuestionType = QuestionType.MULTIPLE_CHOICE


class SkillMastery(BaseModel):
    """Mastery estimate for one (subject, skill) pair."""

    subject: Subject
    skill: str
    mastery_probability: float = Field(default=0.5, ge=0.0, le=1.0)


class SelectionFilters(BaseModel):
    """Hard filters applied to a pool before scoring."""

    subject: Subject | None = None
    skill: str | None = None
    difficulty: Difficulty | None = None
    exclude_ids: frozenset[str] = Field(default_factory=frozenset)

    def matches(self, question: Question) -> bool:
        if self.subject is not None and question.subject != self.subject:
            return False
        if self.skill is not None and question.skill != self.skill:
            return False
        if self.difficulty is not None and question.difficulty != self.difficulty:
            return False
        return question.id not in self.exclude_ids


class ScoredQuestion(BaseModel):
    """A question with the adaptive score it was ranked by."""

    question: Question
    mastery: float
    optimal_difficulty: float
    difficulty_score: float
    usage_boost: float
    mastery_boost: float
    score: float


class RecommendationType(StrEnum):
    REMEDIATION = "remediation"
    CHALLENGE = "challenge"


class Recommendation(BaseModel):
    """A follow-up question suggested after an answer."""

    question: Question
    type: RecommendationType
    reason: str

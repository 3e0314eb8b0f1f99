"""AI judge verdict and relevance analysis data models."""

from dataclasses import dataclass, field

from src.models.validation import PASS_THRESHOLD


@dataclass
class SemanticVerdict:
    """Judge decision on whether a reason and a citation express the same idea."""

    is_valid: bool
    similarity_score: float
    match_percentage: float
    ai_confidence: int
    explanation: str = ""
    is_fallback: bool = False

    def __post_init__(self):
        if not 0.0 <= self.similarity_score <= 1.0:
            raise ValueError(f"similarity_score must be between 0.0 and 1.0, got {self.similarity_score}")
        if not 0.0 <= self.match_percentage <= 100.0:
            raise ValueError(f"match_percentage must be between 0 and 100, got {self.match_percentage}")

    @classmethod
    def fallback(cls, reason: str) -> "SemanticVerdict":
        return cls(
            is_valid=False,
            similarity_score=0.0,
            match_percentage=0.0,
            ai_confidence=0,
            explanation=f"AI validation unavailable: {reason}",
            is_fallback=True,
        )


@dataclass
class SectionScore:
    section: str
    score: int
    feedback: str = ""


@dataclass
class BookAnalysis:
    """Judge scores for one recommended book."""

    book_title: str
    overall_score: int
    section_scores: list[SectionScore] = field(default_factory=list)
    detailed_feedback: list[str] = field(default_factory=list)
    improvement_suggestions: list[str] = field(default_factory=list)


@dataclass
class RelevanceAnalysis:
    """Whole-response plus per-book relevance judgment for one query."""

    query: str
    overall_score: int
    book_analyses: list[BookAnalysis] = field(default_factory=list)
    summary_feedback: list[str] = field(default_factory=list)
    improvement_suggestions: list[str] = field(default_factory=list)
    is_fallback: bool = False

    @property
    def passed(self) -> bool:
        return not self.is_fallback and self.overall_score >= PASS_THRESHOLD

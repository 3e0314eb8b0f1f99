"""Validation result data models."""

from dataclasses import dataclass, field
from datetime import datetime

from src.models.enums import ValidationStatus

# Pass-rate threshold shared by citation, AI relevance and database checks
PASS_THRESHOLD = 80.0


@dataclass
class FieldValidationResult:
    """Outcome of comparing one field of an extracted book to a reference."""

    field: str
    extracted_value: object
    expected_value: object
    is_valid: bool
    message: str = ""
    match_percentage: float | None = None
    ai_validated: bool = False
    ai_confidence: int | None = None

    def __post_init__(self):
        if self.match_percentage is not None and not 0.0 <= self.match_percentage <= 100.0:
            raise ValueError(f"match_percentage must be between 0 and 100, got {self.match_percentage}")


@dataclass
class CitationValidationResult:
    """Outcome of matching one reason against its citation text."""

    book_title: str
    reason_number: int
    reason_text: str
    citation_text: str
    is_valid: bool = False
    similarity_score: float = 0.0
    match_percentage: float = 0.0
    errors: list[str] = field(default_factory=list)
    ai_validated: bool = False
    ai_confidence: int | None = None
    ai_fallback: bool = False


@dataclass
class AggregateReport:
    """Pass/fail rollup across all records of one validation run."""

    total_checked: int = 0
    passed: int = 0
    fallbacks: int = 0
    threshold: float = PASS_THRESHOLD

    @classmethod
    def from_outcomes(cls, outcomes, fallbacks: int = 0, threshold: float = PASS_THRESHOLD) -> "AggregateReport":
        outcomes = list(outcomes)
        return cls(
            total_checked=len(outcomes),
            passed=sum(1 for ok in outcomes if ok),
            fallbacks=fallbacks,
            threshold=threshold,
        )

    @property
    def failed(self) -> int:
        return self.total_checked - self.passed

    @property
    def pass_rate(self) -> float:
        if self.total_checked == 0:
            return 0.0
        return self.passed / self.total_checked * 100

    @property
    def status(self) -> ValidationStatus:
        return ValidationStatus.PASS if self.pass_rate >= self.threshold else ValidationStatus.FAIL

    def summary(self) -> str:
        return f"{self.passed}/{self.total_checked} passed ({self.pass_rate:.1f}%)"


@dataclass
class BookValidationResult:
    """All field checks for one extracted book against its reference row."""

    index: int
    expected_title: str
    fields: list[FieldValidationResult] = field(default_factory=list)
    found: bool = True

    @property
    def passed(self) -> bool:
        return self.found and all(f.is_valid for f in self.fields)

    @property
    def failed_fields(self) -> list[str]:
        return [f.field for f in self.fields if not f.is_valid]


@dataclass
class SpreadsheetReport:
    """Positional comparison of extracted books against the reference spreadsheet."""

    reference_path: str
    books: list[BookValidationResult] = field(default_factory=list)

    @property
    def aggregate(self) -> AggregateReport:
        return AggregateReport.from_outcomes(b.passed for b in self.books)

    @property
    def all_passed(self) -> bool:
        return all(b.passed for b in self.books)


@dataclass
class DatabaseMatchReport:
    """Title existence check of extracted books against the book database."""

    database_path: str
    database_size: int
    found: list[tuple[str, str]] = field(default_factory=list)  # (extracted, matched db title)
    missing: list[str] = field(default_factory=list)

    @property
    def aggregate(self) -> AggregateReport:
        return AggregateReport(total_checked=len(self.found) + len(self.missing), passed=len(self.found))


@dataclass
class CitationReport:
    """Reason/citation match results grouped by book title."""

    results: dict[str, list[CitationValidationResult]] = field(default_factory=dict)
    created_at: datetime = field(default_factory=datetime.now)

    def all_results(self) -> list[CitationValidationResult]:
        return [r for book_results in self.results.values() for r in book_results]

    @property
    def ai_validated(self) -> int:
        return sum(1 for r in self.all_results() if r.ai_validated)

    @property
    def aggregate(self) -> AggregateReport:
        results = self.all_results()
        return AggregateReport.from_outcomes(
            (r.is_valid for r in results),
            fallbacks=sum(1 for r in results if r.ai_fallback),
        )


@dataclass
class CardReport:
    """Recommendation-panel cards checked against the books in the chat response.

    Each result's ``expected_title`` is the card title; ``found`` is False
    when no chat book carries that title.
    """

    cards: list[BookValidationResult] = field(default_factory=list)

    @property
    def aggregate(self) -> AggregateReport:
        return AggregateReport.from_outcomes(c.passed for c in self.cards)

    @property
    def all_passed(self) -> bool:
        return bool(self.cards) and all(c.passed for c in self.cards)

"""Book recommendation and citation data models."""

from dataclasses import dataclass, field

from src.models.enums import CitationType

NO_GAP = "No gap mentioned"
NO_CITATION = "No citation found"
FIELD_SEPARATOR = " | "


@dataclass(frozen=True)
class BookRecord:
    """One recommended book extracted from a BookGenie response."""

    title: str
    author: str = ""
    publishing_date: str = ""
    imprint: str = ""
    relevance_score: int = 0
    gap: str = NO_GAP
    reasons: tuple[str, ...] = ()
    highlighted_texts: tuple[str, ...] = ()
    question: str = ""

    def __post_init__(self):
        if not self.title or not self.title.strip():
            raise ValueError("title must not be empty")
        if not 0 <= self.relevance_score <= 100:
            raise ValueError(f"relevance_score must be between 0 and 100, got {self.relevance_score}")
        # Accept lists from callers but store immutable tuples
        object.__setattr__(self, "reasons", tuple(self.reasons))
        object.__setattr__(self, "highlighted_texts", tuple(self.highlighted_texts))

    @property
    def why_match(self) -> str:
        return FIELD_SEPARATOR.join(self.reasons)

    @property
    def has_gap(self) -> bool:
        return bool(self.gap.strip()) and self.gap != NO_GAP


@dataclass(frozen=True)
class CitationRecord:
    """A citation revealed for one reason of one book."""

    book_title: str
    reason_index: int
    citation_text: str
    citation_type: CitationType = field(default=CitationType.METADATA)

    def __post_init__(self):
        if not isinstance(self.citation_type, CitationType):
            object.__setattr__(self, "citation_type", CitationType(self.citation_type))
        if self.reason_index < 0:
            raise ValueError("reason_index must be >= 0")
        if not self.citation_text:
            raise ValueError("citation_text must not be empty")

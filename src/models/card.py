"""Book card data model for the recommendation panel beside the chat."""

from dataclasses import dataclass

from src.models.enums import CitationType


@dataclass(frozen=True)
class BookCard:
    """One book card as rendered in the recommendation panel.

    ``relevance_score`` is None when the card does not show a score.
    ``reasons``, ``highlighted_texts`` and ``citation_types`` are
    index-aligned.
    """

    title: str
    authors: str = ""
    imprint: str = ""
    relevance_score: int | None = None
    reasons: tuple[str, ...] = ()
    highlighted_texts: tuple[str, ...] = ()
    citation_types: tuple[CitationType, ...] = ()

    def __post_init__(self):
        if not self.title or not self.title.strip():
            raise ValueError("title must not be empty")
        if self.relevance_score is not None and not 0 <= self.relevance_score <= 100:
            raise ValueError(f"relevance_score must be between 0 and 100, got {self.relevance_score}")
        object.__setattr__(self, "reasons", tuple(self.reasons))
        object.__setattr__(self, "highlighted_texts", tuple(self.highlighted_texts))
        object.__setattr__(self, "citation_types", tuple(CitationType(t) for t in self.citation_types))

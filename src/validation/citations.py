"""Reason/citation matching.

Each reason of a book is paired by position with the citation revealed
for it, then checked by normalized containment, word overlap and finally
the AI semantic validator.
"""

import logging
from typing import Mapping, Protocol

from src.extraction.citation_resolver import is_error_marker
from src.models.book import NO_CITATION, BookRecord
from src.models.relevance import SemanticVerdict
from src.models.validation import CitationReport, CitationValidationResult
from src.validation.matchers import SIMILARITY_THRESHOLD, contains_text, word_similarity

logger = logging.getLogger(__name__)

_MISSING_CITATION_MARKERS = (NO_CITATION, "Citation text not found")


class SemanticJudge(Protocol):
    def validate(self, reason_text: str, citation_text: str) -> SemanticVerdict: ...


def pair_citations(book: BookRecord, citations: Mapping[str, list[str]]) -> list[tuple[str, str]]:
    """Pair reasons[i] with citation i, padding missing citations with the sentinel."""
    texts = list(citations.get(book.title, []))
    return [
        (reason, texts[i] if i < len(texts) else NO_CITATION)
        for i, reason in enumerate(book.reasons)
    ]


def _input_errors(reason_text: str, citation_text: str) -> list[str]:
    errors = []
    if not reason_text.strip():
        errors.append("Reason text is empty")
    if not citation_text.strip():
        errors.append("Citation text is empty")
    elif is_error_marker(citation_text.strip()):
        errors.append(f"Citation extraction failed: {citation_text}")
    elif any(marker in citation_text for marker in _MISSING_CITATION_MARKERS):
        errors.append("No citation was found for this reason")
    return errors


def validate_citation_match(
    reason_text: str,
    citation_text: str,
    reason_number: int,
    book_title: str,
    validator: SemanticJudge | None = None,
) -> CitationValidationResult:
    result = CitationValidationResult(
        book_title=book_title,
        reason_number=reason_number,
        reason_text=reason_text,
        citation_text=citation_text,
    )

    result.errors = _input_errors(reason_text, citation_text)
    if result.errors:
        return result

    if contains_text(reason_text, citation_text):
        result.is_valid = True
        result.similarity_score = 1.0
        result.match_percentage = 100.0
        return result

    similarity = word_similarity(reason_text, citation_text)
    result.similarity_score = similarity
    result.match_percentage = round(similarity * 100, 1)
    if similarity >= SIMILARITY_THRESHOLD:
        result.is_valid = True
        return result

    if validator is None:
        result.errors.append(
            f"Citation not contained in reason and similarity {result.match_percentage:.1f}% is below threshold"
        )
        return result

    logger.info("Containment failed for \"%s\" reason %d, asking AI judge", book_title, reason_number)
    verdict = validator.validate(reason_text, citation_text)
    if verdict.is_fallback:
        result.ai_fallback = True
        result.errors.append(verdict.explanation)
        return result

    result.ai_validated = True
    result.ai_confidence = verdict.ai_confidence
    result.is_valid = verdict.is_valid
    result.similarity_score = verdict.similarity_score
    result.match_percentage = verdict.match_percentage
    if not verdict.is_valid:
        result.errors.append(verdict.explanation or "AI judge found different concepts")
    return result


def validate_reason_citations(
    books: list[BookRecord],
    citations: Mapping[str, list[str]],
    validator: SemanticJudge | None = None,
) -> CitationReport:
    """Validate every reason of every book against its revealed citation."""
    report = CitationReport()
    for book in books:
        if not book.reasons:
            logger.warning("No reasons extracted for \"%s\", skipping citation check", book.title)
            continue
        report.results[book.title] = [
            validate_citation_match(reason, citation, i, book.title, validator)
            for i, (reason, citation) in enumerate(pair_citations(book, citations), 1)
        ]

    aggregate = report.aggregate
    logger.info(
        "Citation validation: %s, %d AI-validated, %d fallbacks",
        aggregate.summary(), report.ai_validated, aggregate.fallbacks,
    )
    return report

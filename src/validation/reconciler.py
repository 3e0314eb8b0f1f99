"""Cross-source reconciliation of extracted books.

Three references are checked: the reference spreadsheet (hard assertion),
the book database (soft) and the AI relevance judge (soft). Citation
validation and the recommendation-panel card check are also soft and are
composed here so a scenario has one entry point per check.
"""

import logging
from pathlib import Path
from typing import Mapping, Protocol

from src.errors import ReferenceMismatchError
from src.models.book import BookRecord
from src.models.card import BookCard
from src.models.enums import ValidationStatus
from src.models.relevance import RelevanceAnalysis
from src.models.validation import (
    BookValidationResult,
    CardReport,
    CitationReport,
    DatabaseMatchReport,
    SpreadsheetReport,
)
from src.references.database import BookDatabase
from src.references.spreadsheet import read_records
from src.validation.cards import validate_cards_against_chat
from src.validation.citations import SemanticJudge, validate_reason_citations
from src.validation.matchers import validate_book_fields

logger = logging.getLogger(__name__)


class ResponseJudge(Protocol):
    def analyze(self, query: str, response_text: str, books: list[BookRecord]) -> RelevanceAnalysis: ...


def compare_with_reference(
    extracted: list[BookRecord],
    expected: list[BookRecord],
    reference_path: str = "",
) -> SpreadsheetReport:
    """Compare extracted[i] against expected[i] for every reference row."""
    report = SpreadsheetReport(reference_path=reference_path)
    if len(extracted) != len(expected):
        logger.warning("Book count differs: %d extracted, %d in reference", len(extracted), len(expected))

    for i, reference in enumerate(expected):
        if i >= len(extracted):
            logger.error("Book #%d \"%s\" not found in extracted data", i + 1, reference.title)
            report.books.append(BookValidationResult(index=i, expected_title=reference.title, found=False))
            continue

        result = BookValidationResult(
            index=i,
            expected_title=reference.title,
            fields=validate_book_fields(extracted[i], reference),
        )
        if result.passed:
            logger.info("Book #%d \"%s\" passed all field checks", i + 1, reference.title)
        else:
            logger.error("Book #%d \"%s\" failed: %s", i + 1, reference.title, ", ".join(result.failed_fields))
        report.books.append(result)

    return report


def require_pass(report: SpreadsheetReport) -> None:
    """Raise ReferenceMismatchError listing every failing book."""
    failures = [
        (book.index, book.expected_title, book.failed_fields)
        for book in report.books
        if not book.passed
    ]
    if failures:
        raise ReferenceMismatchError(failures)


def check_database(books: list[BookRecord], database: BookDatabase) -> DatabaseMatchReport:
    titles = [book.title for book in books]
    found, missing = database.find_matching(titles)
    report = DatabaseMatchReport(
        database_path=str(database.path),
        database_size=len(database.get_all_titles()),
        found=found,
        missing=missing,
    )

    aggregate = report.aggregate
    if aggregate.status is ValidationStatus.PASS:
        logger.info("Database match: %s", aggregate.summary())
    else:
        logger.warning(
            "Database match rate %.1f%% below %.0f%% threshold, missing: %s",
            aggregate.pass_rate, aggregate.threshold, ", ".join(missing),
        )
    return report


def check_relevance(
    query: str,
    response_text: str,
    books: list[BookRecord],
    judge: ResponseJudge,
) -> RelevanceAnalysis:
    analysis = judge.analyze(query, response_text, books)
    if analysis.is_fallback:
        logger.warning("AI relevance analysis unavailable, fallback result recorded")
    elif analysis.passed:
        logger.info("AI relevance score %d%% passed", analysis.overall_score)
    else:
        logger.error("AI relevance score %d%% below threshold", analysis.overall_score)
    return analysis


class Reconciler:
    """Runs each reference check for one scenario's extracted books."""

    def __init__(
        self,
        database: BookDatabase | None = None,
        semantic_validator: SemanticJudge | None = None,
        relevance_judge: ResponseJudge | None = None,
    ):
        self.database = database
        self.semantic_validator = semantic_validator
        self.relevance_judge = relevance_judge

    def spreadsheet(self, books: list[BookRecord], path: Path, strict: bool = True) -> SpreadsheetReport:
        """Hard check; raises ReferenceMismatchError when ``strict`` and any book fails."""
        expected = read_records(path)
        report = compare_with_reference(books, expected, str(path))
        logger.info("Spreadsheet comparison: %s", report.aggregate.summary())
        if strict:
            require_pass(report)
        return report

    def database_check(self, books: list[BookRecord]) -> DatabaseMatchReport:
        if self.database is None:
            raise ValueError("No book database configured")
        return check_database(books, self.database)

    def citations(self, books: list[BookRecord], citations: Mapping[str, list[str]]) -> CitationReport:
        report = validate_reason_citations(books, citations, self.semantic_validator)
        aggregate = report.aggregate
        if aggregate.status is ValidationStatus.FAIL:
            logger.warning("Citation pass rate %.1f%% below %.0f%% threshold", aggregate.pass_rate, aggregate.threshold)
        return report

    def relevance(self, query: str, response_text: str, books: list[BookRecord]) -> RelevanceAnalysis:
        if self.relevance_judge is None:
            raise ValueError("No relevance judge configured")
        return check_relevance(query, response_text, books, self.relevance_judge)

    def cards(self, cards: list[BookCard], books: list[BookRecord]) -> CardReport:
        report = validate_cards_against_chat(cards, books)
        if not report.all_passed:
            logger.warning("Card check: %s", report.aggregate.summary())
        return report

"""End-to-end scenario: drive the chat UI, extract books and reconcile them.

Hard checks (reference files present, spreadsheet comparison) raise and
stop the scenario. Soft checks (database, citations, book cards, AI
relevance) log and attach reports but let the scenario continue.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Callable, ContextManager

from playwright.sync_api import Page

from config.settings import Settings, get_settings
from src.browser.bookgenie_page import BookGeniePage
from src.browser.session import browser_session
from src.errors import HarnessError, ReferenceMismatchError, ReferenceUnavailableError
from src.extraction.book_extractor import extract_books, extract_question
from src.extraction.card_extractor import extract_cards
from src.extraction.citation_resolver import CitationResolver
from src.llm.judge import RelevanceJudge, SemanticValidator
from src.llm.retry import RetryPolicy
from src.models.book import BookRecord, CitationRecord
from src.models.enums import ValidationStatus
from src.models.relevance import RelevanceAnalysis
from src.models.validation import CardReport, CitationReport, DatabaseMatchReport, SpreadsheetReport
from src.references.database import BookDatabase
from src.references.spreadsheet import query_to_filename, reference_path, write_records
from src.reporting import reports
from src.reporting.scenario_log import HTML, TEXT, DirectoryReportSink, ReportSink, ScenarioLog
from src.validation.reconciler import Reconciler, require_pass

logger = logging.getLogger(__name__)

PageFactory = Callable[[Settings], ContextManager[Page]]


@dataclass
class ScenarioOptions:
    mode: str | None = None
    save_reference: bool = False
    check_spreadsheet: bool = True
    check_database: bool = True
    check_citations: bool = True
    check_cards: bool = False
    check_relevance: bool = True
    use_ai_validator: bool = True


@dataclass
class ScenarioResult:
    query: str
    question: str = ""
    books: list[BookRecord] = field(default_factory=list)
    saved_reference: Path | None = None
    spreadsheet: SpreadsheetReport | None = None
    database: DatabaseMatchReport | None = None
    citations: CitationReport | None = None
    citation_records: list[CitationRecord] = field(default_factory=list)
    cards: CardReport | None = None
    relevance: RelevanceAnalysis | None = None
    screenshots: list[Path] = field(default_factory=list)

    @property
    def soft_failures(self) -> list[str]:
        failures = []
        if self.database is not None and self.database.aggregate.status is ValidationStatus.FAIL:
            failures.append("database")
        if self.citations is not None and self.citations.aggregate.status is ValidationStatus.FAIL:
            failures.append("citations")
        if self.cards is not None and not self.cards.all_passed:
            failures.append("cards")
        if self.relevance is not None and not self.relevance.passed:
            failures.append("relevance")
        return failures


def build_reconciler(settings: Settings, options: ScenarioOptions) -> Reconciler:
    policy = RetryPolicy(
        max_attempts=settings.bookgenie_ai_max_attempts,
        base_delay=settings.bookgenie_ai_base_delay,
    )
    return Reconciler(
        database=BookDatabase(settings.database_path) if options.check_database else None,
        semantic_validator=SemanticValidator(policy=policy) if options.use_ai_validator else None,
        relevance_judge=RelevanceJudge(policy=policy) if options.check_relevance else None,
    )


def _screenshot(ui: BookGeniePage, settings: Settings, query: str, label: str, result: ScenarioResult) -> None:
    stamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    path = settings.artifacts_dir / "screenshots" / f"{query_to_filename(query)}_{label}_{stamp}.png"
    if ui.screenshot(path) is not None:
        logger.info("Screenshot saved: %s", path)
        result.screenshots.append(path)


def run_scenario(
    query: str,
    options: ScenarioOptions | None = None,
    settings: Settings | None = None,
    page_factory: PageFactory = browser_session,
    sink: ReportSink | None = None,
    reconciler: Reconciler | None = None,
) -> ScenarioResult:
    """Run one query through the UI and every enabled reference check."""
    options = options or ScenarioOptions()
    settings = settings or get_settings()
    if sink is None:
        stamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        sink = DirectoryReportSink(settings.artifacts_dir / f"{query_to_filename(query)}_{stamp}")
    reconciler = reconciler or build_reconciler(settings, options)
    result = ScenarioResult(query=query)

    with ScenarioLog.capture() as log:
        try:
            with page_factory(settings) as page:
                ui = BookGeniePage(page, settings)
                _drive_query(ui, query, options.mode or settings.bookgenie_mode)

                html = ui.response_html()
                result.question = extract_question(html) or query
                result.books = extract_books(html)
                if not result.books:
                    logger.warning("No books extracted from the response")
                    _screenshot(ui, settings, query, "extraction", result)

                if options.save_reference:
                    result.saved_reference = write_records(result.books, reference_path(query, settings.results_dir))

                try:
                    _run_checks(ui, page, query, options, settings, reconciler, sink, result)
                except (ReferenceMismatchError, ReferenceUnavailableError):
                    _screenshot(ui, settings, query, "failure", result)
                    raise
        finally:
            log.flush_to(sink)

    return result


def _drive_query(ui: BookGeniePage, query: str, mode: str) -> None:
    ui.open()
    ui.open_mode_dropdown()
    if not ui.is_mode_visible(mode):
        raise HarnessError(f"Mode \"{mode}\" is not available in the mode dropdown")
    ui.select_mode(mode)
    ui.submit_query(query)
    ui.wait_for_ai_response()
    if not ui.is_response_visible():
        raise HarnessError(f"No response displayed for query: \"{query}\"")


def _run_checks(
    ui: BookGeniePage,
    page: Page,
    query: str,
    options: ScenarioOptions,
    settings: Settings,
    reconciler: Reconciler,
    sink: ReportSink,
    result: ScenarioResult,
) -> None:
    books = result.books

    if options.check_spreadsheet:
        path = result.saved_reference or reference_path(query, settings.results_dir)
        report = reconciler.spreadsheet(books, path, strict=False)
        result.spreadsheet = report
        sink.attach(reports.spreadsheet_report_text(report), TEXT, "spreadsheet validation")
        sink.attach(reports.spreadsheet_report_html(report), HTML, "spreadsheet validation")
        require_pass(report)

    if options.check_database:
        result.database = reconciler.database_check(books)
        sink.attach(reports.database_report_text(result.database), TEXT, "database validation")
        sink.attach(reports.database_report_html(result.database), HTML, "database validation")

    if options.check_citations:
        resolver = CitationResolver(
            page,
            citation_timeout_ms=settings.bookgenie_citation_timeout_ms,
            close_timeout_ms=settings.bookgenie_citation_close_timeout_ms,
            expand_timeout_ms=settings.bookgenie_expand_timeout_ms,
        )
        resolved = resolver.resolve()
        result.citation_records = resolved.records
        result.citations = reconciler.citations(books, resolved.texts)
        sink.attach(reports.citation_report_text(result.citations), TEXT, "citation validation")
        sink.attach(reports.citation_report_html(result.citations), HTML, "citation validation")

    if options.check_cards:
        cards = extract_cards(ui.book_cards_html())
        result.cards = reconciler.cards(cards, books)
        sink.attach(reports.card_report_text(result.cards), TEXT, "card validation")
        sink.attach(reports.card_report_html(result.cards), HTML, "card validation")

    if options.check_relevance:
        result.relevance = reconciler.relevance(query, ui.response_text(), books)
        sink.attach(reports.relevance_report_text(result.relevance), TEXT, "ai relevance")
        sink.attach(reports.relevance_report_html(result.relevance), HTML, "ai relevance")

    if result.soft_failures:
        logger.warning("Soft checks below threshold: %s", ", ".join(result.soft_failures))

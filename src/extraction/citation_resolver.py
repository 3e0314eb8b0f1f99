"""Reveal citation text hidden behind toggles in the live BookGenie page.

Citation quotes are not part of the static response markup: each one is
rendered only while its citation button is toggled open. The resolver
walks every individual book accordion, opens it and its "Why this book is
the ... Match" list, toggles each citation button in document order and
reads the revealed quote, then restores the collapsed state.

Requires exclusive access to the page for the duration of one call.
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Callable

from playwright.sync_api import Error as PlaywrightError
from playwright.sync_api import Locator, Page

from src.browser import locators
from src.errors import UIActionError
from src.models.book import CitationRecord
from src.models.enums import CitationType

logger = logging.getLogger(__name__)

ERROR_MARKER = "Error:"

# Summary phrases of accordions that group books or show agent progress
AGGREGATE_INDICATORS = [
    "books by",
    "award-winning",
    "recommended",
    "suggested",
    "matched",
    "results for",
    "query:",
    "watch me work",
    "interpreting context",
    "retrieving relevant",
]

_NUMBERED_PREFIX = re.compile(r"^\d+\.")


def is_individual_book_section(summary: str) -> bool:
    """True for "N. Title" summaries that are not aggregate headings."""
    if not summary:
        return False
    lowered = summary.lower()
    has_numbered_prefix = bool(_NUMBERED_PREFIX.match(summary.strip()))
    is_aggregate = any(indicator in lowered for indicator in AGGREGATE_INDICATORS)
    return has_numbered_prefix and not is_aggregate


def title_from_summary(summary: str) -> str:
    return re.sub(r"^\d+\.\s*", "", summary.strip()).strip()


def is_error_marker(text: str) -> bool:
    return text.startswith(ERROR_MARKER)


@dataclass
class ResolvedCitations:
    """Citation texts per book title plus the records that resolved cleanly.

    ``texts`` keeps an error marker in place of each failed citation so
    index ``i`` still lines up with reason ``i``.
    """

    texts: dict[str, list[str]] = field(default_factory=dict)
    records: list[CitationRecord] = field(default_factory=list)


class CitationResolver:
    """Toggle-and-read citation extraction over a live Playwright page."""

    def __init__(
        self,
        page: Page,
        citation_timeout_ms: int = 10_000,
        close_timeout_ms: int = 3_000,
        expand_timeout_ms: int = 5_000,
        click_attempts: int = 3,
        settle_ms: int = 500,
    ):
        self.page = page
        self.citation_timeout_ms = citation_timeout_ms
        self.close_timeout_ms = close_timeout_ms
        self.expand_timeout_ms = expand_timeout_ms
        self.click_attempts = click_attempts
        self.settle_ms = settle_ms

    def resolve(self, sections: list[Locator] | None = None) -> ResolvedCitations:
        """Extract citation texts for every individual book section.

        ``sections`` defaults to all accordions on the page; aggregate and
        ambiguous accordions are skipped.
        """
        if sections is None:
            self.page.wait_for_selector(locators.ACCORDION, timeout=self.citation_timeout_ms)
            sections = self.page.locator(locators.ACCORDION).all()
        logger.info("Found %d accordion sections", len(sections))

        book_sections = []
        for section in sections:
            summary = self._summary_text(section)
            if is_individual_book_section(summary):
                book_sections.append((section, summary))
                logger.debug("Individual book section: \"%s\"", summary)
        logger.info("Processing %d individual book sections", len(book_sections))

        resolved = ResolvedCitations()
        for position, (section, summary) in enumerate(book_sections, 1):
            title = title_from_summary(summary) or f"Book {position}"
            logger.info("Resolving citations for book %d: \"%s\"", position, title)

            try:
                self._expand_book_section(section, title)
                self._expand_why_match_section(section, title)
            except UIActionError as e:
                logger.error("Skipping citations for \"%s\": %s", title, e)
                resolved.texts[title] = []
                self._collapse_book_section(section, title)
                continue

            texts, records = self._extract_citations_for_book(section, title)
            resolved.texts[title] = texts
            resolved.records.extend(records)
            self._collapse_book_section(section, title)
            logger.info("Resolved %d citations for \"%s\"", len(records), title)

        return resolved

    def _summary_text(self, section: Locator) -> str:
        try:
            label = section.locator(locators.SUMMARY_LABEL)
            if label.count() > 0:
                return (label.first.text_content() or "").strip()
            summary = section.locator(locators.SUMMARY)
            if summary.count() > 0:
                return (summary.first.text_content() or "").strip()
        except PlaywrightError as e:
            logger.debug("Could not read accordion summary: %s", e)
        return ""

    @staticmethod
    def _is_open(details: Locator) -> bool:
        return details.get_attribute("open") is not None

    def _settle(self, multiplier: int = 1) -> None:
        if self.settle_ms:
            self.page.wait_for_timeout(self.settle_ms * multiplier)

    def _click_until(self, target: Locator, verify: Callable[[], None], action: str, title: str) -> None:
        """Click ``target`` until ``verify`` stops raising, with linear backoff."""
        for attempt in range(1, self.click_attempts + 1):
            try:
                target.click(timeout=self.expand_timeout_ms)
                verify()
                return
            except PlaywrightError as e:
                logger.warning("%s attempt %d failed for \"%s\": %s", action, attempt, title, e)
                self._settle(attempt)
        raise UIActionError(action, title, self.click_attempts)

    def _expand_book_section(self, section: Locator, title: str) -> None:
        if self._is_open(section):
            logger.debug("Book section already expanded: \"%s\"", title)
            return

        summary = section.locator(locators.SUMMARY).first
        summary.scroll_into_view_if_needed()
        details = section.locator(locators.BOOK_TITLE_LABEL).first
        self._click_until(
            summary,
            lambda: details.wait_for(state="visible", timeout=self.expand_timeout_ms),
            "expand book section",
            title,
        )

    def _expand_why_match_section(self, section: Locator, title: str) -> None:
        why_summaries = section.locator(locators.WHY_MATCH_SUMMARY)
        if why_summaries.count() == 0:
            logger.warning("\"Why this book is the match\" section not found for \"%s\"", title)
            return

        why_summary = why_summaries.first
        if self._is_open(why_summary.locator("xpath=..")):
            logger.debug("Why-match section already expanded: \"%s\"", title)
            return

        why_summary.scroll_into_view_if_needed()
        first_reason = section.locator(locators.REASON_ITEM).first
        self._click_until(
            why_summary,
            lambda: first_reason.wait_for(state="visible", timeout=self.expand_timeout_ms),
            "expand why-match section",
            title,
        )

    def _collapse_book_section(self, section: Locator, title: str) -> None:
        try:
            if not self._is_open(section):
                return
            summary = section.locator(locators.SUMMARY).first
            summary.scroll_into_view_if_needed()
            summary.click()
            self._settle()
        except PlaywrightError as e:
            logger.warning("Error collapsing book section \"%s\": %s", title, e)

    def _extract_citations_for_book(self, section: Locator, title: str) -> tuple[list[str], list[CitationRecord]]:
        buttons = section.locator(locators.CITATION_BUTTON)
        count = buttons.count()
        if count == 0:
            logger.warning("No citation buttons found for \"%s\"", title)
            return [], []

        texts = []
        records = []
        for index in range(count):
            try:
                text, citation_type = self._extract_single_citation(buttons.nth(index), index, title)
            except (PlaywrightError, UIActionError) as e:
                logger.error("Error extracting citation %d for \"%s\": %s", index + 1, title, e)
                texts.append(f"{ERROR_MARKER} {e}")
                continue
            texts.append(text)
            records.append(CitationRecord(
                book_title=title,
                reason_index=index,
                citation_text=text,
                citation_type=citation_type,
            ))
        return texts, records

    def _citation_is_open(self, button: Locator) -> bool:
        arrow = button.locator(locators.CITATION_ARROW)
        if arrow.count() == 0:
            return False
        return "pi-angle-up" in (arrow.first.get_attribute("class") or "")

    def _extract_single_citation(self, button: Locator, index: int, title: str) -> tuple[str, CitationType]:
        type_label = (button.locator(locators.CITATION_TYPE_TEXT).first.text_content() or "").lower()
        citation_type = CitationType.MANUSCRIPT if "manuscript" in type_label else CitationType.METADATA
        target = f"{title} citation {index + 1}"

        button.scroll_into_view_if_needed()
        if self._citation_is_open(button):
            logger.debug("Citation %d already open for \"%s\", closing first", index + 1, title)
            button.click()
            self._settle()

        quote = self.page.locator(locators.CITATION_TEXT).first
        self._click_until(
            button,
            lambda: quote.wait_for(state="visible", timeout=self.citation_timeout_ms),
            "open citation",
            target,
        )
        text = (quote.inner_text() or "").strip()

        button.click()
        try:
            quote.wait_for(state="hidden", timeout=self.close_timeout_ms)
        except PlaywrightError:
            logger.warning("Citation %d for \"%s\" did not close, pressing Escape", index + 1, title)
            self.page.keyboard.press("Escape")
            self._settle()

        if not text:
            raise UIActionError("read citation text", target, 1)
        return text, citation_type

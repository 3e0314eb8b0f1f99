"""Unit tests for citation resolution against a mocked Playwright page."""

from unittest.mock import MagicMock

import pytest
from playwright.sync_api import Error as PlaywrightError

from src.browser import locators
from src.extraction.citation_resolver import (
    CitationResolver,
    is_individual_book_section,
    title_from_summary,
)
from src.models.enums import CitationType


def _button(kind="metadata", open_arrow=False, click_error=None):
    button = MagicMock()
    type_label = MagicMock()
    type_label.first.text_content.return_value = f"({kind})"
    arrow = MagicMock()
    arrow.count.return_value = 1
    arrow.first.get_attribute.return_value = "pi pi-angle-up" if open_arrow else "pi pi-angle-down"
    button.locator.side_effect = lambda selector: {
        locators.CITATION_TYPE_TEXT: type_label,
        locators.CITATION_ARROW: arrow,
    }[selector]
    if click_error is not None:
        button.click.side_effect = click_error
    return button


def _section(summary, buttons=(), is_open=True, why_open=True):
    section = MagicMock()
    section.get_attribute.return_value = "" if is_open else None

    label = MagicMock()
    label.count.return_value = 1
    label.first.text_content.return_value = summary

    why = MagicMock()
    why.count.return_value = 1
    why.first.locator.return_value.get_attribute.return_value = "" if why_open else None

    citation_buttons = MagicMock()
    citation_buttons.count.return_value = len(buttons)
    citation_buttons.nth.side_effect = lambda i: buttons[i]

    children = {
        locators.SUMMARY_LABEL: label,
        locators.SUMMARY: MagicMock(),
        locators.WHY_MATCH_SUMMARY: why,
        locators.CITATION_BUTTON: citation_buttons,
        locators.BOOK_TITLE_LABEL: MagicMock(),
        locators.REASON_ITEM: MagicMock(),
    }
    section.locator.side_effect = lambda selector: children[selector]
    section.children = children
    return section


def _page(quote_texts, sections=()):
    page = MagicMock()
    quote = MagicMock()
    quote.inner_text.side_effect = list(quote_texts)
    accordions = MagicMock()
    accordions.all.return_value = list(sections)
    page.locator.side_effect = lambda selector: {
        locators.CITATION_TEXT: MagicMock(first=quote),
        locators.ACCORDION: accordions,
    }[selector]
    page.quote = quote
    return page


class TestSectionClassification:
    @pytest.mark.parametrize("summary", ["1. The Giver", "12. Fahrenheit 451"])
    def test_numbered_book_sections(self, summary):
        assert is_individual_book_section(summary)

    @pytest.mark.parametrize("summary", [
        "The Giver",
        "Books by Lois Lowry",
        "1. Recommended reading",
        "2. Watch me work",
        "",
    ])
    def test_aggregate_or_ambiguous_excluded(self, summary):
        assert not is_individual_book_section(summary)

    def test_title_from_summary(self):
        assert title_from_summary(" 3. The Giver ") == "The Giver"


class TestCitationResolver:
    def test_resolves_citations_in_order(self):
        buttons = [_button("metadata"), _button("manuscript")]
        section = _section("1. The Giver", buttons)
        page = _page(["dystopian society", "young protagonist"])

        resolved = CitationResolver(page, settle_ms=0).resolve([section])

        assert resolved.texts == {"The Giver": ["dystopian society", "young protagonist"]}
        assert [r.reason_index for r in resolved.records] == [0, 1]
        assert resolved.records[0].citation_type is CitationType.METADATA
        assert resolved.records[1].citation_type is CitationType.MANUSCRIPT
        assert all(r.book_title == "The Giver" for r in resolved.records)

    def test_open_then_close_each_citation(self):
        button = _button()
        page = _page(["quote"])

        CitationResolver(page, settle_ms=0).resolve([_section("1. The Giver", [button])])

        assert button.click.call_count == 2
        states = [c.kwargs["state"] for c in page.quote.wait_for.call_args_list]
        assert states == ["visible", "hidden"]

    def test_already_open_citation_closed_first(self):
        button = _button(open_arrow=True)
        page = _page(["quote"])

        CitationResolver(page, settle_ms=0).resolve([_section("1. The Giver", [button])])

        assert button.click.call_count == 3

    def test_close_failure_presses_escape(self):
        page = _page(["quote"])
        page.quote.wait_for.side_effect = [None, PlaywrightError("still visible")]

        resolved = CitationResolver(page, settle_ms=0).resolve([_section("1. The Giver", [_button()])])

        page.keyboard.press.assert_called_once_with("Escape")
        assert resolved.texts["The Giver"] == ["quote"]

    def test_failed_citation_recorded_as_error_marker(self):
        buttons = [_button(), _button(click_error=PlaywrightError("detached")), _button()]
        page = _page(["first", "third"])

        resolved = CitationResolver(page, settle_ms=0).resolve([_section("1. The Giver", buttons)])

        texts = resolved.texts["The Giver"]
        assert texts[0] == "first"
        assert texts[1].startswith("Error:")
        assert texts[2] == "third"
        assert [r.reason_index for r in resolved.records] == [0, 2]
        assert buttons[1].click.call_count == 3

    def test_empty_citation_text_is_error(self):
        page = _page(["   "])

        resolved = CitationResolver(page, settle_ms=0).resolve([_section("1. The Giver", [_button()])])

        assert resolved.texts["The Giver"][0].startswith("Error:")
        assert resolved.records == []

    def test_aggregate_sections_skipped(self):
        book = _section("1. The Giver", [_button()])
        aggregate = _section("Books by Lois Lowry", [_button()])
        page = _page(["quote"])

        resolved = CitationResolver(page, settle_ms=0).resolve([aggregate, book])

        assert list(resolved.texts) == ["The Giver"]
        aggregate.children[locators.CITATION_BUTTON].nth.assert_not_called()

    def test_open_section_not_toggled_before_reading(self):
        section = _section("1. The Giver", [_button()], is_open=True)
        page = _page(["quote"])

        CitationResolver(page, settle_ms=0).resolve([section])

        # Only the final collapse clicks the book summary
        assert section.children[locators.SUMMARY].first.click.call_count == 1

    def test_closed_section_expanded_then_collapsed(self):
        section = _section("1. The Giver", [_button()], is_open=False)
        section.get_attribute.side_effect = [None, ""]
        page = _page(["quote"])

        CitationResolver(page, settle_ms=0).resolve([section])

        summary = section.children[locators.SUMMARY].first
        assert summary.click.call_count == 2
        section.children[locators.BOOK_TITLE_LABEL].first.wait_for.assert_called_once()

    def test_expand_failure_skips_book(self):
        section = _section("1. The Giver", [_button()], is_open=False)
        section.children[locators.SUMMARY].first.click.side_effect = PlaywrightError("not clickable")
        page = _page([])

        resolved = CitationResolver(page, settle_ms=0).resolve([section])

        assert resolved.texts == {"The Giver": []}
        assert resolved.records == []

    def test_discovers_sections_from_page(self):
        section = _section("1. The Giver", [_button()])
        page = _page(["quote"], sections=[section])

        resolved = CitationResolver(page, settle_ms=0).resolve()

        page.wait_for_selector.assert_called_once()
        assert resolved.texts == {"The Giver": ["quote"]}

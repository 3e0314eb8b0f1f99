"""Unit tests for the BookGenie page object."""

from unittest.mock import MagicMock

from playwright.sync_api import Error as PlaywrightError

from config.settings import Settings
from src.browser import locators
from src.browser.bookgenie_page import BookGeniePage


def _settings():
    return Settings(
        bookgenie_base_url="http://bookgenie.test",
        bookgenie_fallback_wait_ms=1_000,
    )


class TestBookGeniePage:
    def test_open_navigates_to_base_url(self):
        page = MagicMock()
        BookGeniePage(page, _settings()).open()
        page.goto.assert_called_once_with("http://bookgenie.test")

    def test_submit_query_clears_fills_and_presses_enter(self):
        page = MagicMock()
        chat_input = page.locator.return_value

        BookGeniePage(page, _settings()).submit_query("dystopian books")

        page.locator.assert_called_with(locators.CHAT_INPUT)
        chat_input.clear.assert_called_once()
        chat_input.fill.assert_called_once_with("dystopian books")
        chat_input.press.assert_called_once_with("Enter")

    def test_wait_for_response_falls_back_to_fixed_sleep(self):
        page = MagicMock()
        page.get_by_text.return_value.first.wait_for.side_effect = PlaywrightError("timeout")
        page.locator.return_value.is_visible.return_value = False

        BookGeniePage(page, _settings()).wait_for_ai_response()

        waits = [c.args[0] for c in page.wait_for_timeout.call_args_list]
        assert 1_000 in waits

    def test_none_of_the_above_absent(self):
        page = MagicMock()
        page.locator.return_value.is_visible.return_value = False

        assert BookGeniePage(page, _settings()).handle_none_of_the_above() is False

    def test_none_of_the_above_clicks_option(self):
        page = MagicMock()
        page.locator.return_value.is_visible.return_value = True

        assert BookGeniePage(page, _settings()).handle_none_of_the_above() is True
        page.locator.return_value.first.click.assert_called_once()

    def test_mode_not_visible(self):
        page = MagicMock()
        page.get_by_text.return_value.first.wait_for.side_effect = PlaywrightError("timeout")

        assert BookGeniePage(page, _settings()).is_mode_visible("BookGenieQA") is False

    def test_response_html_reads_latest_response(self):
        page = MagicMock()
        page.locator.return_value.last.inner_html.return_value = "<p>books</p>"

        assert BookGeniePage(page, _settings()).response_html() == "<p>books</p>"
        page.locator.assert_called_with(locators.CHAT_RESPONSE)

    def test_empty_response_not_visible(self):
        page = MagicMock()
        page.locator.return_value.last.text_content.return_value = "   "

        assert BookGeniePage(page, _settings()).is_response_visible() is False

    def test_screenshot_failure_returns_none(self, tmp_path):
        page = MagicMock()
        page.screenshot.side_effect = PlaywrightError("page closed")

        assert BookGeniePage(page, _settings()).screenshot(tmp_path / "shots" / "x.png") is None

    def test_book_cards_expand_closed_reasons(self):
        page = MagicMock()
        cards = page.locator.return_value
        cards.count.return_value = 2
        card = cards.nth.return_value
        card.inner_html.return_value = "<h3>1. The Giver</h3>"
        button = card.locator.return_value.first
        button.is_visible.return_value = True
        button.get_attribute.side_effect = lambda name: "closed" if name == "data-state" else None

        htmls = BookGeniePage(page, _settings()).book_cards_html()

        assert htmls == ["<h3>1. The Giver</h3>"] * 2
        page.locator.assert_called_with(locators.BOOK_CARD)
        card.locator.assert_called_with(locators.CARD_WHY_MATCH_BUTTON)
        assert button.click.call_count == 2

    def test_book_cards_leave_open_reasons(self):
        page = MagicMock()
        cards = page.locator.return_value
        cards.count.return_value = 1
        button = cards.nth.return_value.locator.return_value.first
        button.is_visible.return_value = True
        button.get_attribute.return_value = "open"

        BookGeniePage(page, _settings()).book_cards_html()

        button.click.assert_not_called()

    def test_no_book_cards_returns_empty(self):
        page = MagicMock()
        page.locator.return_value.first.wait_for.side_effect = PlaywrightError("timeout")

        assert BookGeniePage(page, _settings()).book_cards_html() == []

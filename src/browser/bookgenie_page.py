"""Page object for the BookGenie chat UI."""

import logging
from pathlib import Path

from playwright.sync_api import Error as PlaywrightError
from playwright.sync_api import Locator, Page

from config.settings import Settings
from src.browser import locators

logger = logging.getLogger(__name__)


class BookGeniePage:
    """Thin wrapper over the Playwright page for the BookGenie chat flow."""

    def __init__(self, page: Page, settings: Settings):
        self.page = page
        self.settings = settings

    def open(self) -> None:
        logger.info("Navigating to %s", self.settings.bookgenie_base_url)
        self.page.goto(self.settings.bookgenie_base_url)

    def open_mode_dropdown(self) -> None:
        dropdown = self.page.locator(locators.MODE_DROPDOWN)
        dropdown.wait_for(state="visible")
        dropdown.click()

    def is_mode_visible(self, mode: str) -> bool:
        option = self.page.get_by_text(mode)
        try:
            option.first.wait_for(state="visible", timeout=self.settings.bookgenie_expand_timeout_ms)
        except PlaywrightError:
            logger.warning("Mode \"%s\" is not visible", mode)
            return False
        return True

    def select_mode(self, mode: str) -> None:
        logger.info("Selecting mode: %s", mode)
        option = self.page.get_by_text(mode).first
        option.wait_for(state="visible")
        option.click()
        self.page.wait_for_timeout(2_000)

    def submit_query(self, query: str) -> None:
        """Type the query into the chat input and press Enter."""
        timeout = self.settings.bookgenie_response_timeout_ms
        try:
            self.page.get_by_text(locators.WELCOME_TEXT).first.wait_for(state="visible", timeout=timeout)
        except PlaywrightError:
            logger.warning("BookGenie welcome message did not appear")

        chat_input = self.page.locator(locators.CHAT_INPUT)
        chat_input.wait_for(state="visible", timeout=timeout)
        chat_input.clear()
        chat_input.fill(query)
        self.page.wait_for_timeout(1_000)
        chat_input.press("Enter")
        logger.info("Query submitted: \"%s\"", query)

    def wait_for_ai_response(self) -> None:
        """Wait for the thinking indicator to appear then disappear.

        On timeout, falls back to a fixed sleep and continues.
        """
        thinking = self.page.get_by_text(locators.THINKING_TEXT, exact=False).first
        try:
            thinking.wait_for(state="visible", timeout=self.settings.bookgenie_thinking_appear_timeout_ms)
            logger.info("AI thinking indicator appeared")
            thinking.wait_for(state="hidden", timeout=self.settings.bookgenie_thinking_done_timeout_ms)
            logger.info("AI thinking completed")
        except PlaywrightError as e:
            logger.error("AI thinking indicator not found or timed out: %s", e)
            logger.info("Falling back to a %d ms wait", self.settings.bookgenie_fallback_wait_ms)
            self.page.wait_for_timeout(self.settings.bookgenie_fallback_wait_ms)

        if self.handle_none_of_the_above():
            logger.info("\"None of the above\" follow-up handled")
        self.page.wait_for_timeout(3_000)

    def handle_none_of_the_above(self) -> bool:
        """Click the catalog search option when the clarification prompt appears."""
        prompt = self.page.locator(locators.NONE_OF_THE_ABOVE)
        if not _visible(prompt):
            return False

        option = self.page.locator(locators.NONE_OF_THE_ABOVE_OPTION)
        if not _visible(option):
            option = None
            for selector in locators.NONE_OF_THE_ABOVE_ALTERNATIVES:
                candidate = self.page.locator(selector).first
                if _visible(candidate):
                    logger.info("Using alternative selector for follow-up option: %s", selector)
                    option = candidate
                    break
        if option is None:
            logger.warning("Clickable option not found for \"None of the above\" prompt")
            return False

        option.first.click()
        thinking = self.page.get_by_text(locators.THINKING_TEXT, exact=False).first
        try:
            thinking.wait_for(state="visible", timeout=30_000)
            thinking.wait_for(state="hidden", timeout=180_000)
        except PlaywrightError:
            logger.warning("No thinking indicator after \"None of the above\" selection")
            self.page.wait_for_timeout(5_000)
        return True

    def latest_response(self) -> Locator:
        return self.page.locator(locators.CHAT_RESPONSE).last

    def is_response_visible(self) -> bool:
        response = self.latest_response()
        try:
            response.wait_for(state="visible", timeout=self.settings.bookgenie_response_timeout_ms)
        except PlaywrightError:
            return False
        return bool((response.text_content() or "").strip())

    def response_html(self) -> str:
        response = self.latest_response()
        response.wait_for(state="visible", timeout=self.settings.bookgenie_response_timeout_ms)
        return response.inner_html()

    def response_text(self) -> str:
        response = self.latest_response()
        response.wait_for(state="visible", timeout=self.settings.bookgenie_response_timeout_ms)
        return response.text_content() or ""

    def book_cards_html(self) -> list[str]:
        """innerHTML of each recommendation card with its "Why this book" list expanded."""
        cards = self.page.locator(locators.BOOK_CARD)
        try:
            cards.first.wait_for(state="visible", timeout=self.settings.bookgenie_response_timeout_ms)
        except PlaywrightError:
            logger.warning("No book cards visible in the recommendation panel")
            return []

        htmls = []
        for i in range(cards.count()):
            card = cards.nth(i)
            card.scroll_into_view_if_needed()
            button = card.locator(locators.CARD_WHY_MATCH_BUTTON).first
            if _visible(button) and (
                button.get_attribute("data-state") == "closed"
                or button.get_attribute("aria-expanded") == "false"
            ):
                button.click()
                self.page.wait_for_timeout(500)
            htmls.append(card.inner_html())
        logger.info("Collected %d book cards", len(htmls))
        return htmls

    def screenshot(self, path: Path) -> Path | None:
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            self.page.screenshot(path=str(path))
        except (PlaywrightError, OSError) as e:
            logger.warning("Failed to capture screenshot %s: %s", path, e)
            return None
        return path


def _visible(locator: Locator) -> bool:
    try:
        return locator.is_visible()
    except PlaywrightError:
        return False

"""Browser lifecycle for one test scenario."""

import logging
from contextlib import contextmanager
from typing import Iterator

from playwright.sync_api import Page, sync_playwright

from config.settings import Settings

logger = logging.getLogger(__name__)


@contextmanager
def browser_session(settings: Settings) -> Iterator[Page]:
    """Launch Chromium with one context and page; tear all down on exit."""
    width = settings.bookgenie_viewport_width
    height = settings.bookgenie_viewport_height

    with sync_playwright() as playwright:
        browser = playwright.chromium.launch(
            headless=settings.bookgenie_headless,
            args=[f"--window-size={width},{height}"],
        )
        context_options = {"viewport": {"width": width, "height": height}}
        storage_state = settings.storage_state_path
        if storage_state is not None:
            if storage_state.exists():
                context_options["storage_state"] = str(storage_state)
            else:
                logger.warning("Storage state file not found, starting unauthenticated: %s", storage_state)

        context = browser.new_context(**context_options)
        page = context.new_page()
        logger.info("Browser session started (headless=%s)", settings.bookgenie_headless)
        try:
            yield page
        finally:
            page.close()
            context.close()
            browser.close()
            logger.info("Browser session closed")

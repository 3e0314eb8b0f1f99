"""Extract book cards from the recommendation panel.

Each card (``.p-card``) shows the book as an ``<h3>`` headed "N. Title",
a byline "by <authors>, from Imprint: <imprint>", an optional relevance
score badge and a "Why this book is the ... Match" list.
"""

import logging
import re

from bs4 import Tag

from src.extraction.markup import (
    highlighted_text,
    normalize_whitespace,
    parse_fragment,
    percentage_value,
    strip_citation_markup,
    subsection_items,
)
from src.models.card import BookCard
from src.models.enums import CitationType

logger = logging.getLogger(__name__)

WHY_MATCH_HEADING = "Why this book is the"
RELEVANCE_BADGE = '[aria-label="Relevance Score"]'
CITATION_TYPE_SELECTOR = '[class*="BookCitation-module_citationText"]'

_NUMBERED_TITLE = re.compile(r"^\s*\d+\.\s*")
_BYLINE = re.compile(r"^by\s+(?P<authors>.+?)\s*(?:,\s*from Imprint:\s*(?P<imprint>.+))?$", re.IGNORECASE)


def extract_cards(card_htmls: list[str]) -> list[BookCard]:
    """Parse the innerHTML of each card; a card that fails is logged and skipped."""
    cards = []
    for index, html in enumerate(card_htmls, 1):
        try:
            card = parse_card(html)
        except ValueError as e:
            logger.error("Failed to extract book card %d: %s", index, e)
            continue
        logger.info(
            "Card %d: \"%s\" by %s (%d reasons)",
            index, card.title, card.authors or "unknown", len(card.reasons),
        )
        cards.append(card)

    logger.info("Extracted %d of %d book cards", len(cards), len(card_htmls))
    return cards


def parse_card(html: str) -> BookCard:
    """Build a BookCard from one card's markup; raises ValueError without a title."""
    root = parse_fragment(html)

    title = _card_title(root)
    if not title:
        raise ValueError("Book title not found in card")

    authors, imprint = _byline(root)
    if not authors:
        logger.warning("No author byline on card \"%s\"", title)

    reasons, highlights, citation_types = [], [], []
    for item in subsection_items(root, WHY_MATCH_HEADING):
        text = strip_citation_markup(item)
        if not text:
            continue
        reasons.append(text)
        highlights.append(highlighted_text(item))
        citation_types.append(_citation_type(item))
    if not reasons:
        logger.warning("No \"%s ... Match\" reasons on card \"%s\"", WHY_MATCH_HEADING, title)

    return BookCard(
        title=title,
        authors=authors,
        imprint=imprint,
        relevance_score=_relevance_score(root),
        reasons=reasons,
        highlighted_texts=highlights,
        citation_types=citation_types,
    )


def _card_title(root) -> str:
    heading = root.find("h3")
    if heading is None:
        return ""
    if heading.get("title"):
        return normalize_whitespace(heading["title"])
    return _NUMBERED_TITLE.sub("", normalize_whitespace(heading.get_text(" ")))


def _byline(root) -> tuple[str, str]:
    for paragraph in root.find_all("p"):
        match = _BYLINE.match(normalize_whitespace(paragraph.get_text(" ")))
        if match:
            return match.group("authors").strip(), (match.group("imprint") or "").strip()
    return "", ""


def _relevance_score(root) -> int | None:
    badge = root.select_one(RELEVANCE_BADGE)
    if badge is None:
        return None
    span = badge.find("span")
    score = percentage_value(normalize_whitespace((span or badge).get_text(" ")))
    if score is None or score > 100:
        return None
    return score


def _citation_type(item: Tag) -> CitationType:
    label = item.select_one(CITATION_TYPE_SELECTOR)
    text = (label.get_text(" ") if label is not None else item.get_text(" ")).lower()
    return CitationType.MANUSCRIPT if "manuscript" in text else CitationType.METADATA

"""Extract recommended books from a BookGenie response fragment.

The response container renders one collapsible ``<details>`` per book,
headed by a "N. Title" summary. Inside each book, labelled fields
("Book Title:", "Author:", ...) are followed by nested "Why this book is
the ... Match" and "The Gap" accordions holding ordered lists.

Extraction is a pure function of the markup: the same fragment always
yields the same records.
"""

import logging
import re

from bs4 import Tag

from src.extraction.markup import (
    highlighted_text,
    label_value,
    normalize_whitespace,
    parse_fragment,
    percentage_value,
    strip_citation_markup,
    subsection_items,
    summary_text,
)
from src.models.book import FIELD_SEPARATOR, NO_GAP, BookRecord

logger = logging.getLogger(__name__)

TITLE_ANCHOR = "Book Title:"
WHY_MATCH_HEADING = "Why this book is the"
GAP_HEADING = "The Gap"

# Shorter sections are decorative markup that happened to match the marker
MIN_SECTION_LENGTH = 200
MIN_REASON_LENGTH = 10

SECTION_MARKER = re.compile(r"^\s*\d+\.\s*(.*)$")
_RAW_SECTION_START = re.compile(
    r"<details[^>]*>\s*<summary[^>]*>\s*<span[^>]*>\s*\d+\.\s*[^<]*</span>",
    re.IGNORECASE,
)
# Where the flat-text score lookup stops: the next "Label:" or a nested heading
_FIELD_BOUNDARY = re.compile(
    rf"\b[A-Z][\w ]{{0,40}}:|{re.escape(WHY_MATCH_HEADING)}|{re.escape(GAP_HEADING)}"
)


def extract_books(html: str) -> list[BookRecord]:
    """Parse the innerHTML of one response container into book records.

    A section that fails to parse is logged and skipped; the rest of the
    batch continues. An empty result is valid.
    """
    logger.info("Extracting books from HTML fragment (%d characters)", len(html))
    question = extract_question(html)

    sections = split_book_sections(html)
    logger.info("Found %d book sections", len(sections))

    books = []
    for index, section in enumerate(sections, 1):
        try:
            book = parse_book_section(section, question=question)
        except Exception as e:
            logger.warning("Error parsing book section %d: %s", index, e)
            continue
        if book is None:
            logger.warning("Skipping book section %d: no title found", index)
            continue
        logger.debug("Extracted book %d: \"%s\" (%d%%)", index, book.title, book.relevance_score)
        books.append(book)

    if not books:
        logger.warning("No books extracted from response")
    else:
        logger.info("Extracted %d books", len(books))
    return books


def extract_question(html: str) -> str:
    """The echoed user query: the text of the first summary span."""
    soup = parse_fragment(html)
    summary = soup.find("summary")
    if summary is None:
        return ""
    span = summary.find("span")
    return normalize_whitespace((span or summary).get_text(" "))


def split_book_sections(html: str) -> list[str]:
    """Split a response fragment into per-book section markup.

    Primary strategy walks the parsed DOM for ``<details>`` elements whose
    own summary carries a numbered prefix. If none are found (for example
    when the fragment is truncated and the tree is unbalanced), the raw
    markup is sliced between successive numbered-summary openings.
    Sections without the "Book Title:" anchor or below the minimum length
    are discarded.
    """
    sections = _sections_from_dom(html)
    if not sections:
        logger.info("No numbered <details> in DOM, falling back to marker offsets")
        sections = _sections_from_offsets(html)

    valid = [s for s in sections if TITLE_ANCHOR in s and len(s) > MIN_SECTION_LENGTH]
    logger.debug("Valid book sections: %d of %d", len(valid), len(sections))
    return valid


def _sections_from_dom(html: str) -> list[str]:
    soup = parse_fragment(html)
    candidates = [
        details for details in soup.find_all("details")
        if SECTION_MARKER.match(summary_text(details))
    ]
    # A numbered section that wraps other numbered sections spans several books
    innermost = [
        details for details in candidates
        if not any(other is not details and _contains(details, other) for other in candidates)
    ]
    return [str(details) for details in innermost]


def _contains(outer: Tag, inner: Tag) -> bool:
    return any(parent is outer for parent in inner.parents)


def _sections_from_offsets(html: str) -> list[str]:
    starts = [m.start() for m in _RAW_SECTION_START.finditer(html)]
    sections = []
    for i, start in enumerate(starts):
        end = starts[i + 1] if i + 1 < len(starts) else len(html)
        sections.append(html[start:end])
    return sections


def parse_book_section(section_html: str, question: str = "") -> BookRecord | None:
    """Build a BookRecord from one section; None when no title can be found."""
    root = parse_fragment(section_html)

    title = _extract_title(root)
    if not title:
        return None

    reasons, highlights = _extract_reasons(root)

    return BookRecord(
        title=title,
        author=label_value(root, "Author"),
        publishing_date=label_value(root, "Publishing Date"),
        imprint=label_value(root, "Imprint"),
        relevance_score=_extract_relevance_score(root, title),
        gap=_extract_gap(root) or NO_GAP,
        reasons=reasons,
        highlighted_texts=highlights,
        question=question,
    )


def _extract_title(root) -> str:
    title = label_value(root, "Book Title")
    if title:
        return title

    details = root.find("details")
    if details is not None:
        match = SECTION_MARKER.match(summary_text(details))
        if match:
            return match.group(1).strip()
    return ""


def _extract_relevance_score(root, title: str) -> int:
    score = percentage_value(label_value(root, "Relevance Score"))
    if score is None:
        score = percentage_value(_score_field_text(root))
    if score is None:
        logger.debug("No relevance score for \"%s\", defaulting to 0", title)
        return 0

    if score > 100:
        logger.warning("Relevance score %d out of range for \"%s\", defaulting to 0", score, title)
        return 0
    return score


def _score_field_text(root) -> str:
    """Flattened text between "Relevance Score:" and the next field.

    Covers layouts where the value is split across several nodes, such as
    ``<strong>92</strong>%``.
    """
    text = root.get_text(" ")
    label = "Relevance Score:"
    start = text.find(label)
    if start < 0:
        return ""
    rest = text[start + len(label):]
    boundary = _FIELD_BOUNDARY.search(rest)
    if boundary:
        rest = rest[: boundary.start()]
    return normalize_whitespace(rest)


def _extract_reasons(root) -> tuple[list[str], list[str]]:
    reasons = []
    highlights = []
    items = subsection_items(root, WHY_MATCH_HEADING)
    if not items:
        logger.debug("No \"%s ... Match\" section found", WHY_MATCH_HEADING)

    for item in items:
        text = strip_citation_markup(item)
        if len(text) <= MIN_REASON_LENGTH:
            continue
        reasons.append(text)
        highlights.append(highlighted_text(item))
    return reasons, highlights


def _extract_gap(root) -> str:
    items = [strip_citation_markup(item) for item in subsection_items(root, GAP_HEADING)]
    return FIELD_SEPARATOR.join(text for text in items if text)

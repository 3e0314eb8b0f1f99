"""Helpers for reading BookGenie accordion markup with BeautifulSoup.

Each lookup is an ordered list of strategies: the primary DOM walk, a
fallback over the flattened text, then an empty default. A missing anchor
never raises.
"""

import copy
import re

from bs4 import BeautifulSoup, Tag
from bs4.element import Comment

CITATION_SELECTOR = '[class*="BookCitation"]'

# "( )", "(metadata)", "(manuscript, metadata)" or a dangling "(" left behind
# once citation buttons are stripped from a list item
_CITATION_MARKER = re.compile(r"\(\s*(?:(?:metadata|manuscript)\s*,?\s*)*(?:\)|$)", re.IGNORECASE)
_LABEL_LIKE = re.compile(r"^[A-Z][\w ]{0,40}:$")
_VALUE_STOP_TAGS = {"p", "summary", "details", "ol", "ul", "li"}
_PERCENT_VALUE = re.compile(r"\s*(\d{1,3})\s*%?\s*")


def parse_fragment(html: str) -> BeautifulSoup:
    return BeautifulSoup(html, "html.parser")


def normalize_whitespace(text: str) -> str:
    return re.sub(r"\s+", " ", text).strip()


def percentage_value(text: str) -> int | None:
    """Integer from a bare "92" or "92%" value; None for anything else."""
    match = _PERCENT_VALUE.fullmatch(text or "")
    return int(match.group(1)) if match else None


def summary_text(details: Tag) -> str:
    """Text of the summary that directly heads a <details> element."""
    summary = details.find("summary", recursive=False)
    if summary is None:
        return ""
    return normalize_whitespace(summary.get_text(" "))


def label_value(root: Tag, label: str) -> str:
    """Return the value captured after a "<Label>:" field label.

    The rendered markup is ``<span><p>Label:</p></span> value`` (or
    ``<p><p>Label:</p> value</p>``), so the value is the first non-empty
    text node following the label node.
    """
    value = _value_after_label_node(root, label)
    if value is not None:
        return value
    return _value_from_flat_text(root, label)


def _value_after_label_node(root: Tag, label: str) -> str | None:
    """Value following a standalone label node; None when there is no such node.

    The scan ends at the next block element, so an empty field never picks
    up a following heading or paragraph.
    """
    pattern = re.compile(rf"^\s*{re.escape(label)}:\s*$")
    node = root.find(string=pattern)
    if node is None:
        return None
    for element in node.next_elements:
        if isinstance(element, Tag):
            if element.name in _VALUE_STOP_TAGS:
                return ""
            continue
        if isinstance(element, Comment):
            continue
        text = normalize_whitespace(str(element))
        if not text:
            continue
        if _LABEL_LIKE.match(text):
            return ""
        return text
    return ""


def _value_from_flat_text(root: Tag, label: str) -> str:
    # Inline "Label: value" inside a single text node
    text = root.get_text("\n")
    match = re.search(rf"{re.escape(label)}:[ \t]*([^\n]+)", text)
    if not match:
        return ""
    value = normalize_whitespace(match.group(1))
    if _LABEL_LIKE.match(value):
        return ""
    return value


def subsection_items(root: Tag, heading: str) -> list[Tag]:
    """Return the <li> items of the list under a collapsible sub-section.

    Looks for the <summary> whose text contains ``heading`` and takes the
    ordered list of its <details>; falls back to the first list following
    any text node that mentions the heading.
    """
    ol = None
    for summary in root.find_all("summary"):
        if heading in summary.get_text(" "):
            details = summary.find_parent("details")
            if details is not None:
                ol = details.find("ol")
            break

    if ol is None:
        node = root.find(string=re.compile(re.escape(heading)))
        if node is not None:
            ol = node.find_next("ol")

    if ol is None:
        return []

    items = ol.find_all("li", recursive=False)
    return items or ol.find_all("li")


def strip_citation_markup(item: Tag) -> str:
    """Plain text of a list item without citation buttons or trailing markers."""
    item = copy.copy(item)
    for citation in item.select(CITATION_SELECTOR):
        citation.decompose()
    text = normalize_whitespace(item.get_text(" "))
    marker = _CITATION_MARKER.search(text)
    if marker:
        text = text[: marker.start()]
    text = re.sub(r"\s+([,.;:!?])", r"\1", text)
    return text.strip().rstrip(",").strip()


def highlighted_text(item: Tag) -> str:
    """Highlighted citation span text inside a list item, " | "-joined.

    Primary: the pink ``text-[#d63384]`` spans. Fallback: any
    ``span.font-content``.
    """
    spans = item.select('span[class*="d63384"]')
    if not spans:
        spans = item.select("span.font-content")

    texts = []
    for span in spans:
        inner = span.find("p")
        text = normalize_whitespace((inner or span).get_text(" "))
        if text:
            texts.append(text)
    return " | ".join(texts)

"""Unit tests for recommendation-panel card extraction."""

import pytest

from src.extraction.card_extractor import extract_cards, parse_card
from src.models.enums import CitationType


def _card_html(
    title="The Giver",
    number=1,
    byline="by Lois Lowry, from Imprint: Houghton Mifflin",
    score="92%",
    reasons=None,
):
    if reasons is None:
        reasons = [
            ("Set in a dystopian society that controls memory", "dystopian society", "metadata"),
            ("A young protagonist questions the rules", None, "manuscript"),
        ]
    items = []
    for text, highlight, kind in reasons:
        pink = (
            f'<span class="text-[#d63384] font-content"><p>{highlight}</p></span>'
            if highlight else ""
        )
        items.append(
            f"<li><p>{text} "
            f'<span class="BookCitation-module_citation__a1">'
            f'<button class="BookCitation-module_citationButton__b2">'
            f'<span class="BookCitation-module_citationText__c3">({kind})</span>'
            f"</button>{pink}</span></p></li>"
        )
    badge = f'<div aria-label="Relevance Score"><span>{score}</span></div>' if score is not None else ""
    heading = f'<h3 title="{title}">{number}. {title}</h3>' if title else ""
    return (
        f'<div class="p-card-body">{heading}<p>{byline}</p>{badge}'
        f'<button data-state="open"><h2>Why this book is the Best Match</h2></button>'
        f'<ol class="list-decimal">{"".join(items)}</ol></div>'
    )


class TestParseCard:
    def test_full_card(self):
        card = parse_card(_card_html())

        assert card.title == "The Giver"
        assert card.authors == "Lois Lowry"
        assert card.imprint == "Houghton Mifflin"
        assert card.relevance_score == 92
        assert card.reasons == (
            "Set in a dystopian society that controls memory",
            "A young protagonist questions the rules",
        )
        assert card.highlighted_texts == ("dystopian society", "")
        assert card.citation_types == (CitationType.METADATA, CitationType.MANUSCRIPT)

    def test_title_from_heading_text(self):
        html = _card_html().replace(' title="The Giver"', "")
        assert parse_card(html).title == "The Giver"

    def test_byline_without_imprint(self):
        card = parse_card(_card_html(byline="by Lois Lowry"))

        assert card.authors == "Lois Lowry"
        assert card.imprint == ""

    def test_missing_score_is_none(self):
        assert parse_card(_card_html(score=None)).relevance_score is None

    def test_unreadable_score_is_none(self):
        assert parse_card(_card_html(score="High")).relevance_score is None

    def test_missing_title_raises(self):
        with pytest.raises(ValueError, match="title"):
            parse_card(_card_html(title=""))


class TestExtractCards:
    def test_skips_cards_without_title(self):
        cards = extract_cards([_card_html(), _card_html(title=""), _card_html("1984", 2)])

        assert [card.title for card in cards] == ["The Giver", "1984"]

    def test_empty_panel(self):
        assert extract_cards([]) == []

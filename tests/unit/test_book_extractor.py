"""Unit tests for BookGenie response extraction."""

from src.extraction.book_extractor import (
    extract_books,
    extract_question,
    parse_book_section,
    split_book_sections,
)
from src.models.book import NO_GAP


def _book_section(
    number,
    title,
    score="92%",
    author="Lois Lowry",
    reasons=None,
    gap_items=None,
):
    if reasons is None:
        reasons = [
            (
                "Set in a dystopian society that controls memory and emotion",
                "dystopian society",
                "metadata",
            ),
            (
                "Coming-of-age story with a young protagonist questioning the rules",
                None,
                "manuscript",
            ),
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
            f'<i class="pi pi-angle-down"></i></button>{pink}</span></p></li>'
        )
    gap = ""
    if gap_items:
        gap = (
            "<details><summary>The Gap</summary><ol>"
            + "".join(f"<li>{g}</li>" for g in gap_items)
            + "</ol></details>"
        )
    return (
        f'<details class="accordion"><summary><span class="truncate">{number}. {title}</span></summary>'
        f'<div class="content">'
        f"<p><span><p>Book Title:</p></span> {title}</p>"
        f"<p><span><p>Author:</p></span> {author}</p>"
        f"<p><span><p>Publishing Date:</p></span> 1993</p>"
        f"<p><span><p>Imprint:</p></span> Houghton Mifflin</p>"
        f"<p><span><p>Relevance Score:</p></span> {score}</p>"
        f"<details><summary>Why this book is the Best Match</summary>"
        f'<ol class="list-decimal">{"".join(items)}</ol></details>'
        f"{gap}</div></details>"
    )


def _response(*sections, question="Books about dystopian futures for teens"):
    return (
        f'<details open><summary><span class="truncate">{question}</span></summary>'
        f"<div>{''.join(sections)}</div></details>"
    )


GIVER_HTML = _response(
    _book_section(1, "The Giver", gap_items=["Written for a slightly younger audience"])
)


class TestExtractBooks:
    """Extraction of typed book records from a response fragment."""

    def test_giver_scenario(self):
        books = extract_books(GIVER_HTML)

        assert len(books) == 1
        book = books[0]
        assert book.title == "The Giver"
        assert book.relevance_score == 92
        assert len(book.reasons) == 2
        assert book.highlighted_texts[0] == "dystopian society"

    def test_labelled_fields(self):
        book = extract_books(GIVER_HTML)[0]

        assert book.author == "Lois Lowry"
        assert book.publishing_date == "1993"
        assert book.imprint == "Houghton Mifflin"
        assert book.question == "Books about dystopian futures for teens"

    def test_reason_text_excludes_citation_markup(self):
        book = extract_books(GIVER_HTML)[0]

        assert book.reasons[0] == "Set in a dystopian society that controls memory and emotion"
        assert book.reasons[1] == "Coming-of-age story with a young protagonist questioning the rules"
        assert "metadata" not in book.why_match
        assert "(" not in book.why_match

    def test_highlights_index_aligned_with_reasons(self):
        book = extract_books(GIVER_HTML)[0]

        assert len(book.highlighted_texts) == len(book.reasons)
        assert book.highlighted_texts[1] == ""

    def test_why_match_joins_reasons(self):
        book = extract_books(GIVER_HTML)[0]

        assert book.why_match.split(" | ") == list(book.reasons)

    def test_gap_items(self):
        html = _response(_book_section(
            1, "The Giver", score="85%",
            gap_items=["Written for a younger audience", "Slow opening chapters"],
        ))
        book = extract_books(html)[0]

        assert book.gap == "Written for a younger audience | Slow opening chapters"

    def test_missing_gap_yields_sentinel(self):
        html = _response(_book_section(1, "1984", author="George Orwell", score="100%"))
        book = extract_books(html)[0]

        assert book.gap == NO_GAP
        assert book.relevance_score == 100

    def test_multiple_books_in_order(self):
        html = _response(
            _book_section(1, "The Giver"),
            _book_section(2, "1984", author="George Orwell", score="88%"),
            _book_section(3, "Fahrenheit 451", author="Ray Bradbury", score="75 %"),
        )
        books = extract_books(html)

        assert [b.title for b in books] == ["The Giver", "1984", "Fahrenheit 451"]
        assert [b.relevance_score for b in books] == [92, 88, 75]

    def test_idempotent(self):
        assert extract_books(GIVER_HTML) == extract_books(GIVER_HTML)

    def test_perfect_score_books_carry_no_gap(self):
        html = _response(
            _book_section(1, "The Giver", score="100%"),
            _book_section(2, "1984", score="100%"),
        )
        for book in extract_books(html):
            assert book.relevance_score == 100
            assert book.gap in ("", NO_GAP)

    def test_empty_fragment_yields_no_books(self):
        assert extract_books("<div><p>Sorry, no matches.</p></div>") == []

    def test_short_reasons_dropped(self):
        html = _response(_book_section(
            1, "The Giver",
            reasons=[("Too short", None, "metadata"), ("A reason that is long enough to keep", None, "metadata")],
        ))
        book = extract_books(html)[0]

        assert book.reasons == ("A reason that is long enough to keep",)
        assert book.highlighted_texts == ("",)


class TestSplitBookSections:
    """Splitting a response into per-book sections."""

    def test_skips_unnumbered_and_anchorless_sections(self):
        decoy = (
            '<details class="accordion"><summary><span class="truncate">2. Watch me work</span></summary>'
            "<p>Interpreting context...</p></details>"
        )
        aggregate = (
            '<details class="accordion"><summary><span class="truncate">Books by Lois Lowry</span></summary>'
            "<p>" + "x" * 300 + "</p></details>"
        )
        html = _response(_book_section(1, "The Giver"), decoy, aggregate)

        sections = split_book_sections(html)

        assert len(sections) == 1
        assert "Book Title:" in sections[0]

    def test_section_below_minimum_length_discarded(self):
        tiny = '<details><summary><span>1. X</span></summary><p>Book Title:</p> X</details>'
        assert split_book_sections(tiny) == []


class TestParseBookSection:
    """Field-level fault tolerance when parsing one section."""

    def test_out_of_range_score_defaults_to_zero(self):
        book = parse_book_section(_book_section(1, "The Giver", score="150%"))
        assert book.relevance_score == 0

    def test_unparseable_score_defaults_to_zero(self):
        book = parse_book_section(_book_section(1, "The Giver", score="unknown"))
        assert book.relevance_score == 0

    def test_score_with_embedded_number_defaults_to_zero(self):
        book = parse_book_section(_book_section(1, "The Giver", score="Top 3 pick"))
        assert book.relevance_score == 0

    def test_score_not_read_from_reason_text(self):
        section = _book_section(
            1, "The Giver", score="N/A",
            reasons=[("Loved by 95% of teen readers in the survey", None, "metadata")],
        )
        book = parse_book_section(section)

        assert book.relevance_score == 0
        assert book.reasons == ("Loved by 95% of teen readers in the survey",)

    def test_score_split_across_nodes(self):
        section = _book_section(1, "The Giver").replace(
            "<p><span><p>Relevance Score:</p></span> 92%</p>",
            "<p><span><p>Relevance Score:</p></span> <strong>87</strong>%</p>",
        )
        assert parse_book_section(section).relevance_score == 87

    def test_missing_author_is_empty(self):
        section = _book_section(1, "The Giver").replace("<p><span><p>Author:</p></span> Lois Lowry</p>", "")
        book = parse_book_section(section)

        assert book.title == "The Giver"
        assert book.author == ""

    def test_empty_field_does_not_take_following_heading(self):
        section = (
            _book_section(1, "The Giver")
            .replace("<p><span><p>Imprint:</p></span> Houghton Mifflin</p>", "")
            .replace(
                "<p><span><p>Relevance Score:</p></span> 92%</p>",
                "<p><span><p>Relevance Score:</p></span> 92%</p><p><span><p>Imprint:</p></span> </p>",
            )
        )
        book = parse_book_section(section)

        assert book.imprint == ""
        assert book.relevance_score == 92

    def test_empty_field_does_not_take_next_paragraph(self):
        section = _book_section(1, "The Giver").replace(
            "<p><span><p>Author:</p></span> Lois Lowry</p>",
            "<p><span><p>Author:</p></span></p><p>Award winner</p>",
        )
        assert parse_book_section(section).author == ""

    def test_title_falls_back_to_summary(self):
        section = _book_section(1, "The Giver").replace("<p><span><p>Book Title:</p></span> The Giver</p>", "")
        book = parse_book_section(section)

        assert book.title == "The Giver"

    def test_no_title_returns_none(self):
        assert parse_book_section("<div><p>Author:</p> Nobody</div>") is None


class TestExtractQuestion:
    def test_reads_first_summary_span(self):
        assert extract_question(GIVER_HTML) == "Books about dystopian futures for teens"

    def test_no_summary(self):
        assert extract_question("<p>nothing</p>") == ""

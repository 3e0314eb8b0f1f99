"""Unit tests for reason/citation pairing and matching."""

from unittest.mock import MagicMock

from src.models.book import NO_CITATION, BookRecord
from src.models.relevance import SemanticVerdict
from src.validation.citations import pair_citations, validate_citation_match, validate_reason_citations

GIVER = BookRecord(
    title="The Giver",
    relevance_score=92,
    reasons=[
        "Set in a dystopian society that controls memory and emotion",
        "Coming-of-age story with a young protagonist questioning the rules",
        "Short novel suitable for middle grade readers",
    ],
)


def _validator(verdict):
    validator = MagicMock()
    validator.validate.return_value = verdict
    return validator


class TestPairCitations:
    def test_pairs_by_index_and_pads_missing(self):
        pairs = pair_citations(GIVER, {"The Giver": ["dystopian society", "young protagonist"]})

        assert pairs[0] == (GIVER.reasons[0], "dystopian society")
        assert pairs[1] == (GIVER.reasons[1], "young protagonist")
        assert pairs[2] == (GIVER.reasons[2], NO_CITATION)

    def test_unknown_book_gets_sentinels(self):
        pairs = pair_citations(GIVER, {})
        assert [citation for _, citation in pairs] == [NO_CITATION] * 3

    def test_title_matched_exactly(self):
        pairs = pair_citations(GIVER, {"the giver": ["dystopian society"]})
        assert pairs[0][1] == NO_CITATION


class TestValidateCitationMatch:
    def test_contained_citation_passes_without_ai(self):
        validator = MagicMock()
        result = validate_citation_match(GIVER.reasons[0], "Dystopian society!", 1, "The Giver", validator)

        assert result.is_valid
        assert result.match_percentage == 100.0
        assert not result.ai_validated
        validator.validate.assert_not_called()

    def test_sentinel_citation_fails_without_ai(self):
        validator = MagicMock()
        result = validate_citation_match(GIVER.reasons[2], NO_CITATION, 3, "The Giver", validator)

        assert not result.is_valid
        assert result.errors
        validator.validate.assert_not_called()

    def test_error_marker_fails(self):
        result = validate_citation_match(GIVER.reasons[0], "Error: Failed to open citation", 1, "The Giver")

        assert not result.is_valid
        assert "Citation extraction failed" in result.errors[0]

    def test_quote_mentioning_error_is_not_a_marker(self):
        result = validate_citation_match(
            "A memoir about learning by Trial and Error: lessons from a lifetime",
            "Trial and Error: lessons",
            1,
            "Trial and Error",
        )

        assert result.is_valid
        assert result.errors == []

    def test_empty_reason_fails(self):
        result = validate_citation_match("", "dystopian society", 1, "The Giver")
        assert not result.is_valid
        assert "Reason text is empty" in result.errors

    def test_similar_wording_passes_on_overlap(self):
        result = validate_citation_match(
            "A dystopian society that erases memory",
            "dystopian society that erases memories",
            1, "The Giver",
        )

        assert result.is_valid
        assert not result.ai_validated

    def test_ai_confirms_paraphrase(self):
        validator = _validator(SemanticVerdict(
            is_valid=True, similarity_score=0.8, match_percentage=82, ai_confidence=91,
        ))
        result = validate_citation_match(GIVER.reasons[1], "teenager challenges authority", 2, "The Giver", validator)

        assert result.is_valid
        assert result.ai_validated
        assert result.ai_confidence == 91
        assert result.match_percentage == 82
        validator.validate.assert_called_once_with(GIVER.reasons[1], "teenager challenges authority")

    def test_ai_rejection_recorded(self):
        validator = _validator(SemanticVerdict(
            is_valid=False, similarity_score=0.1, match_percentage=10, ai_confidence=88,
            explanation="Different concepts",
        ))
        result = validate_citation_match(GIVER.reasons[1], "a cookbook about pasta", 2, "The Giver", validator)

        assert not result.is_valid
        assert result.ai_validated
        assert "Different concepts" in result.errors

    def test_ai_fallback_reported_separately(self):
        validator = _validator(SemanticVerdict.fallback("model overloaded"))
        result = validate_citation_match(GIVER.reasons[1], "teenager challenges authority", 2, "The Giver", validator)

        assert not result.is_valid
        assert result.ai_fallback
        assert not result.ai_validated

    def test_no_validator_fails_on_low_similarity(self):
        result = validate_citation_match(GIVER.reasons[1], "teenager challenges authority", 2, "The Giver")

        assert not result.is_valid
        assert "below threshold" in result.errors[0]


class TestValidateReasonCitations:
    def test_builds_report_per_book(self):
        citations = {"The Giver": ["dystopian society", "young protagonist questioning", "Error: timeout"]}
        report = validate_reason_citations([GIVER], citations)

        results = report.results["The Giver"]
        assert [r.reason_number for r in results] == [1, 2, 3]
        assert [r.is_valid for r in results] == [True, True, False]
        assert report.aggregate.total_checked == 3
        assert report.aggregate.passed == 2

    def test_fallbacks_counted_in_aggregate(self):
        validator = _validator(SemanticVerdict.fallback("overloaded"))
        report = validate_reason_citations([GIVER], {"The Giver": ["x y z", "x y z", "x y z"]}, validator)

        assert report.aggregate.fallbacks == 3
        assert report.aggregate.passed == 0

    def test_books_without_reasons_skipped(self):
        report = validate_reason_citations([BookRecord(title="Empty")], {})

        assert report.results == {}
        assert report.aggregate.pass_rate == 0.0

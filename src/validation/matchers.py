"""Field matchers comparing an extracted book to a reference book.

All functions are pure comparisons returning a FieldValidationResult; no
LLM or browser is involved.
"""

import re

from src.models.book import FIELD_SEPARATOR, NO_GAP, BookRecord
from src.models.validation import FieldValidationResult

SCORE_TOLERANCE = 5
SIMILARITY_THRESHOLD = 0.6


def word_similarity(text_a: str, text_b: str) -> float:
    """Shared-word ratio: |words(a) ∩ words(b)| / max(|words(a)|, |words(b)|).

    Words are lower-cased and whitespace-separated. Returns 0.0 when both
    texts are empty.
    """
    words_a = text_a.lower().split()
    words_b = text_b.lower().split()
    longest = max(len(words_a), len(words_b))
    if longest == 0:
        return 0.0
    common = set(words_a) & set(words_b)
    return len(common) / longest


def normalize_for_containment(text: str) -> str:
    """Lower-case, punctuation to spaces, collapse whitespace."""
    text = re.sub(r"[^\w\s]", " ", text.lower())
    return re.sub(r"\s+", " ", text).strip()


def contains_text(container: str, fragment: str) -> bool:
    fragment = normalize_for_containment(fragment)
    if not fragment:
        return False
    return fragment in normalize_for_containment(container)


def count_points(why_match: str) -> int:
    if not why_match.strip():
        return 0
    return len(why_match.split(FIELD_SEPARATOR.strip()))


def match_exact(field: str, extracted: str, expected: str) -> FieldValidationResult:
    extracted = (extracted or "").strip()
    expected = (expected or "").strip()
    if extracted == expected:
        message = f"{field} matches: \"{extracted}\""
    else:
        message = f"Expected \"{expected}\", found \"{extracted}\""
    return FieldValidationResult(
        field=field,
        extracted_value=extracted,
        expected_value=expected,
        is_valid=extracted == expected,
        message=message,
    )


def match_score(extracted: int, expected: int, tolerance: int = SCORE_TOLERANCE) -> FieldValidationResult:
    """Relevance score check: valid iff |extracted - expected| <= tolerance."""
    diff = abs(extracted - expected)
    is_valid = diff <= tolerance
    if is_valid:
        message = f"Score {extracted}% within ±{tolerance} of expected {expected}%"
    else:
        message = f"Expected {expected}%, found {extracted}% (difference {diff} > {tolerance})"
    return FieldValidationResult(
        field="relevance_score",
        extracted_value=extracted,
        expected_value=expected,
        is_valid=is_valid,
        message=message,
    )


def match_similar(
    field: str,
    extracted: str,
    expected: str,
    threshold: float = SIMILARITY_THRESHOLD,
) -> FieldValidationResult:
    similarity = word_similarity(extracted, expected)
    is_valid = similarity >= threshold
    verdict = "meets" if is_valid else "below"
    return FieldValidationResult(
        field=field,
        extracted_value=extracted,
        expected_value=expected,
        is_valid=is_valid,
        message=f"Similarity {similarity * 100:.1f}% {verdict} threshold {threshold * 100:.0f}%",
        match_percentage=round(similarity * 100, 1),
    )


def match_point_count(extracted_why_match: str, expected_why_match: str) -> FieldValidationResult:
    """Why-match check: the response must list at least as many points as the reference."""
    if not expected_why_match.strip():
        return FieldValidationResult(
            field="why_match",
            extracted_value=extracted_why_match,
            expected_value=expected_why_match,
            is_valid=True,
            message="Skipped: no why-match in reference data",
        )

    extracted_points = count_points(extracted_why_match)
    expected_points = count_points(expected_why_match)
    is_valid = extracted_points >= expected_points
    return FieldValidationResult(
        field="why_match",
        extracted_value=extracted_points,
        expected_value=expected_points,
        is_valid=is_valid,
        message=f"{extracted_points} points extracted, {expected_points} expected",
    )


def match_gap(extracted: BookRecord, expected: BookRecord) -> FieldValidationResult:
    """Gap check, replaced by a presence check when the score is 100%.

    A perfect score must carry no gap regardless of the reference. Otherwise
    a reference without a gap skips the check, and a reference gap requires
    a similar extracted gap.
    """
    if extracted.relevance_score == 100:
        is_valid = not extracted.has_gap
        message = (
            "100% score with no gap mentioned"
            if is_valid
            else f"100% score but gap is mentioned: \"{extracted.gap}\""
        )
        return FieldValidationResult(
            field="gap",
            extracted_value=extracted.gap,
            expected_value=NO_GAP,
            is_valid=is_valid,
            message=message,
        )

    if not expected.has_gap:
        return FieldValidationResult(
            field="gap",
            extracted_value=extracted.gap,
            expected_value=expected.gap,
            is_valid=True,
            message="Skipped: no gap in reference data",
        )

    if not extracted.has_gap:
        return FieldValidationResult(
            field="gap",
            extracted_value=extracted.gap,
            expected_value=expected.gap,
            is_valid=False,
            message="Gap information missing in extracted data",
        )

    return match_similar("gap", extracted.gap, expected.gap)


def validate_book_fields(extracted: BookRecord, expected: BookRecord) -> list[FieldValidationResult]:
    """Run every field matcher for one extracted/reference pair."""
    return [
        match_exact("title", extracted.title, expected.title),
        match_exact("author", extracted.author, expected.author),
        match_score(extracted.relevance_score, expected.relevance_score),
        match_gap(extracted, expected),
        match_point_count(extracted.why_match, expected.why_match),
    ]

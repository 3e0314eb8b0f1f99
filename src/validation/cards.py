"""Cross-check the recommendation-panel cards against the chat response.

Cards are looked up in the chat books by exact title. A matched card must
carry the same author, a relevance score within tolerance, and every
chat reason somewhere among its own reasons.
"""

import logging

from src.models.book import BookRecord
from src.models.card import BookCard
from src.models.validation import BookValidationResult, CardReport, FieldValidationResult
from src.validation.matchers import contains_text, match_exact, match_score, word_similarity

logger = logging.getLogger(__name__)

CARD_REASON_THRESHOLD = 0.7


def find_chat_book(title: str, chat_books: list[BookRecord]) -> BookRecord | None:
    return next((book for book in chat_books if book.title == title), None)


def reason_found(expected: str, card_reasons: tuple[str, ...]) -> bool:
    expected = expected.strip()
    return any(
        contains_text(reason, expected) or word_similarity(reason, expected) > CARD_REASON_THRESHOLD
        for reason in card_reasons
    )


def match_card_reasons(card_reasons: tuple[str, ...], chat_reasons: tuple[str, ...]) -> FieldValidationResult:
    missing = [reason for reason in chat_reasons if not reason_found(reason, card_reasons)]
    matched = len(chat_reasons) - len(missing)
    message = f"{matched}/{len(chat_reasons)} chat reasons found on card"
    if missing:
        message += "; missing: " + "; ".join(f"\"{reason[:60]}\"" for reason in missing)
    return FieldValidationResult(
        field="reasons",
        extracted_value=len(card_reasons),
        expected_value=len(chat_reasons),
        is_valid=not missing,
        message=message,
        match_percentage=round(matched / len(chat_reasons) * 100, 1) if chat_reasons else 100.0,
    )


def _match_card_score(card: BookCard, chat_book: BookRecord) -> FieldValidationResult:
    if card.relevance_score is None:
        return FieldValidationResult(
            field="relevance_score",
            extracted_value=None,
            expected_value=chat_book.relevance_score,
            is_valid=False,
            message="Relevance score not shown on card",
        )
    return match_score(card.relevance_score, chat_book.relevance_score)


def validate_cards_against_chat(cards: list[BookCard], chat_books: list[BookRecord]) -> CardReport:
    report = CardReport()
    if not cards:
        logger.warning("No book cards to validate")

    for i, card in enumerate(cards):
        chat_book = find_chat_book(card.title, chat_books)
        if chat_book is None:
            logger.error("Card #%d \"%s\" not found in chat response", i + 1, card.title)
            report.cards.append(BookValidationResult(index=i, expected_title=card.title, found=False))
            continue

        result = BookValidationResult(
            index=i,
            expected_title=card.title,
            fields=[
                match_exact("author", card.authors, chat_book.author),
                _match_card_score(card, chat_book),
                match_card_reasons(card.reasons, chat_book.reasons),
            ],
        )
        if result.passed:
            logger.info("Card #%d \"%s\" matches the chat response", i + 1, card.title)
        else:
            logger.error("Card #%d \"%s\" failed: %s", i + 1, card.title, ", ".join(result.failed_fields))
        report.cards.append(result)

    return report

"""AI judge for semantic citation matching and response relevance.

Both judges retry retryable transport failures with exponential backoff
and never raise: exhausted retries, non-retryable errors and malformed
replies all produce a clearly labelled fallback result.
"""

import json
import logging
import re
import time
from typing import Callable

from langchain_core.language_models.chat_models import BaseChatModel
from langchain_core.messages import HumanMessage, SystemMessage

from src.errors import MalformedVerdictError
from src.llm.config import get_llm
from src.llm.retry import RetryPolicy, call_with_retry
from src.models.book import BookRecord
from src.models.relevance import BookAnalysis, RelevanceAnalysis, SectionScore, SemanticVerdict

logger = logging.getLogger(__name__)

MAX_RESPONSE_CHARS = 2000
RELEVANCE_SECTIONS = [
    "Author Information",
    "Publishing Date",
    "Why Match Explanations",
    "Relevance Scores",
]

_FENCED_BLOCK = re.compile(r"```(?:json)?\s*(.*?)\s*```", re.DOTALL)


def extract_structured_block(text: str) -> dict:
    """Parse the JSON object from a judge reply.

    Prefers a fenced ```json block; otherwise takes the outermost braces.
    Raises MalformedVerdictError when no JSON object can be read.
    """
    match = _FENCED_BLOCK.search(text)
    if match:
        candidate = match.group(1)
    else:
        start, end = text.find("{"), text.rfind("}")
        if start == -1 or end <= start:
            raise MalformedVerdictError("No structured block in judge reply")
        candidate = text[start:end + 1]

    try:
        parsed = json.loads(candidate)
    except json.JSONDecodeError as e:
        raise MalformedVerdictError(f"Invalid JSON in judge reply: {e}") from e
    if not isinstance(parsed, dict):
        raise MalformedVerdictError("Judge reply is not a JSON object")
    return parsed


def _content_text(reply) -> str:
    content = getattr(reply, "content", reply)
    if isinstance(content, list):
        parts = []
        for part in content:
            if isinstance(part, dict):
                parts.append(part.get("text", ""))
            else:
                parts.append(str(part))
        return "".join(parts)
    return str(content)


def _as_number(value, default: float) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return default
    return float(value)


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def parse_semantic_verdict(text: str) -> SemanticVerdict:
    data = extract_structured_block(text)
    is_valid = data.get("isValid")
    if not isinstance(is_valid, bool):
        raise MalformedVerdictError("Judge reply is missing a boolean 'isValid'")

    similarity = _as_number(data.get("similarityScore"), 0.9 if is_valid else 0.0)
    if similarity > 1.0:
        similarity /= 100
    percentage = _as_number(data.get("matchPercentage"), 90.0 if is_valid else 0.0)
    confidence = _as_number(data.get("aiConfidence"), 80.0)

    return SemanticVerdict(
        is_valid=is_valid,
        similarity_score=_clamp(similarity, 0.0, 1.0),
        match_percentage=_clamp(percentage, 0.0, 100.0),
        ai_confidence=int(_clamp(confidence, 0.0, 100.0)),
        explanation=str(data.get("explanation", "")),
    )


def build_citation_messages(reason_text: str, citation_text: str) -> list:
    return [
        SystemMessage(content=(
            "You are a citation validation assistant. Decide whether the REASON "
            "text and the CITATION text convey the same meaning despite minor "
            "wording differences.\n\n"
            "Rules:\n"
            "- PASS if the citation represents the same core idea as the reason\n"
            "- PASS if wording, spelling, synonyms or grammar differ but the meaning is identical\n"
            "- PASS if the citation is a subset of the reason\n"
            "- FAIL only if the citation describes a different concept\n\n"
            "Respond with ONLY a JSON object in a ```json fenced block:\n"
            '{"isValid": true/false, "similarityScore": 0.0-1.0, '
            '"matchPercentage": 0-100, "aiConfidence": 0-100, '
            '"explanation": "one sentence"}'
        )),
        HumanMessage(content=(
            f"REASON TEXT:\n\"{reason_text}\"\n\n"
            f"CITATION TEXT:\n\"{citation_text}\""
        )),
    ]


class _Judge:
    def __init__(
        self,
        llm: BaseChatModel | None = None,
        policy: RetryPolicy | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self._llm = llm
        self.policy = policy or RetryPolicy()
        self.sleep = sleep

    @property
    def llm(self) -> BaseChatModel:
        if self._llm is None:
            self._llm = get_llm()
        return self._llm

    def _ask(self, messages: list) -> str:
        reply = call_with_retry(lambda: self.llm.invoke(messages), self.policy, self.sleep)
        return _content_text(reply)


class SemanticValidator(_Judge):
    """Fallback matcher asking the judge whether two texts share a concept."""

    def validate(self, reason_text: str, citation_text: str) -> SemanticVerdict:
        try:
            reply = self._ask(build_citation_messages(reason_text, citation_text))
            verdict = parse_semantic_verdict(reply)
        except MalformedVerdictError as e:
            logger.error("Malformed semantic verdict: %s", e)
            return SemanticVerdict.fallback(str(e))
        except Exception as e:
            logger.error("Semantic validation failed after retries: %s", e)
            return SemanticVerdict.fallback(str(e))

        logger.info(
            "Semantic verdict: valid=%s match=%.0f%% confidence=%d%%",
            verdict.is_valid, verdict.match_percentage, verdict.ai_confidence,
        )
        return verdict


def build_relevance_messages(query: str, response_text: str, books: list[BookRecord]) -> list:
    if len(response_text) > MAX_RESPONSE_CHARS:
        response_text = response_text[:MAX_RESPONSE_CHARS] + "... [response truncated]"

    books_info = "\n".join(
        f"BOOK {i}: \"{book.title}\"\n"
        f"- Author: {book.author}\n"
        f"- Publishing Date: {book.publishing_date}\n"
        f"- Relevance Score: {book.relevance_score}%\n"
        f"- Why Match: {book.why_match}\n"
        f"- Gap: {book.gap}\n"
        for i, book in enumerate(books, 1)
    )
    sections = ", ".join(f'"{s}"' for s in RELEVANCE_SECTIONS)

    return [
        SystemMessage(content=(
            "You are a QA validation assistant analyzing BookGenie book "
            "recommendations. Evaluate how well EACH book addresses the original "
            "query, then the response as a whole.\n\n"
            f"For each book, score these sections 0-100: {sections}.\n\n"
            "Respond with ONLY a JSON object in a ```json fenced block:\n"
            '{"query": "...", "overallScore": 0-100, "bookAnalyses": [{"bookTitle": "...", '
            '"overallScore": 0-100, "sectionScores": [{"section": "...", "score": 0-100, '
            '"feedback": "..."}], "detailedFeedback": ["..."], '
            '"improvementSuggestions": ["..."]}], "summaryFeedback": ["..."], '
            '"improvementSuggestions": ["..."]}'
        )),
        HumanMessage(content=(
            f"QUERY: \"{query}\"\n\n"
            f"RESPONSE TO ANALYZE:\n{response_text}\n\n"
            f"BOOKS TO ANALYZE INDIVIDUALLY ({len(books)}):\n{books_info}"
        )),
    ]


def _score(value) -> int:
    return int(_clamp(_as_number(value, 0.0), 0.0, 100.0))


def _strings(value) -> list[str]:
    if not isinstance(value, list):
        return []
    return [str(item) for item in value]


def parse_relevance_analysis(text: str, query: str) -> RelevanceAnalysis:
    data = extract_structured_block(text)
    raw_books = data.get("bookAnalyses")
    if not isinstance(raw_books, list):
        raise MalformedVerdictError("Judge reply is missing a 'bookAnalyses' array")
    if not isinstance(data.get("overallScore"), (int, float)):
        raise MalformedVerdictError("Judge reply is missing a numeric 'overallScore'")

    analyses = []
    for raw in raw_books:
        if not isinstance(raw, dict):
            continue
        section_scores = [
            SectionScore(
                section=str(s.get("section", "")),
                score=_score(s.get("score")),
                feedback=str(s.get("feedback", "")),
            )
            for s in raw.get("sectionScores", [])
            if isinstance(s, dict)
        ]
        analyses.append(BookAnalysis(
            book_title=str(raw.get("bookTitle", "")),
            overall_score=_score(raw.get("overallScore")),
            section_scores=section_scores,
            detailed_feedback=_strings(raw.get("detailedFeedback")),
            improvement_suggestions=_strings(raw.get("improvementSuggestions")),
        ))

    return RelevanceAnalysis(
        query=query,
        overall_score=_score(data["overallScore"]),
        book_analyses=analyses,
        summary_feedback=_strings(data.get("summaryFeedback")),
        improvement_suggestions=_strings(data.get("improvementSuggestions")),
    )


def fallback_relevance_analysis(query: str, books: list[BookRecord], error: str) -> RelevanceAnalysis:
    unavailable = "Analysis unavailable - AI service error"
    return RelevanceAnalysis(
        query=query,
        overall_score=0,
        book_analyses=[
            BookAnalysis(
                book_title=book.title,
                overall_score=0,
                section_scores=[SectionScore(section, 0, unavailable) for section in RELEVANCE_SECTIONS],
                detailed_feedback=["AI analysis unavailable"],
                improvement_suggestions=["Retry analysis when the AI service is available"],
            )
            for book in books
        ],
        summary_feedback=[
            "AI analysis service unavailable, using fallback analysis",
            f"Error: {error}",
        ],
        improvement_suggestions=["Retry the analysis when the AI service is available"],
        is_fallback=True,
    )


class RelevanceJudge(_Judge):
    """Whole-response plus per-book relevance judgment against the query."""

    def analyze(self, query: str, response_text: str, books: list[BookRecord]) -> RelevanceAnalysis:
        try:
            reply = self._ask(build_relevance_messages(query, response_text, books))
            analysis = parse_relevance_analysis(reply, query)
        except MalformedVerdictError as e:
            logger.error("Malformed relevance analysis: %s", e)
            return fallback_relevance_analysis(query, books, str(e))
        except Exception as e:
            logger.error("Relevance analysis failed after retries: %s", e)
            return fallback_relevance_analysis(query, books, str(e))

        logger.info("Relevance analysis: overall %d%% over %d books", analysis.overall_score, len(analysis.book_analyses))
        return analysis

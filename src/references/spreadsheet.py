"""Reference spreadsheet of expected book recommendations, one row per book."""

import json
import logging
import re
from pathlib import Path

import pandas as pd

from src.errors import ReferenceUnavailableError
from src.models.book import FIELD_SEPARATOR, NO_GAP, BookRecord

logger = logging.getLogger(__name__)

SHEET_NAME = "Book Matches"
COLUMNS = [
    "question",
    "title",
    "author",
    "publishing_date",
    "imprint",
    "relevance_score",
    "gap",
    "why_match",
    "reasons",
    "highlighted_texts",
]
DEFAULT_STEM = "book_query_results"
MAX_STEM_LENGTH = 50


def query_to_filename(query: str) -> str:
    """Turn a query into a safe file stem.

    Lower-cased, runs of non-alphanumerics become one underscore, edges
    trimmed and capped at 50 characters.
    """
    stem = re.sub(r"[^a-z0-9]+", "_", query.lower()).strip("_")
    stem = stem[:MAX_STEM_LENGTH].rstrip("_")
    return stem or DEFAULT_STEM


def reference_path(query: str, results_dir: Path) -> Path:
    return Path(results_dir) / f"{query_to_filename(query)}.xlsx"


def _to_row(book: BookRecord) -> dict:
    # List columns are JSON arrays: a single highlight slot may itself hold
    # " | "-joined spans
    return {
        "question": book.question,
        "title": book.title,
        "author": book.author,
        "publishing_date": book.publishing_date,
        "imprint": book.imprint,
        "relevance_score": book.relevance_score,
        "gap": book.gap,
        "why_match": book.why_match,
        "reasons": json.dumps(list(book.reasons), ensure_ascii=False),
        "highlighted_texts": json.dumps(list(book.highlighted_texts), ensure_ascii=False),
    }


def _load_list(value: str) -> list[str] | None:
    value = value.strip()
    if not value.startswith("["):
        return None
    try:
        items = json.loads(value)
    except json.JSONDecodeError:
        return None
    if not isinstance(items, list):
        return None
    return [str(item).strip() for item in items]


def _split(value: str) -> list[str]:
    items = _load_list(value)
    if items is None:
        # Hand-edited sheets use " | "-joined text
        items = value.split(FIELD_SEPARATOR.strip())
    return [part.strip() for part in items if part.strip()]


def _split_aligned(value: str) -> list[str]:
    # Highlights stay index-aligned with reasons, so empty slots are kept
    if not value.strip():
        return []
    items = _load_list(value)
    if items is not None:
        return items
    return [part.strip() for part in value.split(FIELD_SEPARATOR.strip())]


def _parse_score(value: str) -> int:
    try:
        score = int(float(value.strip().rstrip("%")))
    except ValueError:
        return 0
    return score if 0 <= score <= 100 else 0


def _from_row(row: dict) -> BookRecord:
    reasons = row.get("reasons") or row.get("why_match") or ""
    return BookRecord(
        question=row.get("question", ""),
        title=row["title"].strip(),
        author=row.get("author", "").strip(),
        publishing_date=row.get("publishing_date", "").strip(),
        imprint=row.get("imprint", "").strip(),
        relevance_score=_parse_score(row.get("relevance_score", "")),
        gap=row.get("gap", "").strip() or NO_GAP,
        reasons=_split(reasons),
        highlighted_texts=_split_aligned(row.get("highlighted_texts", "")),
    )


def write_records(records: list[BookRecord], path: Path) -> Path:
    """Write books to an .xlsx reference file, creating parent directories."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    df = pd.DataFrame([_to_row(book) for book in records], columns=COLUMNS)
    df.to_excel(path, sheet_name=SHEET_NAME, index=False, engine="openpyxl")
    logger.info("Saved %d books to %s", len(records), path)
    return path


def read_records(path: Path) -> list[BookRecord]:
    """Read books from a reference file written by write_records.

    Raises ReferenceUnavailableError when the file does not exist. Rows
    without a title are skipped.
    """
    path = Path(path)
    if not path.exists():
        raise ReferenceUnavailableError("Reference spreadsheet", path)

    df = pd.read_excel(path, sheet_name=0, dtype=str, engine="openpyxl").fillna("")
    records = []
    for i, row in enumerate(df.to_dict(orient="records")):
        if not str(row.get("title", "")).strip():
            logger.warning("Skipping reference row %d without a title", i + 1)
            continue
        records.append(_from_row({key: str(value) for key, value in row.items()}))

    logger.info("Read %d books from %s", len(records), path)
    return records

"""Backend book database export, used for title existence checks."""

import logging
from pathlib import Path

import pandas as pd

from src.errors import ReferenceUnavailableError

logger = logging.getLogger(__name__)

TITLE_COLUMN = "Book Title"


def titles_match(extracted: str, db_title: str) -> bool:
    """Case-insensitive containment in either direction."""
    a = extracted.strip().lower()
    b = db_title.strip().lower()
    if not a or not b:
        return False
    return a in b or b in a


class BookDatabase:
    """Read-only view of the database export (.xlsx or .csv, one title column)."""

    def __init__(self, path: Path):
        self.path = Path(path)
        self._titles: list[str] | None = None

    def _load(self) -> pd.DataFrame:
        if not self.path.exists():
            raise ReferenceUnavailableError("Database", self.path)
        if self.path.suffix.lower() == ".csv":
            return pd.read_csv(self.path, dtype=str)
        return pd.read_excel(self.path, sheet_name=0, dtype=str, engine="openpyxl")

    def get_all_titles(self) -> list[str]:
        if self._titles is None:
            df = self._load()
            if TITLE_COLUMN not in df.columns:
                logger.warning("Database %s has no \"%s\" column", self.path, TITLE_COLUMN)
                self._titles = []
            else:
                titles = df[TITLE_COLUMN].dropna().astype(str).str.strip()
                self._titles = [t for t in titles if t]
            logger.info("Loaded %d book titles from database", len(self._titles))
        return self._titles

    def find_title(self, title: str) -> str | None:
        """Return the first database title matching ``title``, if any."""
        for db_title in self.get_all_titles():
            if titles_match(title, db_title):
                return db_title
        return None

    def find_matching(self, titles: list[str]) -> tuple[list[tuple[str, str]], list[str]]:
        """Split titles into (extracted, matched) pairs and missing titles."""
        found, missing = [], []
        for title in titles:
            match = self.find_title(title)
            if match is None:
                missing.append(title)
            else:
                found.append((title, match))
        return found, missing

    def info(self) -> dict:
        return {"path": str(self.path), "book_count": len(self.get_all_titles())}

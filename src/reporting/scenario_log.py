"""Per-scenario event log and report attachment sinks."""

import logging
import re
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime
from html import escape
from pathlib import Path
from typing import Iterator, Protocol

TEXT = "text/plain"
HTML = "text/html"

_EXTENSIONS = {TEXT: ".txt", HTML: ".html"}
_LEVEL_COLOURS = {
    "DEBUG": "#6e7781",
    "INFO": "#0969da",
    "WARNING": "#9a6700",
    "ERROR": "#cf222e",
    "CRITICAL": "#cf222e",
}


class ReportSink(Protocol):
    def attach(self, content: str, mime_type: str, name: str = "") -> None: ...


class DirectoryReportSink:
    """Writes each attachment as a numbered file in one run directory."""

    def __init__(self, run_dir: Path):
        self.run_dir = Path(run_dir)
        self.paths: list[Path] = []

    def attach(self, content: str, mime_type: str, name: str = "") -> None:
        self.run_dir.mkdir(parents=True, exist_ok=True)
        stem = re.sub(r"[^a-z0-9]+", "_", name.lower()).strip("_") or "attachment"
        path = self.run_dir / f"{len(self.paths) + 1:02d}_{stem}{_EXTENSIONS.get(mime_type, '.txt')}"
        path.write_text(content, encoding="utf-8")
        self.paths.append(path)


@dataclass
class LogEvent:
    timestamp: datetime
    level: str
    logger: str
    message: str


class ScenarioLog(logging.Handler):
    """Collects log records emitted while one scenario runs."""

    def __init__(self, level: int = logging.INFO):
        super().__init__(level)
        self.events: list[LogEvent] = []

    def emit(self, record: logging.LogRecord) -> None:
        self.events.append(LogEvent(
            timestamp=datetime.fromtimestamp(record.created),
            level=record.levelname,
            logger=record.name,
            message=record.getMessage(),
        ))

    @classmethod
    @contextmanager
    def capture(cls, logger_name: str = "src", level: int = logging.INFO) -> Iterator["ScenarioLog"]:
        handler = cls(level)
        target = logging.getLogger(logger_name)
        previous_level = target.level
        if target.getEffectiveLevel() > level:
            target.setLevel(level)
        target.addHandler(handler)
        try:
            yield handler
        finally:
            target.removeHandler(handler)
            target.setLevel(previous_level)

    def count(self, level: str) -> int:
        return sum(1 for e in self.events if e.level == level)

    def to_text(self) -> str:
        return "".join(
            f"[{e.timestamp:%H:%M:%S}] {e.level:<8} {e.message}\n" for e in self.events
        )

    def to_html(self) -> str:
        rows = "".join(
            f"<div style=\"color:{_LEVEL_COLOURS.get(e.level, '#000')}\">"
            f"<code>[{e.timestamp:%H:%M:%S}] {e.level}</code> {escape(e.message)}</div>"
            for e in self.events
        )
        return (
            "<html><head><meta charset=\"utf-8\"><title>Scenario log</title></head>"
            f"<body><h1>Scenario log</h1><p>{len(self.events)} events, "
            f"{self.count('WARNING')} warnings, {self.count('ERROR')} errors</p>{rows}</body></html>"
        )

    def flush_to(self, sink: ReportSink) -> None:
        sink.attach(self.to_text(), TEXT, "scenario log")
        sink.attach(self.to_html(), HTML, "scenario log")

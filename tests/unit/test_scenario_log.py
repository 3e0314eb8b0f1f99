"""Unit tests for the scenario event log and report sinks."""

import logging
from unittest.mock import MagicMock

from src.reporting.scenario_log import HTML, TEXT, DirectoryReportSink, ScenarioLog


class TestScenarioLog:
    def test_captures_src_loggers_only_while_active(self):
        logger = logging.getLogger("src.extraction.book_extractor")

        with ScenarioLog.capture() as log:
            logger.info("Extracted %d books", 3)
            logger.warning("No gap <section>")
        logger.info("after the scenario")

        assert [e.message for e in log.events] == ["Extracted 3 books", "No gap <section>"]
        assert [e.level for e in log.events] == ["INFO", "WARNING"]

    def test_ignores_other_loggers(self):
        with ScenarioLog.capture() as log:
            logging.getLogger("playwright").warning("unrelated")

        assert log.events == []

    def test_restores_logger_level(self):
        target = logging.getLogger("src")
        before = target.level

        with ScenarioLog.capture(level=logging.DEBUG):
            assert target.getEffectiveLevel() <= logging.DEBUG

        assert target.level == before

    def test_renders_text_and_html(self):
        with ScenarioLog.capture() as log:
            logging.getLogger("src.validation").error("Book <1> failed")

        assert "ERROR" in log.to_text()
        assert "Book <1> failed" in log.to_text()
        html = log.to_html()
        assert "Book &lt;1&gt; failed" in html
        assert "1 errors" in html

    def test_flush_attaches_both_renderings(self):
        sink = MagicMock()
        with ScenarioLog.capture() as log:
            logging.getLogger("src").info("hello")

        log.flush_to(sink)

        mime_types = [c.args[1] for c in sink.attach.call_args_list]
        assert mime_types == [TEXT, HTML]


class TestDirectoryReportSink:
    def test_writes_numbered_files(self, tmp_path):
        sink = DirectoryReportSink(tmp_path / "run")

        sink.attach("plain", TEXT, "Citation Validation")
        sink.attach("<p>x</p>", HTML, "Citation Validation")

        names = [p.name for p in sink.paths]
        assert names == ["01_citation_validation.txt", "02_citation_validation.html"]
        assert sink.paths[0].read_text(encoding="utf-8") == "plain"

    def test_unnamed_attachment(self, tmp_path):
        sink = DirectoryReportSink(tmp_path)
        sink.attach("x", "application/json")
        assert sink.paths[0].name == "01_attachment.txt"

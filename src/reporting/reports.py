"""Plain-text and HTML renderings of validation results."""

from html import escape

from src.models.relevance import RelevanceAnalysis
from src.models.validation import (
    AggregateReport,
    BookValidationResult,
    CardReport,
    CitationReport,
    DatabaseMatchReport,
    SpreadsheetReport,
)

RULE = "=" * 80
SUBRULE = "-" * 60
PREVIEW_CHARS = 100

_STYLE = (
    "body{font-family:sans-serif;margin:1.5em}"
    ".pass{color:#1a7f37}.fail{color:#cf222e}.fallback{color:#9a6700}"
    "table{border-collapse:collapse}td,th{border:1px solid #ccc;padding:4px 8px;text-align:left}"
)


def _preview(text: str) -> str:
    return text if len(text) <= PREVIEW_CHARS else text[:PREVIEW_CHARS] + "..."


def _mark(ok: bool) -> str:
    return "PASS" if ok else "FAIL"


def _html_page(title: str, body: list[str]) -> str:
    return (
        f"<html><head><meta charset=\"utf-8\"><title>{escape(title)}</title>"
        f"<style>{_STYLE}</style></head><body><h1>{escape(title)}</h1>"
        + "".join(body)
        + "</body></html>"
    )


def _summary_lines(aggregate: AggregateReport, noun: str) -> list[str]:
    return [
        f"SUMMARY: {aggregate.passed}/{aggregate.total_checked} {noun} passed ({aggregate.pass_rate:.1f}%)",
        f"OVERALL STATUS: {aggregate.status.value}",
    ]


def _summary_html(aggregate: AggregateReport, noun: str) -> str:
    css = aggregate.status.value.lower()
    return (
        f"<p>{aggregate.passed}/{aggregate.total_checked} {escape(noun)} passed "
        f"({aggregate.pass_rate:.1f}%)</p>"
        f"<p class=\"{css}\"><strong>OVERALL STATUS: {aggregate.status.value}</strong></p>"
    )


def citation_report_text(report: CitationReport) -> str:
    lines = ["CITATION VALIDATION REPORT", RULE, ""]
    for title, results in report.results.items():
        lines += [f"BOOK: {title}", SUBRULE]
        for r in results:
            line = f"[{_mark(r.is_valid)}] Reason {r.reason_number} ({r.match_percentage:.0f}%)"
            if r.ai_validated:
                line += f" [AI validated, confidence {r.ai_confidence}%]"
            if r.ai_fallback:
                line += " [AI fallback]"
            lines.append(line)
            if not r.is_valid:
                lines.append(f"   Reason: {_preview(r.reason_text)}")
                lines.append(f"   Citation: {_preview(r.citation_text)}")
                lines += [f"   ! {error}" for error in r.errors]
        lines.append("")

    aggregate = report.aggregate
    summary, status = _summary_lines(aggregate, "reasons")
    lines += [
        summary,
        f"AI VALIDATED: {report.ai_validated} reasons",
        f"AI FALLBACKS: {aggregate.fallbacks} reasons",
        status,
    ]
    return "\n".join(lines) + "\n"


def citation_report_html(report: CitationReport) -> str:
    body = []
    for title, results in report.results.items():
        rows = []
        for r in results:
            notes = []
            if r.ai_validated:
                notes.append(f"AI validated ({r.ai_confidence}%)")
            if r.ai_fallback:
                notes.append("<span class=\"fallback\">AI fallback</span>")
            notes += [escape(e) for e in r.errors]
            rows.append(
                f"<tr><td>{r.reason_number}</td>"
                f"<td class=\"{_mark(r.is_valid).lower()}\">{_mark(r.is_valid)}</td>"
                f"<td>{r.match_percentage:.0f}%</td>"
                f"<td>{escape(r.reason_text)}</td><td>{escape(r.citation_text)}</td>"
                f"<td>{'<br>'.join(notes)}</td></tr>"
            )
        body.append(
            f"<h2>{escape(title)}</h2><table><tr><th>#</th><th>Status</th><th>Match</th>"
            f"<th>Reason</th><th>Citation</th><th>Notes</th></tr>{''.join(rows)}</table>"
        )
    body.append(f"<p>AI validated: {report.ai_validated}, AI fallbacks: {report.aggregate.fallbacks}</p>")
    body.append(_summary_html(report.aggregate, "reasons"))
    return _html_page("Citation Validation Report", body)


def relevance_report_text(analysis: RelevanceAnalysis) -> str:
    lines = ["AI RELEVANCE ANALYSIS", RULE, f"QUERY: {analysis.query}", f"OVERALL SCORE: {analysis.overall_score}%"]
    if analysis.is_fallback:
        lines.append("NOTE: AI analysis unavailable, fallback result")
    lines.append("")
    for book in analysis.book_analyses:
        lines += [f"BOOK: {book.book_title} ({book.overall_score}%)", SUBRULE]
        lines += [f"  {s.section}: {s.score}% - {s.feedback}" for s in book.section_scores]
        lines += [f"  * {feedback}" for feedback in book.detailed_feedback]
        lines += [f"  > {suggestion}" for suggestion in book.improvement_suggestions]
        lines.append("")
    if analysis.summary_feedback:
        lines.append("SUMMARY FEEDBACK:")
        lines += [f"  * {feedback}" for feedback in analysis.summary_feedback]
    if analysis.improvement_suggestions:
        lines.append("IMPROVEMENT SUGGESTIONS:")
        lines += [f"  > {suggestion}" for suggestion in analysis.improvement_suggestions]
    lines.append(f"OVERALL STATUS: {_mark(analysis.passed)}")
    return "\n".join(lines) + "\n"


def relevance_report_html(analysis: RelevanceAnalysis) -> str:
    body = [f"<p>Query: {escape(analysis.query)}</p><p>Overall score: {analysis.overall_score}%</p>"]
    if analysis.is_fallback:
        body.append("<p class=\"fallback\">AI analysis unavailable, fallback result</p>")
    for book in analysis.book_analyses:
        rows = "".join(
            f"<tr><td>{escape(s.section)}</td><td>{s.score}%</td><td>{escape(s.feedback)}</td></tr>"
            for s in book.section_scores
        )
        feedback = "".join(f"<li>{escape(f)}</li>" for f in book.detailed_feedback + book.improvement_suggestions)
        body.append(
            f"<h2>{escape(book.book_title)} ({book.overall_score}%)</h2>"
            f"<table><tr><th>Section</th><th>Score</th><th>Feedback</th></tr>{rows}</table>"
            f"<ul>{feedback}</ul>"
        )
    summary = "".join(f"<li>{escape(f)}</li>" for f in analysis.summary_feedback + analysis.improvement_suggestions)
    body.append(f"<h2>Summary</h2><ul>{summary}</ul>")
    body.append(f"<p class=\"{_mark(analysis.passed).lower()}\"><strong>OVERALL STATUS: {_mark(analysis.passed)}</strong></p>")
    return _html_page("AI Relevance Analysis", body)


def _book_lines(book: BookValidationResult, label: str, missing: str) -> list[str]:
    lines = [f"[{_mark(book.passed)}] {label} #{book.index + 1}: {book.expected_title}"]
    if not book.found:
        lines.append(f"   ! {missing}")
    lines += [f"   [{_mark(f.is_valid)}] {f.field}: {f.message}" for f in book.fields]
    return lines


def _book_html(book: BookValidationResult, missing: str) -> str:
    rows = "".join(
        f"<tr><td>{escape(f.field)}</td><td class=\"{_mark(f.is_valid).lower()}\">{_mark(f.is_valid)}</td>"
        f"<td>{escape(str(f.extracted_value))}</td><td>{escape(str(f.expected_value))}</td>"
        f"<td>{escape(f.message)}</td></tr>"
        for f in book.fields
    )
    not_found = "" if book.found else f"<p class=\"fail\">{escape(missing)}</p>"
    return (
        f"<h2>#{book.index + 1} {escape(book.expected_title)}</h2>{not_found}"
        f"<table><tr><th>Field</th><th>Status</th><th>Extracted</th><th>Expected</th>"
        f"<th>Message</th></tr>{rows}</table>"
    )


def spreadsheet_report_text(report: SpreadsheetReport) -> str:
    lines = ["SPREADSHEET VALIDATION REPORT", RULE, f"REFERENCE: {report.reference_path}", ""]
    for book in report.books:
        lines += _book_lines(book, "Book", "Book not found in extracted data")
    lines.append("")
    lines += _summary_lines(report.aggregate, "books")
    return "\n".join(lines) + "\n"


def spreadsheet_report_html(report: SpreadsheetReport) -> str:
    body = [f"<p>Reference: {escape(report.reference_path)}</p>"]
    body += [_book_html(book, "Book not found in extracted data") for book in report.books]
    body.append(_summary_html(report.aggregate, "books"))
    return _html_page("Spreadsheet Validation Report", body)


def card_report_text(report: CardReport) -> str:
    lines = ["BOOK CARD VALIDATION REPORT", RULE, ""]
    if not report.cards:
        lines.append("No book cards found")
    for card in report.cards:
        lines += _book_lines(card, "Card", "Book not found in chat response")
    lines.append("")
    lines += _summary_lines(report.aggregate, "cards")
    return "\n".join(lines) + "\n"


def card_report_html(report: CardReport) -> str:
    body = [] if report.cards else ["<p class=\"fail\">No book cards found</p>"]
    body += [_book_html(card, "Book not found in chat response") for card in report.cards]
    body.append(_summary_html(report.aggregate, "cards"))
    return _html_page("Book Card Validation Report", body)


def database_report_text(report: DatabaseMatchReport) -> str:
    lines = [
        "DATABASE VALIDATION REPORT",
        RULE,
        f"DATABASE: {report.database_path} ({report.database_size} titles)",
        "",
        "FOUND:",
    ]
    lines += [f"  {extracted} -> {matched}" for extracted, matched in report.found]
    lines.append("MISSING:")
    lines += [f"  {title}" for title in report.missing]
    lines.append("")
    lines += _summary_lines(report.aggregate, "books")
    return "\n".join(lines) + "\n"


def database_report_html(report: DatabaseMatchReport) -> str:
    found = "".join(
        f"<tr><td>{escape(extracted)}</td><td>{escape(matched)}</td></tr>" for extracted, matched in report.found
    )
    missing = "".join(f"<li>{escape(title)}</li>" for title in report.missing)
    body = [
        f"<p>Database: {escape(report.database_path)} ({report.database_size} titles)</p>",
        f"<h2>Found</h2><table><tr><th>Extracted</th><th>Database title</th></tr>{found}</table>",
        f"<h2>Missing</h2><ul class=\"fail\">{missing}</ul>",
        _summary_html(report.aggregate, "books"),
    ]
    return _html_page("Database Validation Report", body)

"""Per-run import log and its Markdown report."""

from dataclasses import dataclass, field

from .formatting import format_timestamp
from .render import dump_front_matter

REPORT_SUFFIX = " - ChatGPT Import log.md"
NO_UPDATES = "No Updates"

LEGEND = "✨ Created | 🔄 Updated | ⏭️ Skipped | 🚫 Failed | ⚠️ Global Errors"


@dataclass
class LogEntry:
    """One conversation's outcome in a run."""

    title: str
    path: str
    created: str
    updated: str
    messages: int = 0
    reason: str = ""


@dataclass
class GlobalError:
    message: str
    details: str


@dataclass
class RunSummary:
    existing: int
    created: int
    updated: int
    skipped: int
    failed: int
    global_errors: int
    messages_imported: int
    messages_added: int


@dataclass
class RunLog:
    """Outcomes collected during a single import run.

    Entries are only ever appended; the log is rendered once at the end of
    the run and then dropped.
    """

    existing: int = 0  # conversation records held when the run started
    created: list[LogEntry] = field(default_factory=list)
    updated: list[LogEntry] = field(default_factory=list)
    skipped: list[LogEntry] = field(default_factory=list)
    failed: list[LogEntry] = field(default_factory=list)
    global_errors: list[GlobalError] = field(default_factory=list)

    def record_created(self, title: str, path: str, created: str, updated: str, messages: int = 0) -> None:
        self.created.append(LogEntry(title, path, created, updated, messages=messages))

    def record_updated(self, title: str, path: str, created: str, updated: str, messages: int = 0) -> None:
        self.updated.append(LogEntry(title, path, created, updated, messages=messages))

    def record_skipped(self, title: str, path: str, created: str, updated: str, reason: str = NO_UPDATES) -> None:
        self.skipped.append(LogEntry(title, path, created, updated, reason=reason))

    def record_failed(self, title: str, path: str, created: str, updated: str, error: str) -> None:
        self.failed.append(LogEntry(title, path, created, updated, reason=error))

    def record_global_error(self, message: str, details: str) -> None:
        self.global_errors.append(GlobalError(message, details))

    def has_errors(self) -> bool:
        return bool(self.failed or self.global_errors)

    def summarize(self) -> RunSummary:
        return RunSummary(
            existing=self.existing,
            created=len(self.created),
            updated=len(self.updated),
            skipped=len(self.skipped),
            failed=len(self.failed),
            global_errors=len(self.global_errors),
            messages_imported=sum(e.messages for e in self.created),
            messages_added=sum(e.messages for e in self.updated),
        )

    def render(self, archive_name: str, run_time: float) -> str:
        """Render the run as a Markdown note with front matter."""
        summary = self.summarize()
        metadata = {
            "importdate": f"{format_timestamp(run_time, 'date')} {format_timestamp(run_time, 'time')}",
            "zipFile": archive_name,
            "totalSuccessfulImports": summary.created,
            "totalUpdatedImports": summary.updated,
            "totalSkippedImports": summary.skipped,
            "totalFailedImports": summary.failed,
        }

        sections = [
            ("Created Notes", "created-notes", self.created, "✨", None),
            ("Updated Notes", "updated-notes", self.updated, "🔄", None),
            ("Skipped Notes", "skipped-notes", self.skipped, "⏭️", "Reason"),
            ("Failed Imports", "failed-imports", self.failed, "🚫", "Error"),
        ]

        lines = [
            "# ChatGPT Import Log",
            "",
            f"Imported ZIP file: {archive_name}",
            "",
            "## Summary",
            "",
            f"- Existing conversations: {summary.existing}",
            f"- New conversations imported: {summary.created}",
            f"- Conversations updated: {summary.updated}",
            f"- Conversations skipped: {summary.skipped}",
            f"- Conversations failed: {summary.failed}",
            f"- Messages imported: {summary.messages_imported}",
            f"- New messages added: {summary.messages_added}",
            "",
            "## Legend",
            "",
            LEGEND,
            "",
            "## Table of Contents",
            "",
        ]
        for title, anchor, entries, _, _ in sections:
            if entries:
                lines.append(f"- [{title}](#{anchor})")
        if self.global_errors:
            lines.append("- [Global Errors](#global-errors)")
        lines.append("")

        for title, _, entries, emoji, extra_column in sections:
            if entries:
                lines.extend(_entry_table(title, entries, emoji, extra_column))
        if self.global_errors:
            lines.extend(_error_table(self.global_errors))

        return dump_front_matter(metadata, "\n".join(lines).rstrip())


def report_file_name(prefix: str, counter: int = 0) -> str:
    """Return the report name for a run day, with a counter for repeat runs."""
    if counter:
        return f"{prefix}-{counter}{REPORT_SUFFIX}"
    return f"{prefix}{REPORT_SUFFIX}"


def _entry_table(title: str, entries: list[LogEntry], emoji: str, extra_column: str | None) -> list[str]:
    header = "| | Title | Created | Updated |"
    rule = "|---|:---|:---:|:---:|"
    if extra_column:
        header += f" {extra_column} |"
        rule += ":---|"

    lines = [f"## {title}", "", header, rule]
    for entry in entries:
        title_cell = _cell(entry.title)
        link = f"[[{entry.path}\\|{title_cell}]]" if entry.path else title_cell
        row = f"| {emoji} | {link} | {entry.created} | {entry.updated} |"
        if extra_column:
            row += f" {_cell(entry.reason)} |"
        lines.append(row)
    lines.append("")
    return lines


def _error_table(errors: list[GlobalError]) -> list[str]:
    lines = ["## Global Errors", "", "| | Error | Details |", "|---|:---|:---|"]
    for error in errors:
        lines.append(f"| ⚠️ | {_cell(error.message)} | {_cell(error.details)} |")
    lines.append("")
    return lines


def _cell(text: str) -> str:
    """Keep table cells on one line and stop pipes from splitting columns."""
    return " ".join(text.split()).replace("|", "\\|")

"""Timestamp and title formatting shared by rendering, placement and reports.

All timestamps are epoch seconds and are rendered in UTC so output does not
depend on the machine running the import.
"""

import re
from datetime import datetime, timezone

MAX_TITLE_LENGTH = 100
UNTITLED = "Untitled"

DATE_FORMATS = {
    "YYYY-MM-DD": "%Y-%m-%d",
    "YYYYMMDD": "%Y%m%d",
}

# Characters rejected by at least one of Windows, macOS, Linux or Obsidian links.
_INVALID_FILENAME_CHARS = re.compile(r'[<>:"/\\|?*#^\[\]\x00-\x1f]+')
_WHITESPACE = re.compile(r"\s+")


def to_datetime(timestamp: float) -> datetime:
    return datetime.fromtimestamp(timestamp, tz=timezone.utc)


def format_timestamp(timestamp: float, style: str, date_format: str = "YYYY-MM-DD") -> str:
    """Format epoch seconds as "date", "time" or a file-name "prefix"."""
    dt = to_datetime(timestamp)
    if style == "date":
        return dt.strftime("%Y-%m-%d")
    if style == "time":
        return dt.strftime("%H:%M:%S")
    if style == "prefix":
        try:
            return dt.strftime(DATE_FORMATS[date_format])
        except KeyError:
            raise ValueError(f"Unsupported date format: {date_format}") from None
    raise ValueError(f"Unknown timestamp style: {style}")


def human_timestamp(timestamp: float | None) -> str:
    """Return e.g. "2024-01-15 at 10:30:00", the form used in note headers."""
    if timestamp is None:
        return "unknown date"
    return f"{format_timestamp(timestamp, 'date')} at {format_timestamp(timestamp, 'time')}"


def short_timestamp(timestamp: float) -> str:
    """Return e.g. "2024-01-15 10:30:00", the form used in report tables."""
    return f"{format_timestamp(timestamp, 'date')} {format_timestamp(timestamp, 'time')}"


def year_month_folder(timestamp: float) -> str:
    """Return the "YYYY-MM" bucket a conversation created at `timestamp` belongs to."""
    return to_datetime(timestamp).strftime("%Y-%m")


def display_title(title: str | None) -> str:
    """Collapse a raw title to a single line, falling back to "Untitled"."""
    if not title:
        return UNTITLED
    return _WHITESPACE.sub(" ", title).strip() or UNTITLED


def format_title(title: str | None) -> str:
    """Turn a conversation title into a file-system safe base name."""
    name = _INVALID_FILENAME_CHARS.sub(" ", display_title(title))
    name = _WHITESPACE.sub(" ", name).strip(" .")
    name = name[:MAX_TITLE_LENGTH].rstrip(" .")
    return name or UNTITLED

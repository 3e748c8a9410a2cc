"""Choose the folder and file name for a conversation's new note."""

from dataclasses import dataclass
from pathlib import PurePosixPath

from .core import Conversation, Settings
from .formatting import format_timestamp, format_title, year_month_folder

NOTE_EXTENSION = ".md"


@dataclass
class Placement:
    folder: str
    file_name: str

    @property
    def path(self) -> str:
        return join_path(self.folder, self.file_name)


def join_path(*segments: str) -> str:
    """Join store path segments with "/", dropping empty ones.

    An empty archive folder therefore means the store root.
    """
    parts = [part for segment in segments for part in segment.split("/") if part]
    return "/".join(parts)


def conversation_folder(conversation: Conversation, settings: Settings) -> str:
    """Return "<archive folder>/<YYYY-MM>" for the conversation's creation month."""
    return join_path(settings.archive_folder, year_month_folder(conversation.create_time))


def base_file_name(conversation: Conversation, settings: Settings) -> str:
    """Return the preferred file name before collision handling."""
    name = format_title(conversation.title)
    if settings.add_date_prefix:
        prefix = format_timestamp(conversation.create_time, "prefix", settings.date_format)
        name = f"{prefix} - {name}"
    return f"{name}{NOTE_EXTENSION}"


def unique_file_name(file_name: str, existing_names: set[str]) -> str:
    """Return `file_name`, or the first "name (n).ext" with n >= 1 not in `existing_names`.

    Names are compared case-insensitively, as on macOS and Windows vaults.
    """
    taken = {name.casefold() for name in existing_names}
    if file_name.casefold() not in taken:
        return file_name

    path = PurePosixPath(file_name)
    stem, suffix = path.stem, path.suffix
    counter = 1
    while f"{stem} ({counter}){suffix}".casefold() in taken:
        counter += 1
    return f"{stem} ({counter}){suffix}"


def place(conversation: Conversation, settings: Settings, existing_names: set[str]) -> Placement:
    """Place a new conversation, given the names already used in its folder."""
    return Placement(
        folder=conversation_folder(conversation, settings),
        file_name=unique_file_name(base_file_name(conversation, settings), existing_names),
    )

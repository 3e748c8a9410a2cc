"""Core data models for chatgpt-import."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


class MessageKind(Enum):
    """What a raw message node turned out to be once parsed."""

    USER = "user"
    ASSISTANT = "assistant"
    SYSTEM = "system"  # tool or system authored, rendered like the assistant
    EMPTY = "empty"  # no author role or no text; never rendered


@dataclass
class Message:
    """A single message node from a conversation's mapping."""

    id: str  # merge key, unique within its conversation
    role: str  # "user" | "assistant" | "system" | "tool" | ""
    kind: MessageKind
    create_time: Optional[float] = None
    parts: list[str] = field(default_factory=list)  # text segments only

    @property
    def is_valid(self) -> bool:
        return self.kind is not MessageKind.EMPTY

    @property
    def text(self) -> str:
        return "\n".join(self.parts)


@dataclass
class Conversation:
    """A single chat thread from conversations.json."""

    id: str
    title: str
    create_time: float
    update_time: float
    messages: list[Message] = field(default_factory=list)  # mapping insertion order

    @property
    def valid_messages(self) -> list[Message]:
        return [m for m in self.messages if m.is_valid]


@dataclass
class ArchiveRecord:
    """An archive that has already been processed, keyed by its fingerprint."""

    file_name: str
    date: str  # ISO 8601, UTC


@dataclass
class ConversationRecord:
    """Where a conversation was written and which update it was synced at."""

    path: str
    update_time: float


@dataclass
class Settings:
    """User-tunable options persisted alongside the catalogs."""

    archive_folder: str = "ChatGPT Archives"
    add_date_prefix: bool = False
    date_format: str = "YYYY-MM-DD"  # "YYYY-MM-DD" | "YYYYMMDD"
    checkpoint: bool = False  # save state after every conversation, not just at run end


@dataclass
class SyncState:
    """Everything the engine persists between runs."""

    settings: Settings = field(default_factory=Settings)
    archive_records: dict[str, ArchiveRecord] = field(default_factory=dict)
    conversation_records: dict[str, ConversationRecord] = field(default_factory=dict)

"""Render conversations to Markdown notes and read those notes back.

A note is YAML front matter followed by a short header and one block per
message::

    ---
    aliases: Fix authentication bug
    conversation_id: 6790a1b2-...
    create_time: 1705314600
    update_time: 1705318200
    ---

    # Topic: Fix authentication bug
    Created: 2024-01-15 at 10:30:00
    Last Updated: 2024-01-15 at 11:30:00

    ### User, on 2024-01-15 at 10:30:00;
    > Why does login fail?
    <!-- UID: aaa-111 -->

    #### ChatGPT, on 2024-01-15 at 10:30:05;
    >> The token is never refreshed.
    <!-- UID: bbb-222 -->

    ---

The front matter labels, the ``Last Updated:`` line and the ``UID`` marker
are read back by the merge step, so their spelling must not change.
"""

import re
from dataclasses import dataclass, field
from typing import Any

import frontmatter

from .core import Conversation, Message, MessageKind
from .formatting import display_title, human_timestamp

USER_LABEL = "User"
ASSISTANT_LABEL = "ChatGPT"

UID_MARKER = "<!-- UID: {} -->"
UID_PATTERN = re.compile(r"<!-- UID: (.*?) -->")

_LAST_UPDATED = re.compile(r"^Last Updated: .*$", re.MULTILINE)
_UPDATE_TIME_FIELD = re.compile(r"^update_time:.*$", re.MULTILINE)

# Front matter keys owned by the note header, in the order they are written.
_HEADER_KEYS = ("aliases", "conversation_id", "create_time", "update_time")


@dataclass
class NoteHeader:
    """The typed part of a note's front matter."""

    title: Any = None
    conversation_id: str | None = None
    create_time: Any = None
    update_time: Any = None

    @classmethod
    def from_metadata(cls, metadata: dict) -> "NoteHeader":
        conversation_id = metadata.get("conversation_id")
        return cls(
            title=metadata.get("aliases"),
            conversation_id=str(conversation_id) if conversation_id is not None else None,
            create_time=metadata.get("create_time"),
            update_time=metadata.get("update_time"),
        )

    def to_metadata(self) -> dict:
        values = {
            "aliases": self.title,
            "conversation_id": self.conversation_id,
            "create_time": _epoch(self.create_time),
            "update_time": _epoch(self.update_time),
        }
        return {key: value for key, value in values.items() if value is not None}


@dataclass
class Note:
    """A parsed note: typed header, any extra front matter keys, and the body."""

    header: NoteHeader
    body: str
    extra: dict = field(default_factory=dict)

    @classmethod
    def parse(cls, text: str) -> "Note":
        post = frontmatter.loads(text)
        metadata = dict(post.metadata)
        extra = {key: value for key, value in metadata.items() if key not in _HEADER_KEYS}
        return cls(header=NoteHeader.from_metadata(metadata), body=post.content, extra=extra)

    def set_update_time(self, update_time: float) -> None:
        """Rewrite both the machine-readable and the human-readable update time."""
        self.header.update_time = update_time
        line = f"Last Updated: {human_timestamp(update_time)}"
        self.body = _LAST_UPDATED.sub(lambda _: line, self.body, count=1)

    def append(self, text: str) -> None:
        if not text:
            return
        body = self.body.rstrip()
        self.body = f"{body}\n\n{text}" if body else text

    def dumps(self) -> str:
        metadata = self.header.to_metadata()
        metadata.update(self.extra)
        return dump_front_matter(metadata, self.body)


def render_message(message: Message) -> str:
    """Render one message block, or "" for messages that carry nothing to show."""
    match message.kind:
        case MessageKind.EMPTY:
            return ""
        case MessageKind.USER:
            heading, label, quote, separator = "###", USER_LABEL, ">", False
        case MessageKind.ASSISTANT | MessageKind.SYSTEM:
            heading, label, quote, separator = "####", ASSISTANT_LABEL, ">>", True

    lines = [f"{heading} {label}, on {human_timestamp(message.create_time)};"]
    for line in message.text.split("\n"):
        lines.append(f"{quote} {line}".rstrip())
    lines.append(UID_MARKER.format(message.id))
    if separator:
        lines.extend(["", "---"])
    return "\n".join(lines)


def render_messages(messages: list[Message]) -> str:
    """Render messages in the given order, skipping ones with no content."""
    blocks = [render_message(m) for m in messages]
    return "\n\n".join(block for block in blocks if block)


def render_conversation(conversation: Conversation) -> str:
    """Render a full note for a conversation that has no note yet."""
    title = display_title(conversation.title)
    header = NoteHeader(
        title=title,
        conversation_id=conversation.id,
        create_time=conversation.create_time,
        update_time=conversation.update_time,
    )
    body = "\n".join([
        f"# Topic: {title}",
        f"Created: {human_timestamp(conversation.create_time)}",
        f"Last Updated: {human_timestamp(conversation.update_time)}",
    ])
    note = Note(header=header, body=body)
    note.append(render_messages(conversation.messages))
    return note.dumps()


def rewrite_update_time(text: str, update_time: float) -> str:
    """Rewrite the `update_time` field and the `Last Updated:` line as plain text.

    For notes whose front matter no longer parses as YAML.
    """
    text = _UPDATE_TIME_FIELD.sub(lambda _: f"update_time: {_epoch(update_time)}", text, count=1)
    line = f"Last Updated: {human_timestamp(update_time)}"
    return _LAST_UPDATED.sub(lambda _: line, text, count=1)


def dump_front_matter(metadata: dict, body: str) -> str:
    post = frontmatter.Post(body, **metadata)
    text = frontmatter.dumps(post, sort_keys=False)
    return text if text.endswith("\n") else text + "\n"


def _epoch(value):
    """Write whole-second timestamps as integers, keep anything else as is."""
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return value

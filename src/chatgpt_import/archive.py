"""Reading ChatGPT export archives.

An export is a zip file whose top-level ``conversations.json`` holds a JSON
array of conversations. Each conversation looks like::

    {
        "id": "...",
        "title": "...",            # may be null or missing
        "create_time": 1705314600.0,
        "update_time": 1705318200.0,
        "mapping": {
            "<node-id>": {"id": "<node-id>", "parent": ..., "children": [...],
                          "message": {...} | null},
            ...
        }
    }

and each ``message`` carries ``id``, ``author.role``, ``create_time`` and
``content.parts`` (strings for text, objects for images and other assets).

Message order is the insertion order of ``mapping``; it is never re-sorted.
"""

import hashlib
import io
import json
import logging
import zipfile

from .core import Conversation, Message, MessageKind
from .errors import ArchiveInvalid, MalformedConversation

logger = logging.getLogger(__name__)

CONVERSATIONS_ENTRY = "conversations.json"


def fingerprint(data: bytes) -> str:
    """Return the SHA-256 hex digest identifying an archive by content."""
    return hashlib.sha256(data).hexdigest()


def read_conversations(data: bytes) -> list[dict]:
    """Return the raw conversation objects stored in an export archive.

    Raises ArchiveInvalid if the bytes are not a zip, the zip has no
    top-level conversations.json, or that entry is not a JSON array.
    """
    try:
        with zipfile.ZipFile(io.BytesIO(data)) as zf:
            if CONVERSATIONS_ENTRY not in zf.namelist():
                raise ArchiveInvalid(f"File '{CONVERSATIONS_ENTRY}' not found in the zip")
            raw = zf.read(CONVERSATIONS_ENTRY)
    except zipfile.BadZipFile as e:
        raise ArchiveInvalid(f"Error validating zip file: {e}") from e

    try:
        conversations = json.loads(raw.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise ArchiveInvalid(f"{CONVERSATIONS_ENTRY} is not valid JSON: {e}") from e

    if not isinstance(conversations, list):
        raise ArchiveInvalid(f"{CONVERSATIONS_ENTRY} must contain a JSON array")

    return conversations


def is_valid_message(message: dict | None) -> bool:
    """True if a raw message has an author role and at least one non-blank text part."""
    if not isinstance(message, dict):
        return False

    author = message.get("author")
    if not isinstance(author, dict) or not author.get("role"):
        return False

    return any(part.strip() for part in _text_parts(message))


def classify_message(message: dict | None) -> MessageKind:
    """Map a raw message onto the MessageKind it should be rendered as."""
    if not is_valid_message(message):
        return MessageKind.EMPTY

    role = message["author"]["role"]
    if role == "user":
        return MessageKind.USER
    if role == "assistant":
        return MessageKind.ASSISTANT
    return MessageKind.SYSTEM


def parse_message(node_id: str, node: dict) -> Message | None:
    """Build a Message from one mapping node, or None for structural nodes."""
    if not isinstance(node, dict):
        return None

    raw = node.get("message")
    if not isinstance(raw, dict):
        return None

    author = raw.get("author") if isinstance(raw.get("author"), dict) else {}
    return Message(
        id=str(raw.get("id") or node_id),
        role=author.get("role") or "",
        kind=classify_message(raw),
        create_time=_as_number(raw.get("create_time")),
        parts=_text_parts(raw),
    )


def parse_conversation(raw: dict) -> Conversation:
    """Build a Conversation from one element of conversations.json."""
    if not isinstance(raw, dict):
        raise MalformedConversation("Conversation entry is not an object")

    conversation_id = raw.get("id") or raw.get("conversation_id")
    if not conversation_id:
        raise MalformedConversation("Conversation has no id")

    create_time = _as_number(raw.get("create_time"))
    update_time = _as_number(raw.get("update_time"))
    if create_time is None and update_time is None:
        raise MalformedConversation(f"Conversation {conversation_id} has no timestamps")
    if create_time is None:
        create_time = update_time
    if update_time is None:
        update_time = create_time

    mapping = raw.get("mapping") or {}
    if not isinstance(mapping, dict):
        raise MalformedConversation(f"Conversation {conversation_id} has an invalid mapping")

    messages = []
    for node_id, node in mapping.items():
        message = parse_message(node_id, node)
        if message is not None:
            messages.append(message)

    return Conversation(
        id=str(conversation_id),
        title=raw.get("title") or "",
        create_time=create_time,
        update_time=update_time,
        messages=messages,
    )


def _text_parts(message: dict) -> list[str]:
    """Return the string parts of a raw message's content, skipping assets."""
    content = message.get("content")
    if not isinstance(content, dict):
        return []
    parts = content.get("parts")
    if not isinstance(parts, list):
        return []
    return [part for part in parts if isinstance(part, str)]


def _as_number(value) -> float | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return value
    return None

"""Append new messages to a note that was written by an earlier import."""

import logging
from dataclasses import dataclass

import yaml

from .core import Conversation, Message
from .render import UID_PATTERN, Note, render_messages, rewrite_update_time

logger = logging.getLogger(__name__)


@dataclass
class MergeResult:
    text: str
    appended: int


def extract_message_uids(text: str) -> list[str]:
    """Return the message ids marked in a note, in document order."""
    return UID_PATTERN.findall(text)


def new_messages(conversation: Conversation, existing_ids: set[str]) -> list[Message]:
    """Return valid messages whose ids are not already in the note."""
    return [m for m in conversation.valid_messages if m.id not in existing_ids]


def merge_document(text: str, conversation: Conversation) -> MergeResult:
    """Merge a newer copy of a conversation into its existing note text.

    Blocks already in the note are left untouched. Update timestamps are
    rewritten even when there is nothing new to append. A note whose front
    matter was edited into invalid YAML is updated line by line instead.
    """
    candidates = new_messages(conversation, set(extract_message_uids(text)))

    try:
        note = Note.parse(text)
    except yaml.YAMLError as e:
        logger.warning("Front matter of conversation %s is not valid YAML, updating it as text: %s",
                       conversation.id, e)
        return MergeResult(text=_merge_text(text, conversation, candidates), appended=len(candidates))

    if note.header.conversation_id is None:
        note.header.conversation_id = conversation.id
    note.set_update_time(conversation.update_time)
    note.append(render_messages(candidates))

    return MergeResult(text=note.dumps(), appended=len(candidates))


def _merge_text(text: str, conversation: Conversation, candidates: list[Message]) -> str:
    text = rewrite_update_time(text, conversation.update_time)
    blocks = render_messages(candidates)
    if blocks:
        text = f"{text.rstrip()}\n\n{blocks}\n"
    return text

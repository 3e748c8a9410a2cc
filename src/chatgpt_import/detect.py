"""Decide what a conversation from an archive needs: creation, a merge, or nothing."""

from enum import Enum

from .core import Conversation, ConversationRecord


class ChangeKind(Enum):
    UNSEEN = "unseen"
    UNCHANGED = "unchanged"
    UPDATED = "updated"


def classify(conversation: Conversation, record: ConversationRecord | None) -> ChangeKind:
    """Classify a conversation against its persisted record.

    Equal update times count as unchanged so re-importing an unmodified
    archive never rewrites a note.
    """
    if record is None:
        return ChangeKind.UNSEEN
    if record.update_time >= conversation.update_time:
        return ChangeKind.UNCHANGED
    return ChangeKind.UPDATED

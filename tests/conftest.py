"""Shared test fixtures for chatgpt-import."""

import io
import json
import zipfile
from datetime import datetime, timezone

import pytest

from chatgpt_import.engine import SyncEngine
from chatgpt_import.state import StateFile
from chatgpt_import.stores.memory import MemoryStore

CREATED = datetime(2024, 1, 15, 10, 30, 0, tzinfo=timezone.utc).timestamp()
UPDATED = datetime(2024, 1, 15, 11, 30, 0, tzinfo=timezone.utc).timestamp()
LATER = datetime(2024, 1, 20, 9, 0, 0, tzinfo=timezone.utc).timestamp()
RUN_TIME = datetime(2024, 2, 1, 12, 0, 0, tzinfo=timezone.utc).timestamp()


def node(message_id, role, *parts, create_time=CREATED, parent=None):
    """Build one mapping node the way ChatGPT exports them."""
    return {
        "id": message_id,
        "parent": parent,
        "children": [],
        "message": {
            "id": message_id,
            "author": {"role": role, "name": None, "metadata": {}},
            "create_time": create_time,
            "content": {"content_type": "text", "parts": list(parts)},
            "status": "finished_successfully",
        },
    }


def conversation(conversation_id="conv-001", title="Fix authentication bug",
                 create_time=CREATED, update_time=UPDATED, nodes=None):
    """Build a raw conversations.json entry from a list of mapping nodes."""
    if nodes is None:
        nodes = [
            {"id": "root", "parent": None, "children": ["msg-001"], "message": None},
            node("msg-001", "user", "Why does login fail after an hour?", create_time=CREATED),
            node("msg-002", "assistant", "The access token expires.\nRefresh it before retrying.",
                 create_time=CREATED + 5),
        ]
    return {
        "id": conversation_id,
        "title": title,
        "create_time": create_time,
        "update_time": update_time,
        "mapping": {n["id"]: n for n in nodes},
    }


def make_archive(conversations, entry="conversations.json"):
    """Zip a list of raw conversations into export bytes."""
    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w") as zf:
        zf.writestr(entry, json.dumps(conversations))
        zf.writestr("user.json", json.dumps({"id": "user-001", "email": "test@example.com"}))
    return buf.getvalue()


@pytest.fixture
def raw_conversation():
    return conversation()


@pytest.fixture
def archive_bytes(raw_conversation):
    return make_archive([raw_conversation])


@pytest.fixture
def memory_store():
    return MemoryStore()


@pytest.fixture
def state_file(tmp_path):
    return StateFile(tmp_path / "state" / "data.json")


@pytest.fixture
def engine(memory_store, state_file):
    """An engine over an empty in-memory store with a fixed clock."""
    return SyncEngine(memory_store, state_file, clock=lambda: RUN_TIME)

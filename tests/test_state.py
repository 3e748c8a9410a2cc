"""Tests for the persisted state file."""

import json

import pytest

from chatgpt_import.core import ArchiveRecord, ConversationRecord, Settings, SyncState
from chatgpt_import.errors import StateError
from chatgpt_import.state import StateFile


def test_missing_file_is_empty_state(state_file):
    state = state_file.load()
    assert state.settings == Settings()
    assert state.archive_records == {}
    assert state.conversation_records == {}


def test_save_and_load(state_file):
    state = SyncState(
        settings=Settings(archive_folder="Chats", add_date_prefix=True, date_format="YYYYMMDD", checkpoint=True),
        archive_records={"abc123": ArchiveRecord(file_name="export.zip", date="2024-02-01T12:00:00+00:00")},
        conversation_records={"conv-001": ConversationRecord(path="Chats/2024-01/Chat.md", update_time=1705314600.5)},
    )
    state_file.save(state)
    assert state_file.load() == state


def test_file_layout(state_file):
    state = SyncState(conversation_records={"conv-001": ConversationRecord(path="a.md", update_time=10.0)})
    state_file.save(state)
    data = json.loads(state_file.path.read_text(encoding="utf-8"))
    assert set(data) == {"settings", "importedArchives", "conversationRecords"}
    assert data["settings"]["archiveFolder"] == "ChatGPT Archives"
    assert data["conversationRecords"]["conv-001"] == {"path": "a.md", "updateTime": 10.0}


def test_partial_file_uses_defaults(state_file):
    state_file.path.parent.mkdir(parents=True)
    state_file.path.write_text('{"settings": {"addDatePrefix": true}}', encoding="utf-8")
    state = state_file.load()
    assert state.settings.add_date_prefix is True
    assert state.settings.archive_folder == "ChatGPT Archives"
    assert state.conversation_records == {}


def test_corrupt_file_raises(state_file):
    state_file.path.parent.mkdir(parents=True)
    state_file.path.write_text("{not json", encoding="utf-8")
    with pytest.raises(StateError):
        state_file.load()


@pytest.mark.parametrize("payload", [
    "[]",
    '{"conversationRecords": {"c": {"path": "a.md"}}}',
    '{"importedArchives": {"d": "oops"}}',
])
def test_malformed_file_raises(state_file, payload):
    state_file.path.parent.mkdir(parents=True)
    state_file.path.write_text(payload, encoding="utf-8")
    with pytest.raises(StateError):
        state_file.load()


def test_save_creates_parent_directories(tmp_path):
    state_file = StateFile(tmp_path / "deep" / "nested" / "data.json")
    state_file.save(SyncState())
    assert state_file.path.is_file()
    assert [p.name for p in state_file.path.parent.iterdir()] == ["data.json"]

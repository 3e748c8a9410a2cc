"""Persisted settings and catalogs.

The state file is a single JSON object::

    {
        "settings": {"archiveFolder": ..., "addDatePrefix": ..., "dateFormat": ..., "checkpoint": ...},
        "importedArchives": {"<sha256>": {"fileName": ..., "date": ...}},
        "conversationRecords": {"<conversation id>": {"path": ..., "updateTime": ...}}
    }
"""

import json
import logging
import os
import tempfile
from dataclasses import dataclass
from pathlib import Path

from .core import ArchiveRecord, ConversationRecord, Settings, SyncState
from .errors import StateError

logger = logging.getLogger(__name__)


@dataclass
class StateFile:
    path: Path

    def load(self) -> SyncState:
        """Read the state file, or return empty state if there is none yet."""
        if not self.path.exists():
            return SyncState()

        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, UnicodeDecodeError, OSError) as e:
            raise StateError(f"Failed to read state file {self.path}: {e}") from e

        if not isinstance(data, dict):
            raise StateError(f"State file {self.path} does not contain an object")

        try:
            return _state_from_dict(data)
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            raise StateError(f"State file {self.path} is malformed: {e}") from e

    def save(self, state: SyncState) -> None:
        """Write the state file atomically."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        payload = json.dumps(_state_to_dict(state), indent=2, ensure_ascii=False)

        fd, tmp_name = tempfile.mkstemp(dir=self.path.parent, prefix=".", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(payload)
            os.replace(tmp_name, self.path)
        except OSError:
            Path(tmp_name).unlink(missing_ok=True)
            raise
        logger.debug("Saved state to %s", self.path)


def _state_from_dict(data: dict) -> SyncState:
    raw_settings = data.get("settings") or {}
    defaults = Settings()
    settings = Settings(
        archive_folder=raw_settings.get("archiveFolder", defaults.archive_folder),
        add_date_prefix=bool(raw_settings.get("addDatePrefix", defaults.add_date_prefix)),
        date_format=raw_settings.get("dateFormat", defaults.date_format),
        checkpoint=bool(raw_settings.get("checkpoint", defaults.checkpoint)),
    )

    archives = {
        digest: ArchiveRecord(file_name=entry["fileName"], date=entry["date"])
        for digest, entry in (data.get("importedArchives") or {}).items()
    }
    conversations = {
        conversation_id: ConversationRecord(path=entry["path"], update_time=float(entry["updateTime"]))
        for conversation_id, entry in (data.get("conversationRecords") or {}).items()
    }
    return SyncState(settings=settings, archive_records=archives, conversation_records=conversations)


def _state_to_dict(state: SyncState) -> dict:
    return {
        "settings": {
            "archiveFolder": state.settings.archive_folder,
            "addDatePrefix": state.settings.add_date_prefix,
            "dateFormat": state.settings.date_format,
            "checkpoint": state.settings.checkpoint,
        },
        "importedArchives": {
            digest: {"fileName": record.file_name, "date": record.date}
            for digest, record in state.archive_records.items()
        },
        "conversationRecords": {
            conversation_id: {"path": record.path, "updateTime": record.update_time}
            for conversation_id, record in state.conversation_records.items()
        },
    }

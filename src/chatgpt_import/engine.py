"""Incremental synchronization of ChatGPT exports into a document store.

One SyncEngine owns the persisted catalogs (processed archives and
conversation records) for one store. A run processes conversations strictly
one after another; a failing conversation is logged and skipped, never fatal.
State is flushed once at the end of a run unless the ``checkpoint`` setting
asks for a save after every conversation.
"""

import logging
import time
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable

from .archive import fingerprint, parse_conversation, read_conversations
from .config import apply_env_overrides, get_state_path, get_store_kind, get_vault_path
from .core import ArchiveRecord, Conversation, ConversationRecord, Settings
from .detect import ChangeKind, classify
from .errors import ArchiveInvalid, MalformedConversation, StoreError
from .formatting import DATE_FORMATS, display_title, format_timestamp, short_timestamp
from .merge import merge_document
from .placement import conversation_folder, join_path, place
from .render import Note, render_conversation
from .report import RunLog, RunSummary, report_file_name
from .state import StateFile
from .store import DocumentStore
from .stores import open_store

logger = logging.getLogger(__name__)

NOTICE_DONE = "Import completed. Log file created in the archive folder."
NOTICE_ERRORS = "An error occurred during import. Please check the log file for details."
NOTICE_NO_LOG = "Import completed, but the log file could not be written. Check the console for details."
NOTICE_CANCELLED = "Import cancelled."

LOG_FOLDER = "logs"

Confirm = Callable[[ArchiveRecord], bool]


@dataclass
class RunResult:
    """What a caller needs to tell the user once a run is over."""

    notice: str
    cancelled: bool = False
    has_errors: bool = False
    report_path: str | None = None
    summary: RunSummary | None = None


class SyncEngine:
    """Import archives into a document store, remembering what was imported."""

    def __init__(
        self,
        store: DocumentStore,
        state_file: StateFile,
        overrides: Callable[[Settings], Settings] | None = None,
        clock: Callable[[], float] = time.time,
    ):
        self.store = store
        self.state_file = state_file
        self.state = state_file.load()
        self._overrides = overrides
        self._clock = clock
        store.subscribe(self.handle_deleted)

    @property
    def settings(self) -> Settings:
        """Persisted settings with any environment overrides applied."""
        if self._overrides is None:
            return self.state.settings
        return self._overrides(self.state.settings)

    def is_known(self, digest: str) -> ArchiveRecord | None:
        return self.state.archive_records.get(digest)

    def process_archive(self, data: bytes, file_name: str, confirm: Confirm | None = None) -> RunResult:
        """Import one export archive and write its run report.

        If the archive was processed before, `confirm` is asked whether to
        process it again; without a callback the run is cancelled. Errors
        never propagate: they end up in the report and in the notice.
        """
        digest = fingerprint(data)
        known = self.is_known(digest)
        if known is not None:
            logger.info("Archive %s was already imported on %s as %s", file_name, known.date, known.file_name)
            if confirm is None or not confirm(known):
                logger.info("Import cancelled by user: %s", file_name)
                return RunResult(notice=NOTICE_CANCELLED, cancelled=True)

        run_time = self._clock()
        log = RunLog()

        try:
            settings = self.settings
        except ValueError as e:
            logger.error("Invalid settings override: %s", e)
            log.record_global_error("Invalid settings", str(e))
            settings = self.state.settings
            raw_conversations = None
        else:
            raw_conversations = self._read_archive(data, file_name, log)

        if raw_conversations is not None:
            self._run(raw_conversations, log, settings)
            self.state.archive_records[digest] = ArchiveRecord(
                file_name=file_name,
                date=datetime.fromtimestamp(run_time, tz=timezone.utc).isoformat(),
            )
            try:
                self.save()
            except OSError as e:
                logger.error("Failed to save import state: %s", e)
                log.record_global_error("Failed to save import state", str(e))

        summary = log.summarize()
        logger.info(
            "Processed %s: %d created, %d updated, %d skipped, %d failed",
            file_name, summary.created, summary.updated, summary.skipped, summary.failed,
        )

        report_path = self._write_report(log, file_name, run_time, settings)
        if log.has_errors():
            notice = NOTICE_ERRORS
        elif report_path is None:
            notice = NOTICE_NO_LOG
        else:
            notice = NOTICE_DONE

        return RunResult(
            notice=notice,
            has_errors=log.has_errors() or report_path is None,
            report_path=report_path,
            summary=summary,
        )

    def clear_all_state(self) -> None:
        """Forget every processed archive and conversation record."""
        self.state.archive_records.clear()
        self.state.conversation_records.clear()
        self.save()
        logger.info("All catalogs have been reset")

    def handle_deleted(self, path: str) -> None:
        """Drop the record of a conversation whose note was deleted."""
        for conversation_id, record in self.state.conversation_records.items():
            if record.path == path:
                del self.state.conversation_records[conversation_id]
                logger.info("Forgot conversation %s after %s was deleted", conversation_id, path)
                self.save()
                break

    def prune_missing_records(self) -> int:
        """Drop records whose notes no longer exist; return how many were dropped."""
        records = self.state.conversation_records
        missing = [cid for cid, record in records.items() if not self.store.exists(record.path)]
        for conversation_id in missing:
            logger.info("Note for conversation %s is gone: %s", conversation_id, records[conversation_id].path)
            del records[conversation_id]
        return len(missing)

    def rebuild_records(self) -> int:
        """Recover missing conversation records from notes already in the store.

        Notes written by a run that crashed before saving its state still
        carry their conversation_id, so they can be claimed again instead of
        being duplicated by the next import.
        """
        records = self.state.conversation_records
        claimed = {record.path for record in records.values()}
        added = 0

        for document in self.store.list_documents():
            if document.path in claimed:
                continue
            try:
                header = Note.parse(document.read()).header
            except Exception as e:
                logger.warning("Skipping unreadable note %s: %s", document.path, e)
                continue

            update_time = header.update_time
            if header.conversation_id is None or header.conversation_id in records:
                continue
            if isinstance(update_time, bool) or not isinstance(update_time, (int, float)):
                logger.warning("Note %s has no numeric update_time", document.path)
                continue

            records[header.conversation_id] = ConversationRecord(path=document.path, update_time=float(update_time))
            claimed.add(document.path)
            added += 1

        if added:
            self.save()
        logger.info("Recovered %d conversation records", added)
        return added

    def update_settings(self, **changes) -> Settings:
        """Change and persist settings; unknown keys raise TypeError."""
        settings = replace(self.state.settings, **changes)
        if settings.date_format not in DATE_FORMATS:
            raise ValueError(f"Date format must be one of {', '.join(DATE_FORMATS)}")
        self.state.settings = settings
        self.save()
        return settings

    def save(self) -> None:
        self.state_file.save(self.state)

    # ── Private helpers ──────────────────────────────────────────────

    def _read_archive(self, data: bytes, file_name: str, log: RunLog) -> list | None:
        try:
            raw_conversations = read_conversations(data)
        except ArchiveInvalid as e:
            logger.error("Invalid archive %s: %s", file_name, e)
            log.record_global_error("Invalid archive", str(e))
            return None
        logger.info("Extracted %d conversations from %s", len(raw_conversations), file_name)
        return raw_conversations

    def _run(self, raw_conversations: list, log: RunLog, settings: Settings) -> None:
        pruned = self.prune_missing_records()
        if pruned:
            logger.info("Dropped %d records for notes that no longer exist", pruned)
        log.existing = len(self.state.conversation_records)

        for raw in raw_conversations:
            try:
                self._process_conversation(raw, log, settings)
            except Exception as e:
                logger.exception("Unexpected error while processing a conversation")
                log.record_global_error("Error processing conversation", str(e))

    def _process_conversation(self, raw: dict, log: RunLog, settings: Settings) -> None:
        try:
            conversation = parse_conversation(raw)
        except MalformedConversation as e:
            title = raw.get("title") if isinstance(raw, dict) else None
            logger.error("Skipping malformed conversation %r: %s", title, e)
            log.record_failed(display_title(title), "", "", "", str(e))
            return

        title = display_title(conversation.title)
        created = short_timestamp(conversation.create_time)
        updated = short_timestamp(conversation.update_time)
        record = self.state.conversation_records.get(conversation.id)
        kind = classify(conversation, record)

        if kind is ChangeKind.UNCHANGED:
            log.record_skipped(title, record.path, created, updated)
            return

        path = record.path if record else ""
        try:
            if kind is ChangeKind.UPDATED:
                appended = self._merge(conversation, record.path)
                logger.info("Updated %s with %d new messages", record.path, appended)
                log.record_updated(title, path, created, updated, messages=appended)
            else:
                path = self._create(conversation, settings)
                logger.info("Created %s", path)
                log.record_created(title, path, created, updated, messages=len(conversation.valid_messages))
        except Exception as e:
            if isinstance(e, StoreError):
                logger.error("Failed to %s conversation %r: %s", _verb(kind), title, e)
            else:
                logger.exception("Failed to %s conversation %r", _verb(kind), title)
            log.record_failed(title, path, created, updated, str(e))
            return

        self.state.conversation_records[conversation.id] = ConversationRecord(
            path=path, update_time=conversation.update_time,
        )
        if settings.checkpoint:
            self.save()

    def _create(self, conversation: Conversation, settings: Settings) -> str:
        folder = conversation_folder(conversation, settings)
        try:
            self.store.create_folder(folder)
        except StoreError as e:
            raise StoreError(f"Failed to create or access folder: {folder}. {e}") from e

        placement = place(conversation, settings, self.store.list_names(folder))
        self.store.create(placement.path, render_conversation(conversation))
        return placement.path

    def _merge(self, conversation: Conversation, path: str) -> int:
        result = None

        def transform(text: str) -> str:
            nonlocal result
            result = merge_document(text, conversation)
            return result.text

        self.store.modify(path, transform)
        return result.appended

    def _write_report(self, log: RunLog, file_name: str, run_time: float, settings: Settings) -> str | None:
        folder = join_path(settings.archive_folder, LOG_FOLDER)
        try:
            self.store.create_folder(folder)
            prefix = format_timestamp(run_time, "prefix", settings.date_format)
            existing = {name.casefold() for name in self.store.list_names(folder)}
            counter = 0
            while report_file_name(prefix, counter).casefold() in existing:
                counter += 1
            path = f"{folder}/{report_file_name(prefix, counter)}"
            self.store.create(path, log.render(file_name, run_time))
        except (StoreError, ValueError) as e:
            logger.error("Failed to write import log: %s", e)
            return None

        logger.info("Import log created: %s", path)
        return path


def open_engine(vault: Path | None = None) -> SyncEngine:
    """Build an engine from the CHATGPT_IMPORT_* environment."""
    vault = vault or get_vault_path()
    store = open_store(get_store_kind(), vault)
    engine = SyncEngine(store, StateFile(get_state_path(vault)), overrides=apply_env_overrides)
    engine.settings  # raises ValueError on a malformed override
    return engine


def _verb(kind: ChangeKind) -> str:
    return "update" if kind is ChangeKind.UPDATED else "create"

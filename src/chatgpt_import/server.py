"""FastAPI web server for chatgpt-import."""

import logging

from fastapi import FastAPI, HTTPException, Query, Request
from fastapi.responses import Response

from .engine import SyncEngine, open_engine
from .errors import ChatImportError, DocumentNotFound

logger = logging.getLogger(__name__)

app = FastAPI(title="chatgpt-import", version="0.1.0")

# Engine cache (populated on first request)
_engine: SyncEngine | None = None


def _get_engine() -> SyncEngine:
    """Lazily initialize and cache the sync engine."""
    global _engine
    if _engine is None:
        try:
            _engine = open_engine()
        except (ChatImportError, ValueError) as e:
            logger.error("Failed to open sync engine: %s", e)
            raise HTTPException(status_code=500, detail=str(e))
        logger.info("Using %s store for %d known conversations",
                    _engine.store.name, len(_engine.state.conversation_records))
    return _engine


def _summary_to_dict(summary) -> dict | None:
    """Convert a RunSummary dataclass to a JSON-serializable dict."""
    if summary is None:
        return None
    return {
        "existing": summary.existing,
        "created": summary.created,
        "updated": summary.updated,
        "skipped": summary.skipped,
        "failed": summary.failed,
        "global_errors": summary.global_errors,
        "messages_imported": summary.messages_imported,
        "messages_added": summary.messages_added,
    }


# ── Routes ───────────────────────────────────────────────────────


@app.get("/api/status")
async def get_status():
    """Return settings and catalog sizes."""
    engine = _get_engine()
    settings = engine.settings
    return {
        "store": engine.store.name,
        "archive_folder": settings.archive_folder,
        "add_date_prefix": settings.add_date_prefix,
        "date_format": settings.date_format,
        "archives": len(engine.state.archive_records),
        "conversations": len(engine.state.conversation_records),
    }


@app.get("/api/conversations")
async def get_conversations(
    limit: int = Query(100, ge=1, le=1000),
    offset: int = Query(0, ge=0),
):
    """Return synchronized conversations, most recently updated first."""
    records = sorted(
        _get_engine().state.conversation_records.items(),
        key=lambda item: item[1].update_time,
        reverse=True,
    )
    return {
        "total": len(records),
        "conversations": [
            {"id": conversation_id, "path": record.path, "update_time": record.update_time}
            for conversation_id, record in records[offset: offset + limit]
        ],
    }


@app.get("/api/conversation/{conversation_id}")
async def get_conversation(conversation_id: str):
    """Return the Markdown note for one conversation."""
    engine = _get_engine()
    record = engine.state.conversation_records.get(conversation_id)
    if record is None:
        raise HTTPException(status_code=404, detail="Conversation not found")

    try:
        content = engine.store.read(record.path)
    except DocumentNotFound:
        raise HTTPException(status_code=404, detail=f"Note not found: {record.path}")

    return Response(content=content, media_type="text/markdown")


@app.post("/api/import")
async def import_archive(
    request: Request,
    filename: str = Query("conversations.zip", description="Name of the uploaded archive"),
    force: bool = Query(False, description="Re-process an archive that was already imported"),
):
    """Import a ChatGPT export ZIP sent as the raw request body."""
    data = await request.body()
    if not data:
        raise HTTPException(status_code=400, detail="Request body is empty")

    engine = _get_engine()
    result = engine.process_archive(data, filename, confirm=lambda record: force)
    if result.cancelled:
        raise HTTPException(status_code=409, detail="Archive was already imported; pass force=true to re-process it")

    return {
        "notice": result.notice,
        "has_errors": result.has_errors,
        "report_path": result.report_path,
        "summary": _summary_to_dict(result.summary),
    }


@app.post("/api/reset")
async def reset_catalogs():
    """Forget all imported archives and conversation records."""
    _get_engine().clear_all_state()
    return {"status": "reset"}

"""Registry of document store backends."""

from pathlib import Path

from ..store import DocumentStore
from .filesystem import FileSystemStore
from .memory import MemoryStore

STORES = {
    FileSystemStore.name: FileSystemStore,
    MemoryStore.name: MemoryStore,
}


def open_store(kind: str, root: Path) -> DocumentStore:
    """Return the store backend registered under `kind`."""
    if kind == FileSystemStore.name:
        return FileSystemStore(root)
    if kind == MemoryStore.name:
        return MemoryStore()
    raise ValueError(f"Unknown document store: {kind} (expected one of {', '.join(STORES)})")

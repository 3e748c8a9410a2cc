"""Document store backed by a directory on disk, such as an Obsidian vault.

Store paths are relative to the root directory. Dot-directories (".obsidian",
".chatgpt-import", ".git") are never listed.
"""

import logging
import os
import tempfile
from pathlib import Path, PurePosixPath
from typing import Callable

from ..errors import DocumentExists, DocumentNotFound, NotAFolder, StoreError
from ..store import DocumentStore, StoredDocument

logger = logging.getLogger(__name__)


class FileSystemStore(DocumentStore):
    """Store notes as UTF-8 Markdown files under a root directory."""

    name = "filesystem"

    def __init__(self, root: Path):
        super().__init__()
        self.root = Path(root)

    def read(self, path: str) -> str:
        target = self._resolve(path)
        if not target.is_file():
            raise DocumentNotFound(f"Document not found: {path}")
        return target.read_text(encoding="utf-8")

    def create(self, path: str, text: str) -> None:
        target = self._resolve(path)
        if not target.parent.is_dir():
            raise StoreError(f"Folder does not exist: {PurePosixPath(path).parent}")
        try:
            with target.open("x", encoding="utf-8") as f:
                f.write(text)
        except FileExistsError:
            raise DocumentExists(f"Document already exists: {path}") from None
        except OSError as e:
            raise StoreError(f"Failed to create {path}: {e}") from e
        logger.debug("Created %s", path)

    def modify(self, path: str, transform: Callable[[str], str]) -> None:
        target = self._resolve(path)
        text = transform(self.read(path))

        fd, tmp_name = tempfile.mkstemp(dir=target.parent, prefix=".", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(text)
            os.replace(tmp_name, target)
        except OSError as e:
            Path(tmp_name).unlink(missing_ok=True)
            raise StoreError(f"Failed to modify {path}: {e}") from e
        logger.debug("Modified %s", path)

    def exists(self, path: str) -> bool:
        return self._resolve(path).exists()

    def list_documents(self) -> list[StoredDocument]:
        if not self.root.is_dir():
            return []

        documents = []
        for file in sorted(self.root.rglob("*.md")):
            relative = file.relative_to(self.root)
            if any(part.startswith(".") for part in relative.parts):
                continue
            path = relative.as_posix()
            documents.append(StoredDocument(path, lambda path=path: self.read(path)))
        return documents

    def list_names(self, folder: str) -> set[str]:
        target = self._resolve(folder)
        if not target.is_dir():
            return set()
        return {file.name for file in target.glob("*.md") if file.is_file()}

    def create_folder(self, path: str) -> None:
        target = self._resolve(path)
        current = self.root
        for part in target.relative_to(self.root).parts:
            current = current / part
            if current.exists() and not current.is_dir():
                raise NotAFolder(f"Path exists but is not a folder: {current.relative_to(self.root).as_posix()}")
        try:
            target.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StoreError(f"Failed to create folder {path}: {e}") from e

    def _remove(self, path: str) -> None:
        target = self._resolve(path)
        if not target.is_file():
            raise DocumentNotFound(f"Document not found: {path}")
        target.unlink()

    # ── Private helpers ──────────────────────────────────────────────

    def _resolve(self, path: str) -> Path:
        """Map a store path onto the root, refusing paths that escape it."""
        relative = PurePosixPath(path)
        if relative.is_absolute() or ".." in relative.parts or not relative.parts:
            raise StoreError(f"Invalid store path: {path!r}")
        return self.root.joinpath(*relative.parts)

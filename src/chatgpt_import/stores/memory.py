"""In-memory document store, for tests and dry runs."""

from pathlib import PurePosixPath
from typing import Callable

from ..errors import DocumentExists, DocumentNotFound, NotAFolder, StoreError
from ..store import DocumentStore, StoredDocument


class MemoryStore(DocumentStore):
    """Keep documents in a dict; folders must exist before documents go in them."""

    name = "memory"

    def __init__(self, documents: dict[str, str] | None = None):
        super().__init__()
        self.documents: dict[str, str] = {}
        self.folders: set[str] = set()
        for path, text in (documents or {}).items():
            parent = str(PurePosixPath(path).parent)
            if parent != ".":
                self.create_folder(parent)
            self.create(path, text)

    def read(self, path: str) -> str:
        try:
            return self.documents[path]
        except KeyError:
            raise DocumentNotFound(f"Document not found: {path}") from None

    def create(self, path: str, text: str) -> None:
        if path in self.documents:
            raise DocumentExists(f"Document already exists: {path}")
        parent = str(PurePosixPath(path).parent)
        if parent != "." and parent not in self.folders:
            raise StoreError(f"Folder does not exist: {parent}")
        self.documents[path] = text

    def modify(self, path: str, transform: Callable[[str], str]) -> None:
        self.documents[path] = transform(self.read(path))

    def exists(self, path: str) -> bool:
        return path in self.documents or path in self.folders

    def list_documents(self) -> list[StoredDocument]:
        return [
            StoredDocument(path, lambda path=path: self.read(path))
            for path in sorted(self.documents)
            if path.endswith(".md")
        ]

    def create_folder(self, path: str) -> None:
        current = PurePosixPath()
        for part in PurePosixPath(path).parts:
            current = current / part
            key = str(current)
            if key in self.documents:
                raise NotAFolder(f"Path exists but is not a folder: {key}")
            self.folders.add(key)

    def _remove(self, path: str) -> None:
        if path not in self.documents:
            raise DocumentNotFound(f"Document not found: {path}")
        del self.documents[path]

"""Abstract base class for the document stores notes are written to."""

from abc import ABC, abstractmethod
from pathlib import PurePosixPath
from typing import Callable, NamedTuple

DeletionListener = Callable[[str], None]


class StoredDocument(NamedTuple):
    """A document path plus a way to read it lazily."""

    path: str
    read: Callable[[], str]


class DocumentStore(ABC):
    """Base class for document store backends.

    Paths are relative, "/"-separated and name Markdown documents such as
    "ChatGPT Archives/2024-01/Fix auth bug.md". Each backend (a directory on
    disk, an in-memory dict) implements this interface so the sync engine
    never touches storage directly.
    """

    name: str  # "filesystem", "memory"

    def __init__(self):
        self._listeners: list[DeletionListener] = []

    @abstractmethod
    def read(self, path: str) -> str:
        """Return a document's text. Raises DocumentNotFound."""
        ...

    @abstractmethod
    def create(self, path: str, text: str) -> None:
        """Create a new document. Raises DocumentExists or StoreError."""
        ...

    @abstractmethod
    def modify(self, path: str, transform: Callable[[str], str]) -> None:
        """Replace a document's text with `transform(text)`, all or nothing.

        If `transform` raises, the document is left exactly as it was.
        Raises DocumentNotFound.
        """
        ...

    @abstractmethod
    def exists(self, path: str) -> bool:
        """Return True if a document or folder exists at `path`."""
        ...

    @abstractmethod
    def list_documents(self) -> list[StoredDocument]:
        """Return every Markdown document in the store."""
        ...

    @abstractmethod
    def create_folder(self, path: str) -> None:
        """Create a folder and its parents; an existing folder is not an error.

        Raises NotAFolder if part of the path is a document.
        """
        ...

    @abstractmethod
    def _remove(self, path: str) -> None:
        ...

    def delete(self, path: str) -> None:
        """Delete a document and tell every subscriber about it."""
        self._remove(path)
        for listener in list(self._listeners):
            listener(path)

    def subscribe(self, listener: DeletionListener) -> None:
        """Register a callback invoked with the path of each deleted document."""
        self._listeners.append(listener)

    def list_names(self, folder: str) -> set[str]:
        """Return the file names of documents directly inside `folder`."""
        folder_path = PurePosixPath(folder)
        return {
            PurePosixPath(doc.path).name
            for doc in self.list_documents()
            if PurePosixPath(doc.path).parent == folder_path
        }

"""Tests for the document store backends."""

import pytest

from chatgpt_import.errors import DocumentExists, DocumentNotFound, NotAFolder, StoreError
from chatgpt_import.stores import STORES, open_store
from chatgpt_import.stores.filesystem import FileSystemStore
from chatgpt_import.stores.memory import MemoryStore


@pytest.fixture(params=["filesystem", "memory"])
def store(request, tmp_path):
    if request.param == "filesystem":
        return FileSystemStore(tmp_path / "vault")
    return MemoryStore()


class TestDocumentStore:
    def test_create_and_read(self, store):
        store.create_folder("Archive/2024-01")
        store.create("Archive/2024-01/Chat.md", "hello\n")
        assert store.read("Archive/2024-01/Chat.md") == "hello\n"
        assert store.exists("Archive/2024-01/Chat.md")
        assert store.exists("Archive/2024-01")

    def test_create_requires_folder(self, store):
        with pytest.raises(StoreError):
            store.create("Missing/Chat.md", "hello")

    def test_create_refuses_existing(self, store):
        store.create_folder("A")
        store.create("A/Chat.md", "one")
        with pytest.raises(DocumentExists):
            store.create("A/Chat.md", "two")
        assert store.read("A/Chat.md") == "one"

    def test_read_missing(self, store):
        with pytest.raises(DocumentNotFound):
            store.read("A/Nope.md")

    def test_create_folder_is_idempotent(self, store):
        store.create_folder("A/B")
        store.create_folder("A/B")
        assert store.exists("A/B")

    def test_create_folder_over_document(self, store):
        store.create_folder("A")
        store.create("A/B", "not a folder")
        with pytest.raises(NotAFolder):
            store.create_folder("A/B/C")

    def test_modify(self, store):
        store.create_folder("A")
        store.create("A/Chat.md", "one")
        store.modify("A/Chat.md", lambda text: text + " two")
        assert store.read("A/Chat.md") == "one two"

    def test_modify_is_all_or_nothing(self, store):
        store.create_folder("A")
        store.create("A/Chat.md", "one")

        def boom(text):
            raise RuntimeError("transform failed")

        with pytest.raises(RuntimeError):
            store.modify("A/Chat.md", boom)
        assert store.read("A/Chat.md") == "one"

    def test_modify_missing(self, store):
        with pytest.raises(DocumentNotFound):
            store.modify("A/Nope.md", str.upper)

    def test_list_documents(self, store):
        store.create_folder("A/B")
        store.create("A/B/two.md", "2")
        store.create("A/one.md", "1")
        store.create("A/notes.txt", "x")
        documents = store.list_documents()
        assert [doc.path for doc in documents] == ["A/B/two.md", "A/one.md"]
        assert documents[1].read() == "1"

    def test_list_names(self, store):
        store.create_folder("A/B")
        store.create("A/one.md", "1")
        store.create("A/B/two.md", "2")
        assert store.list_names("A") == {"one.md"}
        assert store.list_names("Missing") == set()

    def test_delete_notifies_subscribers(self, store):
        deleted = []
        store.subscribe(deleted.append)
        store.create_folder("A")
        store.create("A/Chat.md", "x")
        store.delete("A/Chat.md")
        assert deleted == ["A/Chat.md"]
        assert not store.exists("A/Chat.md")

    def test_delete_missing(self, store):
        deleted = []
        store.subscribe(deleted.append)
        with pytest.raises(DocumentNotFound):
            store.delete("A/Nope.md")
        assert deleted == []


class TestFileSystemStore:
    def test_refuses_paths_outside_root(self, tmp_path):
        store = FileSystemStore(tmp_path)
        with pytest.raises(StoreError):
            store.read("../outside.md")
        with pytest.raises(StoreError):
            store.create("/etc/passwd.md", "x")

    def test_skips_dot_directories(self, tmp_path):
        (tmp_path / ".obsidian").mkdir()
        (tmp_path / ".obsidian" / "workspace.md").write_text("x")
        (tmp_path / "Chat.md").write_text("y")
        store = FileSystemStore(tmp_path)
        assert [doc.path for doc in store.list_documents()] == ["Chat.md"]

    def test_modify_leaves_no_temp_files(self, tmp_path):
        store = FileSystemStore(tmp_path)
        store.create("Chat.md", "one")
        store.modify("Chat.md", lambda text: "two")
        assert sorted(p.name for p in tmp_path.iterdir()) == ["Chat.md"]
        assert (tmp_path / "Chat.md").read_text(encoding="utf-8") == "two"

    def test_missing_root_lists_nothing(self, tmp_path):
        assert FileSystemStore(tmp_path / "nope").list_documents() == []

    def test_writes_utf8(self, tmp_path):
        store = FileSystemStore(tmp_path)
        store.create("Chat.md", "café ☕")
        assert (tmp_path / "Chat.md").read_bytes() == "café ☕".encode("utf-8")


class TestMemoryStore:
    def test_seeded_documents(self):
        store = MemoryStore({"A/B/Chat.md": "x", "Top.md": "y"})
        assert store.read("A/B/Chat.md") == "x"
        assert store.exists("A/B")
        assert store.list_names(".") == {"Top.md"}


class TestRegistry:
    def test_known_backends(self):
        assert set(STORES) == {"filesystem", "memory"}

    def test_open_store(self, tmp_path):
        assert isinstance(open_store("filesystem", tmp_path), FileSystemStore)
        assert isinstance(open_store("memory", tmp_path), MemoryStore)

    def test_unknown_backend(self, tmp_path):
        with pytest.raises(ValueError, match="Unknown document store"):
            open_store("s3", tmp_path)

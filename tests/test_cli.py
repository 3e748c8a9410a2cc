"""Tests for the command-line interface."""

import pytest
from click.testing import CliRunner

from chatgpt_import.cli import main

from conftest import conversation, make_archive


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ("CHATGPT_IMPORT_VAULT", "CHATGPT_IMPORT_STATE", "CHATGPT_IMPORT_STORE",
                 "CHATGPT_IMPORT_ARCHIVE_FOLDER", "CHATGPT_IMPORT_DATE_PREFIX",
                 "CHATGPT_IMPORT_DATE_FORMAT", "CHATGPT_IMPORT_CHECKPOINT"):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def vault(tmp_path):
    path = tmp_path / "vault"
    path.mkdir()
    return path


@pytest.fixture
def archive_file(tmp_path, archive_bytes):
    path = tmp_path / "export.zip"
    path.write_bytes(archive_bytes)
    return path


def _run(vault, *args, input=None):
    return CliRunner().invoke(main, ["--vault", str(vault), *args], input=input)


def test_import(vault, archive_file):
    result = _run(vault, "import", str(archive_file))
    assert result.exit_code == 0, result.output
    assert "Import completed" in result.output
    assert (vault / "ChatGPT Archives" / "2024-01" / "Fix authentication bug.md").is_file()
    assert (vault / ".chatgpt-import" / "data.json").is_file()


def test_reimport_declined(vault, archive_file):
    _run(vault, "import", str(archive_file))
    result = _run(vault, "import", str(archive_file), input="n\n")
    assert result.exit_code == 0
    assert "already been imported" in result.output
    assert "Import cancelled." in result.output


def test_reimport_with_yes(vault, archive_file):
    _run(vault, "import", str(archive_file))
    result = _run(vault, "import", str(archive_file), "--yes")
    assert result.exit_code == 0
    assert "Import completed" in result.output
    logs = sorted(p.name for p in (vault / "ChatGPT Archives" / "logs").iterdir())
    assert len(logs) == 2


def test_import_invalid_archive_exits_nonzero(vault, tmp_path):
    broken = tmp_path / "broken.zip"
    broken.write_bytes(make_archive([conversation()], entry="chats.json"))
    result = _run(vault, "import", str(broken))
    assert result.exit_code == 1
    assert "An error occurred during import" in result.output


def test_status(vault, archive_file):
    _run(vault, "import", str(archive_file))
    result = _run(vault, "status")
    assert result.exit_code == 0
    assert "Archive folder: ChatGPT Archives" in result.output
    assert "Imported archives: 1" in result.output
    assert "Conversation records: 1" in result.output


def test_reset(vault, archive_file):
    _run(vault, "import", str(archive_file))
    result = _run(vault, "reset", "--yes")
    assert result.exit_code == 0
    assert "Conversation records: 0" in _run(vault, "status").output


def test_reset_aborted(vault, archive_file):
    _run(vault, "import", str(archive_file))
    result = _run(vault, "reset", input="n\n")
    assert result.exit_code == 1
    assert "Conversation records: 1" in _run(vault, "status").output


def test_rebuild(vault, archive_file):
    _run(vault, "import", str(archive_file))
    (vault / ".chatgpt-import" / "data.json").unlink()
    result = _run(vault, "rebuild")
    assert result.exit_code == 0
    assert "Recovered 1 conversation records." in result.output


def test_settings(vault, archive_file):
    result = _run(vault, "settings", "--archive-folder", "Chats", "--date-prefix", "--date-format", "YYYYMMDD")
    assert result.exit_code == 0
    assert "archive_folder: Chats" in result.output
    assert "add_date_prefix: True" in result.output

    _run(vault, "import", str(archive_file))
    assert (vault / "Chats" / "2024-01" / "20240115 - Fix authentication bug.md").is_file()


def test_settings_rejects_unknown_format(vault):
    result = _run(vault, "settings", "--date-format", "DD/MM")
    assert result.exit_code == 2


def test_corrupt_state_reported(vault, archive_file):
    state_dir = vault / ".chatgpt-import"
    state_dir.mkdir()
    (state_dir / "data.json").write_text("{broken", encoding="utf-8")
    result = _run(vault, "status")
    assert result.exit_code == 1
    assert "Failed to read state file" in result.output


def test_malformed_env_override_reported(vault, archive_file, monkeypatch):
    monkeypatch.setenv("CHATGPT_IMPORT_CHECKPOINT", "sometimes")
    result = _run(vault, "import", str(archive_file))
    assert result.exit_code == 1
    assert "CHATGPT_IMPORT_CHECKPOINT must be a boolean" in result.output
    assert not (vault / "ChatGPT Archives").exists()

"""Path resolution and environment overrides for chatgpt-import."""

import os
from dataclasses import replace
from pathlib import Path

from .core import Settings
from .formatting import DATE_FORMATS

STATE_DIR_NAME = ".chatgpt-import"
STATE_FILE_NAME = "data.json"

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}


def get_vault_path() -> Path:
    """Return the root directory notes are written under."""
    env = os.environ.get("CHATGPT_IMPORT_VAULT")
    if env:
        return Path(env).expanduser()

    return Path.cwd()


def get_state_path(vault: Path | None = None) -> Path:
    """Return the JSON file holding settings and catalogs."""
    env = os.environ.get("CHATGPT_IMPORT_STATE")
    if env:
        return Path(env).expanduser()

    return (vault or get_vault_path()) / STATE_DIR_NAME / STATE_FILE_NAME


def get_store_kind() -> str:
    """Return the document store backend name ("filesystem" or "memory")."""
    return os.environ.get("CHATGPT_IMPORT_STORE", "filesystem")


def apply_env_overrides(settings: Settings) -> Settings:
    """Return a copy of `settings` with any CHATGPT_IMPORT_* overrides applied."""
    changes = {}

    folder = os.environ.get("CHATGPT_IMPORT_ARCHIVE_FOLDER")
    if folder:
        changes["archive_folder"] = folder

    date_format = os.environ.get("CHATGPT_IMPORT_DATE_FORMAT")
    if date_format:
        if date_format not in DATE_FORMATS:
            raise ValueError(f"CHATGPT_IMPORT_DATE_FORMAT must be one of {', '.join(DATE_FORMATS)}")
        changes["date_format"] = date_format

    for key, env_name in (("add_date_prefix", "CHATGPT_IMPORT_DATE_PREFIX"),
                          ("checkpoint", "CHATGPT_IMPORT_CHECKPOINT")):
        flag = _env_flag(env_name)
        if flag is not None:
            changes[key] = flag

    return replace(settings, **changes)


def _env_flag(name: str) -> bool | None:
    value = os.environ.get(name)
    if value is None:
        return None
    value = value.strip().lower()
    if value in _TRUE:
        return True
    if value in _FALSE:
        return False
    raise ValueError(f"{name} must be a boolean, got {value!r}")

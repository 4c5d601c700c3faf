"""Application settings patch — adds the storage connection string once."""

from __future__ import annotations

import json
import logging
import os
import tempfile
from enum import Enum
from pathlib import Path
from typing import Any

from ..common import print_info

logger = logging.getLogger(__name__)


class AppSettingsError(Exception):
    """Raised when the settings file cannot be read as a JSON object."""
    pass


class PatchOutcome(str, Enum):
    MISSING = "missing"
    PRESENT = "present"
    ADDED = "added"


def load_appsettings(path: Path) -> dict[str, Any]:
    """Read *path* as a UTF-8 JSON object.

    ``FileNotFoundError`` propagates; any other unreadable content is an
    ``AppSettingsError``.
    """
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except UnicodeDecodeError as e:
        raise AppSettingsError(f"{path} is not UTF-8 text: {e}") from e
    except json.JSONDecodeError as e:
        raise AppSettingsError(f"{path} is not valid JSON: {e}") from e
    if not isinstance(data, dict):
        raise AppSettingsError(f"{path} must contain a JSON object, got {type(data).__name__}")
    return data


def write_atomic(path: Path, data: dict[str, Any]) -> None:
    """Write *data* as UTF-8 JSON to *path* via a temp file in the same directory."""
    fd, tmp = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as fh:
            fh.write(json.dumps(data, indent=2, ensure_ascii=False) + "\n")
        os.replace(tmp, path)
    except BaseException:
        Path(tmp).unlink(missing_ok=True)
        raise


def patch_appsettings(path: Path, section_key: str, connection_string: str) -> PatchOutcome:
    """Add ``{section_key: {"ConnectionString": ...}}`` to the settings file.

    A missing file is reported as ``MISSING`` and an existing *section_key*
    as ``PRESENT``; neither touches the disk. An existing key is never
    overwritten, even when its value differs.
    """
    try:
        data = load_appsettings(path)
    except FileNotFoundError:
        logger.info("Settings file %s not found, skipping", path)
        return PatchOutcome.MISSING

    if section_key in data:
        logger.info("Section %s already present in %s", section_key, path)
        return PatchOutcome.PRESENT

    print_info(f"Adding {section_key} configuration to {path.name}...")
    data[section_key] = {"ConnectionString": connection_string}
    write_atomic(path, data)
    logger.info("Added section %s to %s", section_key, path)
    return PatchOutcome.ADDED

"""
Trainer - Local JSON documents.

Small durable documents (onboarding state, active workout session id) are kept
as JSON files under settings.data_dir. Writes go to a temp file in the same
directory and are swapped in with os.replace, so a reader sees either the
previous document or the new one, never a torn write.
"""

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)


def write_json_atomic(path: Path, data: dict[str, Any]) -> None:
    """Serialize data and atomically replace the document at path."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_name, path)
    except BaseException:
        # Leave the previous document in place
        Path(tmp_name).unlink(missing_ok=True)
        raise


def read_json(path: Path) -> dict[str, Any] | None:
    """
    Read a JSON object document.

    Returns None when the file is missing, unreadable, not valid JSON, or not
    a JSON object. Never raises for those cases.
    """
    path = Path(path)
    if not path.exists():
        return None

    try:
        with path.open(encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, ValueError) as e:
        logger.warning(f"Ignoring unreadable document {path}: {e}")
        return None

    if not isinstance(data, dict):
        logger.warning(f"Ignoring document {path}: expected a JSON object")
        return None
    return data


def remove_document(path: Path) -> None:
    """Delete a document; missing is fine."""
    Path(path).unlink(missing_ok=True)

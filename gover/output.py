"""JSON rendering and the single output write."""

from __future__ import annotations

import json
import os
import tempfile
from pathlib import Path

from gover.errors import OutputWriteError, SerializationError
from gover.models import VersionData


def to_json(versions: list[VersionData]) -> str:
    """Render *versions* as a 2-space indented JSON array."""
    try:
        return json.dumps([v.to_dict() for v in versions], indent=2, ensure_ascii=False)
    except (TypeError, ValueError) as exc:
        raise SerializationError(f"error marshaling JSON: {exc}") from exc


def write_output(versions: list[VersionData], path: str | Path) -> Path:
    """Write *versions* to *path* and return the resolved path.

    The document is written to a temporary file in the same directory and
    moved into place, so *path* is either the complete new document or
    untouched.

    Raises:
        SerializationError: If the data cannot be rendered.
        OutputWriteError: If the file cannot be written.
    """
    target = Path(path)
    document = to_json(versions)

    tmp_name: str | None = None
    try:
        target.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{target.name}.", suffix=".tmp", dir=target.parent
        )
        with os.fdopen(fd, "w", encoding="utf-8") as fh:
            fh.write(document)
        os.chmod(tmp_name, 0o644)
        os.replace(tmp_name, target)
        tmp_name = None
    except OSError as exc:
        raise OutputWriteError(f"error writing JSON to file {target}: {exc}") from exc
    finally:
        if tmp_name is not None and os.path.exists(tmp_name):
            os.unlink(tmp_name)

    return target.resolve()

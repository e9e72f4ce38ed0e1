"""Atomic JSON file helpers shared by the file-backed repositories."""

import json
import os
import tempfile
from pathlib import Path


def write_json_atomic(path: Path, data: dict) -> None:
    """Write data as JSON so readers see the old file or the new one.

    Writes a temp file in the same directory, fsyncs it, then replaces
    the target.

    Raises:
        OSError: If any step fails; the temp file is removed
    """
    tmp_name = None
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            dir=path.parent, prefix=f".{path.stem}-", suffix=".tmp"
        )
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2, sort_keys=True)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_name, path)
    except OSError:
        if tmp_name is not None and os.path.exists(tmp_name):
            os.unlink(tmp_name)
        raise


def quarantine(path: Path) -> Path:
    """Move an unreadable file aside to <name>.corrupt and return the new path.

    An older .corrupt file is replaced.

    Raises:
        OSError: If the file could not be moved
    """
    target = path.with_name(path.name + ".corrupt")
    os.replace(path, target)
    return target

"""JSON file helpers shared by the agent connectors."""

import json
import os
import tempfile
from pathlib import Path
from typing import Any

from mcp_manager.core.errors import MalformedInputError, WriteFailureError


def read_json_object(path: Path) -> dict[str, Any] | None:
    """Read a JSON file whose top level must be an object.

    Args:
        path: File to read

    Returns:
        The parsed object, or None if the file does not exist

    Raises:
        MalformedInputError: If the file is not valid JSON or not an object
    """
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return None
    except OSError as e:
        raise MalformedInputError(f"{path}: {e}") from e

    if not text.strip():
        return {}

    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise MalformedInputError(f"{path}: invalid JSON at line {e.lineno}: {e.msg}") from e

    if not isinstance(data, dict):
        raise MalformedInputError(f"{path}: top level is {type(data).__name__}, expected an object")
    return data


def write_json_atomic(path: Path, data: dict[str, Any]) -> None:
    """Write *data* to *path* through a temporary file and ``os.replace``.

    Readers never see a half-written file.  The existing file mode is kept.

    Raises:
        WriteFailureError: If the directory or file cannot be written
    """
    tmp_name = None
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with tempfile.NamedTemporaryFile(
            "w",
            encoding="utf-8",
            dir=path.parent,
            prefix=f".{path.name}.",
            suffix=".tmp",
            delete=False,
        ) as tmp:
            tmp_name = tmp.name
            json.dump(data, tmp, indent=2, ensure_ascii=False)
            tmp.write("\n")
            tmp.flush()
            os.fsync(tmp.fileno())

        if path.exists():
            os.chmod(tmp_name, path.stat().st_mode & 0o777)
        os.replace(tmp_name, path)
        tmp_name = None
    except OSError as e:
        raise WriteFailureError(str(path), str(e)) from e
    finally:
        if tmp_name is not None and os.path.exists(tmp_name):
            os.unlink(tmp_name)

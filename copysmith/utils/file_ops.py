"""State file I/O for autosaved UI state and usage counters.

Every state file is a single JSON object. Writes go through a temp file in
the same directory and an atomic rename, so a crash mid-write leaves the
previous version intact.
"""
import json
import os
import tempfile
from pathlib import Path
from typing import Any, Dict, Union

from copysmith.utils.logging import get_logger

logger = get_logger("copysmith.file_ops")


def write_state_file(filepath: Union[str, Path], data: Dict[str, Any]) -> None:
    """Replace a state file with the JSON encoding of data."""
    filepath = Path(filepath)
    filepath.parent.mkdir(parents=True, exist_ok=True)
    payload = json.dumps(data, indent=2, ensure_ascii=False, default=str)

    fd, tmp_path = tempfile.mkstemp(dir=filepath.parent, prefix=f".{filepath.stem}-", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(payload)
        os.replace(tmp_path, filepath)
    except BaseException:
        # Leave no stray temp files next to the state file
        try:
            os.unlink(tmp_path)
        except OSError:
            pass
        raise


def read_state_file(filepath: Union[str, Path]) -> Dict[str, Any]:
    """Load a state file; missing, unreadable or non-object files read as {}."""
    filepath = Path(filepath)
    if not filepath.exists():
        return {}
    try:
        data = json.loads(filepath.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, OSError, UnicodeDecodeError) as e:
        logger.warning("state_file_unreadable", path=str(filepath), error=str(e))
        return {}
    if not isinstance(data, dict):
        logger.warning("state_file_not_a_mapping", path=str(filepath))
        return {}
    return data

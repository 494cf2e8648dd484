from __future__ import annotations

import contextlib
import json
import os
import tempfile
from pathlib import Path
from typing import Dict, Mapping, Optional

from aura.errors import DecodeError, PersistenceWriteError
from aura.utils.logger import get_logger

logger = get_logger(__name__)


def load_snapshot(path: str | Path) -> Optional[Dict[str, int]]:
    """Return the stored table, or None when no artifact exists yet."""
    snapshot_path = Path(path)
    if not snapshot_path.exists():
        return None
    try:
        data = json.loads(snapshot_path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise DecodeError(f"{snapshot_path} is not valid JSON: {exc.msg}") from exc
    except (OSError, UnicodeDecodeError) as exc:
        raise DecodeError(f"{snapshot_path} could not be read: {exc}") from exc
    if not isinstance(data, dict):
        raise DecodeError(f"{snapshot_path} must contain a JSON object")
    return data


def write_snapshot(path: str | Path, scores: Mapping[str, int]) -> Path:
    """Write to a sibling temp file, then rename over the artifact."""
    snapshot_path = Path(path)
    tmp_name: Optional[str] = None
    try:
        snapshot_path.parent.mkdir(parents=True, exist_ok=True)
        payload = json.dumps(dict(scores), indent=2, sort_keys=True)
        fd, tmp_name = tempfile.mkstemp(prefix=f".{snapshot_path.name}.", suffix=".tmp", dir=snapshot_path.parent)
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(payload + "\n")
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_name, snapshot_path)
    except (OSError, TypeError, ValueError) as exc:
        if tmp_name:
            with contextlib.suppress(OSError):
                os.unlink(tmp_name)
        raise PersistenceWriteError(str(snapshot_path), str(exc)) from exc
    logger.debug("snapshot_written", path=str(snapshot_path), actions=len(scores))
    return snapshot_path

from __future__ import annotations

import os
from pathlib import Path
from typing import Mapping, Optional


def load_env(path: str | Path = ".env") -> Mapping[str, str]:
    """Read KEY=VALUE lines from a dotenv file; missing file yields an empty mapping."""
    env_path = Path(path)
    env: dict[str, str] = {}
    if not env_path.exists():
        return env
    for line in env_path.read_text(encoding="utf-8").splitlines():
        line = line.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        if line.startswith("export "):
            line = line[len("export "):]
        key, val = line.split("=", 1)
        val = val.strip()
        if len(val) >= 2 and val[0] == val[-1] and val[0] in ("'", '"'):
            val = val[1:-1]
        env[key.strip()] = val
    return env


def lookup(key: str, env_file: Mapping[str, str], default: Optional[str] = None) -> Optional[str]:
    """Process environment wins over the dotenv file."""
    value = os.getenv(key)
    if value is not None:
        return value
    return env_file.get(key, default)

from __future__ import annotations

import argparse
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional, Sequence

from aura.utils.env import load_env, lookup


@dataclass(frozen=True)
class ServerConfig:
    host: str = "0.0.0.0"
    port: int = 8765
    snapshot_path: Path = Path("artifacts/knowledge.json")
    checkpoint_interval: float = 30.0
    shutdown_grace: float = 5.0
    log_level: str = "info"

    def __post_init__(self) -> None:
        if self.checkpoint_interval <= 0:
            raise ValueError("checkpoint_interval must be positive")
        if self.shutdown_grace <= 0:
            raise ValueError("shutdown_grace must be positive")
        if not 0 <= self.port <= 65535:
            raise ValueError(f"port out of range: {self.port}")


def _number(raw: Optional[str], name: str, kind: type):
    if raw is None:
        return None
    try:
        return kind(raw)
    except ValueError:
        raise ValueError(f"{name} must be a {kind.__name__}, got {raw!r}") from None


def config_from_env(env_file: Mapping[str, str]) -> ServerConfig:
    defaults = ServerConfig()
    port = _number(lookup("AURA_PORT", env_file), "AURA_PORT", int)
    interval = _number(lookup("AURA_CHECKPOINT_INTERVAL", env_file), "AURA_CHECKPOINT_INTERVAL", float)
    grace = _number(lookup("AURA_SHUTDOWN_GRACE", env_file), "AURA_SHUTDOWN_GRACE", float)
    snapshot = lookup("AURA_SNAPSHOT_PATH", env_file)
    return ServerConfig(
        host=lookup("AURA_HOST", env_file, defaults.host),
        port=port if port is not None else defaults.port,
        snapshot_path=Path(snapshot) if snapshot else defaults.snapshot_path,
        checkpoint_interval=interval if interval is not None else defaults.checkpoint_interval,
        shutdown_grace=grace if grace is not None else defaults.shutdown_grace,
        log_level=lookup("AURA_LOG_LEVEL", env_file, defaults.log_level),
    )


def parse_args(argv: Optional[Sequence[str]] = None) -> ServerConfig:
    """CLI flags override AURA_* environment variables, which override .env."""
    parser = argparse.ArgumentParser(description="Run the AURA feedback aggregation server.")
    parser.add_argument("--env-file", default=".env", help="Dotenv file with AURA_* settings.")
    parser.add_argument("--host", help="Interface to listen on.")
    parser.add_argument("--port", type=int, help="Websocket port.")
    parser.add_argument("--snapshot-path", help="JSON file used for checkpoints.")
    parser.add_argument("--checkpoint-interval", type=float, help="Seconds between checkpoints.")
    parser.add_argument("--shutdown-grace", type=float, help="Seconds allowed for the final checkpoint.")
    parser.add_argument("--log-level", help="debug, info, warning or error.")
    args = parser.parse_args(argv)

    base = config_from_env(load_env(args.env_file))
    return ServerConfig(
        host=args.host or base.host,
        port=args.port if args.port is not None else base.port,
        snapshot_path=Path(args.snapshot_path) if args.snapshot_path else base.snapshot_path,
        checkpoint_interval=args.checkpoint_interval if args.checkpoint_interval is not None else base.checkpoint_interval,
        shutdown_grace=args.shutdown_grace if args.shutdown_grace is not None else base.shutdown_grace,
        log_level=args.log_level or base.log_level,
    )

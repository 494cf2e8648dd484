from __future__ import annotations

import asyncio
import contextlib
import threading
from pathlib import Path
from typing import Callable, Mapping

from aura.errors import DecodeError, PersistenceWriteError
from aura.knowledge.store import KnowledgeStore
from aura.persistence.snapshot_file import load_snapshot, write_snapshot
from aura.utils.logger import get_logger

logger = get_logger(__name__)


async def _write_off_loop(writer: Callable[[Path, Mapping[str, int]], object], path: Path, scores: Mapping[str, int]) -> None:
    """Run ``writer`` on a daemon thread so an abandoned write never holds up process exit."""
    loop = asyncio.get_running_loop()
    future: asyncio.Future = loop.create_future()

    def _settle(exc: BaseException | None) -> None:
        if future.done():
            return
        if exc is None:
            future.set_result(None)
        else:
            future.set_exception(exc)

    def _target() -> None:
        outcome: BaseException | None = None
        try:
            writer(path, scores)
        except Exception as exc:
            outcome = exc
        # The loop is gone once a timed-out shutdown has finished.
        with contextlib.suppress(RuntimeError):
            loop.call_soon_threadsafe(_settle, outcome)

    threading.Thread(target=_target, daemon=True, name="aura-checkpoint").start()
    await future


class PersistenceScheduler:
    """Checkpoints a KnowledgeStore to disk on a fixed cadence.

    ``run()`` is meant to live in its own task; ``stop()`` ends it and does
    one last checkpoint bounded by a grace period. Writes are serialized and
    each one snapshots the store only after the previous write finished, so
    the artifact never goes back to an older table.
    """

    def __init__(self, store: KnowledgeStore, path: str | Path, interval: float = 30.0) -> None:
        if interval <= 0:
            raise ValueError("checkpoint interval must be positive")
        self.store = store
        self.path = Path(path)
        self.interval = interval
        self._stopping = asyncio.Event()
        self._write_lock = asyncio.Lock()

    def restore_at_startup(self) -> bool:
        try:
            data = load_snapshot(self.path)
            if data is None:
                logger.info("snapshot_missing", path=str(self.path))
                return False
            self.store.restore(data)
        except DecodeError as exc:
            logger.warning("snapshot_restore_failed", path=str(self.path), error=str(exc))
            return False
        logger.info("snapshot_restored", path=str(self.path), actions=len(data))
        return True

    async def checkpoint(self) -> bool:
        async with self._write_lock:
            scores = self.store.snapshot()
            try:
                await _write_off_loop(write_snapshot, self.path, scores)
            except PersistenceWriteError as exc:
                logger.error("checkpoint_failed", path=str(self.path), error=exc.reason)
                return False
        logger.info("checkpoint_written", path=str(self.path), actions=len(scores))
        return True

    async def run(self) -> None:
        logger.info("checkpoint_loop_started", path=str(self.path), interval=self.interval)
        while not self._stopping.is_set():
            try:
                await asyncio.wait_for(self._stopping.wait(), timeout=self.interval)
            except asyncio.TimeoutError:
                await self.checkpoint()
        logger.info("checkpoint_loop_stopped")

    async def stop(self, grace: float = 5.0) -> bool:
        self._stopping.set()
        try:
            return await asyncio.wait_for(self.checkpoint(), timeout=grace)
        except asyncio.TimeoutError:
            logger.error("final_checkpoint_timeout", path=str(self.path), grace=grace)
            return False

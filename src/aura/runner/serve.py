from __future__ import annotations

import asyncio
import signal
from typing import Optional, Sequence

import websockets

from aura.config import ServerConfig, parse_args
from aura.knowledge.store import KnowledgeStore
from aura.persistence.scheduler import PersistenceScheduler
from aura.server.session import SessionHandler
from aura.utils.logger import configure_logging, get_logger

logger = get_logger(__name__)


class FeedbackServer:
    """Websocket listener, store and checkpoint loop for one process."""

    def __init__(self, config: ServerConfig, store: Optional[KnowledgeStore] = None) -> None:
        self.config = config
        self.store = store or KnowledgeStore()
        self.scheduler = PersistenceScheduler(self.store, config.snapshot_path, config.checkpoint_interval)
        self._shutdown = asyncio.Event()
        self.port: Optional[int] = None

    async def handle_connection(self, connection) -> None:
        await SessionHandler(self.store, connection).run()

    def request_shutdown(self) -> None:
        logger.info("shutdown_requested")
        self._shutdown.set()

    async def run(self, ready: Optional[asyncio.Event] = None) -> None:
        self.scheduler.restore_at_startup()
        checkpoints = asyncio.create_task(self.scheduler.run(), name="checkpoint-loop")
        try:
            async with websockets.serve(self.handle_connection, self.config.host, self.config.port) as server:
                self.port = server.sockets[0].getsockname()[1]
                logger.info("server_listening", host=self.config.host, port=self.port)
                if ready is not None:
                    ready.set()
                await self._shutdown.wait()
                # Leaving the context closes every open connection and ends its session.
        finally:
            await self.scheduler.stop(grace=self.config.shutdown_grace)
            await checkpoints
            logger.info("server_stopped", actions=len(self.store))


def _install_signal_handlers(server: FeedbackServer) -> None:
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, server.request_shutdown)
        except NotImplementedError:
            logger.debug("signal_handler_unsupported", signal=sig.name)


async def async_main(argv: Optional[Sequence[str]] = None) -> None:
    config = parse_args(argv)
    configure_logging(config.log_level)
    server = FeedbackServer(config)
    _install_signal_handlers(server)
    await server.run()


def main() -> None:
    asyncio.run(async_main())


if __name__ == "__main__":
    main()

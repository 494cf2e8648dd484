from __future__ import annotations

from typing import Dict, Optional

import websockets

from aura.protocol.messages import FeedbackEvent, decode_scores, encode_feedback, encode_retrieve
from aura.utils.logger import get_logger

logger = get_logger(__name__)


class FeedbackClient:
    """Thin async client for the feedback websocket."""

    def __init__(self, url: str) -> None:
        self.url = url
        self._ws = None

    async def __aenter__(self) -> "FeedbackClient":
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def connect(self) -> None:
        logger.info("connecting_feedback_server", url=self.url)
        self._ws = await websockets.connect(self.url)

    async def close(self) -> None:
        if self._ws:
            await self._ws.close()
            logger.info("feedback_connection_closed")
            self._ws = None

    async def send_feedback(self, event: FeedbackEvent) -> str:
        return await self._request(encode_feedback(event))

    async def retrieve(self) -> Dict[str, int]:
        return decode_scores(await self._request(encode_retrieve()))

    async def send_raw(self, message: str) -> str:
        return await self._request(message)

    async def _request(self, message: str) -> str:
        if not self._ws:
            raise RuntimeError("Websocket not connected")
        logger.debug("sending_message", message=message)
        await self._ws.send(message)
        reply: Optional[str | bytes] = await self._ws.recv()
        return reply.decode("utf-8") if isinstance(reply, bytes) else reply

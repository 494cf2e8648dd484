from __future__ import annotations

import itertools
from typing import AsyncIterator, Protocol

from websockets.exceptions import ConnectionClosed

from aura.errors import DecodeError
from aura.knowledge.store import KnowledgeStore
from aura.protocol.messages import (
    ACK_FEEDBACK_INVALID,
    ACK_FEEDBACK_OK,
    ACK_INVALID_FORMAT,
    ACK_UNKNOWN_TYPE,
    FEEDBACK,
    RETRIEVE,
    Envelope,
    decode_envelope,
    encode_scores,
)
from aura.utils.logger import get_logger

logger = get_logger(__name__)

_session_ids = itertools.count(1)


class Connection(Protocol):
    def __aiter__(self) -> AsyncIterator[str | bytes]:
        ...

    async def send(self, message: str) -> None:
        ...


class SessionHandler:
    """Protocol loop for one client connection.

    Holds nothing but the connection and a reference to the shared store.
    Returns when the client goes away or sends a frame that cannot be
    decoded; never raises into the server.
    """

    def __init__(self, store: KnowledgeStore, connection: Connection) -> None:
        self.store = store
        self.connection = connection
        self.session_id = next(_session_ids)
        self.log = logger.bind(session=self.session_id)

    async def run(self) -> None:
        self.log.info("session_opened")
        try:
            async for raw in self.connection:
                try:
                    envelope = decode_envelope(raw)
                except DecodeError as exc:
                    self.log.warning("invalid_frame", error=str(exc))
                    await self.connection.send(ACK_INVALID_FORMAT)
                    break
                await self._dispatch(envelope)
        except ConnectionClosed as exc:
            self.log.info("session_connection_closed", code=exc.rcvd.code if exc.rcvd else None)
        self.log.info("session_closed")

    async def _dispatch(self, envelope: Envelope) -> None:
        if envelope.message_type == FEEDBACK:
            await self._handle_feedback(envelope)
        elif envelope.message_type == RETRIEVE:
            await self._handle_retrieve()
        else:
            self.log.info("unknown_message_type", message_type=envelope.message_type)
            await self.connection.send(ACK_UNKNOWN_TYPE)

    async def _handle_feedback(self, envelope: Envelope) -> None:
        try:
            event = envelope.feedback_event()
        except DecodeError as exc:
            self.log.warning("invalid_feedback_payload", error=str(exc))
            await self.connection.send(ACK_FEEDBACK_INVALID)
            return
        score = self.store.apply_feedback(event.action, event.sign)
        self.log.info(
            "feedback_received",
            subject_id=event.subject_id,
            action=event.action,
            feedback=event.sign,
            device=event.device,
            score=score,
        )
        await self.connection.send(ACK_FEEDBACK_OK)

    async def _handle_retrieve(self) -> None:
        scores = self.store.snapshot()
        self.log.debug("scores_retrieved", actions=len(scores))
        await self.connection.send(encode_scores(scores))

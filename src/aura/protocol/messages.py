from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Dict, Mapping, Optional

from aura.errors import DecodeError

FEEDBACK = "feedback"
RETRIEVE = "retrieve"

ACK_FEEDBACK_OK = "Feedback processed successfully"
ACK_FEEDBACK_INVALID = "Invalid feedback payload"
ACK_UNKNOWN_TYPE = "Unknown message type"
ACK_INVALID_FORMAT = "Invalid message format"


@dataclass(frozen=True)
class FeedbackEvent:
    subject_id: str
    action: str
    sign: int
    device: str = ""

    def to_dict(self) -> Dict[str, object]:
        return {
            "id": self.subject_id,
            "action": self.action,
            "feedback": self.sign,
            "device": self.device,
        }

    @classmethod
    def from_dict(cls, data: object) -> "FeedbackEvent":
        """Build an event from the ``behavior`` object of a feedback envelope.

        ``action`` must be present and a string (it may be empty). A missing
        ``feedback`` reads as 0; any integer is accepted here and out-of-range
        signs are left to the store.
        """
        if not isinstance(data, dict):
            raise DecodeError("behavior must be an object")
        action = data.get("action")
        if not isinstance(action, str):
            raise DecodeError("behavior.action must be a string")
        sign = data.get("feedback")
        if sign is None:
            sign = 0
        if isinstance(sign, bool) or not isinstance(sign, int):
            raise DecodeError("behavior.feedback must be an integer")
        return cls(
            subject_id=str(data.get("id") or ""),
            action=action,
            sign=sign,
            device=str(data.get("device") or ""),
        )


@dataclass(frozen=True)
class Envelope:
    message_type: Optional[str]
    behavior: object = None
    raw: str = ""

    def feedback_event(self) -> FeedbackEvent:
        return FeedbackEvent.from_dict(self.behavior)


def decode_envelope(raw: str | bytes) -> Envelope:
    if isinstance(raw, bytes):
        try:
            raw = raw.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise DecodeError(f"frame is not valid UTF-8: {exc}") from exc
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise DecodeError(f"frame is not valid JSON: {exc.msg}") from exc
    if not isinstance(data, dict):
        raise DecodeError("frame must be a JSON object")
    message_type = data.get("messageType")
    return Envelope(
        message_type=message_type if isinstance(message_type, str) else None,
        behavior=data.get("behavior"),
        raw=raw,
    )


def encode_feedback(event: FeedbackEvent) -> str:
    return json.dumps({"messageType": FEEDBACK, "behavior": event.to_dict()})


def encode_retrieve() -> str:
    return json.dumps({"messageType": RETRIEVE})


def encode_scores(scores: Mapping[str, int]) -> str:
    return json.dumps(dict(scores), indent=2)


def decode_scores(raw: str | bytes) -> Dict[str, int]:
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise DecodeError(f"scores are not valid JSON: {exc.msg}") from exc
    if not isinstance(data, dict):
        raise DecodeError("scores must be a JSON object")
    return data

from __future__ import annotations

import threading
from enum import IntEnum
from types import MappingProxyType
from typing import Dict, Mapping

from aura.errors import DecodeError, InvalidFeedbackValue
from aura.utils.logger import get_logger

logger = get_logger(__name__)

# Scores strictly beyond this magnitude move in steps of two.
WEIGHT_THRESHOLD = 5


class FeedbackSign(IntEnum):
    POSITIVE = 1
    NEGATIVE = -1

    @classmethod
    def parse(cls, value: object) -> "FeedbackSign":
        if isinstance(value, cls):
            return value
        if isinstance(value, bool) or not isinstance(value, int):
            raise InvalidFeedbackValue(value)
        try:
            return cls(value)
        except ValueError:
            raise InvalidFeedbackValue(value) from None


def feedback_weight(score: int) -> int:
    """Weight of the next event given the score before it is applied."""
    if score > WEIGHT_THRESHOLD or score < -WEIGHT_THRESHOLD:
        return 2
    return 1


class KnowledgeStore:
    """Thread-safe action -> score table.

    A single lock covers the read-modify-write in ``apply_feedback`` and the
    full-table copy/replace in ``snapshot`` and ``restore``, so none of them
    can observe a half-applied effect of another. No I/O happens under the
    lock.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._scores: Dict[str, int] = {}

    def apply_feedback(self, action: str, sign: FeedbackSign | int) -> int:
        try:
            parsed = FeedbackSign.parse(sign)
        except InvalidFeedbackValue as exc:
            current = self.score(action)
            logger.warning("invalid_feedback_ignored", action=action, value=exc.value, score=current)
            return current

        with self._lock:
            current = self._scores.get(action, 0)
            new_score = current + feedback_weight(current) * int(parsed)
            self._scores[action] = new_score
        logger.debug("feedback_applied", action=action, sign=parsed.name.lower(), previous=current, score=new_score)
        return new_score

    def snapshot(self) -> Mapping[str, int]:
        with self._lock:
            copied = dict(self._scores)
        return MappingProxyType(copied)

    def restore(self, data: Mapping[str, int]) -> None:
        replacement = self._validate(data)
        with self._lock:
            self._scores = replacement
        logger.info("knowledge_restored", actions=len(replacement))

    def score(self, action: str) -> int:
        with self._lock:
            return self._scores.get(action, 0)

    def __len__(self) -> int:
        with self._lock:
            return len(self._scores)

    @staticmethod
    def _validate(data: object) -> Dict[str, int]:
        if not isinstance(data, Mapping):
            raise DecodeError(f"Snapshot must be a mapping, got {type(data).__name__}")
        validated: Dict[str, int] = {}
        for action, score in data.items():
            if not isinstance(action, str):
                raise DecodeError(f"Action keys must be strings, got {action!r}")
            if isinstance(score, bool) or not isinstance(score, int):
                raise DecodeError(f"Score for {action!r} must be an integer, got {score!r}")
            validated[action] = score
        return validated

from __future__ import annotations


class AuraError(Exception):
    """Base class for service errors."""


class DecodeError(AuraError, ValueError):
    """Inbound message or snapshot artifact is not well-formed."""


class PersistenceWriteError(AuraError, OSError):
    """Snapshot artifact could not be written."""

    def __init__(self, path: str, reason: str) -> None:
        super().__init__(f"Failed to write snapshot to {path}: {reason}")
        self.path = path
        self.reason = reason


class InvalidFeedbackValue(AuraError, ValueError):
    """Feedback sign is neither the positive nor the negative sentinel."""

    def __init__(self, value: object) -> None:
        super().__init__(f"Feedback must be 1 or -1, got {value!r}")
        self.value = value

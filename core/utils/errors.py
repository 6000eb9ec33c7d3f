"""Custom exceptions for core logic."""

from __future__ import annotations


class MutationLoopError(RuntimeError):
    """Raised by the document host when observers keep producing mutations."""

    def __init__(self, message: str, *, batches: int, pending_records: int) -> None:
        super().__init__(message)
        self.batches = batches
        self.pending_records = pending_records


class EngineStateError(RuntimeError):
    """Raised when the engine is started twice or restarted after stop()."""

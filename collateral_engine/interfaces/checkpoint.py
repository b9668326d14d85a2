"""Checkpoint protocol — collaborators that can undo their own effects."""
from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class Checkpointable(Protocol):
    """State that can be captured and later restored."""

    def checkpoint(self) -> Any: ...

    def rollback(self, checkpoint: Any) -> None: ...

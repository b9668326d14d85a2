"""Scoped reentrancy guard for mutating engine entry points."""
from __future__ import annotations

import threading
from contextlib import contextmanager
from typing import Iterator

from ..errors import ReentrantCallError


class ReentrancyGuard:
    """Mutual exclusion that rejects nested entry.

    A second entry from the thread already holding the guard (for example
    a token hook calling back into the engine) raises ``ReentrantCallError``.
    Entries from other threads wait for the holder to finish.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._owner: int | None = None

    @property
    def entered(self) -> bool:
        return self._owner is not None

    @contextmanager
    def guard(self) -> Iterator[None]:
        ident = threading.get_ident()
        if self._owner == ident:
            raise ReentrantCallError("Reentrant call rejected")
        with self._lock:
            self._owner = ident
            try:
                yield
            finally:
                self._owner = None

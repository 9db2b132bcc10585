from __future__ import annotations

import threading
from collections.abc import Hashable, Iterator
from contextlib import contextmanager

from catalogpdf.errors import GenerationInProgressError, RenderCancelledError


class SingleFlightGate:
    """Rejects a second generation for a key while the first is still running."""

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._active: set[Hashable] = set()

    def is_active(self, key: Hashable) -> bool:
        with self._lock:
            return key in self._active

    @contextmanager
    def claim(self, key: Hashable) -> Iterator[None]:
        with self._lock:
            if key in self._active:
                raise GenerationInProgressError(f'generation already running for {key!r}')
            self._active.add(key)
        try:
            yield
        finally:
            with self._lock:
                self._active.discard(key)


class CancellationToken:
    def __init__(self) -> None:
        self._reason: str | None = None

    @property
    def cancelled(self) -> bool:
        return self._reason is not None

    def cancel(self, reason: str = 'cancelled') -> None:
        if self._reason is None:
            self._reason = reason

    def raise_if_cancelled(self) -> None:
        if self._reason is not None:
            raise RenderCancelledError(self._reason)

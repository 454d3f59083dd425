"""Bounded, closable single-producer/single-consumer stream.

A :class:`Stream` connects one worker thread to one consumer. The producer
blocks in :meth:`Stream.send` while the buffer is full, the consumer blocks
while it is empty. Closing is the only completion signal.
"""

from __future__ import annotations

import queue
import threading
from typing import Generic, Iterator, List, Optional, TypeVar

from dfind.errors import StreamClosed

T = TypeVar("T")

DEFAULT_MAXSIZE = 1000

# How often a blocked producer or consumer re-checks for cancellation.
_POLL_INTERVAL = 0.1

_CLOSED = object()


class Stream(Generic[T]):
    def __init__(
        self,
        maxsize: int = DEFAULT_MAXSIZE,
        *,
        cancel_event: Optional[threading.Event] = None,
    ) -> None:
        if maxsize < 1:
            raise ValueError("Stream maxsize must be at least 1")
        # One extra slot so the close marker never blocks behind a full buffer.
        self._queue: "queue.Queue[object]" = queue.Queue(maxsize=maxsize + 1)
        self._maxsize = maxsize
        self._cancel = cancel_event if cancel_event is not None else threading.Event()
        self._slots = threading.BoundedSemaphore(maxsize)
        self._lock = threading.Lock()
        self._closed = False

    @property
    def maxsize(self) -> int:
        return self._maxsize

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def cancelled(self) -> bool:
        return self._cancel.is_set()

    @property
    def cancel_event(self) -> threading.Event:
        return self._cancel

    def send(self, item: T) -> bool:
        """Enqueue ``item``, blocking while the buffer is full.

        Returns False when the stream was cancelled and the item dropped.
        """
        if self._closed:
            raise StreamClosed("send on closed stream")
        while not self._cancel.is_set():
            # The close marker never takes a slot.
            if self._slots.acquire(timeout=_POLL_INTERVAL):
                self._queue.put(item)
                return True
        return False

    def close(self) -> None:
        with self._lock:
            if self._closed:
                return
            self._closed = True
        self._queue.put(_CLOSED)

    def cancel(self) -> None:
        self._cancel.set()

    def __iter__(self) -> Iterator[T]:
        while not self._cancel.is_set():
            try:
                item = self._queue.get(timeout=_POLL_INTERVAL)
            except queue.Empty:
                continue
            if item is _CLOSED:
                return
            self._slots.release()
            yield item  # type: ignore[misc]

    def collect(self) -> List[T]:
        """Drain the stream into a new list."""
        items: List[T] = []
        for item in self:
            items.append(item)
        return items

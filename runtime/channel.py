"""Bounded multi-producer/single-consumer event channel.

Producers hold an EventSender each. Sends block while the channel is full
instead of dropping, so a Quit or Message is never lost. Once the last sender
is closed the consumer sees end of stream (None) after draining what is left.
"""

import queue
import threading
from typing import Optional

from common.logging_setup import get_logger
from runtime.events import Event

logger = get_logger(__name__)

DEFAULT_CAPACITY = 100

# Poll interval for blocked producers to notice a departed consumer
_PUT_POLL_S = 0.1

_END_OF_STREAM = object()


class ChannelClosedError(RuntimeError):
    """Raised when sending into a channel whose consumer has gone away."""


class EventChannel:
    """Ordered, bounded, backpressured queue of events."""

    def __init__(self, capacity: int = DEFAULT_CAPACITY):
        if capacity < 1:
            raise ValueError(f"capacity must be positive, got {capacity}")
        self.capacity = capacity
        self._queue: "queue.Queue[object]" = queue.Queue(maxsize=capacity)
        self._lock = threading.Lock()
        self._senders = 0
        self._all_senders_gone = False
        self._ended = False
        self._receiver_closed = threading.Event()

    def sender(self) -> "EventSender":
        """
        Create a new producer handle.

        Raises:
            ChannelClosedError: If the consumer is gone or every sender
                has already been closed
        """
        with self._lock:
            if self._receiver_closed.is_set() or self._all_senders_gone:
                raise ChannelClosedError("logic error: events channel closed")
            self._senders += 1
        return EventSender(self)

    @property
    def sender_count(self) -> int:
        with self._lock:
            return self._senders

    def receive(self, timeout: Optional[float] = None) -> Optional[Event]:
        """
        Block until the next event is available.

        Args:
            timeout: Seconds to wait, None to wait forever

        Returns:
            The next event, or None once all senders are closed and the
            queue is drained

        Raises:
            queue.Empty: If timeout elapsed without an event
        """
        if self._ended:
            return None
        item = self._queue.get(timeout=timeout)
        if item is _END_OF_STREAM:
            self._ended = True
            return None
        return item  # type: ignore[return-value]

    def close_receiver(self) -> None:
        """Mark the consumer as gone; further sends raise."""
        self._receiver_closed.set()
        pending = self._queue.qsize()
        if pending:
            logger.debug(f"{pending} undelivered event(s) left at shutdown")

    @property
    def receiver_closed(self) -> bool:
        return self._receiver_closed.is_set()

    def _put(self, item: object) -> None:
        while True:
            if self._receiver_closed.is_set():
                raise ChannelClosedError("logic error: events channel closed")
            try:
                self._queue.put(item, timeout=_PUT_POLL_S)
                return
            except queue.Full:
                continue

    def _release_sender(self) -> None:
        with self._lock:
            self._senders -= 1
            last = self._senders == 0
            if last:
                self._all_senders_gone = True
        if not last:
            return
        try:
            self._put(_END_OF_STREAM)
        except ChannelClosedError:
            # Consumer already left; nobody is waiting for the end marker.
            logger.debug("Last sender closed after the receiver")


class EventSender:
    """Producer handle for an EventChannel."""

    def __init__(self, channel: EventChannel):
        self._channel = channel
        self._closed = False
        self._lock = threading.Lock()

    def send(self, event: Event) -> None:
        """
        Enqueue an event, blocking while the channel is full.

        Raises:
            ChannelClosedError: If this handle was closed or the consumer
                is gone
        """
        if self._closed:
            raise ChannelClosedError("logic error: sender already closed")
        self._channel._put(event)

    def clone(self) -> "EventSender":
        """Create another handle on the same channel."""
        return self._channel.sender()

    def close(self) -> None:
        """Release this handle. Safe to call more than once."""
        with self._lock:
            if self._closed:
                return
            self._closed = True
        self._channel._release_sender()

    def __enter__(self) -> "EventSender":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

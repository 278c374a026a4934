"""Keeps the inbound message stream alive across connectivity loss."""

import threading
import time
from enum import Enum
from typing import Callable, Iterable, Iterator, Optional, Protocol

from common.logging_setup import get_logger
from runtime.channel import ChannelClosedError, EventSender
from runtime.events import Message, Quit

logger = get_logger(__name__)

RECONNECT_BACKOFF_S = 10.0

OPEN_FAILURE_GUIDANCE = (
    "failed to initialize the stream of Meshtastic messages.\n"
    "Maybe the radio was unplugged or the node is unreachable? "
    "Check --port/--host and restart."
)


class MessageSource(Protocol):
    def receive_messages(self) -> Iterable[object]:
        ...


class StreamOpenError(Exception):
    """The message stream could not be opened; retrying will not help."""


class ReconnectState(Enum):
    """States of the message stream lifecycle."""

    PROBING = "probing"
    BACKOFF = "backoff"
    CONNECTING = "connecting"
    STREAMING = "streaming"
    FATAL = "fatal"


class MessageStreamReconnector:
    """
    Drives the message stream state machine.

    PROBING checks reachability and goes to CONNECTING, or to BACKOFF when
    offline. BACKOFF sleeps for a fixed interval and probes again.
    CONNECTING opens the stream; failure is fatal and reported once as a
    Quit event. STREAMING forwards every message and returns to PROBING when
    the stream ends, which is the normal reconnect path.
    """

    def __init__(
        self,
        messenger: MessageSource,
        sender: EventSender,
        probe: Callable[[], bool],
        backoff_seconds: float = RECONNECT_BACKOFF_S,
        sleep: Callable[[float], None] = time.sleep,
    ):
        """
        Initialize the reconnector.

        Args:
            messenger: Opens message streams via receive_messages()
            sender: Channel handle for Message and Quit events
            probe: Returns True when the network looks usable
            backoff_seconds: Delay before re-probing while offline
            sleep: Blocking sleep used during backoff
        """
        self.backoff_seconds = backoff_seconds
        self.state = ReconnectState.PROBING
        self._messenger = messenger
        self._sender = sender
        self._probe = probe
        self._sleep = sleep
        self._stream: Optional[Iterable[object]] = None
        self._thread: Optional[threading.Thread] = None
        self.connections = 0

    def step(self) -> ReconnectState:
        """
        Perform one state transition.

        Returns:
            The state after the transition
        """
        if self.state is ReconnectState.PROBING:
            self._on_probing()
        elif self.state is ReconnectState.BACKOFF:
            self._sleep(self.backoff_seconds)
            self.state = ReconnectState.PROBING
        elif self.state is ReconnectState.CONNECTING:
            self._on_connecting()
        elif self.state is ReconnectState.STREAMING:
            self._on_streaming()
        return self.state

    def run(self) -> None:
        """Step until the stream fails to open."""
        try:
            while self.state is not ReconnectState.FATAL:
                self.step()
        finally:
            self._sender.close()

    def start(self) -> threading.Thread:
        """Run the state machine on a daemon thread."""
        self._thread = threading.Thread(
            target=self.run,
            daemon=True,
            name="message-stream",
        )
        self._thread.start()
        return self._thread

    def _on_probing(self) -> None:
        if self._probe():
            self.state = ReconnectState.CONNECTING
        else:
            logger.debug(f"Offline, retrying in {self.backoff_seconds:g}s")
            self.state = ReconnectState.BACKOFF

    def _on_connecting(self) -> None:
        try:
            self._stream = self._messenger.receive_messages()
        except Exception as e:
            error = StreamOpenError(OPEN_FAILURE_GUIDANCE)
            error.__cause__ = e
            logger.error(f"Failed to open message stream: {e}")
            self.state = ReconnectState.FATAL
            self._sender.send(Quit(error))
            return

        self.connections += 1
        logger.info("connected and listening for incoming messages")
        self.state = ReconnectState.STREAMING

    def _on_streaming(self) -> None:
        stream = self._stream
        self._stream = None
        iterator: Iterator[object] = iter(stream or ())
        try:
            for message in iterator:
                self._sender.send(Message(message))
        except ChannelClosedError:
            raise
        except Exception as e:
            logger.warning(f"Message stream broke off: {e}")
        finally:
            close = getattr(iterator, "close", None)
            if close is not None:
                close()

        logger.info("messages stream disconnected. trying to reconnect.")
        self.state = ReconnectState.PROBING


"""Forwards terminal input notifications into the event channel."""

import threading
from typing import Iterable, Optional

from common.logging_setup import get_logger
from runtime.channel import EventSender
from runtime.events import Click, Event, Input, Resize
from ui_service.keys import KeyPress, PointerAction, TerminalResize

logger = get_logger(__name__)


def translate(notification: object) -> Optional[Event]:
    """Map a raw notification to its event, or None if it is ignorable."""
    if isinstance(notification, KeyPress):
        return Input(notification)
    if isinstance(notification, TerminalResize):
        return Resize(cols=notification.cols, rows=notification.rows)
    if isinstance(notification, PointerAction):
        return Click(notification)
    return None


class InputSourceAdapter:
    """
    Runs for the process lifetime on a daemon thread, pushing Input, Resize
    and Click events. Errors reported by the source are dropped.
    """

    def __init__(self, source: Iterable[object], sender: EventSender):
        self._source = source
        self._sender = sender
        self._thread: Optional[threading.Thread] = None

    def run(self) -> None:
        try:
            for notification in self._source:
                if isinstance(notification, Exception):
                    logger.debug(f"Ignoring terminal input error: {notification}")
                    continue
                event = translate(notification)
                if event is not None:
                    self._sender.send(event)
        finally:
            logger.info("Terminal input ended")
            self._sender.close()

    def start(self) -> threading.Thread:
        self._thread = threading.Thread(
            target=self.run,
            daemon=True,
            name="terminal-input",
        )
        self._thread.start()
        return self._thread

"""Redraw scheduling bounded by a target frame rate."""

import threading
import time
from typing import Callable

from common.logging_setup import get_logger
from runtime.channel import ChannelClosedError, EventSender
from runtime.events import Redraw

logger = get_logger(__name__)

TARGET_FPS = 144
FRAME_BUDGET = 1.0 / TARGET_FPS


class FrameLimiter:
    """
    Renders at most once per frame budget.

    Renders requested too soon after the previous one are collapsed into a
    single trailing Redraw event, sent by a timer once the budget runs out.
    At most one such timer is pending at any time.
    """

    def __init__(
        self,
        sender: EventSender,
        frame_budget: float = FRAME_BUDGET,
        clock: Callable[[], float] = time.monotonic,
        timer_factory: Callable[..., threading.Timer] = threading.Timer,
    ):
        """
        Initialize the limiter.

        Args:
            sender: Channel handle used by deferred redraw timers
            frame_budget: Minimum seconds between two renders
            clock: Monotonic time source
            timer_factory: Builds the timer for a deferred redraw
        """
        self.frame_budget = frame_budget
        self._sender = sender
        self._clock = clock
        self._timer_factory = timer_factory
        self._render_spawned = threading.Event()
        self._last_render_at = clock()

    @property
    def last_render_at(self) -> float:
        return self._last_render_at

    @property
    def redraw_pending(self) -> bool:
        return self._render_spawned.is_set()

    def check(self, render: Callable[[], None]) -> bool:
        """
        Render now if the budget allows, otherwise schedule a redraw.

        Args:
            render: Performs a full redraw

        Returns:
            True if render() was called
        """
        elapsed = self._clock() - self._last_render_at
        if elapsed >= self.frame_budget:
            render()
            self._last_render_at = self._clock()
            return True

        # skip frames that render too fast
        if not self._render_spawned.is_set():
            self._render_spawned.set()
            remaining = self.frame_budget - elapsed
            timer = self._timer_factory(remaining, self._fire)
            timer.daemon = True
            timer.name = "redraw-timer"
            timer.start()
        return False

    def _fire(self) -> None:
        """Send the trailing redraw so the last skipped frame gets drawn."""
        try:
            self._sender.send(Redraw())
        except ChannelClosedError:
            logger.debug("Dropping deferred redraw, dispatch loop has exited")
        finally:
            self._render_spawned.clear()

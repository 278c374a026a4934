"""The single consumer of the event channel."""

from typing import Any, Callable, Optional

from common.logging_setup import get_logger
from runtime.channel import EventChannel
from runtime.events import Click, Input, Message, Quit, Redraw, Resize
from runtime.frame_limiter import FrameLimiter

logger = get_logger(__name__)

_UPDATE_EVENTS = (Input, Resize, Click, Message, Redraw)


def run_loop(
    app: Any,
    channel: EventChannel,
    update: Callable[[Any, Any, Any], Optional[Any]],
    render: Callable[[Any], None],
    env: Any,
    limiter: FrameLimiter,
) -> Optional[BaseException]:
    """
    Pull events one at a time and feed them through update().

    Every iteration first gives the frame limiter a chance to render the
    current state, then blocks on the channel.

    Args:
        app: Initial application state
        channel: Event channel this loop consumes
        update: (state, event, env) -> next state, or None to stop
        render: Draws a state onto the terminal
        env: Passed through to update()
        limiter: Decides between rendering now and deferring

    Returns:
        The fatal error carried by a Quit event, or None on a clean exit
    """
    try:
        while True:
            limiter.check(lambda: render(app))

            event = channel.receive()
            if event is None:
                logger.info("Event channel closed, quitting")
                return None
            if isinstance(event, Quit):
                if event.error is not None:
                    logger.error(f"Quitting on fatal error: {event.error}")
                return event.error
            if not isinstance(event, _UPDATE_EVENTS):
                raise TypeError(f"unhandled event {event!r}")

            next_app = update(app, event, env)
            if next_app is None:
                logger.info("Update requested exit")
                return None
            app = next_app
    finally:
        channel.close_receiver()

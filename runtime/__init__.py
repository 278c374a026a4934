"""Event multiplexing and render loop for meshchat."""

from runtime.events import Click, Event, Input, Message, Quit, Redraw, Resize
from runtime.channel import ChannelClosedError, EventChannel, EventSender
from runtime.frame_limiter import FRAME_BUDGET, FrameLimiter
from runtime.reconnector import MessageStreamReconnector, ReconnectState, StreamOpenError
from runtime.dispatch import run_loop

__all__ = [
    "Click",
    "Event",
    "Input",
    "Message",
    "Quit",
    "Redraw",
    "Resize",
    "ChannelClosedError",
    "EventChannel",
    "EventSender",
    "FRAME_BUDGET",
    "FrameLimiter",
    "MessageStreamReconnector",
    "ReconnectState",
    "StreamOpenError",
    "run_loop",
]

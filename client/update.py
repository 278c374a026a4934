"""State transitions of the meshchat client."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from client.app import MAX_CHANNELS, App
from common.logging_setup import get_logger
from runtime.events import Click, Event, Input, Message, Quit, Redraw, Resize
from ui_service.keys import KeyPress, PointerAction

logger = get_logger(__name__)

QUIT_KEYS = {"ctrl+c", "esc"}
PAGE_SIZE = 10
# Rows taken by the header and input panels
CHROME_ROWS = 6


@dataclass
class Environment:
    """Side-effecting collaborators available to update()."""

    messenger: Any


def update(app: App, event: Event, env: Environment) -> Optional[App]:
    """
    Apply one event to the application state.

    Returns:
        The next state, or None when the client should exit
    """
    _sync_connection(app, env)
    if isinstance(event, Input):
        return _on_key(app, event.key, env)
    if isinstance(event, Resize):
        app.size = (event.cols, event.rows)
        return app
    if isinstance(event, Click):
        return _on_pointer(app, event.pointer)
    if isinstance(event, Message):
        app.add_message(event.message)
        return app
    if isinstance(event, Redraw):
        return app
    if isinstance(event, Quit):
        return None
    raise TypeError(f"unhandled event {event!r}")


def _sync_connection(app: App, env: Environment) -> None:
    app.connected = bool(getattr(env.messenger, "connected", False))
    local_id = getattr(env.messenger, "local_id", None)
    if local_id:
        app.local_id = local_id


def _on_key(app: App, key: KeyPress, env: Environment) -> Optional[App]:
    name = key.key
    if name in QUIT_KEYS:
        return None
    if name == "enter":
        _send_input(app, env)
    elif name == "backspace":
        app.input_buffer = app.input_buffer[:-1]
    elif name == "tab":
        app.channel_index = (app.channel_index + 1) % MAX_CHANNELS
        app.scroll = 0
        app.selected = None
    elif name == "shift+tab":
        app.channel_index = (app.channel_index - 1) % MAX_CHANNELS
        app.scroll = 0
        app.selected = None
    elif name == "up":
        _scroll(app, 1)
    elif name == "down":
        _scroll(app, -1)
    elif name == "pgup":
        _scroll(app, PAGE_SIZE)
    elif name == "pgdn":
        _scroll(app, -PAGE_SIZE)
    elif name == "ctrl+u":
        app.input_buffer = ""
    elif key.printable:
        app.input_buffer += name
    return app


def _send_input(app: App, env: Environment) -> None:
    text = app.input_buffer.strip()
    if not text:
        return
    try:
        sent = env.messenger.send_text(text, channel_index=app.channel_index)
    except Exception as e:
        logger.warning(f"Failed to send message: {e}")
        app.status = f"send failed: {e}"
        return
    app.input_buffer = ""
    app.status = "sent"
    app.add_message(sent)


def _scroll(app: App, delta: int) -> None:
    max_scroll = max(0, len(app.channel_messages()) - 1)
    app.scroll = max(0, min(app.scroll + delta, max_scroll))


def _on_pointer(app: App, pointer: PointerAction) -> App:
    if pointer.kind == "wheel_up":
        _scroll(app, 1)
    elif pointer.kind == "wheel_down":
        _scroll(app, -1)
    elif pointer.kind == "press" and pointer.button == 0:
        app.selected = message_at_row(app, pointer.row)
    return app


def message_at_row(app: App, row: int) -> Optional[int]:
    """
    Map a screen row to the index of the message drawn there.

    Messages fill the body bottom-up, one per row, starting below the
    header panel.
    """
    body_top = 3
    body_rows = max(0, app.size[1] - CHROME_ROWS)
    offset = row - body_top
    if offset < 0 or offset >= body_rows:
        return None

    messages = app.channel_messages()
    end = len(messages) - app.scroll
    start = max(0, end - body_rows)
    visible = end - start
    # rows above the first visible message are blank
    index = offset - (body_rows - visible)
    if index < 0 or index >= visible:
        return None
    return start + index

"""Events flowing from producers to the dispatch loop."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional, Union

if TYPE_CHECKING:
    from transport.message import TextMessage
    from ui_service.keys import KeyPress, PointerAction


@dataclass(frozen=True)
class Input:
    """A key press from the terminal."""

    key: KeyPress


@dataclass(frozen=True)
class Resize:
    """The terminal was resized."""

    cols: int
    rows: int


@dataclass(frozen=True)
class Click:
    """A pointer action (button press/release or wheel)."""

    pointer: PointerAction


@dataclass(frozen=True)
class Message:
    """A decoded message received from the mesh."""

    message: TextMessage


@dataclass(frozen=True)
class Redraw:
    """A deferred render is due."""


@dataclass(frozen=True)
class Quit:
    """Shutdown request, optionally carrying the fatal error."""

    error: Optional[BaseException] = None


Event = Union[Input, Resize, Click, Message, Redraw, Quit]

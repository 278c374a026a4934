"""Raw terminal input: key presses, pointer reports and resizes."""

from __future__ import annotations

import codecs
import os
import re
import select
import shutil
import sys
from dataclasses import dataclass
from typing import Callable, Iterator, List, Optional, TextIO, Tuple, Union


@dataclass(frozen=True)
class KeyPress:
    """A decoded key: a printable character or a name like 'up' or 'ctrl+c'."""

    key: str

    @property
    def printable(self) -> bool:
        return len(self.key) == 1 and self.key.isprintable()


@dataclass(frozen=True)
class PointerAction:
    """An SGR mouse report. Coordinates are zero-based."""

    kind: str  # press, release, drag, wheel_up, wheel_down
    button: int
    col: int
    row: int


@dataclass(frozen=True)
class TerminalResize:
    cols: int
    rows: int


@dataclass(frozen=True)
class UnknownSequence:
    """Input we do not decode (function keys, focus reports, ...)."""

    data: str


Notification = Union[KeyPress, PointerAction, TerminalResize, UnknownSequence, Exception]

_CSI_KEYS = {
    "A": "up",
    "B": "down",
    "C": "right",
    "D": "left",
    "H": "home",
    "F": "end",
    "Z": "shift+tab",
    "3~": "delete",
    "5~": "pgup",
    "6~": "pgdn",
}

_RE_SGR_MOUSE = re.compile(r"\x1b\[<(\d+);(\d+);(\d+)([Mm])")
_RE_CSI = re.compile(r"\x1b\[[0-9;?]*[ -/]*[@-~]")
_RE_SS3 = re.compile(r"\x1bO[A-Za-z]")
# an escape sequence cut short: introducer and parameters, no final byte
_RE_PARTIAL = re.compile(r"\x1b(?:\[[0-9;?<]*[ -/]*|O)")

# how long a trailing ESC waits for the rest of its sequence
ESCAPE_TIMEOUT = 0.05


def _decode_pointer(match: "re.Match[str]") -> PointerAction:
    code, col, row, final = match.groups()
    code_num = int(code)
    button = code_num & 3
    if code_num & 64:
        kind = "wheel_down" if button & 1 else "wheel_up"
    elif code_num & 32:
        kind = "drag"
    elif final == "M":
        kind = "press"
    else:
        kind = "release"
    return PointerAction(kind=kind, button=button, col=int(col) - 1, row=int(row) - 1)


def _decode_control(ch: str) -> KeyPress:
    if ch in ("\r", "\n"):
        return KeyPress("enter")
    if ch in ("\x7f", "\x08"):
        return KeyPress("backspace")
    if ch == "\t":
        return KeyPress("tab")
    code = ord(ch)
    if 1 <= code <= 26:
        return KeyPress(f"ctrl+{chr(code + 96)}")
    return KeyPress(ch)


def parse_input(text: str) -> List[Notification]:
    """
    Split a chunk of raw terminal input into notifications.

    Args:
        text: Characters read from the terminal in raw mode

    Returns:
        Decoded key presses, pointer actions and unknown sequences in order
    """
    items: List[Notification] = []
    pos = 0
    while pos < len(text):
        ch = text[pos]
        if ch != "\x1b":
            if ch.isprintable():
                items.append(KeyPress(ch))
            else:
                items.append(_decode_control(ch))
            pos += 1
            continue

        mouse = _RE_SGR_MOUSE.match(text, pos)
        if mouse:
            items.append(_decode_pointer(mouse))
            pos = mouse.end()
            continue

        csi = _RE_CSI.match(text, pos) or _RE_SS3.match(text, pos)
        if csi:
            body = csi.group(0)[2:]
            name = _CSI_KEYS.get(body)
            items.append(KeyPress(name) if name else UnknownSequence(csi.group(0)))
            pos = csi.end()
            continue

        following = text[pos + 1 : pos + 2]
        if following in ("[", "O"):
            partial = _RE_PARTIAL.match(text, pos)
            items.append(UnknownSequence(partial.group(0)))
            pos = partial.end()
        elif following and following.isprintable():
            items.append(KeyPress(f"alt+{following}"))
            pos += 2
        else:
            items.append(KeyPress("esc"))
            pos += 1
    return items


def incomplete_escape_start(text: str) -> int:
    """
    Find where an unfinished escape sequence at the end of text begins.

    Returns:
        Index of the trailing ESC that still waits for more bytes, or
        len(text) when the text can be decoded as a whole
    """
    start = text.rfind("\x1b")
    if start == -1:
        return len(text)
    tail = text[start:]
    if tail in ("\x1b", "\x1bO"):
        return start
    if tail.startswith("\x1b[") and not _RE_CSI.match(tail):
        partial = _RE_PARTIAL.match(tail)
        if partial is not None and partial.end() == len(tail):
            return start
    return len(text)


def _terminal_size() -> Tuple[int, int]:
    size = shutil.get_terminal_size()
    return size.columns, size.lines


class TerminalInput:
    """
    Reads raw notifications from a terminal already switched to raw mode.

    notifications() is a lazy, unbounded generator; it only ends when the
    input stream reaches EOF and cannot be restarted. An escape sequence split
    across reads is held back until it completes; a trailing ESC with nothing
    after it for escape_timeout seconds is the Esc key.
    """

    def __init__(
        self,
        stream: Optional[TextIO] = None,
        poll_interval: float = 0.1,
        size_fn: Callable[[], Tuple[int, int]] = _terminal_size,
        escape_timeout: float = ESCAPE_TIMEOUT,
    ):
        self._stream = stream or sys.stdin
        self._poll_interval = poll_interval
        self._size_fn = size_fn
        self._escape_timeout = escape_timeout
        self._started = False

    def notifications(self) -> Iterator[Notification]:
        if self._started:
            raise RuntimeError("terminal input can only be consumed once")
        self._started = True
        return self._read_loop()

    def _read_loop(self) -> Iterator[Notification]:
        fd = self._stream.fileno()
        decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        last_size = self._size_fn()
        pending = ""
        while True:
            timeout = self._escape_timeout if pending else self._poll_interval
            readable, _, _ = select.select([fd], [], [], timeout)

            size = self._size_fn()
            if size != last_size:
                last_size = size
                yield TerminalResize(*size)

            if not readable:
                if pending:
                    # nothing completed the sequence in time
                    yield from parse_input(pending)
                    pending = ""
                continue
            try:
                data = os.read(fd, 1024)
            except (InterruptedError, BlockingIOError) as e:
                yield e
                continue
            if not data:
                yield from parse_input(pending + decoder.decode(b"", final=True))
                return

            text = pending + decoder.decode(data)
            cut = incomplete_escape_start(text)
            pending = text[cut:]
            yield from parse_input(text[:cut])

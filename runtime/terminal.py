"""Exclusive terminal control with guaranteed release."""

from __future__ import annotations

import sys
from typing import Any, List, Optional, TextIO

from rich.console import Console

from common.logging_setup import get_logger

logger = get_logger(__name__)

# xterm mouse tracking: button events, motion while pressed, SGR encoding
ENABLE_MOUSE_CAPTURE = "\x1b[?1000h\x1b[?1002h\x1b[?1006h"
DISABLE_MOUSE_CAPTURE = "\x1b[?1006l\x1b[?1002l\x1b[?1000l"


class TerminalError(RuntimeError):
    """The terminal could not be taken over."""


class TerminalSession:
    """
    Context manager owning the terminal while the client runs.

    Entering switches stdin to raw mode, enters the alternate screen, hides
    the cursor and enables pointer capture. Leaving undoes all of it on every
    exit path; failures while restoring are logged and never raised.
    """

    def __init__(
        self,
        console: Optional[Console] = None,
        stdin: Optional[TextIO] = None,
    ):
        self.console = console or Console()
        self._stdin = stdin or sys.stdin
        self._fd: Optional[int] = None
        self._saved_attrs: Optional[List[Any]] = None
        self._alt_screen = False
        self._mouse = False
        self.active = False

    def __enter__(self) -> "TerminalSession":
        self.acquire()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.release()

    def acquire(self) -> None:
        """
        Take over the terminal.

        Raises:
            TerminalError: If stdin is not a terminal
        """
        import termios
        import tty

        if not self._stdin.isatty():
            raise TerminalError("meshchat must be run in an interactive terminal")

        try:
            self._fd = self._stdin.fileno()
            self._saved_attrs = termios.tcgetattr(self._fd)
            tty.setraw(self._fd)
            self.active = True

            self._alt_screen = self.console.set_alt_screen(True)
            self.console.show_cursor(False)
            self._write(ENABLE_MOUSE_CAPTURE)
            self._mouse = True
            self.console.clear()
        except Exception:
            self.release()
            raise
        logger.debug("Terminal acquired")

    def release(self) -> None:
        """Restore the terminal. Safe to call more than once."""
        if self._mouse:
            self._best_effort("disable pointer capture", self._write, DISABLE_MOUSE_CAPTURE)
            self._mouse = False
        if self._alt_screen:
            self._best_effort("leave alternate screen", self.console.set_alt_screen, False)
            self._alt_screen = False
        if self.active:
            self._best_effort("show cursor", self.console.show_cursor, True)
        if self._saved_attrs is not None and self._fd is not None:
            import termios

            self._best_effort(
                "disable raw mode",
                termios.tcsetattr,
                self._fd,
                termios.TCSADRAIN,
                self._saved_attrs,
            )
            self._saved_attrs = None
        if self.active:
            logger.debug("Terminal restored")
        self.active = False

    def _write(self, sequence: str) -> None:
        self.console.file.write(sequence)
        self.console.file.flush()

    @staticmethod
    def _best_effort(what: str, func, *args) -> None:
        try:
            func(*args)
        except Exception as e:
            logger.warning(f"Failed to {what}: {e}")

"""Terminal rendering for meshchat."""

from __future__ import annotations

import time
from typing import List

from rich.console import Console
from rich.control import Control
from rich.layout import Layout
from rich.panel import Panel
from rich.screen import Screen
from rich.style import Style
from rich.text import Text

from client.app import App
from client.update import CHROME_ROWS
from transport.message import BROADCAST_ID, TextMessage

TITLE = "meshchat"


def _hex_to_rgb(color: str) -> tuple[int, int, int]:
    """Convert a hex color string like '#rrggbb' or 'rrggbb' to an (r, g, b) tuple."""
    color = color.lstrip("#")
    if len(color) != 6:
        return (255, 255, 255)
    try:
        return (int(color[0:2], 16), int(color[2:4], 16), int(color[4:6], 16))
    except ValueError:
        return (255, 255, 255)


def _interpolate_rgb(
    start: tuple[int, int, int],
    end: tuple[int, int, int],
    ratio: float,
) -> str:
    """Blend two RGB colors and return the result as '#rrggbb'."""
    ratio = max(0.0, min(1.0, ratio))
    channels = [int(s + (e - s) * ratio) for s, e in zip(start, end)]
    return "#" + "".join(f"{max(0, min(255, c)):02x}" for c in channels)


def create_gradient_text(text: str, start_color: str, end_color: str) -> Text:
    """Color each character of a single-line title along a gradient."""
    result = Text()
    start_rgb = _hex_to_rgb(start_color)
    end_rgb = _hex_to_rgb(end_color)
    steps = max(1, len(text) - 1)
    for index, ch in enumerate(text):
        color = _interpolate_rgb(start_rgb, end_rgb, index / steps)
        result.append(ch, style=Style(color=color, bold=True))
    return result


def create_ui_layout(body_rows: int) -> Layout:
    """Create the main UI layout."""
    layout = Layout()
    layout.split_column(
        Layout(name="header", size=3),
        Layout(name="body", size=max(0, body_rows)),
        Layout(name="footer", size=3),
    )
    return layout


def _format_timestamp(ts: float) -> str:
    return time.strftime("%H:%M", time.localtime(ts))


def _format_message(message: TextMessage, selected: bool) -> Text:
    line = Text(no_wrap=True, overflow="ellipsis")
    line.append(f"{_format_timestamp(message.received_at)} ", style="dim")
    name_style = "bold green" if message.outgoing else "bold cyan"
    line.append(message.display_name, style=name_style)
    if message.destination_id != BROADCAST_ID and not message.outgoing:
        line.append(" (dm)", style="magenta")
    line.append(": ", style="dim")
    line.append(message.text, style="white")
    if selected:
        line.stylize("reverse")
    return line


def _visible_lines(app: App, body_rows: int) -> List[Text]:
    messages = app.channel_messages()
    end = len(messages) - app.scroll
    start = max(0, end - body_rows)
    lines = [Text("")] * (body_rows - (end - start))
    for index in range(start, end):
        lines.append(_format_message(messages[index], index == app.selected))
    return lines


def _render_header(app: App) -> Text:
    text = create_gradient_text(TITLE, "#00ffff", "#0033ff")
    text.append("  node: ", style="dim")
    text.append(app.local_id or "unknown", style="green" if app.local_id else "dim")
    text.append("  channel: ", style="dim")
    text.append(str(app.channel_index), style="bold white")
    text.append("  link: ", style="dim")
    if app.connected:
        text.append("online", style="green")
    else:
        text.append("offline", style="red")
    text.append("  status: ", style="dim")
    text.append(app.status, style="yellow")
    return text


def _render_footer(app: App) -> Text:
    text = Text(no_wrap=True, overflow="ellipsis")
    text.append("> ", style="bold cyan")
    text.append(app.input_buffer, style="white")
    text.append("█", style="cyan")
    return text


def draw(app: App, console: Console) -> Layout:
    """Build the full screen for the current state."""
    _, rows = app.size
    body_rows = max(0, rows - CHROME_ROWS)
    layout = create_ui_layout(body_rows)

    layout["header"].update(Panel(_render_header(app), border_style="cyan", height=3))
    body = Text("\n", no_wrap=True, overflow="ellipsis").join(_visible_lines(app, body_rows))
    layout["body"].update(body)
    hints = "Enter send | Tab channel | PgUp/PgDn scroll | Esc quit"
    layout["footer"].update(
        Panel(
            _render_footer(app),
            border_style="blue",
            height=3,
            title=f"[bold cyan]ch {app.channel_index}[/bold cyan]",
            title_align="left",
            subtitle=f"[dim]{hints}[/dim]",
            subtitle_align="right",
        )
    )
    return layout


class ScreenRenderer:
    """
    Draws full frames onto the alternate screen.

    The terminal is in raw mode, so frames are emitted as an application
    mode Screen (explicit carriage returns) starting from the home position.
    """

    def __init__(self, console: Console):
        self.console = console
        self.frames = 0

    def clear(self) -> None:
        self.console.clear()

    def render(self, app: App) -> None:
        self.console.control(Control.home())
        self.console.print(Screen(draw(app, self.console), application_mode=True), end="")
        self.frames += 1

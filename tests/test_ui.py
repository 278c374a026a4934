"""Tests for screen rendering."""

import io
import os
import sys

from rich.console import Console

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from client.app import App
from transport.message import TextMessage
from ui_service.ui import (
    ScreenRenderer,
    _hex_to_rgb,
    _interpolate_rgb,
    _visible_lines,
    create_gradient_text,
    draw,
)


def make_console(width=80, height=24):
    return Console(file=io.StringIO(), width=width, height=height, force_terminal=True, color_system=None)


def sample_app():
    app = App(size=(80, 24), local_id="!deadbeef", connected=True, status="ready")
    app.add_message(TextMessage(sender_id="!1234", sender_name="Base Camp", text="hello mesh", received_at=0.0))
    app.add_message(TextMessage(sender_id="!deadbeef", text="hi back", received_at=0.0, outgoing=True))
    app.input_buffer = "draft"
    return app


def test_draw_contains_header_messages_and_input():
    console = make_console()
    console.print(draw(sample_app(), console))
    output = console.file.getvalue()

    assert "meshchat" in output
    assert "!deadbeef" in output
    assert "online" in output
    assert "Base Camp: hello mesh" in output
    assert "hi back" in output
    assert "> draft" in output


def test_visible_lines_pad_from_top():
    app = sample_app()
    lines = _visible_lines(app, 5)

    assert len(lines) == 5
    assert [line.plain for line in lines[:3]] == ["", "", ""]
    assert lines[-1].plain.endswith("hi back")


def test_visible_lines_respect_scroll_and_channel():
    app = sample_app()
    app.add_message(TextMessage(sender_id="!9", text="elsewhere", channel_index=3, received_at=0.0))
    app.scroll = 1

    plain = [line.plain for line in _visible_lines(app, 2)]

    assert plain[0] == ""
    assert plain[1].endswith("hello mesh")


def test_renderer_counts_frames():
    console = make_console()
    renderer = ScreenRenderer(console)

    renderer.render(sample_app())
    renderer.render(sample_app())

    assert renderer.frames == 2
    assert "hello mesh" in console.file.getvalue()


def test_gradient_helpers():
    assert _hex_to_rgb("#ff0080") == (255, 0, 128)
    assert _hex_to_rgb("bogus") == (255, 255, 255)
    assert _interpolate_rgb((0, 0, 0), (255, 255, 255), 2.0) == "#ffffff"

    text = create_gradient_text("abc", "#000000", "#ffffff")
    assert text.plain == "abc"
    assert len(text.spans) == 3

"""Tests for client state transitions."""

import os
import sys
import unittest

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from client.app import MAX_CHANNELS, App
from client.update import PAGE_SIZE, Environment, message_at_row, update
from runtime.events import Click, Input, Message, Quit, Redraw, Resize
from transport.message import TextMessage
from ui_service.keys import KeyPress, PointerAction


class FakeMessenger:
    def __init__(self, connected=True, fail=None):
        self.connected = connected
        self.local_id = "!0000abcd"
        self.fail = fail
        self.sent = []

    def send_text(self, text, channel_index=0):
        if self.fail is not None:
            raise self.fail
        self.sent.append((text, channel_index))
        return TextMessage(sender_id=self.local_id, text=text, channel_index=channel_index, outgoing=True)


def key(name):
    return Input(KeyPress(name))


def msg(text, channel=0):
    return TextMessage(sender_id="!1234", text=text, channel_index=channel, received_at=0.0)


class TestUpdate(unittest.TestCase):
    """Test update() for every event kind."""

    def setUp(self):
        self.messenger = FakeMessenger()
        self.env = Environment(messenger=self.messenger)
        self.app = App()

    def test_typing_and_sending(self):
        """Test printable keys fill the buffer and enter sends it."""
        for ch in "hi!":
            self.app = update(self.app, key(ch), self.env)
        self.assertEqual(self.app.input_buffer, "hi!")

        self.app = update(self.app, key("backspace"), self.env)
        self.app = update(self.app, key("enter"), self.env)

        self.assertEqual(self.messenger.sent, [("hi", 0)])
        self.assertEqual(self.app.input_buffer, "")
        self.assertEqual(self.app.status, "sent")
        self.assertTrue(self.app.messages[-1].outgoing)

    def test_blank_input_is_not_sent(self):
        self.app.input_buffer = "   "
        update(self.app, key("enter"), self.env)
        self.assertEqual(self.messenger.sent, [])

    def test_send_failure_keeps_buffer(self):
        """Test a failed send is reported in the status line."""
        self.env = Environment(messenger=FakeMessenger(fail=RuntimeError("no radio")))
        self.app.input_buffer = "hello"

        app = update(self.app, key("enter"), self.env)

        self.assertEqual(app.input_buffer, "hello")
        self.assertIn("no radio", app.status)

    def test_quit_keys(self):
        self.assertIsNone(update(App(), key("esc"), self.env))
        self.assertIsNone(update(App(), key("ctrl+c"), self.env))
        self.assertIsNone(update(App(), Quit(), self.env))

    def test_alt_key_does_not_quit(self):
        """Test an Esc-prefixed key is neither a quit nor typed text."""
        app = update(self.app, key("alt+x"), self.env)
        self.assertIs(app, self.app)
        self.assertEqual(app.input_buffer, "")

    def test_ctrl_u_clears_input(self):
        self.app.input_buffer = "draft"
        app = update(self.app, key("ctrl+u"), self.env)
        self.assertEqual(app.input_buffer, "")

    def test_channel_cycling_wraps(self):
        """Test tab and shift+tab move through the channels."""
        app = update(self.app, key("shift+tab"), self.env)
        self.assertEqual(app.channel_index, MAX_CHANNELS - 1)
        app = update(app, key("tab"), self.env)
        self.assertEqual(app.channel_index, 0)

    def test_resize_updates_size(self):
        app = update(self.app, Resize(cols=132, rows=50), self.env)
        self.assertEqual(app.size, (132, 50))

    def test_message_is_recorded(self):
        """Test incoming messages land in history and reset scrolling."""
        self.app.scroll = 3
        app = update(self.app, Message(msg("yo")), self.env)
        self.assertEqual(list(app.messages), [msg("yo")])
        self.assertEqual(app.scroll, 0)

    def test_scroll_is_clamped(self):
        for i in range(5):
            self.app.add_message(msg(str(i)))

        app = update(self.app, key("pgup"), self.env)
        self.assertEqual(app.scroll, min(PAGE_SIZE, 4))
        app = update(app, key("pgdn"), self.env)
        self.assertEqual(app.scroll, 0)
        app = update(app, key("down"), self.env)
        self.assertEqual(app.scroll, 0)
        app = update(app, key("up"), self.env)
        self.assertEqual(app.scroll, 1)

    def test_wheel_scrolls(self):
        for i in range(3):
            self.app.add_message(msg(str(i)))
        app = update(self.app, Click(PointerAction("wheel_up", 0, 0, 5)), self.env)
        self.assertEqual(app.scroll, 1)
        app = update(app, Click(PointerAction("wheel_down", 0, 0, 5)), self.env)
        self.assertEqual(app.scroll, 0)

    def test_click_selects_message(self):
        """Test a left press on a message row selects it."""
        self.app.size = (80, 10)  # four body rows starting at row 3
        for i in range(3):
            self.app.add_message(msg(str(i)))

        app = update(self.app, Click(PointerAction("press", 0, 4, 6)), self.env)
        self.assertEqual(app.selected, 2)

        app = update(app, Click(PointerAction("press", 0, 4, 3)), self.env)
        self.assertIsNone(app.selected)

    def test_redraw_keeps_state_and_syncs_connection(self):
        self.app.status = "idle"
        app = update(self.app, Redraw(), self.env)
        self.assertIs(app, self.app)
        self.assertEqual(app.status, "idle")
        self.assertTrue(app.connected)
        self.assertEqual(app.local_id, "!0000abcd")

    def test_unknown_event_raises(self):
        with self.assertRaises(TypeError):
            update(self.app, object(), self.env)


class TestMessageAtRow(unittest.TestCase):
    """Test mapping screen rows to messages."""

    def test_rows_outside_body(self):
        app = App(size=(80, 10))
        app.add_message(msg("only"))
        self.assertIsNone(message_at_row(app, 0))
        self.assertIsNone(message_at_row(app, 7))
        self.assertEqual(message_at_row(app, 6), 0)

    def test_scrolled_view(self):
        app = App(size=(80, 8))  # two body rows
        for i in range(5):
            app.add_message(msg(str(i)))
        app.scroll = 1
        self.assertEqual(message_at_row(app, 3), 2)
        self.assertEqual(message_at_row(app, 4), 3)

    def test_other_channels_are_ignored(self):
        app = App(size=(80, 8))
        app.add_message(msg("a", channel=1))
        self.assertIsNone(message_at_row(app, 4))


if __name__ == "__main__":
    unittest.main()

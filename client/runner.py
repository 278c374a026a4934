"""Wires the event sources, the render loop and the terminal together."""

import sys
from typing import Optional, TextIO

from rich.console import Console

from client.app import App
from client.update import Environment, update
from common.config import Config
from common.logging_setup import get_logger
from common.network_detection import DEFAULT_PROBE_PORT, MESHTASTIC_TCP_PORT, make_probe
from common.serial_detection import find_serial_port, make_port_probe
from runtime.channel import EventChannel
from runtime.dispatch import run_loop
from runtime.frame_limiter import FrameLimiter
from runtime.input_adapter import InputSourceAdapter
from runtime.reconnector import MessageStreamReconnector
from runtime.terminal import TerminalSession
from transport.meshtastic_transport import MeshtasticMessenger
from ui_service.keys import TerminalInput
from ui_service.ui import ScreenRenderer

logger = get_logger(__name__)


def build_messenger(config: Config) -> MeshtasticMessenger:
    """Create the messenger for a TCP node or a serial radio."""
    if config.host:
        return MeshtasticMessenger(host=config.host)
    return MeshtasticMessenger(serial_port=find_serial_port(config.serial_port))


def build_probe(config: Config, messenger: MeshtasticMessenger):
    """
    Pick the reachability check that gates each stream connect.

    An explicit --probe endpoint wins. Otherwise a network node is probed on
    its API port and a serial radio by the presence of its device.
    """
    timeout = config.probe_timeout_s
    if config.probe_host:
        port = config.probe_port or DEFAULT_PROBE_PORT
        logger.info(f"Probing {config.probe_host}:{port} before connecting")
        return make_probe(config.probe_host, port, timeout)
    if messenger.host:
        return make_probe(messenger.host, MESHTASTIC_TCP_PORT, timeout)
    return make_port_probe(messenger.serial_port)


def report_error(error: BaseException, file: Optional[TextIO] = None) -> None:
    """Print a fatal error and its chain of causes."""
    out = file or sys.stderr
    print(f"Error: {error}", file=out)
    cause = error.__cause__
    while cause is not None:
        print(f"Caused by: {cause}", file=out)
        cause = cause.__cause__


def _run_session(
    config: Config,
    app: App,
    env: Environment,
    console: Console,
) -> Optional[BaseException]:
    app.size = (console.size.width, console.size.height)

    channel = EventChannel(config.channel_capacity)
    InputSourceAdapter(TerminalInput().notifications(), channel.sender()).start()

    probe = build_probe(config, env.messenger)
    reconnector = MessageStreamReconnector(
        env.messenger,
        channel.sender(),
        probe,
        backoff_seconds=config.reconnect_backoff_s,
    )
    reconnector.start()

    renderer = ScreenRenderer(console)
    renderer.clear()
    limiter = FrameLimiter(channel.sender(), frame_budget=config.frame_budget_s)

    return run_loop(app, channel, update, renderer.render, env, limiter)


def run(config: Config, console: Optional[Console] = None) -> int:
    """
    Run the client until the user quits or a fatal error occurs.

    Returns:
        Process exit code: 0 on a clean quit, 1 on a fatal error
    """
    console = console or Console()
    app = App.with_history(config.message_history)

    try:
        env = Environment(messenger=build_messenger(config))
        with TerminalSession(console):
            error = _run_session(config, app, env, console)
    except Exception as e:
        logger.exception("meshchat failed")
        report_error(e)
        return 1

    # the terminal is restored at this point
    if error is not None:
        report_error(error)
        return 1

    logger.info("meshchat exited cleanly")
    return 0

"""Command line entry point for meshchat."""

import argparse
import sys
from typing import List, Optional

from client.runner import run
from common.config import Config
from common.logging_setup import setup_logging, get_logger

logger = get_logger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="meshchat",
        description="meshchat - terminal messaging over a Meshtastic mesh",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )

    target = parser.add_mutually_exclusive_group()
    target.add_argument(
        "--port",
        help="Serial port of the Meshtastic radio (auto-detected when omitted)",
    )
    target.add_argument(
        "--host",
        help="Hostname or IP of a network-attached Meshtastic node",
    )

    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable logging to meshchat.log in the current directory",
    )

    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level when --verbose is set",
    )

    parser.add_argument(
        "--log-file",
        default="meshchat.log",
        help="Log file path used with --verbose",
    )

    parser.add_argument(
        "--probe",
        help="host:port checked for reachability before connecting; when unset "
        "the node's API port (--host) or the serial device (--port) is checked",
    )

    parser.add_argument(
        "--fps",
        type=int,
        default=144,
        help="Maximum redraws per second",
    )

    return parser


def parse_probe(value: str) -> tuple:
    """Split 'host:port' into its parts."""
    host, sep, port = value.rpartition(":")
    if not sep or not host:
        raise argparse.ArgumentTypeError(f"expected host:port, got {value!r}")
    try:
        return host, int(port)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid port in {value!r}") from None


def config_from_args(args: argparse.Namespace) -> Config:
    probe_host, probe_port = parse_probe(args.probe) if args.probe else (None, None)
    if args.fps < 1:
        raise argparse.ArgumentTypeError("--fps must be at least 1")
    return Config(
        serial_port=args.port,
        host=args.host,
        probe_host=probe_host,
        probe_port=probe_port,
        target_fps=args.fps,
        verbose=args.verbose,
        log_level=args.log_level,
        log_file=args.log_file,
    )


def main(argv: Optional[List[str]] = None) -> None:
    """Main entry point for meshchat."""
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        config = config_from_args(args)
    except argparse.ArgumentTypeError as e:
        parser.error(str(e))

    setup_logging(
        level=config.log_level,
        log_file=config.log_file if config.verbose else None,
    )
    logger.info("Starting meshchat")

    sys.exit(run(config))


if __name__ == "__main__":
    main()

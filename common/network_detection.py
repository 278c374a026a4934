"""Cheap network reachability checks."""

import socket

from common.logging_setup import get_logger

logger = get_logger(__name__)

DEFAULT_PROBE_HOST = "detectportal.firefox.com"
DEFAULT_PROBE_PORT = 80
DEFAULT_PROBE_TIMEOUT = 5.0

# TCP port of the Meshtastic API on network-attached nodes
MESHTASTIC_TCP_PORT = 4403


def is_online(
    host: str = DEFAULT_PROBE_HOST,
    port: int = DEFAULT_PROBE_PORT,
    timeout: float = DEFAULT_PROBE_TIMEOUT,
) -> bool:
    """
    Check whether the network is usable with a single TCP handshake.

    Args:
        host: Endpoint to connect to
        port: TCP port of the endpoint
        timeout: Upper bound in seconds for resolving and connecting

    Returns:
        True if the handshake completed, False otherwise
    """
    try:
        with socket.create_connection((host, port), timeout=timeout):
            pass
    except OSError as e:
        logger.debug(f"Connectivity probe to {host}:{port} failed: {e}")
        return False

    logger.debug(f"Connectivity probe to {host}:{port} succeeded")
    return True


def make_probe(host: str, port: int, timeout: float):
    """Bind probe settings into a zero-argument callable."""
    def probe() -> bool:
        return is_online(host, port, timeout)

    return probe

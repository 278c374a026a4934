"""Serial port discovery for Meshtastic radios."""

import os
from typing import List, Optional

from common.logging_setup import get_logger

logger = get_logger(__name__)


def _normalize_ports(ports) -> List[str]:
    normalized: List[str] = []
    for port in ports:
        if isinstance(port, str):
            normalized.append(port)
        elif hasattr(port, "device"):
            normalized.append(str(port.device))
        else:
            normalized.append(str(port))
    return normalized


def list_candidate_ports() -> List[str]:
    """
    List serial ports that may host a Meshtastic radio.

    Ports recognized by meshtastic come first, followed by any other port
    pyserial can see.

    Returns:
        Ordered, de-duplicated port paths
    """
    ports: List[str] = []
    try:
        from meshtastic import util as meshtastic_util

        ports = _normalize_ports(meshtastic_util.findPorts())
    except Exception as e:
        logger.debug(f"meshtastic port lookup failed: {e}")

    try:
        from serial.tools import list_ports

        for port in _normalize_ports(list_ports.comports()):
            if port not in ports:
                ports.append(port)
    except Exception as e:
        logger.debug(f"pyserial port lookup failed: {e}")

    return ports


def find_serial_port(requested_port: Optional[str] = None) -> Optional[str]:
    """
    Pick the serial port to open.

    Args:
        requested_port: Explicitly requested serial port (optional)

    Returns:
        Port path, or None to let meshtastic pick the device itself
    """
    if requested_port:
        logger.info(f"Using requested serial port: {requested_port}")
        return requested_port

    candidates = list_candidate_ports()
    if candidates:
        logger.info(f"Detected serial port(s): {', '.join(candidates)}; using {candidates[0]}")
        return candidates[0]

    logger.warning("No serial port detected, deferring to meshtastic auto-detection")
    return None


def make_port_probe(port: Optional[str]):
    """
    Build a probe that reports whether the radio can be opened.

    With a known port the device node must exist. Without one, some
    candidate port must be visible, otherwise meshtastic has nothing to open.
    """
    def probe() -> bool:
        if port:
            present = os.path.exists(port)
            if not present:
                logger.debug(f"Serial port {port} is not present")
            return present
        return bool(list_candidate_ports())

    return probe

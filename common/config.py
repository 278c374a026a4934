"""Configuration management for meshchat."""

from dataclasses import dataclass
from typing import Optional


@dataclass
class Config:
    """Configuration settings for the meshchat terminal client."""

    # Serial port for Meshtastic radio (auto-detected when unset)
    serial_port: Optional[str] = None

    # Hostname of a network-attached node; takes precedence over serial
    host: Optional[str] = None

    # Explicit connectivity probe endpoint; unset probes the radio link itself
    probe_host: Optional[str] = None
    probe_port: Optional[int] = None
    probe_timeout_s: float = 5.0

    # Delay between probes while offline
    reconnect_backoff_s: float = 10.0

    # Event channel capacity (producers block when full)
    channel_capacity: int = 100

    # Upper bound on redraws per second
    target_fps: int = 144

    # Number of messages kept in the scrollback
    message_history: int = 500

    # Logging
    verbose: bool = False
    log_level: str = "INFO"
    log_file: str = "meshchat.log"

    @property
    def frame_budget_s(self) -> float:
        """Minimum time between two consecutive renders."""
        return 1.0 / self.target_fps


# Default configuration instance
default_config = Config()

"""meshchat client: application state, update function and wiring."""

from client.app import App
from client.update import Environment, update

__all__ = ["App", "Environment", "update"]

"""Meshtastic transport for meshchat."""

from transport.message import BROADCAST_ID, TextMessage
from transport.meshtastic_transport import MeshtasticMessenger, NotConnectedError

__all__ = ["BROADCAST_ID", "TextMessage", "MeshtasticMessenger", "NotConnectedError"]

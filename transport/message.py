"""Decoded text messages exchanged over the mesh."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

BROADCAST_ID = "^all"


@dataclass(frozen=True)
class TextMessage:
    """A text message sent or received over the mesh."""

    sender_id: str
    text: str
    destination_id: str = BROADCAST_ID
    sender_name: Optional[str] = None
    channel_index: int = 0
    received_at: float = field(default_factory=time.time)
    outgoing: bool = False

    @property
    def display_name(self) -> str:
        return self.sender_name or self.sender_id

    @classmethod
    def from_packet(
        cls,
        packet: Dict[str, Any],
        sender_name: Optional[str] = None,
    ) -> Optional["TextMessage"]:
        """
        Build a message from a meshtastic packet dict.

        Returns:
            The message, or None if the packet carries no text
        """
        decoded = packet.get("decoded") or {}
        text = decoded.get("text")
        if text is None:
            return None

        sender_id = packet.get("fromId")
        if not sender_id:
            sender_id = f"!{int(packet.get('from', 0)):08x}"
        destination_id = packet.get("toId") or BROADCAST_ID

        return cls(
            sender_id=sender_id,
            text=text,
            destination_id=destination_id,
            sender_name=sender_name,
            channel_index=int(packet.get("channel", 0) or 0),
            received_at=float(packet.get("rxTime") or time.time()),
        )

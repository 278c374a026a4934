"""Application state of the meshchat client."""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field
from typing import Deque, Dict, List, Optional, Tuple

from transport.message import TextMessage

MAX_CHANNELS = 8


@dataclass
class App:
    """Everything the renderer draws and the update function changes."""

    messages: Deque[TextMessage] = field(default_factory=lambda: deque(maxlen=500))
    input_buffer: str = ""
    channel_index: int = 0
    scroll: int = 0
    size: Tuple[int, int] = (80, 24)
    status: str = "starting"
    connected: bool = False
    local_id: Optional[str] = None
    nodes: Dict[str, str] = field(default_factory=dict)
    selected: Optional[int] = None

    @classmethod
    def with_history(cls, max_messages: int) -> "App":
        return cls(messages=deque(maxlen=max_messages))

    def add_message(self, message: TextMessage) -> None:
        self.messages.append(message)
        if message.sender_name:
            self.nodes[message.sender_id] = message.sender_name
        self.scroll = 0

    def channel_messages(self) -> List[TextMessage]:
        return [m for m in self.messages if m.channel_index == self.channel_index]

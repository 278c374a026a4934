"""Meshtastic text messaging for meshchat.

Each call to receive_messages() opens a fresh connection to the radio
(serial, or TCP for network-attached nodes) and returns a generator of
decoded text messages that ends when meshtastic reports the connection lost.
"""

import queue
import threading
from typing import Any, Callable, Iterator, Optional

from common.logging_setup import get_logger
from transport.message import BROADCAST_ID, TextMessage

logger = get_logger(__name__)

TEXT_TOPIC = "meshtastic.receive.text"
CONNECTION_LOST_TOPIC = "meshtastic.connection.lost"

_CONNECTION_LOST = object()


class NotConnectedError(RuntimeError):
    """Raised when sending while no message stream is open."""


class MeshtasticMessenger:
    """
    Messaging client backed by the meshtastic library.

    Incoming packets arrive through pypubsub on meshtastic's reader thread
    and are handed to the consuming generator through a queue.
    """

    def __init__(
        self,
        serial_port: Optional[str] = None,
        host: Optional[str] = None,
        interface_factory: Optional[Callable[[], Any]] = None,
    ):
        """
        Initialize the messenger.

        Args:
            serial_port: Serial device of the radio; None lets meshtastic pick
            host: Hostname of a network-attached node, preferred over serial
            interface_factory: Builds the meshtastic interface (tests)
        """
        self.serial_port = serial_port
        self.host = host
        self._interface_factory = interface_factory
        self._interface: Any = None
        self._local_id: Optional[str] = None
        self._lock = threading.Lock()

    @property
    def connected(self) -> bool:
        with self._lock:
            return self._interface is not None

    @property
    def local_id(self) -> Optional[str]:
        return self._local_id

    def _open_interface(self) -> Any:
        if self._interface_factory is not None:
            return self._interface_factory()

        if self.host:
            from meshtastic.tcp_interface import TCPInterface

            logger.info(f"Connecting to Meshtastic node at {self.host}")
            return TCPInterface(hostname=self.host)

        from meshtastic.serial_interface import SerialInterface

        logger.info(f"Connecting to Meshtastic device on {self.serial_port or 'auto-detected port'}")
        return SerialInterface(devPath=self.serial_port)

    def receive_messages(self) -> Iterator[TextMessage]:
        """
        Open a connection and stream its incoming text messages.

        Returns:
            Generator of messages, finite per connection

        Raises:
            Exception: Whatever meshtastic raises when the device cannot be
                opened
        """
        from pubsub import pub

        inbox: "queue.Queue[object]" = queue.Queue()
        current: Any = None

        # while current is None the interface is still opening and anything
        # published belongs to it
        def on_text(packet, interface):
            if current is not None and interface is not current:
                return
            message = TextMessage.from_packet(packet, self._node_name(interface, packet.get("fromId")))
            if message is not None:
                inbox.put(message)

        def on_connection_lost(interface):
            if current is None or interface is current:
                inbox.put(_CONNECTION_LOST)

        pub.subscribe(on_text, TEXT_TOPIC)
        pub.subscribe(on_connection_lost, CONNECTION_LOST_TOPIC)

        try:
            current = self._open_interface()
            my_info = getattr(current, "myInfo", None)
            if my_info is not None:
                self._local_id = f"!{my_info.my_node_num:08x}"
                logger.info(f"Connected to Meshtastic node {self._local_id}")
        except Exception:
            self._disconnect(current, on_text, on_connection_lost)
            raise

        with self._lock:
            self._interface = current

        # pypubsub holds listeners weakly; the generator keeps them alive.
        return self._stream(current, inbox, on_text, on_connection_lost)

    def _stream(
        self,
        interface: Any,
        inbox: "queue.Queue[object]",
        on_text: Callable[..., None],
        on_connection_lost: Callable[..., None],
    ) -> Iterator[TextMessage]:
        try:
            while True:
                item = inbox.get()
                if item is _CONNECTION_LOST:
                    logger.info("Meshtastic connection lost")
                    return
                yield item  # type: ignore[misc]
        finally:
            self._disconnect(interface, on_text, on_connection_lost)

    def _disconnect(self, interface: Any, *listeners: Callable[..., None]) -> None:
        from pubsub import pub

        for listener, topic in zip(listeners, (TEXT_TOPIC, CONNECTION_LOST_TOPIC)):
            try:
                pub.unsubscribe(listener, topic)
            except Exception as e:
                logger.debug(f"Failed to unsubscribe from {topic}: {e}")

        if interface is None:
            return

        with self._lock:
            if self._interface is interface:
                self._interface = None

        try:
            interface.close()
        except Exception as e:
            logger.warning(f"Error closing Meshtastic interface: {e}")

    def send_text(
        self,
        text: str,
        channel_index: int = 0,
        destination_id: str = BROADCAST_ID,
    ) -> TextMessage:
        """
        Send a text message through the open connection.

        Returns:
            The outgoing message as it should appear in the history

        Raises:
            NotConnectedError: If no stream is open
        """
        with self._lock:
            interface = self._interface
        if interface is None:
            raise NotConnectedError("not connected to a Meshtastic node")

        logger.debug(f"Sending {len(text)} chars on channel {channel_index}")
        interface.sendText(text, destinationId=destination_id, channelIndex=channel_index)
        return TextMessage(
            sender_id=self._local_id or "me",
            text=text,
            destination_id=destination_id,
            channel_index=channel_index,
            outgoing=True,
        )

    @staticmethod
    def _node_name(interface: Any, node_id: Optional[str]) -> Optional[str]:
        if not node_id:
            return None
        nodes = getattr(interface, "nodes", None) or {}
        node = nodes.get(node_id) or {}
        user = node.get("user") or {}
        return user.get("longName") or user.get("shortName")

"""
Thin wrapper around the paho-mqtt client.

Messages sent before the connection is established are held back and
published once the broker accepts the connection.
"""

import threading
from typing import List, Optional, Tuple

import paho.mqtt.client as mqtt

from .config import BrokerConfig
from .logger import logger


class MqttClient:
    """
    Publishing-only MQTT client.

    Args:
        config: Broker address and credentials.
        client: Pre-built paho client, mainly for tests.
    """

    def __init__(self, config: Optional[BrokerConfig] = None, client: Optional[mqtt.Client] = None):
        self.config = config or BrokerConfig()
        self.client = client or mqtt.Client(
            mqtt.CallbackAPIVersion.VERSION2, client_id=self.config.client_id
        )
        if self.config.username is not None:
            self.client.username_pw_set(self.config.username, self.config.password)

        self.client.on_connect = self._on_connect
        self.client.on_disconnect = self._on_disconnect

        self._lock = threading.RLock()
        self._connected = False
        self._pending: List[Tuple[str, str, bool]] = []

    @property
    def connected(self) -> bool:
        return self._connected

    def connect(self) -> None:
        """Starts the network loop and connects in the background."""
        logger.info(f"Connecting to MQTT broker {self.config.host}:{self.config.port}.")
        self.client.connect_async(
            self.config.host, self.config.port, keepalive=self.config.keepalive
        )
        self.client.loop_start()

    def close(self) -> None:
        self.client.disconnect()
        self.client.loop_stop()

    def send(self, topic: str, payload: str, retain: bool = False) -> None:
        """Publishes now if connected, otherwise once the connection is up."""
        with self._lock:
            if not self._connected:
                self._pending.append((topic, payload, retain))
                return
            self.client.publish(topic, payload, retain=retain)

    def _on_connect(self, client, userdata, flags, reason_code, properties=None):
        if reason_code.is_failure:
            logger.error(f"MQTT connection refused: {reason_code}")
            return

        # The backlog goes out before any new message; sends made while it
        # is flushed join the backlog.
        with self._lock:
            flushed = 0
            while self._pending:
                pending, self._pending = self._pending, []
                for topic, payload, retain in pending:
                    client.publish(topic, payload, retain=retain)
                flushed += len(pending)
            self._connected = True
        logger.info(f"Connected to MQTT broker, flushed {flushed} message(s).")

    def _on_disconnect(self, client, userdata, flags, reason_code, properties=None):
        with self._lock:
            self._connected = False
        logger.warning(f"Disconnected from MQTT broker: {reason_code}")

"""
Publishing and ingestion around the decoding core.

Everything stateful lives here and is passed in explicitly: the set of
devices already announced to Home Assistant, the broker client, and the queue
of capture files waiting to be decoded.

Classes
-------
DiscoveryCache :
    Thread-safe record of announced device ids.
FramePublisher :
    Drops invalid frames, announces new devices and publishes state.
FileIngestor :
    Queue feeding capture files to a handler one at a time.
DirectoryWatcher :
    Polls a directory and submits newly created captures.
"""

import json
import os
import queue
import threading
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Optional, Set, Tuple

from .config import BrokerConfig
from .frame import Battery, Command, ParsedFrame
from .logger import logger

_DEVICE_INFO = {
    "manufacturer": "Intelbras",
    "model": "Door sensor",
    "model_id": "XAS 4010 Smart",
}
_ORIGIN = {"name": "SDR2MQTT"}


class DiscoveryCache:
    """Set of device ids with an atomic check-and-insert."""

    def __init__(self, device_ids: Iterable[str] = ()):
        self._lock = threading.Lock()
        self._seen: Set[str] = set(device_ids)

    def add_if_new(self, device_id: str) -> bool:
        """Adds ``device_id`` and returns True if it was not present."""
        with self._lock:
            if device_id in self._seen:
                return False
            self._seen.add(device_id)
            return True

    def discard(self, device_id: str) -> None:
        with self._lock:
            self._seen.discard(device_id)

    def clear(self) -> None:
        with self._lock:
            self._seen.clear()

    def __contains__(self, device_id: object) -> bool:
        with self._lock:
            return device_id in self._seen

    def __len__(self) -> int:
        with self._lock:
            return len(self._seen)


def state_topic(device_id: str, broker: Optional[BrokerConfig] = None) -> str:
    broker = broker or BrokerConfig()
    return f"{broker.state_prefix}/{device_id}"


def discovery_messages(
    device_id: str, broker: Optional[BrokerConfig] = None
) -> List[Tuple[str, Dict[str, Any]]]:
    """
    Builds the Home Assistant discovery configs for one door sensor.

    Two ``binary_sensor`` entities are announced: the door contact and a
    diagnostic low-battery flag, both reading the device's state topic.

    Returns:
        List of ``(topic, payload)`` pairs.
    """
    broker = broker or BrokerConfig()
    device = dict(_DEVICE_INFO, identifiers=[device_id], name=f"Door sensor {device_id}")

    entities = [
        ("contact", {"device_class": "door"}),
        ("battery_low", {"device_class": "battery", "entity_category": "diagnostic"}),
    ]
    messages = []
    for key, extra in entities:
        object_id = f"{device_id}_{key}"
        payload = {
            "device": device,
            **extra,
            "object_id": object_id,
            "origin": _ORIGIN,
            "payload_off": False,
            "payload_on": True,
            "state_topic": state_topic(device_id, broker),
            "unique_id": object_id,
            "value_template": f"{{{{ value_json.{key} }}}}",
        }
        topic = f"{broker.discovery_prefix}/binary_sensor/{device_id}/{key}/config"
        messages.append((topic, payload))
    return messages


def state_message(
    frame: ParsedFrame, broker: Optional[BrokerConfig] = None
) -> Tuple[str, Dict[str, bool]]:
    """Builds the state topic and payload for a decoded frame."""
    payload = {
        "contact": frame.command == Command.OPEN,
        "battery_low": frame.battery == Battery.LOW,
    }
    return state_topic(frame.device_id, broker), payload


class FramePublisher:
    """
    Publishes decoded frames through a broker client.

    Args:
        client: Object with ``send(topic, payload, retain=False)``, such as
            :class:`sdr2mqtt.mqtt.MqttClient`.
        cache: Devices already announced. A fresh cache is used if omitted.
        broker: Topic naming.
    """

    def __init__(
        self,
        client: Any,
        cache: Optional[DiscoveryCache] = None,
        broker: Optional[BrokerConfig] = None,
    ):
        self.client = client
        self.cache = cache if cache is not None else DiscoveryCache()
        self.broker = broker or BrokerConfig()

    def announce(self, device_id: str) -> None:
        for topic, payload in discovery_messages(device_id, self.broker):
            self.client.send(topic, json.dumps(payload), retain=True)
        logger.info(f"Announced new device {device_id}.")

    def publish(self, frames: Iterable[ParsedFrame]) -> List[ParsedFrame]:
        """
        Publishes the state of every frame with a valid sync word.

        Returns:
            The frames that were published.
        """
        published = []
        for frame in frames:
            if not frame.sync_valid:
                logger.debug(f"Dropping frame from {frame.device_id}: sync {frame.sync}")
                continue

            if self.cache.add_if_new(frame.device_id):
                self.announce(frame.device_id)

            topic, payload = state_message(frame, self.broker)
            self.client.send(topic, json.dumps(payload))
            logger.info(f"{frame.device_id} {frame.command.value} {frame.battery.value}")
            published.append(frame)
        return published


class FileIngestor:
    """
    Feeds queued capture files to ``handler`` one at a time.

    Args:
        handler: Called with each path. ``OSError`` raised by the handler is
            logged and the next file is processed. Other exceptions propagate
            from ``process_pending``; ``run`` logs them and keeps going.
    """

    def __init__(self, handler: Callable[[str], Any]):
        self.handler = handler
        self.queue: "queue.Queue[str]" = queue.Queue()

    def submit(self, path) -> None:
        self.queue.put(os.fspath(path))

    def _handle(self, path: str) -> bool:
        try:
            self.handler(path)
        except OSError as e:
            logger.error(f"Could not process {path}: {e}")
            return False
        finally:
            self.queue.task_done()
        return True

    def process_pending(self) -> int:
        """
        Handles every file currently queued.

        Returns:
            Number of files handled without an I/O error.
        """
        handled = 0
        while True:
            try:
                path = self.queue.get_nowait()
            except queue.Empty:
                return handled
            handled += self._handle(path)

    def run(self, stop_event: threading.Event, timeout: float = 0.5) -> None:
        """Blocks handling files until ``stop_event`` is set."""
        while not stop_event.is_set():
            try:
                path = self.queue.get(timeout=timeout)
            except queue.Empty:
                continue
            try:
                self._handle(path)
            except Exception:
                logger.exception(f"Unexpected error processing {path}")


class DirectoryWatcher:
    """
    Polls ``directory`` for new capture files.

    Files already present when the watcher is created are ignored. Each new
    file whose suffix matches ``extension`` (case-insensitively) is submitted
    to the ingestor once per appearance: a file that is removed and later
    re-created is submitted again.
    """

    def __init__(
        self,
        directory,
        ingestor: FileIngestor,
        extension: str = ".cu8",
        interval: float = 1.0,
    ):
        self.directory = Path(directory)
        self.ingestor = ingestor
        self.extension = extension.lower()
        self.interval = interval
        self._known: Set[Path] = set(self._list())

    def _list(self) -> List[Path]:
        return [
            p
            for p in self.directory.iterdir()
            if p.is_file() and p.suffix.lower() == self.extension
        ]

    def scan(self) -> List[Path]:
        """Submits files that appeared since the last scan and returns them."""
        current = set(self._list())
        new = sorted(current - self._known)
        self._known = current
        for path in new:
            logger.debug(f"New capture {path}")
            self.ingestor.submit(path)
        return new

    def run(self, stop_event: threading.Event) -> None:
        """Scans every ``interval`` seconds until ``stop_event`` is set."""
        logger.info(f"Watching {self.directory} for *{self.extension} captures.")
        while not stop_event.is_set():
            self.scan()
            stop_event.wait(self.interval)

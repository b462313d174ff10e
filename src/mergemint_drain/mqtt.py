"""Publishes drain outcomes as MQTT events.

Every drain invocation ends in one DrainOutcome. The publisher turns it into a
``drain.<kind>`` JSON event on a single topic so dashboards can follow the
backlog without polling the status endpoint.

Event payload::

    {
        "event_type": "drain.processed",
        "item_id": "pr-123",            # null for outcomes without an item
        "status_code": 200,
        "timestamp": 1735732800000,     # epoch milliseconds
        ...outcome body (message, processed, pr, error, ...)
    }
"""

import json
import logging
import time
from typing import Any, Protocol

import paho.mqtt.client as mqtt

from .schemas import DrainOutcome

logger = logging.getLogger(__name__)


def outcome_event(outcome: DrainOutcome, timestamp_ms: int | None = None) -> dict[str, Any]:
    """JSON-ready event for ``outcome``."""
    return {
        "event_type": f"drain.{outcome.kind.value}",
        "item_id": outcome.item_id,
        "status_code": outcome.status_code,
        "timestamp": int(time.time() * 1000) if timestamp_ms is None else timestamp_ms,
        **outcome.body,
    }


class OutcomePublisher(Protocol):
    def publish_outcome(self, outcome: DrainOutcome) -> bool: ...


class MQTTOutcomePublisher:
    """Sends drain outcome events to an MQTT broker.

    The network loop runs in paho's background thread; ``connected`` follows
    the broker's CONNACK and disconnect callbacks.
    """

    def __init__(self, broker: str, port: int, topic: str, qos: int = 1):
        self.broker: str = broker
        self.port: int = port
        self.topic: str = topic
        self.qos: int = qos
        self.client: mqtt.Client | None = None
        self.connected: bool = False

    def start(self) -> bool:
        """Connect and start the network loop. Returns False if the broker is unreachable."""
        client = mqtt.Client(mqtt.CallbackAPIVersion.VERSION2)
        client.on_connect = self._handle_connect
        client.on_disconnect = self._handle_disconnect
        try:
            client.connect(self.broker, self.port, keepalive=60)
        except OSError as e:
            logger.warning(f"MQTT broker {self.broker}:{self.port} unreachable, outcomes not published: {e}")
            return False

        client.loop_start()
        self.client = client
        self.connected = True
        return True

    def stop(self) -> None:
        if self.client is None:
            return
        self.client.loop_stop()
        self.client.disconnect()
        self.client = None
        self.connected = False

    def publish_outcome(self, outcome: DrainOutcome) -> bool:
        """Publish the event for ``outcome``; False when it could not be queued."""
        if self.client is None or not self.connected:
            return False

        event = outcome_event(outcome)
        info = self.client.publish(self.topic, json.dumps(event, default=str), qos=self.qos)
        if info.rc != mqtt.MQTT_ERR_SUCCESS:
            logger.warning(f"Publishing {event['event_type']} failed: {mqtt.error_string(info.rc)}")
            return False
        return True

    def _handle_connect(self, client, userdata, flags, reason_code, properties):
        self.connected = not reason_code.is_failure
        if reason_code.is_failure:
            logger.warning(f"MQTT broker refused connection: {reason_code}")

    def _handle_disconnect(self, client, userdata, flags, reason_code, properties):
        self.connected = False


class NullOutcomePublisher:
    """Drops outcomes; used when BROADCAST_TYPE is not "mqtt"."""

    def start(self) -> bool:
        return True

    def stop(self) -> None:
        pass

    def publish_outcome(self, outcome: DrainOutcome) -> bool:
        return False


_publisher: MQTTOutcomePublisher | NullOutcomePublisher | None = None


def open_outcome_publisher(
    broadcast_type: str, broker: str, port: int, topic: str
) -> MQTTOutcomePublisher | NullOutcomePublisher:
    """Return the process-wide publisher, starting it on first use."""
    global _publisher
    if _publisher is None:
        if broadcast_type == "mqtt":
            _publisher = MQTTOutcomePublisher(broker, port, topic)
        else:
            _publisher = NullOutcomePublisher()
        _ = _publisher.start()
    return _publisher


def close_outcome_publisher() -> None:
    global _publisher
    if _publisher is not None:
        _publisher.stop()
        _publisher = None

"""Tests for publishing drain outcomes over MQTT.

The live publish test needs a broker on localhost:1883 and is skipped
otherwise.
"""

import json
import socket
from uuid import uuid4

import pytest

from mergemint_drain import DrainOutcome, OutcomeKind
from mergemint_drain.mqtt import (
    MQTTOutcomePublisher,
    NullOutcomePublisher,
    close_outcome_publisher,
    open_outcome_publisher,
    outcome_event,
)


def broker_available(host="localhost", port=1883) -> bool:
    try:
        with socket.create_connection((host, port), timeout=2):
            return True
    except OSError:
        return False


@pytest.fixture
def topic():
    return f"test/drain/{uuid4()}"


@pytest.fixture(autouse=True)
def fresh_publisher():
    close_outcome_publisher()
    yield
    close_outcome_publisher()


PROCESSED = DrainOutcome(
    kind=OutcomeKind.processed,
    item_id="pr-5",
    body={"message": "PR processed successfully", "processed": 1, "pr": {"number": 5}},
)


# ============================================================================
# Event Payload Tests
# ============================================================================


def test_event_for_processed_outcome():
    event = outcome_event(PROCESSED, timestamp_ms=1735732800000)

    assert event == {
        "event_type": "drain.processed",
        "item_id": "pr-5",
        "status_code": 200,
        "timestamp": 1735732800000,
        "message": "PR processed successfully",
        "processed": 1,
        "pr": {"number": 5},
    }


def test_event_for_outcome_without_item():
    outcome = DrainOutcome(kind=OutcomeKind.infrastructure_error, status_code=500, body={"error": "db down"})

    event = outcome_event(outcome)

    assert event["event_type"] == "drain.infrastructure_error"
    assert event["item_id"] is None
    assert event["status_code"] == 500
    assert event["timestamp"] > 0
    json.dumps(event)


# ============================================================================
# Publisher Tests
# ============================================================================


def test_null_publisher_drops_outcomes():
    assert NullOutcomePublisher().publish_outcome(PROCESSED) is False


def test_open_returns_null_unless_mqtt(topic):
    assert isinstance(open_outcome_publisher("none", "localhost", 1883, topic), NullOutcomePublisher)


def test_open_is_process_wide(topic):
    first = open_outcome_publisher("none", "localhost", 1883, topic)

    assert open_outcome_publisher("mqtt", "localhost", 1883, topic) is first
    close_outcome_publisher()
    assert open_outcome_publisher("none", "localhost", 1883, topic) is not first


def test_unstarted_publisher_does_not_publish(topic):
    publisher = MQTTOutcomePublisher("localhost", 1883, topic)

    assert publisher.publish_outcome(PROCESSED) is False


def test_unreachable_broker(topic):
    publisher = MQTTOutcomePublisher("127.0.0.1", 1, topic)

    assert publisher.start() is False
    assert publisher.connected is False
    assert publisher.publish_outcome(PROCESSED) is False


def test_publish_to_live_broker(topic):
    if not broker_available():
        pytest.skip("MQTT broker not running on localhost:1883")

    publisher = MQTTOutcomePublisher("localhost", 1883, topic)
    try:
        assert publisher.start() is True
        assert publisher.publish_outcome(PROCESSED) is True
    finally:
        publisher.stop()

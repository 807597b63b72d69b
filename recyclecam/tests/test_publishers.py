"""
Data Plane Publisher Tests
==========================

Invariantes testeadas:
1. Mensaje por-frame con bloques stable / confidence / tip (contrato de la UI)
2. message_id monotónico por publisher
3. Sin conexión -> resultado descartado y contado (nunca excepción)
4. Métricas requieren watchdog configurado
"""
import json
import logging
from unittest.mock import Mock

import paho.mqtt.client as mqtt
import pytest

from recyclecam.app.watchdog import SessionWatchdog
from recyclecam.data import MQTTDataPlane, create_logging_sink, create_mqtt_sink
from recyclecam.data.publishers import FrameResultPublisher, MetricsPublisher
from recyclecam.inference.entities import FrameResult
from recyclecam.inference.lexicon import CategoryId
from recyclecam.visualization import ConfidenceTier


def detected_result(frame_id: int = 1) -> FrameResult:
    return FrameResult(
        frame_id=frame_id,
        session_id="session-1a2b3c4d",
        category=CategoryId.PLASTIC,
        display_name="Water Bottle",
        raw_probability=0.22,
        adjusted_score=0.286,
        display_confidence_percent=86,
        confidence_tier=ConfidenceTier.HIGH,
        confirmed=True,
        tip_key="success",
        tip_text="Detected: Water Bottle",
        stable_category=CategoryId.PLASTIC,
        stable_display_name="Water Bottle",
        raw_label="water bottle",
    )


def unmatched_result() -> FrameResult:
    return FrameResult(
        frame_id=2,
        session_id="session-1a2b3c4d",
        category=None,
        display_name=None,
        raw_probability=None,
        adjusted_score=None,
        display_confidence_percent=0,
        confidence_tier=ConfidenceTier.LOW,
        confirmed=False,
        tip_key="noObject",
        tip_text="Seeing: tabby cat",
        diagnostic_label="tabby cat",
        raw_label="tabby cat",
    )


@pytest.mark.mqtt
class TestFrameResultPublisher:

    def test_detected_message(self):
        message = FrameResultPublisher().format_message(detected_result())

        assert message["category"] == "plastic"
        assert message["category_label"] == "Plastic"
        assert message["category_icon"] == "🧴"
        assert message["display_name"] == "Water Bottle"
        assert message["confirmed"] is True
        assert message["stable"] == {
            "category": "plastic",
            "category_label": "Plastic",
            "display_name": "Water Bottle",
        }
        assert message["confidence"] == {"raw": 0.22, "adjusted": 0.286, "percent": 86, "tier": "high"}
        assert message["tip"] == {"key": "success", "icon": "✅", "text": "Detected: Water Bottle"}

    def test_unmatched_message_uses_diagnostic_icon(self):
        message = FrameResultPublisher().format_message(unmatched_result())

        assert message["category"] is None
        assert message["category_label"] is None
        assert message["category_icon"] == "🔍"
        assert message["tip"]["icon"] == "🔍"
        assert message["diagnostic_label"] == "tabby cat"
        assert message["stable"]["category"] is None

    def test_message_id_is_monotonic(self):
        publisher = FrameResultPublisher()

        ids = [publisher.format_message(detected_result(i))["message_id"] for i in range(1, 4)]

        assert ids == [1, 2, 3]
        assert publisher.message_count == 3

    def test_message_is_json_serializable(self):
        message = FrameResultPublisher().format_message(detected_result())
        assert json.loads(json.dumps(message, ensure_ascii=False))["frame_id"] == 1


@pytest.mark.mqtt
class TestMetricsPublisher:

    def test_requires_watchdog(self):
        with pytest.raises(ValueError):
            MetricsPublisher().format_message()

    def test_report_message(self):
        watchdog = SessionWatchdog()
        watchdog.on_session_start("session-1a2b3c4d")
        watchdog.on_result(confirmed=False)
        watchdog.on_result(confirmed=True)
        watchdog.on_classifier_failure()

        publisher = MetricsPublisher()
        publisher.set_watchdog(watchdog)
        message = publisher.format_message()

        assert "timestamp" in message
        assert message["session_id"] == "session-1a2b3c4d"
        assert message["frames"] == 3
        assert message["results"] == 2
        assert message["confirmed_frames"] == 1
        assert message["classifier_failures"] == 1


@pytest.fixture
def data_plane():
    plane = MQTTDataPlane(broker_host="localhost")
    plane.client = Mock()
    plane.client.publish.return_value = Mock(rc=mqtt.MQTT_ERR_SUCCESS)
    return plane


@pytest.mark.mqtt
class TestDataPlane:

    def test_result_dropped_when_disconnected(self, data_plane, caplog):
        """
        Invariante: sin conexión se descarta y se cuenta, nunca se lanza.
        """
        caplog.set_level(logging.WARNING, logger="recyclecam.data.plane")

        data_plane.publish_result(detected_result())

        data_plane.client.publish.assert_not_called()
        assert data_plane.get_stats()["messages_dropped"] == 1
        assert any("resultado descartado" in record.getMessage() for record in caplog.records)

    def test_result_published_when_connected(self, data_plane):
        data_plane._connected.set()

        data_plane.publish_result(detected_result())

        args, kwargs = data_plane.client.publish.call_args
        assert args[0] == "recyclecam/data/results"
        assert kwargs["qos"] == 0
        assert json.loads(args[1])["display_name"] == "Water Bottle"
        assert data_plane.get_stats()["messages_published"] == 1

    def test_publish_failure_counted(self, data_plane):
        data_plane._connected.set()
        data_plane.client.publish.return_value = Mock(rc=mqtt.MQTT_ERR_NO_CONN)

        data_plane.publish_result(detected_result())

        assert data_plane.get_stats()["publish_failures"] == 1

    def test_metrics_without_watchdog_not_published(self, data_plane):
        data_plane._connected.set()
        data_plane.publish_metrics()
        data_plane.client.publish.assert_not_called()

    def test_metrics_published_to_metrics_topic(self, data_plane):
        data_plane._connected.set()
        data_plane.set_watchdog(SessionWatchdog())

        data_plane.publish_metrics()

        args, _ = data_plane.client.publish.call_args
        assert args[0] == "recyclecam/data/metrics"


@pytest.mark.mqtt
class TestSinks:

    def test_mqtt_sink_forwards_to_data_plane(self):
        data_plane = Mock()
        sink = create_mqtt_sink(data_plane)
        result = detected_result()

        sink(result)

        assert sink.__name__ == 'mqtt_sink'
        data_plane.publish_result.assert_called_once_with(result)

    def test_logging_sink(self, caplog):
        caplog.set_level(logging.INFO, logger="recyclecam.results")
        sink = create_logging_sink()

        sink(detected_result())

        assert sink.__name__ == 'logging_sink'
        assert any("Water Bottle" in record.getMessage() for record in caplog.records)

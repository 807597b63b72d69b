"""
MQTT Data Plane
===============

Publica FrameResults (QoS 0, fire-and-forget) y métricas de la sesión.

Diseño:
- MQTTDataPlane = infraestructura MQTT (conexión + publish)
- Publishers = formateo de mensajes (FrameResultPublisher, MetricsPublisher)
"""
import json
import logging
from threading import Event, Lock
from typing import Any, Dict, Optional, TYPE_CHECKING

import paho.mqtt.client as mqtt

from .publishers import FrameResultPublisher, MetricsPublisher
from ..inference.entities import FrameResult
from ..logging import (
    log_mqtt_publish,
    log_session_metrics,
    log_error_with_context,
)

if TYPE_CHECKING:
    from ..app.watchdog import SessionWatchdog

logger = logging.getLogger(__name__)


class MQTTDataPlane:
    """
    Data Plane de RecycleCam.

    Responsabilidad: infraestructura MQTT
    - Conecta/desconecta del broker
    - Publica mensajes formateados por los publishers
    - Descarta (con warning) si no está conectado
    """

    def __init__(
        self,
        broker_host: str,
        broker_port: int = 1883,
        data_topic: str = "recyclecam/data/results",
        metrics_topic: str = "recyclecam/data/metrics",
        client_id: str = "recyclecam_data",
        username: Optional[str] = None,
        password: Optional[str] = None,
        qos: int = 0,
    ):
        self.broker_host = broker_host
        self.broker_port = broker_port
        self.data_topic = data_topic
        self.metrics_topic = metrics_topic
        self.client_id = client_id
        self.qos = qos

        self.result_publisher = FrameResultPublisher()
        self.metrics_publisher = MetricsPublisher()

        self.client = mqtt.Client(
            callback_api_version=mqtt.CallbackAPIVersion.VERSION2,
            client_id=client_id,
            protocol=mqtt.MQTTv5,
        )
        if username and password:
            self.client.username_pw_set(username, password)

        self.client.on_connect = self._on_connect
        self.client.on_disconnect = self._on_disconnect

        self._connected = Event()
        self._lock = Lock()
        self._dropped = 0
        self._failed = 0

    @property
    def is_connected(self) -> bool:
        return self._connected.is_set()

    def _on_connect(self, client, userdata, flags, reason_code, properties=None):
        if reason_code.is_failure:
            log_error_with_context(
                logger,
                message=f"❌ Data Plane no pudo conectar al broker MQTT: {reason_code}",
                component="data_plane",
                event="connection_failed",
                broker_host=self.broker_host,
                broker_port=self.broker_port,
            )
            return

        logger.info(
            "✅ Data Plane conectado",
            extra={
                "component": "data_plane",
                "event": "connected",
                "broker_host": self.broker_host,
                "broker_port": self.broker_port,
            }
        )
        self._connected.set()

    def _on_disconnect(self, client, userdata, flags, reason_code, properties=None):
        logger.warning(
            "⚠️ Data Plane desconectado",
            extra={
                "component": "data_plane",
                "event": "disconnected",
                "reason_code": str(reason_code),
            }
        )
        self._connected.clear()

    def connect(self, timeout: float = 5.0) -> bool:
        try:
            logger.info(
                "🔌 Conectando Data Plane",
                extra={
                    "component": "data_plane",
                    "event": "connecting",
                    "broker_host": self.broker_host,
                    "broker_port": self.broker_port,
                    "timeout": timeout,
                }
            )
            self.client.connect(self.broker_host, self.broker_port, keepalive=60)
            self.client.loop_start()
            return self._connected.wait(timeout=timeout)
        except Exception as e:
            log_error_with_context(
                logger,
                message="❌ Error conectando Data Plane",
                exception=e,
                component="data_plane",
                event="connection_error",
                broker_host=self.broker_host,
                broker_port=self.broker_port,
            )
            return False

    def disconnect(self):
        logger.info(
            "🔌 Desconectando Data Plane...",
            extra={"component": "data_plane", "event": "disconnecting"}
        )
        self.client.loop_stop()
        self.client.disconnect()

    def _publish(self, topic: str, message: Dict[str, Any], qos: int) -> bool:
        payload = json.dumps(message, default=str, ensure_ascii=False)
        result = self.client.publish(topic, payload, qos=qos)
        success = result.rc == mqtt.MQTT_ERR_SUCCESS

        if not success:
            with self._lock:
                self._failed += 1

        log_mqtt_publish(
            logger,
            topic=topic,
            qos=qos,
            payload_size=len(payload.encode('utf-8')),
            success=success,
            error_code=None if success else result.rc,
        )
        return success

    def publish_result(self, result: FrameResult):
        """Formatea (FrameResultPublisher) y publica un FrameResult."""
        if not self._connected.is_set():
            with self._lock:
                self._dropped += 1
            logger.warning(
                "⚠️ Data Plane no conectado, resultado descartado",
                extra={
                    "component": "data_plane",
                    "event": "publish_skipped",
                    "reason": "not_connected",
                    "frame_id": result.frame_id,
                }
            )
            return

        try:
            message = self.result_publisher.format_message(result)
            self._publish(self.data_topic, message, self.qos)
        except Exception as e:
            log_error_with_context(
                logger,
                message="❌ Error publicando resultado del frame",
                exception=e,
                component="data_plane",
                event="publish_exception",
                topic=self.data_topic,
                frame_id=result.frame_id,
            )

    def set_watchdog(self, watchdog: 'SessionWatchdog'):
        self.metrics_publisher.set_watchdog(watchdog)
        logger.info(
            "📊 Watchdog conectado al Data Plane",
            extra={"component": "data_plane", "event": "watchdog_connected"}
        )

    def publish_metrics(self):
        """Publica el report del watchdog en el metrics topic (QoS 0)."""
        if not self.metrics_publisher.has_watchdog:
            logger.warning(
                "⚠️ Watchdog no configurado, no se publican métricas",
                extra={
                    "component": "data_plane",
                    "event": "publish_metrics_skipped",
                    "reason": "no_watchdog",
                }
            )
            return

        if not self._connected.is_set():
            logger.warning(
                "⚠️ Data Plane no conectado, métricas descartadas",
                extra={
                    "component": "data_plane",
                    "event": "publish_metrics_skipped",
                    "reason": "not_connected",
                }
            )
            return

        try:
            message = self.metrics_publisher.format_message()
            if message is None:
                return

            if self._publish(self.metrics_topic, message, 0):
                log_session_metrics(
                    logger,
                    fps=message.get('throughput_fps', 0.0),
                    latency_ms=message.get('mean_latency_ms'),
                    frames_processed=message.get('frames'),
                    component="data_plane",
                )
        except Exception as e:
            log_error_with_context(
                logger,
                message="❌ Error publicando métricas",
                exception=e,
                component="data_plane",
                event="publish_metrics_exception",
                topic=self.metrics_topic,
            )

    def get_stats(self) -> Dict[str, Any]:
        with self._lock:
            return {
                "messages_published": self.result_publisher.message_count,
                "messages_dropped": self._dropped,
                "publish_failures": self._failed,
                "connected": self._connected.is_set(),
                "topic": self.data_topic,
            }

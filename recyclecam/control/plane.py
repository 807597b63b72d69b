"""
MQTT Control Plane
==================

Recibe comandos de control de la sesión vía MQTT (QoS 1) y publica el
estado retenido (status topic).

Comandos (registrados por el controller en el CommandRegistry):
- start / stop: lifecycle de la sesión
- status: publica estado actual
- metrics: publica métricas del watchdog en el data plane
- stabilization_stats: loguea estadísticas del stabilizer
- shutdown: termina el proceso

Thread model:
- Los callbacks de paho corren en el network thread de paho
- El controller decide cómo llevar el comando al event loop (call_soon_threadsafe)
"""
import json
import logging
from datetime import datetime
from threading import Event
from typing import Optional

import paho.mqtt.client as mqtt

from .registry import CommandRegistry, CommandNotAvailableError
from ..logging import (
    trace_context,
    generate_trace_id,
    log_mqtt_command,
    log_error_with_context
)

logger = logging.getLogger(__name__)


class MQTTControlPlane:
    """
    Control Plane de RecycleCam.

    Usage:
        control_plane = MQTTControlPlane(broker_host="localhost")
        control_plane.command_registry.register('stop', controller.stop_session, "Detiene la sesión")
        control_plane.connect()
    """

    def __init__(
        self,
        broker_host: str,
        broker_port: int = 1883,
        command_topic: str = "recyclecam/control/commands",
        status_topic: str = "recyclecam/control/status",
        client_id: str = "recyclecam_control",
        username: Optional[str] = None,
        password: Optional[str] = None,
        qos: int = 1,
    ):
        self.broker_host = broker_host
        self.broker_port = broker_port
        self.command_topic = command_topic
        self.status_topic = status_topic
        self.client_id = client_id
        self.qos = qos

        self.command_registry = CommandRegistry()

        self.client = mqtt.Client(
            callback_api_version=mqtt.CallbackAPIVersion.VERSION2,
            client_id=client_id,
            protocol=mqtt.MQTTv5,
        )
        if username and password:
            self.client.username_pw_set(username, password)

        self.client.on_connect = self._on_connect
        self.client.on_message = self._on_message
        self.client.on_disconnect = self._on_disconnect

        self._connected = Event()

    @property
    def is_connected(self) -> bool:
        return self._connected.is_set()

    def _on_connect(self, client, userdata, flags, reason_code, properties=None):
        if reason_code.is_failure:
            logger.error(
                "Control Plane no pudo conectar al broker MQTT",
                extra={
                    "component": "control_plane",
                    "event": "connection_error",
                    "broker_host": self.broker_host,
                    "broker_port": self.broker_port,
                    "reason_code": str(reason_code),
                }
            )
            return

        logger.info(
            "✅ Control Plane conectado",
            extra={
                "component": "control_plane",
                "event": "broker_connected",
                "broker_host": self.broker_host,
                "broker_port": self.broker_port,
            }
        )
        self.client.subscribe(self.command_topic, qos=self.qos)
        logger.info(
            "Suscrito al topic de comandos",
            extra={
                "component": "control_plane",
                "event": "topic_subscribed",
                "topic": self.command_topic,
                "qos": self.qos,
            }
        )
        self._connected.set()
        self.publish_status("connected")

    def _on_disconnect(self, client, userdata, flags, reason_code, properties=None):
        logger.warning(
            "⚠️ Control Plane desconectado",
            extra={
                "component": "control_plane",
                "event": "broker_disconnected",
                "reason_code": str(reason_code),
            }
        )
        self._connected.clear()

    def _on_message(self, client, userdata, msg):
        """Decodifica {"command": ...} y lo ejecuta vía registry con su propio trace_id."""
        try:
            command_data = json.loads(msg.payload.decode('utf-8'))
        except (UnicodeDecodeError, json.JSONDecodeError):
            logger.error(
                f"❌ Payload de comando inválido: {msg.payload!r}",
                extra={
                    "component": "control_plane",
                    "event": "invalid_payload",
                    "mqtt_topic": msg.topic,
                    "raw_payload": str(msg.payload),
                }
            )
            return

        if not isinstance(command_data, dict):
            logger.error(
                "❌ El payload del comando debe ser un objeto JSON",
                extra={"component": "control_plane", "event": "invalid_payload", "mqtt_topic": msg.topic}
            )
            return

        command = str(command_data.get('command', '')).strip().lower()
        trace_id = generate_trace_id(prefix=f"cmd-{command or 'empty'}")

        with trace_context(trace_id):
            log_mqtt_command(
                logger,
                command=command,
                topic=msg.topic,
                payload=command_data,
                trace_id=trace_id,
            )

            try:
                self.command_registry.execute(command)
            except CommandNotAvailableError as e:
                logger.warning(
                    f"⚠️ {e}",
                    extra={
                        "component": "control_plane",
                        "command": command,
                        "available_commands": sorted(self.command_registry.available_commands),
                    }
                )
            except Exception as e:
                log_error_with_context(
                    logger,
                    message=f"❌ Error ejecutando comando '{command}'",
                    exception=e,
                    component="control_plane",
                    event="command_error",
                    command=command,
                    mqtt_topic=msg.topic,
                )

    def publish_status(self, status: str, session_id: Optional[str] = None):
        """Publica estado retenido: {status, session_id, timestamp, client_id}."""
        message = {
            "status": status,
            "session_id": session_id,
            "timestamp": datetime.now().isoformat(),
            "client_id": self.client_id,
        }
        self.client.publish(
            self.status_topic,
            json.dumps(message),
            qos=self.qos,
            retain=True,
        )
        logger.info(
            f"Estado publicado: {status}",
            extra={
                "component": "control_plane",
                "event": "status_published",
                "status": status,
                "session_id": session_id,
                "topic": self.status_topic,
            }
        )

    def connect(self, timeout: float = 5.0) -> bool:
        """Conecta al broker (loop de red en background thread)."""
        try:
            logger.info(
                "🔌 Conectando Control Plane",
                extra={
                    "component": "control_plane",
                    "event": "connection_attempt",
                    "broker_host": self.broker_host,
                    "broker_port": self.broker_port,
                }
            )
            self.client.connect(self.broker_host, self.broker_port, keepalive=60)
            self.client.loop_start()
            return self._connected.wait(timeout=timeout)
        except Exception as e:
            log_error_with_context(
                logger,
                message="❌ Error conectando Control Plane",
                exception=e,
                component="control_plane",
                event="connection_exception",
                broker_host=self.broker_host,
                broker_port=self.broker_port,
            )
            return False

    def disconnect(self):
        logger.info(
            "🔌 Desconectando Control Plane...",
            extra={"component": "control_plane", "event": "disconnecting"}
        )
        if self._connected.is_set():
            self.publish_status("disconnected")
        self.client.loop_stop()
        self.client.disconnect()

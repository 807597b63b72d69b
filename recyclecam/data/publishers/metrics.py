"""
Metrics Publisher
=================

Formatea el report del SessionWatchdog para MQTT.

Responsabilidad:
- Conoce la estructura del report (frames, fallos, throughput, latencia)
- NO conoce MQTT (eso es del DataPlane)
"""
from datetime import datetime
from typing import Any, Dict, Optional, TYPE_CHECKING
import logging

if TYPE_CHECKING:
    from ...app.watchdog import SessionWatchdog

logger = logging.getLogger(__name__)


class MetricsPublisher:
    """Publisher de métricas de la sesión."""

    def __init__(self):
        self._watchdog: Optional['SessionWatchdog'] = None

    def set_watchdog(self, watchdog: 'SessionWatchdog'):
        self._watchdog = watchdog
        logger.info(
            "Watchdog connected to MetricsPublisher",
            extra={
                "component": "metrics_publisher",
                "event": "watchdog_connected"
            }
        )

    def format_message(self) -> Optional[Dict[str, Any]]:
        """
        Report del watchdog como mensaje MQTT.

        Returns:
            Mensaje formateado, o None si el report no pudo generarse

        Raises:
            ValueError: Si watchdog no configurado
        """
        if not self._watchdog:
            raise ValueError("Watchdog not configured, call set_watchdog() first")

        try:
            report = self._watchdog.get_report()
        except Exception as e:
            logger.error(
                "Failed to build metrics report",
                extra={
                    "component": "metrics_publisher",
                    "event": "format_error",
                    "error": str(e),
                    "error_type": type(e).__name__
                },
                exc_info=True
            )
            return None

        message = {"timestamp": datetime.now().isoformat()}
        message.update(report.to_dict())
        return message

    @property
    def has_watchdog(self) -> bool:
        return self._watchdog is not None

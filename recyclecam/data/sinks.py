"""
Frame Result Sinks
==================

Factories de sinks para el FrameOrchestrator: callables sink(FrameResult).
"""
from typing import Callable

from .plane import MQTTDataPlane
from ..inference.entities import FrameResult
from ..logging import get_component_logger


def create_mqtt_sink(data_plane: MQTTDataPlane) -> Callable[[FrameResult], None]:
    """
    Sink que publica cada FrameResult vía MQTT.

    Note:
        __name__ = 'mqtt_sink' para identificarlo en logs del orchestrator.
    """
    def mqtt_sink(result: FrameResult):
        data_plane.publish_result(result)

    mqtt_sink.__name__ = 'mqtt_sink'

    return mqtt_sink


def create_logging_sink(component: str = "results") -> Callable[[FrameResult], None]:
    """
    Sink que loguea el FrameResult completo (runs locales sin broker).

    Logger: recyclecam.{component}
    """
    logger = get_component_logger(component)

    def logging_sink(result: FrameResult):
        logger.info(
            f"🧾 Frame {result.frame_id}: {result.display_name or result.tip_key} "
            f"({result.display_confidence_percent}%)",
            extra={
                "component": component,
                "event": "frame_result",
                "result": result.to_dict(),
            }
        )

    logging_sink.__name__ = 'logging_sink'

    return logging_sink

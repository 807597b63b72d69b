"""
Data Plane - MQTT result publishing (QoS 0)
"""
from .plane import MQTTDataPlane
from .sinks import create_mqtt_sink, create_logging_sink

__all__ = ["MQTTDataPlane", "create_mqtt_sink", "create_logging_sink"]

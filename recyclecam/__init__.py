"""
RecycleCam - Stabilized Waste Classification with MQTT Control
===============================================================

Convierte predicciones ruidosas por-frame de un clasificador de imágenes en
un label de residuo estable y confiable para una UI en tiempo real.

Public API:
- RecycleCamConfig: Configuración validada (Pydantic)
- FrameOrchestrator: Sesión + loop por-frame
- RecycleCamController: App completa (MQTT control + data plane)

Usage:
    # Run app
    python -m recyclecam --replay config/recyclecam/replay.yaml.example --no-mqtt

    # Or programmatically
    from recyclecam import RecycleCamConfig, RecycleCamController

    controller = RecycleCamController(RecycleCamConfig(), replay_path="replay.yaml")
    controller.run()
"""

__version__ = "1.0.0"

from .config import RecycleCamConfig, load_config
from .errors import RecycleCamError, ConfigurationError, ClassifierFailure
from .app import FrameOrchestrator, RecycleCamController, main
from .control import MQTTControlPlane
from .data import MQTTDataPlane, create_mqtt_sink, create_logging_sink

__all__ = [
    # Config
    "RecycleCamConfig",
    "load_config",
    # Errors
    "RecycleCamError",
    "ConfigurationError",
    "ClassifierFailure",
    # App
    "FrameOrchestrator",
    "RecycleCamController",
    "main",
    # Control Plane
    "MQTTControlPlane",
    # Data Plane
    "MQTTDataPlane",
    "create_mqtt_sink",
    "create_logging_sink",
]

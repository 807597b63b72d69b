"""
Publishers
==========

Formatean mensajes MQTT (lógica de negocio). El DataPlane solo publica.
"""
from .frame_result import FrameResultPublisher
from .metrics import MetricsPublisher

__all__ = ['FrameResultPublisher', 'MetricsPublisher']

"""
Frame Sources
=============

Colaborador externo que entrega frames al orchestrator (la cámara, en la app
real). El core solo necesita saber si hay frame disponible y su tamaño.
"""
from abc import ABC, abstractmethod
from typing import Optional

import numpy as np

from .roi import FrameSize


class FrameSource(ABC):
    """
    Contract:
    - is_ready: hay un frame decodificado (si False, el frame se skipea)
    - frame_size: dimensiones del frame actual
    - read(): frame HxWxC
    """

    @property
    @abstractmethod
    def is_ready(self) -> bool:
        pass

    @property
    @abstractmethod
    def frame_size(self) -> FrameSize:
        pass

    @abstractmethod
    def read(self) -> np.ndarray:
        pass

    def close(self):
        """Libera recursos (no-op por default)."""
        pass


class StaticFrameSource(FrameSource):
    """
    Frame negro de tamaño fijo (para replay / tests).

    ready puede forzarse a False para simular una cámara que todavía no
    entregó frames.
    """

    def __init__(self, width: int = 1280, height: int = 720, channels: int = 3, ready: bool = True):
        if width <= 0 or height <= 0:
            raise ValueError(f"Frame dimensions must be > 0, got {width}x{height}")

        self._frame = np.zeros((height, width, channels), dtype=np.uint8)
        self._size = FrameSize.from_shape(self._frame.shape)
        self.ready = ready
        self.reads = 0

    @property
    def is_ready(self) -> bool:
        return self.ready

    @property
    def frame_size(self) -> FrameSize:
        return self._size

    def read(self) -> np.ndarray:
        self.reads += 1
        return self._frame


def create_frame_source(width: int, height: int, ready: Optional[bool] = None) -> FrameSource:
    """Factory usada por el builder (única fuente incluida: StaticFrameSource)."""
    return StaticFrameSource(width=width, height=height, ready=True if ready is None else ready)

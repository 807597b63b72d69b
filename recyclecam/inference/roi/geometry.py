"""
Region Geometry
===============

Bounded Context: Shape Algebra (operaciones sobre regiones 2D)

Operaciones geométricas puras sobre la región candidata de una detección:
- FrameSize / Region inmutables
- size_ratio: área de la región / área del frame
- center_distance: distancia normalizada del centro de la región al centro del frame

Convenciones:
- Coordenadas en píxeles del frame, origen arriba-izquierda
- center_distance = 0.0 en el centro exacto, 1.0 en una esquina
  (distancia euclídea en espacio normalizado [-1,1]x[-1,1] dividida por √2)
"""
from dataclasses import dataclass
from typing import Tuple

import numpy as np


@dataclass(frozen=True)
class FrameSize:
    """Dimensiones del frame en píxeles."""
    width: float
    height: float

    @property
    def area(self) -> float:
        return self.width * self.height

    @property
    def center(self) -> Tuple[float, float]:
        return self.width / 2, self.height / 2

    @classmethod
    def from_shape(cls, shape: Tuple[int, ...]) -> 'FrameSize':
        """Desde un shape numpy (height, width[, channels])."""
        return cls(width=float(shape[1]), height=float(shape[0]))


@dataclass(frozen=True)
class Region:
    """
    Región candidata (x, y = esquina superior izquierda) dentro de un frame.

    Attributes:
        x, y: Esquina superior izquierda (píxeles)
        width, height: Tamaño (píxeles)
        frame: Tamaño del frame para normalizar
    """
    x: float
    y: float
    width: float
    height: float
    frame: FrameSize

    @property
    def area(self) -> float:
        return self.width * self.height

    @property
    def center(self) -> Tuple[float, float]:
        return self.x + self.width / 2, self.y + self.height / 2

    @property
    def size_ratio(self) -> float:
        """Área de la región / área del frame (0.0 si el frame no tiene área)."""
        frame_area = self.frame.area
        return self.area / frame_area if frame_area > 0 else 0.0

    @property
    def center_distance(self) -> float:
        """
        Distancia normalizada del centro de la región al centro del frame.

        Returns:
            0.0 en el centro exacto, 1.0 en una esquina (>1.0 si el centro cae fuera del frame)
        """
        if self.frame.width <= 0 or self.frame.height <= 0:
            return 1.0

        cx, cy = self.center
        fcx, fcy = self.frame.center
        offset = np.array([(cx - fcx) / fcx, (cy - fcy) / fcy], dtype=np.float64)
        return float(np.linalg.norm(offset) / np.sqrt(2.0))

"""
Target Zone (Fixed Region)
==========================

Región por defecto definida por la UI (el "target zone" donde el usuario
centra el objeto). El core NO localiza objetos: cada frame se evalúa con
esta región fija.

KISS: inmutable, cuadrado centrado de lado scale * min(width, height).
"""
from typing import Dict
import logging

from .geometry import FrameSize, Region
from ...errors import ConfigurationError

logger = logging.getLogger(__name__)


class TargetZone:
    """
    Región cuadrada centrada, proporcional al lado menor del frame.

    Example:
        zone = TargetZone(scale=0.7)
        region = zone.region_for(FrameSize(1280, 720))
        # Region(x=388.0, y=108.0, width=504.0, height=504.0, ...)
    """

    def __init__(self, scale: float = 0.7):
        if not (0.0 < scale <= 1.0):
            raise ConfigurationError(f"Target zone scale must be in (0.0, 1.0], got {scale}")

        self.scale = scale

        # Cache por tamaño de frame (la cámara no cambia de resolución por frame)
        self._cache: Dict[FrameSize, Region] = {}

    def region_for(self, frame: FrameSize) -> Region:
        """Región en píxeles para un tamaño de frame."""
        if frame in self._cache:
            return self._cache[frame]

        side = min(frame.width, frame.height) * self.scale
        region = Region(
            x=(frame.width - side) / 2,
            y=(frame.height - side) / 2,
            width=side,
            height=side,
            frame=frame,
        )
        self._cache[frame] = region

        logger.debug(
            f"TargetZone: frame {frame.width:.0f}x{frame.height:.0f} -> "
            f"square {side:.0f}px (size_ratio={region.size_ratio:.3f})"
        )
        return region

"""
Region Scoring
==============

Valida la geometría de una región candidata y ajusta el score del clasificador.

Reglas:
- size_ratio < min_size_ratio (0.02)  -> rechazo "too_small" (ruido)
- size_ratio > max_size_ratio (0.85)  -> rechazo "too_large" (fondo / frame completo)
- center_boost = (1 - center_distance) * center_boost_max (0.20)
- size_boost   = size_boost_flat (0.10) si ideal_size_min <= size_ratio <= ideal_size_max
- adjusted     = min(raw * (1 + center_boost + size_boost), 1.0)

Boost multiplicativo con cap duro en 1.0: premia el encuadre "clásico"
(centrado, tamaño moderado) sin superar nunca el 100%.
"""
from dataclasses import dataclass
from typing import Optional
import logging

from .geometry import Region
from ...errors import ConfigurationError

logger = logging.getLogger(__name__)

REJECT_TOO_SMALL = "too_small"
REJECT_TOO_LARGE = "too_large"


@dataclass(frozen=True)
class RegionVerdict:
    """Resultado de evaluar una región (accepted=False -> adjusted_score None)."""
    accepted: bool
    size_ratio: float
    center_distance: float
    adjusted_score: Optional[float] = None
    reason: Optional[str] = None


class RegionScorer:
    """
    Scorer geométrico (sin estado).

    Usage:
        scorer = RegionScorer()
        adjusted = scorer.score(region, raw_score=0.5)
        if adjusted is None:
            ...  # descartar candidato
    """

    def __init__(
        self,
        min_size_ratio: float = 0.02,
        max_size_ratio: float = 0.85,
        ideal_size_min: float = 0.10,
        ideal_size_max: float = 0.50,
        center_boost_max: float = 0.20,
        size_boost_flat: float = 0.10,
    ):
        if not (0.0 <= min_size_ratio < max_size_ratio <= 1.0):
            raise ConfigurationError(
                f"Invalid size bounds: min_size_ratio={min_size_ratio}, max_size_ratio={max_size_ratio}"
            )
        if not (0.0 <= ideal_size_min <= ideal_size_max <= 1.0):
            raise ConfigurationError(
                f"Invalid ideal size range: ideal_size_min={ideal_size_min}, ideal_size_max={ideal_size_max}"
            )
        if center_boost_max < 0.0 or size_boost_flat < 0.0:
            raise ConfigurationError(
                f"Boosts must be >= 0, got center_boost_max={center_boost_max}, size_boost_flat={size_boost_flat}"
            )

        self.min_size_ratio = min_size_ratio
        self.max_size_ratio = max_size_ratio
        self.ideal_size_min = ideal_size_min
        self.ideal_size_max = ideal_size_max
        self.center_boost_max = center_boost_max
        self.size_boost_flat = size_boost_flat

    def evaluate(self, region: Region, raw_score: float) -> RegionVerdict:
        """
        Evalúa región + score crudo.

        Returns:
            RegionVerdict con adjusted_score (si aceptada) o reason (si rechazada)
        """
        size_ratio = region.size_ratio
        center_distance = region.center_distance

        if size_ratio < self.min_size_ratio or size_ratio > self.max_size_ratio:
            reason = REJECT_TOO_SMALL if size_ratio < self.min_size_ratio else REJECT_TOO_LARGE
            logger.debug(
                "Region rejected",
                extra={
                    "component": "region_scorer",
                    "event": "region_rejected",
                    "reason": reason,
                    "size_ratio": round(size_ratio, 4),
                }
            )
            return RegionVerdict(
                accepted=False,
                size_ratio=size_ratio,
                center_distance=center_distance,
                reason=reason,
            )

        center_boost = (1.0 - center_distance) * self.center_boost_max
        if self.ideal_size_min <= size_ratio <= self.ideal_size_max:
            size_boost = self.size_boost_flat
        else:
            size_boost = 0.0

        adjusted = min(raw_score * (1.0 + center_boost + size_boost), 1.0)

        return RegionVerdict(
            accepted=True,
            size_ratio=size_ratio,
            center_distance=center_distance,
            adjusted_score=adjusted,
        )

    def score(self, region: Region, raw_score: float) -> Optional[float]:
        """Score ajustado en [0, 1], o None si la región es inválida."""
        return self.evaluate(region, raw_score).adjusted_score

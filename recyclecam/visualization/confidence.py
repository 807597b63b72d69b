"""
Confidence Presentation
=======================

Convierte el score (ajustado) del clasificador en un porcentaje para la UI
y un tier de severidad.

Reglas:
- display = min(score * display_amplification, 1.0)   (amplificación demo x3)
- percent = round-half-up(display * 100), clamp [0, 100]
- tier:  percent < 40 -> low | 40 <= percent < 70 -> medium | >= 70 -> high

La amplificación es una constante de demo (no se deriva de nada): un 25% real
se muestra como 75%. Está expuesta en config para poder desactivarla (1.0).
"""
from dataclasses import dataclass
from enum import Enum
import math

from ..errors import ConfigurationError


class ConfidenceTier(str, Enum):
    """Severidad visual del medidor de confianza."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


@dataclass(frozen=True)
class DisplayConfidence:
    percent: int
    tier: ConfidenceTier


class ConfidencePresenter:
    """
    Presenter sin estado (score -> DisplayConfidence).

    Usage:
        presenter = ConfidencePresenter()
        presenter.present(0.30)   # DisplayConfidence(percent=90, tier=HIGH)
    """

    def __init__(
        self,
        display_amplification: float = 3.0,
        tier_low_max: int = 40,
        tier_medium_max: int = 70,
    ):
        if display_amplification <= 0:
            raise ConfigurationError(
                f"display_amplification must be > 0, got {display_amplification}"
            )
        if not (0 <= tier_low_max <= tier_medium_max <= 100):
            raise ConfigurationError(
                f"Tier bounds must satisfy 0 <= tier_low_max <= tier_medium_max <= 100, "
                f"got tier_low_max={tier_low_max}, tier_medium_max={tier_medium_max}"
            )

        self.display_amplification = display_amplification
        self.tier_low_max = tier_low_max
        self.tier_medium_max = tier_medium_max

    def present(self, score: float) -> DisplayConfidence:
        display = min(max(score, 0.0) * self.display_amplification, 1.0)

        # Half-up (0.5 -> 1), no banker's rounding de round()
        percent = int(math.floor(display * 100 + 0.5))
        percent = max(0, min(percent, 100))

        return DisplayConfidence(percent=percent, tier=self.tier_for(percent))

    def present_empty(self) -> DisplayConfidence:
        """Confianza para frames sin match (medidor vacío)."""
        return DisplayConfidence(percent=0, tier=ConfidenceTier.LOW)

    def tier_for(self, percent: int) -> ConfidenceTier:
        if percent < self.tier_low_max:
            return ConfidenceTier.LOW
        if percent < self.tier_medium_max:
            return ConfidenceTier.MEDIUM
        return ConfidenceTier.HIGH

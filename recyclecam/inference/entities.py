"""
Core Entities
=============

Value objects que fluyen por el pipeline por-frame:

    RawPrediction  (clasificador externo, read-only)
      -> ScoredDetection (label matcheado + score ajustado, vive 1 frame)
      -> FrameResult (salida visible para la capa de presentación)
"""
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Optional, TYPE_CHECKING

from .lexicon import CategoryId

if TYPE_CHECKING:
    from ..visualization.confidence import ConfidenceTier


@dataclass(frozen=True)
class RawPrediction:
    """Predicción cruda del clasificador: label libre + probabilidad [0, 1]."""
    label: str
    probability: float

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'RawPrediction':
        """Acepta {'label', 'probability'} o el formato MobileNet {'className', 'probability'}."""
        label = data.get('label', data.get('className'))
        if label is None:
            raise ValueError(f"Prediction without label: {data}")
        return cls(label=str(label), probability=float(data.get('probability', 0.0)))


@dataclass(frozen=True)
class ScoredDetection:
    """Detección aceptada en un frame (categoría + score geométricamente ajustado)."""
    category: CategoryId
    display_name: str
    adjusted_score: float


@dataclass(frozen=True)
class FrameResult:
    """
    Resultado por-frame emitido a los sinks (MQTT, logging).

    category/display_name describen el match de ESTE frame; stable_* describen
    el modo del history (lo que la UI debería mostrar cuando confirmed=True).
    """
    frame_id: int
    session_id: str
    category: Optional[CategoryId]
    display_name: Optional[str]
    raw_probability: Optional[float]
    adjusted_score: Optional[float]
    display_confidence_percent: int
    confidence_tier: 'ConfidenceTier'
    confirmed: bool
    tip_key: str
    tip_text: str
    stable_category: Optional[CategoryId] = None
    stable_display_name: Optional[str] = None
    diagnostic_label: Optional[str] = None
    raw_label: Optional[str] = None
    timestamp: datetime = field(default_factory=datetime.now)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "frame_id": self.frame_id,
            "session_id": self.session_id,
            "timestamp": self.timestamp.isoformat(),
            "category": self.category.value if self.category else None,
            "display_name": self.display_name,
            "raw_probability": self.raw_probability,
            "adjusted_score": self.adjusted_score,
            "display_confidence_percent": self.display_confidence_percent,
            "confidence_tier": self.confidence_tier.value,
            "confirmed": self.confirmed,
            "stable_category": self.stable_category.value if self.stable_category else None,
            "stable_display_name": self.stable_display_name,
            "tip_key": self.tip_key,
            "tip_text": self.tip_text,
            "diagnostic_label": self.diagnostic_label,
            "raw_label": self.raw_label,
        }

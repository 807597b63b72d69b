"""
Frame Result Publisher
======================

Formatea cada FrameResult en el mensaje que consume la UI (HUD, tips banner,
medidor de confianza).

Responsabilidad:
- Conoce la estructura del mensaje (lógica de negocio)
- Resuelve labels/iconos de categoría y tip
- NO conoce MQTT (eso es del DataPlane)
"""
from datetime import datetime
from typing import Any, Dict, Optional

from ...inference.entities import FrameResult
from ...inference.lexicon import CategoryId
from ...visualization.tips import category_icon, category_label, tip_icon


class FrameResultPublisher:
    """
    Publisher de resultados por-frame.

    Mensaje:
        {
          "message_id": 42,
          "timestamp": "...", "session_id": "session-1a2b3c4d", "frame_id": 17,
          "category": "plastic", "category_label": "Plastic", "category_icon": "🧴",
          "display_name": "Water Bottle", "confirmed": true,
          "stable": {"category": "plastic", "category_label": "Plastic", "display_name": "Water Bottle"},
          "confidence": {"raw": 0.22, "adjusted": 0.286, "percent": 86, "tier": "high"},
          "tip": {"key": "success", "icon": "✅", "text": "Detected: Water Bottle"},
          "diagnostic_label": null
        }
    """

    def __init__(self):
        self._message_count = 0

    def format_message(self, result: FrameResult) -> Dict[str, Any]:
        message = self._build_message(result)

        self._message_count += 1
        message["message_id"] = self._message_count

        return message

    def _build_message(self, result: FrameResult) -> Dict[str, Any]:
        return {
            "timestamp": result.timestamp.isoformat(),
            "published_at": datetime.now().isoformat(),
            "session_id": result.session_id,
            "frame_id": result.frame_id,
            "category": _category_value(result.category),
            "category_label": category_label(result.category),
            "category_icon": category_icon(result.category),
            "display_name": result.display_name,
            "confirmed": result.confirmed,
            "stable": {
                "category": _category_value(result.stable_category),
                "category_label": category_label(result.stable_category),
                "display_name": result.stable_display_name,
            },
            "confidence": {
                "raw": result.raw_probability,
                "adjusted": result.adjusted_score,
                "percent": result.display_confidence_percent,
                "tier": result.confidence_tier.value,
            },
            "tip": {
                "key": result.tip_key,
                "icon": tip_icon(result.tip_key, result.diagnostic_label),
                "text": result.tip_text,
            },
            "diagnostic_label": result.diagnostic_label,
        }

    @property
    def message_count(self) -> int:
        return self._message_count


def _category_value(category: Optional[CategoryId]) -> Optional[str]:
    return category.value if category is not None else None

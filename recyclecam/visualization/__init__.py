"""
Presentation helpers: confidence shaping + UI tips
"""
from .confidence import ConfidencePresenter, ConfidenceTier, DisplayConfidence
from .tips import (
    TIP_NO_OBJECT,
    TIP_TOO_SMALL,
    TIP_LOW_CONFIDENCE,
    TIP_SUCCESS,
    clean_label,
    category_label,
    category_icon,
    tip_icon,
    tip_text_for,
)

__all__ = [
    "ConfidencePresenter",
    "ConfidenceTier",
    "DisplayConfidence",
    "TIP_NO_OBJECT",
    "TIP_TOO_SMALL",
    "TIP_LOW_CONFIDENCE",
    "TIP_SUCCESS",
    "clean_label",
    "category_label",
    "category_icon",
    "tip_icon",
    "tip_text_for",
]

"""
UI Tips & Category Labels
=========================

Vocabulario visual que la capa de presentación renderiza tal cual:
- Tips (banner de ayuda): noObject, tooSmall, lowConfidence, success
- Labels + iconos de categoría para el HUD
- Limpieza de labels crudos del clasificador ("water bottle, (plastic)" -> "water bottle")
"""
from dataclasses import dataclass
from typing import Dict, Optional

from ..inference.lexicon import CategoryId

TIP_NO_OBJECT = "noObject"
TIP_TOO_SMALL = "tooSmall"
TIP_LOW_CONFIDENCE = "lowConfidence"
TIP_SUCCESS = "success"


@dataclass(frozen=True)
class Tip:
    icon: str
    text: str


TIPS: Dict[str, Tip] = {
    TIP_NO_OBJECT: Tip(icon="🎯", text="Place an object in the center"),
    TIP_TOO_SMALL: Tip(icon="📏", text="Move closer to the object"),
    TIP_LOW_CONFIDENCE: Tip(icon="💡", text="Try better lighting or plain background"),
    TIP_SUCCESS: Tip(icon="✅", text="Object detected!"),
}

# Tip de diagnóstico: muestra qué ve el clasificador cuando nada matchea
DIAGNOSTIC_ICON = "🔍"
SCANNING_ICON = "🔍"

CATEGORY_LABELS: Dict[CategoryId, str] = {
    CategoryId.COMPOST: "Compost",
    CategoryId.PAPER: "Paper / Cardboard",
    CategoryId.METAL: "Metal",
    CategoryId.GLASS: "Glass",
    CategoryId.PLASTIC: "Plastic",
    CategoryId.LANDFILL: "Landfill",
    CategoryId.UNKNOWN: "Unknown",
}

CATEGORY_ICONS: Dict[CategoryId, str] = {
    CategoryId.COMPOST: "🍂",
    CategoryId.PAPER: "📦",
    CategoryId.METAL: "🥫",
    CategoryId.GLASS: "🍾",
    CategoryId.PLASTIC: "🧴",
    CategoryId.LANDFILL: "🗑️",
    CategoryId.UNKNOWN: "🗑️",
}


def clean_label(label: str) -> str:
    """Primer segmento antes de ',' y '(' (los labels ImageNet traen sinónimos)."""
    return label.split(",")[0].split("(")[0].strip()


def category_label(category: Optional[CategoryId]) -> Optional[str]:
    if category is None:
        return None
    return CATEGORY_LABELS[category]


def category_icon(category: Optional[CategoryId]) -> str:
    """Icono del HUD (lupa de "scanning" cuando no hay categoría)."""
    if category is None:
        return SCANNING_ICON
    return CATEGORY_ICONS[category]


def tip_icon(tip_key: str, diagnostic_label: Optional[str] = None) -> str:
    if tip_key == TIP_NO_OBJECT and diagnostic_label:
        return DIAGNOSTIC_ICON
    return TIPS[tip_key].icon


def tip_text_for(
    tip_key: str,
    display_name: Optional[str] = None,
    diagnostic_label: Optional[str] = None,
) -> str:
    """
    Texto del banner para un tip.

    - success con nombre   -> "Detected: {nombre}"
    - noObject con label   -> "Seeing: {label crudo}" (para extender el lexicon)
    - resto                -> texto fijo del tip

    Raises:
        KeyError: tip_key desconocido
    """
    tip = TIPS[tip_key]

    if tip_key == TIP_SUCCESS and display_name:
        return f"Detected: {clean_label(display_name)}"

    if tip_key == TIP_NO_OBJECT and diagnostic_label:
        return f"Seeing: {diagnostic_label}"

    return tip.text

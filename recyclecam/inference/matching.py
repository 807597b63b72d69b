"""
Label Matching
==============

Bounded Context: Vocabulario (label libre -> categoría + nombre amigable)

Mapea el label crudo del clasificador (ej: "water bottle", "sunglasses, dark glasses")
a una categoría de residuo usando el Lexicon.

Algoritmo (first-match-wins, sin ranking):
1. Normaliza label a lowercase
2. Itera categorías en orden de declaración del lexicon
3. Itera patterns de la categoría en orden
4. Match si label == pattern o pattern es substring de label
5. Primer (categoría, pattern) que matchea gana -> retorna inmediatamente

Landfill: split fijo de dos vías para el display name
- label contiene keyword de eyewear -> "Glasses"
- caso contrario                   -> "Pen"

None = label no reconocido (outcome normal, el caller ignora la predicción).
"""
from dataclasses import dataclass
from typing import Optional
import logging

from .lexicon import (
    CategoryId,
    DEFAULT_LEXICON,
    EYEWEAR_KEYWORDS,
    LANDFILL_DEFAULT_NAME,
    LANDFILL_EYEWEAR_NAME,
    Lexicon,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LabelMatch:
    """Resultado de un match: categoría, nombre amigable y pattern que ganó."""
    category: CategoryId
    display_name: str
    pattern: str


class CategoryMatcher:
    """
    Matcher puro (sin estado mutable) sobre un Lexicon inmutable.

    Usage:
        matcher = CategoryMatcher()
        result = matcher.match("Water Bottle")
        # LabelMatch(category=PLASTIC, display_name="Water Bottle", pattern="water bottle")

        matcher.match("car")  # None
    """

    def __init__(self, lexicon: Optional[Lexicon] = None):
        self.lexicon = lexicon if lexicon is not None else DEFAULT_LEXICON

    def match(self, label: Optional[str]) -> Optional[LabelMatch]:
        """
        Mapea un label a categoría.

        Args:
            label: Label crudo del clasificador (puede ser None)

        Returns:
            LabelMatch si algún pattern matchea, None si no reconocido
        """
        normalized = (label or "").strip().lower()
        if not normalized:
            return None

        for entry in self.lexicon:
            for pattern in entry.patterns:
                if normalized == pattern or pattern in normalized:
                    display_name = self._resolve_display_name(entry.category, entry.display_name, normalized)
                    logger.debug(
                        "Label matched",
                        extra={
                            "component": "category_matcher",
                            "event": "label_matched",
                            "label": normalized,
                            "category": entry.category.value,
                            "pattern": pattern,
                            "display_name": display_name,
                        }
                    )
                    return LabelMatch(
                        category=entry.category,
                        display_name=display_name,
                        pattern=pattern,
                    )

        return None

    @staticmethod
    def _resolve_display_name(category: CategoryId, default_name: str, normalized_label: str) -> str:
        if category is not CategoryId.LANDFILL:
            return default_name

        if any(keyword in normalized_label for keyword in EYEWEAR_KEYWORDS):
            return LANDFILL_EYEWEAR_NAME
        return LANDFILL_DEFAULT_NAME

"""
Waste Lexicon
=============

Bounded Context: Vocabulario (label del clasificador -> categoría de residuo)

Mapping ordenado CategoryId -> patterns (substrings lowercase) usado por el
CategoryMatcher. El orden de declaración es parte del contrato: el matching
es "primera categoría gana", por lo tanto reordenar el lexicon cambia resultados.

Invariantes:
- Orden de categorías: Compost, Paper, Metal, Glass, Plastic, Landfill
- Unknown NUNCA es target del lexicon (es la ausencia de match)
- Patterns normalizados a lowercase, no vacíos, sin duplicados por categoría
- Inmutable después de construido (tuplas)
- Landfill no tiene display name configurable (split fijo Pen / Glasses)

El DEFAULT_LEXICON reproduce el lexicon de la demo (MobileNet/ImageNet labels),
incluyendo Paper/Metal/Glass vacíos: se pueden completar desde YAML.
"""
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Iterator, List, Mapping, Optional, Tuple
import logging

import yaml

from ..errors import ConfigurationError

logger = logging.getLogger(__name__)


class CategoryId(str, Enum):
    """Categorías de residuo (el orden de declaración importa)."""

    COMPOST = "compost"
    PAPER = "paper"
    METAL = "metal"
    GLASS = "glass"
    PLASTIC = "plastic"
    LANDFILL = "landfill"
    UNKNOWN = "unknown"


# Orden de iteración del matcher (Unknown excluido a propósito)
LEXICON_ORDER: Tuple[CategoryId, ...] = (
    CategoryId.COMPOST,
    CategoryId.PAPER,
    CategoryId.METAL,
    CategoryId.GLASS,
    CategoryId.PLASTIC,
    CategoryId.LANDFILL,
)

DEFAULT_DISPLAY_NAMES: Dict[CategoryId, str] = {
    CategoryId.COMPOST: "Onion",
    CategoryId.PAPER: "Paper",
    CategoryId.METAL: "Metal Item",
    CategoryId.GLASS: "Glass Item",
    CategoryId.PLASTIC: "Water Bottle",
    CategoryId.LANDFILL: "Pen",
}

# Landfill: split fijo de dos vías
LANDFILL_EYEWEAR_NAME = "Glasses"
LANDFILL_DEFAULT_NAME = "Pen"

EYEWEAR_KEYWORDS: Tuple[str, ...] = (
    "sunglass",
    "sunglasses",
    "eyeglass",
    "eyeglasses",
    "glasses",
    "spectacles",
    "reading glasses",
    "goggles",
    "loupe",
    "lens",
    "optical",
    "frame",
    "monocle",
    "bifocal",
)


_DEFAULT_PATTERNS: Dict[str, List[str]] = {
    "compost": [
        # Onion
        "onion", "red onion", "yellow onion", "white onion",
        "shallot", "garlic", "leek",
        # MobileNet confunde con otros vegetales redondos
        "Granny Smith", "head cabbage", "bell pepper", "acorn squash",
        "butternut squash", "cucumber", "zucchini", "eggplant",
        "artichoke", "mushroom", "turnip", "kohlrabi",
    ],
    "paper": [],
    "metal": [],
    "glass": [],
    "plastic": [
        # Water bottle
        "water bottle", "plastic bottle", "bottle", "pop bottle",
        "water jug", "flask", "pitcher", "carafe", "jug", "canteen", "thermos",
        # MobileNet confunde botellas con estos
        "punching bag", "punch bag", "punching ball", "vacuum", "vase",
        "shaker", "cocktail shaker", "beer bottle", "wine bottle",
        "pill bottle", "water tower", "cylinder", "container", "tumbler",
        "mug", "cup", "barrel", "cask", "drum",
    ],
    "landfill": [
        # Pen (ImageNet)
        "ballpoint", "ballpoint pen", "ball pen", "pen", "fountain pen",
        "quill", "quill pen", "pencil", "mechanical pencil", "marker",
        "felt-tip", "highlighter", "writing implement", "stylus",
        "rule",  # ruler
        "rubber eraser",
        "plunger", "plumber's helper",  # MobileNet confunde pens con plungers
        "screwdriver", "hammer", "nail",
        "lipstick",
        "torch", "flashlight", "lighter", "candle", "missile", "projectile",
        "stick", "baton", "drumstick", "match", "matchstick",
        "stethoscope", "syringe", "thermometer",
        # Glasses (ImageNet)
        "sunglass", "sunglasses", "eyeglass", "eyeglasses", "glasses",
        "spectacles", "reading glasses", "eye glasses", "goggles", "loupe",
        "magnifying glass", "lens", "optical", "frame", "rimless",
        "bifocal", "monocle",
    ],
}


@dataclass(frozen=True)
class CategoryEntry:
    """Una categoría del lexicon con sus patterns normalizados."""
    category: CategoryId
    display_name: str
    patterns: Tuple[str, ...]


class Lexicon:
    """
    Lexicon inmutable y ordenado.

    Usage:
        lexicon = Lexicon.from_mapping({"plastic": ["water bottle", "bottle"]})
        for entry in lexicon:
            ...

        lexicon = Lexicon.from_yaml("config/recyclecam/lexicon.yaml")
    """

    def __init__(self, entries: Tuple[CategoryEntry, ...]):
        categories = [entry.category for entry in entries]
        if tuple(categories) != LEXICON_ORDER:
            raise ConfigurationError(
                f"Lexicon must declare categories in order "
                f"{[c.value for c in LEXICON_ORDER]}, got {[c.value for c in categories]}"
            )
        self._entries = tuple(entries)
        self._by_category = {entry.category: entry for entry in self._entries}

    def __iter__(self) -> Iterator[CategoryEntry]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        sizes = ', '.join(f"{e.category.value}={len(e.patterns)}" for e in self._entries)
        return f"Lexicon({sizes})"

    def entry(self, category: CategoryId) -> CategoryEntry:
        if category not in self._by_category:
            raise KeyError(f"Category '{category.value}' is not a lexicon target")
        return self._by_category[category]

    def patterns(self, category: CategoryId) -> Tuple[str, ...]:
        return self.entry(category).patterns

    @property
    def pattern_count(self) -> int:
        return sum(len(entry.patterns) for entry in self._entries)

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, Any]) -> 'Lexicon':
        """
        Construye y valida un lexicon desde un mapping ordenado.

        Formatos aceptados por categoría:
            plastic: ["water bottle", "bottle"]
            plastic: {display_name: "Water Bottle", patterns: [...]}

        Categorías omitidas quedan vacías. Las presentes deben respetar
        el orden canónico (el dict de Python preserva orden de declaración).

        Raises:
            ConfigurationError: Categoría desconocida, orden inválido,
                                patterns vacíos/duplicados o tipos inválidos
        """
        if not isinstance(mapping, Mapping):
            raise ConfigurationError(
                f"Lexicon must be a mapping of category -> patterns, got {type(mapping).__name__}"
            )

        declared: List[CategoryId] = []
        raw_entries: Dict[CategoryId, Any] = {}
        for key, value in mapping.items():
            category = _parse_category(key)
            declared.append(category)
            raw_entries[category] = value

        canonical_positions = [LEXICON_ORDER.index(c) for c in declared]
        if canonical_positions != sorted(canonical_positions):
            raise ConfigurationError(
                f"Lexicon categories must follow declaration order "
                f"{[c.value for c in LEXICON_ORDER]}, got {[c.value for c in declared]}"
            )

        entries = []
        for category in LEXICON_ORDER:
            entries.append(_build_entry(category, raw_entries.get(category, [])))

        return cls(tuple(entries))

    @classmethod
    def from_yaml(cls, path: str) -> 'Lexicon':
        """
        Carga lexicon desde YAML (clave opcional 'categories').

        Raises:
            ConfigurationError: Archivo inexistente, YAML inválido o lexicon inválido
        """
        lexicon_file = Path(path)
        if not lexicon_file.exists():
            raise ConfigurationError(f"Lexicon file not found: {path}")

        try:
            with open(lexicon_file, 'r', encoding='utf-8') as f:
                raw = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid lexicon YAML in {path}: {e}") from e

        if isinstance(raw, Mapping) and 'categories' in raw:
            raw = raw['categories']

        lexicon = cls.from_mapping(raw)
        logger.info(
            "Lexicon loaded",
            extra={
                "component": "lexicon",
                "event": "lexicon_loaded",
                "path": str(lexicon_file),
                "pattern_count": lexicon.pattern_count,
            }
        )
        return lexicon

    def to_dict(self) -> Dict[str, Dict[str, Any]]:
        """Forma serializable (preserva el orden de declaración)."""
        serialized: Dict[str, Dict[str, Any]] = {}
        for entry in self._entries:
            item: Dict[str, Any] = {"patterns": list(entry.patterns)}
            if entry.category is not CategoryId.LANDFILL:
                item = {"display_name": entry.display_name, **item}
            serialized[entry.category.value] = item
        return serialized


def _parse_category(key: Any) -> CategoryId:
    try:
        category = CategoryId(str(key).strip().lower())
    except ValueError:
        raise ConfigurationError(
            f"Unknown lexicon category '{key}'. "
            f"Valid categories: {[c.value for c in LEXICON_ORDER]}"
        ) from None

    if category is CategoryId.UNKNOWN:
        raise ConfigurationError("'unknown' is the no-match fallback and cannot have patterns")
    return category


def _build_entry(category: CategoryId, raw: Any) -> CategoryEntry:
    display_name = DEFAULT_DISPLAY_NAMES[category]

    if isinstance(raw, Mapping):
        if 'display_name' in raw:
            if category is CategoryId.LANDFILL:
                raise ConfigurationError(
                    f"Landfill display names are fixed ('{LANDFILL_DEFAULT_NAME}' / "
                    f"'{LANDFILL_EYEWEAR_NAME}') and cannot be configured"
                )
            display_name = raw['display_name']
            if not isinstance(display_name, str) or not display_name.strip():
                raise ConfigurationError(
                    f"display_name for '{category.value}' must be a non-empty string"
                )
            display_name = display_name.strip()
        raw = raw.get('patterns', [])

    if raw is None:
        raw = []
    if isinstance(raw, str) or not isinstance(raw, (list, tuple)):
        raise ConfigurationError(
            f"Patterns for '{category.value}' must be a list of strings, got {type(raw).__name__}"
        )

    patterns: List[str] = []
    for pattern in raw:
        if not isinstance(pattern, str):
            raise ConfigurationError(
                f"Pattern {pattern!r} in '{category.value}' must be a string"
            )
        normalized = pattern.strip().lower()
        if not normalized:
            # Un pattern vacío es substring de cualquier label
            raise ConfigurationError(f"Empty pattern in '{category.value}'")
        if normalized in patterns:
            raise ConfigurationError(
                f"Duplicate pattern '{normalized}' in '{category.value}'"
            )
        patterns.append(normalized)

    return CategoryEntry(category=category, display_name=display_name, patterns=tuple(patterns))


DEFAULT_LEXICON = Lexicon.from_mapping(_DEFAULT_PATTERNS)


def load_lexicon(path: Optional[str] = None) -> Lexicon:
    """Lexicon desde YAML si se especifica path, si no el default."""
    if path is None:
        return DEFAULT_LEXICON
    return Lexicon.from_yaml(path)

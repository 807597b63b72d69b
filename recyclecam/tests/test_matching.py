"""
Category Matching Tests
=======================

Invariantes testeadas:
1. Case-insensitive: el resultado no depende de mayúsculas ni espacios
2. Primera categoría gana (orden de declaración del lexicon)
3. Landfill siempre resuelve a "Pen" o "Glasses"
4. Labels no reconocidos -> None (no excepción)
"""
import pytest

from recyclecam.inference.lexicon import CategoryId, Lexicon
from recyclecam.inference.matching import CategoryMatcher


@pytest.fixture
def matcher():
    return CategoryMatcher()


@pytest.mark.unit
class TestCategoryMatcher:
    """Tests del matcher con el lexicon por defecto"""

    def test_water_bottle_maps_to_plastic(self, matcher):
        result = matcher.match("water bottle")

        assert result is not None
        assert result.category == CategoryId.PLASTIC
        assert result.display_name == "Water Bottle"
        assert result.pattern == "water bottle"

    def test_case_and_whitespace_insensitive(self, matcher):
        """
        Propiedad: match(label) == match(label.upper()) == match("  label  ").
        """
        for label in ["water bottle", "onion", "ballpoint, ballpoint pen", "sunglasses"]:
            base = matcher.match(label)
            assert matcher.match(label.upper()) == base
            assert matcher.match(f"  {label}  ") == base

    def test_substring_match(self, matcher):
        """
        Propiedad: un pattern contenido en el label alcanza para matchear.
        """
        result = matcher.match("pop bottle, soda bottle")

        assert result.category == CategoryId.PLASTIC
        assert result.pattern == "bottle"

    def test_first_category_wins(self, matcher):
        """
        Invariante: Compost se evalúa antes que Plastic.

        "onion in a cup" matchea "onion" (compost) y "cup" (plastic) -> compost.
        """
        result = matcher.match("onion in a cup")

        assert result.category == CategoryId.COMPOST
        assert result.display_name == "Onion"

    def test_patterns_are_normalized_to_lowercase(self, matcher):
        """
        Edge case: "Granny Smith" en el lexicon matchea labels en minúscula.
        """
        result = matcher.match("granny smith")

        assert result.category == CategoryId.COMPOST
        assert result.pattern == "granny smith"

    def test_unrecognized_label_returns_none(self, matcher):
        assert matcher.match("tabby, tabby cat") is None

    @pytest.mark.parametrize("label", [None, "", "   "])
    def test_empty_label_returns_none(self, matcher, label):
        assert matcher.match(label) is None


@pytest.mark.unit
class TestLandfillSplit:
    """Landfill: split fijo Pen / Glasses"""

    def test_pen_label(self, matcher):
        result = matcher.match("ballpoint, ballpoint pen")

        assert result.category == CategoryId.LANDFILL
        assert result.display_name == "Pen"

    def test_eyewear_label(self, matcher):
        result = matcher.match("sunglasses, dark glasses, shades")

        assert result.category == CategoryId.LANDFILL
        assert result.display_name == "Glasses"

    def test_eyewear_keyword_decides_display_name(self, matcher):
        """
        Propiedad: el display name depende de las keywords del label, no del
        pattern que matcheó ("pen" matchea primero, "frame" es eyewear).
        """
        result = matcher.match("pencil frame")

        assert result.category == CategoryId.LANDFILL
        assert result.pattern == "pen"
        assert result.display_name == "Glasses"

    def test_every_landfill_match_is_pen_or_glasses(self, matcher):
        """
        Invariante: todo match Landfill resuelve a exactamente uno de los dos nombres.
        """
        for pattern in matcher.lexicon.patterns(CategoryId.LANDFILL):
            result = matcher.match(pattern)
            if result is not None and result.category == CategoryId.LANDFILL:
                assert result.display_name in ("Pen", "Glasses")


@pytest.mark.unit
class TestCustomLexicon:

    def test_matcher_uses_given_lexicon(self):
        lexicon = Lexicon.from_mapping({
            "paper": {"display_name": "Cardboard Box", "patterns": ["carton", "envelope"]},
        })
        matcher = CategoryMatcher(lexicon)

        result = matcher.match("envelope")

        assert result.category == CategoryId.PAPER
        assert result.display_name == "Cardboard Box"
        # Plastic quedó vacío en este lexicon
        assert matcher.match("water bottle") is None

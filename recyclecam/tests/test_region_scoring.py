"""
Region Scoring Tests
====================

Invariantes testeadas:
1. size_ratio fuera de [min, max] -> rechazo (None), nunca score
2. adjusted_score siempre en [0, 1] (cap duro)
3. Centrado + tamaño ideal -> boost máximo (x1.3 con defaults)
4. TargetZone: cuadrado centrado proporcional al lado menor
"""
import pytest

from recyclecam.errors import ConfigurationError
from recyclecam.inference.roi import (
    FrameSize,
    Region,
    RegionScorer,
    REJECT_TOO_LARGE,
    REJECT_TOO_SMALL,
    TargetZone,
)

FRAME = FrameSize(1000, 1000)


@pytest.fixture
def scorer():
    return RegionScorer()


@pytest.mark.roi
class TestRegionGeometry:

    def test_size_ratio(self):
        region = Region(250, 200, 500, 600, FRAME)
        assert region.size_ratio == pytest.approx(0.3)

    def test_center_distance_zero_at_center(self):
        region = Region(250, 200, 500, 600, FRAME)
        assert region.center_distance == pytest.approx(0.0)

    def test_center_distance_one_at_corner(self):
        """
        Propiedad: región centrada en la esquina -> distancia 1.0.
        """
        region = Region(-50, -50, 100, 100, FRAME)
        assert region.center_distance == pytest.approx(1.0)

    def test_from_numpy_shape(self):
        frame = FrameSize.from_shape((720, 1280, 3))
        assert frame.width == 1280
        assert frame.height == 720

    def test_zero_area_frame(self):
        """
        Edge case: frame sin área -> size_ratio 0 (sin división por cero).
        """
        region = Region(0, 0, 10, 10, FrameSize(0, 0))
        assert region.size_ratio == 0.0


@pytest.mark.roi
class TestRegionScorer:

    def test_centered_ideal_region_gets_full_boost(self, scorer):
        """
        raw 0.5, centrado (+0.20), size_ratio 0.3 ideal (+0.10) -> 0.65.
        """
        region = Region(250, 200, 500, 600, FRAME)
        assert scorer.score(region, 0.5) == pytest.approx(0.65)

    def test_off_center_region_gets_partial_center_boost(self, scorer):
        region = Region(0, 0, 500, 600, FRAME)
        assert scorer.score(region, 0.5) == pytest.approx(0.6047, abs=1e-3)

    def test_non_ideal_size_gets_no_size_boost(self, scorer):
        # size_ratio 0.6 (fuera de [0.10, 0.50]) pero centrado
        region = Region(0, 200, 1000, 600, FRAME)
        assert scorer.score(region, 0.5) == pytest.approx(0.6)

    def test_too_small_rejected(self, scorer):
        region = Region(495, 495, 100, 100, FRAME)

        verdict = scorer.evaluate(region, 0.9)

        assert verdict.accepted is False
        assert verdict.adjusted_score is None
        assert verdict.reason == REJECT_TOO_SMALL
        assert scorer.score(region, 0.9) is None

    def test_too_large_rejected(self, scorer):
        region = Region(0, 0, 1000, 900, FRAME)

        verdict = scorer.evaluate(region, 0.9)

        assert verdict.accepted is False
        assert verdict.reason == REJECT_TOO_LARGE

    def test_min_size_boundary_is_accepted(self, scorer):
        """
        Edge case: size_ratio == min_size_ratio es válido (rechazo es estricto).
        """
        region = Region(400, 450, 200, 100, FRAME)
        assert scorer.score(region, 0.5) is not None

    def test_adjusted_score_capped_at_one(self, scorer):
        """
        Invariante: adjusted_score <= 1.0 aunque raw * boost lo supere.
        """
        region = Region(250, 200, 500, 600, FRAME)
        assert scorer.score(region, 0.9) == 1.0

    @pytest.mark.parametrize("raw", [0.0, 0.01, 0.25, 0.5, 0.77, 1.0])
    def test_adjusted_score_in_unit_interval(self, scorer, raw):
        for region in [Region(250, 200, 500, 600, FRAME), Region(0, 0, 500, 600, FRAME)]:
            adjusted = scorer.score(region, raw)
            assert 0.0 <= adjusted <= 1.0

    def test_zero_area_frame_rejected_as_too_small(self, scorer):
        region = Region(0, 0, 10, 10, FrameSize(0, 0))
        assert scorer.evaluate(region, 0.5).reason == REJECT_TOO_SMALL

    def test_invalid_size_bounds_rejected(self):
        with pytest.raises(ConfigurationError):
            RegionScorer(min_size_ratio=0.5, max_size_ratio=0.4)

    def test_invalid_ideal_range_rejected(self):
        with pytest.raises(ConfigurationError):
            RegionScorer(ideal_size_min=0.6, ideal_size_max=0.2)


@pytest.mark.roi
class TestTargetZone:

    def test_default_zone_on_hd_frame(self):
        """
        1280x720, scale 0.7 -> cuadrado de 504px centrado.
        """
        region = TargetZone().region_for(FrameSize(1280, 720))

        assert region.width == pytest.approx(504)
        assert region.height == pytest.approx(504)
        assert region.x == pytest.approx(388)
        assert region.y == pytest.approx(108)
        assert region.center_distance == pytest.approx(0.0, abs=1e-9)
        assert region.size_ratio == pytest.approx(0.2756, abs=1e-3)

    def test_default_zone_scores_with_full_boost(self, scorer):
        region = TargetZone().region_for(FrameSize(1280, 720))
        assert scorer.score(region, 0.22) == pytest.approx(0.286)

    def test_region_is_cached_per_frame_size(self):
        zone = TargetZone()
        frame = FrameSize(640, 480)
        assert zone.region_for(frame) is zone.region_for(frame)

    @pytest.mark.parametrize("scale", [0.0, -0.5, 1.5])
    def test_invalid_scale_rejected(self, scale):
        with pytest.raises(ConfigurationError):
            TargetZone(scale=scale)

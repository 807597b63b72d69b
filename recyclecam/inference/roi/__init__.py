"""
Region Of Interest - geometría, scoring y target zone
"""
from .geometry import FrameSize, Region
from .scoring import RegionScorer, RegionVerdict, REJECT_TOO_SMALL, REJECT_TOO_LARGE
from .fixed import TargetZone

__all__ = [
    "FrameSize",
    "Region",
    "RegionScorer",
    "RegionVerdict",
    "REJECT_TOO_SMALL",
    "REJECT_TOO_LARGE",
    "TargetZone",
]

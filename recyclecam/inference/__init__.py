"""
Inference Core - Lexicon, Matching, ROI, Stabilization
"""
from .entities import FrameResult, RawPrediction, ScoredDetection
from .lexicon import CategoryId, DEFAULT_LEXICON, Lexicon, load_lexicon
from .matching import CategoryMatcher, LabelMatch

__all__ = [
    "FrameResult",
    "RawPrediction",
    "ScoredDetection",
    "CategoryId",
    "DEFAULT_LEXICON",
    "Lexicon",
    "load_lexicon",
    "CategoryMatcher",
    "LabelMatch",
]

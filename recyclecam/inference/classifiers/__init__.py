"""
Classifiers - backends de clasificación consumidos por el orchestrator
"""
from .base import BaseClassifier
from .replay import ReplayClassifier, ReplayClassifierError, load_replay

__all__ = [
    "BaseClassifier",
    "ReplayClassifier",
    "ReplayClassifierError",
    "load_replay",
]

"""
Label Stabilization - Temporal filtering to reduce flickering

Public API:
- Strategies: TemporalStabilizer, NoOpStabilizer
- State: SessionState, StableResult, EMPTY_RESULT
- Factory: create_stabilization_strategy
"""

from .core import (
    BaseLabelStabilizer,
    StabilizationConfig,
    SessionState,
    StableResult,
    EMPTY_RESULT,
    TemporalStabilizer,
    NoOpStabilizer,
    create_stabilization_strategy,
)

__all__ = [
    "BaseLabelStabilizer",
    "StabilizationConfig",
    "SessionState",
    "StableResult",
    "EMPTY_RESULT",
    "TemporalStabilizer",
    "NoOpStabilizer",
    "create_stabilization_strategy",
]

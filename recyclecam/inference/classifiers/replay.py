"""
Replay Classifier
=================

Reproduce predicciones grabadas frame a frame (sin modelo).

Formato (YAML o JSON, JSON es YAML válido):

    loop: false
    delay_ms: 0          # latencia simulada por frame (opcional)
    frames:
      - - {label: "water bottle", probability: 0.22}
        - {label: "pop bottle, soda bottle", probability: 0.10}
      - []                                   # frame sin predicciones
      - {error: "model not loaded"}          # simula fallo del clasificador

Usos:
- Demo end-to-end sin cámara ni modelo (python -m recyclecam --replay ...)
- Tests de escenarios del orchestrator
"""
import asyncio
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Union
import logging

import numpy as np
import yaml

from .base import BaseClassifier
from ..entities import RawPrediction
from ...errors import ConfigurationError

logger = logging.getLogger(__name__)

# Un frame grabado: lista de predicciones, o mensaje de error a lanzar
ReplayFrame = Union[List[RawPrediction], str]


class ReplayClassifierError(RuntimeError):
    """Fallo simulado (entrada {error: ...} del replay)."""
    pass


class ReplayClassifier(BaseClassifier):
    """
    Clasificador que retorna la secuencia grabada, un frame por llamada.

    Al agotarse: vuelve al inicio si loop=True, si no retorna [] indefinidamente.
    """

    def __init__(self, frames: Sequence[ReplayFrame], loop: bool = False, delay_ms: float = 0.0):
        if delay_ms < 0:
            raise ConfigurationError(f"delay_ms must be >= 0, got {delay_ms}")

        self._frames = list(frames)
        self.loop = loop
        self.delay_ms = delay_ms
        self._index = 0
        self.calls = 0

    @property
    def exhausted(self) -> bool:
        return not self.loop and self._index >= len(self._frames)

    def __len__(self) -> int:
        return len(self._frames)

    async def infer(self, frame: np.ndarray) -> List[RawPrediction]:
        self.calls += 1

        if self.delay_ms > 0:
            await asyncio.sleep(self.delay_ms / 1000.0)

        if not self._frames:
            return []

        if self._index >= len(self._frames):
            if not self.loop:
                return []
            self._index = 0

        recorded = self._frames[self._index]
        self._index += 1

        if isinstance(recorded, str):
            raise ReplayClassifierError(recorded)

        return sorted(recorded, key=lambda p: p.probability, reverse=True)

    # ------------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------------

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ReplayClassifier':
        if not isinstance(data, dict):
            raise ConfigurationError(
                f"Replay document must be a mapping, got {type(data).__name__}"
            )

        raw_frames = data.get('frames')
        if not isinstance(raw_frames, list):
            raise ConfigurationError("Replay document must define a 'frames' list")

        frames = [_parse_frame(i, raw) for i, raw in enumerate(raw_frames)]

        return cls(
            frames=frames,
            loop=bool(data.get('loop', False)),
            delay_ms=float(data.get('delay_ms', 0.0)),
        )

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> 'ReplayClassifier':
        """
        Carga replay desde YAML/JSON.

        Raises:
            ConfigurationError: Archivo inexistente o malformado
        """
        replay_path = Path(path)
        if not replay_path.exists():
            raise ConfigurationError(f"Replay file not found: {replay_path}")

        try:
            with open(replay_path, 'r') as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid replay file {replay_path}: {e}") from e

        replay = cls.from_dict(data)
        logger.info(
            f"📼 Replay loaded: {len(replay)} frames from {replay_path} (loop={replay.loop})",
            extra={"component": "replay", "event": "replay_loaded", "frames": len(replay)}
        )
        return replay


def _parse_frame(index: int, raw: Any) -> ReplayFrame:
    if isinstance(raw, dict):
        if 'error' not in raw:
            raise ConfigurationError(
                f"Replay frame {index}: mapping entries must have an 'error' key"
            )
        return str(raw['error'])

    if not isinstance(raw, list):
        raise ConfigurationError(
            f"Replay frame {index}: expected a list of predictions, got {type(raw).__name__}"
        )

    predictions: List[RawPrediction] = []
    for item in raw:
        try:
            prediction = RawPrediction.from_dict(item)
        except (AttributeError, TypeError, ValueError) as e:
            raise ConfigurationError(f"Replay frame {index}: invalid prediction {item!r}: {e}") from e

        if not 0.0 <= prediction.probability <= 1.0:
            raise ConfigurationError(
                f"Replay frame {index}: probability must be in [0, 1], got {prediction.probability}"
            )
        predictions.append(prediction)

    return predictions


def load_replay(path: Optional[str]) -> Optional[ReplayClassifier]:
    """Helper: None si no hay path configurado."""
    if path is None:
        return None
    return ReplayClassifier.from_file(path)

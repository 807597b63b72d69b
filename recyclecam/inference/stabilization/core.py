"""
Label Stabilization Strategies
==============================

Estabilización temporal del label por-frame para suprimir flicker:
- none:     Sin estabilización (cada observación se confirma al instante)
- temporal: Rolling history + voto por mayoría (mode) con frecuencia mínima

Problema resuelto:
- El clasificador "parpadea" entre labels frame a frame
- Confianza muy variable en crops de baja resolución

Solución (temporal):
- DetectionHistory: deque FIFO de capacidad history_size (default 5)
- Mode = display name más frecuente en el history
- confirmed = mode no nulo y frecuencia >= min_frequency (default 2)

Tie-break (explícito y determinístico):
- Ante empate de frecuencia gana el display name observado MÁS RECIENTEMENTE.

Estado por sesión:
- SessionState encapsula history + contadores (sin singletons globales)
- Cada stabilizer tiene su propio SessionState; reset() lo descarta
"""

from abc import ABC, abstractmethod
from collections import Counter, deque
from dataclasses import dataclass, field
from typing import Any, Deque, Dict, Optional, Tuple
import logging

from ..lexicon import CategoryId
from ...errors import ConfigurationError

logger = logging.getLogger(__name__)


# ============================================================================
# Configuration
# ============================================================================

@dataclass
class StabilizationConfig:
    """Configuración unificada para estrategias de estabilización"""
    mode: str  # 'none', 'temporal'
    history_size: int = 5   # Capacidad del rolling history
    min_frequency: int = 2  # Ocurrencias mínimas del mode para confirmar


# ============================================================================
# Session State
# ============================================================================

@dataclass
class SessionState:
    """
    Estado mutable de UNA sesión (camera activa).

    Lifecycle:
    1. Creado al iniciar sesión (history vacío)
    2. Mutado solo por observe() del stabilizer dueño
    3. Descartado en reset() (teardown de la sesión)
    """
    history: Deque[str]
    categories: Dict[str, Optional[CategoryId]] = field(default_factory=dict)

    # Contadores para selección de tips en la UI
    no_detection_frames: int = 0
    low_confidence_frames: int = 0

    # Acumulados
    total_observed: int = 0
    total_missed: int = 0
    total_confirmed: int = 0

    @classmethod
    def create(cls, history_size: int) -> 'SessionState':
        return cls(history=deque(maxlen=history_size))


@dataclass(frozen=True)
class StableResult:
    """Decisión estabilizada: mode del history y si está confirmado."""
    category: Optional[CategoryId]
    display_name: Optional[str]
    frequency: int
    confirmed: bool


EMPTY_RESULT = StableResult(category=None, display_name=None, frequency=0, confirmed=False)


# ============================================================================
# Base Stabilizer (Abstract)
# ============================================================================

class BaseLabelStabilizer(ABC):
    """
    Clase base abstracta para estrategias de estabilización.

    Interface contract:
    - observe(): Registra la observación del frame, retorna decisión estabilizada
    - reset(): Descarta el estado de la sesión
    - get_stats(): Métricas para control plane / logs
    """

    def __init__(self, history_size: int = 5):
        self.history_size = history_size
        self._state = SessionState.create(history_size)

    @property
    def state(self) -> SessionState:
        return self._state

    @abstractmethod
    def observe(
        self,
        display_name: Optional[str],
        category: Optional[CategoryId] = None,
        low_confidence: bool = False,
    ) -> StableResult:
        """
        Registra la observación de un frame.

        Args:
            display_name: Nombre amigable aceptado este frame (None = sin detección)
            category: Categoría del display name (para reportar la del mode)
            low_confidence: Si la detección fue de baja confianza (contador de tips)

        Returns:
            StableResult con mode actual y flag confirmed
        """
        pass

    def reset(self):
        """Descarta history y contadores (teardown de sesión)."""
        self._state = SessionState.create(self.history_size)
        logger.info(
            "🔄 Stabilization state reset",
            extra={"component": "stabilization", "event": "state_reset"}
        )

    def _record(
        self,
        display_name: Optional[str],
        category: Optional[CategoryId],
        low_confidence: bool,
    ) -> None:
        """Actualiza history y contadores (compartido por todas las estrategias)."""
        state = self._state

        if display_name is None:
            state.no_detection_frames += 1
            state.total_missed += 1
            return

        state.history.append(display_name)
        if category is not None or display_name not in state.categories:
            state.categories[display_name] = category
        state.no_detection_frames = 0
        state.total_observed += 1

        if low_confidence:
            state.low_confidence_frames += 1
        else:
            state.low_confidence_frames = 0

    def get_stats(self) -> Dict[str, Any]:
        """Estadísticas de la sesión actual."""
        state = self._state
        stats: Dict[str, Any] = {
            'history': list(state.history),
            'history_size': self.history_size,
            'frequencies': dict(Counter(state.history)),
            'no_detection_frames': state.no_detection_frames,
            'low_confidence_frames': state.low_confidence_frames,
            'total_observed': state.total_observed,
            'total_missed': state.total_missed,
            'total_confirmed': state.total_confirmed,
        }

        if state.total_observed > 0:
            stats['confirm_ratio'] = state.total_confirmed / state.total_observed
        else:
            stats['confirm_ratio'] = 0.0

        return stats


# ============================================================================
# Temporal (mode vote) Stabilizer
# ============================================================================

class TemporalStabilizer(BaseLabelStabilizer):
    """
    Estabilización por voto de mayoría sobre un rolling history.

    Ejemplo (history_size=5, min_frequency=2):

    Frame 1: "Water Bottle" -> history=[WB]           mode=WB x1 -> SEEN
    Frame 2: "Pen"          -> history=[WB, Pen]      mode=Pen x1 (empate, más reciente) -> SEEN
    Frame 3: "Water Bottle" -> history=[WB, Pen, WB]  mode=WB x2 -> CONFIRMED
    Frame 4: (nada)         -> history sin cambios, no_detection_frames=1
    Frame 5..9: 5x "Pen"    -> WB evictado (FIFO), mode=Pen x5 -> CONFIRMED

    Complejidad: O(history_size) por frame (history_size ~5 -> despreciable)
    """

    def __init__(self, history_size: int = 5, min_frequency: int = 2):
        """
        Args:
            history_size: Capacidad del rolling history (FIFO)
            min_frequency: Ocurrencias mínimas del mode para confirmar
        """
        if history_size < 1:
            raise ConfigurationError(f"history_size must be >= 1, got {history_size}")
        if min_frequency < 1:
            raise ConfigurationError(f"min_frequency must be >= 1, got {min_frequency}")
        if min_frequency > history_size:
            raise ConfigurationError(
                f"min_frequency ({min_frequency}) must be <= history_size ({history_size}), "
                f"otherwise nothing can ever be confirmed"
            )

        super().__init__(history_size=history_size)
        self.min_frequency = min_frequency

        logger.info(
            f"TemporalStabilizer initialized: history_size={history_size}, min_frequency={min_frequency}"
        )

    def observe(
        self,
        display_name: Optional[str],
        category: Optional[CategoryId] = None,
        low_confidence: bool = False,
    ) -> StableResult:
        self._record(display_name, category, low_confidence)

        mode_name, frequency = self._mode()
        if mode_name is None:
            return EMPTY_RESULT

        confirmed = frequency >= self.min_frequency
        if confirmed and display_name is not None:
            self._state.total_confirmed += 1

        return StableResult(
            category=self._state.categories.get(mode_name),
            display_name=mode_name,
            frequency=frequency,
            confirmed=confirmed,
        )

    def _mode(self) -> Tuple[Optional[str], int]:
        """
        Display name más frecuente del history.

        Empate: gana el observado más recientemente (recorre el history
        desde el final y retorna el primero con la frecuencia máxima).
        """
        history = self._state.history
        if not history:
            return None, 0

        counts = Counter(history)
        best = max(counts.values())
        for name in reversed(history):
            if counts[name] == best:
                return name, best

        # Nunca debería llegar aquí
        return None, 0

    def get_stats(self) -> Dict[str, Any]:
        stats = super().get_stats()
        mode_name, frequency = self._mode()
        stats.update({
            'mode': 'temporal',
            'min_frequency': self.min_frequency,
            'mode_display_name': mode_name,
            'mode_frequency': frequency,
        })
        return stats


# ============================================================================
# No-op Stabilizer (Baseline)
# ============================================================================

class NoOpStabilizer(BaseLabelStabilizer):
    """
    Sin estabilización: cada observación no nula se confirma al instante.

    Baseline para comparar flicker con/sin estabilización. Mantiene history
    y contadores igual que temporal (las tips los necesitan).
    """

    def observe(
        self,
        display_name: Optional[str],
        category: Optional[CategoryId] = None,
        low_confidence: bool = False,
    ) -> StableResult:
        self._record(display_name, category, low_confidence)

        if display_name is None:
            return EMPTY_RESULT

        self._state.total_confirmed += 1
        return StableResult(
            category=category,
            display_name=display_name,
            frequency=1,
            confirmed=True,
        )

    def get_stats(self) -> Dict[str, Any]:
        stats = super().get_stats()
        last = self._state.history[-1] if self._state.history else None
        stats.update({
            'mode': 'none',
            'mode_display_name': last,
        })
        return stats


# ============================================================================
# Factory
# ============================================================================

def create_stabilization_strategy(
    config: StabilizationConfig,
) -> BaseLabelStabilizer:
    """
    Factory: valida configuración y crea estrategia de estabilización.

    Raises:
        ConfigurationError: Si configuración inválida
    """
    mode = config.mode.lower()

    if mode not in ['none', 'temporal']:
        raise ConfigurationError(
            f"Invalid stabilization mode: '{mode}'. "
            f"Supported: 'none', 'temporal'"
        )

    if mode == 'none':
        logger.info("🔲 Stabilization: NONE (baseline, no filtering)")
        return NoOpStabilizer(history_size=config.history_size)

    logger.info(
        f"⏱️ Stabilization: TEMPORAL "
        f"(history_size={config.history_size}, min_frequency={config.min_frequency})"
    )
    return TemporalStabilizer(
        history_size=config.history_size,
        min_frequency=config.min_frequency,
    )

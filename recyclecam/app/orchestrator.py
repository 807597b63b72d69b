"""
Frame Orchestrator
==================

Session state machine + loop secuencial por-frame.

    IDLE --start()--> ACTIVE --stop()--> STOPPED --start()--> ACTIVE ...

Por frame (step):
    FrameSource -> Classifier (await) -> top-K por probabilidad
      -> CategoryMatcher -> RegionScorer (target zone) -> Stabilizer
      -> ConfidencePresenter -> FrameResult -> sinks

Concurrencia:
- Un solo step en vuelo: run() awaitea cada step antes de agendar el siguiente
- Solo el event loop toca el estado de la sesión (sin locks)
- Generation check: el session_id se captura antes del await del clasificador;
  si al volver la sesión ya no es la misma (stop / nuevo start), el resultado
  se descarta SIN mutar estado
- Sin timeout sobre el clasificador: un clasificador colgado bloquea el loop
"""
import asyncio
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Sequence
import logging
import time

from ..errors import ClassifierFailure
from ..inference.classifiers import BaseClassifier
from ..inference.entities import FrameResult, RawPrediction, ScoredDetection
from ..inference.matching import CategoryMatcher
from ..inference.roi import REJECT_TOO_SMALL, Region, RegionScorer, TargetZone
from ..inference.sources import FrameSource
from ..inference.stabilization import BaseLabelStabilizer
from ..logging import (
    generate_trace_id,
    log_error_with_context,
    log_frame_result,
    log_stabilization_stats,
    trace_context,
)
from ..visualization.confidence import ConfidencePresenter
from ..visualization.tips import (
    TIP_LOW_CONFIDENCE,
    TIP_NO_OBJECT,
    TIP_SUCCESS,
    TIP_TOO_SMALL,
    tip_text_for,
)
from .watchdog import SessionWatchdog

logger = logging.getLogger(__name__)

FrameSink = Callable[[FrameResult], Any]


class SessionStatus(str, Enum):
    IDLE = "idle"
    ACTIVE = "active"
    STOPPED = "stopped"


class FrameOrchestrator:
    """
    Orquesta una sesión de clasificación estabilizada.

    Responsabilidad: lifecycle de la sesión + flujo por-frame
    - NO construye componentes (eso es del OrchestratorBuilder)
    - NO conoce MQTT (los sinks publican)
    """

    def __init__(
        self,
        classifier: BaseClassifier,
        source: FrameSource,
        stabilizer: BaseLabelStabilizer,
        matcher: Optional[CategoryMatcher] = None,
        scorer: Optional[RegionScorer] = None,
        target_zone: Optional[TargetZone] = None,
        presenter: Optional[ConfidencePresenter] = None,
        watchdog: Optional[SessionWatchdog] = None,
        sinks: Optional[Sequence[FrameSink]] = None,
        probability_floor: float = 0.05,
        low_confidence_threshold: float = 0.15,
        top_k: int = 3,
    ):
        if top_k < 1:
            raise ValueError(f"top_k must be >= 1, got {top_k}")

        self.classifier = classifier
        self.source = source
        self.stabilizer = stabilizer
        self.matcher = matcher or CategoryMatcher()
        self.scorer = scorer or RegionScorer()
        self.target_zone = target_zone or TargetZone()
        self.presenter = presenter or ConfidencePresenter()
        self.watchdog = watchdog or SessionWatchdog()
        self.sinks: List[FrameSink] = list(sinks or [])

        self.probability_floor = probability_floor
        self.low_confidence_threshold = low_confidence_threshold
        self.top_k = top_k

        self._status = SessionStatus.IDLE
        self._session_id: Optional[str] = None
        self._frame_counter = 0

    # ========================================================================
    # Lifecycle
    # ========================================================================

    @property
    def status(self) -> SessionStatus:
        return self._status

    @property
    def session_id(self) -> Optional[str]:
        return self._session_id

    @property
    def is_active(self) -> bool:
        return self._status is SessionStatus.ACTIVE

    def add_sink(self, sink: FrameSink):
        self.sinks.append(sink)

    def start(self) -> str:
        """
        Inicia una sesión nueva (history y contadores limpios).

        Returns:
            session_id de la sesión activa (la existente si ya estaba ACTIVE)
        """
        if self._status is SessionStatus.ACTIVE:
            logger.info(
                "⚠️ Session already active, start ignored",
                extra={
                    "component": "orchestrator",
                    "event": "start_ignored",
                    "session_id": self._session_id,
                }
            )
            return self._session_id

        self.stabilizer.reset()
        self._session_id = generate_trace_id("session")
        self._frame_counter = 0
        self._status = SessionStatus.ACTIVE
        self.watchdog.on_session_start(self._session_id)

        with trace_context(self._session_id):
            logger.info(
                "🎬 Session started",
                extra={
                    "component": "orchestrator",
                    "event": "session_started",
                    "session_id": self._session_id,
                    "classifier": self.classifier.name,
                }
            )
        return self._session_id

    def stop(self):
        """Detiene la sesión (idempotente). Descarta history y contadores."""
        if self._status is not SessionStatus.ACTIVE:
            logger.debug(
                f"Stop ignored (status={self._status.value})",
                extra={"component": "orchestrator", "event": "stop_ignored"}
            )
            return

        session_id = self._session_id
        with trace_context(session_id):
            log_stabilization_stats(logger, self.stabilizer.get_stats(), session_id=session_id)

            self._status = SessionStatus.STOPPED
            self._session_id = None
            self.stabilizer.reset()

            logger.info(
                "⏹️ Session stopped",
                extra={
                    "component": "orchestrator",
                    "event": "session_stopped",
                    "session_id": session_id,
                    "frames": self._frame_counter,
                }
            )

    def get_status(self) -> Dict[str, Any]:
        return {
            "status": self._status.value,
            "session_id": self._session_id,
            "frames": self._frame_counter,
        }

    def _is_current(self, session_id: Optional[str]) -> bool:
        return self._status is SessionStatus.ACTIVE and self._session_id == session_id

    # ========================================================================
    # Per-frame flow
    # ========================================================================

    async def step(self) -> Optional[FrameResult]:
        """
        Procesa UN frame.

        Returns:
            FrameResult emitido, o None si el frame se skipeó (sesión inactiva,
            fuente no lista, fallo del clasificador, sesión reemplazada)
        """
        if not self.is_active:
            return None

        session_id = self._session_id

        if not self.source.is_ready:
            self.watchdog.on_frame_skipped()
            logger.debug(
                "Frame source not ready, frame skipped",
                extra={"component": "orchestrator", "event": "frame_skipped"}
            )
            return None

        frame = self.source.read()
        frame_size = self.source.frame_size
        self._frame_counter += 1
        frame_id = self._frame_counter

        started = time.perf_counter()
        try:
            predictions = await self.classifier.infer(frame)
        except Exception as e:
            if not self._is_current(session_id):
                return None

            failure = ClassifierFailure(
                f"{self.classifier.name} failed on frame {frame_id}: {e}",
                frame_id=frame_id,
            )
            failure.__cause__ = e
            log_error_with_context(
                logger,
                message="❌ Classifier failure, frame skipped",
                exception=failure,
                component="orchestrator",
                event="classifier_failure",
                frame_id=frame_id,
                session_id=session_id,
            )
            self.watchdog.on_classifier_failure()
            return None

        if not self._is_current(session_id):
            logger.debug(
                "Stale classifier result discarded",
                extra={
                    "component": "orchestrator",
                    "event": "stale_result_discarded",
                    "frame_id": frame_id,
                    "session_id": session_id,
                }
            )
            return None

        self.watchdog.on_classifier_latency(time.perf_counter() - started)

        top = sorted(predictions, key=lambda p: p.probability, reverse=True)[:self.top_k]
        region = self.target_zone.region_for(frame_size)

        result = self._evaluate(frame_id, session_id, top, region)
        self._emit(result)
        return result

    def _evaluate(
        self,
        frame_id: int,
        session_id: str,
        top: List[RawPrediction],
        region: Region,
    ) -> FrameResult:
        matched_candidates = 0
        too_small = 0

        for prediction in top:
            match = self.matcher.match(prediction.label)
            if match is None:
                continue
            if prediction.probability <= self.probability_floor:
                continue

            matched_candidates += 1
            verdict = self.scorer.evaluate(region, prediction.probability)
            if not verdict.accepted:
                if verdict.reason == REJECT_TOO_SMALL:
                    too_small += 1
                continue

            detection = ScoredDetection(
                category=match.category,
                display_name=match.display_name,
                adjusted_score=verdict.adjusted_score,
            )
            return self._accepted(frame_id, session_id, prediction, detection)

        # Nada aceptado
        self.stabilizer.observe(None)
        display = self.presenter.present_empty()
        diagnostic_label = top[0].label if top else None

        if matched_candidates > 0 and too_small == matched_candidates:
            tip_key = TIP_TOO_SMALL
        else:
            tip_key = TIP_NO_OBJECT

        return FrameResult(
            frame_id=frame_id,
            session_id=session_id,
            category=None,
            display_name=None,
            raw_probability=None,
            adjusted_score=None,
            display_confidence_percent=display.percent,
            confidence_tier=display.tier,
            confirmed=False,
            tip_key=tip_key,
            tip_text=tip_text_for(tip_key, diagnostic_label=diagnostic_label),
            diagnostic_label=diagnostic_label,
            raw_label=diagnostic_label,
        )

    def _accepted(
        self,
        frame_id: int,
        session_id: str,
        prediction: RawPrediction,
        detection: ScoredDetection,
    ) -> FrameResult:
        low_confidence = prediction.probability < self.low_confidence_threshold
        stable = self.stabilizer.observe(
            detection.display_name,
            detection.category,
            low_confidence=low_confidence,
        )
        display = self.presenter.present(detection.adjusted_score)
        tip_key = TIP_LOW_CONFIDENCE if low_confidence else TIP_SUCCESS

        return FrameResult(
            frame_id=frame_id,
            session_id=session_id,
            category=detection.category,
            display_name=detection.display_name,
            raw_probability=prediction.probability,
            adjusted_score=detection.adjusted_score,
            display_confidence_percent=display.percent,
            confidence_tier=display.tier,
            confirmed=stable.confirmed,
            tip_key=tip_key,
            tip_text=tip_text_for(tip_key, display_name=detection.display_name),
            stable_category=stable.category,
            stable_display_name=stable.display_name,
            raw_label=prediction.label,
        )

    def _emit(self, result: FrameResult):
        self.watchdog.on_result(result.confirmed)
        log_frame_result(logger, result)

        for sink in self.sinks:
            try:
                sink(result)
            except Exception as e:
                log_error_with_context(
                    logger,
                    message="❌ Sink failed",
                    exception=e,
                    component="orchestrator",
                    event="sink_error",
                    sink=getattr(sink, '__name__', repr(sink)),
                    frame_id=result.frame_id,
                )

    # ========================================================================
    # Loop
    # ========================================================================

    async def run(self, max_frames: Optional[int] = None, tick_interval: float = 0.0) -> int:
        """
        Loop secuencial de la sesión actual.

        Termina cuando la sesión deja de estar ACTIVE (o es reemplazada por
        otra) o después de max_frames steps.

        Returns:
            Cantidad de steps ejecutados
        """
        session_id = self._session_id
        steps = 0

        with trace_context(session_id):
            while self._is_current(session_id):
                if max_frames is not None and steps >= max_frames:
                    break

                await self.step()
                steps += 1

                # sleep(0) también cede el loop (comandos de control)
                await asyncio.sleep(tick_interval)

        logger.debug(
            f"Session loop finished after {steps} steps",
            extra={"component": "orchestrator", "event": "loop_finished", "steps": steps}
        )
        return steps

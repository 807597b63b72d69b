"""
Orchestrator Builder
====================

Builder para construir el FrameOrchestrator con todas sus dependencias a
partir de RecycleCamConfig.

Responsabilidad:
- Config -> componentes (lexicon, matcher, scorer, target zone, stabilizer, presenter)
- Sinks (MQTT si hay data plane, logging si no)
- El controller solo usa el Builder (no conoce detalles de construcción)
"""
from typing import Callable, List, Optional, TYPE_CHECKING
import logging

from ..config import RecycleCamConfig
from ..errors import ConfigurationError
from ..data import create_logging_sink, create_mqtt_sink
from ..inference.classifiers import BaseClassifier, load_replay
from ..inference.entities import FrameResult
from ..inference.lexicon import load_lexicon
from ..inference.matching import CategoryMatcher
from ..inference.roi import RegionScorer, TargetZone
from ..inference.sources import FrameSource, create_frame_source
from ..inference.stabilization import (
    BaseLabelStabilizer,
    StabilizationConfig,
    create_stabilization_strategy,
)
from ..visualization.confidence import ConfidencePresenter
from .orchestrator import FrameOrchestrator
from .watchdog import SessionWatchdog

# Type-only imports (no circular import en runtime)
if TYPE_CHECKING:
    from ..data import MQTTDataPlane

logger = logging.getLogger(__name__)


class OrchestratorBuilder:
    """
    Usage:
        builder = OrchestratorBuilder(config)
        orchestrator = builder.build(
            classifier=ReplayClassifier.from_file("replay.yaml"),
            data_plane=data_plane,      # opcional
            watchdog=watchdog,
        )
    """

    def __init__(self, config: RecycleCamConfig):
        self.config = config
        self.stabilizer: Optional[BaseLabelStabilizer] = None  # Se crea en build()

    def build_matcher(self) -> CategoryMatcher:
        lexicon = load_lexicon(self.config.lexicon.path)
        return CategoryMatcher(lexicon)

    def build_scorer(self) -> RegionScorer:
        region = self.config.region
        return RegionScorer(
            min_size_ratio=region.min_size_ratio,
            max_size_ratio=region.max_size_ratio,
            ideal_size_min=region.ideal_size_min,
            ideal_size_max=region.ideal_size_max,
            center_boost_max=region.center_boost_max,
            size_boost_flat=region.size_boost_flat,
        )

    def build_target_zone(self) -> TargetZone:
        return TargetZone(scale=self.config.region.target_zone_scale)

    def build_stabilizer(self) -> BaseLabelStabilizer:
        settings = self.config.stabilization
        self.stabilizer = create_stabilization_strategy(
            StabilizationConfig(
                mode=settings.mode,
                history_size=settings.history_size,
                min_frequency=settings.min_frequency,
            )
        )
        return self.stabilizer

    def build_presenter(self) -> ConfidencePresenter:
        presentation = self.config.presentation
        return ConfidencePresenter(
            display_amplification=presentation.display_amplification,
            tier_low_max=presentation.tier_low_max,
            tier_medium_max=presentation.tier_medium_max,
        )

    def build_classifier(self, replay_path: Optional[str] = None) -> BaseClassifier:
        """
        Clasificador incluido: ReplayClassifier.

        Raises:
            ConfigurationError: Si no hay replay configurado
        """
        classifier = load_replay(replay_path or self.config.replay.path)
        if classifier is None:
            raise ConfigurationError(
                "No classifier configured: set replay.path in config or pass --replay"
            )
        return classifier

    def build_source(self) -> FrameSource:
        replay = self.config.replay
        return create_frame_source(width=replay.frame_width, height=replay.frame_height)

    def build_sinks(self, data_plane: Optional['MQTTDataPlane'] = None) -> List[Callable[[FrameResult], None]]:
        """MQTT sink si hay data plane, si no logging sink (resultados visibles en logs)."""
        if data_plane is not None:
            logger.info("📤 Sinks: mqtt")
            return [create_mqtt_sink(data_plane)]

        logger.info("🧾 Sinks: logging (MQTT disabled)")
        return [create_logging_sink()]

    def build(
        self,
        classifier: BaseClassifier,
        source: Optional[FrameSource] = None,
        data_plane: Optional['MQTTDataPlane'] = None,
        watchdog: Optional[SessionWatchdog] = None,
    ) -> FrameOrchestrator:
        orchestrator_settings = self.config.orchestrator

        orchestrator = FrameOrchestrator(
            classifier=classifier,
            source=source or self.build_source(),
            stabilizer=self.build_stabilizer(),
            matcher=self.build_matcher(),
            scorer=self.build_scorer(),
            target_zone=self.build_target_zone(),
            presenter=self.build_presenter(),
            watchdog=watchdog,
            sinks=self.build_sinks(data_plane),
            probability_floor=orchestrator_settings.probability_floor,
            low_confidence_threshold=orchestrator_settings.low_confidence_threshold,
            top_k=orchestrator_settings.top_k,
        )

        logger.info(
            "🏗️ Orchestrator built",
            extra={
                "component": "builder",
                "event": "orchestrator_built",
                "classifier": classifier.name,
                "stabilization_mode": self.config.stabilization.mode,
                "lexicon_patterns": orchestrator.matcher.lexicon.pattern_count,
            }
        )
        return orchestrator

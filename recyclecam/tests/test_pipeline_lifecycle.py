"""
Pipeline Lifecycle Tests
========================

Invariantes testeadas:
1. Run local (sin broker): replay -> sesión -> max_frames -> shutdown limpio
2. Sin clasificador configurado -> ConfigurationError (fail fast)
3. Builder respeta la config (modo de estabilización, sinks)
4. Logs JSON con nombres de campo estables + trace_id
"""
import json
import logging

import pytest

from recyclecam.app.builder import OrchestratorBuilder
from recyclecam.app.controller import RecycleCamController, build_parser
from recyclecam.config import RecycleCamConfig
from recyclecam.errors import ConfigurationError
from recyclecam.inference.classifiers import ReplayClassifier
from recyclecam.inference.stabilization import NoOpStabilizer, TemporalStabilizer
from recyclecam.logging import RecycleCamJsonFormatter, generate_trace_id, get_trace_id, trace_context

REPLAY = (
    "frames:\n"
    "  - - {label: water bottle, probability: 0.5}\n"
    "  - - {label: water bottle, probability: 0.5}\n"
    "  - []\n"
)


@pytest.mark.integration
class TestLocalRun:

    def test_replay_session_runs_to_frame_limit(self, tmp_path):
        replay_file = tmp_path / "replay.yaml"
        replay_file.write_text(REPLAY, encoding="utf-8")
        config = RecycleCamConfig(mqtt={"enabled": False}, orchestrator={"max_frames": 3})
        controller = RecycleCamController(config, replay_path=str(replay_file))

        assert controller.run() is True

        report = controller.watchdog.get_report()
        assert report.results == 3
        assert report.confirmed_frames == 1
        assert controller.control_plane is None
        assert controller.data_plane is None
        assert not controller.orchestrator.is_active

    def test_missing_classifier_fails_fast(self):
        config = RecycleCamConfig(mqtt={"enabled": False})
        controller = RecycleCamController(config)

        with pytest.raises(ConfigurationError):
            controller.run()

    def test_cli_flags(self):
        args = build_parser().parse_args(["--replay", "r.yaml", "--no-mqtt", "--max-frames", "10"])

        assert args.replay == "r.yaml"
        assert args.no_mqtt is True
        assert args.max_frames == 10
        assert args.config is None


@pytest.mark.unit
class TestOrchestratorBuilder:

    def test_temporal_by_default(self):
        builder = OrchestratorBuilder(RecycleCamConfig())

        orchestrator = builder.build(classifier=ReplayClassifier([]))

        assert isinstance(orchestrator.stabilizer, TemporalStabilizer)
        assert builder.stabilizer is orchestrator.stabilizer
        assert [sink.__name__ for sink in orchestrator.sinks] == ['logging_sink']

    def test_no_stabilization_mode(self):
        config = RecycleCamConfig(stabilization={"mode": "none"})

        orchestrator = OrchestratorBuilder(config).build(classifier=ReplayClassifier([]))

        assert isinstance(orchestrator.stabilizer, NoOpStabilizer)

    def test_settings_reach_components(self):
        config = RecycleCamConfig(
            orchestrator={"top_k": 5, "probability_floor": 0.1},
            presentation={"display_amplification": 1.0},
            region={"target_zone_scale": 0.5},
        )

        orchestrator = OrchestratorBuilder(config).build(classifier=ReplayClassifier([]))

        assert orchestrator.top_k == 5
        assert orchestrator.probability_floor == 0.1
        assert orchestrator.presenter.display_amplification == 1.0
        assert orchestrator.target_zone.scale == 0.5

    def test_custom_lexicon_path(self, tmp_path):
        lexicon_file = tmp_path / "lexicon.yaml"
        lexicon_file.write_text("plastic: [bottle]\n", encoding="utf-8")
        config = RecycleCamConfig(lexicon={"path": str(lexicon_file)})

        orchestrator = OrchestratorBuilder(config).build(classifier=ReplayClassifier([]))

        assert orchestrator.matcher.lexicon.pattern_count == 1

    def test_classifier_from_configured_replay(self, tmp_path):
        replay_file = tmp_path / "replay.yaml"
        replay_file.write_text(REPLAY, encoding="utf-8")
        config = RecycleCamConfig(replay={"path": str(replay_file)})

        classifier = OrchestratorBuilder(config).build_classifier()

        assert isinstance(classifier, ReplayClassifier)
        assert len(classifier) == 3

    def test_replay_flag_overrides_config(self, tmp_path):
        replay_file = tmp_path / "flag.yaml"
        replay_file.write_text("frames: [[]]\n", encoding="utf-8")
        config = RecycleCamConfig(replay={"path": str(tmp_path / "missing.yaml")})

        classifier = OrchestratorBuilder(config).build_classifier(str(replay_file))

        assert len(classifier) == 1

    def test_classifier_requires_replay(self):
        with pytest.raises(ConfigurationError):
            OrchestratorBuilder(RecycleCamConfig()).build_classifier()


@pytest.mark.unit
class TestStructuredLogging:

    def format_record(self, **extra):
        formatter = RecycleCamJsonFormatter(
            '%(timestamp)s %(levelname)s %(name)s %(message)s',
            timestamp=True,
            global_fields={"environment": "test"},
        )
        logger = logging.getLogger("recyclecam.test")
        record = logger.makeRecord(
            logger.name, logging.INFO, __file__, 1, "🎬 Session started", None, None, extra=extra,
        )
        return json.loads(formatter.format(record))

    def test_stable_field_names(self):
        payload = self.format_record(component="orchestrator")

        assert payload["level"] == "INFO"
        assert payload["logger"] == "recyclecam.test"
        assert payload["message"] == "🎬 Session started"
        assert payload["component"] == "orchestrator"
        assert payload["environment"] == "test"
        assert "timestamp" in payload

    def test_trace_id_injected(self):
        trace_id = generate_trace_id("session")

        with trace_context(trace_id):
            payload = self.format_record()

        assert payload["trace_id"] == trace_id

    def test_trace_context_restored(self):
        with trace_context("outer"):
            with trace_context("inner"):
                assert get_trace_id() == "inner"
            assert get_trace_id() == "outer"

        assert get_trace_id() is None

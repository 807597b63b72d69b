"""
MQTT Control Plane Command Tests
================================

Invariantes testeadas:
1. Comandos case-insensitive, desconocidos -> CommandNotAvailableError
2. Payload inválido / comando desconocido nunca rompe el network thread
3. Comandos se marshallean al event loop (call_soon_threadsafe)
4. Comandos opcionales (stabilization_stats) solo si la capacidad existe
5. Restart con un frame en vuelo: nunca dos inferencias concurrentes
"""
import asyncio
import json
from unittest.mock import Mock

import paho.mqtt.client as mqtt
import pytest

from recyclecam.app.controller import RecycleCamController
from recyclecam.config import RecycleCamConfig
from recyclecam.control import CommandNotAvailableError, CommandRegistry, MQTTControlPlane, cli
from recyclecam.inference.classifiers import BaseClassifier, ReplayClassifier


def mqtt_message(payload: bytes, topic: str = "recyclecam/control/commands"):
    return Mock(payload=payload, topic=topic)


@pytest.mark.mqtt
class TestCommandRegistry:

    def test_register_and_execute(self):
        registry = CommandRegistry()
        handler = Mock(return_value="ok")
        registry.register('start', handler, "Start a new session")

        assert registry.execute('start') == "ok"
        handler.assert_called_once()

    def test_commands_are_case_insensitive(self):
        registry = CommandRegistry()
        handler = Mock()
        registry.register('Start', handler)

        registry.execute('START')

        assert registry.is_available('start')
        handler.assert_called_once()

    def test_unknown_command_lists_available(self):
        registry = CommandRegistry()
        registry.register('start', Mock())
        registry.register('stop', Mock())

        with pytest.raises(CommandNotAvailableError) as exc_info:
            registry.execute('pause')

        assert "start, stop" in str(exc_info.value)

    def test_help_and_len(self):
        registry = CommandRegistry()
        registry.register('status', Mock(), "Publish current status")

        assert registry.get_help() == {'status': "Publish current status"}
        assert registry.available_commands == {'status'}
        assert len(registry) == 1

    def test_re_register_replaces_handler(self):
        registry = CommandRegistry()
        first, second = Mock(), Mock()
        registry.register('stop', first)
        registry.register('stop', second)

        registry.execute('stop')

        first.assert_not_called()
        second.assert_called_once()


@pytest.mark.mqtt
class TestControlPlaneMessages:

    @pytest.fixture
    def plane(self):
        plane = MQTTControlPlane(broker_host="localhost")
        plane.client = Mock()
        return plane

    def test_command_dispatched(self, plane):
        handler = Mock()
        plane.command_registry.register('start', handler)

        plane._on_message(None, None, mqtt_message(b'{"command": "START"}'))

        handler.assert_called_once()

    def test_unknown_command_does_not_raise(self, plane):
        plane.command_registry.register('start', Mock())
        plane._on_message(None, None, mqtt_message(b'{"command": "pause"}'))

    @pytest.mark.parametrize("payload", [b"not json", b'"start"', b"\xff\xfe"])
    def test_invalid_payload_ignored(self, plane, payload):
        handler = Mock()
        plane.command_registry.register('start', handler)

        plane._on_message(None, None, mqtt_message(payload))

        handler.assert_not_called()

    def test_failing_handler_does_not_raise(self, plane):
        plane.command_registry.register('start', Mock(side_effect=RuntimeError("boom")))
        plane._on_message(None, None, mqtt_message(b'{"command": "start"}'))

    def test_publish_status_is_retained(self, plane):
        plane.publish_status("running", session_id="session-abc")

        args, kwargs = plane.client.publish.call_args
        assert args[0] == "recyclecam/control/status"
        assert kwargs["retain"] is True
        assert kwargs["qos"] == 1

        message = json.loads(args[1])
        assert message["status"] == "running"
        assert message["session_id"] == "session-abc"
        assert message["client_id"] == "recyclecam_control"


class InFlightCountingClassifier(BaseClassifier):
    """Clasificador lento que registra cuántas inferencias corren a la vez."""

    def __init__(self, delay: float):
        self.delay = delay
        self.calls = 0
        self.in_flight = 0
        self.max_in_flight = 0

    async def infer(self, frame):
        self.calls += 1
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(self.delay)
            return []
        finally:
            self.in_flight -= 1


def controller_with(classifier: BaseClassifier) -> RecycleCamController:
    """Controller con orchestrator real y planes mockeados."""
    controller = RecycleCamController(RecycleCamConfig())
    controller.orchestrator = controller.builder.build(classifier=classifier)
    controller.control_plane = Mock()
    controller.control_plane.command_registry = CommandRegistry()
    return controller


@pytest.fixture
def controller():
    return controller_with(ReplayClassifier([], loop=True))


@pytest.mark.mqtt
class TestControllerCommandWiring:

    def test_core_commands_registered(self, controller):
        controller._setup_control_callbacks()

        assert controller.control_plane.command_registry.available_commands == {
            'start', 'stop', 'status', 'metrics', 'shutdown', 'stabilization_stats',
        }

    def test_stabilization_stats_requires_stabilizer(self, controller):
        """
        Invariante: comandos opcionales solo si la capacidad existe.
        """
        controller.builder.stabilizer = None
        controller._setup_control_callbacks()

        assert not controller.control_plane.command_registry.is_available('stabilization_stats')

    def test_commands_marshalled_to_event_loop(self, controller):
        controller.loop = Mock()
        controller._setup_control_callbacks()

        controller.control_plane.command_registry.execute('stop')

        controller.loop.call_soon_threadsafe.assert_called_once_with(controller._handle_stop)

    def test_command_before_loop_is_ignored(self, controller):
        controller._setup_control_callbacks()
        controller.control_plane.command_registry.execute('start')

        assert not controller.orchestrator.is_active


@pytest.mark.mqtt
class TestControllerHandlers:

    def test_start_stop_cycle(self, controller):
        async def scenario():
            controller._handle_start()
            session_id = controller.orchestrator.session_id

            assert controller.orchestrator.is_active
            controller.control_plane.publish_status.assert_called_with("running", session_id=session_id)

            await asyncio.sleep(0)
            controller._handle_stop()
            await controller._session_task

        asyncio.run(scenario())

        assert not controller.orchestrator.is_active
        controller.control_plane.publish_status.assert_called_with("stopped", session_id=None)

    def test_restart_waits_for_in_flight_frame(self):
        """
        Invariante: un solo infer en vuelo; un START justo después de STOP
        espera que termine el frame de la sesión anterior.
        """
        classifier = InFlightCountingClassifier(delay=0.05)
        controller = controller_with(classifier)

        async def scenario():
            controller._handle_start()
            first = controller.orchestrator.session_id
            await asyncio.sleep(0.01)

            controller._handle_stop()
            controller._handle_start()
            assert not controller.orchestrator.is_active

            await asyncio.sleep(0.12)
            assert controller.orchestrator.is_active
            assert controller.orchestrator.session_id != first

            controller._handle_stop()
            await controller._session_task

        asyncio.run(scenario())

        assert classifier.max_in_flight == 1
        assert classifier.calls >= 2

    def test_stop_cancels_pending_start(self):
        classifier = InFlightCountingClassifier(delay=0.05)
        controller = controller_with(classifier)

        async def scenario():
            controller._handle_start()
            await asyncio.sleep(0.01)

            controller._handle_stop()
            controller._handle_start()
            controller._handle_stop()
            await controller._session_task

        asyncio.run(scenario())

        assert not controller.orchestrator.is_active
        assert classifier.calls == 1

    def test_status_publishes_orchestrator_state(self, controller):
        controller._handle_status()
        controller.control_plane.publish_status.assert_called_with("idle", session_id=None)

    def test_metrics_without_data_plane_is_noop(self, controller):
        controller._handle_metrics()

    def test_metrics_published_through_data_plane(self, controller):
        controller.data_plane = Mock()
        controller._handle_metrics()
        controller.data_plane.publish_metrics.assert_called_once()

    def test_shutdown_sets_event(self, controller):
        async def scenario():
            controller.shutdown_event = asyncio.Event()
            controller.orchestrator.start()

            controller._handle_shutdown()

            assert controller.shutdown_event.is_set()

        asyncio.run(scenario())
        assert not controller.orchestrator.is_active


@pytest.mark.mqtt
class TestCommandCli:

    def test_unknown_command_rejected(self):
        with pytest.raises(SystemExit):
            cli.build_parser().parse_args(["pause"])

    def test_send_command(self, monkeypatch):
        client = Mock()
        client.publish.return_value = Mock(rc=mqtt.MQTT_ERR_SUCCESS)
        monkeypatch.setattr(cli.mqtt, "Client", Mock(return_value=client))

        assert cli.send_command("localhost", 1883, "recyclecam/control/commands", "stop") is True

        args, kwargs = client.publish.call_args
        assert args[0] == "recyclecam/control/commands"
        assert json.loads(args[1]) == {"command": "stop"}
        assert kwargs["qos"] == 1
        client.disconnect.assert_called_once()

    def test_connection_error(self, monkeypatch):
        client = Mock()
        client.connect.side_effect = ConnectionRefusedError("refused")
        monkeypatch.setattr(cli.mqtt, "Client", Mock(return_value=client))

        assert cli.send_command("localhost", 1883, "recyclecam/control/commands", "stop") is False
        client.publish.assert_not_called()

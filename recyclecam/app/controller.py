"""
RecycleCam Controller
=====================

Control Plane: lifecycle de la sesión (start/stop/status/...) vía MQTT
Data Plane: publica cada FrameResult y métricas vía MQTT

Thread model:
- El FrameOrchestrator corre en un asyncio event loop (un step a la vez)
- Los comandos llegan en el network thread de paho y se marshallean al
  loop con call_soon_threadsafe: solo el loop toca el estado de la sesión
- START tras STOP espera el task de la sesión anterior (nunca dos infer en vuelo)
"""
import argparse
import asyncio
import signal
import sys
import logging
from pathlib import Path
from typing import Callable, Optional

from dotenv import load_dotenv
from pydantic import ValidationError

from ..config import EnvironmentSettings, RecycleCamConfig
from ..control import MQTTControlPlane
from ..data import MQTTDataPlane
from ..errors import ConfigurationError
from ..logging import log_stabilization_stats, setup_logging
from .builder import OrchestratorBuilder
from .orchestrator import FrameOrchestrator
from .watchdog import SessionWatchdog

# Logger (será configurado en main() con config values)
logger = logging.getLogger(__name__)


class RecycleCamController:
    """
    Controlador de la app: planes MQTT + orchestrator + lifecycle del proceso.

    Responsabilidad: orquestación y lifecycle
    - Setup de componentes (delega construcción a OrchestratorBuilder)
    - Comandos de control -> event loop
    - Signal handling (Ctrl+C) y cleanup
    """

    def __init__(self, config: RecycleCamConfig, replay_path: Optional[str] = None):
        self.config = config
        self.replay_path = replay_path
        self.builder = OrchestratorBuilder(config)

        # Componentes (creados en setup)
        self.orchestrator: Optional[FrameOrchestrator] = None
        self.control_plane: Optional[MQTTControlPlane] = None
        self.data_plane: Optional[MQTTDataPlane] = None
        self.watchdog = SessionWatchdog()

        # Lifecycle (el loop y el event se crean en run_async)
        self.loop: Optional[asyncio.AbstractEventLoop] = None
        self.shutdown_event: Optional[asyncio.Event] = None
        self._session_task: Optional[asyncio.Task] = None
        self._start_pending = False

    # ========================================================================
    # Setup
    # ========================================================================

    def setup(self) -> bool:
        """
        Construye orchestrator y conecta planes MQTT.

        Returns:
            bool: True si setup exitoso, False si falla una conexión

        Raises:
            ConfigurationError: lexicon / replay inválidos (fatal)
        """
        logger.info("🚀 Inicializando RecycleCam...")
        mqtt_settings = self.config.mqtt

        # 1. Data Plane
        if mqtt_settings.enabled:
            logger.info("📡 Configurando Data Plane...")
            self.data_plane = MQTTDataPlane(
                broker_host=mqtt_settings.broker.host,
                broker_port=mqtt_settings.broker.port,
                data_topic=mqtt_settings.topics.data,
                metrics_topic=mqtt_settings.topics.metrics,
                username=mqtt_settings.broker.username,
                password=mqtt_settings.broker.password,
                qos=mqtt_settings.qos.data,
            )
            if not self.data_plane.connect(timeout=10):
                logger.error("❌ No se pudo conectar Data Plane")
                return False
            self.data_plane.set_watchdog(self.watchdog)

        # 2. Orchestrator (DELEGADO A BUILDER)
        classifier = self.builder.build_classifier(self.replay_path)
        self.orchestrator = self.builder.build(
            classifier=classifier,
            data_plane=self.data_plane,
            watchdog=self.watchdog,
        )

        # 3. Control Plane
        if mqtt_settings.enabled:
            logger.info("🎮 Configurando Control Plane...")
            self.control_plane = MQTTControlPlane(
                broker_host=mqtt_settings.broker.host,
                broker_port=mqtt_settings.broker.port,
                command_topic=mqtt_settings.topics.control_commands,
                status_topic=mqtt_settings.topics.control_status,
                username=mqtt_settings.broker.username,
                password=mqtt_settings.broker.password,
                qos=mqtt_settings.qos.control,
            )
            self._setup_control_callbacks()

            if not self.control_plane.connect(timeout=10):
                logger.error("❌ No se pudo conectar Control Plane")
                return False

        logger.info("✅ Setup completado")
        return True

    def _setup_control_callbacks(self):
        """Registra comandos; cada handler corre en el event loop."""
        registry = self.control_plane.command_registry

        registry.register('start', self._on_loop(self._handle_start), "Inicia una nueva sesión")
        registry.register('stop', self._on_loop(self._handle_stop), "Detiene la sesión activa")
        registry.register('status', self._on_loop(self._handle_status), "Publica el estado actual")
        registry.register('metrics', self._on_loop(self._handle_metrics), "Publica métricas de la sesión")
        registry.register('shutdown', self._on_loop(self._handle_shutdown), "Detiene y finaliza el proceso")

        if self.builder.stabilizer is not None:
            registry.register(
                'stabilization_stats',
                self._on_loop(self._handle_stabilization_stats),
                "Loguea estadísticas de estabilización",
            )

    def _on_loop(self, handler: Callable[[], None]) -> Callable[[], None]:
        """Handler invocable desde cualquier thread (se agenda en el event loop)."""
        def dispatch():
            if self.loop is None:
                logger.warning(f"⚠️ Event loop no está corriendo, '{handler.__name__}' ignorado")
                return
            self.loop.call_soon_threadsafe(handler)

        dispatch.__name__ = f"dispatch_{handler.__name__}"
        return dispatch

    # ========================================================================
    # Command handlers (event loop)
    # ========================================================================

    def _publish_status(self, status: str, session_id: Optional[str] = None):
        if self.control_plane is not None:
            self.control_plane.publish_status(status, session_id=session_id)

    def _handle_start(self):
        logger.info("▶️ Comando START recibido")
        if self.orchestrator.is_active:
            self.orchestrator.start()  # no-op logueado
            return

        if self._start_pending:
            logger.info("⏳ START ya pendiente, ignorado")
            return

        previous = self._session_task
        if previous is not None and not previous.done():
            # Un step de la sesión anterior sigue en vuelo: un solo infer a la vez
            logger.info("⏳ Esperando que termine el frame en vuelo de la sesión anterior")
            self._start_pending = True
            self._session_task = asyncio.ensure_future(self._start_after(previous))
            return

        session_id = self.orchestrator.start()
        self._session_task = asyncio.ensure_future(self._run_session(session_id))
        self._publish_status("running", session_id)

    async def _start_after(self, previous: asyncio.Task):
        try:
            await asyncio.wait([previous])
        except asyncio.CancelledError:
            previous.cancel()
            raise

        # STOP / SHUTDOWN llegó mientras esperábamos
        if not self._start_pending:
            return
        self._start_pending = False

        session_id = self.orchestrator.start()
        self._publish_status("running", session_id)
        await self._run_session(session_id)

    def _handle_stop(self):
        logger.info("⏹️ Comando STOP recibido")
        self._start_pending = False
        self.orchestrator.stop()
        self._publish_status("stopped")

    def _handle_status(self):
        logger.info("📋 Comando STATUS recibido")
        status = self.orchestrator.get_status()
        self._publish_status(status["status"], status["session_id"])

    def _handle_metrics(self):
        logger.info("📊 Comando METRICS recibido")
        if self.data_plane is None:
            logger.warning("⚠️ Data Plane deshabilitado, no se publican métricas")
            return
        self.data_plane.publish_metrics()

    def _handle_stabilization_stats(self):
        logger.info("📊 Comando STABILIZATION_STATS recibido")
        log_stabilization_stats(
            logger,
            self.orchestrator.stabilizer.get_stats(),
            session_id=self.orchestrator.session_id,
        )

    def _handle_shutdown(self):
        logger.info("🛑 Comando SHUTDOWN recibido")
        self._start_pending = False
        self.orchestrator.stop()
        self._publish_status("stopped")
        self.shutdown_event.set()

    # ========================================================================
    # Run
    # ========================================================================

    async def _run_session(self, session_id: str):
        orchestrator_settings = self.config.orchestrator
        await self.orchestrator.run(
            max_frames=orchestrator_settings.max_frames,
            tick_interval=orchestrator_settings.tick_interval,
        )

        # Terminó por max_frames (la sesión sigue siendo la misma)
        if self.orchestrator.session_id == session_id:
            logger.info(f"🏁 Límite de frames alcanzado ({orchestrator_settings.max_frames})")
            self.orchestrator.stop()
            self._publish_status("stopped")

            # Sin control plane nadie puede reiniciar la sesión
            if self.control_plane is None:
                self.shutdown_event.set()

    async def run_async(self) -> bool:
        """Setup + espera hasta shutdown (comando, señal o fin de sesión local)."""
        self.loop = asyncio.get_running_loop()
        self.shutdown_event = asyncio.Event()

        try:
            if not self.setup():
                logger.error("❌ Setup falló")
                return False

            self._install_signal_handlers()
            self._log_banner()

            if self.config.orchestrator.auto_start:
                self._handle_start()

            await self.shutdown_event.wait()
            return True
        finally:
            await self.cleanup()

    def run(self) -> bool:
        return asyncio.run(self.run_async())

    def _install_signal_handlers(self):
        for sig in (signal.SIGINT, signal.SIGTERM):
            try:
                self.loop.add_signal_handler(sig, self._signal_handler)
            except (NotImplementedError, RuntimeError):
                # Windows / loop fuera del main thread
                logger.debug(f"Signal handler para {sig.name} no instalado")

    def _signal_handler(self):
        logger.info("⚠️ Señal de terminación recibida...")
        self.shutdown_event.set()

    def _log_banner(self):
        logger.info("=" * 70)
        logger.info("🎬 RecycleCam activo y corriendo")
        logger.info("=" * 70)
        if self.control_plane is not None:
            logger.info(f"📡 Control Topic: {self.config.mqtt.topics.control_commands}")
            logger.info(f"📊 Data Topic: {self.config.mqtt.topics.data}")
            logger.info("💡 Comandos MQTT disponibles:")
            for command, description in sorted(self.control_plane.command_registry.get_help().items()):
                logger.info(f'   {command.upper()}: {{"command": "{command}"}} - {description}')
        else:
            logger.info("🧾 MQTT deshabilitado: los resultados van al log")
        logger.info("⌨️  Presiona Ctrl+C para salir")
        logger.info("=" * 70)

    async def cleanup(self):
        """Detiene la sesión, cancela el loop de frames y desconecta los planes."""
        logger.info("🧹 Limpiando recursos...")

        self._start_pending = False
        if self.orchestrator is not None:
            self.orchestrator.stop()

        if self._session_task is not None and not self._session_task.done():
            self._session_task.cancel()
            try:
                await self._session_task
            except asyncio.CancelledError:
                logger.debug("Task de sesión cancelada")

        if self.control_plane:
            try:
                self.control_plane.disconnect()
                logger.info("✅ Control Plane desconectado")
            except Exception as e:
                logger.error(f"❌ Error desconectando Control Plane: {e}")

        if self.data_plane:
            try:
                stats = self.data_plane.get_stats()
                logger.info(f"📊 Data Plane stats: {stats}")
                self.data_plane.disconnect()
                logger.info("✅ Data Plane desconectado")
            except Exception as e:
                logger.error(f"❌ Error desconectando Data Plane: {e}")

        report = self.watchdog.get_report()
        logger.info(
            "👋 Hasta luego!",
            extra={"component": "controller", "event": "shutdown", "metrics": report.to_dict()}
        )


# ============================================================================
# MAIN
# ============================================================================

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="recyclecam",
        description="Stabilized waste classification with MQTT control"
    )
    parser.add_argument(
        "--config",
        default=None,
        help="YAML config path (default: $RECYCLECAM_CONFIG_PATH or config/recyclecam/config.yaml)"
    )
    parser.add_argument(
        "--replay",
        default=None,
        help="Recorded predictions file (overrides replay.path)"
    )
    parser.add_argument(
        "--no-mqtt",
        action="store_true",
        help="Run locally without broker (results are logged)"
    )
    parser.add_argument(
        "--max-frames",
        type=int,
        default=None,
        help="Stop the session after N frames"
    )
    return parser


def main(argv=None):
    """Punto de entrada principal"""
    load_dotenv()

    args = build_parser().parse_args(argv)
    env = EnvironmentSettings()
    config_path = args.config or env.config_path

    try:
        if Path(config_path).exists():
            config = RecycleCamConfig.from_yaml(config_path)
            print(f"✅ Config loaded and validated from {config_path}")
        else:
            config = RecycleCamConfig()
            print(f"⚠️  Config file not found ({config_path}), using defaults")
    except ValidationError as e:
        # Fail fast con mensaje claro
        print("❌ Invalid configuration:")
        for error in e.errors():
            field = " -> ".join(str(loc) for loc in error['loc'])
            print(f"   • {field}: {error['msg']}")
        print(f"\nPlease fix {config_path} and try again.")
        sys.exit(1)
    except Exception as e:
        print(f"❌ Error loading config: {e}")
        sys.exit(1)

    if args.no_mqtt:
        config.mqtt.enabled = False
    if args.max_frames is not None:
        config.orchestrator.max_frames = args.max_frames

    setup_logging(
        level=env.log_level or config.logging.level,
        indent=config.logging.json_indent,
        log_file=config.logging.file,
        max_bytes=config.logging.max_bytes,
        backup_count=config.logging.backup_count,
    )
    logging.getLogger('paho').setLevel(getattr(logging, config.logging.paho_level))

    global logger
    logger = logging.getLogger(__name__)
    logger.info("🔧 RecycleCam starting...")

    controller = RecycleCamController(config, replay_path=args.replay)

    try:
        ok = controller.run()
    except ConfigurationError as e:
        print(f"❌ Invalid configuration: {e}")
        sys.exit(1)
    except Exception as e:
        logger.error(f"❌ Error fatal: {e}", exc_info=True)
        sys.exit(1)

    if not ok:
        sys.exit(1)


if __name__ == "__main__":
    main()

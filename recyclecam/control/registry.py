"""
Command Registry
================

Registry explícito de los comandos de control de la sesión.

Solo se registran los comandos que el controller puede atender
(ej: stabilization_stats solo si hay stabilizer). Un comando desconocido
produce CommandNotAvailableError con la lista de comandos válidos.
"""
from typing import Any, Callable, Dict, Set
import logging

logger = logging.getLogger(__name__)


class CommandNotAvailableError(Exception):
    """El comando no está registrado en este controller."""
    pass


class CommandRegistry:
    """
    Mapa nombre -> handler (sin argumentos) + descripción para help/logs.

    Usage:
        registry = CommandRegistry()
        registry.register('start', controller.start_session, "Inicia una sesión")

        try:
            registry.execute('start')
        except CommandNotAvailableError as e:
            logger.warning(str(e))
    """

    def __init__(self):
        self._handlers: Dict[str, Callable[[], Any]] = {}
        self._descriptions: Dict[str, str] = {}

    def register(self, command: str, handler: Callable[[], Any], description: str = ""):
        """Registra (o reemplaza, con warning) un comando."""
        name = command.lower()
        if name in self._handlers:
            logger.warning(f"⚠️ Command '{name}' already registered, replacing handler")

        self._handlers[name] = handler
        self._descriptions[name] = description
        logger.debug(f"📝 Command registered: '{name}' - {description}")

    def execute(self, command: str) -> Any:
        """
        Ejecuta el handler del comando.

        Raises:
            CommandNotAvailableError: Si el comando no está registrado
        """
        name = command.lower()
        handler = self._handlers.get(name)
        if handler is None:
            raise CommandNotAvailableError(
                f"Command '{command}' not available. "
                f"Available commands: {', '.join(sorted(self._handlers))}"
            )

        logger.debug(f"⚙️ Executing command: '{name}'")
        return handler()

    def is_available(self, command: str) -> bool:
        return command.lower() in self._handlers

    @property
    def available_commands(self) -> Set[str]:
        return set(self._handlers)

    def get_help(self) -> Dict[str, str]:
        """Dict[comando, descripción]."""
        return dict(self._descriptions)

    def __len__(self) -> int:
        return len(self._handlers)

    def __repr__(self) -> str:
        return f"CommandRegistry({len(self)} commands: {', '.join(sorted(self._handlers))})"

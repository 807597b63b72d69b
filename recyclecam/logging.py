"""
Structured Logging Infrastructure
==================================

Logging JSON-based para queryability (stdout en desarrollo, archivo rotado en producción).

Design:
- Solo JSON (python-json-logger)
- Trace correlation vía contextvars (un trace por sesión, uno por comando MQTT)
- Helpers para casos comunes (frames, MQTT, métricas, errores)
- File rotation automático (RotatingFileHandler)

Usage:
    from recyclecam.logging import setup_logging, trace_context

    setup_logging(level="INFO")

    with trace_context(generate_trace_id("session")):
        logger.info("🎬 Session started", extra={"component": "orchestrator"})
"""
import logging
import sys
import uuid
from contextlib import contextmanager
from contextvars import ContextVar
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Dict, Optional, TYPE_CHECKING

from pythonjsonlogger.json import JsonFormatter

if TYPE_CHECKING:
    from .inference.entities import FrameResult

# ============================================================================
# Trace Context
# ============================================================================

trace_id_var: ContextVar[Optional[str]] = ContextVar('trace_id', default=None)


def get_trace_id() -> Optional[str]:
    """Trace ID del contexto actual (None si no hay contexto activo)."""
    return trace_id_var.get()


def generate_trace_id(prefix: str = "trace") -> str:
    """
    Genera un trace ID único.

    Args:
        prefix: Prefijo (ej: "session", "cmd-stop")

    Returns:
        Trace ID en formato {prefix}-{short_uuid}
    """
    return f"{prefix}-{uuid.uuid4().hex[:8]}"


@contextmanager
def trace_context(trace_id: Optional[str] = None):
    """
    Propaga trace_id en toda la call stack (incluye coroutines del mismo task).

    Args:
        trace_id: ID a propagar. Si None, genera uno.
    """
    if trace_id is None:
        trace_id = generate_trace_id()

    token = trace_id_var.set(trace_id)
    try:
        yield trace_id
    finally:
        trace_id_var.reset(token)


# ============================================================================
# Logger Setup
# ============================================================================

class RecycleCamJsonFormatter(JsonFormatter):
    """JsonFormatter con nombres de campo estables + trace_id + campos globales."""

    def __init__(self, *args, global_fields: Optional[Dict[str, Any]] = None, **kwargs):
        super().__init__(*args, **kwargs)
        self.global_fields = global_fields or {}

    def add_fields(self, log_record, record, message_dict):
        super().add_fields(log_record, record, message_dict)

        if 'levelname' in log_record:
            log_record['level'] = log_record.pop('levelname')
        if 'name' in log_record:
            log_record['logger'] = log_record.pop('name')

        current_trace_id = get_trace_id()
        if current_trace_id and 'trace_id' not in log_record:
            log_record['trace_id'] = current_trace_id

        for key, value in self.global_fields.items():
            if key not in log_record:
                log_record[key] = value


def setup_logging(
    level: str = "INFO",
    indent: Optional[int] = None,
    add_fields: Optional[Dict[str, Any]] = None,
    log_file: Optional[str] = None,
    max_bytes: int = 10 * 1024 * 1024,  # 10 MB
    backup_count: int = 5,
) -> None:
    """
    Configura structured logging (JSON) para toda la aplicación.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        indent: JSON indent (None = compact, 2 = readable)
        add_fields: Campos globales (ej: {"environment": "kiosk"})
        log_file: Path al archivo de logs (None = stdout). Si se especifica, usa rotation.
        max_bytes: Tamaño máximo por archivo antes de rotar
        backup_count: Número de backups a mantener
    """
    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        handler = RotatingFileHandler(
            filename=str(log_path),
            maxBytes=max_bytes,
            backupCount=backup_count,
            encoding='utf-8'
        )
        print(
            f"📄 Logging to file: {log_file} (max: {max_bytes // 1024 // 1024}MB, backups: {backup_count})",
            file=sys.stderr,
        )
    else:
        handler = logging.StreamHandler(sys.stdout)

    formatter = RecycleCamJsonFormatter(
        '%(timestamp)s %(levelname)s %(name)s %(message)s',
        timestamp=True,
        json_indent=indent,
        global_fields=add_fields,
    )
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(getattr(logging, level.upper()))


# ============================================================================
# Helper Functions
# ============================================================================

def log_mqtt_command(
    logger: logging.Logger,
    command: str,
    topic: str,
    payload: Optional[Dict[str, Any]] = None,
    trace_id: Optional[str] = None
) -> None:
    """Log de comando recibido por el Control Plane."""
    extra = {
        "component": "control_plane",
        "command": command,
        "mqtt_topic": topic,
        "trace_id": trace_id or get_trace_id()
    }

    if payload:
        extra["payload"] = payload

    logger.info(f"📥 Command received: {command}", extra=extra)


def log_mqtt_publish(
    logger: logging.Logger,
    topic: str,
    qos: int,
    payload_size: int,
    success: bool = True,
    error_code: Optional[int] = None,
    component: str = "data_plane",
) -> None:
    """Log de publicación MQTT (Data Plane)."""
    extra = {
        "component": component,
        "mqtt_topic": topic,
        "qos": qos,
        "payload_size_bytes": payload_size,
        "success": success
    }

    if error_code is not None:
        extra["mqtt_error_code"] = error_code

    if success:
        logger.debug(f"📤 Message published to {topic}", extra=extra)
    else:
        logger.warning(f"⚠️ Failed to publish to {topic}", extra=extra)


def log_frame_result(
    logger: logging.Logger,
    result: 'FrameResult',
    component: str = "orchestrator",
) -> None:
    """
    Log de un FrameResult emitido.

    DEBUG para frames sin confirmar (alto volumen), INFO cuando la sesión
    tiene un label confirmado.
    """
    extra = {
        "component": component,
        "event": "frame_result",
        "frame_id": result.frame_id,
        "session_id": result.session_id,
        "category": result.category.value if result.category else None,
        "display_name": result.display_name,
        "raw_probability": result.raw_probability,
        "display_confidence_percent": result.display_confidence_percent,
        "confirmed": result.confirmed,
        "tip_key": result.tip_key,
    }

    if result.diagnostic_label is not None:
        extra["diagnostic_label"] = result.diagnostic_label

    if result.confirmed:
        logger.info(f"✅ Confirmed: {result.stable_display_name}", extra=extra)
    else:
        logger.debug(f"🔍 Frame {result.frame_id}: {result.tip_key}", extra=extra)


def log_session_metrics(
    logger: logging.Logger,
    fps: float,
    latency_ms: Optional[float] = None,
    frames_processed: Optional[int] = None,
    additional_metrics: Optional[Dict[str, Any]] = None,
    component: str = "orchestrator",
) -> None:
    """Log de métricas de la sesión (throughput, latencia del clasificador)."""
    metrics = {"fps": round(fps, 2)}

    if latency_ms is not None:
        metrics["latency_ms"] = round(latency_ms, 2)

    if frames_processed is not None:
        metrics["frames_processed"] = frames_processed

    if additional_metrics:
        metrics.update(additional_metrics)

    logger.info(
        f"📊 Session metrics: {fps:.2f} FPS",
        extra={"component": component, "metrics": metrics}
    )


def log_stabilization_stats(
    logger: logging.Logger,
    stats: Dict[str, Any],
    session_id: Optional[str] = None,
    component: str = "stabilization",
) -> None:
    """Log de estadísticas del stabilizer (history, frecuencias, ratio de confirmación)."""
    extra = {
        "component": component,
        "session_id": session_id,
        "stabilization": stats,
    }

    logger.info(
        f"📈 Stabilization: {stats.get('total_observed', 0)} observed, "
        f"{stats.get('total_confirmed', 0)} confirmed, "
        f"mode={stats.get('mode_display_name')}",
        extra=extra
    )


def log_error_with_context(
    logger: logging.Logger,
    message: str,
    exception: Optional[Exception] = None,
    component: str = "unknown",
    event: Optional[str] = None,
    trace_id: Optional[str] = None,
    **kwargs: Any
) -> None:
    """
    Log de error con contexto completo.

    Args:
        logger: Logger instance
        message: Mensaje de error
        exception: Excepción capturada (opcional)
        component: Componente donde ocurrió el error
        event: Evento que causó el error
        trace_id: Trace ID (usa contexto si no se especifica)
        **kwargs: Contexto adicional (frame_id, topic, etc.)
    """
    extra = {
        "component": component,
        "trace_id": trace_id or get_trace_id()
    }

    if event:
        extra["event"] = event

    if exception:
        extra["error_type"] = type(exception).__name__
        extra["error_message"] = str(exception)

    extra.update(kwargs)

    if exception:
        logger.error(f"{message}: {exception}", extra=extra, exc_info=True)
    else:
        logger.error(message, extra=extra)


def get_component_logger(component: str) -> logging.Logger:
    """Logger con namespace recyclecam.{component}."""
    return logging.getLogger(f"recyclecam.{component}")


__all__ = [
    "setup_logging",
    "trace_context",
    "get_trace_id",
    "generate_trace_id",
    "log_mqtt_command",
    "log_mqtt_publish",
    "log_frame_result",
    "log_session_metrics",
    "log_stabilization_stats",
    "log_error_with_context",
    "get_component_logger",
]

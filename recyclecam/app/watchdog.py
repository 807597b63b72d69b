"""
Session Watchdog
================

Contadores y métricas de la sesión (throughput, latencia del clasificador,
frames skipeados, fallos). El orchestrator lo alimenta; el MetricsPublisher
lo lee vía get_report().

Thread-safety: el orchestrator escribe desde el event loop y el data plane
puede leer desde el thread de paho (comando "metrics"), por eso el Lock.
"""
from collections import deque
from dataclasses import dataclass, asdict
from datetime import datetime
from threading import Lock
from typing import Any, Deque, Dict, Optional
import time


@dataclass(frozen=True)
class WatchdogReport:
    session_id: Optional[str]
    started_at: Optional[str]
    frames: int
    results: int
    skipped_frames: int
    classifier_failures: int
    confirmed_frames: int
    throughput_fps: float
    mean_latency_ms: Optional[float]

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class SessionWatchdog:
    """
    Métricas de la sesión activa.

    Throughput y latencia se calculan sobre una ventana deslizante de los
    últimos `window` frames (no sobre toda la sesión).
    """

    def __init__(self, window: int = 64):
        self.window = window
        self._lock = Lock()
        self._reset_counters(session_id=None)

    def _reset_counters(self, session_id: Optional[str]):
        self._session_id = session_id
        self._started_at: Optional[datetime] = datetime.now() if session_id else None
        self._frames = 0
        self._results = 0
        self._skipped = 0
        self._failures = 0
        self._confirmed = 0
        self._frame_times: Deque[float] = deque(maxlen=self.window)
        self._latencies: Deque[float] = deque(maxlen=self.window)

    def on_session_start(self, session_id: str):
        with self._lock:
            self._reset_counters(session_id)

    def on_frame_skipped(self):
        with self._lock:
            self._frames += 1
            self._skipped += 1

    def on_classifier_latency(self, seconds: float):
        with self._lock:
            self._latencies.append(seconds)

    def on_classifier_failure(self):
        with self._lock:
            self._frames += 1
            self._failures += 1

    def on_result(self, confirmed: bool):
        with self._lock:
            self._frames += 1
            self._results += 1
            if confirmed:
                self._confirmed += 1
            self._frame_times.append(time.monotonic())

    def get_report(self) -> WatchdogReport:
        with self._lock:
            throughput = 0.0
            if len(self._frame_times) >= 2:
                elapsed = self._frame_times[-1] - self._frame_times[0]
                if elapsed > 0:
                    throughput = (len(self._frame_times) - 1) / elapsed

            mean_latency_ms = None
            if self._latencies:
                mean_latency_ms = 1000.0 * sum(self._latencies) / len(self._latencies)

            return WatchdogReport(
                session_id=self._session_id,
                started_at=self._started_at.isoformat() if self._started_at else None,
                frames=self._frames,
                results=self._results,
                skipped_frames=self._skipped,
                classifier_failures=self._failures,
                confirmed_frames=self._confirmed,
                throughput_fps=throughput,
                mean_latency_ms=mean_latency_ms,
            )

"""
Application - orchestrator, builder, controller
"""
from .orchestrator import FrameOrchestrator, SessionStatus
from .watchdog import SessionWatchdog, WatchdogReport
from .builder import OrchestratorBuilder
from .controller import RecycleCamController, main

__all__ = [
    "FrameOrchestrator",
    "SessionStatus",
    "SessionWatchdog",
    "WatchdogReport",
    "OrchestratorBuilder",
    "RecycleCamController",
    "main",
]

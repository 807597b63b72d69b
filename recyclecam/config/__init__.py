"""
Configuration Module
====================

Provides configuration loading with Pydantic validation.

Usage:
    from recyclecam.config import RecycleCamConfig
    config = RecycleCamConfig.from_yaml("config/recyclecam/config.yaml")
"""
from .schemas import (
    RecycleCamConfig,
    StabilizationSettings,
    RegionSettings,
    PresentationSettings,
    OrchestratorSettings,
    LexiconSettings,
    ReplaySettings,
    MQTTSettings,
    LoggingSettings,
    EnvironmentSettings,
    load_config,
)

__all__ = [
    'RecycleCamConfig',
    'StabilizationSettings',
    'RegionSettings',
    'PresentationSettings',
    'OrchestratorSettings',
    'LexiconSettings',
    'ReplaySettings',
    'MQTTSettings',
    'LoggingSettings',
    'EnvironmentSettings',
    'load_config',
]

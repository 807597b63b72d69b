"""
Pydantic Configuration Schemas
================================

Type-safe configuration validation usando Pydantic v2.

Benefits:
- Validación en load time (antes de iniciar cualquier sesión)
- Type safety con IDE autocomplete
- Mensajes de error por campo

Usage:
    config = RecycleCamConfig.from_yaml("config/recyclecam/config.yaml")
    # Config ya está validado, tipos garantizados
"""
from typing import Literal, Optional
from pathlib import Path
from pydantic import BaseModel, Field, ValidationError, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
import os

import yaml

from ..errors import ConfigurationError

LogLevel = Literal['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']


# ============================================================================
# Stabilization Configuration
# ============================================================================

class StabilizationSettings(BaseModel):
    """Label stabilization (rolling history + mode vote)"""
    mode: Literal['none', 'temporal'] = Field(
        default='temporal',
        description="Stabilization mode"
    )
    history_size: int = Field(
        default=5,
        ge=1,
        le=100,
        description="Rolling history capacity (frames)"
    )
    min_frequency: int = Field(
        default=2,
        ge=1,
        description="Minimum occurrences of the mode to confirm a label"
    )

    @model_validator(mode='after')
    def validate_frequency_fits_history(self):
        """min_frequency must be reachable within the history"""
        if self.min_frequency > self.history_size:
            raise ValueError(
                f"min_frequency ({self.min_frequency}) must be <= "
                f"history_size ({self.history_size})"
            )
        return self


# ============================================================================
# Region Configuration
# ============================================================================

class RegionSettings(BaseModel):
    """Region validity bounds, score boosts and target zone"""
    min_size_ratio: float = Field(
        default=0.02,
        ge=0.0,
        le=1.0,
        description="Regions smaller than this fraction of the frame are rejected"
    )
    max_size_ratio: float = Field(
        default=0.85,
        ge=0.0,
        le=1.0,
        description="Regions larger than this fraction of the frame are rejected"
    )
    ideal_size_min: float = Field(
        default=0.10,
        ge=0.0,
        le=1.0,
        description="Lower bound of the size range that earns the size boost"
    )
    ideal_size_max: float = Field(
        default=0.50,
        ge=0.0,
        le=1.0,
        description="Upper bound of the size range that earns the size boost"
    )
    center_boost_max: float = Field(
        default=0.20,
        ge=0.0,
        le=1.0,
        description="Maximum multiplicative boost for a perfectly centered region"
    )
    size_boost_flat: float = Field(
        default=0.10,
        ge=0.0,
        le=1.0,
        description="Flat multiplicative boost inside the ideal size range"
    )
    target_zone_scale: float = Field(
        default=0.7,
        gt=0.0,
        le=1.0,
        description="Target zone side as a fraction of the shorter frame side"
    )

    @model_validator(mode='after')
    def validate_bounds(self):
        """Size bounds must be ordered"""
        if self.min_size_ratio >= self.max_size_ratio:
            raise ValueError(
                f"min_size_ratio ({self.min_size_ratio}) must be < "
                f"max_size_ratio ({self.max_size_ratio})"
            )
        if self.ideal_size_min > self.ideal_size_max:
            raise ValueError(
                f"ideal_size_min ({self.ideal_size_min}) must be <= "
                f"ideal_size_max ({self.ideal_size_max})"
            )
        return self


# ============================================================================
# Presentation Configuration
# ============================================================================

class PresentationSettings(BaseModel):
    """Confidence meter shaping"""
    display_amplification: float = Field(
        default=3.0,
        gt=0.0,
        le=100.0,
        description="Demo multiplier applied to the score before display (1.0 = off)"
    )
    tier_low_max: int = Field(
        default=40,
        ge=0,
        le=100,
        description="Percent below which the tier is 'low'"
    )
    tier_medium_max: int = Field(
        default=70,
        ge=0,
        le=100,
        description="Percent below which the tier is 'medium'"
    )

    @model_validator(mode='after')
    def validate_tier_order(self):
        """Low tier bound must be <= medium tier bound"""
        if self.tier_low_max > self.tier_medium_max:
            raise ValueError(
                f"tier_low_max ({self.tier_low_max}) must be <= "
                f"tier_medium_max ({self.tier_medium_max})"
            )
        return self


# ============================================================================
# Orchestrator Configuration
# ============================================================================

class OrchestratorSettings(BaseModel):
    """Per-frame loop parameters"""
    probability_floor: float = Field(
        default=0.05,
        ge=0.0,
        le=1.0,
        description="Predictions at or below this probability are ignored"
    )
    low_confidence_threshold: float = Field(
        default=0.15,
        ge=0.0,
        le=1.0,
        description="Raw probability below which the lowConfidence tip is shown"
    )
    top_k: int = Field(
        default=3,
        ge=1,
        le=20,
        description="Number of top predictions scanned per frame"
    )
    tick_interval: float = Field(
        default=0.0,
        ge=0.0,
        description="Seconds to wait between frames (0 = as fast as the classifier)"
    )
    max_frames: Optional[int] = Field(
        default=None,
        ge=1,
        description="Stop the session after this many frames (None = unbounded)"
    )
    auto_start: bool = Field(
        default=True,
        description="Start a session as soon as the controller is up"
    )


# ============================================================================
# Lexicon / Replay Configuration
# ============================================================================

class LexiconSettings(BaseModel):
    """Waste lexicon source"""
    path: Optional[str] = Field(
        default=None,
        description="YAML lexicon file (None = built-in default lexicon)"
    )


class ReplaySettings(BaseModel):
    """Replay classifier + static frame source"""
    path: Optional[str] = Field(
        default=None,
        description="Recorded predictions file (YAML/JSON)"
    )
    frame_width: int = Field(
        default=1280,
        ge=1,
        description="Static frame width (pixels)"
    )
    frame_height: int = Field(
        default=720,
        ge=1,
        description="Static frame height (pixels)"
    )


# ============================================================================
# MQTT Configuration
# ============================================================================

class MQTTBrokerSettings(BaseModel):
    """MQTT broker connection settings"""
    host: str = Field(
        default="localhost",
        description="MQTT broker hostname"
    )
    port: int = Field(
        default=1883,
        ge=1,
        le=65535,
        description="MQTT broker port"
    )
    username: Optional[str] = Field(
        default=None,
        description="MQTT username (optional, from env)"
    )
    password: Optional[str] = Field(
        default=None,
        description="MQTT password (optional, from env)"
    )


class MQTTTopicsSettings(BaseModel):
    """MQTT topic configuration"""
    control_commands: str = Field(
        default="recyclecam/control/commands",
        description="Control commands topic (QoS 1)"
    )
    control_status: str = Field(
        default="recyclecam/control/status",
        description="Control status topic (retained)"
    )
    data: str = Field(
        default="recyclecam/data/results",
        description="Frame results topic (QoS 0)"
    )
    metrics: str = Field(
        default="recyclecam/data/metrics",
        description="Session metrics topic"
    )


class MQTTQoSSettings(BaseModel):
    """MQTT QoS levels"""
    control: Literal[0, 1, 2] = Field(
        default=1,
        description="Control plane QoS (recommended: 1 for reliability)"
    )
    data: Literal[0, 1, 2] = Field(
        default=0,
        description="Data plane QoS (recommended: 0 for performance)"
    )


class MQTTSettings(BaseModel):
    """Complete MQTT configuration"""
    enabled: bool = Field(
        default=True,
        description="Connect control/data planes (False = local run, results logged only)"
    )
    broker: MQTTBrokerSettings = Field(default_factory=MQTTBrokerSettings)
    topics: MQTTTopicsSettings = Field(default_factory=MQTTTopicsSettings)
    qos: MQTTQoSSettings = Field(default_factory=MQTTQoSSettings)


# ============================================================================
# Logging Configuration
# ============================================================================

class LoggingSettings(BaseModel):
    """Logging configuration (JSON structured logging)"""
    level: LogLevel = Field(
        default='INFO',
        description="Log level"
    )
    json_indent: Optional[int] = Field(
        default=None,
        ge=0,
        le=4,
        description="JSON indent for pretty-print (None=compact, 2=readable)"
    )
    paho_level: LogLevel = Field(
        default='WARNING',
        description="Paho MQTT library log level"
    )
    file: Optional[str] = Field(
        default=None,
        description="Path to log file (None=stdout). If specified, enables file rotation."
    )
    max_bytes: int = Field(
        default=10485760,  # 10 MB
        ge=1024,
        description="Maximum bytes per log file before rotation (default 10 MB)"
    )
    backup_count: int = Field(
        default=5,
        ge=0,
        description="Number of backup log files to keep"
    )


# ============================================================================
# Root Configuration
# ============================================================================

class RecycleCamConfig(BaseModel):
    """
    Root RecycleCam configuration with full validation.

    Loads from YAML and validates all settings.
    Environment variables override YAML for sensitive data.
    """
    stabilization: StabilizationSettings = Field(default_factory=StabilizationSettings)
    region: RegionSettings = Field(default_factory=RegionSettings)
    presentation: PresentationSettings = Field(default_factory=PresentationSettings)
    orchestrator: OrchestratorSettings = Field(default_factory=OrchestratorSettings)
    lexicon: LexiconSettings = Field(default_factory=LexiconSettings)
    replay: ReplaySettings = Field(default_factory=ReplaySettings)
    mqtt: MQTTSettings = Field(default_factory=MQTTSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    @classmethod
    def from_yaml(cls, config_path: str) -> 'RecycleCamConfig':
        """
        Load and validate configuration from YAML file.

        Args:
            config_path: Path to config.yaml

        Returns:
            Validated RecycleCamConfig instance

        Raises:
            FileNotFoundError: If config file doesn't exist
            ValidationError: If config is invalid

        Example:
            config = RecycleCamConfig.from_yaml("config/recyclecam/config.yaml")
            print(config.stabilization.history_size)  # Type-safe access
        """
        config_file = Path(config_path)
        if not config_file.exists():
            raise FileNotFoundError(
                f"Config file not found: {config_path}\n"
                f"Please create it from config/recyclecam/config.yaml.example"
            )

        with open(config_file, 'r') as f:
            config_dict = yaml.safe_load(f) or {}

        # Override sensitive data from environment variables
        if os.getenv('MQTT_USERNAME') or os.getenv('MQTT_PASSWORD'):
            broker = config_dict.setdefault('mqtt', {}).setdefault('broker', {})
            if os.getenv('MQTT_USERNAME'):
                broker['username'] = os.getenv('MQTT_USERNAME')
            if os.getenv('MQTT_PASSWORD'):
                broker['password'] = os.getenv('MQTT_PASSWORD')

        # Validate and return
        return cls(**config_dict)


def load_config(config_path: Optional[str] = None) -> RecycleCamConfig:
    """
    Config validada (defaults si config_path es None).

    Raises:
        ConfigurationError: Archivo inexistente, YAML inválido o valores inválidos
    """
    if config_path is None:
        return RecycleCamConfig()

    try:
        return RecycleCamConfig.from_yaml(config_path)
    except FileNotFoundError as e:
        raise ConfigurationError(str(e)) from e
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in {config_path}: {e}") from e
    except ValidationError as e:
        fields = "; ".join(
            f"{' -> '.join(str(loc) for loc in error['loc'])}: {error['msg']}"
            for error in e.errors()
        )
        raise ConfigurationError(f"Invalid configuration in {config_path}: {fields}") from e


# ============================================================================
# Environment Settings
# ============================================================================

class EnvironmentSettings(BaseSettings):
    """
    Settings del proceso leídos de variables de entorno (prefijo RECYCLECAM_).

    RECYCLECAM_CONFIG_PATH=config/recyclecam/config.yaml
    RECYCLECAM_LOG_LEVEL=DEBUG   # override de logging.level
    """
    model_config = SettingsConfigDict(env_prefix='RECYCLECAM_', extra='ignore')

    config_path: str = Field(
        default="config/recyclecam/config.yaml",
        description="Path to the YAML configuration file"
    )
    log_level: Optional[LogLevel] = Field(
        default=None,
        description="Overrides logging.level from the YAML file"
    )

"""Configuration system."""

from signal_core.config.loader import load_config, validate_config
from signal_core.config.schema import (
    AppConfig,
    IndicatorConfig,
    MonitorConfig,
    ScoringConfig,
    ScoringWeights,
    StructureConfig,
    TargetConfig,
)

__all__ = [
    "AppConfig",
    "IndicatorConfig",
    "MonitorConfig",
    "ScoringConfig",
    "ScoringWeights",
    "StructureConfig",
    "TargetConfig",
    "load_config",
    "validate_config",
]

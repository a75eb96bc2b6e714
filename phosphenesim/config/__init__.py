"""Configuration schema and YAML helpers."""

from phosphenesim.config.schema import (
    ConfigurationError,
    DisplayConfig,
    GazeConfig,
    HabituationConfig,
    LayoutConfig,
    SimulatorConfig,
    StimulusConfig,
)
from phosphenesim.config.yaml_utils import load_config_file, load_yaml

__all__ = [
    "ConfigurationError",
    "DisplayConfig",
    "GazeConfig",
    "HabituationConfig",
    "LayoutConfig",
    "SimulatorConfig",
    "StimulusConfig",
    "load_config_file",
    "load_yaml",
]

"""Configuration for stdp-detect sessions."""

from stdp_detect.config.base import BaseConfig
from stdp_detect.config.simulation_config import RunMode, SimulationConfig
from stdp_detect.config.validation import ValidatedConfig, ValidatorRegistry

__all__ = [
    "BaseConfig",
    "RunMode",
    "SimulationConfig",
    "ValidatedConfig",
    "ValidatorRegistry",
]

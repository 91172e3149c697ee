"""
Custom exception and warning classes for stdp-detect.

Exception Hierarchy:
====================
STDPDetectError (base) - Base exception for all stdp-detect errors
├── ConfigurationError - Invalid configuration parameters
│   └── ConfigValidationError - Declarative validation rules failed
├── StoreError - Pattern/weight/convergence store could not be used
│   ├── StoreCorruptedError - File exists but cannot be read back
│   └── StoreShapeError - Stored tensors do not match the configuration
└── SpikeCapacityError - Spike log overflow in strict mode

Warnings:
=========
InitialWeightWarning - Initial weights above the upper bound
SpikeCapacityWarning - Spike log full, events dropped
"""

from __future__ import annotations

# =============================================================================
# Exception Hierarchy
# =============================================================================


class STDPDetectError(Exception):
    """Base exception for all stdp-detect errors."""


class ConfigurationError(STDPDetectError):
    """Invalid configuration parameters.

    Raised when configuration values are out of valid range or incompatible
    with each other.
    """


class ConfigValidationError(ConfigurationError):
    """Raised when configuration validation fails."""


class StoreError(STDPDetectError):
    """A persisted store could not be loaded or saved."""


class StoreCorruptedError(StoreError):
    """A store file exists but its content is unreadable or of the wrong type."""


class StoreShapeError(StoreError):
    """Stored tensors are incompatible with the current configuration."""


class SpikeCapacityError(STDPDetectError):
    """Spike log capacity exhausted while strict capacity checking is on."""


# =============================================================================
# Warnings
# =============================================================================


class InitialWeightWarning(UserWarning):
    """Some initial weights exceed the upper weight bound (1)."""


class SpikeCapacityWarning(UserWarning):
    """The spike log is full; further postsynaptic spikes are not recorded."""

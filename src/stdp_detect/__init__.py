"""
stdp-detect - STDP-based detection of a repeating spike pattern.

A population of independent leaky integrate-and-fire neurons integrates a
shared stream of Poisson input spikes in which a frozen spatiotemporal
pattern repeats once per period. Additive STDP with a homeostatic decrement
lets each neuron become selective to the pattern; hit and false-alarm rates
measure how well it does.

Quick Start:
============

    from stdp_detect import SimulationConfig, run_session

    config = SimulationConfig(n_period=200, data_dir="data")
    result = run_session(config)
    print(result.performance.mean_hit_rate)

Internal code should use explicit imports:

    from stdp_detect.components.neurons.lif import LIFPopulation
    from stdp_detect.learning.stdp import AdditiveSTDP
"""

__version__ = "0.1.0"

from stdp_detect.config import RunMode, SimulationConfig
from stdp_detect.dynamics.simulation import (
    SimulationResult,
    SimulationState,
    Simulator,
    forward_timestep,
    run_session,
)
from stdp_detect.errors import (
    ConfigurationError,
    ConfigValidationError,
    InitialWeightWarning,
    SpikeCapacityError,
    SpikeCapacityWarning,
    STDPDetectError,
    StoreCorruptedError,
    StoreError,
    StoreShapeError,
)
from stdp_detect.evaluation import PerformanceReport, evaluate_performance

__all__ = [
    "__version__",
    # Configuration
    "RunMode",
    "SimulationConfig",
    # Simulation
    "SimulationResult",
    "SimulationState",
    "Simulator",
    "forward_timestep",
    "run_session",
    # Evaluation
    "PerformanceReport",
    "evaluate_performance",
    # Errors
    "STDPDetectError",
    "ConfigurationError",
    "ConfigValidationError",
    "StoreError",
    "StoreCorruptedError",
    "StoreShapeError",
    "SpikeCapacityError",
    "InitialWeightWarning",
    "SpikeCapacityWarning",
]

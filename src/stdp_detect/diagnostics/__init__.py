"""Online diagnostics: spike log and weight convergence."""

from stdp_detect.diagnostics.convergence import ConvergenceLogger, convergence_index
from stdp_detect.diagnostics.spike_recorder import SpikeRecorder

__all__ = ["ConvergenceLogger", "convergence_index", "SpikeRecorder"]

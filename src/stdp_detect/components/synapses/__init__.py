"""Synaptic traces and weight initialization."""

from stdp_detect.components.synapses.traces import EligibilityTrace, compute_decay
from stdp_detect.components.synapses.weight_init import WeightInitializer, initial_weights

__all__ = ["EligibilityTrace", "compute_decay", "WeightInitializer", "initial_weights"]

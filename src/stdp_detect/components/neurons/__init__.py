"""Neuron models."""

from stdp_detect.components.neurons.lif import LIFPopulation, compute_v_unit

__all__ = ["LIFPopulation", "compute_v_unit"]

"""Synaptic plasticity rules."""

from stdp_detect.learning.stdp import AdditiveSTDP, STDPConfig

__all__ = ["AdditiveSTDP", "STDPConfig"]

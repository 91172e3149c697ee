"""
Input spike generation.

- patterns: frozen pattern generation and per-repetition jitter
- input_source: per-step spike vectors with the pattern embedded in noise
"""

from stdp_detect.stimuli.input_source import InputSpikeSource, SilentSource, SpikeSource
from stdp_detect.stimuli.patterns import bernoulli_spikes, generate_patterns, jitter_pattern

__all__ = [
    "InputSpikeSource",
    "SilentSource",
    "SpikeSource",
    "bernoulli_spikes",
    "generate_patterns",
    "jitter_pattern",
]

"""Neural components: the LIF population and its synapses."""

from stdp_detect.components.neurons import LIFPopulation, compute_v_unit
from stdp_detect.components.synapses import EligibilityTrace, WeightInitializer, initial_weights

__all__ = [
    "LIFPopulation",
    "compute_v_unit",
    "EligibilityTrace",
    "WeightInitializer",
    "initial_weights",
]

"""Persistence of patterns, weights and the convergence series."""

from stdp_detect.io.stores import (
    ConvergenceStore,
    PatternStore,
    SessionStores,
    TensorStore,
    WeightStore,
)

__all__ = ["ConvergenceStore", "PatternStore", "SessionStores", "TensorStore", "WeightStore"]

"""
Weight convergence metric and its periodic logger.

Additive STDP drives weights towards a bimodal distribution at the bounds.
The convergence index measures the mean distance of every weight to the
nearest bound; it is 0 for a fully binary matrix and at most 0.5.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, List, Optional

import torch

if TYPE_CHECKING:
    from stdp_detect.io.stores import ConvergenceStore

logger = logging.getLogger(__name__)


def convergence_index(weights: torch.Tensor) -> float:
    """Mean of ``|W - (W > 0.5)|`` over all weights, in [0, 0.5]."""
    binary = (weights > 0.5).to(weights.dtype)
    return float((weights - binary).abs().mean().item())


class ConvergenceLogger:
    """Computes the convergence index every ``interval_steps`` steps.

    Each value is kept in memory; when a store is attached it is also
    appended to the persisted series (load, append, atomic save).

    Args:
        interval_steps: Logging interval in integration steps
        store: Convergence store to append to, or None (batch mode)
    """

    def __init__(self, interval_steps: int, store: Optional["ConvergenceStore"] = None):
        if interval_steps < 1:
            raise ValueError(f"interval_steps must be >= 1, got {interval_steps}")
        self.interval_steps = interval_steps
        self.store = store
        self.values: List[float] = []

    def due(self, step: int) -> bool:
        return step % self.interval_steps == 0

    def log(self, weights: torch.Tensor) -> float:
        value = convergence_index(weights)
        self.values.append(value)
        if self.store is not None:
            self.store.append(value)
        logger.info(f"Convergence index: {value:.6f}")
        return value

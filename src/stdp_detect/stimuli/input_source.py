"""
Input spike sources.

An input spike source maps an integration step index to the boolean spike
vector of all afferents for that step. The simulation loop only depends on
the :class:`SpikeSource` interface, so tests and experiments can inject
deterministic sources in place of :class:`InputSpikeSource`.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import List, Optional

import torch

from stdp_detect.config.simulation_config import SimulationConfig
from stdp_detect.stimuli.patterns import bernoulli_spikes, jitter_pattern

logger = logging.getLogger(__name__)


class SpikeSource(ABC):
    """Abstract base class for per-step input spike generators."""

    n_pre: int

    @abstractmethod
    def __call__(self, step: int) -> torch.Tensor:
        """Spike vector of integration step ``step``.

        Args:
            step: Integration step index (steps run from 2 upwards)

        Returns:
            Boolean tensor [n_pre]
        """

    def reset(self) -> None:
        """Drop any per-session state (default: nothing to drop)."""


class SilentSource(SpikeSource):
    """Source that never spikes."""

    def __init__(self, n_pre: int, device: torch.device = torch.device("cpu")):
        self.n_pre = n_pre
        self.device = device

    def __call__(self, step: int) -> torch.Tensor:
        return torch.zeros(self.n_pre, dtype=torch.bool, device=self.device)


class InputSpikeSource(SpikeSource):
    """Poisson background with a periodically embedded, jittered frozen pattern.

    With ``P`` steps per period and a window of ``W`` steps (pattern plus a
    jitter margin on each side), the window phase of step ``i`` is
    ``j = i % P - (P - W)``:

    - ``j <= 0``: every afferent fires with probability ``dt*f``.
    - ``j == 1``: pattern ``((i-1)//P) % n_pattern`` is jittered and cached.
    - ``j >= 1``: the first ``n_involved`` afferents replay column ``j-1`` of
      the cached jittered pattern, the rest fire with probability ``dt*f``.

    Args:
        config: Simulation configuration
        patterns: Frozen patterns, each ``[n_involved, pattern_steps]``
        generator: Session random generator
    """

    def __init__(
        self,
        config: SimulationConfig,
        patterns: List[torch.Tensor],
        generator: Optional[torch.Generator] = None,
    ):
        if len(patterns) != config.n_pattern:
            raise ValueError(f"Expected {config.n_pattern} patterns, got {len(patterns)}")

        self.config = config
        self.patterns = patterns
        self.generator = generator
        self.device = config.get_torch_device()

        self.n_pre = config.n_pre
        self.n_involved = config.n_involved
        self.probability = config.dt * config.f
        self.steps_per_period = config.steps_per_period
        self.window_start = config.window_start

        self.active_pattern: Optional[int] = None
        self._jittered: Optional[torch.Tensor] = None

    def phase(self, step: int) -> int:
        """Position of ``step`` inside the pattern window (<= 0 outside)."""
        return step % self.steps_per_period - self.window_start

    def pattern_index(self, step: int) -> int:
        """Index of the pattern presented in the period containing ``step``."""
        return ((step - 1) // self.steps_per_period) % len(self.patterns)

    def _present(self, step: int) -> None:
        self.active_pattern = self.pattern_index(step)
        self._jittered = jitter_pattern(
            self.patterns[self.active_pattern],
            jitter=self.config.jitter,
            f=self.config.f,
            dt=self.config.dt,
            generator=self.generator,
        )

    def __call__(self, step: int) -> torch.Tensor:
        j = self.phase(step)
        if j <= 0:
            return bernoulli_spikes(
                self.n_pre, self.probability, generator=self.generator, device=self.device
            )

        if j == 1 or self._jittered is None:
            self._present(step)

        spikes = torch.empty(self.n_pre, dtype=torch.bool, device=self.device)
        spikes[: self.n_involved] = self._jittered[:, j - 1]
        spikes[self.n_involved:] = bernoulli_spikes(
            self.n_pre - self.n_involved,
            self.probability,
            generator=self.generator,
            device=self.device,
        )
        return spikes

    def reset(self) -> None:
        self.active_pattern = None
        self._jittered = None

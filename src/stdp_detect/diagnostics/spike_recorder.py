"""
SpikeRecorder: fixed-capacity log of postsynaptic spike events.

Call ``record(time, spikes)`` once per step from the simulation loop; events
before ``start_time`` are ignored. The log is pre-allocated as a
``[capacity, 2]`` tensor of ``(time, neuron_id)`` rows and trimmed by
``finalize()``.

When the log is full, further events are dropped and counted. A
SpikeCapacityWarning is issued the first time this happens and again by
``finalize()``; with ``strict=True`` a SpikeCapacityError is raised instead.
"""

from __future__ import annotations

import logging
import warnings
from typing import Optional, Union

import torch

from stdp_detect.errors import SpikeCapacityError, SpikeCapacityWarning

logger = logging.getLogger(__name__)


class SpikeRecorder:
    """Pre-allocated ``(time, neuron_id)`` spike log.

    Args:
        capacity: Maximum number of recorded events
        start_time: Events at ``time >= start_time`` are recorded (s)
        strict: Raise SpikeCapacityError on overflow instead of warning
        device: Torch device

    Times are kept in float64 whatever the simulation dtype, so that
    ``round(time / dt)`` recovers the step index of long runs.
    """

    def __init__(
        self,
        capacity: int,
        start_time: float = 0.0,
        strict: bool = False,
        device: Union[str, torch.device] = "cpu",
    ):
        if capacity < 0:
            raise ValueError(f"capacity must be >= 0, got {capacity}")
        self.capacity = capacity
        self.start_time = start_time
        self.strict = strict
        self._log = torch.zeros((capacity, 2), dtype=torch.float64, device=device)
        self.n_recorded = 0
        self.n_dropped = 0

    @property
    def n_events(self) -> int:
        """Total events seen in the recording window (recorded + dropped)."""
        return self.n_recorded + self.n_dropped

    def record(self, time: float, spikes: torch.Tensor) -> int:
        """Log every spiking neuron of one step.

        Args:
            time: Simulated time of the step (s)
            spikes: Boolean spike mask [n_post]

        Returns:
            Number of events stored by this call
        """
        if time < self.start_time:
            return 0
        neuron_ids = spikes.nonzero(as_tuple=True)[0]
        n_new = neuron_ids.numel()
        if n_new == 0:
            return 0

        room = self.capacity - self.n_recorded
        if n_new > room:
            self._overflow(n_new - room)
            neuron_ids = neuron_ids[:room]

        n_stored = neuron_ids.numel()
        if n_stored:
            rows = slice(self.n_recorded, self.n_recorded + n_stored)
            self._log[rows, 0] = time
            self._log[rows, 1] = neuron_ids.to(self._log.dtype)
            self.n_recorded += n_stored
        return n_stored

    def _overflow(self, n_lost: int) -> None:
        if self.strict:
            raise SpikeCapacityError(
                f"Spike log capacity ({self.capacity}) exceeded; "
                "increase spike_capacity_per_period"
            )
        if self.n_dropped == 0:
            message = (
                f"Spike log capacity ({self.capacity}) exceeded; "
                "further spikes are not recorded"
            )
            logger.warning(message)
            warnings.warn(message, SpikeCapacityWarning, stacklevel=3)
        self.n_dropped += n_lost

    def finalize(self) -> torch.Tensor:
        """Trimmed ``[n_recorded, 2]`` copy of the log."""
        if self.n_dropped:
            message = f"{self.n_dropped} postsynaptic spikes were dropped from the spike log"
            logger.warning(message)
            warnings.warn(message, SpikeCapacityWarning, stacklevel=2)
        return self._log[: self.n_recorded].clone()

    def reset(self, start_time: Optional[float] = None) -> None:
        """Empty the log, optionally moving the recording window."""
        if start_time is not None:
            self.start_time = start_time
        self._log.zero_()
        self.n_recorded = 0
        self.n_dropped = 0

    def __repr__(self) -> str:
        return (
            f"SpikeRecorder(capacity={self.capacity}, recorded={self.n_recorded}, "
            f"dropped={self.n_dropped})"
        )

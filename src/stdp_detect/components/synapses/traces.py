"""
Eligibility traces for additive STDP.

Traces are decaying signals that accumulate spike history. The presynaptic
trace (one entry per afferent) drives potentiation when a postsynaptic neuron
fires; the postsynaptic trace (one entry per neuron) drives depression when an
afferent fires.

Clock-driven forward-Euler decay is used, so after N silent steps a trace
equals ``a(0) * (1 - dt/tau)**N`` exactly.

Usage:
    trace = EligibilityTrace(size=100, tau=20e-3, dt=1e-4, increment=0.01)
    trace.decay()
    trace.increment(spikes)
"""

from __future__ import annotations

from typing import Optional, Union

import torch
import torch.nn as nn

# =============================================================================
# Functional API
# =============================================================================


def compute_decay(tau: float, dt: float) -> float:
    """Compute the forward-Euler decay factor ``1 - dt/tau``.

    Args:
        tau: Time constant (s)
        dt: Time step (s)

    Returns:
        Decay factor (multiply trace by this each timestep)
    """
    if tau <= 0:
        raise ValueError(f"tau must be positive, got {tau}")
    return max(0.0, 1.0 - dt / tau)


# =============================================================================
# Object-Oriented API
# =============================================================================


class EligibilityTrace(nn.Module):
    """Decaying trace with per-entry spike increments.

    Attributes:
        tau: Time constant for decay (s)
        trace: Current trace values [size]
        increments: Amount added on a spike [size]
        enabled: False when every increment is zero; a disabled trace stays
            at zero and the learning rule that reads it is skipped.

    Example:
        >>> pre = EligibilityTrace(size=n_pre, tau=20e-3, dt=1e-4, increment=0.01)
        >>> pre.decay()
        >>> pre.increment(pre_spikes)
        >>> ltp = pre.trace  # added to the weight row of every firing neuron
    """

    def __init__(
        self,
        size: int,
        tau: float,
        dt: float,
        increment: Union[float, torch.Tensor] = 1.0,
        device: Optional[torch.device] = None,
        dtype: torch.dtype = torch.float64,
    ):
        """Initialize trace.

        Args:
            size: Number of traced units
            tau: Time constant (s)
            dt: Integration step (s)
            increment: Scalar or per-unit [size] spike increment
            device: Torch device for tensors
            dtype: Torch dtype for tensors
        """
        super().__init__()
        self.size = size
        self.tau = tau
        self.dt = dt
        self.decay_factor = compute_decay(tau, dt)

        increments = torch.as_tensor(increment, dtype=dtype, device=device)
        if increments.dim() == 0:
            increments = increments.expand(size).clone()
        if increments.shape != (size,):
            raise ValueError(
                f"increment must be scalar or shape ({size},), got {tuple(increments.shape)}"
            )

        self.register_buffer("trace", torch.zeros(size, dtype=dtype, device=device))
        self.register_buffer("increments", increments)
        self.trace: torch.Tensor
        self.increments: torch.Tensor

        self.enabled = bool((self.increments > 0).any())

    def decay(self) -> torch.Tensor:
        """Apply one step of decay in place."""
        self.trace.mul_(self.decay_factor)
        return self.trace

    def increment(self, spikes: torch.Tensor) -> torch.Tensor:
        """Add the per-unit increment for every spiking unit.

        Args:
            spikes: Boolean spike mask [size]
        """
        self.trace[spikes] += self.increments[spikes]
        return self.trace

    def reset_state(self) -> None:
        """Reset trace to zeros."""
        self.trace.zero_()

    def __repr__(self) -> str:
        return (
            f"EligibilityTrace(size={self.size}, tau={self.tau}, "
            f"decay_factor={self.decay_factor:.6g}, enabled={self.enabled})"
        )

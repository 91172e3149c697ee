"""Current-Based Leaky Integrate-and-Fire (LIF) Population.

A population of independent LIF neurons that all integrate the same input
spike vector through their own row of the weight matrix.

**Membrane Dynamics** (forward Euler):
=====================================
.. math::

    V(i) = V(i-1) + \\frac{dt}{\\tau_m} (-V(i-1) + I(i))

**Synaptic current**, two regimes selected by tau_s:

- tau_s == 0 (instantaneous synapse): ``I(i) = W·s(i) × tau_m/dt``, so a
  single input of weight w raises V by exactly w.
- tau_s > 0: ``I(i) = I(i-1)(1 - dt/tau_s) + W·s(i) / V_unit`` where V_unit
  is the peak of the PSP produced by a unit Dirac current, so that a single
  input of weight 1 produces a PSP of height 1.

**Spike Generation**:
When V ≥ threshold the neuron emits a spike and V is reset to 0 at once.
There is no refractory period.

Only the most recent ``history_length`` membrane samples are kept (ring
buffer); the rest of the state is the current vector.
"""

from __future__ import annotations

from typing import Optional, Union

import torch
import torch.nn as nn

from stdp_detect.utils.ring_buffer import RingBuffer


def compute_v_unit(tau_s: float, tau_m: float) -> float:
    """Peak PSP height of a unit Dirac synaptic current.

    Args:
        tau_s: Synaptic time constant (s), > 0
        tau_m: Membrane time constant (s), != tau_s

    Returns:
        Normalisation constant V_unit
    """
    if tau_s <= 0:
        raise ValueError(f"tau_s must be > 0, got {tau_s}")
    if tau_s == tau_m:
        raise ValueError("tau_s must differ from tau_m")
    ratio = tau_s / tau_m
    return (
        tau_s
        / (tau_m - tau_s)
        * (ratio ** (tau_s / (tau_m - tau_s)) - ratio ** (tau_m / (tau_m - tau_s)))
    )


class LIFPopulation(nn.Module):
    """Independent current-based LIF neurons sharing one input stream.

    Args:
        n_neurons: Number of neurons
        thresholds: Scalar or per-neuron [n_neurons] spike thresholds
        tau_m: Membrane time constant (s)
        tau_s: Synaptic time constant (s); 0 selects instantaneous synapses
        dt: Integration step (s)
        history_length: Number of membrane samples retained
        device: Torch device
        dtype: Torch dtype of the state

    Example:
        >>> lif = LIFPopulation(10, thresholds=20.0, tau_m=10e-3, tau_s=0.0,
        ...                     dt=1e-4, history_length=5000)
        >>> post_spikes = lif(weights, pre_spikes)
    """

    def __init__(
        self,
        n_neurons: int,
        thresholds: Union[float, torch.Tensor],
        tau_m: float,
        tau_s: float,
        dt: float,
        history_length: int,
        device: Optional[torch.device] = None,
        dtype: torch.dtype = torch.float64,
    ):
        super().__init__()
        self.n_neurons = n_neurons
        self.tau_m = tau_m
        self.tau_s = tau_s
        self.dt = dt

        thr = torch.as_tensor(thresholds, dtype=dtype, device=device)
        if thr.dim() == 0:
            thr = thr.expand(n_neurons).clone()
        self.register_buffer("v_threshold", thr)
        self.register_buffer("current", torch.zeros(n_neurons, dtype=dtype, device=device))
        self.v_threshold: torch.Tensor
        self.current: torch.Tensor

        self.v_unit = compute_v_unit(tau_s, tau_m) if tau_s > 0 else None
        self._current_decay = 1.0 - dt / tau_s if tau_s > 0 else 0.0
        self._leak = dt / tau_m

        self.history = RingBuffer(history_length, n_neurons, device=device or "cpu", dtype=dtype)

    @property
    def membrane(self) -> torch.Tensor:
        """Membrane potential after the latest step [n_neurons]."""
        return self.history.latest()

    def integrate(self, weights: torch.Tensor, pre_spikes: torch.Tensor) -> torch.Tensor:
        """Advance current and voltage by one step, without thresholding.

        Args:
            weights: Weight matrix [n_neurons, n_pre]
            pre_spikes: Boolean presynaptic spikes [n_pre]

        Returns:
            Updated membrane potential [n_neurons] (view into the history)
        """
        drive = torch.mv(weights, pre_spikes.to(weights.dtype))

        if self.v_unit is None:
            self.current = drive * (self.tau_m / self.dt)
        else:
            self.current = self.current * self._current_decay + drive / self.v_unit

        # Before the push, the latest sample is V(i-1)
        v_prev = self.history.latest()
        self.history.push(v_prev + self._leak * (-v_prev + self.current))
        return self.history.latest()

    def fire(self) -> torch.Tensor:
        """Emit spikes where V ≥ threshold and reset those neurons to 0.

        Returns:
            Boolean spike mask [n_neurons]
        """
        spikes = self.history.latest() >= self.v_threshold
        if spikes.any():
            self.history.reset_latest(spikes, 0.0)
        return spikes

    def forward(self, weights: torch.Tensor, pre_spikes: torch.Tensor) -> torch.Tensor:
        """Integrate one step and return the postsynaptic spike mask."""
        self.integrate(weights, pre_spikes)
        return self.fire()

    def reset_state(self) -> None:
        """Zero current and membrane history."""
        self.current.zero_()
        self.history.reset_state()

    def __repr__(self) -> str:
        return (
            f"LIFPopulation(n_neurons={self.n_neurons}, tau_m={self.tau_m}, "
            f"tau_s={self.tau_s}, dt={self.dt})"
        )

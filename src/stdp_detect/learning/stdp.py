"""
Additive all-to-all STDP with homeostatic decrement.

Song, Miller & Abbott (2000) style spike-timing-dependent plasticity driven by
two decaying traces, plus a fixed weight decrement on every postsynaptic spike
(Kempter, Gerstner & van Hemmen 1999).

- Presynaptic trace a_pre [n_pre]: incremented by da_pre on every input spike.
- Postsynaptic trace a_post [n_post]: incremented by da_post on every output spike.
- LTD: when afferent k fires, column k of W loses a_post.
- LTP: when neuron n fires, row n of W gains a_pre.
- Homeostasis: when neuron n fires, row n of W loses dw_post[n].

Weights are hard-bounded to [w_min, w_max] after each individual update.

Order within one step:
    1. a_post decays, then LTD uses it (before this step's post increments)
    2. a_pre decays, then takes this step's input spikes
    3. for post spikes: a_post increment, LTP with the updated a_pre (clip at
       w_max), homeostatic decrement (clip at w_min)
A sub-rule whose increments are all zero is skipped along with its trace.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Union

import torch
import torch.nn as nn

from stdp_detect.components.synapses.traces import EligibilityTrace
from stdp_detect.config.simulation_config import SimulationConfig
from stdp_detect.utils.core_utils import clamp_weights


@dataclass
class STDPConfig:
    """Configuration for additive STDP.

    Attributes:
        tau_pre: Presynaptic trace time constant (s)
        tau_post: Postsynaptic trace time constant (s)
        da_pre: Presynaptic trace increment (scalar or [n_pre])
        da_post: Postsynaptic trace increment (scalar or [n_post])
        dw_post: Homeostatic decrement per post spike (scalar or [n_post])
        w_min: Minimum weight
        w_max: Maximum weight
    """

    tau_pre: float = 20e-3
    tau_post: float = 20e-3
    da_pre: Union[float, torch.Tensor] = 0.01
    da_post: Union[float, torch.Tensor] = 0.0085
    dw_post: Union[float, torch.Tensor] = 0.0015
    w_min: float = 0.0
    w_max: float = 1.0

    @classmethod
    def from_simulation_config(cls, config: SimulationConfig) -> "STDPConfig":
        return cls(
            tau_pre=config.tau_pre,
            tau_post=config.tau_post,
            da_pre=config.parameter_tensor("da_pre", config.n_pre),
            da_post=config.parameter_tensor("da_post", config.n_post),
            dw_post=config.parameter_tensor("dw_post", config.n_post),
        )


class AdditiveSTDP(nn.Module):
    """Trace-based additive STDP acting in place on a weight matrix.

    Args:
        n_pre: Number of afferents
        n_post: Number of postsynaptic neurons
        dt: Integration step (s)
        config: STDP configuration parameters

    Example:
        >>> stdp = AdditiveSTDP(n_pre=1000, n_post=10, dt=1e-4)
        >>> for i in steps:
        ...     post_spikes = lif(weights, pre_spikes)
        ...     stdp(weights, pre_spikes, post_spikes)
    """

    def __init__(
        self,
        n_pre: int,
        n_post: int,
        dt: float,
        config: Optional[STDPConfig] = None,
        device: Optional[torch.device] = None,
        dtype: torch.dtype = torch.float64,
    ):
        super().__init__()
        self.n_pre = n_pre
        self.n_post = n_post
        self.config = config or STDPConfig()

        self.pre_trace = EligibilityTrace(
            n_pre, tau=self.config.tau_pre, dt=dt, increment=self.config.da_pre,
            device=device, dtype=dtype,
        )
        self.post_trace = EligibilityTrace(
            n_post, tau=self.config.tau_post, dt=dt, increment=self.config.da_post,
            device=device, dtype=dtype,
        )

        dw_post = torch.as_tensor(self.config.dw_post, dtype=dtype, device=device)
        if dw_post.dim() == 0:
            dw_post = dw_post.expand(n_post).clone()
        self.register_buffer("dw_post", dw_post)
        self.dw_post: torch.Tensor

    @property
    def ltp_enabled(self) -> bool:
        return self.pre_trace.enabled

    @property
    def ltd_enabled(self) -> bool:
        return self.post_trace.enabled

    @property
    def homeostasis_enabled(self) -> bool:
        return bool((self.dw_post > 0).any())

    @property
    def a_pre(self) -> torch.Tensor:
        return self.pre_trace.trace

    @property
    def a_post(self) -> torch.Tensor:
        return self.post_trace.trace

    def depress(self, weights: torch.Tensor, pre_spikes: torch.Tensor) -> None:
        """LTD: subtract a_post from the column of every spiking afferent."""
        cfg = self.config
        weights[:, pre_spikes] = clamp_weights(
            weights[:, pre_spikes] - self.a_post.unsqueeze(1), w_min=cfg.w_min, w_max=None
        )

    def potentiate(self, weights: torch.Tensor, post_spikes: torch.Tensor) -> None:
        """LTP: add a_pre to the row of every spiking neuron."""
        cfg = self.config
        weights[post_spikes] = clamp_weights(
            weights[post_spikes] + self.a_pre.unsqueeze(0), w_min=None, w_max=cfg.w_max
        )

    def homeostatic_decrement(self, weights: torch.Tensor, post_spikes: torch.Tensor) -> None:
        """Subtract dw_post[n] from every weight of each spiking neuron n."""
        cfg = self.config
        weights[post_spikes] = clamp_weights(
            weights[post_spikes] - self.dw_post[post_spikes].unsqueeze(1),
            w_min=cfg.w_min,
            w_max=None,
        )

    def forward(
        self,
        weights: torch.Tensor,
        pre_spikes: torch.Tensor,
        post_spikes: torch.Tensor,
    ) -> torch.Tensor:
        """Apply one step of plasticity to ``weights`` in place.

        Args:
            weights: Weight matrix [n_post, n_pre], modified in place
            pre_spikes: Boolean input spikes of this step [n_pre]
            post_spikes: Boolean output spikes of this step [n_post]

        Returns:
            The same weight tensor
        """
        any_pre = bool(pre_spikes.any())

        if self.ltd_enabled:
            self.post_trace.decay()
            if any_pre:
                self.depress(weights, pre_spikes)

        if self.ltp_enabled:
            self.pre_trace.decay()
            if any_pre:
                self.pre_trace.increment(pre_spikes)

        if post_spikes.any():
            if self.ltd_enabled:
                self.post_trace.increment(post_spikes)
            if self.ltp_enabled:
                self.potentiate(weights, post_spikes)
            if self.homeostasis_enabled:
                self.homeostatic_decrement(weights, post_spikes)

        return weights

    def reset_state(self) -> None:
        """Reset both traces to zero."""
        self.pre_trace.reset_state()
        self.post_trace.reset_state()

    def __repr__(self) -> str:
        return (
            f"AdditiveSTDP({self.n_pre} -> {self.n_post}, "
            f"τ_pre={self.config.tau_pre}, τ_post={self.config.tau_post})"
        )

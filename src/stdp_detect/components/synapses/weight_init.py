"""Weight Initialization - homogeneous starting weights below threshold.

A neuron integrating pure Poisson background through homogeneous weights
settles at a mean potential proportional to ``tau_m * n_pre * f * w``. The
initializers here pick ``w`` per neuron so that this mean sits a controlled
distance below the neuron's threshold.
"""

from __future__ import annotations

import logging
import warnings
from typing import Union

import torch

from stdp_detect.config.simulation_config import SimulationConfig
from stdp_detect.errors import ConfigurationError, InitialWeightWarning
from stdp_detect.utils.core_utils import clamp_weights

logger = logging.getLogger(__name__)


class WeightInitializer:
    """
    Initial weight strategies.

    All methods return a plain ``[n_post, n_pre]`` tensor (rows are
    postsynaptic neurons, columns afferents).
    """

    @staticmethod
    def instantaneous_synapse(
        thresholds: torch.Tensor,
        n_pre: int,
        tau_m: float,
        f: float,
        distance_to_threshold: float,
    ) -> torch.Tensor:
        """
        Homogeneous weights for current-free (tau_s == 0) synapses.

        The background-driven potential has mean ``tau_m*n_pre*f*w`` and a
        standard deviation of about ``sqrt(tau_m*n_pre*f/2)*w``; the weights
        put the threshold ``distance_to_threshold`` standard deviations above
        the mean:

            w = thr / (tau_m*n_pre*f) / (1 + (2*tau_m*n_pre*f)**-0.5 * distance)

        Args:
            thresholds: Per-neuron thresholds [n_post]
            n_pre: Number of afferents
            tau_m: Membrane time constant (s)
            f: Background firing rate (Hz)
            distance_to_threshold: Distance in noise standard deviations

        Returns:
            Weight matrix [n_post, n_pre]
        """
        drive = tau_m * n_pre * f
        if drive <= 0:
            raise ConfigurationError(
                "Initial weights need a positive background drive (tau_m*n_pre*f > 0)"
            )
        per_neuron = thresholds / drive / (1.0 + (2 * drive) ** -0.5 * distance_to_threshold)
        return per_neuron.unsqueeze(1).expand(-1, n_pre).clone()

    @staticmethod
    def filtered_synapse(
        thresholds: torch.Tensor,
        n_pre: int,
        f: float,
    ) -> torch.Tensor:
        """
        Homogeneous weights for exponentially filtered (tau_s > 0) synapses.

            w = thr / 80 * 10 / f * 1000 / n_pre

        Args:
            thresholds: Per-neuron thresholds [n_post]
            n_pre: Number of afferents
            f: Background firing rate (Hz)

        Returns:
            Weight matrix [n_post, n_pre]
        """
        if f <= 0:
            raise ConfigurationError("Initial weights need a positive background rate f")
        per_neuron = thresholds / 80.0 * 10.0 / f * 1000.0 / n_pre
        return per_neuron.unsqueeze(1).expand(-1, n_pre).clone()


def initial_weights(
    config: SimulationConfig,
    device: Union[str, torch.device, None] = None,
) -> torch.Tensor:
    """Initial weight matrix for a session without stored weights.

    Warns (InitialWeightWarning) when some weights exceed the upper bound of 1
    and clips them to [0, 1].
    """
    thresholds = config.thresholds()
    if device is not None:
        thresholds = thresholds.to(device)

    if config.tau_s == 0:
        weights = WeightInitializer.instantaneous_synapse(
            thresholds,
            n_pre=config.n_pre,
            tau_m=config.tau_m,
            f=config.f,
            distance_to_threshold=config.initial_distance_to_threshold,
        )
    else:
        weights = WeightInitializer.filtered_synapse(thresholds, n_pre=config.n_pre, f=config.f)

    if weights.max().item() > 1.0:
        message = f"Some initial weights are > 1 (max {weights.max().item():.4g}), clipping to 1"
        logger.warning(message)
        warnings.warn(message, InitialWeightWarning, stacklevel=2)
        clamp_weights(weights, w_min=0.0, w_max=1.0)

    return weights

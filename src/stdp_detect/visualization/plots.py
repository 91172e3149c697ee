"""Plots of a finished session: spike raster, membrane potential, convergence."""

from typing import Optional, Sequence

import numpy as np
import torch

from stdp_detect.config.simulation_config import SimulationConfig
from stdp_detect.evaluation.performance import occurrence_onsets


def _pyplot():
    try:
        import matplotlib.pyplot as plt
    except ImportError:
        raise ImportError("matplotlib required for visualization. Install with: pip install matplotlib")
    return plt


def plot_spike_raster(
    spike_list: torch.Tensor,
    config: SimulationConfig,
    title: str = "Postsynaptic spikes",
    shade_patterns: bool = True,
    ax=None,
):
    """Raster of recorded postsynaptic spikes.

    Args:
        spike_list: ``[n, 2]`` tensor of ``(time, neuron_id)`` rows
        config: Session configuration (time axis and pattern windows)
        title: Plot title
        shade_patterns: Shade every pattern occurrence of the recording window
        ax: Matplotlib axes (creates new if None)

    Returns:
        Matplotlib axes object
    """
    plt = _pyplot()
    if ax is None:
        fig, ax = plt.subplots(figsize=(12, 4))

    spikes = spike_list.detach().cpu().numpy().reshape(-1, 2)
    ax.scatter(spikes[:, 0], spikes[:, 1], s=4, c="black", marker="|")

    if shade_patterns:
        for onset in occurrence_onsets(config):
            start = onset * config.dt
            ax.axvspan(start, start + config.pattern_duration, color="tab:orange", alpha=0.2)

    ax.set_xlabel("Time (s)")
    ax.set_ylabel("Neuron")
    ax.set_title(title)
    ax.set_xlim(config.record_start_time, config.n_steps * config.dt)
    ax.set_ylim(-0.5, config.n_post - 0.5)
    return ax


def plot_membrane_potential(
    membrane_history: torch.Tensor,
    config: SimulationConfig,
    neuron_ids: Optional[Sequence[int]] = None,
    title: str = "Membrane Potential",
    ax=None,
):
    """Chronological membrane potential of the last recorded periods.

    Args:
        membrane_history: ``[n_post, history_length]``, oldest sample first
        config: Session configuration
        neuron_ids: Neurons to plot (default: the first 5)
        title: Plot title
        ax: Matplotlib axes

    Returns:
        Matplotlib axes object
    """
    plt = _pyplot()
    membrane = membrane_history.detach().cpu().numpy()
    n_neurons, n_time = membrane.shape

    if neuron_ids is None:
        neuron_ids = list(range(min(5, n_neurons)))
    if ax is None:
        fig, ax = plt.subplots(figsize=(12, 4))

    # The last sample belongs to the final step
    end = config.n_steps * config.dt
    times = end - config.dt * np.arange(n_time - 1, -1, -1)
    thresholds = config.thresholds().cpu().numpy()

    for nid in neuron_ids:
        line, = ax.plot(times, membrane[nid], label=f"Neuron {nid}")
        ax.axhline(y=thresholds[nid], color=line.get_color(), linestyle="--", alpha=0.5)

    ax.set_xlabel("Time (s)")
    ax.set_ylabel("Membrane Potential")
    ax.set_title(title)
    ax.legend()
    return ax


def plot_convergence(
    values: Sequence[float],
    log_interval: int = 1,
    title: str = "Weight convergence",
    ax=None,
):
    """Convergence index series, one point every ``log_interval`` periods."""
    plt = _pyplot()
    if ax is None:
        fig, ax = plt.subplots(figsize=(6, 4))

    periods = log_interval * np.arange(1, len(values) + 1)
    ax.plot(periods, list(values), marker="o")
    ax.set_xlabel("Period")
    ax.set_ylabel("mean |w - (w > 0.5)|")
    ax.set_ylim(0, 0.5)
    ax.set_title(title)
    return ax


def save_session_figure(result, path) -> None:
    """Save raster, membrane potential and convergence of a session to ``path``.

    Args:
        result: SimulationResult of the session
        path: Output image file
    """
    plt = _pyplot()
    fig, axes = plt.subplots(3, 1, figsize=(12, 10))
    plot_spike_raster(result.spike_list, result.config, ax=axes[0])
    plot_membrane_potential(result.membrane_history, result.config, ax=axes[1])
    plot_convergence(result.convergence, log_interval=result.config.log_interval, ax=axes[2])
    fig.tight_layout()
    fig.savefig(path)
    plt.close(fig)

"""Visualization utilities (require matplotlib)."""

from stdp_detect.visualization.plots import (
    plot_convergence,
    plot_membrane_potential,
    plot_spike_raster,
    save_session_figure,
)

__all__ = [
    "plot_convergence",
    "plot_membrane_potential",
    "plot_spike_raster",
    "save_session_figure",
]

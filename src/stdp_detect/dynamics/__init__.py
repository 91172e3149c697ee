"""Simulation loop."""

from stdp_detect.dynamics.simulation import (
    SimulationResult,
    SimulationState,
    Simulator,
    forward_timestep,
    run_session,
)

__all__ = ["SimulationResult", "SimulationState", "Simulator", "forward_timestep", "run_session"]

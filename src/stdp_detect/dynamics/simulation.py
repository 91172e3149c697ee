"""
Clock-driven simulation of an STDP population exposed to a repeating pattern.

Per integration step ``i`` (from 2 to ``n_period * steps_per_period``):

1. the input source produces the presynaptic spike vector,
2. the LIF population integrates current and voltage and fires,
3. additive STDP and the homeostatic decrement update the weights,
4. postsynaptic spikes in the recording window are logged.

In interactive mode the convergence index is appended to the convergence
store every ``log_interval`` periods, evaluated at the start of the step
before any update, and the final weights are saved. Batch mode only reads
the stores.

Key functions:
- forward_timestep: one integration step on a SimulationState
- Simulator: session setup (stores, patterns, weights) and the main loop
- run_session: build, run and score a session from a config

Usage:
    from stdp_detect.dynamics.simulation import run_session

    config = SimulationConfig.from_yaml("configs/default.yaml")
    result = run_session(config)
    print(result.mean_rate, result.performance.mean_hit_rate)
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import torch

from stdp_detect.components.neurons.lif import LIFPopulation
from stdp_detect.components.synapses.weight_init import initial_weights
from stdp_detect.config.simulation_config import RunMode, SimulationConfig
from stdp_detect.diagnostics.convergence import ConvergenceLogger
from stdp_detect.diagnostics.spike_recorder import SpikeRecorder
from stdp_detect.evaluation.performance import (
    PerformanceReport,
    evaluate_performance,
    format_performance_report,
)
from stdp_detect.io.stores import SessionStores
from stdp_detect.learning.stdp import AdditiveSTDP, STDPConfig
from stdp_detect.stimuli.input_source import InputSpikeSource, SpikeSource
from stdp_detect.stimuli.patterns import generate_patterns

logger = logging.getLogger(__name__)


@dataclass
class SimulationState:
    """Everything one integration step reads or writes.

    ``weights`` is updated in place; the LIF population owns the current
    and the membrane history, the STDP rule owns both traces.
    """

    weights: torch.Tensor
    neurons: LIFPopulation
    plasticity: AdditiveSTDP
    source: SpikeSource
    recorder: SpikeRecorder
    dt: float
    n_post_spikes: int = 0

    def reset(self) -> None:
        """Zero the per-session state (weights are kept)."""
        self.neurons.reset_state()
        self.plasticity.reset_state()
        self.source.reset()
        self.recorder.reset()
        self.n_post_spikes = 0


def forward_timestep(step: int, state: SimulationState) -> torch.Tensor:
    """Advance the simulation by one step.

    Args:
        step: Integration step index ``i`` (simulated time ``i * dt``)
        state: Simulation state, updated in place

    Returns:
        Boolean postsynaptic spike mask [n_post]
    """
    pre_spikes = state.source(step)
    post_spikes = state.neurons(state.weights, pre_spikes)
    state.plasticity(state.weights, pre_spikes, post_spikes)

    n_spikes = int(post_spikes.sum().item())
    if n_spikes:
        state.recorder.record(step * state.dt, post_spikes)
        state.n_post_spikes += n_spikes
    return post_spikes


@dataclass
class SimulationResult:
    """Outputs of one session.

    Attributes:
        spike_list: ``[n, 2]`` tensor of ``(time, neuron_id)`` rows
        weights: Final weight matrix [n_post, n_pre]
        membrane_history: Last ``history_length`` membrane samples, oldest
            first, ``[n_post, history_length]``
        convergence: Convergence values logged during this session
        n_post_spikes: Postsynaptic spikes over the whole session
        n_dropped: Spikes lost to a full spike log
        elapsed: Wall-clock duration (s)
        seed: Seed of the session generator, if one was set
        mode: Run mode
        performance: Detection statistics, when evaluated
    """

    config: SimulationConfig
    spike_list: torch.Tensor
    weights: torch.Tensor
    membrane_history: torch.Tensor
    convergence: List[float] = field(default_factory=list)
    n_post_spikes: int = 0
    n_dropped: int = 0
    elapsed: float = 0.0
    seed: Optional[int] = None
    mode: RunMode = RunMode.INTERACTIVE
    performance: Optional[PerformanceReport] = None

    @property
    def spikes_per_neuron(self) -> float:
        return self.n_post_spikes / self.config.n_post

    @property
    def mean_rate(self) -> float:
        """Mean output firing rate per neuron over the session (Hz)."""
        cfg = self.config
        return self.n_post_spikes / cfg.n_period / cfg.period / cfg.n_post

    def summary(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "seed": self.seed,
            "mode": self.mode.value,
            "n_post_spikes": self.n_post_spikes,
            "mean_rate": self.mean_rate,
            "n_recorded_spikes": int(self.spike_list.shape[0]),
            "n_dropped": self.n_dropped,
            "elapsed": self.elapsed,
            "final_convergence": self.convergence[-1] if self.convergence else None,
        }
        if self.performance is not None:
            data["mean_hit_rate"] = self.performance.mean_hit_rate
            data["mean_false_alarm_rate"] = self.performance.mean_false_alarm_rate
            data["performance"] = self.performance.to_dict()
        return data


class Simulator:
    """One simulation session.

    Args:
        config: Session configuration
        stores: Pattern/weight/convergence stores; None disables persistence
        input_source: Spike source replacing the pattern-embedding source
        weights: Initial weights overriding the weight store

    Example:
        >>> sim = Simulator(config, stores=SessionStores.from_directory("data"))
        >>> result = sim.run()
    """

    def __init__(
        self,
        config: SimulationConfig,
        stores: Optional[SessionStores] = None,
        input_source: Optional[SpikeSource] = None,
        weights: Optional[torch.Tensor] = None,
    ):
        self.config = config
        self.stores = stores
        self.device = config.get_torch_device()
        self.dtype = config.get_torch_dtype()

        self.generator = config.make_generator()
        if config.seed is not None:
            logger.info(f"Setting random seed to {config.seed}")

        self.patterns: Optional[List[torch.Tensor]] = None
        if input_source is None:
            self.patterns = self._setup_patterns()
            input_source = InputSpikeSource(config, self.patterns, generator=self.generator)

        if weights is None:
            weights = self._setup_weights()
        else:
            weights = weights.to(dtype=self.dtype, device=self.device).clone()

        neurons = LIFPopulation(
            config.n_post,
            thresholds=config.thresholds(),
            tau_m=config.tau_m,
            tau_s=config.tau_s,
            dt=config.dt,
            history_length=config.history_length,
            device=self.device,
            dtype=self.dtype,
        )
        plasticity = AdditiveSTDP(
            config.n_pre,
            config.n_post,
            dt=config.dt,
            config=STDPConfig.from_simulation_config(config),
            device=self.device,
            dtype=self.dtype,
        )
        recorder = SpikeRecorder(
            config.spike_capacity,
            start_time=config.record_start_time,
            strict=config.strict_spike_capacity,
            device=self.device,
        )
        self.state = SimulationState(
            weights=weights,
            neurons=neurons,
            plasticity=plasticity,
            source=input_source,
            recorder=recorder,
            dt=config.dt,
        )

        self.convergence: Optional[ConvergenceLogger] = None
        if not config.is_batch:
            self.convergence = ConvergenceLogger(
                interval_steps=config.log_interval * config.steps_per_period,
                store=stores.convergence if stores is not None else None,
            )

    @property
    def persist(self) -> bool:
        return self.stores is not None and not self.config.is_batch

    def _setup_patterns(self) -> List[torch.Tensor]:
        cfg = self.config
        if self.stores is not None:
            patterns = self.stores.patterns.load(cfg)
            if patterns is not None:
                return [p.to(self.device) for p in patterns]

        logger.info(f"Generating {cfg.n_pattern} new pattern(s)")
        patterns = generate_patterns(
            cfg.n_pattern,
            cfg.n_involved,
            cfg.pattern_duration,
            cfg.dt,
            cfg.f,
            generator=self.generator,
            device=self.device,
        )
        if self.persist:
            self.stores.patterns.save(patterns)
        return patterns

    def _setup_weights(self) -> torch.Tensor:
        if self.stores is not None:
            weights = self.stores.weights.load(self.config)
            if weights is not None:
                return weights
        logger.info("Initialising homogeneous weights")
        return initial_weights(self.config, device=self.device).to(self.dtype)

    def _log_progress(self, step: int) -> None:
        if self.convergence is None or not self.convergence.due(step):
            return
        period = step // self.config.steps_per_period
        logger.info(f"Period {period}")
        self.convergence.log(self.state.weights)

    def run(self) -> SimulationResult:
        """Run every step of the session and collect the results.

        Neuron, trace, input and spike-log state start from zero on every
        call; the weights carry over, so a second call continues learning.
        """
        cfg = self.config
        state = self.state
        state.reset()
        if self.convergence is not None:
            self.convergence.values = []
        start = time.perf_counter()

        logger.info(
            f"Running {cfg.n_period} periods ({cfg.n_steps} steps) in {cfg.mode.value} mode"
        )
        for step in range(2, cfg.n_steps + 1):
            self._log_progress(step)
            forward_timestep(step, state)

        spike_list = state.recorder.finalize()
        if self.persist:
            self.stores.weights.save(state.weights)

        result = SimulationResult(
            config=cfg,
            spike_list=spike_list,
            weights=state.weights.clone(),
            membrane_history=state.neurons.history.chronological(),
            convergence=list(self.convergence.values) if self.convergence else [],
            n_post_spikes=state.n_post_spikes,
            n_dropped=state.recorder.n_dropped,
            elapsed=time.perf_counter() - start,
            seed=cfg.seed,
            mode=cfg.mode,
        )
        logger.info(
            f"{result.spikes_per_neuron:g} postsynaptic spikes per neuron "
            f"({result.mean_rate:.1f}Hz)"
        )
        logger.info(f"Elapsed time: {result.elapsed:.1f}s")
        return result


def run_session(
    config: SimulationConfig,
    stores: Optional[SessionStores] = None,
    input_source: Optional[SpikeSource] = None,
    tolerance: float = 0.0,
) -> SimulationResult:
    """Run one session with the stores of ``config.data_dir`` and score it.

    Args:
        config: Session configuration
        stores: Stores to use instead of those in ``config.data_dir``
        input_source: Custom input source (the result is then not scored)
        tolerance: Occurrence tolerance for the performance evaluation (s)
    """
    if stores is None:
        stores = SessionStores.from_directory(config.data_dir, device=config.get_torch_device())

    result = Simulator(config, stores=stores, input_source=input_source).run()

    if input_source is None:
        result.performance = evaluate_performance(result.spike_list, config, tolerance=tolerance)
        logger.info(format_performance_report(result.performance))
    return result

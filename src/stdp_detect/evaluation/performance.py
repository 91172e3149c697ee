"""Pattern detection performance from recorded postsynaptic spikes.

Each period ``k`` of the recording window contains one pattern occurrence.
Its first pattern spike (before jitter) is replayed at step
``k*P + (P - W) + m + 1`` where ``P`` is the period, ``W`` the window and
``m`` the jitter margin, all in steps; the occurrence lasts
``pattern_duration`` and shows pattern ``k % n_pattern``.

- hit rate: fraction of occurrences with at least one spike inside them
- false alarm rate: spikes outside every occurrence divided by the time
  outside every occurrence (Hz)
"""

from dataclasses import dataclass
from typing import Any, Dict, List

import numpy as np
import torch

from stdp_detect.config.simulation_config import SimulationConfig
from stdp_detect.utils.core_utils import round_half_away


@dataclass
class PerformanceReport:
    """Per-neuron detection statistics.

    Attributes:
        hit_rate: Fraction of occurrences hit, shape (n_post,)
        false_alarm_rate: Spikes per second outside occurrences, shape (n_post,)
        hits_per_pattern: Hit rate per pattern, shape (n_post, n_pattern)
        n_occurrences: Occurrences inside the recording window
        tolerance: Extra time appended to every occurrence (s)
    """

    hit_rate: np.ndarray
    false_alarm_rate: np.ndarray
    hits_per_pattern: np.ndarray
    n_occurrences: int
    tolerance: float = 0.0

    @property
    def mean_hit_rate(self) -> float:
        return float(self.hit_rate.mean())

    @property
    def mean_false_alarm_rate(self) -> float:
        return float(self.false_alarm_rate.mean())

    def to_dict(self) -> Dict[str, Any]:
        return {
            "hit_rate": self.hit_rate.tolist(),
            "false_alarm_rate": self.false_alarm_rate.tolist(),
            "hits_per_pattern": self.hits_per_pattern.tolist(),
            "n_occurrences": self.n_occurrences,
            "tolerance": self.tolerance,
            "mean_hit_rate": self.mean_hit_rate,
            "mean_false_alarm_rate": self.mean_false_alarm_rate,
        }


def occurrence_onsets(config: SimulationConfig) -> np.ndarray:
    """Onset steps of the pattern occurrences in the spike recording window."""
    first_period = config.n_period - config.n_period_record_spike
    periods = np.arange(first_period, config.n_period)
    return periods * config.steps_per_period + config.window_start + config.jitter_steps + 1


def evaluate_performance(
    spike_list: torch.Tensor,
    config: SimulationConfig,
    tolerance: float = 0.0,
) -> PerformanceReport:
    """Score a spike list against the known pattern occurrences.

    Args:
        spike_list: ``[n, 2]`` tensor of ``(time, neuron_id)`` rows
        config: Configuration of the session that produced the spikes
        tolerance: Time added after the end of every occurrence (s)

    Returns:
        PerformanceReport
    """
    spikes = spike_list.detach().cpu().numpy().reshape(-1, 2)
    steps = np.rint(spikes[:, 0] / config.dt).astype(np.int64)
    neurons = spikes[:, 1].astype(np.int64)

    onsets = occurrence_onsets(config)
    length = config.pattern_steps + round_half_away(tolerance / config.dt)
    ends = onsets + length
    first_period = config.n_period - config.n_period_record_spike
    pattern_ids = np.arange(first_period, config.n_period) % config.n_pattern
    n_occurrences = len(onsets)

    # [n_spikes, n_occurrences]
    inside = (steps[:, None] >= onsets[None, :]) & (steps[:, None] < ends[None, :])

    record_time = config.n_period_record_spike * config.period
    outside_time = record_time - n_occurrences * length * config.dt

    hit_rate = np.zeros(config.n_post)
    false_alarm_rate = np.zeros(config.n_post)
    hits_per_pattern = np.zeros((config.n_post, config.n_pattern))

    for n in range(config.n_post):
        mine = neurons == n
        hit = inside[mine].any(axis=0)
        hit_rate[n] = hit.mean() if n_occurrences else 0.0
        for p in range(config.n_pattern):
            shown = pattern_ids == p
            if shown.any():
                hits_per_pattern[n, p] = hit[shown].mean()
        n_false = int((~inside[mine].any(axis=1)).sum())
        false_alarm_rate[n] = n_false / outside_time if outside_time > 0 else 0.0

    return PerformanceReport(
        hit_rate=hit_rate,
        false_alarm_rate=false_alarm_rate,
        hits_per_pattern=hits_per_pattern,
        n_occurrences=n_occurrences,
        tolerance=tolerance,
    )


def format_performance_report(report: PerformanceReport) -> str:
    """Human-readable summary, one line per neuron."""
    lines: List[str] = [
        f"Performance over {report.n_occurrences} pattern occurrences "
        f"(tolerance {report.tolerance * 1e3:.1f} ms)",
    ]
    for n, (hit, fa) in enumerate(zip(report.hit_rate, report.false_alarm_rate)):
        lines.append(f"  neuron {n:3d}: hit rate {hit:6.1%}, false alarms {fa:6.2f} Hz")
    lines.append(
        f"  mean: hit rate {report.mean_hit_rate:.1%}, "
        f"false alarms {report.mean_false_alarm_rate:.2f} Hz"
    )
    return "\n".join(lines)

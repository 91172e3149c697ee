"""
Frozen spike patterns and their per-repetition jittered copies.

A pattern is a boolean ``[n_involved, pattern_steps]`` matrix of independent
Bernoulli(dt*f) spikes, so that during the pattern the involved afferents fire
at the same mean rate as the background. Each repetition presents a jittered
copy: every pattern spike is displaced by a Gaussian delay, and the copy is
widened by a jitter margin on each side filled with background spikes.
"""

from __future__ import annotations

from typing import List, Optional, Union

import torch

from stdp_detect.utils.core_utils import round_half_away, round_half_away_tensor


def bernoulli_spikes(
    shape: Union[int, tuple],
    probability: float,
    generator: Optional[torch.Generator] = None,
    device: Union[str, torch.device] = "cpu",
) -> torch.Tensor:
    """Independent Bernoulli spikes as a boolean tensor."""
    if isinstance(shape, int):
        shape = (shape,)
    return torch.rand(shape, generator=generator, device=device) < probability


def generate_patterns(
    n_pattern: int,
    n_involved: int,
    pattern_duration: float,
    dt: float,
    f: float,
    generator: Optional[torch.Generator] = None,
    device: Union[str, torch.device] = "cpu",
) -> List[torch.Tensor]:
    """Generate ``n_pattern`` independent frozen patterns.

    Args:
        n_pattern: Number of patterns
        n_involved: Afferents taking part in the patterns
        pattern_duration: Pattern length (s)
        dt: Integration step (s)
        f: Firing rate of the involved afferents (Hz)
        generator: Random generator (reproducibility)
        device: Torch device

    Returns:
        List of boolean ``[n_involved, round(pattern_duration/dt)]`` tensors
    """
    steps = round_half_away(pattern_duration / dt)
    return [
        bernoulli_spikes((n_involved, steps), dt * f, generator=generator, device=device)
        for _ in range(n_pattern)
    ]


def jitter_pattern(
    pattern: torch.Tensor,
    jitter: float,
    f: float,
    dt: float,
    generator: Optional[torch.Generator] = None,
) -> torch.Tensor:
    """Jittered copy of a pattern, widened by a background-filled margin.

    With ``m = round(jitter/dt)`` the result has ``L + 2m`` columns. The ``m``
    leading and trailing columns get Bernoulli(dt*f) background spikes. Each
    pattern spike at column ``t`` lands on ``t + m + round(N(0, jitter)/dt)``;
    spikes pushed outside the matrix are dropped and spikes landing on the
    same entry merge into one.

    Args:
        pattern: Boolean ``[n_involved, L]`` pattern
        jitter: Standard deviation of the spike displacement (s)
        f: Background rate of the margins (Hz)
        dt: Integration step (s)
        generator: Random generator

    Returns:
        Boolean ``[n_involved, L + 2m]`` tensor
    """
    if jitter == 0:
        return pattern.clone()

    n_rows, length = pattern.shape
    margin = round_half_away(jitter / dt)
    width = length + 2 * margin
    device = pattern.device

    jittered = torch.zeros((n_rows, width), dtype=torch.bool, device=device)
    if margin > 0:
        jittered[:, :margin] = bernoulli_spikes(
            (n_rows, margin), dt * f, generator=generator, device=device
        )
        jittered[:, length + margin:] = bernoulli_spikes(
            (n_rows, margin), dt * f, generator=generator, device=device
        )

    rows, cols = pattern.nonzero(as_tuple=True)
    if rows.numel() == 0:
        return jittered

    noise = torch.randn(rows.shape, generator=generator, device=device, dtype=torch.float64)
    shifted = cols + margin + round_half_away_tensor(noise * jitter / dt)
    keep = (shifted >= 0) & (shifted < width)
    jittered[rows[keep], shifted[keep]] = True
    return jittered

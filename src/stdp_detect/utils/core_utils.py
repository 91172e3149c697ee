"""Small tensor helpers shared across stdp-detect."""

from __future__ import annotations

import math
from typing import Optional

import torch


def clamp_weights(
    weights: torch.Tensor,
    w_min: Optional[float] = 0.0,
    w_max: Optional[float] = 1.0,
    inplace: bool = True,
) -> torch.Tensor:
    """Clamp weight tensor to valid range.

    Standard pattern for enforcing hard bounds after a plasticity update.
    Either bound may be None to clip on one side only.

    Args:
        weights: Weight tensor to clamp
        w_min: Minimum weight value (default: 0.0)
        w_max: Maximum weight value (default: 1.0)
        inplace: If True, modify weights in place (default: True)

    Returns:
        Clamped weight tensor

    Example:
        >>> clamp_weights(w, w_min=0.0, w_max=None)  # after a depression
    """
    if inplace:
        return weights.clamp_(min=w_min, max=w_max)
    return weights.clamp(min=w_min, max=w_max)


def round_half_away(x: float) -> int:
    """Round to nearest integer, halves away from zero."""
    return int(math.copysign(math.floor(abs(x) + 0.5), x))


def round_half_away_tensor(x: torch.Tensor) -> torch.Tensor:
    """Elementwise :func:`round_half_away`, returned as int64."""
    return (torch.sign(x) * torch.floor(x.abs() + 0.5)).to(torch.int64)

"""Shared utilities."""

from stdp_detect.utils.core_utils import clamp_weights, round_half_away, round_half_away_tensor
from stdp_detect.utils.ring_buffer import RingBuffer

__all__ = ["clamp_weights", "round_half_away", "round_half_away_tensor", "RingBuffer"]

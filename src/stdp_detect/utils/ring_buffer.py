"""
Ring buffer for bounded state histories.

Keeps the most recent ``length`` samples of a ``[size]`` state vector (the
membrane potential of every postsynaptic neuron, for instance). Older samples
are overwritten. Wrap-around is handled with modulo arithmetic hidden behind
``push``/``latest``/``previous``.

Memory: O(length × size)
push/latest/previous: O(size)
"""

from __future__ import annotations

from typing import Optional, Union

import torch
import torch.nn as nn


class RingBuffer(nn.Module):
    """Fixed-length circular history of a state vector.

    Slot 0 initially holds the initial state (zeros), so ``latest()`` before
    any ``push`` returns that initial state and the first ``push`` lands in
    slot 1.

    Args:
        length: Number of samples retained (>= 1)
        size: Size of each sample
        device: Torch device
        dtype: Data type of the stored samples
    """

    def __init__(
        self,
        length: int,
        size: int,
        device: Union[str, torch.device] = "cpu",
        dtype: torch.dtype = torch.float64,
    ):
        if length < 1:
            raise ValueError(f"length must be >= 1, got {length}")
        if size <= 0:
            raise ValueError(f"size must be > 0, got {size}")

        super().__init__()

        self.length = length
        self.size = size

        # Buffer: [length, size]
        self.register_buffer(
            "buffer",
            torch.zeros((length, size), dtype=dtype, device=device),
        )
        self.buffer: torch.Tensor

        # Slot holding the most recent sample
        self.ptr = 0
        self.n_pushed = 0

    def latest(self) -> torch.Tensor:
        """Most recent sample (a view: in-place edits update the history)."""
        return self.buffer[self.ptr]

    def previous(self) -> torch.Tensor:
        """Sample written just before the latest one.

        With ``length == 1`` this is the latest sample itself, which is still
        the right "previous" value as long as it is read before the next push.
        """
        return self.buffer[(self.ptr - 1) % self.length]

    def read(self, delay: int) -> torch.Tensor:
        """Read the sample written ``delay`` pushes ago (0 = latest)."""
        if delay < 0 or delay >= self.length:
            raise ValueError(f"Delay {delay} out of range [0, {self.length - 1}]")
        return self.buffer[(self.ptr - delay) % self.length]

    def push(self, values: torch.Tensor) -> None:
        """Advance to the next slot and store ``values`` there."""
        if values.shape != (self.size,):
            raise ValueError(
                f"Sample shape mismatch: expected ({self.size},), got {tuple(values.shape)}"
            )
        self.ptr = (self.ptr + 1) % self.length
        self.buffer[self.ptr] = values.to(dtype=self.buffer.dtype, device=self.buffer.device)
        self.n_pushed += 1

    def reset_latest(self, mask: torch.Tensor, value: float = 0.0) -> None:
        """Overwrite masked entries of the latest sample."""
        self.buffer[self.ptr, mask] = value

    def chronological(self, samples_first: bool = False) -> torch.Tensor:
        """Return the history ordered oldest → newest.

        Args:
            samples_first: If False (default) the result is ``[size, length]``
                (one row per state entry); otherwise ``[length, size]``.
        """
        ordered = torch.roll(self.buffer, shifts=-(self.ptr + 1), dims=0)
        if samples_first:
            return ordered.clone()
        return ordered.t().contiguous()

    def reset_state(self, initial: Optional[torch.Tensor] = None) -> None:
        """Clear the history; optionally seed slot 0 with ``initial``."""
        self.buffer.zero_()
        self.ptr = 0
        self.n_pushed = 0
        if initial is not None:
            self.buffer[0] = initial

    def __repr__(self) -> str:
        return f"RingBuffer(length={self.length}, size={self.size})"

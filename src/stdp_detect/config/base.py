"""
Base Configuration Classes.

Common fields shared by every configuration in stdp-detect: the torch device,
the tensor dtype, and the random seed.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import torch


@dataclass
class BaseConfig:
    """Base configuration with common fields for all components.

    - device: Hardware device (cpu/cuda)
    - dtype: Tensor data type
    - seed: Random seed for reproducibility
    """

    device: str = "cpu"
    """Device to run on: 'cpu', 'cuda', 'cuda:0', etc."""

    dtype: str = "float64"
    """Data type for state tensors: 'float64' (default) or 'float32'."""

    seed: Optional[int] = None
    """Random seed for reproducibility. None = fresh entropy."""

    def get_torch_device(self) -> torch.device:
        """Get PyTorch device object."""
        return torch.device(self.device)

    def get_torch_dtype(self) -> torch.dtype:
        """Get PyTorch dtype object."""
        dtype_map = {
            "float32": torch.float32,
            "float64": torch.float64,
        }
        if self.dtype not in dtype_map:
            raise ValueError(
                f"Unknown dtype '{self.dtype}'. "
                f"Choose from: {list(dtype_map.keys())}"
            )
        return dtype_map[self.dtype]

    def make_generator(self) -> torch.Generator:
        """Create the session random generator.

        Seeded with ``seed`` when set, otherwise with fresh entropy.
        """
        generator = torch.Generator(device=self.get_torch_device())
        if self.seed is None:
            generator.seed()
        else:
            generator.manual_seed(self.seed)
        return generator

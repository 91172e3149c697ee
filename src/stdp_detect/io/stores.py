"""
Persistent stores for state carried across sessions.

Three files live in the session data directory:

- ``pattern.pt``: the frozen patterns, ``[n_pattern, n_involved, pattern_steps]`` bool
- ``w.pt``: the weight matrix, ``[n_post, n_pre]``
- ``conv.pt``: the convergence series, 1-D float64

Files are written with ``torch.save`` into a temporary file in the same
directory and moved into place with ``os.replace``, so a concurrent reader
sees either the old or the new content, never a partial file.

A file that exists but cannot be read, holds the wrong type, or does not
match the configuration raises a :class:`StoreError` subclass. Stores never
fall back to regenerating content on error.
"""

from __future__ import annotations

import logging
import os
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Any, List, Optional, Sequence, Union

import torch

from stdp_detect.config.simulation_config import SimulationConfig
from stdp_detect.errors import StoreCorruptedError, StoreError, StoreShapeError

logger = logging.getLogger(__name__)

PATTERN_FILE = "pattern.pt"
WEIGHT_FILE = "w.pt"
CONVERGENCE_FILE = "conv.pt"


class TensorStore:
    """A single ``torch.save`` file with atomic writes.

    Args:
        path: File location
        device: Device tensors are mapped to on load
    """

    def __init__(self, path: Union[str, Path], device: Union[str, torch.device] = "cpu"):
        self.path = Path(path)
        self.device = torch.device(device)

    def exists(self) -> bool:
        return self.path.exists()

    def _read(self) -> Any:
        try:
            return torch.load(self.path, map_location=self.device, weights_only=True)
        except Exception as e:
            raise StoreCorruptedError(f"Cannot read store {self.path}: {e}") from e

    def _read_tensor(self) -> torch.Tensor:
        data = self._read()
        if not isinstance(data, torch.Tensor):
            raise StoreCorruptedError(
                f"Store {self.path} holds {type(data).__name__}, expected a tensor"
            )
        return data

    def _write(self, data: Any) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "wb") as f:
                torch.save(data, f)
            os.replace(tmp_name, self.path)
        except OSError as e:
            if os.path.exists(tmp_name):
                os.remove(tmp_name)
            raise StoreError(f"Cannot write store {self.path}: {e}") from e

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(path='{self.path}')"


class PatternStore(TensorStore):
    """Frozen pattern set."""

    def load(self, config: SimulationConfig) -> Optional[List[torch.Tensor]]:
        """Stored patterns, or None when the file does not exist.

        Raises:
            StoreCorruptedError: Unreadable file or non-boolean content
            StoreShapeError: Pattern count or shape differs from ``config``
        """
        if not self.exists():
            return None
        data = self._read_tensor()
        if data.dtype != torch.bool:
            raise StoreCorruptedError(f"Store {self.path} holds {data.dtype}, expected bool")

        expected = (config.n_pattern, config.n_involved, config.pattern_steps)
        if tuple(data.shape) != expected:
            raise StoreShapeError(
                f"Stored patterns have shape {tuple(data.shape)}, "
                f"configuration expects {expected}"
            )
        logger.info(f"Loaded {data.shape[0]} pattern(s) from {self.path}")
        return list(data.unbind(0))

    def save(self, patterns: Sequence[torch.Tensor]) -> None:
        self._write(torch.stack([p.to(torch.bool).cpu() for p in patterns]))
        logger.info(f"Saved {len(patterns)} pattern(s) to {self.path}")


class WeightStore(TensorStore):
    """Synaptic weight matrix."""

    def load(self, config: SimulationConfig) -> Optional[torch.Tensor]:
        """Stored weights in the config dtype, or None when absent.

        Raises:
            StoreCorruptedError: Unreadable file or non-floating content
            StoreShapeError: Shape differs from ``(n_post, n_pre)``
        """
        if not self.exists():
            return None
        data = self._read_tensor()
        if not data.is_floating_point():
            raise StoreCorruptedError(f"Store {self.path} holds {data.dtype}, expected float")

        expected = (config.n_post, config.n_pre)
        if tuple(data.shape) != expected:
            raise StoreShapeError(
                f"Stored weights have shape {tuple(data.shape)}, "
                f"configuration expects {expected}"
            )
        logger.info(f"Loaded weights from {self.path}")
        return data.to(dtype=config.get_torch_dtype(), device=config.get_torch_device())

    def save(self, weights: torch.Tensor) -> None:
        self._write(weights.detach().cpu().clone())
        logger.info(f"Saved weights to {self.path}")


class ConvergenceStore(TensorStore):
    """Convergence series, appended to across sessions."""

    def load(self) -> List[float]:
        if not self.exists():
            return []
        data = self._read_tensor()
        if data.dim() != 1 or not data.is_floating_point():
            raise StoreCorruptedError(
                f"Store {self.path} must hold a 1-D float tensor, "
                f"got {data.dtype} with shape {tuple(data.shape)}"
            )
        return data.tolist()

    def save(self, values: Sequence[float]) -> None:
        self._write(torch.tensor(list(values), dtype=torch.float64))

    def append(self, value: float) -> List[float]:
        """Read the series, append ``value`` and write it back."""
        values = self.load()
        values.append(float(value))
        self.save(values)
        return values


@dataclass
class SessionStores:
    """The three stores of one data directory."""

    patterns: PatternStore
    weights: WeightStore
    convergence: ConvergenceStore

    @classmethod
    def from_directory(
        cls,
        data_dir: Union[str, Path],
        device: Union[str, torch.device] = "cpu",
    ) -> "SessionStores":
        data_dir = Path(data_dir)
        return cls(
            patterns=PatternStore(data_dir / PATTERN_FILE, device=device),
            weights=WeightStore(data_dir / WEIGHT_FILE, device=device),
            convergence=ConvergenceStore(data_dir / CONVERGENCE_FILE, device=device),
        )

"""
Simulation configuration.

SimulationConfig gathers every numerical parameter of a session (neuron,
synapse, plasticity and input statistics) together with the run-control
fields (mode, data directory, logging interval, spike log sizing).

All times are in seconds and all rates in Hz, so ``dt * f`` is the per-step
probability of an input spike.

Example:
    >>> config = SimulationConfig.from_yaml("configs/default.yaml",
    ...                                     overrides={"n_period": 10,
    ...                                                "n_period_record_spike": 5})
    >>> config.steps_per_period
    5000
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, fields
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Union

import torch
import yaml

from stdp_detect.config.base import BaseConfig
from stdp_detect.config.validation import ValidatedConfig
from stdp_detect.errors import ConfigurationError
from stdp_detect.utils.core_utils import round_half_away

Scalar = Union[int, float]
ScalarOrArray = Union[Scalar, Sequence[Scalar]]


class RunMode(Enum):
    """How a session interacts with its stores and the console.

    INTERACTIVE: stores are read and updated, progress and convergence are
        logged periodically.
    BATCH: an externally supplied seed drives the session, stores are only
        read, convergence is never written.
    """

    INTERACTIVE = "interactive"
    BATCH = "batch"


@dataclass
class SimulationConfig(BaseConfig, ValidatedConfig):
    """Parameters of one simulation session.

    Per-neuron parameters (``thr``, ``da_post``, ``dw_post``) accept a scalar
    or a sequence of length ``n_post``; ``da_pre`` accepts a scalar or a
    sequence of length ``n_pre``.
    """

    # Integration
    dt: float = 1e-4
    tau_m: float = 10e-3
    tau_s: float = 0.0

    # Population
    n_post: int = 10
    thr: ScalarOrArray = 20.0
    initial_distance_to_threshold: float = 2.0

    # Input
    n_pre: int = 1000
    n_involved: int = 500
    f: float = 5.0
    n_pattern: int = 1
    pattern_duration: float = 50e-3
    jitter: float = 1e-3
    period: float = 0.5

    # Run length and recording
    n_period: int = 1000
    n_period_record: int = 2
    n_period_record_spike: int = 100

    # Plasticity
    tau_pre: float = 20e-3
    tau_post: float = 20e-3
    da_pre: ScalarOrArray = 0.01
    da_post: ScalarOrArray = 0.0085
    dw_post: ScalarOrArray = 0.0015

    # Run control
    mode: RunMode = RunMode.INTERACTIVE
    data_dir: str = "data"
    log_interval: int = 100
    """Periods between progress messages and convergence entries."""

    spike_capacity_per_period: int = 10
    """Expected upper bound on spikes per neuron per recorded period."""

    strict_spike_capacity: bool = False
    """Raise instead of warning when the spike log overflows."""

    _validation_rules = {
        "dt": ("positive", "finite"),
        "tau_m": ("positive", "finite"),
        "tau_s": ("non_negative", "finite"),
        "n_post": ("positive_integer",),
        "thr": ("positive", "finite"),
        "initial_distance_to_threshold": ("finite",),
        "n_pre": ("positive_integer",),
        "n_involved": ("positive_integer",),
        "f": ("non_negative", "finite"),
        "n_pattern": ("positive_integer",),
        "pattern_duration": ("positive", "finite"),
        "jitter": ("non_negative", "finite"),
        "period": ("positive", "finite"),
        "n_period": ("positive_integer",),
        "n_period_record": ("positive_integer",),
        "n_period_record_spike": ("positive_integer",),
        "tau_pre": ("positive", "finite"),
        "tau_post": ("positive", "finite"),
        "da_pre": ("non_negative", "finite"),
        "da_post": ("non_negative", "finite"),
        "dw_post": ("non_negative", "finite"),
        "data_dir": ("non_empty_string",),
        "log_interval": ("positive_integer",),
        "spike_capacity_per_period": ("positive_integer",),
    }

    def __post_init__(self) -> None:
        if isinstance(self.mode, str):
            try:
                self.mode = RunMode(self.mode)
            except ValueError as e:
                raise ConfigurationError(
                    f"Unknown mode '{self.mode}'. "
                    f"Choose from: {[m.value for m in RunMode]}"
                ) from e
        for name in ("thr", "da_pre", "da_post", "dw_post"):
            value = getattr(self, name)
            if isinstance(value, tuple):
                setattr(self, name, list(value))
        self.validate_config()

    # =========================================================================
    # Derived quantities (in steps)
    # =========================================================================

    @property
    def steps_per_period(self) -> int:
        return round_half_away(self.period / self.dt)

    @property
    def n_steps(self) -> int:
        """Index of the last integration step (steps run from 2 to n_steps)."""
        return self.n_period * self.steps_per_period

    @property
    def pattern_steps(self) -> int:
        return round_half_away(self.pattern_duration / self.dt)

    @property
    def jitter_steps(self) -> int:
        return round_half_away(self.jitter / self.dt)

    @property
    def window_steps(self) -> int:
        """Length of the pattern window, pattern plus a jitter margin on each side."""
        return self.pattern_steps + 2 * self.jitter_steps

    @property
    def window_start(self) -> int:
        """Phase (step modulo period) after which the pattern window begins."""
        return self.steps_per_period - self.window_steps

    @property
    def history_length(self) -> int:
        return round_half_away(self.n_period_record * self.period / self.dt)

    @property
    def record_start_time(self) -> float:
        """Simulated time from which postsynaptic spikes are recorded."""
        return (self.n_period - self.n_period_record_spike) * self.period

    @property
    def spike_capacity(self) -> int:
        return self.n_period_record_spike * self.spike_capacity_per_period * self.n_post

    @property
    def is_batch(self) -> bool:
        return self.mode is RunMode.BATCH

    # =========================================================================
    # Tensor views of scalar-or-array parameters
    # =========================================================================

    def parameter_tensor(self, name: str, size: int) -> torch.Tensor:
        """Broadcast a scalar-or-array parameter to a ``[size]`` tensor."""
        value = getattr(self, name)
        tensor = torch.as_tensor(
            value, dtype=self.get_torch_dtype(), device=self.get_torch_device()
        )
        if tensor.dim() == 0:
            return tensor.expand(size).clone()
        return tensor.clone()

    def thresholds(self) -> torch.Tensor:
        return self.parameter_tensor("thr", self.n_post)

    # =========================================================================
    # Cross-field invariants
    # =========================================================================

    def _cross_field_errors(self) -> List[str]:
        errors: List[str] = []

        if self.n_involved > self.n_pre:
            errors.append(f"n_involved={self.n_involved} exceeds n_pre={self.n_pre}")

        if self.dt * self.f > 1.0:
            errors.append(f"dt*f={self.dt * self.f} is not a valid spike probability")

        for name in ("tau_m", "tau_pre", "tau_post"):
            if self.dt > getattr(self, name):
                errors.append(f"dt={self.dt} exceeds {name}={getattr(self, name)}")
        if self.tau_s > 0:
            if self.dt > self.tau_s:
                errors.append(f"dt={self.dt} exceeds tau_s={self.tau_s}")
            if self.tau_s == self.tau_m:
                errors.append("tau_s must differ from tau_m (PSP normalisation is singular)")

        if self.pattern_steps < 1:
            errors.append(f"pattern_duration={self.pattern_duration} is shorter than dt")
        if self.window_steps >= self.steps_per_period:
            errors.append(
                f"pattern window ({self.window_steps} steps) must be shorter than "
                f"the period ({self.steps_per_period} steps)"
            )
        if self.n_period_record > self.n_period:
            errors.append(
                f"n_period_record={self.n_period_record} exceeds n_period={self.n_period}"
            )
        if self.n_period_record_spike > self.n_period:
            errors.append(
                f"n_period_record_spike={self.n_period_record_spike} exceeds "
                f"n_period={self.n_period}"
            )

        for name, size in (
            ("thr", self.n_post),
            ("da_post", self.n_post),
            ("dw_post", self.n_post),
            ("da_pre", self.n_pre),
        ):
            value = getattr(self, name)
            if isinstance(value, list) and len(value) != size:
                errors.append(f"{name} has {len(value)} entries, expected {size}")

        if self.mode is RunMode.BATCH and self.seed is None:
            errors.append("batch mode requires an explicit seed")

        try:
            self.get_torch_dtype()
        except ValueError as e:
            errors.append(str(e))

        return errors

    # =========================================================================
    # Serialization
    # =========================================================================

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["mode"] = self.mode.value
        return data

    @classmethod
    def from_dict(
        cls,
        data: Dict[str, Any],
        overrides: Optional[Dict[str, Any]] = None,
    ) -> "SimulationConfig":
        """Build a config from a plain dict, rejecting unknown keys."""
        merged = dict(data)
        if overrides:
            merged.update(overrides)

        known = {f.name for f in fields(cls)}
        unknown = sorted(set(merged) - known)
        if unknown:
            raise ConfigurationError(f"Unknown configuration keys: {unknown}")
        return cls(**merged)

    @classmethod
    def from_yaml(
        cls,
        path: Union[str, Path],
        overrides: Optional[Dict[str, Any]] = None,
    ) -> "SimulationConfig":
        """Load a config from a YAML file.

        Raises:
            ConfigurationError: If the file is missing or not valid YAML.
        """
        path = Path(path)
        if not path.exists():
            raise ConfigurationError(f"Config file not found: {path}")

        try:
            with open(path, "r") as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Failed to parse YAML file {path}: {e}") from e

        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise ConfigurationError(f"Config file {path} must contain a mapping")
        return cls.from_dict(data, overrides)

    def to_yaml(self, path: Union[str, Path]) -> None:
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w") as f:
            yaml.dump(self.to_dict(), f, default_flow_style=False, sort_keys=False)

"""Shared test fixtures and configuration."""

import numpy as np
import pytest
import torch

from stdp_detect.config import SimulationConfig


@pytest.fixture(autouse=True)
def set_random_seed():
    """Ensure reproducible tests by setting all random seeds."""
    torch.manual_seed(42)
    np.random.seed(42)


@pytest.fixture
def generator():
    """Seeded generator for functions taking an explicit random source."""
    g = torch.Generator()
    g.manual_seed(1234)
    return g


def make_config(tmp_path, **overrides) -> SimulationConfig:
    """Small, fast configuration writing its stores under ``tmp_path``."""
    params = dict(
        dt=1e-3,
        tau_m=10e-3,
        tau_s=0.0,
        n_post=3,
        thr=2.0,
        n_pre=40,
        n_involved=20,
        f=20.0,
        n_pattern=1,
        pattern_duration=20e-3,
        jitter=2e-3,
        period=0.1,
        n_period=6,
        n_period_record=2,
        n_period_record_spike=3,
        tau_pre=20e-3,
        tau_post=20e-3,
        da_pre=0.01,
        da_post=0.0085,
        dw_post=0.0015,
        data_dir=str(tmp_path / "data"),
        log_interval=2,
        seed=7,
    )
    params.update(overrides)
    return SimulationConfig(**params)


@pytest.fixture
def small_config(tmp_path):
    return make_config(tmp_path)


@pytest.fixture
def config_factory(tmp_path):
    """Build small configurations with overrides: ``config_factory(n_post=1)``."""

    def factory(**overrides) -> SimulationConfig:
        return make_config(tmp_path, **overrides)

    return factory

"""Tests for frozen pattern generation and jitter."""

import torch

from stdp_detect.stimuli.patterns import generate_patterns, jitter_pattern


def _generator(seed):
    g = torch.Generator()
    g.manual_seed(seed)
    return g


class TestGeneratePatterns:
    def test_shape_and_type(self, generator):
        patterns = generate_patterns(3, 20, 50e-3, 1e-3, 10.0, generator=generator)
        assert len(patterns) == 3
        for pattern in patterns:
            assert pattern.shape == (20, 50)
            assert pattern.dtype == torch.bool

    def test_reproducible_with_seed(self):
        a = generate_patterns(2, 30, 20e-3, 1e-3, 20.0, generator=_generator(3))
        b = generate_patterns(2, 30, 20e-3, 1e-3, 20.0, generator=_generator(3))
        for pa, pb in zip(a, b):
            assert torch.equal(pa, pb)

    def test_patterns_are_independent(self, generator):
        a, b = generate_patterns(2, 100, 100e-3, 1e-3, 50.0, generator=generator)
        assert not torch.equal(a, b)

    def test_spike_probability(self, generator):
        (pattern,) = generate_patterns(1, 500, 0.2, 1e-3, 50.0, generator=generator)
        assert abs(pattern.double().mean().item() - 0.05) < 0.005


class TestJitterPattern:
    def test_zero_jitter_returns_copy(self, generator):
        (pattern,) = generate_patterns(1, 10, 20e-3, 1e-3, 50.0, generator=generator)
        jittered = jitter_pattern(pattern, jitter=0.0, f=50.0, dt=1e-3, generator=generator)
        assert torch.equal(jittered, pattern)
        assert jittered.data_ptr() != pattern.data_ptr()

    def test_shape_includes_margins(self, generator):
        pattern = torch.zeros((10, 40), dtype=torch.bool)
        jittered = jitter_pattern(pattern, jitter=3e-3, f=5.0, dt=1e-3, generator=generator)
        assert jittered.shape == (10, 46)
        assert jittered.dtype == torch.bool

    def test_margins_hold_background_only(self, generator):
        pattern = torch.zeros((10, 50), dtype=torch.bool)
        jittered = jitter_pattern(pattern, jitter=5e-3, f=200.0, dt=1e-3, generator=generator)
        assert not jittered[:, 5:55].any()
        assert jittered[:, :5].any()
        assert jittered[:, 55:].any()

    def test_spikes_preserved_away_from_edges(self, generator):
        pattern = torch.zeros((5, 200), dtype=torch.bool)
        pattern[:, 100] = True
        jittered = jitter_pattern(pattern, jitter=1e-3, f=0.0, dt=1e-3, generator=generator)
        assert jittered.sum(dim=1).tolist() == [1, 1, 1, 1, 1]

    def test_spikes_outside_range_dropped(self, generator):
        pattern = torch.zeros((1000, 10), dtype=torch.bool)
        pattern[:, 0] = True
        jittered = jitter_pattern(pattern, jitter=1e-3, f=0.0, dt=1e-3, generator=generator)
        n_kept = int(jittered.sum().item())
        assert 800 < n_kept < 1000

    def test_jitter_moves_spikes(self, generator):
        pattern = torch.zeros((200, 100), dtype=torch.bool)
        pattern[:, 50] = True
        jittered = jitter_pattern(pattern, jitter=3e-3, f=0.0, dt=1e-3, generator=generator)
        # Without jitter every spike would land on column 50 + margin
        assert jittered[:, 53].sum().item() < 200

    def test_reproducible_with_seed(self):
        pattern = torch.rand((50, 30), generator=_generator(0)) < 0.1
        a = jitter_pattern(pattern, 2e-3, 10.0, 1e-3, generator=_generator(9))
        b = jitter_pattern(pattern, 2e-3, 10.0, 1e-3, generator=_generator(9))
        assert torch.equal(a, b)

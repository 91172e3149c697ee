"""Tests for additive STDP with homeostatic decrement."""

import pytest
import torch

from stdp_detect.learning.stdp import AdditiveSTDP, STDPConfig

DT = 1e-3
TAU = 20e-3
DECAY = 1 - DT / TAU


def _stdp(n_pre=3, n_post=2, da_pre=0.0, da_post=0.0, dw_post=0.0):
    config = STDPConfig(tau_pre=TAU, tau_post=TAU, da_pre=da_pre, da_post=da_post, dw_post=dw_post)
    return AdditiveSTDP(n_pre, n_post, dt=DT, config=config)


def _spikes(*values):
    return torch.tensor(values, dtype=torch.bool)


def _weights(value, n_post=2, n_pre=3):
    return torch.full((n_post, n_pre), value, dtype=torch.float64)


class TestLTD:
    def test_depresses_column_of_spiking_afferent(self):
        stdp = _stdp(da_post=0.1)
        w = _weights(0.5)

        stdp(w, _spikes(False, False, False), _spikes(True, False))
        assert stdp.a_post.tolist() == pytest.approx([0.1, 0.0])

        stdp(w, _spikes(True, False, False), _spikes(False, False))
        assert w[0, 0].item() == pytest.approx(0.5 - 0.1 * DECAY)
        assert w[1, 0].item() == 0.5
        assert torch.all(w[:, 1:] == 0.5)

    def test_uses_trace_before_this_steps_post_spikes(self):
        """Coincident pre and post spikes: LTD sees a_post from before the post increment."""
        stdp = _stdp(da_pre=0.01, da_post=0.05)
        w = _weights(0.5)

        stdp(w, _spikes(True, False, False), _spikes(True, False))

        # No depression; LTP adds this step's pre trace to row 0 only
        assert w[0].tolist() == pytest.approx([0.51, 0.5, 0.5])
        assert torch.all(w[1] == 0.5)

    def test_clipped_at_zero(self):
        stdp = _stdp(da_post=1.0)
        w = _weights(0.05)
        stdp(w, _spikes(False, False, False), _spikes(True, True))
        stdp(w, _spikes(True, True, True), _spikes(False, False))
        assert torch.all(w == 0.0)


class TestLTP:
    def test_potentiates_row_of_spiking_neuron(self):
        stdp = _stdp(da_pre=0.02)
        w = _weights(0.5)

        stdp(w, _spikes(True, False, True), _spikes(False, False))
        stdp(w, _spikes(False, False, False), _spikes(False, True))

        assert w[1].tolist() == pytest.approx([0.5 + 0.02 * DECAY, 0.5, 0.5 + 0.02 * DECAY])
        assert torch.all(w[0] == 0.5)

    def test_clipped_at_one(self):
        stdp = _stdp(da_pre=0.01)
        w = _weights(0.995)
        stdp(w, _spikes(True, True, True), _spikes(True, True))
        assert torch.all(w == 1.0)


class TestHomeostasis:
    def test_decrement_per_neuron(self):
        stdp = _stdp(dw_post=torch.tensor([0.1, 0.2], dtype=torch.float64))
        w = _weights(0.5)
        stdp(w, _spikes(False, False, False), _spikes(False, True))
        assert torch.all(w[0] == 0.5)
        assert w[1].tolist() == pytest.approx([0.3, 0.3, 0.3])

    def test_clipped_separately_from_ltp(self):
        """LTP clips at 1 before the homeostatic decrement is applied."""
        stdp = _stdp(da_pre=0.01, dw_post=0.1)
        w = _weights(0.995)
        stdp(w, _spikes(True, False, False), _spikes(True, False))
        assert w[0, 0].item() == pytest.approx(0.9)
        assert w[0, 1].item() == pytest.approx(0.895)

    def test_clipped_at_zero(self):
        stdp = _stdp(dw_post=0.5)
        w = _weights(0.2)
        stdp(w, _spikes(False, False, False), _spikes(True, True))
        assert torch.all(w == 0.0)


class TestEnabling:
    def test_disabled_rules_keep_traces_at_zero(self):
        stdp = _stdp()
        w = _weights(0.5)
        for _ in range(5):
            stdp(w, _spikes(True, True, True), _spikes(True, True))
        assert torch.all(stdp.a_pre == 0)
        assert torch.all(stdp.a_post == 0)
        assert torch.all(w == 0.5)

    def test_enabled_when_any_entry_positive(self):
        stdp = _stdp(da_post=torch.tensor([0.0, 0.1], dtype=torch.float64))
        assert stdp.ltd_enabled
        assert not stdp.ltp_enabled
        assert not stdp.homeostasis_enabled

    def test_traces_decay_every_step(self):
        stdp = _stdp(da_pre=0.1, da_post=0.1)
        w = _weights(0.5)
        stdp(w, _spikes(True, False, False), _spikes(True, False))
        for _ in range(10):
            stdp(w, _spikes(False, False, False), _spikes(False, False))
        assert stdp.a_pre[0].item() == pytest.approx(0.1 * DECAY ** 10)
        assert stdp.a_post[0].item() == pytest.approx(0.1 * DECAY ** 10)


class TestInvariants:
    def test_weights_stay_in_bounds(self):
        stdp = _stdp(n_pre=50, n_post=5, da_pre=0.2, da_post=0.25, dw_post=0.05)
        w = torch.rand((5, 50), dtype=torch.float64)
        for _ in range(300):
            pre = torch.rand(50) < 0.2
            post = torch.rand(5) < 0.3
            stdp(w, pre, post)
            assert w.min().item() >= 0.0
            assert w.max().item() <= 1.0

    def test_ltp_only_never_decreases_weights(self):
        stdp = _stdp(n_pre=30, n_post=4, da_pre=0.01)
        w = torch.rand((4, 30), dtype=torch.float64) * 0.5
        for _ in range(200):
            before = w.clone()
            stdp(w, torch.rand(30) < 0.1, torch.rand(4) < 0.1)
            assert torch.all(w >= before)

    def test_reset_state(self):
        stdp = _stdp(da_pre=0.1, da_post=0.1)
        stdp(_weights(0.5), _spikes(True, True, True), _spikes(True, True))
        stdp.reset_state()
        assert torch.all(stdp.a_pre == 0)
        assert torch.all(stdp.a_post == 0)

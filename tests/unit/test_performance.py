"""Tests for hit rate / false alarm evaluation."""

import numpy as np
import pytest
import torch

from stdp_detect.evaluation.performance import (
    evaluate_performance,
    format_performance_report,
    occurrence_onsets,
)


def _spike_list(config, events):
    """(step, neuron) pairs to a (time, neuron) spike list."""
    return torch.tensor(
        [[step * config.dt, neuron] for step, neuron in events], dtype=torch.float64
    ).reshape(-1, 2)


class TestOccurrences:
    def test_onsets(self, small_config):
        # Periods 3, 4, 5 are recorded; window starts after phase 76, margin 2
        assert occurrence_onsets(small_config).tolist() == [379, 479, 579]


class TestEvaluatePerformance:
    def test_hits_and_false_alarms(self, small_config):
        spikes = _spike_list(
            small_config,
            [(350, 0), (385, 0), (485, 0), (399, 2)],
        )
        report = evaluate_performance(spikes, small_config)

        assert report.n_occurrences == 3
        np.testing.assert_allclose(report.hit_rate, [2 / 3, 0.0, 0.0])

        outside = 3 * 0.1 - 3 * 20 * 1e-3
        np.testing.assert_allclose(report.false_alarm_rate, [1 / outside, 0.0, 1 / outside])

    def test_window_end_exclusive_and_start_inclusive(self, small_config):
        spikes = _spike_list(small_config, [(379, 0), (398, 1), (378, 2)])
        report = evaluate_performance(spikes, small_config)
        np.testing.assert_allclose(report.hit_rate, [1 / 3, 1 / 3, 0.0])

    def test_tolerance_extends_window(self, small_config):
        spikes = _spike_list(small_config, [(399, 2)])
        assert evaluate_performance(spikes, small_config).hit_rate[2] == 0.0
        report = evaluate_performance(spikes, small_config, tolerance=1e-3)
        assert report.hit_rate[2] == pytest.approx(1 / 3)
        assert report.false_alarm_rate[2] == 0.0

    def test_multiple_spikes_in_one_occurrence_count_once(self, small_config):
        spikes = _spike_list(small_config, [(380, 1), (381, 1), (390, 1)])
        report = evaluate_performance(spikes, small_config)
        assert report.hit_rate[1] == pytest.approx(1 / 3)
        assert report.false_alarm_rate[1] == 0.0

    def test_hits_per_pattern(self, config_factory):
        config = config_factory(n_pattern=2)
        # Recorded periods 3, 4, 5 show patterns 1, 0, 1
        spikes = _spike_list(config, [(385, 0), (585, 0), (485, 1)])
        report = evaluate_performance(spikes, config)

        np.testing.assert_allclose(report.hits_per_pattern[0], [0.0, 1.0])
        np.testing.assert_allclose(report.hits_per_pattern[1], [1.0, 0.0])

    def test_empty_spike_list(self, small_config):
        report = evaluate_performance(torch.zeros((0, 2), dtype=torch.float64), small_config)
        assert report.mean_hit_rate == 0.0
        assert report.mean_false_alarm_rate == 0.0


class TestReport:
    def test_to_dict(self, small_config):
        report = evaluate_performance(_spike_list(small_config, [(385, 0)]), small_config)
        data = report.to_dict()
        assert data["n_occurrences"] == 3
        assert data["mean_hit_rate"] == pytest.approx(1 / 9)

    def test_format(self, small_config):
        report = evaluate_performance(_spike_list(small_config, [(385, 0)]), small_config)
        text = format_performance_report(report)
        assert "3 pattern occurrences" in text
        assert text.count("neuron") == small_config.n_post

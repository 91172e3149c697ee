"""Tests for the command line interface and batch launcher."""

import json

import pytest

from stdp_detect.cli import main, parse_overrides, run_batch
from stdp_detect.errors import ConfigurationError


class TestParseOverrides:
    def test_values_parsed_as_yaml(self):
        overrides = parse_overrides(["n_period=3", "thr=[1.0, 2.0]", "mode=batch"])
        assert overrides == {"n_period": 3, "thr": [1.0, 2.0], "mode": "batch"}

    def test_exponent_without_dot(self):
        assert parse_overrides(["dt=1e-4"]) == {"dt": 1e-4}

    def test_text_fields_stay_strings(self):
        overrides = parse_overrides(["data_dir=1e3", "dtype=float32", "f=1e3"])
        assert overrides == {"data_dir": "1e3", "dtype": "float32", "f": 1000.0}

    def test_malformed(self):
        with pytest.raises(ConfigurationError):
            parse_overrides(["n_period"])


class TestRunCommand:
    def test_unknown_log_level_rejected_by_parser(self, capsys):
        with pytest.raises(SystemExit) as exc_info:
            main(["--log-level", "loud", "run"])
        assert exc_info.value.code == 2
        assert "invalid choice" in capsys.readouterr().err

    def test_log_level_case_insensitive(self, small_config, tmp_path):
        config_path = tmp_path / "config.yaml"
        small_config.to_yaml(config_path)
        code = main(["--log-level", "warning", "run", "--config", str(config_path),
                     "--set", "data_dir=" + str(tmp_path / "run_data")])
        assert code == 0
        assert (tmp_path / "run_data" / "w.pt").exists()

    def test_run_writes_stores_and_summary(self, small_config, tmp_path):
        config_path = tmp_path / "config.yaml"
        small_config.to_yaml(config_path)
        output = tmp_path / "summary.json"

        code = main(["--log-level", "WARNING", "run", "--config", str(config_path),
                     "--output", str(output)])

        assert code == 0
        summary = json.loads(output.read_text())
        assert summary["mode"] == "interactive"
        assert summary["seed"] == small_config.seed
        assert "mean_hit_rate" in summary

        data_dir = tmp_path / "data"
        assert (data_dir / "w.pt").exists()
        assert (data_dir / "pattern.pt").exists()
        assert (data_dir / "conv.pt").exists()

    def test_invalid_configuration_exit_code(self, small_config, tmp_path):
        config_path = tmp_path / "config.yaml"
        small_config.to_yaml(config_path)
        code = main(["--log-level", "ERROR", "run", "--config", str(config_path),
                     "--set", "n_involved=1000"])
        assert code == 1

    def test_batch_mode_run_requires_seed(self, small_config, tmp_path):
        config_path = tmp_path / "config.yaml"
        small_config.to_yaml(config_path)
        code = main(["--log-level", "ERROR", "run", "--config", str(config_path),
                     "--mode", "batch", "--set", "seed=null"])
        assert code == 1


class TestBatch:
    def test_run_batch_in_process(self, small_config, tmp_path):
        summaries = run_batch(small_config, seeds=[1, 2], workers=1)

        assert [s["seed"] for s in summaries] == [1, 2]
        assert all(s["mode"] == "batch" for s in summaries)
        assert not (tmp_path / "data").exists()

    def test_batch_command_writes_json(self, small_config, tmp_path):
        config_path = tmp_path / "config.yaml"
        small_config.to_yaml(config_path)
        output = tmp_path / "batch.json"

        code = main(["--log-level", "WARNING", "batch", "--config", str(config_path),
                     "--seeds", "3", "4", "--output", str(output)])

        assert code == 0
        data = json.loads(output.read_text())
        assert [s["seed"] for s in data["sessions"]] == [3, 4]
        assert not (tmp_path / "data").exists()

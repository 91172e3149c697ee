"""Tests for logging configuration."""

import logging

import pytest

from stdp_detect.errors import ConfigurationError
from stdp_detect.log_setup import configure_logging


class TestConfigureLogging:
    def teardown_method(self):
        configure_logging(logging.WARNING, console=False)

    def test_level_by_name(self):
        logger = configure_logging("debug", console=True)
        assert logger.name == "stdp_detect"
        assert logger.level == logging.DEBUG

    def test_unknown_level_name(self):
        with pytest.raises(ConfigurationError, match="Unknown log level"):
            configure_logging("loud")

    def test_repeated_calls_do_not_duplicate_handlers(self):
        configure_logging(logging.INFO)
        logger = configure_logging(logging.INFO)
        assert len(logger.handlers) == 1

    def test_file_output(self, tmp_path):
        logger = configure_logging(logging.INFO, log_dir=tmp_path / "logs", console=False)
        logging.getLogger("stdp_detect.dynamics.simulation").info("Period 3")
        for handler in logger.handlers:
            handler.flush()

        text = (tmp_path / "logs" / "stdp_detect.log").read_text()
        assert "stdp_detect.dynamics.simulation - INFO - Period 3" in text

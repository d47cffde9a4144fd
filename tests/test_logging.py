"""Tests for logging setup."""

import logging

import pytest

from btc_intel_api.config.settings import APISettings
from btc_intel_api.utils.logging import setup_logging


@pytest.fixture
def restore_root_handlers():
    root = logging.getLogger()
    before = list(root.handlers)
    yield
    for handler in root.handlers:
        if handler not in before:
            root.removeHandler(handler)
            handler.close()


class TestSetupLogging:
    """Tests for repeated logging configuration."""

    def test_file_handler_added_once(self, tmp_path, restore_root_handlers):
        log_file = tmp_path / "intel.log"
        settings = APISettings(log_file=str(log_file), log_level="WARNING")

        setup_logging(settings)
        setup_logging(settings)

        file_handlers = [
            h for h in logging.getLogger().handlers
            if isinstance(h, logging.FileHandler) and h.baseFilename == str(log_file)
        ]
        assert len(file_handlers) == 1

    def test_second_app_does_not_duplicate_lines(self, tmp_path, restore_root_handlers):
        log_file = tmp_path / "intel.log"
        settings = APISettings(log_file=str(log_file), log_level="WARNING", log_format="text")

        setup_logging(settings)
        setup_logging(settings)
        logging.getLogger("btc_intel.test").warning("single line")
        for handler in logging.getLogger().handlers:
            handler.flush()

        assert log_file.read_text().count("single line") == 1

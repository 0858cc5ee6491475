"""
Unit tests for structured logging setup.
"""

import json
import logging

import pytest
import structlog

from cms_admin.core.logging import configure_logging


@pytest.fixture(autouse=True)
def reset_logging():
    root = logging.getLogger()
    level = root.level
    yield
    structlog.reset_defaults()
    for handler in root.handlers[:]:
        if type(handler) is logging.StreamHandler:
            root.removeHandler(handler)
    root.setLevel(level)


class TestConfigureLogging:
    """Test configure_logging."""

    def test_json_renderer(self, capsys):
        configure_logging("INFO", json_logs=True)

        structlog.get_logger("cms_admin.test").info("Cache HIT", cache_key="categories")

        line = capsys.readouterr().out.strip().splitlines()[-1]
        event = json.loads(line)
        assert event["event"] == "Cache HIT"
        assert event["cache_key"] == "categories"
        assert event["level"] == "info"

    def test_level_filters_debug(self, capsys):
        configure_logging("WARNING", json_logs=True)

        structlog.get_logger("cms_admin.test").debug("Cache MISS", cache_key="courses")

        assert "Cache MISS" not in capsys.readouterr().out

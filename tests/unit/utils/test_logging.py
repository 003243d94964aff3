"""Tests for structlog configuration and the events valuehash emits."""

import pytest
import structlog
from structlog.testing import capture_logs

from valuehash.exceptions import ConfigurationError, InvalidTagOptionError, UnsupportedTypeError
from valuehash.hasher import Hasher
from valuehash.utils.logging import configure_logging, get_logger

from tests.fixtures.sample_types import BadTag, Opaque


@pytest.fixture(autouse=True)
def _reset_structlog():
    structlog.reset_defaults()
    yield
    structlog.reset_defaults()


class TestConfigureLogging:
    def test_json_output(self):
        configure_logging(json_output=True, level="DEBUG")
        assert structlog.is_configured()

    def test_console_output(self):
        configure_logging(json_output=False, level="warning")
        assert structlog.is_configured()

    def test_level_from_settings(self, monkeypatch):
        monkeypatch.setenv("VALUEHASH_LOG_LEVEL", "debug")
        configure_logging()
        assert structlog.is_configured()

    def test_unknown_level(self):
        with pytest.raises(ConfigurationError):
            configure_logging(level="CHATTY")


class TestGetLogger:
    def test_binds_component(self):
        with capture_logs() as logs:
            get_logger("compiler").info("hello")
        assert logs[0]["component"] == "compiler"
        assert "hasher_id" not in logs[0]

    def test_binds_hasher_id(self):
        with capture_logs() as logs:
            get_logger("pool", hasher_id="h1").info("hello")
        assert logs[0]["hasher_id"] == "h1"


class TestEmittedEvents:
    def test_unsupported_type_warning(self):
        with capture_logs() as logs:
            with pytest.raises(UnsupportedTypeError):
                Hasher().hash(Opaque())
        warnings = [e for e in logs if e["log_level"] == "warning"]
        assert warnings[0]["event"] == "Unsupported type"
        assert warnings[0]["type"].endswith("Opaque")
        assert warnings[0]["component"] == "compiler"

    def test_invalid_tag_warning(self):
        with capture_logs() as logs:
            with pytest.raises(InvalidTagOptionError):
                Hasher().hash(BadTag())
        assert any(e["event"] == "Invalid field tag" and e["field"] == "x" for e in logs)

    def test_compile_and_pool_debug_events(self):
        with capture_logs() as logs:
            Hasher().hash([1, 2])
        components = {e["event"]: e["component"] for e in logs}
        assert components["Encoder compiled"] == "compiler"
        assert components["HashState created"] == "pool"

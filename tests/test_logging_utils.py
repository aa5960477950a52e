"""Tests for logging setup and helpers."""

import logging

import pytest

from elmsolve.common import logging_utils
from elmsolve.common.logging_utils import (
    TRACE,
    Timer,
    configure_logging,
    extra_context,
    report_error,
    safe_url,
    verbosity_level,
)
from elmsolve.errors import FetchError


@pytest.fixture
def clean_root(monkeypatch):
    """Run configure_logging against a pristine root logger."""
    root = logging.getLogger()
    saved_handlers = list(root.handlers)
    saved_level = root.level
    monkeypatch.setattr(logging_utils, "_configured", False)
    monkeypatch.delenv("ELMSOLVE_LOG_LEVEL", raising=False)
    yield root
    root.handlers[:] = saved_handlers
    root.setLevel(saved_level)


class TestConfigureLogging:
    def test_idempotent(self, clean_root):
        before = len(clean_root.handlers)
        configure_logging(logging.INFO)
        configure_logging(logging.DEBUG)
        assert len(clean_root.handlers) == before + 1
        assert clean_root.level == logging.DEBUG

    def test_environment_overrides_level(self, clean_root, monkeypatch):
        monkeypatch.setenv("ELMSOLVE_LOG_LEVEL", "debug")
        configure_logging(logging.WARNING)
        assert clean_root.level == logging.DEBUG

    def test_environment_trace(self, clean_root, monkeypatch):
        monkeypatch.setenv("ELMSOLVE_LOG_LEVEL", "TRACE")
        configure_logging()
        assert clean_root.level == TRACE

    def test_unknown_environment_level_ignored(self, clean_root, monkeypatch):
        monkeypatch.setenv("ELMSOLVE_LOG_LEVEL", "LOUD")
        configure_logging(logging.ERROR)
        assert clean_root.level == logging.ERROR


class TestHelpers:
    @pytest.mark.parametrize(
        "count, level",
        [(-1, logging.ERROR), (0, logging.ERROR), (1, logging.WARNING), (2, logging.INFO), (3, logging.DEBUG), (7, TRACE)],
    )
    def test_verbosity_level(self, count, level):
        assert verbosity_level(count) == level

    def test_trace_level_name(self):
        assert logging.getLevelName(TRACE) == "TRACE"

    def test_extra_context_drops_none(self):
        assert extra_context(event="x", target=None, count=0) == {"event": "x", "count": 0}

    def test_safe_url(self):
        assert safe_url("https://user:pw@host.test/p?token=abc&x=1") == "https://host.test/p?token=***&x=1"
        assert safe_url(None) is None

    def test_timer(self):
        with Timer() as timer:
            pass
        assert timer.duration_ms() >= 0

    def test_report_error(self, caplog):
        caplog.set_level(logging.ERROR)
        error = FetchError("elm/core", "1.0.0", "boom")
        message = report_error(logging.getLogger("elmsolve.test"), error)
        assert message == str(error)
        assert "elm/core@1.0.0" in caplog.text
        assert caplog.records[-1].error_type == "FetchError"

"""Tests for logging configuration."""

from __future__ import annotations

import logging

import structlog

from adsmith.logging import configure_logging, redact_secrets


class TestRedactSecrets:
    def test_masks_credential_keys(self) -> None:
        event = {"event": "request", "api_key": "fc-123", "url": "https://x.test"}

        out = redact_secrets(None, "info", event)

        assert out["api_key"] == "***"
        assert out["url"] == "https://x.test"

    def test_leaves_other_events_untouched(self) -> None:
        event = {"event": "done", "scenes": 4}
        assert redact_secrets(None, "info", dict(event)) == event


class TestConfigureLogging:
    def teardown_method(self) -> None:
        structlog.reset_defaults()
        logging.getLogger().handlers.clear()

    def test_quietens_http_loggers_at_info(self) -> None:
        configure_logging(log_level="INFO")
        assert logging.getLogger("httpx").level == logging.WARNING
        assert logging.getLogger().level == logging.INFO

    def test_debug_keeps_http_loggers(self) -> None:
        configure_logging(log_level="debug", log_format="json")
        assert logging.getLogger("httpx").level == logging.DEBUG

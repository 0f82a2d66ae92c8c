"""
Tests for logging setup.
"""

import logging

import structlog

from occsync.core.logging_config import (
    SERVICE_NAME,
    add_service,
    build_processors,
    resolve_level,
    wants_json,
)


class TestRendererChoice:
    """Tests for wants_json."""

    def test_explicit_format_wins(self):
        assert wants_json({"LOG_FORMAT": "json"}) is True
        assert wants_json({"LOG_FORMAT": " Console ", "OCCSYNC_ENV": "production"}) is False

    def test_production_defaults_to_json(self):
        assert wants_json({"OCCSYNC_ENV": "production"}) is True
        assert wants_json({"RAILWAY_ENVIRONMENT": "staging"}) is True

    def test_development_defaults_to_console(self):
        assert wants_json({}) is False
        assert wants_json({"OCCSYNC_ENV": "development", "LOG_FORMAT": "xml"}) is False


class TestResolveLevel:
    """Tests for resolve_level."""

    def test_known_names(self):
        assert resolve_level("debug") == logging.DEBUG
        assert resolve_level(" WARNING ") == logging.WARNING

    def test_unknown_name_means_info(self):
        assert resolve_level("chatty") == logging.INFO

    def test_environment_fallback(self, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "error")

        assert resolve_level() == logging.ERROR


class TestProcessors:
    """Tests for the processor chain."""

    def test_json_chain_ends_in_json_renderer(self):
        processors = build_processors(json_output=True)

        assert isinstance(processors[-1], structlog.processors.JSONRenderer)
        assert add_service in processors

    def test_console_chain_ends_in_console_renderer(self):
        processors = build_processors(json_output=False)

        assert isinstance(processors[-1], structlog.dev.ConsoleRenderer)
        assert add_service in processors

    def test_add_service_keeps_explicit_value(self):
        assert add_service(None, "info", {"event": "x"})["service"] == SERVICE_NAME
        assert add_service(None, "info", {"event": "x", "service": "worker"})["service"] == "worker"

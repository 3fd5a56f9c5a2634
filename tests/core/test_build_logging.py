"""Tests for buildspine.core.logging."""

from __future__ import annotations

import json
import logging

import structlog

from buildspine.core import logging as build_logging
from buildspine.core.logging import bind_context, configure_logging, get_logger, unbind_context


class TestConfigureLogging:
    def test_json_output(self, capsys):
        configure_logging(level="INFO", format="json", force=True)
        bind_context(target="build")
        try:
            get_logger("buildspine.test").info("task.end", task="clean", duration_ms=1.5)
        finally:
            unbind_context("target")

        line = capsys.readouterr().err.strip().splitlines()[-1]
        event = json.loads(line)
        assert event["event"] == "task.end"
        assert event["task"] == "clean"
        assert event["target"] == "build"
        assert event["level"] == "info"
        assert event["logger"] == "buildspine.test"

    def test_level_filters(self, capsys):
        configure_logging(level="WARNING", format="json", force=True)
        get_logger("buildspine.test").info("task.start", task="clean")
        assert capsys.readouterr().err == ""
        assert logging.getLogger("buildspine").level == logging.WARNING

    def test_configure_once(self, monkeypatch):
        calls = []
        monkeypatch.setattr(build_logging, "_configured", True)
        monkeypatch.setattr(structlog, "configure", lambda **kw: calls.append(kw))
        configure_logging(level="DEBUG")
        assert calls == []
        assert build_logging.is_configured()

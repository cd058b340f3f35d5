from __future__ import annotations

import logging

import pytest

from dvbi_metadata.logging_conf import LOGLEVEL_ENV, configure_logging, resolve_level


def test_resolve_level_default(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv(LOGLEVEL_ENV, raising=False)
    assert resolve_level("WARNING") == logging.WARNING


def test_environment_overrides_default(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv(LOGLEVEL_ENV, "debug")
    assert resolve_level("INFO") == logging.DEBUG
    monkeypatch.setenv(LOGLEVEL_ENV, "chatty")
    assert resolve_level("ERROR") == logging.INFO


def test_configure_logging_quietens_http_loggers(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv(LOGLEVEL_ENV, raising=False)
    configure_logging("INFO")
    assert logging.getLogger().level == logging.INFO
    assert logging.getLogger("urllib3").level == logging.WARNING
    configure_logging("DEBUG")
    assert logging.getLogger("urllib3").level == logging.DEBUG

"""
Logging setup for the command line front end.

Deutsch:
    Logging-Konfiguration für die Kommandozeile.
"""

from __future__ import annotations

import logging
import os

LOGLEVEL_ENV = "DVBI_METADATA_LOGLEVEL"
LOG_FORMAT = "%(asctime)s | %(levelname)-7s | %(name)s | %(message)s"

# chatty HTTP internals stay at WARNING unless debugging
_NOISY_LOGGERS = ("urllib3", "charset_normalizer")


def resolve_level(default_level: str = "INFO") -> int:
    """
    Level from ``DVBI_METADATA_LOGLEVEL`` or ``default_level``.

    Unknown level names fall back to INFO.
    """
    name = os.getenv(LOGLEVEL_ENV, default_level).strip().upper()
    level = logging.getLevelName(name)
    return level if isinstance(level, int) else logging.INFO


def configure_logging(default_level: str = "INFO") -> None:
    """
    Configure the root logger once.

    Parser modules only log through ``logging.getLogger(__name__)``; this is
    called by the command line, never by library code.

    Deutsch:
        Setzt das Root-Logging mit einfacher, CI-freundlicher Formatierung auf.
        Die Umgebungsvariable DVBI_METADATA_LOGLEVEL überschreibt das Level.
    """

    level = resolve_level(default_level)
    root = logging.getLogger()
    if root.handlers:
        root.setLevel(level)
    else:
        logging.basicConfig(level=level, format=LOG_FORMAT)

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(level if level <= logging.DEBUG else logging.WARNING)

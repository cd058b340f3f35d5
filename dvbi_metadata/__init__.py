"""
DVB-I metadata parsing and normalisation.

Deutsch:
    Einlesen und Normalisieren von DVB-I Metadaten (Service-Listen, Now/Next,
    Programmführer und Service-List-Registries).
"""

from __future__ import annotations

__all__ = [
    "__version__",
    "NowNext",
    "ParsedProviderRegistry",
    "ParsedServiceList",
    "ParserOptions",
    "Program",
    "parse_program_info",
    "parse_provider_registry",
    "parse_schedule",
    "parse_service_list",
]

__version__ = "0.4.0"

from .models import NowNext, ParsedProviderRegistry, ParsedServiceList, ParserOptions, Program  # noqa: E402
from .programs import parse_program_info, parse_schedule  # noqa: E402
from .registry import parse_provider_registry  # noqa: E402
from .service_list import parse_service_list  # noqa: E402

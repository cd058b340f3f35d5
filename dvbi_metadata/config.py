"""
YAML configuration for the command line front end.

Deutsch:
    YAML-Konfiguration (DRM-Systeme, LCN-Optionen, HTTP-Timeout), validiert
    gegen ein mitgeliefertes JSON-Schema.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from importlib import resources
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from jsonschema import Draft7Validator

from .models import FIRST_UNDECLARED_CHANNEL, ParserOptions

log = logging.getLogger(__name__)

SCHEMA_DIR = "schemas"
CONFIG_SCHEMA = "parser_config.schema.json"
DEFAULT_HTTP_TIMEOUT = 30.0


class ConfigError(Exception):
    """Raised when the configuration is invalid. / Wird geworfen, wenn die Konfiguration ungültig ist."""


@dataclass(frozen=True)
class AppConfig:
    options: ParserOptions = field(default_factory=ParserOptions)
    http_timeout: float = DEFAULT_HTTP_TIMEOUT


def load_config(path: Optional[Path]) -> AppConfig:
    """
    Load and validate a YAML configuration file.

    ``None`` returns the defaults. An empty file is treated as an empty
    mapping.
    """
    if path is None:
        return AppConfig()
    try:
        with Path(path).open("r", encoding="utf-8") as fh:
            data = yaml.safe_load(fh)
    except OSError as exc:
        raise ConfigError(f"cannot read config {path}: {exc}") from exc
    except yaml.YAMLError as exc:
        raise ConfigError(f"config {path} is not valid YAML: {exc}") from exc
    if data is None:
        data = {}
    return config_from_mapping(data, source=str(path))


def load_schema(name: str) -> Dict[str, Any]:
    """
    Load a JSON schema shipped in the package's ``schemas`` directory.

    Deutsch:
        Lädt ein mitgeliefertes JSON-Schema.
    """
    resource = resources.files(__package__).joinpath(SCHEMA_DIR).joinpath(name)
    with resource.open("r", encoding="utf-8") as fh:
        return json.load(fh)


def config_from_mapping(data: Any, source: str = "<config>") -> AppConfig:
    if not isinstance(data, dict):
        raise ConfigError(f"{source} must contain a mapping")
    validator = Draft7Validator(load_schema(CONFIG_SCHEMA))
    errors = sorted(validator.iter_errors(data), key=lambda err: list(err.path))
    if errors:
        messages = "; ".join(
            f"{'.'.join(str(part) for part in error.path) or '<root>'} -> {error.message}" for error in errors
        )
        raise ConfigError(f"{source} failed schema validation: {messages}")

    drm = data.get("supported_drm_systems")
    options = ParserOptions(
        lcn_services_only=bool(data.get("lcn_services_only", False)),
        first_undeclared_channel=int(data.get("first_undeclared_channel", FIRST_UNDECLARED_CHANNEL)),
        supported_drm_systems=tuple(item.strip().lower() for item in drm) if drm is not None else None,
    )
    config = AppConfig(options=options, http_timeout=float(data.get("http_timeout", DEFAULT_HTTP_TIMEOUT)))
    log.debug("loaded config from %s: %s", source, _describe(config))
    return config


def _describe(config: AppConfig) -> Dict[str, Any]:
    return {
        "lcn_services_only": config.options.lcn_services_only,
        "first_undeclared_channel": config.options.first_undeclared_channel,
        "supported_drm_systems": config.options.supported_drm_systems,
        "http_timeout": config.http_timeout,
    }

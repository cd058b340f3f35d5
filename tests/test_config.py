from __future__ import annotations

from pathlib import Path

import pytest
import yaml

from dvbi_metadata.config import DEFAULT_HTTP_TIMEOUT, ConfigError, load_config
from dvbi_metadata.models import FIRST_UNDECLARED_CHANNEL


def _write(tmp_path: Path, payload) -> Path:
    path = tmp_path / "config.yaml"
    path.write_text(yaml.safe_dump(payload), encoding="utf-8")
    return path


def test_defaults_without_file() -> None:
    config = load_config(None)
    assert config.http_timeout == DEFAULT_HTTP_TIMEOUT
    assert config.options.first_undeclared_channel == FIRST_UNDECLARED_CHANNEL
    assert config.options.supported_drm_systems is None
    assert config.options.lcn_services_only is False


def test_load_full_config(tmp_path: Path) -> None:
    path = _write(
        tmp_path,
        {
            "supported_drm_systems": ["EDEF8BA9-79D6-4ACE-A3C8-27DCD51D21ED", " 9a04f079-9840-4286-ab92-e65be0885f95 "],
            "lcn_services_only": True,
            "first_undeclared_channel": 900,
            "http_timeout": 5,
        },
    )
    config = load_config(path)
    assert config.options.supported_drm_systems == (
        "edef8ba9-79d6-4ace-a3c8-27dcd51d21ed",
        "9a04f079-9840-4286-ab92-e65be0885f95",
    )
    assert config.options.lcn_services_only is True
    assert config.options.first_undeclared_channel == 900
    assert config.http_timeout == 5.0


def test_empty_file_uses_defaults(tmp_path: Path) -> None:
    path = tmp_path / "empty.yaml"
    path.write_text("", encoding="utf-8")
    assert load_config(path).options.first_undeclared_channel == FIRST_UNDECLARED_CHANNEL


@pytest.mark.parametrize(
    "payload, fragment",
    [
        ({"first_undeclared_channel": -1}, "first_undeclared_channel"),
        ({"http_timeout": 0}, "http_timeout"),
        ({"supported_drm_systems": "widevine"}, "supported_drm_systems"),
        ({"unknown_key": True}, "unknown_key"),
        (["not", "a", "mapping"], "mapping"),
    ],
)
def test_invalid_config_raises(tmp_path: Path, payload, fragment: str) -> None:
    with pytest.raises(ConfigError) as excinfo:
        load_config(_write(tmp_path, payload))
    assert fragment in str(excinfo.value)


def test_unreadable_config(tmp_path: Path) -> None:
    with pytest.raises(ConfigError):
        load_config(tmp_path / "missing.yaml")
    broken = tmp_path / "broken.yaml"
    broken.write_text("supported_drm_systems: [unclosed", encoding="utf-8")
    with pytest.raises(ConfigError):
        load_config(broken)

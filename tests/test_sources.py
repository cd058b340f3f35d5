from __future__ import annotations

from pathlib import Path

import pytest
import requests

from dvbi_metadata.sources import SourceError, is_url, read_source


class _Response:
    def __init__(self, status_code: int, content: bytes = b"") -> None:
        self.status_code = status_code
        self.content = content


class _Session:
    def __init__(self, response=None, error=None) -> None:
        self.response = response
        self.error = error
        self.calls = []

    def get(self, url, headers=None, timeout=None):
        self.calls.append((url, headers, timeout))
        if self.error is not None:
            raise self.error
        return self.response


def test_is_url() -> None:
    assert is_url("https://example.com/list.xml")
    assert is_url("http://example.com/list.xml")
    assert not is_url("/tmp/list.xml")
    assert not is_url("ftp://example.com/list.xml")


def test_read_local_file(tmp_path: Path) -> None:
    path = tmp_path / "list.xml"
    path.write_text("<ServiceList/>", encoding="utf-8")
    assert read_source(str(path)) == b"<ServiceList/>"
    with pytest.raises(SourceError):
        read_source(str(tmp_path / "missing.xml"))


def test_http_fetch_uses_timeout() -> None:
    session = _Session(_Response(200, b"<ServiceList/>"))
    assert read_source("https://example.com/list.xml", timeout=3.5, session=session) == b"<ServiceList/>"
    url, headers, timeout = session.calls[0]
    assert url == "https://example.com/list.xml"
    assert timeout == 3.5
    assert headers["User-Agent"].startswith("dvbi-metadata/")


def test_http_errors_are_wrapped() -> None:
    with pytest.raises(SourceError) as excinfo:
        read_source("https://example.com/list.xml", session=_Session(_Response(404)))
    assert "status 404" in str(excinfo.value)
    failing = _Session(error=requests.ConnectionError("refused"))
    with pytest.raises(SourceError):
        read_source("https://example.com/list.xml", session=failing)


def test_local_file_keeps_declared_encoding(tmp_path: Path) -> None:
    path = tmp_path / "latin1.xml"
    document = '<?xml version="1.0" encoding="ISO-8859-1"?><ServiceList><Name>été</Name></ServiceList>'
    path.write_bytes(document.encode("iso-8859-1"))
    data = read_source(str(path))
    assert isinstance(data, bytes)
    assert b"\xe9t\xe9" in data

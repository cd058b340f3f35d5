"""
Read metadata documents from a local path or a plain HTTP(S) URL.

Only a single GET is performed; caching, polling and retries belong to the
caller.

Deutsch:
    Liest Dokumente von einer Datei oder per HTTP(S)-GET (ohne Cache).
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional
from urllib.parse import urlparse

import requests

from . import __version__

log = logging.getLogger(__name__)

USER_AGENT = f"dvbi-metadata/{__version__}"


class SourceError(Exception):
    """Raised when a document cannot be read. / Wird geworfen, wenn ein Dokument nicht gelesen werden kann."""


def is_url(location: str) -> bool:
    return urlparse(location).scheme in {"http", "https"}


def read_source(location: str, timeout: float = 30.0, session: Optional[requests.Session] = None) -> bytes:
    """
    Return the raw bytes of ``location``.

    The document is not decoded here; the XML parser follows the encoding
    named in the XML declaration.

    Deutsch:
        Liefert den unverarbeiteten Inhalt einer Datei oder einer HTTP(S)-URL.
    """
    if is_url(location):
        return _http_get(location, timeout, session)
    path = Path(location)
    try:
        return path.read_bytes()
    except OSError as exc:
        raise SourceError(f"cannot read {path}: {exc}") from exc


def _http_get(url: str, timeout: float, session: Optional[requests.Session]) -> bytes:
    client = session or requests.Session()
    headers = {"User-Agent": USER_AGENT, "Accept": "application/xml, text/xml, */*"}
    log.info("fetching %s", url)
    try:
        response = client.get(url, headers=headers, timeout=timeout)
    except requests.RequestException as exc:
        raise SourceError(f"http fetch failed for {url}: {exc}") from exc
    if response.status_code != 200:
        raise SourceError(f"http fetch failed for {url}: status {response.status_code}")
    return response.content

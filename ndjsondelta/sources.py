"""Byte sources feeding the delta engine.

The engine only ever sees two fully read texts.  This module obtains them:
from a local file, from an object in a remote store reached over HTTP, or
from any mix of the two.  Every failure surfaces as a ``SourceError``
(an ``OSError``); nothing here retries.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path
from urllib.parse import quote

import httpx

from .delta import DeltaResult, KeySelector, compute_delta
from .log import get_logger

_log = get_logger("sources")

REMOTE_PREFIX = "remote:"


class SourceError(OSError):
    """A source could not be read."""


class SourceNotFoundError(SourceError):
    """The file or remote object does not exist."""


class SourceAuthError(SourceError):
    """The remote store rejected our credentials."""


class SourceReadError(SourceError):
    """Any other failure while reading a source."""


# ---------------------------------------------------------------------------
# Readers
# ---------------------------------------------------------------------------


def read_local(path: str | Path, encoding: str = "utf-8-sig") -> str:
    """Read a whole local file as text.

    The default encoding drops a leading UTF-8 byte order mark.
    """
    p = Path(path)
    try:
        text = p.read_text(encoding=encoding)
    except FileNotFoundError as exc:
        raise SourceNotFoundError(f"No such file: {p}") from exc
    except (OSError, UnicodeDecodeError) as exc:
        raise SourceReadError(f"Cannot read {p}: {exc}") from exc
    except LookupError as exc:
        raise SourceReadError(f"Cannot read {p}: unknown encoding {encoding!r}") from exc
    _log.debug("source_read", kind="local", path=str(p), chars=len(text))
    return text


class HttpObjectReader:
    """Reads whole objects from an HTTP object store.

    Objects live at ``{base_url}/{container}/{name}``.  This fits any
    store that serves objects over plain GETs (pre-signed or SAS URLs,
    public buckets, a gateway in front of blob storage).

    Args:
        base_url:  Store root, e.g. ``https://account.blob.example.net``.
        token:     Optional bearer token sent as ``Authorization``.
        timeout:   Request timeout in seconds. Defaults to 30.
        transport: Optional httpx transport (tests use ``httpx.MockTransport``).
    """

    def __init__(
        self,
        base_url: str,
        token: str | None = None,
        timeout: float = 30.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        if not base_url:
            raise ValueError("Remote base_url must not be empty")
        self._base_url = base_url.rstrip("/")
        self._headers = {"Authorization": f"Bearer {token}"} if token else {}
        self._timeout = timeout
        self._transport = transport

    def object_url(self, container: str, name: str) -> str:
        return f"{self._base_url}/{quote(container, safe='')}/{quote(name, safe='/')}"

    def read_all(self, container: str, name: str) -> str:
        """GET one object and return its body decoded as text."""
        url = self.object_url(container, name)
        try:
            with httpx.Client(timeout=self._timeout, transport=self._transport) as client:
                response = client.get(url, headers=self._headers)
        except httpx.TimeoutException as exc:
            _log.warning("remote_object_fetch_failed", url=url, error="timeout")
            raise SourceReadError(f"Timed out fetching {url}") from exc
        except httpx.HTTPError as exc:
            _log.warning("remote_object_fetch_failed", url=url, error=str(exc))
            raise SourceReadError(f"Cannot fetch {url}: {exc}") from exc

        if response.status_code == 404:
            raise SourceNotFoundError(f"No such object: {container}/{name}")
        if response.status_code in (401, 403):
            raise SourceAuthError(
                f"Access denied to {container}/{name} (HTTP {response.status_code})"
            )
        if not response.is_success:
            _log.warning(
                "remote_object_fetch_failed",
                url=url,
                status_code=response.status_code,
                body=response.text[:200],
            )
            raise SourceReadError(f"HTTP {response.status_code} fetching {url}")

        try:
            text = response.content.decode("utf-8-sig")
        except UnicodeDecodeError as exc:
            raise SourceReadError(f"{container}/{name} is not UTF-8 text") from exc
        _log.debug("source_read", kind="remote", container=container, name=name, chars=len(text))
        return text


# ---------------------------------------------------------------------------
# Sources
# ---------------------------------------------------------------------------


class Source(ABC):
    """Something that yields one complete NDJSON text."""

    @abstractmethod
    def read_all(self) -> str:
        """Return the full text.  Raises SourceError on failure."""

    @abstractmethod
    def describe(self) -> str:
        """Short human-readable label."""


class TextSource(Source):
    """Text already held in memory."""

    def __init__(self, text: str, label: str = "<text>") -> None:
        self._text = text
        self._label = label

    def read_all(self) -> str:
        return self._text

    def describe(self) -> str:
        return self._label


class LocalFileSource(Source):
    def __init__(self, path: str | Path, encoding: str = "utf-8-sig") -> None:
        self.path = Path(path)
        self.encoding = encoding

    def read_all(self) -> str:
        return read_local(self.path, self.encoding)

    def describe(self) -> str:
        return str(self.path)


class RemoteObjectSource(Source):
    def __init__(self, reader: HttpObjectReader, container: str, name: str) -> None:
        self.reader = reader
        self.container = container
        self.name = name

    def read_all(self) -> str:
        return self.reader.read_all(self.container, self.name)

    def describe(self) -> str:
        return f"{REMOTE_PREFIX}{self.container}/{self.name}"


def open_source(
    ref: str,
    reader: HttpObjectReader | None = None,
    encoding: str = "utf-8-sig",
) -> Source:
    """Resolve a source reference.

    ``remote:<container>/<name>`` selects an object through *reader*;
    anything else is a local path.
    """
    if not ref.startswith(REMOTE_PREFIX):
        return LocalFileSource(ref, encoding)

    container, sep, name = ref[len(REMOTE_PREFIX):].partition("/")
    if not container or not sep or not name:
        raise ValueError(f"Remote reference must look like remote:<container>/<name>, got {ref!r}")
    if reader is None:
        raise ValueError(f"No remote store configured for {ref!r}")
    return RemoteObjectSource(reader, container, name)


# ---------------------------------------------------------------------------
# Delta over sources
# ---------------------------------------------------------------------------


def compute_delta_from_sources(
    source_a: Source,
    source_b: Source,
    key_of: KeySelector,
    *,
    sort_by_key: bool = False,
) -> DeltaResult:
    """Read both sources in full, then compare them."""
    text_a = source_a.read_all()
    text_b = source_b.read_all()
    _log.info("sources_loaded", old=source_a.describe(), new=source_b.describe())
    return compute_delta(text_a, text_b, key_of, sort_by_key=sort_by_key)


def compute_delta_from_files(
    path_a: str | Path,
    path_b: str | Path,
    key_of: KeySelector,
    *,
    encoding: str = "utf-8-sig",
    sort_by_key: bool = False,
) -> DeltaResult:
    """Compare two local NDJSON files."""
    return compute_delta_from_sources(
        LocalFileSource(path_a, encoding),
        LocalFileSource(path_b, encoding),
        key_of,
        sort_by_key=sort_by_key,
    )

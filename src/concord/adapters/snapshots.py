"""Timestamped snapshots of provider responses for reproducible lookups.

Every snapshot is addressed by its request URL, which is mapped to a directory
path. Each directory holds one file per observation, named by its timestamp.
"""

from __future__ import annotations

import asyncio
import hashlib
import os
import re
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Final, Protocol
from urllib.parse import unquote, urlsplit

_ILLEGAL_FILENAME_CHARS: Final = re.compile(r'[\x00-\x1f<>:"/\\|?*]')
_LETTER: Final = re.compile(r"[a-z]", re.IGNORECASE)
_SNAPSHOT_NAME: Final = re.compile(r"^\d+$")
HASH_LENGTH: Final[int] = 7


def sanitize_filename(basename: str, replacement: str = "_") -> str:
    """Replace characters which are illegal in file names on UNIX or Windows."""
    return _ILLEGAL_FILENAME_CHARS.sub(replacement, basename)


def _reverse_host(netloc: str) -> str:
    userinfo, at, hostport = netloc.rpartition("@")
    if hostport.startswith("["):
        return netloc
    host, colon, port = hostport.partition(":")
    # IPv4 addresses contain dots but no letters and keep their order
    if _LETTER.search(host):
        host = ".".join(reversed(host.lower().split(".")))
    return f"{userinfo}{at}{host}{colon}{port}"


def _shorten(segment: str, max_length: int) -> str:
    if len(segment) <= max_length:
        return segment
    digest = hashlib.sha1(segment.encode("utf-8")).hexdigest()[:HASH_LENGTH]  # noqa: S324
    return f"{segment[: max_length - HASH_LENGTH - 1]}#{digest}"


def url_to_file_path(
    url: str,
    base_dir: str | os.PathLike[str] = ".",
    *,
    segment_max_length: int = 64,
    ignore_trailing_slash: bool = True,
) -> Path:
    """Map a URL to a relative file path below ``base_dir``.

    Host names are reversed (``org.example.www``) so related paths sort together.
    In strict mode (``ignore_trailing_slash=False``) a URL without query and trailing
    slash gets a ``?`` appended to keep it apart from the directory form.
    """

    parts = urlsplit(url)
    netloc = _reverse_host(parts.netloc)
    path = parts.path or ("/" if netloc else "")
    query = f"?{parts.query}" if parts.query else ""
    if not ignore_trailing_slash and not query and not path.endswith("/"):
        query = "?"
    fragment = f"#{parts.fragment}" if parts.fragment else ""
    href = f"{parts.scheme}://{netloc}{path}{query}{fragment}"

    segments = [
        _shorten(sanitize_filename(unquote(segment), "!"), segment_max_length)
        for segment in href.split("/")
        if segment
    ]
    return Path(base_dir).joinpath(*segments)


@dataclass(frozen=True, slots=True)
class Snapshot:
    url: str
    content: bytes
    timestamp: int
    path: Path | None = None


class SnapshotStore(Protocol):
    """Storage of timestamped response snapshots."""

    async def load(
        self,
        url: str,
        *,
        max_timestamp: int | None = None,
        min_timestamp: int | None = None,
    ) -> Snapshot | None:
        """Return the newest snapshot within the given timestamp bounds."""
        ...

    async def save(self, url: str, content: bytes, timestamp: int) -> Snapshot: ...


def _select_timestamp(
    timestamps: list[int],
    max_timestamp: int | None,
    min_timestamp: int | None,
) -> int | None:
    candidates = [
        timestamp
        for timestamp in timestamps
        if (max_timestamp is None or timestamp <= max_timestamp)
        and (min_timestamp is None or timestamp >= min_timestamp)
    ]
    return max(candidates) if candidates else None


class FileSnapshotStore:
    """Snapshots as files in a directory tree derived from the request URL."""

    def __init__(self, base_dir: str | os.PathLike[str], *, segment_max_length: int = 64) -> None:
        self.base_dir = Path(base_dir)
        self._segment_max_length = segment_max_length

    def directory_for(self, url: str) -> Path:
        return url_to_file_path(
            url, self.base_dir, segment_max_length=self._segment_max_length
        )

    async def load(
        self,
        url: str,
        *,
        max_timestamp: int | None = None,
        min_timestamp: int | None = None,
    ) -> Snapshot | None:
        return await asyncio.to_thread(self._load, url, max_timestamp, min_timestamp)

    async def save(self, url: str, content: bytes, timestamp: int) -> Snapshot:
        return await asyncio.to_thread(self._save, url, content, timestamp)

    def _load(
        self, url: str, max_timestamp: int | None, min_timestamp: int | None
    ) -> Snapshot | None:
        directory = self.directory_for(url)
        if not directory.is_dir():
            return None
        timestamps = [
            int(entry.name)
            for entry in directory.iterdir()
            if entry.is_file() and _SNAPSHOT_NAME.match(entry.name)
        ]
        timestamp = _select_timestamp(timestamps, max_timestamp, min_timestamp)
        if timestamp is None:
            return None
        path = directory / str(timestamp)
        return Snapshot(url=url, content=path.read_bytes(), timestamp=timestamp, path=path)

    def _save(self, url: str, content: bytes, timestamp: int) -> Snapshot:
        directory = self.directory_for(url)
        directory.mkdir(parents=True, exist_ok=True)
        path = directory / str(timestamp)
        # Same URL and timestamp means same content, so concurrent writers may race freely.
        with tempfile.NamedTemporaryFile(dir=directory, prefix=".tmp-", delete=False) as handle:
            handle.write(content)
        Path(handle.name).replace(path)
        return Snapshot(url=url, content=content, timestamp=timestamp, path=path)


class MemorySnapshotStore:
    """Process local snapshots, mainly for tests and one-off lookups."""

    def __init__(self) -> None:
        self._snapshots: dict[str, dict[int, bytes]] = {}

    async def load(
        self,
        url: str,
        *,
        max_timestamp: int | None = None,
        min_timestamp: int | None = None,
    ) -> Snapshot | None:
        by_timestamp = self._snapshots.get(url, {})
        timestamp = _select_timestamp(list(by_timestamp), max_timestamp, min_timestamp)
        if timestamp is None:
            return None
        return Snapshot(url=url, content=by_timestamp[timestamp], timestamp=timestamp)

    async def save(self, url: str, content: bytes, timestamp: int) -> Snapshot:
        self._snapshots.setdefault(url, {})[timestamp] = content
        return Snapshot(url=url, content=content, timestamp=timestamp)

    def timestamps(self, url: str) -> list[int]:
        return sorted(self._snapshots.get(url, {}))

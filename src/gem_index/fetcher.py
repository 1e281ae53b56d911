# *******************************************************************************
# Copyright (c) 2025 Contributors to the Eclipse Foundation
#
# See the NOTICE file(s) distributed with this work for additional
# information regarding copyright ownership.
#
# This program and the accompanying materials are made available under the
# terms of the Apache License Version 2.0 which is available at
# https://www.apache.org/licenses/LICENSE-2.0
#
# SPDX-License-Identifier: Apache-2.0
# *******************************************************************************

import json
import zlib
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

import requests

from .gh_logging import Logger
from .source_index import SourceIndex
from .spec import GemSpec

log = Logger(__name__)

FULL_INDEX_PATH = "/specs.json"
QUICK_INDEX_PATH = "/quick/index.rz"


class FetchError(RuntimeError):
    """Raised when a gem source cannot be read."""


class OperationNotSupportedError(FetchError):
    """Raised when a gem source does not offer a quick index."""


class Fetcher(Protocol):
    def size(self) -> int | None: ...

    def fetch_path(self, path: str) -> bytes: ...

    def source_index(self) -> SourceIndex: ...


class RemoteFetcher:
    """Reads index files from a remote gem source over HTTP."""

    def __init__(
        self,
        source_uri: str,
        session: requests.Session | None = None,
        timeout: float = 10,
    ):
        self.source_uri = source_uri.rstrip("/")
        self.session = session or requests.Session()
        self.timeout = timeout

    def _url(self, path: str) -> str:
        return self.source_uri + path

    def size(self) -> int | None:
        """Size in bytes of the full index; used to detect changes.

        None when the server does not report a usable Content-Length.
        """
        url = self._url(FULL_INDEX_PATH)
        try:
            resp = self.session.head(url, timeout=self.timeout, allow_redirects=True)
            resp.raise_for_status()
        except requests.RequestException as e:
            raise FetchError(f"Could not get size of {url}: {e}") from e

        length = resp.headers.get("Content-Length")
        if length is None or not length.isdigit():
            log.debug(f"{url} reports no Content-Length")
            return None
        return int(length)

    def fetch_path(self, path: str) -> bytes:
        url = self._url(path)
        log.debug(f"Fetching {url}")
        try:
            resp = self.session.get(url, timeout=self.timeout)
            resp.raise_for_status()
        except requests.RequestException as e:
            raise FetchError(f"Could not fetch {url}: {e}") from e
        return resp.content

    def source_index(self) -> SourceIndex:
        """Download the complete index of the source."""
        try:
            return SourceIndex.from_list(json.loads(self.fetch_path(FULL_INDEX_PATH)))
        except ValueError as e:
            raise FetchError(f"Invalid index at {self.source_uri}: {e}") from e


@dataclass
class SourceInfoCacheEntry:
    source_index: SourceIndex
    # Remote size at the last refresh; None if unknown or never refreshed.
    size: int | None = None

    def replace_source_index(self, source_index: SourceIndex, size: int | None) -> None:
        self.source_index = source_index
        self.size = size

    def to_dict(self) -> dict[str, object]:
        return {"size": self.size, "specs": self.source_index.to_list()}

    @classmethod
    def from_dict(cls, data: dict[str, object]) -> "SourceInfoCacheEntry":
        """Raises ValueError (or MalformedVersion) on invalid specs."""
        size = data.get("size")
        return cls(
            SourceIndex.from_list(data.get("specs", [])),
            size if isinstance(size, int) and not isinstance(size, bool) else None,
        )


class SourceInfoCache:
    """Source indexes of remote sources, persisted as a JSON file.

    Entries are read as plain dicts and turned into SourceInfoCacheEntry
    objects when first used.
    """

    def __init__(self, path: Path):
        self.path = path
        self.dirty = False
        self._cache_data: dict[str, object] | None = None

    @property
    def cache_data(self) -> dict[str, object]:
        if self._cache_data is None:
            self._cache_data = self._read()
        return self._cache_data

    def _read(self) -> dict[str, object]:
        if not self.path.exists():
            return {}
        try:
            with open(self.path) as f:
                data = json.load(f)
        except (json.JSONDecodeError, OSError) as e:
            log.warning(f"{self.path} could not be read: {e}; starting empty")
            return {}
        if not isinstance(data, dict):
            log.warning(f"{self.path} is not a JSON object; starting empty")
            return {}
        return data

    def update(self) -> None:
        self.dirty = True

    def flush(self) -> None:
        if not self.dirty:
            return

        serialized = {
            uri: entry.to_dict() if isinstance(entry, SourceInfoCacheEntry) else entry
            for uri, entry in self.cache_data.items()
        }
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "w") as f:
            json.dump(serialized, f, indent=4)
            f.write("\n")
        self.dirty = False
        log.debug(f"Wrote source cache {self.path}")


class IncrementalFetcher:
    """Keeps a cached source index in sync with a remote gem source.

    Only specs that were added or removed since the last run are fetched,
    using the source's quick index. Sources without a quick index are
    refreshed by downloading the full index instead.
    """

    def __init__(self, source_uri: str, fetcher: Fetcher, cache_manager: SourceInfoCache):
        self.source_uri = source_uri
        self.fetcher = fetcher
        self.manager = cache_manager
        self._remote_size: int | None = None
        self._remote_size_known = False

    def size(self) -> int | None:
        return self.fetcher.size()

    def fetch_path(self, path: str) -> bytes:
        return self.fetcher.fetch_path(path)

    def source_index(self) -> SourceIndex:
        entry = self._get_entry()
        if entry is None:
            entry = SourceInfoCacheEntry(SourceIndex())
            self.manager.cache_data[self.source_uri] = entry
        # An unknown size on either side means the cache cannot be trusted.
        if entry.size is None or entry.size != self.remote_size:
            self._update_cache(entry)
        return entry.source_index

    @property
    def remote_size(self) -> int | None:
        if not self._remote_size_known:
            self._remote_size = self.fetcher.size()
            self._remote_size_known = True
        return self._remote_size

    def _get_entry(self) -> SourceInfoCacheEntry | None:
        result = self.manager.cache_data.get(self.source_uri)
        if result is None or isinstance(result, SourceInfoCacheEntry):
            return result
        if isinstance(result, dict):
            try:
                entry = SourceInfoCacheEntry.from_dict(result)
            except ValueError as e:
                log.warning(
                    f"Cached index of {self.source_uri} could not be read: {e}; "
                    "fetching it again",
                    file=self.manager.path,
                )
                return None
            self.manager.cache_data[self.source_uri] = entry
            return entry
        raise TypeError(
            f"Unexpected cache entry for {self.source_uri}: {type(result).__name__}"
        )

    def _update_cache(self, entry: SourceInfoCacheEntry) -> None:
        try:
            spec_names = self._get_quick_index()
        except OperationNotSupportedError as e:
            log.debug(f"{e}; fetching the full index of {self.source_uri}")
            entry.replace_source_index(self.fetcher.source_index(), self.remote_size)
        else:
            self._remove_extra(entry.source_index, spec_names)
            self._update_with_missing(entry.source_index, spec_names)
            entry.size = self.remote_size
        self.manager.update()
        self.manager.flush()

    def _remove_extra(self, source_index: SourceIndex, spec_names: list[str]) -> None:
        """Remove cached specs the source no longer lists."""
        wanted = set(spec_names)
        for full_name, _ in source_index:
            if full_name not in wanted:
                log.debug(f"Removing {full_name} from {self.source_uri} cache")
                source_index.remove_spec(full_name)
                self.manager.update()

    def _update_with_missing(
        self, source_index: SourceIndex, spec_names: list[str]
    ) -> None:
        """Fetch the specs the cache does not have yet."""
        for full_name in spec_names:
            if source_index.specification(full_name) is not None:
                continue
            try:
                spec = self._fetch_quick_spec(full_name)
            except (zlib.error, UnicodeDecodeError, ValueError) as e:
                log.warning(
                    f"{self.source_uri} serves an invalid spec for {full_name}: {e}"
                )
                continue
            if spec.full_name != full_name:
                log.warning(
                    f"{self.source_uri} lists {full_name} but serves {spec.full_name}"
                )
                continue
            source_index.add_spec(spec)
            self.manager.update()

    def _fetch_quick_spec(self, full_name: str) -> GemSpec:
        data = json.loads(
            self._unzip(self.fetch_path(f"/quick/{full_name}.gemspec.rz"))
        )
        if not isinstance(data, dict):
            raise ValueError("spec is not a JSON object")
        return GemSpec.from_dict(data)

    def _get_quick_index(self) -> list[str]:
        try:
            zipped_index = self.fetch_path(QUICK_INDEX_PATH)
            return [n for n in self._unzip(zipped_index).splitlines() if n]
        except (FetchError, zlib.error, UnicodeDecodeError) as e:
            raise OperationNotSupportedError(f"No quick index found: {e}") from e

    @staticmethod
    def _unzip(data: bytes) -> str:
        return zlib.decompress(data).decode("utf-8")

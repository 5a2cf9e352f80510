"""File-backed TTL cache for answers returned by the external CLI."""

from __future__ import annotations

import hashlib
import json
import logging
import os
import time
from dataclasses import asdict, dataclass
from typing import Callable, Optional

from .constants import DEFAULT_CACHE_TTL

LOG = logging.getLogger(__name__)


class CacheReadError(Exception):
    """A cache entry exists but could not be read or decoded.

    Only used inside this module: callers always see a cache miss instead.
    """


@dataclass(frozen=True)
class CacheEntry:
    question: str
    tenant: Optional[str]
    result: str
    created_at: float


@dataclass(frozen=True)
class CacheStats:
    total: int = 0
    valid: int = 0
    expired: int = 0
    size_bytes: int = 0

    @property
    def size_mb(self) -> str:
        return f"{self.size_bytes / 1024 / 1024:.2f}"

    def to_dict(self) -> dict:
        data = asdict(self)
        data["size_mb"] = self.size_mb
        return data


class QueryCache:
    """One JSON file per (question, tenant) pair, expired by age.

    Layout: ``{cache_dir}/{md5(question:tenant)}.json``. Reads fail open: a
    missing, expired or corrupt entry is a miss, and the file is removed.
    Writes are best-effort.

    Usage:
        cache = QueryCache(".cache/workiq", ttl=3600)
        answer = cache.get(question, tenant)
        if answer is None:
            answer = run_query(question)
            cache.put(question, tenant, answer)
    """

    def __init__(
        self,
        cache_dir: str,
        ttl: int = DEFAULT_CACHE_TTL,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.cache_dir = cache_dir
        self.ttl = ttl
        self._clock = clock

    @staticmethod
    def key(question: str, tenant: Optional[str] = None) -> str:
        """Deterministic hash over question text and tenant ('' when absent)."""
        combined = f"{question}:{tenant or ''}"
        return hashlib.md5(combined.encode("utf-8"), usedforsecurity=False).hexdigest()  # noqa: S324 - cache key only

    def path_for(self, question: str, tenant: Optional[str] = None) -> str:
        return os.path.join(self.cache_dir, f"{self.key(question, tenant)}.json")

    def _is_fresh(self, created_at: float) -> bool:
        return (self._clock() - created_at) < self.ttl

    @staticmethod
    def _read_entry(path: str) -> CacheEntry:
        try:
            with open(path, "r", encoding="utf-8") as fh:
                data = json.load(fh)
            return CacheEntry(
                question=data["question"],
                tenant=data.get("tenant"),
                result=data["result"],
                created_at=float(data["created_at"]),
            )
        except (OSError, ValueError, KeyError, TypeError) as exc:
            raise CacheReadError(f"{path}: {exc}") from exc

    @staticmethod
    def _discard(path: str) -> None:
        try:
            os.remove(path)
        except OSError:
            pass  # nosec B110 - already gone or not removable; next put overwrites

    def get(self, question: str, tenant: Optional[str] = None) -> Optional[str]:
        """Return the cached answer, or None when missing, expired or unreadable."""
        path = self.path_for(question, tenant)
        if not os.path.exists(path):
            LOG.debug("cache miss: %s", question)
            return None
        try:
            entry = self._read_entry(path)
        except CacheReadError as exc:
            LOG.debug("cache entry unreadable, treating as miss (%s)", exc)
            self._discard(path)
            return None
        if not self._is_fresh(entry.created_at):
            LOG.debug("cache expired: %s", question)
            self._discard(path)
            return None
        LOG.debug("cache hit: %s", question)
        return entry.result

    def put(self, question: str, tenant: Optional[str], result: str) -> None:
        """Store an answer (best-effort, failures are logged and ignored)."""
        entry = CacheEntry(question=question, tenant=tenant, result=result, created_at=self._clock())
        path = self.path_for(question, tenant)
        try:
            os.makedirs(self.cache_dir, exist_ok=True)
            with open(path, "w", encoding="utf-8") as fh:
                json.dump(asdict(entry), fh, ensure_ascii=False, indent=2)
        except OSError as exc:
            LOG.warning("could not write cache entry %s: %s", path, exc)

    def _entry_files(self) -> list[str]:
        return [
            os.path.join(self.cache_dir, name)
            for name in sorted(os.listdir(self.cache_dir))
            if os.path.isfile(os.path.join(self.cache_dir, name))
        ]

    def clear(self) -> int:
        """Remove every entry file; return how many were removed."""
        if not os.path.isdir(self.cache_dir):
            return 0
        removed = 0
        for path in self._entry_files():
            try:
                os.remove(path)
                removed += 1
            except OSError as exc:
                LOG.warning("could not remove cache file %s: %s", path, exc)
        return removed

    def stats(self) -> CacheStats:
        """Classify stored entries as valid or expired at call time."""
        if not os.path.isdir(self.cache_dir):
            return CacheStats()
        total = valid = expired = size = 0
        for path in self._entry_files():
            total += 1
            try:
                size += os.path.getsize(path)
                entry = self._read_entry(path)
            except (OSError, CacheReadError):
                expired += 1
                continue
            if self._is_fresh(entry.created_at):
                valid += 1
            else:
                expired += 1
        return CacheStats(total=total, valid=valid, expired=expired, size_bytes=size)

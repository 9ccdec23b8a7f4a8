"""Per-key file cache with a time-to-live stored in each entry's header."""
import logging
import os
import time
from typing import Iterable, Optional, Tuple

HEADER_PREFIX = "expires:"


class CacheWriteError(OSError):
    """Raised when a cache entry could not be persisted."""
    pass


class FileCache:
    """
    Stores one file per key at ``<cache_dir>/<prefix><key>``.

    Each file holds ``expires:<minutes>`` on its first line and the raw value
    after it. The file's modification time is the write timestamp, so an
    entry is fresh while ``age(key) < minutes``. A TTL of 0 makes every read
    a miss, which is how caching is switched off.
    """

    def __init__(self, cache_dir: str, prefix: str = ""):
        """
        Initialize file cache.

        Args:
            cache_dir: Directory holding the cache files (shared across runs)
            prefix: Filename prefix, normally scoped by station
        """
        self.cache_dir = cache_dir
        self.prefix = prefix

    def path(self, key: str) -> str:
        return os.path.join(self.cache_dir, f"{self.prefix}{key}")

    def write(self, key: str, value: str, ttl_minutes: int) -> None:
        """
        Persist a value, replacing any previous entry for the key.

        Raises:
            CacheWriteError: If the entry could not be written
        """
        path = self.path(key)
        try:
            with open(path, "w", encoding="utf-8") as handle:
                handle.write(f"{HEADER_PREFIX}{ttl_minutes}\n{value}")
        except OSError as e:
            logging.error(f"Failed to write cache entry {path}: {e}")
            raise CacheWriteError(f"Failed to write cache entry '{key}': {e}") from e
        logging.debug(f"Cached {key} (ttl={ttl_minutes}m)")

    def _load(self, key: str) -> Optional[Tuple[int, str]]:
        """Read and split an entry into (ttl, value); None if missing or malformed."""
        try:
            with open(self.path(key), encoding="utf-8") as handle:
                contents = handle.read()
        except (OSError, UnicodeDecodeError) as e:
            logging.debug(f"Cache miss for {key}: {e}")
            return None

        parts = contents.split("\n", 1)
        if len(parts) != 2 or not parts[0].startswith(HEADER_PREFIX):
            logging.debug(f"Ignoring malformed cache entry for {key}")
            return None

        try:
            ttl = int(parts[0][len(HEADER_PREFIX):])
        except ValueError:
            logging.debug(f"Ignoring cache entry for {key} with bad expiry header")
            return None
        return ttl, parts[1]

    def age(self, key: str) -> float:
        """
        Minutes elapsed since the entry was written.

        Raises:
            FileNotFoundError: If there is no entry for the key
        """
        mtime = os.stat(self.path(key)).st_mtime
        return (time.time() - mtime) / 60.0

    def _expired(self, key: str, ttl: int) -> bool:
        try:
            age = self.age(key)
        except OSError:
            return True
        return age >= ttl

    def is_expired(self, key: str) -> bool:
        """True when the entry is absent, malformed or at least ``ttl`` minutes old."""
        entry = self._load(key)
        if entry is None:
            return True
        return self._expired(key, entry[0])

    def is_expired_many(self, keys: Iterable[str]) -> bool:
        """True if any of the keys has expired."""
        return any(self.is_expired(key) for key in keys)

    def read(self, key: str) -> Optional[str]:
        """Return the cached value, or None when it is absent, malformed or expired."""
        entry = self._load(key)
        if entry is None:
            return None
        ttl, value = entry
        if self._expired(key, ttl):
            logging.debug(f"Cache entry for {key} expired (ttl={ttl}m)")
            return None
        return value

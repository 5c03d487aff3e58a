"""Suppression of rapid duplicate submissions.

A :class:`DuplicateRegistry` remembers when each duplicate key (see
:func:`finance_dashboard.validation.create_duplicate_key`) was last accepted.
A key seen less than ``window_ms`` ago is a duplicate; entries older than
``cleanup_threshold_ms`` are purged on every check so the map stays small.

Per-key lifecycle::

    Unseen --record--> Seen(t0) --(now - t0 >= window)--> effectively Unseen

The registry is an ordinary object so hosts decide its lifetime. All access
goes through one lock, and :meth:`DuplicateRegistry.claim` performs the
check and the record as a single step for hosts that run handlers on several
threads. Code that does not inject a registry shares the process default
returned by :func:`default_registry`.
"""

from __future__ import annotations

import os
import threading
import time
from collections.abc import Callable

from .logging_setup import get_logger

logger = get_logger("finance_dashboard.duplicates")

DUPLICATE_WINDOW_MS = 2000
CLEANUP_THRESHOLD_MS = 5000

type Clock = Callable[[], float]
"""Zero-argument callable returning the current time in milliseconds."""


def monotonic_ms() -> float:
    return time.monotonic_ns() / 1_000_000


def _env_ms(name: str, default: int) -> int:
    raw = os.getenv(name)
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError:
        logger.warning("ignoring %s=%r: not an integer", name, raw)
        return default
    if value <= 0:
        logger.warning("ignoring %s=%r: must be positive", name, raw)
        return default
    return value


class DuplicateRegistry:
    """Lock-guarded map of duplicate key to last-accepted timestamp."""

    def __init__(
        self,
        *,
        window_ms: float = DUPLICATE_WINDOW_MS,
        cleanup_threshold_ms: float = CLEANUP_THRESHOLD_MS,
        clock: Clock = monotonic_ms,
    ) -> None:
        if window_ms <= 0 or cleanup_threshold_ms <= 0:
            raise ValueError("window_ms and cleanup_threshold_ms must be positive")
        self.window_ms = window_ms
        self.cleanup_threshold_ms = cleanup_threshold_ms
        self._clock = clock
        self._seen: dict[str, float] = {}
        self._lock = threading.Lock()

    @classmethod
    def from_env(cls, *, clock: Clock = monotonic_ms) -> DuplicateRegistry:
        """Build a registry honoring the ``FINANCE_DASHBOARD_DUPLICATE_*`` overrides."""

        return cls(
            window_ms=_env_ms("FINANCE_DASHBOARD_DUPLICATE_WINDOW_MS", DUPLICATE_WINDOW_MS),
            cleanup_threshold_ms=_env_ms(
                "FINANCE_DASHBOARD_DUPLICATE_CLEANUP_MS", CLEANUP_THRESHOLD_MS
            ),
            clock=clock,
        )

    def __len__(self) -> int:
        with self._lock:
            return len(self._seen)

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._seen

    # -- internals (caller holds the lock) ---------------------------------

    def _purge(self, now: float) -> None:
        stale = [k for k, ts in self._seen.items() if now - ts > self.cleanup_threshold_ms]
        for k in stale:
            del self._seen[k]
        if stale:
            logger.debug("purged %d stale duplicate keys", len(stale))

    def _is_recent(self, key: str, now: float) -> bool:
        last = self._seen.get(key)
        return last is not None and now - last < self.window_ms

    # -- public API --------------------------------------------------------

    def is_duplicate(self, key: str) -> bool:
        """Purge stale entries, then report whether ``key`` is inside the window."""

        with self._lock:
            now = self._clock()
            self._purge(now)
            return self._is_recent(key, now)

    def record(self, key: str) -> None:
        """Mark ``key`` as accepted now, restarting its window."""

        with self._lock:
            self._seen[key] = self._clock()

    def claim(self, key: str) -> bool:
        """Atomically check and record ``key``.

        Returns ``False`` (and changes nothing) when ``key`` is a duplicate;
        otherwise records it and returns ``True``.
        """

        with self._lock:
            now = self._clock()
            self._purge(now)
            if self._is_recent(key, now):
                return False
            self._seen[key] = now
            return True

    def release(self, key: str) -> None:
        """Forget ``key``; used when a claimed write did not happen."""

        with self._lock:
            self._seen.pop(key, None)

    def clear(self) -> None:
        with self._lock:
            self._seen.clear()


_DEFAULT_REGISTRY: DuplicateRegistry | None = None
_DEFAULT_LOCK = threading.Lock()


def default_registry() -> DuplicateRegistry:
    """Return the process-wide registry, creating it from the environment once."""

    global _DEFAULT_REGISTRY
    with _DEFAULT_LOCK:
        if _DEFAULT_REGISTRY is None:
            _DEFAULT_REGISTRY = DuplicateRegistry.from_env()
        return _DEFAULT_REGISTRY


def _resolve(registry: DuplicateRegistry | None) -> DuplicateRegistry:
    # An empty registry is falsy (__len__), so compare against None
    return registry if registry is not None else default_registry()


def is_duplicate_transaction(key: str, *, registry: DuplicateRegistry | None = None) -> bool:
    """True when ``key`` was recorded less than the duplicate window ago."""

    return _resolve(registry).is_duplicate(key)


def record_transaction(key: str, *, registry: DuplicateRegistry | None = None) -> None:
    """Record ``key`` as accepted now. Call once the write has been accepted."""

    _resolve(registry).record(key)


__all__ = [
    "DUPLICATE_WINDOW_MS",
    "CLEANUP_THRESHOLD_MS",
    "Clock",
    "DuplicateRegistry",
    "default_registry",
    "is_duplicate_transaction",
    "record_transaction",
    "monotonic_ms",
]

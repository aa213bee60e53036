"""
=============================================================================
TITLE CACHE
=============================================================================

Process-lifetime memoization of movie documents, keyed by raw title.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                     get_or_fetch(title, fetch)                      │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   ┌───────────────────┐                                             │
    │   │ title in _data?   │── yes ──► return cached document (HIT)      │
    │   └─────────┬─────────┘                                             │
    │             │ no                                                     │
    │   ┌─────────▼─────────┐                                             │
    │   │ take title's lock │   ← one lock per title being fetched        │
    │   └─────────┬─────────┘                                             │
    │             │                                                        │
    │   ┌─────────▼─────────┐                                             │
    │   │ title in _data?   │── yes ──► return (someone else fetched it)  │
    │   └─────────┬─────────┘                                             │
    │             │ no                                                     │
    │   ┌─────────▼─────────┐                                             │
    │   │ fetch(title)      │   ← blocking provider call (MISS)           │
    │   │ store, return     │                                             │
    │   └───────────────────┘                                             │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
CONCURRENCY
=============================================================================

Two locks are involved:

    _lock          Guards the dict and the per-title lock table. Held only
                   for dictionary operations, never across a fetch.

    per-title lock Serializes fetches of ONE title. Ten clients asking for
                   an uncached "Heat" at once cause one OMDb call; the other
                   nine wait on the lock and then read the stored document.
                   Fetches of DIFFERENT titles run in parallel.

If the fetch raises, nothing is stored and the exception reaches the
caller. A waiter then takes the lock and tries its own fetch. A title's
lock is dropped once no caller holds or waits on it, whether or not the
fetch succeeded.

Entries are never evicted or expired.

=============================================================================
"""

import logging
import threading
from typing import Callable, Dict, Optional, Tuple


logger = logging.getLogger(__name__)


class TitleCache:
    """
    Thread-safe title → movie document memo.

    Usage:
        cache = TitleCache()
        doc = cache.get_or_fetch("Heat", provider.fetch_movie_data)  # fetches
        doc = cache.get_or_fetch("Heat", provider.fetch_movie_data)  # cached
    """

    def __init__(self):
        self._data: Dict[str, str] = {}
        self._fetch_locks: Dict[str, threading.Lock] = {}
        self._waiters: Dict[str, int] = {}
        self._lock = threading.Lock()

        self.hits = 0
        self.misses = 0

    def get(self, title: str) -> Optional[str]:
        """Return the cached document, or None. Never fetches."""
        with self._lock:
            return self._data.get(title)

    def __contains__(self, title: str) -> bool:
        with self._lock:
            return title in self._data

    def __len__(self) -> int:
        with self._lock:
            return len(self._data)

    def get_or_fetch(self, title: str, fetch: Callable[[str], str]) -> str:
        """
        Return the document for a title, fetching it once on first use.

        Args:
            title: Raw title, used verbatim as the key.
            fetch: Called with the title on a miss.

        Returns:
            The cached or freshly fetched document.

        Raises:
            Whatever fetch raises. Nothing is stored in that case.
        """
        document, _ = self.lookup(title, fetch)
        return document

    def lookup(self, title: str, fetch: Callable[[str], str]) -> Tuple[str, bool]:
        """
        Like get_or_fetch(), but also says whether this call fetched.

        Returns:
            (document, hit). hit is False only for the caller whose fetch
            produced the document.
        """
        with self._lock:
            document = self._data.get(title)
            if document is not None:
                self.hits += 1
                logger.debug(f"Cache hit for {title!r}")
                return document, True
            fetch_lock = self._fetch_locks.setdefault(title, threading.Lock())
            self._waiters[title] = self._waiters.get(title, 0) + 1

        try:
            with fetch_lock:
                with self._lock:
                    document = self._data.get(title)
                    if document is not None:
                        self.hits += 1
                        logger.debug(f"Cache hit for {title!r} after waiting on fetch")
                        return document, True
                    self.misses += 1

                logger.debug(f"Cache miss for {title!r}, fetching")
                document = fetch(title)

                with self._lock:
                    self._data[title] = document
                return document, False
        finally:
            with self._lock:
                # Last one out removes the title's lock, stored or not
                self._waiters[title] -= 1
                if not self._waiters[title]:
                    del self._waiters[title]
                    self._fetch_locks.pop(title, None)

    def stats(self) -> dict:
        """Snapshot of size, hits and misses."""
        with self._lock:
            return {
                "size": len(self._data),
                "hits": self.hits,
                "misses": self.misses,
            }

"""
Unit tests for the title cache.
"""

import threading

import pytest

from movieinfo.cache import TitleCache
from movieinfo.providers import ProviderError

from conftest import FakeProvider


class TestTitleCache:
    """Tests for memoization."""

    def test_first_lookup_fetches(self, fake_provider: FakeProvider):
        cache = TitleCache()

        document = cache.get_or_fetch("Heat", fake_provider.fetch_movie_data)

        assert document == '{"Title":"Heat","Response":"True"}'
        assert fake_provider.call_count("Heat") == 1
        assert "Heat" in cache

    def test_second_lookup_is_cached(self, fake_provider: FakeProvider):
        """The provider is called at most once per title."""
        cache = TitleCache()

        first = cache.get_or_fetch("Heat", fake_provider.fetch_movie_data)
        second = cache.get_or_fetch("Heat", fake_provider.fetch_movie_data)

        assert first == second
        assert fake_provider.call_count("Heat") == 1
        assert cache.stats() == {"size": 1, "hits": 1, "misses": 1}

    def test_keys_are_raw_titles(self, fake_provider: FakeProvider):
        """Different encodings of the same name are different entries."""
        cache = TitleCache()

        cache.get_or_fetch("The%20Matrix", fake_provider.fetch_movie_data)
        cache.get_or_fetch("The+Matrix", fake_provider.fetch_movie_data)
        cache.get_or_fetch("the%20matrix", fake_provider.fetch_movie_data)

        assert len(cache) == 3
        assert fake_provider.call_count() == 3

    def test_get_never_fetches(self):
        cache = TitleCache()
        assert cache.get("Heat") is None
        assert len(cache) == 0

    def test_failure_not_cached(self):
        """A failed fetch stores nothing and the next request retries."""
        provider = FakeProvider(failing={"Heat"})
        cache = TitleCache()

        with pytest.raises(ProviderError):
            cache.get_or_fetch("Heat", provider.fetch_movie_data)

        assert "Heat" not in cache

        provider.failing.clear()
        document = cache.get_or_fetch("Heat", provider.fetch_movie_data)

        assert "Heat" in document
        assert provider.call_count("Heat") == 2

    def test_failed_fetch_releases_title_lock(self):
        """No per-title lock outlives a failed fetch."""
        provider = FakeProvider(failing={"Heat"})
        cache = TitleCache()

        for _ in range(3):
            with pytest.raises(ProviderError):
                cache.get_or_fetch("Heat", provider.fetch_movie_data)

        assert cache._fetch_locks == {}
        assert cache._waiters == {}

    def test_lookup_reports_hit(self, fake_provider: FakeProvider):
        cache = TitleCache()

        assert cache.lookup("Heat", fake_provider.fetch_movie_data)[1] is False
        assert cache.lookup("Heat", fake_provider.fetch_movie_data)[1] is True

    def test_empty_document_is_cached(self):
        """An empty provider answer is still a cached answer."""
        provider = FakeProvider(documents={"Blank": ""})
        cache = TitleCache()

        cache.get_or_fetch("Blank", provider.fetch_movie_data)
        cache.get_or_fetch("Blank", provider.fetch_movie_data)

        assert provider.call_count("Blank") == 1


class TestTitleCacheConcurrency:
    """Tests for concurrent access."""

    def test_concurrent_requests_fetch_once(self):
        """Simultaneous lookups of a new title share a single fetch."""
        provider = FakeProvider(delay=0.2)
        cache = TitleCache()
        results = []
        results_lock = threading.Lock()
        start = threading.Barrier(8)

        def lookup():
            start.wait()
            document = cache.get_or_fetch("Heat", provider.fetch_movie_data)
            with results_lock:
                results.append(document)

        threads = [threading.Thread(target=lookup) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join(timeout=5.0)

        assert provider.call_count("Heat") == 1
        assert len(results) == 8
        assert len(set(results)) == 1

    def test_different_titles_fetch_in_parallel(self):
        """A slow fetch for one title does not block another."""
        slow = threading.Event()
        release = threading.Event()

        def fetch(title):
            if title == "Slow":
                slow.set()
                release.wait(timeout=5.0)
            return title

        cache = TitleCache()
        t = threading.Thread(target=cache.get_or_fetch, args=("Slow", fetch))
        t.start()
        assert slow.wait(timeout=5.0)

        assert cache.get_or_fetch("Fast", fetch) == "Fast"

        release.set()
        t.join(timeout=5.0)
        assert cache.get("Slow") == "Slow"

    def test_only_the_fetching_caller_misses(self):
        """Callers that waited on another's fetch see a hit."""
        provider = FakeProvider(delay=0.2)
        cache = TitleCache()
        outcomes = []
        outcomes_lock = threading.Lock()
        start = threading.Barrier(6)

        def lookup():
            start.wait()
            _, hit = cache.lookup("Heat", provider.fetch_movie_data)
            with outcomes_lock:
                outcomes.append(hit)

        threads = [threading.Thread(target=lookup) for _ in range(6)]
        for t in threads:
            t.start()
        for t in threads:
            t.join(timeout=5.0)

        assert sorted(outcomes) == [False] + [True] * 5
        assert cache.stats() == {"size": 1, "hits": 5, "misses": 1}
        assert cache._fetch_locks == {}

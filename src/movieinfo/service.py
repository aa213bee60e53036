"""
Title resolution: search page, cached document, or a fresh provider fetch.
"""

from typing import Optional, Tuple

from .cache import TitleCache
from .page import generate_default_html
from .providers import MovieDataProvider


class MovieService:
    """
    Resolves an optional title to the document sent back to the client.

    The cache and provider are injected so tests can pair a fresh cache
    with a fake provider:

        service = MovieService(TitleCache(), FakeProvider())
        service.resolve(None)     # search page HTML
        service.resolve("Heat")   # provider called once
        service.resolve("Heat")   # served from cache
    """

    def __init__(
        self,
        cache: TitleCache,
        provider: MovieDataProvider,
        default_title: str = "Guardians of the galaxy",
    ):
        self.cache = cache
        self.provider = provider
        self.default_title = default_title

        # Rendered once; the page never changes for the process lifetime
        self._default_html = generate_default_html(default_title)

    @property
    def default_html(self) -> str:
        return self._default_html

    def resolve(self, title: Optional[str]) -> str:
        """
        Args:
            title: Raw (percent-encoded) title, or None.

        Returns:
            The search page when title is None, otherwise the movie document.

        Raises:
            ProviderError: If the title is uncached and the provider fails.
        """
        if title is None:
            return self._default_html
        return self.cache.get_or_fetch(title, self.provider.fetch_movie_data)

    def lookup(self, title: str) -> Tuple[str, bool]:
        """Resolve a title, returning (document, hit) as seen by this call."""
        return self.cache.lookup(title, self.provider.fetch_movie_data)

    def is_cached(self, title: Optional[str]) -> bool:
        return title is not None and title in self.cache

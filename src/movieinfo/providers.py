"""
=============================================================================
MOVIE DATA PROVIDERS
=============================================================================

A provider turns a URL-encoded title into a serialized movie document.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                     PROVIDER INTERFACE                              │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │     MovieService                                                     │
    │         │                                                            │
    │         │  fetch_movie_data("Guardians%20Of%20The%20Galaxy")        │
    │         ▼                                                            │
    │     MovieDataProvider  (abstract)                                    │
    │         │                                                            │
    │         ├──► OMDbMovieDataProvider   GET omdbapi.com/?t=...&apikey= │
    │         │                                                            │
    │         └──► (any other source: tests, fixtures, mirrors)           │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

The service only knows the interface, so swapping OMDb for another source
never touches the caller.

=============================================================================
FAILURE MODES
=============================================================================

    Network error / timeout   → ProviderError  (502 to the client)
    OMDb 5xx                  → ProviderError  (502 to the client)
    OMDb 4xx with a body      → body returned as-is
                                e.g. {"Response":"False","Error":"Invalid API key!"}

There is no retry. A failed fetch is never cached, so the next request
for the same title simply tries again.

=============================================================================
"""

import logging
from abc import ABC, abstractmethod
from typing import Optional

import requests


logger = logging.getLogger(__name__)


class ProviderError(Exception):
    """
    Raised when a provider cannot produce a movie document.

    Carries the HTTP status code the connection handler answers with.
    """

    def __init__(self, message: str, status_code: int = 502):
        super().__init__(message)
        self.status_code = status_code


class MovieDataProvider(ABC):
    """Source of movie documents keyed by URL-encoded title."""

    @abstractmethod
    def fetch_movie_data(self, encoded_title: str) -> str:
        """
        Fetch the movie document for a title.

        Args:
            encoded_title: Percent-encoded title, exactly as received.

        Returns:
            The serialized (JSON) movie document.

        Raises:
            ProviderError: If no document could be obtained.
        """

    def close(self) -> None:
        """Release any held resources (connections, files)."""


class OMDbMovieDataProvider(MovieDataProvider):
    """
    Fetches movie documents from the OMDb API.

    The request URL is assembled by hand rather than through
    ``requests``' ``params=`` argument: the title is already
    percent-encoded and must not be encoded a second time
    ("%20" would become "%2520").

    Usage:
        provider = OMDbMovieDataProvider(api_key="...")
        provider.fetch_movie_data("Guardians%20Of%20The%20Galaxy")
        # '{"Title":"Guardians of the Galaxy","Year":"2014",...}'
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: str = "http://www.omdbapi.com/",
        timeout: float = 10.0,
        session: Optional[requests.Session] = None,
    ):
        """
        Args:
            api_key: OMDb API key. Without one OMDb answers with an error
                     document, which is passed through.
            base_url: OMDb endpoint.
            timeout: Seconds to wait for connect and for each read.
            session: Shared requests.Session (one is created if omitted).
        """
        self.api_key = api_key
        self.base_url = base_url
        self.timeout = timeout
        self._session = session or requests.Session()

        if not api_key:
            logger.warning("No OMDb API key configured; OMDb will reject lookups")

    def build_url(self, encoded_title: str) -> str:
        """Build the lookup URL for an already encoded title."""
        url = f"{self.base_url}?t={encoded_title}"
        if self.api_key:
            url += f"&apikey={self.api_key}"
        return url

    def fetch_movie_data(self, encoded_title: str) -> str:
        url = self.build_url(encoded_title)
        logger.debug(f"Fetching movie data for {encoded_title!r}")

        try:
            response = self._session.get(url, timeout=self.timeout)
        except requests.Timeout as e:
            logger.error(f"OMDb timed out for {encoded_title!r}: {e}")
            raise ProviderError("Movie provider timed out") from e
        except requests.RequestException as e:
            logger.error(f"OMDb request failed for {encoded_title!r}: {e}")
            raise ProviderError("Movie provider unavailable") from e

        if response.status_code >= 500:
            logger.error(
                f"OMDb returned {response.status_code} for {encoded_title!r}"
            )
            raise ProviderError(f"Movie provider error ({response.status_code})")

        # JSON without a charset parameter is UTF-8
        if response.encoding is None:
            response.encoding = "utf-8"
        return response.text

    def close(self) -> None:
        self._session.close()

"""
=============================================================================
MOVIEINFO - Single-Line Movie Lookup Server
=============================================================================

A small TCP service that answers one request line per connection with
either a movie search page (HTML) or a movie's JSON document fetched from
OMDb and memoized per raw title.

=============================================================================
PROJECT OVERVIEW
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                    MOVIE INFO SERVER ARCHITECTURE                   │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   Browser ──"GET /movies?title=Heat HTTP/1.1"──► port 35000          │
    │                                                                      │
    │   1. RAW SOCKET LISTENER                                             │
    │      - Bind once, accept forever, one line per connection            │
    │                                                                      │
    │   2. REQUEST LINE PARSING                                            │
    │      - GET/POST with a query string → raw (still encoded) title      │
    │      - Anything else → search page                                   │
    │                                                                      │
    │   3. MEMOIZED LOOKUPS                                                │
    │      - One OMDb call per distinct title for the process lifetime     │
    │      - Concurrent requests for a new title share one fetch           │
    │                                                                      │
    │   4. RESPONSE FRAMING                                                │
    │      - "http": complete HTTP/1.1 responses                           │
    │      - "legacy": raw JSON line, header + HTML for the page           │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
PACKAGE STRUCTURE
=============================================================================

    movieinfo/
    ├── __init__.py          # This file - package exports
    ├── __main__.py          # CLI entry point (python -m movieinfo)
    ├── server.py            # MovieInfoServer orchestrator
    ├── config.py            # ServerConfig dataclass
    ├── service.py           # MovieService: page or cached document
    ├── cache.py             # TitleCache: memoization with fetch locks
    ├── providers.py         # MovieDataProvider, OMDb client
    ├── page.py              # Search page HTML/CSS/JS
    ├── access_log.py        # One access log entry per connection
    ├── core/
    │   ├── socket_server.py # TCP listener
    │   ├── connection.py    # One-line client connection
    │   └── thread_pool.py   # Optional worker threads
    └── http/
        ├── request.py       # Request line and query parsing
        ├── response.py      # Responses and wire framing
        └── status_codes.py  # Status enum

=============================================================================
QUICK START
=============================================================================

    from movieinfo import MovieInfoServer, ServerConfig

    server = MovieInfoServer(ServerConfig.from_env())
    server.run()

    $ curl 'http://localhost:35000/movies?title=The%20Matrix'

=============================================================================
"""

__version__ = "1.0.0"

from .server import MovieInfoServer
from .config import ServerConfig
from .cache import TitleCache
from .service import MovieService
from .providers import MovieDataProvider, OMDbMovieDataProvider, ProviderError

__all__ = [
    "MovieInfoServer",
    "ServerConfig",
    "TitleCache",
    "MovieService",
    "MovieDataProvider",
    "OMDbMovieDataProvider",
    "ProviderError",
    "__version__",
]

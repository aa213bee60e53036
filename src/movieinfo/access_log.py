"""
=============================================================================
ACCESS LOGGING
=============================================================================

One log entry per connection, emitted after the response is written.

We use a namespaced logger for granular control:

    logging.getLogger("movieinfo.access").setLevel(logging.WARNING)
    logging.getLogger("movieinfo.access").addHandler(file_handler)

=============================================================================
FORMATS
=============================================================================

text (default):

    10.0.0.5 - - [18/Oct/2026:12:00:00 +0000] "GET /movies?title=Heat" 200 1034 miss 412.31ms

json:

    {"connection_id": "3f2a9c1e", "client_ip": "10.0.0.5", "method": "GET",
     "target": "/movies?title=Heat", "title": "Heat", "cache": "miss",
     "status_code": 200, "content_length": 1034, "duration_ms": 412.31, ...}

=============================================================================
"""

import json
import logging
import time
from dataclasses import dataclass, asdict
from typing import Optional


logger = logging.getLogger("movieinfo.access")


@dataclass
class RequestLog:
    """
    Structured log entry for one connection.

    cache is "hit", "miss", or "-" when no title was requested.
    """

    connection_id: str
    client_ip: str
    method: str
    target: str
    title: Optional[str]
    cache: str
    status_code: int
    content_length: int
    duration_ms: float
    timestamp: str

    def to_dict(self) -> dict:
        data = asdict(self)
        data["duration_ms"] = round(self.duration_ms, 2)
        return data

    def to_text(self) -> str:
        """Apache-style line with the cache outcome appended."""
        return (
            f'{self.client_ip} - - [{self.timestamp}] '
            f'"{self.method} {self.target}" {self.status_code} '
            f'{self.content_length} {self.cache} {self.duration_ms:.2f}ms'
        )


class AccessLogger:
    """Formats and emits RequestLog entries."""

    def __init__(self, log_format: str = "text", log_level: int = logging.INFO):
        self.log_format = log_format
        self.log_level = log_level

    def log(
        self,
        connection_id: str,
        client_ip: str,
        method: str,
        target: str,
        title: Optional[str],
        cache: str,
        status_code: int,
        content_length: int,
        started_at: float,
    ) -> RequestLog:
        entry = RequestLog(
            connection_id=connection_id,
            client_ip=client_ip,
            method=method or "-",
            target=target or "-",
            title=title,
            cache=cache,
            status_code=int(status_code),
            content_length=content_length,
            duration_ms=(time.time() - started_at) * 1000,
            timestamp=time.strftime("%d/%b/%Y:%H:%M:%S %z"),
        )

        if self.log_format == "json":
            logger.log(self.log_level, json.dumps(entry.to_dict()))
        else:
            logger.log(self.log_level, entry.to_text())

        return entry

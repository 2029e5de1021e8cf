"""
=============================================================================
ACCESS LOG
=============================================================================

One line per answered request, in one of two formats:

    text (Apache-like, for humans):
        127.0.0.1 - - [17/Oct/2026:10:00:00 +0000] "GET /echo/hi" 200 2 0.41ms

    json (for log aggregators):
        {"request_id": "3f2a9c1d", "method": "GET", "target": "/echo/hi", ...}

Lines go to the ``rawhttp.access`` logger, so they can be routed or
silenced independently of the server's diagnostic logging.

=============================================================================
"""

import json
import logging
import time
from dataclasses import asdict, dataclass


logger = logging.getLogger("rawhttp.access")


@dataclass
class AccessLogEntry:
    """Everything worth recording about one request/response pair."""

    request_id: str
    method: str
    target: str
    client_ip: str
    user_agent: str
    status_code: int
    content_length: int
    duration_ms: float
    timestamp: str

    def to_dict(self) -> dict:
        data = asdict(self)
        data["status_code"] = int(self.status_code)
        data["duration_ms"] = round(self.duration_ms, 2)
        return data

    def to_text(self) -> str:
        return (
            f'{self.client_ip} - - [{self.timestamp}] '
            f'"{self.method} {self.target}" {int(self.status_code)} '
            f'{self.content_length} {self.duration_ms:.2f}ms'
        )


def log_access(entry: AccessLogEntry, log_format: str = "text", level: int = logging.INFO) -> None:
    """Emit ``entry`` on the access logger in the configured format."""
    if log_format == "json":
        logger.log(level, json.dumps(entry.to_dict()))
    else:
        logger.log(level, entry.to_text())


def access_timestamp() -> str:
    return time.strftime("%d/%b/%Y:%H:%M:%S %z")

"""
=============================================================================
ACCESS LOG
=============================================================================

One line on standard output for every file handed out:

    ts=20260114-09:31:07+0100 ip=192.168.1.20:51234 file=/srv/share/a.pdf
    ts=20260114-09:31:09+0100 ip=[fe80::1]:40112 file=/srv/share/b.iso
       ─────────┬──────────     ─────────┬──────── ────────┬─────────
                │                        │                 │
     local time with UTC offset   peer address     resolved path on disk

=============================================================================
TWO LOG STREAMS
=============================================================================

    ┌────────────────────────┬─────────────────────┬──────────────────────┐
    │ Logger                 │ Destination         │ Format               │
    ├────────────────────────┼─────────────────────┼──────────────────────┤
    │ fileserver.access      │ stdout              │ the line above only  │
    │ fileserver.* (others)  │ stderr (root)       │ asctime [LEVEL] ...  │
    └────────────────────────┴─────────────────────┴──────────────────────┘

The access logger does not propagate, so --log-level never hides a
download and diagnostics never end up mixed into the download record.

Requests are served on many threads at once. logging.Handler holds a lock
around each emit(), so two downloads finishing together still produce two
whole lines. A failed write is reported by logging.Handler.handleError()
and never raised into the request.

=============================================================================
"""

import sys
import logging
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Optional, TextIO


ACCESS_LOGGER_NAME = "fileserver.access"

TIMESTAMP_FORMAT = "%Y%m%d-%H:%M:%S%z"

logger = logging.getLogger(ACCESS_LOGGER_NAME)


@dataclass
class AccessLogEntry:
    """
    A single successful download.

    Attributes:
        timestamp:   Local time, formatted with TIMESTAMP_FORMAT
        remote_addr: "ip:port", "[ipv6]:port", or "unknown"
        file:        Resolved path that was served
    """

    timestamp: str
    remote_addr: str
    file: Path

    @classmethod
    def now(cls, remote_addr: str, file: Path) -> "AccessLogEntry":
        """Create an entry stamped with the current local time."""
        timestamp = datetime.now().astimezone().strftime(TIMESTAMP_FORMAT)
        return cls(timestamp=timestamp, remote_addr=remote_addr, file=file)

    def to_text(self) -> str:
        """Format as a single key=value line."""
        return f"ts={self.timestamp} ip={self.remote_addr} file={self.file}"


def configure_access_log(stream: Optional[TextIO] = None) -> logging.Logger:
    """
    Point the access logger at `stream` (standard output by default).

    Replaces any handler installed by an earlier call, so calling this
    again is safe.
    """
    for handler in list(logger.handlers):
        logger.removeHandler(handler)

    handler = logging.StreamHandler(stream if stream is not None else sys.stdout)
    handler.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(handler)
    logger.setLevel(logging.INFO)
    logger.propagate = False
    return logger


def log_download(remote_addr: str, file: Path) -> AccessLogEntry:
    """Record a download and return the entry that was written."""
    entry = AccessLogEntry.now(remote_addr, file)
    logger.info(entry.to_text())
    return entry

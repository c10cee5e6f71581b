"""
Record types produced by the ingest stage.
"""

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class AccessLogRecord:
    """One parsed access-log line."""

    timestamp: int  # epoch milliseconds
    method: str
    path: str
    request_line: str
    status: str  # kept as text: nginx writes non-standard codes such as 499
    request_time: str = ''
    body_bytes_sent: str = ''
    req_body: Optional[str] = None
    request_headers: str = ''
    resp_body: Optional[str] = None
    resp_headers: str = ''
    user_agent: Optional[str] = None


@dataclass(frozen=True)
class ReplayEvent:
    """A record that survived filtering, with its resolved replay URL."""

    record: AccessLogRecord
    url: str

    @property
    def timestamp(self) -> int:
        return self.record.timestamp

    @property
    def method(self) -> str:
        return self.record.method

    @property
    def status(self) -> str:
        return self.record.status

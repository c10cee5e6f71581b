"""
nginx-replay Outcome Model

Classification of one replayed event and the result line written for it.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional

from .common.utils import to_json
from .ingest.records import ReplayEvent

PLACEHOLDER = '-'


class Classification(Enum):
    SUCCESS = 'success'
    FAILED = 'failed'
    SKIPPED = 'skipped'


class DiscrepancyKind(Enum):
    NONE = 'none'
    STATUS = 'status'
    HEADERS = 'headers'
    BODY = 'body'
    REQUEST_BODY_PARSE_ERROR = 'request_body_parse_error'
    NETWORK_ERROR = 'network_error'


@dataclass
class ReplayOutcome:
    """
    Result of processing one replay event.

    ``status`` is None when no response was received (skipped, request
    body unparseable, or transport failure).
    """

    classification: Classification
    discrepancy: DiscrepancyKind = DiscrepancyKind.NONE
    detail: Optional[str] = None
    latency_ms: Optional[float] = None
    status: Optional[int] = None
    body: Any = None
    headers: Optional[Dict[str, str]] = None
    offending: Optional[List[Any]] = None

    @classmethod
    def skipped(cls) -> 'ReplayOutcome':
        return cls(classification=Classification.SKIPPED)

    @classmethod
    def failed(cls, discrepancy: DiscrepancyKind, detail: str) -> 'ReplayOutcome':
        return cls(classification=Classification.FAILED, discrepancy=discrepancy, detail=detail)

    @property
    def responded(self) -> bool:
        return self.status is not None

    @property
    def description(self) -> str:
        """Human readable discrepancy, or the placeholder when there is none."""
        if self.discrepancy is DiscrepancyKind.NONE:
            return PLACEHOLDER
        if self.discrepancy is DiscrepancyKind.HEADERS:
            return f"Headers - Discrepancies:{to_json(self.offending or [])}"
        if self.discrepancy is DiscrepancyKind.BODY:
            return f"Body - Discrepancies:{to_json(self.offending or [])}"
        return self.detail or self.discrepancy.value

    def _replay_body(self) -> str:
        if not self.responded:
            return PLACEHOLDER
        if self.body is None or self.body == '':
            return ''
        if isinstance(self.body, str):
            return self.body
        return to_json(self.body)

    def result_line(self, event: ReplayEvent) -> str:
        """Render the pipe-delimited result line for this outcome."""
        record = event.record
        original_body = record.resp_body if record.resp_body else '""'
        replay_time = f"{self.latency_ms / 1000:.3f}" if self.responded and self.latency_ms is not None else PLACEHOLDER
        fields = [
            f"original_status:{record.status}",
            f"replay_status:{self.status if self.responded else PLACEHOLDER}",
            f"response_discrepancy:{self.description}",
            f"original_req_time:{record.request_time}",
            f"replay_time:{replay_time}",
            f"replay_url:{event.url}",
            f"Method:{record.method}",
            f"original_resp_body:{original_body}",
            f"replay_resp_body:{self._replay_body()}",
            f"original_resp_headers:{{{record.resp_headers}}}",
            f"replay_resp_headers:{to_json(self.headers) if self.responded else PLACEHOLDER}",
        ]
        return '  ||  '.join(fields)

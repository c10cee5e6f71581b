"""
Request Dispatcher

Builds and sends the outbound request for one replay event and hands the
response to the classifier. Only a 503 response is retried, with a
linearly growing backoff and no practical retry cap.
"""

import json
import logging
import time
from itertools import takewhile
from typing import Any, Dict, Optional

import requests
import urllib3
from requests.adapters import HTTPAdapter
from urllib3.exceptions import InsecureRequestWarning
from urllib3.util.retry import Retry

from .classifier import DiscrepancyClassifier
from ..common.log_utils import RESULTS_LOGGER
from ..common.utils import parse_header_blob
from ..ingest.records import AccessLogRecord, ReplayEvent
from ..models import DiscrepancyKind, ReplayOutcome

logger = logging.getLogger(__name__)
results_logger = logging.getLogger(RESULTS_LOGGER)

RETRY_STATUS = 503
RETRY_BACKOFF_SECONDS = 2
MAX_RETRIES = 1_000_000
REPLAY_MARKER_HEADER = 'nginx-replay'
DROPPED_HEADERS = ('host', 'transfer-encoding')


class LinearRetry(Retry):
    """Retry policy whose n-th attempt waits n * backoff_factor seconds."""

    def get_backoff_time(self) -> float:
        attempts = len(list(takewhile(lambda x: x.redirect_location is None, reversed(self.history))))
        return attempts * self.backoff_factor

    def sleep(self, response=None):
        results_logger.info(f"retry attempt: {len(self.history)}")
        super().sleep(response)


def build_retry() -> LinearRetry:
    """Retry on 503 only; connection and read errors fail immediately."""
    return LinearRetry(
        total=None,
        connect=0,
        read=0,
        other=0,
        status=MAX_RETRIES,
        status_forcelist=[RETRY_STATUS],
        allowed_methods=None,
        backoff_factor=RETRY_BACKOFF_SECONDS,
        raise_on_status=False,
        respect_retry_after_header=False
    )


def build_request_headers(record: AccessLogRecord) -> Dict[str, str]:
    """
    Rebuild the request headers from the logged header blob.

    The host header is dropped, content-length is recomputed from the
    logged body and echoed in a marker header so the target can tell
    replayed traffic apart.
    """
    headers = {
        name: str(value) for name, value in parse_header_blob(record.request_headers).items()
        if name not in DROPPED_HEADERS
    }

    length = str(len(record.req_body.encode('utf-8'))) if record.req_body else '0'
    headers['content-length'] = length
    headers[REPLAY_MARKER_HEADER] = length
    return headers


def should_skip(record: AccessLogRecord, headers: Dict[str, str]) -> bool:
    """
    Recorded responses that cannot be reproduced meaningfully.

    Unauthenticated 404s and any 5xx are not sent.
    """
    if record.status == '404' and headers.get('authorization') in (None, 'bearer'):
        return True
    return record.status.startswith('50')


def decode_body(response: requests.Response) -> Any:
    """Decode a response body as JSON, falling back to text."""
    if not response.content:
        return None
    try:
        return response.json()
    except ValueError:
        return response.text


class RequestDispatcher:
    """
    Send replay events to the target server.

    Example:
        dispatcher = RequestDispatcher('http://localhost:8080', timeout_ms=5000)
        outcome = dispatcher.dispatch(event)
    """

    def __init__(
        self,
        prefix: str,
        username: Optional[str] = None,
        password: Optional[str] = None,
        timeout_ms: Optional[int] = None,
        verify_ssl: bool = True,
        classifier: Optional[DiscrepancyClassifier] = None,
        session: Optional[requests.Session] = None
    ):
        """
        Initialize dispatcher.

        Args:
            prefix: Target URL prefix every replay path is appended to
            username: Basic-auth user
            password: Basic-auth password
            timeout_ms: Per-request timeout in milliseconds (None = no timeout)
            verify_ssl: Whether to verify TLS certificates
            classifier: Classifier used for received responses
            session: Pre-built session (a retrying one is created otherwise)
        """
        self.prefix = prefix
        self.timeout = timeout_ms / 1000 if timeout_ms else None
        self.verify_ssl = verify_ssl
        self.auth = (username or '', password or '') if (username or password) else None
        self.classifier = classifier or DiscrepancyClassifier()
        self.session = session or self._create_session()

        if not verify_ssl:
            urllib3.disable_warnings(InsecureRequestWarning)

    def _create_session(self) -> requests.Session:
        """Create HTTP session with the 503 retry policy mounted."""
        session = requests.Session()

        adapter = HTTPAdapter(max_retries=build_retry())
        session.mount("http://", adapter)
        session.mount("https://", adapter)

        return session

    def dispatch(self, event: ReplayEvent) -> ReplayOutcome:
        """
        Replay one event.

        Args:
            event: Event to send

        Returns:
            ReplayOutcome; never raises for per-event failures
        """
        record = event.record

        if record.req_body:
            try:
                json.loads(record.req_body)
            except ValueError as e:
                return ReplayOutcome.failed(
                    DiscrepancyKind.REQUEST_BODY_PARSE_ERROR,
                    f"RequestBodyParseError: {e}"
                )

        headers = build_request_headers(record)

        if should_skip(record, headers):
            return ReplayOutcome.skipped()

        url = self.prefix + event.url
        logger.debug(f"Sending {record.method} request to {event.url}")
        start_time = time.perf_counter()

        try:
            response = self.session.request(
                method=record.method,
                url=url,
                headers=headers,
                data=record.req_body.encode('utf-8') if record.req_body else None,
                auth=self.auth,
                timeout=self.timeout,
                verify=self.verify_ssl,
                allow_redirects=False
            )
        except requests.exceptions.RequestException as e:
            logger.error(f"Invalid request to {event.url} : {e}")
            outcome = ReplayOutcome.failed(DiscrepancyKind.NETWORK_ERROR, f"NetworkError: {e}")
            outcome.latency_ms = (time.perf_counter() - start_time) * 1000
            return outcome

        latency_ms = (time.perf_counter() - start_time) * 1000
        logger.debug(f"Response for {event.url} with status code {response.status_code} done with {latency_ms:.0f} ms")

        outcome = self.classifier.classify(
            record,
            response.status_code,
            dict(response.headers),
            decode_body(response),
            latency_ms
        )

        if outcome.discrepancy is DiscrepancyKind.STATUS:
            logger.debug(f"Response for {event.url} has different status code: {response.status_code} and {record.status}")

        return outcome

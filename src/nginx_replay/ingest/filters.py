"""
Record filtering for replay.

Decides which access-log records are replayed, based on a start
timestamp and include/exclude substrings matched against the request
line, and builds the ordered replay event list.
"""

import logging
from typing import Iterable, List, Optional, Sequence, Tuple, Union

from .records import AccessLogRecord, ReplayEvent
from ..common.url_utils import apply_query_params

logger = logging.getLogger(__name__)


def normalize_start_timestamp(value: Union[str, int, float, None]) -> int:
    """
    Interpret a start timestamp given in seconds or milliseconds.

    Values with more than 10 digits are already milliseconds; anything
    shorter is seconds and is scaled up.

    Example:
        normalize_start_timestamp('1700000000')     # 1700000000000
        normalize_start_timestamp('1700000000123')  # 1700000000123
    """
    if value is None or value == '':
        return 0

    text = str(value).strip()
    if len(text) > 10:
        return int(float(text))
    return int(float(text) * 1000)


class RecordFilter:
    """
    Handles filtering logic to determine which records should be replayed.

    A record is replayed when:
    - its timestamp is strictly after the start timestamp
    - no "only" filters are configured, or its request line contains one
    - its request line contains none of the "skip" filters
    """

    def __init__(
        self,
        start_timestamp: int = 0,
        only: Optional[Sequence[str]] = None,
        skip: Optional[Sequence[str]] = None
    ):
        """
        Initialize the filter.

        Args:
            start_timestamp: Floor in epoch milliseconds
            only: Substrings, at least one of which must appear
            skip: Substrings, none of which may appear
        """
        self.start_timestamp = start_timestamp
        self.only = list(only or [])
        self.skip = list(skip or [])

    def should_replay(self, record: AccessLogRecord) -> bool:
        """Determine if a record should be replayed."""
        if record.timestamp <= self.start_timestamp:
            return False

        request = record.request_line
        if any(f in request for f in self.skip):
            return False

        if self.only and not any(f in request for f in self.only):
            return False

        return True


def build_events(
    records: Iterable[AccessLogRecord],
    record_filter: RecordFilter,
    prefix: str = '',
    query_params: Sequence[Tuple[str, str]] = ()
) -> List[ReplayEvent]:
    """
    Build the ordered replay event list.

    Records keep the order they were read in; nothing is re-sorted.

    Args:
        records: Parsed access-log records
        record_filter: Filter deciding which records to keep
        prefix: Target URL prefix, needed to rewrite query parameters
        query_params: (key, value) pairs forced onto every URL

    Returns:
        List of ReplayEvent
    """
    events = []
    for record in records:
        if not record_filter.should_replay(record):
            continue

        if query_params:
            url = apply_query_params(prefix, record.path, query_params)
        else:
            url = record.path

        events.append(ReplayEvent(record=record, url=url))

    logger.debug(f"Built {len(events)} replay events")
    return events

"""
nginx-replay Ingest Module

Access-log parsing and the filtering that turns log records into the
ordered list of replay events.
"""

from .records import AccessLogRecord, ReplayEvent
from .log_parser import LogFormat, AccessLogParser, DEFAULT_FORMAT, DEFAULT_TIME_FORMAT
from .filters import RecordFilter, build_events, normalize_start_timestamp

__all__ = [
    'AccessLogRecord',
    'ReplayEvent',
    'LogFormat',
    'AccessLogParser',
    'DEFAULT_FORMAT',
    'DEFAULT_TIME_FORMAT',
    'RecordFilter',
    'build_events',
    'normalize_start_timestamp',
]

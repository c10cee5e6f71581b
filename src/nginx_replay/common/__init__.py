"""
nginx-replay Common Utilities

Shared helpers used across the ingest, replay and stats packages.
"""

from .utils import safe_json_parse, parse_header_blob, to_json
from .url_utils import apply_query_params, normalize_endpoint, split_query_param
from .log_utils import configure_logging, MAIN_LOGGER, RESULTS_LOGGER, SUMMARY_LOGGER

__all__ = [
    'safe_json_parse',
    'parse_header_blob',
    'to_json',
    'apply_query_params',
    'normalize_endpoint',
    'split_query_param',
    'configure_logging',
    'MAIN_LOGGER',
    'RESULTS_LOGGER',
    'SUMMARY_LOGGER',
]

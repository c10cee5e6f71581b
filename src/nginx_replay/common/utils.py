"""
nginx-replay Common Utilities

JSON helpers for the loosely structured fields found in access logs.
"""

import json
import logging
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)


def safe_json_parse(json_string: Optional[str], default: Any = None) -> Any:
    """
    Safely parse JSON string with error handling.

    Args:
        json_string: JSON string to parse
        default: Default value to return if parsing fails

    Returns:
        Parsed JSON object, or default if parsing fails

    Example:
        body = safe_json_parse(record.resp_body, default={})
    """
    if not json_string:
        return default

    try:
        return json.loads(json_string)
    except (json.JSONDecodeError, TypeError, ValueError):
        return default


def parse_header_blob(blob: Optional[str]) -> Dict[str, Any]:
    """
    Parse a logged header blob into a dict with lower-cased names.

    nginx logs headers as the *inside* of a JSON object
    (``"host":"a","accept":"*/*"``), so the braces are added back before
    decoding. Blobs already wrapped in braces are accepted as well.

    Args:
        blob: Raw header text from the access log

    Returns:
        Header dict; empty if the blob is missing or malformed
    """
    if not blob:
        return {}

    text = blob.strip()
    if not text.startswith('{'):
        text = '{' + text + '}'

    parsed = safe_json_parse(text)
    if not isinstance(parsed, dict):
        logger.warning(f"Ignoring malformed header blob: {blob[:80]}")
        return {}

    return {str(k).lower(): v for k, v in parsed.items()}


def to_json(value: Any) -> str:
    """Compact JSON rendering used in result lines and reports."""
    return json.dumps(value, separators=(',', ':'), ensure_ascii=False, default=str)

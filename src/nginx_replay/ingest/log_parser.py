"""
nginx Access-Log Parser

Compiles an nginx ``log_format`` string into a regular expression and
reads log files into AccessLogRecord objects.
"""

import logging
import re
from datetime import datetime
from pathlib import Path
from typing import Dict, Iterator, Optional

from .records import AccessLogRecord
from ..errors import InputFileNotFoundError, LogFormatError

logger = logging.getLogger(__name__)

DEFAULT_FORMAT = (
    '$remote_addr [$time_local] "$request" $status $body_bytes_sent '
    'req_time:$request_time req_body:$req_body resp_body:$resp_body\t'
    'req_headers:{$request_headers} resp_headers:{$resp_headers}'
)
DEFAULT_TIME_FORMAT = '%d/%b/%Y:%H:%M:%S %z'

_VARIABLE = re.compile(r'(\$[A-Za-z0-9_]+)')


class LogFormat:
    """
    Regular-expression matcher for one nginx ``log_format``.

    Every ``$variable`` becomes a named group. Groups match lazily so the
    literal text that follows each variable delimits it; the last variable
    runs to the end of the line.

    Example:
        fmt = LogFormat('$remote_addr "$request" $status')
        fmt.match('127.0.0.1 "GET / HTTP/1.1" 200')
        # {'remote_addr': '127.0.0.1', 'request': 'GET / HTTP/1.1', 'status': '200'}
    """

    def __init__(self, format_string: str):
        self.format_string = format_string
        self.variables = []

        parts = _VARIABLE.split(format_string)
        last_variable = max(
            (i for i, part in enumerate(parts) if _VARIABLE.fullmatch(part)),
            default=-1
        )
        if last_variable < 0:
            raise LogFormatError(f"Log format has no $variables: {format_string!r}")

        pattern = []
        for i, part in enumerate(parts):
            if not _VARIABLE.fullmatch(part):
                pattern.append(re.escape(part))
                continue

            name = part[1:]
            if name in self.variables:
                # Repeated variable: match it, keep the first capture.
                pattern.append('.*?')
                continue

            self.variables.append(name)
            pattern.append(f'(?P<{name}>.*)' if i == last_variable else f'(?P<{name}>.*?)')

        self.regex = re.compile('^' + ''.join(pattern) + '$')

    def match(self, line: str) -> Optional[Dict[str, str]]:
        """Return the variables of a matching line, or None."""
        m = self.regex.match(line.rstrip('\r\n'))
        return m.groupdict() if m else None


def _optional(value: Optional[str]) -> Optional[str]:
    if value is None or value in ('', '-'):
        return None
    return value


class AccessLogParser:
    """
    Read an access log into AccessLogRecord objects.

    Lines that do not match the format, or whose time or request line
    cannot be parsed, are skipped with a debug message.
    """

    def __init__(self, format_string: str = DEFAULT_FORMAT, time_format: str = DEFAULT_TIME_FORMAT):
        """
        Initialize parser.

        Args:
            format_string: nginx log_format the file was written with
            time_format: strptime format of ``$time_local``
        """
        self.log_format = LogFormat(format_string)
        self.time_format = time_format

    def parse_timestamp(self, time_local: str) -> int:
        """Convert a logged time into epoch milliseconds (second resolution)."""
        parsed = datetime.strptime(time_local, self.time_format)
        return int(parsed.timestamp()) * 1000

    def parse_line(self, line: str) -> Optional[AccessLogRecord]:
        """
        Parse one log line.

        Returns:
            AccessLogRecord, or None if the line is not usable
        """
        fields = self.log_format.match(line)
        if fields is None:
            return None

        try:
            timestamp = self.parse_timestamp(fields.get('time_local') or '')
        except ValueError:
            logger.debug(f"Unparseable time in line: {line.strip()[:120]}")
            return None

        request_line = fields.get('request') or ''
        parts = request_line.split(' ')
        if len(parts) < 2:
            logger.debug(f"Unparseable request line: {request_line!r}")
            return None

        return AccessLogRecord(
            timestamp=timestamp,
            method=parts[0],
            path=parts[1],
            request_line=request_line,
            status=fields.get('status') or '',
            request_time=fields.get('request_time') or '',
            body_bytes_sent=fields.get('body_bytes_sent') or '',
            req_body=_optional(fields.get('req_body')),
            request_headers=fields.get('request_headers') or '',
            resp_body=_optional(fields.get('resp_body')),
            resp_headers=fields.get('resp_headers') or '',
            user_agent=_optional(fields.get('http_user_agent'))
        )

    def read(self, file_path: str) -> Iterator[AccessLogRecord]:
        """
        Lazily read records from a log file.

        Raises:
            InputFileNotFoundError: If the log file doesn't exist
        """
        path = Path(file_path)
        if not path.exists():
            raise InputFileNotFoundError(f"Cannot find file {file_path}")

        with open(path, 'r', encoding='utf-8', errors='replace') as f:
            for line_number, line in enumerate(f, 1):
                if not line.strip():
                    continue
                record = self.parse_line(line)
                if record is None:
                    logger.debug(f"Skipping line {line_number}: does not match log format")
                    continue
                yield record

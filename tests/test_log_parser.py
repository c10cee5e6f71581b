"""
Tests for the nginx access-log parser.

Tests LogFormat compilation, line parsing with the default format and
lazy reading of log files.
"""

import sys
from pathlib import Path
import pytest

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from nginx_replay.ingest.log_parser import LogFormat, AccessLogParser
from nginx_replay.errors import InputFileNotFoundError, LogFormatError


SAMPLE_LINE = (
    '127.0.0.1 [10/Oct/2023:13:55:36 +0000] "GET /api/users?page=2 HTTP/1.1" 200 123 '
    'req_time:0.012 req_body:- resp_body:{"id":1}\t'
    'req_headers:{"host":"example.com","authorization":"Bearer x"} '
    'resp_headers:{"content-type":"application/json"}'
)


class TestLogFormat:
    """Test suite for LogFormat compilation."""

    def test_simple_format(self):
        """Test variables delimited by literal text."""
        fmt = LogFormat('$remote_addr "$request" $status')

        fields = fmt.match('127.0.0.1 "GET / HTTP/1.1" 200')

        assert fields == {'remote_addr': '127.0.0.1', 'request': 'GET / HTTP/1.1', 'status': '200'}

    def test_last_variable_is_greedy(self):
        """Test the final variable runs to end of line."""
        fmt = LogFormat('$status $rest')

        fields = fmt.match('200 a b c')

        assert fields['rest'] == 'a b c'

    def test_literal_regex_characters_escaped(self):
        """Test brackets and dots in the format are literal."""
        fmt = LogFormat('[$time_local] $status.')

        assert fmt.match('[now] 200.')['time_local'] == 'now'
        assert fmt.match('now 200.') is None

    def test_non_matching_line(self):
        """Test a line of another shape returns None."""
        fmt = LogFormat('$a "$b"')

        assert fmt.match('no quotes here') is None

    def test_format_without_variables(self):
        """Test a format with no variables is rejected."""
        with pytest.raises(LogFormatError):
            LogFormat('plain text')

    def test_repeated_variable_keeps_first(self):
        """Test a variable used twice keeps its first capture."""
        fmt = LogFormat('$a-$a-$b')

        fields = fmt.match('x-y-z')

        assert fields == {'a': 'x', 'b': 'z'}


class TestAccessLogParser:
    """Test suite for AccessLogParser."""

    def test_parse_default_format_line(self):
        """Test every field of the default format is extracted."""
        record = AccessLogParser().parse_line(SAMPLE_LINE)

        assert record.timestamp == 1696946136000
        assert record.method == 'GET'
        assert record.path == '/api/users?page=2'
        assert record.status == '200'
        assert record.request_time == '0.012'
        assert record.req_body is None
        assert record.resp_body == '{"id":1}'
        assert record.request_headers == '"host":"example.com","authorization":"Bearer x"'
        assert record.resp_headers == '"content-type":"application/json"'

    def test_status_kept_as_text(self):
        """Test non-standard status codes survive as strings."""
        record = AccessLogParser().parse_line(SAMPLE_LINE.replace('" 200 ', '" 499 '))

        assert record.status == '499'

    def test_bad_time_skipped(self):
        """Test an unparseable time yields None."""
        line = SAMPLE_LINE.replace('10/Oct/2023:13:55:36 +0000', 'yesterday')

        assert AccessLogParser().parse_line(line) is None

    def test_bad_request_line_skipped(self):
        """Test a request line without a path yields None."""
        line = SAMPLE_LINE.replace('GET /api/users?page=2 HTTP/1.1', '-')

        assert AccessLogParser().parse_line(line) is None

    def test_custom_time_format(self):
        """Test a custom strptime format."""
        parser = AccessLogParser('[$time_local] "$request" $status', time_format='%Y-%m-%dT%H:%M:%S%z')

        record = parser.parse_line('[2023-10-10T13:55:36+0000] "GET /x HTTP/1.1" 204')

        assert record.timestamp == 1696946136000
        assert record.status == '204'

    def test_read_file(self, tmp_path):
        """Test reading a file skips blank and malformed lines."""
        log_file = tmp_path / 'access.log'
        log_file.write_text(SAMPLE_LINE + '\n\ngarbage line\n' + SAMPLE_LINE.replace('page=2', 'page=3') + '\n')

        records = list(AccessLogParser().read(str(log_file)))

        assert [r.path for r in records] == ['/api/users?page=2', '/api/users?page=3']

    def test_read_missing_file(self):
        """Test a missing file raises InputFileNotFoundError."""
        with pytest.raises(InputFileNotFoundError):
            list(AccessLogParser().read('/nonexistent/access.log'))

    def test_missing_file_is_file_not_found(self):
        """Test the error is also a FileNotFoundError."""
        with pytest.raises(FileNotFoundError):
            list(AccessLogParser().read('/nonexistent/access.log'))

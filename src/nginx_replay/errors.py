"""
nginx-replay Errors

Process-level error types. Per-event failures never raise past the
dispatcher; they are reported as ReplayOutcome objects instead.
"""


class ReplayError(Exception):
    """Base class for errors that abort a replay run."""


class ConfigError(ReplayError):
    """Invalid or inconsistent run options."""


class InputFileNotFoundError(ReplayError, FileNotFoundError):
    """The access-log file to replay does not exist."""


class LogFormatError(ReplayError):
    """The nginx log_format string cannot be compiled."""

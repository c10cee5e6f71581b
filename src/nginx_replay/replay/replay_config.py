"""
nginx-replay Configuration

Run options for a replay, loadable from a YAML file and overridable from
the command line. Keys may be written in snake_case or in the camelCase
used by the original command-line flags (``filePath``, ``scaleMode``...).
"""

import dataclasses
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import yaml

from ..common.url_utils import split_query_param
from ..errors import ConfigError, InputFileNotFoundError
from ..ingest.log_parser import DEFAULT_FORMAT, DEFAULT_TIME_FORMAT

DEFAULT_DATES_FORMAT = '%d-%m-%Y:%H:%M:%S'

ALIASES = {
    'filePath': 'file_path',
    'format': 'log_format',
    'formatTime': 'time_format',
    'startTimestamp': 'start_timestamp',
    'logFile': 'log_file',
    'scaleMode': 'scale_mode',
    'skipSleep': 'skip_sleep',
    'skipSsl': 'skip_ssl',
    'datesFormat': 'dates_format',
    'deleteQueryStats': 'delete_query_stats',
    'statsOnlyPath': 'stats_only_path',
    'filterOnly': 'filter_only',
    'filterSkip': 'filter_skip',
    'customQueryParams': 'custom_query_params',
    'hideStatsLimit': 'hide_stats_limit',
}

LIST_FIELDS = ('delete_query_stats', 'filter_only', 'filter_skip', 'custom_query_params')
BOOL_FIELDS = ('debug', 'scale_mode', 'skip_sleep', 'skip_ssl', 'stats', 'stats_only_path', 'summary')


def _strip_equals(value: Any) -> Any:
    # Short options written as -p=value keep the leading "=".
    if isinstance(value, str) and value.startswith('='):
        return value[1:]
    return value


@dataclass
class ReplayOptions:
    """Every option that shapes one replay run."""

    file_path: str = ''
    prefix: str = ''
    ratio: float = 1.0
    log_format: str = DEFAULT_FORMAT
    time_format: str = DEFAULT_TIME_FORMAT
    start_timestamp: str = '0'
    debug: bool = False
    log_file: str = ''
    timeout: Optional[int] = None  # milliseconds
    username: Optional[str] = None
    password: Optional[str] = None
    scale_mode: bool = False
    skip_sleep: bool = False
    skip_ssl: bool = False
    dates_format: str = DEFAULT_DATES_FORMAT
    stats: bool = False
    delete_query_stats: List[str] = field(default_factory=list)
    stats_only_path: bool = False
    filter_only: List[str] = field(default_factory=list)
    filter_skip: List[str] = field(default_factory=list)
    custom_query_params: List[str] = field(default_factory=list)
    hide_stats_limit: int = 0
    summary: bool = False

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ReplayOptions':
        """
        Create options from a dictionary.

        Raises:
            ConfigError: On unknown keys or values of the wrong type
        """
        return cls().merge(**cls._normalize(data))

    @classmethod
    def from_yaml(cls, yaml_path: str) -> 'ReplayOptions':
        """Load options from a YAML file."""
        path = Path(yaml_path)
        if not path.exists():
            raise ConfigError(f"Config file not found: {yaml_path}")

        with open(path, 'r') as f:
            try:
                data = yaml.safe_load(f)
            except yaml.YAMLError as e:
                raise ConfigError(f"Invalid YAML in {yaml_path}: {e}") from e

        if data is None:
            return cls()
        if not isinstance(data, dict):
            raise ConfigError(f"Expected a mapping in {yaml_path}, got {type(data).__name__}")

        return cls.from_dict(data)

    @classmethod
    def _normalize(cls, data: Dict[str, Any]) -> Dict[str, Any]:
        known = {f.name for f in dataclasses.fields(cls)}
        normalized = {}
        for key, value in data.items():
            name = ALIASES.get(key, key)
            if name not in known:
                raise ConfigError(f"Unknown option: {key}")
            normalized[name] = value
        return normalized

    def merge(self, **overrides: Any) -> 'ReplayOptions':
        """
        Return a copy with every non-None override applied.

        Raises:
            ConfigError: If a value cannot be coerced to the option's type
        """
        changes = {}
        for name, value in overrides.items():
            if value is None:
                continue
            changes[name] = self._coerce(name, _strip_equals(value))
        return dataclasses.replace(self, **changes)

    @staticmethod
    def _coerce(name: str, value: Any) -> Any:
        try:
            if name == 'ratio':
                return float(value)
            if name in ('hide_stats_limit', 'timeout'):
                return int(value)
            if name == 'start_timestamp':
                return str(value)
        except (TypeError, ValueError) as e:
            raise ConfigError(f"Invalid value for {name}: {value!r}") from e

        if name in LIST_FIELDS:
            if isinstance(value, str):
                return value.split()
            return [str(_strip_equals(item)) for item in value]
        if name in BOOL_FIELDS:
            return bool(value)
        return value

    @property
    def query_params(self) -> List[Tuple[str, str]]:
        return [split_query_param(param) for param in self.custom_query_params]

    def validate(self):
        """
        Check the options before a run.

        Raises:
            ConfigError: For missing or inconsistent options
            InputFileNotFoundError: If the log file doesn't exist
        """
        if not self.file_path:
            raise ConfigError("A log file path is required")
        if not self.prefix:
            raise ConfigError("A target URL prefix is required")
        if self.ratio <= 0:
            raise ConfigError(f"Ratio must be positive, got {self.ratio}")
        if self.log_file and self.log_file == self.file_path:
            raise ConfigError("logFile can not be equal to filePath")

        for param in self.custom_query_params:
            if '=' not in param:
                raise ConfigError(f"Custom query param must be key=value, got {param!r}")

        if not Path(self.file_path).exists():
            raise InputFileNotFoundError(f"Cannot find file {self.file_path}")

    def to_dict(self) -> Dict[str, Any]:
        """Options as a plain dict, without credentials."""
        data = dataclasses.asdict(self)
        data.pop('password', None)
        return data

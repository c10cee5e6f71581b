"""
Tests for nginx-replay Replay Configuration

Tests run options including:
- YAML loading with snake_case and camelCase keys
- Command-line style overrides and type coercion
- Validation before a run
"""

import sys
from pathlib import Path
import pytest
import yaml

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from nginx_replay.errors import ConfigError, InputFileNotFoundError
from nginx_replay.ingest.log_parser import DEFAULT_FORMAT
from nginx_replay.replay.replay_config import ReplayOptions


@pytest.fixture
def sample_yaml_config():
    """Sample YAML options mixing both key styles."""
    return """
filePath: access.log
prefix: "http://localhost:8080"
ratio: 2
scaleMode: true
skip_sleep: false
timeout: 5000
filterSkip:
  - healthcheck
  - metrics
customQueryParams: "test=true size=3"
hideStatsLimit: 2
    """


@pytest.fixture
def log_file(tmp_path):
    path = tmp_path / 'access.log'
    path.write_text('')
    return path


class TestDefaults:
    """Test ReplayOptions defaults."""

    def test_defaults(self):
        options = ReplayOptions()

        assert options.ratio == 1.0
        assert options.log_format == DEFAULT_FORMAT
        assert options.start_timestamp == '0'
        assert options.timeout is None
        assert options.scale_mode is False
        assert options.filter_only == []
        assert options.hide_stats_limit == 0
        assert options.dates_format == '%d-%m-%Y:%H:%M:%S'


class TestLoading:
    """Test loading options from dicts and YAML."""

    def test_from_yaml(self, tmp_path, sample_yaml_config):
        """Test loading a YAML file with camelCase aliases."""
        path = tmp_path / 'replay.yaml'
        path.write_text(sample_yaml_config)

        options = ReplayOptions.from_yaml(str(path))

        assert options.file_path == 'access.log'
        assert options.prefix == 'http://localhost:8080'
        assert options.ratio == 2.0
        assert isinstance(options.ratio, float)
        assert options.scale_mode is True
        assert options.skip_sleep is False
        assert options.timeout == 5000
        assert options.filter_skip == ['healthcheck', 'metrics']
        assert options.custom_query_params == ['test=true', 'size=3']
        assert options.hide_stats_limit == 2

    def test_from_dict_snake_case(self):
        options = ReplayOptions.from_dict({'file_path': 'a.log', 'skip_ssl': True})

        assert options.file_path == 'a.log'
        assert options.skip_ssl is True

    def test_unknown_key(self):
        """Test misspelled options are reported."""
        with pytest.raises(ConfigError, match='Unknown option: scaleMod'):
            ReplayOptions.from_dict({'scaleMod': True})

    def test_missing_yaml(self, tmp_path):
        with pytest.raises(ConfigError, match='not found'):
            ReplayOptions.from_yaml(str(tmp_path / 'missing.yaml'))

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / 'bad.yaml'
        path.write_text('ratio: [1, 2\n')

        with pytest.raises(ConfigError, match='Invalid YAML'):
            ReplayOptions.from_yaml(str(path))

    def test_non_mapping_yaml(self, tmp_path):
        path = tmp_path / 'list.yaml'
        path.write_text(yaml.safe_dump(['a', 'b']))

        with pytest.raises(ConfigError, match='Expected a mapping'):
            ReplayOptions.from_yaml(str(path))

    def test_empty_yaml(self, tmp_path):
        path = tmp_path / 'empty.yaml'
        path.write_text('')

        assert ReplayOptions.from_yaml(str(path)) == ReplayOptions()


class TestMerge:
    """Test command-line overrides."""

    def test_none_values_ignored(self):
        options = ReplayOptions(prefix='http://a', ratio=3)

        merged = options.merge(prefix=None, ratio=None, debug=True)

        assert merged.prefix == 'http://a'
        assert merged.ratio == 3
        assert merged.debug is True

    def test_original_unchanged(self):
        options = ReplayOptions()

        options.merge(prefix='http://a')

        assert options.prefix == ''

    def test_leading_equals_stripped(self):
        """Test values written as -p=value."""
        merged = ReplayOptions().merge(prefix='=http://a', filter_only=['=users', 'orders'])

        assert merged.prefix == 'http://a'
        assert merged.filter_only == ['users', 'orders']

    def test_numeric_strings_coerced(self):
        merged = ReplayOptions().merge(ratio='0.5', timeout='1500', hide_stats_limit='3', start_timestamp=1700000000)

        assert merged.ratio == 0.5
        assert merged.timeout == 1500
        assert merged.hide_stats_limit == 3
        assert merged.start_timestamp == '1700000000'

    def test_bad_number(self):
        with pytest.raises(ConfigError, match='ratio'):
            ReplayOptions().merge(ratio='fast')

    def test_query_params(self):
        options = ReplayOptions(custom_query_params=['test=true', 'size=3'])

        assert options.query_params == [('test', 'true'), ('size', '3')]


class TestValidate:
    """Test validation before a run."""

    def test_valid(self, log_file):
        ReplayOptions(file_path=str(log_file), prefix='http://a').validate()

    def test_missing_file_path(self):
        with pytest.raises(ConfigError, match='log file path'):
            ReplayOptions(prefix='http://a').validate()

    def test_missing_prefix(self, log_file):
        with pytest.raises(ConfigError, match='prefix'):
            ReplayOptions(file_path=str(log_file)).validate()

    @pytest.mark.parametrize('ratio', [0, -1])
    def test_non_positive_ratio(self, log_file, ratio):
        with pytest.raises(ConfigError, match='Ratio'):
            ReplayOptions(file_path=str(log_file), prefix='http://a', ratio=ratio).validate()

    def test_log_file_equal_to_input(self, log_file):
        """Test the result log can't overwrite the input."""
        options = ReplayOptions(file_path=str(log_file), prefix='http://a', log_file=str(log_file))

        with pytest.raises(ConfigError, match='logFile can not be equal to filePath'):
            options.validate()

    def test_custom_param_without_value(self, log_file):
        options = ReplayOptions(file_path=str(log_file), prefix='http://a', custom_query_params=['debug'])

        with pytest.raises(ConfigError, match='key=value'):
            options.validate()

    def test_input_not_found(self, tmp_path):
        options = ReplayOptions(file_path=str(tmp_path / 'missing.log'), prefix='http://a')

        with pytest.raises(InputFileNotFoundError, match='Cannot find file'):
            options.validate()

    def test_input_not_found_is_file_not_found(self, tmp_path):
        options = ReplayOptions(file_path=str(tmp_path / 'missing.log'), prefix='http://a')

        with pytest.raises(FileNotFoundError):
            options.validate()


class TestToDict:
    def test_password_dropped(self):
        data = ReplayOptions(username='u', password='secret').to_dict()

        assert data['username'] == 'u'
        assert 'password' not in data

"""
nginx-replay CLI

Command-line interface for replaying an nginx access log against a
target server.

Examples:
    # Replay at the original speed
    nginx-replay -f access.log -p http://localhost:8080

    # Twice as fast, results to a file, endpoint stats
    nginx-replay -f access.log -p http://localhost:8080 -r 2 -l results.log --stats

    # Options from a YAML file, overridden on the command line
    nginx-replay -c replay.yaml --skip-sleep
"""

import argparse
import logging
import sys
from typing import Any, Dict, List, Optional

from . import __version__
from .common.log_utils import MAIN_LOGGER, configure_logging
from .errors import ReplayError
from .replay import ReplayOptions, TrafficReplayer

logger = logging.getLogger(MAIN_LOGGER)

# argparse dest -> ReplayOptions field
OPTION_FIELDS = (
    'file_path', 'prefix', 'ratio', 'log_format', 'time_format', 'start_timestamp',
    'debug', 'log_file', 'timeout', 'username', 'password', 'scale_mode',
    'skip_sleep', 'skip_ssl', 'dates_format', 'stats', 'delete_query_stats',
    'stats_only_path', 'filter_only', 'filter_skip', 'custom_query_params',
    'hide_stats_limit', 'summary',
)


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser. Every option defaults to None so a config file can supply it."""
    parser = argparse.ArgumentParser(
        prog='nginx-replay',
        description="Replay nginx access-log traffic and compare responses with the recorded ones",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s -f access.log -p http://localhost:8080
  %(prog)s -f access.log -p http://localhost:8080 --ratio 2 --scale-mode
  %(prog)s -f access.log -p https://staging --skip-ssl --username u --password p
  %(prog)s -f access.log -p http://localhost --stats --delete-query-stats page limit
  %(prog)s -c replay.yaml --log-file results.log --summary
        """
    )

    parser.add_argument('--version', action='version', version=f'%(prog)s {__version__}')
    parser.add_argument('-c', '--config', help='YAML file with replay options')
    parser.add_argument('-f', '--file-path', dest='file_path', help='Path of the nginx log file')
    parser.add_argument('-p', '--prefix', help='URL prefix requests are sent to')
    parser.add_argument('-r', '--ratio', type=float, help='Acceleration / deceleration of sending requests, e.g. 2, 0.5 (default: 1)')
    parser.add_argument('--format', dest='log_format', help='nginx log_format the file was written with')
    parser.add_argument('--format-time', dest='time_format', help='strptime format of $time_local (default: %%d/%%b/%%Y:%%H:%%M:%%S %%z)')
    parser.add_argument('--start-timestamp', dest='start_timestamp', help='Replay only logs after this timestamp (seconds or milliseconds)')
    parser.add_argument('-d', '--debug', action='store_true', default=None, help='Show debug messages in console')
    parser.add_argument('-l', '--log-file', dest='log_file', help='Save result lines to this file')
    parser.add_argument('-t', '--timeout', type=int, help='Request timeout in milliseconds')
    parser.add_argument('--username', help='Username for basic auth')
    parser.add_argument('--password', help='Password for basic auth')
    parser.add_argument('--scale-mode', dest='scale_mode', action='store_true', default=None,
                        help='Spread requests logged in the same second evenly across it')
    parser.add_argument('--skip-sleep', dest='skip_sleep', action='store_true', default=None,
                        help='Remove pauses between requests. Attention: will flood your server')
    parser.add_argument('--skip-ssl', dest='skip_ssl', action='store_true', default=None, help='Skip TLS certificate errors')
    parser.add_argument('--dates-format', dest='dates_format', help='strftime format of dates shown in the report')
    parser.add_argument('-s', '--stats', action='store_true', default=None, help='Show hit counts per endpoint')
    parser.add_argument('--delete-query-stats', dest='delete_query_stats', nargs='*',
                        help='Query keys ignored when counting endpoints, e.g. page limit size')
    parser.add_argument('--stats-only-path', dest='stats_only_path', action='store_true', default=None,
                        help='Count endpoints by path only')
    parser.add_argument('--filter-only', dest='filter_only', nargs='*', help='Replay only requests containing one of these strings')
    parser.add_argument('--filter-skip', dest='filter_skip', nargs='*', help='Skip requests containing any of these strings')
    parser.add_argument('--custom-query-params', dest='custom_query_params', nargs='*',
                        help='Query params forced onto every request, e.g. test=true size=3')
    parser.add_argument('--hide-stats-limit', dest='hide_stats_limit', type=int,
                        help='Hide endpoints with at most this many hits (default: 0)')
    parser.add_argument('--summary', action='store_true', default=None, help='Write a condensed report to <log-file>_summary')

    return parser


def load_options(args: argparse.Namespace) -> ReplayOptions:
    """Combine the config file (if any) with command-line overrides."""
    options = ReplayOptions.from_yaml(args.config) if args.config else ReplayOptions()
    overrides: Dict[str, Any] = {name: getattr(args, name, None) for name in OPTION_FIELDS}
    options = options.merge(**overrides)
    options.validate()
    return options


def main(argv: Optional[List[str]] = None):
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    configure_logging(debug=bool(args.debug))

    try:
        options = load_options(args)
    except ReplayError as e:
        logger.error(str(e))
        sys.exit(1)

    configure_logging(debug=options.debug, log_file=options.log_file, summary=options.summary)

    replayer = TrafficReplayer(options)
    replayer.install_signal_handlers()

    try:
        replayer.load_events()
    except ReplayError as e:
        logger.error(str(e))
        sys.exit(1)

    try:
        replayer.run()
    except KeyboardInterrupt:
        replayer.abort()


if __name__ == '__main__':
    main()

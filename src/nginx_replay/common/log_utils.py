"""
nginx-replay Logging

Three named loggers carry the tool's output:

- ``nginx_replay``: progress, errors and the final report (debug traces
  are enabled with ``--debug``)
- ``nginx_replay.results``: one pipe-delimited line per replayed event,
  mirrored to ``--log-file`` when given
- ``nginx_replay.summary``: the condensed report, mirrored to
  ``<log-file>_summary`` when ``--summary`` is set
"""

import logging
from typing import List, Optional

MAIN_LOGGER = 'nginx_replay'
RESULTS_LOGGER = 'nginx_replay.results'
SUMMARY_LOGGER = 'nginx_replay.summary'

MAIN_FORMAT = '%(levelname)s: %(message)s'
MESSAGE_FORMAT = '%(message)s'


def _reset(logger: logging.Logger):
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()


def _handlers(log_file: Optional[str], fmt: str) -> List[logging.Handler]:
    handlers: List[logging.Handler] = [logging.StreamHandler()]
    if log_file:
        # Results from a previous run are overwritten.
        handlers.append(logging.FileHandler(log_file, mode='w', encoding='utf-8'))

    formatter = logging.Formatter(fmt)
    for handler in handlers:
        handler.setFormatter(formatter)
    return handlers


def configure_logging(debug: bool = False, log_file: str = '', summary: bool = False):
    """
    Install handlers on the tool's loggers.

    Safe to call more than once; previous handlers are closed and replaced.

    Args:
        debug: Emit per-request debug traces on the console
        log_file: Optional path receiving result lines
        summary: Also write the condensed report to ``<log_file>_summary``
    """
    main = logging.getLogger(MAIN_LOGGER)
    _reset(main)
    main.setLevel(logging.DEBUG if debug else logging.INFO)
    main.propagate = False
    for handler in _handlers(None, MAIN_FORMAT):
        main.addHandler(handler)

    results = logging.getLogger(RESULTS_LOGGER)
    _reset(results)
    results.setLevel(logging.INFO)
    results.propagate = False
    for handler in _handlers(log_file or None, MESSAGE_FORMAT):
        results.addHandler(handler)

    summary_logger = logging.getLogger(SUMMARY_LOGGER)
    _reset(summary_logger)
    summary_logger.setLevel(logging.INFO)
    summary_logger.propagate = False
    summary_file = f"{log_file}_summary" if (log_file and summary) else None
    for handler in _handlers(summary_file, MESSAGE_FORMAT):
        summary_logger.addHandler(handler)

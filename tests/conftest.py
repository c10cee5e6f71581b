import logging

import pytest

TOOL_LOGGERS = ('nginx_replay', 'nginx_replay.results', 'nginx_replay.summary')


@pytest.fixture(autouse=True)
def reset_tool_loggers():
    """Undo configure_logging() so caplog sees every record."""
    yield
    for name in TOOL_LOGGERS:
        logger = logging.getLogger(name)
        for handler in list(logger.handlers):
            logger.removeHandler(handler)
            handler.close()
        logger.setLevel(logging.NOTSET)
        logger.propagate = True

"""
nginx-replay Replay Module

Replay engine for access-log traffic.

This module provides:
- Pacing of replayed requests at the original (scaled) cadence
- Request dispatch with a linear 503 retry policy
- Classification of replayed responses against the recorded ones
- Run options loadable from YAML
"""

from .replayer import TrafficReplayer, ReplayResult
from .replay_config import ReplayOptions
from .scheduler import PacingScheduler
from .dispatcher import RequestDispatcher, LinearRetry
from .classifier import DiscrepancyClassifier

__all__ = [
    'TrafficReplayer',
    'ReplayResult',
    'ReplayOptions',
    'PacingScheduler',
    'RequestDispatcher',
    'LinearRetry',
    'DiscrepancyClassifier',
]

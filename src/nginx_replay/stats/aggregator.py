"""
Run-scoped statistics aggregation.

One StatisticsAggregator is created per replay run and passed to the
dispatch loop. It owns the outcome counters, the overall latency series,
one series per instrumentation channel and the endpoint hit counter.
"""

import logging
from collections import OrderedDict
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from .series import StatisticSeries
from ..models import Classification, DiscrepancyKind, ReplayOutcome

logger = logging.getLogger(__name__)


class Channel(Enum):
    """
    Sub-timings the target service reports under the ``debug`` field of
    its JSON responses. The value is the dotted path inside ``debug``.
    """

    PHP = 'php'
    MONGO = 'mongo'
    CLICKHOUSE = 'clickhouse'
    MONGO_TX_FAST = 'mongoTxFast'
    MONGO_TX_FULL = 'mongoTxFull'
    REDIS_READ_TIME = 'redis.read_time'
    REDIS_READ_COUNT = 'redis.read_num'
    REDIS_WRITE_TIME = 'redis.write_time'
    REDIS_WRITE_COUNT = 'redis.write_num'
    ETH_NODE_TIME = 'eth_node.time'
    ETH_NODE_COUNT = 'eth_node.num'

    @property
    def path(self) -> Tuple[str, ...]:
        return tuple(self.value.split('.'))

    @property
    def is_count(self) -> bool:
        return self in (Channel.REDIS_READ_COUNT, Channel.REDIS_WRITE_COUNT, Channel.ETH_NODE_COUNT)


def _lookup(payload: Dict[str, Any], path: Tuple[str, ...]) -> Any:
    current: Any = payload
    for key in path:
        if not isinstance(current, dict):
            return None
        current = current.get(key)
    return current


def _as_number(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value)
        except ValueError:
            return None
    return None


class EndpointCounter:
    """Hit counts per normalized endpoint, in first-seen order."""

    def __init__(self):
        self.counts: Dict[str, int] = OrderedDict()

    def hit(self, endpoint: str):
        self.counts[endpoint] = self.counts.get(endpoint, 0) + 1

    def __len__(self) -> int:
        return len(self.counts)

    def sorted(self) -> List[Tuple[str, int]]:
        """Endpoints by descending count; ties keep first-seen order."""
        return sorted(self.counts.items(), key=lambda item: item[1], reverse=True)

    def split(self, hide_limit: int = 0) -> Tuple[List[Tuple[str, int]], Dict[str, int]]:
        """
        Separate visible endpoints from hidden ones.

        Endpoints whose count does not exceed hide_limit are folded into a
        histogram mapping a hit count to the number of endpoints with it.

        Returns:
            (visible endpoints, hidden histogram)
        """
        visible = []
        hidden: Dict[str, int] = OrderedDict()
        for endpoint, count in self.sorted():
            if count > hide_limit:
                visible.append((endpoint, count))
            else:
                hidden[str(count)] = hidden.get(str(count), 0) + 1
        return visible, hidden


class StatisticsAggregator:
    """
    Accumulates everything the final report needs.

    Mutated only by the sequential dispatch loop; read once at report time.
    """

    def __init__(self):
        self.success = 0
        self.failed = 0
        self.skipped = 0
        self.header_discrepancies = 0
        self.body_discrepancies = 0
        self.total_sleep_ms = 0.0

        self.response_times = StatisticSeries()
        self.channels: Dict[Channel, StatisticSeries] = {channel: StatisticSeries() for channel in Channel}
        self.endpoints = EndpointCounter()

    @property
    def total(self) -> int:
        return self.success + self.failed + self.skipped

    @property
    def success_percent(self) -> float:
        if self.total == 0:
            return 0.0
        return 100 * self.success / self.total

    def record_outcome(self, outcome: ReplayOutcome) -> None:
        """
        Count one finished event and keep its measurements.

        Exactly one of the success/failed/skipped counters is incremented.
        """
        if outcome.classification is Classification.SUCCESS:
            self.success += 1
        elif outcome.classification is Classification.SKIPPED:
            self.skipped += 1
        else:
            self.failed += 1

        if outcome.discrepancy is DiscrepancyKind.HEADERS:
            self.header_discrepancies += 1
        elif outcome.discrepancy is DiscrepancyKind.BODY:
            self.body_discrepancies += 1

        if outcome.latency_ms is not None:
            self.response_times.push(outcome.latency_ms)

        if outcome.responded:
            self.record_instrumentation(outcome.body)

    def record_instrumentation(self, payload: Any) -> None:
        """Push every non-zero channel found under ``payload['debug']``."""
        if not isinstance(payload, dict):
            return
        debug = payload.get('debug')
        if not isinstance(debug, dict) or not debug:
            return

        for channel, series in self.channels.items():
            raw = _lookup(debug, channel.path)
            if not raw:
                continue
            value = _as_number(raw)
            if value is None:
                logger.debug(f"Ignoring non-numeric {channel.value} value: {raw!r}")
                continue
            if value:
                series.push(value)

    def record_sleep(self, delay_ms: float):
        self.total_sleep_ms += delay_ms

    def active_channels(self) -> List[Tuple[Channel, StatisticSeries]]:
        """Channels that received at least one sample, in report order."""
        return [(channel, series) for channel, series in self.channels.items() if len(series)]

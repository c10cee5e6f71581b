"""
Replay Report

Renders the end-of-run report from aggregator state. Rendering is a pure
read: lines are returned and the caller decides where they go.
"""

from datetime import datetime
from typing import List, Sequence

from .aggregator import Channel, StatisticsAggregator
from ..common.utils import to_json
from ..ingest.records import ReplayEvent

SEPARATOR = '_' * 75

CHANNEL_LABELS = {
    Channel.PHP: 'PHP response time',
    Channel.MONGO: 'Mongo response time',
    Channel.CLICKHOUSE: 'ClickHouse response time',
    Channel.MONGO_TX_FAST: 'Mongo txFast response time',
    Channel.MONGO_TX_FULL: 'Mongo txFull response time',
    Channel.REDIS_READ_TIME: 'Redis read time',
    Channel.REDIS_READ_COUNT: 'Redis read count',
    Channel.REDIS_WRITE_TIME: 'Redis write time',
    Channel.REDIS_WRITE_COUNT: 'Redis write count',
    Channel.ETH_NODE_TIME: 'Eth node time',
    Channel.ETH_NODE_COUNT: 'Eth node count',
}

PERCENTILE_LABELS = {
    Channel.PHP: 'PHP percentile',
    Channel.MONGO: 'Mongo percentile',
    Channel.CLICKHOUSE: 'ClickHouse percentile',
    Channel.MONGO_TX_FAST: 'Mongo txFast percentile',
    Channel.MONGO_TX_FULL: 'Mongo txFull percentile',
    Channel.REDIS_READ_TIME: 'Redis read percentile',
    Channel.REDIS_WRITE_TIME: 'Redis write percentile',
    Channel.ETH_NODE_TIME: 'Eth node percentile',
}


class ReportGenerator:
    """
    Build the full and the condensed replay report.

    Example:
        report = ReportGenerator(aggregator, events, prefix='http://localhost')
        for line in report.render(started_at, finished_at, elapsed_seconds=12.5):
            print(line)
    """

    def __init__(
        self,
        aggregator: StatisticsAggregator,
        events: Sequence[ReplayEvent],
        prefix: str,
        ratio: float = 1.0,
        custom_query_params: Sequence[str] = (),
        show_endpoints: bool = False,
        hide_stats_limit: int = 0,
        dates_format: str = '%d-%m-%Y:%H:%M:%S'
    ):
        self.aggregator = aggregator
        self.events = events
        self.prefix = prefix
        self.ratio = ratio
        self.custom_query_params = list(custom_query_params)
        self.show_endpoints = show_endpoints
        self.hide_stats_limit = hide_stats_limit
        self.dates_format = dates_format

    # --- individual sections ---

    def header(self, started_at: datetime, finished_at: datetime) -> str:
        return (
            f"Host: {self.prefix}. "
            f"Start time: {started_at.strftime(self.dates_format)}. "
            f"Finish time: {finished_at.strftime(self.dates_format)}. "
            f"Options: {','.join(self.custom_query_params)}"
        )

    def counts(self, condensed: bool = False) -> str:
        agg = self.aggregator
        failed_label = 'Number of failed requests (different status)' if condensed else 'Number of the failed requests'
        return (
            f"Total number of requests: {agg.total}. "
            f"{failed_label}: {agg.failed}. "
            f"Number of skipped requests: {agg.skipped}. "
            f"Percent of the successful requests: {agg.success_percent:.2f}%."
        )

    def discrepancies(self) -> str:
        agg = self.aggregator
        return (
            f"Total number of discrepancies: {agg.body_discrepancies + agg.header_discrepancies}. "
            f"Number of Body discrepancies: {agg.body_discrepancies}. "
            f"Number of Header discrepancies: {agg.header_discrepancies}."
        )

    def response_times(self) -> List[str]:
        series = self.aggregator.response_times
        return [
            f"Response time: {to_json(series.summary(to_seconds=True))}",
            f"Percentile: {to_json(series.percentiles(to_seconds=True))}",
        ]

    def channels(self) -> List[str]:
        """Per-channel summaries in their native unit; empty channels are omitted."""
        lines = []
        for channel, series in self.aggregator.active_channels():
            if channel.is_count:
                lines.append(f"{CHANNEL_LABELS[channel]}: {to_json(series.summary(decimals=0))}")
                continue
            lines.append(f"{CHANNEL_LABELS[channel]}: {to_json(series.summary())}")
            lines.append(f"{PERCENTILE_LABELS[channel]}: {to_json(series.percentiles())}")
        return lines

    def timing(self, elapsed_seconds: float) -> List[str]:
        agg = self.aggregator
        lines = [
            f"Total requests time: {elapsed_seconds:.3f} seconds. "
            f"Total sleep time: {agg.total_sleep_ms / 1000:.2f} seconds."
        ]

        original_span_ms = self.events[-1].timestamp - self.events[0].timestamp if self.events else 0
        original_rps = 1000 * len(self.events) / original_span_ms if original_span_ms > 0 else 0.0
        sent = agg.success + agg.failed
        replay_rps = sent / elapsed_seconds if elapsed_seconds > 0 else 0.0

        lines.append(
            f"Original time: {original_span_ms / 1000} seconds. "
            f"Original rps: {original_rps:.4f}. "
            f"Replay rps: {replay_rps:.4f}. "
            f"Ratio: {self.ratio:g}."
        )
        return lines

    def endpoints(self) -> List[str]:
        visible, hidden = self.aggregator.endpoints.split(self.hide_stats_limit)
        lines = [SEPARATOR, 'Stats results:']
        lines.extend(f"{endpoint} : {count}" for endpoint, count in visible)
        if hidden:
            lines.append(f"Hidden stats: {to_json(hidden)}")
        return lines

    # --- full reports ---

    def render(self, started_at: datetime, finished_at: datetime, elapsed_seconds: float) -> List[str]:
        """Full report: counts, latency, every active channel, rates, endpoints."""
        lines = [SEPARATOR, self.header(started_at, finished_at), self.counts()]
        lines.extend(self.response_times())
        lines.extend(self.channels())
        lines.extend(self.timing(elapsed_seconds))
        if self.show_endpoints:
            lines.extend(self.endpoints())
        return lines

    def render_summary(self, started_at: datetime, finished_at: datetime, elapsed_seconds: float) -> List[str]:
        """Condensed report: like render() plus discrepancy totals, minus channels."""
        lines = [SEPARATOR, self.header(started_at, finished_at), self.counts(condensed=True), self.discrepancies()]
        lines.extend(self.response_times())
        lines.extend(self.timing(elapsed_seconds))
        if self.show_endpoints:
            lines.extend(self.endpoints())
        return lines

"""
nginx-replay Stats Module

Latency distributions, instrumentation channels, endpoint hit counts and
the end-of-run report.
"""

from .series import StatisticSeries, PERCENTILE_RANKS
from .aggregator import Channel, EndpointCounter, StatisticsAggregator
from .report import ReportGenerator

__all__ = [
    'StatisticSeries',
    'PERCENTILE_RANKS',
    'Channel',
    'EndpointCounter',
    'StatisticsAggregator',
    'ReportGenerator',
]

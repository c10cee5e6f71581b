"""
Tests for StatisticSeries.

Tests summary values, nearest-rank percentiles and report formatting.
"""

import sys
from pathlib import Path
import pytest

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from nginx_replay.stats.series import StatisticSeries, PERCENTILE_RANKS


class TestSummary:
    """Test count/sum/mean/min/max."""

    def test_basic_values(self):
        series = StatisticSeries([10, 20, 30, 40, 50])

        assert series.count == 5
        assert series.sum == 150
        assert series.mean == 30
        assert series.min == 10
        assert series.max == 50

    def test_empty_series(self):
        """Test an empty series never divides by zero."""
        series = StatisticSeries()

        assert series.count == 0
        assert series.mean == 0.0
        assert series.min == 0.0
        assert series.percentile(50) == 0.0

    def test_insertion_order_kept(self):
        """Test percentile queries don't reorder the series."""
        series = StatisticSeries([30, 10, 20])

        series.percentile(50)

        assert list(series) == [30, 10, 20]

    def test_summary_formatting(self):
        series = StatisticSeries([1000, 2000, 4500])

        summary = series.summary(to_seconds=True)

        assert summary == {
            'minimum': '1.000',
            'maximum': '4.500',
            'average': '2.500',
            'total': '7.500',
            'number': 3,
        }

    def test_summary_zero_decimals(self):
        """Test count channels render without decimals except the average."""
        series = StatisticSeries([1, 2, 4])

        summary = series.summary(decimals=0)

        assert summary['minimum'] == '1'
        assert summary['total'] == '7'
        assert summary['average'] == '2.333'


class TestPercentile:
    """Test nearest-rank percentile selection."""

    def test_median_odd_count(self):
        assert StatisticSeries([10, 20, 30, 40, 50]).percentile(50) == 30

    def test_low_rank(self):
        assert StatisticSeries([10, 20, 30, 40, 50]).percentile(1) == 10

    def test_high_rank(self):
        assert StatisticSeries([10, 20, 30, 40, 50]).percentile(99) == 50

    def test_quartile(self):
        assert StatisticSeries([10, 20, 30, 40, 50]).percentile(25) == 20

    def test_median_even_count_averages(self):
        """Test an exact boundary averages the two neighbours."""
        assert StatisticSeries([10, 20, 30, 40]).percentile(50) == 25

    def test_unsorted_input(self):
        assert StatisticSeries([50, 10, 40, 20, 30]).percentile(50) == 30

    def test_single_sample(self):
        series = StatisticSeries([7])

        assert all(series.percentile(rank) == 7 for rank in PERCENTILE_RANKS)

    def test_percentile_table(self):
        series = StatisticSeries([1000, 2000])

        table = series.percentiles(to_seconds=True)

        assert list(table.keys()) == ['1', '5', '25', '50', '75', '95', '99']
        assert table['50'] == '1.500'
        assert table['1'] == '1.000'
        assert table['99'] == '2.000'

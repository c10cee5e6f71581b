"""
Append-only numeric sample series with summary and percentile queries.
"""

import math
from typing import Dict, Iterable, List, Optional

PERCENTILE_RANKS = (1, 5, 25, 50, 75, 95, 99)


class StatisticSeries:
    """
    Ordered collection of numeric samples.

    Samples are only ever appended. Percentile queries sort a copy, so the
    series keeps its insertion order.

    Example:
        series = StatisticSeries([10, 20, 30, 40, 50])
        series.percentile(50)  # 30
    """

    def __init__(self, samples: Optional[Iterable[float]] = None):
        self._samples: List[float] = []
        for value in samples or []:
            self.push(value)

    def push(self, value: float):
        """Append one sample."""
        self._samples.append(float(value))

    def __len__(self) -> int:
        return len(self._samples)

    def __iter__(self):
        return iter(self._samples)

    @property
    def count(self) -> int:
        return len(self._samples)

    @property
    def sum(self) -> float:
        return math.fsum(self._samples)

    @property
    def mean(self) -> float:
        if not self._samples:
            return 0.0
        return self.sum / len(self._samples)

    @property
    def min(self) -> float:
        return min(self._samples) if self._samples else 0.0

    @property
    def max(self) -> float:
        return max(self._samples) if self._samples else 0.0

    def percentile(self, rank: float) -> float:
        """
        Nearest-rank percentile.

        For n sorted samples, rank r selects index floor(r/100 * n). When
        r/100 * n lands exactly on an interior boundary the two neighbouring
        samples are averaged, which makes rank 50 the usual median for even
        counts.

        Args:
            rank: Percentile rank between 0 and 100

        Returns:
            Selected sample, or 0.0 for an empty series
        """
        n = len(self._samples)
        if n == 0:
            return 0.0

        ordered = sorted(self._samples)
        if rank <= 0:
            return ordered[0]
        if rank >= 100:
            return ordered[-1]

        position = rank * n / 100
        index = int(math.floor(position))
        if position == index and 0 < index < n:
            return (ordered[index - 1] + ordered[index]) / 2
        return ordered[min(index, n - 1)]

    def percentiles(self, to_seconds: bool = False, ranks: Iterable[int] = PERCENTILE_RANKS) -> Dict[str, str]:
        """Percentile table formatted to 3 decimals, keyed by rank."""
        divisor = 1000 if to_seconds else 1
        return {str(rank): f"{self.percentile(rank) / divisor:.3f}" for rank in ranks}

    def summary(self, to_seconds: bool = False, decimals: int = 3) -> Dict[str, object]:
        """
        Min/max/mean/sum/count summary.

        Args:
            to_seconds: Divide millisecond samples by 1000
            decimals: Decimals for minimum, maximum and total (average always uses 3)
        """
        divisor = 1000 if to_seconds else 1
        return {
            'minimum': f"{self.min / divisor:.{decimals}f}",
            'maximum': f"{self.max / divisor:.{decimals}f}",
            'average': f"{self.mean / divisor:.3f}",
            'total': f"{self.sum / divisor:.{decimals}f}",
            'number': self.count,
        }

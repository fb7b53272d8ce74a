"""
Distribution analysis for input weights and estimation errors.

Signed multisig inputs vary in size by a few bytes because DER signatures
vary in length. The vsize constants are chosen from the observed weight
distribution so that fee estimates never underpay:

    >>> hist = Histogram.from_values([556, 557, 557, 558])
    >>> hist.get_percentile(1.0)
    558
    >>> conservative_vsize([556, 557, 557, 558])
    140

The same histogram is used to check how far estimates are off for signed
transactions (`estimation_error_bounds`).
"""

import math
from collections import Counter
from dataclasses import dataclass
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

import numpy as np

from utxo_vsize.errors import ValidationError


class Histogram:
    """Counts of integer observations."""

    def __init__(self, counts: Optional[Mapping[int, int]] = None):
        self._counts: Counter = Counter()
        for value, count in (counts or {}).items():
            self.add(value, count)

    @classmethod
    def from_values(cls, values: Iterable[int]) -> "Histogram":
        hist = cls()
        for value in values:
            hist.add(value)
        return hist

    def add(self, value: int, count: int = 1) -> None:
        if count < 0:
            raise ValidationError(f"count must not be negative, got {count}")
        self._counts[int(value)] += count

    @property
    def total(self) -> int:
        return sum(self._counts.values())

    def as_sorted_list(self) -> List[Tuple[int, int]]:
        return sorted((value, count) for value, count in self._counts.items() if count)

    def frequencies(self) -> Dict[int, float]:
        """Share of observations per value."""
        total = self.total
        return {value: count / total for value, count in self.as_sorted_list()}

    def get_percentile(self, p: float) -> int:
        """
        Smallest observed value whose cumulative share reaches `p`.

        Args:
            p: Share between 0 and 1

        Returns:
            int: Observed value

        Raises:
            ValidationError: If `p` is out of range or the histogram is empty
        """
        if not 0 <= p <= 1:
            raise ValidationError(f"p must be between 0 and 1, got {p}")
        pairs = self.as_sorted_list()
        if not pairs:
            raise ValidationError("could not find percentile of empty histogram")

        values = np.array([value for value, _ in pairs])
        cumulative = np.cumsum([count for _, count in pairs]) / self.total
        index = int(np.searchsorted(cumulative, p, side="left"))
        return int(values[min(index, len(values) - 1)])

    def __repr__(self) -> str:
        return f"Histogram({self.as_sorted_list()})"


def conservative_vsize(weights: Iterable[int], percentile: float = 1.0) -> int:
    """
    Vsize covering `percentile` of the observed input weights.

    Args:
        weights: Observed input weights in weight units
        percentile: Share of inputs the vsize must cover (1.0 = worst case)

    Returns:
        int: ceil(weight at percentile / 4)
    """
    return math.ceil(Histogram.from_values(weights).get_percentile(percentile) / 4)


@dataclass(frozen=True)
class ErrorBounds:
    """Low and high percentile of estimated minus actual vsize."""

    low: int
    high: int
    histogram: Histogram

    def to_dict(self) -> dict:
        return {
            "low": self.low,
            "high": self.high,
            "histogram": dict(self.histogram.as_sorted_list()),
        }


def estimation_error_bounds(
    estimated: Sequence[int], actual: Sequence[int], low: float = 0.01, high: float = 0.99
) -> ErrorBounds:
    """
    Percentile bounds of the estimation error.

    Args:
        estimated: Estimated vsizes
        actual: Measured vsizes of the same transactions
        low: Lower percentile
        high: Upper percentile

    Returns:
        ErrorBounds with the errors at the two percentiles
    """
    if len(estimated) != len(actual):
        raise ValidationError(f"got {len(estimated)} estimates for {len(actual)} measurements")
    errors = np.asarray(estimated, dtype=np.int64) - np.asarray(actual, dtype=np.int64)
    hist = Histogram.from_values(errors.tolist())
    return ErrorBounds(low=hist.get_percentile(low), high=hist.get_percentile(high), histogram=hist)

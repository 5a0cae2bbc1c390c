"""
Aggregate metrics over benchmark runs.
"""

import re
from itertools import combinations
from typing import Sequence

_WHITESPACE = re.compile(r"\s+")


class Metrics:
    """Pure statistics helpers used by the benchmark reports."""

    @staticmethod
    def percentile(sorted_values: Sequence[float], p: float) -> float:
        """Nearest-rank percentile of an ascending-sorted sample; 0 when empty."""
        if not sorted_values:
            return 0
        n = len(sorted_values)
        index = int(p / 100.0 * (n - 1))
        index = max(0, min(index, n - 1))
        return sorted_values[index]

    @staticmethod
    def median(values: Sequence[float]) -> float:
        """Upper median (``values[n // 2]`` after sorting); 0.0 when empty."""
        if not values:
            return 0.0
        ordered = sorted(values)
        return ordered[len(ordered) // 2]

    @staticmethod
    def throughput(char_count: int, latency_ms: float) -> float:
        """Characters per second; 0.0 for a zero latency."""
        if latency_ms <= 0:
            return 0.0
        return char_count / (latency_ms / 1000.0)

    @staticmethod
    def determinism(outputs: Sequence[str]) -> float:
        """Average pairwise Jaccard similarity of lowercased word sets.

        1.0 for fewer than two outputs.
        """
        if len(outputs) < 2:
            return 1.0

        word_sets = [_words(output) for output in outputs]
        similarities = [_jaccard(a, b) for a, b in combinations(word_sets, 2)]
        return sum(similarities) / len(similarities)


def _words(text: str) -> frozenset:
    return frozenset(token for token in _WHITESPACE.split(text.lower()) if token)


def _jaccard(a: frozenset, b: frozenset) -> float:
    union = a | b
    if not union:
        return 1.0
    return len(a & b) / len(union)

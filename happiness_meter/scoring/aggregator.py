from __future__ import annotations

from collections.abc import Iterable, Mapping

import numpy as np


def round_score(value: float) -> float:
    """Round half-up to two decimals, the precision every published score uses."""
    return float(np.floor(value * 100 + 0.5) / 100)


def weighted_average(pairs: Iterable[tuple[float, int]]) -> float:
    """Count-weighted mean of ``(score, n)`` pairs; 0 when there is nothing to weigh."""
    pairs = list(pairs)
    if not pairs:
        return 0.0

    scores = np.asarray([score for score, _ in pairs], dtype=float)
    counts = np.asarray([n for _, n in pairs], dtype=float)
    total_count = counts.sum()
    if total_count <= 0:
        return 0.0

    return float(np.dot(scores, counts) / total_count)


class ScoreAggregator:
    def blend(self, scores: Mapping[str, float], weights: Mapping[str, float]) -> float:
        """Fixed-weight sum; components missing from ``scores`` contribute 0."""
        keys = list(scores)
        s = np.asarray([scores[key] for key in keys], dtype=float)
        w = np.asarray([weights.get(key, 0.0) for key in keys], dtype=float)
        return float(np.dot(s, w))

    def redistribute(self, scores: Mapping[str, float], weights: Mapping[str, float]) -> float:
        """Weighted sum over the present components with their weights renormalized to 1."""
        keys = list(scores)
        s = np.asarray([scores[key] for key in keys], dtype=float)
        w = np.asarray([weights[key] for key in keys], dtype=float)

        total_weight = w.sum()
        if total_weight == 0:
            total_weight = 1.0

        return float(np.dot(s, w / total_weight))

    def decompose(
        self,
        service_score: float,
        channel_score: float,
        weights: tuple[float, float],
    ) -> dict[str, float]:
        w_s, w_c = weights
        return {
            "service_contribution": round_score(w_s * service_score),
            "channel_contribution": round_score(w_c * channel_score),
            "service_raw": round_score(service_score),
            "channel_raw": round_score(channel_score),
        }

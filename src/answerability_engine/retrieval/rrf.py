"""Weighted Reciprocal Rank Fusion over explicit per-signal rankings."""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Mapping, Sequence


def weighted_rank_fusion(
    rank_maps: Sequence[Mapping[str, int]],
    k: int = 60,
    weights: Sequence[float] | None = None,
) -> list[tuple[str, float]]:
    """Merge explicit 1-based rankings: score = sum of weight / (k + rank).

    Args:
        rank_maps: One mapping of id -> 1-based rank per signal.
        k: RRF constant (higher = more weight to lower-ranked results).
        weights: Per-signal weight, defaulting to 1.0 each.

    Returns:
        (id, score) tuples sorted by score descending, ties broken by id.
    """
    if weights is None:
        weights = [1.0] * len(rank_maps)
    if len(weights) != len(rank_maps):
        raise ValueError("weights must match the number of rank lists")

    scores: dict[str, float] = defaultdict(float)
    for ranks, weight in zip(rank_maps, weights):
        for cid, rank in ranks.items():
            scores[cid] += weight / (k + rank)
    return sorted(scores.items(), key=lambda x: (-x[1], x[0]))

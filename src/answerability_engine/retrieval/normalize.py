"""Per-query score normalization ahead of weighted fusion."""

from __future__ import annotations

from collections.abc import Mapping

from answerability_engine.config.constants import EPSILON
from answerability_engine.models.schemas import NormalizationMode


def minmax(scores: Mapping[str, float]) -> dict[str, float]:
    """Rescale to [0, 1]. A degenerate range maps positive scores to 1.0, the rest to 0.0."""
    if not scores:
        return {}
    lo = min(scores.values())
    hi = max(scores.values())
    if hi - lo < EPSILON:
        return {cid: 1.0 if s > 0 else 0.0 for cid, s in scores.items()}
    return {cid: (s - lo) / (hi - lo) for cid, s in scores.items()}


def normalize_scores(
    scores: Mapping[str, float], mode: NormalizationMode
) -> dict[str, float]:
    match mode:
        case NormalizationMode.NONE:
            return dict(scores)
        case NormalizationMode.MINMAX:
            return minmax(scores)
    raise ValueError(f"Unknown normalization mode: {mode}")

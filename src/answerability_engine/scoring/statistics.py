"""Descriptive statistics over a query's final score list."""

from __future__ import annotations

from collections.abc import Sequence

import numpy as np

from answerability_engine.models.domain import ScoreStatistics


def compute_statistics(scores: Sequence[float]) -> ScoreStatistics:
    """Mean, extremes, population std dev and linearly interpolated percentiles."""
    if len(scores) == 0:
        return ScoreStatistics()

    arr = np.asarray(scores, dtype=float)
    p25, p50, p75, p90 = np.percentile(arr, [25, 50, 75, 90])
    return ScoreStatistics(
        mean=float(arr.mean()),
        max=float(arr.max()),
        min=float(arr.min()),
        std_dev=float(arr.std()),
        count=int(arr.size),
        p25=float(p25),
        p50=float(p50),
        p75=float(p75),
        p90=float(p90),
    )

"""Ensemble confidence scoring: four sub-scores combined under AlgorithmWeights.

Every sub-score is non-decreasing in mean and top score and non-increasing in
standard deviation, so the weighted confidence inherits the same monotonicity.
"""

from __future__ import annotations

import time
from collections.abc import Sequence

from answerability_engine.config.constants import (
    EPSILON,
    ML_DENSITY_SATURATION,
    STATISTICAL_CONSISTENCY_WEIGHT,
    STATISTICAL_MAX_WEIGHT,
    STATISTICAL_MEAN_WEIGHT,
    STATISTICAL_STD_SCALE,
)
from answerability_engine.models.domain import (
    AlgorithmScores,
    AnswerabilityScore,
    ScoreStatistics,
)
from answerability_engine.models.schemas import AlgorithmWeights, ThresholdProfile
from answerability_engine.scoring.reason_codes import ReasonCode
from answerability_engine.scoring.statistics import compute_statistics


def _clamp(value: float) -> float:
    return max(0.0, min(1.0, value))


def statistical_score(stats: ScoreStatistics) -> float:
    """High when scores cluster high and tight."""
    consistency = max(0.0, 1.0 - stats.std_dev / STATISTICAL_STD_SCALE)
    return _clamp(
        STATISTICAL_MEAN_WEIGHT * min(stats.mean, 1.0)
        + STATISTICAL_MAX_WEIGHT * min(stats.max, 1.0)
        + STATISTICAL_CONSISTENCY_WEIGHT * consistency
    )


def _clearance(value: float, required: float) -> float:
    if required <= 0:
        return 1.0
    return min(1.0, max(0.0, value) / required)


def threshold_score(stats: ScoreStatistics, profile: ThresholdProfile) -> float:
    """Degree to which the top score and the mean clear the profile floors."""
    return 0.5 * _clearance(stats.max, profile.min_top_score) + 0.5 * _clearance(
        stats.mean, profile.min_mean_score
    )


def ml_feature_score(stats: ScoreStatistics) -> float:
    """Statistics-derived stand-in until a learned model is plugged in."""
    return _clamp(
        0.3 * min(stats.max, 1.0)
        + 0.3 * min(stats.mean, 1.0)
        + 0.3 * (1.0 - min(stats.std_dev, 1.0))
        + 0.1 * min(stats.count / ML_DENSITY_SATURATION, 1.0)
    )


def algorithm_scores(
    stats: ScoreStatistics,
    profile: ThresholdProfile,
    reranker_score: float | None = None,
) -> AlgorithmScores:
    return AlgorithmScores(
        statistical=statistical_score(stats),
        threshold=threshold_score(stats, profile),
        ml_features=ml_feature_score(stats),
        reranker_confidence=None if reranker_score is None else _clamp(reranker_score),
    )


def combine(scores: AlgorithmScores, weights: AlgorithmWeights) -> float:
    """Weighted mean of the active sub-scores. A missing reranker drops out of the denominator."""
    parts = [
        (scores.statistical, weights.statistical),
        (scores.threshold, weights.threshold),
        (scores.ml_features, weights.ml_features),
    ]
    if scores.reranker_confidence is not None:
        parts.append((scores.reranker_confidence, weights.reranker_confidence))

    total_weight = sum(w for _, w in parts)
    if total_weight < EPSILON:
        return 0.0
    return _clamp(sum(s * w for s, w in parts) / total_weight)


def failed_checks(
    confidence: float, stats: ScoreStatistics, profile: ThresholdProfile
) -> list[str]:
    """Reason codes for every violated condition of the answerability gate."""
    failures: list[str] = []
    if stats.count == 0 or stats.count < profile.min_result_count:
        failures.append(ReasonCode.TOO_FEW_RESULTS)
    if confidence < profile.min_confidence:
        failures.append(ReasonCode.LOW_CONFIDENCE)
    if stats.max < profile.min_top_score:
        failures.append(ReasonCode.LOW_TOP_SCORE)
    if stats.mean < profile.min_mean_score:
        failures.append(ReasonCode.LOW_MEAN_SCORE)
    if stats.std_dev > profile.max_std_dev:
        failures.append(ReasonCode.HIGH_VARIANCE)
    return failures


def _reasoning(confidence: float, stats: ScoreStatistics, failures: list[str]) -> str:
    if stats.count == 0:
        return "No retrieval results to evaluate"
    head = f"confidence={confidence:.4f} ({stats.summary()})"
    if not failures:
        return f"All answerability checks passed: {head}"
    return f"Failed checks {', '.join(failures)}: {head}"


class AnswerabilityScorer:
    def __init__(self, weights: AlgorithmWeights | None = None) -> None:
        self._weights = weights or AlgorithmWeights()

    def score(
        self,
        scores: Sequence[float],
        profile: ThresholdProfile,
        reranker_score: float | None = None,
    ) -> AnswerabilityScore:
        start = time.monotonic()
        stats = compute_statistics(scores)

        if stats.count == 0:
            subs = AlgorithmScores(statistical=0.0, threshold=0.0, ml_features=0.0)
            confidence = 0.0
        else:
            subs = algorithm_scores(stats, profile, reranker_score)
            confidence = combine(subs, self._weights)

        failures = failed_checks(confidence, stats, profile)
        return AnswerabilityScore(
            confidence=confidence,
            statistics=stats,
            algorithm_scores=subs,
            is_answerable=not failures,
            reasoning=_reasoning(confidence, stats, failures),
            computation_ms=(time.monotonic() - start) * 1000,
        )

"""Per-stage confidence along the ranking pipeline and degradation detection.

Each stage (vector, keyword, fusion, reranking) gets a confidence from its own
score list. A later stage whose confidence falls well below the stage feeding it
raises a degradation alert.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence

from answerability_engine.config.constants import (
    FUSION_PRESERVATION_FLOOR,
    FUSION_PRESERVATION_MIN_VECTOR_CONFIDENCE,
    STAGE_ALERT_MIN_CONFIDENCE,
    STAGE_DEGRADATION_THRESHOLD,
)
from answerability_engine.models.domain import (
    Candidate,
    DegradationAlert,
    FusionResult,
    ScoreStatistics,
    StageConfidence,
)
from answerability_engine.scoring.statistics import compute_statistics

VECTOR = "vector"
KEYWORD = "keyword"
FUSION = "fusion"
RERANKING = "reranking"


def consistency(stats: ScoreStatistics) -> float:
    """1 - coefficient of variation, floored at 0."""
    if stats.mean == 0:
        return 0.0
    return max(0.0, 1.0 - stats.std_dev / stats.mean)


def _stage(
    stage: str,
    scores: Sequence[float],
    top_weight: float,
    mean_weight: float,
    consistency_weight: float,
    top_scale: float = 1.0,
) -> StageConfidence:
    if not scores:
        return StageConfidence(stage=stage)
    stats = compute_statistics(scores)
    confidence = min(
        stats.max / top_scale * top_weight
        + stats.mean * mean_weight
        + consistency(stats) * consistency_weight,
        1.0,
    )
    return StageConfidence(
        stage=stage,
        confidence=confidence,
        quality=confidence,
        result_count=stats.count,
        top_score=stats.max,
        mean_score=stats.mean,
        std_dev=stats.std_dev,
    )


def vector_stage(scores: Sequence[float]) -> StageConfidence:
    return _stage(VECTOR, scores, 0.6, 0.3, 0.1)


def keyword_stage(scores: Sequence[float]) -> StageConfidence:
    # keyword scores run on a wider scale, so the top score is halved
    return _stage(KEYWORD, scores, 0.5, 0.3, 0.2, top_scale=2.0)


def reranker_stage(scores: Sequence[float]) -> StageConfidence:
    return _stage(RERANKING, scores, 0.5, 0.3, 0.2)


def fusion_stage(
    fused_scores: Sequence[float],
    vector_scores: Sequence[float],
    vector: StageConfidence,
) -> StageConfidence:
    """Fusion confidence, scaled down when fusion loses the vector stage's top score."""
    if not fused_scores:
        return StageConfidence(stage=FUSION)

    base = _stage(FUSION, fused_scores, 0.4, 0.3, 0.1)
    preservation = 1.0
    positive = [s for s in vector_scores if s > 0]
    if positive and vector.confidence > FUSION_PRESERVATION_MIN_VECTOR_CONFIDENCE:
        ratio = base.top_score / max(positive)
        preservation = min(max(ratio, FUSION_PRESERVATION_FLOOR), 1.0)

    return StageConfidence(
        stage=FUSION,
        confidence=base.confidence * preservation,
        quality=preservation,
        result_count=base.result_count,
        top_score=base.top_score,
        mean_score=base.mean_score,
        std_dev=base.std_dev,
    )


def _drop(previous: StageConfidence, current: StageConfidence) -> float:
    return (previous.confidence - current.confidence) / previous.confidence


def detect_degradation(
    stages: Mapping[str, StageConfidence],
    threshold: float = STAGE_DEGRADATION_THRESHOLD,
) -> list[DegradationAlert]:
    """Alerts for vector -> fusion and fusion -> reranking confidence drops."""
    alerts: list[DegradationAlert] = []
    vector = stages.get(VECTOR)
    fusion = stages.get(FUSION)
    reranking = stages.get(RERANKING)

    if vector and fusion and vector.confidence > STAGE_ALERT_MIN_CONFIDENCE:
        severity = _drop(vector, fusion)
        if severity > threshold:
            alerts.append(
                DegradationAlert(
                    stage=FUSION,
                    severity=severity,
                    description=f"Fusion stage reduced confidence by {severity:.1%}",
                    recommendation="Review fusion weights or the rank constant",
                    previous_confidence=vector.confidence,
                    current_confidence=fusion.confidence,
                )
            )

    if fusion and reranking and fusion.confidence > STAGE_ALERT_MIN_CONFIDENCE:
        severity = _drop(fusion, reranking)
        if severity > threshold:
            alerts.append(
                DegradationAlert(
                    stage=RERANKING,
                    severity=severity,
                    description=f"Reranker reduced confidence by {severity:.1%}",
                    recommendation="Consider disabling the reranker for this query type",
                    previous_confidence=fusion.confidence,
                    current_confidence=reranking.confidence,
                )
            )
    return alerts


def track_stages(
    candidates: Sequence[Candidate],
    fused: Sequence[FusionResult],
) -> dict[str, StageConfidence]:
    """Confidence for every stage that produced scores for this query.

    Vector and fusion are always reported. Keyword and reranking appear only
    when some candidate carries that score.
    """
    vector_scores = [c.vector_score for c in candidates if c.vector_score is not None]
    keyword_scores = [c.keyword_score for c in candidates if c.keyword_score is not None]
    reranker_scores = [c.reranker_score for c in candidates if c.reranker_score is not None]

    vector = vector_stage(vector_scores)
    stages = {VECTOR: vector}
    if keyword_scores:
        stages[KEYWORD] = keyword_stage(keyword_scores)
    stages[FUSION] = fusion_stage([r.fused_score for r in fused], vector_scores, vector)
    if reranker_scores:
        stages[RERANKING] = reranker_stage(reranker_scores)
    return stages

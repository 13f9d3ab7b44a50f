"""Metric recording helpers for ranking and guardrail traces."""

from __future__ import annotations

from collections.abc import Mapping, Sequence

from answerability_engine.models.domain import (
    DegradationAlert,
    GuardrailDecision,
    RankedCandidate,
    StageConfidence,
)
from answerability_engine.observability.logger import get_logger

logger = get_logger("metrics")


def log_ranking_metrics(
    trace_id: str,
    ranked: Sequence[RankedCandidate],
    num_terms: int,
) -> None:
    logger.info(
        "ranking_metrics",
        trace_id=trace_id,
        num_candidates=len(ranked),
        num_terms=num_terms,
        top_scores=[round(r.score, 4) for r in ranked[:5]],
        skipped_keyword=sum(1 for r in ranked if r.breakdown.skipped),
    )


def log_keyword_breakdown(trace_id: str, ranked: Sequence[RankedCandidate]) -> None:
    """Per-candidate keyword breakdown; debug level, never part of a client response."""
    for r in ranked:
        logger.debug(
            "keyword_breakdown",
            trace_id=trace_id,
            candidate_id=r.id,
            raw_kw=round(r.components.raw_keyword_score, 6),
            kw_norm=round(r.components.normalized_keyword_score, 4),
            fused=round(r.components.fused_score, 4),
            final=round(r.components.final_score, 4),
            terms={
                tp.term: round(tp.points, 6) for tp in r.breakdown.per_term
            },
            skipped=r.breakdown.skipped,
        )


def log_guardrail_metrics(trace_id: str, decision: GuardrailDecision) -> None:
    logger.info(
        "guardrail_metrics",
        trace_id=trace_id,
        answerable=decision.is_answerable,
        confidence=round(decision.score.confidence, 4),
        tier=decision.profile.tier,
        reason_code=decision.idk_response.reason_code if decision.idk_response else None,
    )


def log_latency(trace_id: str, stage: str, duration_ms: float) -> None:
    logger.info(
        "latency",
        trace_id=trace_id,
        stage=stage,
        duration_ms=round(duration_ms, 2),
    )


def log_stage_confidence(
    trace_id: str,
    stages: Mapping[str, StageConfidence],
    alerts: Sequence[DegradationAlert],
) -> None:
    logger.info(
        "stage_confidence",
        trace_id=trace_id,
        stages={name: round(s.confidence, 4) for name, s in stages.items()},
    )
    for alert in alerts:
        logger.warning(
            "stage_degradation",
            trace_id=trace_id,
            stage=alert.stage,
            severity=round(alert.severity, 4),
            description=alert.description,
            recommendation=alert.recommendation,
        )

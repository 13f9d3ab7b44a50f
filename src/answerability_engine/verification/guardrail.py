"""Answerability guardrail: decide whether the ranked evidence supports an answer."""

from __future__ import annotations

from collections.abc import Sequence

from answerability_engine.config.tenants import GuardrailConfigRegistry, TenantGuardrailConfig
from answerability_engine.models.domain import (
    AlgorithmScores,
    AnswerabilityScore,
    GuardrailDecision,
    RankedCandidate,
)
from answerability_engine.observability.logger import get_logger
from answerability_engine.observability.tracing import TraceContext
from answerability_engine.scoring.answerability import AnswerabilityScorer
from answerability_engine.scoring.reason_codes import DecisionRationale
from answerability_engine.scoring.statistics import compute_statistics
from answerability_engine.verification.audit import GuardrailAuditLogger, build_audit_trail
from answerability_engine.verification.idk import build_idk_response

logger = get_logger("guardrail")

SCORING_SPAN = "answerability_scoring"


def top_reranker_score(results: Sequence[RankedCandidate]) -> float | None:
    """Highest reranker score among the results, or None when no reranker ran."""
    scores = [r.candidate.reranker_score for r in results if r.candidate.reranker_score is not None]
    return max(scores) if scores else None


class AnswerabilityGuardrail:
    def __init__(
        self,
        registry: GuardrailConfigRegistry | None = None,
        audit_logger: GuardrailAuditLogger | None = None,
    ) -> None:
        self._registry = registry or GuardrailConfigRegistry()
        self._audit = audit_logger or GuardrailAuditLogger()

    @property
    def audit_logger(self) -> GuardrailAuditLogger:
        return self._audit

    def evaluate(
        self,
        query: str,
        results: Sequence[RankedCandidate],
        tenant_id: str | None = None,
        trace: TraceContext | None = None,
    ) -> GuardrailDecision:
        trace = trace or TraceContext()
        config = self._registry.get(tenant_id)

        if not config.enabled:
            return self._pass_through(query, results, config, trace, DecisionRationale.GUARDRAIL_DISABLED)
        if config.bypass_enabled:
            return self._pass_through(query, results, config, trace, DecisionRationale.BYPASS_ENABLED)

        scores = [r.score for r in results]
        with trace.span(SCORING_SPAN, tenant_id=config.tenant_id):
            score = AnswerabilityScorer(config.algorithm_weights).score(
                scores, config.threshold, top_reranker_score(results)
            )

        idk = None
        rationale = DecisionRationale.ANSWERABLE
        if not score.is_answerable:
            idk = build_idk_response(
                score, config.threshold, config.idk_templates, config.fallback, results
            )
            rationale = f"{DecisionRationale.NOT_ANSWERABLE}:{idk.reason_code}"

        decision = self._finish(query, results, config, trace, score, rationale, idk)
        logger.info(
            "guardrail_decision",
            trace_id=trace.trace_id,
            tenant_id=config.tenant_id,
            tier=config.threshold.tier,
            answerable=score.is_answerable,
            confidence=round(score.confidence, 4),
            reason_code=idk.reason_code if idk else None,
        )
        return decision

    def _pass_through(
        self,
        query: str,
        results: Sequence[RankedCandidate],
        config: TenantGuardrailConfig,
        trace: TraceContext,
        rationale: str,
    ) -> GuardrailDecision:
        score = AnswerabilityScore(
            confidence=1.0,
            statistics=compute_statistics([r.score for r in results]),
            algorithm_scores=AlgorithmScores(
                statistical=1.0, threshold=1.0, ml_features=1.0, reranker_confidence=1.0
            ),
            is_answerable=True,
            reasoning="Guardrail disabled or bypassed",
            computation_ms=0.0,
        )
        logger.info(
            "guardrail_pass_through",
            trace_id=trace.trace_id,
            tenant_id=config.tenant_id,
            rationale=rationale,
        )
        return self._finish(query, results, config, trace, score, rationale, None)

    def _finish(self, query, results, config, trace, score, rationale, idk) -> GuardrailDecision:
        audit = build_audit_trail(
            query=query,
            tenant_id=config.tenant_id,
            stats=score.statistics,
            result_count=len(results),
            rationale=rationale,
            scoring_ms=trace.duration_of(SCORING_SPAN),
            total_ms=trace.elapsed_ms,
            is_answerable=score.is_answerable,
            confidence=score.confidence,
            threshold_tier=config.threshold.tier,
            reason_code=idk.reason_code if idk else None,
        )
        self._audit.record(audit)
        return GuardrailDecision(
            is_answerable=score.is_answerable,
            score=score,
            profile=config.threshold,
            audit=audit,
            idk_response=idk,
        )

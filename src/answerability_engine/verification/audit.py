"""Guardrail audit sink: every decision is written as one structured log record."""

from __future__ import annotations

from collections import deque
from datetime import datetime, timezone
from typing import Any

from answerability_engine.models.domain import AuditTrail, GuardrailPerformance, ScoreStatistics
from answerability_engine.observability.logger import get_logger
from answerability_engine.scoring.reason_codes import DecisionRationale, DecisionType

logger = get_logger("guardrail_audit")


def decision_type(rationale: str, is_answerable: bool) -> str:
    if rationale == DecisionRationale.GUARDRAIL_DISABLED:
        return DecisionType.DISABLED
    if rationale == DecisionRationale.BYPASS_ENABLED:
        return DecisionType.BYPASSED
    return DecisionType.ANSWERABLE if is_answerable else DecisionType.NOT_ANSWERABLE


def build_audit_trail(
    query: str,
    tenant_id: str,
    stats: ScoreStatistics,
    result_count: int,
    rationale: str,
    scoring_ms: float,
    total_ms: float,
    is_answerable: bool = True,
    confidence: float = 0.0,
    threshold_tier: str = "",
    reason_code: str | None = None,
) -> AuditTrail:
    return AuditTrail(
        timestamp=datetime.now(timezone.utc),
        query=query,
        tenant_id=tenant_id,
        result_count=result_count,
        stats_summary=stats.summary(),
        decision_rationale=rationale,
        scoring_ms=scoring_ms,
        total_ms=total_ms,
        decision_type=decision_type(rationale, is_answerable),
        confidence=confidence,
        threshold_tier=threshold_tier,
        reason_code=reason_code,
        statistics=stats,
    )


def log_threshold_update(
    tenant_id: str,
    old_threshold: dict[str, Any] | None,
    new_threshold: dict[str, Any],
    updated_by: str = "system",
) -> None:
    logger.info(
        "guardrail_threshold_updated",
        audit=True,
        tenant_id=tenant_id,
        old_threshold=old_threshold,
        new_threshold=new_threshold,
        updated_by=updated_by,
        ts=datetime.now(timezone.utc).isoformat(),
    )


class GuardrailAuditLogger:
    """Writes audit trails to the structured log and keeps the most recent ones in memory."""

    def __init__(self, keep_last: int = 100) -> None:
        self._recent: deque[AuditTrail] = deque(maxlen=keep_last)

    def record(self, audit: AuditTrail) -> None:
        self._recent.append(audit)
        stats = audit.statistics
        logger.info(
            "guardrail_audit",
            audit=True,
            timestamp=audit.timestamp.isoformat(),
            query=audit.query,
            tenant_id=audit.tenant_id,
            decision=audit.decision_type,
            confidence=round(audit.confidence, 4),
            threshold_tier=audit.threshold_tier,
            reason_code=audit.reason_code,
            result_count=audit.result_count,
            score_stats={
                "mean": round(stats.mean, 4),
                "max": round(stats.max, 4),
                "min": round(stats.min, 4),
                "std_dev": round(stats.std_dev, 4),
                "count": stats.count,
            },
            decision_rationale=audit.decision_rationale,
            scoring_ms=round(audit.scoring_ms, 3),
            total_ms=round(audit.total_ms, 3),
        )

    @property
    def recent(self) -> list[AuditTrail]:
        return list(self._recent)

    def performance(self, tenant_id: str | None = None) -> GuardrailPerformance:
        """Averages over the retained decisions, optionally for one tenant."""
        audits = [a for a in self._recent if tenant_id is None or a.tenant_id == tenant_id]
        if not audits:
            return GuardrailPerformance()

        n = len(audits)
        window_min = (audits[-1].timestamp - audits[0].timestamp).total_seconds() / 60
        return GuardrailPerformance(
            decisions=n,
            avg_scoring_ms=sum(a.scoring_ms for a in audits) / n,
            avg_total_ms=sum(a.total_ms for a in audits) / n,
            decisions_per_minute=n / window_min if window_min > 0 else 0.0,
            idk_rate=sum(1 for a in audits if a.decision_type == DecisionType.NOT_ANSWERABLE) / n,
        )

    def log_performance_metrics(self, tenant_id: str | None = None) -> GuardrailPerformance:
        metrics = self.performance(tenant_id)
        logger.info(
            "guardrail_performance",
            audit=True,
            tenant_id=tenant_id or "all",
            decisions=metrics.decisions,
            avg_scoring_ms=round(metrics.avg_scoring_ms, 3),
            avg_total_ms=round(metrics.avg_total_ms, 3),
            decisions_per_minute=round(metrics.decisions_per_minute, 3),
            idk_rate=round(metrics.idk_rate, 4),
        )
        return metrics

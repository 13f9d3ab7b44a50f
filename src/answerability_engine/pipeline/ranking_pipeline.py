"""Per-query orchestrator: terms -> features -> fusion -> keyword points -> guardrail."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field, replace

from answerability_engine.config.settings import Settings
from answerability_engine.config.tenants import GuardrailConfigRegistry
from answerability_engine.keyword_search.term_hits import resolve_term_hits
from answerability_engine.models.domain import (
    Candidate,
    CorpusStats,
    DegradationAlert,
    GuardrailDecision,
    MatchFeatures,
    RankedCandidate,
    ScoreComponents,
    StageConfidence,
    Term,
    TermGroup,
)
from answerability_engine.models.schemas import (
    FusionConfig,
    KeywordPointsConfig,
    MatchFeatureConfig,
)
from answerability_engine.observability.logger import get_logger, setup_logging
from answerability_engine.observability.metrics import (
    log_guardrail_metrics,
    log_keyword_breakdown,
    log_latency,
    log_ranking_metrics,
    log_stage_confidence,
)
from answerability_engine.observability.tracing import TraceContext
from answerability_engine.query.term_analyzer import (
    QueryTermAnalyzer,
    build_term_groups,
    build_terms,
)
from answerability_engine.ranking.exclusivity import make_exclusivity_fn
from answerability_engine.ranking.keyword_scorer import KeywordScorer
from answerability_engine.ranking.match_features import compute_match_features
from answerability_engine.retrieval.fusion import ScoreFusion
from answerability_engine.scoring.stage_confidence import detect_degradation, track_stages
from answerability_engine.verification.audit import GuardrailAuditLogger
from answerability_engine.verification.guardrail import AnswerabilityGuardrail

logger = get_logger("ranking_pipeline")


@dataclass(frozen=True)
class QueryOutcome:
    query: str
    terms: list[Term]
    groups: list[TermGroup]
    ranked: list[RankedCandidate]
    decision: GuardrailDecision
    trace: dict
    stage_confidences: dict[str, StageConfidence] = field(default_factory=dict)
    degradation_alerts: list[DegradationAlert] = field(default_factory=list)

    @property
    def trace_id(self) -> str:
        return self.trace["trace_id"]


class RankingPipeline:
    def __init__(
        self,
        settings: Settings | None = None,
        registry: GuardrailConfigRegistry | None = None,
        audit_logger: GuardrailAuditLogger | None = None,
        configure_logging: bool = False,
    ) -> None:
        self._settings = settings or Settings()
        if configure_logging:
            setup_logging(self._settings.log_level, self._settings.json_logs)
        self._feature_cfg = MatchFeatureConfig.from_settings(self._settings)
        self._fusion = ScoreFusion(FusionConfig.from_settings(self._settings))
        self._keyword = KeywordScorer(KeywordPointsConfig.from_settings(self._settings))
        self._guardrail = AnswerabilityGuardrail(
            registry or GuardrailConfigRegistry(self._settings), audit_logger
        )

    def execute(
        self,
        query: str,
        candidates: Sequence[Candidate],
        stats: CorpusStats,
        tenant_id: str | None = None,
        aliases: Mapping[str, Sequence[str]] | None = None,
    ) -> QueryOutcome:
        trace = TraceContext()

        # STEP 1: Query terms and groups
        with trace.span("term_analysis"):
            query_terms = QueryTermAnalyzer(stats).extract(query)
            terms = build_terms(query_terms, stats)
            groups = build_term_groups(terms, aliases)

        # STEP 2: Per-candidate hits and match features (fan-out, joined before any query-level step)
        with trace.span("match_features", candidates=len(candidates)):
            enriched = self._enrich(candidates, terms, groups)
        features = {c.id: f for c, f in enriched}
        annotated = [c for c, _ in enriched]

        # STEP 3: Fusion
        with trace.span("fusion"):
            fused = self._fusion.fuse(annotated)
        fused_by_id = {r.id: r.fused_score for r in fused}

        # STEP 4: Keyword points over the complete candidate set
        with trace.span("keyword_points"):
            keyword = self._keyword.score(
                terms,
                annotated,
                fused_by_id,
                exclusivity_fn=make_exclusivity_fn(stats, groups),
                features=features,
            )

        ranked = self._assemble(annotated, fused_by_id, keyword)
        log_ranking_metrics(trace.trace_id, ranked, len(terms))
        log_keyword_breakdown(trace.trace_id, ranked)

        stages = track_stages(annotated, fused)
        alerts = detect_degradation(stages)
        log_stage_confidence(trace.trace_id, stages, alerts)

        # STEP 5: Guardrail
        decision = self._guardrail.evaluate(query, ranked, tenant_id, trace)
        log_guardrail_metrics(trace.trace_id, decision)
        for span in trace.spans:
            log_latency(trace.trace_id, span.name, span.duration_ms)

        return QueryOutcome(
            query=query,
            terms=terms,
            groups=groups,
            ranked=ranked,
            decision=decision,
            trace=trace.to_dict(),
            stage_confidences=stages,
            degradation_alerts=alerts,
        )

    def _prepare(
        self, candidate: Candidate, terms: Sequence[Term], groups: Sequence[TermGroup]
    ) -> tuple[Candidate, MatchFeatures]:
        if not candidate.term_hits and terms:
            candidate = replace(candidate, term_hits=resolve_term_hits(candidate, terms))
        return candidate, compute_match_features(candidate, groups, self._feature_cfg)

    def _enrich(
        self,
        candidates: Sequence[Candidate],
        terms: Sequence[Term],
        groups: Sequence[TermGroup],
    ) -> list[tuple[Candidate, MatchFeatures]]:
        workers = self._settings.feature_workers
        if workers <= 1 or len(candidates) <= 1:
            return [self._prepare(c, terms, groups) for c in candidates]

        with ThreadPoolExecutor(max_workers=workers) as pool:
            return list(pool.map(lambda c: self._prepare(c, terms, groups), candidates))

    @staticmethod
    def _assemble(annotated, fused_by_id, keyword) -> list[RankedCandidate]:
        by_id = {c.id: c for c in annotated}
        ranked = [
            RankedCandidate(
                candidate=by_id[k.id],
                components=ScoreComponents(
                    vector_score=by_id[k.id].vector_score or 0.0,
                    raw_keyword_score=k.raw_kw,
                    normalized_keyword_score=k.kw_norm,
                    fused_score=fused_by_id.get(k.id, 0.0),
                    final_score=k.final_score,
                ),
                breakdown=k.breakdown,
                features=k.breakdown.features,
            )
            for k in keyword
        ]
        ranked.sort(key=lambda r: (-r.score, r.id))
        return ranked

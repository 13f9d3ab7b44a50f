"""Score fusion: combine vector and keyword signals into one ranking."""

from __future__ import annotations

from collections.abc import Mapping, Sequence

from answerability_engine.models.domain import Candidate, FusionResult
from answerability_engine.models.schemas import FusionConfig, FusionStrategy
from answerability_engine.observability.logger import get_logger
from answerability_engine.retrieval.normalize import normalize_scores
from answerability_engine.retrieval.rrf import weighted_rank_fusion

logger = get_logger("fusion")


def _ranks(
    scores: Mapping[str, float], explicit: Mapping[str, int]
) -> dict[str, int]:
    """Supplied ranks win; the rest take their 1-based position by score."""
    ordered = sorted(scores.items(), key=lambda x: (-x[1], x[0]))
    ranks = {cid: pos for pos, (cid, _) in enumerate(ordered, start=1)}
    ranks.update(explicit)
    return ranks


class ScoreFusion:
    def __init__(self, config: FusionConfig | None = None) -> None:
        self._cfg = config or FusionConfig()

    @property
    def config(self) -> FusionConfig:
        return self._cfg

    def fuse(self, candidates: Sequence[Candidate]) -> list[FusionResult]:
        if not candidates:
            return []

        match self._cfg.strategy:
            case FusionStrategy.WEIGHTED_AVERAGE:
                results = self._weighted_average(candidates)
            case FusionStrategy.BORDA_RANK:
                results = self._borda_rank(candidates)
            case _:
                raise ValueError(f"Unknown fusion strategy: {self._cfg.strategy}")

        results.sort(key=lambda r: (-r.fused_score, r.id))
        logger.debug(
            "scores_fused",
            strategy=self._cfg.strategy.value,
            candidates=len(results),
            top=[(r.id, round(r.fused_score, 4)) for r in results[:5]],
        )
        return results

    def _weighted_average(self, candidates: Sequence[Candidate]) -> list[FusionResult]:
        cfg = self._cfg
        v_norm = normalize_scores(
            {c.id: c.vector_score or 0.0 for c in candidates}, cfg.normalization
        )
        k_norm = normalize_scores(
            {c.id: c.keyword_score for c in candidates if c.keyword_score is not None},
            cfg.normalization,
        )

        results = []
        for c in candidates:
            v = cfg.vector_weight * v_norm[c.id]
            k = cfg.keyword_weight * k_norm.get(c.id, 0.0)
            results.append(
                FusionResult(id=c.id, fused_score=v + k, vector_component=v, keyword_component=k)
            )
        return results

    def _borda_rank(self, candidates: Sequence[Candidate]) -> list[FusionResult]:
        cfg = self._cfg
        v_ranks = _ranks(
            {c.id: c.vector_score for c in candidates if c.vector_score is not None},
            {c.id: c.vector_rank for c in candidates if c.vector_rank is not None},
        )
        k_ranks = _ranks(
            {c.id: c.keyword_score for c in candidates if c.keyword_score is not None},
            {c.id: c.keyword_rank for c in candidates if c.keyword_rank is not None},
        )
        blended = dict(
            weighted_rank_fusion(
                [v_ranks, k_ranks],
                k=cfg.k_param,
                weights=[cfg.vector_weight, cfg.keyword_weight],
            )
        )

        results = []
        for c in candidates:
            v = cfg.vector_weight / (cfg.k_param + v_ranks[c.id]) if c.id in v_ranks else 0.0
            k = cfg.keyword_weight / (cfg.k_param + k_ranks[c.id]) if c.id in k_ranks else 0.0
            fused = blended.get(c.id, 0.0)
            results.append(
                FusionResult(
                    id=c.id,
                    fused_score=fused,
                    vector_component=v,
                    keyword_component=k,
                    rank_blend=fused,
                )
            )
        return results


def fuse(candidates: Sequence[Candidate], config: FusionConfig | None = None) -> list[FusionResult]:
    return ScoreFusion(config).fuse(candidates)

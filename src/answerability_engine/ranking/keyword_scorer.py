"""Keyword points: per-term hit evidence turned into a median-normalized nudge.

finalScore = fusedScore + lambda * kwNorm, where kwNorm = rawKw / median(rawKw)
clamped to a ceiling. Proximity and exclusivity adjustments are query-global:
each is folded over the whole candidate set before any candidate is blended.
"""

from __future__ import annotations

import math
from collections.abc import Mapping, Sequence
from dataclasses import dataclass

import numpy as np

from answerability_engine.config.constants import EPSILON
from answerability_engine.keyword_search.term_hits import dedupe_overlapping_hits
from answerability_engine.models.domain import (
    Candidate,
    HitField,
    KeywordBreakdown,
    KeywordResult,
    MatchFeatures,
    Term,
    TermHit,
    TermPoints,
)
from answerability_engine.models.schemas import KeywordPointsConfig
from answerability_engine.observability.logger import get_logger
from answerability_engine.query.term_analyzer import term_words
from answerability_engine.ranking.exclusivity import ExclusivityFn
from answerability_engine.ranking.match_features import minimal_span

logger = get_logger("keyword_scorer")

PROXIMITY_TOP_TERMS = 3


@dataclass(frozen=True)
class _CandidatePoints:
    candidate: Candidate
    raw_kw: float
    per_term: tuple[TermPoints, ...]
    skipped: bool


def _is_skipped(candidate: Candidate) -> bool:
    return candidate.content is None and not candidate.term_hits


def _hits_for(candidate: Candidate, term: str) -> list[TermHit]:
    return dedupe_overlapping_hits(candidate.term_hits.get(term, ()))


def _body_positions(hits: Sequence[TermHit]) -> list[int]:
    return [p for h in hits if h.field == HitField.BODY and h.positions for p in h.positions]


class KeywordScorer:
    def __init__(self, config: KeywordPointsConfig | None = None) -> None:
        self._cfg = config or KeywordPointsConfig()

    def score(
        self,
        terms: Sequence[Term],
        candidates: Sequence[Candidate],
        fused_scores: Mapping[str, float] | None = None,
        exclusivity_fn: ExclusivityFn | None = None,
        features: Mapping[str, MatchFeatures] | None = None,
    ) -> list[KeywordResult]:
        fused_scores = fused_scores or {}
        features = features or {}

        def fused(c: Candidate) -> float:
            return fused_scores.get(c.id, c.vector_score or 0.0)

        if not terms:
            return [
                KeywordResult(
                    id=c.id,
                    raw_kw=0.0,
                    kw_norm=0.0,
                    final_score=fused(c),
                    breakdown=KeywordBreakdown(features=features.get(c.id)),
                )
                for c in candidates
            ]

        points = [self._candidate_points(terms, c) for c in candidates]
        scored = [p for p in points if not p.skipped]

        proximity_bonus = self.proximity_bonus(terms, [p.candidate for p in scored])
        coverage_bonus = self.coverage_bonus(terms)
        exclusivity_mult = self.exclusivity_multiplier(
            terms, [p.candidate for p in scored], exclusivity_fn
        )
        multiplier = proximity_bonus * coverage_bonus * exclusivity_mult

        raw = {p.candidate.id: p.raw_kw * multiplier for p in scored}
        median = float(np.median(list(raw.values()))) if raw else 0.0

        results: list[KeywordResult] = []
        for p in points:
            cand = p.candidate
            if p.skipped:
                raw_kw, kw_norm = 0.0, 0.0
            else:
                raw_kw = raw[cand.id]
                kw_norm = self.normalize(raw_kw, median)
            results.append(
                KeywordResult(
                    id=cand.id,
                    raw_kw=raw_kw,
                    kw_norm=kw_norm,
                    final_score=fused(cand) + self._cfg.lambda_kw * kw_norm,
                    breakdown=KeywordBreakdown(
                        per_term=p.per_term,
                        proximity_bonus=proximity_bonus,
                        coverage_bonus=coverage_bonus,
                        exclusivity_multiplier=exclusivity_mult,
                        median_raw_kw=median,
                        lambda_kw=self._cfg.lambda_kw,
                        features=features.get(cand.id),
                        skipped=p.skipped,
                    ),
                )
            )

        logger.debug(
            "keyword_points_computed",
            terms=[t.text for t in terms],
            candidates=len(candidates),
            skipped=len(points) - len(scored),
            median_raw_kw=round(median, 6),
            proximity_bonus=round(proximity_bonus, 4),
            coverage_bonus=coverage_bonus,
            exclusivity_multiplier=round(exclusivity_mult, 4),
        )
        return results

    def normalize(self, raw_kw: float, median: float) -> float:
        kw_norm = raw_kw / (median + EPSILON)
        return max(0.0, min(kw_norm, self._cfg.clamp_kw_norm))

    def _candidate_points(self, terms: Sequence[Term], candidate: Candidate) -> _CandidatePoints:
        if _is_skipped(candidate):
            return _CandidatePoints(candidate=candidate, raw_kw=0.0, per_term=(), skipped=True)

        cfg = self._cfg
        raw_kw = 0.0
        per_term: list[TermPoints] = []

        for term in terms:
            hits = _hits_for(candidate, term.text)
            body_hits = sum(1 for h in hits if h.field == HitField.BODY)
            sat = 1.0 - math.exp(-cfg.body_sat_c * body_hits)

            best: TermHit | None = None
            for hit in hits:
                if best is None or hit.match.strength > best.match.strength:
                    best = hit

            nudge = 1.0
            body_positions = _body_positions(hits)
            if body_positions and min(body_positions) < cfg.early_pos_tokens:
                nudge = cfg.early_pos_nudge

            decay = cfg.rank_decay ** (term.rank - 1)

            if best is None:
                field_weight, strength = 0.0, 0.0
            else:
                field_weight = getattr(cfg.field_weights, best.field.value)
                strength = best.match.strength

            term_points = (
                term.weight**cfg.idf_gamma * decay * field_weight * strength * sat * nudge
            )
            raw_kw += term_points
            per_term.append(
                TermPoints(
                    term=term.text,
                    rank=term.rank,
                    weight=term.weight,
                    rank_decay=decay,
                    best_field=best.field if best else None,
                    match=best.match if best else None,
                    body_hits=body_hits,
                    saturation=sat,
                    position_nudge=nudge,
                    points=term_points,
                )
            )

        return _CandidatePoints(
            candidate=candidate, raw_kw=raw_kw, per_term=tuple(per_term), skipped=False
        )

    def _candidate_bonus(self, top_words: Sequence[str], candidate: Candidate) -> float:
        known: list[list[int]] = []
        for word in top_words:
            if candidate.token_positions is not None:
                positions = list(candidate.token_positions.get(word, ()))
            else:
                positions = _body_positions(_hits_for(candidate, word))
            if positions:
                known.append(positions)

        if len(known) < 2:
            return 1.0
        span = minimal_span(known)
        if span is None:
            return 1.0
        return 1.0 + self._cfg.proximity_beta * max(0.0, 1.0 - span / self._cfg.prox_win)

    def proximity_bonus(self, terms: Sequence[Term], candidates: Sequence[Candidate]) -> float:
        """Best cross-term closeness among the leading query words, taken over all candidates.

        Phrase terms are split into their words, since positions are tracked per word.
        """
        if len(terms) < 2 or self._cfg.proximity_beta <= 0:
            return 1.0
        top_words = term_words(terms, PROXIMITY_TOP_TERMS)
        return max((self._candidate_bonus(top_words, c) for c in candidates), default=1.0)

    def coverage_bonus(self, terms: Sequence[Term]) -> float:
        if len(terms) >= self._cfg.top_k_coverage:
            return 1.0 + self._cfg.coverage_alpha
        return 1.0

    def exclusivity_multiplier(
        self,
        terms: Sequence[Term],
        candidates: Sequence[Candidate],
        exclusivity_fn: ExclusivityFn | None,
    ) -> float:
        """Strongest dampening any candidate triggers, applied to every candidate.

        Both the candidate's matched terms and the top-K query terms are compared
        word by word, which lines them up with the per-word term groups.
        """
        if exclusivity_fn is None or self._cfg.exclusivity_gamma <= 0:
            return 1.0
        top_words = term_words(terms, self._cfg.top_k_coverage)

        def multiplier(candidate: Candidate) -> float:
            matched = [w for t, hits in candidate.term_hits.items() if hits for w in t.split()]
            penalty = max(0.0, min(1.0, exclusivity_fn(list(dict.fromkeys(matched)), top_words)))
            return 1.0 - self._cfg.exclusivity_gamma * penalty

        return min((multiplier(c) for c in candidates), default=1.0)

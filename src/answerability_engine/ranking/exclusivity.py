"""Exclusivity penalty from the corpus co-occurrence graph.

A candidate is penalized when it matches one query group through a rare term
that almost never appears alongside another query group which the candidate
lacks: it likely talks about a different entity that merely shares vocabulary.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence

from answerability_engine.config.constants import (
    EXCLUSIVITY_HIGH_IDF,
    EXCLUSIVITY_MAX_COOC,
    EXCLUSIVITY_PMI_THRESHOLD,
)
from answerability_engine.models.domain import CorpusStats, TermGroup

ExclusivityFn = Callable[[Sequence[str], Sequence[str]], float]


def _exclusive_terms(
    group1: TermGroup, group2: TermGroup, stats: CorpusStats
) -> list[str]:
    exclusive: list[str] = []
    for term1 in group1.members:
        if stats.idf.get(term1.lower(), 0.0) < EXCLUSIVITY_HIGH_IDF:
            continue
        if any(
            stats.pmi_of(term1, term2) > EXCLUSIVITY_PMI_THRESHOLD
            or stats.pmi_of(term2, term1) > EXCLUSIVITY_PMI_THRESHOLD
            for term2 in group2.members
        ):
            continue
        if sum(stats.cooc_of(term1, term2) for term2 in group2.members) > EXCLUSIVITY_MAX_COOC:
            continue
        exclusive.append(term1)
    return exclusive


def _pair_penalty(
    group1: TermGroup, group2: TermGroup, candidate_terms: set[str], stats: CorpusStats
) -> float:
    has1 = any(m.lower() in candidate_terms for m in group1.members)
    has2 = any(m.lower() in candidate_terms for m in group2.members)
    if not has1 or has2:
        return 0.0
    exclusive = _exclusive_terms(group1, group2, stats)
    return 1.0 if any(t.lower() in candidate_terms for t in exclusive) else 0.0


def exclusivity_penalty(
    candidate_terms: Sequence[str],
    groups: Sequence[TermGroup],
    stats: CorpusStats,
) -> float:
    """Mean penalty over penalized ordered group pairs, in [0, 1]."""
    if len(groups) < 2:
        return 0.0

    terms = {t.lower() for t in candidate_terms}
    penalties = []
    for i, g1 in enumerate(groups):
        for j, g2 in enumerate(groups):
            if i == j:
                continue
            penalty = _pair_penalty(g1, g2, terms, stats)
            if penalty > 0:
                penalties.append(penalty)
    return sum(penalties) / len(penalties) if penalties else 0.0


def make_exclusivity_fn(
    stats: CorpusStats, groups: Sequence[TermGroup]
) -> ExclusivityFn:
    """Bind corpus stats and groups into the scorer's (candidate terms, top terms) callback.

    Only groups labelled by one of the top terms take part.
    """

    def penalty(candidate_terms: Sequence[str], top_terms: Sequence[str]) -> float:
        top = {t.lower() for t in top_terms}
        selected = [g for g in groups if g.label.lower() in top]
        return exclusivity_penalty(candidate_terms, selected, stats)

    return penalty

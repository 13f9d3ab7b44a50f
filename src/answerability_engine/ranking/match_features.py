"""Coverage, proximity and field-boost features for one (query, candidate) pair.

Everything here is pure: candidates and groups are only read, so callers may
evaluate candidates concurrently.
"""

from __future__ import annotations

from bisect import bisect_left
from collections.abc import Mapping, Sequence

from answerability_engine.config.constants import COVERAGE_METADATA_FIELDS
from answerability_engine.keyword_search.tokenizer import token_positions, tokenize
from answerability_engine.models.domain import Candidate, MatchFeatures, TermGroup
from answerability_engine.models.schemas import MatchFeatureConfig


def minimal_span(position_lists: Sequence[Sequence[int]]) -> int | None:
    """Smallest offset span containing one entry from every list.

    Each entry of every list is tried as a pivot; for every other list the
    nearest offset at or after the pivot is taken and the furthest of those
    closes the window. Returns None when any list is empty or no pivot closes.
    """
    if not position_lists or any(len(p) == 0 for p in position_lists):
        return None

    sorted_lists = [sorted(p) for p in position_lists]
    best: int | None = None

    for i, pivots in enumerate(sorted_lists):
        for pivot in pivots:
            max_end = pivot
            closed = True
            for j, others in enumerate(sorted_lists):
                if i == j:
                    continue
                k = bisect_left(others, pivot)
                if k == len(others):
                    closed = False
                    break
                max_end = max(max_end, others[k])
            if closed:
                span = max_end - pivot
                if best is None or span < best:
                    best = span
    return best


def _member_present(member: str, terms: set[str]) -> bool:
    parts = tokenize(member)
    return bool(parts) and all(p in terms for p in parts)


def _group_present(group: TermGroup, terms: set[str]) -> bool:
    return any(_member_present(m, terms) for m in group.members)


def _candidate_terms(candidate: Candidate) -> set[str]:
    terms: set[str] = set()
    if candidate.content:
        terms.update(tokenize(candidate.content))
    for name in COVERAGE_METADATA_FIELDS:
        value = getattr(candidate.fields, name, None)
        if isinstance(value, str):
            terms.update(tokenize(value))
    return terms


def compute_coverage(groups: Sequence[TermGroup], candidate_terms: set[str]) -> float:
    if not groups:
        return 1.0
    covered = sum(1 for g in groups if _group_present(g, candidate_terms))
    return covered / len(groups)


def _group_offsets(group: TermGroup, positions: Mapping[str, Sequence[int]]) -> list[int]:
    offsets: list[int] = []
    for member in group.members:
        parts = tokenize(member)
        if not parts:
            continue
        # Multi-word members are anchored on their first informative word
        offsets.extend(positions.get(parts[0], ()))
    return offsets


def compute_proximity(
    groups: Sequence[TermGroup],
    positions: Mapping[str, Sequence[int]],
    window: int,
) -> float:
    if len(groups) <= 1:
        return 1.0

    offsets = [_group_offsets(g, positions) for g in groups]
    if any(not o for o in offsets):
        return 0.0

    span = minimal_span(offsets)
    if span is None:
        return 0.0
    return 1.0 / (1.0 + span / window)


def compute_field_boost(
    groups: Sequence[TermGroup],
    candidate: Candidate,
    config: MatchFeatureConfig,
) -> float:
    if not groups:
        return 0.0

    boost = 0.0
    for value, weight in (
        (candidate.fields.title, config.title_weight),
        (candidate.fields.header, config.header_weight),
        (candidate.fields.section_path, config.section_path_weight),
    ):
        if not value:
            continue
        field_terms = set(tokenize(value))
        matched = sum(1 for g in groups if _group_present(g, field_terms))
        boost += weight * (matched / len(groups))
    return min(boost, 1.0)


def compute_match_features(
    candidate: Candidate,
    groups: Sequence[TermGroup],
    config: MatchFeatureConfig | None = None,
) -> MatchFeatures:
    config = config or MatchFeatureConfig()
    positions = candidate.token_positions
    if positions is None:
        positions = token_positions(candidate.content or "")

    return MatchFeatures(
        coverage=compute_coverage(groups, _candidate_terms(candidate)),
        proximity=compute_proximity(groups, positions, config.proximity_window),
        field_boost=compute_field_boost(groups, candidate, config),
    )

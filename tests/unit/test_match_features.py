"""Tests for coverage, proximity and field-boost features."""

import pytest

from answerability_engine.models.domain import Candidate, CandidateFields, TermGroup
from answerability_engine.models.schemas import MatchFeatureConfig
from answerability_engine.ranking.match_features import (
    compute_coverage,
    compute_field_boost,
    compute_match_features,
    compute_proximity,
    minimal_span,
)

GROUPS = [TermGroup(("ultimate",)), TermGroup(("wizard", "mage"))]


def test_minimal_span():
    assert minimal_span([[1, 10], [4], [6, 20]]) == 5


def test_minimal_span_missing_list():
    assert minimal_span([[1, 2], []]) is None
    assert minimal_span([]) is None


def test_coverage_no_groups_is_full():
    assert compute_coverage([], {"anything"}) == 1.0


def test_coverage_partial():
    assert compute_coverage(GROUPS, {"ultimate", "rogue"}) == 0.5


def test_coverage_alias_counts():
    assert compute_coverage(GROUPS, {"ultimate", "mage"}) == 1.0


def test_coverage_multiword_member_needs_all_words():
    groups = [TermGroup(("wizard", "spell caster"))]
    assert compute_coverage(groups, {"spell", "caster"}) == 1.0
    assert compute_coverage(groups, {"spell"}) == 0.0


def test_proximity_single_group():
    assert compute_proximity(GROUPS[:1], {}, 40) == 1.0


def test_proximity_missing_group_is_zero():
    assert compute_proximity(GROUPS, {"ultimate": [3]}, 40) == 0.0


def test_proximity_span():
    proximity = compute_proximity(GROUPS, {"ultimate": [3], "mage": [5, 90]}, 40)
    assert proximity == pytest.approx(1.0 / (1.0 + 2 / 40))


def test_field_boost_title():
    candidate = Candidate(id="c", content="", fields=CandidateFields(title="Ultimate Wizard"))
    boost = compute_field_boost(GROUPS, candidate, MatchFeatureConfig())
    assert boost == pytest.approx(0.4)


def test_field_boost_no_groups():
    candidate = Candidate(id="c", fields=CandidateFields(title="Ultimate Wizard"))
    assert compute_field_boost([], candidate, MatchFeatureConfig()) == 0.0


def test_match_features_within_bounds(wizard_candidates):
    for candidate in wizard_candidates:
        features = compute_match_features(candidate, GROUPS)
        assert 0.0 <= features.coverage <= 1.0
        assert 0.0 <= features.proximity <= 1.0
        assert 0.0 <= features.field_boost <= 1.0


def test_match_features_rogue_passage(wizard_candidates):
    features = compute_match_features(wizard_candidates[1], GROUPS)
    assert features.coverage == 0.0
    assert features.proximity == 0.0


def test_match_features_prefer_supplied_positions():
    candidate = Candidate(
        id="c",
        content="ultimate filler wizard",
        token_positions={"ultimate": (0,), "wizard": (40,)},
    )
    features = compute_match_features(candidate, GROUPS, MatchFeatureConfig(proximity_window=40))
    assert features.proximity == pytest.approx(0.5)


def test_match_feature_config_rejects_zero_window():
    with pytest.raises(ValueError):
        MatchFeatureConfig(proximity_window=0)

"""Tests for vector/keyword score fusion."""

import pytest
from pydantic import ValidationError

from answerability_engine.config.settings import Settings
from answerability_engine.models.domain import Candidate
from answerability_engine.models.schemas import FusionConfig, FusionStrategy, NormalizationMode
from answerability_engine.retrieval.fusion import ScoreFusion, fuse
from answerability_engine.retrieval.normalize import minmax, normalize_scores

WEIGHTED = FusionConfig(
    strategy=FusionStrategy.WEIGHTED_AVERAGE,
    vector_weight=0.7,
    keyword_weight=0.3,
    normalization=NormalizationMode.MINMAX,
)
BORDA = FusionConfig(strategy=FusionStrategy.BORDA_RANK, vector_weight=0.7, keyword_weight=0.3, k_param=60)


def _score_of(results, cid):
    return next(r.fused_score for r in results if r.id == cid)


def test_under_ranked_candidate_favors_weighted_average():
    candidates = [
        Candidate(id="top", vector_score=0.9, vector_rank=1, keyword_score=0.8, keyword_rank=1),
        Candidate(id="target", vector_score=0.617, vector_rank=18, keyword_score=0.35, keyword_rank=8),
        Candidate(id="low", vector_score=0.2, vector_rank=40, keyword_score=0.1, keyword_rank=30),
    ]
    weighted = _score_of(fuse(candidates, WEIGHTED), "target")
    borda = _score_of(fuse(candidates, BORDA), "target")

    assert borda == pytest.approx(0.7 / 78 + 0.3 / 68)
    assert weighted > borda
    assert weighted > 0.1


def test_single_candidate_weighted_beats_borda():
    candidate = Candidate(id="target", vector_score=0.617, vector_rank=18, keyword_score=0.35, keyword_rank=8)
    weighted = _score_of(fuse([candidate], WEIGHTED), "target")
    borda = _score_of(fuse([candidate], BORDA), "target")
    assert weighted == pytest.approx(1.0)
    assert weighted > borda


@pytest.mark.parametrize("config", [WEIGHTED, BORDA])
def test_top_on_both_signals_stays_first(config):
    candidates = [
        Candidate(id="other", vector_score=0.7, vector_rank=2, keyword_score=0.6, keyword_rank=2),
        Candidate(id="best", vector_score=0.761, vector_rank=1, keyword_score=0.85, keyword_rank=1),
        Candidate(id="third", vector_score=0.5, vector_rank=3, keyword_score=0.3, keyword_rank=3),
    ]
    results = fuse(candidates, config)
    assert results[0].id == "best"


def test_missing_keyword_side_contributes_zero():
    candidates = [
        Candidate(id="a", vector_score=0.9, keyword_score=0.5),
        Candidate(id="b", vector_score=0.4),
    ]
    results = fuse(candidates, WEIGHTED)
    b = next(r for r in results if r.id == "b")
    assert b.keyword_component == 0.0
    assert b.fused_score == 0.0


def test_missing_vector_score_treated_as_zero():
    candidates = [Candidate(id="a", vector_score=0.9), Candidate(id="b", keyword_score=0.4)]
    results = fuse(candidates, WEIGHTED)
    b = next(r for r in results if r.id == "b")
    assert b.vector_component == 0.0
    assert b.fused_score == pytest.approx(0.3)


def test_borda_uses_list_position_when_rank_missing():
    candidates = [
        Candidate(id="a", vector_score=0.2),
        Candidate(id="b", vector_score=0.9),
    ]
    results = fuse(candidates, BORDA)
    assert results[0].id == "b"
    assert results[0].fused_score == pytest.approx(0.7 / 61)
    assert results[1].fused_score == pytest.approx(0.7 / 62)


def test_ties_broken_by_id():
    candidates = [
        Candidate(id="z", vector_score=0.5, keyword_score=0.5),
        Candidate(id="m", vector_score=0.5, keyword_score=0.5),
    ]
    results = fuse(candidates, WEIGHTED)
    assert [r.id for r in results] == ["m", "z"]


def test_fusion_is_deterministic(wizard_candidates):
    fusion = ScoreFusion(WEIGHTED)
    assert fusion.fuse(wizard_candidates) == fusion.fuse(list(wizard_candidates))


def test_fuse_empty():
    assert fuse([], WEIGHTED) == []


def test_normalization_none_keeps_raw_scores():
    config = FusionConfig(vector_weight=1.0, keyword_weight=0.0, normalization=NormalizationMode.NONE)
    results = fuse([Candidate(id="a", vector_score=0.42)], config)
    assert results[0].fused_score == pytest.approx(0.42)


def test_minmax_degenerate_range():
    assert minmax({"a": 0.4, "b": 0.4}) == {"a": 1.0, "b": 1.0}
    assert minmax({"a": 0.0}) == {"a": 0.0}
    assert minmax({}) == {}


def test_minmax_spreads_to_unit_interval():
    normalized = normalize_scores({"a": 2.0, "b": 4.0, "c": 3.0}, NormalizationMode.MINMAX)
    assert normalized == {"a": 0.0, "b": 1.0, "c": 0.5}


def test_fusion_config_validation():
    with pytest.raises(ValueError):
        FusionConfig(vector_weight=0.0, keyword_weight=0.0)
    with pytest.raises(ValueError):
        FusionConfig(vector_weight=-0.1)
    with pytest.raises(ValueError):
        FusionConfig(k_param=0)


def test_fusion_config_from_settings(settings):
    config = FusionConfig.from_settings(settings)
    assert config.strategy is FusionStrategy.WEIGHTED_AVERAGE
    assert config.normalization is NormalizationMode.MINMAX


def test_settings_parse_fusion_enums():
    settings = Settings(_env_file=None, fusion_strategy="borda_rank", fusion_normalization="none")
    assert settings.fusion_strategy is FusionStrategy.BORDA_RANK
    assert FusionConfig.from_settings(settings).normalization is NormalizationMode.NONE


def test_settings_reject_unknown_fusion_strategy():
    with pytest.raises(ValidationError):
        Settings(_env_file=None, fusion_strategy="max_confidence")

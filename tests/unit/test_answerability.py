"""Tests for ensemble answerability scoring."""

from dataclasses import FrozenInstanceError

import pytest

from answerability_engine.config.profiles import MODERATE, STRICT
from answerability_engine.models.domain import AlgorithmScores, ScoreStatistics
from answerability_engine.models.schemas import AlgorithmWeights
from answerability_engine.scoring.answerability import (
    AnswerabilityScorer,
    algorithm_scores,
    combine,
    ml_feature_score,
    statistical_score,
    threshold_score,
)
from answerability_engine.scoring.reason_codes import ReasonCode

SKEWED_SCORES = [0.42, 0.31, 0.0065, 0.0065, 0.0065]


def _confidence(mean, top, std, count=5, profile=MODERATE):
    stats = ScoreStatistics(mean=mean, max=top, min=0.0, std_dev=std, count=count)
    return combine(algorithm_scores(stats, profile), AlgorithmWeights())


def test_skewed_scores_low_confidence():
    score = AnswerabilityScorer().score(SKEWED_SCORES, MODERATE)
    assert score.statistics.mean == pytest.approx(0.15, abs=0.001)
    assert score.statistics.max == pytest.approx(0.42)
    assert score.statistics.std_dev == pytest.approx(0.18, abs=0.002)
    assert score.confidence < MODERATE.min_confidence
    assert not score.is_answerable
    assert ReasonCode.LOW_CONFIDENCE in score.reasoning


def test_conjunctive_gate_count():
    score = AnswerabilityScorer().score([0.95, 0.93], STRICT)
    assert score.confidence >= STRICT.min_confidence
    assert not score.is_answerable
    assert ReasonCode.TOO_FEW_RESULTS in score.reasoning


def test_all_checks_pass():
    score = AnswerabilityScorer().score([0.9, 0.85, 0.8], MODERATE)
    assert score.is_answerable
    assert score.reasoning.startswith("All answerability checks passed")


def test_empty_scores_not_answerable():
    score = AnswerabilityScorer().score([], MODERATE)
    assert score.confidence == 0.0
    assert not score.is_answerable


@pytest.mark.parametrize("mean", [0.1, 0.3, 0.5, 0.7, 0.9])
def test_confidence_monotone_in_mean(mean):
    assert _confidence(mean + 0.05, 0.95, 0.2) >= _confidence(mean, 0.95, 0.2)


@pytest.mark.parametrize("top", [0.1, 0.3, 0.5, 0.7, 0.9])
def test_confidence_monotone_in_top(top):
    assert _confidence(0.1, top + 0.05, 0.2) >= _confidence(0.1, top, 0.2)


@pytest.mark.parametrize("std", [0.0, 0.2, 0.4, 0.6, 0.9])
def test_confidence_non_increasing_in_std(std):
    assert _confidence(0.5, 0.8, std + 0.1) <= _confidence(0.5, 0.8, std)


def test_sub_scores_bounded():
    stats = ScoreStatistics(mean=3.0, max=5.0, std_dev=2.0, count=50)
    assert 0.0 <= statistical_score(stats) <= 1.0
    assert threshold_score(stats, MODERATE) == 1.0
    assert 0.0 <= ml_feature_score(stats) <= 1.0


def test_missing_reranker_weight_is_renormalized():
    scores = AlgorithmScores(statistical=0.5, threshold=0.5, ml_features=0.5)
    assert combine(scores, AlgorithmWeights()) == pytest.approx(0.5)


def test_reranker_confidence_counts_when_present():
    without = AlgorithmScores(statistical=0.5, threshold=0.5, ml_features=0.5)
    with_rerank = AlgorithmScores(statistical=0.5, threshold=0.5, ml_features=0.5, reranker_confidence=1.0)
    assert combine(with_rerank, AlgorithmWeights()) == pytest.approx(0.55)
    assert combine(with_rerank, AlgorithmWeights()) > combine(without, AlgorithmWeights())


def test_score_is_immutable():
    score = AnswerabilityScorer().score([0.9, 0.85, 0.8], MODERATE)
    with pytest.raises(FrozenInstanceError):
        score.is_answerable = False

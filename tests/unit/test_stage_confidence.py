"""Tests for per-stage confidence and degradation alerts."""

import pytest

from answerability_engine.models.domain import Candidate, FusionResult, StageConfidence
from answerability_engine.scoring.stage_confidence import (
    detect_degradation,
    fusion_stage,
    keyword_stage,
    track_stages,
    vector_stage,
)


def test_vector_stage_confidence():
    stage = vector_stage([0.8, 0.8])
    # 0.6 * top + 0.3 * mean + 0.1 * consistency
    assert stage.confidence == pytest.approx(0.48 + 0.24 + 0.1)
    assert stage.result_count == 2
    assert stage.std_dev == 0.0


def test_keyword_stage_halves_top_score():
    stage = keyword_stage([1.0, 1.0])
    assert stage.confidence == pytest.approx(0.25 + 0.3 + 0.2)


def test_empty_stage():
    stage = vector_stage([])
    assert stage.confidence == 0.0
    assert stage.result_count == 0


def test_fusion_scaled_by_vector_preservation():
    vector = vector_stage([0.8, 0.8])
    stage = fusion_stage([0.4], [0.8, 0.8], vector)
    assert stage.quality == pytest.approx(0.5)
    assert stage.confidence == pytest.approx((0.16 + 0.12 + 0.1) * 0.5)


def test_fusion_preservation_ignored_for_weak_vector_stage():
    vector = StageConfidence(stage="vector", confidence=0.6)
    stage = fusion_stage([0.4], [0.8], vector)
    assert stage.quality == 1.0


def test_vector_to_fusion_drop_alerts():
    stages = {
        "vector": StageConfidence(stage="vector", confidence=0.8),
        "fusion": StageConfidence(stage="fusion", confidence=0.2),
    }
    [alert] = detect_degradation(stages)
    assert alert.stage == "fusion"
    assert alert.severity == pytest.approx(0.75)
    assert "75.0%" in alert.description


def test_no_alert_below_minimum_confidence():
    stages = {
        "vector": StageConfidence(stage="vector", confidence=0.4),
        "fusion": StageConfidence(stage="fusion", confidence=0.1),
    }
    assert detect_degradation(stages) == []


def test_reranker_drop_alerts():
    stages = {
        "vector": StageConfidence(stage="vector", confidence=0.8),
        "fusion": StageConfidence(stage="fusion", confidence=0.8),
        "reranking": StageConfidence(stage="reranking", confidence=0.4),
    }
    [alert] = detect_degradation(stages)
    assert alert.stage == "reranking"
    assert alert.severity == pytest.approx(0.5)


def test_track_stages_reports_present_signals():
    candidates = [
        Candidate(id="a", vector_score=0.9, reranker_score=0.7),
        Candidate(id="b", vector_score=0.5),
    ]
    fused = [FusionResult(id="a", fused_score=0.9), FusionResult(id="b", fused_score=0.5)]
    stages = track_stages(candidates, fused)
    assert set(stages) == {"vector", "fusion", "reranking"}
    assert stages["reranking"].result_count == 1

"""Tests for threshold profiles and the tenant configuration registry."""

import pytest
from pydantic import ValidationError

from answerability_engine.config.profiles import (
    MODERATE,
    PERMISSIVE,
    STRICT,
    THRESHOLD_PROFILES,
    profile_for_threshold,
)
from answerability_engine.config import tenants
from answerability_engine.config.settings import Settings
from answerability_engine.config.tenants import (
    GuardrailConfigRegistry,
    build_tenant_config,
)
from answerability_engine.exceptions import ConfigurationError
from answerability_engine.models.schemas import AlgorithmWeights, FallbackConfig


def test_profiles_enumerated():
    assert THRESHOLD_PROFILES["strict"] == STRICT
    assert (MODERATE.min_confidence, MODERATE.min_top_score, MODERATE.min_mean_score) == (0.6, 0.5, 0.3)
    assert PERMISSIVE.min_result_count == 1


def test_profile_for_low_threshold_is_loose():
    profile = profile_for_threshold(0.05)
    assert profile.tier == "custom"
    assert profile.min_result_count == 1
    assert profile.max_std_dev == 1.0


def test_profile_for_threshold_scales_permissive():
    profile = profile_for_threshold(0.6)
    assert profile.min_confidence == pytest.approx(0.6)
    assert profile.min_top_score == pytest.approx(0.45)
    assert profile.min_mean_score == pytest.approx(0.3)


def test_unknown_tenant_reads_default(settings):
    registry = GuardrailConfigRegistry(settings)
    config = registry.get("acme")
    assert config.tenant_id == "acme"
    assert config.threshold == registry.get().threshold


def test_seeded_presets(settings):
    registry = GuardrailConfigRegistry(settings)
    assert registry.get("enterprise").bypass_enabled
    assert registry.get("enterprise").threshold == STRICT
    assert registry.get("startup").threshold == PERMISSIVE
    assert {c.tenant_id for c in registry.list_configs()} == {"default", "enterprise", "startup"}


def test_update_and_reset(settings):
    registry = GuardrailConfigRegistry(settings, seed_presets=False)
    registry.update(build_tenant_config(tenant_id="acme", threshold=STRICT))
    assert registry.get("acme").threshold == STRICT

    registry.reset("acme")
    assert registry.get("acme").threshold == registry.get().threshold


def test_weights_outside_tolerance_rejected():
    with pytest.raises(ConfigurationError):
        build_tenant_config(
            tenant_id="acme",
            threshold=MODERATE,
            algorithm_weights=AlgorithmWeights(
                statistical=0.1, threshold=0.1, ml_features=0.1, reranker_confidence=0.1
            ),
        )


def test_update_revalidates_copied_config(settings):
    registry = GuardrailConfigRegistry(settings)
    bad = registry.get().model_copy(
        update={"algorithm_weights": AlgorithmWeights(statistical=1.0, threshold=1.0)}
    )
    with pytest.raises(ConfigurationError):
        registry.update(bad)


def test_custom_threshold_validation():
    with pytest.raises(ConfigurationError):
        GuardrailConfigRegistry.custom_threshold(
            min_confidence=1.5, min_top_score=0.5, min_mean_score=0.3, max_std_dev=0.4, min_result_count=2
        )


def test_fallback_bounds():
    with pytest.raises(ValidationError):
        FallbackConfig(max_suggestions=11)
    with pytest.raises(ValidationError):
        FallbackConfig(suggestion_threshold=1.5)


def test_default_profile_follows_settings():
    registry = GuardrailConfigRegistry(Settings(_env_file=None, answerability_threshold=0.05))
    assert registry.get().threshold.min_result_count == 1
    assert registry.get().threshold.min_top_score == pytest.approx(0.01)


def test_threshold_changes_are_audited(settings, monkeypatch):
    calls = []
    monkeypatch.setattr(tenants, "log_threshold_update", lambda *args: calls.append(args))
    registry = GuardrailConfigRegistry(settings, seed_presets=False)

    assert registry.update(build_tenant_config(tenant_id="acme", threshold=STRICT), "ops") is None
    previous = registry.update(build_tenant_config(tenant_id="acme", threshold=PERMISSIVE))
    assert previous.threshold == STRICT
    # Same threshold, only the bypass flag changes
    registry.update(build_tenant_config(tenant_id="acme", threshold=PERMISSIVE, bypass_enabled=True))

    assert [(c[0], c[1] and c[1]["tier"], c[2]["tier"], c[3]) for c in calls] == [
        ("acme", None, "strict", "ops"),
        ("acme", "strict", "permissive", "system"),
    ]

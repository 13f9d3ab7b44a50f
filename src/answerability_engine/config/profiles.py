"""Threshold tiers, ensemble weights and refusal templates, enumerated in one place."""

from __future__ import annotations

from types import MappingProxyType

from answerability_engine.models.schemas import (
    AlgorithmWeights,
    IdkTemplate,
    ThresholdProfile,
)
from answerability_engine.scoring.reason_codes import ReasonCode

STRICT = ThresholdProfile(
    tier="strict",
    min_confidence=0.8,
    min_top_score=0.7,
    min_mean_score=0.5,
    max_std_dev=0.3,
    min_result_count=3,
)

MODERATE = ThresholdProfile(
    tier="moderate",
    min_confidence=0.6,
    min_top_score=0.5,
    min_mean_score=0.3,
    max_std_dev=0.4,
    min_result_count=2,
)

PERMISSIVE = ThresholdProfile(
    tier="permissive",
    min_confidence=0.4,
    min_top_score=0.3,
    min_mean_score=0.2,
    max_std_dev=0.5,
    min_result_count=1,
)

THRESHOLD_PROFILES = MappingProxyType(
    {"strict": STRICT, "moderate": MODERATE, "permissive": PERMISSIVE}
)

DEFAULT_ALGORITHM_WEIGHTS = AlgorithmWeights(
    statistical=0.4, threshold=0.3, ml_features=0.2, reranker_confidence=0.1
)

DEFAULT_IDK_TEMPLATES: tuple[IdkTemplate, ...] = (
    IdkTemplate(
        id="insufficient_confidence",
        reason_code=ReasonCode.LOW_CONFIDENCE,
        template=(
            "I don't have enough confidence in the available information "
            "to provide a reliable answer to your question."
        ),
    ),
    IdkTemplate(
        id="no_relevant_results",
        reason_code=ReasonCode.NO_RELEVANT_DOCS,
        template="I couldn't find relevant information in the knowledge base to answer your question.",
    ),
    IdkTemplate(
        id="ambiguous_query",
        reason_code=ReasonCode.AMBIGUOUS_QUERY,
        template=(
            "Your question is ambiguous or too broad. "
            "Could you please provide more specific details?"
        ),
        include_suggestions=False,
    ),
    IdkTemplate(
        id="insufficient_evidence",
        reason_code=ReasonCode.INSUFFICIENT_EVIDENCE,
        template="I don't know. The retrieved documents don't contain enough evidence to answer reliably.",
    ),
    IdkTemplate(
        id="outside_domain",
        reason_code=ReasonCode.OUTSIDE_DOMAIN,
        template="This question appears to be outside the scope of the available knowledge base.",
        include_suggestions=False,
    ),
)


def custom_profile(
    min_confidence: float,
    min_top_score: float,
    min_mean_score: float,
    max_std_dev: float,
    min_result_count: int,
) -> ThresholdProfile:
    return ThresholdProfile(
        tier="custom",
        min_confidence=min_confidence,
        min_top_score=min_top_score,
        min_mean_score=min_mean_score,
        max_std_dev=max_std_dev,
        min_result_count=min_result_count,
    )


def profile_for_threshold(threshold: float) -> ThresholdProfile:
    """Derive a custom profile from a single confidence threshold.

    Very low thresholds (<= 0.1) produce a loose profile that only requires one
    result. Higher values scale the permissive tier's score floors by
    ``threshold / 0.4``. A threshold of exactly zero is lifted to 0.001 so that
    an empty result set can never pass.
    """
    effective = max(threshold, 0.001)
    if effective <= 0.1:
        return custom_profile(
            min_confidence=effective,
            min_top_score=0.01,
            min_mean_score=0.01,
            max_std_dev=1.0,
            min_result_count=1,
        )

    scale = effective / PERMISSIVE.min_confidence
    return custom_profile(
        min_confidence=min(effective, 1.0),
        min_top_score=min(PERMISSIVE.min_top_score * scale, 1.0),
        min_mean_score=min(PERMISSIVE.min_mean_score * scale, 1.0),
        max_std_dev=PERMISSIVE.max_std_dev,
        min_result_count=PERMISSIVE.min_result_count,
    )

"""Pydantic configuration structs. Malformed values are rejected at construction."""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING, Literal

from pydantic import BaseModel, Field, model_validator

if TYPE_CHECKING:
    from answerability_engine.config.settings import Settings


class FusionStrategy(str, Enum):
    WEIGHTED_AVERAGE = "weighted_average"
    BORDA_RANK = "borda_rank"


class NormalizationMode(str, Enum):
    NONE = "none"
    MINMAX = "minmax"


class FusionConfig(BaseModel, frozen=True):
    strategy: FusionStrategy = FusionStrategy.WEIGHTED_AVERAGE
    vector_weight: float = Field(0.7, ge=0.0)
    keyword_weight: float = Field(0.3, ge=0.0)
    k_param: int = Field(60, gt=0)
    normalization: NormalizationMode = NormalizationMode.MINMAX

    @model_validator(mode="after")
    def _weights_not_both_zero(self) -> FusionConfig:
        if self.vector_weight == 0 and self.keyword_weight == 0:
            raise ValueError("vector_weight and keyword_weight cannot both be zero")
        return self

    @classmethod
    def from_settings(cls, settings: Settings) -> FusionConfig:
        return cls(
            strategy=settings.fusion_strategy,
            vector_weight=settings.fusion_vector_weight,
            keyword_weight=settings.fusion_keyword_weight,
            k_param=settings.fusion_k_param,
            normalization=settings.fusion_normalization,
        )


class FieldWeights(BaseModel, frozen=True):
    body: float = Field(1.0, ge=0.0)
    title: float = Field(2.0, ge=0.0)
    header: float = Field(1.5, ge=0.0)
    section_path: float = Field(1.2, ge=0.0)
    doc_id: float = Field(0.8, ge=0.0)


class KeywordPointsConfig(BaseModel, frozen=True):
    field_weights: FieldWeights = Field(default_factory=FieldWeights)
    idf_gamma: float = Field(1.0, ge=0.0)
    rank_decay: float = Field(0.85, gt=0.0, le=1.0)
    body_sat_c: float = Field(0.6, gt=0.0)
    early_pos_tokens: int = Field(50, ge=0)
    early_pos_nudge: float = Field(1.1, gt=0.0)
    prox_win: int = Field(30, gt=0)
    proximity_beta: float = Field(0.25, ge=0.0)
    coverage_alpha: float = Field(0.1, ge=0.0)
    exclusivity_gamma: float = Field(0.3, ge=0.0, le=1.0)
    lambda_kw: float = Field(0.1, ge=0.0)
    clamp_kw_norm: float = Field(2.0, gt=0.0)
    top_k_coverage: int = Field(2, ge=1)

    @classmethod
    def from_settings(cls, settings: Settings) -> KeywordPointsConfig:
        return cls(
            field_weights=FieldWeights(
                body=settings.kw_weight_body,
                title=settings.kw_weight_title,
                header=settings.kw_weight_header,
                section_path=settings.kw_weight_section_path,
                doc_id=settings.kw_weight_doc_id,
            ),
            idf_gamma=settings.kw_idf_gamma,
            rank_decay=settings.kw_rank_decay,
            body_sat_c=settings.kw_body_sat_c,
            early_pos_tokens=settings.kw_early_pos_tokens,
            early_pos_nudge=settings.kw_early_pos_nudge,
            prox_win=settings.kw_prox_win,
            proximity_beta=settings.kw_proximity_beta,
            coverage_alpha=settings.kw_coverage_alpha,
            exclusivity_gamma=settings.kw_exclusivity_gamma,
            lambda_kw=settings.kw_lambda,
            clamp_kw_norm=settings.kw_clamp_norm,
            top_k_coverage=settings.kw_top_k_coverage,
        )


class MatchFeatureConfig(BaseModel, frozen=True):
    proximity_window: int = Field(40, gt=0)
    title_weight: float = Field(0.4, ge=0.0)
    header_weight: float = Field(0.3, ge=0.0)
    section_path_weight: float = Field(0.2, ge=0.0)

    @classmethod
    def from_settings(cls, settings: Settings) -> MatchFeatureConfig:
        return cls(
            proximity_window=settings.proximity_window,
            title_weight=settings.field_boost_title,
            header_weight=settings.field_boost_header,
            section_path_weight=settings.field_boost_section_path,
        )


class ThresholdProfile(BaseModel, frozen=True):
    tier: Literal["strict", "moderate", "permissive", "custom"]
    min_confidence: float = Field(ge=0.0, le=1.0)
    min_top_score: float = Field(ge=0.0, le=1.0)
    min_mean_score: float = Field(ge=0.0, le=1.0)
    max_std_dev: float = Field(ge=0.0, le=1.0)
    min_result_count: int = Field(ge=0, le=100)


class AlgorithmWeights(BaseModel, frozen=True):
    """Ensemble weights. Intended to sum to 1.0; the registry enforces a tolerance."""

    statistical: float = Field(0.4, ge=0.0)
    threshold: float = Field(0.3, ge=0.0)
    ml_features: float = Field(0.2, ge=0.0)
    reranker_confidence: float = Field(0.1, ge=0.0)

    @property
    def total(self) -> float:
        return self.statistical + self.threshold + self.ml_features + self.reranker_confidence


class IdkTemplate(BaseModel, frozen=True):
    id: str = Field(min_length=1)
    reason_code: str = Field(min_length=1)
    template: str = Field(min_length=1)
    include_suggestions: bool = True


class FallbackConfig(BaseModel, frozen=True):
    enabled: bool = True
    max_suggestions: int = Field(3, ge=0, le=10)
    suggestion_threshold: float = Field(0.3, ge=0.0, le=1.0)

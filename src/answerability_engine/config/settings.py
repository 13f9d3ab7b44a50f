"""Central configuration via Pydantic Settings. All values driven by env vars."""

from __future__ import annotations

from pydantic_settings import BaseSettings

from answerability_engine.models.schemas import FusionStrategy, NormalizationMode


class Settings(BaseSettings):
    # Logging
    log_level: str = "INFO"
    json_logs: bool = True

    # Match features
    proximity_window: int = 40
    field_boost_title: float = 0.4
    field_boost_header: float = 0.3
    field_boost_section_path: float = 0.2

    # Keyword points
    kw_weight_body: float = 1.0
    kw_weight_title: float = 2.0
    kw_weight_header: float = 1.5
    kw_weight_section_path: float = 1.2
    kw_weight_doc_id: float = 0.8
    kw_idf_gamma: float = 1.0
    kw_rank_decay: float = 0.85
    kw_body_sat_c: float = 0.6
    kw_early_pos_tokens: int = 50
    kw_early_pos_nudge: float = 1.1
    kw_prox_win: int = 30
    kw_proximity_beta: float = 0.25
    kw_coverage_alpha: float = 0.1
    kw_exclusivity_gamma: float = 0.3
    kw_lambda: float = 0.1
    kw_clamp_norm: float = 2.0
    kw_top_k_coverage: int = 2

    # Fusion
    fusion_strategy: FusionStrategy = FusionStrategy.WEIGHTED_AVERAGE
    fusion_vector_weight: float = 0.7
    fusion_keyword_weight: float = 0.3
    fusion_k_param: int = 60
    fusion_normalization: NormalizationMode = NormalizationMode.MINMAX

    # Answerability guardrail
    answerability_threshold: float = 0.6
    guardrail_enabled: bool = True
    guardrail_max_suggestions: int = 3
    guardrail_suggestion_threshold: float = 0.3

    # Per-candidate fan-out (0 or 1 runs inline)
    feature_workers: int = 0

    model_config = {"env_file": ".env", "env_prefix": "RAG_"}

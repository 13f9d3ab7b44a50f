"""Per-tenant guardrail configuration and an in-memory registry."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field, ValidationError, model_validator

from answerability_engine.config.profiles import (
    DEFAULT_ALGORITHM_WEIGHTS,
    DEFAULT_IDK_TEMPLATES,
    PERMISSIVE,
    STRICT,
    THRESHOLD_PROFILES,
    custom_profile,
    profile_for_threshold,
)
from answerability_engine.config.settings import Settings
from answerability_engine.exceptions import ConfigurationError
from answerability_engine.models.schemas import (
    AlgorithmWeights,
    FallbackConfig,
    IdkTemplate,
    ThresholdProfile,
)
from answerability_engine.observability.logger import get_logger
from answerability_engine.verification.audit import log_threshold_update

logger = get_logger("tenants")

DEFAULT_TENANT = "default"
WEIGHT_TOTAL_RANGE = (0.8, 1.2)


class TenantGuardrailConfig(BaseModel, frozen=True):
    tenant_id: str = Field(min_length=1)
    enabled: bool = True
    threshold: ThresholdProfile
    algorithm_weights: AlgorithmWeights = DEFAULT_ALGORITHM_WEIGHTS
    idk_templates: tuple[IdkTemplate, ...] = DEFAULT_IDK_TEMPLATES
    fallback: FallbackConfig = Field(default_factory=FallbackConfig)
    bypass_enabled: bool = False

    @model_validator(mode="after")
    def _weights_near_unit_total(self) -> TenantGuardrailConfig:
        low, high = WEIGHT_TOTAL_RANGE
        total = self.algorithm_weights.total
        if not low <= total <= high:
            raise ValueError(f"algorithm weights sum to {total:.3f}, expected {low}..{high}")
        return self


def build_tenant_config(**fields: Any) -> TenantGuardrailConfig:
    """Construct a tenant config, surfacing validation failures as ConfigurationError."""
    try:
        return TenantGuardrailConfig(**fields)
    except ValidationError as e:
        raise ConfigurationError(
            f"Invalid guardrail configuration for tenant {fields.get('tenant_id')!r}: {e}"
        ) from e


def default_tenant_config(tenant_id: str, settings: Settings | None = None) -> TenantGuardrailConfig:
    settings = settings or Settings()
    return build_tenant_config(
        tenant_id=tenant_id,
        enabled=settings.guardrail_enabled,
        threshold=profile_for_threshold(settings.answerability_threshold),
        fallback=FallbackConfig(
            max_suggestions=settings.guardrail_max_suggestions,
            suggestion_threshold=settings.guardrail_suggestion_threshold,
        ),
    )


class GuardrailConfigRegistry:
    """Tenant id -> guardrail config. Unknown tenants read the default config."""

    def __init__(self, settings: Settings | None = None, seed_presets: bool = True) -> None:
        self._settings = settings or Settings()
        self._configs: dict[str, TenantGuardrailConfig] = {}
        self._configs[DEFAULT_TENANT] = default_tenant_config(DEFAULT_TENANT, self._settings)
        if seed_presets:
            base = self._configs[DEFAULT_TENANT]
            self._configs["enterprise"] = base.model_copy(
                update={"tenant_id": "enterprise", "threshold": STRICT, "bypass_enabled": True}
            )
            self._configs["startup"] = base.model_copy(
                update={"tenant_id": "startup", "threshold": PERMISSIVE}
            )

    def get(self, tenant_id: str | None = None) -> TenantGuardrailConfig:
        tenant_id = tenant_id or DEFAULT_TENANT
        config = self._configs.get(tenant_id)
        if config is not None:
            return config
        return self._configs[DEFAULT_TENANT].model_copy(update={"tenant_id": tenant_id})

    def update(
        self, config: TenantGuardrailConfig, updated_by: str = "system"
    ) -> TenantGuardrailConfig | None:
        """Store a revalidated config and return the one it replaced, if any."""
        validated = self.validate(config)
        previous = self._configs.get(validated.tenant_id)
        self._configs[validated.tenant_id] = validated
        logger.info(
            "tenant_config_updated",
            tenant_id=validated.tenant_id,
            tier=validated.threshold.tier,
            enabled=validated.enabled,
            bypass_enabled=validated.bypass_enabled,
        )
        self._audit_threshold(validated.tenant_id, previous, validated, updated_by)
        return previous

    def reset(self, tenant_id: str, updated_by: str = "system") -> TenantGuardrailConfig:
        config = default_tenant_config(tenant_id, self._settings)
        previous = self._configs.get(tenant_id)
        self._configs[tenant_id] = config
        logger.info("tenant_config_reset", tenant_id=tenant_id)
        self._audit_threshold(tenant_id, previous, config, updated_by)
        return config

    @staticmethod
    def _audit_threshold(
        tenant_id: str,
        previous: TenantGuardrailConfig | None,
        current: TenantGuardrailConfig,
        updated_by: str,
    ) -> None:
        if previous is not None and previous.threshold == current.threshold:
            return
        log_threshold_update(
            tenant_id,
            previous.threshold.model_dump() if previous else None,
            current.threshold.model_dump(),
            updated_by,
        )

    def list_configs(self) -> list[TenantGuardrailConfig]:
        return list(self._configs.values())

    @staticmethod
    def validate(config: TenantGuardrailConfig) -> TenantGuardrailConfig:
        """Re-run validation; model_copy(update=...) skips it."""
        return build_tenant_config(**config.model_dump())

    @staticmethod
    def presets() -> dict[str, ThresholdProfile]:
        return dict(THRESHOLD_PROFILES)

    @staticmethod
    def custom_threshold(**values: Any) -> ThresholdProfile:
        try:
            return custom_profile(**values)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid custom threshold: {e}") from e

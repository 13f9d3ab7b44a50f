"""Refusal ("I don't know") responses: template selection and clarification suggestions."""

from __future__ import annotations

from collections.abc import Sequence

from answerability_engine.config.constants import (
    GENERIC_SUGGESTION,
    SUGGESTION_MAX_CHARS,
    SUGGESTION_MIN_CHARS,
)
from answerability_engine.models.domain import AnswerabilityScore, IdkResponse, RankedCandidate
from answerability_engine.models.schemas import FallbackConfig, IdkTemplate, ThresholdProfile
from answerability_engine.scoring.reason_codes import ReasonCode

_LAST_RESORT = IdkTemplate(
    id="insufficient_evidence",
    reason_code=ReasonCode.INSUFFICIENT_EVIDENCE,
    template="I don't know. The retrieved documents don't contain enough evidence to answer reliably.",
)


def select_reason(score: AnswerabilityScore, profile: ThresholdProfile) -> str:
    """Most specific failing reason, checked in order of specificity."""
    if score.statistics.count == 0:
        return ReasonCode.NO_RELEVANT_DOCS
    if score.confidence < profile.min_confidence:
        return ReasonCode.LOW_CONFIDENCE
    if score.statistics.std_dev > profile.max_std_dev:
        return ReasonCode.AMBIGUOUS_QUERY
    return ReasonCode.INSUFFICIENT_EVIDENCE


def find_template(templates: Sequence[IdkTemplate], reason_code: str) -> IdkTemplate:
    for template in templates:
        if template.reason_code == reason_code:
            return template
    for template in templates:
        if template.reason_code == ReasonCode.INSUFFICIENT_EVIDENCE:
            return template
    return templates[0] if templates else _LAST_RESORT


def _first_sentence(content: str | None) -> str | None:
    if not content:
        return None
    sentence = content.split(".")[0].strip()
    if SUGGESTION_MIN_CHARS < len(sentence) < SUGGESTION_MAX_CHARS:
        return sentence
    return None


def build_suggestions(
    results: Sequence[RankedCandidate], fallback: FallbackConfig
) -> list[str]:
    """Clarification prompts drawn from the strongest results, deduplicated in order."""
    if not fallback.enabled or not results:
        return []

    strong = [r for r in results if r.score >= fallback.suggestion_threshold]
    suggestions: list[str] = []
    for r in strong[: fallback.max_suggestions]:
        sentence = _first_sentence(r.candidate.content)
        suggestion = f'Try asking about: "{sentence}..."' if sentence else GENERIC_SUGGESTION
        if suggestion not in suggestions:
            suggestions.append(suggestion)
    return suggestions


def build_idk_response(
    score: AnswerabilityScore,
    profile: ThresholdProfile,
    templates: Sequence[IdkTemplate],
    fallback: FallbackConfig,
    results: Sequence[RankedCandidate],
) -> IdkResponse:
    template = find_template(templates, select_reason(score, profile))
    suggestions = build_suggestions(results, fallback) if template.include_suggestions else []
    return IdkResponse(
        message=template.template,
        reason_code=template.reason_code,
        suggestions=suggestions,
        confidence_level=score.confidence,
    )

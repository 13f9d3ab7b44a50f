"""Machine-readable reason codes attached to refusals and audit records."""

from __future__ import annotations


class ReasonCode:
    NO_RELEVANT_DOCS = "NO_RELEVANT_DOCS"
    LOW_CONFIDENCE = "LOW_CONFIDENCE"
    AMBIGUOUS_QUERY = "AMBIGUOUS_QUERY"
    INSUFFICIENT_EVIDENCE = "INSUFFICIENT_EVIDENCE"
    OUTSIDE_DOMAIN = "OUTSIDE_DOMAIN"

    # Individual gate failures, reported in reasoning text
    LOW_TOP_SCORE = "LOW_TOP_SCORE"
    LOW_MEAN_SCORE = "LOW_MEAN_SCORE"
    HIGH_VARIANCE = "HIGH_VARIANCE"
    TOO_FEW_RESULTS = "TOO_FEW_RESULTS"


class DecisionRationale:
    ANSWERABLE = "ANSWERABLE"
    NOT_ANSWERABLE = "NOT_ANSWERABLE"
    BYPASS_ENABLED = "BYPASS_ENABLED"
    GUARDRAIL_DISABLED = "GUARDRAIL_DISABLED"


class DecisionType:
    """Audit-facing outcome of a guardrail evaluation."""

    ANSWERABLE = "answerable"
    NOT_ANSWERABLE = "not_answerable"
    BYPASSED = "bypassed"
    DISABLED = "disabled"

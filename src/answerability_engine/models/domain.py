"""Core domain objects used throughout the system."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from types import MappingProxyType
from typing import TYPE_CHECKING

from answerability_engine.config.constants import DEFAULT_IDF

if TYPE_CHECKING:
    from answerability_engine.models.schemas import ThresholdProfile


class MatchStrength(str, Enum):
    EXACT = "exact"
    LEMMA = "lemma"
    FUZZY = "fuzzy"

    @property
    def strength(self) -> float:
        match self:
            case MatchStrength.EXACT:
                return 1.0
            case MatchStrength.LEMMA:
                return 0.7
            case MatchStrength.FUZZY:
                return 0.4


class HitField(str, Enum):
    BODY = "body"
    TITLE = "title"
    HEADER = "header"
    SECTION_PATH = "section_path"
    DOC_ID = "doc_id"


@dataclass(frozen=True)
class Term:
    text: str
    rank: int  # 1-based
    weight: float
    is_phrase: bool = False


@dataclass(frozen=True)
class TermGroup:
    members: tuple[str, ...]

    @property
    def label(self) -> str:
        return self.members[0] if self.members else ""


def _freeze_nested(data: Mapping[str, Mapping[str, float]]) -> Mapping[str, Mapping[str, float]]:
    return MappingProxyType({k: MappingProxyType(dict(v)) for k, v in data.items()})


@dataclass(frozen=True)
class CorpusStats:
    """Read-only corpus statistics shared by reference across a query."""

    idf: Mapping[str, float] = field(default_factory=lambda: MappingProxyType({}))
    cooc: Mapping[str, Mapping[str, float]] = field(default_factory=lambda: MappingProxyType({}))
    pmi: Mapping[str, Mapping[str, float]] = field(default_factory=lambda: MappingProxyType({}))
    total_docs: int = 0
    total_tokens: int = 0

    @classmethod
    def from_dicts(
        cls,
        idf: Mapping[str, float] | None = None,
        cooc: Mapping[str, Mapping[str, float]] | None = None,
        pmi: Mapping[str, Mapping[str, float]] | None = None,
        total_docs: int = 0,
        total_tokens: int = 0,
    ) -> CorpusStats:
        return cls(
            idf=MappingProxyType({k.lower(): float(v) for k, v in (idf or {}).items()}),
            cooc=_freeze_nested(cooc or {}),
            pmi=_freeze_nested(pmi or {}),
            total_docs=total_docs,
            total_tokens=total_tokens,
        )

    def idf_of(self, term: str) -> float:
        return self.idf.get(term.lower(), DEFAULT_IDF)

    def cooc_of(self, t1: str, t2: str) -> float:
        return self.cooc.get(t1.lower(), {}).get(t2.lower(), 0.0)

    def pmi_of(self, t1: str, t2: str) -> float:
        return self.pmi.get(t1.lower(), {}).get(t2.lower(), 0.0)


@dataclass(frozen=True)
class QueryTerms:
    phrases: list[str]
    tokens: list[str]


@dataclass(frozen=True)
class TermHit:
    field: HitField
    match: MatchStrength
    positions: tuple[int, ...] | None = None
    span: tuple[int, int] | None = None  # character offsets within the field


@dataclass(frozen=True)
class CandidateFields:
    title: str | None = None
    header: str | None = None
    section_path: str | None = None
    doc_id: str | None = None
    summary: str | None = None


@dataclass(frozen=True)
class Candidate:
    id: str
    content: str | None = None
    fields: CandidateFields = field(default_factory=CandidateFields)
    token_positions: Mapping[str, tuple[int, ...]] | None = None
    vector_score: float | None = None
    vector_rank: int | None = None
    keyword_score: float | None = None
    keyword_rank: int | None = None
    reranker_score: float | None = None
    term_hits: Mapping[str, tuple[TermHit, ...]] = field(default_factory=dict)


@dataclass(frozen=True)
class MatchFeatures:
    coverage: float
    proximity: float
    field_boost: float


@dataclass(frozen=True)
class TermPoints:
    term: str
    rank: int
    weight: float
    rank_decay: float
    best_field: HitField | None
    match: MatchStrength | None
    body_hits: int
    saturation: float
    position_nudge: float
    points: float


@dataclass(frozen=True)
class KeywordBreakdown:
    per_term: tuple[TermPoints, ...] = ()
    proximity_bonus: float = 1.0
    coverage_bonus: float = 1.0
    exclusivity_multiplier: float = 1.0
    median_raw_kw: float = 0.0
    lambda_kw: float = 0.0
    features: MatchFeatures | None = None
    skipped: bool = False


@dataclass(frozen=True)
class KeywordResult:
    id: str
    raw_kw: float
    kw_norm: float
    final_score: float
    breakdown: KeywordBreakdown


@dataclass(frozen=True)
class FusionResult:
    id: str
    fused_score: float
    vector_component: float | None = None
    keyword_component: float | None = None
    rank_blend: float | None = None


@dataclass(frozen=True)
class ScoreComponents:
    vector_score: float
    raw_keyword_score: float
    normalized_keyword_score: float
    fused_score: float
    final_score: float


@dataclass(frozen=True)
class RankedCandidate:
    candidate: Candidate
    components: ScoreComponents
    breakdown: KeywordBreakdown
    features: MatchFeatures | None = None

    @property
    def id(self) -> str:
        return self.candidate.id

    @property
    def score(self) -> float:
        return self.components.final_score


@dataclass(frozen=True)
class ScoreStatistics:
    mean: float = 0.0
    max: float = 0.0
    min: float = 0.0
    std_dev: float = 0.0
    count: int = 0
    p25: float = 0.0
    p50: float = 0.0
    p75: float = 0.0
    p90: float = 0.0

    def summary(self) -> str:
        if self.count == 0:
            return "no_results"
        return (
            f"count={self.count} mean={self.mean:.4f} max={self.max:.4f} "
            f"min={self.min:.4f} std={self.std_dev:.4f} p50={self.p50:.4f}"
        )


@dataclass(frozen=True)
class AlgorithmScores:
    statistical: float
    threshold: float
    ml_features: float
    reranker_confidence: float | None = None


@dataclass(frozen=True)
class AnswerabilityScore:
    confidence: float
    statistics: ScoreStatistics
    algorithm_scores: AlgorithmScores
    is_answerable: bool
    reasoning: str
    computation_ms: float


@dataclass(frozen=True)
class IdkResponse:
    message: str
    reason_code: str
    suggestions: list[str]
    confidence_level: float


@dataclass(frozen=True)
class AuditTrail:
    timestamp: datetime
    query: str
    tenant_id: str
    result_count: int
    stats_summary: str
    decision_rationale: str
    scoring_ms: float
    total_ms: float
    decision_type: str = ""
    confidence: float = 0.0
    threshold_tier: str = ""
    reason_code: str | None = None
    statistics: ScoreStatistics = field(default_factory=ScoreStatistics)


@dataclass(frozen=True)
class GuardrailPerformance:
    """Aggregates over recently audited decisions."""

    decisions: int = 0
    avg_scoring_ms: float = 0.0
    avg_total_ms: float = 0.0
    decisions_per_minute: float = 0.0
    idk_rate: float = 0.0


@dataclass(frozen=True)
class GuardrailDecision:
    is_answerable: bool
    score: AnswerabilityScore
    profile: ThresholdProfile
    audit: AuditTrail
    idk_response: IdkResponse | None = None


@dataclass(frozen=True)
class StageConfidence:
    stage: str
    confidence: float = 0.0
    quality: float = 0.0
    result_count: int = 0
    top_score: float = 0.0
    mean_score: float = 0.0
    std_dev: float = 0.0


@dataclass(frozen=True)
class DegradationAlert:
    stage: str
    severity: float
    description: str
    recommendation: str
    previous_confidence: float
    current_confidence: float

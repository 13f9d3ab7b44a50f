"""Shared test fixtures."""

from __future__ import annotations

import pytest

from answerability_engine.config.settings import Settings
from answerability_engine.models.domain import (
    Candidate,
    CandidateFields,
    CorpusStats,
    KeywordBreakdown,
    RankedCandidate,
    ScoreComponents,
)


@pytest.fixture
def settings():
    """Test settings isolated from any local .env file."""
    return Settings(_env_file=None)


@pytest.fixture
def corpus_stats():
    return CorpusStats.from_dicts(
        idf={"ultimate": 2.5, "wizard": 1.8, "rogue": 2.2, "guide": 0.9, "spells": 1.5},
        cooc={"ultimate": {"wizard": 5}, "wizard": {"ultimate": 5}},
        pmi={"ultimate": {"wizard": 0.8}, "wizard": {"ultimate": 0.8}},
        total_docs=100,
        total_tokens=50_000,
    )


@pytest.fixture
def wizard_candidates():
    return [
        Candidate(
            id="c1",
            content="The Ultimate Wizard guide covers every spell the wizard learns.",
            fields=CandidateFields(title="Ultimate Wizard", section_path="Classes > Wizard"),
            vector_score=0.82,
            keyword_score=0.6,
        ),
        Candidate(
            id="c2",
            content="Rogue tactics for stealth and ambush.",
            vector_score=0.55,
            keyword_score=0.2,
        ),
        Candidate(
            id="c3",
            content="Wizards prepare spells each morning before the ultimate test.",
            vector_score=0.61,
            keyword_score=0.4,
        ),
    ]


@pytest.fixture
def ranked_factory():
    """Build ranked results straight from final scores, bypassing the ranking stages."""

    def make(scores, contents=None, reranker_scores=None):
        contents = contents or [None] * len(scores)
        reranker_scores = reranker_scores or [None] * len(scores)
        return [
            RankedCandidate(
                candidate=Candidate(
                    id=f"r{i}", content=content, vector_score=score, reranker_score=rerank
                ),
                components=ScoreComponents(
                    vector_score=score,
                    raw_keyword_score=0.0,
                    normalized_keyword_score=0.0,
                    fused_score=score,
                    final_score=score,
                ),
                breakdown=KeywordBreakdown(),
            )
            for i, (score, content, rerank) in enumerate(zip(scores, contents, reranker_scores))
        ]

    return make

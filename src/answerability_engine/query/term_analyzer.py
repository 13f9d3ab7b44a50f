"""Query term analysis: IDF-ranked keyphrases, informative tokens and term groups."""

from __future__ import annotations

import math
import re
from collections.abc import Mapping, Sequence

from answerability_engine.config.constants import (
    COOC_BONUS_FACTOR,
    MAX_PHRASES,
    MAX_TOKENS,
    MIN_TERM_LENGTH,
    PHRASE_LENGTH_BONUS,
    STOPWORDS,
)
from answerability_engine.models.domain import CorpusStats, QueryTerms, Term, TermGroup
from answerability_engine.observability.logger import get_logger

logger = get_logger("term_analyzer")

_SENTENCE_SPLIT_RE = re.compile(r"[.!?;]+")


def _clean(word: str) -> str:
    return re.sub(r"[^\w]", "", word)


def _is_capitalized(word: str) -> bool:
    return len(word) > 1 and word[0].isupper()


class QueryTermAnalyzer:
    """Turns raw query text into ranked phrases and informative tokens.

    Recall-biased: only the stopword list and a minimum length filter
    candidates. Downstream weighting discounts noise.
    """

    def __init__(self, stats: CorpusStats) -> None:
        self._stats = stats

    def extract(self, query: str) -> QueryTerms:
        if not query or not query.strip():
            return QueryTerms(phrases=[], tokens=[])

        candidates = self._phrase_candidates(query)
        scored = [(phrase, self._score_phrase(phrase)) for phrase in candidates]
        # sorted() is stable, so ties keep discovery order
        scored = sorted(scored, key=lambda item: item[1], reverse=True)
        phrases = [phrase for phrase, _ in scored[:MAX_PHRASES]]

        tokens = self._informative_tokens(query)

        logger.debug("query_terms_extracted", phrases=phrases, tokens=tokens)
        return QueryTerms(phrases=phrases, tokens=tokens)

    def _phrase_candidates(self, query: str) -> list[str]:
        found: list[str] = []

        for sentence in _SENTENCE_SPLIT_RE.split(query):
            raw_words = [_clean(w) for w in sentence.split()]
            raw_words = [w for w in raw_words if w]

            # (a) runs of consecutive capitalized words
            run: list[str] = []
            for word in raw_words + [""]:
                if word and _is_capitalized(word) and word.lower() not in STOPWORDS:
                    run.append(word.lower())
                    continue
                if run:
                    found.append(" ".join(run))
                run = []

            # (b) 2-3 word windows over the stopword-stripped sequence
            content = [w.lower() for w in raw_words if w.lower() not in STOPWORDS]
            for i in range(len(content) - 1):
                found.append(f"{content[i]} {content[i + 1]}")
                if i + 2 < len(content):
                    found.append(f"{content[i]} {content[i + 1]} {content[i + 2]}")

        unique = list(dict.fromkeys(found))
        return [p for p in unique if len(p) >= MIN_TERM_LENGTH]

    def _score_phrase(self, phrase: str) -> float:
        words = phrase.split()
        score = sum(math.log1p(self._stats.idf_of(w)) for w in words)
        if len(words) == 2:
            cooc = self._stats.cooc_of(words[0], words[1])
            if cooc > 0:
                score += math.log1p(cooc) * COOC_BONUS_FACTOR
        score += len(words) * PHRASE_LENGTH_BONUS
        return score

    def _informative_tokens(self, query: str) -> list[str]:
        words = [_clean(w).lower() for w in query.split()]
        words = [w for w in words if len(w) >= MIN_TERM_LENGTH and w not in STOPWORDS]
        unique = list(dict.fromkeys(words))
        ranked = sorted(unique, key=self._stats.idf_of, reverse=True)
        return ranked[:MAX_TOKENS]


def extract_query_terms(query: str, stats: CorpusStats) -> QueryTerms:
    return QueryTermAnalyzer(stats).extract(query)


def build_terms(query_terms: QueryTerms, stats: CorpusStats) -> list[Term]:
    """Rank multi-word phrases first, then single tokens, weighting each by smoothed IDF."""
    terms: list[Term] = []
    seen: set[str] = set()

    ordered = [(p, True) for p in query_terms.phrases if " " in p]
    ordered += [(t, False) for t in query_terms.tokens]

    for text, is_phrase in ordered:
        if text in seen:
            continue
        seen.add(text)
        words = text.split()
        weight = sum(math.log1p(stats.idf_of(w)) for w in words) / len(words)
        terms.append(Term(text=text, rank=len(terms) + 1, weight=weight, is_phrase=is_phrase))
    return terms


def build_term_groups(
    terms: Sequence[Term],
    aliases: Mapping[str, Sequence[str]] | None = None,
) -> list[TermGroup]:
    """One group per distinct query word, widened with caller-supplied aliases.

    Phrase terms contribute each of their words, so a phrase word that missed
    the token cut still takes part in coverage, proximity and exclusivity.
    Groups follow term rank order.
    """
    aliases = aliases or {}
    groups: list[TermGroup] = []
    for word in term_words(terms):
        members = [word] + [a.lower() for a in aliases.get(word, ())]
        groups.append(TermGroup(members=tuple(dict.fromkeys(members))))
    return groups


def term_words(terms: Sequence[Term], limit: int | None = None) -> list[str]:
    """Distinct words of the ranked terms in rank order, phrases split into words."""
    words: list[str] = []
    for term in terms:
        for word in term.text.split():
            if word not in words:
                words.append(word)
                if limit is not None and len(words) == limit:
                    return words
    return words

"""Resolve per-term hits (field, match strength, positions) for a candidate."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from difflib import SequenceMatcher

from nltk.stem.snowball import SnowballStemmer

from answerability_engine.config.constants import FUZZY_MATCH_RATIO
from answerability_engine.keyword_search.tokenizer import iter_words
from answerability_engine.models.domain import (
    Candidate,
    HitField,
    MatchStrength,
    Term,
    TermHit,
)

# Snowball (Porter2) English stemmer, built once and shared across threads
_stemmer = SnowballStemmer("english")


def stem(word: str) -> str:
    """Snowball stem of a lowercased word: "studies" and "study" both give "studi"."""
    return _stemmer.stem(word.lower())


def _word_match(query_word: str, text_word: str) -> MatchStrength | None:
    if query_word == text_word:
        return MatchStrength.EXACT
    if stem(query_word) == stem(text_word):
        return MatchStrength.LEMMA
    if len(query_word) >= 4 and len(text_word) >= 4:
        if SequenceMatcher(None, query_word, text_word).ratio() >= FUZZY_MATCH_RATIO:
            return MatchStrength.FUZZY
    return None


def _weakest(strengths: Iterable[MatchStrength]) -> MatchStrength:
    return min(strengths, key=lambda s: s.strength)


def _field_text(candidate: Candidate, field: HitField) -> str | None:
    match field:
        case HitField.BODY:
            return candidate.content
        case HitField.TITLE:
            return candidate.fields.title
        case HitField.HEADER:
            return candidate.fields.header
        case HitField.SECTION_PATH:
            return candidate.fields.section_path
        case HitField.DOC_ID:
            return candidate.fields.doc_id


def find_hits(term: str, text: str, field: HitField) -> list[TermHit]:
    """Every occurrence of term in text. Phrases match word-by-word on consecutive words."""
    query_words = term.lower().split()
    if not query_words:
        return []

    words = iter_words(text)
    n = len(query_words)
    hits: list[TermHit] = []
    for i in range(len(words) - n + 1):
        window = words[i : i + n]
        strengths = []
        for qw, (_, tw, _, _) in zip(query_words, window):
            strength = _word_match(qw, tw)
            if strength is None:
                break
            strengths.append(strength)
        else:
            hits.append(
                TermHit(
                    field=field,
                    match=_weakest(strengths),
                    positions=(window[0][0],),
                    span=(window[0][2], window[-1][3]),
                )
            )
    return hits


def dedupe_overlapping_hits(hits: Sequence[TermHit]) -> list[TermHit]:
    """Drop hits whose span overlaps a stronger hit in the same field.

    Hits without a span never overlap. Among equally strong overlapping hits
    the earliest discovered one is kept. A stronger hit evicts every weaker
    hit it overlaps, so no two kept hits in one field overlap.
    """
    kept: list[TermHit] = []
    for hit in hits:
        if hit.span is None:
            kept.append(hit)
            continue
        overlapping = [other for other in kept if _overlaps(hit, other)]
        if any(other.match.strength >= hit.match.strength for other in overlapping):
            continue
        kept = [other for other in kept if not _overlaps(hit, other)]
        kept.append(hit)
    return kept


def _overlaps(hit: TermHit, other: TermHit) -> bool:
    if other.field != hit.field or other.span is None or hit.span is None:
        return False
    return hit.span[0] < other.span[1] and other.span[0] < hit.span[1]


def resolve_term_hits(
    candidate: Candidate,
    terms: Sequence[Term],
) -> dict[str, tuple[TermHit, ...]]:
    """Scan the candidate's body and metadata fields for every term."""
    resolved: dict[str, tuple[TermHit, ...]] = {}
    for term in terms:
        hits: list[TermHit] = []
        for field in HitField:
            text = _field_text(candidate, field)
            if text:
                hits.extend(find_hits(term.text, text, field))
        hits = dedupe_overlapping_hits(hits)
        if hits:
            resolved[term.text] = tuple(hits)
    return resolved

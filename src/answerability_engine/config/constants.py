"""Fixed constants shared across ranking and guardrail components."""

from __future__ import annotations

STOPWORDS: frozenset[str] = frozenset(
    {
        "a", "an", "and", "are", "as", "at", "be", "by", "for", "from", "has", "he",
        "in", "is", "it", "its", "of", "on", "that", "the", "to", "was", "were",
        "will", "with", "but", "or", "not", "this", "these", "those", "i", "you",
        "we", "they", "she", "me", "my", "your", "his", "her", "our", "their",
        "what", "when", "where", "why", "how", "who", "which", "can", "could",
        "would", "should", "may", "might", "must", "do", "does", "did", "have",
        "had", "been", "being", "am",
    }
)

# Numeric guard for every division in normalization paths
EPSILON = 1e-6

# Query term analyzer
MIN_TERM_LENGTH = 3
MAX_PHRASES = 5
MAX_TOKENS = 10
COOC_BONUS_FACTOR = 0.5
PHRASE_LENGTH_BONUS = 0.1
DEFAULT_IDF = 1.0

# Metadata fields whose tokens count towards coverage
COVERAGE_METADATA_FIELDS = ("title", "header", "section_path", "summary")

# Term-hit resolution
FUZZY_MATCH_RATIO = 0.85

# Exclusivity
EXCLUSIVITY_PMI_THRESHOLD = 0.1
EXCLUSIVITY_HIGH_IDF = 2.0
EXCLUSIVITY_MAX_COOC = 2

# Answerability sub-score shaping
STATISTICAL_MEAN_WEIGHT = 0.4
STATISTICAL_MAX_WEIGHT = 0.3
STATISTICAL_CONSISTENCY_WEIGHT = 0.3
STATISTICAL_STD_SCALE = 0.5
ML_DENSITY_SATURATION = 10

# Refusal suggestions
SUGGESTION_MIN_CHARS = 10
SUGGESTION_MAX_CHARS = 100
GENERIC_SUGGESTION = "Consider refining your query to be more specific"

# Stage confidence tracking
STAGE_DEGRADATION_THRESHOLD = 0.3
STAGE_ALERT_MIN_CONFIDENCE = 0.5
FUSION_PRESERVATION_MIN_VECTOR_CONFIDENCE = 0.7
FUSION_PRESERVATION_FLOOR = 0.1

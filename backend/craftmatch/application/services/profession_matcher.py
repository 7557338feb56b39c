"""Deterministic keyword classifier — maps a buyer query to a craft profession.

Each catalogue term carries a specificity weight by the group it belongs to:
  1. Profession name / alias  → 0.60
  2. Keyword                  → 0.30
  3. Material / technique     → 0.25
  4. Product                  → 0.20

A distinct term counts once, at its highest weight. The summed weight
(capped at 1.0) is scaled by how much of the query the matched terms cover:

    confidence = min(1, Σw) × (0.5 + 0.5 × coverage)

so a query that is *only* about pottery scores higher than one where pottery
is a passing mention.
"""

import logging
from dataclasses import dataclass, field

from craftmatch.domain.entities import (
    MatchSource,
    ProfessionCatalog,
    ProfessionDefinition,
    ProfessionMatch,
)
from craftmatch.domain.normalization import normalize_text, tokenize

logger = logging.getLogger(__name__)

# Term-group weights
_W_NAME = 0.6
_W_KEYWORD = 0.3
_W_MATERIAL = 0.25
_W_TECHNIQUE = 0.25
_W_PRODUCT = 0.2

# Filler words that never count towards coverage
_STOPWORDS = frozenset({
    "a", "an", "the", "i", "im", "me", "my", "we", "our", "us", "you", "your",
    "is", "are", "am", "be", "was", "were", "it", "its", "this", "that", "these",
    "and", "or", "but", "for", "to", "of", "in", "on", "at", "by", "with", "from",
    "as", "some", "any", "who", "can", "could", "would", "will", "should", "do",
    "need", "needs", "want", "wants", "looking", "look", "find", "search", "get",
    "buy", "please", "someone", "somebody", "like", "also", "very", "good", "best",
    "artisan", "artisans", "maker", "makers", "craftsman", "craftsmen", "expert",
})


@dataclass
class _ProfessionScore:
    """Accumulated evidence for one profession."""

    profession: str
    term_weights: dict[str, float] = field(default_factory=dict)
    term_positions: dict[str, int] = field(default_factory=dict)
    covered: set[int] = field(default_factory=set)

    def add(self, term: str, weight: float, positions: list[int]) -> None:
        self.term_weights[term] = max(weight, self.term_weights.get(term, 0.0))
        self.term_positions.setdefault(term, positions[0])
        self.covered.update(positions)

    @property
    def strength(self) -> float:
        return min(1.0, sum(self.term_weights.values()))

    def ordered_terms(self) -> list[str]:
        return sorted(
            self.term_weights,
            key=lambda t: (self.term_positions[t], -len(t)),
        )


class ProfessionMatcher:
    """Pure, I/O-free classifier over a static profession catalogue."""

    def __init__(self, catalog: ProfessionCatalog):
        self._catalog = catalog

    @property
    def catalog(self) -> ProfessionCatalog:
        return self._catalog

    def detect(self, text: str) -> ProfessionMatch:
        """Return the best profession for ``text``.

        An unmatched query yields an empty profession with confidence 0.
        Ties are broken by catalogue order.
        """
        ranked = self.rank(text)
        return ranked[0] if ranked else ProfessionMatch.unmatched()

    def rank(self, text: str) -> list[ProfessionMatch]:
        """Score every profession with at least one matched term, best first."""
        normalized = normalize_text(text or "")
        tokens = tokenize(normalized)
        if not tokens:
            return []

        content_positions = {i for i, tok in enumerate(tokens) if tok not in _STOPWORDS}
        if not content_positions:
            return []

        matches: list[ProfessionMatch] = []
        for definition in self._catalog.professions:
            score = self._score_profession(definition, tokens)
            if not score.term_weights:
                continue
            coverage = len(score.covered & content_positions) / len(content_positions)
            confidence = round(score.strength * (0.5 + 0.5 * coverage), 2)
            if confidence <= 0:
                continue
            matches.append(
                ProfessionMatch(
                    profession=definition.name,
                    confidence=confidence,
                    matched_keywords=tuple(score.ordered_terms()),
                    source=MatchSource.HEURISTIC,
                )
            )

        # sorted() is stable, so equal confidences keep catalogue order
        return sorted(matches, key=lambda m: m.confidence, reverse=True)

    # ── Term matching ────────────────────────────────────────────────

    def _score_profession(
        self, definition: ProfessionDefinition, tokens: list[str]
    ) -> _ProfessionScore:
        score = _ProfessionScore(profession=definition.name)
        groups: list[tuple[tuple[str, ...], float]] = [
            ((definition.name, *definition.aliases), _W_NAME),
            (definition.keywords, _W_KEYWORD),
            (definition.materials, _W_MATERIAL),
            (definition.techniques, _W_TECHNIQUE),
            (definition.products, _W_PRODUCT),
        ]
        for terms, weight in groups:
            for term in terms:
                positions = _find_term(term, tokens)
                if positions:
                    score.add(term, weight, positions)
        return score


def _word_forms(word: str) -> set[str]:
    """A word plus its simple singular/plural forms."""
    forms = {word, f"{word}s", f"{word}es"}
    if len(word) > 3 and word.endswith("es"):
        forms.add(word[:-2])
    if len(word) > 3 and word.endswith("s"):
        forms.add(word[:-1])
    return forms


def _find_term(term: str, tokens: list[str]) -> list[int]:
    """Token positions covered by ``term`` in ``tokens`` (first occurrence first).

    Multi-word terms match only as a contiguous phrase; only the last word
    may vary in number ("wooden door" matches "wooden doors").
    """
    words = term.split()
    if not words:
        return []

    if len(words) == 1:
        forms = _word_forms(words[0])
        return [i for i, tok in enumerate(tokens) if tok in forms]

    head, last = words[:-1], _word_forms(words[-1])
    span = len(words)
    positions: list[int] = []
    for start in range(len(tokens) - span + 1):
        window = tokens[start:start + span]
        if window[:-1] == head and window[-1] in last:
            positions.extend(range(start, start + span))
    return positions

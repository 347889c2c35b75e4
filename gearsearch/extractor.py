"""Gear query candidate extraction from free-form chat text.

Given a message like ``"anyone tried the rf 70-200 f2.8 yet?"`` the extractor
returns short strings that plausibly name a specific camera or lens, best
first, so they can be fed to the catalog search one by one:

    1) tokenize while keeping model punctuation (``70-200``, ``f/2.8``, ``af-s``);
    2) detect the first brand token using the static brand vocabulary;
    3) cut a window of tokens around every gear-looking token and keep only the
       tokens that carry model information;
    4) optionally prefix candidates with the detected brand;
    5) score every candidate with an ordered list of independent rules.

Extraction never raises: empty or unusable input gives an empty list.
"""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Callable, Iterable, Sequence

from .brands import BrandVocabulary, get_brand_vocabulary

logger = logging.getLogger(__name__)

DEFAULT_STOPWORDS: frozenset[str] = frozenset(
    {
        "the", "a", "an", "and", "or", "but", "if", "then", "else", "when",
        "what", "why", "how", "which", "whose", "is", "are", "was", "were",
        "be", "been", "being", "have", "has", "had", "do", "does", "did",
        "can", "could", "should", "would", "will", "shall", "may", "might",
        "must", "at", "to", "for", "from", "of", "in", "on", "with", "about",
        "as", "by", "this", "that", "these", "those", "there", "here", "you",
        "your", "yours", "we", "our", "ours", "they", "their", "theirs", "i",
        "me", "my", "mine", "hey", "yo", "hi", "hello", "please", "pls",
        "any", "anyone", "someone", "out", "look", "looked", "looking", "see",
        "seen", "saw", "check", "checked", "checking", "think", "thinking",
        "know", "knows", "knew", "heard", "hear", "opinions", "opinion",
        "thoughts", "thought", "recommend", "recommendation",
        "recommendations",
    }
)

# Lens/camera qualifiers that score as gear signals.
QUALIFIERS: frozenset[str] = frozenset(
    {
        "af", "af-s", "af-p", "dx", "fx", "vr", "is", "oss", "stm", "usm",
        "gm", "g", "art", "contemporary", "sports", "macro", "micro", "dc",
        "dn", "dg", "apo",
    }
)
# Kept inside candidate windows; system prefixes are kept but not scored.
PREFERRED_TOKENS: frozenset[str] = QUALIFIERS | {"eos", "ef", "rf", "fe"}

_SPLIT_RE = re.compile(r"[^\w/.\-+]+")
_WHITESPACE_RE = re.compile(r"\s+")
_LETTER_RE = re.compile(r"[a-z]", re.IGNORECASE)
_DIGIT_RE = re.compile(r"\d")
ROMAN_RE = re.compile(r"^(?:i|ii|iii|iv|v|vi|vii|viii|ix|x)$", re.IGNORECASE)
FNUMBER_RE = re.compile(r"^f/?\d+(?:\.\d+)?$", re.IGNORECASE)
FOCAL_RANGE_RE = re.compile(r"^\d{2,3}-\d{2,3}$")
MM_UNIT_RE = re.compile(r"^\d+(?:\.\d+)?mm$", re.IGNORECASE)
BARE_NUMBER_RE = re.compile(r"^\d+(?:\.\d+)?$")


@dataclass(frozen=True)
class ScoringWeights:
    """Candidate scoring constants. Tuned by hand against real chat traffic."""

    focal_range: float = 1.5
    f_number: float = 1.2
    mm_unit: float = 1.0
    mixed_alnum: float = 1.0
    roman: float = 0.3
    qualifier_each: float = 0.4
    qualifier_cap: float = 1.2
    three_signals: float = 2.0
    two_signals: float = 1.0
    length_each: float = 0.3
    length_cap: float = 1.2
    length_cap_ambiguous: float = 0.3
    brand_present: float = 1.0
    brand_first: float = 0.25
    glued_identifiers: float = -2.5
    lone_unit: float = -2.0
    lone_mixed_alnum: float = -0.5
    short_candidate: float = -0.5
    short_candidate_length: int = 4


DEFAULT_WEIGHTS = ScoringWeights()


@dataclass(frozen=True)
class ExtractOptions:
    window_radius: int = 3
    max_candidates: int = 8
    stopwords: frozenset[str] = DEFAULT_STOPWORDS
    weights: ScoringWeights = DEFAULT_WEIGHTS
    vocabulary: BrandVocabulary | None = field(default=None, compare=False)


def tokenize(text: str) -> list[str]:
    """Split on anything but word characters and ``/ . - +``."""
    return _SPLIT_RE.sub(" ", text or "").split()


def is_mixed_alnum(token: str) -> bool:
    return bool(_LETTER_RE.search(token) and _DIGIT_RE.search(token))


def looks_like_gear_token(token: str) -> bool:
    lower = (token or "").lower()
    if not lower:
        return False
    if is_mixed_alnum(lower):
        return True
    if ROMAN_RE.match(lower) or FOCAL_RANGE_RE.match(lower):
        return True
    if MM_UNIT_RE.match(lower) or FNUMBER_RE.match(lower):
        return True
    return bool(BARE_NUMBER_RE.match(lower)) and len(lower) >= 3


def keep_token(token: str, stopwords: frozenset[str], vocabulary: BrandVocabulary) -> bool:
    lower = (token or "").lower()
    if not lower or lower in stopwords:
        return False
    if looks_like_gear_token(token):
        return True
    if lower in PREFERRED_TOKENS:
        return True
    return vocabulary.is_brand_token(lower)


def _unique_casefold(tokens: Iterable[str]) -> list[str]:
    seen: set[str] = set()
    unique: list[str] = []
    for token in tokens:
        key = token.lower()
        if key in seen:
            continue
        seen.add(key)
        unique.append(token)
    return unique


def _clean(tokens: Iterable[str], stopwords: frozenset[str], vocabulary: BrandVocabulary) -> str:
    kept = [token for token in tokens if keep_token(token, stopwords, vocabulary)]
    return " ".join(_unique_casefold(kept))


def build_candidate_windows(
    tokens: Sequence[str],
    window_radius: int,
    stopwords: frozenset[str],
    vocabulary: BrandVocabulary,
) -> list[str]:
    out: dict[str, None] = {}
    for idx, token in enumerate(tokens):
        if not looks_like_gear_token(token):
            continue
        start = max(0, idx - window_radius)
        end = min(len(tokens), idx + window_radius + 1)
        cleaned = _clean(tokens[start:end], stopwords, vocabulary)
        if cleaned:
            out[cleaned] = None
        out[token] = None
    return list(out)


def _brand_word_re(brand: str) -> re.Pattern[str]:
    return re.compile(rf"(^|\s){re.escape(brand)}(\s|$)", re.IGNORECASE)


@dataclass(frozen=True)
class CandidateFeatures:
    text: str
    token_count: int
    has_f_number: bool
    has_mm: bool
    has_focal_range: bool
    has_roman: bool
    mixed_alnum_count: int
    qualifier_count: int
    brand_present: bool
    brand_first: bool

    @property
    def has_mixed_alnum(self) -> bool:
        return self.mixed_alnum_count > 0

    @property
    def ambiguous_identifiers(self) -> bool:
        """Two or more alnum codes with nothing that pins them to a lens."""
        return self.mixed_alnum_count >= 2 and not (self.has_focal_range or self.has_f_number)

    @property
    def signal_count(self) -> int:
        signals = (
            self.has_f_number,
            self.has_mm,
            self.has_focal_range,
            self.has_roman,
            self.has_mixed_alnum,
            self.qualifier_count > 0,
        )
        return sum(1 for signal in signals if signal)

    @classmethod
    def from_candidate(cls, candidate: str, brand: str | None = None) -> "CandidateFeatures":
        lowered = [token.lower() for token in _WHITESPACE_RE.split(candidate.strip()) if token]
        brand_present = brand_first = False
        if brand:
            brand_present = bool(_brand_word_re(brand).search(candidate))
            brand_first = brand_present and bool(
                re.match(rf"{re.escape(brand)}\b", candidate, re.IGNORECASE)
            )
        return cls(
            text=candidate,
            token_count=len(lowered),
            has_f_number=any(FNUMBER_RE.match(t) for t in lowered),
            has_mm=any(MM_UNIT_RE.match(t) for t in lowered),
            has_focal_range=any(FOCAL_RANGE_RE.match(t) for t in lowered),
            has_roman=any(ROMAN_RE.match(t) for t in lowered),
            mixed_alnum_count=sum(1 for t in lowered if is_mixed_alnum(t)),
            qualifier_count=sum(1 for t in lowered if t in QUALIFIERS),
            brand_present=brand_present,
            brand_first=brand_first,
        )


ScoringRule = Callable[[CandidateFeatures, ScoringWeights], float]


def pattern_bonus(f: CandidateFeatures, w: ScoringWeights) -> float:
    score = 0.0
    if f.has_focal_range:
        score += w.focal_range
    if f.has_f_number:
        score += w.f_number
    if f.has_mm:
        score += w.mm_unit
    if f.has_mixed_alnum:
        score += w.mixed_alnum
    if f.has_roman:
        score += w.roman
    return score


def qualifier_bonus(f: CandidateFeatures, w: ScoringWeights) -> float:
    return min(f.qualifier_count * w.qualifier_each, w.qualifier_cap)


def combined_signal_bonus(f: CandidateFeatures, w: ScoringWeights) -> float:
    if f.signal_count >= 3:
        return w.three_signals
    if f.signal_count == 2:
        return w.two_signals
    return 0.0


def length_bonus(f: CandidateFeatures, w: ScoringWeights) -> float:
    cap = w.length_cap_ambiguous if f.ambiguous_identifiers else w.length_cap
    return min(max(f.token_count - 1, 0) * w.length_each, cap)


def brand_bonus(f: CandidateFeatures, w: ScoringWeights) -> float:
    if not f.brand_present:
        return 0.0
    return w.brand_present + (w.brand_first if f.brand_first else 0.0)


def glued_identifier_penalty(f: CandidateFeatures, w: ScoringWeights) -> float:
    return w.glued_identifiers if f.ambiguous_identifiers else 0.0


def single_token_penalty(f: CandidateFeatures, w: ScoringWeights) -> float:
    if f.token_count != 1:
        return 0.0
    if f.has_f_number or f.has_mm:
        return w.lone_unit
    if f.has_mixed_alnum:
        return w.lone_mixed_alnum
    return 0.0


def short_candidate_penalty(f: CandidateFeatures, w: ScoringWeights) -> float:
    return w.short_candidate if len(f.text) < w.short_candidate_length else 0.0


SCORING_RULES: tuple[ScoringRule, ...] = (
    pattern_bonus,
    qualifier_bonus,
    combined_signal_bonus,
    length_bonus,
    brand_bonus,
    glued_identifier_penalty,
    single_token_penalty,
    short_candidate_penalty,
)


def score_candidate(
    candidate: str,
    brand: str | None = None,
    weights: ScoringWeights = DEFAULT_WEIGHTS,
) -> float:
    features = CandidateFeatures.from_candidate(candidate, brand)
    return sum(rule(features, weights) for rule in SCORING_RULES)


def score_candidates(
    candidates: Sequence[str],
    brand: str | None = None,
    weights: ScoringWeights = DEFAULT_WEIGHTS,
) -> list[tuple[str, float]]:
    """Score and order candidates: score desc, then shorter first."""
    scored = [(candidate, score_candidate(candidate, brand, weights)) for candidate in candidates]
    scored.sort(key=lambda pair: (-pair[1], len(pair[0])))
    return scored


def extract_candidates(message: str, options: ExtractOptions | None = None) -> list[str]:
    opts = options or ExtractOptions()
    tokens = tokenize(message)
    if not tokens:
        return []
    vocabulary = opts.vocabulary or get_brand_vocabulary()
    brand = vocabulary.detect(tokens)

    windows = build_candidate_windows(tokens, opts.window_radius, opts.stopwords, vocabulary)
    base = [
        cleaned
        for cleaned in (_clean(_WHITESPACE_RE.split(c), opts.stopwords, vocabulary).strip() for c in windows)
        if cleaned
    ]

    pool: list[str] = []
    if brand:
        brand_re = _brand_word_re(brand)
        for candidate in base:
            pool.append(candidate)
            if not brand_re.search(candidate):
                pool.append(f"{brand} {candidate}")
    else:
        pool = base

    unique = _unique_casefold(pool)
    ranked = score_candidates(unique, brand, opts.weights)[: max(opts.max_candidates, 0)]
    logger.debug("extract brand=%r tokens=%s ranked=%s", brand, len(tokens), ranked)
    return [candidate for candidate, _ in ranked]


def extract_top_candidate(message: str, options: ExtractOptions | None = None) -> str | None:
    candidates = extract_candidates(message, options)
    return candidates[0] if candidates else None

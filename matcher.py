"""Fuzzy whole-word counting of a target word in recognized speech."""

from __future__ import annotations

import re

from models import MatchConfig
from normalizer import normalize

VOWELS = frozenset("aeiou")


def stretch_vowel(normalized_target: str) -> str:
    """Return the trailing vowel that may be elongated, or ``""``."""
    if normalized_target and normalized_target[-1] in VOWELS:
        return normalized_target[-1]
    return ""


def build_pattern(normalized_target: str, config: MatchConfig) -> re.Pattern[str]:
    """Compile the match unit for an already-normalized, non-empty target.

    ``brate`` with stretching enabled becomes ``brate(?:e+)?`` so ``bratee``
    and ``brateee`` count once each while ``bratte`` does not match.
    """
    unit = re.escape(normalized_target)
    vowel = stretch_vowel(normalized_target)
    if config.allow_stretch and vowel:
        unit += f"(?:{re.escape(vowel)}+)?"
    if config.whole_word:
        return re.compile(rf"(?:^|\s){unit}(?=\s|$)")
    return re.compile(unit)


def count(text: str, target: str, config: MatchConfig) -> int:
    """Count non-overlapping occurrences of ``target`` inside ``text``."""
    normalized_target = normalize(target)
    if not normalized_target:
        return 0
    haystack = normalize(text)
    if not haystack:
        return 0
    pattern = build_pattern(normalized_target, config)
    return sum(1 for _ in pattern.finditer(haystack))

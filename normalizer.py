"""Script- and accent-insensitive text normalization.

Serbian speech comes back from recognizers in either Cyrillic or Latin, with
or without diacritics. ``normalize`` folds both into one lowercase ASCII-ish
token stream so the matcher can compare them directly:

1. Serbian Cyrillic is transliterated to Latin (``Љ`` -> ``Lj`` and so on).
2. The result is decomposed and combining marks are dropped, so ``č`` == ``c``.
3. Everything is lowercased.
4. Anything that is not a letter, digit, whitespace or apostrophe becomes a space.
5. Whitespace runs collapse to a single space and the ends are trimmed.
"""

from __future__ import annotations

import re
import unicodedata

_SERBIAN_CYRILLIC = {
    "А": "A", "Б": "B", "В": "V", "Г": "G", "Д": "D", "Ђ": "Đ",
    "Е": "E", "Ж": "Ž", "З": "Z", "И": "I", "Ј": "J", "К": "K",
    "Л": "L", "Љ": "Lj", "М": "M", "Н": "N", "Њ": "Nj", "О": "O",
    "П": "P", "Р": "R", "С": "S", "Т": "T", "Ћ": "Ć", "У": "U",
    "Ф": "F", "Х": "H", "Ц": "C", "Ч": "Č", "Џ": "Dž", "Ш": "Š",
    "а": "a", "б": "b", "в": "v", "г": "g", "д": "d", "ђ": "đ",
    "е": "e", "ж": "ž", "з": "z", "и": "i", "ј": "j", "к": "k",
    "л": "l", "љ": "lj", "м": "m", "н": "n", "њ": "nj", "о": "o",
    "п": "p", "р": "r", "с": "s", "т": "t", "ћ": "ć", "у": "u",
    "ф": "f", "х": "h", "ц": "c", "ч": "č", "џ": "dž", "ш": "š",
}

_TRANSLITERATION = str.maketrans(_SERBIAN_CYRILLIC)

# đ has no canonical decomposition, so mark stripping alone would keep it.
_UNDECOMPOSABLE = str.maketrans({"đ": "d", "Đ": "D"})

_WHITESPACE_RUN = re.compile(r"\s+")


def transliterate(text: str) -> str:
    """Serbian Cyrillic to Latin; unmapped characters pass through."""
    # Decompose first so precomposed Cyrillic (Ѓ, Ќ, Й) exposes a mappable base.
    return unicodedata.normalize("NFD", text).translate(_TRANSLITERATION)


def strip_diacritics(text: str) -> str:
    decomposed = unicodedata.normalize("NFD", text).translate(_UNDECOMPOSABLE)
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch))


def _fold_punctuation(text: str) -> str:
    return "".join(
        ch if ch.isalnum() or ch.isspace() or ch == "'" else " "
        for ch in text
    )


def normalize(text: str) -> str:
    if not text:
        return ""
    folded = strip_diacritics(transliterate(text)).lower()
    folded = _fold_punctuation(folded)
    return _WHITESPACE_RUN.sub(" ", folded).strip()

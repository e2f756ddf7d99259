from __future__ import annotations

import re

_WHITESPACE_RE = re.compile(r"\s+")


def split_words(text: str) -> list[str]:
    return [word for word in _WHITESPACE_RE.split(text or "") if word]


def count_words(text: str) -> int:
    return len(split_words(text))


def word_set(text: str) -> set[str]:
    return set(split_words((text or "").lower()))


def jaccard_similarity(left: str, right: str) -> float:
    words_left = word_set(left)
    words_right = word_set(right)
    union = words_left | words_right
    if not union:
        return 0.0
    return len(words_left & words_right) / len(union)

"""Typo-tolerant text matching used by the directory search box."""

from __future__ import annotations

import re

_STRIPPED_PUNCTUATION = re.compile(r"[.'&\-]")
_WHITESPACE = re.compile(r"\s+")


def normalize(text: str | None) -> str:
    if not text:
        return ""
    lowered = _STRIPPED_PUNCTUATION.sub("", text.lower())
    return _WHITESPACE.sub(" ", lowered).strip()


def levenshtein(a: str, b: str) -> int:
    if not a:
        return len(b)
    if not b:
        return len(a)

    rows = len(b) + 1
    cols = len(a) + 1
    matrix = [[0] * cols for _ in range(rows)]
    for i in range(rows):
        matrix[i][0] = i
    for j in range(cols):
        matrix[0][j] = j

    for i in range(1, rows):
        for j in range(1, cols):
            if b[i - 1] == a[j - 1]:
                matrix[i][j] = matrix[i - 1][j - 1]
            else:
                matrix[i][j] = min(
                    matrix[i - 1][j - 1] + 1,
                    matrix[i][j - 1] + 1,
                    matrix[i - 1][j] + 1,
                )
    return matrix[-1][-1]


def match_tolerance(word: str) -> int:
    """Edit distance still accepted for a query word of this length."""
    return max(1, len(word) // 3)


def fuzzy_match(text: str | None, query: str | None) -> bool:
    """Return True when every query word is found in ``text``, allowing typos.

    A word is found when it is a substring of a text word, contains a text
    word, or is within ``match_tolerance`` edits of one. Word order and
    case do not matter.
    """
    normalized_text = normalize(text)
    normalized_query = normalize(query)

    if normalized_query in normalized_text:
        return True

    text_words = normalized_text.split()
    query_words = normalized_query.split()
    return all(
        any(
            query_word in text_word
            or text_word in query_word
            or levenshtein(text_word, query_word) <= match_tolerance(query_word)
            for text_word in text_words
        )
        for query_word in query_words
    )


def fuzzy_score(text: str | None, query: str | None) -> int:
    """Relevance of ``text`` for ``query`` on a 0-100 scale."""
    normalized_text = normalize(text)
    normalized_query = normalize(query)

    if normalized_text == normalized_query:
        return 100
    if normalized_text.startswith(normalized_query):
        return 90
    if normalized_query in normalized_text:
        return 80

    distance = levenshtein(normalized_text[: len(normalized_query)], normalized_query)
    if distance <= match_tolerance(normalized_query):
        return 70 - distance * 10
    return 0

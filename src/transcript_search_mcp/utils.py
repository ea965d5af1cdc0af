"""Utility functions."""

import re

_NON_WORD = re.compile(r"\W+")


def tokenize_query(query: str) -> list[str]:
    """Lowercase the query and split it on whitespace, keeping order."""
    return query.lower().split()


def strip_punctuation(text: str) -> str:
    """Lowercase and drop every non-word character ("Word," -> "word")."""
    return _NON_WORD.sub("", text.lower())


def levenshtein(a: str, b: str) -> int:
    """Edit distance with unit-cost insertion, deletion and substitution."""
    if a == b:
        return 0
    if not a:
        return len(b)
    if not b:
        return len(a)

    previous = list(range(len(b) + 1))
    for i, ca in enumerate(a, start=1):
        current = [i]
        for j, cb in enumerate(b, start=1):
            current.append(
                min(
                    previous[j] + 1,
                    current[j - 1] + 1,
                    previous[j - 1] + (ca != cb),
                )
            )
        previous = current
    return previous[-1]


def similarity(a: str, b: str) -> float:
    """Score string closeness in [0, 1].

    Containment scores the length ratio of the shorter string to the
    longer one; anything else falls back to normalized edit distance.
    """
    if a == b:
        return 1.0
    longer, shorter = (a, b) if len(a) >= len(b) else (b, a)
    if shorter in longer:
        return len(shorter) / len(longer)
    distance = levenshtein(a, b)
    return (len(longer) - distance) / len(longer)


def _is_word_char(ch: str) -> bool:
    return ch.isalnum() or ch == "_"


def _is_boundary(text: str, index: int) -> bool:
    if index <= 0 or index >= len(text):
        return True
    return not (_is_word_char(text[index - 1]) and _is_word_char(text[index]))


def find_occurrences(text: str, query: str) -> list[int]:
    """Return start offsets of every case-insensitive hit of query in text.

    Offsets index the original text. Hits glued to a longer word ("cat"
    inside "scatter") are skipped. The scan advances one character past
    each hit so overlapping occurrences are still found.
    """
    if not query:
        return []
    pattern = re.compile(re.escape(query), re.IGNORECASE)
    offsets = []
    pos = 0
    while True:
        m = pattern.search(text, pos)
        if m is None:
            break
        if _is_boundary(text, m.start()) and _is_boundary(text, m.end()):
            offsets.append(m.start())
        pos = m.start() + 1
    return offsets


def text_context(text: str, index: int, length: int, chars: int = 100) -> tuple[str, str]:
    """Plain-text context on both sides of text[index:index + length]."""
    before = text[max(0, index - chars):index].strip()
    end = index + length
    after = text[end:min(len(text), end + chars)].strip()
    return before, after


def format_timestamp(seconds: float) -> str:
    """Format seconds to HH:MM:SS or MM:SS."""
    h = int(seconds // 3600)
    m = int((seconds % 3600) // 60)
    s = int(seconds % 60)
    if h > 0:
        return f"{h}:{m:02d}:{s:02d}"
    return f"{m}:{s:02d}"

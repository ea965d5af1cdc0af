"""Match scoring and classification.

Turns retrieved candidates into typed, scored matches:

* exact word hits score 1.0,
* partial (substring) hits are scored by :func:`similarity` against the query,
* phrase runs for multi-word queries score 1.0 and are typed exact,
* filename hits are scored by name similarity and discounted,
* full-text hits cover files without word-level evidence.

Word and phrase matches carry the sequence span they cover so the engine
can look up surrounding words afterwards.
"""

from dataclasses import dataclass

from transcript_search_mcp.config import SearchOptions
from transcript_search_mcp.models import Match, MatchType, Transcript, Word, WordHit
from transcript_search_mcp.utils import (
    find_occurrences,
    similarity,
    strip_punctuation,
    text_context,
)


@dataclass
class SpanMatch:
    """A word-level match awaiting context."""

    transcript_id: str
    first_index: int
    last_index: int
    match: Match


def _word_match(word: Word, score: float, match_type: MatchType) -> SpanMatch:
    return SpanMatch(
        transcript_id=word.transcript_id,
        first_index=word.sequence_index,
        last_index=word.sequence_index,
        match=Match(
            text=word.text,
            start_time=word.start_time,
            end_time=word.end_time,
            score=score,
            match_type=match_type,
        ),
    )


def exact_matches(hits: list[WordHit]) -> list[SpanMatch]:
    return [_word_match(hit, 1.0, MatchType.EXACT) for hit in hits]


def partial_matches(
    hits: list[WordHit], exact_keys: set[tuple[str, int]], query: str
) -> list[SpanMatch]:
    """Score substring hits, skipping words already matched exactly."""
    matches = []
    seen = set(exact_keys)
    for hit in hits:
        key = (hit.transcript_id, hit.sequence_index)
        if key in seen:
            continue
        seen.add(key)
        matches.append(
            _word_match(hit, similarity(hit.normalized, query), MatchType.PARTIAL)
        )
    return matches


def phrase_matches(words: list[Word], query_words: list[str]) -> list[SpanMatch]:
    """Find every run of consecutive words spelling out the query.

    Words are compared with punctuation stripped, so "brown," matches
    "brown". Runs do not overlap: scanning resumes after each hit.
    """
    n = len(query_words)
    if n < 2 or len(words) < n:
        return []
    target = [strip_punctuation(w) for w in query_words]
    stripped = [strip_punctuation(w.text) for w in words]

    matches = []
    i = 0
    while i <= len(words) - n:
        if stripped[i:i + n] == target:
            first, last = words[i], words[i + n - 1]
            matches.append(
                SpanMatch(
                    transcript_id=first.transcript_id,
                    first_index=first.sequence_index,
                    last_index=last.sequence_index,
                    match=Match(
                        text=" ".join(w.text for w in words[i:i + n]),
                        start_time=first.start_time,
                        end_time=last.end_time,
                        score=1.0,
                        match_type=MatchType.EXACT,
                    ),
                )
            )
            i += n
        else:
            i += 1
    return matches


def filename_match(transcript: Transcript, query: str, options: SearchOptions) -> Match:
    """Single filename match, already discounted against content matches."""
    q = query.lower()
    score = max(
        similarity(transcript.display_name.lower(), q),
        similarity(transcript.file_name.lower(), q),
    )
    return Match(
        text=f"{query} found in filename",
        score=score * options.filename_discount,
        match_type=MatchType.FILENAME,
    )


def fulltext_matches(
    transcript: Transcript, query: str, options: SearchOptions
) -> list[Match]:
    """One fuzzy match per occurrence of the query in the plain text."""
    text = transcript.full_text
    matches = []
    for idx in find_occurrences(text, query):
        found = text[idx:idx + len(query)]
        before, after = text_context(text, idx, len(query), options.text_context_chars)
        matches.append(
            Match(
                text=found,
                context_before=before,
                context_after=after,
                score=(
                    options.fulltext_exact_case_score
                    if found == query
                    else options.fulltext_other_score
                ),
                match_type=MatchType.FUZZY,
            )
        )
    return matches

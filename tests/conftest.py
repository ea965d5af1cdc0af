"""Shared test fixtures."""

import pytest

from transcript_search_mcp.stores.memory import InMemoryStore


def words_payload(text: str, step: float = 1.0, length: float = 0.5) -> dict:
    """Provider-style payload with one timed entry per whitespace token."""
    return {
        "text": text,
        "words": [
            {"text": w, "start": i * step, "end": i * step + length}
            for i, w in enumerate(text.split())
        ],
    }


@pytest.fixture
def make_payload():
    return words_payload


@pytest.fixture
def store():
    s = InMemoryStore()
    t1 = s.create_transcript("u1", "Weekly sync.mp3", transcript_id="t1")
    s.complete_transcript(t1.id, words_payload("The quick brown fox jumps over the lazy dog"))
    t2 = s.create_transcript("u1", "notes.txt", transcript_id="t2")
    s.complete_transcript(t2.id, "cat scatter cat")
    t3 = s.create_transcript("u2", "Other user.mp3", transcript_id="t3")
    s.complete_transcript(t3.id, words_payload("the fox is not yours"))
    s.create_transcript("u1", "fox pending.mp3", transcript_id="t4")
    return s

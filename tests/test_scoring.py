"""Tests for match scoring and classification."""

import pytest

from transcript_search_mcp.config import SearchOptions
from transcript_search_mcp.models import (
    MatchType,
    Transcript,
    TranscriptStatus,
    Word,
    WordHit,
)
from transcript_search_mcp.scoring import (
    exact_matches,
    filename_match,
    fulltext_matches,
    partial_matches,
    phrase_matches,
)


def _words(*texts, transcript_id="t1"):
    return [
        Word(
            transcript_id=transcript_id,
            text=t,
            start_time=float(i),
            end_time=i + 0.5,
            sequence_index=i,
        )
        for i, t in enumerate(texts)
    ]


def _hit(text, index, transcript_id="t1"):
    return WordHit(
        transcript_id=transcript_id,
        text=text,
        start_time=float(index),
        end_time=index + 0.5,
        sequence_index=index,
        file_name="f.mp3",
        display_name="f.mp3",
    )


def _transcript(full_text="", display_name="f.mp3", file_name=None):
    return Transcript(
        id="t1",
        user_id="u1",
        display_name=display_name,
        file_name=file_name or display_name,
        full_text=full_text,
        status=TranscriptStatus.COMPLETED,
    )


class TestExactMatches:
    def test_score_and_type(self):
        [span] = exact_matches([_hit("Fox", 3)])
        assert span.match.score == 1.0
        assert span.match.match_type == MatchType.EXACT
        assert span.match.text == "Fox"
        assert (span.first_index, span.last_index) == (3, 3)
        assert span.match.start_time == 3.0


class TestPartialMatches:
    def test_scored_by_similarity(self):
        [span] = partial_matches([_hit("jumps", 4)], set(), "jump")
        assert span.match.match_type == MatchType.PARTIAL
        assert span.match.score == pytest.approx(0.8)

    def test_exact_words_not_repeated(self):
        hits = [_hit("fox", 3), _hit("foxes", 7)]
        spans = partial_matches(hits, {("t1", 3)}, "fox")
        assert [s.first_index for s in spans] == [7]

    def test_same_index_other_transcript_kept(self):
        spans = partial_matches([_hit("foxes", 3, "t2")], {("t1", 3)}, "fox")
        assert len(spans) == 1

    def test_short_incidental_substring_scores_low(self):
        [span] = partial_matches([_hit("catastrophe", 0)], set(), "cat")
        assert span.match.score == pytest.approx(3 / 11)


class TestPhraseMatches:
    def test_single_run(self):
        words = _words("the", "quick", "brown", "fox")
        [span] = phrase_matches(words, ["quick", "brown"])
        assert (span.first_index, span.last_index) == (1, 2)
        assert span.match.score == 1.0
        assert span.match.match_type == MatchType.EXACT
        assert span.match.text == "quick brown"
        assert span.match.start_time == 1.0
        assert span.match.end_time == 2.5

    def test_punctuation_ignored(self):
        words = _words("The", "Quick,", "brown.", "fox")
        spans = phrase_matches(words, ["quick", "brown"])
        assert len(spans) == 1
        assert spans[0].match.text == "Quick, brown."

    def test_every_occurrence(self):
        words = _words("red", "fox", "and", "red", "fox")
        spans = phrase_matches(words, ["red", "fox"])
        assert [(s.first_index, s.last_index) for s in spans] == [(0, 1), (3, 4)]

    def test_order_matters(self):
        words = _words("brown", "quick")
        assert phrase_matches(words, ["quick", "brown"]) == []

    def test_single_token_query(self):
        assert phrase_matches(_words("fox"), ["fox"]) == []


class TestFilenameMatch:
    def test_discounted_score(self):
        match = filename_match(_transcript(display_name="tests"), "test", SearchOptions())
        assert match.match_type == MatchType.FILENAME
        assert match.score == pytest.approx(0.8 * 0.7)
        assert match.text == "test found in filename"
        assert (match.start_time, match.end_time) == (0.0, 0.0)

    def test_best_of_both_names(self):
        t = _transcript(display_name="My recording.mp3", file_name="budget")
        match = filename_match(t, "budget", SearchOptions())
        assert match.score == pytest.approx(0.7)

    def test_custom_discount(self):
        match = filename_match(
            _transcript(display_name="tests"), "test", SearchOptions(filename_discount=0.5)
        )
        assert match.score == pytest.approx(0.4)


class TestFulltextMatches:
    def test_every_occurrence_with_context(self):
        matches = fulltext_matches(_transcript("cat scatter cat"), "cat", SearchOptions())
        assert len(matches) == 2
        assert [(m.context_before, m.context_after) for m in matches] == [
            ("", "scatter cat"),
            ("cat scatter", ""),
        ]
        assert all(m.match_type == MatchType.FUZZY for m in matches)
        assert all(m.start_time == 0.0 and m.end_time == 0.0 for m in matches)

    def test_exact_case_scores_higher(self):
        matches = fulltext_matches(_transcript("Cat and cat"), "cat", SearchOptions())
        assert [m.score for m in matches] == [0.8, 1.0]
        assert matches[0].text == "Cat"

    def test_configurable_scores(self):
        options = SearchOptions(fulltext_exact_case_score=0.9, fulltext_other_score=0.5)
        matches = fulltext_matches(_transcript("Cat and cat"), "cat", options)
        assert [m.score for m in matches] == [0.5, 0.9]

    def test_non_ascii_text_before_hit(self):
        [match] = fulltext_matches(_transcript("İstanbul cat here"), "cat", SearchOptions())
        assert match.text == "cat"
        assert match.score == 1.0
        assert (match.context_before, match.context_after) == ("İstanbul", "here")

    def test_no_text(self):
        assert fulltext_matches(_transcript(""), "cat", SearchOptions()) == []

"""Tests for the in-memory store and transcript lifecycle."""

import json

import pytest

from transcript_search_mcp.errors import MalformedTranscriptData
from transcript_search_mcp.models import ContextWords, TranscriptStatus
from transcript_search_mcp.stores.memory import InMemoryStore


class TestLifecycle:
    def test_created_processing(self):
        store = InMemoryStore()
        t = store.create_transcript("u1", "memo.m4a")
        assert t.status == TranscriptStatus.PROCESSING
        assert t.file_name == "memo.m4a"
        assert t.processed_at is None

    def test_complete(self, make_payload):
        store = InMemoryStore()
        t = store.create_transcript("u1", "memo.m4a")
        done = store.complete_transcript(t.id, make_payload("hello there"))
        assert done.status == TranscriptStatus.COMPLETED
        assert done.full_text == "hello there"
        assert done.processed_at is not None

    def test_complete_only_once(self, make_payload):
        store = InMemoryStore()
        t = store.create_transcript("u1", "memo.m4a")
        store.complete_transcript(t.id, make_payload("hello"))
        with pytest.raises(ValueError, match="not processing"):
            store.complete_transcript(t.id, make_payload("again"))
        with pytest.raises(ValueError, match="not processing"):
            store.fail_transcript(t.id)

    def test_fail(self):
        store = InMemoryStore()
        t = store.create_transcript("u1", "memo.m4a")
        assert store.fail_transcript(t.id).status == TranscriptStatus.FAILED

    def test_unknown_transcript(self):
        with pytest.raises(KeyError):
            InMemoryStore().complete_transcript("missing", "")

    @pytest.mark.asyncio
    async def test_reprocess_replaces_words(self, make_payload):
        store = InMemoryStore()
        t = store.create_transcript("u1", "memo.m4a")
        store.complete_transcript(t.id, make_payload("one two three"))
        store.reprocess_transcript(t.id, make_payload("four five"))
        words = await store.get_all_words(t.id)
        assert [w.text for w in words] == ["four", "five"]
        assert (await store.get_transcript("u1", t.id)).full_text == "four five"

    @pytest.mark.asyncio
    async def test_malformed_payload_leaves_state(self, make_payload):
        store = InMemoryStore()
        t = store.create_transcript("u1", "memo.m4a")
        store.complete_transcript(t.id, make_payload("one two"))
        with pytest.raises(MalformedTranscriptData):
            store.reprocess_transcript(t.id, {"words": ["bogus"]})
        assert [w.text for w in await store.get_all_words(t.id)] == ["one", "two"]

    @pytest.mark.asyncio
    async def test_delete_cascades(self, store):
        assert await store.delete_transcript("u1", "t1") is True
        assert await store.get_all_words("t1") == []
        assert await store.get_transcript("u1", "t1") is None

    @pytest.mark.asyncio
    async def test_delete_requires_owner(self, store):
        assert await store.delete_transcript("u2", "t1") is False
        assert await store.get_transcript("u1", "t1") is not None


class TestQueries:
    @pytest.mark.asyncio
    async def test_exact_words(self, store):
        hits = await store.find_exact_words("u1", ["the", "fox"])
        assert [(h.text, h.sequence_index) for h in hits] == [
            ("The", 0), ("fox", 3), ("the", 6)
        ]
        assert hits[0].display_name == "Weekly sync.mp3"

    @pytest.mark.asyncio
    async def test_partial_words_superset(self, store):
        exact = await store.find_exact_words("u1", ["o"])
        partial = await store.find_partial_words("u1", ["o"])
        assert exact == []
        assert {h.text for h in partial} == {"brown", "fox", "over", "dog"}

    @pytest.mark.asyncio
    async def test_scoped_to_user(self, store):
        hits = await store.find_exact_words("u2", ["fox"])
        assert [h.transcript_id for h in hits] == ["t3"]

    @pytest.mark.asyncio
    async def test_filename_case_insensitive(self, store):
        found = await store.find_transcripts_by_filename("u1", "WEEKLY")
        assert [t.id for t in found] == ["t1"]

    @pytest.mark.asyncio
    async def test_full_text_completed_only(self, store):
        found = await store.find_transcripts_by_full_text("u1", "FOX")
        assert [t.id for t in found] == ["t1"]

    @pytest.mark.asyncio
    async def test_context_words(self, store):
        ctx = await store.get_context_words("t1", 1, 2)
        assert isinstance(ctx, ContextWords)
        assert [w.text for w in ctx.before] == ["The"]
        assert [w.text for w in ctx.after] == ["brown", "fox"]

    @pytest.mark.asyncio
    async def test_all_words_ordered(self, store):
        words = await store.get_all_words("t1")
        assert [w.sequence_index for w in words] == list(range(9))

    @pytest.mark.asyncio
    async def test_list_by_status(self, store):
        pending = await store.list_transcripts("u1", "processing")
        assert [t.id for t in pending] == ["t4"]
        assert len(await store.list_transcripts("u1")) == 3


class TestFromFile:
    @pytest.mark.asyncio
    async def test_seed(self, tmp_path, make_payload):
        corpus = tmp_path / "corpus.json"
        corpus.write_text(json.dumps([
            {"id": "a", "user_id": "u1", "display_name": "a.mp3",
             "payload": make_payload("hello world")},
            {"id": "b", "user_id": "u1", "display_name": "b.mp3", "status": "failed"},
            {"id": "c", "user_id": "u1", "display_name": "c.mp3", "status": "processing"},
        ]))
        store = InMemoryStore.from_file(corpus)
        statuses = {t.id: t.status for t in await store.list_transcripts("u1")}
        assert statuses == {
            "a": TranscriptStatus.COMPLETED,
            "b": TranscriptStatus.FAILED,
            "c": TranscriptStatus.PROCESSING,
        }
        assert len(await store.get_all_words("a")) == 2

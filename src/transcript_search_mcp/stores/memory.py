"""In-process store holding transcripts and their words."""

import json
import logging
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from transcript_search_mcp.ingest import extract_text, extract_words
from transcript_search_mcp.models import (
    ContextWords,
    Transcript,
    TranscriptStatus,
    Word,
    WordHit,
)
from .base import TranscriptStore

logger = logging.getLogger(__name__)


class InMemoryStore(TranscriptStore):
    def __init__(self):
        self._transcripts: dict[str, Transcript] = {}
        self._words: dict[str, list[Word]] = {}

    # -- Lifecycle --

    def create_transcript(
        self,
        user_id: str,
        display_name: str,
        file_name: str | None = None,
        transcript_id: str | None = None,
    ) -> Transcript:
        """Register an upload in the processing state."""
        transcript = Transcript(
            id=transcript_id or uuid.uuid4().hex,
            user_id=user_id,
            file_name=file_name or display_name,
            display_name=display_name,
        )
        self._transcripts[transcript.id] = transcript
        self._words[transcript.id] = []
        return transcript

    def complete_transcript(self, transcript_id: str, payload: Any) -> Transcript:
        """Attach a provider payload and mark the transcript completed."""
        transcript = self._require(transcript_id)
        if transcript.status != TranscriptStatus.PROCESSING:
            raise ValueError(
                f"Transcript {transcript_id} is {transcript.status.value}, not processing"
            )
        return self._apply_payload(transcript, payload)

    def reprocess_transcript(self, transcript_id: str, payload: Any) -> Transcript:
        """Replace a completed transcript's text and words in one step."""
        transcript = self._require(transcript_id)
        if transcript.status != TranscriptStatus.COMPLETED:
            raise ValueError(
                f"Transcript {transcript_id} is {transcript.status.value}, not completed"
            )
        return self._apply_payload(transcript, payload)

    def fail_transcript(self, transcript_id: str) -> Transcript:
        transcript = self._require(transcript_id)
        if transcript.status != TranscriptStatus.PROCESSING:
            raise ValueError(
                f"Transcript {transcript_id} is {transcript.status.value}, not processing"
            )
        failed = transcript.model_copy(
            update={
                "status": TranscriptStatus.FAILED,
                "processed_at": datetime.now(timezone.utc),
            }
        )
        self._transcripts[transcript_id] = failed
        return failed

    async def delete_transcript(self, user_id: str, transcript_id: str) -> bool:
        """Remove a transcript and its words. Returns False if not owned."""
        transcript = self._transcripts.get(transcript_id)
        if transcript is None or transcript.user_id != user_id:
            return False
        del self._transcripts[transcript_id]
        self._words.pop(transcript_id, None)
        return True

    def _require(self, transcript_id: str) -> Transcript:
        transcript = self._transcripts.get(transcript_id)
        if transcript is None:
            raise KeyError(f"Unknown transcript: {transcript_id}")
        return transcript

    def _apply_payload(self, transcript: Transcript, payload: Any) -> Transcript:
        # Extract first: a malformed payload must leave stored state untouched
        words = extract_words(transcript.id, payload)
        updated = transcript.model_copy(
            update={
                "full_text": extract_text(payload, words),
                "status": TranscriptStatus.COMPLETED,
                "processed_at": datetime.now(timezone.utc),
            }
        )
        self._transcripts[transcript.id] = updated
        self._words[transcript.id] = words
        logger.info(f"Stored {len(words)} words for transcript {transcript.id}")
        return updated

    @classmethod
    def from_file(cls, path: str | Path) -> "InMemoryStore":
        """Seed a store from a JSON list of transcript records.

        Each record carries ``user_id`` and ``display_name`` plus optional
        ``id``, ``file_name``, ``status`` and the provider ``payload``.
        """
        store = cls()
        records = json.loads(Path(path).read_text(encoding="utf-8"))
        for record in records:
            transcript = store.create_transcript(
                user_id=record["user_id"],
                display_name=record["display_name"],
                file_name=record.get("file_name"),
                transcript_id=record.get("id"),
            )
            status = record.get("status", TranscriptStatus.COMPLETED.value)
            if status == TranscriptStatus.COMPLETED.value:
                store.complete_transcript(transcript.id, record.get("payload", ""))
            elif status == TranscriptStatus.FAILED.value:
                store.fail_transcript(transcript.id)
        logger.info(f"Loaded {len(records)} transcripts from {path}")
        return store

    # -- Queries --

    def _completed(self, user_id: str) -> list[Transcript]:
        owned = [
            t for t in self._transcripts.values()
            if t.user_id == user_id and t.status == TranscriptStatus.COMPLETED
        ]
        return sorted(owned, key=lambda t: t.uploaded_at, reverse=True)

    def _hits(self, user_id: str, predicate) -> list[WordHit]:
        hits = []
        for transcript in self._completed(user_id):
            for word in self._words.get(transcript.id, []):
                if predicate(word.normalized):
                    hits.append(
                        WordHit(
                            **word.model_dump(),
                            file_name=transcript.file_name,
                            display_name=transcript.display_name,
                        )
                    )
        return hits

    async def find_exact_words(self, user_id: str, tokens: list[str]) -> list[WordHit]:
        wanted = set(tokens)
        return self._hits(user_id, lambda text: text in wanted)

    async def find_partial_words(self, user_id: str, tokens: list[str]) -> list[WordHit]:
        return self._hits(user_id, lambda text: any(t in text for t in tokens))

    async def find_transcripts_by_filename(
        self, user_id: str, raw_query: str
    ) -> list[Transcript]:
        q = raw_query.lower()
        return [
            t for t in self._completed(user_id)
            if q in t.display_name.lower() or q in t.file_name.lower()
        ]

    async def find_transcripts_by_full_text(
        self, user_id: str, raw_query: str
    ) -> list[Transcript]:
        q = raw_query.lower()
        return [t for t in self._completed(user_id) if q in t.full_text.lower()]

    async def get_context_words(
        self, transcript_id: str, sequence_index: int, window_size: int
    ) -> ContextWords:
        words = self._words.get(transcript_id, [])
        return ContextWords(
            before=[
                w for w in words
                if sequence_index - window_size <= w.sequence_index < sequence_index
            ],
            after=[
                w for w in words
                if sequence_index < w.sequence_index <= sequence_index + window_size
            ],
        )

    async def get_all_words(self, transcript_id: str) -> list[Word]:
        return list(self._words.get(transcript_id, []))

    async def list_transcripts(
        self, user_id: str, status: str | None = None
    ) -> list[Transcript]:
        owned = [t for t in self._transcripts.values() if t.user_id == user_id]
        if status:
            owned = [t for t in owned if t.status.value == status]
        return sorted(owned, key=lambda t: t.uploaded_at, reverse=True)

    async def get_transcript(self, user_id: str, transcript_id: str) -> Transcript | None:
        transcript = self._transcripts.get(transcript_id)
        if transcript is None or transcript.user_id != user_id:
            return None
        return transcript

    async def close(self) -> None:
        pass

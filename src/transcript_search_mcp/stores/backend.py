"""Backend store that queries a remote transcript storage service."""

import logging
from typing import Any

import httpx

from transcript_search_mcp.models import Transcript
from .base import TranscriptStore

logger = logging.getLogger(__name__)


class BackendStore(TranscriptStore):
    def __init__(self, base_url: str, api_key: str = ""):
        self._base_url = base_url.rstrip("/")
        self._headers = {}
        if api_key:
            self._headers["X-API-Key"] = api_key
        self._client = httpx.AsyncClient(
            base_url=self._base_url,
            headers=self._headers,
            timeout=30.0,
        )

    async def _get(self, path: str, params: dict | None = None) -> Any:
        resp = await self._client.get(path, params=params)
        resp.raise_for_status()
        return resp.json()

    # Word rows are returned raw; the engine validates them per transcript.

    async def find_exact_words(self, user_id: str, tokens: list[str]) -> list[dict]:
        data = await self._get(f"/users/{user_id}/words/exact", {"tokens": tokens})
        return data.get("words", [])

    async def find_partial_words(self, user_id: str, tokens: list[str]) -> list[dict]:
        data = await self._get(f"/users/{user_id}/words/partial", {"tokens": tokens})
        return data.get("words", [])

    async def find_transcripts_by_filename(
        self, user_id: str, raw_query: str
    ) -> list[Transcript]:
        data = await self._get(
            f"/users/{user_id}/transcripts/search", {"filename": raw_query}
        )
        return [Transcript(**t) for t in data.get("transcripts", [])]

    async def find_transcripts_by_full_text(
        self, user_id: str, raw_query: str
    ) -> list[Transcript]:
        data = await self._get(
            f"/users/{user_id}/transcripts/search", {"text": raw_query}
        )
        return [Transcript(**t) for t in data.get("transcripts", [])]

    async def get_context_words(
        self, transcript_id: str, sequence_index: int, window_size: int
    ) -> dict:
        return await self._get(
            f"/transcripts/{transcript_id}/context",
            {"index": sequence_index, "window": window_size},
        )

    async def get_all_words(self, transcript_id: str) -> list[dict]:
        data = await self._get(f"/transcripts/{transcript_id}/words")
        return data.get("words", [])

    async def list_transcripts(
        self, user_id: str, status: str | None = None
    ) -> list[Transcript]:
        params = {"status": status} if status else None
        data = await self._get(f"/users/{user_id}/transcripts", params)
        return [Transcript(**t) for t in data.get("transcripts", [])]

    async def get_transcript(self, user_id: str, transcript_id: str) -> Transcript | None:
        resp = await self._client.get(f"/users/{user_id}/transcripts/{transcript_id}")
        if resp.status_code == 404:
            return None
        resp.raise_for_status()
        return Transcript(**resp.json())

    async def delete_transcript(self, user_id: str, transcript_id: str) -> bool:
        resp = await self._client.delete(f"/users/{user_id}/transcripts/{transcript_id}")
        if resp.status_code == 404:
            return False
        resp.raise_for_status()
        return True

    async def close(self) -> None:
        await self._client.aclose()

"""Abstract base for transcript stores.

A store answers the read-only candidate queries the search engine needs.
Rows may come back as models or as plain mappings; the engine validates
them so one transcript's bad rows can be isolated.
"""

from abc import ABC, abstractmethod
from typing import Any, Mapping

from pydantic import BaseModel

from transcript_search_mcp.models import Transcript

Row = Mapping[str, Any] | BaseModel


class TranscriptStore(ABC):
    @abstractmethod
    async def find_exact_words(self, user_id: str, tokens: list[str]) -> list[Row]:
        """Words in the user's completed transcripts equal to any token."""
        ...

    @abstractmethod
    async def find_partial_words(self, user_id: str, tokens: list[str]) -> list[Row]:
        """Words in the user's completed transcripts containing any token."""
        ...

    @abstractmethod
    async def find_transcripts_by_filename(
        self, user_id: str, raw_query: str
    ) -> list[Transcript]:
        """Completed transcripts whose display or stored name contains the query."""
        ...

    @abstractmethod
    async def find_transcripts_by_full_text(
        self, user_id: str, raw_query: str
    ) -> list[Transcript]:
        """Completed transcripts whose full text contains the query."""
        ...

    @abstractmethod
    async def get_context_words(
        self, transcript_id: str, sequence_index: int, window_size: int
    ) -> Mapping[str, list[Row]] | BaseModel:
        """Up to window_size words on each side of sequence_index."""
        ...

    @abstractmethod
    async def get_all_words(self, transcript_id: str) -> list[Row]:
        """Every word of the transcript ordered by sequence index."""
        ...

    @abstractmethod
    async def list_transcripts(
        self, user_id: str, status: str | None = None
    ) -> list[Transcript]:
        """Transcripts owned by the user, optionally filtered by status."""
        ...

    @abstractmethod
    async def get_transcript(self, user_id: str, transcript_id: str) -> Transcript | None:
        """Single transcript owned by the user."""
        ...

    @abstractmethod
    async def delete_transcript(self, user_id: str, transcript_id: str) -> bool:
        """Delete a transcript and its words. False if the user does not own it."""
        ...

    @abstractmethod
    async def close(self) -> None:
        """Clean up resources."""
        ...

"""Data models for transcripts and search results."""

from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, Field, model_validator


class TranscriptStatus(str, Enum):
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


class MatchType(str, Enum):
    EXACT = "exact"
    PARTIAL = "partial"
    FUZZY = "fuzzy"
    FILENAME = "filename"


class Word(BaseModel):
    """One transcribed token with its timing and position."""

    transcript_id: str
    text: str
    start_time: float
    end_time: float
    sequence_index: int = Field(ge=0)

    @model_validator(mode="after")
    def _check_times(self):
        if self.end_time < self.start_time:
            raise ValueError(
                f"end_time {self.end_time} precedes start_time {self.start_time}"
            )
        return self

    @property
    def normalized(self) -> str:
        return self.text.lower()


class WordHit(Word):
    """A candidate word joined with the names of its transcript."""

    file_name: str
    display_name: str


class ContextWords(BaseModel):
    before: list[Word] = []
    after: list[Word] = []


class Transcript(BaseModel):
    id: str
    user_id: str
    file_name: str
    display_name: str
    full_text: str = ""
    status: TranscriptStatus = TranscriptStatus.PROCESSING
    uploaded_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    processed_at: datetime | None = None


class Match(BaseModel):
    text: str
    start_time: float = 0.0
    end_time: float = 0.0
    context_before: str = ""
    context_after: str = ""
    score: float = Field(ge=0.0, le=1.0)
    match_type: MatchType


class SearchResult(BaseModel):
    file_id: str
    file_name: str
    display_name: str
    matches: list[Match] = []
    relevance_score: float = 0.0


class SearchPage(BaseModel):
    results: list[SearchResult] = []
    total: int = 0
    page: int = 1
    limit: int = 10
    query: str = ""

    @property
    def pages(self) -> int:
        if self.limit <= 0:
            return 0
        return -(-self.total // self.limit)

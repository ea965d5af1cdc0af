"""Search error taxonomy."""


class SearchError(Exception):
    """Base class for search failures."""


class InvalidQuery(SearchError, ValueError):
    """Query is too short to search for."""


class RetrievalFailure(SearchError):
    """A store call failed; the whole search is aborted."""


class MalformedTranscriptData(SearchError):
    """A transcript's stored word data has an unexpected shape."""

    def __init__(self, transcript_id: str | None, reason: str):
        self.transcript_id = transcript_id
        self.reason = reason
        super().__init__(f"Malformed data for transcript {transcript_id}: {reason}")

"""Word-level transcript search engine."""

import asyncio
import logging
from collections.abc import Mapping
from typing import Any, Awaitable

from pydantic import BaseModel, ValidationError

from transcript_search_mcp.aggregate import ResultAggregator, paginate
from transcript_search_mcp.config import SearchOptions
from transcript_search_mcp.errors import (
    InvalidQuery,
    MalformedTranscriptData,
    RetrievalFailure,
)
from transcript_search_mcp.models import (
    ContextWords,
    Match,
    SearchPage,
    TranscriptStatus,
    Word,
    WordHit,
)
from transcript_search_mcp.observer import LoggingObserver, SearchObserver
from transcript_search_mcp.scoring import (
    SpanMatch,
    exact_matches,
    filename_match,
    fulltext_matches,
    partial_matches,
    phrase_matches,
)
from transcript_search_mcp.stores.base import TranscriptStore
from transcript_search_mcp.utils import tokenize_query

logger = logging.getLogger(__name__)


def _row_transcript_id(row: Any) -> str | None:
    if isinstance(row, Mapping):
        value = row.get("transcript_id")
    else:
        value = getattr(row, "transcript_id", None)
    return value if isinstance(value, str) else None


def _as_dict(row: Any) -> Any:
    return row.model_dump() if isinstance(row, BaseModel) else row


def _group_hits(
    rows: list[Any], malformed: set[str]
) -> dict[str, list[WordHit]]:
    """Validate word hits and group them by transcript, first-seen order.

    Transcripts with unusable rows are recorded in ``malformed``; the caller
    drops all their hits.
    """
    grouped: dict[str, list[WordHit]] = {}
    for row in rows:
        try:
            hit = WordHit.model_validate(_as_dict(row))
        except ValidationError as e:
            transcript_id = _row_transcript_id(row)
            if transcript_id is None:
                logger.warning(f"Skipping word row without transcript id: {e}")
                continue
            if transcript_id not in malformed:
                logger.warning(f"Malformed word row in transcript {transcript_id}: {e}")
            malformed.add(transcript_id)
            continue
        grouped.setdefault(hit.transcript_id, []).append(hit)
    return grouped


def _validate_words(transcript_id: str, rows: Any) -> list[Word]:
    if not isinstance(rows, list):
        raise MalformedTranscriptData(transcript_id, "word list is not a list")
    try:
        words = [Word.model_validate(_as_dict(r)) for r in rows]
    except ValidationError as e:
        raise MalformedTranscriptData(transcript_id, str(e)) from e
    for prev, cur in zip(words, words[1:]):
        if cur.sequence_index <= prev.sequence_index:
            raise MalformedTranscriptData(
                transcript_id,
                f"sequence index {cur.sequence_index} follows {prev.sequence_index}",
            )
    return words


def _validate_context(transcript_id: str, payload: Any) -> ContextWords:
    try:
        return ContextWords.model_validate(_as_dict(payload))
    except ValidationError as e:
        raise MalformedTranscriptData(transcript_id, str(e)) from e


async def _gather_or_cancel(*calls: Awaitable) -> list[Any]:
    """Run calls concurrently; on the first failure cancel the rest."""
    tasks = [asyncio.ensure_future(c) for c in calls]
    try:
        return list(await asyncio.gather(*tasks))
    except Exception:
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        raise


class SearchEngine:
    """Ranks a user's transcripts against a keyword or phrase query."""

    def __init__(
        self,
        store: TranscriptStore,
        options: SearchOptions | None = None,
        observer: SearchObserver | None = None,
    ):
        self._store = store
        self.options = options or SearchOptions()
        self._observer = observer or LoggingObserver()

    async def _retrieve(self, name: str, call: Awaitable) -> Any:
        try:
            return await call
        except Exception as e:
            raise RetrievalFailure(f"{name} failed: {e}") from e

    async def search(
        self,
        user_id: str,
        raw_query: str,
        page: int = 1,
        limit: int | None = None,
    ) -> SearchPage:
        """Search the user's completed transcripts.

        Raises:
            InvalidQuery: query shorter than the minimum after trimming,
                or page/limit below 1. Raised before any store call.
            RetrievalFailure: any store call failed.
        """
        query = " ".join((raw_query or "").split())
        if len(query) < self.options.min_query_length:
            raise InvalidQuery(
                f"Search query must be at least {self.options.min_query_length} characters"
            )
        limit = self.options.default_page_size if limit is None else limit
        if page < 1 or limit < 1:
            raise InvalidQuery("page and limit must be at least 1")

        query_words = tokenize_query(query)
        normalized = " ".join(query_words)

        exact_rows, partial_rows, by_name, by_text = await _gather_or_cancel(
            self._retrieve(
                "find_exact_words", self._store.find_exact_words(user_id, query_words)
            ),
            self._retrieve(
                "find_partial_words", self._store.find_partial_words(user_id, query_words)
            ),
            self._retrieve(
                "find_transcripts_by_filename",
                self._store.find_transcripts_by_filename(user_id, query),
            ),
            self._retrieve(
                "find_transcripts_by_full_text",
                self._store.find_transcripts_by_full_text(user_id, query),
            ),
        )
        by_name = [t for t in by_name if t.status == TranscriptStatus.COMPLETED]
        by_text = [t for t in by_text if t.status == TranscriptStatus.COMPLETED]
        self._observer.candidates_retrieved(
            query,
            {
                "exact": len(exact_rows),
                "partial": len(partial_rows),
                "filename": len(by_name),
                "full_text": len(by_text),
            },
        )

        malformed: set[str] = set()
        exact = _group_hits(exact_rows, malformed)
        partial = _group_hits(partial_rows, malformed)
        for transcript_id in malformed:
            exact.pop(transcript_id, None)
            partial.pop(transcript_id, None)

        names: dict[str, tuple[str, str]] = {}
        for hits in (*exact.values(), *partial.values()):
            first = hits[0]
            names.setdefault(first.transcript_id, (first.file_name, first.display_name))

        phrase_ids: set[str] = set()
        if len(query_words) > 1:
            for t in by_text:
                if t.id not in malformed and normalized in t.full_text.lower():
                    phrase_ids.add(t.id)
                    names.setdefault(t.id, (t.file_name, t.display_name))

        candidate_ids = list(
            dict.fromkeys([*exact, *partial, *(t.id for t in by_text if t.id in phrase_ids)])
        )
        exact_keys = {
            (hit.transcript_id, hit.sequence_index)
            for hits in exact.values()
            for hit in hits
        }

        per_transcript = await _gather_or_cancel(
            *(
                self._word_level_matches(
                    transcript_id,
                    exact.get(transcript_id, []),
                    partial.get(transcript_id, []),
                    exact_keys,
                    normalized,
                    query_words if transcript_id in phrase_ids else None,
                )
                for transcript_id in candidate_ids
            )
        )

        aggregator = ResultAggregator(self.options.max_matches_per_file)
        counts = {"word": 0, "full_text": 0, "filename": 0}
        for transcript_id, matches in zip(candidate_ids, per_transcript):
            file_name, display_name = names[transcript_id]
            aggregator.add(transcript_id, file_name, display_name, matches)
            counts["word"] += len(matches)

        for t in by_text:
            if t.id in aggregator:
                continue
            matches = fulltext_matches(t, query, self.options)
            if aggregator.add_if_absent(t.id, t.file_name, t.display_name, matches):
                counts["full_text"] += len(matches)

        for t in by_name:
            if aggregator.add_if_absent(
                t.id, t.file_name, t.display_name, [filename_match(t, query, self.options)]
            ):
                counts["filename"] += 1

        self._observer.matches_produced(query, counts)

        results, total = paginate(aggregator.results(), page, limit)
        self._observer.results_ready(query, total, len(results))
        return SearchPage(
            results=results, total=total, page=page, limit=limit, query=query
        )

    async def _word_level_matches(
        self,
        transcript_id: str,
        exact: list[WordHit],
        partial: list[WordHit],
        exact_keys: set[tuple[str, int]],
        normalized: str,
        phrase_words: list[str] | None,
    ) -> list[Match]:
        """Exact, partial and phrase matches of one transcript, with context.

        Malformed data only discards this transcript's word-level evidence.
        """
        try:
            pending = exact_matches(exact) + partial_matches(partial, exact_keys, normalized)
            if phrase_words:
                rows = await self._retrieve(
                    "get_all_words", self._store.get_all_words(transcript_id)
                )
                words = _validate_words(transcript_id, rows)
                pending = phrase_matches(words, phrase_words) + pending
            return await _gather_or_cancel(*(self._with_context(p) for p in pending))
        except MalformedTranscriptData as e:
            logger.warning(f"{e}; falling back to full-text matching")
            return []

    async def _with_context(self, span: SpanMatch) -> Match:
        window = self.options.context_window
        if window == 0:
            return span.match
        lookups = [
            self._retrieve(
                "get_context_words",
                self._store.get_context_words(span.transcript_id, span.first_index, window),
            )
        ]
        if span.last_index != span.first_index:
            lookups.append(
                self._retrieve(
                    "get_context_words",
                    self._store.get_context_words(
                        span.transcript_id, span.last_index, window
                    ),
                )
            )
        found = await _gather_or_cancel(*lookups)
        head = _validate_context(span.transcript_id, found[0])
        tail = _validate_context(span.transcript_id, found[-1])
        return span.match.model_copy(
            update={
                "context_before": " ".join(w.text for w in head.before),
                "context_after": " ".join(w.text for w in tail.after),
            }
        )

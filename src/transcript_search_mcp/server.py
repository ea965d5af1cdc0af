"""Transcript Search MCP Server."""

import logging
import sys
import time
from collections import deque
from contextlib import asynccontextmanager
from typing import Annotated, Literal

from pydantic import Field
from mcp.server.fastmcp import FastMCP

from transcript_search_mcp.cache import SearchCache
from transcript_search_mcp.config import Mode, Settings, Transport
from transcript_search_mcp.engine import SearchEngine
from transcript_search_mcp.errors import InvalidQuery, RetrievalFailure
from transcript_search_mcp.models import Match, MatchType, SearchPage
from transcript_search_mcp.stores.backend import BackendStore
from transcript_search_mcp.stores.memory import InMemoryStore
from transcript_search_mcp.utils import format_timestamp

# Logging to stderr (MCP convention)
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    stream=sys.stderr,
)
logger = logging.getLogger("transcript-search-mcp")

# Module-level state
_store = None
_engine = None
_cache = None
_settings = None
_rate_window = deque()

# Tool annotations for read-only tools
TOOL_ANNOTATIONS = {
    "readOnlyHint": True,
    "destructiveHint": False,
    "openWorldHint": False,
}

DESTRUCTIVE_ANNOTATIONS = {
    "readOnlyHint": False,
    "destructiveHint": True,
    "openWorldHint": False,
}


@asynccontextmanager
async def app_lifespan(server: FastMCP):
    global _store, _engine, _cache, _settings, _rate_window
    _settings = Settings()
    _cache = SearchCache(
        max_size=_settings.cache_max_size,
        ttl=_settings.cache_ttl_seconds,
    )
    _rate_window = deque()

    if _settings.mode == Mode.BACKEND:
        _store = BackendStore(
            base_url=_settings.backend_url,
            api_key=_settings.backend_api_key,
        )
        logger.info(f"Backend mode: {_settings.backend_url}")
    elif _settings.corpus_path:
        _store = InMemoryStore.from_file(_settings.corpus_path)
        logger.info(f"Memory mode, corpus: {_settings.corpus_path}")
    else:
        _store = InMemoryStore()
        logger.info("Memory mode (empty corpus)")

    _engine = SearchEngine(_store, _settings.search_options())
    logger.info("Server started")
    yield

    if _store:
        await _store.close()
    logger.info("Server stopped")


mcp = FastMCP(
    "Transcript Search",
    instructions="Search uploaded audio transcripts by keyword or phrase with word-level timestamps",
    lifespan=app_lifespan,
)


def _check_rate_limit():
    """Sliding window rate limit."""
    now = time.time()
    limit = (_settings.rate_limit_per_minute if _settings else 30)
    while _rate_window and _rate_window[0] < now - 60:
        _rate_window.popleft()
    if len(_rate_window) >= limit:
        raise ValueError(
            f"Rate limit exceeded ({limit}/min). Try again in a few seconds."
        )
    _rate_window.append(now)


async def _search_cached(
    user_id: str, query: str, page: int, limit: int
) -> SearchPage:
    """Run a search with cache layer."""
    cached = _cache.get(user_id, query, page, limit)
    if cached:
        return SearchPage(**cached)

    result = await _engine.search(user_id, query, page, limit)
    _cache.set(user_id, query, page, limit, result.model_dump())
    return result


def _match_to_markdown(match: Match) -> str:
    """Format one match as a markdown bullet."""
    if match.match_type == MatchType.FILENAME:
        where = ""
    elif match.start_time or match.end_time:
        where = f"**[{format_timestamp(match.start_time)} - {format_timestamp(match.end_time)}]** "
    else:
        where = "**[text]** "
    snippet = " ".join(
        part for part in (match.context_before, f"**{match.text}**", match.context_after) if part
    )
    return f"- {where}{snippet} _({match.match_type.value}, {match.score:.2f})_"


def _page_to_markdown(page: SearchPage) -> str:
    header = (
        f"## Search Results: '{page.query}'\n"
        f"**{page.total} file(s) found** | Page {page.page} of {max(page.pages, 1)}\n"
    )
    sections = []
    for result in page.results:
        lines = [
            f"### {result.display_name} (`{result.file_id}`)",
            f"**Relevance:** {result.relevance_score:.2f}",
        ]
        lines.extend(_match_to_markdown(m) for m in result.matches)
        sections.append("\n".join(lines))
    return f"{header}\n" + "\n\n---\n\n".join(sections)


@mcp.tool(annotations=TOOL_ANNOTATIONS)
async def search_transcripts(
    user_id: Annotated[str, Field(description="Owner whose completed transcripts are searched")],
    query: Annotated[str, Field(description="Keyword or phrase to find (at least 2 characters, case-insensitive)")],
    page: Annotated[int, Field(default=1, ge=1, description="Result page, starting at 1")] = 1,
    limit: Annotated[int, Field(default=10, ge=1, le=100, description="Files per page")] = 10,
) -> str:
    """Search a user's transcripts and return ranked files with timestamped matches and context."""
    _check_rate_limit()

    try:
        result = await _search_cached(user_id, query, page, limit)
    except InvalidQuery as e:
        return f"Error: {e}"
    except RetrievalFailure as e:
        logger.error(f"Search failed for user {user_id}: {e}")
        return "Error: Search is temporarily unavailable."

    if not result.total:
        return f"No matches found for '{query.strip()}'."
    if not result.results:
        return f"No results on page {page} for '{query.strip()}' ({result.total} file(s) total)."
    return _page_to_markdown(result)


@mcp.tool(annotations=TOOL_ANNOTATIONS)
async def list_transcripts(
    user_id: Annotated[str, Field(description="Owner of the transcripts")],
    status: Annotated[Literal["all", "processing", "completed", "failed"], Field(default="all", description="Only list transcripts in this state")] = "all",
) -> str:
    """List a user's transcripts with their processing status."""
    _check_rate_limit()

    try:
        transcripts = await _store.list_transcripts(
            user_id, None if status == "all" else status
        )
    except Exception as e:
        return f"Error listing transcripts: {e}"

    if not transcripts:
        return "No transcripts found."

    lines = [f"## Transcripts ({len(transcripts)})"]
    for t in transcripts:
        lines.append(
            f"- **{t.display_name}** (`{t.id}`) | {t.status.value} | "
            f"uploaded {t.uploaded_at:%Y-%m-%d %H:%M}"
        )
    return "\n".join(lines)


@mcp.tool(annotations=TOOL_ANNOTATIONS)
async def get_transcript(
    user_id: Annotated[str, Field(description="Owner of the transcript")],
    transcript_id: Annotated[str, Field(description="Transcript id as shown by list_transcripts")],
) -> str:
    """Get the full plain text of one transcript."""
    _check_rate_limit()

    try:
        transcript = await _store.get_transcript(user_id, transcript_id)
    except Exception as e:
        return f"Error fetching transcript {transcript_id}: {e}"

    if transcript is None:
        return f"Error: Transcript not found: {transcript_id}"

    header = (
        f"## Transcript: {transcript.display_name}\n"
        f"**Status:** {transcript.status.value} | **File:** {transcript.file_name}\n"
    )
    return f"{header}\n{transcript.full_text}"


@mcp.tool(annotations=DESTRUCTIVE_ANNOTATIONS)
async def delete_transcript(
    user_id: Annotated[str, Field(description="Owner of the transcript")],
    transcript_id: Annotated[str, Field(description="Transcript id to delete along with its words")],
) -> str:
    """Delete a transcript and all of its word timestamps."""
    _check_rate_limit()

    try:
        deleted = await _store.delete_transcript(user_id, transcript_id)
    except Exception as e:
        return f"Error deleting transcript {transcript_id}: {e}"

    if not deleted:
        return f"Error: Transcript not found: {transcript_id}"
    _cache.invalidate_user(user_id)
    return f"Deleted transcript {transcript_id}."


# -- MCP Prompts --


@mcp.prompt()
def find_mentions(
    user_id: Annotated[str, Field(description="Owner whose transcripts are searched")],
    topic: Annotated[str, Field(description="The topic, keyword or phrase to look for")],
) -> str:
    """Find and summarize every moment a topic is mentioned across a user's recordings."""
    return f"""Please use the search_transcripts tool with user_id "{user_id}" to find mentions of "{topic}".

Then present:
1. Each recording where "{topic}" comes up, most relevant first
2. The timestamps of every mention with its surrounding context
3. Whether the match was exact, partial, phrase-level or filename-only
4. A short summary of what is said about "{topic}" """


# -- MCP Resources --


@mcp.resource("transcripts://help")
def help_resource() -> str:
    """Usage guide for the Transcript Search MCP server."""
    return """# Transcript Search MCP Server - Help Guide

## Available Tools

### search_transcripts
Search a user's completed transcripts by keyword or phrase.
- Queries must be at least 2 characters
- Exact word hits score 1.0; partial hits are scored by string similarity
- Multi-word queries also match contiguous phrases (punctuation ignored)
- Files matched only by name are ranked below content matches
- Example: search_transcripts(user_id="u1", query="quarterly budget", page=1, limit=10)

### list_transcripts
List transcripts with their processing status.
- Example: list_transcripts(user_id="u1", status="completed")

### get_transcript
Get the plain text of a single transcript.
- Example: get_transcript(user_id="u1", transcript_id="abc123")

### delete_transcript
Delete a transcript and its word timestamps.

## Tips
- Only completed transcripts are searchable
- Each file shows at most 10 matches, best first
"""


def main():
    settings = Settings()
    if settings.transport == Transport.STREAMABLE_HTTP:
        mcp.run(transport="streamable-http")
    else:
        mcp.run(transport="stdio")


if __name__ == "__main__":
    main()

"""Normalize transcription-provider payloads into canonical words.

Providers disagree on shape: some return a bare string, some a ``words``
array (each entry either a ``text``/``word`` string or a list of ``chars``),
some nest words under ``segments``. Everything downstream only ever sees
the :class:`~transcript_search_mcp.models.Word` list produced here.
"""

import logging
from typing import Any

from pydantic import ValidationError

from transcript_search_mcp.errors import MalformedTranscriptData
from transcript_search_mcp.models import Word

logger = logging.getLogger(__name__)


def _first(entry: dict, *keys: str) -> Any:
    for key in keys:
        if entry.get(key) is not None:
            return entry[key]
    return None


def _entry_text(entry: dict) -> str:
    chars = entry.get("chars")
    if isinstance(chars, list):
        return "".join(c.get("char", "") for c in chars if isinstance(c, dict))
    text = _first(entry, "text", "word")
    return text if isinstance(text, str) else ""


def _raw_word_entries(payload: dict) -> list:
    if isinstance(payload.get("words"), list):
        return payload["words"]
    entries = []
    for segment in payload.get("segments") or []:
        if isinstance(segment, dict) and isinstance(segment.get("words"), list):
            entries.extend(segment["words"])
    return entries


def extract_words(transcript_id: str, payload: Any) -> list[Word]:
    """Map a provider payload to an ordered word list.

    Spacing entries and blank words are dropped; sequence indices are
    assigned after filtering so they stay dense.
    """
    if isinstance(payload, str):
        return []
    if not isinstance(payload, dict):
        raise MalformedTranscriptData(
            transcript_id, f"unsupported payload type {type(payload).__name__}"
        )

    words = []
    for entry in _raw_word_entries(payload):
        if not isinstance(entry, dict):
            raise MalformedTranscriptData(transcript_id, f"word entry is {entry!r}")
        if entry.get("type") == "spacing":
            continue
        text = _entry_text(entry).strip()
        if not text:
            continue
        try:
            words.append(
                Word(
                    transcript_id=transcript_id,
                    text=text,
                    start_time=_first(entry, "start_time", "start"),
                    end_time=_first(entry, "end_time", "end"),
                    sequence_index=len(words),
                )
            )
        except ValidationError as e:
            raise MalformedTranscriptData(transcript_id, str(e)) from e

    logger.debug(f"Extracted {len(words)} words for transcript {transcript_id}")
    return words


def extract_text(payload: Any, words: list[Word] | None = None) -> str:
    """Plain text of a payload, falling back to the joined words."""
    if isinstance(payload, str):
        return payload
    if isinstance(payload, dict) and isinstance(payload.get("text"), str):
        return payload["text"]
    return " ".join(w.text for w in words or [])

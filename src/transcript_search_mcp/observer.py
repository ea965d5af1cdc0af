"""Checkpoint hooks invoked by the search engine."""

import logging
from typing import Protocol

logger = logging.getLogger(__name__)


class SearchObserver(Protocol):
    def candidates_retrieved(self, query: str, counts: dict[str, int]) -> None: ...

    def matches_produced(self, query: str, counts: dict[str, int]) -> None: ...

    def results_ready(self, query: str, total: int, returned: int) -> None: ...


class LoggingObserver:
    """Default observer that writes each checkpoint to the module logger."""

    def candidates_retrieved(self, query: str, counts: dict[str, int]) -> None:
        logger.debug(f"Candidates for '{query}': {counts}")

    def matches_produced(self, query: str, counts: dict[str, int]) -> None:
        logger.debug(f"Matches for '{query}': {counts}")

    def results_ready(self, query: str, total: int, returned: int) -> None:
        logger.info(f"Search '{query}': {total} file(s), returning {returned}")

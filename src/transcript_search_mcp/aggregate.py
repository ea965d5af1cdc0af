"""Group matches per file, rank them and paginate."""

from transcript_search_mcp.models import Match, SearchResult


class ResultAggregator:
    """Per-request collection of matches keyed by file id.

    Files keep the order in which they were first added, which makes the
    final ranking stable for files with equal relevance.
    """

    def __init__(self, max_matches_per_file: int = 10):
        self._max_matches = max_matches_per_file
        self._files: dict[str, SearchResult] = {}

    def __contains__(self, file_id: str) -> bool:
        return file_id in self._files

    def __len__(self) -> int:
        return len(self._files)

    def add(
        self, file_id: str, file_name: str, display_name: str, matches: list[Match]
    ) -> None:
        if not matches:
            return
        result = self._files.get(file_id)
        if result is None:
            result = SearchResult(
                file_id=file_id, file_name=file_name, display_name=display_name
            )
            self._files[file_id] = result
        result.matches.extend(matches)

    def add_if_absent(
        self, file_id: str, file_name: str, display_name: str, matches: list[Match]
    ) -> bool:
        """Add weaker evidence only for files not represented yet."""
        if file_id in self._files:
            return False
        self.add(file_id, file_name, display_name, matches)
        return file_id in self._files

    def results(self) -> list[SearchResult]:
        """Ranked results with each file's matches sorted and capped."""
        ranked = []
        for result in self._files.values():
            matches = sorted(result.matches, key=lambda m: (-m.score, m.start_time))
            ranked.append(
                result.model_copy(
                    update={
                        "matches": matches[: self._max_matches],
                        "relevance_score": max(m.score for m in matches),
                    }
                )
            )
        ranked.sort(key=lambda r: -r.relevance_score)
        return ranked


def paginate(
    results: list[SearchResult], page: int, limit: int
) -> tuple[list[SearchResult], int]:
    """Slice one page out of the ranked results; total counts files."""
    offset = (page - 1) * limit
    return results[offset:offset + limit], len(results)

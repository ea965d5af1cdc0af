"""In-memory TTL cache for search pages."""

from cachetools import TTLCache


class SearchCache:
    def __init__(self, max_size: int = 100, ttl: int = 300):
        self._cache: TTLCache = TTLCache(maxsize=max_size, ttl=ttl)
        self._hits = 0
        self._misses = 0

    def _key(self, user_id: str, query: str, page: int, limit: int) -> tuple:
        return (user_id, " ".join(query.split()), page, limit)

    def get(self, user_id: str, query: str, page: int, limit: int) -> dict | None:
        key = self._key(user_id, query, page, limit)
        result = self._cache.get(key)
        if result is not None:
            self._hits += 1
        else:
            self._misses += 1
        return result

    def set(self, user_id: str, query: str, page: int, limit: int, data: dict) -> None:
        key = self._key(user_id, query, page, limit)
        self._cache[key] = data

    def invalidate_user(self, user_id: str) -> int:
        """Drop every cached page for a user whose corpus changed."""
        stale = [key for key in list(self._cache.keys()) if key[0] == user_id]
        for key in stale:
            self._cache.pop(key, None)
        return len(stale)

    def stats(self) -> dict:
        return {
            "size": len(self._cache),
            "max_size": self._cache.maxsize,
            "hits": self._hits,
            "misses": self._misses,
            "hit_rate": round(self._hits / max(self._hits + self._misses, 1) * 100, 1),
        }

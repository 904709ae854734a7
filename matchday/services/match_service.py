"""
Live match listing, cached briefly since scores move during play.
"""
from __future__ import annotations

import sqlite3

from matchday.cache import Cache
from matchday.models import Match, MatchStatus
from matchday.persistence.repositories import MatchRepository

LIVE_CACHE_KEY = "matches:live"
LIVE_CACHE_TTL = 15.0
LIVE_LIMIT = 200


class MatchService:
    def __init__(self, cache: Cache, ttl: float = LIVE_CACHE_TTL) -> None:
        self._cache = cache
        self._ttl = ttl
        self._match_repo = MatchRepository()

    def live(self, conn: sqlite3.Connection) -> list[Match]:
        cached = self._cache.get(LIVE_CACHE_KEY)
        if cached is not None:
            return cached
        matches = self._match_repo.list_filtered(conn, status=MatchStatus.LIVE.value, limit=LIVE_LIMIT)
        self._cache.set(LIVE_CACHE_KEY, matches, ttl=self._ttl)
        return matches

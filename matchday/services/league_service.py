"""
League standings: a ranked table derived from a league's finished matches.
Read-through cached; the table is never stored.
"""
from __future__ import annotations

import sqlite3
from typing import Iterable

from matchday.cache import Cache
from matchday.models import Match, MatchStatus, StandingsRow
from matchday.persistence.repositories import MatchRepository

POINTS_FOR_WIN = 3
POINTS_FOR_DRAW = 1

STANDINGS_CACHE_TTL = 60.0


def standings_cache_key(league_id: int) -> str:
    return f"standings:{league_id}"


def compute_standings(matches: Iterable[Match]) -> list[StandingsRow]:
    """
    Aggregate finished matches into ranked rows.
    Order: points, goal difference, goals for (all descending). Remaining ties keep the
    order in which teams were first seen. A missing score counts as 0.
    """
    by_team: dict[int, StandingsRow] = {}

    def row_for(team_id: int, name: str | None) -> StandingsRow:
        if team_id not in by_team:
            by_team[team_id] = StandingsRow(team_id=team_id, team_name=name or str(team_id))
        return by_team[team_id]

    for m in matches:
        home = row_for(m.home_team_id, m.home_team_name)
        away = row_for(m.away_team_id, m.away_team_name)
        home_goals = m.home_score or 0
        away_goals = m.away_score or 0
        for row, scored, conceded in ((home, home_goals, away_goals), (away, away_goals, home_goals)):
            row.played += 1
            row.goals_for += scored
            row.goals_against += conceded
            if scored > conceded:
                row.won += 1
                row.points += POINTS_FOR_WIN
            elif scored < conceded:
                row.lost += 1
            else:
                row.drawn += 1
                row.points += POINTS_FOR_DRAW

    # sorted() is stable, so equal keys keep first-seen order
    rows = sorted(by_team.values(), key=lambda r: (-r.points, -r.goal_difference, -r.goals_for))
    for position, row in enumerate(rows, start=1):
        row.position = position
    return rows


class LeagueService:
    """Standings for one league, cached per league id."""

    def __init__(self, cache: Cache, ttl: float = STANDINGS_CACHE_TTL) -> None:
        self._cache = cache
        self._ttl = ttl
        self._match_repo = MatchRepository()

    def standings(self, conn: sqlite3.Connection, league_id: int) -> list[StandingsRow]:
        """Ranked table for league_id. Empty when the league has no finished match."""
        key = standings_cache_key(league_id)
        cached = self._cache.get(key)
        if cached is not None:
            return cached
        matches = self._match_repo.list_by_league_and_status(conn, league_id, MatchStatus.FINISHED.value)
        rows = compute_standings(matches)
        self._cache.set(key, rows, ttl=self._ttl)
        return rows

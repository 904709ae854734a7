"""
Team form: the most recent finished results of one team, newest first.
"""
from __future__ import annotations

import sqlite3
from typing import Iterable

from matchday.cache import Cache
from matchday.models import FormEntry, FormResult, Match, MatchStatus
from matchday.persistence.repositories import MatchRepository

DEFAULT_FORM_LIMIT = 5
FORM_CACHE_TTL = 60.0


def form_cache_key(team_id: int, limit: int) -> str:
    return f"form:{team_id}:{limit}"


def classify_result(goals_for: int, goals_against: int) -> FormResult:
    if goals_for > goals_against:
        return FormResult.WIN
    if goals_for < goals_against:
        return FormResult.LOSS
    return FormResult.DRAW


def compute_form(team_id: int, matches: Iterable[Match]) -> list[FormEntry]:
    """One entry per match from team_id's side; input order is kept."""
    entries: list[FormEntry] = []
    for m in matches:
        is_home = m.home_team_id == team_id
        home_goals = m.home_score or 0
        away_goals = m.away_score or 0
        goals_for, goals_against = (home_goals, away_goals) if is_home else (away_goals, home_goals)
        opponent = m.away_team_name if is_home else m.home_team_name
        entries.append(FormEntry(
            match_id=m.id,
            date=m.match_date,
            result=classify_result(goals_for, goals_against).value,
            opponent=opponent or "",
            goals_for=goals_for,
            goals_against=goals_against,
        ))
    return entries


class TeamService:
    """Recent form per team, cached per (team, limit)."""

    def __init__(self, cache: Cache, ttl: float = FORM_CACHE_TTL) -> None:
        self._cache = cache
        self._ttl = ttl
        self._match_repo = MatchRepository()

    def recent_form(self, conn: sqlite3.Connection, team_id: int, limit: int = DEFAULT_FORM_LIMIT) -> list[FormEntry]:
        """Up to limit finished matches, most recent first. Fewer matches give a shorter list."""
        key = form_cache_key(team_id, limit)
        cached = self._cache.get(key)
        if cached is not None:
            return cached
        matches = self._match_repo.list_for_team(conn, team_id, MatchStatus.FINISHED.value, limit)
        entries = compute_form(team_id, matches)
        self._cache.set(key, entries, ttl=self._ttl)
        return entries

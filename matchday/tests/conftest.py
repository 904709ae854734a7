"""
Shared fixtures: a temporary database per test, a fresh cache, and small seed helpers.
"""
from __future__ import annotations

import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parent.parent.parent))

from matchday.auth import hash_password
from matchday.cache import TTLCache
from matchday.models import MatchStatus, TargetType, UserRole
from matchday.persistence.db import get_connection, init_db, set_db_path
from matchday.persistence.repositories import EntityRepository, UserRepository


class FakeClock:
    """Manually advanced monotonic clock for cache expiry tests."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def db_path(tmp_path):
    """Temporary DB with the full schema; also becomes the default path for get_connection."""
    path = tmp_path / "matchday_test.db"
    set_db_path(path)
    init_db(db_path=path)
    return path


@pytest.fixture
def db_conn(db_path):
    conn = get_connection()
    try:
        yield conn
    finally:
        conn.close()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def cache(clock):
    return TTLCache(clock=clock)


@pytest.fixture
def user(db_conn):
    return UserRepository().create(db_conn, "fan", hash_password("secret-pw"))


@pytest.fixture
def admin(db_conn):
    return UserRepository().create(db_conn, "moderator", hash_password("admin-pw"), role=UserRole.ADMIN)


def add_team(conn, name: str, country: str = "England") -> int:
    return EntityRepository(TargetType.TEAM).create(conn, {"name": name, "country": country})


def add_league(conn, name: str = "Premier League", country: str = "England") -> int:
    return EntityRepository(TargetType.LEAGUE).create(
        conn, {"name": name, "country": country, "competition_type": "DomesticLeague"}
    )


def add_match(
    conn,
    league_id: int,
    home_id: int,
    away_id: int,
    home_score: int | None,
    away_score: int | None,
    match_date: str = "2024-08-17T15:00:00+00:00",
    status: str = MatchStatus.FINISHED.value,
) -> int:
    return EntityRepository(TargetType.MATCH).create(
        conn,
        {
            "league_id": league_id,
            "home_team_id": home_id,
            "away_team_id": away_id,
            "home_score": home_score,
            "away_score": away_score,
            "match_date": match_date,
            "status": status,
        },
    )

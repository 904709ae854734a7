"""
League standings: aggregation, ordering and read-through caching.
"""
from __future__ import annotations

from datetime import datetime

import pytest

from conftest import add_league, add_match, add_team
from matchday.models import Match, MatchStatus
from matchday.services.league_service import LeagueService, compute_standings, standings_cache_key


def _m(mid, home, away, hs, as_, names=None):
    names = names or {}
    return Match(
        id=mid, league_id=1, home_team_id=home, away_team_id=away,
        match_date=datetime(2024, 8, mid), status=MatchStatus.FINISHED.value,
        home_score=hs, away_score=as_,
        home_team_name=names.get(home), away_team_name=names.get(away),
    )


@pytest.fixture
def league_service(cache):
    return LeagueService(cache)


def test_three_team_table():
    names = {1: "A", 2: "B", 3: "C"}
    rows = compute_standings([
        _m(1, 1, 2, 2, 0, names),  # A beats B
        _m(2, 2, 3, 1, 1, names),  # B draws C
        _m(3, 3, 1, 0, 3, names),  # C loses to A
    ])
    assert [r.team_name for r in rows] == ["A", "B", "C"]
    a, b, c = rows
    assert (a.played, a.won, a.drawn, a.lost, a.points, a.goal_difference) == (2, 2, 0, 0, 6, 5)
    assert (b.points, b.goals_for, b.goals_against) == (1, 1, 3)
    assert (c.points, c.goal_difference) == (1, -3)
    assert [r.position for r in rows] == [1, 2, 3]


def test_goals_for_breaks_equal_points_and_difference():
    rows = compute_standings([
        _m(1, 1, 2, 3, 3),
        _m(2, 3, 4, 0, 0),
    ])
    # all four on 1 point and GD 0; teams 1 and 2 scored more
    assert [r.team_id for r in rows] == [1, 2, 3, 4]


def test_full_ties_keep_first_seen_order():
    rows = compute_standings([
        _m(1, 4, 3, 1, 1),
        _m(2, 2, 1, 1, 1),
    ])
    assert [r.team_id for r in rows] == [4, 3, 2, 1]


def test_missing_score_counts_as_zero():
    rows = compute_standings([_m(1, 1, 2, None, 1)])
    assert rows[0].team_id == 2
    assert rows[1].goals_for == 0
    assert rows[1].lost == 1


def test_no_matches_gives_empty_table():
    assert compute_standings([]) == []


def test_standings_reads_only_finished_matches_of_the_league(db_conn, league_service):
    league_id = add_league(db_conn)
    other_league = add_league(db_conn, "La Liga", "Spain")
    ars, che, liv = add_team(db_conn, "Arsenal"), add_team(db_conn, "Chelsea"), add_team(db_conn, "Liverpool")
    add_match(db_conn, league_id, ars, che, 2, 1)
    add_match(db_conn, league_id, che, liv, None, None, status=MatchStatus.SCHEDULED.value)
    add_match(db_conn, other_league, liv, ars, 4, 0)

    rows = league_service.standings(db_conn, league_id)
    assert [(r.team_name, r.points) for r in rows] == [("Arsenal", 3), ("Chelsea", 0)]


def test_league_without_finished_matches_is_empty(db_conn, league_service):
    league_id = add_league(db_conn)
    assert league_service.standings(db_conn, league_id) == []


def test_standings_served_from_cache_until_expiry(db_conn, league_service, cache, clock):
    league_id = add_league(db_conn)
    ars, che = add_team(db_conn, "Arsenal"), add_team(db_conn, "Chelsea")
    add_match(db_conn, league_id, ars, che, 1, 0)

    first = league_service.standings(db_conn, league_id)
    assert cache.get(standings_cache_key(league_id)) is first

    add_match(db_conn, league_id, che, ars, 3, 0, match_date="2024-08-24T15:00:00+00:00")
    assert league_service.standings(db_conn, league_id) is first

    clock.advance(60)
    refreshed = league_service.standings(db_conn, league_id)
    assert [(r.team_name, r.points) for r in refreshed] == [("Chelsea", 3), ("Arsenal", 3)]

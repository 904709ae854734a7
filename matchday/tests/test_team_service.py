"""
Team form: newest-first results seen from the queried team's side.
"""
from __future__ import annotations

import pytest

from conftest import add_league, add_match, add_team
from matchday.models import FormResult, MatchStatus
from matchday.services.team_service import TeamService, classify_result, form_cache_key


@pytest.fixture
def team_service(cache):
    return TeamService(cache)


@pytest.fixture
def fixtures(db_conn):
    """Arsenal with three finished matches on d1 < d2 < d3 and one scheduled."""
    league_id = add_league(db_conn)
    ars, che, liv = add_team(db_conn, "Arsenal"), add_team(db_conn, "Chelsea"), add_team(db_conn, "Liverpool")
    d1 = add_match(db_conn, league_id, ars, che, 2, 0, match_date="2024-08-10T15:00:00+00:00")
    d2 = add_match(db_conn, league_id, liv, ars, 3, 1, match_date="2024-08-17T15:00:00+00:00")
    d3 = add_match(db_conn, league_id, che, ars, 1, 1, match_date="2024-08-24T15:00:00+00:00")
    add_match(
        db_conn, league_id, ars, liv, None, None,
        match_date="2024-08-31T15:00:00+00:00", status=MatchStatus.SCHEDULED.value,
    )
    return {"arsenal": ars, "chelsea": che, "matches": [d1, d2, d3]}


@pytest.mark.parametrize(
    "goals_for, goals_against, expected",
    [(2, 1, FormResult.WIN), (0, 0, FormResult.DRAW), (1, 4, FormResult.LOSS)],
)
def test_classify_result(goals_for, goals_against, expected):
    assert classify_result(goals_for, goals_against) == expected


def test_form_is_newest_first_from_team_side(db_conn, team_service, fixtures):
    d1, d2, d3 = fixtures["matches"]
    form = team_service.recent_form(db_conn, fixtures["arsenal"], 5)
    assert [e.match_id for e in form] == [d3, d2, d1]
    assert [e.result for e in form] == ["D", "L", "W"]
    assert [(e.goals_for, e.goals_against) for e in form] == [(1, 1), (1, 3), (2, 0)]
    assert [e.opponent for e in form] == ["Chelsea", "Liverpool", "Chelsea"]


def test_form_truncates_to_limit(db_conn, team_service, fixtures):
    form = team_service.recent_form(db_conn, fixtures["arsenal"], 2)
    _, d2, d3 = fixtures["matches"]
    assert [e.match_id for e in form] == [d3, d2]


def test_team_without_finished_matches_has_empty_form(db_conn, team_service, fixtures):
    newcomer = add_team(db_conn, "Brentford")
    assert team_service.recent_form(db_conn, newcomer) == []


def test_form_cached_per_team_and_limit(db_conn, team_service, cache, fixtures):
    team_id = fixtures["arsenal"]
    five = team_service.recent_form(db_conn, team_id, 5)
    two = team_service.recent_form(db_conn, team_id, 2)
    assert cache.get(form_cache_key(team_id, 5)) is five
    assert cache.get(form_cache_key(team_id, 2)) is two
    assert len(five) == 3 and len(two) == 2

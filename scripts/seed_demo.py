#!/usr/bin/env python3
"""
Demo seed: file submissions as a fan → approve as admin → print standings and form.
Run from project root: python3 scripts/seed_demo.py
"""
from __future__ import annotations

import json
import sys
from pathlib import Path

# Ensure project root on path
PROJECT_ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from matchday.auth import hash_password
from matchday.cache import TTLCache
from matchday.persistence import (
    LeagueRepository,
    TeamRepository,
    UserRepository,
    get_connection,
    init_db,
)
from matchday.persistence.db import set_db_path
from matchday.services import LeagueService, SubmissionService, TeamService

TEAMS = [("Arsenal", "Emirates Stadium"), ("Chelsea", "Stamford Bridge"), ("Liverpool", "Anfield")]

# (home, away, home_score, away_score, kick-off)
RESULTS = [
    ("Arsenal", "Chelsea", 2, 0, "2024-08-10T15:00:00Z"),
    ("Chelsea", "Liverpool", 1, 1, "2024-08-17T15:00:00Z"),
    ("Liverpool", "Arsenal", 0, 3, "2024-08-24T17:30:00Z"),
]


def _get_or_create_user(conn, username: str, password: str, role: str = "USER"):
    user_repo = UserRepository()
    user = user_repo.get_by_username(conn, username)
    if user is None:
        user = user_repo.create(conn, username, hash_password(password), role=role)
        print(f"Created user: {user.username} ({user.role})")
    return user


def main() -> None:
    # Use data/demo.db for demo (distinct from matchday.db)
    db_path = PROJECT_ROOT / "data" / "demo.db"
    if db_path.exists():
        db_path.unlink()
    set_db_path(db_path)
    init_db(db_path=db_path)

    conn = get_connection()
    try:
        fan = _get_or_create_user(conn, "demo-fan", "demo-fan-pw")
        admin = _get_or_create_user(conn, "demo-admin", "demo-admin-pw", role="ADMIN")
        subs = SubmissionService()

        def propose_and_approve(target_type: str, changes: dict) -> None:
            sub = subs.create_submission(conn, fan.id, target_type, "CREATE", changes=changes)
            subs.approve(conn, sub.id, admin.id, "seeded")

        # 1. League and teams
        propose_and_approve("LEAGUE", {"name": "Premier League", "country": "England",
                                       "competition_type": "DomesticLeague"})
        league = LeagueRepository().list_all(conn)[0]
        for name, stadium in TEAMS:
            propose_and_approve("TEAM", {"name": name, "country": "England", "stadium": stadium})
        team_ids = {t.name: t.id for t in TeamRepository().list_all(conn)}
        print(f"League {league.name} (id={league.id}), teams: {team_ids}")

        # 2. Finished matches
        for home, away, hs, as_, kickoff in RESULTS:
            propose_and_approve("MATCH", {
                "league_id": league.id,
                "home_team_id": team_ids[home],
                "away_team_id": team_ids[away],
                "home_score": hs,
                "away_score": as_,
                "match_date": kickoff,
                "status": "Finished",
            })

        # 3. A rejected proposal leaves no trace in the canonical data
        bogus = subs.create_submission(conn, fan.id, "TEAM", "DELETE", target_id=team_ids["Arsenal"])
        subs.reject(conn, bogus.id, admin.id, "not happening")
        print(f"Pending after seeding: {len(subs.list_pending(conn))}")

        # 4. Derived views
        cache = TTLCache()
        table = LeagueService(cache).standings(conn, league.id)
        print("\nStandings:")
        print(json.dumps([r.to_dict() for r in table], indent=2))
        form = TeamService(cache).recent_form(conn, team_ids["Arsenal"])
        print("\nArsenal form:", "".join(e.result for e in form))
    finally:
        conn.close()

    print("\nDone.")


if __name__ == "__main__":
    main()

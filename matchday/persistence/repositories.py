"""
Repository interfaces for users, moderation and football data.
No business logic, only read/write operations.

Write methods commit by default; pass commit=False when the call is part of a
larger transaction (see db.transaction).
"""
from __future__ import annotations

import json
import sqlite3
from datetime import datetime, timezone
from typing import Any

from matchday.models import (
    League,
    Match,
    ModerationStatus,
    Player,
    Review,
    Submission,
    TargetType,
    Team,
    User,
    UserRole,
)


def _parse_datetime(s: str | None) -> datetime:
    if s is None:
        raise ValueError("expected datetime string")
    return datetime.fromisoformat(s.replace("Z", "+00:00"))


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _table_columns(conn: sqlite3.Connection, table: str) -> list[str]:
    cur = conn.execute(f"PRAGMA table_info({table})")
    return [row[1] for row in cur.fetchall()]


# ---------- UserRepository ----------


class UserRepository:
    """CRUD for users. username is unique; role is USER or ADMIN."""

    def create(
        self,
        conn: sqlite3.Connection,
        username: str,
        password_hash: str,
        role: str = UserRole.USER,
    ) -> User:
        now = _now_iso()
        cur = conn.execute(
            "INSERT INTO users (username, password_hash, role, created_at) VALUES (?, ?, ?, ?)",
            (username, password_hash, UserRole(role).value, now),
        )
        conn.commit()
        return User(
            id=cur.lastrowid, username=username, role=UserRole(role).value,
            created_at=_parse_datetime(now), password_hash=password_hash,
        )

    def get(self, conn: sqlite3.Connection, user_id: int) -> User | None:
        row = conn.execute(
            "SELECT id, username, password_hash, role, created_at FROM users WHERE id = ?",
            (user_id,),
        ).fetchone()
        return _row_to_user(row) if row is not None else None

    def get_by_username(self, conn: sqlite3.Connection, username: str) -> User | None:
        row = conn.execute(
            "SELECT id, username, password_hash, role, created_at FROM users WHERE username = ?",
            (username,),
        ).fetchone()
        return _row_to_user(row) if row is not None else None

    def set_role(self, conn: sqlite3.Connection, user_id: int, role: str) -> None:
        conn.execute("UPDATE users SET role = ? WHERE id = ?", (UserRole(role).value, user_id))
        conn.commit()

    def set_password_hash(self, conn: sqlite3.Connection, user_id: int, password_hash: str) -> None:
        conn.execute("UPDATE users SET password_hash = ? WHERE id = ?", (password_hash, user_id))
        conn.commit()


def _row_to_user(row: sqlite3.Row) -> User:
    return User(
        id=row["id"],
        username=row["username"],
        role=row["role"],
        created_at=_parse_datetime(row["created_at"]),
        password_hash=row["password_hash"],
    )


# ---------- SubmissionRepository ----------

_SUBMISSION_COLS = (
    "id, created_by_id, target_type, operation, target_id, changes_json, status, created_at, updated_at"
)


def _row_to_submission(row: sqlite3.Row) -> Submission:
    raw = row["changes_json"]
    return Submission(
        id=row["id"],
        created_by_id=row["created_by_id"],
        target_type=row["target_type"],
        operation=row["operation"],
        target_id=row["target_id"],
        changes=json.loads(raw) if raw is not None else None,
        status=row["status"],
        created_at=_parse_datetime(row["created_at"]),
        updated_at=_parse_datetime(row["updated_at"]) if row["updated_at"] else None,
        has_changes=raw is not None,
    )


class SubmissionRepository:
    """CRUD for submissions. Status changes go through mark_decided only."""

    def create(
        self,
        conn: sqlite3.Connection,
        created_by_id: int,
        target_type: str,
        operation: str,
        target_id: int | None,
        changes: Any,
        has_changes: bool = True,
    ) -> Submission:
        """changes is stored as JSON text; has_changes=False stores SQL NULL (no payload sent)."""
        now = _now_iso()
        changes_json = json.dumps(changes) if has_changes else None
        cur = conn.execute(
            "INSERT INTO submissions (created_by_id, target_type, operation, target_id, changes_json, status, created_at) "
            "VALUES (?, ?, ?, ?, ?, ?, ?)",
            (created_by_id, target_type, operation, target_id, changes_json, ModerationStatus.PENDING.value, now),
        )
        conn.commit()
        return Submission(
            id=cur.lastrowid,
            created_by_id=created_by_id,
            target_type=target_type,
            operation=operation,
            target_id=target_id,
            changes=changes if has_changes else None,
            status=ModerationStatus.PENDING.value,
            created_at=_parse_datetime(now),
            has_changes=has_changes,
        )

    def get(self, conn: sqlite3.Connection, submission_id: int) -> Submission | None:
        row = conn.execute(
            f"SELECT {_SUBMISSION_COLS} FROM submissions WHERE id = ?",
            (submission_id,),
        ).fetchone()
        return _row_to_submission(row) if row is not None else None

    def list_by_status(self, conn: sqlite3.Connection, status: str) -> list[Submission]:
        """Oldest first; id breaks ties between equal timestamps."""
        rows = conn.execute(
            f"SELECT {_SUBMISSION_COLS} FROM submissions WHERE status = ? ORDER BY created_at ASC, id ASC",
            (status,),
        ).fetchall()
        return [_row_to_submission(r) for r in rows]

    def list_by_user(self, conn: sqlite3.Connection, user_id: int) -> list[Submission]:
        """Newest first."""
        rows = conn.execute(
            f"SELECT {_SUBMISSION_COLS} FROM submissions WHERE created_by_id = ? ORDER BY created_at DESC, id DESC",
            (user_id,),
        ).fetchall()
        return [_row_to_submission(r) for r in rows]

    def mark_decided(
        self,
        conn: sqlite3.Connection,
        submission_id: int,
        status: str,
        commit: bool = True,
    ) -> bool:
        """
        Move a PENDING submission to status. Conditional write: returns False (and changes
        nothing) when the submission is missing or no longer PENDING.
        """
        cur = conn.execute(
            "UPDATE submissions SET status = ?, updated_at = ? WHERE id = ? AND status = ?",
            (status, _now_iso(), submission_id, ModerationStatus.PENDING.value),
        )
        if commit:
            conn.commit()
        return cur.rowcount == 1


# ---------- ReviewRepository ----------


class ReviewRepository:
    """CRUD for reviews (decision audit records)."""

    def create(
        self,
        conn: sqlite3.Connection,
        reviewer_id: int,
        submission_id: int,
        decision: str,
        comment: str | None = None,
        commit: bool = True,
    ) -> Review:
        now = _now_iso()
        cur = conn.execute(
            "INSERT INTO reviews (reviewer_id, submission_id, decision, comment, created_at) VALUES (?, ?, ?, ?, ?)",
            (reviewer_id, submission_id, decision, comment, now),
        )
        if commit:
            conn.commit()
        return Review(
            id=cur.lastrowid, reviewer_id=reviewer_id, submission_id=submission_id,
            decision=decision, comment=comment, created_at=_parse_datetime(now),
        )

    def list_by_submission(self, conn: sqlite3.Connection, submission_id: int) -> list[Review]:
        rows = conn.execute(
            "SELECT id, reviewer_id, submission_id, decision, comment, created_at FROM reviews "
            "WHERE submission_id = ? ORDER BY id",
            (submission_id,),
        ).fetchall()
        return [
            Review(
                id=r["id"],
                reviewer_id=r["reviewer_id"],
                submission_id=r["submission_id"],
                decision=r["decision"],
                comment=r["comment"],
                created_at=_parse_datetime(r["created_at"]),
            )
            for r in rows
        ]

    def get_by_submission(self, conn: sqlite3.Connection, submission_id: int) -> Review | None:
        reviews = self.list_by_submission(conn, submission_id)
        return reviews[0] if reviews else None


# ---------- EntityRepository (canonical writes) ----------

ENTITY_TABLES: dict[TargetType, str] = {
    TargetType.TEAM: "teams",
    TargetType.PLAYER: "players",
    TargetType.LEAGUE: "leagues",
    TargetType.MATCH: "matches",
    TargetType.MATCH_EVENT: "match_events",
    TargetType.PLAYER_MATCH_STATS: "player_match_stats",
    TargetType.PLAYER_SEASON_STATS: "player_season_stats",
    TargetType.TRANSFER: "transfers",
    TargetType.TROPHY: "trophies",
    TargetType.PLAYER_TROPHY: "player_trophies",
    TargetType.ODD: "odds",
}


class EntityRepository:
    """
    Create/update/delete for one canonical table, keyed by integer id.
    Column names are checked against the table before any SQL is built.
    """

    def __init__(self, target_type: TargetType) -> None:
        self.target_type = target_type
        self.table = ENTITY_TABLES[target_type]

    def _checked_columns(self, conn: sqlite3.Connection, data: dict[str, Any]) -> list[str]:
        known = set(_table_columns(conn, self.table)) - {"id"}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ValueError(f"Unknown columns for {self.table}: {', '.join(unknown)}")
        return list(data)

    def create(self, conn: sqlite3.Connection, data: dict[str, Any], commit: bool = True) -> int:
        cols = self._checked_columns(conn, data)
        placeholders = ", ".join("?" for _ in cols)
        cur = conn.execute(
            f"INSERT INTO {self.table} ({', '.join(cols)}) VALUES ({placeholders})",
            [data[c] for c in cols],
        )
        if commit:
            conn.commit()
        return cur.lastrowid

    def update(self, conn: sqlite3.Connection, entity_id: int, data: dict[str, Any], commit: bool = True) -> bool:
        """Returns False when no row has entity_id."""
        cols = self._checked_columns(conn, data)
        if not cols:
            return self.get(conn, entity_id) is not None
        assignments = ", ".join(f"{c} = ?" for c in cols)
        cur = conn.execute(
            f"UPDATE {self.table} SET {assignments} WHERE id = ?",
            [data[c] for c in cols] + [entity_id],
        )
        if commit:
            conn.commit()
        return cur.rowcount == 1

    def delete(self, conn: sqlite3.Connection, entity_id: int, commit: bool = True) -> bool:
        """Returns False when no row has entity_id."""
        cur = conn.execute(f"DELETE FROM {self.table} WHERE id = ?", (entity_id,))
        if commit:
            conn.commit()
        return cur.rowcount == 1

    def get(self, conn: sqlite3.Connection, entity_id: int) -> dict[str, Any] | None:
        row = conn.execute(f"SELECT * FROM {self.table} WHERE id = ?", (entity_id,)).fetchone()
        return dict(row) if row is not None else None

    def count(self, conn: sqlite3.Connection) -> int:
        return conn.execute(f"SELECT COUNT(*) FROM {self.table}").fetchone()[0]


# ---------- TeamRepository ----------


class TeamRepository:
    """Reads for teams."""

    _COLS = "id, name, country, stadium, logo_url, founded"

    def get(self, conn: sqlite3.Connection, team_id: int) -> Team | None:
        row = conn.execute(f"SELECT {self._COLS} FROM teams WHERE id = ?", (team_id,)).fetchone()
        if row is None:
            return None
        return Team(**dict(row))

    def list_all(self, conn: sqlite3.Connection) -> list[Team]:
        rows = conn.execute(f"SELECT {self._COLS} FROM teams ORDER BY name, id").fetchall()
        return [Team(**dict(r)) for r in rows]


# ---------- LeagueRepository ----------


class LeagueRepository:
    """Reads for leagues."""

    _COLS = "id, name, country, logo_url, competition_type"

    def get(self, conn: sqlite3.Connection, league_id: int) -> League | None:
        row = conn.execute(f"SELECT {self._COLS} FROM leagues WHERE id = ?", (league_id,)).fetchone()
        if row is None:
            return None
        return League(**dict(row))

    def list_all(self, conn: sqlite3.Connection) -> list[League]:
        rows = conn.execute(f"SELECT {self._COLS} FROM leagues ORDER BY name, id").fetchall()
        return [League(**dict(r)) for r in rows]


# ---------- PlayerRepository ----------


class PlayerRepository:
    """Reads for players."""

    _COLS = "id, name, nationality, position, team_id, date_of_birth, jersey_number, image_url"

    def get(self, conn: sqlite3.Connection, player_id: int) -> Player | None:
        row = conn.execute(f"SELECT {self._COLS} FROM players WHERE id = ?", (player_id,)).fetchone()
        if row is None:
            return None
        return Player(**dict(row))

    def list_all(self, conn: sqlite3.Connection, team_id: int | None = None) -> list[Player]:
        if team_id is not None:
            rows = conn.execute(
                f"SELECT {self._COLS} FROM players WHERE team_id = ? ORDER BY name, id", (team_id,)
            ).fetchall()
        else:
            rows = conn.execute(f"SELECT {self._COLS} FROM players ORDER BY name, id").fetchall()
        return [Player(**dict(r)) for r in rows]


# ---------- MatchRepository ----------

_MATCH_SELECT = """
    SELECT m.id, m.league_id, m.home_team_id, m.away_team_id, m.match_date, m.status,
           m.home_score, m.away_score, m.stadium, m.round, m.is_cup,
           home_t.name AS home_team_name, away_t.name AS away_team_name
    FROM matches m
    JOIN teams home_t ON home_t.id = m.home_team_id
    JOIN teams away_t ON away_t.id = m.away_team_id
"""


def _row_to_match(row: sqlite3.Row) -> Match:
    return Match(
        id=row["id"],
        league_id=row["league_id"],
        home_team_id=row["home_team_id"],
        away_team_id=row["away_team_id"],
        match_date=_parse_datetime(row["match_date"]),
        status=row["status"],
        home_score=row["home_score"],
        away_score=row["away_score"],
        stadium=row["stadium"],
        round=row["round"],
        is_cup=bool(row["is_cup"]),
        home_team_name=row["home_team_name"],
        away_team_name=row["away_team_name"],
    )


class MatchRepository:
    """Reads for matches. Every read includes home/away team names."""

    def get(self, conn: sqlite3.Connection, match_id: int) -> Match | None:
        row = conn.execute(_MATCH_SELECT + " WHERE m.id = ?", (match_id,)).fetchone()
        return _row_to_match(row) if row is not None else None

    def list_by_league_and_status(
        self, conn: sqlite3.Connection, league_id: int, status: str
    ) -> list[Match]:
        """Matches of one league in one status, in id order (the order they were recorded)."""
        rows = conn.execute(
            _MATCH_SELECT + " WHERE m.league_id = ? AND m.status = ? ORDER BY m.id",
            (league_id, status),
        ).fetchall()
        return [_row_to_match(r) for r in rows]

    def list_for_team(
        self, conn: sqlite3.Connection, team_id: int, status: str, limit: int
    ) -> list[Match]:
        """Home or away matches of one team in one status, most recent match_date first."""
        rows = conn.execute(
            _MATCH_SELECT
            + " WHERE (m.home_team_id = ? OR m.away_team_id = ?) AND m.status = ?"
            + " ORDER BY m.match_date DESC, m.id DESC LIMIT ?",
            (team_id, team_id, status, limit),
        ).fetchall()
        return [_row_to_match(r) for r in rows]

    def list_filtered(
        self,
        conn: sqlite3.Connection,
        league_id: int | None = None,
        status: str | None = None,
        limit: int = 100,
    ) -> list[Match]:
        """Most recent first, optionally narrowed to one league and/or one status."""
        clauses: list[str] = []
        args: list[Any] = []
        if league_id is not None:
            clauses.append("m.league_id = ?")
            args.append(league_id)
        if status is not None:
            clauses.append("m.status = ?")
            args.append(status)
        where = (" WHERE " + " AND ".join(clauses)) if clauses else ""
        rows = conn.execute(
            _MATCH_SELECT + where + " ORDER BY m.match_date DESC, m.id DESC LIMIT ?",
            (*args, limit),
        ).fetchall()
        return [_row_to_match(r) for r in rows]

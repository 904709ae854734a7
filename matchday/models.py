"""
Data models for the football backend.
Domain objects only; no persistence or API logic.

Canonical entities (teams, leagues, matches, ...) change only through moderated
submissions; standings rows and form entries are derived and never stored.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any


# ---------- Moderation ----------
class ModerationStatus(str, Enum):
    """Submission lifecycle: pending → approved | rejected. Decided submissions are immutable."""
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class SubmissionOperation(str, Enum):
    CREATE = "CREATE"
    UPDATE = "UPDATE"
    DELETE = "DELETE"


class TargetType(str, Enum):
    """Entity kinds a submission may target."""
    TEAM = "TEAM"
    PLAYER = "PLAYER"
    LEAGUE = "LEAGUE"
    MATCH = "MATCH"
    MATCH_EVENT = "MATCH_EVENT"
    PLAYER_MATCH_STATS = "PLAYER_MATCH_STATS"
    PLAYER_SEASON_STATS = "PLAYER_SEASON_STATS"
    TRANSFER = "TRANSFER"
    TROPHY = "TROPHY"
    PLAYER_TROPHY = "PLAYER_TROPHY"
    ODD = "ODD"


class UserRole(str, Enum):
    USER = "USER"
    ADMIN = "ADMIN"


# ---------- Match status ----------
class MatchStatus(str, Enum):
    SCHEDULED = "Scheduled"
    LIVE = "Live"
    FINISHED = "Finished"
    CANCELED = "Canceled"
    POSTPONED = "Postponed"
    SUSPENDED = "Suspended"


class FormResult(str, Enum):
    WIN = "W"
    DRAW = "D"
    LOSS = "L"


# ---------- User ----------
@dataclass
class User:
    """
    An account. username is unique (login); password_hash is never plain text.
    role: USER may submit changes, ADMIN may also decide them.
    """
    id: int
    username: str
    role: str  # UserRole value
    created_at: datetime
    password_hash: str | None = None

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "username": self.username,
            "role": self.role,
            "created_at": self.created_at.isoformat(),
        }


# ---------- Submission ----------
@dataclass
class Submission:
    """
    A proposed create/update/delete against one canonical entity, awaiting an admin decision.
    target_id is required for UPDATE and DELETE, None for CREATE.
    changes is the decoded JSON payload; has_changes is False when no payload was sent at all
    (as opposed to an explicit JSON null).
    """
    id: int
    created_by_id: int
    target_type: str  # TargetType value
    operation: str  # SubmissionOperation value
    target_id: int | None
    changes: Any
    status: str  # ModerationStatus value
    created_at: datetime
    updated_at: datetime | None = None
    has_changes: bool = True

    @property
    def is_pending(self) -> bool:
        return self.status == ModerationStatus.PENDING

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {
            "id": self.id,
            "created_by_id": self.created_by_id,
            "target_type": self.target_type,
            "operation": self.operation,
            "target_id": self.target_id,
            "changes": self.changes,
            "status": self.status,
            "created_at": self.created_at.isoformat(),
        }
        if self.updated_at is not None:
            d["updated_at"] = self.updated_at.isoformat()
        return d


# ---------- Review ----------
@dataclass
class Review:
    """Audit record of one admin decision. decision mirrors the submission's new status."""
    id: int
    reviewer_id: int
    submission_id: int
    decision: str  # ModerationStatus value (APPROVED | REJECTED)
    comment: str | None
    created_at: datetime

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "reviewer_id": self.reviewer_id,
            "submission_id": self.submission_id,
            "decision": self.decision,
            "comment": self.comment,
            "created_at": self.created_at.isoformat(),
        }


# ---------- Team ----------
@dataclass
class Team:
    id: int
    name: str
    country: str
    stadium: str | None = None
    logo_url: str | None = None
    founded: int | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "country": self.country,
            "stadium": self.stadium,
            "logo_url": self.logo_url,
            "founded": self.founded,
        }


# ---------- League ----------
@dataclass
class League:
    id: int
    name: str
    country: str
    logo_url: str | None = None
    competition_type: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "country": self.country,
            "logo_url": self.logo_url,
            "competition_type": self.competition_type,
        }


# ---------- Player ----------
@dataclass
class Player:
    id: int
    name: str
    nationality: str
    position: str
    team_id: int
    date_of_birth: str | None = None
    jersey_number: int | None = None
    image_url: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "nationality": self.nationality,
            "position": self.position,
            "team_id": self.team_id,
            "date_of_birth": self.date_of_birth,
            "jersey_number": self.jersey_number,
            "image_url": self.image_url,
        }


# ---------- Match ----------
@dataclass
class Match:
    """
    A fixture between two teams in a league. Scores are None until the match has started.
    home_team_name / away_team_name are filled when the row is read joined with teams.
    """
    id: int
    league_id: int
    home_team_id: int
    away_team_id: int
    match_date: datetime
    status: str  # MatchStatus value
    home_score: int | None = None
    away_score: int | None = None
    stadium: str | None = None
    round: str | None = None
    is_cup: bool = False
    home_team_name: str | None = None
    away_team_name: str | None = None

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {
            "id": self.id,
            "league_id": self.league_id,
            "home_team_id": self.home_team_id,
            "away_team_id": self.away_team_id,
            "match_date": self.match_date.isoformat(),
            "status": self.status,
            "home_score": self.home_score,
            "away_score": self.away_score,
            "stadium": self.stadium,
            "round": self.round,
            "is_cup": self.is_cup,
        }
        if self.home_team_name is not None:
            d["home_team_name"] = self.home_team_name
        if self.away_team_name is not None:
            d["away_team_name"] = self.away_team_name
        return d


# ---------- Standings row (derived) ----------
@dataclass
class StandingsRow:
    """One team's aggregated record in a league table. position is 1-based."""
    team_id: int
    team_name: str
    played: int = 0
    won: int = 0
    drawn: int = 0
    lost: int = 0
    goals_for: int = 0
    goals_against: int = 0
    points: int = 0
    position: int = 0

    @property
    def goal_difference(self) -> int:
        return self.goals_for - self.goals_against

    def to_dict(self) -> dict[str, Any]:
        return {
            "position": self.position,
            "team_id": self.team_id,
            "team_name": self.team_name,
            "played": self.played,
            "won": self.won,
            "drawn": self.drawn,
            "lost": self.lost,
            "goals_for": self.goals_for,
            "goals_against": self.goals_against,
            "goal_difference": self.goal_difference,
            "points": self.points,
        }


# ---------- Form entry (derived) ----------
@dataclass
class FormEntry:
    """One finished match seen from a single team's side."""
    match_id: int
    date: datetime
    result: str  # FormResult value
    opponent: str
    goals_for: int
    goals_against: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "match_id": self.match_id,
            "date": self.date.isoformat(),
            "result": self.result,
            "opponent": self.opponent,
            "goals_for": self.goals_for,
            "goals_against": self.goals_against,
        }

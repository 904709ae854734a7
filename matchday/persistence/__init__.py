"""
Persistence layer for users, moderation and football data.
No business logic, only read/write interfaces.
"""
from .db import get_connection, init_db, transaction
from .repositories import (
    EntityRepository,
    LeagueRepository,
    MatchRepository,
    PlayerRepository,
    ReviewRepository,
    SubmissionRepository,
    TeamRepository,
    UserRepository,
)

__all__ = [
    "get_connection",
    "init_db",
    "transaction",
    "EntityRepository",
    "LeagueRepository",
    "MatchRepository",
    "PlayerRepository",
    "ReviewRepository",
    "SubmissionRepository",
    "TeamRepository",
    "UserRepository",
]

"""
Service layer: moderation workflow and derived football views.
Services take an open connection; persistence is delegated to repositories.
"""
from .league_service import LeagueService, compute_standings
from .match_service import MatchService
from .submission_service import (
    InvalidSubmissionError,
    MalformedSubmissionError,
    SubmissionAlreadyDecidedError,
    SubmissionApplyError,
    SubmissionForbiddenError,
    SubmissionNotFoundError,
    SubmissionService,
)
from .team_service import TeamService, compute_form

__all__ = [
    "LeagueService",
    "compute_standings",
    "MatchService",
    "SubmissionService",
    "SubmissionNotFoundError",
    "SubmissionForbiddenError",
    "SubmissionAlreadyDecidedError",
    "MalformedSubmissionError",
    "InvalidSubmissionError",
    "SubmissionApplyError",
    "TeamService",
    "compute_form",
]

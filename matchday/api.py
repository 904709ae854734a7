"""
REST API for the football data backend.
Thin wrappers around domain logic and persistence.
"""
from __future__ import annotations

import logging
from contextlib import asynccontextmanager, contextmanager
from typing import Any, AsyncGenerator, Generator

from fastapi import Depends, FastAPI, HTTPException, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pydantic import BaseModel, Field

from matchday.auth import create_access_token, decode_token, hash_password, verify_password
from matchday.cache import Cache, TTLCache
from matchday.config import Settings, get_settings
from matchday.log import setup_logging
from matchday.models import MatchStatus, SubmissionOperation, TargetType, User, UserRole
from matchday.persistence import (
    LeagueRepository,
    MatchRepository,
    PlayerRepository,
    TeamRepository,
    UserRepository,
    get_connection,
    init_db,
)
from matchday.persistence.db import get_db_path
from matchday.services import (
    InvalidSubmissionError,
    LeagueService,
    MatchService,
    SubmissionApplyError,
    SubmissionForbiddenError,
    SubmissionNotFoundError,
    SubmissionService,
    TeamService,
)
from matchday.services.submission_service import ABSENT
from matchday.services.team_service import DEFAULT_FORM_LIMIT

logger = logging.getLogger(__name__)

FORM_MAX_LIMIT = 50


@contextmanager
def db_conn() -> Generator:
    """Yield a DB connection, ensure close on exit."""
    conn = get_connection()
    try:
        yield conn
    finally:
        conn.close()


# ---------- Startup: ensure DB and admin account ----------
def _ensure_admin(settings: Settings) -> None:
    """Create (or promote) the configured admin account. No-op when not configured."""
    if not settings.admin_username or not settings.admin_password:
        return
    with db_conn() as conn:
        user_repo = UserRepository()
        user = user_repo.get_by_username(conn, settings.admin_username)
        if user is None:
            user_repo.create(conn, settings.admin_username, hash_password(settings.admin_password), role=UserRole.ADMIN)
            logger.info("Created admin account %s", settings.admin_username)
        elif not user.is_admin:
            user_repo.set_role(conn, user.id, UserRole.ADMIN)
            logger.info("Promoted %s to admin", settings.admin_username)


# ---------- Lifespan ----------
@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    settings = get_settings()
    setup_logging(settings)
    init_db(db_path=get_db_path())
    _ensure_admin(settings)
    logger.info("Application startup complete (db=%s)", get_db_path())
    yield
    logger.info("Application shutdown complete")


# ---------- FastAPI app ----------
app = FastAPI(
    title="Matchday API",
    description="Football data with moderated community submissions",
    version="0.1.0",
    lifespan=lifespan,
)
app.add_middleware(
    CORSMiddleware,
    allow_origins=get_settings().cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
# One cache per app; services receive it through get_cache.
app.state.cache = TTLCache()


# ---------- Request models ----------

security = HTTPBearer(auto_error=False)


class SignupRequest(BaseModel):
    username: str = Field(..., min_length=1, max_length=100)
    password: str = Field(..., min_length=6)


class LoginRequest(BaseModel):
    username: str
    password: str


class CreateSubmissionRequest(BaseModel):
    target_type: TargetType
    operation: SubmissionOperation
    target_id: int | None = Field(None, ge=1, description="Required for UPDATE and DELETE; ignored for CREATE")
    changes: Any = Field(None, description="Field values for CREATE/UPDATE. Checked against the target kind.")


class DecisionRequest(BaseModel):
    comment: str | None = Field(None, max_length=2000)


# ---------- Dependencies ----------


def get_cache(request: Request) -> Cache:
    return request.app.state.cache


def get_league_service(cache: Cache = Depends(get_cache)) -> LeagueService:
    return LeagueService(cache, ttl=get_settings().standings_cache_ttl)


def get_team_service(cache: Cache = Depends(get_cache)) -> TeamService:
    return TeamService(cache, ttl=get_settings().form_cache_ttl)


def get_match_service(cache: Cache = Depends(get_cache)) -> MatchService:
    return MatchService(cache, ttl=get_settings().live_cache_ttl)


def _get_current_user_id(credentials: HTTPAuthorizationCredentials | None = Depends(security)) -> int | None:
    """Return user_id from JWT or None if no/invalid token."""
    if credentials is None:
        return None
    return decode_token(credentials.credentials)


def _require_user(user_id: int | None = Depends(_get_current_user_id)) -> User:
    if user_id is None:
        raise HTTPException(status_code=401, detail="Login required")
    with db_conn() as conn:
        user = UserRepository().get(conn, user_id)
    if user is None:
        raise HTTPException(status_code=401, detail="Unknown user")
    return user


def _require_admin(user: User = Depends(_require_user)) -> User:
    if not user.is_admin:
        raise HTTPException(status_code=403, detail="Admin role required")
    return user


# ---------- Endpoints: health & auth ----------


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}


@app.post("/signup")
def signup(req: SignupRequest) -> dict[str, Any]:
    """Create an account with role USER. Passwords hashed, never stored plain."""
    with db_conn() as conn:
        user_repo = UserRepository()
        if user_repo.get_by_username(conn, req.username):
            raise HTTPException(status_code=400, detail="Username already taken")
        user = user_repo.create(conn, req.username, hash_password(req.password))
        token = create_access_token(user.id, user.role)
        return {"user_id": user.id, "username": user.username, "role": user.role, "token": token}


@app.post("/login")
def login(req: LoginRequest) -> dict[str, Any]:
    """Returns a JWT bearer token."""
    with db_conn() as conn:
        user = UserRepository().get_by_username(conn, req.username)
        if user is None or not verify_password(req.password, user.password_hash or ""):
            raise HTTPException(status_code=401, detail="Invalid username or password")
        token = create_access_token(user.id, user.role)
        return {"user_id": user.id, "username": user.username, "role": user.role, "token": token}


# ---------- Endpoints: submissions ----------


@app.post("/submissions", status_code=201)
def create_submission(req: CreateSubmissionRequest, user: User = Depends(_require_user)) -> dict[str, Any]:
    """Propose a create/update/delete. Any logged-in user; lands PENDING for admin review."""
    changes = req.changes if "changes" in req.model_fields_set else ABSENT
    with db_conn() as conn:
        try:
            submission = SubmissionService().create_submission(
                conn,
                user_id=user.id,
                target_type=req.target_type.value,
                operation=req.operation.value,
                target_id=req.target_id,
                changes=changes,
            )
        except InvalidSubmissionError as e:
            raise HTTPException(status_code=422, detail=str(e))
        return submission.to_dict()


@app.get("/submissions/mine")
def list_my_submissions(user: User = Depends(_require_user)) -> dict[str, Any]:
    """The caller's own submissions, newest first."""
    with db_conn() as conn:
        submissions = SubmissionService().list_by_user(conn, user.id)
        return {"submissions": [s.to_dict() for s in submissions]}


@app.get("/submissions/pending")
def list_pending_submissions(admin: User = Depends(_require_admin)) -> dict[str, Any]:
    """Review queue, oldest first."""
    with db_conn() as conn:
        submissions = SubmissionService().list_pending(conn)
        return {"submissions": [s.to_dict() for s in submissions]}


@app.get("/submissions/{submission_id}")
def get_submission(submission_id: int, admin: User = Depends(_require_admin)) -> dict[str, Any]:
    with db_conn() as conn:
        svc = SubmissionService()
        try:
            submission = svc.get_by_id(conn, submission_id)
        except SubmissionNotFoundError as e:
            raise HTTPException(status_code=404, detail=str(e))
        review = svc.get_review(conn, submission_id)
        d = submission.to_dict()
        d["review"] = review.to_dict() if review else None
        return d


def _decide(decision: str, submission_id: int, admin: User, comment: str | None) -> dict[str, Any]:
    """Run approve/reject and map domain errors to HTTP status codes."""
    with db_conn() as conn:
        svc = SubmissionService()
        action = svc.approve if decision == "approve" else svc.reject
        try:
            submission = action(conn, submission_id, admin.id, comment)
        except SubmissionNotFoundError as e:
            raise HTTPException(status_code=404, detail=str(e))
        except SubmissionForbiddenError as e:
            raise HTTPException(status_code=403, detail=str(e))
        except SubmissionApplyError as e:
            raise HTTPException(status_code=500, detail=str(e))
        return submission.to_dict()


@app.patch("/submissions/{submission_id}/approve")
def approve_submission(
    submission_id: int,
    req: DecisionRequest | None = None,
    admin: User = Depends(_require_admin),
) -> dict[str, Any]:
    """Apply the proposed change and mark the submission APPROVED."""
    return _decide("approve", submission_id, admin, req.comment if req else None)


@app.patch("/submissions/{submission_id}/reject")
def reject_submission(
    submission_id: int,
    req: DecisionRequest | None = None,
    admin: User = Depends(_require_admin),
) -> dict[str, Any]:
    """Mark the submission REJECTED without touching any entity."""
    return _decide("reject", submission_id, admin, req.comment if req else None)


# ---------- Endpoints: leagues ----------


@app.get("/leagues")
def list_leagues() -> dict[str, Any]:
    with db_conn() as conn:
        return {"leagues": [lg.to_dict() for lg in LeagueRepository().list_all(conn)]}


@app.get("/leagues/{league_id}")
def get_league(league_id: int) -> dict[str, Any]:
    with db_conn() as conn:
        league = LeagueRepository().get(conn, league_id)
        if league is None:
            raise HTTPException(status_code=404, detail="League not found")
        return league.to_dict()


@app.get("/leagues/{league_id}/standings")
def get_league_standings(
    league_id: int,
    svc: LeagueService = Depends(get_league_service),
) -> dict[str, Any]:
    """League table from finished matches: points, goal difference, goals for."""
    with db_conn() as conn:
        if LeagueRepository().get(conn, league_id) is None:
            raise HTTPException(status_code=404, detail="League not found")
        rows = svc.standings(conn, league_id)
        return {"league_id": league_id, "standings": [r.to_dict() for r in rows]}


# ---------- Endpoints: teams & players ----------


@app.get("/teams")
def list_teams() -> dict[str, Any]:
    with db_conn() as conn:
        return {"teams": [t.to_dict() for t in TeamRepository().list_all(conn)]}


@app.get("/teams/{team_id}")
def get_team(team_id: int) -> dict[str, Any]:
    with db_conn() as conn:
        team = TeamRepository().get(conn, team_id)
        if team is None:
            raise HTTPException(status_code=404, detail="Team not found")
        d = team.to_dict()
        d["players"] = [p.to_dict() for p in PlayerRepository().list_all(conn, team_id=team_id)]
        return d


@app.get("/teams/{team_id}/form")
def get_team_form(
    team_id: int,
    limit: int = Query(default=DEFAULT_FORM_LIMIT, ge=1, le=FORM_MAX_LIMIT),
    svc: TeamService = Depends(get_team_service),
) -> dict[str, Any]:
    """Most recent finished results (W/D/L), newest first."""
    with db_conn() as conn:
        if TeamRepository().get(conn, team_id) is None:
            raise HTTPException(status_code=404, detail="Team not found")
        entries = svc.recent_form(conn, team_id, limit)
        return {"team_id": team_id, "form": [e.to_dict() for e in entries]}


@app.get("/players")
def list_players(team_id: int | None = Query(None, ge=1)) -> dict[str, Any]:
    with db_conn() as conn:
        return {"players": [p.to_dict() for p in PlayerRepository().list_all(conn, team_id=team_id)]}


# ---------- Endpoints: matches ----------


@app.get("/matches")
def list_matches(
    league_id: int | None = Query(None, ge=1),
    status: MatchStatus | None = None,
    limit: int = Query(default=100, ge=1, le=500),
) -> dict[str, Any]:
    with db_conn() as conn:
        matches = MatchRepository().list_filtered(
            conn, league_id=league_id, status=status.value if status else None, limit=limit
        )
        return {"matches": [m.to_dict() for m in matches]}


@app.get("/matches/live")
def list_live_matches(svc: MatchService = Depends(get_match_service)) -> dict[str, Any]:
    with db_conn() as conn:
        return {"matches": [m.to_dict() for m in svc.live(conn)]}


@app.get("/matches/{match_id}")
def get_match(match_id: int) -> dict[str, Any]:
    with db_conn() as conn:
        match = MatchRepository().get(conn, match_id)
        if match is None:
            raise HTTPException(status_code=404, detail="Match not found")
        return match.to_dict()

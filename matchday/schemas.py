"""
Typed change payloads for submissions.

Each target kind has a create model (every required column present) and an update
model derived from it (every field optional, at least one given). Payloads are
checked when a submission is filed, so approval only ever applies data that
already fits the target table.
"""
from __future__ import annotations

from datetime import date, datetime, timezone
from enum import Enum
from typing import Annotated, Any, Optional

from pydantic import AfterValidator, BaseModel, ConfigDict, Field, ValidationError, create_model, model_validator

from matchday.models import MatchStatus, SubmissionOperation, TargetType


class PlayerPosition(str, Enum):
    GOALKEEPER = "Goalkeeper"
    DEFENDER = "Defender"
    MIDFIELDER = "Midfielder"
    FORWARD = "Forward"


class CompetitionType(str, Enum):
    DOMESTIC_LEAGUE = "DomesticLeague"
    DOMESTIC_CUP = "DomesticCup"
    INTERNATIONAL_CLUB = "InternationalClub"
    INTERNATIONAL_NATIONAL = "InternationalNational"


class MatchEventType(str, Enum):
    GOAL = "Goal"
    OWN_GOAL = "OwnGoal"
    PENALTY = "Penalty"
    YELLOW_CARD = "YellowCard"
    RED_CARD = "RedCard"
    SUBSTITUTION = "Substitution"


class TransferType(str, Enum):
    PERMANENT = "Permanent"
    LOAN = "Loan"
    FREE = "Free"


class _Payload(BaseModel):
    model_config = ConfigDict(extra="forbid")


# ---------- Create payloads ----------


class TeamCreate(_Payload):
    name: str = Field(..., min_length=1, max_length=200)
    country: str = Field(..., min_length=1, max_length=100)
    stadium: str | None = None
    logo_url: str | None = None
    founded: int | None = Field(None, ge=1800, le=2100)


class PlayerCreate(_Payload):
    name: str = Field(..., min_length=1, max_length=200)
    nationality: str = Field(..., min_length=1, max_length=100)
    position: PlayerPosition
    team_id: int = Field(..., ge=1)
    date_of_birth: date | None = None
    jersey_number: int | None = Field(None, ge=1, le=99)
    image_url: str | None = None


class LeagueCreate(_Payload):
    name: str = Field(..., min_length=1, max_length=200)
    country: str = Field(..., min_length=1, max_length=100)
    logo_url: str | None = None
    competition_type: CompetitionType | None = None


def _to_utc(value: datetime) -> datetime:
    # Stored as ISO text and ordered lexically, so aware values share one offset.
    return value.astimezone(timezone.utc) if value.tzinfo is not None else value


# Part of the field type, so the derived update model normalizes too.
UtcDatetime = Annotated[datetime, AfterValidator(_to_utc)]


class MatchCreate(_Payload):
    match_date: UtcDatetime
    status: MatchStatus = MatchStatus.SCHEDULED
    league_id: int = Field(..., ge=1)
    home_team_id: int = Field(..., ge=1)
    away_team_id: int = Field(..., ge=1)
    home_score: int | None = Field(None, ge=0)
    away_score: int | None = Field(None, ge=0)
    stadium: str | None = None
    round: str | None = None
    is_cup: bool = False

    @model_validator(mode="after")
    def _distinct_sides(self) -> "MatchCreate":
        if self.home_team_id == self.away_team_id:
            raise ValueError("home_team_id and away_team_id must differ")
        return self


class MatchEventCreate(_Payload):
    match_id: int = Field(..., ge=1)
    player_id: int = Field(..., ge=1)
    minute: int = Field(..., ge=0, le=130)
    type: MatchEventType
    assisting_player_id: int | None = None
    player_in_id: int | None = None
    player_out_id: int | None = None


class PlayerMatchStatsCreate(_Payload):
    player_id: int = Field(..., ge=1)
    match_id: int = Field(..., ge=1)
    minutes_played: int = Field(0, ge=0, le=130)
    goals: int = Field(0, ge=0)
    assists: int = Field(0, ge=0)
    shots: int = Field(0, ge=0)
    shots_on_target: int = Field(0, ge=0)
    passes: int = Field(0, ge=0)
    tackles: int = Field(0, ge=0)
    yellow_cards: int = Field(0, ge=0, le=2)
    red_cards: int = Field(0, ge=0, le=1)
    rating: float | None = Field(None, ge=0, le=10)


class PlayerSeasonStatsCreate(_Payload):
    player_id: int = Field(..., ge=1)
    season: str = Field(..., min_length=4, max_length=9, description="e.g. '2024/25'")
    team_id: int | None = None
    league_id: int | None = None
    appearances: int = Field(0, ge=0)
    goals: int = Field(0, ge=0)
    assists: int = Field(0, ge=0)
    minutes_played: int = Field(0, ge=0)
    yellow_cards: int = Field(0, ge=0)
    red_cards: int = Field(0, ge=0)


class TransferCreate(_Payload):
    player_id: int = Field(..., ge=1)
    to_team_id: int = Field(..., ge=1)
    from_team_id: int | None = None
    transfer_date: date
    transfer_type: TransferType
    transfer_fee: float | None = Field(None, ge=0)


class TrophyCreate(_Payload):
    name: str = Field(..., min_length=1, max_length=200)
    type: str = Field(..., min_length=1, max_length=100)
    year: int = Field(..., ge=1850, le=2100)


class PlayerTrophyCreate(_Payload):
    player_id: int = Field(..., ge=1)
    trophy_id: int = Field(..., ge=1)
    season: str = Field(..., min_length=4, max_length=9)


class OddCreate(_Payload):
    match_id: int = Field(..., ge=1)
    provider: str = Field(..., min_length=1, max_length=100)
    home_win_odds: float = Field(..., gt=1.0)
    draw_odds: float = Field(..., gt=1.0)
    away_win_odds: float = Field(..., gt=1.0)


# ---------- Update payloads ----------


class _PartialPayload(_Payload):
    @model_validator(mode="after")
    def _not_empty(self) -> "_PartialPayload":
        if not self.model_fields_set:
            raise ValueError("update must change at least one field")
        return self


class _MatchPartialPayload(_PartialPayload):
    @model_validator(mode="after")
    def _distinct_sides(self) -> "_MatchPartialPayload":
        home, away = getattr(self, "home_team_id", None), getattr(self, "away_team_id", None)
        if home is not None and home == away:
            raise ValueError("home_team_id and away_team_id must differ")
        return self


def _partial(model: type[_Payload], base: type[_PartialPayload] = _PartialPayload) -> type[_PartialPayload]:
    """Same fields and constraints as model, all optional and defaulting to None."""
    fields: dict[str, Any] = {}
    for name, info in model.model_fields.items():
        inner = Annotated[(info.annotation, *info.metadata)] if info.metadata else info.annotation
        fields[name] = (Optional[inner], None)
    return create_model(
        model.__name__.replace("Create", "Update"),
        __base__=base,
        **fields,
    )


CREATE_PAYLOADS: dict[TargetType, type[_Payload]] = {
    TargetType.TEAM: TeamCreate,
    TargetType.PLAYER: PlayerCreate,
    TargetType.LEAGUE: LeagueCreate,
    TargetType.MATCH: MatchCreate,
    TargetType.MATCH_EVENT: MatchEventCreate,
    TargetType.PLAYER_MATCH_STATS: PlayerMatchStatsCreate,
    TargetType.PLAYER_SEASON_STATS: PlayerSeasonStatsCreate,
    TargetType.TRANSFER: TransferCreate,
    TargetType.TROPHY: TrophyCreate,
    TargetType.PLAYER_TROPHY: PlayerTrophyCreate,
    TargetType.ODD: OddCreate,
}

_PARTIAL_BASES: dict[TargetType, type[_PartialPayload]] = {
    TargetType.MATCH: _MatchPartialPayload,
}

UPDATE_PAYLOADS: dict[TargetType, type[_PartialPayload]] = {
    target: _partial(model, _PARTIAL_BASES.get(target, _PartialPayload))
    for target, model in CREATE_PAYLOADS.items()
}


# ---------- Validation entry point ----------


class PayloadError(ValueError):
    """A change payload does not fit its target kind. message is user-facing."""


def _format_validation_error(exc: ValidationError) -> str:
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ())) or "changes"
        parts.append(f"{loc}: {err.get('msg')}")
    return "; ".join(parts)


def validate_changes(target_type: TargetType, operation: SubmissionOperation, changes: Any) -> dict[str, Any] | None:
    """
    Check changes against the target's payload model and return the normalized,
    JSON-ready column values. DELETE carries no payload, so None is returned.
    """
    if operation == SubmissionOperation.DELETE:
        return None
    if not isinstance(changes, dict):
        raise PayloadError(f"{operation.value} {target_type.value} requires an object of field values")
    if operation == SubmissionOperation.CREATE:
        model = CREATE_PAYLOADS[target_type]
        try:
            return model.model_validate(changes).model_dump(mode="json")
        except ValidationError as exc:
            raise PayloadError(_format_validation_error(exc)) from exc

    try:
        parsed = UPDATE_PAYLOADS[target_type].model_validate(changes)
    except ValidationError as exc:
        raise PayloadError(_format_validation_error(exc)) from exc
    values = parsed.model_dump(mode="json", exclude_unset=True)
    required = [
        name for name, info in CREATE_PAYLOADS[target_type].model_fields.items() if info.is_required()
    ]
    cleared = [name for name in required if name in values and values[name] is None]
    if cleared:
        raise PayloadError(f"cannot clear required field(s): {', '.join(cleared)}")
    return values


def check_update_against_row(target_type: TargetType, row: dict[str, Any], values: dict[str, Any]) -> None:
    """
    Rules an update can only break in combination with the stored row,
    e.g. moving a match's home side onto its current away side.
    """
    if target_type != TargetType.MATCH:
        return
    merged = {**row, **values}
    if merged.get("home_team_id") == merged.get("away_team_id"):
        raise PayloadError("home_team_id and away_team_id must differ")

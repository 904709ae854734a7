"""
Moderation workflow: filing, listing and deciding submissions.
Every decision is all-or-nothing: status, entity mutation and review commit together.
"""
from __future__ import annotations

import threading

import pytest

from conftest import add_league, add_match, add_team
from matchday.models import ModerationStatus, TargetType
from matchday.persistence.db import get_connection
from matchday.persistence.repositories import EntityRepository, ReviewRepository, SubmissionRepository
from matchday.services.submission_service import (
    InvalidSubmissionError,
    MalformedSubmissionError,
    SubmissionAlreadyDecidedError,
    SubmissionApplyError,
    SubmissionNotFoundError,
    SubmissionService,
)
from matchday.services.team_service import TeamService


@pytest.fixture
def service():
    return SubmissionService()


def _team_create(service, conn, user_id, name="Arsenal"):
    return service.create_submission(
        conn, user_id, "TEAM", "CREATE", changes={"name": name, "country": "England"}
    )


# ---------- Filing ----------


def test_create_submission_is_pending(db_conn, service, user):
    sub = _team_create(service, db_conn, user.id)
    assert sub.status == ModerationStatus.PENDING
    assert sub.created_by_id == user.id
    assert sub.changes == {"name": "Arsenal", "country": "England"}
    assert service.get_by_id(db_conn, sub.id).status == "PENDING"


def test_create_ignores_target_id(db_conn, service, user):
    sub = service.create_submission(
        db_conn, user.id, "TEAM", "CREATE", target_id=42, changes={"name": "Arsenal", "country": "England"}
    )
    assert sub.target_id is None


def test_unknown_target_type_rejected(db_conn, service, user):
    with pytest.raises(InvalidSubmissionError, match="target type"):
        service.create_submission(db_conn, user.id, "STADIUM", "CREATE", changes={"name": "x"})


def test_unknown_operation_rejected(db_conn, service, user):
    with pytest.raises(InvalidSubmissionError, match="operation"):
        service.create_submission(db_conn, user.id, "TEAM", "MERGE", target_id=1, changes={"name": "x"})


def test_invalid_payload_rejected_at_creation(db_conn, service, user):
    with pytest.raises(InvalidSubmissionError, match="country"):
        service.create_submission(db_conn, user.id, "TEAM", "CREATE", changes={"name": "Arsenal"})
    assert service.list_pending(db_conn) == []


def test_delete_needs_no_changes(db_conn, service, user):
    sub = service.create_submission(db_conn, user.id, "TEAM", "DELETE", target_id=7)
    assert sub.has_changes is False
    assert service.get_by_id(db_conn, sub.id).changes is None


# ---------- Listing ----------


def test_list_pending_oldest_first_and_excludes_decided(db_conn, service, user, admin):
    first = _team_create(service, db_conn, user.id, "A")
    second = _team_create(service, db_conn, user.id, "B")
    third = _team_create(service, db_conn, user.id, "C")
    service.reject(db_conn, second.id, admin.id)
    assert [s.id for s in service.list_pending(db_conn)] == [first.id, third.id]


def test_list_by_user_newest_first(db_conn, service, user, admin):
    older = _team_create(service, db_conn, user.id, "A")
    newer = _team_create(service, db_conn, user.id, "B")
    _team_create(service, db_conn, admin.id, "C")
    assert [s.id for s in service.list_by_user(db_conn, user.id)] == [newer.id, older.id]


def test_get_by_id_missing(db_conn, service):
    with pytest.raises(SubmissionNotFoundError):
        service.get_by_id(db_conn, 999)


# ---------- Approve ----------


def test_approve_create_inserts_entity_and_review(db_conn, service, user, admin):
    sub = _team_create(service, db_conn, user.id)
    decided = service.approve(db_conn, sub.id, admin.id, "looks right")
    assert decided.status == ModerationStatus.APPROVED
    assert decided.updated_at is not None
    teams = EntityRepository(TargetType.TEAM)
    assert teams.count(db_conn) == 1
    review = service.get_review(db_conn, sub.id)
    assert review.decision == "APPROVED"
    assert review.reviewer_id == admin.id
    assert review.comment == "looks right"


def test_approve_update_changes_only_given_fields(db_conn, service, user, admin):
    team_id = add_team(db_conn, "Arsenal")
    sub = service.create_submission(
        db_conn, user.id, "TEAM", "UPDATE", target_id=team_id, changes={"stadium": "Emirates Stadium"}
    )
    service.approve(db_conn, sub.id, admin.id)
    row = EntityRepository(TargetType.TEAM).get(db_conn, team_id)
    assert row["stadium"] == "Emirates Stadium"
    assert row["name"] == "Arsenal"


def test_approve_delete_removes_entity(db_conn, service, user, admin):
    team_id = add_team(db_conn, "Arsenal")
    sub = service.create_submission(db_conn, user.id, "TEAM", "DELETE", target_id=team_id)
    service.approve(db_conn, sub.id, admin.id)
    assert EntityRepository(TargetType.TEAM).get(db_conn, team_id) is None


def test_approve_missing_submission(db_conn, service, admin):
    with pytest.raises(SubmissionNotFoundError):
        service.approve(db_conn, 12345, admin.id)


def test_approve_twice_is_forbidden(db_conn, service, user, admin):
    sub = _team_create(service, db_conn, user.id)
    service.approve(db_conn, sub.id, admin.id)
    with pytest.raises(SubmissionAlreadyDecidedError):
        service.approve(db_conn, sub.id, admin.id)
    with pytest.raises(SubmissionAlreadyDecidedError):
        service.reject(db_conn, sub.id, admin.id)
    assert EntityRepository(TargetType.TEAM).count(db_conn) == 1


@pytest.mark.parametrize("operation", ["UPDATE", "DELETE"])
def test_approve_without_target_id_is_malformed(db_conn, service, user, admin, operation):
    changes = {"name": "Renamed"} if operation == "UPDATE" else None
    kwargs = {"changes": changes} if changes else {}
    sub = service.create_submission(db_conn, user.id, "TEAM", operation, **kwargs)
    with pytest.raises(MalformedSubmissionError, match="Missing target_id"):
        service.approve(db_conn, sub.id, admin.id)
    assert service.get_by_id(db_conn, sub.id).is_pending
    assert service.get_review(db_conn, sub.id) is None


def test_update_of_missing_entity_rolls_back(db_conn, service, user, admin):
    sub = service.create_submission(db_conn, user.id, "TEAM", "UPDATE", target_id=99, changes={"name": "Ghost"})
    with pytest.raises(SubmissionApplyError):
        service.approve(db_conn, sub.id, admin.id)
    assert service.get_by_id(db_conn, sub.id).status == "PENDING"
    assert service.get_review(db_conn, sub.id) is None


def test_foreign_key_failure_rolls_back_whole_decision(db_conn, service, user, admin):
    league_id = add_league(db_conn)
    home, away = add_team(db_conn, "Arsenal"), add_team(db_conn, "Chelsea")
    add_match(db_conn, league_id, home, away, 1, 0)
    sub = service.create_submission(db_conn, user.id, "TEAM", "DELETE", target_id=home)
    with pytest.raises(SubmissionApplyError):
        service.approve(db_conn, sub.id, admin.id)
    assert EntityRepository(TargetType.TEAM).get(db_conn, home) is not None
    assert service.get_by_id(db_conn, sub.id).is_pending
    assert service.get_review(db_conn, sub.id) is None
    # still decidable afterwards
    assert service.reject(db_conn, sub.id, admin.id).status == "REJECTED"


def test_create_with_dangling_reference_rolls_back(db_conn, service, user, admin):
    sub = service.create_submission(
        db_conn, user.id, "PLAYER", "CREATE",
        changes={"name": "Saka", "nationality": "England", "position": "Forward", "team_id": 404},
    )
    with pytest.raises(SubmissionApplyError):
        service.approve(db_conn, sub.id, admin.id)
    assert EntityRepository(TargetType.PLAYER).count(db_conn) == 0
    assert service.get_by_id(db_conn, sub.id).is_pending


def test_stored_unknown_target_type_is_approved_without_effect(db_conn, service, user, admin):
    sub = SubmissionRepository().create(db_conn, user.id, "STADIUM", "CREATE", None, {"name": "x"})
    decided = service.approve(db_conn, sub.id, admin.id)
    assert decided.status == "APPROVED"
    assert service.get_review(db_conn, sub.id).decision == "APPROVED"


def test_stored_unknown_target_type_without_target_id_is_approved(db_conn, service, user, admin):
    sub = SubmissionRepository().create(db_conn, user.id, "STADIUM", "UPDATE", None, {"name": "x"})
    assert service.approve(db_conn, sub.id, admin.id).status == "APPROVED"


def test_match_date_update_is_stored_in_utc_and_keeps_form_order(db_conn, service, cache, user, admin):
    league_id = add_league(db_conn)
    ars, che = add_team(db_conn, "Arsenal"), add_team(db_conn, "Chelsea")
    latest = add_match(db_conn, league_id, ars, che, 1, 0, match_date="2024-05-01T19:00:00+00:00")
    moved = add_match(db_conn, league_id, che, ars, 2, 2, match_date="2024-04-01T19:00:00+00:00")
    sub = service.create_submission(
        db_conn, user.id, "MATCH", "UPDATE", target_id=moved, changes={"match_date": "2024-05-01T20:00:00+02:00"}
    )
    service.approve(db_conn, sub.id, admin.id)

    stored = EntityRepository(TargetType.MATCH).get(db_conn, moved)["match_date"]
    assert stored.startswith("2024-05-01T18:00:00")
    form = TeamService(cache).recent_form(db_conn, ars, 5)
    assert [e.match_id for e in form] == [latest, moved]


def test_match_update_with_same_team_on_both_sides_is_refused(db_conn, service, user):
    with pytest.raises(InvalidSubmissionError, match="must differ"):
        service.create_submission(
            db_conn, user.id, "MATCH", "UPDATE", target_id=1, changes={"home_team_id": 2, "away_team_id": 2}
        )


def test_match_update_onto_stored_away_side_rolls_back(db_conn, service, user, admin):
    league_id = add_league(db_conn)
    ars, che = add_team(db_conn, "Arsenal"), add_team(db_conn, "Chelsea")
    match_id = add_match(db_conn, league_id, ars, che, 1, 0)
    sub = service.create_submission(
        db_conn, user.id, "MATCH", "UPDATE", target_id=match_id, changes={"home_team_id": che}
    )
    with pytest.raises(SubmissionApplyError, match="must differ"):
        service.approve(db_conn, sub.id, admin.id)
    assert EntityRepository(TargetType.MATCH).get(db_conn, match_id)["home_team_id"] == ars
    assert service.get_by_id(db_conn, sub.id).is_pending
    assert service.get_review(db_conn, sub.id) is None


def test_concurrent_approvals_apply_once(db_path, service, user, admin):
    conn = get_connection()
    try:
        sub = _team_create(service, conn, user.id)
    finally:
        conn.close()

    barrier = threading.Barrier(2)
    outcomes: list[str] = []
    lock = threading.Lock()

    def decide() -> None:
        c = get_connection()
        try:
            barrier.wait()
            SubmissionService().approve(c, sub.id, admin.id)
            result = "approved"
        except SubmissionAlreadyDecidedError:
            result = "forbidden"
        finally:
            c.close()
        with lock:
            outcomes.append(result)

    threads = [threading.Thread(target=decide) for _ in range(2)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert sorted(outcomes) == ["approved", "forbidden"]
    conn = get_connection()
    try:
        assert EntityRepository(TargetType.TEAM).count(conn) == 1
        assert len(ReviewRepository().list_by_submission(conn, sub.id)) == 1
    finally:
        conn.close()


# ---------- Reject ----------


def test_reject_leaves_entity_untouched(db_conn, service, user, admin):
    team_id = add_team(db_conn, "Arsenal")
    sub = service.create_submission(db_conn, user.id, "TEAM", "DELETE", target_id=team_id)
    decided = service.reject(db_conn, sub.id, admin.id, "keep it")
    assert decided.status == ModerationStatus.REJECTED
    assert EntityRepository(TargetType.TEAM).get(db_conn, team_id) is not None
    review = service.get_review(db_conn, sub.id)
    assert review.decision == "REJECTED"
    assert review.comment == "keep it"


def test_reject_does_not_require_target_id(db_conn, service, user, admin):
    sub = service.create_submission(db_conn, user.id, "PLAYER", "DELETE")
    assert service.reject(db_conn, sub.id, admin.id).status == "REJECTED"


def test_reject_missing_submission(db_conn, service, admin):
    with pytest.raises(SubmissionNotFoundError):
        service.reject(db_conn, 5, admin.id)

"""
Moderation engine: users propose changes to canonical entities, admins decide.

A decision is one transaction: the conditional PENDING -> decided status flip,
the entity mutation (approve only) and the Review row commit together or not at all.
"""
from __future__ import annotations

import logging
import sqlite3
from typing import Any

from matchday.models import ModerationStatus, Review, Submission, SubmissionOperation, TargetType
from matchday.persistence.db import transaction
from matchday.persistence.repositories import (
    ENTITY_TABLES,
    EntityRepository,
    ReviewRepository,
    SubmissionRepository,
)
from matchday.schemas import PayloadError, check_update_against_row, validate_changes

logger = logging.getLogger(__name__)

# Sentinel for "no changes payload sent", distinct from an explicit JSON null.
ABSENT: Any = object()


# ---------- Exceptions ----------


class SubmissionNotFoundError(LookupError):
    """No submission with the given id."""


class SubmissionForbiddenError(ValueError):
    """The submission cannot be decided in its current state."""


class SubmissionAlreadyDecidedError(SubmissionForbiddenError):
    """Submission is already APPROVED or REJECTED."""


class MalformedSubmissionError(SubmissionForbiddenError):
    """UPDATE or DELETE without a target_id."""


class InvalidSubmissionError(ValueError):
    """Submission request rejected at creation (unknown kind/operation or bad payload)."""


class SubmissionApplyError(RuntimeError):
    """The store refused the entity mutation; the decision was rolled back."""


# ---------- SubmissionService ----------


class SubmissionService:
    """
    Create, list and decide submissions.
    Persistence is delegated to repositories; canonical writes go through EntityRepository.
    """

    def __init__(self) -> None:
        self._submission_repo = SubmissionRepository()
        self._review_repo = ReviewRepository()
        self._entity_repos: dict[TargetType, EntityRepository] = {
            target: EntityRepository(target) for target in ENTITY_TABLES
        }

    def create_submission(
        self,
        conn: sqlite3.Connection,
        user_id: int,
        target_type: str,
        operation: str,
        target_id: int | None = None,
        changes: Any = ABSENT,
    ) -> Submission:
        """
        File a PENDING submission. target_id is dropped for CREATE.
        The payload is checked against the target kind now; the stored changes are the
        caller's payload as sent, so the reviewer sees exactly what was proposed.
        """
        try:
            kind = TargetType(target_type)
        except ValueError:
            raise InvalidSubmissionError(f"Unsupported target type: {target_type}") from None
        try:
            op = SubmissionOperation(operation)
        except ValueError:
            raise InvalidSubmissionError(f"Unsupported operation: {operation}") from None
        if op != SubmissionOperation.DELETE:
            try:
                validate_changes(kind, op, None if changes is ABSENT else changes)
            except PayloadError as exc:
                raise InvalidSubmissionError(f"Invalid changes for {kind.value}: {exc}") from exc
        if op == SubmissionOperation.CREATE:
            target_id = None
        submission = self._submission_repo.create(
            conn,
            created_by_id=user_id,
            target_type=kind.value,
            operation=op.value,
            target_id=target_id,
            changes=None if changes is ABSENT else changes,
            has_changes=changes is not ABSENT,
        )
        logger.info(
            "Submission %s filed by user %s: %s %s target=%s",
            submission.id, user_id, op.value, kind.value, target_id,
        )
        return submission

    def list_pending(self, conn: sqlite3.Connection) -> list[Submission]:
        """All PENDING submissions, oldest first (review queue order)."""
        return self._submission_repo.list_by_status(conn, ModerationStatus.PENDING.value)

    def list_by_user(self, conn: sqlite3.Connection, user_id: int) -> list[Submission]:
        return self._submission_repo.list_by_user(conn, user_id)

    def get_by_id(self, conn: sqlite3.Connection, submission_id: int) -> Submission:
        submission = self._submission_repo.get(conn, submission_id)
        if submission is None:
            raise SubmissionNotFoundError(f"Submission not found: {submission_id}")
        return submission

    def get_review(self, conn: sqlite3.Connection, submission_id: int) -> Review | None:
        return self._review_repo.get_by_submission(conn, submission_id)

    # ---------- Decisions ----------

    def approve(
        self,
        conn: sqlite3.Connection,
        submission_id: int,
        reviewer_id: int,
        comment: str | None = None,
    ) -> Submission:
        """
        Apply the submission to its target entity and record an APPROVED review.
        Raises SubmissionNotFoundError, SubmissionAlreadyDecidedError,
        MalformedSubmissionError or SubmissionApplyError; on any error nothing is written.
        """
        submission = self.get_by_id(conn, submission_id)
        self._assert_pending(submission)
        try:
            with transaction(conn):
                self._flip_status(conn, submission.id, ModerationStatus.APPROVED)
                self._apply(conn, submission)
                self._review_repo.create(
                    conn, reviewer_id, submission.id, ModerationStatus.APPROVED.value, comment, commit=False
                )
        except SubmissionApplyError:
            logger.exception("Applying submission %s failed; decision rolled back", submission.id)
            raise
        except sqlite3.Error as exc:
            logger.exception("Applying submission %s failed; decision rolled back", submission.id)
            raise SubmissionApplyError(f"Could not apply submission {submission.id}: {exc}") from exc
        logger.info("Submission %s approved by %s", submission.id, reviewer_id)
        return self.get_by_id(conn, submission.id)

    def reject(
        self,
        conn: sqlite3.Connection,
        submission_id: int,
        reviewer_id: int,
        comment: str | None = None,
    ) -> Submission:
        """Record a REJECTED review. No entity is touched."""
        submission = self.get_by_id(conn, submission_id)
        self._assert_pending(submission)
        with transaction(conn):
            self._flip_status(conn, submission.id, ModerationStatus.REJECTED)
            self._review_repo.create(
                conn, reviewer_id, submission.id, ModerationStatus.REJECTED.value, comment, commit=False
            )
        logger.info("Submission %s rejected by %s", submission.id, reviewer_id)
        return self.get_by_id(conn, submission.id)

    # ---------- Internals ----------

    @staticmethod
    def _assert_pending(submission: Submission) -> None:
        if not submission.is_pending:
            raise SubmissionAlreadyDecidedError(
                f"Submission already decided (current: {submission.status})"
            )

    def _flip_status(self, conn: sqlite3.Connection, submission_id: int, status: ModerationStatus) -> None:
        """Conditional write; loses the race cleanly when another decision committed first."""
        if not self._submission_repo.mark_decided(conn, submission_id, status.value, commit=False):
            raise SubmissionAlreadyDecidedError(f"Submission already decided (id: {submission_id})")

    def _apply(self, conn: sqlite3.Connection, submission: Submission) -> None:
        """Run the submission's create/update/delete against its target table. Caller owns the transaction."""
        try:
            kind = TargetType(submission.target_type)
        except ValueError:
            # Unknown kinds were never accepted by create_submission; rows written some other way are
            # approved without effect, matching the long-standing behaviour.
            logger.warning(
                "Submission %s targets unsupported type %s; approving without changes",
                submission.id, submission.target_type,
            )
            return
        repo = self._entity_repos[kind]
        op = SubmissionOperation(submission.operation)
        if op != SubmissionOperation.CREATE and submission.target_id is None:
            raise MalformedSubmissionError(
                f"Missing target_id for {op.value.lower()} (submission {submission.id})"
            )
        if op == SubmissionOperation.DELETE:
            if not repo.delete(conn, submission.target_id, commit=False):
                raise SubmissionApplyError(f"{kind.value} {submission.target_id} does not exist")
            return
        try:
            values = validate_changes(kind, op, submission.changes)
        except PayloadError as exc:
            raise SubmissionApplyError(f"Stored changes for submission {submission.id} are invalid: {exc}") from exc
        if op == SubmissionOperation.CREATE:
            new_id = repo.create(conn, values, commit=False)
            logger.debug("Created %s %s from submission %s", kind.value, new_id, submission.id)
            return
        current = repo.get(conn, submission.target_id)
        if current is None:
            raise SubmissionApplyError(f"{kind.value} {submission.target_id} does not exist")
        try:
            check_update_against_row(kind, current, values)
        except PayloadError as exc:
            raise SubmissionApplyError(f"Submission {submission.id} would leave {kind.value} invalid: {exc}") from exc
        repo.update(conn, submission.target_id, values, commit=False)

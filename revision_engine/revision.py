"""Lifecycle of explicitly scheduled revisions.

Stored statuses are pending, completed and cancelled. "due" (an open record
whose date has arrived) and "postponed" (an open record moved by hand that
is not due yet) are derived from the stored fields and the current day.
"""

from datetime import date, datetime, timedelta
from typing import Optional

from revision_engine.exceptions import InvalidDateError, InvalidTransitionError, NotFoundError
from revision_engine.schemas import (
    ErrorType,
    RevisionRecord,
    RevisionStatus,
    ScheduleResult,
)
from revision_engine.sm2 import IntervalScheduler
from revision_engine.utils import now as current_time, round_half_up

BASE_PRIORITY = 10
FAILURE_PRIORITY_GROWTH = 1.5
MAX_BASE_PRIORITY = 100
OVERDUE_DAY_PRIORITY = 10


def base_priority(failure_count: int) -> int:
    """Priority of a record before overdue days are added; grows by 1.5x per failure"""
    raw = BASE_PRIORITY * FAILURE_PRIORITY_GROWTH ** max(0, failure_count - 1)
    return int(min(MAX_BASE_PRIORITY, round_half_up(raw)))


class RevisionStateMachine:
    """
    Transitions for revision records. Stateless: every call receives the
    record it acts on and returns a new instance, the caller persists it.
    """

    @staticmethod
    def effective_status(record: RevisionRecord, today: date) -> RevisionStatus:
        if not record.is_open:
            return record.status
        if record.due_date <= today:
            return RevisionStatus.DUE
        if record.postpone_count > 0:
            return RevisionStatus.POSTPONED
        return RevisionStatus.PENDING

    @staticmethod
    def effective_priority(record: RevisionRecord, today: date) -> int:
        """Stored priority plus 10 points per overdue day"""
        overdue_days = IntervalScheduler.get_days_overdue(record.due_date, today)
        return record.priority + overdue_days * OVERDUE_DAY_PRIORITY

    @staticmethod
    def create(
        student_id: int,
        competence_code: str,
        due_date: date,
        failure_count: int = 0,
        exercise_id: Optional[int] = None,
        question_id: Optional[str] = None,
        error_type: Optional[ErrorType] = None,
        timestamp: Optional[datetime] = None,
    ) -> RevisionRecord:
        timestamp = timestamp or current_time()
        return RevisionRecord(
            student_id=student_id,
            competence_code=competence_code,
            exercise_id=exercise_id,
            question_id=question_id,
            error_type=error_type,
            status=RevisionStatus.PENDING,
            due_date=due_date,
            priority=base_priority(failure_count),
            failure_count=failure_count,
            created_at=timestamp,
            updated_at=timestamp,
        )

    @staticmethod
    def record_failure(
        open_record: Optional[RevisionRecord],
        result: ScheduleResult,
        student_id: int,
        competence_code: str,
        today: date,
        exercise_id: Optional[int] = None,
        question_id: Optional[str] = None,
        error_type: Optional[ErrorType] = None,
        timestamp: Optional[datetime] = None,
    ) -> RevisionRecord:
        """Open a revision for tomorrow, or escalate the one already open"""
        timestamp = timestamp or current_time()
        if open_record is None:
            return RevisionStateMachine.create(
                student_id,
                competence_code,
                today + timedelta(days=1),
                failure_count=1,
                exercise_id=exercise_id,
                question_id=question_id,
                error_type=error_type,
                timestamp=timestamp,
            )

        failure_count = open_record.failure_count + 1
        return open_record.model_copy(update={
            "failure_count": failure_count,
            "priority": base_priority(failure_count),
            "due_date": result.next_review_date,
            "exercise_id": exercise_id if exercise_id is not None else open_record.exercise_id,
            "question_id": question_id or open_record.question_id,
            "error_type": error_type or open_record.error_type,
            "updated_at": timestamp,
        })

    @staticmethod
    def record_success(
        open_record: Optional[RevisionRecord],
        result: ScheduleResult,
        timestamp: Optional[datetime] = None,
    ) -> Optional[RevisionRecord]:
        """Complete the open revision on mastery, otherwise follow the new review date"""
        if open_record is None:
            return None
        timestamp = timestamp or current_time()
        if IntervalScheduler.is_mastered(result.easiness_factor, result.repetition_number):
            return open_record.model_copy(update={
                "status": RevisionStatus.COMPLETED,
                "updated_at": timestamp,
            })
        return open_record.model_copy(update={
            "due_date": result.next_review_date,
            "updated_at": timestamp,
        })

    @staticmethod
    def postpone(
        record: Optional[RevisionRecord],
        new_date: date,
        reason: str,
        today: date,
        revision_id=None,
        timestamp: Optional[datetime] = None,
    ) -> RevisionRecord:
        if record is None:
            raise NotFoundError(revision_id)
        if not record.is_open:
            raise InvalidTransitionError(record.id, record.status.value)
        if new_date <= today:
            raise InvalidDateError(new_date, today)
        return record.model_copy(update={
            "status": RevisionStatus.PENDING,
            "due_date": new_date,
            "postpone_count": record.postpone_count + 1,
            "reason": reason,
            "updated_at": timestamp or current_time(),
        })

    @staticmethod
    def cancel(
        record: Optional[RevisionRecord],
        reason: Optional[str] = None,
        revision_id=None,
        timestamp: Optional[datetime] = None,
    ) -> RevisionRecord:
        if record is None:
            raise NotFoundError(revision_id)
        if not record.is_open:
            raise InvalidTransitionError(record.id, record.status.value)
        return record.model_copy(update={
            "status": RevisionStatus.CANCELLED,
            "reason": reason,
            "updated_at": timestamp or current_time(),
        })

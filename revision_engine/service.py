"""
Public operations of the revision engine.

A RevisionService is built per request around the caller's repositories.
It reads a student's full state, runs the pure components and writes the
result back; calls for the same student must be serialized by the caller.
"""

from datetime import date, datetime, time, timedelta
from typing import List, Optional

from loguru import logger

from revision_engine.config import Settings, settings as default_settings
from revision_engine.exceptions import ValidationError
from revision_engine.labels import format_due_date
from revision_engine.progress import ProgressAnalyzer, RecommendationEngine
from revision_engine.quality import QualityEstimator
from revision_engine.queue import ReviewQueueBuilder
from revision_engine.repositories import CardRepository, RevisionRepository
from revision_engine.revision import RevisionStateMachine
from revision_engine.schemas import (
    CancelOutcome,
    CompetenceCard,
    ExerciseAttempt,
    FailureData,
    FailureOutcome,
    PostponeOutcome,
    ProgressReport,
    Recommendation,
    RevisionFilters,
    RevisionItem,
    RevisionList,
    RevisionRecord,
    RevisionStats,
    RevisionStatus,
    StatsPeriod,
    StudySchedule,
    SuccessData,
    SuccessOutcome,
    Trend,
)
from revision_engine.sm2 import SUCCESS_THRESHOLD, IntervalScheduler
from revision_engine.utils import now as current_time, today as current_day

SUBJECT_CODES = {
    "maths": "MA",
    "francais": "FR",
    "sciences": "SC",
}

PERIOD_DAYS = {
    StatsPeriod.DAY: 1,
    StatsPeriod.WEEK: 7,
    StatsPeriod.MONTH: 30,
}


def competence_subject(competence_code: str) -> Optional[str]:
    """Subject segment of a code such as "CP.FR.L1.1" ("FR")"""
    parts = competence_code.split(".")
    return parts[1] if len(parts) > 1 else None


class RevisionService:
    """Record attempts and serve revision lists and statistics for students"""

    def __init__(
        self,
        cards: CardRepository,
        revisions: RevisionRepository,
        config: Optional[Settings] = None
    ):
        self.cards = cards
        self.revisions = revisions
        self.settings = config or default_settings

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _timestamp(today: Optional[date]) -> datetime:
        moment = current_time()
        if today is None:
            return moment
        return datetime.combine(today, moment.time())

    def _load_or_create_card(self, student_id: int, competence_code: str) -> CompetenceCard:
        card = self.cards.load_card(student_id, competence_code)
        if card is None:
            logger.debug(f"First attempt at {competence_code} for student {student_id}")
            card = IntervalScheduler.new_card(student_id, competence_code)
        return card

    def _open_record(self, student_id: int, competence_code: str) -> Optional[RevisionRecord]:
        for record in self.revisions.load_open_records(student_id):
            if record.competence_code == competence_code:
                return record
        return None

    @staticmethod
    def _item(record: RevisionRecord, today: date) -> RevisionItem:
        return RevisionItem(
            revision=record,
            status=RevisionStateMachine.effective_status(record, today),
            effective_priority=RevisionStateMachine.effective_priority(record, today),
            due_label=format_due_date(record.due_date, today),
        )

    def _by_priority(self, records: List[RevisionRecord], today: date) -> List[RevisionItem]:
        items = [self._item(r, today) for r in records]
        items.sort(key=lambda i: (-i.effective_priority, i.revision.due_date, i.revision.competence_code))
        return items

    def _suggestions(self, student_id: int, today: date) -> List[RevisionItem]:
        records = self.revisions.load_open_records(student_id)
        return self._by_priority(records, today)[:self.settings.suggestion_limit]

    @staticmethod
    def _require_competence(competence_code: str) -> str:
        code = (competence_code or "").strip()
        if not code:
            raise ValidationError("competence_code is required")
        return code

    # ------------------------------------------------------------------
    # Attempts
    # ------------------------------------------------------------------

    def record_failure(self, student_id: int, data: FailureData, today: Optional[date] = None) -> FailureOutcome:
        """Advance the competence after a failed exercise and schedule a revision"""
        today = today or current_day()
        competence_code = self._require_competence(data.competence_code)

        difficulty = data.perceived_difficulty
        if difficulty is None:
            difficulty = self.settings.default_exercise_difficulty
        attempt = ExerciseAttempt(
            student_id=student_id,
            competence_code=competence_code,
            is_correct=False,
            time_spent_seconds=data.time_spent_seconds,
            hints_used=0,
            difficulty=difficulty,
        )
        quality = QualityEstimator.estimate_quality(attempt)
        # Engagement can lift a wrong answer past the threshold; it still schedules as a failure
        scheduling_quality = min(quality, SUCCESS_THRESHOLD - 0.5)

        card = self._load_or_create_card(student_id, competence_code)
        updated_card, result = IntervalScheduler.apply(card, scheduling_quality, today)
        self.cards.save_card(updated_card)

        open_record = self._open_record(student_id, competence_code)
        record = RevisionStateMachine.record_failure(
            open_record,
            result,
            student_id,
            competence_code,
            today,
            exercise_id=data.exercise_id,
            question_id=data.question_id,
            error_type=data.error_type,
            timestamp=self._timestamp(today),
        )
        record = self.revisions.save(record)

        logger.info(
            f"Failure on {competence_code} for student {student_id}: quality={quality}, "
            f"revision {record.id} due {record.due_date} (failures={record.failure_count})"
        )
        return FailureOutcome(
            revision_scheduled=True,
            quality=quality,
            next_due=self._suggestions(student_id, today),
        )

    def record_success(self, student_id: int, data: SuccessData, today: Optional[date] = None) -> SuccessOutcome:
        """Advance the competence after a success; close its revision on mastery"""
        today = today or current_day()
        competence_code = self._require_competence(data.competence_code)

        difficulty = data.difficulty
        if difficulty is None:
            difficulty = self.settings.default_exercise_difficulty
        attempt = ExerciseAttempt(
            student_id=student_id,
            competence_code=competence_code,
            is_correct=True,
            time_spent_seconds=data.time_spent_seconds,
            hints_used=data.hints_used,
            difficulty=difficulty,
        )
        quality = QualityEstimator.estimate_quality(attempt)

        card = self._load_or_create_card(student_id, competence_code)
        updated_card, result = IntervalScheduler.apply(card, quality, today)
        self.cards.save_card(updated_card)

        mastery = IntervalScheduler.is_mastered(result.easiness_factor, result.repetition_number)
        record = RevisionStateMachine.record_success(
            self._open_record(student_id, competence_code),
            result,
            timestamp=self._timestamp(today),
        )
        if record is not None:
            self.revisions.save(record)
            logger.info(f"Revision {record.id} for {competence_code} is now {record.status.value}")

        logger.info(
            f"Success on {competence_code} for student {student_id}: quality={quality}, "
            f"EF={result.easiness_factor}, next review {result.next_review_date}"
        )
        return SuccessOutcome(
            mastery_reached=mastery,
            score=data.score,
            quality=quality,
            remaining=self._suggestions(student_id, today),
        )

    def schedule_revision(self, student_id: int, competence_code: str, due_date: date) -> RevisionRecord:
        """Plan a re-check of a competence without waiting for a failure"""
        competence_code = self._require_competence(competence_code)
        existing = self._open_record(student_id, competence_code)
        if existing is not None:
            logger.debug(f"Revision {existing.id} already open for {competence_code}")
            return existing
        record = self.revisions.save(RevisionStateMachine.create(student_id, competence_code, due_date))
        logger.info(f"Scheduled revision {record.id} of {competence_code} for {due_date}")
        return record

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_exercises_to_revise(
        self,
        student_id: int,
        filters: Optional[RevisionFilters] = None,
        today: Optional[date] = None
    ) -> RevisionList:
        """Due revisions, most urgent first"""
        today = today or current_day()
        filters = filters or RevisionFilters()

        open_records = self.revisions.load_open_records(student_id)
        items = [
            item for item in self._by_priority(open_records, today)
            if item.status == RevisionStatus.DUE
        ]
        if filters.min_priority is not None:
            items = [i for i in items if i.effective_priority >= filters.min_priority]
        if filters.subject:
            code = SUBJECT_CODES.get(filters.subject.lower(), filters.subject.upper())
            items = [i for i in items if competence_subject(i.revision.competence_code) == code]

        limit = filters.limit if filters.limit is not None else self.settings.max_cards_per_day
        shown = items[:max(0, limit)]

        next_suggestion = shown[0] if shown else None
        if next_suggestion is None:
            upcoming = sorted(
                (r for r in open_records if r.due_date > today),
                key=lambda r: (r.due_date, r.competence_code)
            )
            if upcoming:
                next_suggestion = self._item(upcoming[0], today)

        return RevisionList(
            exercises=shown,
            total=len(items),
            shown=len(shown),
            next_suggestion=next_suggestion,
        )

    def get_revision_stats(
        self,
        student_id: int,
        period: StatsPeriod = StatsPeriod.WEEK,
        today: Optional[date] = None
    ) -> RevisionStats:
        today = today or current_day()
        period = StatsPeriod(period)
        records = self.revisions.load_records(student_id)

        open_records = [r for r in records if r.is_open]
        completed = [r for r in records if r.status == RevisionStatus.COMPLETED]
        cancelled = [r for r in records if r.status == RevisionStatus.CANCELLED]

        days = PERIOD_DAYS[period]
        current_start = today - timedelta(days=days)
        previous_start = current_start - timedelta(days=days)
        in_period = sum(1 for r in completed if current_start < r.updated_at.date() <= today)
        in_previous = sum(1 for r in completed if previous_start < r.updated_at.date() <= current_start)

        if in_period > in_previous:
            trend = Trend.IMPROVING
        elif in_period < in_previous:
            trend = Trend.DECLINING
        else:
            trend = Trend.STABLE

        return RevisionStats(
            pending=len(open_records),
            completed=len(completed),
            cancelled=len(cancelled),
            due_today=sum(1 for r in open_records if r.due_date <= today),
            total=len(records),
            period=period,
            completed_in_period=in_period,
            trend=trend,
            progress=ProgressAnalyzer.analyze(self.cards.load_cards(student_id)),
        )

    def get_study_schedule(self, student_id: int, today: Optional[date] = None) -> StudySchedule:
        return ReviewQueueBuilder.build_queue(
            self.cards.load_cards(student_id),
            self.settings.max_cards_per_day,
            today,
        )

    def get_progress(self, student_id: int) -> ProgressReport:
        return ProgressAnalyzer.analyze(self.cards.load_cards(student_id))

    def get_recommendations(self, student_id: int, today: Optional[date] = None) -> List[Recommendation]:
        return RecommendationEngine.recommend(self.cards.load_cards(student_id), today)

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def postpone_revision(
        self,
        revision_id: int,
        new_date: date,
        reason: str,
        today: Optional[date] = None
    ) -> PostponeOutcome:
        today = today or current_day()
        record = RevisionStateMachine.postpone(
            self.revisions.find_by_id(revision_id),
            new_date,
            reason,
            today,
            revision_id=revision_id,
            timestamp=self._timestamp(today),
        )
        record = self.revisions.save(record)
        logger.info(f"Revision {revision_id} postponed to {new_date} ({record.postpone_count} times)")
        return PostponeOutcome(new_date=record.due_date, reason=reason, postpone_count=record.postpone_count)

    def cancel_revision(
        self,
        revision_id: int,
        reason: Optional[str] = None,
        today: Optional[date] = None
    ) -> CancelOutcome:
        reason = reason or "No reason provided"
        record = RevisionStateMachine.cancel(
            self.revisions.find_by_id(revision_id),
            reason,
            revision_id=revision_id,
            timestamp=self._timestamp(today),
        )
        self.revisions.save(record)
        logger.info(f"Revision {revision_id} cancelled: {reason}")
        return CancelOutcome(reason=reason)

    # ------------------------------------------------------------------
    # Maintenance
    # ------------------------------------------------------------------

    def get_overdue_revisions(self, today: Optional[date] = None) -> List[RevisionItem]:
        """Open revisions past their date, across all students"""
        today = today or current_day()
        return self._by_priority(self.revisions.load_overdue(today), today)

    def cleanup_old_revisions(self, today: Optional[date] = None) -> int:
        """Delete closed revisions older than the retention window"""
        today = today or current_day()
        cutoff = datetime.combine(today - timedelta(days=self.settings.revision_retention_days), time.min)
        deleted = self.revisions.delete_closed_before(cutoff)
        logger.info(f"Removed {deleted} closed revisions last updated before {cutoff.date()}")
        return deleted

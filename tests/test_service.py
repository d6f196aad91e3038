from datetime import datetime, timedelta

import pytest

from revision_engine.config import Settings
from revision_engine.exceptions import InvalidDateError, InvalidTransitionError, NotFoundError, ValidationError
from revision_engine.schemas import (
    ErrorType,
    FailureData,
    RevisionFilters,
    RevisionStatus,
    StatsPeriod,
    SuccessData,
    Trend,
)
from revision_engine.service import RevisionService, competence_subject
from revision_engine.sm2 import IntervalScheduler

STUDENT = 1


def failure(code="CP.MA.N1.1", **extra):
    return FailureData(exercise_id=100, competence_code=code, **extra)


def success(code="CP.MA.N1.1", **extra):
    values = {"time_spent_seconds": 60, "hints_used": 0}
    values.update(extra)
    return SuccessData(exercise_id=100, competence_code=code, **values)


class TestRecordFailure:
    def test_creates_card_and_revision(self, service, card_repo, revision_repo, today):
        outcome = service.record_failure(STUDENT, failure(error_type=ErrorType.CALCUL), today)

        assert outcome.revision_scheduled
        assert outcome.quality == 2.0
        card = card_repo.load_card(STUDENT, "CP.MA.N1.1")
        assert card.easiness_factor == 2.35
        assert card.repetition_number == 0
        assert card.next_review_at == today + timedelta(days=1)

        [record] = revision_repo.load_open_records(STUDENT)
        assert record.due_date == today + timedelta(days=1)
        assert record.failure_count == 1
        assert record.error_type == ErrorType.CALCUL
        assert [i.revision.id for i in outcome.next_due] == [record.id]

    def test_second_failure_escalates_same_revision(self, service, revision_repo, today):
        service.record_failure(STUDENT, failure(), today)
        service.record_failure(STUDENT, failure(), today)

        [record] = revision_repo.load_open_records(STUDENT)
        assert record.failure_count == 2
        assert record.priority == 15

    def test_well_paced_failure_still_steps_back(self, service, card_repo, revision_repo, today):
        service.record_success(STUDENT, success(), today)
        service.record_success(STUDENT, success(), today + timedelta(days=1))
        assert card_repo.load_card(STUDENT, "CP.MA.N1.1").repetition_number == 2

        day = today + timedelta(days=4)
        outcome = service.record_failure(STUDENT, failure(time_spent_seconds=60), day)

        assert outcome.quality == 3.0
        card = card_repo.load_card(STUDENT, "CP.MA.N1.1")
        assert card.repetition_number == 1
        assert card.interval_days == 1
        assert not IntervalScheduler.is_mastered(card.easiness_factor, card.repetition_number)
        [record] = revision_repo.load_open_records(STUDENT)
        assert record.due_date == card.next_review_at == day + timedelta(days=1)

    def test_blank_competence_is_rejected(self, service, today):
        with pytest.raises(ValidationError):
            service.record_failure(STUDENT, failure(code="  "), today)


class TestRecordSuccess:
    def test_fractional_hints_are_truncated(self):
        assert success(hints_used=2.7).hints_used == 2
        assert success(hints_used=None).hints_used is None

    def test_success_without_revision(self, service, card_repo, revision_repo, today):
        outcome = service.record_success(STUDENT, success(score=90), today)

        assert outcome.quality == 5.0
        assert outcome.score == 90
        assert not outcome.mastery_reached
        assert outcome.remaining == []
        assert card_repo.load_card(STUDENT, "CP.MA.N1.1").repetition_number == 1
        assert revision_repo.load_records(STUDENT) == []

    def test_successes_until_mastery_close_revision(self, service, revision_repo, today):
        service.record_failure(STUDENT, failure(), today)

        first = service.record_success(STUDENT, success(), today + timedelta(days=1))
        assert not first.mastery_reached
        [record] = revision_repo.load_open_records(STUDENT)
        assert record.due_date == today + timedelta(days=2)

        second = service.record_success(STUDENT, success(), today + timedelta(days=2))
        assert not second.mastery_reached

        third = service.record_success(STUDENT, success(), today + timedelta(days=5))
        assert third.mastery_reached
        assert third.remaining == []
        [closed] = revision_repo.load_records(STUDENT)
        assert closed.status == RevisionStatus.COMPLETED


class TestExercisesToRevise:
    def test_only_due_revisions_sorted_by_priority(self, service, today):
        service.record_failure(STUDENT, failure("CP.MA.N1.1"), today)
        service.record_failure(STUDENT, failure("CP.FR.L1.1"), today)
        service.record_failure(STUDENT, failure("CP.FR.L1.1"), today)

        assert service.get_exercises_to_revise(STUDENT, today=today).total == 0

        result = service.get_exercises_to_revise(STUDENT, today=today + timedelta(days=1))
        assert result.total == 2
        assert [i.revision.competence_code for i in result.exercises] == ["CP.FR.L1.1", "CP.MA.N1.1"]
        assert result.next_suggestion.revision.competence_code == "CP.FR.L1.1"
        assert all(i.due_label == "Aujourd'hui" for i in result.exercises)

    def test_filters(self, service, today):
        service.record_failure(STUDENT, failure("CP.MA.N1.1"), today)
        service.record_failure(STUDENT, failure("CP.FR.L1.1"), today)
        service.record_failure(STUDENT, failure("CP.FR.L1.1"), today)
        day = today + timedelta(days=1)

        maths = service.get_exercises_to_revise(STUDENT, RevisionFilters(subject="maths"), day)
        assert [i.revision.competence_code for i in maths.exercises] == ["CP.MA.N1.1"]

        urgent = service.get_exercises_to_revise(STUDENT, RevisionFilters(min_priority=15), day)
        assert [i.revision.competence_code for i in urgent.exercises] == ["CP.FR.L1.1"]

        limited = service.get_exercises_to_revise(STUDENT, RevisionFilters(limit=1), day)
        assert limited.total == 2
        assert limited.shown == 1

    def test_next_suggestion_when_nothing_due(self, service, today):
        service.record_failure(STUDENT, failure(), today)
        result = service.get_exercises_to_revise(STUDENT, today=today)

        assert result.exercises == []
        assert result.next_suggestion.due_label == "Demain"

    def test_competence_subject(self):
        assert competence_subject("CE1.MA.N2.3") == "MA"
        assert competence_subject("loose") is None


class TestTransitions:
    def test_postpone(self, service, revision_repo, today):
        service.record_failure(STUDENT, failure(), today)
        [record] = revision_repo.load_open_records(STUDENT)

        outcome = service.postpone_revision(record.id, today + timedelta(days=4), "sick", today)

        assert outcome.postpone_count == 1
        assert outcome.new_date == today + timedelta(days=4)
        assert revision_repo.find_by_id(record.id).due_date == today + timedelta(days=4)

    def test_postpone_errors(self, service, revision_repo, today):
        with pytest.raises(NotFoundError):
            service.postpone_revision(999, today + timedelta(days=1), "x", today)

        service.record_failure(STUDENT, failure(), today)
        [record] = revision_repo.load_open_records(STUDENT)
        with pytest.raises(InvalidDateError):
            service.postpone_revision(record.id, today - timedelta(days=1), "x", today)

        service.cancel_revision(record.id, today=today)
        with pytest.raises(InvalidTransitionError):
            service.postpone_revision(record.id, today + timedelta(days=1), "x", today)

    def test_cancel(self, service, revision_repo, today):
        service.record_failure(STUDENT, failure(), today)
        [record] = revision_repo.load_open_records(STUDENT)

        assert service.cancel_revision(record.id, today=today).reason == "No reason provided"
        assert revision_repo.load_open_records(STUDENT) == []
        with pytest.raises(NotFoundError):
            service.cancel_revision(record.id, "again", today)

    def test_schedule_revision_is_idempotent_per_competence(self, service, today):
        first = service.schedule_revision(STUDENT, "CP.FR.E1.1", today + timedelta(days=3))
        second = service.schedule_revision(STUDENT, "CP.FR.E1.1", today + timedelta(days=9))

        assert first.status == RevisionStatus.PENDING
        assert second.id == first.id


class TestStatsAndMaintenance:
    def test_stats(self, service, today):
        service.record_failure(STUDENT, failure("CP.MA.N1.1"), today)
        service.record_failure(STUDENT, failure("CP.FR.L1.1"), today)
        for offset in (1, 2, 5):
            service.record_success(STUDENT, success("CP.MA.N1.1"), today + timedelta(days=offset))

        stats = service.get_revision_stats(STUDENT, StatsPeriod.WEEK, today + timedelta(days=5))

        assert stats.total == 2
        assert stats.completed == 1
        assert stats.pending == 1
        assert stats.due_today == 1
        assert stats.completed_in_period == 1
        assert stats.trend == Trend.IMPROVING
        assert stats.progress.total_cards == 2

    def test_stats_for_new_student(self, service, today):
        stats = service.get_revision_stats(STUDENT, "day", today)

        assert stats.total == 0
        assert stats.trend == Trend.STABLE
        assert stats.progress.average_easiness == 2.5

    def test_overdue_across_students(self, service, today):
        service.record_failure(1, failure(), today)
        service.record_failure(2, failure(), today)

        assert service.get_overdue_revisions(today + timedelta(days=1)) == []
        overdue = service.get_overdue_revisions(today + timedelta(days=3))
        assert {i.revision.student_id for i in overdue} == {1, 2}
        assert overdue[0].effective_priority == 30

    def test_cleanup_old_revisions(self, card_repo, revision_repo, today):
        service = RevisionService(card_repo, revision_repo, Settings(revision_retention_days=30))
        service.record_failure(STUDENT, failure("CP.MA.N1.1"), today)
        service.record_failure(STUDENT, failure("CP.FR.L1.1"), today)
        [first, _] = revision_repo.load_open_records(STUDENT)
        service.cancel_revision(first.id, "duplicate", today)

        assert service.cleanup_old_revisions(today + timedelta(days=10)) == 0
        assert service.cleanup_old_revisions(today + timedelta(days=40)) == 1
        assert len(revision_repo.load_records(STUDENT)) == 1

    def test_schedule_and_recommendations_use_stored_cards(self, service, today):
        service.record_failure(STUDENT, failure(), today)

        schedule = service.get_study_schedule(STUDENT, today + timedelta(days=1))
        assert [c.competence_code for c in schedule.due] == ["CP.MA.N1.1"]
        assert service.get_progress(STUDENT).total_cards == 1
        assert service.get_recommendations(STUDENT, today) == []


class TestRepositories:
    def test_card_round_trip_keeps_fields(self, card_repo, make_card, today):
        card = make_card("CP.FR.L1.3", easiness_factor=1.9, repetition_number=2, interval_days=3,
                         last_review_at=today, next_review_at=today + timedelta(days=3), last_quality=3.5)
        card_repo.save_card(card)
        card_repo.save_card(card.model_copy(update={"interval_days": 2}))

        [stored] = card_repo.load_cards(card.student_id)
        assert stored == card.model_copy(update={"interval_days": 2})

    def test_unknown_revision(self, revision_repo):
        assert revision_repo.find_by_id(12345) is None

    def test_timestamps_survive(self, service, revision_repo, today):
        service.record_failure(STUDENT, failure(), today)
        [record] = revision_repo.load_open_records(STUDENT)

        assert isinstance(record.created_at, datetime)
        assert record.created_at.date() == today

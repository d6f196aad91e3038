from datetime import date, timedelta
from typing import Optional, Tuple

from revision_engine.schemas import CompetenceCard, DifficultyLabel, ScheduleResult
from revision_engine.utils import round_half_up, today as current_day

EF_MIN = 1.3
EF_MAX = 2.5
EF_INITIAL = 2.5
FIRST_INTERVAL = 1
SECOND_INTERVAL = 6

# Lower than SM-2's 3 so that children are not over-penalized
SUCCESS_THRESHOLD = 2.5
FAILURE_EF_PENALTY = 0.15

# (highest repetition number of the tier, maximum interval in days)
INTERVAL_CAPS = [(2, 3), (4, 7), (8, 14)]
MAX_INTERVAL = 30

MASTERY_EF = 2.2
MASTERY_REPETITIONS = 3


class IntervalScheduler:
    """
    SM-2 spaced repetition scheduler adapted for young learners.
    Based on SuperMemo 2 algorithm by Piotr Wozniak, with a forgiving
    failure rule and interval caps that keep reviews close together.
    """

    @staticmethod
    def new_card(student_id: int, competence_code: str) -> CompetenceCard:
        """Initial state for a competence seen for the first time"""
        return CompetenceCard(
            student_id=student_id,
            competence_code=competence_code,
            easiness_factor=EF_INITIAL,
            repetition_number=0,
            interval_days=0,
        )

    @staticmethod
    def cap_interval(interval: int, repetition_number: int) -> int:
        """Bound how far ahead a review can be scheduled for a repetition tier"""
        for max_repetition, cap in INTERVAL_CAPS:
            if repetition_number <= max_repetition:
                return min(interval, cap)
        return min(interval, MAX_INTERVAL)

    @staticmethod
    def difficulty_label(easiness_factor: float, repetition_number: int) -> DifficultyLabel:
        if repetition_number <= 1:
            return DifficultyLabel.BEGINNER
        if easiness_factor >= 2.3:
            return DifficultyLabel.EASY
        elif easiness_factor >= 2.0:
            return DifficultyLabel.MEDIUM
        elif easiness_factor >= 1.6:
            return DifficultyLabel.HARD
        return DifficultyLabel.VERY_HARD

    @staticmethod
    def is_mastered(easiness_factor: float, repetition_number: int) -> bool:
        return easiness_factor >= MASTERY_EF and repetition_number >= MASTERY_REPETITIONS

    @staticmethod
    def schedule(
        card: CompetenceCard,
        quality: float,
        reference_date: Optional[date] = None  # Optional: use custom date instead of today
    ) -> ScheduleResult:
        """
        Calculate next review date and update SM-2 parameters.

        Args:
            card: Current learning state of the competence
            quality: Response quality (0-5), successful from 2.5
            reference_date: Optional reference date (defaults to today)

        Returns:
            ScheduleResult with the new parameters and next review date
        """
        base_date = reference_date if reference_date else current_day()
        quality = min(5.0, max(0.0, quality))

        easiness_factor = card.easiness_factor if card.easiness_factor is not None else EF_INITIAL
        easiness_factor = min(EF_MAX, max(EF_MIN, easiness_factor))
        repetitions = max(0, card.repetition_number or 0)
        last_interval = max(0, card.interval_days or 0)

        if quality >= SUCCESS_THRESHOLD:
            new_repetitions = repetitions + 1

            if new_repetitions == 1:
                new_interval = FIRST_INTERVAL
            elif new_repetitions == 2:
                new_interval = SECOND_INTERVAL
            else:
                new_interval = int(round_half_up(last_interval * easiness_factor))

            new_ef = easiness_factor + (0.1 - (5 - quality) * (0.08 + (5 - quality) * 0.02))
            new_ef = min(EF_MAX, max(EF_MIN, new_ef))
        else:
            # Step back one repetition instead of starting over
            new_repetitions = max(0, repetitions - 1)
            new_interval = FIRST_INTERVAL
            new_ef = max(EF_MIN, easiness_factor - FAILURE_EF_PENALTY)

        new_interval = IntervalScheduler.cap_interval(new_interval, new_repetitions)
        new_ef = round_half_up(new_ef, 2)

        should_review_now = card.next_review_at is None or base_date >= card.next_review_at

        return ScheduleResult(
            easiness_factor=new_ef,
            repetition_number=new_repetitions,
            interval_days=new_interval,
            next_review_date=base_date + timedelta(days=new_interval),
            should_review_now=should_review_now,
            difficulty_label=IntervalScheduler.difficulty_label(new_ef, new_repetitions),
        )

    @staticmethod
    def apply(
        card: CompetenceCard,
        quality: float,
        reference_date: Optional[date] = None
    ) -> Tuple[CompetenceCard, ScheduleResult]:
        """Advance a card by one attempt; returns the new card and the schedule step"""
        base_date = reference_date if reference_date else current_day()
        result = IntervalScheduler.schedule(card, quality, base_date)
        updated = card.model_copy(update={
            "easiness_factor": result.easiness_factor,
            "repetition_number": result.repetition_number,
            "interval_days": result.interval_days,
            "last_review_at": base_date,
            "next_review_at": result.next_review_date,
            "last_quality": quality,
        })
        return updated, result

    @staticmethod
    def is_due_for_review(card: CompetenceCard, reference_date: Optional[date] = None) -> bool:
        """Check if a competence is due for review"""
        base_date = reference_date if reference_date else current_day()
        return card.next_review_at is None or base_date >= card.next_review_at

    @staticmethod
    def get_days_overdue(due: date, reference_date: Optional[date] = None) -> int:
        """Calculate how many days overdue a review is"""
        base_date = reference_date if reference_date else current_day()
        if base_date < due:
            return 0
        return (base_date - due).days

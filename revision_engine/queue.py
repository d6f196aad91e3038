from datetime import date, timedelta
from typing import Dict, List, Optional

from revision_engine.schemas import CompetenceCard, StudySchedule
from revision_engine.utils import today as current_day

DEFAULT_MAX_PER_DAY = 10
LOOKAHEAD_DAYS = 7


class ReviewQueueBuilder:
    """
    Turn a student's card set into the due queue, the next-7-days list and
    a per-day plan. All comparisons are on calendar days; a card without a
    next review date is due today.
    """

    @staticmethod
    def deduplicate(cards: List[CompetenceCard]) -> List[CompetenceCard]:
        """Keep one card per (student, competence), the most recently reviewed"""
        latest: Dict[tuple, CompetenceCard] = {}
        for card in cards:
            key = (card.student_id, card.competence_code)
            kept = latest.get(key)
            if kept is None or (card.last_review_at or date.min) >= (kept.last_review_at or date.min):
                latest[key] = card
        return list(latest.values())

    @staticmethod
    def review_day(card: CompetenceCard, today: date) -> date:
        return card.next_review_at if card.next_review_at is not None else today

    @staticmethod
    def build_queue(
        cards: List[CompetenceCard],
        max_per_day: int = DEFAULT_MAX_PER_DAY,
        reference_date: Optional[date] = None
    ) -> StudySchedule:
        """
        Build the study schedule for one card set.

        Args:
            cards: Card snapshot; duplicates are collapsed first
            max_per_day: Cap applied to the due queue and to each planned day
            reference_date: Optional reference date (defaults to today)

        Returns:
            StudySchedule with due, upcoming and schedule_7day
        """
        today = reference_date if reference_date else current_day()
        max_per_day = max(0, max_per_day)
        horizon = today + timedelta(days=LOOKAHEAD_DAYS)

        def sort_key(card):
            return (ReviewQueueBuilder.review_day(card, today), card.competence_code)

        ordered = sorted(ReviewQueueBuilder.deduplicate(cards), key=sort_key)

        due = [c for c in ordered if ReviewQueueBuilder.review_day(c, today) <= today]
        upcoming = [c for c in ordered if today < ReviewQueueBuilder.review_day(c, today) <= horizon]

        schedule_7day = {}
        for offset in range(LOOKAHEAD_DAYS):
            day = today + timedelta(days=offset)
            day_cards = [c for c in ordered if ReviewQueueBuilder.review_day(c, today) == day]
            schedule_7day[day] = day_cards[:max_per_day]

        return StudySchedule(
            due=due[:max_per_day],
            upcoming=upcoming,
            schedule_7day=schedule_7day,
        )


build_queue = ReviewQueueBuilder.build_queue

from datetime import timedelta

import pytest

from revision_engine.schemas import DifficultyLabel
from revision_engine.sm2 import EF_MAX, EF_MIN, IntervalScheduler


class TestIntervalScheduler:
    """Tests for the SM-2 scheduler adapted for young learners."""

    def test_first_success_sets_one_day(self, make_card, today):
        result = IntervalScheduler.schedule(make_card(), 5, today)

        assert result.repetition_number == 1
        assert result.interval_days == 1
        assert result.easiness_factor == 2.5  # already at the ceiling
        assert result.next_review_date == today + timedelta(days=1)
        assert result.difficulty_label == DifficultyLabel.BEGINNER

    def test_success_at_threshold(self, make_card, today):
        result = IntervalScheduler.schedule(make_card(), 2.5, today)

        assert result.repetition_number == 1
        assert result.easiness_factor < 2.5

    def test_second_success_is_capped_to_three_days(self, make_card, today):
        card = make_card(repetition_number=1, interval_days=1)
        result = IntervalScheduler.schedule(card, 5, today)

        assert result.repetition_number == 2
        assert result.interval_days == 3  # raw formula says 6

    def test_failure_steps_back_one_repetition(self, make_card, today):
        card = make_card(repetition_number=3, interval_days=7)
        result = IntervalScheduler.schedule(card, 0, today)

        assert result.repetition_number == 2
        assert result.interval_days == 1
        assert result.easiness_factor == 2.35
        assert result.next_review_date == today + timedelta(days=1)

    def test_failure_never_goes_below_zero(self, make_card, today):
        result = IntervalScheduler.schedule(make_card(easiness_factor=1.3), 2, today)

        assert result.repetition_number == 0
        assert result.easiness_factor == 1.3

    def test_later_interval_uses_previous_ef(self, make_card, today):
        # round(14 * 1.5) = 21, tier cap for 9 repetitions is 30
        card = make_card(repetition_number=8, interval_days=14, easiness_factor=1.5)
        result = IntervalScheduler.schedule(card, 4, today)

        assert result.repetition_number == 9
        assert result.interval_days == 21
        assert result.easiness_factor == 1.5
        assert result.difficulty_label == DifficultyLabel.VERY_HARD

    def test_interval_rounds_half_up(self, make_card, today):
        # 5 * 1.3 = 6.5 -> 7
        card = make_card(repetition_number=9, interval_days=5, easiness_factor=1.3)
        result = IntervalScheduler.schedule(card, 5, today)

        assert result.interval_days == 7

    @pytest.mark.parametrize("repetitions,interval,cap", [
        (3, 30, 7),
        (5, 30, 14),
        (9, 60, 30),
    ])
    def test_tier_caps(self, make_card, today, repetitions, interval, cap):
        card = make_card(repetition_number=repetitions, interval_days=interval)
        result = IntervalScheduler.schedule(card, 5, today)

        assert result.interval_days == cap

    def test_out_of_range_ef_is_clamped(self, make_card, today):
        result = IntervalScheduler.schedule(make_card(easiness_factor=3.4), 5, today)
        assert result.easiness_factor == EF_MAX

    def test_ef_stays_in_bounds_for_any_sequence(self, make_card, today):
        qualities = [q / 2 for q in range(11)]
        card = make_card()
        day = today
        for step in range(200):
            quality = qualities[(step * 7) % len(qualities)]
            card, result = IntervalScheduler.apply(card, quality, day)
            assert EF_MIN <= result.easiness_factor <= EF_MAX
            day = result.next_review_date

    def test_failure_never_increases_and_success_never_decreases(self, make_card, today):
        card = make_card(repetition_number=4, interval_days=7)
        for quality in (0, 1, 2, 2.5, 3, 4, 5):
            result = IntervalScheduler.schedule(card, quality, today)
            if quality >= 2.5:
                assert result.repetition_number > card.repetition_number
            else:
                assert result.repetition_number <= card.repetition_number

    def test_should_review_now(self, make_card, today):
        assert IntervalScheduler.schedule(make_card(), 4, today).should_review_now
        due = make_card(next_review_at=today)
        assert IntervalScheduler.schedule(due, 4, today).should_review_now
        later = make_card(next_review_at=today + timedelta(days=2))
        assert not IntervalScheduler.schedule(later, 4, today).should_review_now

    @pytest.mark.parametrize("ef,repetitions,label", [
        (2.5, 1, DifficultyLabel.BEGINNER),
        (2.3, 2, DifficultyLabel.EASY),
        (2.0, 3, DifficultyLabel.MEDIUM),
        (1.6, 3, DifficultyLabel.HARD),
        (1.59, 3, DifficultyLabel.VERY_HARD),
    ])
    def test_difficulty_labels(self, ef, repetitions, label):
        assert IntervalScheduler.difficulty_label(ef, repetitions) == label

    def test_apply_updates_card(self, make_card, today):
        card, result = IntervalScheduler.apply(make_card(), 4, today)

        assert card.last_review_at == today
        assert card.next_review_at == result.next_review_date
        assert card.next_review_at == card.last_review_at + timedelta(days=card.interval_days)
        assert card.last_quality == 4

    def test_new_card_defaults(self):
        card = IntervalScheduler.new_card(7, "CP.FR.L1.1")
        assert card.easiness_factor == 2.5
        assert card.interval_days == 0
        assert card.repetition_number == 0

    def test_days_overdue(self, today):
        assert IntervalScheduler.get_days_overdue(today - timedelta(days=3), today) == 3
        assert IntervalScheduler.get_days_overdue(today + timedelta(days=3), today) == 0

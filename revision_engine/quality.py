from math import floor

from revision_engine.schemas import ExerciseAttempt
from revision_engine.utils import round_to_half

# Expected seconds per attempt for difficulty levels 0-5
EXPECTED_TIMES = [30, 45, 60, 90, 120, 180]


class QualityEstimator:
    """
    Convert one exercise attempt into a 0-5 SM-2 quality score.
    Engagement earns points even on a wrong answer: young learners who try
    without leaning on hints should not be scored like a blackout.
    """

    @staticmethod
    def expected_time(difficulty: float) -> int:
        """Expected time in seconds for an exercise difficulty"""
        return EXPECTED_TIMES[min(len(EXPECTED_TIMES) - 1, max(0, floor(difficulty)))]

    @staticmethod
    def estimate_quality(attempt: ExerciseAttempt) -> float:
        """
        Score an attempt in half-point steps over [0, 5].

        Args:
            attempt: Validated attempt (numeric fields already clamped)

        Returns:
            Quality score, a multiple of 0.5
        """
        quality = 0.0

        # Correctness (0.5-3 points)
        if attempt.is_correct:
            quality += 3
        else:
            quality += 1 if attempt.hints_used <= 1 else 0.5

        # Pacing (0-1 points): too fast suggests guessing, too slow struggling
        ratio = attempt.time_spent_seconds / QualityEstimator.expected_time(attempt.difficulty)
        if 0.5 <= ratio <= 2.0:
            quality += 1
        elif 2.0 < ratio <= 3.0:
            quality += 0.5

        # Hint usage (0-1 points)
        if attempt.hints_used == 0:
            quality += 1
        elif attempt.hints_used <= 2:
            quality += 0.5

        if attempt.confidence is not None:
            quality += (attempt.confidence / 5) * 0.5

        return round_to_half(min(5.0, max(0.0, quality)))


estimate_quality = QualityEstimator.estimate_quality

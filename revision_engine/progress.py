from datetime import date
from typing import List, Optional

from revision_engine.schemas import (
    CompetenceCard,
    ProgressReport,
    Recommendation,
    RecommendationAction,
)
from revision_engine.sm2 import EF_INITIAL, IntervalScheduler
from revision_engine.utils import round_half_up, today as current_day

DIFFICULT_EF = 1.6
SUCCESS_EF = 2.0
SUCCESS_QUALITY = 3

REVIEW_OVERLOAD = 15
OVERLOAD_CODES_SHOWN = 10
RECENT_DAYS = 7
MIN_RECENT_FRACTION = 0.3


def is_difficult(card: CompetenceCard) -> bool:
    return card.easiness_factor <= DIFFICULT_EF


class ProgressAnalyzer:
    """Aggregate a card set into mastery buckets and averages"""

    @staticmethod
    def analyze(cards: List[CompetenceCard]) -> ProgressReport:
        if not cards:
            # No data yet is not a sign of struggle: report the initial EF
            return ProgressReport(
                total_cards=0,
                mastered=0,
                learning=0,
                difficult=0,
                average_easiness=EF_INITIAL,
                average_interval=0,
                success_rate=0,
            )

        total = len(cards)
        mastered = sum(
            1 for c in cards if IntervalScheduler.is_mastered(c.easiness_factor, c.repetition_number)
        )
        difficult = sum(1 for c in cards if is_difficult(c))
        successful = sum(
            1 for c in cards
            if c.easiness_factor >= SUCCESS_EF and c.last_quality is not None and c.last_quality >= SUCCESS_QUALITY
        )

        return ProgressReport(
            total_cards=total,
            mastered=mastered,
            learning=total - mastered - difficult,
            difficult=difficult,
            average_easiness=round_half_up(sum(c.easiness_factor for c in cards) / total, 2),
            average_interval=round_half_up(sum(c.interval_days for c in cards) / total, 1),
            success_rate=round_half_up(successful / total, 2),
        )


class RecommendationEngine:
    """
    Turn a card set into actionable guidance. Each rule is evaluated
    independently, in a fixed order, and adds at most one entry.
    """

    @staticmethod
    def recommend(
        cards: List[CompetenceCard],
        reference_date: Optional[date] = None
    ) -> List[Recommendation]:
        today = reference_date if reference_date else current_day()
        recommendations = []

        difficult_cards = [c for c in cards if is_difficult(c)]
        if difficult_cards:
            recommendations.append(Recommendation(
                action=RecommendationAction.FOCUS_PRACTICE,
                reason=f"{len(difficult_cards)} competences need additional attention",
                competence_codes=[c.competence_code for c in difficult_cards],
            ))

        due_cards = [c for c in cards if IntervalScheduler.is_due_for_review(c, today)]
        if len(due_cards) > REVIEW_OVERLOAD:
            earliest = sorted(due_cards, key=lambda c: (c.next_review_at or today, c.competence_code))
            recommendations.append(Recommendation(
                action=RecommendationAction.PRIORITIZE_REVIEW,
                reason=f"{len(due_cards)} competences are due for review",
                competence_codes=[c.competence_code for c in earliest[:OVERLOAD_CODES_SHOWN]],
            ))

        recent = [
            c for c in cards
            if c.last_review_at is not None and (today - c.last_review_at).days <= RECENT_DAYS
        ]
        if len(recent) < len(cards) * MIN_RECENT_FRACTION:
            recommendations.append(Recommendation(
                action=RecommendationAction.INCREASE_FREQUENCY,
                reason="Regular practice helps maintain learning progress",
            ))

        return recommendations


analyze = ProgressAnalyzer.analyze
recommend = RecommendationEngine.recommend

"""Adaptive revision scheduling for young learners (SM-2 based)."""

from revision_engine.exceptions import (
    InvalidDateError,
    InvalidTransitionError,
    NotFoundError,
    RevisionError,
    ValidationError,
)
from revision_engine.progress import ProgressAnalyzer, RecommendationEngine
from revision_engine.quality import QualityEstimator
from revision_engine.queue import ReviewQueueBuilder
from revision_engine.revision import RevisionStateMachine
from revision_engine.service import RevisionService
from revision_engine.sm2 import IntervalScheduler

__all__ = [
    "IntervalScheduler",
    "InvalidDateError",
    "InvalidTransitionError",
    "NotFoundError",
    "ProgressAnalyzer",
    "QualityEstimator",
    "RecommendationEngine",
    "ReviewQueueBuilder",
    "RevisionError",
    "RevisionService",
    "RevisionStateMachine",
    "ValidationError",
]

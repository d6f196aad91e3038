from pydantic import BaseModel, Field, field_validator
from typing import Dict, List, Optional
from datetime import date, datetime
from enum import Enum


def _clamp(value, low, high):
    return max(low, min(high, value))


def _hint_count(value):
    """Hints are counted whole; fractions are dropped and negatives become 0"""
    if value is None:
        return None
    return int(max(0, value))


class RevisionStatus(str, Enum):
    """Lifecycle states of a revision record ("due" and "postponed" are computed)"""
    PENDING = "pending"
    DUE = "due"
    COMPLETED = "completed"
    POSTPONED = "postponed"
    CANCELLED = "cancelled"


TERMINAL_STATUSES = (RevisionStatus.COMPLETED, RevisionStatus.CANCELLED)


class ErrorType(str, Enum):
    CALCUL = "calcul"
    COMPREHENSION = "comprehension"
    ATTENTION = "attention"
    METHODE = "methode"


class DifficultyLabel(str, Enum):
    BEGINNER = "beginner"
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"
    VERY_HARD = "very_hard"


class CompetenceCard(BaseModel):
    """Durable learning state of one competence for one student"""
    student_id: int
    competence_code: str
    easiness_factor: float = 2.5
    repetition_number: int = 0
    interval_days: int = 0
    last_review_at: Optional[date] = None
    next_review_at: Optional[date] = None
    last_quality: Optional[float] = None

    class Config:
        from_attributes = True


class ExerciseAttempt(BaseModel):
    """One exercise attempt, validated once at the boundary.

    Numeric fields are clamped to safe values instead of being rejected.
    """
    student_id: int
    competence_code: str
    is_correct: bool
    time_spent_seconds: float = 0
    hints_used: int = 0
    difficulty: float = 2
    confidence: Optional[float] = None

    @field_validator("time_spent_seconds", mode="before")
    @classmethod
    def non_negative(cls, value):
        if value is None or value < 0:
            return 0
        return value

    @field_validator("hints_used", mode="before")
    @classmethod
    def whole_hints(cls, value):
        return _hint_count(value) or 0

    @field_validator("difficulty", mode="before")
    @classmethod
    def clamp_difficulty(cls, value):
        if value is None:
            return 2
        return _clamp(value, 0, 5)

    @field_validator("confidence", mode="before")
    @classmethod
    def clamp_confidence(cls, value):
        if value is None:
            return None
        return _clamp(value, 0, 5)


class FailureData(BaseModel):
    """Payload describing a failed exercise"""
    exercise_id: int
    competence_code: str
    question_id: Optional[str] = None
    time_spent_seconds: Optional[float] = None
    error_type: Optional[ErrorType] = None
    perceived_difficulty: Optional[float] = None


class SuccessData(BaseModel):
    """Payload describing a successful exercise"""
    exercise_id: int
    competence_code: str
    question_id: Optional[str] = None
    time_spent_seconds: Optional[float] = None
    score: Optional[float] = Field(default=None, description="Exercise score 0-100")
    hints_used: Optional[int] = None
    difficulty: Optional[float] = None

    @field_validator("score", mode="before")
    @classmethod
    def clamp_score(cls, value):
        if value is None:
            return None
        return _clamp(value, 0, 100)

    @field_validator("hints_used", mode="before")
    @classmethod
    def whole_hints(cls, value):
        return _hint_count(value)


class ScheduleResult(BaseModel):
    """Output of one interval scheduling step"""
    easiness_factor: float
    repetition_number: int
    interval_days: int
    next_review_date: date
    should_review_now: bool
    difficulty_label: DifficultyLabel


class RevisionRecord(BaseModel):
    """An explicitly tracked review action for one competence"""
    id: Optional[int] = None
    student_id: int
    competence_code: str
    exercise_id: Optional[int] = None
    question_id: Optional[str] = None
    error_type: Optional[ErrorType] = None
    status: RevisionStatus = RevisionStatus.PENDING
    due_date: date
    priority: int = 10
    failure_count: int = 0
    postpone_count: int = 0
    reason: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True

    @property
    def is_open(self) -> bool:
        return self.status not in TERMINAL_STATUSES


class StudySchedule(BaseModel):
    """Due list, 7-day lookahead and per-day plan for one student"""
    due: List[CompetenceCard]
    upcoming: List[CompetenceCard]
    schedule_7day: Dict[date, List[CompetenceCard]]


class ProgressReport(BaseModel):
    total_cards: int
    mastered: int
    learning: int
    difficult: int
    average_easiness: float
    average_interval: float
    success_rate: float


class RecommendationAction(str, Enum):
    FOCUS_PRACTICE = "focus_practice"
    PRIORITIZE_REVIEW = "prioritize_review"
    INCREASE_FREQUENCY = "increase_frequency"


class Recommendation(BaseModel):
    action: RecommendationAction
    reason: str
    competence_codes: Optional[List[str]] = None


class RevisionFilters(BaseModel):
    """Filters for the list of revisions to work on"""
    limit: Optional[int] = None
    min_priority: Optional[int] = None
    subject: Optional[str] = None  # "maths", "francais" or "sciences"


class RevisionItem(BaseModel):
    """A revision record as presented to the caller"""
    revision: RevisionRecord
    status: RevisionStatus
    effective_priority: int
    due_label: str


class FailureOutcome(BaseModel):
    revision_scheduled: bool
    quality: float
    next_due: List[RevisionItem]


class SuccessOutcome(BaseModel):
    mastery_reached: bool
    score: Optional[float] = None
    quality: float
    remaining: List[RevisionItem]


class RevisionList(BaseModel):
    exercises: List[RevisionItem]
    total: int
    shown: int
    next_suggestion: Optional[RevisionItem] = None


class StatsPeriod(str, Enum):
    DAY = "day"
    WEEK = "week"
    MONTH = "month"


class Trend(str, Enum):
    IMPROVING = "improving"
    STABLE = "stable"
    DECLINING = "declining"


class RevisionStats(BaseModel):
    pending: int
    completed: int
    cancelled: int
    due_today: int
    total: int
    period: StatsPeriod
    completed_in_period: int
    trend: Trend
    progress: ProgressReport


class PostponeOutcome(BaseModel):
    new_date: date
    reason: str
    postpone_count: int


class CancelOutcome(BaseModel):
    reason: str

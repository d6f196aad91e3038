from sqlalchemy import Column, Integer, String, Float, Date, UniqueConstraint
from revision_engine.database import Base

class CompetenceProgress(Base):
    """SM-2 spaced repetition state per student and competence"""
    __tablename__ = "competence_progress"
    __table_args__ = (UniqueConstraint("student_id", "competence_code"),)

    id = Column(Integer, primary_key=True, index=True)
    student_id = Column(Integer, nullable=False, index=True)
    competence_code = Column(String, nullable=False)  # e.g. "CP.FR.L1.1"

    # SM-2 algorithm fields
    easiness_factor = Column(Float, default=2.5)  # EF: difficulty rating
    repetition_number = Column(Integer, default=0)  # successful reviews count
    interval_days = Column(Integer, default=0)  # days until next review

    last_review_at = Column(Date)
    next_review_at = Column(Date)
    last_quality = Column(Float)  # 0-5, half-point steps

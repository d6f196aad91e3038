from sqlalchemy import Column, Integer, String, Date, DateTime, Index
from datetime import datetime
from revision_engine.database import Base

class Revision(Base):
    """Explicitly scheduled revision of a competence"""
    __tablename__ = "revisions"
    __table_args__ = (Index("ix_revisions_student_status", "student_id", "status"),)

    id = Column(Integer, primary_key=True, index=True)
    student_id = Column(Integer, nullable=False)
    competence_code = Column(String, nullable=False)
    exercise_id = Column(Integer)
    question_id = Column(String)
    error_type = Column(String)  # calcul, comprehension, attention, methode

    status = Column(String, nullable=False, default="pending")  # pending, completed, cancelled
    due_date = Column(Date, nullable=False)
    priority = Column(Integer, nullable=False, default=10)
    failure_count = Column(Integer, nullable=False, default=0)
    postpone_count = Column(Integer, nullable=False, default=0)
    reason = Column(String)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow)

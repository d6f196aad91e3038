from sqlalchemy.orm import Session
from revision_engine.models import CompetenceProgress
from revision_engine.schemas import CompetenceCard
from typing import List, Optional

def get_cards(db: Session, student_id: int) -> List[CompetenceProgress]:
    """Get every competence tracked for a student"""
    return db.query(CompetenceProgress).filter(
        CompetenceProgress.student_id == student_id
    ).order_by(CompetenceProgress.competence_code).all()

def get_card(db: Session, student_id: int, competence_code: str) -> Optional[CompetenceProgress]:
    """Get one competence for a student"""
    return db.query(CompetenceProgress).filter(
        CompetenceProgress.student_id == student_id,
        CompetenceProgress.competence_code == competence_code
    ).first()

def upsert_card(db: Session, card: CompetenceCard) -> CompetenceProgress:
    """Insert or update the SM-2 state of a competence"""
    row = get_card(db, card.student_id, card.competence_code)
    if row is None:
        row = CompetenceProgress(student_id=card.student_id, competence_code=card.competence_code)
        db.add(row)
    for key, value in card.model_dump(exclude={"student_id", "competence_code"}).items():
        setattr(row, key, value)
    db.commit()
    db.refresh(row)
    return row

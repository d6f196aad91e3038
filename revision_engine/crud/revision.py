from sqlalchemy.orm import Session
from revision_engine.models import Revision
from revision_engine.schemas import RevisionRecord
from datetime import date, datetime
from typing import List, Optional

OPEN_STATUSES = ("pending",)
CLOSED_STATUSES = ("completed", "cancelled")

def get_revision(db: Session, revision_id: int) -> Optional[Revision]:
    """Get revision by ID"""
    return db.query(Revision).filter(Revision.id == revision_id).first()

def get_revisions(db: Session, student_id: int) -> List[Revision]:
    """Get all revisions for a student, oldest first"""
    return db.query(Revision).filter(
        Revision.student_id == student_id
    ).order_by(Revision.created_at, Revision.id).all()

def get_open_revisions(db: Session, student_id: int) -> List[Revision]:
    """Get revisions still waiting to be done"""
    return db.query(Revision).filter(
        Revision.student_id == student_id,
        Revision.status.in_(OPEN_STATUSES)
    ).order_by(Revision.due_date, Revision.id).all()

def get_overdue_revisions(db: Session, current_date: date) -> List[Revision]:
    """Get open revisions of all students whose due date has passed"""
    return db.query(Revision).filter(
        Revision.status.in_(OPEN_STATUSES),
        Revision.due_date < current_date
    ).order_by(Revision.due_date, Revision.id).all()

def save_revision(db: Session, record: RevisionRecord) -> Revision:
    """Insert a new revision or overwrite an existing one"""
    values = record.model_dump(exclude={"id"}, mode="json")
    values["due_date"] = record.due_date
    values["created_at"] = record.created_at
    values["updated_at"] = record.updated_at

    row = get_revision(db, record.id) if record.id is not None else None
    if row is None:
        row = Revision()
        db.add(row)
    for key, value in values.items():
        setattr(row, key, value)
    db.commit()
    db.refresh(row)
    return row

def delete_closed_revisions(db: Session, cutoff: datetime) -> int:
    """Delete completed/cancelled revisions last updated before cutoff"""
    count = db.query(Revision).filter(
        Revision.status.in_(CLOSED_STATUSES),
        Revision.updated_at < cutoff
    ).delete(synchronize_session=False)
    db.commit()
    return count

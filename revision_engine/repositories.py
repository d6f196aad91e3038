"""
Persistence collaborators used by RevisionService.

The engine only depends on the two protocols; the SQLAlchemy classes are the
reference implementation backed by the crud functions.
"""

from datetime import date, datetime
from typing import List, Optional, Protocol

from sqlalchemy.orm import Session

from revision_engine import crud
from revision_engine.schemas import CompetenceCard, RevisionRecord


class CardRepository(Protocol):
    def load_cards(self, student_id: int) -> List[CompetenceCard]:
        ...

    def load_card(self, student_id: int, competence_code: str) -> Optional[CompetenceCard]:
        ...

    def save_card(self, card: CompetenceCard) -> None:
        ...


class RevisionRepository(Protocol):
    def load_open_records(self, student_id: int) -> List[RevisionRecord]:
        ...

    def load_records(self, student_id: int) -> List[RevisionRecord]:
        ...

    def save(self, record: RevisionRecord) -> RevisionRecord:
        ...

    def find_by_id(self, revision_id: int) -> Optional[RevisionRecord]:
        ...

    def load_overdue(self, current_date: date) -> List[RevisionRecord]:
        ...

    def delete_closed_before(self, cutoff: datetime) -> int:
        ...


class SqlCardRepository:
    """CardRepository over the competence_progress table"""

    def __init__(self, db: Session):
        self.db = db

    def load_cards(self, student_id: int) -> List[CompetenceCard]:
        return [CompetenceCard.model_validate(row) for row in crud.get_cards(self.db, student_id)]

    def load_card(self, student_id: int, competence_code: str) -> Optional[CompetenceCard]:
        row = crud.get_card(self.db, student_id, competence_code)
        return CompetenceCard.model_validate(row) if row else None

    def save_card(self, card: CompetenceCard) -> None:
        crud.upsert_card(self.db, card)


class SqlRevisionRepository:
    """RevisionRepository over the revisions table"""

    def __init__(self, db: Session):
        self.db = db

    def load_open_records(self, student_id: int) -> List[RevisionRecord]:
        return [RevisionRecord.model_validate(row) for row in crud.get_open_revisions(self.db, student_id)]

    def load_records(self, student_id: int) -> List[RevisionRecord]:
        return [RevisionRecord.model_validate(row) for row in crud.get_revisions(self.db, student_id)]

    def save(self, record: RevisionRecord) -> RevisionRecord:
        return RevisionRecord.model_validate(crud.save_revision(self.db, record))

    def find_by_id(self, revision_id: int) -> Optional[RevisionRecord]:
        row = crud.get_revision(self.db, revision_id)
        return RevisionRecord.model_validate(row) if row else None

    def load_overdue(self, current_date: date) -> List[RevisionRecord]:
        return [RevisionRecord.model_validate(row) for row in crud.get_overdue_revisions(self.db, current_date)]

    def delete_closed_before(self, cutoff: datetime) -> int:
        return crud.delete_closed_revisions(self.db, cutoff)

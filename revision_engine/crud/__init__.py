from revision_engine.crud.competence_progress import get_cards, get_card, upsert_card
from revision_engine.crud.revision import (
    get_revision,
    get_revisions,
    get_open_revisions,
    get_overdue_revisions,
    save_revision,
    delete_closed_revisions
)

__all__ = [
    "get_cards",
    "get_card",
    "upsert_card",
    "get_revision",
    "get_revisions",
    "get_open_revisions",
    "get_overdue_revisions",
    "save_revision",
    "delete_closed_revisions",
]

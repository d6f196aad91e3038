from revision_engine.models.competence_progress import CompetenceProgress
from revision_engine.models.revision import Revision

__all__ = [
    "CompetenceProgress",
    "Revision",
]

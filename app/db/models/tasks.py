"""Table des tâches. Une seule entité persistée ; le statut et les dates sont gérés côté serveur."""

from enum import Enum
from typing import Optional

from sqlalchemy import CheckConstraint
from sqlmodel import Field

from .base import BaseModelDB

TITLE_MAX_LENGTH = 100
DESCRIPTION_MAX_LENGTH = 500
# Plus grand INTEGER SQLite (entier signé 64 bits)
MAX_TASK_ID = 2**63 - 1


class TaskStatus(str, Enum):
    """Statuts possibles d'une tâche (toutes les transitions sont permises)."""
    pending = "pending"
    in_progress = "in_progress"
    completed = "completed"
    cancelled = "cancelled"


class Task(BaseModelDB, table=True):
    __tablename__ = "tasks"
    __table_args__ = (
        CheckConstraint(f"length(title) <= {TITLE_MAX_LENGTH}", name="ck_tasks_title_length"),
        CheckConstraint(
            f"length(description) <= {DESCRIPTION_MAX_LENGTH}", name="ck_tasks_description_length"
        ),
        # SQLite : AUTOINCREMENT pour ne jamais réutiliser un id supprimé
        {"sqlite_autoincrement": True},
    )

    title: str = Field(max_length=TITLE_MAX_LENGTH, nullable=False)
    description: Optional[str] = Field(default=None, max_length=DESCRIPTION_MAX_LENGTH)
    # Texte libre en base : la validation de l'énumération est faite par le service
    status: str = Field(default=TaskStatus.pending.value, max_length=20, index=True)

# app/db/repositories/tasks.py
from typing import Optional, Sequence

from app.db.models.base import utcnow
from app.db.models.tasks import Task, TaskStatus
from app.db.repositories.base import BaseRepository


class TaskRepository(BaseRepository[Task]):
    model = Task

    def list_newest_first(self) -> Sequence[Task]:
        # id en second critère : deux créations dans la même microseconde restent ordonnées
        return self.list(Task.created_at.desc(), Task.id.desc())

    def create_task(self, *, title: str, description: Optional[str] = None) -> Task:
        now = utcnow()
        return self.create(
            title=title,
            description=description,
            status=TaskStatus.pending.value,
            created_at=now,
            updated_at=now,
        )

    def set_status(self, task_id: int, status: str) -> Optional[Task]:
        """
        Change le statut et rafraîchit updated_at.
        Retourne None si la tâche n'existe pas (ou plus).
        """
        task = self.get(task_id)
        if task is None:
            return None
        now = utcnow()
        # SQLite relit des dates naïves (UTC) : on compare à l'identique
        previous = task.updated_at
        if previous is not None and previous.tzinfo is None:
            now = now.replace(tzinfo=None)
        if previous is not None and previous > now:
            now = previous
        return self.update(task, status=status, updated_at=now)

    def delete_by_id(self, task_id: int) -> bool:
        task = self.get(task_id)
        if task is None:
            return False
        self.delete(task)
        return True

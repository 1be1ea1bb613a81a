"""
➡️ But : Exposer la persistance des tâches derrière une interface simple et synchrone.

TaskStore possède l'engine (open/close) et ouvre une session par opération :

create / get_by_id / get_all / update_status / delete / count.

Toute erreur SQLAlchemy (connexion, contrainte, intégrité) est convertie en StorageError.

🔹 Avantages :

Le service ne connaît ni SQL ni sessions.

Une unité de travail par appel : sûr quand plusieurs requêtes tournent en parallèle (threads).
"""

from contextlib import contextmanager
from typing import Iterator, List, Optional

from loguru import logger
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from app.db.models.tasks import MAX_TASK_ID, Task
from app.db.repositories.tasks import TaskRepository
from app.db.session import build_engine, init_db, open_session


class StorageError(Exception):
    """La base est indisponible ou a rejeté l'opération."""


class TaskStore:
    def __init__(self, database_url: str, *, echo: bool = False):
        self.database_url = database_url
        self.echo = echo
        self._engine: Optional[Engine] = None

    # --------------- Lifecycle ---------------
    @property
    def is_open(self) -> bool:
        return self._engine is not None

    def open(self) -> None:
        if self._engine is not None:
            return
        try:
            engine = build_engine(self.database_url, echo=self.echo)
            init_db(engine)
        except SQLAlchemyError as e:
            raise StorageError("Could not open the task database") from e
        self._engine = engine
        logger.info("Task store ready url={} total={}", self.database_url, self.count())

    def close(self) -> None:
        engine, self._engine = self._engine, None
        if engine is None:
            return
        engine.dispose()
        logger.info("Task store closed")

    @contextmanager
    def _repository(self) -> Iterator[TaskRepository]:
        if self._engine is None:
            raise StorageError("Task store is not open")
        try:
            with open_session(self._engine) as session:
                yield TaskRepository(session)
        except SQLAlchemyError as e:
            raise StorageError(str(e)) from e

    # --------------- Commands ---------------
    def create(self, title: str, description: Optional[str] = None) -> int:
        with self._repository() as repo:
            task = repo.create_task(title=title, description=description)
            task_id = task.id
        if task_id is None:
            raise StorageError("Database did not return an id for the new task")
        logger.debug("Task inserted id={}", task_id)
        return task_id

    def update_status(self, task_id: int, status: str) -> bool:
        if not 0 < task_id <= MAX_TASK_ID:
            return False
        with self._repository() as repo:
            return repo.set_status(task_id, status) is not None

    def delete(self, task_id: int) -> bool:
        if not 0 < task_id <= MAX_TASK_ID:
            return False
        with self._repository() as repo:
            return repo.delete_by_id(task_id)

    # --------------- Queries ---------------
    def get_by_id(self, task_id: int) -> Optional[Task]:
        if not 0 < task_id <= MAX_TASK_ID:
            return None
        with self._repository() as repo:
            return repo.get(task_id)

    def get_all(self) -> List[Task]:
        with self._repository() as repo:
            return list(repo.list_newest_first())

    def count(self) -> int:
        with self._repository() as repo:
            return repo.count()

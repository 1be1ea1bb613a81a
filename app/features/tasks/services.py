"""
➡️ But : Contenir la logique métier des tâches : valider, orchestrer le store, diffuser.

TaskService :

valide les entrées (titre, description, statut, id) avant tout accès à la base,

délègue au TaskStore (appels bloquants exécutés dans un thread),

publie un événement temps réel après chaque mutation confirmée et relue.

🔹 Avantages :

Code métier découplé du web : les routes ne font que traduire les exceptions en HTTP.

Test unitaire possible sans passer par FastAPI.
"""

from typing import Any, List, Optional

from loguru import logger
from starlette.concurrency import run_in_threadpool

from app.db.models.tasks import (
    DESCRIPTION_MAX_LENGTH,
    MAX_TASK_ID,
    TITLE_MAX_LENGTH,
    Task,
    TaskStatus,
)
from app.db.store import StorageError, TaskStore
from app.features.tasks import broadcast
from app.features.tasks.broadcast import Subscription, TaskBroadcaster
from app.features.tasks.schemas import TaskOut

VALID_STATUSES = [s.value for s in TaskStatus]


class ValidationError(Exception):
    pass


class NotFoundError(LookupError):
    pass


def parse_task_id(raw: Any) -> int:
    """
    Convertit l'id de chemin en entier strictement positif.
    Seuls les chiffres ASCII sont acceptés ("+5", " 7", "0_1" sont refusés).
    """
    if isinstance(raw, bool):
        raise ValidationError("Invalid task id")
    if isinstance(raw, int):
        task_id = raw
    elif isinstance(raw, str) and raw.isascii() and raw.isdigit():
        task_id = int(raw)
    else:
        raise ValidationError("Invalid task id")
    if not 0 < task_id <= MAX_TASK_ID:
        raise ValidationError("Invalid task id")
    return task_id


class TaskService:
    def __init__(self, store: TaskStore, broadcaster: TaskBroadcaster):
        self.store = store
        self.broadcaster = broadcaster

    # --------------- Helpers ---------------
    @staticmethod
    def _to_out(task: Task) -> TaskOut:
        return TaskOut.model_validate(task)

    @staticmethod
    def _validate_new_task(title: Any, description: Any) -> tuple[str, Optional[str]]:
        if not isinstance(title, str) or not title.strip():
            raise ValidationError("Title is required and must be a string")
        title = title.strip()
        if len(title) > TITLE_MAX_LENGTH:
            raise ValidationError(f"Title cannot exceed {TITLE_MAX_LENGTH} characters")

        if description is None:
            return title, None
        if not isinstance(description, str) or len(description.strip()) > DESCRIPTION_MAX_LENGTH:
            raise ValidationError(
                f"Description must be a string of at most {DESCRIPTION_MAX_LENGTH} characters"
            )
        # "" reste distinct de None (absente)
        return title, description.strip()

    @staticmethod
    def _validate_status(status: Any) -> str:
        if not status or not isinstance(status, str):
            raise ValidationError("Status is required and must be a string")
        if status not in VALID_STATUSES:
            raise ValidationError(f"Invalid status. Valid statuses: {', '.join(VALID_STATUSES)}")
        return status

    async def _require(self, task_id: int) -> Task:
        task = await run_in_threadpool(self.store.get_by_id, task_id)
        if task is None:
            raise NotFoundError("Task not found")
        return task

    # --------------- Commands ---------------
    async def create(self, title: Any, description: Any = None) -> TaskOut:
        title, description = self._validate_new_task(title, description)

        task_id = await run_in_threadpool(self.store.create, title, description)
        created = self._to_out(await self._require(task_id))
        logger.info("Task created id={} title={!r}", created.id, created.title)

        self.broadcaster.publish(broadcast.NEW_TASK, created.model_dump(mode="json"))
        return created

    async def update_status(self, raw_id: Any, status: Any) -> TaskOut:
        status = self._validate_status(status)
        task_id = parse_task_id(raw_id)

        await self._require(task_id)
        updated = await run_in_threadpool(self.store.update_status, task_id, status)
        if not updated:
            # supprimée entre la lecture et la mise à jour
            raise NotFoundError("Task not found")

        task = self._to_out(await self._require(task_id))
        logger.info("Task updated id={} status={}", task_id, status)

        self.broadcaster.publish(
            broadcast.TASK_UPDATED,
            {"id": task_id, "status": status, "task": task.model_dump(mode="json")},
        )
        return task

    async def delete(self, raw_id: Any) -> int:
        task_id = parse_task_id(raw_id)

        await self._require(task_id)
        deleted = await run_in_threadpool(self.store.delete, task_id)
        if not deleted:
            raise NotFoundError("Task not found")
        logger.info("Task deleted id={}", task_id)

        self.broadcaster.publish(broadcast.TASK_DELETED, {"id": task_id})
        return task_id

    # --------------- Queries ---------------
    async def list(self) -> List[TaskOut]:
        tasks = await run_in_threadpool(self.store.get_all)
        return [self._to_out(t) for t in tasks]

    # --------------- Realtime ---------------
    async def subscribe(self) -> Subscription:
        """
        Enregistre un nouveau client puis place le snapshot de toutes les tâches
        en tête de sa file : il passe avant tout événement publié entre-temps.
        """
        subscription = self.broadcaster.subscribe()
        try:
            tasks = await self.list()
        except StorageError:
            logger.exception("Could not load initial tasks for client id={}", subscription.id)
            return subscription
        except BaseException:
            self.broadcaster.unsubscribe(subscription)
            raise
        subscription.push_first(
            broadcast.make_message(
                broadcast.INITIAL_TASKS, [t.model_dump(mode="json") for t in tasks]
            )
        )
        logger.info("Sent {} initial task(s) to client id={}", len(tasks), subscription.id)
        return subscription

    def unsubscribe(self, subscription: Subscription) -> None:
        self.broadcaster.unsubscribe(subscription)

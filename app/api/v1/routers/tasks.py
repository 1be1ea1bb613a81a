"""
➡️ But : Définir les endpoints REST des tâches.

C’est la couche la plus proche du web :

Réceptionne les requêtes HTTP (GET, POST, PUT, DELETE)

Appelle le TaskService

Traduit les erreurs métier en HTTPException (400 / 404 / 500)

🔹 Avantages :

Automatiquement documentée dans Swagger.

Isolation totale du reste du code : les routes ne contiennent ni SQL ni logique métier.
"""

from fastapi import APIRouter, Depends, HTTPException, status
from loguru import logger

from app.api.v1.dependencies import get_task_service
from app.db.store import StorageError
from app.features.tasks.schemas import (
    ErrorOut,
    TaskCreateIn,
    TaskDeletedOut,
    TaskEnvelopeOut,
    TaskListOut,
    TaskStatusIn,
)
from app.features.tasks.services import NotFoundError, TaskService, ValidationError

router = APIRouter(
    prefix="/tasks",
    tags=["tasks"],
    responses={
        400: {"model": ErrorOut, "description": "Invalid input"},
        500: {"model": ErrorOut, "description": "Storage failure"},
    },
)


def _storage_failure(action: str) -> HTTPException:
    logger.exception("Storage error while {}", action)
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail=f"Internal server error while {action}",
    )


@router.post(
    "",
    summary="Créer une tâche",
    status_code=status.HTTP_201_CREATED,
    response_model=TaskEnvelopeOut,
)
async def create_task(payload: TaskCreateIn, svc: TaskService = Depends(get_task_service)):
    try:
        task = await svc.create(payload.title, payload.description)
    except ValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except StorageError:
        raise _storage_failure("creating the task")
    return TaskEnvelopeOut(message="Task created successfully", task=task)


@router.get(
    "",
    summary="Lister les tâches (plus récentes en premier)",
    response_model=TaskListOut,
)
async def list_tasks(svc: TaskService = Depends(get_task_service)):
    try:
        tasks = await svc.list()
    except StorageError:
        raise _storage_failure("fetching the tasks")
    return TaskListOut(message="Tasks fetched successfully", tasks=tasks, count=len(tasks))


@router.put(
    "/{task_id}",
    summary="Mettre à jour le statut d'une tâche",
    response_model=TaskEnvelopeOut,
    responses={404: {"model": ErrorOut, "description": "Task not found"}},
)
async def update_task_status(
    task_id: str,
    payload: TaskStatusIn,
    svc: TaskService = Depends(get_task_service),
):
    try:
        task = await svc.update_status(task_id, payload.status)
    except ValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except StorageError:
        raise _storage_failure("updating the task")
    return TaskEnvelopeOut(message="Task status updated successfully", task=task)


@router.delete(
    "/{task_id}",
    summary="Supprimer une tâche",
    response_model=TaskDeletedOut,
    responses={404: {"model": ErrorOut, "description": "Task not found"}},
)
async def delete_task(task_id: str, svc: TaskService = Depends(get_task_service)):
    try:
        deleted_id = await svc.delete(task_id)
    except ValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except StorageError:
        raise _storage_failure("deleting the task")
    return TaskDeletedOut(message="Task deleted successfully", deletedTaskId=deleted_id)

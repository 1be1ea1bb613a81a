from datetime import datetime
from typing import Any, List, Optional

from pydantic import BaseModel, Field as PydField

from app.db.models.tasks import TaskStatus

# Les champs d'entrée restent permissifs (Any) : les règles métier et leurs
# messages d'erreur sont appliqués par TaskService, pas par pydantic.


class TaskCreateIn(BaseModel):
    title: Any = PydField(None, examples=["Buy milk"])
    description: Any = PydField(None, examples=["2 litres, semi-skimmed"])


class TaskStatusIn(BaseModel):
    status: Any = PydField(None, examples=[TaskStatus.completed.value])


class TaskOut(BaseModel):
    id: int
    title: str
    description: Optional[str]
    status: str
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class TaskEnvelopeOut(BaseModel):
    message: str
    task: TaskOut


class TaskListOut(BaseModel):
    message: str
    tasks: List[TaskOut]
    count: int


class TaskDeletedOut(BaseModel):
    message: str
    deletedTaskId: int


class ErrorOut(BaseModel):
    error: str

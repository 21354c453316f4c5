from typing import List

from fastapi import APIRouter, Depends

from ..core.auth import get_current_user
from ..core.database import Database, get_db
from ..models.task import Task, TaskPayload
from ..models.user import AuthenticatedUser
from ..services.tasks_service import create_task, delete_task, list_tasks, update_task

router = APIRouter(dependencies=[Depends(get_current_user)])


@router.get("/tasks", response_model=List[Task])
async def get_tasks(db: Database = Depends(get_db)):
    return await list_tasks(db)


@router.post("/tasks", response_model=Task)
async def add_task(
    payload: TaskPayload,
    db: Database = Depends(get_db),
    user: AuthenticatedUser = Depends(get_current_user),
):
    return await create_task(db, payload, created_by=user.uid)


@router.put("/tasks/{task_id}", response_model=Task)
async def edit_task(task_id: str, payload: TaskPayload, db: Database = Depends(get_db)):
    return await update_task(db, task_id, payload)


@router.delete("/tasks/{task_id}")
async def remove_task(task_id: str, db: Database = Depends(get_db)):
    await delete_task(db, task_id)
    return {"success": True}

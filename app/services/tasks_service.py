import logging
import uuid
from typing import List, Optional

from ..core.database import Database
from ..core.errors import NotFound
from ..models.task import TASK_OPEN, Task, TaskPayload
from .inquiries_service import _inquiry_from_row

log = logging.getLogger(__name__)

TASK_SELECT = """
SELECT t.*, to_jsonb(i) AS inquiry
FROM tasks t
LEFT JOIN inquiries i ON i.id = t.inquiry_id
"""

INSERT_TASK = """
WITH saved AS (
  INSERT INTO tasks (id, title, description, due_date, status, inquiry_id, assigned_to_id, created_by_id)
  VALUES (
    %(id)s, %(title)s, %(description)s, %(due_date)s, %(status)s,
    %(inquiry_id)s, %(assigned_to_id)s, %(created_by_id)s
  )
  RETURNING *
)
SELECT saved.*, to_jsonb(i) AS inquiry
FROM saved
LEFT JOIN inquiries i ON i.id = saved.inquiry_id
"""

# The inquiry link and status are kept unless the payload names new ones.
UPDATE_TASK = """
WITH saved AS (
  UPDATE tasks SET
    title = %(title)s,
    description = %(description)s,
    due_date = %(due_date)s,
    status = COALESCE(%(status)s, status),
    inquiry_id = COALESCE(%(inquiry_id)s, inquiry_id),
    assigned_to_id = %(assigned_to_id)s,
    updated_at = now()
  WHERE id = %(id)s
  RETURNING *
)
SELECT saved.*, to_jsonb(i) AS inquiry
FROM saved
LEFT JOIN inquiries i ON i.id = saved.inquiry_id
"""

DELETE_TASK = "DELETE FROM tasks WHERE id = %s"


def _task_from_row(row: dict) -> Task:
    return Task(
        id=row["id"],
        title=row.get("title") or "",
        description=row.get("description"),
        dueDate=row.get("due_date"),
        status=row.get("status") or TASK_OPEN,
        inquiryId=row.get("inquiry_id"),
        assignedToId=row.get("assigned_to_id"),
        createdById=row.get("created_by_id"),
        createdAt=row.get("created_at"),
        updatedAt=row.get("updated_at"),
        inquiry=_inquiry_from_row(row.get("inquiry")),
    )


def _to_db_row(payload: TaskPayload) -> dict:
    return {
        "title": payload.title.strip(),
        "description": payload.description,
        "due_date": payload.dueDate,
        "status": payload.status,
        "inquiry_id": payload.inquiryId,
        "assigned_to_id": payload.assignedToId,
    }


async def list_tasks(db: Database) -> List[Task]:
    rows = await db.fetch(TASK_SELECT + " ORDER BY t.created_at DESC")
    return [_task_from_row(r) for r in rows]


async def create_task(db: Database, payload: TaskPayload, created_by: Optional[str] = None) -> Task:
    """New tasks start OPEN and are assigned to their creator unless someone else is named."""
    row = _to_db_row(payload)
    row["id"] = str(uuid.uuid4())
    row["status"] = TASK_OPEN
    row["created_by_id"] = created_by
    row["assigned_to_id"] = payload.assignedToId or created_by
    saved = await db.fetchrow(INSERT_TASK, row)
    log.info("Created task %s assigned to %s", saved["id"], saved.get("assigned_to_id"))
    return _task_from_row(saved)


async def update_task(db: Database, task_id: str, payload: TaskPayload) -> Task:
    row = _to_db_row(payload)
    row["id"] = task_id
    saved = await db.fetchrow(UPDATE_TASK, row)
    if not saved:
        raise NotFound(f"Task {task_id} was not found")
    return _task_from_row(saved)


async def delete_task(db: Database, task_id: str):
    deleted = await db.execute(DELETE_TASK, [task_id])
    if not deleted:
        raise NotFound(f"Task {task_id} was not found")

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator

from .inquiry import Inquiry

TASK_OPEN = "OPEN"


class TaskPayload(BaseModel):
    title: str = Field(min_length=1)
    description: Optional[str] = None
    dueDate: Optional[datetime] = None
    inquiryId: Optional[str] = None
    assignedToId: Optional[str] = None
    status: Optional[str] = None

    @field_validator("dueDate", "inquiryId", "assignedToId", "status", mode="before")
    @classmethod
    def _blank_is_none(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value


class Task(BaseModel):
    id: str
    title: str
    description: Optional[str] = None
    dueDate: Optional[datetime] = None
    status: str = TASK_OPEN
    inquiryId: Optional[str] = None
    assignedToId: Optional[str] = None
    createdById: Optional[str] = None
    createdAt: Optional[datetime] = None
    updatedAt: Optional[datetime] = None
    inquiry: Optional[Inquiry] = None

from datetime import datetime
import enum
from typing import List, Optional

from pydantic import Field, field_validator

from perfmgmt.core.schemas import CamelModel, PageMeta, coerce_datetime
from perfmgmt.models.todo import TodoPriority


class TodoBase(CamelModel):
    description: Optional[str] = None
    due_date: Optional[datetime] = None
    related_type: Optional[str] = Field(None, max_length=50)
    related_id: Optional[str] = Field(None, max_length=64)
    reminder_days: Optional[int] = Field(None, ge=1, le=30)
    recurrence: Optional[str] = Field(None, max_length=50)

    @field_validator("due_date", mode="before")
    @classmethod
    def parse_due_date(cls, v):
        return coerce_datetime(v)

    @field_validator("related_id", mode="before")
    @classmethod
    def stringify_related_id(cls, v):
        return str(v) if isinstance(v, int) else v


class TodoCreate(TodoBase):
    title: str = Field(..., min_length=1, max_length=255)
    priority: TodoPriority = TodoPriority.MEDIUM


class TodoUpdate(TodoBase):
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    priority: Optional[TodoPriority] = None
    completed: Optional[bool] = None


class TodoResponse(CamelModel):
    id: int
    title: str
    description: Optional[str] = None
    due_date: Optional[datetime] = None
    priority: TodoPriority
    completed: bool
    completed_at: Optional[datetime] = None
    related_type: Optional[str] = None
    related_id: Optional[str] = None
    reminder_days: Optional[int] = None
    recurrence: Optional[str] = None
    created_at: datetime
    updated_at: Optional[datetime] = None


class TodoListResponse(CamelModel):
    data: List[TodoResponse]
    meta: PageMeta


class BusinessTodoType(str, enum.Enum):
    period_expiring = "period_expiring"
    approval_pending = "approval_pending"
    low_performance = "low_performance"
    calibration_pending = "calibration_pending"
    interview_pending = "interview_pending"
    submission_draft = "submission_draft"


class BusinessTodo(CamelModel):
    id: str
    type: BusinessTodoType
    title: str
    description: Optional[str] = None
    due_date: Optional[datetime] = None
    priority: TodoPriority
    link: str

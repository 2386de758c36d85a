from datetime import datetime
from typing import Optional

from pydantic import Field, field_validator

from perfmgmt.core.schemas import CamelModel, coerce_datetime


class InterviewSchedule(CamelModel):
    period_id: int
    employee_id: int
    scheduled_at: datetime

    @field_validator("scheduled_at", mode="before")
    @classmethod
    def parse_scheduled_at(cls, v):
        return coerce_datetime(v)


class InterviewRecord(CamelModel):
    summary: str = Field(..., min_length=1)
    improvement_plan: Optional[str] = None


class InterviewResponse(CamelModel):
    id: int
    period_id: int
    employee_id: int
    interviewer_id: int
    interviewer_name: Optional[str] = None
    scheduled_at: datetime
    conducted_at: Optional[datetime] = None
    summary: Optional[str] = None
    improvement_plan: Optional[str] = None

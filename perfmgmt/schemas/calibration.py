from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import Field

from perfmgmt.core.schemas import CamelModel
from perfmgmt.models.calibration import CalibrationStatus


class CalibrationSessionCreate(CamelModel):
    period_id: int
    name: str = Field(..., min_length=1, max_length=200)
    department_ids: List[int] = Field(..., min_length=1)


class CalibrationSessionResponse(CamelModel):
    id: int
    period_id: int
    name: str
    department_ids: List[int]
    status: CalibrationStatus
    original_stats: Optional[Dict[str, Any]] = None
    calibrated_stats: Optional[Dict[str, Any]] = None
    created_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None


class ScoreAdjustment(CamelModel):
    employee_id: int
    adjusted_score: float = Field(..., ge=0)
    reason: Optional[str] = None


class BatchAdjustment(CamelModel):
    adjustments: List[ScoreAdjustment] = Field(..., min_length=1)


class AdjustmentResponse(CamelModel):
    id: int
    employee_id: int
    original_score: float
    adjusted_score: float
    original_grade: str
    adjusted_grade: str
    reason: Optional[str] = None


class CalibrationRow(CamelModel):
    employee_id: int
    employee_name: str
    department_name: str
    original_score: float
    adjusted_score: float
    original_grade: str
    adjusted_grade: str
    is_adjusted: bool
    reason: Optional[str] = None


class CalibrationDetail(CamelModel):
    session: CalibrationSessionResponse
    employees: List[CalibrationRow]

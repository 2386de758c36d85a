from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import Field, field_validator, model_validator

from perfmgmt.core.schemas import CamelModel, coerce_datetime
from perfmgmt.models.assessment import PeriodStatus, SubmissionStatus
from perfmgmt.models.kpi import FormulaType


class PeriodCreate(CamelModel):
    name: str = Field(..., min_length=1, max_length=100)
    start_date: datetime
    end_date: datetime
    lock_date: Optional[datetime] = None

    @field_validator("start_date", "end_date", "lock_date", mode="before")
    @classmethod
    def parse_dates(cls, v):
        return coerce_datetime(v)

    @model_validator(mode="after")
    def check_range(self):
        if self.end_date < self.start_date:
            raise ValueError("endDate must not be before startDate")
        return self


class PeriodStatusUpdate(CamelModel):
    status: PeriodStatus


class PeriodResponse(CamelModel):
    id: int
    name: str
    start_date: datetime
    end_date: datetime
    lock_date: Optional[datetime] = None
    status: PeriodStatus


class DataEntryIn(CamelModel):
    assignment_id: int
    employee_id: Optional[int] = None
    actual_value: float
    remark: Optional[str] = None


class SubmissionCreate(CamelModel):
    period_id: int
    entries: List[DataEntryIn] = Field(default_factory=list)


class SubmissionReject(CamelModel):
    reason: str = Field(..., min_length=1)


class DataEntryResponse(CamelModel):
    id: int
    assignment_id: int
    employee_id: int
    actual_value: float
    remark: Optional[str] = None
    raw_score: Optional[float] = None
    capped_score: Optional[float] = None
    weighted_score: Optional[float] = None


class SubmissionResponse(CamelModel):
    id: int
    period_id: int
    submitted_by_id: int
    status: SubmissionStatus
    submitted_at: Optional[datetime] = None
    approved_by_id: Optional[int] = None
    approved_at: Optional[datetime] = None
    reject_reason: Optional[str] = None
    entries: List[DataEntryResponse] = []


class StepRule(CamelModel):
    threshold: float
    score: float
    operator: str = Field("gte", pattern="^(gte|gt|lte|lt|eq)$")


class KPIDefinitionCreate(CamelModel):
    code: str = Field(..., min_length=1, max_length=50)
    name: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = None
    unit: Optional[str] = None
    formula_type: FormulaType = FormulaType.POSITIVE
    score_cap: float = 120
    score_floor: float = 0
    scoring_rules: Optional[List[StepRule]] = None
    custom_formula: Optional[str] = None

    @model_validator(mode="after")
    def check_formula_inputs(self):
        if self.score_floor > self.score_cap:
            raise ValueError("scoreFloor must not exceed scoreCap")
        if self.formula_type == FormulaType.STEPPED and not self.scoring_rules:
            raise ValueError("STEPPED KPIs need scoringRules")
        return self


class KPIDefinitionResponse(CamelModel):
    id: int
    code: str
    name: str
    description: Optional[str] = None
    unit: Optional[str] = None
    formula_type: FormulaType
    score_cap: float
    score_floor: float
    scoring_rules: Optional[List[Dict[str, Any]]] = None
    custom_formula: Optional[str] = None


class AssignmentCreate(CamelModel):
    period_id: int
    kpi_definition_id: int
    employee_id: Optional[int] = None
    department_id: Optional[int] = None
    target_value: float
    challenge_value: Optional[float] = None
    weight: float = Field(..., gt=0, le=100)


class AssignmentResponse(CamelModel):
    id: int
    period_id: int
    kpi_definition_id: int
    employee_id: Optional[int] = None
    department_id: Optional[int] = None
    target_value: float
    challenge_value: Optional[float] = None
    weight: float


class FormulaValidation(CamelModel):
    formula: str


class FormulaValidationResult(CamelModel):
    valid: bool
    error: Optional[str] = None

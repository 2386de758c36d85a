from datetime import datetime
from typing import Dict, List, Optional

from pydantic import Field

from perfmgmt.core.schemas import CamelModel


class DistributionConfigIn(CamelModel):
    period_id: Optional[int] = None
    distribution: Dict[str, float]
    score_boundaries: Optional[Dict[str, float]] = None
    is_enforced: Optional[bool] = None
    tolerance: Optional[float] = Field(None, ge=0, le=100)


class SalaryCoefficientsIn(CamelModel):
    coefficients: Dict[str, float]
    bonus_base_type: Optional[str] = None


class SalaryCalculateRequest(CamelModel):
    period_id: int
    base_bonus_amount: Optional[float] = Field(None, ge=0)


class SalaryCalculationResponse(CamelModel):
    id: int
    period_id: int
    employee_id: int
    performance_score: float
    performance_grade: str
    coefficient: float
    bonus_amount: Optional[float] = None
    exported_at: Optional[datetime] = None


class SalaryCalculateResult(CamelModel):
    calculated: int
    results: List[SalaryCalculationResponse]

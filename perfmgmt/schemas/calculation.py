from datetime import datetime
from typing import List, Optional

from perfmgmt.core.schemas import CamelModel
from perfmgmt.models.performance import KPIStatus


class CalculationSummary(CamelModel):
    period_id: int
    employee_count: int
    department_count: int
    total_time: float


class EmployeeResult(CamelModel):
    employee_id: int
    department_id: Optional[int] = None
    total_score: float
    status: Optional[KPIStatus] = None
    calculated_at: Optional[datetime] = None


class DepartmentResult(CamelModel):
    department_id: int
    total_score: float
    employee_count: int
    rollup_method: str
    calculated_at: Optional[datetime] = None


class PeriodResults(CamelModel):
    period_id: int
    employees: List[EmployeeResult]
    departments: List[DepartmentResult]

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from perfmgmt.database import get_db
from perfmgmt.models.user import User
from perfmgmt.routers.auth_deps import get_current_user, require_admin, require_elevated
from perfmgmt.schemas.compensation import (
    DistributionConfigIn, SalaryCalculateRequest, SalaryCalculateResult,
    SalaryCalculationResponse, SalaryCoefficientsIn,
)
from perfmgmt.services.distribution_service import DistributionService
from perfmgmt.services.salary_service import SalaryService

router = APIRouter(tags=["Compensation"])


# --- Forced distribution ---

@router.get("/distribution/config")
def get_distribution_config(
    period_id: Optional[int] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
) -> Dict[str, Any]:
    return DistributionService(db, current_user.company_id).get_config(period_id)


@router.post("/distribution/config")
def save_distribution_config(
    payload: DistributionConfigIn,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin())
) -> Dict[str, Any]:
    return DistributionService(db, current_user.company_id).save_config(
        payload.distribution,
        period_id=payload.period_id,
        score_boundaries=payload.score_boundaries,
        is_enforced=payload.is_enforced,
        tolerance=payload.tolerance,
    )


@router.get("/distribution/validate")
def validate_distribution(
    period_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_elevated())
) -> Dict[str, Any]:
    return DistributionService(db, current_user.company_id).validate_distribution(period_id)


@router.get("/distribution/stats")
def distribution_stats(
    period_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_elevated())
) -> Dict[str, Any]:
    return DistributionService(db, current_user.company_id).get_distribution_stats(period_id)


# --- Salary coefficients ---

@router.get("/salary/coefficients")
def get_coefficients(
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin())
) -> Dict[str, Any]:
    return SalaryService(db, current_user.company_id).get_coefficients()


@router.post("/salary/coefficients")
def save_coefficients(
    payload: SalaryCoefficientsIn,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin())
) -> Dict[str, Any]:
    return SalaryService(db, current_user.company_id).save_coefficients(payload.coefficients, payload.bonus_base_type)


@router.post("/salary/calculate", response_model=SalaryCalculateResult)
def calculate_salaries(
    payload: SalaryCalculateRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin())
):
    return SalaryService(db, current_user.company_id).calculate_salaries(payload.period_id, payload.base_bonus_amount)


@router.get("/salary/calculations", response_model=List[SalaryCalculationResponse])
def list_calculations(
    period_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin())
):
    return SalaryService(db, current_user.company_id).get_calculations(period_id)


@router.get("/salary/export")
def export_salaries(
    period_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin())
) -> List[Dict[str, Any]]:
    return SalaryService(db, current_user.company_id).export_salary_data(period_id)


@router.get("/salary/summary")
def salary_summary(
    period_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin())
) -> Dict[str, Any]:
    return SalaryService(db, current_user.company_id).get_summary(period_id)

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from perfmgmt.database import get_db
from perfmgmt.models.user import User
from perfmgmt.routers.auth_deps import get_current_user, require_elevated
from perfmgmt.schemas.calculation import CalculationSummary, PeriodResults
from perfmgmt.services.calculation_service import CalculationService

router = APIRouter(prefix="/calculation", tags=["Calculation"])


@router.post("/execute/{period_id}", response_model=CalculationSummary)
def execute_calculation(
    period_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_elevated())
):
    return CalculationService(db, current_user.company_id).run_calculation(period_id, current_user.id)


@router.get("/results/{period_id}", response_model=PeriodResults)
def period_results(
    period_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return CalculationService(db, current_user.company_id).get_period_results(period_id)

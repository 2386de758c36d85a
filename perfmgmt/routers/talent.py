from typing import Any, Dict, List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from perfmgmt.database import get_db
from perfmgmt.models.user import User
from perfmgmt.routers.auth_deps import require_elevated
from perfmgmt.schemas.talent import PotentialAssessmentIn, PotentialAssessmentResponse
from perfmgmt.services.talent_service import TalentService

router = APIRouter(prefix="/talent", tags=["Talent"])


@router.post("/assess", response_model=PotentialAssessmentResponse)
def assess_potential(
    payload: PotentialAssessmentIn,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_elevated())
):
    return TalentService(db, current_user.company_id).assess_potential(payload.model_dump(), current_user)


@router.get("/nine-box")
def nine_box(
    period_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_elevated())
) -> Dict[str, Any]:
    return TalentService(db, current_user.company_id).get_nine_box(period_id)


@router.get("/employee/{employee_id}/history", response_model=List[PotentialAssessmentResponse])
def assessment_history(
    employee_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_elevated())
):
    return TalentService(db, current_user.company_id).get_employee_history(employee_id)

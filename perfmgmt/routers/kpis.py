from typing import List, Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from perfmgmt.database import get_db
from perfmgmt.models.user import User
from perfmgmt.routers.auth_deps import get_current_user, require_elevated
from perfmgmt.schemas.assessment import (
    AssignmentCreate, AssignmentResponse,
    FormulaValidation, FormulaValidationResult,
    KPIDefinitionCreate, KPIDefinitionResponse,
)
from perfmgmt.services.assessment_service import AssessmentService
from perfmgmt.services.formula_engine import FormulaEngine

router = APIRouter(prefix="/kpis", tags=["KPI Library"])


@router.post("", response_model=KPIDefinitionResponse)
def create_kpi(
    payload: KPIDefinitionCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_elevated())
):
    return AssessmentService(db, current_user.company_id).create_kpi(payload.model_dump())


@router.get("", response_model=List[KPIDefinitionResponse])
def list_kpis(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return AssessmentService(db, current_user.company_id).list_kpis()


@router.post("/validate-formula", response_model=FormulaValidationResult)
def validate_formula(
    payload: FormulaValidation,
    current_user: User = Depends(require_elevated())
):
    return FormulaEngine().validate_formula(payload.formula)


@router.post("/assignments", response_model=AssignmentResponse)
def create_assignment(
    payload: AssignmentCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_elevated())
):
    return AssessmentService(db, current_user.company_id).create_assignment(payload.model_dump())


@router.get("/assignments", response_model=List[AssignmentResponse])
def list_assignments(
    period_id: int,
    employee_id: Optional[int] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return AssessmentService(db, current_user.company_id).list_assignments(period_id, employee_id)

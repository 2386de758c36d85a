from typing import List, Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from perfmgmt.database import get_db
from perfmgmt.models.user import User
from perfmgmt.routers.auth_deps import require_elevated
from perfmgmt.schemas.calibration import (
    AdjustmentResponse, BatchAdjustment, CalibrationDetail,
    CalibrationSessionCreate, CalibrationSessionResponse, ScoreAdjustment,
)
from perfmgmt.services.calibration_service import CalibrationService

router = APIRouter(prefix="/calibration", tags=["Calibration"])


@router.post("/sessions", response_model=CalibrationSessionResponse)
def create_session(
    payload: CalibrationSessionCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_elevated())
):
    return CalibrationService(db, current_user.company_id).create_session(
        payload.period_id, payload.name, payload.department_ids, current_user
    )


@router.get("/sessions", response_model=List[CalibrationSessionResponse])
def list_sessions(
    period_id: Optional[int] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_elevated())
):
    return CalibrationService(db, current_user.company_id).list_sessions(period_id)


@router.get("/sessions/{session_id}", response_model=CalibrationDetail)
def session_detail(
    session_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_elevated())
):
    return CalibrationService(db, current_user.company_id).get_session_detail(session_id)


@router.post("/sessions/{session_id}/adjust", response_model=AdjustmentResponse)
def adjust_score(
    session_id: int,
    payload: ScoreAdjustment,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_elevated())
):
    return CalibrationService(db, current_user.company_id).adjust_score(
        session_id, current_user, payload.employee_id, payload.adjusted_score, payload.reason
    )


@router.post("/sessions/{session_id}/batch-adjust", response_model=List[AdjustmentResponse])
def batch_adjust(
    session_id: int,
    payload: BatchAdjustment,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_elevated())
):
    items = [item.model_dump() for item in payload.adjustments]
    return CalibrationService(db, current_user.company_id).batch_adjust(session_id, current_user, items)


@router.put("/sessions/{session_id}/start", response_model=CalibrationSessionResponse)
def start_session(
    session_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_elevated())
):
    return CalibrationService(db, current_user.company_id).start_session(session_id)


@router.put("/sessions/{session_id}/complete", response_model=CalibrationSessionResponse)
def complete_session(
    session_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_elevated())
):
    return CalibrationService(db, current_user.company_id).complete_session(session_id, current_user)

from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from perfmgmt.database import get_db
from perfmgmt.models.user import User
from perfmgmt.routers.auth_deps import require_elevated
from perfmgmt.schemas.interview import InterviewRecord, InterviewResponse, InterviewSchedule
from perfmgmt.services.interview_service import InterviewService

router = APIRouter(prefix="/interviews", tags=["Interviews"])


@router.post("", response_model=InterviewResponse)
def schedule_interview(
    payload: InterviewSchedule,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_elevated())
):
    return InterviewService(db, current_user.company_id).schedule(
        payload.period_id, payload.employee_id, payload.scheduled_at, current_user
    )


@router.get("", response_model=List[InterviewResponse])
def list_interviews(
    period_id: Optional[int] = None,
    status: Optional[str] = Query(None, pattern="^(pending|completed)$"),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_elevated())
):
    return InterviewService(db, current_user.company_id).list_interviews(period_id, status)


@router.get("/{interview_id}", response_model=InterviewResponse)
def get_interview(
    interview_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_elevated())
):
    return InterviewService(db, current_user.company_id).get(interview_id)


@router.put("/{interview_id}/conduct", response_model=InterviewResponse)
def record_interview(
    interview_id: int,
    payload: InterviewRecord,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_elevated())
):
    return InterviewService(db, current_user.company_id).record(interview_id, payload.summary, payload.improvement_plan)

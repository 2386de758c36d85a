from typing import List, Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from perfmgmt.database import get_db
from perfmgmt.models.assessment import PeriodStatus, SubmissionStatus
from perfmgmt.models.user import User
from perfmgmt.routers.auth_deps import get_current_user, require_admin, require_elevated
from perfmgmt.schemas.assessment import (
    PeriodCreate, PeriodResponse, PeriodStatusUpdate,
    SubmissionCreate, SubmissionReject, SubmissionResponse,
)
from perfmgmt.services.assessment_service import AssessmentService

router = APIRouter(tags=["Assessment"])


# --- Periods ---

@router.post("/periods", response_model=PeriodResponse)
def create_period(
    payload: PeriodCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin())
):
    return AssessmentService(db, current_user.company_id).create_period(payload.model_dump())


@router.get("/periods", response_model=List[PeriodResponse])
def list_periods(
    status: Optional[PeriodStatus] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return AssessmentService(db, current_user.company_id).list_periods(status)


@router.get("/periods/{period_id}", response_model=PeriodResponse)
def get_period(
    period_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return AssessmentService(db, current_user.company_id).get_period(period_id)


@router.patch("/periods/{period_id}/status", response_model=PeriodResponse)
def change_period_status(
    period_id: int,
    payload: PeriodStatusUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin())
):
    return AssessmentService(db, current_user.company_id).change_period_status(period_id, payload.status, current_user)


# --- Submissions ---

@router.post("/submissions", response_model=SubmissionResponse)
def create_submission(
    payload: SubmissionCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    entries = [entry.model_dump() for entry in payload.entries]
    return AssessmentService(db, current_user.company_id).create_submission(payload.period_id, entries, current_user)


@router.get("/submissions", response_model=List[SubmissionResponse])
def list_submissions(
    period_id: Optional[int] = None,
    status: Optional[SubmissionStatus] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    # Plain users only see their own submissions
    submitted_by_id = None if current_user.is_elevated else current_user.id
    return AssessmentService(db, current_user.company_id).list_submissions(period_id, status, submitted_by_id)


@router.post("/submissions/{submission_id}/submit", response_model=SubmissionResponse)
def submit_submission(
    submission_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return AssessmentService(db, current_user.company_id).submit(submission_id, current_user)


@router.post("/submissions/{submission_id}/approve", response_model=SubmissionResponse)
def approve_submission(
    submission_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_elevated())
):
    return AssessmentService(db, current_user.company_id).approve(submission_id, current_user)


@router.post("/submissions/{submission_id}/reject", response_model=SubmissionResponse)
def reject_submission(
    submission_id: int,
    payload: SubmissionReject,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_elevated())
):
    return AssessmentService(db, current_user.company_id).reject(submission_id, current_user, payload.reason)

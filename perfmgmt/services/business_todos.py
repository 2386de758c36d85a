"""
Business Todo Aggregation

Builds the "things that need your attention" feed shown next to a user's
personal todo list. Nothing here is persisted: each call reads the tenant's
current state and turns it into BusinessTodo items.

Sources, in emission order:
- active assessment periods closing within the configured window (everyone)
- pending submission approvals, low performers, draft calibration sessions
  and the caller's unconducted interviews (elevated roles only)
- the caller's own draft submissions (everyone)

The merged list is stably sorted HIGH -> MEDIUM -> LOW. If any read fails the
whole feed is empty rather than partial.
"""
from datetime import datetime, timedelta
from typing import List, Optional

from sqlalchemy.orm import Session, joinedload

from perfmgmt.core.config import settings
from perfmgmt.database import utcnow
from perfmgmt.models.assessment import AssessmentPeriod, DataSubmission, PeriodStatus, SubmissionStatus
from perfmgmt.models.calibration import CalibrationSession, CalibrationStatus
from perfmgmt.models.interview import PerformanceInterview
from perfmgmt.models.performance import EmployeePerformance
from perfmgmt.models.todo import PRIORITY_ORDER, TodoPriority
from perfmgmt.models.user import is_elevated
from perfmgmt.schemas.todo import BusinessTodo, BusinessTodoType
from perfmgmt.services.base import BaseService


class BusinessTodoService(BaseService):

    def __init__(self, db: Session, company_id: int, now: Optional[datetime] = None):
        super().__init__(db, company_id)
        self.config = settings.business_todos
        self.now = now or utcnow()

    def get_business_todos(self, user_id: int, role) -> List[BusinessTodo]:
        try:
            todos = self._collect(user_id, role)
        except Exception:
            # The feed is advisory: an outage yields an empty feed, never an error
            self._logger.warning(
                "Business todo aggregation failed; returning empty feed",
                exc_info=True,
                extra={"user_id": user_id, "company_id": self.company_id},
            )
            return []
        return sort_by_priority(todos)

    def _collect(self, user_id: int, role) -> List[BusinessTodo]:
        active_periods = self._active_periods()
        todos = self._expiring_periods(active_periods)

        if is_elevated(role):
            todos += self._pending_approvals()
            todos += self._low_performers()
            todos += self._pending_calibrations()
            if active_periods:
                todos += self._pending_interviews(active_periods[0], user_id)

        todos += self._draft_submissions(user_id)
        return todos

    def _active_periods(self) -> List[AssessmentPeriod]:
        return (
            self.db.query(AssessmentPeriod)
            .filter(
                AssessmentPeriod.company_id == self.company_id,
                AssessmentPeriod.status == PeriodStatus.ACTIVE,
            )
            .order_by(AssessmentPeriod.end_date.asc(), AssessmentPeriod.id.asc())
            .all()
        )

    def _expiring_periods(self, periods: List[AssessmentPeriod]) -> List[BusinessTodo]:
        horizon = self.now + timedelta(days=self.config.expiring_window_days)
        return [
            BusinessTodo(
                id=f"period-{period.id}",
                type=BusinessTodoType.period_expiring,
                title=f'Assessment period "{period.name}" is about to close',
                due_date=period.end_date,
                priority=TodoPriority.HIGH if period.end_date <= self.now else TodoPriority.MEDIUM,
                link="/app/data-entry",
            )
            for period in periods
            if period.end_date <= horizon
        ]

    def _pending_approvals(self) -> List[BusinessTodo]:
        submissions = (
            self.db.query(DataSubmission)
            .options(joinedload(DataSubmission.period))
            .filter(
                DataSubmission.company_id == self.company_id,
                DataSubmission.status == SubmissionStatus.PENDING,
            )
            .order_by(DataSubmission.id.asc())
            .limit(self.config.approval_limit)
            .all()
        )
        return [
            BusinessTodo(
                id=f"approval-{sub.id}",
                type=BusinessTodoType.approval_pending,
                title=f"{sub.period.name} data submission awaiting approval",
                priority=TodoPriority.HIGH,
                link="/app/data-approval",
            )
            for sub in submissions
        ]

    def _low_performers(self) -> List[BusinessTodo]:
        threshold = self.config.low_performance_threshold
        performances = (
            self.db.query(EmployeePerformance)
            .filter(
                EmployeePerformance.company_id == self.company_id,
                EmployeePerformance.total_score < threshold,
            )
            .order_by(EmployeePerformance.id.asc())
            .limit(self.config.low_performance_limit)
            .all()
        )
        return [
            BusinessTodo(
                id=f"low-perf-{perf.id}",
                type=BusinessTodoType.low_performance,
                title=f"Employee performance below {threshold:g} needs attention",
                priority=TodoPriority.MEDIUM,
                link="/app/reports",
            )
            for perf in performances
        ]

    def _pending_calibrations(self) -> List[BusinessTodo]:
        sessions = (
            self.db.query(CalibrationSession)
            .filter(
                CalibrationSession.company_id == self.company_id,
                CalibrationSession.status == CalibrationStatus.draft,
            )
            .order_by(CalibrationSession.id.asc())
            .limit(self.config.calibration_limit)
            .all()
        )
        return [
            BusinessTodo(
                id=f"calibration-{cal.id}",
                type=BusinessTodoType.calibration_pending,
                title=f'Calibration session "{cal.name}" awaiting action',
                priority=TodoPriority.MEDIUM,
                link="/app/calibration",
            )
            for cal in sessions
        ]

    def _pending_interviews(self, period: AssessmentPeriod, user_id: int) -> List[BusinessTodo]:
        interviews = (
            self.db.query(PerformanceInterview)
            .filter(
                PerformanceInterview.company_id == self.company_id,
                PerformanceInterview.period_id == period.id,
                PerformanceInterview.interviewer_id == user_id,
                PerformanceInterview.conducted_at.is_(None),
            )
            .order_by(PerformanceInterview.scheduled_at.asc())
            .limit(self.config.interview_limit)
            .all()
        )
        return [
            BusinessTodo(
                id=f"interview-{interview.id}",
                type=BusinessTodoType.interview_pending,
                title="Performance interview pending",
                due_date=interview.scheduled_at,
                priority=TodoPriority.HIGH if interview.scheduled_at < self.now else TodoPriority.MEDIUM,
                link="/app/interview",
            )
            for interview in interviews
        ]

    def _draft_submissions(self, user_id: int) -> List[BusinessTodo]:
        submissions = (
            self.db.query(DataSubmission)
            .options(joinedload(DataSubmission.period))
            .filter(
                DataSubmission.company_id == self.company_id,
                DataSubmission.submitted_by_id == user_id,
                DataSubmission.status == SubmissionStatus.DRAFT,
            )
            .order_by(DataSubmission.id.asc())
            .limit(self.config.draft_limit)
            .all()
        )
        return [
            BusinessTodo(
                id=f"draft-{sub.id}",
                type=BusinessTodoType.submission_draft,
                title=f"{sub.period.name} data entry not yet submitted",
                priority=TodoPriority.MEDIUM,
                link="/app/data-entry",
            )
            for sub in submissions
        ]


def sort_by_priority(todos: List[BusinessTodo]) -> List[BusinessTodo]:
    """Stable sort: items of equal priority keep their emission order."""
    return sorted(todos, key=lambda t: PRIORITY_ORDER[TodoPriority(t.priority)])


def get_business_todos(db: Session, user_id: int, company_id: int, role, now: Optional[datetime] = None) -> List[BusinessTodo]:
    return BusinessTodoService(db, company_id, now=now).get_business_todos(user_id, role)

from datetime import datetime
from typing import List, Optional

from perfmgmt.core.exceptions import NotFoundError
from perfmgmt.core.security import sanitize_input
from perfmgmt.database import utcnow
from perfmgmt.models.department import Employee
from perfmgmt.models.interview import PerformanceInterview
from perfmgmt.models.user import User
from perfmgmt.services.base import BaseService
from perfmgmt.services.notification import NotificationService


class InterviewService(BaseService):
    """Performance review interviews, one per employee and period."""

    def schedule(self, period_id: int, employee_id: int, scheduled_at: datetime, interviewer: User) -> PerformanceInterview:
        employee = self.db.query(Employee).filter(
            Employee.id == employee_id, Employee.company_id == self.company_id
        ).first()
        if not employee:
            raise NotFoundError("Employee not found")

        interview = self.db.query(PerformanceInterview).filter(
            PerformanceInterview.period_id == period_id,
            PerformanceInterview.employee_id == employee_id,
        ).first()
        created = interview is None
        if created:
            interview = PerformanceInterview(company_id=self.company_id, period_id=period_id, employee_id=employee_id)
            self.db.add(interview)
        interview.scheduled_at = scheduled_at
        interview.interviewer_id = interviewer.id
        interview.interviewer_name = interviewer.full_name or interviewer.username

        if created:
            linked = self.db.query(User).filter(
                User.company_id == self.company_id,
                User.linked_employee_id == employee_id,
            ).first()
            if linked:
                NotificationService.create_notification(
                    self.db, self.company_id, linked.id,
                    title="Performance interview scheduled",
                    message=f"Your performance interview is scheduled for {scheduled_at:%Y-%m-%d %H:%M}",
                    link="/app/interview",
                )
        self.commit()
        self.db.refresh(interview)
        return interview

    def record(self, interview_id: int, summary: str, improvement_plan: Optional[str] = None) -> PerformanceInterview:
        interview = self.get(interview_id)
        interview.summary = sanitize_input(summary)
        if improvement_plan is not None:
            interview.improvement_plan = sanitize_input(improvement_plan)
        interview.conducted_at = utcnow()
        self.commit()
        self.db.refresh(interview)
        return interview

    def get(self, interview_id: int) -> PerformanceInterview:
        interview = self.db.query(PerformanceInterview).filter(
            PerformanceInterview.id == interview_id,
            PerformanceInterview.company_id == self.company_id,
        ).first()
        if not interview:
            raise NotFoundError("Interview not found")
        return interview

    def list_interviews(self, period_id: Optional[int] = None, status: Optional[str] = None) -> List[PerformanceInterview]:
        query = self.db.query(PerformanceInterview).filter(PerformanceInterview.company_id == self.company_id)
        if period_id is not None:
            query = query.filter(PerformanceInterview.period_id == period_id)
        if status == "pending":
            query = query.filter(PerformanceInterview.conducted_at.is_(None))
        elif status == "completed":
            query = query.filter(PerformanceInterview.conducted_at.isnot(None))
        return query.order_by(PerformanceInterview.scheduled_at.asc()).all()

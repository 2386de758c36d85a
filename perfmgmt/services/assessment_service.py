"""
Assessment Service Layer

Periods, KPI library/assignments and the data-submission workflow:

    DRAFT --submit--> PENDING --approve--> APPROVED
      ^                  |
      +----submit--- REJECTED <--reject--+

Only the submitter may submit; approval and rejection are for elevated roles
(enforced at the router). Every read and write is scoped to the company.
"""
from typing import Any, Dict, List, Optional

from perfmgmt.core.exceptions import AccessDeniedError, BusinessRuleError, NotFoundError
from perfmgmt.core.security import sanitize_input
from perfmgmt.database import utcnow
from perfmgmt.models.assessment import (
    AssessmentPeriod, DataSubmission, KPIDataEntry, PeriodStatus, SubmissionStatus,
)
from perfmgmt.models.department import Department, Employee
from perfmgmt.models.kpi import FormulaType, KPIAssignment, KPIDefinition
from perfmgmt.models.user import User
from perfmgmt.services.audit import AuditService
from perfmgmt.services.base import BaseService
from perfmgmt.services.formula_engine import parse_formula
from perfmgmt.services.notification import NotificationService

# Allowed period status changes
PERIOD_TRANSITIONS = {
    PeriodStatus.DRAFT: {PeriodStatus.ACTIVE},
    PeriodStatus.ACTIVE: {PeriodStatus.LOCKED},
    PeriodStatus.LOCKED: {PeriodStatus.ACTIVE, PeriodStatus.ARCHIVED},
    PeriodStatus.ARCHIVED: set(),
}


class AssessmentService(BaseService):

    # --- Periods ---

    def create_period(self, data: Dict[str, Any]) -> AssessmentPeriod:
        period = AssessmentPeriod(**data, company_id=self.company_id, status=PeriodStatus.DRAFT)
        self.db.add(period)
        self.commit()
        self.db.refresh(period)
        return period

    def list_periods(self, status: Optional[PeriodStatus] = None) -> List[AssessmentPeriod]:
        query = self.db.query(AssessmentPeriod).filter(AssessmentPeriod.company_id == self.company_id)
        if status is not None:
            query = query.filter(AssessmentPeriod.status == status)
        return query.order_by(AssessmentPeriod.start_date.desc()).all()

    def get_period(self, period_id: int) -> AssessmentPeriod:
        period = self.db.query(AssessmentPeriod).filter(
            AssessmentPeriod.id == period_id,
            AssessmentPeriod.company_id == self.company_id,
        ).first()
        if not period:
            raise NotFoundError("Assessment period not found")
        return period

    def change_period_status(self, period_id: int, status: PeriodStatus, actor: User) -> AssessmentPeriod:
        period = self.get_period(period_id)
        if status not in PERIOD_TRANSITIONS[period.status]:
            raise BusinessRuleError(
                f"Cannot move period from {period.status.value} to {status.value}",
                details={"from": period.status.value, "to": status.value},
            )
        before = {"status": period.status.value}
        period.status = status
        AuditService.log(
            self.db, action="change_period_status", entity_type="assessment_period", entity_id=period.id,
            user_id=actor.id, user_role=actor.role, details={"name": period.name},
            company_id=self.company_id, before_state=before, after_state={"status": status.value},
        )
        self.commit()
        self.db.refresh(period)
        return period

    # --- KPI library ---

    def create_kpi(self, data: Dict[str, Any]) -> KPIDefinition:
        if data.get("formula_type") == FormulaType.CUSTOM and data.get("custom_formula"):
            parse_formula(data["custom_formula"])
        kpi = KPIDefinition(**data, company_id=self.company_id)
        self.db.add(kpi)
        self.commit()
        self.db.refresh(kpi)
        return kpi

    def list_kpis(self) -> List[KPIDefinition]:
        return (
            self.db.query(KPIDefinition)
            .filter(KPIDefinition.company_id == self.company_id, KPIDefinition.is_active == True)  # noqa: E712
            .order_by(KPIDefinition.code.asc())
            .all()
        )

    def create_assignment(self, data: Dict[str, Any]) -> KPIAssignment:
        self.get_period(data["period_id"])
        kpi = self.db.query(KPIDefinition).filter(
            KPIDefinition.id == data["kpi_definition_id"],
            KPIDefinition.company_id == self.company_id,
        ).first()
        if not kpi:
            raise NotFoundError("KPI definition not found")
        if data.get("employee_id") is not None:
            employee = self._employee(data["employee_id"])
            if data.get("department_id") is None:
                data = {**data, "department_id": employee.department_id}
        if data.get("department_id") is not None:
            self._department(data["department_id"])
        assignment = KPIAssignment(**data, company_id=self.company_id)
        self.db.add(assignment)
        self.commit()
        self.db.refresh(assignment)
        return assignment

    def list_assignments(self, period_id: int, employee_id: Optional[int] = None) -> List[KPIAssignment]:
        query = self.db.query(KPIAssignment).filter(
            KPIAssignment.company_id == self.company_id,
            KPIAssignment.period_id == period_id,
        )
        if employee_id is not None:
            query = query.filter(KPIAssignment.employee_id == employee_id)
        return query.order_by(KPIAssignment.id.asc()).all()

    # --- Submissions ---

    def create_submission(self, period_id: int, entries: List[Dict[str, Any]], user: User) -> DataSubmission:
        period = self.get_period(period_id)
        if period.status != PeriodStatus.ACTIVE:
            raise BusinessRuleError("Data can only be entered for an active period")

        submission = DataSubmission(
            company_id=self.company_id,
            period_id=period.id,
            submitted_by_id=user.id,
            status=SubmissionStatus.DRAFT,
        )
        for entry in entries:
            assignment = self.db.query(KPIAssignment).filter(
                KPIAssignment.id == entry["assignment_id"],
                KPIAssignment.company_id == self.company_id,
                KPIAssignment.period_id == period.id,
            ).first()
            if not assignment:
                raise NotFoundError(f"KPI assignment {entry['assignment_id']} not found in this period")
            employee_id = entry.get("employee_id") or assignment.employee_id
            if employee_id is None:
                raise BusinessRuleError(f"Assignment {assignment.id} needs an employeeId for its entry")
            self._employee(employee_id)
            submission.entries.append(KPIDataEntry(
                assignment_id=assignment.id,
                employee_id=employee_id,
                actual_value=entry["actual_value"],
                remark=entry.get("remark"),
            ))
        self.db.add(submission)
        self.commit()
        self.db.refresh(submission)
        return submission

    def list_submissions(self, period_id: Optional[int] = None, status: Optional[SubmissionStatus] = None,
                         submitted_by_id: Optional[int] = None) -> List[DataSubmission]:
        query = self.db.query(DataSubmission).filter(DataSubmission.company_id == self.company_id)
        if period_id is not None:
            query = query.filter(DataSubmission.period_id == period_id)
        if status is not None:
            query = query.filter(DataSubmission.status == status)
        if submitted_by_id is not None:
            query = query.filter(DataSubmission.submitted_by_id == submitted_by_id)
        return query.order_by(DataSubmission.id.desc()).all()

    def get_submission(self, submission_id: int) -> DataSubmission:
        submission = self.db.query(DataSubmission).filter(
            DataSubmission.id == submission_id,
            DataSubmission.company_id == self.company_id,
        ).first()
        if not submission:
            raise NotFoundError("Submission not found")
        return submission

    def submit(self, submission_id: int, user: User) -> DataSubmission:
        submission = self.get_submission(submission_id)
        if submission.submitted_by_id != user.id:
            raise AccessDeniedError("Only the submitter can submit this data")
        if submission.status not in (SubmissionStatus.DRAFT, SubmissionStatus.REJECTED):
            raise BusinessRuleError(f"A {submission.status.value} submission cannot be submitted")
        if not submission.entries:
            raise BusinessRuleError("A submission needs at least one data entry")
        submission.status = SubmissionStatus.PENDING
        submission.submitted_at = utcnow()
        submission.reject_reason = None
        self.commit()
        self.db.refresh(submission)
        return submission

    def approve(self, submission_id: int, approver: User) -> DataSubmission:
        return self._review(submission_id, approver, SubmissionStatus.APPROVED)

    def reject(self, submission_id: int, approver: User, reason: str) -> DataSubmission:
        return self._review(submission_id, approver, SubmissionStatus.REJECTED, sanitize_input(reason))

    def _review(self, submission_id: int, approver: User, outcome: SubmissionStatus,
                reason: Optional[str] = None) -> DataSubmission:
        submission = self.get_submission(submission_id)
        if submission.status != SubmissionStatus.PENDING:
            raise BusinessRuleError("Submission is not awaiting approval")

        before = {"status": submission.status.value}
        submission.status = outcome
        submission.approved_by_id = approver.id
        submission.approved_at = utcnow()
        submission.reject_reason = reason

        approved = outcome == SubmissionStatus.APPROVED
        AuditService.log(
            self.db, action="approve_submission" if approved else "reject_submission",
            entity_type="data_submission", entity_id=submission.id,
            user_id=approver.id, user_role=approver.role,
            details={"period_id": submission.period_id, "reason": reason},
            company_id=self.company_id, before_state=before, after_state={"status": outcome.value},
        )
        NotificationService.create_notification(
            self.db, self.company_id, submission.submitted_by_id,
            title="Submission approved" if approved else "Submission rejected",
            message=(
                f"Your data for {submission.period.name} was approved."
                if approved else f"Your data for {submission.period.name} was rejected: {reason}"
            ),
            type="success" if approved else "error",
            link="/app/data-entry",
        )
        self.commit()
        self.db.refresh(submission)
        self._logger.info(f"Submission {submission.id} {outcome.value.lower()} by user {approver.id}")
        return submission

    def _employee(self, employee_id: int) -> Employee:
        employee = self.db.query(Employee).filter(
            Employee.id == employee_id, Employee.company_id == self.company_id
        ).first()
        if not employee:
            raise NotFoundError("Employee not found")
        return employee

    def _department(self, department_id: int) -> Department:
        department = self.db.query(Department).filter(
            Department.id == department_id, Department.company_id == self.company_id
        ).first()
        if not department:
            raise NotFoundError("Department not found")
        return department

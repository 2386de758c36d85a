"""
Period score calculation.

Scores every data entry of the period's approved submissions, totals them per
employee, rolls employee totals up per department and persists both levels.
Runs synchronously inside the request's transaction.
"""
import time
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import joinedload

from perfmgmt.core.exceptions import BusinessRuleError, NotFoundError
from perfmgmt.database import utcnow
from perfmgmt.models.assessment import AssessmentPeriod, DataSubmission, KPIDataEntry, SubmissionStatus
from perfmgmt.models.department import Employee
from perfmgmt.models.kpi import KPIAssignment
from perfmgmt.models.performance import DepartmentPerformance, EmployeePerformance, KPIStatus
from perfmgmt.services.base import BaseService
from perfmgmt.services.formula_engine import FormulaEngine
from perfmgmt.services.notification import NotificationService
from perfmgmt.services.rollup_engine import IndividualScore, RollupMethod, department_score, group_by_department


class CalculationService(BaseService):
    def __init__(self, db, company_id: Optional[int] = None, engine: Optional[FormulaEngine] = None,
                 now: Optional[datetime] = None):
        super().__init__(db, company_id)
        self.engine = engine or FormulaEngine()
        self.now = now

    def run_calculation(self, period_id: int, user_id: Optional[int] = None) -> Dict[str, Any]:
        started = time.perf_counter()
        now = self.now or utcnow()

        period = self.db.query(AssessmentPeriod).filter(
            AssessmentPeriod.id == period_id,
            AssessmentPeriod.company_id == self.company_id,
        ).first()
        if not period:
            raise NotFoundError("Assessment period not found")
        if period.lock_date is not None and now > period.lock_date:
            raise BusinessRuleError("Period is locked; scores can no longer be recalculated")

        entries = (
            self.db.query(KPIDataEntry)
            .join(DataSubmission, KPIDataEntry.submission_id == DataSubmission.id)
            .filter(
                DataSubmission.company_id == self.company_id,
                DataSubmission.period_id == period.id,
                DataSubmission.status == SubmissionStatus.APPROVED,
            )
            .options(joinedload(KPIDataEntry.assignment).joinedload(KPIAssignment.kpi_definition))
            .all()
        )
        if not entries:
            raise BusinessRuleError("No approved submissions to calculate for this period")

        totals: Dict[int, float] = {}
        for entry in entries:
            result = self.engine.score_entry(entry.assignment.kpi_definition, entry.assignment, entry.actual_value)
            entry.raw_score = result.raw_score
            entry.capped_score = result.capped_score
            entry.weighted_score = result.weighted_score
            totals[entry.employee_id] = totals.get(entry.employee_id, 0.0) + result.weighted_score

        employees = {
            e.id: e for e in self.db.query(Employee).filter(
                Employee.company_id == self.company_id, Employee.id.in_(list(totals))
            )
        }
        scores: List[IndividualScore] = []
        for employee_id, total in totals.items():
            employee = employees.get(employee_id)
            department_id = employee.department_id if employee else None
            self._upsert_employee(period.id, employee_id, department_id, total, user_id, now)
            scores.append(IndividualScore(
                employee_id=employee_id,
                employee_name=employee.name if employee else "",
                department_id=department_id,
                total_score=total,
            ))

        grouped = {k: v for k, v in group_by_department(scores).items() if k is not None}
        for department_id, members in grouped.items():
            self._upsert_department(period.id, department_id, members, now)

        NotificationService.notify_elevated_users(
            self.db, self.company_id,
            title="Performance calculation finished",
            message=f"Scores for {period.name} were calculated for {len(scores)} employees.",
            link="/app/reports",
        )
        self.commit()

        summary = {
            "periodId": period.id,
            "employeeCount": len(scores),
            "departmentCount": len(grouped),
            "totalTime": round(time.perf_counter() - started, 3),
        }
        self._logger.info(f"Calculation finished for period {period.id}", extra=summary)
        return summary

    def get_period_results(self, period_id: int) -> Dict[str, Any]:
        employees = (
            self.db.query(EmployeePerformance)
            .options(joinedload(EmployeePerformance.employee))
            .filter(
                EmployeePerformance.company_id == self.company_id,
                EmployeePerformance.period_id == period_id,
            )
            .order_by(EmployeePerformance.total_score.desc())
            .all()
        )
        departments = (
            self.db.query(DepartmentPerformance)
            .filter(
                DepartmentPerformance.company_id == self.company_id,
                DepartmentPerformance.period_id == period_id,
            )
            .order_by(DepartmentPerformance.total_score.desc())
            .all()
        )
        return {"periodId": period_id, "employees": employees, "departments": departments}

    def _upsert_employee(self, period_id, employee_id, department_id, total, user_id, now):
        record = self.db.query(EmployeePerformance).filter(
            EmployeePerformance.period_id == period_id,
            EmployeePerformance.employee_id == employee_id,
        ).first()
        if record is None:
            record = EmployeePerformance(company_id=self.company_id, period_id=period_id, employee_id=employee_id)
            self.db.add(record)
        record.department_id = department_id
        record.total_score = total
        record.status = KPIStatus(self.engine.determine_status(total))
        record.calculated_at = now
        record.calculated_by_id = user_id

    def _upsert_department(self, period_id, department_id, members: List[IndividualScore], now):
        record = self.db.query(DepartmentPerformance).filter(
            DepartmentPerformance.period_id == period_id,
            DepartmentPerformance.department_id == department_id,
        ).first()
        if record is None:
            record = DepartmentPerformance(company_id=self.company_id, period_id=period_id, department_id=department_id)
            self.db.add(record)
        record.total_score = department_score(members, RollupMethod.AVERAGE)
        record.employee_count = len(members)
        record.rollup_method = RollupMethod.AVERAGE.value
        record.calculated_at = now

"""
Calibration sessions: a reviewed set of departments for one period where
elevated users adjust individual scores before they are final.
"""
from typing import Any, Dict, Iterable, List, Optional

import numpy as np
from sqlalchemy.orm import joinedload

from perfmgmt.core.exceptions import BusinessRuleError, NotFoundError
from perfmgmt.database import utcnow
from perfmgmt.models.calibration import CalibrationAdjustment, CalibrationSession, CalibrationStatus
from perfmgmt.models.department import Employee
from perfmgmt.models.performance import EmployeePerformance, KPIStatus
from perfmgmt.models.user import User
from perfmgmt.services.assessment_service import AssessmentService
from perfmgmt.services.audit import AuditService
from perfmgmt.services.base import BaseService
from perfmgmt.services.grading import determine_grade, determine_status


def score_stats(scores: Iterable[float]) -> Dict[str, float]:
    """Summary statistics rounded to two decimals; std-dev is the population one."""
    values = np.asarray(list(scores), dtype=float)
    if values.size == 0:
        return {"avg": 0, "min": 0, "max": 0, "stdDev": 0, "count": 0}
    return {
        "avg": round(float(values.mean()), 2),
        "min": float(values.min()),
        "max": float(values.max()),
        "stdDev": round(float(values.std()), 2),
        "count": int(values.size),
    }


class CalibrationService(BaseService):

    def create_session(self, period_id: int, name: str, department_ids: List[int], user: User) -> CalibrationSession:
        AssessmentService(self.db, self.company_id).get_period(period_id)
        session = CalibrationSession(
            company_id=self.company_id,
            period_id=period_id,
            name=name,
            department_ids=list(department_ids),
            status=CalibrationStatus.draft,
            original_stats=score_stats(p.total_score for p in self._performances(period_id, department_ids)),
            created_by_id=user.id,
        )
        self.db.add(session)
        self.commit()
        self.db.refresh(session)
        return session

    def list_sessions(self, period_id: Optional[int] = None) -> List[CalibrationSession]:
        query = self.db.query(CalibrationSession).filter(CalibrationSession.company_id == self.company_id)
        if period_id is not None:
            query = query.filter(CalibrationSession.period_id == period_id)
        return query.order_by(CalibrationSession.created_at.desc(), CalibrationSession.id.desc()).all()

    def get_session(self, session_id: int) -> CalibrationSession:
        session = self.db.query(CalibrationSession).filter(
            CalibrationSession.id == session_id,
            CalibrationSession.company_id == self.company_id,
        ).first()
        if not session:
            raise NotFoundError("Calibration session not found")
        return session

    def get_session_detail(self, session_id: int) -> Dict[str, Any]:
        session = self.get_session(session_id)
        adjustments = {a.employee_id: a for a in session.adjustments}
        rows = []
        for perf in self._performances(session.period_id, session.department_ids):
            employee = perf.employee
            adjustment = adjustments.get(perf.employee_id)
            adjusted_score = adjustment.adjusted_score if adjustment else perf.total_score
            rows.append({
                "employeeId": perf.employee_id,
                "employeeName": employee.name if employee else "Unknown",
                "departmentName": employee.department.name if employee and employee.department else "Unknown",
                "originalScore": perf.total_score,
                "adjustedScore": adjusted_score,
                "originalGrade": determine_grade(perf.total_score),
                "adjustedGrade": determine_grade(adjusted_score),
                "isAdjusted": adjustment is not None,
                "reason": adjustment.reason if adjustment else None,
            })
        return {"session": session, "employees": rows}

    def adjust_score(self, session_id: int, user: User, employee_id: int, adjusted_score: float,
                     reason: Optional[str] = None) -> CalibrationAdjustment:
        session = self._open_session(session_id)
        adjustment = self._upsert_adjustment(session, user, employee_id, adjusted_score, reason)
        self.commit()
        self.db.refresh(adjustment)
        return adjustment

    def batch_adjust(self, session_id: int, user: User, adjustments: List[Dict[str, Any]]) -> List[CalibrationAdjustment]:
        session = self._open_session(session_id)
        results = [
            self._upsert_adjustment(session, user, item["employee_id"], item["adjusted_score"], item.get("reason"))
            for item in adjustments
        ]
        self.commit()
        for adjustment in results:
            self.db.refresh(adjustment)
        return results

    def start_session(self, session_id: int) -> CalibrationSession:
        session = self.get_session(session_id)
        if session.status != CalibrationStatus.draft:
            raise BusinessRuleError(f"Only a draft session can be started (current: {session.status.value})")
        session.status = CalibrationStatus.in_progress
        self.commit()
        self.db.refresh(session)
        return session

    def complete_session(self, session_id: int, user: User) -> CalibrationSession:
        session = self.get_session(session_id)
        if session.status == CalibrationStatus.completed:
            raise BusinessRuleError("Calibration session is already completed")

        for adjustment in session.adjustments:
            self.db.query(EmployeePerformance).filter(
                EmployeePerformance.company_id == self.company_id,
                EmployeePerformance.period_id == session.period_id,
                EmployeePerformance.employee_id == adjustment.employee_id,
            ).update(
                {
                    EmployeePerformance.total_score: adjustment.adjusted_score,
                    EmployeePerformance.status: KPIStatus(determine_status(adjustment.adjusted_score)),
                },
                synchronize_session=False,
            )
        self.db.flush()
        self.db.expire_all()

        session.calibrated_stats = score_stats(
            p.total_score for p in self._performances(session.period_id, session.department_ids)
        )
        session.status = CalibrationStatus.completed
        session.completed_at = utcnow()
        AuditService.log(
            self.db, action="complete_calibration", entity_type="calibration_session", entity_id=session.id,
            user_id=user.id, user_role=user.role, details={"adjustments": len(session.adjustments)},
            company_id=self.company_id, before_state=session.original_stats, after_state=session.calibrated_stats,
        )
        self.commit()
        self.db.refresh(session)
        return session

    def _open_session(self, session_id: int) -> CalibrationSession:
        session = self.get_session(session_id)
        if session.status == CalibrationStatus.completed:
            raise BusinessRuleError("Calibration session is completed; scores can no longer be adjusted")
        return session

    def _upsert_adjustment(self, session: CalibrationSession, user: User, employee_id: int,
                           adjusted_score: float, reason: Optional[str]) -> CalibrationAdjustment:
        adjustment = self.db.query(CalibrationAdjustment).filter(
            CalibrationAdjustment.session_id == session.id,
            CalibrationAdjustment.employee_id == employee_id,
        ).first()
        if adjustment is None:
            perf = self.db.query(EmployeePerformance).filter(
                EmployeePerformance.company_id == self.company_id,
                EmployeePerformance.period_id == session.period_id,
                EmployeePerformance.employee_id == employee_id,
            ).first()
            original = perf.total_score if perf else 0.0
            adjustment = CalibrationAdjustment(
                session_id=session.id,
                employee_id=employee_id,
                original_score=original,
                original_grade=determine_grade(original),
            )
            self.db.add(adjustment)
        adjustment.adjusted_score = adjusted_score
        adjustment.adjusted_grade = determine_grade(adjusted_score)
        adjustment.reason = reason
        adjustment.adjusted_by_id = user.id
        self.db.flush()
        return adjustment

    def _performances(self, period_id: int, department_ids: Iterable[int]) -> List[EmployeePerformance]:
        return (
            self.db.query(EmployeePerformance)
            .options(joinedload(EmployeePerformance.employee).joinedload(Employee.department))
            .filter(
                EmployeePerformance.company_id == self.company_id,
                EmployeePerformance.period_id == period_id,
                EmployeePerformance.department_id.in_(list(department_ids)),
            )
            .order_by(EmployeePerformance.total_score.desc())
            .all()
        )

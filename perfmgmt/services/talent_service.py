"""
Talent nine-box: places employees on a 3x3 grid of performance level
against potential level.
"""
from typing import Any, Dict, Optional

from sqlalchemy.orm import joinedload

from perfmgmt.models.department import Employee
from perfmgmt.models.performance import EmployeePerformance
from perfmgmt.models.talent import PotentialAssessment
from perfmgmt.models.user import User
from perfmgmt.services.base import BaseService

# position -> (performance level, potential level, label)
GRID_POSITIONS = {
    "star": ("high", "high", "Star"),
    "growth": ("medium", "high", "High potential"),
    "enigma": ("low", "high", "Enigma"),
    "core": ("high", "medium", "Core player"),
    "backbone": ("medium", "medium", "Backbone"),
    "inconsistent": ("low", "medium", "Inconsistent"),
    "trusted": ("high", "low", "Trusted professional"),
    "effective": ("medium", "low", "Effective contributor"),
    "risk": ("low", "low", "At risk"),
}
FALLBACK_POSITION = "backbone"
RATING_FIELDS = ("learning_agility", "leadership_potential", "technical_depth", "collaboration_skill")


def performance_level(score: float) -> str:
    if score >= 85:
        return "high"
    if score >= 70:
        return "medium"
    return "low"


def potential_level(score: float) -> str:
    if score >= 4:
        return "high"
    if score >= 3:
        return "medium"
    return "low"


def grid_position(performance_score: float, potential_score: float) -> str:
    levels = (performance_level(performance_score), potential_level(potential_score))
    for position, (perf, pot, _) in GRID_POSITIONS.items():
        if (perf, pot) == levels:
            return position
    return FALLBACK_POSITION


def grid_label(position: Optional[str]) -> str:
    return GRID_POSITIONS[position][2] if position in GRID_POSITIONS else "Unclassified"


class TalentService(BaseService):

    def assess_potential(self, data: Dict[str, Any], assessor: User) -> PotentialAssessment:
        potential_score = sum(data[f] for f in RATING_FIELDS) / len(RATING_FIELDS)
        perf = self._performance(data["employee_id"], data["period_id"])
        position = grid_position(perf.total_score if perf else 0, potential_score)

        assessment = self.db.query(PotentialAssessment).filter(
            PotentialAssessment.employee_id == data["employee_id"],
            PotentialAssessment.period_id == data["period_id"],
        ).first()
        if assessment is None:
            assessment = PotentialAssessment(
                company_id=self.company_id,
                employee_id=data["employee_id"],
                period_id=data["period_id"],
            )
            self.db.add(assessment)
        for field in RATING_FIELDS:
            setattr(assessment, field, data[field])
        assessment.potential_score = potential_score
        assessment.grid_position = position
        assessment.assessor_id = assessor.id
        self.commit()
        self.db.refresh(assessment)
        return assessment

    def get_nine_box(self, period_id: int) -> Dict[str, Any]:
        assessments = self.db.query(PotentialAssessment).filter(
            PotentialAssessment.company_id == self.company_id,
            PotentialAssessment.period_id == period_id,
        ).all()
        employee_ids = [a.employee_id for a in assessments]
        scores = {
            p.employee_id: p.total_score for p in self.db.query(EmployeePerformance).filter(
                EmployeePerformance.period_id == period_id,
                EmployeePerformance.employee_id.in_(employee_ids),
            )
        }
        employees = {
            e.id: e for e in self.db.query(Employee)
            .options(joinedload(Employee.department))
            .filter(Employee.id.in_(employee_ids))
        }

        rows = []
        for a in assessments:
            employee = employees.get(a.employee_id)
            rows.append({
                "employeeId": a.employee_id,
                "employeeName": employee.name if employee else "Unknown",
                "departmentName": employee.department.name if employee and employee.department else "",
                "performanceScore": scores.get(a.employee_id, 0),
                "potentialScore": a.potential_score,
                "gridPosition": a.grid_position,
                "gridLabel": grid_label(a.grid_position),
            })

        counts = {position: 0 for position in GRID_POSITIONS}
        for row in rows:
            if row["gridPosition"] in counts:
                counts[row["gridPosition"]] += 1
        positions = {
            position: {"performance": perf, "potential": pot, "label": label}
            for position, (perf, pot, label) in GRID_POSITIONS.items()
        }
        return {"employees": rows, "gridCounts": counts, "gridPositions": positions}

    def get_employee_history(self, employee_id: int):
        return (
            self.db.query(PotentialAssessment)
            .filter(
                PotentialAssessment.company_id == self.company_id,
                PotentialAssessment.employee_id == employee_id,
            )
            .order_by(PotentialAssessment.created_at.desc(), PotentialAssessment.id.desc())
            .all()
        )

    def _performance(self, employee_id: int, period_id: int) -> Optional[EmployeePerformance]:
        return self.db.query(EmployeePerformance).filter(
            EmployeePerformance.company_id == self.company_id,
            EmployeePerformance.employee_id == employee_id,
            EmployeePerformance.period_id == period_id,
        ).first()

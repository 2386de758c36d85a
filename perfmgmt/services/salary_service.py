"""
Salary coefficients: map each final grade to a bonus multiplier and
materialize the per-employee result for payroll export.
"""
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import joinedload

from perfmgmt.database import utcnow
from perfmgmt.models.compensation import SalaryCalculation, SalaryCoefficient
from perfmgmt.models.department import Employee
from perfmgmt.models.performance import EmployeePerformance
from perfmgmt.services.base import BaseService
from perfmgmt.services.grading import determine_grade, empty_grade_counts

DEFAULT_COEFFICIENTS = {"S": 1.5, "A": 1.2, "B": 1.0, "C": 0.8, "D": 0.5}
DEFAULT_BONUS_BASE_TYPE = "fixed"


class SalaryService(BaseService):

    def get_coefficients(self) -> Dict[str, Any]:
        config = self._find()
        if config is None:
            return {"coefficients": dict(DEFAULT_COEFFICIENTS), "bonusBaseType": DEFAULT_BONUS_BASE_TYPE}
        return {"coefficients": config.coefficients, "bonusBaseType": config.bonus_base_type}

    def save_coefficients(self, coefficients: Dict[str, float], bonus_base_type: Optional[str] = None) -> Dict[str, Any]:
        config = self._find()
        if config is None:
            config = SalaryCoefficient(company_id=self.company_id, bonus_base_type=DEFAULT_BONUS_BASE_TYPE)
            self.db.add(config)
        config.coefficients = dict(coefficients)
        if bonus_base_type:
            config.bonus_base_type = bonus_base_type
        self.commit()
        return self.get_coefficients()

    def calculate_salaries(self, period_id: int, base_bonus_amount: Optional[float] = None) -> Dict[str, Any]:
        coefficients = self.get_coefficients()["coefficients"] or DEFAULT_COEFFICIENTS
        performances = self.db.query(EmployeePerformance).filter(
            EmployeePerformance.company_id == self.company_id,
            EmployeePerformance.period_id == period_id,
        ).all()

        results = []
        for perf in performances:
            grade = determine_grade(perf.total_score)
            coefficient = coefficients.get(grade) or 1.0
            calc = self.db.query(SalaryCalculation).filter(
                SalaryCalculation.period_id == period_id,
                SalaryCalculation.employee_id == perf.employee_id,
            ).first()
            if calc is None:
                calc = SalaryCalculation(company_id=self.company_id, period_id=period_id, employee_id=perf.employee_id)
                self.db.add(calc)
            calc.performance_score = perf.total_score
            calc.performance_grade = grade
            calc.coefficient = coefficient
            calc.bonus_amount = base_bonus_amount * coefficient if base_bonus_amount else None
            results.append(calc)

        self.commit()
        self._logger.info(f"Salary coefficients applied to {len(results)} employees for period {period_id}")
        return {"calculated": len(results), "results": results}

    def get_calculations(self, period_id: int) -> List[SalaryCalculation]:
        return (
            self.db.query(SalaryCalculation)
            .filter(SalaryCalculation.company_id == self.company_id, SalaryCalculation.period_id == period_id)
            .order_by(SalaryCalculation.performance_score.desc())
            .all()
        )

    def export_salary_data(self, period_id: int) -> List[Dict[str, Any]]:
        calculations = self.get_calculations(period_id)
        employees = {
            e.id: e for e in self.db.query(Employee)
            .options(joinedload(Employee.department))
            .filter(Employee.id.in_([c.employee_id for c in calculations]))
        }
        rows = []
        exported_at = utcnow()
        for calc in calculations:
            employee = employees.get(calc.employee_id)
            rows.append({
                "employeeNo": employee.employee_no if employee else str(calc.employee_id),
                "employeeName": employee.name if employee else "Unknown",
                "department": employee.department.name if employee and employee.department else "",
                "performanceScore": calc.performance_score,
                "performanceGrade": calc.performance_grade,
                "coefficient": calc.coefficient,
                "bonusAmount": calc.bonus_amount,
            })
            calc.exported_at = exported_at
        self.commit()
        return rows

    def get_summary(self, period_id: int) -> Dict[str, Any]:
        calculations = self.get_calculations(period_id)
        grade_counts = empty_grade_counts()
        for calc in calculations:
            grade_counts[calc.performance_grade] = grade_counts.get(calc.performance_grade, 0) + 1
        count = len(calculations)
        return {
            "totalEmployees": count,
            "gradeCounts": grade_counts,
            "totalBonus": sum(c.bonus_amount or 0 for c in calculations),
            "avgCoefficient": sum(c.coefficient for c in calculations) / count if count else 0,
            "exportedCount": sum(1 for c in calculations if c.exported_at),
        }

    def _find(self) -> Optional[SalaryCoefficient]:
        return self.db.query(SalaryCoefficient).filter(SalaryCoefficient.company_id == self.company_id).first()

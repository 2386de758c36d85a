import pytest
from fastapi import status

from perfmgmt.core.exceptions import BusinessRuleError
from perfmgmt.models.performance import EmployeePerformance
from perfmgmt.services.distribution_service import DEFAULT_DISTRIBUTION, DistributionService
from perfmgmt.services.salary_service import SalaryService


@pytest.fixture
def graded_period(db_session, company, make_period, make_employee):
    """Ten employees: 1 S, 1 A, 6 B, 1 C, 1 D."""
    period = make_period()
    for score in (97, 88, 75, 75, 75, 75, 75, 75, 65, 40):
        employee = make_employee()
        db_session.add(EmployeePerformance(
            company_id=company.id, period_id=period.id, employee_id=employee.id,
            department_id=employee.department_id, total_score=score,
        ))
    db_session.commit()
    return period


def test_default_distribution_config(db_session, company):
    config = DistributionService(db_session, company.id).get_config()
    assert config["distribution"] == DEFAULT_DISTRIBUTION
    assert config["isEnforced"] is False
    assert config["tolerance"] == 5


def test_distribution_must_total_100(db_session, company):
    with pytest.raises(BusinessRuleError):
        DistributionService(db_session, company.id).save_config({"S": 50, "A": 20})


def test_period_config_falls_back_to_company_default(db_session, company, graded_period):
    service = DistributionService(db_session, company.id)
    service.save_config({"S": 20, "A": 20, "B": 20, "C": 20, "D": 20}, is_enforced=True)

    assert service.get_config(graded_period.id)["distribution"]["S"] == 20


def test_validate_distribution(db_session, company, graded_period):
    service = DistributionService(db_session, company.id)
    assert service.validate_distribution(graded_period.id)["valid"] is True  # not enforced

    service.save_config(dict(DEFAULT_DISTRIBUTION), period_id=graded_period.id, is_enforced=True)
    result = service.validate_distribution(graded_period.id)

    assert result["valid"] is False
    assert result["actual"] == {"S": 1, "A": 1, "B": 6, "C": 1, "D": 1}
    assert len(result["violations"]) == 3  # A, B and C are off by more than 5 points
    assert result["total"] == 10


def test_distribution_stats(db_session, company, graded_period):
    stats = DistributionService(db_session, company.id).get_distribution_stats(graded_period.id)
    assert stats["counts"]["B"] == 6
    assert stats["percentages"]["B"] == 60


def test_salary_calculation(db_session, company, graded_period):
    service = SalaryService(db_session, company.id)
    assert service.get_coefficients()["bonusBaseType"] == "fixed"

    service.save_coefficients({"S": 2.0, "A": 1.5, "B": 1.0, "C": 0.5})
    result = service.calculate_salaries(graded_period.id, base_bonus_amount=1000)
    assert result["calculated"] == 10

    top = service.get_calculations(graded_period.id)[0]
    assert top.performance_grade == "S"
    assert top.bonus_amount == 2000

    # D has no configured coefficient and falls back to 1.0
    bottom = service.get_calculations(graded_period.id)[-1]
    assert bottom.coefficient == 1.0

    summary = service.get_summary(graded_period.id)
    assert summary["totalEmployees"] == 10
    assert summary["gradeCounts"] == {"S": 1, "A": 1, "B": 6, "C": 1, "D": 1}
    assert summary["totalBonus"] == pytest.approx(2000 + 1500 + 6000 + 500 + 1000)
    assert summary["exportedCount"] == 0


def test_salary_export_marks_rows(client, admin_user, graded_period, auth_headers):
    headers = auth_headers(admin_user)
    client.post("/api/salary/calculate", json={"periodId": graded_period.id}, headers=headers)

    rows = client.get("/api/salary/export", params={"period_id": graded_period.id}, headers=headers).json()
    assert len(rows) == 10
    assert rows[0]["performanceGrade"] == "S"
    assert rows[0]["bonusAmount"] is None

    summary = client.get("/api/salary/summary", params={"period_id": graded_period.id}, headers=headers).json()
    assert summary["exportedCount"] == 10


def test_salary_requires_admin(client, manager, auth_headers):
    response = client.get("/api/salary/coefficients", headers=auth_headers(manager))
    assert response.status_code == status.HTTP_403_FORBIDDEN

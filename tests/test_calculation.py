from datetime import timedelta

import pytest

from perfmgmt.core.exceptions import BusinessRuleError, NotFoundError
from perfmgmt.database import utcnow
from perfmgmt.models.assessment import DataSubmission, KPIDataEntry, SubmissionStatus
from perfmgmt.models.kpi import FormulaType, KPIAssignment, KPIDefinition
from perfmgmt.models.notification import Notification
from perfmgmt.models.performance import DepartmentPerformance, EmployeePerformance, KPIStatus
from perfmgmt.services.calculation_service import CalculationService


@pytest.fixture
def scored_period(db_session, company, user, make_period, make_employee):
    """Active period with one approved submission for two employees."""
    period = make_period()
    alice, bob = make_employee("Alice"), make_employee("Bob")
    revenue = KPIDefinition(company_id=company.id, code="REV", name="Revenue", formula_type=FormulaType.POSITIVE)
    incidents = KPIDefinition(company_id=company.id, code="INC", name="Incidents", formula_type=FormulaType.BINARY)
    db_session.add_all([revenue, incidents])
    db_session.flush()

    submission = DataSubmission(
        company_id=company.id, period_id=period.id, submitted_by_id=user.id, status=SubmissionStatus.APPROVED,
    )
    for employee, actual, incident_count in ((alice, 100, 0), (bob, 50, 2)):
        rev = KPIAssignment(company_id=company.id, period_id=period.id, kpi_definition_id=revenue.id,
                            employee_id=employee.id, department_id=employee.department_id,
                            target_value=100, weight=70)
        inc = KPIAssignment(company_id=company.id, period_id=period.id, kpi_definition_id=incidents.id,
                            employee_id=employee.id, department_id=employee.department_id,
                            target_value=0, weight=30)
        db_session.add_all([rev, inc])
        db_session.flush()
        submission.entries.append(KPIDataEntry(assignment_id=rev.id, employee_id=employee.id, actual_value=actual))
        submission.entries.append(KPIDataEntry(assignment_id=inc.id, employee_id=employee.id, actual_value=incident_count))
    db_session.add(submission)
    db_session.commit()
    return period, alice, bob


def test_run_calculation(db_session, company, manager, scored_period):
    period, alice, bob = scored_period

    summary = CalculationService(db_session, company.id).run_calculation(period.id, manager.id)

    assert summary["periodId"] == period.id
    assert summary["employeeCount"] == 2
    assert summary["departmentCount"] == 1

    scores = {
        p.employee_id: p for p in db_session.query(EmployeePerformance).filter(EmployeePerformance.period_id == period.id)
    }
    assert scores[alice.id].total_score == pytest.approx(100)
    assert scores[alice.id].status == KPIStatus.EXCELLENT
    assert scores[bob.id].total_score == pytest.approx(35)
    assert scores[bob.id].status == KPIStatus.POOR

    dept = db_session.query(DepartmentPerformance).filter(DepartmentPerformance.period_id == period.id).one()
    assert dept.total_score == pytest.approx(67.5)
    assert dept.employee_count == 2

    assert db_session.query(Notification).filter(Notification.user_id == manager.id).count() == 1


def test_recalculation_updates_in_place(db_session, company, manager, scored_period):
    period, _, _ = scored_period
    service = CalculationService(db_session, company.id)
    service.run_calculation(period.id, manager.id)
    service.run_calculation(period.id, manager.id)

    assert db_session.query(EmployeePerformance).filter(EmployeePerformance.period_id == period.id).count() == 2


def test_missing_period(db_session, company):
    with pytest.raises(NotFoundError):
        CalculationService(db_session, company.id).run_calculation(999999)


def test_locked_period_is_rejected(db_session, company, make_period):
    period = make_period(lock_date=utcnow() - timedelta(days=1))
    with pytest.raises(BusinessRuleError):
        CalculationService(db_session, company.id).run_calculation(period.id)


def test_period_without_approved_data_is_rejected(db_session, company, make_period):
    period = make_period()
    with pytest.raises(BusinessRuleError):
        CalculationService(db_session, company.id).run_calculation(period.id)


def test_results_endpoint(client, company, manager, scored_period, auth_headers):
    period, alice, _ = scored_period
    headers = auth_headers(manager)

    run = client.post(f"/api/calculation/execute/{period.id}", headers=headers)
    assert run.status_code == 200, run.text
    assert run.json()["employeeCount"] == 2

    results = client.get(f"/api/calculation/results/{period.id}", headers=headers).json()
    assert results["employees"][0]["employeeId"] == alice.id
    assert results["departments"][0]["employeeCount"] == 2

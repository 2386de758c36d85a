import pytest
from fastapi import status

from perfmgmt.core.exceptions import NotFoundError
from perfmgmt.models.assessment import KPIDataEntry
from perfmgmt.models.audit_log import AuditLog
from perfmgmt.models.company import Company
from perfmgmt.models.department import Department, Employee
from perfmgmt.models.kpi import FormulaType, KPIAssignment, KPIDefinition
from perfmgmt.models.notification import Notification
from perfmgmt.services.assessment_service import AssessmentService


def _setup_period_and_kpi(client, admin_headers, manager_headers, employee):
    period = client.post(
        "/api/periods",
        json={"name": "2024 H1", "startDate": "2024-01-01", "endDate": "2024-06-30"},
        headers=admin_headers,
    ).json()
    assert period["status"] == "DRAFT"
    activated = client.patch(f"/api/periods/{period['id']}/status", json={"status": "ACTIVE"}, headers=admin_headers)
    assert activated.json()["status"] == "ACTIVE"

    kpi = client.post(
        "/api/kpis",
        json={"code": "REV", "name": "Revenue", "formulaType": "POSITIVE"},
        headers=manager_headers,
    ).json()
    assignment = client.post(
        "/api/kpis/assignments",
        json={"periodId": period["id"], "kpiDefinitionId": kpi["id"], "employeeId": employee.id,
              "targetValue": 100, "weight": 100},
        headers=manager_headers,
    ).json()
    assert assignment["departmentId"] == employee.department_id
    return period, assignment


def test_submission_approval_workflow(client, db_session, admin_user, manager, user, make_employee, auth_headers):
    employee = make_employee("Alice")
    period, assignment = _setup_period_and_kpi(client, auth_headers(admin_user), auth_headers(manager), employee)
    user_headers = auth_headers(user)

    created = client.post(
        "/api/submissions",
        json={"periodId": period["id"], "entries": [{"assignmentId": assignment["id"], "actualValue": 90}]},
        headers=user_headers,
    )
    assert created.status_code == 200, created.text
    submission = created.json()
    assert submission["status"] == "DRAFT"
    assert submission["entries"][0]["employeeId"] == employee.id

    submitted = client.post(f"/api/submissions/{submission['id']}/submit", headers=user_headers).json()
    assert submitted["status"] == "PENDING"

    # A plain user cannot approve
    denied = client.post(f"/api/submissions/{submission['id']}/approve", headers=user_headers)
    assert denied.status_code == status.HTTP_403_FORBIDDEN

    approved = client.post(f"/api/submissions/{submission['id']}/approve", headers=auth_headers(manager)).json()
    assert approved["status"] == "APPROVED"
    assert approved["approvedById"] == manager.id

    notes = db_session.query(Notification).filter(Notification.user_id == user.id).all()
    assert [n.title for n in notes] == ["Submission approved"]
    assert db_session.query(AuditLog).filter(AuditLog.action == "approve_submission").count() == 1

    # Approving twice violates the workflow
    again = client.post(f"/api/submissions/{submission['id']}/approve", headers=auth_headers(manager))
    assert again.status_code == status.HTTP_400_BAD_REQUEST
    assert again.json()["errors"][0]["code"] == "BUSINESS_RULE_VIOLATION"


def test_rejected_submission_can_be_resubmitted(client, admin_user, manager, user, make_employee, auth_headers):
    employee = make_employee()
    period, assignment = _setup_period_and_kpi(client, auth_headers(admin_user), auth_headers(manager), employee)
    user_headers = auth_headers(user)
    submission = client.post(
        "/api/submissions",
        json={"periodId": period["id"], "entries": [{"assignmentId": assignment["id"], "actualValue": 10}]},
        headers=user_headers,
    ).json()
    client.post(f"/api/submissions/{submission['id']}/submit", headers=user_headers)

    rejected = client.post(
        f"/api/submissions/{submission['id']}/reject", json={"reason": "Numbers look off"}, headers=auth_headers(manager)
    ).json()
    assert rejected["status"] == "REJECTED"
    assert rejected["rejectReason"] == "Numbers look off"

    resubmitted = client.post(f"/api/submissions/{submission['id']}/submit", headers=user_headers).json()
    assert resubmitted["status"] == "PENDING"
    assert resubmitted["rejectReason"] is None


def test_only_submitter_can_submit(client, admin_user, manager, user, make_user, make_employee, auth_headers):
    employee = make_employee()
    period, assignment = _setup_period_and_kpi(client, auth_headers(admin_user), auth_headers(manager), employee)
    submission = client.post(
        "/api/submissions",
        json={"periodId": period["id"], "entries": [{"assignmentId": assignment["id"], "actualValue": 10}]},
        headers=auth_headers(user),
    ).json()

    response = client.post(f"/api/submissions/{submission['id']}/submit", headers=auth_headers(make_user()))
    assert response.status_code == status.HTTP_403_FORBIDDEN


def test_invalid_period_transition(client, admin_user, auth_headers):
    headers = auth_headers(admin_user)
    period = client.post(
        "/api/periods", json={"name": "2025", "startDate": "2025-01-01", "endDate": "2025-12-31"}, headers=headers
    ).json()

    response = client.patch(f"/api/periods/{period['id']}/status", json={"status": "ARCHIVED"}, headers=headers)
    assert response.status_code == status.HTTP_400_BAD_REQUEST


def test_period_end_before_start_is_rejected(client, admin_user, auth_headers):
    response = client.post(
        "/api/periods",
        json={"name": "Backwards", "startDate": "2025-06-01", "endDate": "2025-01-01"},
        headers=auth_headers(admin_user),
    )
    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY


def test_custom_kpi_formula_is_validated(client, manager, auth_headers):
    headers = auth_headers(manager)
    bad = client.post(
        "/api/kpis",
        json={"code": "X", "name": "Broken", "formulaType": "CUSTOM", "customFormula": "actual * secret"},
        headers=headers,
    )
    assert bad.status_code == status.HTTP_400_BAD_REQUEST

    check = client.post("/api/kpis/validate-formula", json={"formula": "actual / target * 100"}, headers=headers)
    assert check.json() == {"valid": True, "error": None}


def test_missing_period_is_not_found(client, manager, auth_headers):
    response = client.get("/api/periods/424242", headers=auth_headers(manager))
    assert response.status_code == status.HTTP_404_NOT_FOUND
    assert response.json()["errors"][0]["code"] == "NOT_FOUND"


def test_formula_with_python_code_is_rejected_without_running(client, manager, auth_headers, tmp_path):
    marker = tmp_path / "marker"
    formula = f"actual + 0*len(__import__('pathlib').Path(r'{marker}').write_text('x') * 'a')"

    response = client.post("/api/kpis/validate-formula", json={"formula": formula}, headers=auth_headers(manager))

    assert response.status_code == status.HTTP_200_OK
    assert response.json()["valid"] is False
    assert not marker.exists()

    created = client.post(
        "/api/kpis",
        json={"code": "EVIL", "name": "Evil", "formulaType": "CUSTOM", "customFormula": formula},
        headers=auth_headers(manager),
    )
    assert created.status_code == status.HTTP_400_BAD_REQUEST
    assert not marker.exists()


@pytest.fixture
def foreign_employee(db_session):
    other = Company(name="Other Corp", code="OTHER")
    db_session.add(other)
    db_session.flush()
    dept = Department(company_id=other.id, name="Ops", code="OPS")
    db_session.add(dept)
    db_session.flush()
    employee = Employee(company_id=other.id, department_id=dept.id, employee_no="X0001", name="Outsider")
    db_session.add(employee)
    db_session.commit()
    return employee


@pytest.fixture
def open_assignment(db_session, company, make_period):
    """Department-wide assignment in an active period; entries name the employee."""
    period = make_period()
    kpi = KPIDefinition(company_id=company.id, code="REV", name="Revenue", formula_type=FormulaType.POSITIVE)
    db_session.add(kpi)
    db_session.flush()
    assignment = KPIAssignment(company_id=company.id, period_id=period.id, kpi_definition_id=kpi.id,
                               target_value=100, weight=100)
    db_session.add(assignment)
    db_session.commit()
    return period, kpi, assignment


def test_submission_for_other_company_employee_is_not_found(db_session, company, user, open_assignment,
                                                            foreign_employee):
    period, _, assignment = open_assignment
    service = AssessmentService(db_session, company.id)

    with pytest.raises(NotFoundError):
        service.create_submission(
            period.id,
            [{"assignment_id": assignment.id, "employee_id": foreign_employee.id, "actual_value": 50}],
            user,
        )

    assert db_session.query(KPIDataEntry).filter(KPIDataEntry.employee_id == foreign_employee.id).count() == 0


def test_assignment_for_other_company_employee_or_department_is_not_found(db_session, company, department,
                                                                         open_assignment, foreign_employee):
    period, kpi, _ = open_assignment
    service = AssessmentService(db_session, company.id)
    base = {"period_id": period.id, "kpi_definition_id": kpi.id, "target_value": 100, "weight": 100}

    with pytest.raises(NotFoundError):
        service.create_assignment({**base, "employee_id": foreign_employee.id, "department_id": department.id})
    with pytest.raises(NotFoundError):
        service.create_assignment({**base, "department_id": foreign_employee.department_id})

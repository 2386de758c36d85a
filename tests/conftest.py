import pytest
import os
from datetime import timedelta
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

# Set env before importing app components
os.environ["APP_ENV"] = "testing"
os.environ["DATABASE_URL"] = "sqlite:///:memory:"

from perfmgmt.database import Base, get_db, utcnow
from perfmgmt.main import app
from fastapi.testclient import TestClient

SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"

engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(scope="session", autouse=True)
def setup_database():
    """Create tables once for the whole test session."""
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def db_session():
    """Get a clean database session for each test function with rollback safety."""
    connection = engine.connect()
    transaction = connection.begin()
    session = TestingSessionLocal(bind=connection)

    yield session

    session.close()
    transaction.rollback()
    connection.close()


@pytest.fixture(scope="function")
def company(db_session):
    from perfmgmt.models.company import Company
    import uuid
    company = Company(name="Acme Corp", code=f"ACME-{uuid.uuid4().hex[:8]}")
    db_session.add(company)
    db_session.commit()
    return company


@pytest.fixture(scope="function")
def make_user(db_session, company):
    """Factory for users of a given role in the test company."""
    from perfmgmt.models.user import User, UserRole
    from perfmgmt.services import auth as auth_service
    import uuid

    def _make_user(role=UserRole.USER, password="Password123!", company_id=None, **kwargs):
        username = kwargs.pop("username", f"user-{uuid.uuid4().hex[:8]}")
        user = User(
            username=username,
            email=f"{username}@acme.com",
            hashed_password=auth_service.get_password_hash(password),
            role=role,
            company_id=company_id or company.id,
            is_active=True,
            **kwargs,
        )
        db_session.add(user)
        db_session.commit()
        return user
    return _make_user


@pytest.fixture(scope="function")
def user(make_user):
    from perfmgmt.models.user import UserRole
    return make_user(UserRole.USER, full_name="Regular User")


@pytest.fixture(scope="function")
def manager(make_user):
    from perfmgmt.models.user import UserRole
    return make_user(UserRole.MANAGER, full_name="Department Manager")


@pytest.fixture(scope="function")
def admin_user(make_user):
    from perfmgmt.models.user import UserRole
    return make_user(UserRole.GROUP_ADMIN, full_name="System Admin")


@pytest.fixture(scope="function")
def get_token():
    """Helper fixture to create access tokens for a user."""
    from perfmgmt.services.auth import token_for_user

    def _get_token(user):
        return token_for_user(user)
    return _get_token


@pytest.fixture(scope="function")
def auth_headers(get_token):
    def _headers(user):
        return {"Authorization": f"Bearer {get_token(user)}"}
    return _headers


@pytest.fixture(scope="function")
def department(db_session, company):
    from perfmgmt.models.department import Department
    dept = Department(company_id=company.id, name="Sales", code="SALES")
    db_session.add(dept)
    db_session.commit()
    return dept


@pytest.fixture(scope="function")
def make_employee(db_session, company, department):
    from perfmgmt.models.department import Employee
    counter = {"n": 0}

    def _make_employee(name=None, department_id=None):
        counter["n"] += 1
        employee = Employee(
            company_id=company.id,
            department_id=department_id or department.id,
            employee_no=f"E{counter['n']:04d}",
            name=name or f"Employee {counter['n']}",
        )
        db_session.add(employee)
        db_session.commit()
        return employee
    return _make_employee


@pytest.fixture(scope="function")
def make_period(db_session, company):
    from perfmgmt.models.assessment import AssessmentPeriod, PeriodStatus

    def _make_period(name="2024 Q2", status=PeriodStatus.ACTIVE, ends_in=timedelta(days=30), lock_date=None):
        now = utcnow()
        period = AssessmentPeriod(
            company_id=company.id,
            name=name,
            start_date=now - timedelta(days=60),
            end_date=now + ends_in,
            lock_date=lock_date,
            status=status,
        )
        db_session.add(period)
        db_session.commit()
        return period
    return _make_period


@pytest.fixture(scope="function")
def client(db_session):
    """Get a TestClient that uses the test database session via dependency override."""
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()

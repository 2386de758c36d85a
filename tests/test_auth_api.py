from fastapi import status

from perfmgmt.models.audit_log import AuditLog
from perfmgmt.services import auth as auth_service


def test_password_hashing():
    password = "MySecurePassword123!"
    hashed = auth_service.get_password_hash(password)
    assert hashed != password
    assert auth_service.verify_password(password, hashed)
    assert not auth_service.verify_password("WrongPassword", hashed)


def test_token_round_trip(admin_user):
    claims = auth_service.decode_access_token(auth_service.token_for_user(admin_user))
    assert claims["sub"] == str(admin_user.id)
    assert claims["company_id"] == admin_user.company_id
    assert claims["role"] == "GROUP_ADMIN"
    assert claims["type"] == "access"


def test_garbage_token_is_rejected():
    assert auth_service.decode_access_token("not-a-token") is None


def test_login_success(client, admin_user, db_session):
    response = client.post("/api/auth/login", json={"username": admin_user.username, "password": "Password123!"})
    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert "access_token" in data
    assert data["token_type"] == "bearer"
    assert data["user"]["companyId"] == admin_user.company_id

    entry = db_session.query(AuditLog).filter(AuditLog.action == "login").first()
    assert entry is not None
    assert entry.user_id == admin_user.id


def test_login_invalid_credentials(client, admin_user):
    response = client.post("/api/auth/login", json={"username": admin_user.username, "password": "wrong"})
    assert response.status_code == status.HTTP_401_UNAUTHORIZED
    assert response.json()["success"] is False


def test_me_requires_token(client):
    response = client.get("/api/auth/me")
    assert response.status_code == status.HTTP_401_UNAUTHORIZED


def test_me_returns_current_user(client, user, auth_headers):
    response = client.get("/api/auth/me", headers=auth_headers(user))
    assert response.status_code == 200
    assert response.json()["username"] == user.username
    assert response.json()["role"] == "USER"


def test_plain_user_cannot_create_kpi(client, user, auth_headers):
    response = client.post(
        "/api/kpis",
        json={"code": "REV", "name": "Revenue"},
        headers=auth_headers(user),
    )
    assert response.status_code == status.HTTP_403_FORBIDDEN

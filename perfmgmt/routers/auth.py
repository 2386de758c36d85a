import logging

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.orm import Session

from perfmgmt.core.config import settings
from perfmgmt.core.exceptions import AuthenticationError
from perfmgmt.core.limiter import limiter
from perfmgmt.database import get_db
from perfmgmt.models.user import User
from perfmgmt.routers.auth_deps import get_current_user
from perfmgmt.schemas.auth import LoginRequest, Token, UserResponse
from perfmgmt.services import auth as auth_service
from perfmgmt.services.audit import AuditService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


def _authenticate(db: Session, username: str, password: str) -> User:
    user = db.query(User).filter(User.username == username).first()
    if not user or not auth_service.verify_password(password, user.hashed_password):
        AuditService.log(
            db,
            action="failed_login",
            entity_type="user",
            entity_id=None,
            user_id=None,
            user_role=None,
            details={"username": username, "reason": "invalid_credentials"},
            company_id=user.company_id if user else None,
        )
        db.commit()
        raise AuthenticationError("Incorrect username or password")
    if not user.is_active:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="User is inactive")
    return user


def _issue_token(db: Session, user: User) -> Token:
    AuditService.log(
        db,
        action="login",
        entity_type="user",
        entity_id=user.id,
        user_id=user.id,
        user_role=user.role,
        details={"username": user.username},
        company_id=user.company_id,
    )
    db.commit()
    logger.info(f"User {user.id} logged in", extra={"company_id": user.company_id})
    return Token(access_token=auth_service.token_for_user(user), user=UserResponse.model_validate(user))


@router.post("/login", response_model=Token)
@limiter.limit(settings.login_rate_limit)
def login(request: Request, login_data: LoginRequest, db: Session = Depends(get_db)):
    # JSON body for the frontend; /token below serves OAuth2 form clients
    user = _authenticate(db, login_data.username, login_data.password)
    return _issue_token(db, user)


@router.post("/token", response_model=Token, include_in_schema=False)
@limiter.limit(settings.login_rate_limit)
def login_form(request: Request, form_data: OAuth2PasswordRequestForm = Depends(), db: Session = Depends(get_db)):
    user = _authenticate(db, form_data.username, form_data.password)
    return _issue_token(db, user)


@router.get("/me", response_model=UserResponse)
def get_me(current_user: User = Depends(get_current_user)):
    return current_user

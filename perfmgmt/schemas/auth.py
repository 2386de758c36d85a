from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr

from perfmgmt.core.schemas import CamelModel
from perfmgmt.models.user import UserRole


class LoginRequest(BaseModel):
    username: str
    password: str


class UserResponse(CamelModel):
    id: int
    username: str
    email: Optional[EmailStr] = None
    full_name: Optional[str] = None
    role: UserRole
    company_id: int
    department_id: Optional[int] = None
    linked_employee_id: Optional[int] = None
    created_at: Optional[datetime] = None


class Token(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    access_token: str
    token_type: str = "bearer"
    user: Optional[UserResponse] = None

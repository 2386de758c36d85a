"""
User Model with tenant-scoped roles.
"""
from sqlalchemy import Column, Integer, String, Enum, DateTime, Boolean, ForeignKey
from sqlalchemy.orm import relationship
import enum
from perfmgmt.database import Base, utcnow


class UserRole(str, enum.Enum):
    """
    User roles, most to least privileged:
    - SUPER_ADMIN: Platform-wide access
    - GROUP_ADMIN: Administers every company of a group
    - MANAGER: Department manager (approvals, calibration, interviews)
    - USER: Self-service access
    """
    SUPER_ADMIN = "SUPER_ADMIN"
    GROUP_ADMIN = "GROUP_ADMIN"
    MANAGER = "MANAGER"
    USER = "USER"


ELEVATED_ROLES = frozenset({UserRole.MANAGER, UserRole.GROUP_ADMIN, UserRole.SUPER_ADMIN})


def is_elevated(role) -> bool:
    """Whether the role may see organization-wide work items."""
    try:
        return UserRole(role) in ELEVATED_ROLES
    except ValueError:
        return False


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    company_id = Column(Integer, ForeignKey("companies.id"), nullable=False, index=True)
    username = Column(String, unique=True, index=True, nullable=False)
    email = Column(String, unique=True, index=True, nullable=True)
    hashed_password = Column(String, nullable=False)
    full_name = Column(String, nullable=True)

    role = Column(Enum(UserRole), default=UserRole.USER, nullable=False)
    department_id = Column(Integer, ForeignKey("departments.id", use_alter=True, name="fk_user_department_id"), nullable=True)
    linked_employee_id = Column(Integer, ForeignKey("employees.id", use_alter=True, name="fk_user_employee_id"), nullable=True)

    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    company = relationship("Company", back_populates="users")
    linked_employee = relationship("Employee", foreign_keys=[linked_employee_id])
    todos = relationship("Todo", back_populates="user", cascade="all, delete-orphan")
    notifications = relationship("Notification", back_populates="user", cascade="all, delete-orphan")

    def __repr__(self):
        return f"<User {self.username} ({self.role.value})>"

    @property
    def is_elevated(self) -> bool:
        return is_elevated(self.role)

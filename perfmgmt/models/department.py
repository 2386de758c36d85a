"""
Department and Employee models.
"""
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Boolean
from sqlalchemy.orm import relationship
from perfmgmt.database import Base, utcnow


class Department(Base):
    __tablename__ = "departments"

    id = Column(Integer, primary_key=True, index=True)
    company_id = Column(Integer, ForeignKey("companies.id"), nullable=False, index=True)

    name = Column(String, nullable=False, index=True)
    code = Column(String, nullable=False, index=True)
    parent_id = Column(Integer, ForeignKey("departments.id"), nullable=True)
    manager_user_id = Column(Integer, ForeignKey("users.id", use_alter=True, name="fk_department_manager_id"), nullable=True)

    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=utcnow)

    company = relationship("Company", back_populates="departments")
    parent = relationship("Department", remote_side=[id], back_populates="children")
    children = relationship("Department", back_populates="parent")
    employees = relationship("Employee", back_populates="department")

    def __repr__(self):
        return f"<Department {self.code}: {self.name}>"


class Employee(Base):
    __tablename__ = "employees"

    id = Column(Integer, primary_key=True, index=True)
    company_id = Column(Integer, ForeignKey("companies.id"), nullable=False, index=True)
    department_id = Column(Integer, ForeignKey("departments.id"), nullable=True, index=True)
    employee_no = Column(String, nullable=False, index=True)
    name = Column(String, nullable=False)
    position = Column(String, nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=utcnow)

    department = relationship("Department", back_populates="employees")

    def __repr__(self):
        return f"<Employee {self.employee_no}: {self.name}>"

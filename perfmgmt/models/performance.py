from sqlalchemy import Column, Integer, String, Float, DateTime, ForeignKey, UniqueConstraint, Enum as SQLEnum
from sqlalchemy.orm import relationship
import enum
from perfmgmt.database import Base, utcnow


class KPIStatus(str, enum.Enum):
    EXCELLENT = "EXCELLENT"
    GOOD = "GOOD"
    AVERAGE = "AVERAGE"
    POOR = "POOR"


class EmployeePerformance(Base):
    __tablename__ = "employee_performances"
    __table_args__ = (UniqueConstraint("period_id", "employee_id", name="uq_performance_period_employee"),)

    id = Column(Integer, primary_key=True, index=True)
    company_id = Column(Integer, ForeignKey("companies.id"), nullable=False, index=True)
    period_id = Column(Integer, ForeignKey("assessment_periods.id"), nullable=False, index=True)
    employee_id = Column(Integer, ForeignKey("employees.id"), nullable=False, index=True)
    department_id = Column(Integer, ForeignKey("departments.id"), nullable=True, index=True)
    total_score = Column(Float, nullable=False, default=0)
    status = Column(SQLEnum(KPIStatus), nullable=True)
    calculated_at = Column(DateTime, default=utcnow)
    calculated_by_id = Column(Integer, ForeignKey("users.id"), nullable=True)

    employee = relationship("Employee")


class DepartmentPerformance(Base):
    __tablename__ = "department_performances"
    __table_args__ = (UniqueConstraint("period_id", "department_id", name="uq_performance_period_department"),)

    id = Column(Integer, primary_key=True, index=True)
    company_id = Column(Integer, ForeignKey("companies.id"), nullable=False, index=True)
    period_id = Column(Integer, ForeignKey("assessment_periods.id"), nullable=False, index=True)
    department_id = Column(Integer, ForeignKey("departments.id"), nullable=False)
    total_score = Column(Float, nullable=False, default=0)
    employee_count = Column(Integer, nullable=False, default=0)
    rollup_method = Column(String, nullable=False, default="AVERAGE")
    calculated_at = Column(DateTime, default=utcnow)

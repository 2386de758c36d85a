"""
Forced-distribution and salary-coefficient configuration plus the salary
calculations derived from them.
"""
from sqlalchemy import Column, Integer, String, Float, Boolean, DateTime, ForeignKey, JSON, UniqueConstraint
from perfmgmt.database import Base, utcnow


class DistributionConfig(Base):
    __tablename__ = "distribution_configs"

    id = Column(Integer, primary_key=True, index=True)
    company_id = Column(Integer, ForeignKey("companies.id"), nullable=False, index=True)
    period_id = Column(Integer, ForeignKey("assessment_periods.id"), nullable=True)  # null = company default
    distribution = Column(JSON, nullable=False)      # {grade: percent}
    score_boundaries = Column(JSON, nullable=False)  # {grade: min_score}
    is_enforced = Column(Boolean, default=False, nullable=False)
    tolerance = Column(Float, default=5, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)


class SalaryCoefficient(Base):
    __tablename__ = "salary_coefficients"

    id = Column(Integer, primary_key=True, index=True)
    company_id = Column(Integer, ForeignKey("companies.id"), nullable=False, unique=True)
    coefficients = Column(JSON, nullable=False)  # {grade: multiplier}
    bonus_base_type = Column(String, default="fixed", nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)


class SalaryCalculation(Base):
    __tablename__ = "salary_calculations"
    __table_args__ = (UniqueConstraint("period_id", "employee_id", name="uq_salary_period_employee"),)

    id = Column(Integer, primary_key=True, index=True)
    company_id = Column(Integer, ForeignKey("companies.id"), nullable=False, index=True)
    period_id = Column(Integer, ForeignKey("assessment_periods.id"), nullable=False, index=True)
    employee_id = Column(Integer, ForeignKey("employees.id"), nullable=False)
    performance_score = Column(Float, nullable=False)
    performance_grade = Column(String(1), nullable=False)
    coefficient = Column(Float, nullable=False)
    bonus_amount = Column(Float, nullable=True)
    exported_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=utcnow)

from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from perfmgmt.database import Base, utcnow

class PerformanceInterview(Base):
    __tablename__ = "performance_interviews"
    __table_args__ = (UniqueConstraint("period_id", "employee_id", name="uq_interview_period_employee"),)

    id = Column(Integer, primary_key=True, index=True)
    company_id = Column(Integer, ForeignKey("companies.id"), nullable=False, index=True)
    period_id = Column(Integer, ForeignKey("assessment_periods.id"), nullable=False, index=True)
    employee_id = Column(Integer, ForeignKey("employees.id"), nullable=False)
    interviewer_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    interviewer_name = Column(String, nullable=True)
    scheduled_at = Column(DateTime, nullable=False)
    conducted_at = Column(DateTime, nullable=True)  # null until the interview took place
    summary = Column(Text, nullable=True)
    improvement_plan = Column(Text, nullable=True)
    created_at = Column(DateTime, default=utcnow)

    employee = relationship("Employee")

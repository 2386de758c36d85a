"""
Assessment periods, data submissions and the KPI values they carry.
"""
from sqlalchemy import Column, Integer, String, Float, DateTime, ForeignKey, Text, Enum as SQLEnum
from sqlalchemy.orm import relationship
import enum
from perfmgmt.database import Base, utcnow


class PeriodStatus(str, enum.Enum):
    DRAFT = "DRAFT"
    ACTIVE = "ACTIVE"
    LOCKED = "LOCKED"
    ARCHIVED = "ARCHIVED"


class SubmissionStatus(str, enum.Enum):
    DRAFT = "DRAFT"
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class AssessmentPeriod(Base):
    __tablename__ = "assessment_periods"

    id = Column(Integer, primary_key=True, index=True)
    company_id = Column(Integer, ForeignKey("companies.id"), nullable=False, index=True)
    name = Column(String, nullable=False)
    start_date = Column(DateTime, nullable=False)
    end_date = Column(DateTime, nullable=False, index=True)
    # After this instant scores may no longer be recalculated
    lock_date = Column(DateTime, nullable=True)
    status = Column(SQLEnum(PeriodStatus), default=PeriodStatus.DRAFT, nullable=False, index=True)
    created_at = Column(DateTime, default=utcnow)

    submissions = relationship("DataSubmission", back_populates="period")

    def __repr__(self):
        return f"<AssessmentPeriod {self.name} ({self.status.value})>"


class DataSubmission(Base):
    __tablename__ = "data_submissions"

    id = Column(Integer, primary_key=True, index=True)
    company_id = Column(Integer, ForeignKey("companies.id"), nullable=False, index=True)
    period_id = Column(Integer, ForeignKey("assessment_periods.id"), nullable=False, index=True)
    submitted_by_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    status = Column(SQLEnum(SubmissionStatus), default=SubmissionStatus.DRAFT, nullable=False, index=True)
    submitted_at = Column(DateTime, nullable=True)
    approved_by_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    approved_at = Column(DateTime, nullable=True)
    reject_reason = Column(Text, nullable=True)
    created_at = Column(DateTime, default=utcnow)

    period = relationship("AssessmentPeriod", back_populates="submissions")
    submitted_by = relationship("User", foreign_keys=[submitted_by_id])
    entries = relationship("KPIDataEntry", back_populates="submission", cascade="all, delete-orphan")


class KPIDataEntry(Base):
    __tablename__ = "kpi_data_entries"

    id = Column(Integer, primary_key=True, index=True)
    submission_id = Column(Integer, ForeignKey("data_submissions.id", ondelete="CASCADE"), nullable=False, index=True)
    assignment_id = Column(Integer, ForeignKey("kpi_assignments.id"), nullable=False)
    employee_id = Column(Integer, ForeignKey("employees.id"), nullable=False, index=True)
    actual_value = Column(Float, nullable=False)
    remark = Column(Text, nullable=True)

    # Filled in by the calculation run
    raw_score = Column(Float, nullable=True)
    capped_score = Column(Float, nullable=True)
    weighted_score = Column(Float, nullable=True)

    submission = relationship("DataSubmission", back_populates="entries")
    assignment = relationship("KPIAssignment")

from sqlalchemy import Column, Integer, String, Float, DateTime, ForeignKey, Text, JSON, UniqueConstraint, Enum as SQLEnum
from sqlalchemy.orm import relationship
import enum
from perfmgmt.database import Base, utcnow


class CalibrationStatus(str, enum.Enum):
    draft = "draft"
    in_progress = "in_progress"
    completed = "completed"


class CalibrationSession(Base):
    __tablename__ = "calibration_sessions"

    id = Column(Integer, primary_key=True, index=True)
    company_id = Column(Integer, ForeignKey("companies.id"), nullable=False, index=True)
    period_id = Column(Integer, ForeignKey("assessment_periods.id"), nullable=False, index=True)
    name = Column(String, nullable=False)
    department_ids = Column(JSON, nullable=False, default=list)
    status = Column(SQLEnum(CalibrationStatus), default=CalibrationStatus.draft, nullable=False, index=True)
    original_stats = Column(JSON, nullable=True)
    calibrated_stats = Column(JSON, nullable=True)
    created_by_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    created_at = Column(DateTime, default=utcnow)
    completed_at = Column(DateTime, nullable=True)

    adjustments = relationship("CalibrationAdjustment", back_populates="session", cascade="all, delete-orphan")


class CalibrationAdjustment(Base):
    __tablename__ = "calibration_adjustments"
    __table_args__ = (UniqueConstraint("session_id", "employee_id", name="uq_adjustment_session_employee"),)

    id = Column(Integer, primary_key=True, index=True)
    session_id = Column(Integer, ForeignKey("calibration_sessions.id", ondelete="CASCADE"), nullable=False, index=True)
    employee_id = Column(Integer, ForeignKey("employees.id"), nullable=False)
    original_score = Column(Float, nullable=False)
    adjusted_score = Column(Float, nullable=False)
    original_grade = Column(String(1), nullable=False)
    adjusted_grade = Column(String(1), nullable=False)
    reason = Column(Text, nullable=True)
    adjusted_by_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    created_at = Column(DateTime, default=utcnow)

    session = relationship("CalibrationSession", back_populates="adjustments")

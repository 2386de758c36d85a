from sqlalchemy import Column, Integer, String, Float, DateTime, ForeignKey, UniqueConstraint
from perfmgmt.database import Base, utcnow

class PotentialAssessment(Base):
    __tablename__ = "potential_assessments"
    __table_args__ = (UniqueConstraint("employee_id", "period_id", name="uq_potential_employee_period"),)

    id = Column(Integer, primary_key=True, index=True)
    company_id = Column(Integer, ForeignKey("companies.id"), nullable=False, index=True)
    period_id = Column(Integer, ForeignKey("assessment_periods.id"), nullable=False, index=True)
    employee_id = Column(Integer, ForeignKey("employees.id"), nullable=False)
    # Ratings on a 1-5 scale
    learning_agility = Column(Float, nullable=False)
    leadership_potential = Column(Float, nullable=False)
    technical_depth = Column(Float, nullable=False)
    collaboration_skill = Column(Float, nullable=False)
    potential_score = Column(Float, nullable=False)
    grid_position = Column(String, nullable=False)
    assessor_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    created_at = Column(DateTime, default=utcnow)

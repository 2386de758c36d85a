from sqlalchemy import Column, Integer, String, Float, DateTime, ForeignKey, Text, JSON, Boolean, Enum as SQLEnum
from sqlalchemy.orm import relationship
import enum
from perfmgmt.database import Base, utcnow


class FormulaType(str, enum.Enum):
    POSITIVE = "POSITIVE"  # higher is better
    NEGATIVE = "NEGATIVE"  # lower is better
    BINARY = "BINARY"      # full score when nothing happened
    STEPPED = "STEPPED"    # threshold table
    CUSTOM = "CUSTOM"      # expression over actual/target


class KPIDefinition(Base):
    __tablename__ = "kpi_definitions"

    id = Column(Integer, primary_key=True, index=True)
    company_id = Column(Integer, ForeignKey("companies.id"), nullable=False, index=True)
    code = Column(String, nullable=False, index=True)
    name = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    unit = Column(String, nullable=True)
    formula_type = Column(SQLEnum(FormulaType), default=FormulaType.POSITIVE, nullable=False)
    score_cap = Column(Float, default=120, nullable=False)
    score_floor = Column(Float, default=0, nullable=False)
    scoring_rules = Column(JSON, nullable=True)  # [{threshold, score, operator}]
    custom_formula = Column(String, nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=utcnow)

    def __repr__(self):
        return f"<KPIDefinition {self.code} ({self.formula_type.value})>"


class KPIAssignment(Base):
    __tablename__ = "kpi_assignments"

    id = Column(Integer, primary_key=True, index=True)
    company_id = Column(Integer, ForeignKey("companies.id"), nullable=False, index=True)
    period_id = Column(Integer, ForeignKey("assessment_periods.id"), nullable=False, index=True)
    kpi_definition_id = Column(Integer, ForeignKey("kpi_definitions.id"), nullable=False)
    employee_id = Column(Integer, ForeignKey("employees.id"), nullable=True, index=True)
    department_id = Column(Integer, ForeignKey("departments.id"), nullable=True, index=True)
    target_value = Column(Float, nullable=False)
    challenge_value = Column(Float, nullable=True)
    weight = Column(Float, nullable=False)  # percent
    created_at = Column(DateTime, default=utcnow)

    kpi_definition = relationship("KPIDefinition")

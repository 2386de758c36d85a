from datetime import datetime
from typing import Optional

from pydantic import Field

from perfmgmt.core.schemas import CamelModel


class PotentialAssessmentIn(CamelModel):
    employee_id: int
    period_id: int
    learning_agility: float = Field(..., ge=1, le=5)
    leadership_potential: float = Field(..., ge=1, le=5)
    technical_depth: float = Field(..., ge=1, le=5)
    collaboration_skill: float = Field(..., ge=1, le=5)


class PotentialAssessmentResponse(CamelModel):
    id: int
    employee_id: int
    period_id: int
    learning_agility: float
    leadership_potential: float
    technical_depth: float
    collaboration_skill: float
    potential_score: float
    grid_position: str
    assessor_id: Optional[int] = None
    created_at: Optional[datetime] = None

from fastapi import APIRouter
from perfmgmt.routers import (
    auth, todos, assessment, kpis, calculation, calibration,
    compensation, talent, interviews, notifications
)

# Routers are aggregated here; main.py only imports this hub.
api_router = APIRouter()

api_router.include_router(auth.router, tags=["Authentication"])
api_router.include_router(todos.router, tags=["Todos"])
api_router.include_router(assessment.router, tags=["Assessment"])
api_router.include_router(kpis.router, tags=["KPI Library"])
api_router.include_router(calculation.router, tags=["Calculation"])
api_router.include_router(calibration.router, tags=["Calibration"])
api_router.include_router(compensation.router, tags=["Compensation"])
api_router.include_router(talent.router, tags=["Talent"])
api_router.include_router(interviews.router, tags=["Interviews"])
api_router.include_router(notifications.router, tags=["Notifications"])

# Models package
# Importing modules here ensures they are registered with SQLAlchemy Base
from . import (
    company, user, department, assessment, kpi, performance,
    calibration, interview, todo, compensation, talent,
    notification, audit_log
)

# Explicit class exports for cleaner imports
from .company import Company
from .user import User, UserRole
from .department import Department, Employee
from .assessment import AssessmentPeriod, DataSubmission, KPIDataEntry
from .kpi import KPIDefinition, KPIAssignment
from .performance import EmployeePerformance, DepartmentPerformance
from .calibration import CalibrationSession, CalibrationAdjustment
from .interview import PerformanceInterview
from .todo import Todo
from .notification import Notification

__all__ = [
    "Company",
    "User",
    "UserRole",
    "Department",
    "Employee",
    "AssessmentPeriod",
    "DataSubmission",
    "KPIDataEntry",
    "KPIDefinition",
    "KPIAssignment",
    "EmployeePerformance",
    "DepartmentPerformance",
    "CalibrationSession",
    "CalibrationAdjustment",
    "PerformanceInterview",
    "Todo",
    "Notification",
]

from .database import init_db, close_db, get_database
from .locks import employee_lock, mutation_lock, schedule_lock
from .models import (
    EmployeeDoc,
    SchedulePeriodDoc,
    ShiftAssignmentDoc,
    LeaveRequestDoc,
    ComplianceRuleDoc,
)

__all__ = [
    "init_db",
    "close_db",
    "get_database",
    "employee_lock",
    "mutation_lock",
    "schedule_lock",
    "EmployeeDoc",
    "SchedulePeriodDoc",
    "ShiftAssignmentDoc",
    "LeaveRequestDoc",
    "ComplianceRuleDoc",
]

"""Schedule integrity: overlap and publish-lock guards, working-time compliance."""

from .errors import (
    IntegrityError,
    ConflictError,
    LockedPeriodError,
    PublishBoundaryError,
    InvalidShiftTimeError,
)
from .types import (
    Allowed,
    ComplianceReport,
    ComplianceRules,
    EmployeeProfile,
    LeaveRequest,
    MutationDecision,
    Rejected,
    RejectionReason,
    SchedulePeriod,
    ShiftAssignment,
    Violation,
    ViolationSeverity,
    ViolationType,
)
from .time_accounting import HoursSummary, aggregate, duration
from .guards import (
    advance_publish_boundary,
    check_overlap,
    check_publish_lock,
    validate_deletion,
    validate_mutation,
)
from .engine import ComplianceEngine, compute_compliance, default_validators
from .validators import (
    BaseValidator,
    DailyRestValidator,
    WeeklyRestValidator,
    AverageWeeklyHoursValidator,
    DailyHoursValidator,
    EmployeeLimitsValidator,
    NightWorkValidator,
    LeaveConflictValidator,
    check_leave_conflicts,
)

__all__ = [
    "IntegrityError",
    "ConflictError",
    "LockedPeriodError",
    "PublishBoundaryError",
    "InvalidShiftTimeError",
    "Allowed",
    "ComplianceReport",
    "ComplianceRules",
    "EmployeeProfile",
    "LeaveRequest",
    "MutationDecision",
    "Rejected",
    "RejectionReason",
    "SchedulePeriod",
    "ShiftAssignment",
    "Violation",
    "ViolationSeverity",
    "ViolationType",
    "HoursSummary",
    "aggregate",
    "duration",
    "advance_publish_boundary",
    "check_overlap",
    "check_publish_lock",
    "validate_deletion",
    "validate_mutation",
    "ComplianceEngine",
    "compute_compliance",
    "default_validators",
    "BaseValidator",
    "DailyRestValidator",
    "WeeklyRestValidator",
    "AverageWeeklyHoursValidator",
    "DailyHoursValidator",
    "EmployeeLimitsValidator",
    "NightWorkValidator",
    "LeaveConflictValidator",
    "check_leave_conflicts",
]

"""Type definitions for the schedule integrity module."""

from dataclasses import asdict, dataclass, field
from datetime import date, datetime
from datetime import date as date_type
from enum import Enum
from typing import Optional, Union

from .errors import IntegrityError
from .time_accounting import (
    HoursSummary,
    NIGHT_END,
    NIGHT_START,
    REGULAR_HOURS_PER_DAY,
    iso_week_key,
    shift_end_datetime,
    shift_start_datetime,
)


class ViolationType(str, Enum):
    """Types of compliance violations."""
    INSUFFICIENT_REST = "INSUFFICIENT_REST"
    INSUFFICIENT_WEEKLY_REST = "INSUFFICIENT_WEEKLY_REST"
    EXCESSIVE_WEEKLY_HOURS = "EXCESSIVE_WEEKLY_HOURS"
    EXCESSIVE_DAILY_HOURS = "EXCESSIVE_DAILY_HOURS"
    LEAVE_CONFLICT = "LEAVE_CONFLICT"
    EMPLOYEE_LIMIT = "EMPLOYEE_LIMIT"
    NIGHT_SHIFT_HOURS = "NIGHT_SHIFT_HOURS"
    NIGHT_SHIFT_SERIES = "NIGHT_SHIFT_SERIES"


class ViolationSeverity(str, Enum):
    """Severity levels for violations."""
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class LeaveStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    CANCELLED = "cancelled"


class RejectionReason(str, Enum):
    """Why a shift mutation was refused."""
    PERIOD_LOCKED = "PERIOD_LOCKED"
    SHIFT_OVERLAP = "SHIFT_OVERLAP"


# ============================================================================
# Schedule entities
# ============================================================================


@dataclass
class EmployeeProfile:
    """Per-employee working-time caps."""
    id: str
    max_hours_per_day: Optional[float] = None
    max_hours_per_week: Optional[float] = None
    can_work_nights: bool = True
    can_work_weekends: bool = True


@dataclass
class ShiftAssignment:
    """One planned work interval for one employee."""
    id: Optional[str]
    employee_id: str
    date: date
    start_time: str  # HH:MM format
    end_time: str  # HH:MM format
    schedule_id: Optional[str] = None
    position: Optional[str] = None
    notes: Optional[str] = None

    @property
    def start_datetime(self) -> datetime:
        """Get start as datetime."""
        return shift_start_datetime(self.date, self.start_time)

    @property
    def end_datetime(self) -> datetime:
        """Get end as datetime, on the following day for overnight shifts."""
        return shift_end_datetime(self.date, self.start_time, self.end_time)

    @property
    def week(self) -> str:
        return iso_week_key(self.date)

    @property
    def label(self) -> str:
        return f"{self.date.isoformat()} {self.start_time}-{self.end_time}"


@dataclass
class SchedulePeriod:
    """A container of shifts with a publication boundary."""
    id: str
    name: str
    published_until: Optional[date] = None


@dataclass
class LeaveRequest:
    """An absence owned by the leave-management module."""
    employee_id: str
    start_date: date
    end_date: date
    type: str
    status: str = LeaveStatus.PENDING.value

    @property
    def is_active(self) -> bool:
        return self.status in (LeaveStatus.PENDING.value, LeaveStatus.APPROVED.value)

    def covers(self, day: date) -> bool:
        return self.start_date <= day <= self.end_date

    @property
    def range_label(self) -> str:
        return f"{self.start_date.isoformat()} - {self.end_date.isoformat()}"


# ============================================================================
# Violation details, one per ViolationType
# ============================================================================


@dataclass(frozen=True)
class RestDetails:
    current_shift: str
    next_shift: str
    rest_hours: float
    required: float


@dataclass(frozen=True)
class WeeklyRestDetails:
    max_gap: float
    required: float


@dataclass(frozen=True)
class WeeklyHoursDetails:
    avg_weekly_hours: float
    total_hours: float
    weeks: int
    limit: float


@dataclass(frozen=True)
class DailyHoursDetails:
    hours: float
    shift: str
    limit: float


@dataclass(frozen=True)
class LeaveConflictDetails:
    leave_type: str
    leave_status: str
    leave_range: str
    shift: str


@dataclass(frozen=True)
class EmployeeLimitDetails:
    limit: str  # "max_hours_per_day", "max_hours_per_week", "can_work_nights", "can_work_weekends"
    allowed: Union[float, bool]
    actual: Union[float, bool]
    shift: Optional[str] = None


@dataclass(frozen=True)
class NightWorkDetails:
    hours: float
    consecutive_nights: int
    limit: float
    shift: Optional[str] = None


ViolationDetails = Union[
    RestDetails,
    WeeklyRestDetails,
    WeeklyHoursDetails,
    DailyHoursDetails,
    LeaveConflictDetails,
    EmployeeLimitDetails,
    NightWorkDetails,
]

DETAILS_BY_TYPE: dict[ViolationType, type] = {
    ViolationType.INSUFFICIENT_REST: RestDetails,
    ViolationType.INSUFFICIENT_WEEKLY_REST: WeeklyRestDetails,
    ViolationType.EXCESSIVE_WEEKLY_HOURS: WeeklyHoursDetails,
    ViolationType.EXCESSIVE_DAILY_HOURS: DailyHoursDetails,
    ViolationType.LEAVE_CONFLICT: LeaveConflictDetails,
    ViolationType.EMPLOYEE_LIMIT: EmployeeLimitDetails,
    ViolationType.NIGHT_SHIFT_HOURS: NightWorkDetails,
    ViolationType.NIGHT_SHIFT_SERIES: NightWorkDetails,
}


@dataclass(frozen=True)
class Violation:
    """A single compliance finding. Advisory, never blocks a mutation."""
    type: ViolationType
    severity: ViolationSeverity
    message: str
    details: ViolationDetails
    date: Optional[date_type] = None
    week: Optional[str] = None

    def __post_init__(self):
        expected = DETAILS_BY_TYPE[self.type]
        if not isinstance(self.details, expected):
            raise TypeError(
                f"{self.type.value} violation requires {expected.__name__}, "
                f"got {type(self.details).__name__}"
            )

    def to_dict(self) -> dict:
        """Convert to dictionary for API response."""
        return {
            "type": self.type.value,
            "severity": self.severity.value,
            "message": self.message,
            "date": self.date.isoformat() if self.date else None,
            "week": self.week,
            "details": asdict(self.details),
        }


# ============================================================================
# Rules and reports
# ============================================================================


@dataclass
class ComplianceRules:
    """Thresholds for the working-time rule set."""
    min_daily_rest_hours: float = 11.0
    min_weekly_rest_hours: float = 35.0
    max_average_weekly_hours: float = 48.0
    max_daily_hours: float = 12.0
    regular_hours_per_day: float = REGULAR_HOURS_PER_DAY
    night_start: str = NIGHT_START
    night_end: str = NIGHT_END
    max_night_shift_hours: float = 8.0
    max_consecutive_nights: int = 5

    @classmethod
    def from_doc(cls, doc) -> "ComplianceRules":
        """Create from a ComplianceRuleDoc."""
        return cls(
            min_daily_rest_hours=doc.min_daily_rest_hours,
            min_weekly_rest_hours=doc.min_weekly_rest_hours,
            max_average_weekly_hours=doc.max_average_weekly_hours,
            max_daily_hours=doc.max_daily_hours,
            regular_hours_per_day=doc.regular_hours_per_day,
            night_start=doc.night_start,
            night_end=doc.night_end,
            max_night_shift_hours=doc.max_night_shift_hours,
            max_consecutive_nights=doc.max_consecutive_nights,
        )


@dataclass
class ComplianceContext:
    """Input for one validation pass: one employee, one date range."""
    rules: ComplianceRules
    shifts: list[ShiftAssignment]  # Sorted by date and start time
    employee: Optional[EmployeeProfile] = None
    leave_requests: list[LeaveRequest] = field(default_factory=list)


@dataclass
class ComplianceSummary:
    total_violations: int = 0
    high_severity: int = 0
    medium_severity: int = 0
    low_severity: int = 0

    @classmethod
    def from_violations(cls, violations: list[Violation]) -> "ComplianceSummary":
        return cls(
            total_violations=len(violations),
            high_severity=sum(1 for v in violations if v.severity == ViolationSeverity.HIGH),
            medium_severity=sum(1 for v in violations if v.severity == ViolationSeverity.MEDIUM),
            low_severity=sum(1 for v in violations if v.severity == ViolationSeverity.LOW),
        )

    def to_dict(self) -> dict:
        return {
            "total_violations": self.total_violations,
            "high_severity": self.high_severity,
            "medium_severity": self.medium_severity,
            "low_severity": self.low_severity,
        }


@dataclass
class ComplianceReport:
    """Result of compliance validation. Built fresh on every call."""
    violations: list[Violation] = field(default_factory=list)
    hours: HoursSummary = field(default_factory=HoursSummary)
    average_weekly_hours: float = 0.0
    weeks: int = 0
    generated_at: Optional[datetime] = None

    @property
    def is_valid(self) -> bool:
        return not self.violations

    @property
    def summary(self) -> ComplianceSummary:
        return ComplianceSummary.from_violations(self.violations)

    def of_type(self, violation_type: ViolationType) -> list[Violation]:
        return [v for v in self.violations if v.type == violation_type]

    def to_dict(self) -> dict:
        """Convert to dictionary for API response."""
        return {
            "is_valid": self.is_valid,
            "violations": [v.to_dict() for v in self.violations],
            "summary": self.summary.to_dict(),
            "hours": self.hours.to_dict(),
            "average_weekly_hours": self.average_weekly_hours,
            "weeks": self.weeks,
            "generated_at": self.generated_at.isoformat() if self.generated_at else None,
        }


# ============================================================================
# Guard results
# ============================================================================


@dataclass(frozen=True)
class OverlapResult:
    conflict: bool
    conflicting_assignment_id: Optional[str] = None


@dataclass(frozen=True)
class Allowed:
    """The mutation may be committed."""
    allowed: bool = field(default=True, init=False)

    def raise_for_rejection(self) -> None:
        return None


@dataclass(frozen=True)
class Rejected:
    """The mutation must not be committed."""
    reason: RejectionReason
    error: IntegrityError
    allowed: bool = field(default=False, init=False)

    @property
    def details(self) -> dict:
        return self.error.to_dict()

    def raise_for_rejection(self) -> None:
        raise self.error


MutationDecision = Union[Allowed, Rejected]

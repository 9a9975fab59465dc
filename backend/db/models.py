from datetime import datetime
from typing import Optional

from beanie import Document, Indexed
from pydantic import Field
from pymongo import IndexModel

from integrity import ComplianceRules, EmployeeProfile, LeaveRequest, SchedulePeriod, ShiftAssignment
from utils import utc_now, parse_iso_date


class EmployeeDoc(Document):
    """A schedulable worker. Managed by the employee module, read-only here."""
    tenant_id: Indexed(str)
    name: str
    # Per-employee caps
    max_hours_per_day: Optional[float] = None
    max_hours_per_week: Optional[float] = None
    can_work_nights: bool = True
    can_work_weekends: bool = True
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    class Settings:
        name = "employees"

    def to_profile(self) -> EmployeeProfile:
        return EmployeeProfile(
            id=str(self.id),
            max_hours_per_day=self.max_hours_per_day,
            max_hours_per_week=self.max_hours_per_week,
            can_work_nights=self.can_work_nights,
            can_work_weekends=self.can_work_weekends,
        )


class SchedulePeriodDoc(Document):
    """
    Named container of shifts. Everything dated on or before published_until
    is frozen.
    """
    tenant_id: Indexed(str)
    name: str
    published_until: Optional[str] = None  # ISO: "2026-01-20"
    published_at: Optional[datetime] = None
    published_by: Optional[str] = None
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    class Settings:
        name = "schedule_periods"

    def to_domain(self) -> SchedulePeriod:
        return SchedulePeriod(
            id=str(self.id),
            name=self.name,
            published_until=parse_iso_date(self.published_until),
        )


class ShiftAssignmentDoc(Document):
    """
    Single employee's shift.
    This is the primary source of truth for schedule data.
    """
    tenant_id: str
    employee_id: Indexed(str)
    schedule_id: str
    date: Indexed(str)  # ISO: "2026-01-20"
    start_time: str  # "09:00"
    end_time: str  # "17:00", earlier than start_time for overnight shifts
    position: Optional[str] = None
    notes: Optional[str] = None

    # Audit
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)
    created_by: Optional[str] = None
    updated_by: Optional[str] = None

    class Settings:
        name = "shift_assignments"
        indexes = [
            IndexModel([("tenant_id", 1), ("employee_id", 1), ("date", 1)]),
            IndexModel([("tenant_id", 1), ("schedule_id", 1), ("date", 1)]),
        ]

    def to_domain(self) -> ShiftAssignment:
        return ShiftAssignment(
            id=str(self.id),
            employee_id=self.employee_id,
            schedule_id=self.schedule_id,
            date=parse_iso_date(self.date),
            start_time=self.start_time,
            end_time=self.end_time,
            position=self.position,
            notes=self.notes,
        )


class LeaveRequestDoc(Document):
    """Absence request. Owned by the leave module, read-only here."""
    tenant_id: str
    employee_id: Indexed(str)
    start_date: str  # ISO, inclusive
    end_date: str  # ISO, inclusive
    type: str  # "vacation", "sick", ...
    status: str = "pending"  # "pending", "approved", "rejected", "cancelled"
    created_at: datetime = Field(default_factory=utc_now)

    class Settings:
        name = "leave_requests"
        indexes = [
            IndexModel([("tenant_id", 1), ("employee_id", 1), ("start_date", 1)]),
        ]

    def to_domain(self) -> LeaveRequest:
        return LeaveRequest(
            employee_id=self.employee_id,
            start_date=parse_iso_date(self.start_date),
            end_date=parse_iso_date(self.end_date),
            type=self.type,
            status=self.status,
        )


class ComplianceRuleDoc(Document):
    """Per-tenant thresholds for the working-time rule set."""
    tenant_id: Indexed(str, unique=True)

    min_daily_rest_hours: float = 11.0
    min_weekly_rest_hours: float = 35.0
    max_average_weekly_hours: float = 48.0
    max_daily_hours: float = 12.0
    regular_hours_per_day: float = 8.0
    night_start: str = "22:00"
    night_end: str = "06:00"
    max_night_shift_hours: float = 8.0
    max_consecutive_nights: int = 5

    notes: Optional[str] = None  # Important caveats or exceptions
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    class Settings:
        name = "compliance_rules"

    def to_rules(self) -> ComplianceRules:
        return ComplianceRules.from_doc(self)

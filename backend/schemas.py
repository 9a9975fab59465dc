from datetime import date as date_type
from typing import Literal

from pydantic import BaseModel


class ShiftCreateRequest(BaseModel):
    schedule_id: str
    employee_id: str
    date: date_type
    start_time: str  # "HH:MM"
    end_time: str  # "HH:MM", earlier than start_time for overnight shifts
    position: str | None = None
    notes: str | None = None


class ShiftUpdateRequest(BaseModel):
    employee_id: str | None = None
    date: date_type | None = None
    start_time: str | None = None
    end_time: str | None = None
    position: str | None = None
    notes: str | None = None


class ShiftValidateRequest(ShiftCreateRequest):
    """Dry run of a create, or of an update when shift_id is set."""
    shift_id: str | None = None


class ShiftResponse(BaseModel):
    id: str
    schedule_id: str
    employee_id: str
    date: str
    start_time: str
    end_time: str
    hours: float
    position: str | None = None
    notes: str | None = None
    created_at: str
    updated_at: str


class ShiftMutationResponse(BaseModel):
    success: bool
    shift: ShiftResponse


class ShiftDeleteResponse(BaseModel):
    success: bool
    deleted_id: str


class MutationDecisionResponse(BaseModel):
    allowed: bool
    reason: Literal["PERIOD_LOCKED", "SHIFT_OVERLAP"] | None = None
    details: dict | None = None


class PublishRequest(BaseModel):
    published_until: date_type


class PublishResponse(BaseModel):
    schedule_id: str
    name: str
    published_until: str
    published_at: str


class ComplianceViolationSchema(BaseModel):
    """Compliance violation detected in an employee's schedule."""
    type: str  # "INSUFFICIENT_REST", "LEAVE_CONFLICT", etc.
    severity: str  # "high", "medium", "low"
    message: str
    date: str | None = None
    week: str | None = None  # ISO week, e.g. "2024-W10"
    details: dict


class ComplianceSummarySchema(BaseModel):
    total_violations: int
    high_severity: int
    medium_severity: int
    low_severity: int


class HoursSummarySchema(BaseModel):
    total_hours: float
    regular_hours: float
    overtime_hours: float
    night_hours: float
    weekend_hours: float
    days_worked: int


class ComplianceReportResponse(BaseModel):
    employee_id: str
    start_date: str
    end_date: str
    is_valid: bool
    violations: list[ComplianceViolationSchema]
    summary: ComplianceSummarySchema
    hours: HoursSummarySchema
    average_weekly_hours: float
    weeks: int
    generated_at: str | None = None

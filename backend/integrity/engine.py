"""Compliance validation engine that orchestrates all validators."""

import logging
from datetime import datetime
from typing import Iterable, Optional

from .time_accounting import aggregate, round_hours
from .types import (
    ComplianceContext,
    ComplianceReport,
    ComplianceRules,
    EmployeeProfile,
    LeaveRequest,
    ShiftAssignment,
)
from .validators import (
    AverageWeeklyHoursValidator,
    BaseValidator,
    DailyHoursValidator,
    DailyRestValidator,
    EmployeeLimitsValidator,
    LeaveConflictValidator,
    WeeklyRestValidator,
    group_by_week,
    sort_shifts,
)


def default_validators() -> list[BaseValidator]:
    """The shipped working-time rule set."""
    return [
        DailyRestValidator(),
        WeeklyRestValidator(),
        AverageWeeklyHoursValidator(),
        DailyHoursValidator(),
        EmployeeLimitsValidator(),
    ]


class ComplianceEngine:
    """
    Main engine for running compliance validation.

    Runs each validator independently over one employee's shifts and collects
    every violation into a single report. Swap ``validators`` to replace the
    rule set and ``rules`` to change its thresholds.
    """

    def __init__(
        self,
        rules: Optional[ComplianceRules] = None,
        validators: Optional[list[BaseValidator]] = None,
    ):
        self.rules = rules or ComplianceRules()
        self.validators = validators if validators is not None else default_validators()

    def validate(
        self,
        shifts: Iterable[ShiftAssignment],
        employee: Optional[EmployeeProfile] = None,
        leave_requests: Optional[Iterable[LeaveRequest]] = None,
        generated_at: Optional[datetime] = None,
    ) -> ComplianceReport:
        """
        Run all compliance validations.

        Args:
            shifts: One employee's shifts; sorted here if the caller did not
            employee: Optional per-employee caps
            leave_requests: Leave requests of the employee
            generated_at: Reference timestamp stamped on the report

        Returns:
            ComplianceReport with all violations found
        """
        context = ComplianceContext(
            rules=self.rules,
            shifts=sort_shifts(shifts),
            employee=employee,
            leave_requests=list(leave_requests or []),
        )

        violations = []
        for validator in self.validators:
            violations.extend(validator.validate(context))

        hours = aggregate(
            context.shifts,
            self.rules.regular_hours_per_day,
            self.rules.night_start,
            self.rules.night_end,
        )
        weeks = len(group_by_week(context.shifts))

        report = ComplianceReport(
            violations=violations,
            hours=hours,
            average_weekly_hours=round_hours(hours.total_hours / weeks, 2) if weeks else 0.0,
            weeks=weeks,
            generated_at=generated_at,
        )
        logging.debug(
            f"Compliance check over {len(context.shifts)} shift(s): {report.summary.total_violations} violation(s)"
        )
        return report


def compute_compliance(
    sorted_assignments: Iterable[ShiftAssignment],
    leave_requests: Iterable[LeaveRequest],
    generated_at: datetime,
    rules: Optional[ComplianceRules] = None,
    employee: Optional[EmployeeProfile] = None,
    validators: Optional[list[BaseValidator]] = None,
) -> ComplianceReport:
    """
    Rule set plus leave conflicts for one employee, as read by dashboards and exports.

    ``validators`` replaces the whole rule set, leave conflicts included; by
    default the shipped rules run followed by the leave conflict check.
    """
    if validators is None:
        validators = default_validators() + [LeaveConflictValidator()]

    engine = ComplianceEngine(rules=rules, validators=validators)
    return engine.validate(
        sorted_assignments,
        employee=employee,
        leave_requests=leave_requests,
        generated_at=generated_at,
    )

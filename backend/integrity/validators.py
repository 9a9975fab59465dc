"""Working-time rule validators and the leave conflict checker."""

from abc import ABC, abstractmethod
from collections import defaultdict
from typing import Iterable

from .time_accounting import aggregate, chronological_key, duration, is_night_shift, is_weekend, round_hours
from .types import (
    ComplianceContext,
    DailyHoursDetails,
    EmployeeLimitDetails,
    LeaveConflictDetails,
    LeaveRequest,
    NightWorkDetails,
    RestDetails,
    ShiftAssignment,
    Violation,
    ViolationSeverity,
    ViolationType,
    WeeklyHoursDetails,
    WeeklyRestDetails,
)


def sort_shifts(shifts: Iterable[ShiftAssignment]) -> list[ShiftAssignment]:
    return sorted(shifts, key=chronological_key)


def rest_hours_between(current: ShiftAssignment, following: ShiftAssignment) -> float:
    """Hours from the end of ``current`` to the start of ``following``."""
    return (following.start_datetime - current.end_datetime).total_seconds() / 3600


def group_by_week(shifts: Iterable[ShiftAssignment]) -> dict[str, list[ShiftAssignment]]:
    """ISO week label -> shifts, keeping the input order inside each week."""
    weeks: dict[str, list[ShiftAssignment]] = defaultdict(list)
    for shift in shifts:
        weeks[shift.week].append(shift)
    return dict(weeks)


class BaseValidator(ABC):
    """Base class for compliance validators."""

    @abstractmethod
    def validate(self, context: ComplianceContext) -> list[Violation]:
        """Return the violations found in the context's shifts."""
        pass


class DailyRestValidator(BaseValidator):
    """Minimum rest between consecutive shifts."""

    def validate(self, context: ComplianceContext) -> list[Violation]:
        required = context.rules.min_daily_rest_hours
        violations = []

        for current, following in zip(context.shifts, context.shifts[1:]):
            rest_hours = rest_hours_between(current, following)
            if rest_hours >= required:
                continue

            violations.append(Violation(
                type=ViolationType.INSUFFICIENT_REST,
                severity=ViolationSeverity.HIGH,
                message=f"Only {rest_hours:.1f}h rest between {current.label} and {following.label} (min {required:g}h required)",
                date=current.date,
                details=RestDetails(
                    current_shift=current.label,
                    next_shift=following.label,
                    rest_hours=round_hours(rest_hours, 1),
                    required=required,
                ),
            ))

        return violations


class WeeklyRestValidator(BaseValidator):
    """Minimum uninterrupted rest inside each ISO week.

    Only gaps between shifts grouped into the same week are measured; a rest
    period spanning the Sunday/Monday seam is not seen by either week.
    """

    def validate(self, context: ComplianceContext) -> list[Violation]:
        required = context.rules.min_weekly_rest_hours
        violations = []

        for week, shifts in group_by_week(context.shifts).items():
            if len(shifts) < 2:
                continue

            max_gap = max(
                0.0,
                *(rest_hours_between(current, following) for current, following in zip(shifts, shifts[1:])),
            )
            if max_gap >= required:
                continue

            violations.append(Violation(
                type=ViolationType.INSUFFICIENT_WEEKLY_REST,
                severity=ViolationSeverity.HIGH,
                message=f"No {required:g}h weekly rest in {week} (longest break: {max_gap:.1f}h)",
                week=week,
                details=WeeklyRestDetails(max_gap=round_hours(max_gap, 1), required=required),
            ))

        return violations


class AverageWeeklyHoursValidator(BaseValidator):
    """Average hours per week over the weeks present in the schedule."""

    def validate(self, context: ComplianceContext) -> list[Violation]:
        limit = context.rules.max_average_weekly_hours
        weeks = len(group_by_week(context.shifts))
        if weeks == 0:
            return []

        total_hours = aggregate(context.shifts, context.rules.regular_hours_per_day).total_hours
        avg_weekly_hours = total_hours / weeks
        if avg_weekly_hours <= limit:
            return []

        return [Violation(
            type=ViolationType.EXCESSIVE_WEEKLY_HOURS,
            severity=ViolationSeverity.MEDIUM,
            message=f"Average of {avg_weekly_hours:.1f}h per week over {weeks} week(s) exceeds max {limit:g}h",
            details=WeeklyHoursDetails(
                avg_weekly_hours=round_hours(avg_weekly_hours, 1),
                total_hours=total_hours,
                weeks=weeks,
                limit=limit,
            ),
        )]


class DailyHoursValidator(BaseValidator):
    """Maximum length of a single shift."""

    def validate(self, context: ComplianceContext) -> list[Violation]:
        limit = context.rules.max_daily_hours
        violations = []

        for shift in context.shifts:
            hours = duration(shift.start_time, shift.end_time)
            if hours <= limit:
                continue

            violations.append(Violation(
                type=ViolationType.EXCESSIVE_DAILY_HOURS,
                severity=ViolationSeverity.HIGH,
                message=f"Shift {shift.label} lasts {hours:.1f}h, exceeds max {limit:g}h",
                date=shift.date,
                details=DailyHoursDetails(
                    hours=round_hours(hours, 1),
                    shift=f"{shift.start_time}-{shift.end_time}",
                    limit=limit,
                ),
            ))

        return violations


class EmployeeLimitsValidator(BaseValidator):
    """Per-employee caps: hours per day and week, night and weekend work."""

    def validate(self, context: ComplianceContext) -> list[Violation]:
        employee = context.employee
        if employee is None:
            return []

        rules = context.rules
        violations = []

        for shift in context.shifts:
            hours = duration(shift.start_time, shift.end_time)

            if employee.max_hours_per_day is not None and hours > employee.max_hours_per_day:
                violations.append(self._violation(
                    shift, "max_hours_per_day", employee.max_hours_per_day, round_hours(hours, 1),
                    f"Shift {shift.label} lasts {hours:.1f}h, above the employee's daily cap of {employee.max_hours_per_day:g}h",
                ))

            if not employee.can_work_nights and is_night_shift(
                shift.start_time, shift.end_time, rules.night_start, rules.night_end
            ):
                violations.append(self._violation(
                    shift, "can_work_nights", False, True,
                    f"Shift {shift.label} is night work, which the employee is not allowed to do",
                ))

            if not employee.can_work_weekends and is_weekend(shift.date):
                violations.append(self._violation(
                    shift, "can_work_weekends", False, True,
                    f"Shift {shift.label} falls on a weekend, which the employee is not allowed to work",
                ))

        if employee.max_hours_per_week is not None:
            for week, shifts in group_by_week(context.shifts).items():
                week_hours = aggregate(shifts, rules.regular_hours_per_day).total_hours
                if week_hours <= employee.max_hours_per_week:
                    continue
                violations.append(Violation(
                    type=ViolationType.EMPLOYEE_LIMIT,
                    severity=ViolationSeverity.LOW,
                    message=f"{week_hours:.1f}h scheduled in {week}, above the employee's weekly cap of {employee.max_hours_per_week:g}h",
                    week=week,
                    details=EmployeeLimitDetails(
                        limit="max_hours_per_week",
                        allowed=employee.max_hours_per_week,
                        actual=week_hours,
                    ),
                ))

        return violations

    @staticmethod
    def _violation(shift, limit, allowed, actual, message) -> Violation:
        return Violation(
            type=ViolationType.EMPLOYEE_LIMIT,
            severity=ViolationSeverity.LOW,
            message=message,
            date=shift.date,
            details=EmployeeLimitDetails(limit=limit, allowed=allowed, actual=actual, shift=shift.label),
        )


class NightWorkValidator(BaseValidator):
    """Night shift length and long runs of consecutive night shifts.

    Not part of the default rule set.
    """

    def validate(self, context: ComplianceContext) -> list[Violation]:
        rules = context.rules
        violations = []
        consecutive = 0

        for shift in context.shifts:
            if not is_night_shift(shift.start_time, shift.end_time, rules.night_start, rules.night_end):
                consecutive = 0
                continue

            consecutive += 1
            hours = duration(shift.start_time, shift.end_time)

            if hours > rules.max_night_shift_hours:
                violations.append(Violation(
                    type=ViolationType.NIGHT_SHIFT_HOURS,
                    severity=ViolationSeverity.HIGH,
                    message=f"Night shift {shift.label} lasts {hours:.1f}h (limit {rules.max_night_shift_hours:g}h)",
                    date=shift.date,
                    details=NightWorkDetails(
                        hours=round_hours(hours, 1),
                        consecutive_nights=consecutive,
                        limit=rules.max_night_shift_hours,
                        shift=shift.label,
                    ),
                ))

            if consecutive > rules.max_consecutive_nights:
                violations.append(Violation(
                    type=ViolationType.NIGHT_SHIFT_SERIES,
                    severity=ViolationSeverity.MEDIUM,
                    message=f"{consecutive} consecutive night shifts up to {shift.date.isoformat()}",
                    date=shift.date,
                    details=NightWorkDetails(
                        hours=round_hours(hours, 1),
                        consecutive_nights=consecutive,
                        limit=rules.max_consecutive_nights,
                        shift=shift.label,
                    ),
                ))

        return violations


def check_leave_conflicts(
    assignments: Iterable[ShiftAssignment],
    leave_requests: Iterable[LeaveRequest],
) -> list[Violation]:
    """
    Flag shifts scheduled on a day covered by a pending or approved leave.

    Dates are compared inclusively and without time of day. Whether a pending
    leave is a hard error is left to the caller.
    """
    leaves = [leave for leave in leave_requests if leave.is_active]
    violations = []

    for shift in assignments:
        for leave in leaves:
            if not leave.covers(shift.date):
                continue

            violations.append(Violation(
                type=ViolationType.LEAVE_CONFLICT,
                severity=ViolationSeverity.HIGH,
                message=f"Shift {shift.label} is scheduled during {leave.status} {leave.type} leave ({leave.range_label})",
                date=shift.date,
                details=LeaveConflictDetails(
                    leave_type=leave.type,
                    leave_status=leave.status,
                    leave_range=leave.range_label,
                    shift=shift.label,
                ),
            ))

    return violations


class LeaveConflictValidator(BaseValidator):
    """Adapter that runs check_leave_conflicts inside a ComplianceEngine."""

    def validate(self, context: ComplianceContext) -> list[Violation]:
        return check_leave_conflicts(context.shifts, context.leave_requests)

"""Unit tests for compliance validators.

Tests daily rest, weekly rest, average weekly hours, maximum shift length,
per-employee caps and night work, plus the engine that runs them.
"""

import pytest
from datetime import datetime, timezone

from integrity import (
    ComplianceEngine,
    ComplianceRules,
    EmployeeProfile,
    Violation,
    ViolationSeverity,
    ViolationType,
    compute_compliance,
)
from integrity.types import DailyHoursDetails, RestDetails, WeeklyRestDetails
from integrity.validators import (
    AverageWeeklyHoursValidator,
    DailyHoursValidator,
    DailyRestValidator,
    EmployeeLimitsValidator,
    NightWorkValidator,
    WeeklyRestValidator,
)


# ============================================================================
# Daily rest
# ============================================================================


class TestDailyRestValidator:

    def test_short_rest_between_days_flagged(self, make_shift, make_context):
        context = make_context([
            make_shift("2024-03-04", "14:00", "22:00"),
            make_shift("2024-03-05", "08:00", "16:00"),
        ])

        violations = DailyRestValidator().validate(context)

        assert len(violations) == 1
        violation = violations[0]
        assert violation.type == ViolationType.INSUFFICIENT_REST
        assert violation.severity == ViolationSeverity.HIGH
        assert violation.details.rest_hours == 10.0
        assert violation.details.required == 11.0
        assert violation.details.current_shift == "2024-03-04 14:00-22:00"
        assert violation.details.next_shift == "2024-03-05 08:00-16:00"

    def test_enough_rest_passes(self, make_shift, make_context):
        context = make_context([
            make_shift("2024-03-04", "09:00", "17:00"),
            make_shift("2024-03-05", "09:00", "17:00"),
        ])

        assert DailyRestValidator().validate(context) == []

    def test_exactly_minimum_rest_passes(self, make_shift, make_context):
        context = make_context([
            make_shift("2024-03-04", "13:00", "21:00"),
            make_shift("2024-03-05", "08:00", "16:00"),
        ])

        assert DailyRestValidator().validate(context) == []

    def test_overnight_shift_end_rolls_over(self, make_shift, make_context):
        context = make_context([
            make_shift("2024-03-04", "22:00", "06:00"),
            make_shift("2024-03-05", "14:00", "22:00"),
        ])

        violations = DailyRestValidator().validate(context)

        assert len(violations) == 1
        assert violations[0].details.rest_hours == 8.0

    def test_custom_threshold(self, make_shift, make_context):
        context = make_context(
            [
                make_shift("2024-03-04", "14:00", "22:00"),
                make_shift("2024-03-05", "08:00", "16:00"),
            ],
            rules=ComplianceRules(min_daily_rest_hours=8.0),
        )

        assert DailyRestValidator().validate(context) == []


# ============================================================================
# Weekly rest
# ============================================================================


class TestWeeklyRestValidator:

    def test_week_without_long_break_flagged(self, make_shift, make_context):
        context = make_context([
            make_shift(f"2024-03-0{day}", "08:00", "18:00") for day in range(4, 8)
        ])

        violations = WeeklyRestValidator().validate(context)

        assert len(violations) == 1
        assert violations[0].type == ViolationType.INSUFFICIENT_WEEKLY_REST
        assert violations[0].week == "2024-W10"
        assert violations[0].details == WeeklyRestDetails(max_gap=14.0, required=35.0)

    def test_long_break_inside_week_passes(self, make_shift, make_context):
        context = make_context([
            make_shift("2024-03-04", "09:00", "17:00"),
            make_shift("2024-03-07", "09:00", "17:00"),
        ])

        assert WeeklyRestValidator().validate(context) == []

    def test_single_shift_week_is_not_measured(self, make_shift, make_context):
        context = make_context([make_shift("2024-03-04", "09:00", "17:00")])

        assert WeeklyRestValidator().validate(context) == []

    def test_gap_across_week_seam_is_not_counted(self, make_shift, make_context):
        # Sunday -> Monday break belongs to neither week
        context = make_context([
            make_shift("2024-03-09", "08:00", "18:00"),
            make_shift("2024-03-10", "08:00", "18:00"),
            make_shift("2024-03-13", "08:00", "18:00"),
        ])

        violations = WeeklyRestValidator().validate(context)

        assert [v.week for v in violations] == ["2024-W10"]


# ============================================================================
# Hours
# ============================================================================


class TestAverageWeeklyHoursValidator:

    def test_forty_hours_in_one_week_passes(self, make_shift, make_context):
        context = make_context([
            make_shift(f"2024-03-0{day}", "08:00", "18:00") for day in range(4, 8)
        ])

        assert AverageWeeklyHoursValidator().validate(context) == []

    def test_sixty_hours_in_one_week_flagged(self, make_shift, make_context):
        context = make_context([
            make_shift(f"2024-03-0{day}", "08:00", "18:00") for day in range(4, 10)
        ])

        violations = AverageWeeklyHoursValidator().validate(context)

        assert len(violations) == 1
        assert violations[0].severity == ViolationSeverity.MEDIUM
        assert violations[0].details.avg_weekly_hours == 60.0
        assert violations[0].details.total_hours == 60.0
        assert violations[0].details.weeks == 1

    def test_average_spreads_over_weeks(self, make_shift, make_context):
        week_one = [make_shift(f"2024-03-0{day}", "08:00", "18:00") for day in range(4, 10)]
        week_two = [make_shift(f"2024-03-{day}", "08:00", "18:00") for day in range(11, 14)]

        context = make_context(week_one + week_two)

        assert AverageWeeklyHoursValidator().validate(context) == []

    def test_empty_schedule(self, make_context):
        assert AverageWeeklyHoursValidator().validate(make_context([])) == []


class TestDailyHoursValidator:

    def test_shift_over_twelve_hours_flagged(self, make_shift, make_context):
        context = make_context([make_shift("2024-03-04", "06:00", "19:00")])

        violations = DailyHoursValidator().validate(context)

        assert len(violations) == 1
        assert violations[0].details == DailyHoursDetails(hours=13.0, shift="06:00-19:00", limit=12.0)

    def test_exactly_twelve_hours_passes(self, make_shift, make_context):
        context = make_context([make_shift("2024-03-04", "06:00", "18:00")])

        assert DailyHoursValidator().validate(context) == []


# ============================================================================
# Employee caps and night work
# ============================================================================


class TestEmployeeLimitsValidator:

    def test_no_profile_no_findings(self, make_shift, make_context):
        context = make_context([make_shift("2024-03-04", "06:00", "20:00")])

        assert EmployeeLimitsValidator().validate(context) == []

    def test_daily_cap(self, make_shift, make_context):
        employee = EmployeeProfile(id="emp-1", max_hours_per_day=6)
        context = make_context([make_shift("2024-03-04", "09:00", "17:00")], employee=employee)

        violations = EmployeeLimitsValidator().validate(context)

        assert len(violations) == 1
        assert violations[0].type == ViolationType.EMPLOYEE_LIMIT
        assert violations[0].severity == ViolationSeverity.LOW
        assert violations[0].details.limit == "max_hours_per_day"
        assert violations[0].details.actual == 8.0

    def test_weekly_cap(self, make_shift, make_context):
        employee = EmployeeProfile(id="emp-1", max_hours_per_week=20)
        context = make_context(
            [make_shift(f"2024-03-0{day}", "09:00", "17:00") for day in range(4, 7)],
            employee=employee,
        )

        violations = EmployeeLimitsValidator().validate(context)

        assert len(violations) == 1
        assert violations[0].week == "2024-W10"
        assert violations[0].details.actual == 24.0

    def test_night_and_weekend_restrictions(self, make_shift, make_context):
        employee = EmployeeProfile(id="emp-1", can_work_nights=False, can_work_weekends=False)
        context = make_context(
            [
                make_shift("2024-03-05", "22:00", "06:00"),  # Tuesday night
                make_shift("2024-03-09", "10:00", "16:00"),  # Saturday
            ],
            employee=employee,
        )

        violations = EmployeeLimitsValidator().validate(context)

        assert sorted(v.details.limit for v in violations) == ["can_work_nights", "can_work_weekends"]


class TestNightWorkValidator:

    def test_long_night_shift_flagged(self, make_shift, make_context):
        context = make_context([make_shift("2024-03-04", "22:00", "08:00")])

        violations = NightWorkValidator().validate(context)

        assert [v.type for v in violations] == [ViolationType.NIGHT_SHIFT_HOURS]
        assert violations[0].details.hours == 10.0

    def test_sixth_consecutive_night_flagged(self, make_shift, make_context):
        context = make_context([
            make_shift(f"2024-03-0{day}", "22:00", "06:00") for day in range(3, 9)
        ])

        violations = NightWorkValidator().validate(context)

        assert len(violations) == 1
        assert violations[0].type == ViolationType.NIGHT_SHIFT_SERIES
        assert violations[0].details.consecutive_nights == 6

    def test_day_shift_resets_series(self, make_shift, make_context):
        shifts = [make_shift(f"2024-03-0{day}", "22:00", "06:00") for day in range(1, 4)]
        shifts.append(make_shift("2024-03-05", "12:00", "20:00"))
        shifts += [make_shift(f"2024-03-0{day}", "22:00", "06:00") for day in range(6, 9)]

        assert NightWorkValidator().validate(make_context(shifts)) == []

    def test_not_in_default_rule_set(self, make_shift):
        report = ComplianceEngine().validate([make_shift("2024-03-04", "22:00", "08:00")])

        assert report.of_type(ViolationType.NIGHT_SHIFT_HOURS) == []


# ============================================================================
# Engine and report
# ============================================================================


class TestComplianceEngine:

    def test_rest_violation_reported_once(self, make_shift, reference_time):
        report = compute_compliance(
            [
                make_shift("2024-03-04", "14:00", "22:00"),
                make_shift("2024-03-05", "08:00", "16:00"),
            ],
            [],
            generated_at=reference_time,
        )

        rest = report.of_type(ViolationType.INSUFFICIENT_REST)
        assert len(rest) == 1
        assert rest[0].details.rest_hours == 10.0
        assert not report.is_valid

    def test_forty_hour_week_average(self, make_shift, reference_time):
        report = compute_compliance(
            [make_shift(f"2024-03-0{day}", "08:00", "18:00") for day in range(4, 8)],
            [],
            generated_at=reference_time,
        )

        assert report.average_weekly_hours == 40.0
        assert report.weeks == 1
        assert report.of_type(ViolationType.EXCESSIVE_WEEKLY_HOURS) == []

    def test_unsorted_input_is_sorted(self, make_shift, reference_time):
        shifts = [
            make_shift("2024-03-05", "08:00", "16:00"),
            make_shift("2024-03-04", "14:00", "22:00"),
        ]

        report = compute_compliance(shifts, [], generated_at=reference_time)

        assert len(report.of_type(ViolationType.INSUFFICIENT_REST)) == 1

    def test_single_digit_hours_sorted_by_clock_time(self, make_shift, reference_time):
        report = compute_compliance(
            [
                make_shift("2024-03-04", "10:00", "12:00"),
                make_shift("2024-03-04", "8:00", "9:00"),
            ],
            [],
            generated_at=reference_time,
        )

        rest = report.of_type(ViolationType.INSUFFICIENT_REST)
        assert len(rest) == 1
        assert rest[0].details.current_shift == "2024-03-04 8:00-9:00"
        assert rest[0].details.next_shift == "2024-03-04 10:00-12:00"
        assert rest[0].details.rest_hours == 1.0

    def test_single_digit_hours_do_not_hide_weekly_rest(self, make_shift, reference_time):
        shifts = [make_shift(f"2024-03-0{day}", "07:00", "08:00") for day in range(4, 10)]
        shifts += [
            make_shift("2024-03-10", "20:00", "21:00"),
            make_shift("2024-03-10", "9:00", "10:00"),
        ]

        report = compute_compliance(shifts, [], generated_at=reference_time)

        weekly = report.of_type(ViolationType.INSUFFICIENT_WEEKLY_REST)
        assert len(weekly) == 1
        assert weekly[0].details.max_gap == 25.0

    def test_summary_counts(self, make_shift, reference_time):
        report = compute_compliance(
            [
                make_shift("2024-03-04", "14:00", "22:00"),
                make_shift("2024-03-05", "06:00", "19:00"),
            ],
            [],
            generated_at=reference_time,
            employee=EmployeeProfile(id="emp-1", max_hours_per_day=10),
        )

        summary = report.summary
        # Short rest, no weekly rest, 13h shift, plus the employee's daily cap
        assert summary.high_severity == 3
        assert summary.low_severity == 1
        assert summary.total_violations == 4

    def test_report_is_deterministic(self, make_shift, make_leave, reference_time):
        shifts = [
            make_shift("2024-03-04", "14:00", "22:00"),
            make_shift("2024-03-05", "08:00", "16:00"),
            make_shift("2024-03-07", "22:00", "06:00"),
        ]
        leaves = [make_leave("2024-03-07", "2024-03-07")]

        first = compute_compliance(shifts, leaves, generated_at=reference_time)
        second = compute_compliance(list(reversed(shifts)), leaves, generated_at=reference_time)

        assert first.to_dict() == second.to_dict()
        assert first.to_dict()["generated_at"] == "2024-03-11T08:00:00+00:00"

    def test_custom_validator_list(self, make_shift):
        engine = ComplianceEngine(validators=[DailyHoursValidator()])

        report = engine.validate([
            make_shift("2024-03-04", "14:00", "22:00"),
            make_shift("2024-03-05", "06:00", "19:00"),
        ])

        assert [v.type for v in report.violations] == [ViolationType.EXCESSIVE_DAILY_HOURS]

    def test_compute_compliance_accepts_rule_set(self, make_shift, make_leave, reference_time):
        shifts = [
            make_shift("2024-03-04", "22:00", "08:00"),
            make_shift("2024-03-05", "09:00", "17:00"),
        ]
        leaves = [make_leave("2024-03-04", "2024-03-04")]

        report = compute_compliance(
            shifts,
            leaves,
            generated_at=reference_time,
            validators=[NightWorkValidator()],
        )

        assert [v.type for v in report.violations] == [ViolationType.NIGHT_SHIFT_HOURS]
        assert report.weeks == 1

    def test_empty_schedule_is_valid(self):
        report = ComplianceEngine().validate([])

        assert report.is_valid
        assert report.weeks == 0
        assert report.average_weekly_hours == 0.0

    def test_to_dict_shape(self, make_shift, reference_time):
        report = compute_compliance(
            [make_shift("2024-03-04", "06:00", "19:00")],
            [],
            generated_at=reference_time,
        )

        data = report.to_dict()

        assert data["hours"]["total_hours"] == 13.0
        assert data["hours"]["overtime_hours"] == 5.0
        violation = data["violations"][0]
        assert violation["type"] == "EXCESSIVE_DAILY_HOURS"
        assert violation["date"] == "2024-03-04"
        assert violation["details"] == {"hours": 13.0, "shift": "06:00-19:00", "limit": 12.0}


class TestViolation:

    def test_details_must_match_type(self):
        with pytest.raises(TypeError):
            Violation(
                type=ViolationType.INSUFFICIENT_REST,
                severity=ViolationSeverity.HIGH,
                message="mismatch",
                details=DailyHoursDetails(hours=13.0, shift="06:00-19:00", limit=12.0),
            )

    def test_matching_details_accepted(self):
        violation = Violation(
            type=ViolationType.INSUFFICIENT_REST,
            severity=ViolationSeverity.HIGH,
            message="short rest",
            details=RestDetails(
                current_shift="2024-03-04 14:00-22:00",
                next_shift="2024-03-05 08:00-16:00",
                rest_hours=10.0,
                required=11.0,
            ),
        )

        assert violation.to_dict()["details"]["rest_hours"] == 10.0
        assert violation.to_dict()["date"] is None

    def test_generated_at_is_caller_supplied(self):
        stamp = datetime(2030, 1, 1, tzinfo=timezone.utc)

        report = compute_compliance([], [], generated_at=stamp)

        assert report.generated_at == stamp

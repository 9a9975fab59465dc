"""Shift mutations and compliance reads on top of the integrity core.

Every mutation follows the same sequence: take the mutation lock, read the
schedule period and the employee's neighbouring shifts, run the publish-lock
and overlap guards, write, release.
"""

import logging
from datetime import date, datetime, timedelta
from typing import Optional

from beanie import PydanticObjectId
from bson.errors import InvalidId

from db import (
    ComplianceRuleDoc,
    EmployeeDoc,
    LeaveRequestDoc,
    SchedulePeriodDoc,
    ShiftAssignmentDoc,
    mutation_lock,
    schedule_lock,
)
from integrity import (
    ComplianceReport,
    ComplianceRules,
    InvalidShiftTimeError,
    MutationDecision,
    ShiftAssignment,
    advance_publish_boundary,
    compute_compliance,
    validate_deletion,
    validate_mutation,
)
from integrity.time_accounting import chronological_key, duration_minutes
from utils import utc_now


class ResourceNotFoundError(LookupError):
    """A document does not exist or belongs to another tenant."""


def _object_id(value: str, what: str) -> PydanticObjectId:
    try:
        return PydanticObjectId(value)
    except (InvalidId, TypeError):
        raise ResourceNotFoundError(f"{what} not found")


async def get_schedule_period(tenant_id: str, schedule_id: str) -> SchedulePeriodDoc:
    period = await SchedulePeriodDoc.get(_object_id(schedule_id, "Schedule"))
    if not period or period.tenant_id != tenant_id:
        raise ResourceNotFoundError("Schedule not found")
    return period


async def get_shift(tenant_id: str, shift_id: str) -> ShiftAssignmentDoc:
    shift = await ShiftAssignmentDoc.get(_object_id(shift_id, "Shift"))
    if not shift or shift.tenant_id != tenant_id:
        raise ResourceNotFoundError("Shift not found")
    return shift


async def get_employee(tenant_id: str, employee_id: str) -> EmployeeDoc:
    employee = await EmployeeDoc.get(_object_id(employee_id, "Employee"))
    if not employee or employee.tenant_id != tenant_id:
        raise ResourceNotFoundError("Employee not found")
    return employee


async def employee_shifts(
    tenant_id: str,
    employee_id: str,
    start_date: date,
    end_date: date,
) -> list[ShiftAssignment]:
    """Shifts of one employee dated within [start_date, end_date], across all schedules."""
    docs = await ShiftAssignmentDoc.find({
        "tenant_id": tenant_id,
        "employee_id": employee_id,
        "date": {"$gte": start_date.isoformat(), "$lte": end_date.isoformat()},
    }).to_list()
    return sorted((doc.to_domain() for doc in docs), key=chronological_key)


async def _neighbouring_shifts(tenant_id: str, employee_id: str, day: date) -> list[ShiftAssignment]:
    # An overnight shift reaches at most into the following day
    return await employee_shifts(tenant_id, employee_id, day - timedelta(days=1), day + timedelta(days=1))


def _check_times(start_time: str, end_time: str) -> None:
    if duration_minutes(start_time, end_time) == 0:
        raise InvalidShiftTimeError(f"Shift {start_time}-{end_time} has zero duration")


async def _decide(
    tenant_id: str,
    candidate: ShiftAssignment,
    period: SchedulePeriodDoc,
    is_update: bool,
) -> MutationDecision:
    existing = await _neighbouring_shifts(tenant_id, candidate.employee_id, candidate.date)
    return validate_mutation(
        candidate,
        existing,
        period.to_domain().published_until,
        is_update=is_update,
        exclude_id=candidate.id if is_update else None,
    )


async def preview_mutation(
    tenant_id: str,
    candidate: ShiftAssignment,
    is_update: bool = False,
) -> MutationDecision:
    """Run the guards without writing. Takes no lock, so the answer is advisory."""
    _check_times(candidate.start_time, candidate.end_time)
    period = await get_schedule_period(tenant_id, candidate.schedule_id)
    return await _decide(tenant_id, candidate, period, is_update)


async def create_shift(tenant_id: str, actor_id: str, candidate: ShiftAssignment) -> ShiftAssignmentDoc:
    """
    Create a shift after the publish-lock and overlap guards pass.

    Raises:
        LockedPeriodError: candidate date is on or before the publish boundary
        ConflictError: candidate overlaps another shift of the employee
        InvalidShiftTimeError: malformed or zero-length times
        ResourceNotFoundError: unknown schedule
    """
    _check_times(candidate.start_time, candidate.end_time)

    async with mutation_lock(tenant_id, candidate.schedule_id, candidate.employee_id):
        await get_employee(tenant_id, candidate.employee_id)
        period = await get_schedule_period(tenant_id, candidate.schedule_id)
        decision = await _decide(tenant_id, candidate, period, is_update=False)
        if not decision.allowed:
            logging.warning(f"Create rejected for employee {candidate.employee_id} on {candidate.date}: {decision.reason.value}")
            decision.raise_for_rejection()

        shift = ShiftAssignmentDoc(
            tenant_id=tenant_id,
            employee_id=candidate.employee_id,
            schedule_id=candidate.schedule_id,
            date=candidate.date.isoformat(),
            start_time=candidate.start_time,
            end_time=candidate.end_time,
            position=candidate.position,
            notes=candidate.notes,
            created_by=actor_id,
            updated_by=actor_id,
        )
        await shift.insert()

    logging.info(f"Created shift {shift.id} for employee {candidate.employee_id}: {candidate.label}")
    return shift


async def update_shift(tenant_id: str, actor_id: str, shift_id: str, changes: dict) -> ShiftAssignmentDoc:
    """
    Apply ``changes`` (employee_id, date, start_time, end_time, position, notes)
    to a shift. The lock is evaluated against the new date only.

    The lock set is chosen from an unlocked read of the shift's owner. When the
    locked re-read shows another update reassigned the shift in between, the
    locks are released and taken again for the new owner.
    """
    while True:
        current = await get_shift(tenant_id, shift_id)
        new_employee_id = changes.get("employee_id") or current.employee_id

        async with mutation_lock(tenant_id, current.schedule_id, current.employee_id, new_employee_id):
            shift = await get_shift(tenant_id, shift_id)
            if shift.employee_id != current.employee_id:
                logging.info(f"Shift {shift_id} was reassigned to {shift.employee_id} meanwhile, retrying update")
                continue

            return await _apply_update(tenant_id, actor_id, shift, changes)


async def _apply_update(tenant_id: str, actor_id: str, shift: ShiftAssignmentDoc, changes: dict) -> ShiftAssignmentDoc:
    """Validate and write an update; the caller holds the locks of every employee involved."""
    before = shift.to_domain()
    candidate = ShiftAssignment(
        id=before.id,
        employee_id=changes.get("employee_id") or before.employee_id,
        schedule_id=before.schedule_id,
        date=changes.get("date") or before.date,
        start_time=changes.get("start_time") or before.start_time,
        end_time=changes.get("end_time") or before.end_time,
        position=changes.get("position", before.position),
        notes=changes.get("notes", before.notes),
    )
    _check_times(candidate.start_time, candidate.end_time)
    if candidate.employee_id != before.employee_id:
        await get_employee(tenant_id, candidate.employee_id)

    period = await get_schedule_period(tenant_id, candidate.schedule_id)
    decision = await _decide(tenant_id, candidate, period, is_update=True)
    if not decision.allowed:
        logging.warning(f"Update of shift {before.id} rejected: {decision.reason.value}")
        decision.raise_for_rejection()

    await shift.set({
        "employee_id": candidate.employee_id,
        "date": candidate.date.isoformat(),
        "start_time": candidate.start_time,
        "end_time": candidate.end_time,
        "position": candidate.position,
        "notes": candidate.notes,
        "updated_by": actor_id,
        "updated_at": utc_now(),
    })

    logging.info(f"Updated shift {before.id}: {before.label} -> {candidate.label}")
    return shift


async def delete_shift(tenant_id: str, actor_id: str, shift_id: str) -> str:
    """Delete a shift unless its current date is inside the published window."""
    current = await get_shift(tenant_id, shift_id)

    async with mutation_lock(tenant_id, current.schedule_id, current.employee_id):
        shift = await get_shift(tenant_id, shift_id)
        period = await get_schedule_period(tenant_id, shift.schedule_id)
        decision = validate_deletion(shift.to_domain(), period.to_domain().published_until)
        if not decision.allowed:
            logging.warning(f"Delete of shift {shift_id} rejected: {decision.reason.value}")
            decision.raise_for_rejection()

        await shift.delete()

    logging.info(f"Deleted shift {shift_id} (by {actor_id})")
    return shift_id


async def publish_schedule(
    tenant_id: str,
    actor_id: str,
    schedule_id: str,
    published_until: date,
) -> SchedulePeriodDoc:
    """Move the schedule's publish boundary forward; it never moves back."""
    async with schedule_lock(tenant_id, schedule_id):
        period = await get_schedule_period(tenant_id, schedule_id)
        boundary = advance_publish_boundary(period.to_domain().published_until, published_until)

        now = utc_now()
        await period.set({
            "published_until": boundary.isoformat(),
            "published_at": now,
            "published_by": actor_id,
            "updated_at": now,
        })

    logging.info(f"Schedule {schedule_id} published until {boundary.isoformat()} by {actor_id}")
    return period


async def get_compliance_rules(tenant_id: str) -> ComplianceRules:
    rule_doc = await ComplianceRuleDoc.find_one({"tenant_id": tenant_id})
    if rule_doc:
        return rule_doc.to_rules()
    return ComplianceRules()


async def employee_compliance(
    tenant_id: str,
    employee_id: str,
    start_date: date,
    end_date: date,
    generated_at: Optional[datetime] = None,
) -> ComplianceReport:
    """Compliance and leave-conflict report for one employee over a date range."""
    employee = await get_employee(tenant_id, employee_id)
    shifts = await employee_shifts(tenant_id, employee_id, start_date, end_date)

    leave_docs = await LeaveRequestDoc.find({
        "tenant_id": tenant_id,
        "employee_id": employee_id,
        "start_date": {"$lte": end_date.isoformat()},
        "end_date": {"$gte": start_date.isoformat()},
    }).to_list()

    rules = await get_compliance_rules(tenant_id)
    report = compute_compliance(
        shifts,
        [doc.to_domain() for doc in leave_docs],
        generated_at=generated_at or utc_now(),
        rules=rules,
        employee=employee.to_profile(),
    )

    logging.debug(
        f"Compliance for employee {employee_id} {start_date}..{end_date}: "
        f"{report.summary.total_violations} violation(s)"
    )
    return report

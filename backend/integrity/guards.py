"""Mutation guards: publish lock first, then overlap.

Both guards are pure. The caller must read the existing assignments and the
publish boundary inside the same per-employee critical section as the write
that follows, otherwise two concurrent requests can both pass.
"""

import logging
from datetime import date, datetime, timedelta
from typing import Iterable, Optional

from .errors import ConflictError, LockedPeriodError, PublishBoundaryError
from .time_accounting import MINUTES_PER_DAY, chronological_key, parse_time, shift_start_datetime
from .types import (
    Allowed,
    MutationDecision,
    OverlapResult,
    Rejected,
    RejectionReason,
    ShiftAssignment,
)


def occupied_interval(shift: ShiftAssignment) -> tuple[datetime, datetime]:
    """Half-open [start, end) interval the shift occupies.

    When end <= start the end is pushed 24h forward, so a zero-length shift
    occupies a full day instead of nothing.
    """
    start = parse_time(shift.start_time)
    end = parse_time(shift.end_time)
    if end <= start:
        end += MINUTES_PER_DAY

    start_dt = shift_start_datetime(shift.date, shift.start_time)
    return start_dt, start_dt + timedelta(minutes=end - start)


def intervals_overlap(a: ShiftAssignment, b: ShiftAssignment) -> bool:
    """Strict half-open overlap test; touching endpoints do not overlap."""
    a_start, a_end = occupied_interval(a)
    b_start, b_end = occupied_interval(b)
    return a_start < b_end and b_start < a_end


def check_overlap(
    candidate: ShiftAssignment,
    existing: Iterable[ShiftAssignment],
    exclude_id: Optional[str] = None,
) -> OverlapResult:
    """
    Look for an existing shift of the same employee that overlaps the candidate.

    Args:
        candidate: The shift being created or updated
        existing: Existing shifts of the employee (others are ignored)
        exclude_id: Assignment to leave out of the comparison, i.e. the one being updated

    Returns:
        OverlapResult naming the first conflicting assignment, if any
    """
    for other in sorted(existing, key=chronological_key):
        if other.employee_id != candidate.employee_id:
            continue
        if exclude_id is not None and other.id == exclude_id:
            continue
        if intervals_overlap(candidate, other):
            return OverlapResult(conflict=True, conflicting_assignment_id=other.id)

    return OverlapResult(conflict=False)


def ensure_no_overlap(
    candidate: ShiftAssignment,
    existing: Iterable[ShiftAssignment],
    exclude_id: Optional[str] = None,
) -> None:
    result = check_overlap(candidate, existing, exclude_id)
    if result.conflict:
        raise ConflictError(result.conflicting_assignment_id)


def check_publish_lock(effective_date: date, published_until: Optional[date]) -> bool:
    """True when a mutation effective on ``effective_date`` is allowed."""
    if published_until is None:
        return True
    return effective_date > published_until


def ensure_not_locked(effective_date: date, published_until: Optional[date]) -> None:
    if not check_publish_lock(effective_date, published_until):
        raise LockedPeriodError(published_until, effective_date)


def advance_publish_boundary(current: Optional[date], requested: date) -> date:
    """Return the new published-until date; the boundary never moves back."""
    if current is not None and requested < current:
        raise PublishBoundaryError(current, requested)
    return requested


def validate_mutation(
    candidate: ShiftAssignment,
    existing_for_employee: Iterable[ShiftAssignment],
    published_until: Optional[date],
    is_update: bool = False,
    exclude_id: Optional[str] = None,
) -> MutationDecision:
    """
    Decide whether a create or update may be committed.

    The publish lock is evaluated against the candidate's (new) date. The
    overlap check only runs when the lock passes, so a locked and overlapping
    candidate is reported as locked.

    Args:
        candidate: The shift as it would be stored
        existing_for_employee: Current shifts of the candidate's employee
        published_until: Publish boundary of the owning schedule period
        is_update: Whether the candidate replaces an existing assignment
        exclude_id: Assignment to ignore; defaults to the candidate id on update

    Returns:
        Allowed, or Rejected carrying the matching IntegrityError
    """
    if not check_publish_lock(candidate.date, published_until):
        logging.debug(f"Shift on {candidate.date} rejected: published until {published_until}")
        return Rejected(
            reason=RejectionReason.PERIOD_LOCKED,
            error=LockedPeriodError(published_until, candidate.date),
        )

    if is_update and exclude_id is None:
        exclude_id = candidate.id

    overlap = check_overlap(candidate, existing_for_employee, exclude_id)
    if overlap.conflict:
        logging.debug(
            f"Shift {candidate.label} for {candidate.employee_id} overlaps {overlap.conflicting_assignment_id}"
        )
        return Rejected(
            reason=RejectionReason.SHIFT_OVERLAP,
            error=ConflictError(overlap.conflicting_assignment_id),
        )

    return Allowed()


def validate_deletion(
    assignment: ShiftAssignment,
    published_until: Optional[date],
) -> MutationDecision:
    """A delete is only gated by the publish lock on the assignment's current date."""
    if not check_publish_lock(assignment.date, published_until):
        return Rejected(
            reason=RejectionReason.PERIOD_LOCKED,
            error=LockedPeriodError(published_until, assignment.date),
        )
    return Allowed()

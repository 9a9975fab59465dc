"""Exceptions raised by the schedule integrity guards."""

from datetime import date
from typing import Optional


class IntegrityError(Exception):
    """Base class for mutations rejected by an integrity guard."""
    code = "INTEGRITY_ERROR"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        """Convert to dictionary for API response."""
        return {"code": self.code, "message": self.message}


class ConflictError(IntegrityError):
    """The candidate shift overlaps another shift of the same employee."""
    code = "SHIFT_OVERLAP"

    def __init__(self, conflicting_assignment_id: str, message: Optional[str] = None):
        super().__init__(
            message or f"Employee already has an overlapping shift ({conflicting_assignment_id})"
        )
        self.conflicting_assignment_id = conflicting_assignment_id

    def to_dict(self) -> dict:
        data = super().to_dict()
        data["conflicting_assignment_id"] = self.conflicting_assignment_id
        return data


class LockedPeriodError(IntegrityError):
    """The mutation falls on or before the schedule's published-until date."""
    code = "PERIOD_LOCKED"

    def __init__(self, published_until: date, effective_date: date):
        super().__init__(
            f"Schedule is published and locked until {published_until.isoformat()}; "
            f"cannot change shifts on {effective_date.isoformat()}"
        )
        self.published_until = published_until
        self.effective_date = effective_date

    def to_dict(self) -> dict:
        data = super().to_dict()
        data["published_until"] = self.published_until.isoformat()
        data["effective_date"] = self.effective_date.isoformat()
        return data


class PublishBoundaryError(IntegrityError):
    """A publish action tried to move the boundary backwards."""
    code = "PUBLISH_BOUNDARY_REGRESSION"

    def __init__(self, current: date, requested: date):
        super().__init__(
            f"Schedule is already published until {current.isoformat()}; "
            f"cannot move the boundary back to {requested.isoformat()}"
        )
        self.current = current
        self.requested = requested

    def to_dict(self) -> dict:
        data = super().to_dict()
        data["published_until"] = self.current.isoformat()
        data["requested"] = self.requested.isoformat()
        return data


class InvalidShiftTimeError(ValueError):
    """A wall-clock time could not be interpreted as HH:MM."""
